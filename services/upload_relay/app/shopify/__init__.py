"""Shopify Admin API access."""

from services.upload_relay.app.shopify.client import (
    ShopifyAdminClient,
    file_url,
    parse_created_file,
)

__all__ = ["ShopifyAdminClient", "file_url", "parse_created_file"]
