"""Tests for the origin allow-list."""

import pytest

from services.upload_relay.app.core.exceptions import OriginNotAllowedError
from services.upload_relay.app.middleware.origin_gate import (
    check_origin,
    is_origin_allowed,
    normalize_origin,
)

ALLOWED = [
    "https://thereadcounts.myshopify.com",
    "https://thereadcounts.com",
    "http://localhost:9292",
]


class TestNormalizeOrigin:
    """Tests for origin normalization."""

    def test_lowercases_scheme_and_host(self):
        assert normalize_origin("HTTPS://TheReadCounts.COM") == "https://thereadcounts.com"

    def test_strips_trailing_slash(self):
        assert normalize_origin("https://thereadcounts.com/") == "https://thereadcounts.com"

    def test_drops_default_port(self):
        assert normalize_origin("https://thereadcounts.com:443") == "https://thereadcounts.com"

    def test_keeps_explicit_port(self):
        assert normalize_origin("http://localhost:9292") == "http://localhost:9292"

    @pytest.mark.parametrize(
        "origin",
        ["null", "thereadcounts.com", "ftp://thereadcounts.com", "https://", "https://host:notaport"],
    )
    def test_malformed(self, origin):
        assert normalize_origin(origin) is None

    def test_rejects_paths(self):
        assert normalize_origin("https://thereadcounts.com/admin") is None


class TestIsOriginAllowed:
    """Tests for exact origin matching."""

    def test_absent_origin_allowed(self):
        assert is_origin_allowed(None, ALLOWED)

    @pytest.mark.parametrize("origin", ALLOWED)
    def test_configured_origins_allowed(self, origin):
        assert is_origin_allowed(origin, ALLOWED)

    def test_unknown_origin_rejected(self):
        assert not is_origin_allowed("https://evil.example", ALLOWED)

    def test_allowed_domain_embedded_in_attacker_host_rejected(self):
        """Substring containment is not enough."""
        assert not is_origin_allowed("https://thereadcounts.com.attacker.net", ALLOWED)
        assert not is_origin_allowed("https://www.thereadcounts.com", ALLOWED)

    def test_scheme_must_match(self):
        assert not is_origin_allowed("http://thereadcounts.com", ALLOWED)

    def test_port_must_match(self):
        assert not is_origin_allowed("http://localhost:3000", ALLOWED)

    def test_literal_null_origin_rejected(self):
        assert not is_origin_allowed("null", ALLOWED)


class TestCheckOrigin:
    def test_raises_for_disallowed_origin(self):
        with pytest.raises(OriginNotAllowedError) as exc_info:
            check_origin("https://evil.example", ALLOWED)

        assert exc_info.value.origin == "https://evil.example"
        assert exc_info.value.status_code == 403

    def test_passes_for_allowed_origin(self):
        check_origin("https://thereadcounts.com", ALLOWED)
