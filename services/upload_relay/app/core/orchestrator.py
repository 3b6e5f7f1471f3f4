"""Upload orchestration: validate, stage, upload, register."""

from services.upload_relay.app.core.exceptions import RelayError, UploadValidationError
from services.upload_relay.app.core.schemas import IncomingUpload, UploadResult, UploadState
from services.upload_relay.app.core.state_machine import UploadRun
from services.upload_relay.app.core.validation import DEFAULT_MAX_UPLOAD_SIZE, validate_upload
from services.upload_relay.app.shopify.client import ShopifyAdminClient, file_url
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter, create_histogram, observe_duration

logger = get_logger(__name__)

UPLOADS_TOTAL = create_counter(
    "relay_uploads_total",
    "Relayed uploads by outcome (success, rejected before any upstream call, "
    "failed upstream) and last state reached",
    ["outcome", "state"],
)

STEP_DURATION = create_histogram(
    "relay_upload_step_duration_seconds",
    "Duration of each upstream step of a relayed upload",
    ["step"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


class UploadOrchestrator:
    """Runs the three-call staged upload protocol for one file at a time.

    The orchestrator holds no per-request state; every call to ``relay``
    gets its own ``UploadRun``. Steps are awaited strictly in order, nothing
    is retried, and a staged target left behind by a failed run is abandoned
    to the platform's own expiry.
    """

    def __init__(
        self,
        client: ShopifyAdminClient,
        max_upload_size_bytes: int = DEFAULT_MAX_UPLOAD_SIZE,
    ):
        """Initialize orchestrator.

        Args:
            client: Shopify Admin API client
            max_upload_size_bytes: Upload size cap
        """
        self.client = client
        self.max_upload_size_bytes = max_upload_size_bytes

    async def relay(
        self,
        upload: IncomingUpload | None,
        run: UploadRun | None = None,
    ) -> UploadResult:
        """Relay one upload into the shop's file storage.

        Args:
            upload: Parsed upload, or None when the request had no file
            run: State tracker; a fresh one is created when omitted

        Returns:
            URL, file ID and filename of the created file

        Raises:
            RelayError: Any failure; ``failed_at`` holds the last state reached
        """
        run = run or UploadRun()

        try:
            accepted = validate_upload(upload, self.max_upload_size_bytes)
            logger.info(
                "upload_received",
                filename=accepted.filename,
                content_type=accepted.content_type,
                size=accepted.size,
            )

            with observe_duration(STEP_DURATION, step="staged_upload_create"):
                target = await self.client.create_staged_upload(accepted)
            run.advance(UploadState.STAGING_REQUESTED)
            logger.info("staged_upload_created", target_url=target.url)

            with observe_duration(STEP_DURATION, step="staged_upload_post"):
                status = await self.client.upload_to_target(target, accepted)
            run.advance(UploadState.BYTES_UPLOADED)
            logger.info("staged_upload_completed", status=status)

            with observe_duration(STEP_DURATION, step="file_create"):
                created = await self.client.create_file(target, accepted)
            url = file_url(created)
            run.advance(UploadState.FILE_REGISTERED)

        except RelayError as e:
            e.failed_at = run.fail()
            rejected = isinstance(e, UploadValidationError)
            UPLOADS_TOTAL.labels(
                outcome="rejected" if rejected else "failed",
                state=e.failed_at.value,
            ).inc()
            log = logger.warning if rejected else logger.error
            log(
                "upload_relay_failed",
                failed_at=e.failed_at.value,
                error=e.message,
                error_type=type(e).__name__,
                details=e.details,
                filename=upload.filename if upload else None,
                content_type=upload.content_type if upload else None,
                size=upload.size if upload else None,
            )
            raise

        UPLOADS_TOTAL.labels(outcome="success", state=run.state.value).inc()
        logger.info("file_created", file_id=created.id, url=url, kind=created.kind)

        return UploadResult(url=url, file_id=created.id, filename=accepted.filename)
