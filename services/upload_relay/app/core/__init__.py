"""Core upload relay logic."""

from services.upload_relay.app.core.schemas import (
    CreatedFile,
    GenericFile,
    IncomingUpload,
    MediaImage,
    StagedTarget,
    UploadResult,
    UploadState,
)
from services.upload_relay.app.core.state_machine import (
    InvalidTransitionError,
    StateMachine,
    UploadRun,
)
from services.upload_relay.app.core.validation import validate_upload

__all__ = [
    "CreatedFile",
    "GenericFile",
    "IncomingUpload",
    "MediaImage",
    "StagedTarget",
    "UploadResult",
    "UploadState",
    "InvalidTransitionError",
    "StateMachine",
    "UploadRun",
    "validate_upload",
]
