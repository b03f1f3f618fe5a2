"""Models for uploading captured sessions to the remote store."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel


@dataclass(frozen=True)
class UploadImage:
    """Single serialized image in an upload request."""

    src: str
    filter: str


@dataclass(frozen=True)
class UploadRequest:
    """Ordered set of images sent for one session generation."""

    generation: int
    images: tuple[UploadImage, ...]

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body expected by the upload endpoint."""
        return {
            "images": [{"src": image.src, "filter": image.filter} for image in self.images]
        }


@dataclass(frozen=True)
class UploadResponse:
    """Raw response returned by an upload client."""

    status_code: int
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class UploadResultPayload(BaseModel):
    """Per-image entry of a success payload."""

    url: str | None = None
    uploaded: bool = False


class UploadResponsePayload(BaseModel):
    """Structured body returned by the upload endpoint."""

    success: bool = False
    results: list[UploadResultPayload] = []
    error: str | None = None


@dataclass(frozen=True)
class ImageUploadResult:
    """Upload result for one image, aligned by index to the request."""

    url: str | None
    uploaded: bool


@dataclass(frozen=True)
class UploadOutcome:
    """Result of one upload attempt for a session generation."""

    generation: int
    succeeded: bool
    per_image_results: tuple[ImageUploadResult, ...] = ()
    error_message: str | None = None
    error_kind: str | None = None


class UploadState(StrEnum):
    """Lifecycle of the upload for the current generation."""

    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadStatus:
    """Upload state exposed for display."""

    generation: int
    state: UploadState
    outcome: UploadOutcome | None = None

    @property
    def per_image_results(self) -> tuple[ImageUploadResult, ...]:
        if self.outcome is None:
            return ()
        return self.outcome.per_image_results
