"""Models for exported photo strips."""

import base64
from dataclasses import dataclass

STRIP_FILENAME = "StudioStrip.jpg"
STRIP_MEDIA_TYPE = "image/jpeg"


@dataclass(frozen=True)
class StripArtifact:
    """Downloadable composited strip."""

    content: bytes
    caption: str
    filename: str = STRIP_FILENAME
    media_type: str = STRIP_MEDIA_TYPE

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"
