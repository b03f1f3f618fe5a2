"""Image preprocessing and serialization helpers."""

import asyncio
import base64
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from PIL import Image

from photo_studio.domain.errors import PreprocessError
from photo_studio.domain.session import CapturedShot

logger = logging.getLogger(__name__)

DEFAULT_MAX_WIDTH = 800
DEFAULT_QUALITY = 80


def resize_image(image_data: bytes, max_width: int, quality: int) -> bytes:
    """Downscale ``image_data`` to at most ``max_width`` pixels wide.

    Images already within bounds are returned unchanged. Decode or encode
    failures fall back to the original bytes.
    """
    try:
        return _resize(image_data, max_width, quality)
    except PreprocessError as exc:
        logger.warning("Preprocessing failed, using original image: %s", exc)
        return image_data


def _resize(image_data: bytes, max_width: int, quality: int) -> bytes:
    try:
        with Image.open(io.BytesIO(image_data)) as image:
            width, height = image.size
            if width <= max_width:
                return image_data
            new_height = max(1, round(height * max_width / width))
            resized = image.convert("RGB").resize(
                (max_width, new_height), Image.Resampling.LANCZOS
            )
        buffer = io.BytesIO()
        resized.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise PreprocessError(str(exc)) from exc
    return buffer.getvalue()


@dataclass
class ImagePreprocessor:
    """Bounds image size and quality before transmission."""

    max_width: int = DEFAULT_MAX_WIDTH
    quality: int = DEFAULT_QUALITY

    def resize(self, image_data: bytes) -> bytes:
        """Resize a single image with the configured bounds."""
        return resize_image(image_data, self.max_width, self.quality)

    async def prepare(self, shots: Sequence[CapturedShot]) -> list[CapturedShot]:
        """Resize all shots concurrently, preserving their order."""
        resized = await asyncio.gather(
            *(asyncio.to_thread(self.resize, shot.image_data) for shot in shots)
        )
        return [
            CapturedShot(image_data=data, filter_name=shot.filter_name)
            for shot, data in zip(shots, resized, strict=True)
        ]


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
