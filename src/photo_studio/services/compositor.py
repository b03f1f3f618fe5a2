"""Render raw frames through a filter into still images."""

import io
import math
from collections.abc import Callable
from dataclasses import dataclass

from PIL import Image, ImageEnhance, ImageFilter

from photo_studio.domain.errors import NoFrameAvailable
from photo_studio.domain.filters import (
    BLUR,
    BRIGHTNESS,
    CONTRAST,
    GRAYSCALE,
    HUE_ROTATE,
    SATURATE,
    SEPIA,
    FilterOperation,
    FilterSpec,
)
from photo_studio.domain.session import CapturedShot, Frame

CAPTURE_JPEG_QUALITY = 92

Matrix = tuple[float, ...]


def _affine(rows: tuple[tuple[float, float, float], ...]) -> Matrix:
    """Expand a 3x3 colour matrix into Pillow's 12-value RGB form."""
    values: list[float] = []
    for row in rows:
        values.extend(row)
        values.append(0.0)
    return tuple(values)


def grayscale_matrix(amount: float) -> Matrix:
    inv = 1 - min(max(amount, 0.0), 1.0)
    return _affine(
        (
            (0.2126 + 0.7874 * inv, 0.7152 - 0.7152 * inv, 0.0722 - 0.0722 * inv),
            (0.2126 - 0.2126 * inv, 0.7152 + 0.2848 * inv, 0.0722 - 0.0722 * inv),
            (0.2126 - 0.2126 * inv, 0.7152 - 0.7152 * inv, 0.0722 + 0.9278 * inv),
        )
    )


def sepia_matrix(amount: float) -> Matrix:
    inv = 1 - min(max(amount, 0.0), 1.0)
    return _affine(
        (
            (0.393 + 0.607 * inv, 0.769 - 0.769 * inv, 0.189 - 0.189 * inv),
            (0.349 - 0.349 * inv, 0.686 + 0.314 * inv, 0.168 - 0.168 * inv),
            (0.272 - 0.272 * inv, 0.534 - 0.534 * inv, 0.131 + 0.869 * inv),
        )
    )


def hue_rotate_matrix(degrees: float) -> Matrix:
    angle = math.radians(degrees)
    cos, sin = math.cos(angle), math.sin(angle)
    return _affine(
        (
            (
                0.213 + cos * 0.787 - sin * 0.213,
                0.715 - cos * 0.715 - sin * 0.715,
                0.072 - cos * 0.072 + sin * 0.928,
            ),
            (
                0.213 - cos * 0.213 + sin * 0.143,
                0.715 + cos * 0.285 + sin * 0.140,
                0.072 - cos * 0.072 - sin * 0.283,
            ),
            (
                0.213 - cos * 0.213 - sin * 0.787,
                0.715 - cos * 0.715 + sin * 0.715,
                0.072 + cos * 0.928 + sin * 0.072,
            ),
        )
    )


def _matrix_step(build: Callable[[float], Matrix]) -> Callable[[Image.Image, float], Image.Image]:
    def apply(image: Image.Image, amount: float) -> Image.Image:
        return image.convert("RGB", build(amount))

    return apply


def _saturate(image: Image.Image, amount: float) -> Image.Image:
    return ImageEnhance.Color(image).enhance(amount)


def _contrast(image: Image.Image, amount: float) -> Image.Image:
    return ImageEnhance.Contrast(image).enhance(amount)


def _brightness(image: Image.Image, amount: float) -> Image.Image:
    return ImageEnhance.Brightness(image).enhance(amount)


def _blur(image: Image.Image, amount: float) -> Image.Image:
    if amount <= 0:
        return image
    return image.filter(ImageFilter.GaussianBlur(radius=amount))


_STEPS: dict[str, Callable[[Image.Image, float], Image.Image]] = {
    GRAYSCALE: _matrix_step(grayscale_matrix),
    SEPIA: _matrix_step(sepia_matrix),
    HUE_ROTATE: _matrix_step(hue_rotate_matrix),
    SATURATE: _saturate,
    CONTRAST: _contrast,
    BRIGHTNESS: _brightness,
    BLUR: _blur,
}


def apply_filter(image: Image.Image, operations: tuple[FilterOperation, ...]) -> Image.Image:
    """Apply filter operations left to right, like a CSS filter chain."""
    current = image.convert("RGB")
    for operation in operations:
        current = _STEPS[operation.kind](current, operation.amount)
    return current


@dataclass
class FrameCompositor:
    """Turns a raw frame plus a filter into an encoded still image."""

    quality: int = CAPTURE_JPEG_QUALITY

    def capture(self, frame: Frame | None, filter_spec: FilterSpec) -> CapturedShot:
        """Render ``frame`` through ``filter_spec`` and encode it as JPEG."""
        if frame is None or frame.width <= 0 or frame.height <= 0:
            raise NoFrameAvailable("Camera has not produced a ready frame")
        try:
            image = Image.frombytes("RGB", (frame.width, frame.height), frame.pixels)
        except ValueError as exc:
            raise NoFrameAvailable("Frame buffer does not match its dimensions") from exc

        rendered = apply_filter(image, filter_spec.operations)
        buffer = io.BytesIO()
        rendered.save(buffer, format="JPEG", quality=self.quality)
        return CapturedShot(image_data=buffer.getvalue(), filter_name=filter_spec.name)
