"""Tests for image preprocessing helpers."""

import asyncio
import io

from PIL import Image

from photo_studio.domain.session import CapturedShot
from photo_studio.services.images import (
    ImagePreprocessor,
    resize_image,
    to_data_url,
)
from tests.conftest import make_jpeg


def test_resize_keeps_small_image_bytes() -> None:
    original = make_jpeg(width=40, height=30)

    assert resize_image(original, max_width=40, quality=80) == original
    assert resize_image(original, max_width=800, quality=10) == original


def test_resize_scales_proportionally() -> None:
    original = make_jpeg(width=200, height=100)

    resized = resize_image(original, max_width=100, quality=70)

    with Image.open(io.BytesIO(resized)) as image:
        assert image.size == (100, 50)
        assert image.format == "JPEG"


def test_resize_falls_back_to_original_on_garbage() -> None:
    garbage = b"not an image"

    assert resize_image(garbage, max_width=10, quality=80) == garbage


def test_prepare_preserves_order_and_filters() -> None:
    shots = [
        CapturedShot(image_data=make_jpeg(width=120, height=60), filter_name="Noir"),
        CapturedShot(image_data=b"broken", filter_name="Glitch"),
        CapturedShot(image_data=make_jpeg(width=20, height=20), filter_name="90s"),
    ]

    prepared = asyncio.run(ImagePreprocessor(max_width=60, quality=80).prepare(shots))

    assert [shot.filter_name for shot in prepared] == ["Noir", "Glitch", "90s"]
    assert prepared[1].image_data == b"broken"
    assert prepared[2].image_data == shots[2].image_data
    with Image.open(io.BytesIO(prepared[0].image_data)) as image:
        assert image.size == (60, 30)


def test_to_data_url_uses_png_header() -> None:
    data = b"\x89PNG\r\n\x1a\n" + b"rest"

    assert to_data_url(data).startswith("data:image/png;base64,")


def test_to_data_url_defaults_to_jpeg() -> None:
    assert to_data_url(b"unknown").startswith("data:image/jpeg;base64,")
