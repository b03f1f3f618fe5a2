"""Composite finished sessions into a downloadable strip."""

import io
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from PIL import Image, ImageDraw, ImageFont

from photo_studio.domain.session import CapturedShot
from photo_studio.domain.strip import StripArtifact

CAPTION_PREFIX = "Studio Memories"
STRIP_WIDTH = 600
STRIP_GAP = 20
CAPTION_FONT_SIZE = 24
STRIP_JPEG_QUALITY = 95


def format_caption_date(value: date) -> str:
    """Format a date as "day month year", e.g. "5 March 2024"."""
    return f"{value.day} {value:%B} {value.year}"


def build_caption(value: date) -> str:
    return f"{CAPTION_PREFIX} • {format_caption_date(value)}"


@dataclass
class StripExporter:
    """Stacks shots vertically above a dated caption."""

    today: Callable[[], date] = field(default=date.today)
    width: int = STRIP_WIDTH
    gap: int = STRIP_GAP

    def export(self, shots: Sequence[CapturedShot]) -> StripArtifact:
        """Render the shots and caption into a single JPEG artifact."""
        if not shots:
            raise ValueError("Cannot export a strip without shots")

        photos = [self._fit(shot.image_data) for shot in shots]
        caption = build_caption(self.today())
        font = ImageFont.load_default(size=CAPTION_FONT_SIZE)

        measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        left, top, right, bottom = measure.textbbox((0, 0), caption, font=font)
        text_width, text_height = right - left, bottom - top

        photos_height = sum(photo.height for photo in photos)
        total_width = self.width + self.gap * 2
        total_height = photos_height + self.gap * (len(photos) + 1) + text_height + self.gap

        strip = Image.new("RGB", (total_width, total_height), "white")
        offset = self.gap
        for photo in photos:
            strip.paste(photo, (self.gap, offset))
            offset += photo.height + self.gap

        draw = ImageDraw.Draw(strip)
        text_x = (total_width - text_width) // 2 - left
        draw.text((text_x, offset - top), caption, fill="#333333", font=font)

        buffer = io.BytesIO()
        strip.save(buffer, format="JPEG", quality=STRIP_JPEG_QUALITY)
        return StripArtifact(content=buffer.getvalue(), caption=caption)

    def _fit(self, image_data: bytes) -> Image.Image:
        with Image.open(io.BytesIO(image_data)) as image:
            ratio = image.height / image.width
            return image.convert("RGB").resize(
                (self.width, max(1, round(self.width * ratio))), Image.Resampling.LANCZOS
            )
