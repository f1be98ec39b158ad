"""Pillow-based watermarking and zip packaging."""

import io
import zipfile
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont, ImageOps

from gallery_proofing.domain.galleries import WatermarkPosition, WatermarkSettings
from gallery_proofing.services.imaging import ArchiveEntry, ImageProcessor

FONT_SIZE_PERCENT = 5
LOGO_WIDTH_PERCENT = 20
MARGIN_PERCENT = 3
TILE_ROTATION = -30
OUTPUT_QUALITY = 90

# Horizontal and vertical placement factors within the free area.
_ANCHORS: dict[WatermarkPosition, tuple[float, float]] = {
    WatermarkPosition.TOP_LEFT: (0.0, 0.0),
    WatermarkPosition.TOP_CENTER: (0.5, 0.0),
    WatermarkPosition.TOP_RIGHT: (1.0, 0.0),
    WatermarkPosition.MIDDLE_LEFT: (0.0, 0.5),
    WatermarkPosition.CENTER: (0.5, 0.5),
    WatermarkPosition.MIDDLE_RIGHT: (1.0, 0.5),
    WatermarkPosition.BOTTOM_LEFT: (0.0, 1.0),
    WatermarkPosition.BOTTOM_CENTER: (0.5, 1.0),
    WatermarkPosition.BOTTOM_RIGHT: (1.0, 1.0),
}


@dataclass
class PillowImageProcessor(ImageProcessor):
    """Composites text or logo watermarks and builds download archives."""

    quality: int = OUTPUT_QUALITY

    def apply_watermark(
        self,
        image_bytes: bytes,
        watermark: WatermarkSettings,
        overlay_bytes: bytes | None = None,
    ) -> bytes:
        """Return JPEG bytes with the watermark composited."""
        with Image.open(io.BytesIO(image_bytes)) as source:
            base = ImageOps.exif_transpose(source).convert("RGBA")

        if overlay_bytes:
            mark = _logo_mark(overlay_bytes, base.width)
        else:
            mark = _text_mark(watermark.display_text, base.width)
        mark = _with_opacity(mark, watermark.opacity)

        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        if watermark.tiled:
            rotated = mark.rotate(
                TILE_ROTATION, expand=True, resample=Image.Resampling.BICUBIC
            )
            _tile(layer, rotated)
        else:
            layer.alpha_composite(
                mark, dest=_anchor(watermark.position, base.size, mark.size)
            )

        composed = Image.alpha_composite(base, layer).convert("RGB")
        output = io.BytesIO()
        composed.save(output, format="JPEG", quality=self.quality, optimize=True)
        return output.getvalue()

    def build_archive(self, entries: list[ArchiveEntry]) -> bytes:
        """Return a zip archive holding the entries."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry in entries:
                zf.writestr(entry.name, entry.content)
        return buffer.getvalue()


def _text_mark(text: str, image_width: int) -> Image.Image:
    font_size = max(12, image_width * FONT_SIZE_PERCENT // 100)
    font = ImageFont.load_default(size=font_size)
    canvas = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = canvas.textbbox((0, 0), text, font=font)
    padding = max(2, font_size // 4)
    mark = Image.new(
        "RGBA",
        (right - left + padding * 2, bottom - top + padding * 2),
        (0, 0, 0, 0),
    )
    ImageDraw.Draw(mark).text(
        (padding - left, padding - top),
        text,
        font=font,
        fill=(255, 255, 255, 255),
        stroke_width=max(1, font_size // 20),
        stroke_fill=(0, 0, 0, 255),
    )
    return mark


def _logo_mark(overlay_bytes: bytes, image_width: int) -> Image.Image:
    with Image.open(io.BytesIO(overlay_bytes)) as source:
        logo = source.convert("RGBA")
    target_width = max(1, image_width * LOGO_WIDTH_PERCENT // 100)
    ratio = target_width / float(max(1, logo.width))
    new_size = (target_width, max(1, int(logo.height * ratio)))
    return logo.resize(new_size, Image.Resampling.LANCZOS)


def _with_opacity(mark: Image.Image, opacity: float) -> Image.Image:
    alpha = mark.getchannel("A").point(lambda value: int(value * opacity))
    mark.putalpha(alpha)
    return mark


def _anchor(
    position: WatermarkPosition,
    base_size: tuple[int, int],
    mark_size: tuple[int, int],
) -> tuple[int, int]:
    horizontal, vertical = _ANCHORS[position]
    margin = min(base_size) * MARGIN_PERCENT // 100
    free_x = max(0, base_size[0] - mark_size[0] - margin * 2)
    free_y = max(0, base_size[1] - mark_size[1] - margin * 2)
    return margin + int(free_x * horizontal), margin + int(free_y * vertical)


def _tile(layer: Image.Image, mark: Image.Image) -> None:
    step_x = mark.width + mark.width // 2
    step_y = mark.height + mark.height // 2
    for row, y in enumerate(range(0, layer.height, step_y)):
        offset = step_x // 2 if row % 2 else 0
        for x in range(offset, layer.width, step_x):
            layer.alpha_composite(mark, dest=(x, y))
