"""Image processing and photo storage interfaces."""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol

from gallery_proofing.domain.galleries import WatermarkSettings
from gallery_proofing.domain.photos import Photo

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


@dataclass(frozen=True)
class ArchiveEntry:
    """A file placed into a download archive."""

    name: str
    content: bytes


class ImageProcessor(Protocol):
    """Interface for watermarking and packaging photos."""

    def apply_watermark(
        self,
        image_bytes: bytes,
        watermark: WatermarkSettings,
        overlay_bytes: bytes | None = None,
    ) -> bytes:
        """Return JPEG bytes with the watermark composited."""

    def build_archive(self, entries: list[ArchiveEntry]) -> bytes:
        """Return a zip archive holding the entries."""


class PhotoStorage(Protocol):
    """Interface for fetching stored photo bytes."""

    async def fetch(self, path: str) -> bytes | None:
        """Return stored bytes, or ``None`` when the object does not exist."""


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def extension_for(photo: Photo, watermarked: bool) -> str:
    """Watermarked output is always JPEG; originals keep their extension."""
    if watermarked:
        return ".jpg"
    suffix = PurePosixPath(photo.file_name or photo.file_path).suffix.lower()
    return suffix or ".jpg"


def safe_file_stem(value: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", value).strip(" ._")
    return cleaned or "photo"


def download_filename(photo: Photo, watermarked: bool) -> str:
    """Filename offered for a single photo download."""
    stem = PurePosixPath(photo.file_name).stem if photo.file_name else ""
    stem = stem or photo.title or f"photo_{photo.id}"
    return f"{safe_file_stem(stem)}{extension_for(photo, watermarked)}"


def archive_entry_name(position: int, photo: Photo, watermarked: bool) -> str:
    """Numbered archive entry name such as ``001_Sunset.jpg``."""
    stem = safe_file_stem(photo.title or f"photo_{photo.id}")
    return f"{position:03d}_{stem}{extension_for(photo, watermarked)}"


def archive_filename(gallery_name: str, timestamp: str) -> str:
    return f"{safe_file_stem(gallery_name)}_{timestamp}.zip"
