"""Photo catalog port and paging rules."""

from typing import Protocol
from uuid import UUID

from gallery_proofing.domain.photos import Photo


class PhotoRepository(Protocol):
    """Read interface for photos attached to galleries."""

    def get_photos_for_gallery(self, album_ids: list[UUID]) -> list[Photo]:
        """Return photos of the albums ordered by display order, upload time, id."""

    def get_photo(self, photo_id: UUID) -> Photo | None:
        """Return a photo by id, if present."""


def clamp_page_size(
    requested: int | None, default: int, minimum: int, maximum: int
) -> int:
    """Clamp a requested page size; missing or non-positive uses the default."""
    if requested is None or requested <= 0:
        requested = default
    return max(minimum, min(requested, maximum))


def paginate(photos: list[Photo], page: int, page_size: int) -> list[Photo]:
    start = (page - 1) * page_size
    return photos[start : start + page_size]
