"""Supabase-backed photo catalog."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gallery_proofing.domain.photos import Photo
from gallery_proofing.services.photos import PhotoRepository

PAGE_SIZE = 1000

_PHOTO_COLUMNS = (
    "id, album_id, title, file_name, file_path, thumbnail_path, "
    "display_order, uploaded_at"
)


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Reads photos from the studio's photos table."""

    client: Client
    page_size: int = PAGE_SIZE

    def get_photos_for_gallery(self, album_ids: list[UUID]) -> list[Photo]:
        """Return photos of the albums ordered by display order, upload time, id.

        Rows are read in ranges of ``page_size`` until a short page comes back,
        so galleries larger than the API row cap are returned in full.
        """
        if not album_ids:
            return []
        photos: list[Photo] = []
        start = 0
        while True:
            response = (
                self.client.table("photos")
                .select(_PHOTO_COLUMNS)
                .in_("album_id", [str(album_id) for album_id in album_ids])
                .order("display_order")
                .order("uploaded_at")
                .order("id")
                .range(start, start + self.page_size - 1)
                .execute()
            )
            rows = response.data or []
            photos.extend(_parse_photo(row) for row in rows)
            if len(rows) < self.page_size:
                return photos
            start += self.page_size

    def get_photo(self, photo_id: UUID) -> Photo | None:
        """Return a photo by id, if present."""
        response = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_photo(response.data[0])


def _parse_photo(row: dict[str, object]) -> Photo:
    return Photo(
        id=UUID(row["id"]),
        album_id=UUID(row["album_id"]),
        file_path=str(row["file_path"]),
        uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
        title=row.get("title"),
        file_name=row.get("file_name"),
        thumbnail_path=row.get("thumbnail_path"),
        display_order=int(row.get("display_order") or 0),
    )
