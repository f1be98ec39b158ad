"""Supabase implementation for galleries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gallery_proofing.domain.galleries import (
    DEFAULT_BRAND_COLOR,
    Gallery,
    WatermarkPosition,
    WatermarkSettings,
)
from gallery_proofing.services.galleries import GalleryRepository

_GALLERY_SELECT = "*, gallery_albums(album_id)"


@dataclass
class SupabaseGalleryRepository(GalleryRepository):
    """Supabase-backed repository for galleries and their album links."""

    client: Client

    def create_gallery(self, payload: dict[str, object]) -> Gallery:
        """Create a gallery row and return it."""
        response = self.client.table("galleries").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create gallery")
        return _parse_gallery(response.data[0])

    def get_gallery(self, gallery_id: UUID) -> Gallery | None:
        """Return a gallery by id, if present."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_SELECT)
            .eq("id", str(gallery_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_gallery(response.data[0])

    def find_by_public_token(self, token: str) -> Gallery | None:
        """Return the gallery owning a public access token, if any."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_SELECT)
            .eq("public_access_token", token)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_gallery(response.data[0])

    def find_by_slug(self, slug: str) -> Gallery | None:
        """Return the gallery with a slug, if any."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_SELECT)
            .eq("slug", slug)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_gallery(response.data[0])

    def list_galleries(self) -> list[Gallery]:
        """Return all galleries, newest first."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_SELECT)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_gallery(row) for row in response.data or []]

    def update_gallery(
        self, gallery_id: UUID, payload: dict[str, object]
    ) -> Gallery | None:
        """Update gallery columns and return the stored gallery."""
        response = (
            self.client.table("galleries")
            .update(payload)
            .eq("id", str(gallery_id))
            .execute()
        )
        if not response.data:
            return None
        return self.get_gallery(gallery_id)

    def add_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> None:
        """Attach albums to a gallery."""
        self.client.table("gallery_albums").upsert(
            [
                {"gallery_id": str(gallery_id), "album_id": str(album_id)}
                for album_id in album_ids
            ],
            on_conflict="gallery_id,album_id",
        ).execute()

    def remove_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> None:
        """Detach albums from a gallery."""
        self.client.table("gallery_albums").delete().eq(
            "gallery_id", str(gallery_id)
        ).in_("album_id", [str(album_id) for album_id in album_ids]).execute()


def _parse_gallery(row: dict[str, object]) -> Gallery:
    """Parse a gallery row (optionally with embedded album links)."""
    album_rows = row.get("gallery_albums") or []
    watermark = WatermarkSettings(
        enabled=bool(row.get("watermark_enabled", False)),
        text=row.get("watermark_text"),
        image_path=row.get("watermark_image_path"),
        opacity=float(row.get("watermark_opacity") or 0.5),
        position=WatermarkPosition(row.get("watermark_position") or "center"),
        tiled=bool(row.get("watermark_tiled", False)),
    )
    return Gallery(
        id=UUID(row["id"]),
        name=str(row.get("name", "")),
        description=str(row.get("description") or ""),
        created_at=datetime.fromisoformat(row["created_at"]),
        expiry_date=datetime.fromisoformat(row["expiry_date"]),
        is_active=bool(row.get("is_active", True)),
        brand_color=str(row.get("brand_color") or DEFAULT_BRAND_COLOR),
        logo_path=row.get("logo_path"),
        allow_public_access=bool(row.get("allow_public_access", False)),
        public_access_token=row.get("public_access_token"),
        slug=row.get("slug"),
        watermark=watermark,
        album_ids=tuple(UUID(album["album_id"]) for album in album_rows),
    )
