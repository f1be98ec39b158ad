"""Gallery administration service."""

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from gallery_proofing.domain.galleries import (
    DEFAULT_BRAND_COLOR,
    Gallery,
    GalleryStatsSummary,
    WatermarkSettings,
    utc_now,
)
from gallery_proofing.services.sessions import GallerySessionRepository

logger = logging.getLogger(__name__)

PUBLIC_TOKEN_BYTES = 24
_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_BRAND_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


class GalleryRepository(Protocol):
    """Persistence interface for galleries and their album links."""

    def create_gallery(self, payload: dict[str, object]) -> Gallery:
        """Create a gallery row and return it."""

    def get_gallery(self, gallery_id: UUID) -> Gallery | None:
        """Return a gallery by id, if present."""

    def find_by_public_token(self, token: str) -> Gallery | None:
        """Return the gallery owning a public access token, if any."""

    def find_by_slug(self, slug: str) -> Gallery | None:
        """Return the gallery with a slug, if any."""

    def list_galleries(self) -> list[Gallery]:
        """Return all galleries, newest first."""

    def update_gallery(
        self, gallery_id: UUID, payload: dict[str, object]
    ) -> Gallery | None:
        """Update gallery columns and return the stored gallery."""

    def add_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> None:
        """Attach albums to a gallery."""

    def remove_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> None:
        """Detach albums from a gallery."""


@dataclass
class GalleryService:
    """Studio-side management of galleries."""

    repository: GalleryRepository
    session_repository: GallerySessionRepository
    clock: Callable[[], datetime] = utc_now

    def create_gallery(  # noqa: PLR0913
        self,
        name: str,
        expiry_date: datetime,
        description: str = "",
        album_ids: list[UUID] | None = None,
        watermark: WatermarkSettings | None = None,
        brand_color: str = DEFAULT_BRAND_COLOR,
        allow_public_access: bool = False,
        slug: str | None = None,
    ) -> Gallery:
        """Create a gallery, attach its albums and mint a share token if public."""
        if not name.strip():
            raise ValueError("Gallery name is required")
        if not _BRAND_COLOR_PATTERN.match(brand_color):
            raise ValueError(f"Invalid brand color: {brand_color}")
        normalized_slug = _normalize_slug(slug)
        if normalized_slug and self.repository.find_by_slug(normalized_slug):
            raise ValueError(f"Slug already in use: {normalized_slug}")

        payload: dict[str, object] = {
            "name": name.strip(),
            "description": description,
            "created_at": self.clock().isoformat(),
            "expiry_date": expiry_date.isoformat(),
            "is_active": True,
            "brand_color": brand_color,
            "allow_public_access": allow_public_access,
            "public_access_token": (
                secrets.token_urlsafe(PUBLIC_TOKEN_BYTES)
                if allow_public_access
                else None
            ),
            "slug": normalized_slug,
            **watermark_columns(watermark or WatermarkSettings()),
        }
        gallery = self.repository.create_gallery(payload)
        if album_ids:
            self.repository.add_albums(gallery.id, album_ids)
            gallery = self.repository.get_gallery(gallery.id) or gallery
        logger.info("Gallery created", extra={"gallery_id": str(gallery.id)})
        return gallery

    def get_gallery(self, gallery_id: UUID) -> Gallery | None:
        return self.repository.get_gallery(gallery_id)

    def list_galleries(self) -> list[Gallery]:
        return self.repository.list_galleries()

    def update_watermark(
        self, gallery_id: UUID, watermark: WatermarkSettings
    ) -> Gallery | None:
        """Replace a gallery's watermark settings."""
        return self.repository.update_gallery(gallery_id, watermark_columns(watermark))

    def set_active(self, gallery_id: UUID, is_active: bool) -> Gallery | None:
        """Activate or deactivate a gallery."""
        gallery = self.repository.update_gallery(gallery_id, {"is_active": is_active})
        if gallery is not None:
            logger.info(
                "Gallery active flag changed",
                extra={"gallery_id": str(gallery_id), "is_active": is_active},
            )
        return gallery

    def enable_public_access(self, gallery_id: UUID) -> Gallery | None:
        """Turn the public link on, minting its token the first time only."""
        gallery = self.repository.get_gallery(gallery_id)
        if gallery is None:
            return None
        payload: dict[str, object] = {"allow_public_access": True}
        if not gallery.public_access_token:
            payload["public_access_token"] = secrets.token_urlsafe(PUBLIC_TOKEN_BYTES)
        return self.repository.update_gallery(gallery_id, payload)

    def disable_public_access(self, gallery_id: UUID) -> Gallery | None:
        """Turn the public link off; the token is kept for re-enabling."""
        return self.repository.update_gallery(
            gallery_id, {"allow_public_access": False}
        )

    def attach_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> Gallery | None:
        gallery = self.repository.get_gallery(gallery_id)
        if gallery is None:
            return None
        new_ids = [
            album_id for album_id in album_ids if album_id not in gallery.album_ids
        ]
        if new_ids:
            self.repository.add_albums(gallery_id, new_ids)
        return self.repository.get_gallery(gallery_id)

    def detach_albums(self, gallery_id: UUID, album_ids: list[UUID]) -> Gallery | None:
        gallery = self.repository.get_gallery(gallery_id)
        if gallery is None:
            return None
        if album_ids:
            self.repository.remove_albums(gallery_id, album_ids)
        return self.repository.get_gallery(gallery_id)

    def access_url(self, gallery: Gallery, base_url: str) -> str:
        """Build the share URL: slug first, then public token, then the id path."""
        root = base_url.rstrip("/")
        if gallery.allow_public_access and gallery.slug:
            return f"{root}/links/{gallery.slug}"
        if gallery.allow_public_access and gallery.public_access_token:
            return f"{root}/links/{gallery.public_access_token}"
        return f"{root}/galleries/{gallery.id}"

    def stats(self) -> GalleryStatsSummary:
        """Return studio-wide gallery counters."""
        now = self.clock()
        galleries = self.repository.list_galleries()
        active = sum(1 for gallery in galleries if gallery.status(now) == "Active")
        expired = sum(1 for gallery in galleries if gallery.is_expired(now))
        return GalleryStatsSummary(
            total_galleries=len(galleries),
            active_galleries=active,
            expired_galleries=expired,
            total_sessions=self.session_repository.count_sessions(),
        )


def watermark_columns(watermark: WatermarkSettings) -> dict[str, object]:
    """Flatten watermark settings into gallery columns."""
    return {
        "watermark_enabled": watermark.enabled,
        "watermark_text": watermark.text,
        "watermark_image_path": watermark.image_path,
        "watermark_opacity": watermark.opacity,
        "watermark_position": watermark.position.value,
        "watermark_tiled": watermark.tiled,
    }


def _normalize_slug(slug: str | None) -> str | None:
    if slug is None or not slug.strip():
        return None
    normalized = slug.strip().lower()
    if not _SLUG_PATTERN.match(normalized):
        raise ValueError(f"Invalid slug: {slug}")
    return normalized
