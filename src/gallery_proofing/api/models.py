"""Pydantic models for the HTTP surface."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gallery_proofing.domain.galleries import WatermarkPosition, WatermarkSettings


class ProofRequest(BaseModel):
    """Body for recording a proof mark."""

    photo_id: UUID
    is_favorite: bool = False
    is_marked_for_editing: bool = False
    notes: str | None = None


class BulkDownloadRequest(BaseModel):
    photo_ids: list[UUID]


class WatermarkPayload(BaseModel):
    """Watermark configuration as sent by the studio."""

    enabled: bool = False
    text: str | None = None
    image_path: str | None = None
    opacity: float = Field(default=0.5, ge=0.1, le=1.0)
    position: WatermarkPosition = WatermarkPosition.CENTER
    tiled: bool = False

    def to_settings(self) -> WatermarkSettings:
        return WatermarkSettings(
            enabled=self.enabled,
            text=self.text,
            image_path=self.image_path,
            opacity=self.opacity,
            position=self.position,
            tiled=self.tiled,
        )


class GalleryCreateRequest(BaseModel):
    """Body for creating a gallery."""

    name: str
    expiry_date: datetime
    description: str = ""
    album_ids: list[UUID] = Field(default_factory=list)
    watermark: WatermarkPayload = Field(default_factory=WatermarkPayload)
    brand_color: str = "#2c3e50"
    allow_public_access: bool = False
    slug: str | None = None


class ActiveRequest(BaseModel):
    is_active: bool


class AlbumsRequest(BaseModel):
    album_ids: list[UUID]


class GrantRequest(BaseModel):
    """Body for granting a client access to a gallery."""

    client_id: UUID
    expires_at: datetime | None = None
    can_download: bool = True
    can_proof: bool = True
    can_order: bool = True


class WatermarkView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enabled: bool
    text: str | None
    image_path: str | None
    opacity: float
    position: WatermarkPosition
    tiled: bool


class GalleryView(BaseModel):
    """Gallery as presented to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    expiry_date: datetime
    brand_color: str
    logo_path: str | None


class GalleryAdminView(GalleryView):
    """Gallery with the studio-only columns."""

    created_at: datetime
    is_active: bool
    allow_public_access: bool
    public_access_token: str | None
    slug: str | None
    album_ids: list[UUID]
    watermark: WatermarkView


class SessionView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gallery_id: UUID
    session_token: str
    created_at: datetime
    last_access_at: datetime


class SessionAdminView(BaseModel):
    """Session without its bearer token."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gallery_id: UUID
    client_id: UUID | None
    is_staff: bool
    created_at: datetime
    last_access_at: datetime
    ended_at: datetime | None


class PhotoView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    album_id: UUID
    title: str | None
    file_name: str | None
    thumbnail_path: str | None
    display_order: int


class ProofView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    photo_id: UUID
    gallery_session_id: UUID
    is_favorite: bool
    is_marked_for_editing: bool
    editing_notes: str | None
    selected_at: datetime


class GrantView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gallery_id: UUID
    client_id: UUID
    granted_at: datetime
    expires_at: datetime | None
    is_active: bool
    can_download: bool
    can_proof: bool
    can_order: bool
