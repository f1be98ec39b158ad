"""Domain models for galleries and their watermark configuration."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID

DEFAULT_BRAND_COLOR = "#2c3e50"
DEFAULT_WATERMARK_TEXT = "PROOF"
MIN_WATERMARK_OPACITY = 0.1
MAX_WATERMARK_OPACITY = 1.0


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


class WatermarkPosition(StrEnum):
    """Anchor for a single (non-tiled) watermark."""

    TOP_LEFT = "top_left"
    TOP_CENTER = "top_center"
    TOP_RIGHT = "top_right"
    MIDDLE_LEFT = "middle_left"
    CENTER = "center"
    MIDDLE_RIGHT = "middle_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_CENTER = "bottom_center"
    BOTTOM_RIGHT = "bottom_right"


@dataclass(frozen=True)
class WatermarkSettings:
    """Watermark configuration owned by a gallery."""

    enabled: bool = False
    text: str | None = None
    image_path: str | None = None
    opacity: float = 0.5
    position: WatermarkPosition = WatermarkPosition.CENTER
    tiled: bool = False

    def __post_init__(self) -> None:
        if not MIN_WATERMARK_OPACITY <= self.opacity <= MAX_WATERMARK_OPACITY:
            raise ValueError(
                f"Watermark opacity must be between {MIN_WATERMARK_OPACITY} "
                f"and {MAX_WATERMARK_OPACITY}, got {self.opacity}"
            )

    @property
    def display_text(self) -> str:
        """Text drawn when no image watermark is configured."""
        if self.text and self.text.strip():
            return self.text.strip()
        return DEFAULT_WATERMARK_TEXT


@dataclass(frozen=True)
class Gallery:
    """A named, time-bounded collection of albums shared for proofing."""

    id: UUID
    name: str
    description: str
    created_at: datetime
    expiry_date: datetime
    is_active: bool
    brand_color: str = DEFAULT_BRAND_COLOR
    logo_path: str | None = None
    allow_public_access: bool = False
    public_access_token: str | None = None
    slug: str | None = None
    watermark: WatermarkSettings = field(default_factory=WatermarkSettings)
    album_ids: tuple[UUID, ...] = ()

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return true once the UTC clock has passed the expiry date."""
        current = as_utc(now) if now is not None else utc_now()
        return current > as_utc(self.expiry_date)

    def status(self, now: datetime | None = None) -> str:
        """Return Inactive, Expired or Active; the active flag wins."""
        if not self.is_active:
            return "Inactive"
        if self.is_expired(now):
            return "Expired"
        return "Active"

    def days_until_expiry(self, now: datetime | None = None) -> int:
        """Return whole days left before expiry, never negative."""
        current = as_utc(now) if now is not None else utc_now()
        return max((as_utc(self.expiry_date) - current).days, 0)


@dataclass(frozen=True)
class GalleryStatsSummary:
    """Studio-wide gallery counters."""

    total_galleries: int
    active_galleries: int
    expired_galleries: int
    total_sessions: int
