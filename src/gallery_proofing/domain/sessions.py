"""Domain models for gallery viewing sessions."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from gallery_proofing.domain.galleries import as_utc


@dataclass(frozen=True)
class GallerySession:
    """Represents a token-identified visit to one gallery."""

    id: UUID
    gallery_id: UUID
    session_token: str
    created_at: datetime
    last_access_at: datetime
    client_id: UUID | None = None
    is_staff: bool = False
    ended_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def is_anonymous(self) -> bool:
        return self.client_id is None and not self.is_staff

    def is_usable(self, now: datetime, idle_limit: timedelta) -> bool:
        """Return true when the session is not ended and not idle too long."""
        if not self.is_active:
            return False
        return as_utc(now) - as_utc(self.last_access_at) <= idle_limit
