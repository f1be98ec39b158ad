"""Domain models for gallery access grants and callers."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from gallery_proofing.domain.galleries import as_utc


@dataclass(frozen=True)
class AccessGrant:
    """Authorization for one client to use one gallery."""

    id: UUID
    gallery_id: UUID
    client_id: UUID
    granted_at: datetime
    expires_at: datetime | None = None
    is_active: bool = True
    can_download: bool = True
    can_proof: bool = True
    can_order: bool = True

    def is_valid(self, now: datetime) -> bool:
        """Return true for an active grant that has not run out."""
        if not self.is_active:
            return False
        return self.expires_at is None or as_utc(self.expires_at) > as_utc(now)


@dataclass(frozen=True)
class CallerIdentity:
    """Identity resolved by the outer layer; anonymous callers are ``None``."""

    client_id: UUID | None = None
    is_staff: bool = False
