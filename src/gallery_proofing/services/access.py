"""Access grant table for client gallery permissions."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from gallery_proofing.domain.access import AccessGrant

logger = logging.getLogger(__name__)


class AccessGrantRepository(Protocol):
    """Persistence interface for gallery access grants."""

    def upsert_grant(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        client_id: UUID,
        granted_at: datetime,
        expires_at: datetime | None,
        can_download: bool,
        can_proof: bool,
        can_order: bool,
    ) -> AccessGrant:
        """Insert or reactivate the grant for (gallery, client) and return it."""

    def find_grant(self, gallery_id: UUID, client_id: UUID) -> AccessGrant | None:
        """Return the grant for (gallery, client), if present."""

    def deactivate_grant(self, gallery_id: UUID, client_id: UUID) -> bool:
        """Deactivate a grant and report whether one existed."""

    def list_grants(self, gallery_id: UUID) -> list[AccessGrant]:
        """Return all grants of a gallery."""


@dataclass
class AccessService:
    """Application service for granting and checking gallery access."""

    repository: AccessGrantRepository

    def grant(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        client_id: UUID,
        now: datetime,
        expires_at: datetime | None = None,
        can_download: bool = True,
        can_proof: bool = True,
        can_order: bool = True,
    ) -> AccessGrant:
        """Grant (or re-grant) a client access to a gallery."""
        grant = self.repository.upsert_grant(
            gallery_id=gallery_id,
            client_id=client_id,
            granted_at=now,
            expires_at=expires_at,
            can_download=can_download,
            can_proof=can_proof,
            can_order=can_order,
        )
        logger.info(
            "Gallery access granted",
            extra={
                "gallery_id": str(gallery_id),
                "client_id": str(client_id),
                "can_download": can_download,
                "can_proof": can_proof,
                "can_order": can_order,
            },
        )
        return grant

    def revoke(self, gallery_id: UUID, client_id: UUID) -> bool:
        """Revoke a client's access; return false when no grant existed."""
        revoked = self.repository.deactivate_grant(gallery_id, client_id)
        if revoked:
            logger.info(
                "Gallery access revoked",
                extra={"gallery_id": str(gallery_id), "client_id": str(client_id)},
            )
        return revoked

    def find_valid_grant(
        self, gallery_id: UUID, client_id: UUID, now: datetime
    ) -> AccessGrant | None:
        """Return the client's grant only while it is active and unexpired."""
        grant = self.repository.find_grant(gallery_id, client_id)
        if grant is None or not grant.is_valid(now):
            return None
        return grant

    def list_grants(self, gallery_id: UUID) -> list[AccessGrant]:
        """Return all grants for a gallery."""
        return self.repository.list_grants(gallery_id)
