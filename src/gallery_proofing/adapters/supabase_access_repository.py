"""Supabase implementation for gallery access grants."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gallery_proofing.domain.access import AccessGrant
from gallery_proofing.services.access import AccessGrantRepository


@dataclass
class SupabaseAccessGrantRepository(AccessGrantRepository):
    """Supabase-backed repository for the gallery_access table."""

    client: Client

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
        response = (
            self.client.table("gallery_access")
            .upsert(
                {
                    "gallery_id": str(gallery_id),
                    "client_profile_id": str(client_id),
                    "granted_at": granted_at.isoformat(),
                    "expires_at": expires_at.isoformat() if expires_at else None,
                    "is_active": True,
                    "can_download": can_download,
                    "can_proof": can_proof,
                    "can_order": can_order,
                },
                on_conflict="gallery_id,client_profile_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to grant gallery access")
        return _parse_grant(response.data[0])

    def find_grant(self, gallery_id: UUID, client_id: UUID) -> AccessGrant | None:
        """Return the grant for (gallery, client), if present."""
        response = (
            self.client.table("gallery_access")
            .select("*")
            .eq("gallery_id", str(gallery_id))
            .eq("client_profile_id", str(client_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_grant(response.data[0])

    def deactivate_grant(self, gallery_id: UUID, client_id: UUID) -> bool:
        """Deactivate a grant and report whether one existed."""
        response = (
            self.client.table("gallery_access")
            .update({"is_active": False})
            .eq("gallery_id", str(gallery_id))
            .eq("client_profile_id", str(client_id))
            .execute()
        )
        return bool(response.data)

    def list_grants(self, gallery_id: UUID) -> list[AccessGrant]:
        """Return all grants of a gallery."""
        response = (
            self.client.table("gallery_access")
            .select("*")
            .eq("gallery_id", str(gallery_id))
            .order("granted_at", desc=True)
            .execute()
        )
        return [_parse_grant(row) for row in response.data or []]


def _parse_grant(row: dict[str, object]) -> AccessGrant:
    expires_raw = row.get("expires_at")
    return AccessGrant(
        id=UUID(row["id"]),
        gallery_id=UUID(row["gallery_id"]),
        client_id=UUID(row["client_profile_id"]),
        granted_at=datetime.fromisoformat(row["granted_at"]),
        expires_at=(
            datetime.fromisoformat(expires_raw)
            if isinstance(expires_raw, str) and expires_raw
            else None
        ),
        is_active=bool(row.get("is_active", True)),
        can_download=bool(row.get("can_download", True)),
        can_proof=bool(row.get("can_proof", True)),
        can_order=bool(row.get("can_order", True)),
    )
