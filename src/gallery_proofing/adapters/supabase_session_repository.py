"""Supabase-backed gallery session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gallery_proofing.domain.sessions import GallerySession
from gallery_proofing.services.sessions import GallerySessionRepository

_SESSION_COLUMNS = (
    "id, gallery_id, session_token, client_profile_id, is_staff, "
    "created_at, last_access_at, ended_at"
)


@dataclass
class SupabaseGallerySessionRepository(GallerySessionRepository):
    """Supabase implementation for gallery sessions."""

    client: Client

    def create_session(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        session_token: str,
        client_id: UUID | None,
        is_staff: bool,
        created_at: datetime,
    ) -> GallerySession:
        """Create a session row and return it."""
        response = (
            self.client.table("gallery_sessions")
            .insert(
                {
                    "gallery_id": str(gallery_id),
                    "session_token": session_token,
                    "client_profile_id": str(client_id) if client_id else None,
                    "is_staff": is_staff,
                    "created_at": created_at.isoformat(),
                    "last_access_at": created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create gallery session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> GallerySession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("gallery_sessions")
            .select(_SESSION_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_by_token(self, session_token: str) -> GallerySession | None:
        """Return a session by its token, if present."""
        response = (
            self.client.table("gallery_sessions")
            .select(_SESSION_COLUMNS)
            .eq("session_token", session_token)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def find_latest_for_client(
        self, gallery_id: UUID, client_id: UUID
    ) -> GallerySession | None:
        """Return the most recently used open session of a client on a gallery."""
        response = (
            self.client.table("gallery_sessions")
            .select(_SESSION_COLUMNS)
            .eq("gallery_id", str(gallery_id))
            .eq("client_profile_id", str(client_id))
            .is_("ended_at", "null")
            .order("last_access_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def touch_session(self, session_id: UUID, accessed_at: datetime) -> None:
        """Set the last access timestamp of a session."""
        self.client.table("gallery_sessions").update(
            {"last_access_at": accessed_at.isoformat()}
        ).eq("id", str(session_id)).execute()

    def end_session(self, session_id: UUID, ended_at: datetime) -> None:
        """Mark a session as ended."""
        self.client.table("gallery_sessions").update(
            {"ended_at": ended_at.isoformat()}
        ).eq("id", str(session_id)).is_("ended_at", "null").execute()

    def end_gallery_sessions(self, gallery_id: UUID, ended_at: datetime) -> int:
        """End every open session of a gallery and return how many were ended."""
        response = (
            self.client.table("gallery_sessions")
            .update({"ended_at": ended_at.isoformat()})
            .eq("gallery_id", str(gallery_id))
            .is_("ended_at", "null")
            .execute()
        )
        return len(response.data or [])

    def list_sessions(self, gallery_id: UUID) -> list[GallerySession]:
        """Return the sessions of a gallery, newest first."""
        response = (
            self.client.table("gallery_sessions")
            .select(_SESSION_COLUMNS)
            .eq("gallery_id", str(gallery_id))
            .order("last_access_at", desc=True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def count_sessions(self) -> int:
        """Return the number of stored sessions."""
        response = (
            self.client.table("gallery_sessions")
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
        return int(response.count or 0)


def _parse_session(row: dict[str, object]) -> GallerySession:
    client_raw = row.get("client_profile_id")
    ended_raw = row.get("ended_at")
    return GallerySession(
        id=UUID(row["id"]),
        gallery_id=UUID(row["gallery_id"]),
        session_token=str(row["session_token"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        last_access_at=datetime.fromisoformat(row["last_access_at"]),
        client_id=UUID(client_raw) if client_raw else None,
        is_staff=bool(row.get("is_staff", False)),
        ended_at=(
            datetime.fromisoformat(ended_raw)
            if isinstance(ended_raw, str) and ended_raw
            else None
        ),
    )
