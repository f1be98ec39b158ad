"""Supabase implementation for proofs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gallery_proofing.domain.proofs import Proof
from gallery_proofing.services.proofs import ProofRepository


@dataclass
class SupabaseProofRepository(ProofRepository):
    """Supabase-backed repository for proofs."""

    client: Client

    def upsert_proof(  # noqa: PLR0913
        self,
        photo_id: UUID,
        gallery_session_id: UUID,
        gallery_id: UUID,
        is_favorite: bool,
        is_marked_for_editing: bool,
        editing_notes: str | None,
        selected_at: datetime,
    ) -> Proof:
        """Insert or overwrite the proof for (photo, session) and return it."""
        response = (
            self.client.table("proofs")
            .upsert(
                {
                    "photo_id": str(photo_id),
                    "gallery_session_id": str(gallery_session_id),
                    "gallery_id": str(gallery_id),
                    "is_favorite": is_favorite,
                    "is_marked_for_editing": is_marked_for_editing,
                    "editing_notes": editing_notes,
                    "selected_at": selected_at.isoformat(),
                },
                on_conflict="photo_id,gallery_session_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record proof")
        return _parse_proof(response.data[0])

    def get_proof(self, photo_id: UUID, gallery_session_id: UUID) -> Proof | None:
        """Return the proof for (photo, session), if present."""
        response = (
            self.client.table("proofs")
            .select("*")
            .eq("photo_id", str(photo_id))
            .eq("gallery_session_id", str(gallery_session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_proof(response.data[0])

    def delete_proof(self, photo_id: UUID, gallery_session_id: UUID) -> bool:
        """Delete a proof and report whether one existed."""
        response = (
            self.client.table("proofs")
            .delete()
            .eq("photo_id", str(photo_id))
            .eq("gallery_session_id", str(gallery_session_id))
            .execute()
        )
        return bool(response.data)

    def list_for_session(self, gallery_session_id: UUID) -> list[Proof]:
        """Return proofs recorded in a session."""
        response = (
            self.client.table("proofs")
            .select("*")
            .eq("gallery_session_id", str(gallery_session_id))
            .order("selected_at", desc=True)
            .execute()
        )
        return [_parse_proof(row) for row in response.data or []]

    def list_for_gallery(self, gallery_id: UUID) -> list[Proof]:
        """Return proofs recorded against a gallery, newest first."""
        response = (
            self.client.table("proofs")
            .select("*")
            .eq("gallery_id", str(gallery_id))
            .order("selected_at", desc=True)
            .execute()
        )
        return [_parse_proof(row) for row in response.data or []]


def _parse_proof(row: dict[str, object]) -> Proof:
    return Proof(
        id=UUID(row["id"]),
        photo_id=UUID(row["photo_id"]),
        gallery_session_id=UUID(row["gallery_session_id"]),
        gallery_id=UUID(row["gallery_id"]),
        is_favorite=bool(row.get("is_favorite", False)),
        is_marked_for_editing=bool(row.get("is_marked_for_editing", False)),
        editing_notes=row.get("editing_notes"),
        selected_at=datetime.fromisoformat(row["selected_at"]),
    )
