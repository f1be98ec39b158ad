"""Proof ledger: favorites and edit requests recorded per session."""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from gallery_proofing.domain.galleries import Gallery
from gallery_proofing.domain.proofs import GalleryProofStats, Proof, ProofingSummary

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000
CSV_HEADER = [
    "Gallery",
    "Photo",
    "Client",
    "Type",
    "Favorite",
    "Edit Request",
    "Notes",
    "Selected Date",
]


class ProofRepository(Protocol):
    """Persistence interface for proofs."""

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

    def get_proof(self, photo_id: UUID, gallery_session_id: UUID) -> Proof | None:
        """Return the proof for (photo, session), if present."""

    def delete_proof(self, photo_id: UUID, gallery_session_id: UUID) -> bool:
        """Delete a proof and report whether one existed."""

    def list_for_session(self, gallery_session_id: UUID) -> list[Proof]:
        """Return proofs recorded in a session."""

    def list_for_gallery(self, gallery_id: UUID) -> list[Proof]:
        """Return proofs recorded against a gallery, newest first."""


@dataclass(frozen=True)
class ProofExportRow:
    """A proof joined with the labels used in exports."""

    proof: Proof
    gallery_name: str
    photo_label: str
    client_label: str


@dataclass
class ProofLedger:
    """Records proofs and answers proofing queries."""

    repository: ProofRepository

    def record(  # noqa: PLR0913
        self,
        photo_id: UUID,
        gallery_session_id: UUID,
        gallery_id: UUID,
        is_favorite: bool,
        is_marked_for_editing: bool,
        editing_notes: str | None,
        now: datetime,
    ) -> Proof:
        """Upsert a proof; the latest write for (photo, session) wins."""
        notes = editing_notes.strip() if editing_notes else None
        proof = self.repository.upsert_proof(
            photo_id=photo_id,
            gallery_session_id=gallery_session_id,
            gallery_id=gallery_id,
            is_favorite=is_favorite,
            is_marked_for_editing=is_marked_for_editing,
            editing_notes=notes or None,
            selected_at=now,
        )
        logger.info(
            "Proof recorded",
            extra={
                "photo_id": str(photo_id),
                "session_id": str(gallery_session_id),
                "kind": proof.kind,
            },
        )
        return proof

    def remove(self, photo_id: UUID, gallery_session_id: UUID) -> bool:
        return self.repository.delete_proof(photo_id, gallery_session_id)

    def favorites(self, gallery_session_id: UUID) -> list[Proof]:
        return [
            proof
            for proof in self.repository.list_for_session(gallery_session_id)
            if proof.is_favorite
        ]

    def edit_requests(self, gallery_session_id: UUID) -> list[Proof]:
        return [
            proof
            for proof in self.repository.list_for_session(gallery_session_id)
            if proof.is_marked_for_editing
        ]

    def summary(self, gallery_session_id: UUID, total_photos: int) -> ProofingSummary:
        """Count favorites and edit requests for a session."""
        proofs = self.repository.list_for_session(gallery_session_id)
        return ProofingSummary(
            total_photos=total_photos,
            favorite_count=sum(1 for proof in proofs if proof.is_favorite),
            editing_count=sum(1 for proof in proofs if proof.is_marked_for_editing),
        )

    def gallery_stats(self, gallery: Gallery, total_photos: int) -> GalleryProofStats:
        """Aggregate every session's proofs for one gallery."""
        proofs = self.repository.list_for_gallery(gallery.id)
        return GalleryProofStats(
            gallery_id=gallery.id,
            gallery_name=gallery.name,
            total_proofs=len(proofs),
            favorites=sum(1 for proof in proofs if proof.is_favorite),
            edit_requests=sum(1 for proof in proofs if proof.is_marked_for_editing),
            total_photos=total_photos,
        )


def export_csv(rows: list[ProofExportRow]) -> str:
    """Render proofs as CSV with a fixed header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        proof = row.proof
        writer.writerow(
            [
                row.gallery_name,
                row.photo_label,
                row.client_label,
                proof.kind,
                "Yes" if proof.is_favorite else "No",
                "Yes" if proof.is_marked_for_editing else "No",
                proof.editing_notes or "",
                proof.selected_at.strftime("%Y-%m-%d %H:%M"),
            ]
        )
    return buffer.getvalue()
