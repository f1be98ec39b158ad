"""Domain models for proof marks."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Proof:
    """A favorite or edit-request mark on one photo within one session."""

    id: UUID
    photo_id: UUID
    gallery_session_id: UUID
    gallery_id: UUID
    is_favorite: bool
    is_marked_for_editing: bool
    editing_notes: str | None
    selected_at: datetime

    @property
    def kind(self) -> str:
        if self.is_favorite and self.is_marked_for_editing:
            return "Favorite + Edit"
        if self.is_marked_for_editing:
            return "Edit Request"
        if self.is_favorite:
            return "Favorite"
        return "Note"


@dataclass(frozen=True)
class ProofingSummary:
    """Counts shown to a client while reviewing a gallery."""

    total_photos: int
    favorite_count: int
    editing_count: int

    @property
    def reviewed_count(self) -> int:
        return self.favorite_count + self.editing_count


@dataclass(frozen=True)
class GalleryProofStats:
    """Per-gallery proofing totals for the studio."""

    gallery_id: UUID
    gallery_name: str
    total_proofs: int
    favorites: int
    edit_requests: int
    total_photos: int

    @property
    def engagement_rate(self) -> float:
        if self.total_photos <= 0:
            return 0.0
        return self.total_proofs / self.total_photos
