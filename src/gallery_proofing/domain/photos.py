"""Domain models for gallery photos."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from gallery_proofing.domain.results import OutcomeStatus


@dataclass(frozen=True)
class Photo:
    """A photo stored in an album."""

    id: UUID
    album_id: UUID
    file_path: str
    uploaded_at: datetime
    title: str | None = None
    file_name: str | None = None
    thumbnail_path: str | None = None
    display_order: int = 0


@dataclass(frozen=True)
class PhotoPage:
    """One page of a gallery's photos."""

    status: OutcomeStatus
    page: int = 1
    page_size: int = 0
    total_count: int = 0
    photos: list[Photo] = field(default_factory=list)
    reason: str | None = None

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1
