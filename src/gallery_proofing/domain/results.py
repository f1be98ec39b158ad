"""Typed outcomes returned by the gallery workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gallery_proofing.domain.access import AccessGrant
    from gallery_proofing.domain.galleries import Gallery
    from gallery_proofing.domain.proofs import Proof, ProofingSummary
    from gallery_proofing.domain.sessions import GallerySession


class OutcomeStatus(StrEnum):
    """Outcome of a workflow operation."""

    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    ERROR = "error"


# Failure reasons let callers tell apart outcomes that share a status.
GALLERY_NOT_FOUND = "gallery_not_found"
GALLERY_INACTIVE = "gallery_inactive"
GALLERY_EXPIRED = "gallery_expired"
PUBLIC_ACCESS_DISABLED = "public_access_disabled"
NO_GRANT = "no_grant"
DOWNLOAD_NOT_PERMITTED = "download_not_permitted"
PROOFING_NOT_PERMITTED = "proofing_not_permitted"
IDENTITY_REQUIRED = "identity_required"
SESSION_NOT_FOUND = "session_not_found"
SESSION_INVALID = "session_invalid"
PHOTO_NOT_FOUND = "photo_not_found"
EMPTY_PROOF = "empty_proof"
NOTES_TOO_LONG = "notes_too_long"
PAGE_OUT_OF_RANGE = "page_out_of_range"
INVALID_PHOTO_COUNT = "invalid_photo_count"
PROCESSING_FAILED = "processing_failed"


@dataclass(frozen=True)
class AccessResult:
    """Answer to "can this caller view gallery X"."""

    status: OutcomeStatus
    gallery: Gallery | None = None
    is_public_access: bool = False
    days_until_expiry: int = 0
    grant: AccessGrant | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a session lookup or creation."""

    status: OutcomeStatus
    session: GallerySession | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class ProofResult:
    """Outcome of recording a proof."""

    status: OutcomeStatus
    proof: Proof | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class PhotoDownload:
    """Single photo download; content is empty unless successful."""

    status: OutcomeStatus
    content: bytes = b""
    filename: str = ""
    content_type: str = "image/jpeg"
    reason: str | None = None


@dataclass(frozen=True)
class BulkDownload:
    """Zip archive of several photos; ``photo_count`` counts archived photos."""

    status: OutcomeStatus
    content: bytes = b""
    filename: str = ""
    photo_count: int = 0
    reason: str | None = None


@dataclass(frozen=True)
class SummaryResult:
    """Session-scoped proofing counters."""

    status: OutcomeStatus
    summary: ProofingSummary | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class ProofListResult:
    status: OutcomeStatus
    proofs: list[Proof] = field(default_factory=list)
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS
