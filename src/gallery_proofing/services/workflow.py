"""Gallery workflow: access, sessions, proofing and gated downloads."""

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, TypeVar
from uuid import UUID

from gallery_proofing.domain import results
from gallery_proofing.domain.access import CallerIdentity
from gallery_proofing.domain.galleries import Gallery, utc_now
from gallery_proofing.domain.photos import Photo, PhotoPage
from gallery_proofing.domain.proofs import GalleryProofStats
from gallery_proofing.domain.results import (
    AccessResult,
    BulkDownload,
    OutcomeStatus,
    PhotoDownload,
    ProofListResult,
    ProofResult,
    SessionResult,
    SummaryResult,
)
from gallery_proofing.domain.sessions import GallerySession
from gallery_proofing.services.access import AccessService
from gallery_proofing.services.galleries import GalleryRepository
from gallery_proofing.services.imaging import (
    ArchiveEntry,
    ImageProcessor,
    PhotoStorage,
    archive_entry_name,
    archive_filename,
    detect_mime_type,
    download_filename,
)
from gallery_proofing.services.photos import (
    PhotoRepository,
    clamp_page_size,
    paginate,
)
from gallery_proofing.services.proofs import (
    MAX_NOTES_LENGTH,
    ProofExportRow,
    ProofLedger,
    export_csv,
)
from gallery_proofing.services.sessions import SessionManager

logger = logging.getLogger(__name__)

_Failure = tuple[OutcomeStatus, str]
_Action = Literal["view", "proof", "download"]
_ResultT = TypeVar("_ResultT")


@dataclass
class GalleryWorkflowService:
    """Single entry point for client-facing gallery operations.

    Every operation reads the clock once and uses that instant for all of its
    expiry and idle checks. Failures, including storage and repository errors,
    come back as typed results with status ``ERROR``.
    """

    galleries: GalleryRepository
    access: AccessService
    sessions: SessionManager
    proofs: ProofLedger
    photos: PhotoRepository
    storage: PhotoStorage
    processor: ImageProcessor
    public_links_enabled: bool = True
    page_size_default: int = 48
    page_size_min: int = 12
    page_size_max: int = 100
    bulk_download_limit: int = 500
    clock: Callable[[], datetime] = utc_now

    def resolve_access(
        self, gallery_id: UUID, caller: CallerIdentity | None = None
    ) -> AccessResult:
        """Decide whether a caller may view a gallery."""
        now = self.clock()
        try:
            gallery = self.galleries.get_gallery(gallery_id)
            return self._authorize_view(gallery, caller, now)
        except Exception:
            return _failed(
                AccessResult, "Failed to resolve gallery access", gallery_id=gallery_id
            )

    def resolve_public_link(
        self, link: str, caller: CallerIdentity | None = None
    ) -> AccessResult:
        """Resolve a share link (public token or slug) to an access decision."""
        now = self.clock()
        try:
            gallery = self.galleries.find_by_public_token(link)
            if gallery is None:
                gallery = self.galleries.find_by_slug(link.strip().lower())
            if gallery is None or not self._public_allowed(gallery):
                return AccessResult(
                    status=OutcomeStatus.NOT_FOUND, reason=results.GALLERY_NOT_FOUND
                )
            result = self._authorize_view(gallery, caller, now)
        except Exception:
            return _failed(AccessResult, "Failed to resolve public link", link=link)
        if result.reason == results.NO_GRANT:
            return self._public_access(gallery, now)
        return result

    def list_photos(
        self, gallery_id: UUID, page: int = 1, page_size: int | None = None
    ) -> PhotoPage:
        """Return one page of the gallery's photos in display order."""
        now = self.clock()
        size = clamp_page_size(
            page_size, self.page_size_default, self.page_size_min, self.page_size_max
        )
        current_page = max(page, 1)
        try:
            gallery = self.galleries.get_gallery(gallery_id)
            failure = _gallery_failure(gallery, now)
            if failure is not None:
                status, reason = failure
                return PhotoPage(status=status, reason=reason)
            photos = self._gallery_photos(gallery)
        except Exception:
            return _failed(
                PhotoPage, "Failed to list gallery photos", gallery_id=gallery_id
            )

        total = len(photos)
        if total and current_page > math.ceil(total / size):
            return PhotoPage(
                status=OutcomeStatus.INVALID_REQUEST,
                page=current_page,
                page_size=size,
                total_count=total,
                reason=results.PAGE_OUT_OF_RANGE,
            )
        return PhotoPage(
            status=OutcomeStatus.SUCCESS,
            page=current_page,
            page_size=size,
            total_count=total,
            photos=paginate(photos, current_page, size),
        )

    def get_or_create_session(
        self,
        gallery_id: UUID,
        existing_token: str | None = None,
        caller: CallerIdentity | None = None,
    ) -> SessionResult:
        """Reuse the caller's usable session for the gallery or start a new one."""
        now = self.clock()
        try:
            gallery = self.galleries.get_gallery(gallery_id)
            failure = _gallery_failure(gallery, now)
            if failure is not None:
                status, reason = failure
                return SessionResult(status=status, reason=reason)
            session = self.sessions.get_or_create(
                gallery.id, existing_token, now, caller
            )
        except Exception:
            return _failed(
                SessionResult, "Failed to start gallery session", gallery_id=gallery_id
            )
        return SessionResult(status=OutcomeStatus.SUCCESS, session=session)

    def lookup_session(self, gallery_id: UUID, token: str | None) -> SessionResult:
        """Check a session token against a gallery without modifying anything.

        The session's owner must still be allowed to view the gallery: a
        revoked grant or a gallery closed to public access ends the rights of
        sessions started before the change.
        """
        now = self.clock()
        try:
            gallery = self.galleries.get_gallery(gallery_id)
            failure = _gallery_failure(gallery, now)
            if failure is not None:
                status, reason = failure
                return SessionResult(status=status, reason=reason)
            session = self.sessions.find_usable(gallery.id, token, now)
            if session is None:
                return SessionResult(
                    status=OutcomeStatus.UNAUTHORIZED, reason=results.SESSION_INVALID
                )
            failure = self._session_failure(gallery, session, now, "view")
        except Exception:
            return _failed(
                SessionResult, "Failed to look up session", gallery_id=gallery_id
            )
        if failure is not None:
            status, reason = failure
            return SessionResult(status=status, reason=reason)
        return SessionResult(status=OutcomeStatus.SUCCESS, session=session)

    def record_proof(  # noqa: PLR0913
        self,
        session_id: UUID,
        photo_id: UUID,
        is_favorite: bool,
        is_marked_for_editing: bool,
        notes: str | None = None,
    ) -> ProofResult:
        """Mark a photo as favorite and/or for editing within a session."""
        if not is_favorite and not is_marked_for_editing and not (notes or "").strip():
            return ProofResult(
                status=OutcomeStatus.INVALID_REQUEST, reason=results.EMPTY_PROOF
            )
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            return ProofResult(
                status=OutcomeStatus.INVALID_REQUEST, reason=results.NOTES_TOO_LONG
            )
        try:
            return self._record_proof(
                session_id, photo_id, is_favorite, is_marked_for_editing, notes
            )
        except Exception:
            return _failed(
                ProofResult,
                "Failed to record proof",
                session_id=session_id,
                photo_id=photo_id,
            )

    async def download_photo(
        self, gallery_id: UUID, photo_id: UUID, session_token: str | None
    ) -> PhotoDownload:
        """Return a single photo, watermarked unless the session is staff."""
        try:
            return await self._download_photo(gallery_id, photo_id, session_token)
        except Exception:
            return _failed(
                PhotoDownload,
                "Failed to prepare photo download",
                gallery_id=gallery_id,
                photo_id=photo_id,
            )

    async def bulk_download(
        self, gallery_id: UUID, photo_ids: list[UUID], session_token: str | None
    ) -> BulkDownload:
        """Zip the requested photos; ids outside the gallery are skipped."""
        unique_ids = list(dict.fromkeys(photo_ids))
        if not 1 <= len(unique_ids) <= self.bulk_download_limit:
            return BulkDownload(
                status=OutcomeStatus.INVALID_REQUEST,
                reason=results.INVALID_PHOTO_COUNT,
            )
        try:
            return await self._bulk_download(gallery_id, unique_ids, session_token)
        except Exception:
            return _failed(
                BulkDownload,
                "Failed to build download archive",
                gallery_id=gallery_id,
                requested=len(unique_ids),
            )

    def end_session(self, session_id: UUID) -> OutcomeStatus:
        """End a session; repeating the call is harmless."""
        try:
            ended = self.sessions.end(session_id, self.clock())
        except Exception:
            logger.exception(
                "Failed to end gallery session", extra={"session_id": str(session_id)}
            )
            return OutcomeStatus.ERROR
        return OutcomeStatus.SUCCESS if ended else OutcomeStatus.NOT_FOUND

    def proofing_summary(self, gallery_id: UUID, token: str | None) -> SummaryResult:
        """Return favorite and edit counts for the caller's session."""
        lookup = self.lookup_session(gallery_id, token)
        if not lookup.ok:
            return SummaryResult(status=lookup.status, reason=lookup.reason)
        try:
            gallery = self.galleries.get_gallery(gallery_id)
            total_photos = len(self._gallery_photos(gallery))
            summary = self.proofs.summary(lookup.session.id, total_photos)
        except Exception:
            return _failed(
                SummaryResult, "Failed to summarize proofs", gallery_id=gallery_id
            )
        return SummaryResult(status=OutcomeStatus.SUCCESS, summary=summary)

    def list_favorites(self, gallery_id: UUID, token: str | None) -> ProofListResult:
        lookup = self.lookup_session(gallery_id, token)
        if not lookup.ok:
            return ProofListResult(status=lookup.status, reason=lookup.reason)
        try:
            proofs = self.proofs.favorites(lookup.session.id)
        except Exception:
            return _failed(
                ProofListResult, "Failed to list favorites", gallery_id=gallery_id
            )
        return ProofListResult(status=OutcomeStatus.SUCCESS, proofs=proofs)

    def list_edit_requests(
        self, gallery_id: UUID, token: str | None
    ) -> ProofListResult:
        lookup = self.lookup_session(gallery_id, token)
        if not lookup.ok:
            return ProofListResult(status=lookup.status, reason=lookup.reason)
        try:
            proofs = self.proofs.edit_requests(lookup.session.id)
        except Exception:
            return _failed(
                ProofListResult, "Failed to list edit requests", gallery_id=gallery_id
            )
        return ProofListResult(status=OutcomeStatus.SUCCESS, proofs=proofs)

    def gallery_proof_stats(self, gallery_id: UUID) -> GalleryProofStats | None:
        """Aggregate proofing activity of one gallery for the studio."""
        gallery = self.galleries.get_gallery(gallery_id)
        if gallery is None:
            return None
        total_photos = len(self._gallery_photos(gallery))
        return self.proofs.gallery_stats(gallery, total_photos)

    def export_proofs(self, gallery_id: UUID | None = None) -> str:
        """Export proofs as CSV for one gallery, or for every gallery."""
        if gallery_id is None:
            galleries = self.galleries.list_galleries()
        else:
            gallery = self.galleries.get_gallery(gallery_id)
            galleries = [gallery] if gallery else []

        rows: list[ProofExportRow] = []
        sessions: dict[UUID, GallerySession | None] = {}
        for gallery in galleries:
            photos = {photo.id: photo for photo in self._gallery_photos(gallery)}
            for proof in self.proofs.repository.list_for_gallery(gallery.id):
                if proof.gallery_session_id not in sessions:
                    sessions[proof.gallery_session_id] = (
                        self.sessions.repository.get_session(proof.gallery_session_id)
                    )
                rows.append(
                    ProofExportRow(
                        proof=proof,
                        gallery_name=gallery.name,
                        photo_label=_photo_label(
                            photos.get(proof.photo_id), proof.photo_id
                        ),
                        client_label=_client_label(sessions[proof.gallery_session_id]),
                    )
                )
        return export_csv(rows)

    def _record_proof(  # noqa: PLR0913
        self,
        session_id: UUID,
        photo_id: UUID,
        is_favorite: bool,
        is_marked_for_editing: bool,
        notes: str | None,
    ) -> ProofResult:
        now = self.clock()
        session = self.sessions.repository.get_session(session_id)
        if session is None:
            return ProofResult(
                status=OutcomeStatus.NOT_FOUND, reason=results.SESSION_NOT_FOUND
            )
        if not session.is_usable(now, self.sessions.idle_limit):
            return ProofResult(
                status=OutcomeStatus.UNAUTHORIZED, reason=results.SESSION_INVALID
            )
        gallery = self.galleries.get_gallery(session.gallery_id)
        failure = _gallery_failure(gallery, now) or self._session_failure(
            gallery, session, now, "proof"
        )
        if failure is not None:
            status, reason = failure
            return ProofResult(status=status, reason=reason)

        photo = self.photos.get_photo(photo_id)
        if not _photo_in_gallery(photo, gallery):
            return ProofResult(
                status=OutcomeStatus.NOT_FOUND, reason=results.PHOTO_NOT_FOUND
            )
        proof = self.proofs.record(
            photo_id=photo_id,
            gallery_session_id=session.id,
            gallery_id=gallery.id,
            is_favorite=is_favorite,
            is_marked_for_editing=is_marked_for_editing,
            editing_notes=notes,
            now=now,
        )
        self.sessions.touch(session, now)
        return ProofResult(status=OutcomeStatus.SUCCESS, proof=proof)

    async def _download_photo(
        self, gallery_id: UUID, photo_id: UUID, session_token: str | None
    ) -> PhotoDownload:
        now = self.clock()
        gallery = self.galleries.get_gallery(gallery_id)
        authorized = self._authorize_download(gallery, session_token, now)
        if isinstance(authorized, tuple):
            status, reason = authorized
            return PhotoDownload(status=status, reason=reason)
        session = authorized

        photo = self.photos.get_photo(photo_id)
        if not _photo_in_gallery(photo, gallery):
            return PhotoDownload(
                status=OutcomeStatus.NOT_FOUND, reason=results.PHOTO_NOT_FOUND
            )
        content = await self.storage.fetch(photo.file_path)
        if content is None:
            return PhotoDownload(
                status=OutcomeStatus.NOT_FOUND, reason=results.PHOTO_NOT_FOUND
            )
        watermarked = gallery.watermark.enabled and not session.is_staff
        if watermarked:
            overlay = await self._fetch_overlay(gallery)
            content = await asyncio.to_thread(
                self.processor.apply_watermark, content, gallery.watermark, overlay
            )

        self.sessions.touch(session, now)
        logger.info(
            "Photo downloaded",
            extra={
                "gallery_id": str(gallery_id),
                "photo_id": str(photo_id),
                "session_id": str(session.id),
                "watermarked": watermarked,
            },
        )
        return PhotoDownload(
            status=OutcomeStatus.SUCCESS,
            content=content,
            filename=download_filename(photo, watermarked),
            content_type="image/jpeg" if watermarked else detect_mime_type(content),
        )

    async def _bulk_download(
        self, gallery_id: UUID, unique_ids: list[UUID], session_token: str | None
    ) -> BulkDownload:
        now = self.clock()
        gallery = self.galleries.get_gallery(gallery_id)
        authorized = self._authorize_download(gallery, session_token, now)
        if isinstance(authorized, tuple):
            status, reason = authorized
            return BulkDownload(status=status, reason=reason)
        session = authorized

        by_id = {photo.id: photo for photo in self._gallery_photos(gallery)}
        selected = [by_id[photo_id] for photo_id in unique_ids if photo_id in by_id]
        if not selected:
            return BulkDownload(
                status=OutcomeStatus.NOT_FOUND, reason=results.PHOTO_NOT_FOUND
            )

        watermarked = gallery.watermark.enabled and not session.is_staff
        overlay = await self._fetch_overlay(gallery) if watermarked else None
        entries: list[ArchiveEntry] = []
        for photo in selected:
            content = await self.storage.fetch(photo.file_path)
            if content is None:
                logger.warning(
                    "Skipping photo missing from storage",
                    extra={"photo_id": str(photo.id)},
                )
                continue
            if watermarked:
                content = await asyncio.to_thread(
                    self.processor.apply_watermark, content, gallery.watermark, overlay
                )
            name = archive_entry_name(len(entries) + 1, photo, watermarked)
            entries.append(ArchiveEntry(name=name, content=content))
        if not entries:
            return BulkDownload(
                status=OutcomeStatus.NOT_FOUND, reason=results.PHOTO_NOT_FOUND
            )
        archive = await asyncio.to_thread(self.processor.build_archive, entries)

        self.sessions.touch(session, now)
        logger.info(
            "Gallery photos downloaded",
            extra={
                "gallery_id": str(gallery_id),
                "session_id": str(session.id),
                "photo_count": len(entries),
                "watermarked": watermarked,
            },
        )
        return BulkDownload(
            status=OutcomeStatus.SUCCESS,
            content=archive,
            filename=archive_filename(gallery.name, now.strftime("%Y%m%d_%H%M%S")),
            photo_count=len(entries),
        )

    def _authorize_view(
        self, gallery: Gallery | None, caller: CallerIdentity | None, now: datetime
    ) -> AccessResult:
        failure = _gallery_failure(gallery, now)
        if failure is not None:
            status, reason = failure
            return AccessResult(status=status, reason=reason)
        if caller is None or (caller.client_id is None and not caller.is_staff):
            if self._public_allowed(gallery):
                return self._public_access(gallery, now)
            return AccessResult(
                status=OutcomeStatus.UNAUTHORIZED,
                reason=results.PUBLIC_ACCESS_DISABLED,
            )
        if caller.is_staff:
            return AccessResult(
                status=OutcomeStatus.SUCCESS,
                gallery=gallery,
                days_until_expiry=gallery.days_until_expiry(now),
            )
        grant = self.access.find_valid_grant(gallery.id, caller.client_id, now)
        if grant is None:
            return AccessResult(
                status=OutcomeStatus.FORBIDDEN, reason=results.NO_GRANT
            )
        return AccessResult(
            status=OutcomeStatus.SUCCESS,
            gallery=gallery,
            days_until_expiry=gallery.days_until_expiry(now),
            grant=grant,
        )

    def _public_access(self, gallery: Gallery, now: datetime) -> AccessResult:
        return AccessResult(
            status=OutcomeStatus.SUCCESS,
            gallery=gallery,
            is_public_access=True,
            days_until_expiry=gallery.days_until_expiry(now),
        )

    def _public_allowed(self, gallery: Gallery) -> bool:
        return self.public_links_enabled and gallery.allow_public_access

    def _session_failure(  # noqa: PLR0911
        self,
        gallery: Gallery,
        session: GallerySession,
        now: datetime,
        action: _Action,
    ) -> _Failure | None:
        """Check what the session's owner may do in the gallery right now.

        Viewing and proofing fall back to public access for clients without a
        grant; downloads always need an identified owner.
        """
        if session.is_staff:
            return None
        if session.is_anonymous and action == "download":
            return OutcomeStatus.UNAUTHORIZED, results.IDENTITY_REQUIRED
        grant = None
        if not session.is_anonymous:
            grant = self.access.find_valid_grant(gallery.id, session.client_id, now)
        if grant is None:
            if session.is_anonymous:
                if self._public_allowed(gallery):
                    return None
                return OutcomeStatus.UNAUTHORIZED, results.PUBLIC_ACCESS_DISABLED
            if action != "download" and self._public_allowed(gallery):
                return None
            return OutcomeStatus.FORBIDDEN, results.NO_GRANT
        if action == "download" and not grant.can_download:
            return OutcomeStatus.FORBIDDEN, results.DOWNLOAD_NOT_PERMITTED
        if action == "proof" and not grant.can_proof:
            return OutcomeStatus.FORBIDDEN, results.PROOFING_NOT_PERMITTED
        return None

    def _authorize_download(
        self, gallery: Gallery | None, session_token: str | None, now: datetime
    ) -> GallerySession | _Failure:
        failure = _gallery_failure(gallery, now)
        if failure is not None:
            return failure
        session = self.sessions.find_usable(gallery.id, session_token, now)
        if session is None:
            return OutcomeStatus.UNAUTHORIZED, results.SESSION_INVALID
        failure = self._session_failure(gallery, session, now, "download")
        if failure is not None:
            return failure
        return session

    def _gallery_photos(self, gallery: Gallery) -> list[Photo]:
        if not gallery.album_ids:
            return []
        return self.photos.get_photos_for_gallery(list(gallery.album_ids))

    async def _fetch_overlay(self, gallery: Gallery) -> bytes | None:
        if not gallery.watermark.image_path:
            return None
        overlay = await self.storage.fetch(gallery.watermark.image_path)
        if overlay is None:
            logger.warning(
                "Watermark image missing, falling back to text",
                extra={"gallery_id": str(gallery.id)},
            )
        return overlay


def _failed(
    result_type: Callable[..., _ResultT], message: str, **context: object
) -> _ResultT:
    """Log the active exception and build an ``ERROR`` result."""
    logger.exception(message, extra={key: str(value) for key, value in context.items()})
    return result_type(status=OutcomeStatus.ERROR, reason=results.PROCESSING_FAILED)


def _gallery_failure(gallery: Gallery | None, now: datetime) -> _Failure | None:
    if gallery is None:
        return OutcomeStatus.NOT_FOUND, results.GALLERY_NOT_FOUND
    if gallery.is_expired(now):
        return OutcomeStatus.FORBIDDEN, results.GALLERY_EXPIRED
    if not gallery.is_active:
        return OutcomeStatus.NOT_FOUND, results.GALLERY_INACTIVE
    return None


def _photo_in_gallery(photo: Photo | None, gallery: Gallery) -> bool:
    return photo is not None and photo.album_id in gallery.album_ids


def _photo_label(photo: Photo | None, photo_id: UUID) -> str:
    if photo is None:
        return str(photo_id)
    return photo.title or photo.file_name or str(photo.id)


def _client_label(session: GallerySession | None) -> str:
    if session is None or session.is_anonymous:
        return "Anonymous"
    if session.is_staff and session.client_id is None:
        return "Staff"
    return str(session.client_id)
