"""Session manager for token-identified gallery visits."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID

from gallery_proofing.domain.access import CallerIdentity
from gallery_proofing.domain.sessions import GallerySession

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
MAX_TOKEN_ATTEMPTS = 5


class GallerySessionRepository(Protocol):
    """Persistence interface for gallery sessions."""

    def create_session(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        session_token: str,
        client_id: UUID | None,
        is_staff: bool,
        created_at: datetime,
    ) -> GallerySession:
        """Create a session and return it."""

    def get_session(self, session_id: UUID) -> GallerySession | None:
        """Return a session by id, if present."""

    def get_by_token(self, session_token: str) -> GallerySession | None:
        """Return a session by its token, if present."""

    def find_latest_for_client(
        self, gallery_id: UUID, client_id: UUID
    ) -> GallerySession | None:
        """Return the most recently used open session of a client on a gallery."""

    def touch_session(self, session_id: UUID, accessed_at: datetime) -> None:
        """Set the last access timestamp of a session."""

    def end_session(self, session_id: UUID, ended_at: datetime) -> None:
        """Mark a session as ended."""

    def end_gallery_sessions(self, gallery_id: UUID, ended_at: datetime) -> int:
        """End every open session of a gallery and return how many were ended."""

    def list_sessions(self, gallery_id: UUID) -> list[GallerySession]:
        """Return the sessions of a gallery, newest first."""

    def count_sessions(self) -> int:
        """Return the number of stored sessions."""


@dataclass
class SessionManager:
    """Issues, refreshes and ends gallery sessions."""

    repository: GallerySessionRepository
    idle_limit: timedelta = timedelta(days=30)

    def find_usable(
        self, gallery_id: UUID, session_token: str | None, now: datetime
    ) -> GallerySession | None:
        """Return the session for a token when it is open and bound to the gallery."""
        if not session_token:
            return None
        session = self.repository.get_by_token(session_token)
        if session is None or session.gallery_id != gallery_id:
            return None
        if not session.is_usable(now, self.idle_limit):
            return None
        return session

    def get_or_create(
        self,
        gallery_id: UUID,
        session_token: str | None,
        now: datetime,
        caller: CallerIdentity | None = None,
    ) -> GallerySession:
        """Refresh the caller's usable session or mint a new one for the gallery.

        A presented token is only adopted when its session belongs to the same
        caller, so signing in (or out) never inherits another identity's rights.
        """
        session = self.find_usable(gallery_id, session_token, now)
        if session is not None and not _belongs_to(session, caller):
            logger.info(
                "Session token presented by another caller, not reusing it",
                extra={"gallery_id": str(gallery_id), "session_id": str(session.id)},
            )
            session = None
        if session is None and caller is not None and caller.client_id is not None:
            latest = self.repository.find_latest_for_client(
                gallery_id, caller.client_id
            )
            if latest is not None and latest.is_usable(now, self.idle_limit):
                session = latest
        if session is not None:
            return self.touch(session, now)

        created = self.repository.create_session(
            gallery_id=gallery_id,
            session_token=self._mint_token(),
            client_id=caller.client_id if caller else None,
            is_staff=caller.is_staff if caller else False,
            created_at=now,
        )
        logger.info(
            "Gallery session started",
            extra={"gallery_id": str(gallery_id), "session_id": str(created.id)},
        )
        return created

    def touch(self, session: GallerySession, now: datetime) -> GallerySession:
        """Bump the last access time without ever moving it backwards."""
        accessed_at = max(session.last_access_at, now)
        self.repository.touch_session(session.id, accessed_at)
        return GallerySession(
            id=session.id,
            gallery_id=session.gallery_id,
            session_token=session.session_token,
            created_at=session.created_at,
            last_access_at=accessed_at,
            client_id=session.client_id,
            is_staff=session.is_staff,
            ended_at=session.ended_at,
        )

    def end(self, session_id: UUID, now: datetime) -> bool:
        """End a session; ending an already ended session is a no-op."""
        session = self.repository.get_session(session_id)
        if session is None:
            return False
        if session.is_active:
            self.repository.end_session(session_id, now)
            logger.info("Gallery session ended", extra={"session_id": str(session_id)})
        return True

    def end_all(self, gallery_id: UUID, now: datetime) -> int:
        """End every open session of a gallery."""
        ended = self.repository.end_gallery_sessions(gallery_id, now)
        logger.info(
            "Gallery sessions ended",
            extra={"gallery_id": str(gallery_id), "count": ended},
        )
        return ended

    def list_sessions(self, gallery_id: UUID) -> list[GallerySession]:
        """Return the sessions of a gallery."""
        return self.repository.list_sessions(gallery_id)

    def _mint_token(self) -> str:
        for _ in range(MAX_TOKEN_ATTEMPTS):
            token = secrets.token_urlsafe(TOKEN_BYTES)
            if self.repository.get_by_token(token) is None:
                return token
            logger.warning("Session token collision, regenerating")
        raise RuntimeError("Failed to generate a unique session token")


def _belongs_to(session: GallerySession, caller: CallerIdentity | None) -> bool:
    if caller is None:
        return session.is_anonymous
    return session.client_id == caller.client_id and session.is_staff == caller.is_staff
