"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Request, Response, status

from gallery_proofing.api.admin import router as admin_router
from gallery_proofing.api.models import (
    BulkDownloadRequest,
    GalleryView,
    PhotoView,
    ProofRequest,
    ProofView,
    SessionView,
)
from gallery_proofing.app_logging import configure_logging
from gallery_proofing.config import parse_caller_role
from gallery_proofing.containers import AppContainer
from gallery_proofing.domain.access import CallerIdentity
from gallery_proofing.domain.proofs import Proof
from gallery_proofing.domain.results import (
    GALLERY_EXPIRED,
    AccessResult,
    OutcomeStatus,
    SessionResult,
)

_STATUS_CODES = {
    OutcomeStatus.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    OutcomeStatus.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    OutcomeStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OutcomeStatus.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    OutcomeStatus.ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/galleries/{gallery_id}")
    async def open_gallery(
        gallery_id: UUID,
        request: Request,
        x_client_id: str | None = Header(default=None),
        x_caller_role: str | None = Header(default=None),
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Check access to a gallery and start or resume a viewing session."""
        state_container: AppContainer = request.app.state.container
        caller = _caller_identity(x_client_id, x_caller_role)
        access = state_container.workflow_service.resolve_access(gallery_id, caller)
        _raise_for_status(access.status, access.reason)
        session = state_container.workflow_service.get_or_create_session(
            gallery_id, x_gallery_session, caller
        )
        _raise_for_status(session.status, session.reason)
        return _gallery_response(access, session)

    @app.get("/links/{link}")
    async def open_public_link(
        link: str,
        request: Request,
        x_client_id: str | None = Header(default=None),
        x_caller_role: str | None = Header(default=None),
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Open a gallery through its public token or slug."""
        state_container: AppContainer = request.app.state.container
        caller = _caller_identity(x_client_id, x_caller_role)
        access = state_container.workflow_service.resolve_public_link(link, caller)
        _raise_for_status(access.status, access.reason)
        session = state_container.workflow_service.get_or_create_session(
            access.gallery.id, x_gallery_session, caller
        )
        _raise_for_status(session.status, session.reason)
        return _gallery_response(access, session)

    @app.get("/galleries/{gallery_id}/photos")
    async def list_photos(
        gallery_id: UUID,
        request: Request,
        page: int = 1,
        page_size: int | None = None,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Return a page of gallery photos."""
        state_container: AppContainer = request.app.state.container
        workflow = state_container.workflow_service
        lookup = workflow.lookup_session(gallery_id, x_gallery_session)
        _raise_for_status(lookup.status, lookup.reason)
        result = workflow.list_photos(gallery_id, page, page_size)
        _raise_for_status(result.status, result.reason)
        return {
            "page": result.page,
            "page_size": result.page_size,
            "total_count": result.total_count,
            "total_pages": result.total_pages,
            "has_next_page": result.has_next_page,
            "has_previous_page": result.has_previous_page,
            "photos": [
                PhotoView.model_validate(photo).model_dump(mode="json")
                for photo in result.photos
            ],
        }

    @app.post("/galleries/{gallery_id}/proofs")
    async def record_proof(
        gallery_id: UUID,
        payload: ProofRequest,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Record a favorite or edit request for a photo."""
        state_container: AppContainer = request.app.state.container
        workflow = state_container.workflow_service
        lookup = workflow.lookup_session(gallery_id, x_gallery_session)
        _raise_for_status(lookup.status, lookup.reason)
        result = workflow.record_proof(
            session_id=lookup.session.id,
            photo_id=payload.photo_id,
            is_favorite=payload.is_favorite,
            is_marked_for_editing=payload.is_marked_for_editing,
            notes=payload.notes,
        )
        _raise_for_status(result.status, result.reason)
        return {"proof": ProofView.model_validate(result.proof).model_dump(mode="json")}

    @app.get("/galleries/{gallery_id}/proofs/summary")
    async def proofing_summary(
        gallery_id: UUID,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, int]:
        """Return proofing counters for the caller's session."""
        state_container: AppContainer = request.app.state.container
        result = state_container.workflow_service.proofing_summary(
            gallery_id, x_gallery_session
        )
        _raise_for_status(result.status, result.reason)
        summary = result.summary
        return {
            "total_photos": summary.total_photos,
            "favorite_count": summary.favorite_count,
            "editing_count": summary.editing_count,
            "reviewed_count": summary.reviewed_count,
        }

    @app.get("/galleries/{gallery_id}/proofs/favorites")
    async def list_favorites(
        gallery_id: UUID,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        result = state_container.workflow_service.list_favorites(
            gallery_id, x_gallery_session
        )
        _raise_for_status(result.status, result.reason)
        return {"proofs": _proofs_payload(result.proofs)}

    @app.get("/galleries/{gallery_id}/proofs/editing")
    async def list_edit_requests(
        gallery_id: UUID,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        result = state_container.workflow_service.list_edit_requests(
            gallery_id, x_gallery_session
        )
        _raise_for_status(result.status, result.reason)
        return {"proofs": _proofs_payload(result.proofs)}

    @app.get("/galleries/{gallery_id}/download/{photo_id}")
    async def download_photo(
        gallery_id: UUID,
        photo_id: UUID,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> Response:
        """Download a single photo."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.workflow_service.download_photo(
            gallery_id, photo_id, x_gallery_session
        )
        _raise_for_status(result.status, result.reason)
        return Response(
            content=result.content,
            media_type=result.content_type,
            headers=_attachment_headers(result.filename),
        )

    @app.post("/galleries/{gallery_id}/bulk-download")
    async def bulk_download(
        gallery_id: UUID,
        payload: BulkDownloadRequest,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> Response:
        """Download several photos as a zip archive."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.workflow_service.bulk_download(
            gallery_id, payload.photo_ids, x_gallery_session
        )
        _raise_for_status(result.status, result.reason)
        headers = _attachment_headers(result.filename)
        headers["X-Photo-Count"] = str(result.photo_count)
        return Response(
            content=result.content, media_type="application/zip", headers=headers
        )

    @app.post("/sessions/{session_id}/end")
    async def end_session(
        session_id: UUID,
        request: Request,
        x_gallery_session: str | None = Header(default=None),
    ) -> dict[str, str]:
        """End the caller's own session."""
        state_container: AppContainer = request.app.state.container
        session = (
            state_container.session_manager.repository.get_by_token(x_gallery_session)
            if x_gallery_session
            else None
        )
        if session is None or session.id != session_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        outcome = state_container.workflow_service.end_session(session_id)
        _raise_for_status(outcome, None)
        return {"status": "ok"}

    return app


def _caller_identity(
    client_id_raw: str | None, role_raw: str | None
) -> CallerIdentity | None:
    """Build the caller identity forwarded by the upstream auth layer."""
    is_staff = parse_caller_role(role_raw)
    client_id = None
    if client_id_raw:
        try:
            client_id = UUID(client_id_raw)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid X-Client-Id header",
            ) from exc
    if client_id is None and not is_staff:
        return None
    return CallerIdentity(client_id=client_id, is_staff=is_staff)


def _raise_for_status(outcome: OutcomeStatus, reason: str | None) -> None:
    if outcome is OutcomeStatus.SUCCESS:
        return
    if outcome is OutcomeStatus.ERROR:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong",
        )
    if outcome is OutcomeStatus.FORBIDDEN and reason == GALLERY_EXPIRED:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=reason)
    raise HTTPException(status_code=_STATUS_CODES[outcome], detail=reason)


def _gallery_response(
    access: AccessResult, session: SessionResult
) -> dict[str, object]:
    return {
        "gallery": GalleryView.model_validate(access.gallery).model_dump(mode="json"),
        "is_public_access": access.is_public_access,
        "days_until_expiry": access.days_until_expiry,
        "session": SessionView.model_validate(session.session).model_dump(mode="json"),
    }


def _proofs_payload(proofs: list[Proof]) -> list[dict[str, object]]:
    return [ProofView.model_validate(proof).model_dump(mode="json") for proof in proofs]


def _attachment_headers(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}
