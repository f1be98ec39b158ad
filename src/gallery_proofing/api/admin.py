"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from gallery_proofing.api.models import (
    ActiveRequest,
    AlbumsRequest,
    GalleryAdminView,
    GalleryCreateRequest,
    GrantRequest,
    GrantView,
    SessionAdminView,
    WatermarkPayload,
)

if TYPE_CHECKING:
    from gallery_proofing.containers import AppContainer
    from gallery_proofing.domain.galleries import Gallery

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/stats", dependencies=[Depends(require_admin)])
async def studio_stats(request: Request) -> dict[str, int]:
    """Return studio-wide gallery counters."""
    container: AppContainer = request.app.state.container
    stats = container.gallery_service.stats()
    return {
        "total_galleries": stats.total_galleries,
        "active_galleries": stats.active_galleries,
        "expired_galleries": stats.expired_galleries,
        "total_sessions": stats.total_sessions,
    }


@router.get("/galleries", dependencies=[Depends(require_admin)])
async def list_galleries(request: Request) -> dict[str, object]:
    """Return every gallery with its computed status."""
    container: AppContainer = request.app.state.container
    return {
        "galleries": [
            _gallery_payload(gallery, container)
            for gallery in container.gallery_service.list_galleries()
        ]
    }


@router.post(
    "/galleries",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def create_gallery(
    payload: GalleryCreateRequest, request: Request
) -> dict[str, object]:
    """Create a gallery."""
    container: AppContainer = request.app.state.container
    try:
        gallery = container.gallery_service.create_gallery(
            name=payload.name,
            expiry_date=payload.expiry_date,
            description=payload.description,
            album_ids=payload.album_ids,
            watermark=payload.watermark.to_settings(),
            brand_color=payload.brand_color,
            allow_public_access=payload.allow_public_access,
            slug=payload.slug,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return _gallery_payload(gallery, container)


@router.get("/galleries/{gallery_id}", dependencies=[Depends(require_admin)])
async def gallery_detail(gallery_id: UUID, request: Request) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    gallery = _require_gallery(container.gallery_service.get_gallery(gallery_id))
    return _gallery_payload(gallery, container)


@router.put("/galleries/{gallery_id}/watermark", dependencies=[Depends(require_admin)])
async def update_watermark(
    gallery_id: UUID, payload: WatermarkPayload, request: Request
) -> dict[str, object]:
    """Replace a gallery's watermark settings."""
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.update_watermark(
        gallery_id, payload.to_settings()
    )
    return _gallery_payload(_require_gallery(gallery), container)


@router.put("/galleries/{gallery_id}/active", dependencies=[Depends(require_admin)])
async def set_active(
    gallery_id: UUID, payload: ActiveRequest, request: Request
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.set_active(gallery_id, payload.is_active)
    return _gallery_payload(_require_gallery(gallery), container)


@router.post(
    "/galleries/{gallery_id}/public-access", dependencies=[Depends(require_admin)]
)
async def enable_public_access(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Enable the public share link of a gallery."""
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.enable_public_access(gallery_id)
    return _gallery_payload(_require_gallery(gallery), container)


@router.delete(
    "/galleries/{gallery_id}/public-access", dependencies=[Depends(require_admin)]
)
async def disable_public_access(
    gallery_id: UUID, request: Request
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.disable_public_access(gallery_id)
    return _gallery_payload(_require_gallery(gallery), container)


@router.post("/galleries/{gallery_id}/albums", dependencies=[Depends(require_admin)])
async def attach_albums(
    gallery_id: UUID, payload: AlbumsRequest, request: Request
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.attach_albums(gallery_id, payload.album_ids)
    return _gallery_payload(_require_gallery(gallery), container)


@router.delete("/galleries/{gallery_id}/albums", dependencies=[Depends(require_admin)])
async def detach_albums(
    gallery_id: UUID, payload: AlbumsRequest, request: Request
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    gallery = container.gallery_service.detach_albums(gallery_id, payload.album_ids)
    return _gallery_payload(_require_gallery(gallery), container)


@router.get("/galleries/{gallery_id}/grants", dependencies=[Depends(require_admin)])
async def list_grants(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Return the access grants of a gallery."""
    container: AppContainer = request.app.state.container
    grants = container.access_service.list_grants(gallery_id)
    return {
        "grants": [
            GrantView.model_validate(grant).model_dump(mode="json") for grant in grants
        ]
    }


@router.post("/galleries/{gallery_id}/grants", dependencies=[Depends(require_admin)])
async def grant_access(
    gallery_id: UUID, payload: GrantRequest, request: Request
) -> dict[str, object]:
    """Grant a client access to a gallery."""
    container: AppContainer = request.app.state.container
    _require_gallery(container.gallery_service.get_gallery(gallery_id))
    grant = container.access_service.grant(
        gallery_id=gallery_id,
        client_id=payload.client_id,
        now=container.workflow_service.clock(),
        expires_at=payload.expires_at,
        can_download=payload.can_download,
        can_proof=payload.can_proof,
        can_order=payload.can_order,
    )
    return {"grant": GrantView.model_validate(grant).model_dump(mode="json")}


@router.delete(
    "/galleries/{gallery_id}/grants/{client_id}", dependencies=[Depends(require_admin)]
)
async def revoke_access(
    gallery_id: UUID, client_id: UUID, request: Request
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    if not container.access_service.revoke(gallery_id, client_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"status": "revoked"}


@router.get("/galleries/{gallery_id}/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Return the viewing sessions of a gallery."""
    container: AppContainer = request.app.state.container
    sessions = container.session_manager.list_sessions(gallery_id)
    return {
        "sessions": [
            SessionAdminView.model_validate(session).model_dump(mode="json")
            for session in sessions
        ]
    }


@router.post(
    "/galleries/{gallery_id}/sessions/end", dependencies=[Depends(require_admin)]
)
async def end_all_sessions(gallery_id: UUID, request: Request) -> dict[str, int]:
    """End every open session of a gallery."""
    container: AppContainer = request.app.state.container
    ended = container.session_manager.end_all(
        gallery_id, container.workflow_service.clock()
    )
    return {"ended": ended}


@router.get(
    "/galleries/{gallery_id}/proofs/stats", dependencies=[Depends(require_admin)]
)
async def proof_stats(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Return proofing totals and engagement for a gallery."""
    container: AppContainer = request.app.state.container
    stats = container.workflow_service.gallery_proof_stats(gallery_id)
    if stats is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {
        "gallery_id": str(stats.gallery_id),
        "gallery_name": stats.gallery_name,
        "total_proofs": stats.total_proofs,
        "favorites": stats.favorites,
        "edit_requests": stats.edit_requests,
        "total_photos": stats.total_photos,
        "engagement_rate": stats.engagement_rate,
    }


@router.get("/proofs/export", dependencies=[Depends(require_admin)])
async def export_proofs(
    request: Request, gallery_id: UUID | None = None
) -> PlainTextResponse:
    """Export proofs as CSV, optionally limited to one gallery."""
    container: AppContainer = request.app.state.container
    content = container.workflow_service.export_proofs(gallery_id)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="proofs.csv"'},
    )


def _require_gallery(gallery: Gallery | None) -> Gallery:
    if gallery is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return gallery


def _gallery_payload(gallery: Gallery, container: AppContainer) -> dict[str, object]:
    now = container.workflow_service.clock()
    payload = GalleryAdminView.model_validate(gallery).model_dump(mode="json")
    payload["status"] = gallery.status(now)
    payload["days_until_expiry"] = gallery.days_until_expiry(now)
    payload["access_url"] = container.gallery_service.access_url(
        gallery, container.settings.public_base_url
    )
    return payload
