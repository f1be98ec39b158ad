"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from gallery_proofing.adapters.pillow_image_processor import PillowImageProcessor
from gallery_proofing.adapters.storage_client import HttpxSupabaseStorageClient
from gallery_proofing.adapters.supabase_access_repository import (
    SupabaseAccessGrantRepository,
)
from gallery_proofing.adapters.supabase_gallery_repository import (
    SupabaseGalleryRepository,
)
from gallery_proofing.adapters.supabase_photo_repository import SupabasePhotoRepository
from gallery_proofing.adapters.supabase_proof_repository import SupabaseProofRepository
from gallery_proofing.adapters.supabase_session_repository import (
    SupabaseGallerySessionRepository,
)
from gallery_proofing.config import Settings
from gallery_proofing.services.access import AccessService
from gallery_proofing.services.galleries import GalleryService
from gallery_proofing.services.proofs import ProofLedger
from gallery_proofing.services.sessions import SessionManager
from gallery_proofing.services.workflow import GalleryWorkflowService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gallery_service: GalleryService
    access_service: AccessService
    session_manager: SessionManager
    proof_ledger: ProofLedger
    workflow_service: GalleryWorkflowService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    gallery_repository = SupabaseGalleryRepository(supabase_client)
    access_repository = SupabaseAccessGrantRepository(supabase_client)
    session_repository = SupabaseGallerySessionRepository(supabase_client)
    proof_repository = SupabaseProofRepository(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client)
    storage_client = HttpxSupabaseStorageClient.create(
        base_url=resolved_settings.supabase_url,
        service_key=resolved_settings.supabase_service_key,
        bucket=resolved_settings.storage_bucket,
    )

    gallery_service = GalleryService(gallery_repository, session_repository)
    access_service = AccessService(access_repository)
    session_manager = SessionManager(
        session_repository,
        idle_limit=timedelta(days=resolved_settings.session_idle_days),
    )
    proof_ledger = ProofLedger(proof_repository)
    workflow_service = GalleryWorkflowService(
        galleries=gallery_repository,
        access=access_service,
        sessions=session_manager,
        proofs=proof_ledger,
        photos=photo_repository,
        storage=storage_client,
        processor=PillowImageProcessor(),
        public_links_enabled=resolved_settings.public_links_enabled,
        page_size_default=resolved_settings.photo_page_size,
        page_size_min=resolved_settings.photo_page_size_min,
        page_size_max=resolved_settings.photo_page_size_max,
        bulk_download_limit=resolved_settings.bulk_download_limit,
    )

    async def close_resources() -> None:
        await storage_client.close()

    return AppContainer(
        settings=resolved_settings,
        gallery_service=gallery_service,
        access_service=access_service,
        session_manager=session_manager,
        proof_ledger=proof_ledger,
        workflow_service=workflow_service,
        close_resources=close_resources,
    )
