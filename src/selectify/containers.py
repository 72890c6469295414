"""Dependency container wiring for the application."""

from dataclasses import dataclass
from datetime import timedelta

from supabase import ClientOptions, create_client

from selectify.adapters.jwt_token_verifier import JwtTokenVerifier, TokenVerifier
from selectify.adapters.pillow_image_encoder import ImageEncoder, PillowJpegEncoder
from selectify.adapters.supabase_blob_ledger import SupabaseBlobLedger
from selectify.adapters.supabase_blob_store import SupabaseBlobStore
from selectify.adapters.supabase_photo_link_repository import (
    SupabasePhotoLinkRepository,
)
from selectify.adapters.supabase_photo_repository import SupabasePhotoRepository
from selectify.config import Settings
from selectify.services.access import AccessGate
from selectify.services.gallery import GalleryLinkRegistry
from selectify.services.retention import MetadataExpiry, RetentionSweeper
from selectify.services.retry import RetryPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gallery_registry: GalleryLinkRegistry
    access_gate: AccessGate
    retention_sweeper: RetentionSweeper
    metadata_expiry: MetadataExpiry
    image_encoder: ImageEncoder
    token_verifier: TokenVerifier


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(
            postgrest_client_timeout=resolved_settings.store_timeout_seconds,
            storage_client_timeout=resolved_settings.store_timeout_seconds,
        ),
    )
    retention = timedelta(hours=resolved_settings.retention_hours)
    retry_policy = RetryPolicy(
        attempts=resolved_settings.store_retry_attempts,
        backoff_seconds=resolved_settings.store_retry_backoff_seconds,
    )
    blob_store = SupabaseBlobStore(supabase_client, resolved_settings.storage_bucket)
    ledger = SupabaseBlobLedger(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client, ttl=retention)
    link_repository = SupabasePhotoLinkRepository(supabase_client, ttl=retention)

    gallery_registry = GalleryLinkRegistry(
        blob_store=blob_store,
        ledger=ledger,
        photo_repository=photo_repository,
        link_repository=link_repository,
        retention=retention,
        retry_policy=retry_policy,
    )
    access_gate = AccessGate(
        link_repository=link_repository,
        threshold=resolved_settings.visit_threshold,
        retry_policy=retry_policy,
    )
    retention_sweeper = RetentionSweeper(blob_store=blob_store, ledger=ledger)
    metadata_expiry = MetadataExpiry(
        photo_repository=photo_repository, link_repository=link_repository
    )

    return AppContainer(
        settings=resolved_settings,
        gallery_registry=gallery_registry,
        access_gate=access_gate,
        retention_sweeper=retention_sweeper,
        metadata_expiry=metadata_expiry,
        image_encoder=PillowJpegEncoder(quality=resolved_settings.jpeg_quality),
        token_verifier=JwtTokenVerifier(resolved_settings.jwt_secret),
    )
