"""Supabase-backed photo repository."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta

from supabase import Client

from selectify.adapters.supabase_errors import translate_store_errors
from selectify.domain.errors import StoreUnavailable
from selectify.domain.models import PhotoRecord
from selectify.services.gallery import PhotoRepository


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for standalone photo metadata.

    ``ttl`` is the collection's retention window; rows older than it are
    removed by ``purge_expired``.
    """

    client: Client
    ttl: timedelta

    async def insert_photo(self, photo: PhotoRecord) -> None:
        """Insert a photo metadata row; replaying the same record leaves one row."""
        await asyncio.to_thread(self._insert_photo, photo)

    async def delete_photo(self, photo_id: str) -> None:
        """Delete a photo metadata row."""
        await asyncio.to_thread(self._delete_photo, photo_id)

    async def purge_expired(self, now: datetime) -> int:
        """Delete rows older than the TTL and return how many were removed."""
        return await asyncio.to_thread(self._purge_expired, now)

    def _insert_photo(self, photo: PhotoRecord) -> None:
        with translate_store_errors("photos"):
            response = (
                self.client.table("photos")
                .upsert(
                    {
                        "id": photo.id,
                        "user_id": photo.user_id,
                        "blob_key": photo.blob_key,
                        "blob_ref": photo.blob_ref,
                        "original_file_name": photo.original_file_name,
                        "group_name": photo.group_name,
                        "is_selected": photo.is_selected,
                        "created_at": photo.created_at.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to create photo metadata")

    def _delete_photo(self, photo_id: str) -> None:
        with translate_store_errors("photos"):
            self.client.table("photos").delete().eq("id", photo_id).execute()

    def _purge_expired(self, now: datetime) -> int:
        cutoff = now - self.ttl
        with translate_store_errors("photos"):
            response = (
                self.client.table("photos")
                .delete()
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        return len(response.data or [])
