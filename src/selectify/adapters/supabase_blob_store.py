"""Supabase Storage implementation of the blob store."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from selectify.adapters.supabase_errors import translate_store_errors
from selectify.services.gallery import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Stores photos in a public-read Supabase Storage bucket."""

    client: Client
    bucket: str

    async def put(self, key: str, content: bytes, content_type: str) -> str:
        """Upload content and return its public URL."""
        return await asyncio.to_thread(self._put, key, content, content_type)

    async def delete(self, key: str) -> None:
        """Remove an object; unknown keys are ignored by Storage."""
        await asyncio.to_thread(self._delete, key)

    def _put(self, key: str, content: bytes, content_type: str) -> str:
        with translate_store_errors("blob"):
            bucket = self.client.storage.from_(self.bucket)
            # Keys are unique per upload, so upsert only matters for retries.
            bucket.upload(
                path=key,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            return bucket.get_public_url(key)

    def _delete(self, key: str) -> None:
        with translate_store_errors("blob"):
            self.client.storage.from_(self.bucket).remove([key])
