"""Supabase-backed gallery link repository."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from supabase import Client

from selectify.adapters.supabase_errors import translate_store_errors
from selectify.domain.errors import StoreUnavailable
from selectify.domain.models import PhotoLinkRecord, PhotoView
from selectify.services.gallery import PhotoLinkRepository

_LINK_COLUMNS = "unique_id, group_name, visit_count, photos, created_at"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SupabasePhotoLinkRepository(PhotoLinkRepository):
    """Supabase implementation for gallery links.

    Embedded photo views live in the ``photos`` jsonb column. Visit counting
    and selection updates run as Postgres functions so each is a single
    atomic statement. Rows older than ``ttl`` are treated as gone.
    """

    client: Client
    ttl: timedelta
    clock: Callable[[], datetime] = _utcnow

    async def insert_link(self, link: PhotoLinkRecord) -> None:
        """Insert a gallery link row; replaying the same link leaves one row."""
        await asyncio.to_thread(self._insert_link, link)

    async def get_link(self, unique_id: str) -> PhotoLinkRecord | None:
        """Return a live link by id, if present."""
        return await asyncio.to_thread(self._get_link, unique_id)

    async def list_links(self) -> list[PhotoLinkRecord]:
        """Return all live links, newest first."""
        return await asyncio.to_thread(self._list_links)

    async def set_selection(
        self,
        unique_id: str,
        photo_id: str,
        original_file_name: str,
        is_selected: bool,
    ) -> bool:
        """Update one embedded entry; return whether it matched."""
        return await asyncio.to_thread(
            self._set_selection, unique_id, photo_id, original_file_name, is_selected
        )

    async def increment_visit_if_at_most(self, unique_id: str, threshold: int) -> bool:
        """Increment the visit counter when it is still within the threshold."""
        return await asyncio.to_thread(
            self._increment_visit_if_at_most, unique_id, threshold
        )

    async def purge_expired(self, now: datetime) -> int:
        """Delete links older than the TTL and return the count."""
        return await asyncio.to_thread(self._purge_expired, now)

    def _insert_link(self, link: PhotoLinkRecord) -> None:
        with translate_store_errors("photo_links"):
            response = (
                self.client.table("photo_links")
                .upsert(
                    {
                        "unique_id": link.unique_id,
                        "group_name": link.group_name,
                        "visit_count": link.visit_count,
                        "photos": [_serialize_view(view) for view in link.photos],
                        "created_at": link.created_at.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to create gallery link")

    def _get_link(self, unique_id: str) -> PhotoLinkRecord | None:
        with translate_store_errors("photo_links"):
            response = (
                self.client.table("photo_links")
                .select(_LINK_COLUMNS)
                .eq("unique_id", unique_id)
                .gte("created_at", self._cutoff().isoformat())
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_link(response.data[0])

    def _list_links(self) -> list[PhotoLinkRecord]:
        with translate_store_errors("photo_links"):
            response = (
                self.client.table("photo_links")
                .select(_LINK_COLUMNS)
                .gte("created_at", self._cutoff().isoformat())
                .order("created_at", desc=True)
                .execute()
            )
        return [_parse_link(row) for row in response.data or []]

    def _set_selection(
        self,
        unique_id: str,
        photo_id: str,
        original_file_name: str,
        is_selected: bool,
    ) -> bool:
        with translate_store_errors("photo_links"):
            response = self.client.rpc(
                "set_photo_selection",
                {
                    "p_unique_id": unique_id,
                    "p_photo_id": photo_id,
                    "p_original_file_name": original_file_name,
                    "p_is_selected": is_selected,
                },
            ).execute()
        return bool(response.data)

    def _increment_visit_if_at_most(self, unique_id: str, threshold: int) -> bool:
        with translate_store_errors("photo_links"):
            response = self.client.rpc(
                "record_gallery_visit",
                {"p_unique_id": unique_id, "p_threshold": threshold},
            ).execute()
        return bool(response.data)

    def _purge_expired(self, now: datetime) -> int:
        cutoff = now - self.ttl
        with translate_store_errors("photo_links"):
            response = (
                self.client.table("photo_links")
                .delete()
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        return len(response.data or [])

    def _cutoff(self) -> datetime:
        return self.clock() - self.ttl


def _serialize_view(view: PhotoView) -> dict[str, object]:
    return {
        "id": view.id,
        "blob_ref": view.blob_ref,
        "original_file_name": view.original_file_name,
        "is_selected": view.is_selected,
    }


def _parse_link(row: dict[str, object]) -> PhotoLinkRecord:
    photos_raw = row.get("photos") or []
    photos = [
        PhotoView(
            id=str(item["id"]),
            blob_ref=str(item["blob_ref"]),
            original_file_name=str(item["original_file_name"]),
            is_selected=bool(item.get("is_selected", False)),
        )
        for item in photos_raw
        if isinstance(item, dict)
    ]
    return PhotoLinkRecord(
        unique_id=str(row["unique_id"]),
        group_name=str(row["group_name"]),
        visit_count=int(row.get("visit_count") or 0),
        photos=photos,
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
