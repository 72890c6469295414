"""Supabase-backed blob deletion ledger."""

import asyncio
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from selectify.adapters.supabase_errors import translate_store_errors
from selectify.domain.models import LedgerEntry
from selectify.services.gallery import BlobLedger


@dataclass
class SupabaseBlobLedger(BlobLedger):
    """Ledger table that is never subject to metadata expiry."""

    client: Client

    async def record(self, blob_key: str, expires_at: datetime) -> None:
        """Insert or refresh the ledger row for a blob."""
        await asyncio.to_thread(self._record, blob_key, expires_at)

    async def list_due(self, now: datetime) -> list[LedgerEntry]:
        """Return undeleted entries that expired at or before ``now``."""
        return await asyncio.to_thread(self._list_due, now)

    async def mark_deleted(self, blob_key: str, deleted_at: datetime) -> None:
        """Stamp the deletion time on a ledger row."""
        await asyncio.to_thread(self._mark_deleted, blob_key, deleted_at)

    def _record(self, blob_key: str, expires_at: datetime) -> None:
        with translate_store_errors("blob_ledger"):
            self.client.table("blob_ledger").upsert(
                {"blob_key": blob_key, "expires_at": expires_at.isoformat()}
            ).execute()

    def _list_due(self, now: datetime) -> list[LedgerEntry]:
        with translate_store_errors("blob_ledger"):
            response = (
                self.client.table("blob_ledger")
                .select("blob_key, expires_at, deleted_at")
                .is_("deleted_at", "null")
                .lte("expires_at", now.isoformat())
                .order("expires_at", desc=False)
                .execute()
            )
        return [_parse_entry(row) for row in response.data or []]

    def _mark_deleted(self, blob_key: str, deleted_at: datetime) -> None:
        with translate_store_errors("blob_ledger"):
            self.client.table("blob_ledger").update(
                {"deleted_at": deleted_at.isoformat()}
            ).eq("blob_key", blob_key).execute()


def _parse_entry(row: dict[str, object]) -> LedgerEntry:
    deleted_raw = row.get("deleted_at")
    return LedgerEntry(
        blob_key=str(row["blob_key"]),
        expires_at=datetime.fromisoformat(str(row["expires_at"])),
        deleted_at=(
            datetime.fromisoformat(deleted_raw)
            if isinstance(deleted_raw, str) and deleted_raw
            else None
        ),
    )
