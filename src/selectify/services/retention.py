"""Retention jobs: blob sweeping and metadata expiry."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from selectify.domain.errors import SweepInProgressError
from selectify.domain.models import SweepReport
from selectify.services.gallery import (
    BlobLedger,
    BlobStore,
    PhotoLinkRepository,
    PhotoRepository,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class RetentionSweeper:
    """Deletes blobs whose retention window has passed.

    The ledger, not the expiring photo collection, is the source of truth,
    so a photo record removed by metadata expiry cannot hide its blob from
    the sweep.
    """

    blob_store: BlobStore
    ledger: BlobLedger
    clock: Callable[[], datetime] = _utcnow
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def running(self) -> bool:
        """Return true while a sweep is in progress."""
        return self._lock.locked()

    async def sweep(self) -> SweepReport:
        """Run one sweep; refuse to start while another is running."""
        if self._lock.locked():
            raise SweepInProgressError()
        async with self._lock:
            now = self.clock()
            due = await self.ledger.list_due(now)
            deleted = 0
            failed = 0
            for entry in due:
                try:
                    await self.blob_store.delete(entry.blob_key)
                    await self.ledger.mark_deleted(entry.blob_key, now)
                except Exception:
                    failed += 1
                    logger.warning(
                        "Failed to delete expired blob",
                        extra={"blob_key": entry.blob_key},
                        exc_info=True,
                    )
                    continue
                deleted += 1
            logger.info(
                "Retention sweep finished",
                extra={"due": len(due), "deleted": deleted, "failed": failed},
            )
            return SweepReport(deleted=deleted, failed=failed)


@dataclass
class MetadataExpiry:
    """Removes photo and link records older than their collection TTL."""

    photo_repository: PhotoRepository
    link_repository: PhotoLinkRepository
    clock: Callable[[], datetime] = _utcnow

    async def expire(self) -> int:
        """Purge expired records from both collections."""
        now = self.clock()
        photos = await self.photo_repository.purge_expired(now)
        links = await self.link_repository.purge_expired(now)
        if photos or links:
            logger.info(
                "Expired metadata removed",
                extra={"photos": photos, "links": links},
            )
        return photos + links
