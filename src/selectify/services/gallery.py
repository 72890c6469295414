"""Gallery link registry: uploads, lookups and selections."""

import asyncio
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import PurePosixPath
from typing import Protocol
from uuid import uuid4

from selectify.domain.errors import (
    NotFoundError,
    PartialUploadFailure,
    StoreUnavailable,
    ValidationError,
)
from selectify.domain.models import (
    LedgerEntry,
    PhotoLinkRecord,
    PhotoRecord,
    PhotoView,
    UploadedPhoto,
)
from selectify.services.retry import RetryPolicy

BLOB_KEY_DELIMITER = "*"
DEFAULT_BLOB_NAME = "photo"
PHOTO_CONTENT_TYPE = "image/jpeg"

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Storage for binary photo content. Has no expiry of its own."""

    async def put(self, key: str, content: bytes, content_type: str) -> str:
        """Store publicly readable content and return its public address."""

    async def delete(self, key: str) -> None:
        """Delete content by key. Missing keys are not an error."""


class BlobLedger(Protocol):
    """Non-expiring record of when each blob must be deleted."""

    async def record(self, blob_key: str, expires_at: datetime) -> None:
        """Register a blob and its expiry time."""

    async def list_due(self, now: datetime) -> list[LedgerEntry]:
        """Return undeleted entries whose expiry time has passed."""

    async def mark_deleted(self, blob_key: str, deleted_at: datetime) -> None:
        """Mark a blob as deleted."""


class PhotoRepository(Protocol):
    """Expiring collection of standalone photo records."""

    async def insert_photo(self, photo: PhotoRecord) -> None:
        """Insert a photo record."""

    async def delete_photo(self, photo_id: str) -> None:
        """Delete a photo record."""

    async def purge_expired(self, now: datetime) -> int:
        """Delete records older than the collection TTL and return the count."""


class PhotoLinkRepository(Protocol):
    """Expiring collection of gallery links."""

    async def insert_link(self, link: PhotoLinkRecord) -> None:
        """Insert a gallery link."""

    async def get_link(self, unique_id: str) -> PhotoLinkRecord | None:
        """Return a live link by its public id, if present."""

    async def list_links(self) -> list[PhotoLinkRecord]:
        """Return all live links."""

    async def set_selection(
        self,
        unique_id: str,
        photo_id: str,
        original_file_name: str,
        is_selected: bool,
    ) -> bool:
        """Set ``is_selected`` on the matching entry; return whether one matched."""

    async def increment_visit_if_at_most(self, unique_id: str, threshold: int) -> bool:
        """Atomically increment ``visit_count`` if it is <= threshold."""

    async def purge_expired(self, now: datetime) -> int:
        """Delete links older than the collection TTL and return the count."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def build_blob_key(original_file_name: str) -> str:
    """Combine a random token with a storage-safe form of the original name.

    Object keys accept a limited character set, so anything outside ASCII
    letters, digits, underscore, dot and dash is replaced. The original name
    itself is kept unchanged on the photo records.
    """
    return f"{uuid4()}{BLOB_KEY_DELIMITER}{_sanitize_blob_name(original_file_name)}"


def _sanitize_blob_name(original_file_name: str) -> str:
    candidate = PurePosixPath(original_file_name.replace("\\", "/")).name
    sanitized = re.sub(r"[^A-Za-z0-9_.-]", "_", candidate)
    return sanitized.strip(".") or DEFAULT_BLOB_NAME


@dataclass
class _StoredPhoto:
    record: PhotoRecord | None = None


@dataclass
class GalleryLinkRegistry:
    """Owns photo records and gallery links and their blobs."""

    blob_store: BlobStore
    ledger: BlobLedger
    photo_repository: PhotoRepository
    link_repository: PhotoLinkRepository
    retention: timedelta
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    clock: Callable[[], datetime] = _utcnow

    async def upload(
        self, user_id: str, group_name: str, files: list[UploadedPhoto]
    ) -> tuple[PhotoLinkRecord, list[PhotoView]]:
        """Store a batch of photos and create the gallery link for them.

        The batch is all-or-nothing: when any file fails, every blob and
        record already written for the batch is removed before the error
        is raised. Blobs whose removal fails stay in the ledger and are
        deleted by the retention sweep.
        """
        _validate_upload(group_name, files)
        now = self.clock()
        expires_at = now + self.retention
        slots = [_StoredPhoto() for _ in files]
        keys = [build_blob_key(item.original_file_name) for item in files]

        batch = asyncio.gather(
            *(
                self._store_photo(
                    user_id, group_name, item, key, slot, now, expires_at
                )
                for item, key, slot in zip(files, keys, slots, strict=True)
            ),
            return_exceptions=True,
        )
        try:
            results = await asyncio.shield(batch)
        except asyncio.CancelledError:
            # Store calls run in worker threads and cannot be interrupted, so
            # a put may still land after cancellation. Let them settle first.
            try:
                await asyncio.shield(batch)
            except asyncio.CancelledError:
                logger.warning(
                    "Upload abandoned, blobs left for retention sweep",
                    extra={"group_name": group_name, "files": len(files)},
                )
                raise
            await self._rollback(keys, slots)
            raise

        failed = [
            item.original_file_name
            for item, result in zip(files, results, strict=True)
            if isinstance(result, BaseException)
        ]
        if failed:
            for result in results:
                if isinstance(result, BaseException) and not isinstance(
                    result, StoreUnavailable
                ):
                    logger.error(
                        "Unexpected error while storing photo", exc_info=result
                    )
            await self._rollback(keys, slots)
            logger.warning(
                "Upload rolled back",
                extra={"group_name": group_name, "failed_files": failed},
            )
            raise PartialUploadFailure(failed)

        views = [
            PhotoView(
                id=str(uuid4()),
                blob_ref=slot.record.blob_ref,
                original_file_name=slot.record.original_file_name,
            )
            for slot in slots
            if slot.record is not None
        ]
        link = PhotoLinkRecord(
            unique_id=str(uuid4()),
            group_name=group_name,
            visit_count=0,
            photos=views,
            created_at=now,
        )
        try:
            await self.retry_policy.call(
                lambda: self.link_repository.insert_link(link),
                description="insert_link",
            )
        except (Exception, asyncio.CancelledError):
            await self._rollback(keys, slots)
            raise
        logger.info(
            "Gallery link created",
            extra={"unique_id": link.unique_id, "photos": len(views)},
        )
        return link, views

    async def get_by_link_id(self, unique_id: str) -> PhotoLinkRecord:
        """Return a live gallery link or raise ``NotFoundError``."""
        link = await self.retry_policy.call(
            lambda: self.link_repository.get_link(unique_id),
            description="get_link",
        )
        if link is None:
            raise NotFoundError("Link not found")
        return link

    async def set_selection(
        self,
        unique_id: str,
        photo_id: str,
        original_file_name: str,
        is_selected: bool,
    ) -> None:
        """Update ``is_selected`` of one embedded photo.

        Link id, photo id and original file name must all match.
        """
        matched = await self.retry_policy.call(
            lambda: self.link_repository.set_selection(
                unique_id, photo_id, original_file_name, is_selected
            ),
            description="set_selection",
        )
        if not matched:
            raise NotFoundError("Photo not found")

    async def list_all_links(self) -> list[PhotoLinkRecord]:
        """Return every live gallery link (unpaginated)."""
        return await self.retry_policy.call(
            self.link_repository.list_links, description="list_links"
        )

    async def _store_photo(  # noqa: PLR0913
        self,
        user_id: str,
        group_name: str,
        item: UploadedPhoto,
        key: str,
        slot: _StoredPhoto,
        now: datetime,
        expires_at: datetime,
    ) -> None:
        await self.retry_policy.call(
            lambda: self.ledger.record(key, expires_at), description="ledger_record"
        )
        blob_ref = await self.retry_policy.call(
            lambda: self.blob_store.put(key, item.content, PHOTO_CONTENT_TYPE),
            description="blob_put",
        )
        record = PhotoRecord(
            id=str(uuid4()),
            user_id=user_id,
            blob_key=key,
            blob_ref=blob_ref,
            original_file_name=item.original_file_name,
            group_name=group_name,
            created_at=now,
        )
        await self.retry_policy.call(
            lambda: self.photo_repository.insert_photo(record),
            description="insert_photo",
        )
        slot.record = record

    async def _rollback(self, keys: list[str], slots: list[_StoredPhoto]) -> None:
        # A put that timed out may still have landed, so every key is deleted.
        now = self.clock()
        for key, slot in zip(keys, slots, strict=True):
            try:
                if slot.record is not None:
                    await self.photo_repository.delete_photo(slot.record.id)
                await self.blob_store.delete(key)
                await self.ledger.mark_deleted(key, now)
            except StoreUnavailable:
                logger.warning(
                    "Rollback incomplete, blob left for retention sweep",
                    extra={"blob_key": key},
                )


def _validate_upload(group_name: str, files: list[UploadedPhoto]) -> None:
    if not group_name or not group_name.strip():
        raise ValidationError("Name is required")
    if not files:
        raise ValidationError("At least one photo is required")
    if any(not item.original_file_name for item in files):
        raise ValidationError("Original file names are missing or incorrect")
