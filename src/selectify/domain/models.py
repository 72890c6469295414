"""Domain models for shared galleries."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UploadedPhoto:
    """A single file of an upload batch, already re-encoded."""

    content: bytes
    original_file_name: str


@dataclass(frozen=True)
class PhotoView:
    """Embedded copy of a photo inside a gallery link."""

    id: str
    blob_ref: str
    original_file_name: str
    is_selected: bool = False


@dataclass(frozen=True)
class PhotoRecord:
    """Standalone metadata row for an uploaded photo."""

    id: str
    user_id: str
    blob_key: str
    blob_ref: str
    original_file_name: str
    group_name: str
    created_at: datetime
    is_selected: bool = False


@dataclass(frozen=True)
class PhotoLinkRecord:
    """A shared gallery link with denormalized photo views."""

    unique_id: str
    group_name: str
    visit_count: int
    photos: list[PhotoView]
    created_at: datetime


@dataclass(frozen=True)
class LedgerEntry:
    """Blob deletion schedule entry, kept outside the expiring collections."""

    blob_key: str
    expires_at: datetime
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one retention sweep."""

    deleted: int
    failed: int
