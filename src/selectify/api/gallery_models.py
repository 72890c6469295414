"""Pydantic models for gallery request and response payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from selectify.domain.models import PhotoLinkRecord, PhotoView


class GalleryPhoto(BaseModel):
    """Photo entry as shown on a gallery page."""

    model_config = ConfigDict(populate_by_name=True)

    photo_url: str = Field(alias="photoUrl")
    original_file_name: str = Field(alias="originalFileName")
    is_selected: bool = Field(alias="isSelected")
    unique_photo_id: str = Field(alias="uniquePhotoId")

    @classmethod
    def from_view(cls, view: PhotoView) -> "GalleryPhoto":
        """Build from an embedded photo view."""
        return cls(
            photo_url=view.blob_ref,
            original_file_name=view.original_file_name,
            is_selected=view.is_selected,
            unique_photo_id=view.id,
        )


class GalleryResponse(BaseModel):
    """Gallery payload for owner and public views."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    unique_id: str = Field(alias="uniqueId")
    photos: list[GalleryPhoto]
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_link(cls, link: PhotoLinkRecord) -> "GalleryResponse":
        """Build from a gallery link record."""
        return cls(
            name=link.group_name,
            unique_id=link.unique_id,
            photos=[GalleryPhoto.from_view(view) for view in link.photos],
            created_at=link.created_at,
        )


class GalleryCard(GalleryResponse):
    """Dashboard entry, including the visit counter."""

    visit_count: int = Field(alias="visitCount")

    @classmethod
    def from_link(cls, link: PhotoLinkRecord) -> "GalleryCard":
        """Build from a gallery link record."""
        return cls(
            name=link.group_name,
            unique_id=link.unique_id,
            photos=[GalleryPhoto.from_view(view) for view in link.photos],
            created_at=link.created_at,
            visit_count=link.visit_count,
        )


class UploadedPhotoData(BaseModel):
    """Photo entry returned right after an upload."""

    model_config = ConfigDict(populate_by_name=True)

    photo_url: str = Field(alias="photoUrl")
    original_file_name: str = Field(alias="originalFileName")
    is_selected: bool = Field(alias="isSelected")
    id: str


class UploadResponse(BaseModel):
    """Result of a batch upload."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    photo_data: list[UploadedPhotoData] = Field(alias="photoData")
    link: str


class SelectionUpdate(BaseModel):
    """Request body for toggling a photo selection."""

    is_selected: bool = Field(alias="isSelected")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
