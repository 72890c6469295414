"""Gallery upload, viewing and selection endpoints."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from selectify.api.gallery_models import (
    GalleryCard,
    GalleryResponse,
    MessageResponse,
    SelectionUpdate,
    UploadedPhotoData,
    UploadResponse,
)
from selectify.domain.errors import UnauthorizedError, ValidationError
from selectify.domain.models import UploadedPhoto

if TYPE_CHECKING:
    from selectify.containers import AppContainer

router = APIRouter(tags=["gallery"])

_bearer = HTTPBearer(auto_error=False)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Resolve the bearer token to a user id."""
    if credentials is None:
        raise UnauthorizedError()
    return _container(request).token_verifier.verify(credentials.credentials)


@router.post("/api/upload", response_model=UploadResponse)
async def upload_photos(
    request: Request,
    user_id: str = Depends(require_user),
    name: str | None = Form(default=None),
    original_file_names: str | None = Form(default=None, alias="originalFileNames"),
    photos: list[UploadFile] = File(default=[]),
) -> UploadResponse:
    """Upload a batch of photos and create a gallery link for them."""
    container = _container(request)
    if not name:
        raise ValidationError("Name is required")
    names = _parse_original_names(original_file_names)
    if len(names) != len(photos):
        raise ValidationError("Original file names are missing or incorrect")

    raw = [await photo.read() for photo in photos]
    encoder = container.image_encoder
    encoded = await asyncio.gather(
        *(asyncio.to_thread(encoder.encode, content) for content in raw)
    )
    files = [
        UploadedPhoto(content=content, original_file_name=original_name)
        for content, original_name in zip(encoded, names, strict=True)
    ]
    link, views = await container.gallery_registry.upload(user_id, name, files)
    return UploadResponse(
        message="Photos uploaded successfully",
        photo_data=[
            UploadedPhotoData(
                photo_url=view.blob_ref,
                original_file_name=view.original_file_name,
                is_selected=view.is_selected,
                id=view.id,
            )
            for view in views
        ],
        link=f"/gallery/{link.unique_id}",
    )


@router.get("/gallery", response_model=list[GalleryCard])
async def list_galleries(request: Request) -> list[GalleryCard]:
    """Return every live gallery link for the dashboard."""
    links = await _container(request).gallery_registry.list_all_links()
    return [GalleryCard.from_link(link) for link in links]


@router.get("/gallery/show/{unique_id}", response_model=GalleryResponse)
async def show_gallery(unique_id: str, request: Request) -> GalleryResponse:
    """Public view of a gallery, limited by the visit counter."""
    link = await _container(request).access_gate.check_and_record_visit(unique_id)
    return GalleryResponse.from_link(link)


@router.get("/gallery/{unique_id}", response_model=GalleryResponse)
async def get_gallery(unique_id: str, request: Request) -> GalleryResponse:
    """Owner view of a gallery; does not count as a visit."""
    link = await _container(request).gallery_registry.get_by_link_id(unique_id)
    return GalleryResponse.from_link(link)


@router.put(
    "/photolinks/{original_file_name}/{photo_id}/{unique_id}/select",
    response_model=MessageResponse,
)
async def update_selection(
    original_file_name: str,
    photo_id: str,
    unique_id: str,
    update: SelectionUpdate,
    request: Request,
) -> MessageResponse:
    """Set the selection flag of one photo in a gallery."""
    await _container(request).gallery_registry.set_selection(
        unique_id, photo_id, original_file_name, update.is_selected
    )
    return MessageResponse(message="Photo selection updated successfully")


def _parse_original_names(raw: str | None) -> list[str]:
    if not raw:
        raise ValidationError("Original file names are missing or incorrect")
    try:
        names = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("Original file names are missing or incorrect") from exc
    if not isinstance(names, list) or not all(
        isinstance(item, str) and item for item in names
    ):
        raise ValidationError("Original file names are missing or incorrect")
    return names
