"""Tests for the visit-count gate."""

import asyncio
from datetime import timedelta

import pytest

from selectify.domain.errors import ForbiddenError, NotFoundError
from selectify.domain.models import PhotoLinkRecord, PhotoView
from selectify.services.access import AccessGate
from tests.conftest import NO_WAIT_RETRY, RETENTION, InMemoryPhotoLinkRepository, utcnow


def _seed_link(
    repository: InMemoryPhotoLinkRepository, visit_count: int = 0
) -> PhotoLinkRecord:
    link = PhotoLinkRecord(
        unique_id="link-1",
        group_name="Trip",
        visit_count=visit_count,
        photos=[
            PhotoView(
                id="p1", blob_ref="https://cdn.test/a", original_file_name="a.jpg"
            )
        ],
        created_at=utcnow(),
    )
    repository.links[link.unique_id] = link
    return link


def _gate(repository: InMemoryPhotoLinkRepository) -> AccessGate:
    return AccessGate(link_repository=repository, retry_policy=NO_WAIT_RETRY)


def test_three_views_allowed_then_forbidden() -> None:
    repository = InMemoryPhotoLinkRepository()
    _seed_link(repository)
    gate = _gate(repository)

    async def scenario():
        return [await gate.check_and_record_visit("link-1") for _ in range(3)]

    views = asyncio.run(scenario())

    assert [view.visit_count for view in views] == [1, 2, 3]
    assert views[0].group_name == "Trip"
    with pytest.raises(ForbiddenError):
        asyncio.run(gate.check_and_record_visit("link-1"))
    assert repository.links["link-1"].visit_count == 3


def test_concurrent_visits_allow_exactly_three() -> None:
    repository = InMemoryPhotoLinkRepository()
    _seed_link(repository)
    gate = _gate(repository)

    async def scenario():
        return await asyncio.gather(
            *(gate.check_and_record_visit("link-1") for _ in range(10)),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())

    allowed = [result for result in results if isinstance(result, PhotoLinkRecord)]
    refused = [result for result in results if isinstance(result, ForbiddenError)]
    assert len(allowed) == 3
    assert len(refused) == 7
    assert repository.links["link-1"].visit_count == 3


def test_already_exhausted_link_is_refused_without_increment() -> None:
    repository = InMemoryPhotoLinkRepository()
    _seed_link(repository, visit_count=3)

    with pytest.raises(ForbiddenError) as exc_info:
        asyncio.run(_gate(repository).check_and_record_visit("link-1"))

    assert exc_info.value.message == "Link has been visited too many times"
    assert repository.links["link-1"].visit_count == 3


def test_custom_threshold() -> None:
    repository = InMemoryPhotoLinkRepository()
    _seed_link(repository)
    gate = AccessGate(
        link_repository=repository, threshold=0, retry_policy=NO_WAIT_RETRY
    )

    asyncio.run(gate.check_and_record_visit("link-1"))
    with pytest.raises(ForbiddenError):
        asyncio.run(gate.check_and_record_visit("link-1"))


def test_unknown_link_is_not_found() -> None:
    gate = _gate(InMemoryPhotoLinkRepository())

    with pytest.raises(NotFoundError):
        asyncio.run(gate.check_and_record_visit("nope"))


def test_expired_link_is_not_found() -> None:
    repository = InMemoryPhotoLinkRepository()
    link = _seed_link(repository)
    repository.clock = lambda: link.created_at + RETENTION + timedelta(minutes=1)

    with pytest.raises(NotFoundError):
        asyncio.run(_gate(repository).check_and_record_visit("link-1"))
