"""Tests for application startup and background jobs."""

from dataclasses import replace

from fastapi.testclient import TestClient

from selectify.api.app import build_background_jobs, create_app
from selectify.services.scheduler import DailyAt, Every


def test_background_jobs_follow_settings(container) -> None:
    container.settings = container.settings.model_copy(
        update={"sweep_hour_utc": 3, "metadata_expiry_interval_seconds": 120}
    )

    jobs = {job.name: job for job in build_background_jobs(container)}

    assert jobs["blob-retention-sweep"].schedule == DailyAt(hour=3)
    assert jobs["metadata-expiry"].schedule == Every(seconds=120)


def test_lifespan_starts_and_stops_jobs(container) -> None:
    enabled = replace(
        container,
        settings=container.settings.model_copy(
            update={"background_jobs_enabled": True}
        ),
    )

    with TestClient(create_app(enabled)) as client:
        assert client.get("/health").status_code == 200
