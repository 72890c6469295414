"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from selectify.api.admin import router as admin_router
from selectify.api.gallery import router as gallery_router
from selectify.app_logging import configure_logging
from selectify.config import parse_cors_origins
from selectify.containers import AppContainer
from selectify.domain.errors import ErrorCode, SelectifyError
from selectify.services.scheduler import DailyAt, Every, RecurringJob

_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SWEEP_IN_PROGRESS: 409,
    ErrorCode.PARTIAL_UPLOAD_FAILURE: 500,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


def build_background_jobs(container: AppContainer) -> list[RecurringJob]:
    """Create the recurring retention jobs."""
    settings = container.settings
    return [
        RecurringJob(
            name="blob-retention-sweep",
            action=container.retention_sweeper.sweep,
            schedule=DailyAt(hour=settings.sweep_hour_utc),
        ),
        RecurringJob(
            name="metadata-expiry",
            action=container.metadata_expiry.expire,
            schedule=Every(seconds=settings.metadata_expiry_interval_seconds),
        ),
    ]


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        shutdown_event = asyncio.Event()
        tasks: list[asyncio.Task[None]] = []
        if container.settings.background_jobs_enabled:
            for job in build_background_jobs(container):
                tasks.append(
                    asyncio.create_task(
                        job.run_forever(shutdown_event), name=f"selectify-{job.name}"
                    )
                )
            logger.info("Background jobs started", extra={"jobs": len(tasks)})
        yield
        shutdown_event.set()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SelectifyError)
    async def handle_selectify_error(
        request: Request, exc: SelectifyError
    ) -> JSONResponse:
        status_code = _STATUS_BY_CODE.get(exc.code, 500)
        if status_code >= 500:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "code": str(exc.code)},
                exc_info=exc,
            )
        return JSONResponse(
            status_code=status_code,
            content={"code": str(exc.code), "message": exc.message},
        )

    app.include_router(gallery_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
