"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from selectify.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/sweep", dependencies=[Depends(require_admin)])
async def run_sweep(request: Request) -> dict[str, int]:
    """Delete expired blobs now instead of waiting for the daily run."""
    container: AppContainer = request.app.state.container
    report = await container.retention_sweeper.sweep()
    return {"deleted": report.deleted, "failed": report.failed}


@router.post("/expire", dependencies=[Depends(require_admin)])
async def run_metadata_expiry(request: Request) -> dict[str, int]:
    """Remove expired photo and link records now."""
    container: AppContainer = request.app.state.container
    return {"expired": await container.metadata_expiry.expire()}
