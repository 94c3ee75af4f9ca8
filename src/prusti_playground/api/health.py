"""Health and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness probe -- always returns OK if the process is running."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe -- checks that the Docker daemon is reachable."""
    sandbox = getattr(request.app.state, "sandbox", None)
    if sandbox is not None and await sandbox.ping():
        return JSONResponse(content={"status": "ready"}, status_code=200)
    return JSONResponse(content={"status": "not_ready"}, status_code=503)
