"""Run a verified build of submitted source in a playground session."""

from __future__ import annotations

import logging

import docker.errors
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from prusti_playground.config import FULL_COMPILATION_VAR, LOG_LEVEL_VAR
from prusti_playground.models.enums import BuildProfile, LogLevel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/builds", tags=["builds"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class BuildRequest(BaseModel):
    """Request body for ``POST /v1/builds``."""

    source: str = Field(description="Contents of src/main.rs.")
    full_compilation: bool | None = Field(
        default=None,
        description="Override the image's full-compilation flag for this session.",
    )
    release: bool = Field(default=False, description="Build the release profile.")
    log_level: LogLevel | None = Field(
        default=None,
        description="Override the wrapper and verifier verbosity.",
    )


class BuildResponse(BaseModel):
    """Response body for ``POST /v1/builds``."""

    exit_code: int
    succeeded: bool
    binary_produced: bool
    timed_out: bool
    stdout: str
    stderr: str
    execution_time_seconds: float


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", response_model=BuildResponse)
async def submit_build(body: BuildRequest, request: Request) -> BuildResponse:
    """Build *source* in a fresh session container and report the outcome.

    Verification failures are not HTTP errors: they come back with the
    build's own exit code and output.
    """
    settings = request.app.state.settings
    sandbox = request.app.state.sandbox

    source_bytes = body.source.encode("utf-8")
    if len(source_bytes) > settings.max_source_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"Source exceeds maximum allowed size "
                f"({len(source_bytes):,} bytes > {settings.max_source_size_bytes:,} bytes)."
            ),
        )

    overrides: dict[str, str] = {}
    if body.full_compilation is not None:
        overrides[FULL_COMPILATION_VAR] = "true" if body.full_compilation else "false"
    if body.log_level is not None:
        overrides[LOG_LEVEL_VAR] = body.log_level.value

    profile = BuildProfile.RELEASE if body.release else BuildProfile.DEBUG
    try:
        result = await sandbox.run(body.source, profile=profile, env_overrides=overrides)
    except docker.errors.DockerException as exc:
        logger.error("Session failed to run: %s", exc)
        raise HTTPException(status_code=503, detail="Playground sandbox unavailable.") from exc

    logger.info(
        "Build finished: exit=%d binary=%s time=%.3fs",
        result.exit_code,
        result.binary_produced,
        result.execution_time_seconds,
    )
    return BuildResponse(
        exit_code=result.exit_code,
        succeeded=result.succeeded,
        binary_produced=result.binary_produced,
        timed_out=result.timed_out,
        stdout=result.stdout,
        stderr=result.stderr,
        execution_time_seconds=result.execution_time_seconds,
    )
