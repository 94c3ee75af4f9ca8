"""FastAPI application entry point.

The lifespan loads :class:`Settings` and creates the
:class:`PlaygroundSandbox`; both live in ``app.state``.  The Docker client
is created lazily, so the app starts even when the daemon is down and
reports that through ``/ready``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from prusti_playground.api.router import api_router
from prusti_playground.config import Settings
from prusti_playground.logging import configure_logging
from prusti_playground.sandbox import PlaygroundSandbox

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan -- set up shared resources unless already provided."""
    settings: Settings = getattr(app.state, "settings", None) or Settings()
    configure_logging(settings.log_level)
    logger.info("Starting prusti-playground API (image=%s)", settings.image_tag)

    app.state.settings = settings
    if getattr(app.state, "sandbox", None) is None:
        app.state.sandbox = PlaygroundSandbox(settings)

    try:
        yield
    finally:
        logger.info("Shutdown complete")


def create_app(
    settings: Settings | None = None,
    sandbox: PlaygroundSandbox | None = None,
) -> FastAPI:
    app = FastAPI(
        title="prusti-playground",
        description="Verified builds in disposable playground containers.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sandbox = sandbox
    app.include_router(api_router)
    return app


app = create_app()
