"""FastAPI application for the GitLab SCM adapter."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI

from scm_gitlab.domain.ports.scm_provider import ScmProvider
from scm_gitlab.interface.dependencies import get_scm, shutdown, startup
from scm_gitlab.interface.error_handlers import register_error_handlers
from scm_gitlab.interface.routes import router


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup()
    try:
        yield
    finally:
        await shutdown()


async def _health(scm: ScmProvider = Depends(get_scm)) -> dict[str, str]:
    # Liveness only: an open breaker means GitLab is unreachable, not that we are down.
    return {"status": "ok", "breaker": scm.stats()["state"]}


def create_app() -> FastAPI:
    app = FastAPI(
        title="GitLab SCM Adapter",
        version="1.0.0",
        description=(
            "Lets a CI/CD orchestrator use a GitLab instance as its source "
            "control provider: repository resolution, commit decoration, "
            "commit statuses and file fetches."
        ),
        lifespan=_lifespan,
    )
    register_error_handlers(app)
    app.include_router(router)
    app.add_api_route("/health", _health, methods=["GET"], include_in_schema=False)
    return app
