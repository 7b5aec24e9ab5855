"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Header, HTTPException

from scm_gitlab.domain.ports.scm_provider import ScmProvider
from scm_gitlab.infrastructure.config import get_settings
from scm_gitlab.services.gitlab_scm import GitlabScm

_scm: GitlabScm | None = None


async def startup() -> None:
    """Initialise the shared provider — called from the lifespan context manager."""
    global _scm  # noqa: PLW0603

    _scm = GitlabScm(get_settings())


async def shutdown() -> None:
    """Release shared resources."""
    global _scm  # noqa: PLW0603

    if _scm:
        await _scm.close()
        _scm = None


def get_scm() -> ScmProvider:
    """Return the provider built at startup."""
    assert _scm is not None, "startup() was not called"
    return _scm


def get_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the GitLab service token from ``Authorization: Bearer <token>``."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    return token.strip()
