"""Run the GitLab SCM adapter under uvicorn."""

from __future__ import annotations

import logging

import uvicorn

from scm_gitlab.infrastructure.config import get_settings

logger = logging.getLogger("scm_gitlab")


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "Serving GitLab SCM adapter for %s on %s:%d",
        settings.gitlab_base_url,
        settings.host,
        settings.port,
    )
    uvicorn.run(
        "scm_gitlab.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
