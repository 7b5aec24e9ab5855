"""Port: SCM provider — the capability set the orchestration platform consumes."""

from __future__ import annotations

from typing import Any, Protocol

from scm_gitlab.domain.entities import (
    Author,
    CheckoutCommand,
    CommitDecoration,
    Permissions,
    UrlDecoration,
)


class ScmProvider(Protocol):
    """Abstract contract every source-control provider implements."""

    async def parse_url(self, checkout_url: str, token: str) -> str:
        """Resolve a checkout URL to an SCM URI."""
        ...

    async def get_checkout_command(
        self,
        host: str,
        org: str,
        repo: str,
        branch: str,
        sha: str,
        pr_ref: str | None = None,
    ) -> CheckoutCommand:
        """Return the shell command that checks out ``sha``."""
        ...

    async def decorate_url(self, scm_uri: str, token: str) -> UrlDecoration:
        ...

    async def decorate_commit(self, scm_uri: str, sha: str, token: str) -> CommitDecoration:
        ...

    async def decorate_author(self, username: str, token: str) -> Author:
        ...

    async def get_permissions(self, scm_uri: str, token: str) -> Permissions:
        ...

    async def get_commit_sha(self, scm_uri: str, token: str) -> str:
        """Return the head commit of the branch the SCM URI points at."""
        ...

    async def update_commit_status(
        self,
        scm_uri: str,
        sha: str,
        build_status: str,
        token: str,
        url: str,
        job_name: str | None = None,
    ) -> None:
        ...

    async def get_file(
        self, scm_uri: str, path: str, token: str, ref: str | None = None
    ) -> str:
        """Return the decoded text content of a single file."""
        ...

    async def get_bell_configuration(self) -> dict[str, Any]:
        """Return the OAuth (Bell) provider configuration."""
        ...

    def stats(self) -> dict[str, Any]:
        """Return call statistics of the outbound gateway."""
        ...
