"""GitLab SCM provider — the operations the orchestration platform calls.

Every operation is a fresh linear pipeline: decode the SCM URI, call GitLab
through the gateway, validate, shape the result.  No state is carried between
calls except the gateway's breaker.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Any

from scm_gitlab.domain.entities import (
    DEFAULT_AUTHOR,
    Author,
    CheckoutCommand,
    CommitDecoration,
    Permissions,
    UrlDecoration,
    commit_description,
    commit_state,
)
from scm_gitlab.domain.exceptions import ScmFileNotFoundError, ScmLookupError
from scm_gitlab.domain.value_objects import ScmUri
from scm_gitlab.infrastructure.circuit_breaker import CircuitBreakerGateway
from scm_gitlab.infrastructure.config import GitlabScmSettings
from scm_gitlab.infrastructure.gitlab_rest_adapter import GitlabRestAdapter
from scm_gitlab.services.checkout_command import build_checkout_command
from scm_gitlab.services.repository_resolver import RepositoryResolver

logger = logging.getLogger(__name__)

STATUS_CONTEXT = "Screwdriver"


class GitlabScm:
    """Concrete ``ScmProvider`` backed by the GitLab REST API.

    Parameters
    ----------
    settings:
        Validated adapter configuration.
    gateway:
        Optional pre-built gateway (tests inject one wrapping a mock
        transport); by default one is built from ``settings.breaker_options``.
    """

    def __init__(
        self,
        settings: GitlabScmSettings,
        gateway: CircuitBreakerGateway | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway or CircuitBreakerGateway(settings.breaker_options)
        self._gitlab = GitlabRestAdapter(self._gateway, settings.gitlab_base_url)
        self._resolver = RepositoryResolver(self._gitlab, settings.default_branch)

    # ── Repository identity ─────────────────────────────────────────────

    async def parse_url(self, checkout_url: str, token: str) -> str:
        """Resolve a checkout URL to ``host:projectId:branch``."""
        scm_uri = await self._resolver.resolve_checkout_url(checkout_url, token)
        return str(scm_uri)

    async def decorate_url(self, scm_uri: str, token: str) -> UrlDecoration:
        ref = await self._resolver.resolve_scm_uri(scm_uri, token)
        return UrlDecoration(
            branch=ref.branch,
            name=ref.full_name,
            url=f"https://{ref.host}/{ref.full_name}/tree/{ref.branch}",
        )

    async def get_checkout_command(
        self,
        host: str,
        org: str,
        repo: str,
        branch: str,
        sha: str,
        pr_ref: str | None = None,
    ) -> CheckoutCommand:
        return build_checkout_command(
            host=host,
            org=org,
            repo=repo,
            branch=branch,
            sha=sha,
            username=self._settings.username,
            email=self._settings.email,
            pr_ref=pr_ref,
        )

    # ── Commits and authors ─────────────────────────────────────────────

    async def decorate_commit(self, scm_uri: str, sha: str, token: str) -> CommitDecoration:
        """Commit message, link and author for ``sha``.

        The repository and commit lookups run concurrently; the author lookup
        needs the commit's author login, so it is only issued once the commit
        has been fetched.
        """
        uri = ScmUri.from_string(scm_uri)
        ref, commit = await asyncio.gather(
            self._resolver.resolve_scm_uri(uri, token),
            self._gitlab.get_commit(uri.project_id, sha, token),
        )

        author_login = (commit.get("author") or {}).get("username")
        if author_login:
            author = await self.decorate_author(author_login, token)
        else:
            author = DEFAULT_AUTHOR

        return CommitDecoration(
            author=author,
            message=commit.get("message", ""),
            url=f"https://{ref.host}/{ref.full_name}/commit/{sha}",
        )

    async def decorate_author(self, username: str, token: str) -> Author:
        user = await self._gitlab.get_user(username, token)
        return Author(
            avatar=user.get("avatar_url", ""),
            name=user.get("name", ""),
            username=user.get("username", username),
            url=user.get("web_url", ""),
        )

    async def get_commit_sha(self, scm_uri: str, token: str) -> str:
        """Head commit id of the branch the SCM URI points at."""
        uri = ScmUri.from_string(scm_uri)
        branch = await self._gitlab.get_branch(uri.project_id, uri.branch, token)
        sha = (branch.get("commit") or {}).get("id")
        if not sha:
            raise ScmLookupError(
                f"GitLab did not return a head commit for branch {uri.branch} of project {uri.project_id}."
            )
        return sha

    async def update_commit_status(
        self,
        scm_uri: str,
        sha: str,
        build_status: str,
        token: str,
        url: str,
        job_name: str | None = None,
    ) -> None:
        uri = ScmUri.from_string(scm_uri)
        params = {
            "context": f"{STATUS_CONTEXT}/{job_name}" if job_name else STATUS_CONTEXT,
            "state": commit_state(build_status),
            "target_url": url,
        }
        description = commit_description(build_status)
        if description is not None:
            params["description"] = description

        await self._gitlab.post_status(uri.project_id, sha, params, token)
        logger.info("Set %s status on %s@%s", params["state"], uri.project_id, sha)

    # ── Files and permissions ───────────────────────────────────────────

    async def get_file(
        self, scm_uri: str, path: str, token: str, ref: str | None = None
    ) -> str:
        """Text content of *path* at *ref* (defaults to the SCM URI's branch)."""
        uri = ScmUri.from_string(scm_uri)
        data = await self._gitlab.get_file(uri.project_id, path, ref or uri.branch, token)
        return _decode_content(data, path)

    async def get_permissions(self, scm_uri: str, token: str) -> Permissions:
        """Permissions of the token's owner on the repository.

        The project lookup proves read access; GitLab access levels are not
        translated yet, so full access is reported once it succeeds.
        """
        uri = ScmUri.from_string(scm_uri)
        await self._gitlab.get_project(uri.project_id, token)
        # TODO: map the project's permissions.project_access.access_level onto admin/push/pull
        return Permissions(admin=True, push=True, pull=True)

    # ── OAuth and stats ─────────────────────────────────────────────────

    async def get_bell_configuration(self) -> dict[str, Any]:
        """OAuth provider configuration for the orchestrator's login flow."""
        return {
            "provider": "gitlab",
            "clientId": self._settings.oauth_client_id.get_secret_value(),
            "clientSecret": self._settings.oauth_client_secret.get_secret_value(),
            "isSecure": self._settings.https,
            "forceHttps": self._settings.https,
            "config": {"uri": self._settings.gitlab_base_url},
        }

    def stats(self) -> dict[str, Any]:
        return self._gateway.stats().to_dict()

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        await self._gateway.aclose()


def _decode_content(data: dict[str, Any], path: str) -> str:
    content = data.get("content")
    if content is None:
        raise ScmFileNotFoundError(f"GitLab returned no content for {path}.")

    encoding = data.get("encoding") or "text"
    if encoding == "base64":
        try:
            return base64.b64decode(content).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise ScmFileNotFoundError(f"Could not decode base64 content of {path}.") from exc
    return content
