"""GitLab REST API (v3) adapter — one method per outbound endpoint.

Every call goes through the circuit-breaker gateway and is validated before
its body is parsed.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from scm_gitlab.domain.exceptions import ScmFileNotFoundError, ScmLookupError
from scm_gitlab.infrastructure.circuit_breaker import CircuitBreakerGateway, RequestSpec
from scm_gitlab.infrastructure.response_validator import check_response_error

_API_PREFIX = "/api/v3"


def _segment(value: str) -> str:
    """URL-encode a single path segment (``/`` included)."""
    return quote(str(value), safe="")


class GitlabRestAdapter:
    """Thin client over the GitLab endpoints the SCM provider needs."""

    def __init__(self, gateway: CircuitBreakerGateway, base_url: str) -> None:
        self._gateway = gateway
        self._api_url = f"{base_url.rstrip('/')}{_API_PREFIX}"

    async def lookup_project(self, project_path: str, token: str) -> dict[str, Any]:
        """GET /projects/:namespace%2Frepo → project."""
        return await self._get(f"/projects/{_segment(project_path)}", token)

    async def get_project(self, project_id: str, token: str) -> dict[str, Any]:
        """GET /projects/:id → project."""
        return await self._get(f"/projects/{_segment(project_id)}", token)

    async def get_branch(self, project_id: str, branch: str, token: str) -> dict[str, Any]:
        """GET /projects/:id/repository/branches/:branch → branch."""
        return await self._get(
            f"/projects/{_segment(project_id)}/repository/branches/{_segment(branch)}",
            token,
        )

    async def get_commit(self, project_id: str, sha: str, token: str) -> dict[str, Any]:
        """GET /projects/:id/repository/commits/:sha → commit."""
        return await self._get(
            f"/projects/{_segment(project_id)}/repository/commits/{_segment(sha)}",
            token,
        )

    async def get_user(self, username: str, token: str) -> dict[str, Any]:
        """GET /users/username=:username → user."""
        return await self._get(f"/users/username={_segment(username)}", token)

    async def get_file(
        self, project_id: str, file_path: str, ref: str, token: str
    ) -> dict[str, Any]:
        """GET /projects/:id/repository/files?file_path=&ref= → file (encoded content)."""
        return await self._get(
            f"/projects/{_segment(project_id)}/repository/files",
            token,
            params={"file_path": file_path, "ref": ref},
            error_cls=ScmFileNotFoundError,
        )

    async def post_status(
        self, project_id: str, sha: str, params: dict[str, str], token: str
    ) -> None:
        """POST /projects/:id/statuses/:sha with the status in the query string."""
        response = await self._gateway.execute(
            RequestSpec(
                method="POST",
                url=f"{self._api_url}/projects/{_segment(project_id)}/statuses/{_segment(sha)}",
                token=token,
                params=params,
            )
        )
        check_response_error(response)

    async def _get(
        self,
        endpoint: str,
        token: str,
        params: dict[str, str] | None = None,
        error_cls: type[ScmLookupError] = ScmLookupError,
    ) -> dict[str, Any]:
        response: httpx.Response = await self._gateway.execute(
            RequestSpec(method="GET", url=f"{self._api_url}{endpoint}", token=token, params=params)
        )
        check_response_error(response, error_cls)
        try:
            data: dict[str, Any] = response.json()
        except ValueError as exc:
            raise ScmLookupError(
                f"GitLab returned a non-JSON body for {endpoint}.",
                status_code=response.status_code,
            ) from exc
        return data
