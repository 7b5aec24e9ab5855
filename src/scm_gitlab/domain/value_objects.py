"""Value objects — self-validating domain primitives.

``CheckoutUrl`` is the human-authored repository address and ``ScmUri`` the
opaque ``host:projectId:branch`` identifier handed around by the orchestrator.
Both are pure: no network I/O, deterministic, immutable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from scm_gitlab.domain.exceptions import MalformedURIError, MalformedURLError

DEFAULT_BRANCH = "master"

_CHECKOUT_URL_RE = re.compile(
    r"^(?:https?://(?:[^@/:\s]+@)?(?P<http_host>[^/:\s]+)/"
    r"|git@(?P<ssh_host>[^/:\s]+):)"
    r"(?P<owner>[^\s:#]+)/(?P<repo>[^/\s:#]+?)(?:\.git)?/?"
    r"(?:#(?P<branch>[^\s:]+))?$"
)

_SCM_URI_SEPARATOR = ":"


@dataclass(frozen=True, slots=True)
class CheckoutUrl:
    """Parsed checkout URL.

    Accepts ``https://host/namespace/repo[.git][#branch]`` as well as the
    ``git@host:namespace/repo.git`` form.  Nested groups are kept in *owner*
    (``group/subgroup``); *branch* falls back to the default branch.
    """

    hostname: str
    owner: str
    repo: str
    branch: str

    @classmethod
    def from_string(cls, url: str, default_branch: str = DEFAULT_BRANCH) -> CheckoutUrl:
        """Parse and validate a raw checkout URL."""
        url = (url or "").strip()
        match = _CHECKOUT_URL_RE.match(url)
        if not match:
            raise MalformedURLError(
                f"Invalid checkout URL: '{url}'. "
                "Expected format: https://<host>/<namespace>/<repo>[#<branch>]"
            )
        return cls(
            hostname=match["http_host"] or match["ssh_host"],
            owner=match["owner"],
            repo=match["repo"],
            branch=match["branch"] or default_branch,
        )

    @property
    def project_path(self) -> str:
        """``namespace/repo`` as GitLab names the project."""
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class ScmUri:
    """Opaque repository identifier: ``host:projectId:branch``.

    *project_id* is the numeric id GitLab assigns, so the identifier survives
    renames.  Changing branch means building a new ``ScmUri``.
    """

    host: str
    project_id: str
    branch: str

    def __post_init__(self) -> None:
        for name in ("host", "project_id", "branch"):
            value = getattr(self, name)
            if not value:
                raise MalformedURIError(f"SCM URI field '{name}' must not be empty.")
            if _SCM_URI_SEPARATOR in value:
                raise MalformedURIError(
                    f"SCM URI field '{name}' must not contain '{_SCM_URI_SEPARATOR}': '{value}'"
                )

    @classmethod
    def build(cls, host: str, project_id: str | int, branch: str) -> ScmUri:
        return cls(host=host, project_id=str(project_id), branch=branch)

    @classmethod
    def from_string(cls, uri: str) -> ScmUri:
        """Decode an SCM URI; exactly three non-empty fields are required."""
        parts = (uri or "").split(_SCM_URI_SEPARATOR)
        if len(parts) != 3:
            raise MalformedURIError(
                f"Invalid SCM URI: '{uri}'. Expected format: <host>:<projectId>:<branch>"
            )
        host, project_id, branch = parts
        return cls(host=host, project_id=project_id, branch=branch)

    def with_branch(self, branch: str) -> ScmUri:
        return ScmUri(host=self.host, project_id=self.project_id, branch=branch)

    def __str__(self) -> str:
        return _SCM_URI_SEPARATOR.join((self.host, self.project_id, self.branch))
