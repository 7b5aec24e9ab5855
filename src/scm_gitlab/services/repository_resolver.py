"""Repository resolver — checkout URL ⇄ SCM URI ⇄ repository coordinates."""

from __future__ import annotations

import logging

from scm_gitlab.domain.entities import RepositoryReference
from scm_gitlab.domain.exceptions import ScmLookupError
from scm_gitlab.domain.value_objects import DEFAULT_BRANCH, CheckoutUrl, ScmUri
from scm_gitlab.infrastructure.gitlab_rest_adapter import GitlabRestAdapter

logger = logging.getLogger(__name__)


class RepositoryResolver:
    """Maps between the identifier forms using the project endpoints.

    Both lookups are idempotent; parse failures surface before any network call.
    """

    def __init__(self, gitlab: GitlabRestAdapter, default_branch: str = DEFAULT_BRANCH) -> None:
        self._gitlab = gitlab
        self._default_branch = default_branch

    async def resolve_checkout_url(self, checkout_url: str, token: str) -> ScmUri:
        """Resolve ``https://host/namespace/repo#branch`` to ``host:projectId:branch``."""
        url = CheckoutUrl.from_string(checkout_url, default_branch=self._default_branch)
        project = await self._gitlab.lookup_project(url.project_path, token)

        project_id = project.get("id")
        if project_id is None:
            raise ScmLookupError(f"GitLab did not return an id for project {url.project_path}.")

        scm_uri = ScmUri.build(url.hostname, project_id, url.branch)
        logger.debug("Resolved %s to %s", url.project_path, scm_uri)
        return scm_uri

    async def resolve_scm_uri(self, scm_uri: str | ScmUri, token: str) -> RepositoryReference:
        """Look the project up by id and split its namespaced path into owner/repo."""
        uri = scm_uri if isinstance(scm_uri, ScmUri) else ScmUri.from_string(scm_uri)
        project = await self._gitlab.get_project(uri.project_id, token)

        path = project.get("path_with_namespace") or ""
        owner, _, repo = path.rpartition("/")
        if not owner or not repo:
            raise ScmLookupError(
                f"GitLab returned an unexpected path for project {uri.project_id}: '{path}'"
            )

        return RepositoryReference(host=uri.host, owner=owner, repo=repo, branch=uri.branch)
