"""API routes — thin controllers that delegate to the GitLab provider."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from scm_gitlab.domain.ports.scm_provider import ScmProvider
from scm_gitlab.interface.dependencies import get_scm, get_token
from scm_gitlab.interface.schemas import (
    AuthorResponse,
    BellConfigurationResponse,
    CheckoutCommandRequest,
    CheckoutCommandResponse,
    CommitResponse,
    CommitShaResponse,
    CommitStatusRequest,
    DecorateAuthorRequest,
    DecorateCommitRequest,
    FileRequest,
    FileResponse,
    ParseUrlRequest,
    PermissionsResponse,
    ScmUriRequest,
    ScmUriResponse,
    UrlResponse,
)

router = APIRouter()

_ERRORS: dict[int | str, dict[str, Any]] = {
    401: {"description": "Missing bearer token"},
    422: {"description": "Malformed checkout URL or SCM URI"},
    502: {"description": "GitLab lookup failed or is unreachable"},
    503: {"description": "Circuit breaker open"},
}


@router.post("/parse-url", response_model=ScmUriResponse, responses=_ERRORS)
async def parse_url(
    body: ParseUrlRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> ScmUriResponse:
    """Resolve a checkout URL to an SCM URI."""
    return ScmUriResponse(scm_uri=await scm.parse_url(body.checkout_url, token))


@router.post("/checkout-command", response_model=CheckoutCommandResponse)
async def checkout_command(
    body: CheckoutCommandRequest,
    scm: ScmProvider = Depends(get_scm),
) -> CheckoutCommandResponse:
    command = await scm.get_checkout_command(
        host=body.host,
        org=body.org,
        repo=body.repo,
        branch=body.branch,
        sha=body.sha,
        pr_ref=body.pr_ref,
    )
    return CheckoutCommandResponse(**command.to_dict())


@router.post("/decorate/url", response_model=UrlResponse, responses=_ERRORS)
async def decorate_url(
    body: ScmUriRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> UrlResponse:
    decoration = await scm.decorate_url(body.scm_uri, token)
    return UrlResponse(**decoration.to_dict())


@router.post("/decorate/commit", response_model=CommitResponse, responses=_ERRORS)
async def decorate_commit(
    body: DecorateCommitRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> CommitResponse:
    decoration = await scm.decorate_commit(body.scm_uri, body.sha, token)
    return CommitResponse(**decoration.to_dict())


@router.post("/decorate/author", response_model=AuthorResponse, responses=_ERRORS)
async def decorate_author(
    body: DecorateAuthorRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> AuthorResponse:
    author = await scm.decorate_author(body.username, token)
    return AuthorResponse(**author.to_dict())


@router.post("/permissions", response_model=PermissionsResponse, responses=_ERRORS)
async def permissions(
    body: ScmUriRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> PermissionsResponse:
    result = await scm.get_permissions(body.scm_uri, token)
    return PermissionsResponse(**result.to_dict())


@router.post("/commit-sha", response_model=CommitShaResponse, responses=_ERRORS)
async def commit_sha(
    body: ScmUriRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> CommitShaResponse:
    return CommitShaResponse(sha=await scm.get_commit_sha(body.scm_uri, token))


@router.post("/commit-status", status_code=204, responses=_ERRORS)
async def commit_status(
    body: CommitStatusRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> Response:
    await scm.update_commit_status(
        scm_uri=body.scm_uri,
        sha=body.sha,
        build_status=body.build_status,
        token=token,
        url=body.url,
        job_name=body.job_name,
    )
    return Response(status_code=204)


@router.post(
    "/file",
    response_model=FileResponse,
    responses={**_ERRORS, 404: {"description": "File not found"}},
)
async def get_file(
    body: FileRequest,
    token: str = Depends(get_token),
    scm: ScmProvider = Depends(get_scm),
) -> FileResponse:
    content = await scm.get_file(body.scm_uri, body.path, token, ref=body.ref)
    return FileResponse(path=body.path, content=content)


@router.get(
    "/bell-configuration",
    response_model=BellConfigurationResponse,
    responses={401: _ERRORS[401]},
    dependencies=[Depends(get_token)],
)
async def bell_configuration(scm: ScmProvider = Depends(get_scm)) -> BellConfigurationResponse:
    """OAuth provider settings without the client secret."""
    bell = await scm.get_bell_configuration()
    return BellConfigurationResponse.model_validate(bell)


@router.get("/stats")
async def stats(scm: ScmProvider = Depends(get_scm)) -> dict[str, Any]:
    """Outbound call statistics and circuit breaker state."""
    return scm.stats()
