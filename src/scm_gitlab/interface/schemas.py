"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, field_validator


class _Stripped(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class ParseUrlRequest(_Stripped):
    """Request body for ``POST /parse-url``."""

    checkout_url: str


class ScmUriRequest(_Stripped):
    scm_uri: str


class DecorateCommitRequest(ScmUriRequest):
    sha: str


class DecorateAuthorRequest(_Stripped):
    username: str


class CheckoutCommandRequest(_Stripped):
    host: str
    org: str
    repo: str
    branch: str
    sha: str
    pr_ref: str | None = None


class CommitStatusRequest(ScmUriRequest):
    """Request body for ``POST /commit-status``.

    ``build_status`` is free-form: anything outside ``CommitStatus``
    is reported to GitLab as a failure.
    """

    sha: str
    build_status: str
    url: str
    job_name: str | None = None


class FileRequest(ScmUriRequest):
    path: str
    ref: str | None = None


class ScmUriResponse(BaseModel):
    scm_uri: str


class CommitShaResponse(BaseModel):
    sha: str


class FileResponse(BaseModel):
    path: str
    content: str


class AuthorResponse(BaseModel):
    avatar: str
    name: str
    username: str
    url: str


class CommitResponse(BaseModel):
    author: AuthorResponse
    message: str
    url: str


class UrlResponse(BaseModel):
    branch: str
    name: str
    url: str


class PermissionsResponse(BaseModel):
    admin: bool
    push: bool
    pull: bool


class CheckoutCommandResponse(BaseModel):
    name: str
    command: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str


class BellConfigurationResponse(BaseModel):
    """OAuth provider settings safe to hand out; the client secret stays in-process."""

    provider: str
    clientId: str
    isSecure: bool
    forceHttps: bool
    config: dict[str, str]
