from __future__ import annotations

import base64
from urllib.parse import parse_qs

import pytest

from scm_gitlab.domain.entities import DEFAULT_AUTHOR, Author, Permissions
from scm_gitlab.domain.exceptions import (
    BreakerOpenError,
    MalformedURIError,
    ScmFileNotFoundError,
    ScmLookupError,
)
from scm_gitlab.services.gitlab_scm import GitlabScm

from conftest import TOKEN, make_gateway

SCM_URI = "gitlab.example.com:42:dev"
PROJECT = {"id": 42, "path_with_namespace": "group/proj"}


def _query(request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}


@pytest.mark.asyncio
async def test_parse_url(scm, fake_gitlab):
    fake_gitlab.add("GET", "/api/v3/projects/group%2Fproj", json={"id": 42})

    assert await scm.parse_url("https://gitlab.example.com/group/proj#dev", TOKEN) == SCM_URI


@pytest.mark.asyncio
async def test_decorate_url(scm, fake_gitlab):
    fake_gitlab.add("GET", "/api/v3/projects/42", json=PROJECT)

    decoration = await scm.decorate_url(SCM_URI, TOKEN)

    assert decoration.to_dict() == {
        "branch": "dev",
        "name": "group/proj",
        "url": "https://gitlab.example.com/group/proj/tree/dev",
    }


class TestDecorateCommit:
    @pytest.mark.asyncio
    async def test_with_author(self, scm, fake_gitlab):
        fake_gitlab.add("GET", "/api/v3/projects/42", json=PROJECT)
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/commits/abc123",
            json={"id": "abc123", "message": "Fix things", "author": {"username": "alice"}},
        )
        fake_gitlab.add(
            "GET",
            "/api/v3/users/username=alice",
            json={
                "avatar_url": "https://gitlab.example.com/a.png",
                "name": "Alice",
                "username": "alice",
                "web_url": "https://gitlab.example.com/alice",
            },
        )

        decoration = await scm.decorate_commit(SCM_URI, "abc123", TOKEN)

        assert decoration.message == "Fix things"
        assert decoration.url == "https://gitlab.example.com/group/proj/commit/abc123"
        assert decoration.author == Author(
            avatar="https://gitlab.example.com/a.png",
            name="Alice",
            username="alice",
            url="https://gitlab.example.com/alice",
        )
        assert fake_gitlab.paths()[-1] == "/api/v3/users/username=alice"

    @pytest.mark.asyncio
    async def test_without_author_uses_default(self, scm, fake_gitlab):
        fake_gitlab.add("GET", "/api/v3/projects/42", json=PROJECT)
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/commits/abc123",
            json={"id": "abc123", "message": "Anonymous", "author_name": "someone"},
        )

        decoration = await scm.decorate_commit(SCM_URI, "abc123", TOKEN)

        assert decoration.author == DEFAULT_AUTHOR
        assert not any("/users/" in path for path in fake_gitlab.paths())

    @pytest.mark.asyncio
    async def test_missing_commit(self, scm, fake_gitlab):
        fake_gitlab.add("GET", "/api/v3/projects/42", json=PROJECT)

        with pytest.raises(ScmLookupError):
            await scm.decorate_commit(SCM_URI, "nope", TOKEN)


@pytest.mark.asyncio
async def test_decorate_author(scm, fake_gitlab):
    fake_gitlab.add(
        "GET",
        "/api/v3/users/username=bob",
        json={"avatar_url": "a", "name": "Bob", "username": "bob", "web_url": "u"},
    )

    author = await scm.decorate_author("bob", TOKEN)

    assert author.to_dict() == {"avatar": "a", "name": "Bob", "username": "bob", "url": "u"}


class TestGetCommitSha:
    @pytest.mark.asyncio
    async def test_returns_head(self, scm, fake_gitlab):
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/branches/dev",
            json={"name": "dev", "commit": {"id": "deadbeef"}},
        )

        assert await scm.get_commit_sha(SCM_URI, TOKEN) == "deadbeef"

    @pytest.mark.asyncio
    async def test_branch_name_is_encoded(self, scm, fake_gitlab):
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/branches/feature%2Fx",
            json={"commit": {"id": "cafe"}},
        )

        assert await scm.get_commit_sha("gitlab.example.com:42:feature/x", TOKEN) == "cafe"

    @pytest.mark.asyncio
    async def test_branch_without_commit(self, scm, fake_gitlab):
        fake_gitlab.add(
            "GET", "/api/v3/projects/42/repository/branches/dev", json={"name": "dev"}
        )

        with pytest.raises(ScmLookupError, match="head commit"):
            await scm.get_commit_sha(SCM_URI, TOKEN)

    @pytest.mark.asyncio
    async def test_missing_branch(self, scm, fake_gitlab):
        with pytest.raises(ScmLookupError):
            await scm.get_commit_sha(SCM_URI, TOKEN)


class TestUpdateCommitStatus:
    @pytest.mark.asyncio
    async def test_success_with_job_name(self, scm, fake_gitlab):
        fake_gitlab.add("POST", "/api/v3/projects/42/statuses/abc123", status=201, json={})

        await scm.update_commit_status(
            SCM_URI, "abc123", "SUCCESS", TOKEN, url="https://cd.example.com/b/1", job_name="main"
        )

        assert _query(fake_gitlab.requests[0]) == {
            "context": "Screwdriver/main",
            "description": "Everything looks good!",
            "state": "success",
            "target_url": "https://cd.example.com/b/1",
        }

    @pytest.mark.parametrize(
        ("build_status", "state"),
        [("RUNNING", "pending"), ("QUEUED", "pending"), ("FAILURE", "failure"), ("ABORTED", "failure")],
    )
    @pytest.mark.asyncio
    async def test_state_mapping(self, scm, fake_gitlab, build_status, state):
        fake_gitlab.add("POST", "/api/v3/projects/42/statuses/abc123", status=201, json={})

        await scm.update_commit_status(SCM_URI, "abc123", build_status, TOKEN, url="u")

        query = _query(fake_gitlab.requests[0])
        assert query["state"] == state
        assert query["context"] == "Screwdriver"

    @pytest.mark.asyncio
    async def test_unknown_status_is_failure(self, scm, fake_gitlab):
        fake_gitlab.add("POST", "/api/v3/projects/42/statuses/abc123", status=201, json={})

        await scm.update_commit_status(SCM_URI, "abc123", "WEIRD", TOKEN, url="u")

        query = _query(fake_gitlab.requests[0])
        assert query["state"] == "failure"
        assert "description" not in query

    @pytest.mark.asyncio
    async def test_rejected(self, scm, fake_gitlab):
        fake_gitlab.add("POST", "/api/v3/projects/42/statuses/abc123", status=401, json={})

        with pytest.raises(ScmLookupError, match=r"\(401\)"):
            await scm.update_commit_status(SCM_URI, "abc123", "SUCCESS", TOKEN, url="u")


class TestGetFile:
    @pytest.mark.asyncio
    async def test_defaults_to_uri_branch(self, scm, fake_gitlab):
        content = base64.b64encode(b"jobs:\n  main: {}\n").decode()
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/files",
            json={"content": content, "encoding": "base64"},
        )

        assert await scm.get_file(SCM_URI, "screwdriver.yaml", TOKEN) == "jobs:\n  main: {}\n"
        assert _query(fake_gitlab.requests[0]) == {"file_path": "screwdriver.yaml", "ref": "dev"}

    @pytest.mark.asyncio
    async def test_explicit_ref(self, scm, fake_gitlab):
        fake_gitlab.add(
            "GET",
            "/api/v3/projects/42/repository/files",
            json={"content": "plain", "encoding": "text"},
        )

        assert await scm.get_file(SCM_URI, "a.txt", TOKEN, ref="abc123") == "plain"
        assert _query(fake_gitlab.requests[0])["ref"] == "abc123"

    @pytest.mark.asyncio
    async def test_not_found(self, scm, fake_gitlab):
        with pytest.raises(ScmFileNotFoundError):
            await scm.get_file(SCM_URI, "missing.yaml", TOKEN)

    @pytest.mark.asyncio
    async def test_malformed_uri(self, scm, fake_gitlab):
        with pytest.raises(MalformedURIError):
            await scm.get_file("bad-uri", "a.txt", TOKEN)
        assert fake_gitlab.requests == []


@pytest.mark.asyncio
async def test_get_permissions(scm, fake_gitlab):
    fake_gitlab.add("GET", "/api/v3/projects/42", json=PROJECT)

    assert await scm.get_permissions(SCM_URI, TOKEN) == Permissions(admin=True, push=True, pull=True)


@pytest.mark.asyncio
async def test_get_permissions_requires_access(scm, fake_gitlab):
    fake_gitlab.add("GET", "/api/v3/projects/42", status=404, json={"message": "404 Project Not Found"})

    with pytest.raises(ScmLookupError):
        await scm.get_permissions(SCM_URI, TOKEN)


@pytest.mark.asyncio
async def test_get_checkout_command_uses_git_identity(scm):
    command = await scm.get_checkout_command(
        host="gitlab.example.com", org="group", repo="proj", branch="dev", sha="abc123"
    )

    assert command.name == "sd-checkout-code"
    assert "git config user.name sd-buildbot" in command.command
    assert "git config user.email dev-null@screwdriver.cd" in command.command


@pytest.mark.asyncio
async def test_bell_configuration(scm):
    assert await scm.get_bell_configuration() == {
        "provider": "gitlab",
        "clientId": "client-id",
        "clientSecret": "client-secret",
        "isSecure": False,
        "forceHttps": False,
        "config": {"uri": "https://gitlab.example.com"},
    }


@pytest.mark.asyncio
async def test_breaker_opens_across_operations(settings, fake_gitlab):
    fake_gitlab.add("GET", "/api/v3/projects/42", status=500, json={})
    scm = GitlabScm(settings, gateway=make_gateway(fake_gitlab, failure_threshold=1))

    with pytest.raises(ScmLookupError):
        await scm.decorate_url(SCM_URI, TOKEN)
    with pytest.raises(BreakerOpenError):
        await scm.get_commit_sha(SCM_URI, TOKEN)

    assert len(fake_gitlab.requests) == 1
    assert scm.stats()["state"] == "open"
    assert scm.stats()["rejections"] == 1
