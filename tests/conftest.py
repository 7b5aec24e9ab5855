from __future__ import annotations

from typing import Any

import httpx
import pytest

from scm_gitlab.infrastructure.circuit_breaker import CircuitBreakerGateway
from scm_gitlab.infrastructure.config import BreakerOptions, GitlabScmSettings
from scm_gitlab.infrastructure.gitlab_rest_adapter import GitlabRestAdapter
from scm_gitlab.services.gitlab_scm import GitlabScm

TOKEN = "s3cr3t-token"


class FakeGitlab:
    """Routes ``(method, raw path)`` to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        exc: Exception | None = None,
    ) -> None:
        self.routes[(method, path)] = exc if exc is not None else (status, json)

    def paths(self) -> list[str]:
        return [_raw_path(r) for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, _raw_path(request)))
        if route is None:
            return httpx.Response(404, json={"message": "404 Not Found"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        return httpx.Response(status, json=body)


def _raw_path(request: httpx.Request) -> str:
    return request.url.raw_path.decode().split("?", 1)[0]


def make_gateway(fake: FakeGitlab, **options: Any) -> CircuitBreakerGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    return CircuitBreakerGateway(BreakerOptions(**options), client=client)


@pytest.fixture()
def settings() -> GitlabScmSettings:
    return GitlabScmSettings(
        oauth_client_id="client-id",
        oauth_client_secret="client-secret",
        gitlab_host="gitlab.example.com",
        _env_file=None,
    )


@pytest.fixture()
def fake_gitlab() -> FakeGitlab:
    return FakeGitlab()


@pytest.fixture()
def gateway(fake_gitlab: FakeGitlab) -> CircuitBreakerGateway:
    return make_gateway(fake_gitlab)


@pytest.fixture()
def gitlab_adapter(gateway: CircuitBreakerGateway) -> GitlabRestAdapter:
    return GitlabRestAdapter(gateway, "https://gitlab.example.com")


@pytest.fixture()
def scm(settings: GitlabScmSettings, gateway: CircuitBreakerGateway) -> GitlabScm:
    return GitlabScm(settings, gateway=gateway)
