"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any


class CommitStatus(str, Enum):
    """Build outcome reported back to GitLab as a commit status."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"
    RUNNING = "RUNNING"
    QUEUED = "QUEUED"


STATE_MAP = MappingProxyType(
    {
        CommitStatus.SUCCESS.value: "success",
        CommitStatus.RUNNING.value: "pending",
        CommitStatus.QUEUED.value: "pending",
    }
)

DESCRIPTION_MAP = MappingProxyType(
    {
        CommitStatus.SUCCESS.value: "Everything looks good!",
        CommitStatus.FAILURE.value: "Did not work as expected.",
        CommitStatus.ABORTED.value: "Aborted mid-flight",
        CommitStatus.RUNNING.value: "Testing your code...",
        CommitStatus.QUEUED.value: "Looking for a place to park...",
    }
)


def _status_key(build_status: CommitStatus | str) -> str:
    if isinstance(build_status, CommitStatus):
        return build_status.value
    return str(build_status)


def commit_state(build_status: CommitStatus | str) -> str:
    """Map a build status onto a GitLab commit state (unknown → ``failure``)."""
    return STATE_MAP.get(_status_key(build_status), "failure")


def commit_description(build_status: CommitStatus | str) -> str | None:
    return DESCRIPTION_MAP.get(_status_key(build_status))


class _Record:
    """Mixin giving dataclasses a plain-dict view for the API boundary."""

    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True, slots=True)
class RepositoryReference(_Record):
    """Repository coordinates resolved from an SCM URI."""

    host: str
    owner: str
    repo: str
    branch: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class Author(_Record):
    """Display information about a GitLab user."""

    avatar: str
    name: str
    username: str
    url: str


DEFAULT_AUTHOR = Author(
    avatar="https://cd.screwdriver.cd/assets/unknown_user.png",
    name="n/a",
    username="n/a",
    url="https://cd.screwdriver.cd/",
)


@dataclass(frozen=True, slots=True)
class CommitDecoration(_Record):
    author: Author
    message: str
    url: str


@dataclass(frozen=True, slots=True)
class UrlDecoration(_Record):
    branch: str
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class Permissions(_Record):
    admin: bool
    push: bool
    pull: bool


@dataclass(frozen=True, slots=True)
class CheckoutCommand(_Record):
    """A named shell command that checks the source code out."""

    name: str
    command: str
