"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
Messages never carry the service token.
"""

from __future__ import annotations


class ScmError(Exception):
    """Base exception for the entire adapter."""


# ── Input validation ────────────────────────────────────────────────────────


class MalformedURLError(ScmError):
    """The supplied checkout URL does not match the expected pattern."""


class MalformedURIError(ScmError):
    """The supplied SCM URI is not a ``host:projectId:branch`` triple."""


# ── Provider errors ─────────────────────────────────────────────────────────


class ScmLookupError(ScmError, LookupError):
    """GitLab answered with a non-2xx status code."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScmFileNotFoundError(ScmLookupError):
    """A requested file could not be fetched from the repository."""


# ── Resilience errors ───────────────────────────────────────────────────────


class TransportError(ScmError):
    """Network-level fault (connection error, timeout) talking to GitLab."""


class BreakerOpenError(ScmError):
    """The circuit breaker is open; the call failed fast without touching the network."""
