"""Classify GitLab responses before anything looks at their body."""

from __future__ import annotations

import json
from typing import Any

import httpx

from scm_gitlab.domain.exceptions import ScmLookupError


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _reach(body: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(body, dict):
            return None
        body = body.get(key)
    return body


def error_message(response: httpx.Response) -> str:
    """Compose ``<errorMessage> Reason "<errorReason>"`` for a failed response."""
    body = _response_body(response)
    message = _reach(body, "error", "message")
    if message is None:
        message = f"SCM service unavailable ({response.status_code})."
    reason = _reach(body, "error", "detail", "required")
    if reason is None:
        reason = json.dumps(body)
    return f'{message} Reason "{reason}"'


def check_response_error(
    response: httpx.Response,
    error_cls: type[ScmLookupError] = ScmLookupError,
) -> None:
    """Raise *error_cls* unless the status code is 2xx."""
    if 200 <= response.status_code < 300:
        return
    raise error_cls(error_message(response), status_code=response.status_code)
