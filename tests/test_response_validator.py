from __future__ import annotations

import httpx
import pytest

from scm_gitlab.domain.exceptions import ScmFileNotFoundError, ScmLookupError
from scm_gitlab.infrastructure.response_validator import check_response_error


@pytest.mark.parametrize("status", [200, 201, 204, 299])
def test_success_passes(status):
    check_response_error(httpx.Response(status))


def test_fallback_message_and_reason():
    response = httpx.Response(500, json={"message": "boom"})
    with pytest.raises(ScmLookupError) as info:
        check_response_error(response)
    assert str(info.value) == 'SCM service unavailable (500). Reason "{"message": "boom"}"'
    assert info.value.status_code == 500


def test_structured_error_fields():
    response = httpx.Response(
        403,
        json={"error": {"message": "Forbidden.", "detail": {"required": "api scope"}}},
    )
    with pytest.raises(ScmLookupError, match='^Forbidden. Reason "api scope"$'):
        check_response_error(response)


def test_non_json_body():
    response = httpx.Response(502, text="<html>bad gateway</html>")
    with pytest.raises(ScmLookupError, match=r"SCM service unavailable \(502\)\."):
        check_response_error(response)


def test_custom_error_class():
    with pytest.raises(ScmFileNotFoundError):
        check_response_error(httpx.Response(404, json={}), ScmFileNotFoundError)


def test_lookup_error_is_builtin_lookup_error():
    with pytest.raises(LookupError):
        check_response_error(httpx.Response(404))
