"""Tests for HTTP failure classification."""

from __future__ import annotations

import pytest

from sermon_annotator.llm.exceptions import (
    AuthenticationError,
    ErrorClass,
    classify_http_error,
    parse_retry_after,
)


@pytest.mark.parametrize(
    ('status', 'headers', 'expected'),
    [
        (429, {}, ErrorClass.RATE_LIMITED),
        (529, {}, ErrorClass.OVERLOADED),
        (503, {}, ErrorClass.OVERLOADED),
        (500, {}, ErrorClass.RETRYABLE),
        (408, {}, ErrorClass.RETRYABLE),
        (400, {'x-should-retry': 'true'}, ErrorClass.RETRYABLE),
        (500, {'x-should-retry': 'false'}, ErrorClass.UNRECOVERABLE),
        (400, {}, ErrorClass.UNRECOVERABLE),
        (404, {}, ErrorClass.UNRECOVERABLE),
    ],
)
def test_status_codes_map_to_classes(status: int, headers: dict[str, str], expected: ErrorClass) -> None:
    error = classify_http_error('boom', status_code=status, headers=headers, client_type='claude')
    assert error.classification is expected
    assert error.status_code == status


def test_auth_statuses_become_authentication_errors() -> None:
    error = classify_http_error('denied', status_code=401)
    assert isinstance(error, AuthenticationError)
    assert not error.is_retryable()


def test_rate_limit_carries_retry_hint() -> None:
    error = classify_http_error('slow down', status_code=429, headers={'retry-after': '3'})
    assert error.retry_after == 3.0


def test_retry_after_ms_takes_precedence() -> None:
    assert parse_retry_after({'retry-after-ms': '1500', 'retry-after': '9'}) == 1.5
    assert parse_retry_after({'retry-after': 'Wed, 21 Oct 2015 07:28:00 GMT'}) is None
    assert parse_retry_after(None) is None
