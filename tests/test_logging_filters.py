"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials():
    """Ensure passwords, JWTs and authorization headers are redacted."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "auth_event",
        extra={
            "password": "hunter22",
            "authorization": "Bearer eyJhbGciOi.secret",
            "jwt_secret": "super-secret-signing-key",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "hunter22" not in output
    assert "eyJhbGciOi" not in output
    assert "super-secret-signing-key" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_account_tokens_by_suffix():
    """Keys ending with _token, _password or _secret are redacted."""

    logger, stream = _capture("test_suffix_redaction")

    logger.info(
        "token_event",
        extra={
            "reset_token": "abc123reset",
            "email_verification_token": "def456verify",
            "admin_password": "letmein",
            "book_id": 42,
        },
    )

    payload = json.loads(stream.getvalue())

    assert payload["reset_token"] == "[REDACTED]"
    assert payload["email_verification_token"] == "[REDACTED]"
    assert payload["admin_password"] == "[REDACTED]"
    assert payload["book_id"] == 42


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "path": "/api/books/search",
            "status_code": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "/api/books/search" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-jwt",
                "user-agent": "pytest",
            },
            "payload": [{"email": "a@example.com", "newPassword": "changed1"}],
        },
    )

    output = stream.getvalue()

    assert "secret-jwt" not in output
    assert "changed1" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output
    assert "a@example.com" in output


def test_request_id_from_context_is_attached():
    """Records logged inside a request carry its id."""

    logger, stream = _capture("test_request_id")
    set_request_id("ctx-req-1")
    try:
        logger.info("inside_request")
    finally:
        clear_request_id()
    logger.info("outside_request")

    inside, outside = [json.loads(line) for line in stream.getvalue().splitlines()]

    assert inside["request_id"] == "ctx-req-1"
    assert "request_id" not in outside


def test_json_formatter_includes_exception():
    logger, stream = _capture("test_exc_info")

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failure")

    payload = json.loads(stream.getvalue())

    assert payload["level"] == "error"
    assert payload["message"] == "failure"
    assert "RuntimeError: boom" in payload["exc_info"]
