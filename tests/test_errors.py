"""Tests for structured error categorization and retryability flags."""

from __future__ import annotations

import httpx
import pytest
from google.genai import errors as genai_errors

from audio_insight_mcp.errors import (
    AdapterError,
    AdapterErrorKind,
    ValidationError,
    categorize_error,
    make_tool_error,
)


def _api_error(code: int) -> genai_errors.APIError:
    return genai_errors.APIError(code, {"error": {"message": "boom", "status": "X"}})


class TestMakeToolError:
    def test_builtin_timeout_maps_to_network_error(self):
        result = make_tool_error(TimeoutError())
        assert result["category"] == "NETWORK_ERROR"
        assert result["retryable"] is True

    def test_httpx_timeout_maps_to_network_error(self):
        result = make_tool_error(httpx.ReadTimeout("read timed out"))
        assert result["category"] == "NETWORK_ERROR"
        assert result["retryable"] is True

    def test_httpx_network_maps_to_network_error(self):
        result = make_tool_error(httpx.ConnectError("connection refused"))
        assert result["category"] == "NETWORK_ERROR"

    def test_quota_has_retry_after(self):
        result = make_tool_error(_api_error(429))
        assert result["category"] == "API_QUOTA_EXCEEDED"
        assert result["retry_after_seconds"] == 60

    def test_unknown_session(self):
        result = make_tool_error(KeyError("Session abc not found"))
        assert result["category"] == "SESSION_NOT_FOUND"
        assert result["retryable"] is False

    def test_missing_file(self):
        assert make_tool_error(FileNotFoundError("x.wav"))["category"] == "FILE_NOT_FOUND"


class TestCategorizeError:
    @pytest.mark.parametrize("code,category", [
        (400, "API_INVALID_ARGUMENT"),
        (403, "API_PERMISSION_DENIED"),
        (404, "API_NOT_FOUND"),
        (503, "API_UNAVAILABLE"),
    ])
    def test_api_status_codes(self, code, category):
        assert categorize_error(_api_error(code))[0].value == category

    @pytest.mark.parametrize("kind,category", [
        (AdapterErrorKind.EMPTY_RESPONSE, "EMPTY_RESPONSE"),
        (AdapterErrorKind.MALFORMED_RESPONSE, "MALFORMED_RESPONSE"),
        (AdapterErrorKind.SCHEMA_MISMATCH, "SCHEMA_VALIDATION_FAILED"),
    ])
    def test_adapter_kinds(self, kind, category):
        assert categorize_error(AdapterError("x", kind=kind))[0].value == category

    def test_transport_uses_cause(self):
        try:
            try:
                raise _api_error(403)
            except genai_errors.APIError as exc:
                raise AdapterError("failed", kind=AdapterErrorKind.TRANSPORT) from exc
        except AdapterError as err:
            assert categorize_error(err)[0].value == "API_PERMISSION_DENIED"

    def test_transport_without_cause(self):
        err = AdapterError("failed", kind=AdapterErrorKind.TRANSPORT)
        assert categorize_error(err)[0].value == "NETWORK_ERROR"

    def test_validation_errors(self):
        assert categorize_error(ValidationError("Gemini API key is missing"))[0].value == "CREDENTIAL_MISSING"
        assert categorize_error(ValidationError("Unsupported audio file"))[0].value == "FILE_UNSUPPORTED"

    def test_unknown(self):
        cat, hint = categorize_error(RuntimeError("weird"))
        assert cat.value == "UNKNOWN"
        assert hint == "weird"
