"""Structured error handling — exception hierarchy, classification, and tool error model."""

from __future__ import annotations

from enum import Enum

import httpx
from google.genai import errors as genai_errors
from pydantic import BaseModel


class InsightError(Exception):
    """Base class for every failure this package raises on purpose."""


class ValidationError(InsightError):
    """Rejected input: wrong file type or missing credential.

    Recovered locally; no external call is made.
    """


class AdapterErrorKind(str, Enum):
    """Why a Gemini analysis call did not yield an ExtractionResult."""

    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    TRANSPORT = "TRANSPORT"


class AdapterError(InsightError):
    """The external analysis call failed or returned an unusable document."""

    def __init__(self, message: str, *, kind: AdapterErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    API_NOT_FOUND = "API_NOT_FOUND"
    API_UNAVAILABLE = "API_UNAVAILABLE"
    NETWORK_ERROR = "NETWORK_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_UNSUPPORTED = "FILE_UNSUPPORTED"
    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


_ADAPTER_CATEGORIES: dict[AdapterErrorKind, tuple[ErrorCategory, str]] = {
    AdapterErrorKind.EMPTY_RESPONSE: (
        ErrorCategory.EMPTY_RESPONSE,
        "Model returned no text — the audio may be silent or blocked by safety filters",
    ),
    AdapterErrorKind.MALFORMED_RESPONSE: (
        ErrorCategory.MALFORMED_RESPONSE,
        "Model output was not valid JSON",
    ),
    AdapterErrorKind.SCHEMA_MISMATCH: (
        ErrorCategory.SCHEMA_VALIDATION_FAILED,
        "Model JSON did not match the extraction schema",
    ),
}


def _categorize_api_error(error: genai_errors.APIError) -> tuple[ErrorCategory, str]:
    code = error.code or 0
    if code in (401, 403):
        return (
            ErrorCategory.API_PERMISSION_DENIED,
            "API key rejected or lacks permission for this model",
        )
    if code == 429:
        return (
            ErrorCategory.API_QUOTA_EXCEEDED,
            "Rate limit hit — wait and retry, or switch models with infra_configure",
        )
    if code == 400:
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "Bad request — check the API key and that the audio is a valid WAV file",
        )
    if code == 404:
        return (
            ErrorCategory.API_NOT_FOUND,
            "Model not found — check GEMINI_MODEL",
        )
    if code >= 500:
        return (
            ErrorCategory.API_UNAVAILABLE,
            "Gemini service error — try again later",
        )
    return (ErrorCategory.UNKNOWN, str(error))


def categorize_error(error: BaseException) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint.

    An ``AdapterError`` of kind TRANSPORT is classified by its ``__cause__``.
    """
    if isinstance(error, AdapterError):
        if error.kind in _ADAPTER_CATEGORIES:
            return _ADAPTER_CATEGORIES[error.kind]
        if error.__cause__ is not None:
            return categorize_error(error.__cause__)
        return (ErrorCategory.NETWORK_ERROR, str(error))
    if isinstance(error, genai_errors.APIError):
        return _categorize_api_error(error)
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out — try again or check connectivity",
        )
    if isinstance(error, httpx.NetworkError):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Network failure — check connectivity",
        )
    if isinstance(error, FileNotFoundError):
        return (
            ErrorCategory.FILE_NOT_FOUND,
            "File not found — check the path",
        )
    if isinstance(error, KeyError) and "session" in str(error).lower():
        return (
            ErrorCategory.SESSION_NOT_FOUND,
            "Unknown or expired session — create a new one with audio_session_create",
        )
    if isinstance(error, ValidationError):
        s = str(error).lower()
        if "api" in s and "key" in s:
            return (ErrorCategory.CREDENTIAL_MISSING, "Set the Gemini API key first")
        return (ErrorCategory.FILE_UNSUPPORTED, "Only WAV files are supported")
    if isinstance(error, ValueError) and "invalid thinking level" in str(error).lower():
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "Invalid input parameter — check thinking level value",
        )

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: BaseException) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_QUOTA_EXCEEDED,
        ErrorCategory.API_UNAVAILABLE,
        ErrorCategory.NETWORK_ERROR,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.API_QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")
