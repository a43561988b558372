"""Shared test fixtures for audio-insight-mcp."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from audio_insight_mcp.adapter import AnalysisRequest, AudioAnalyzer
from audio_insight_mcp.errors import AdapterError, AdapterErrorKind
from audio_insight_mcp.models.extraction import ExtractionResult
from audio_insight_mcp.models.session import AudioSelection

# Minimal RIFF header; content is never inspected beyond extension/media type.
WAV_BYTES = b"RIFF$\x00\x00\x00WAVEfmt \x10\x00\x00\x00\x01\x00\x01\x00"

TARO = {
    "transcription": "もしもし、山田太郎です。折り返しお願いします。",
    "name": "Taro",
    "phoneNumber": "09012345678",
    "gender": "male",
    "confidence": 0.9,
    "summary": "callback requested",
}


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import audio_insight_mcp.tools as tools_pkg

    modules = [
        importlib.import_module(info.name)
        for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + ".")
    ]
    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("GEMINI_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config singleton between tests."""
    import audio_insight_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture(autouse=True)
def _isolate_export_dir(tmp_path, monkeypatch):
    """Point CSV exports at a temp directory."""
    monkeypatch.setenv("AUDIO_INSIGHT_EXPORT_DIR", str(tmp_path / "exports"))


class StubAnalyzer(AudioAnalyzer):
    """Deterministic analyzer: returns a fixed result or raises a fixed error."""

    def __init__(
        self,
        result: ExtractionResult | None = None,
        error: Exception | None = None,
    ) -> None:
        self.result = result
        self.error = error
        self.requests: list[AnalysisRequest] = []

    async def analyze(self, request: AnalysisRequest) -> ExtractionResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


@pytest.fixture()
def taro_result() -> ExtractionResult:
    return ExtractionResult.model_validate(TARO)


@pytest.fixture()
def wav_selection() -> AudioSelection:
    return AudioSelection(filename="voicemail.wav", mime_type="audio/wav", data=WAV_BYTES)


@pytest.fixture()
def stub_analyzer(taro_result) -> StubAnalyzer:
    return StubAnalyzer(result=taro_result)


@pytest.fixture()
def failing_analyzer() -> StubAnalyzer:
    return StubAnalyzer(
        error=AdapterError("No response from AI model", kind=AdapterErrorKind.EMPTY_RESPONSE)
    )


@pytest.fixture()
def mock_gemini_client():
    """Patch GeminiClient.get() and .generate() for unit tests."""
    with (
        patch("audio_insight_mcp.client.GeminiClient.get") as mock_get,
        patch(
            "audio_insight_mcp.client.GeminiClient.generate", new_callable=AsyncMock
        ) as mock_gen,
    ):
        client = MagicMock()
        mock_get.return_value = client
        yield {
            "get": mock_get,
            "generate": mock_gen,
            "client": client,
        }
