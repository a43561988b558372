"""Analysis request adapter — one schema-constrained Gemini call per recording.

``AudioAnalyzer`` is the seam the controller depends on; tests substitute a
stub. ``GeminiAudioAnalyzer`` is the production implementation.
"""

from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod

import pydantic
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .client import GeminiClient
from .errors import AdapterError, AdapterErrorKind
from .models.extraction import ExtractionResult, extraction_response_schema
from .prompts.extraction import EXTRACTION_INSTRUCTION

logger = logging.getLogger(__name__)


class AnalysisRequest(BaseModel):
    """Everything one Gemini call needs. Built per invocation, never stored."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(min_length=1, repr=False)
    data: str = Field(min_length=1, repr=False, description="Base64-encoded audio bytes")
    mime_type: str = "audio/wav"
    instruction: str = EXTRACTION_INSTRUCTION
    response_schema: dict = Field(default_factory=extraction_response_schema, repr=False)

    @field_validator("data")
    @classmethod
    def validate_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Audio payload is not valid base64: {exc}") from exc
        return value

    @classmethod
    def from_audio(cls, api_key: str, audio: bytes, mime_type: str) -> AnalysisRequest:
        """Encode raw audio bytes into a request."""
        return cls(
            api_key=api_key,
            data=base64.b64encode(audio).decode("ascii"),
            mime_type=mime_type,
        )

    def to_contents(self) -> list[types.Content]:
        """Inline audio part followed by the instruction, in a single user turn."""
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=base64.b64decode(self.data), mime_type=self.mime_type),
                    types.Part(text=self.instruction),
                ],
            )
        ]


class AudioAnalyzer(ABC):
    """Interface for the external extraction capability."""

    @abstractmethod
    async def analyze(self, request: AnalysisRequest) -> ExtractionResult:
        """Return a fully populated result or raise AdapterError."""


def parse_extraction(text: str | None) -> ExtractionResult:
    """Parse the model's raw text into an ExtractionResult.

    Raises:
        AdapterError: EMPTY_RESPONSE, MALFORMED_RESPONSE or SCHEMA_MISMATCH.
    """
    if not text or not text.strip():
        raise AdapterError("No response from AI model", kind=AdapterErrorKind.EMPTY_RESPONSE)
    try:
        return ExtractionResult.model_validate_json(text)
    except pydantic.ValidationError as exc:
        if any(err["type"] == "json_invalid" for err in exc.errors()):
            raise AdapterError(
                f"Gemini returned non-JSON: {text[:200]!r}",
                kind=AdapterErrorKind.MALFORMED_RESPONSE,
            ) from exc
        raise AdapterError(
            f"Schema validation failed: {exc.error_count()} error(s)",
            kind=AdapterErrorKind.SCHEMA_MISMATCH,
        ) from exc


class GeminiAudioAnalyzer(AudioAnalyzer):
    """Transcribe and extract caller details with one Gemini round trip."""

    def __init__(
        self,
        *,
        model: str | None = None,
        thinking_level: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self.model = model
        self.thinking_level = thinking_level
        self.temperature = temperature

    async def analyze(self, request: AnalysisRequest) -> ExtractionResult:
        try:
            raw = await GeminiClient.generate(
                request.to_contents(),
                api_key=request.api_key,
                model=self.model,
                thinking_level=self.thinking_level,
                temperature=self.temperature,
                response_schema=request.response_schema,
            )
        except Exception as exc:
            raise AdapterError(
                f"Gemini request failed: {type(exc).__name__}",
                kind=AdapterErrorKind.TRANSPORT,
            ) from exc
        result = parse_extraction(raw)
        logger.info(
            "Extraction complete (gender=%s, confidence=%.2f, transcript=%d chars)",
            result.gender,
            result.confidence,
            len(result.transcription),
        )
        return result
