"""Extraction models — the structured output schema sent to Gemini.

``ExtractionResult`` doubles as the response contract: its JSON schema is
passed as ``response_json_schema`` so the model can only answer with an
object holding exactly these six fields.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female", "unknown"]


class ExtractionResult(BaseModel):
    """Transcription plus caller details extracted from one recording.

    Every field is required. Unknown values are an empty string (or
    ``"unknown"`` for gender), never a missing key.
    """

    model_config = ConfigDict(frozen=True)

    transcription: str = Field(description="Full verbatim transcription of the audio")
    name: str = Field(description="Caller's name, empty string if unknown")
    phone_number: str = Field(
        alias="phoneNumber",
        description="Callback phone number, empty string if unknown",
    )
    gender: Gender = Field(description="Estimated gender of the caller")
    confidence: float = Field(ge=0.0, le=1.0, description="Extraction confidence between 0 and 1")
    summary: str = Field(description="Short summary of the message")


def extraction_response_schema() -> dict:
    """JSON schema for ``ExtractionResult`` keyed by wire names (``phoneNumber``)."""
    return ExtractionResult.model_json_schema(by_alias=True)
