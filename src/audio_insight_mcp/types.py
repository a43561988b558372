"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

ThinkingLevel = Literal["minimal", "low", "medium", "high"]

SessionId = Annotated[str, Field(
    min_length=1,
    description="Session ID returned by audio_session_create",
)]
AudioFilePath = Annotated[str, Field(
    min_length=1,
    description="Path to a local WAV recording",
)]
CsvHeaderTemplate = Annotated[str, Field(
    description="First line of the exported CSV, written verbatim (e.g. '名前, 電話番号, 要約')",
)]
