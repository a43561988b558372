"""Session models: the immutable state value and the selected audio file."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import DEFAULT_CSV_HEADER
from .extraction import ExtractionResult


class Phase(str, Enum):
    """Where a session sits in the analysis lifecycle."""

    IDLE = "idle"
    READY = "ready"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AudioSelection(BaseModel):
    """A user-chosen audio file held in memory until the session drops it."""

    model_config = ConfigDict(frozen=True)

    filename: str
    mime_type: str = ""
    data: bytes = Field(repr=False)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class SessionState(BaseModel):
    """Single source of truth for one session.

    Frozen: every transition goes through ``state.reduce`` and yields a new
    value. ``result`` and ``error`` are mutually exclusive.
    """

    model_config = ConfigDict(frozen=True)

    file: AudioSelection | None = None
    api_key: str = Field(default="", repr=False)
    csv_header_template: str = DEFAULT_CSV_HEADER
    is_processing: bool = False
    result: ExtractionResult | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> SessionState:
        if self.result is not None and self.error is not None:
            raise ValueError("result and error cannot both be set")
        return self

    @property
    def phase(self) -> Phase:
        if self.is_processing:
            return Phase.PROCESSING
        if self.result is not None:
            return Phase.COMPLETED
        if self.error is not None:
            return Phase.FAILED
        if self.file is not None:
            return Phase.READY
        return Phase.IDLE
