"""Pure session reducer: ``reduce(state, event) -> state``.

Events that are illegal in the current phase return the state unchanged,
so ``result``/``error`` exclusivity and the processing window hold no
matter what order callers dispatch in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .models.extraction import ExtractionResult
from .models.session import AudioSelection, SessionState


@dataclass(frozen=True)
class FileSelected:
    selection: AudioSelection


@dataclass(frozen=True)
class FileRejected:
    message: str


@dataclass(frozen=True)
class CredentialChanged:
    api_key: str


@dataclass(frozen=True)
class HeaderTemplateChanged:
    template: str


@dataclass(frozen=True)
class CredentialMissing:
    message: str


@dataclass(frozen=True)
class AnalysisStarted:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    result: ExtractionResult


@dataclass(frozen=True)
class AnalysisFailed:
    message: str


@dataclass(frozen=True)
class Reset:
    pass


Event = Union[
    FileSelected,
    FileRejected,
    CredentialChanged,
    HeaderTemplateChanged,
    CredentialMissing,
    AnalysisStarted,
    AnalysisSucceeded,
    AnalysisFailed,
    Reset,
]


def reduce(state: SessionState, event: Event) -> SessionState:
    """Apply *event* to *state* and return the next state."""
    if isinstance(event, CredentialChanged):
        return state.model_copy(update={"api_key": event.api_key, "error": None})
    if isinstance(event, HeaderTemplateChanged):
        return state.model_copy(update={"csv_header_template": event.template})

    if state.is_processing:
        if isinstance(event, AnalysisSucceeded):
            return state.model_copy(
                update={"is_processing": False, "result": event.result, "error": None}
            )
        if isinstance(event, AnalysisFailed):
            return state.model_copy(
                update={"is_processing": False, "result": None, "error": event.message}
            )
        # No cancellation: selection, reset and re-dispatch wait for the call to settle.
        return state

    if isinstance(event, FileSelected):
        return state.model_copy(update={"file": event.selection, "result": None, "error": None})
    if isinstance(event, FileRejected):
        return state.model_copy(update={"file": None, "result": None, "error": event.message})
    if isinstance(event, CredentialMissing):
        return state.model_copy(update={"result": None, "error": event.message})
    if isinstance(event, AnalysisStarted):
        if state.file is None or state.result is not None:
            return state
        return state.model_copy(update={"is_processing": True, "error": None})
    if isinstance(event, Reset):
        return state.model_copy(
            update={"file": None, "result": None, "error": None, "is_processing": False}
        )
    return state
