"""Render session state into display values and a JSON-safe dict."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .models.extraction import ExtractionResult
from .models.session import AudioSelection, SessionState

UNKNOWN_LABEL = "不明"
EMPTY_TRANSCRIPTION = "（文字起こし内容がありません）"

_GENDER_LABELS = {"male": "男性", "female": "女性"}


def format_confidence(confidence: float) -> str:
    """Confidence as a whole percentage, rounded half up (0.873 -> ``87%``)."""
    percent = (Decimal(str(confidence)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{percent}%"


def gender_label(gender: str) -> str:
    return _GENDER_LABELS.get(gender, UNKNOWN_LABEL)


def render_file(selection: AudioSelection) -> dict:
    return {
        "name": selection.filename,
        "mime_type": selection.mime_type,
        "size_bytes": selection.size_bytes,
        "size_mb": f"{selection.size_bytes / 1024 / 1024:.2f} MB",
    }


def render_result(result: ExtractionResult) -> dict:
    """Raw fields (wire names) plus their display strings."""
    return {
        **result.model_dump(by_alias=True),
        "display": {
            "name": result.name or UNKNOWN_LABEL,
            "phone_number": result.phone_number or UNKNOWN_LABEL,
            "gender": gender_label(result.gender),
            "confidence": format_confidence(result.confidence),
            "summary": result.summary,
            "transcription": result.transcription or EMPTY_TRANSCRIPTION,
        },
    }


def render_state(state: SessionState) -> dict:
    """JSON-serialisable view of *state*. The credential is never included."""
    return {
        "phase": state.phase.value,
        "file": render_file(state.file) if state.file else None,
        "api_key_set": bool(state.api_key.strip()),
        "csv_header_template": state.csv_header_template,
        "is_processing": state.is_processing,
        "result": render_result(state.result) if state.result else None,
        "error": state.error,
    }
