"""Session controller: validates preconditions, dispatches events, calls the analyzer."""

from __future__ import annotations

import logging
from pathlib import PurePath

from .adapter import AnalysisRequest, AudioAnalyzer, GeminiAudioAnalyzer
from .config import get_config
from .errors import ValidationError, categorize_error
from .export import CsvArtifact, build_csv
from .models.session import AudioSelection, SessionState
from .state import (
    AnalysisFailed,
    AnalysisStarted,
    AnalysisSucceeded,
    CredentialChanged,
    CredentialMissing,
    Event,
    FileRejected,
    FileSelected,
    HeaderTemplateChanged,
    Reset,
    reduce,
)

logger = logging.getLogger(__name__)

WAV_MIME_TYPES = frozenset({"audio/wav", "audio/x-wav", "audio/wave", "audio/vnd.wave"})
WAV_EXTENSION = ".wav"

WAV_ONLY_MESSAGE = "WAVファイルのみ対応しています。"
API_KEY_MISSING_MESSAGE = "Gemini APIキーを入力してください。"
ANALYSIS_FAILED_MESSAGE = (
    "音声の解析中にエラーが発生しました。APIキーが正しいか、ファイル形式が適切か確認してください。"
)


def is_wav(selection: AudioSelection) -> bool:
    """True when the declared media type or the filename extension says WAV."""
    mime = selection.mime_type.split(";", 1)[0].strip().lower()
    return mime in WAV_MIME_TYPES or PurePath(selection.filename).suffix.lower() == WAV_EXTENSION


def validate_selection(selection: AudioSelection) -> None:
    """Check *selection* by media type or extension; no header sniffing.

    Raises:
        ValidationError: If *selection* is not a WAV file.
    """
    if not is_wav(selection):
        raise ValidationError(
            f"Unsupported audio file '{selection.filename}' ({selection.mime_type or 'no media type'})"
        )


def require_api_key(api_key: str) -> str:
    """Return the trimmed credential.

    Raises:
        ValidationError: If it is empty or whitespace-only.
    """
    key = api_key.strip()
    if not key:
        raise ValidationError("Gemini API key is missing")
    return key


class SessionController:
    """Owns one ``SessionState`` and drives it through the reducer.

    The analyzer is injected so tests can substitute a deterministic stub.
    """

    def __init__(
        self,
        analyzer: AudioAnalyzer | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.analyzer = analyzer or GeminiAudioAnalyzer()
        if state is None:
            state = SessionState(csv_header_template=get_config().csv_header_template)
        self._state = state

    @property
    def state(self) -> SessionState:
        return self._state

    def dispatch(self, event: Event) -> SessionState:
        self._state = reduce(self._state, event)
        return self._state

    def select_file(self, selection: AudioSelection) -> SessionState:
        """Accept a WAV file (→ ready) or reject anything else (→ failed)."""
        if self._state.is_processing:
            return self._state
        try:
            validate_selection(selection)
        except ValidationError as exc:
            logger.info("Rejected file: %s", exc)
            return self.dispatch(FileRejected(WAV_ONLY_MESSAGE))

        cfg = get_config()
        if selection.size_bytes > cfg.audio_size_warning_mb * 1024 * 1024:
            logger.warning(
                "Selected file %s is %.1f MB (recommended max %d MB)",
                selection.filename,
                selection.size_bytes / 1024 / 1024,
                cfg.audio_size_warning_mb,
            )
        return self.dispatch(FileSelected(selection))

    def set_api_key(self, api_key: str) -> SessionState:
        return self.dispatch(CredentialChanged(api_key))

    def set_csv_header(self, template: str) -> SessionState:
        return self.dispatch(HeaderTemplateChanged(template))

    async def begin_analysis(self) -> SessionState:
        """Run one analysis of the selected file.

        No-op without a file, with a result already present, or while a
        previous analysis is still in flight.
        """
        state = self._state
        if state.is_processing or state.file is None or state.result is not None:
            return state
        try:
            api_key = require_api_key(state.api_key)
        except ValidationError as exc:
            logger.info("Analysis not started: %s", exc)
            return self.dispatch(CredentialMissing(API_KEY_MISSING_MESSAGE))

        selection = state.file
        self.dispatch(AnalysisStarted())
        try:
            request = AnalysisRequest.from_audio(
                api_key, selection.data, selection.mime_type or "audio/wav"
            )
            result = await self.analyzer.analyze(request)
        except Exception as exc:
            category, hint = categorize_error(exc)
            logger.warning(
                "Analysis of %s failed [%s]: %s", selection.filename, category.value, hint,
                exc_info=True,
            )
            return self.dispatch(AnalysisFailed(ANALYSIS_FAILED_MESSAGE))
        return self.dispatch(AnalysisSucceeded(result))

    def reset(self) -> SessionState:
        return self.dispatch(Reset())

    def export_csv(self, *, now: float | None = None) -> CsvArtifact | None:
        """Build the CSV artifact, or None when there is no result yet."""
        state = self._state
        if state.result is None:
            return None
        return build_csv(state.result, state.csv_header_template, now=now)
