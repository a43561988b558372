"""Audio extraction tools — 8 tools on a FastMCP sub-server.

Each tool drives one session's controller and returns the rendered state,
so a client can re-render its form from any response.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config
from ..errors import make_tool_error
from ..export import write_csv
from ..models.session import AudioSelection
from ..render import render_state
from ..sessions import session_store
from ..tracing import trace
from ..types import AudioFilePath, CsvHeaderTemplate, SessionId

logger = logging.getLogger(__name__)
audio_server = FastMCP("audio")


def _load_selection(file_path: str, mime_type: str | None) -> AudioSelection:
    """Read a local file into memory. Type checking is left to the controller."""
    p = Path(file_path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")
    if not p.is_file():
        raise ValueError(f"Not a file: {file_path}")
    declared = mime_type or mimetypes.guess_type(p.name)[0] or ""
    return AudioSelection(filename=p.name, mime_type=declared, data=p.read_bytes())


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=False))
@trace(name="audio_session_create", span_type="TOOL")
async def audio_session_create(
    csv_header: Annotated[CsvHeaderTemplate | None, Field(
        description="Initial CSV header line (defaults to AUDIO_INSIGHT_CSV_HEADER)",
    )] = None,
) -> dict:
    """Open a new analysis session in the idle phase.

    Returns:
        Dict with session_id and the rendered state.
    """
    session = session_store.create(csv_header_template=csv_header)
    logger.info("Created audio session %s", session.session_id)
    return {"session_id": session.session_id, **render_state(session.controller.state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
@trace(name="audio_session_state", span_type="TOOL")
async def audio_session_state(session_id: SessionId) -> dict:
    """Return the current state of a session without changing it."""
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    return {"session_id": session_id, **render_state(session.controller.state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=False))
@trace(name="audio_select_file", span_type="TOOL")
async def audio_select_file(
    session_id: SessionId,
    file_path: AudioFilePath,
    mime_type: Annotated[str | None, Field(
        description="Declared media type; guessed from the extension when omitted",
    )] = None,
) -> dict:
    """Select a WAV recording for the session.

    Non-WAV files move the session to the failed phase with an inline
    error and leave no file selected. Selecting a new WAV clears any
    previous result or error.

    Args:
        session_id: Session to update.
        file_path: Local path to the recording.
        mime_type: Optional media type override.

    Returns:
        Dict with the rendered state.
    """
    try:
        session = session_store.require(session_id)
        selection = _load_selection(file_path, mime_type)
    except (KeyError, OSError, ValueError) as exc:
        return make_tool_error(exc)
    state = session.controller.select_file(selection)
    return {"session_id": session_id, **render_state(state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=False))
@trace(name="audio_set_api_key", span_type="TOOL")
async def audio_set_api_key(
    session_id: SessionId,
    api_key: Annotated[str, Field(description="Gemini API key; kept in memory for this session only")],
) -> dict:
    """Set the Gemini credential used by audio_analyze. Clears any inline error."""
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    state = session.controller.set_api_key(api_key)
    return {"session_id": session_id, **render_state(state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=False))
@trace(name="audio_set_csv_header", span_type="TOOL")
async def audio_set_csv_header(session_id: SessionId, template: CsvHeaderTemplate) -> dict:
    """Change the header line written by audio_export_csv."""
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    state = session.controller.set_csv_header(template)
    return {"session_id": session_id, **render_state(state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=True))
@trace(name="audio_analyze", span_type="TOOL")
async def audio_analyze(session_id: SessionId) -> dict:
    """Transcribe the selected recording and extract caller details with Gemini.

    Makes exactly one Gemini call. Does nothing when no file is selected,
    a result already exists, or an analysis is in flight. Failures end in
    the failed phase with a generic message; details go to the server log.

    Returns:
        Dict with the rendered state (``result`` populated on success).
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    state = await session.controller.begin_analysis()
    return {"session_id": session_id, **render_state(state)}


@audio_server.tool(
    annotations=ToolAnnotations(readOnlyHint=False, idempotentHint=True, openWorldHint=False)
)
@trace(name="audio_reset", span_type="TOOL")
async def audio_reset(session_id: SessionId) -> dict:
    """Drop the file, result and error. Credential and CSV header are kept."""
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    state = session.controller.reset()
    return {"session_id": session_id, **render_state(state)}


@audio_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=False))
@trace(name="audio_export_csv", span_type="TOOL")
async def audio_export_csv(
    session_id: SessionId,
    output_dir: Annotated[str | None, Field(
        description="Directory for the CSV (defaults to AUDIO_INSIGHT_EXPORT_DIR)",
    )] = None,
) -> dict:
    """Write the result as ``extraction_result_<timestamp>.csv`` (UTF-8 with BOM).

    Returns:
        Dict with exported flag, and path/filename when a file was written.
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    artifact = session.controller.export_csv()
    if artifact is None:
        return {"session_id": session_id, "exported": False}
    try:
        path = write_csv(artifact, output_dir or get_config().export_dir)
    except OSError as exc:
        return make_tool_error(exc)
    return {
        "session_id": session_id,
        "exported": True,
        "filename": artifact.filename,
        "path": str(path),
    }
