"""Infrastructure tools — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config, update_config
from ..errors import make_tool_error
from ..tracing import trace
from ..types import ThinkingLevel

infra_server = FastMCP("infra")


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    model: Annotated[str | None, Field(description="Gemini model ID for audio analysis")] = None,
    thinking_level: ThinkingLevel | None = None,
    temperature: Annotated[float | None, Field(ge=0.0, le=2.0, description="Sampling temperature")] = None,
) -> dict:
    """Reconfigure the analysis model at runtime.

    Changes take effect for the next audio_analyze call in every session.
    Call with no arguments to read the current configuration.

    Returns:
        Dict with current_config.
    """
    try:
        overrides: dict[str, object] = {}
        if model is not None:
            overrides["default_model"] = model
        if thinking_level is not None:
            overrides["default_thinking_level"] = thinking_level
        if temperature is not None:
            overrides["default_temperature"] = temperature

        cfg = update_config(**overrides) if overrides else get_config()
        return {"current_config": cfg.model_dump()}
    except Exception as exc:
        return make_tool_error(exc)
