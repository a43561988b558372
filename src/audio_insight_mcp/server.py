"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .client import GeminiClient
from .tools.audio import audio_server
from .tools.infra import infra_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — enables tracing, tears down shared Gemini clients."""
    tracing.setup()
    yield {}
    tracing.shutdown()
    closed = await GeminiClient.close_all()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "audio-insight",
    instructions=(
        "Voicemail and call-recording extraction. Create a session, set the "
        "Gemini API key, select a WAV file, then analyze to get a transcription, "
        "caller name, callback number, gender, confidence and summary. "
        "Export the result as CSV."
    ),
    lifespan=_lifespan,
)

app.mount(audio_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``audio-insight-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
