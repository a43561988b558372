"""Shared Gemini client pool with thinking-level support."""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import types

from .config import VALID_THINKING_LEVELS, get_config

logger = logging.getLogger(__name__)


def _resolve_thinking_level(value: str) -> str:
    """Normalize and validate a thinking level string.

    Raises:
        ValueError: If the level is not in VALID_THINKING_LEVELS.
    """
    level = value.strip().lower()
    if level not in VALID_THINKING_LEVELS:
        allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
        raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
    return level


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key)."""

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        if not api_key:
            raise ValueError("No Gemini API key — pass the user's api_key explicitly")
        if api_key not in cls._clients:
            cls._clients[api_key] = genai.Client(api_key=api_key)
            logger.info("Created Gemini client (key …%s)", api_key[-4:])
        return cls._clients[api_key]

    @classmethod
    async def generate(
        cls,
        contents: Any,
        *,
        api_key: str,
        model: str | None = None,
        thinking_level: str | None = None,
        response_schema: dict | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate text via Gemini with thinking support and optional structured output.

        Issues exactly one ``generate_content`` call. There is no retry: a
        failed analysis is re-attempted by the user, not by the client.

        Args:
            contents: Prompt contents (text or multimodal parts).
            api_key: Credential authorizing the call.
            model: Override model ID (defaults to config's default_model).
            thinking_level: Override thinking level (defaults to config's default).
            response_schema: JSON schema dict to constrain output format.
            temperature: Override temperature (defaults to config's default).
            **kwargs: Forwarded to the underlying generate_content call.

        Returns:
            The model's text response with thinking parts stripped, or ``""``.
        """
        cfg = get_config()
        resolved_model = model or cfg.default_model
        resolved_thinking = _resolve_thinking_level(thinking_level or cfg.default_thinking_level)

        config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_level=resolved_thinking),
            temperature=temperature if temperature is not None else cfg.default_temperature,
        )
        if response_schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = response_schema

        client = cls.get(api_key)
        response = await client.aio.models.generate_content(
            model=resolved_model,
            contents=contents,
            config=config,
            **kwargs,
        )

        # Drop thought parts; keep user-visible text only
        candidate = response.candidates[0] if response.candidates else None
        parts = (candidate.content.parts or []) if candidate and candidate.content else []
        text_parts = [p.text for p in parts if p.text and not getattr(p, "thought", False)]
        return "\n".join(text_parts) if text_parts else (response.text or "")

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for key, client in list(cls._clients.items()):
            try:
                await client.aio.aclose()
            except Exception:
                logger.debug("Async close failed for client …%s", key[-4:], exc_info=True)
            try:
                client.close()
            except Exception:
                logger.debug("Sync close failed for client …%s", key[-4:], exc_info=True)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
