"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}

DEFAULT_CSV_HEADER = "名前, 電話番号, 要約"


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``GEMINI_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    The Gemini credential is deliberately absent: it is supplied per session
    by the user and never read from the environment.
    """

    default_model: str = Field(default="gemini-3-flash-preview")
    default_thinking_level: str = Field(default="low")
    default_temperature: float = Field(default=1.0)
    csv_header_template: str = Field(default=DEFAULT_CSV_HEADER)
    export_dir: str = Field(default="")
    max_sessions: int = Field(default=50)
    session_timeout_hours: int = Field(default=2)
    audio_size_warning_mb: int = Field(default=10)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="audio-insight-mcp")

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("max_sessions", "session_timeout_hours", "audio_size_warning_mb")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("default_temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        export_default = str(Path.home() / "audio-insight-exports")
        return cls(
            default_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
            default_thinking_level=os.getenv("GEMINI_THINKING_LEVEL", "low"),
            default_temperature=float(os.getenv("GEMINI_TEMPERATURE", "1.0")),
            csv_header_template=os.getenv("AUDIO_INSIGHT_CSV_HEADER", DEFAULT_CSV_HEADER),
            export_dir=os.getenv("AUDIO_INSIGHT_EXPORT_DIR", export_default),
            max_sessions=int(os.getenv("AUDIO_INSIGHT_MAX_SESSIONS", "50")),
            session_timeout_hours=int(os.getenv("AUDIO_INSIGHT_SESSION_TIMEOUT_HOURS", "2")),
            audio_size_warning_mb=int(os.getenv("AUDIO_INSIGHT_SIZE_WARNING_MB", "10")),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GEMINI_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "audio-insight-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (used by the ``infra_configure`` tool)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
