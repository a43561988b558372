"""MLflow tracing integration.

Provides two instrumentation layers:

1. **Autolog** — ``mlflow.gemini.autolog()`` patches the google-genai SDK to
   capture every ``generate_content`` call as a ``CHAT_MODEL`` span.
2. **Tool spans** — the ``trace()`` decorator wraps MCP tool entrypoints,
   producing ``TOOL`` root spans that parent the autolog child spans.

Configuration is read from :class:`~audio_insight_mcp.config.ServerConfig`.

Env vars (all optional):
    MLFLOW_TRACKING_URI: Where to store traces. Empty = tracing disabled.
    MLFLOW_EXPERIMENT_NAME: Experiment name (default ``audio-insight-mcp``).
    GEMINI_TRACING_ENABLED: Set to ``"false"`` to force-disable even with a URI.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

import mlflow

from .config import get_config

logger = logging.getLogger(__name__)

SECRET_PARAMS = frozenset({"api_key"})
REDACTED = "***"


def is_enabled() -> bool:
    """Return True when tracing is configured and not explicitly disabled."""
    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Drop-in replacement for ``@mlflow.trace``; identity when tracing is off.

    Arguments named in ``SECRET_PARAMS`` are recorded as ``REDACTED`` in the
    span inputs.

    Usage::

        @trace(name="audio_analyze", span_type="TOOL")
        async def audio_analyze(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    if func is None:
        return lambda f: trace(f, name=name, span_type=span_type, attributes=attributes)

    secret = SECRET_PARAMS & inspect.signature(func).parameters.keys()
    if not secret:
        return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)
    return _trace_redacted(
        func, secret, name=name or func.__name__, span_type=span_type or "UNKNOWN", attributes=attributes
    )


def _trace_redacted(
    func: Callable,
    secret: frozenset[str],
    *,
    name: str,
    span_type: str,
    attributes: dict[str, Any] | None,
) -> Callable:
    """Wrap an async *func* in a span whose inputs mask the *secret* arguments."""
    sig = inspect.signature(func)

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        bound = sig.bind(*args, **kwargs)
        bound.apply_defaults()
        inputs = {k: REDACTED if k in secret else v for k, v in bound.arguments.items()}
        with mlflow.start_span(name=name, span_type=span_type, attributes=attributes) as span:
            span.set_inputs(inputs)
            result = await func(*args, **kwargs)
            span.set_outputs(result)
            return result

    return wrapper


def setup() -> None:
    """Configure MLflow tracking and enable Gemini autologging.

    No-op when ``is_enabled()`` returns False. Failures are logged, not raised.
    """
    if not is_enabled():
        return

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        mlflow.gemini.autolog()
        logger.info(
            "MLflow tracing enabled (uri=%s, experiment=%s)",
            cfg.mlflow_tracking_uri,
            cfg.mlflow_experiment_name,
        )
    except Exception:
        logger.warning("MLflow tracing setup failed — continuing without tracing", exc_info=True)


def shutdown() -> None:
    """Flush pending async traces. No-op when tracing is off."""
    if not is_enabled():
        return

    try:
        mlflow.flush_trace_async_logging()
        logger.info("MLflow traces flushed")
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
