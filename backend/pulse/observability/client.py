"""Lazily constructed Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from pulse.core.config import Settings, settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_client: Optional["Opik"] = None
_client_lock = Lock()
_init_attempted = False


def init_opik(source: Settings | None = None) -> Optional["Opik"]:
    """Build the client at most once per process; None whenever tracing is off."""
    global _client, _init_attempted

    config = source or settings
    with _client_lock:
        if _init_attempted:
            return _client
        _init_attempted = True

        if Opik is None or not config.opik_enabled:
            return None
        if not config.opik_api_key:
            logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; tracing disabled")
            return None

        try:
            _client = Opik(project_name=config.opik_project, api_key=config.opik_api_key)
        except Exception as exc:  # pragma: no cover - third-party init
            logger.warning("Failed to initialize Opik, tracing will be disabled: %s", exc)
            return None

    logger.info("Opik tracing enabled (project=%s)", config.opik_project)
    return _client


def get_opik_client() -> Optional["Opik"]:
    if _client is not None:
        return _client
    return init_opik()


def reset_opik_client() -> None:
    """Forget the cached client so the next call re-reads settings."""
    global _client, _init_attempted

    with _client_lock:
        _client = None
        _init_attempted = False
