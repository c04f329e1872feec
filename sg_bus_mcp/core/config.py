"""Глобальные константы и настройки SG Bus MCP."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger("sg_bus_mcp.core.config")

PROTOCOL_VERSION = "2024-11-05"
SERVER_INFO: Dict[str, str] = {
    "name": "sg-bus-mcp",
    "version": os.getenv("APP_VERSION", "1.0.0"),
}
SERVER_CAPABILITIES: Dict[str, Dict[str, object]] = {
    "tools": {},
}

SESSION_MODES = {"session", "stateless"}

DEFAULT_LTA_API_BASE = "https://datamall2.mytransport.sg/ltaodataservice"
DEFAULT_BASE_PATH = "/api/sse"
DAY_SECONDS = 24 * 60 * 60


def _get_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        logger.warning("Invalid %s=%r, falling back to %s", name, raw, default)
        return default


def _get_int(name: str, default: Optional[int], *, minimum: int = 1) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        logger.warning("Invalid %s=%r, falling back to %s", name, raw, default)
        return default


@dataclass(slots=True)
class ServerSettings:
    """Настройки сервера, получаемые из окружения."""

    lta_api_key: str = ""
    lta_api_base: str = DEFAULT_LTA_API_BASE
    upstream_timeout: float = 10.0
    session_mode: str = "session"
    base_path: str = DEFAULT_BASE_PATH
    heartbeat_interval: float = 15.0
    dataset_ttl: float = float(DAY_SECONDS)
    page_size: int = 500
    max_offset: Optional[int] = None
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def session_routed(self) -> bool:
        return self.session_mode == "session"

    @classmethod
    def from_env(cls) -> "ServerSettings":
        mode = os.getenv("MCP_SESSION_MODE", "session").strip().lower()
        if mode not in SESSION_MODES:
            logger.warning("Unknown MCP_SESSION_MODE=%r, using 'session'", mode)
            mode = "session"

        base_path = os.getenv("MCP_BASE_PATH", DEFAULT_BASE_PATH).strip() or DEFAULT_BASE_PATH
        if not base_path.startswith("/"):
            base_path = "/" + base_path

        return cls(
            lta_api_key=os.getenv("LTA_DATAMALL_KEY", ""),
            lta_api_base=os.getenv("LTA_API_BASE", DEFAULT_LTA_API_BASE).rstrip("/"),
            upstream_timeout=_get_float("LTA_TIMEOUT_SECONDS", 10.0, minimum=0.1),
            session_mode=mode,
            base_path=base_path.rstrip("/") or DEFAULT_BASE_PATH,
            heartbeat_interval=_get_float("MCP_HEARTBEAT_SECONDS", 15.0, minimum=0.01),
            dataset_ttl=_get_float("DATASET_TTL_SECONDS", float(DAY_SECONDS)),
            page_size=_get_int("DATASET_PAGE_SIZE", 500) or 500,
            max_offset=_get_int("DATASET_MAX_OFFSET", None),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_get_int("PORT", 8000) or 8000,
        )


__all__ = [
    "DAY_SECONDS",
    "DEFAULT_BASE_PATH",
    "DEFAULT_LTA_API_BASE",
    "PROTOCOL_VERSION",
    "SERVER_CAPABILITIES",
    "SERVER_INFO",
    "SESSION_MODES",
    "ServerSettings",
]
