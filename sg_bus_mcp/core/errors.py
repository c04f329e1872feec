"""Иерархия исключений SG Bus MCP."""

from __future__ import annotations

from typing import Any


class McpError(Exception):
    """Базовое исключение приложения."""


class UpstreamError(McpError):
    """Ошибка обращения к LTA DataMall (не-2xx статус, сеть, битый JSON)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(McpError):
    """Некорректный JSON-RPC запрос; всегда отдаётся клиенту как объект error."""

    def __init__(self, message: str, *, code: int = -32600, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class SessionError(McpError):
    """Проблема с sessionId; превращается в HTTP-статус до разбора JSON-RPC."""

    status_code = 400


class MissingSessionId(SessionError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Missing sessionId")


class SessionNotFound(SessionError):
    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


__all__ = [
    "McpError",
    "MissingSessionId",
    "ProtocolError",
    "SessionError",
    "SessionNotFound",
    "UpstreamError",
]
