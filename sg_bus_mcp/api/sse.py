"""SSE-транспорт: кадрирование событий, heartbeat и очистка при отключении."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from sg_bus_mcp.core.session import SessionChannel, SessionRegistry

logger = logging.getLogger("sg_bus_mcp.api.sse")

HEARTBEAT_FRAME = ": heartbeat\n\n"

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

SSE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    **CORS_HEADERS,
}


def format_event(event: str, data: str) -> str:
    """`event: <name>\\ndata: <payload>\\n\\n`; многострочные данные режутся на строки data."""
    lines = data.splitlines() or [""]
    return f"event: {event}\n" + "".join(f"data: {line}\n" for line in lines) + "\n"


def message_event(payload: Any) -> str:
    return format_event("message", json.dumps(payload, ensure_ascii=False, separators=(",", ":")))


class SseConnection:
    """Одно живое SSE-соединение.

    Генератор `stream()` владеет читающей стороной канала, отправляющая
    сторона зарегистрирована в `SessionRegistry`. Закрытие с любой стороны
    (отмена генератора при отключении клиента, отказ канала при heartbeat)
    сводится к `close()`, который срабатывает ровно один раз.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        base_url: str,
        *,
        heartbeat_interval: float,
        session_routed: bool = True,
    ) -> None:
        self._registry = registry
        self._base_url = base_url
        self._heartbeat_interval = heartbeat_interval
        self._session_routed = session_routed
        self._channel: Optional[SessionChannel] = None
        self._heartbeat: Optional[asyncio.Task[None]] = None
        self._closed = False
        self.session_id: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def endpoint_url(self) -> str:
        if self._session_routed and self.session_id:
            return f"{self._base_url}?sessionId={self.session_id}"
        return self._base_url

    async def stream(self) -> AsyncIterator[str]:
        self.session_id = self._registry.create()
        channel = SessionChannel()
        self._registry.attach(self.session_id, channel)
        self._channel = channel
        self._heartbeat = asyncio.create_task(self._heartbeat_loop(channel))
        logger.info("SSE connection opened: %s", self.session_id)

        try:
            yield format_event("endpoint", self.endpoint_url())
            yield HEARTBEAT_FRAME
            while True:
                frame = await channel.receive()
                if frame is None:
                    break
                yield frame
        finally:
            self.close()

    async def _heartbeat_loop(self, channel: SessionChannel) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            if not channel.send(HEARTBEAT_FRAME):
                logger.debug("Heartbeat failed for %s, closing", self.session_id)
                self.close()
                return

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        heartbeat = self._heartbeat
        if heartbeat is not None and heartbeat is not asyncio.current_task():
            heartbeat.cancel()
        if self._channel is not None:
            self._channel.close()
        if self.session_id is not None:
            self._registry.remove(self.session_id)
        logger.info("SSE connection closed: %s", self.session_id)


__all__ = [
    "CORS_HEADERS",
    "HEARTBEAT_FRAME",
    "SSE_HEADERS",
    "SseConnection",
    "format_event",
    "message_event",
]
