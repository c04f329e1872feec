"""Хранилище и утилиты для управления SSE-сессиями MCP."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from sg_bus_mcp.core.errors import SessionNotFound

logger = logging.getLogger("sg_bus_mcp.core.session")


class SessionChannel:
    """Исходящий канал одного SSE-соединения.

    Отправляющая сторона (диспетчер, heartbeat) кладёт готовые кадры через
    `send`, читающая сторона (генератор SSE-потока) забирает их `receive`.
    После `close` отправка молча игнорируется, а `receive` возвращает None.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(frame)
        return True

    async def receive(self) -> Optional[str]:
        if self._closed:
            return None
        frame = await self._queue.get()
        if frame is None:
            return None
        return frame

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # будим читателя, если он ждёт на пустой очереди
        self._queue.put_nowait(None)


@dataclass
class Session:
    """Серверное состояние одного открытого SSE-соединения."""

    id: str
    channel: Optional[SessionChannel] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """Единственный владелец связки sessionId → канал.

    Все операции выполняются под мьютексом, поэтому реестр безопасен и при
    обращении из пула потоков.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self) -> str:
        with self._lock:
            session_id = uuid4().hex
            while session_id in self._sessions:
                session_id = uuid4().hex
            self._sessions[session_id] = Session(id=session_id)
        logger.info("Session created: %s", session_id)
        return session_id

    def attach(self, session_id: str, channel: SessionChannel) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            session.channel = channel

    def lookup(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def deliver(self, session_id: str, frame: str) -> bool:
        """Положить кадр в канал сессии; для исчезнувшей сессии это no-op."""
        with self._lock:
            session = self._sessions.get(session_id)
            channel = session.channel if session is not None else None
            if channel is None:
                logger.debug("Dropping frame for inactive session %s", session_id)
                return False
            return channel.send(frame)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.channel is not None:
            session.channel.close()
        logger.info("Session removed: %s", session_id)
        return True

    def close_all(self) -> int:
        with self._lock:
            session_ids: List[str] = list(self._sessions)
        return sum(1 for session_id in session_ids if self.remove(session_id))


__all__ = ["Session", "SessionChannel", "SessionRegistry"]
