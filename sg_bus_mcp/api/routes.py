"""FastAPI-маршруты MCP: SSE-поток, приём JSON-RPC сообщений, preflight."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from sg_bus_mcp.api.dispatcher import APPLICATION_ERROR, McpDispatcher
from sg_bus_mcp.api.sse import CORS_HEADERS, SSE_HEADERS, SseConnection, message_event
from sg_bus_mcp.core.config import ServerSettings
from sg_bus_mcp.core.errors import MissingSessionId, SessionError, SessionNotFound
from sg_bus_mcp.core.session import SessionRegistry
from sg_bus_mcp.models.json_rpc import json_rpc_error

logger = logging.getLogger("sg_bus_mcp.api.routes")


def _json(content: Dict[str, Any], *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _require_session(sessions: SessionRegistry, session_id: Optional[str]) -> str:
    if not session_id:
        raise MissingSessionId()
    if sessions.lookup(session_id) is None:
        raise SessionNotFound(session_id)
    return session_id


def build_router(
    *,
    dispatcher: McpDispatcher,
    sessions: SessionRegistry,
    settings: ServerSettings,
) -> APIRouter:
    """Собираем роутер под один режим сессий: `session` или `stateless`."""
    router = APIRouter()
    base_path = settings.base_path

    @router.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "sessions": len(sessions), "mode": settings.session_mode}

    @router.get(base_path)
    async def open_stream(request: Request) -> StreamingResponse:
        connection = SseConnection(
            sessions,
            str(request.url.replace(query="")),
            heartbeat_interval=settings.heartbeat_interval,
            session_routed=settings.session_routed,
        )
        return StreamingResponse(
            connection.stream(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @router.options(base_path)
    async def preflight() -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    @router.post(base_path)
    async def post_message(request: Request) -> JSONResponse:
        session_id: Optional[str] = None
        if settings.session_routed:
            try:
                session_id = _require_session(sessions, request.query_params.get("sessionId"))
            except SessionError as exc:
                return _json({"error": str(exc)}, status_code=exc.status_code)

        try:
            message = json.loads(await request.body())
        except ValueError as exc:
            logger.warning("Error processing message: %s", exc)
            # протокол требует 200 и разбираемый конверт даже для битого тела
            error = json_rpc_error(APPLICATION_ERROR, f"Failed to process message: {exc}")
            return _json(error.model_dump())

        reply = await dispatcher.dispatch(message)

        if session_id is None:
            if reply is None:
                return _json({"success": True})
            return _json(reply.model_dump())

        if reply is not None and not sessions.deliver(session_id, message_event(reply.model_dump())):
            logger.info("Session %s closed before response id=%s was delivered", session_id, reply.id)
        return _json({"success": True}, status_code=202)

    return router


__all__ = ["build_router"]
