"""Маршрутизация JSON-RPC методов MCP."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from sg_bus_mcp.core.config import PROTOCOL_VERSION, SERVER_CAPABILITIES, SERVER_INFO
from sg_bus_mcp.core.errors import ProtocolError, UpstreamError
from sg_bus_mcp.models.json_rpc import (
    InitializeParams,
    JsonRpcRequest,
    JsonRpcResponse,
    RpcReply,
    ToolCallResult,
    json_rpc_error,
)
from sg_bus_mcp.tools.registry import ToolHandler, ToolSpec

logger = logging.getLogger("sg_bus_mcp.api.dispatcher")

METHOD_NOT_FOUND = -32601
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
APPLICATION_ERROR = -32000

NOTIFICATIONS = {"initialized", "notifications/initialized", "notifications/cancelled"}

MethodHandler = Callable[[Dict[str, Any], Any], Awaitable[RpcReply]]


class McpDispatcher:
    """Единая точка входа: декодированное сообщение → ответ или None.

    Никогда не бросает исключений наружу: любые сбои превращаются
    в JSON-RPC объект error.
    """

    def __init__(
        self,
        *,
        tools: Dict[str, ToolSpec],
        handlers: Dict[str, ToolHandler],
    ) -> None:
        self._tools = tools
        self._handlers = handlers
        self._methods: Dict[str, MethodHandler] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
        }

    async def dispatch(self, message: Any) -> Optional[RpcReply]:
        if not isinstance(message, dict):
            return json_rpc_error(INVALID_REQUEST, "Invalid Request: expected a JSON object")
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as exc:
            details = [error.get("msg") for error in exc.errors()]
            return json_rpc_error(
                INVALID_REQUEST,
                "Invalid Request",
                data=details,
                request_id=message.get("id"),
            )

        if request.is_notification:
            if request.method not in NOTIFICATIONS:
                logger.debug("Ignoring notification %s", request.method)
            return None

        handler = self._methods.get(request.method)
        if handler is None:
            return json_rpc_error(
                METHOD_NOT_FOUND,
                f"Method not found: {request.method}",
                request_id=request.id,
            )

        try:
            params = request.params if isinstance(request.params, dict) else {}
            return await handler(params, request.id)
        except ProtocolError as exc:
            return json_rpc_error(exc.code, str(exc), data=exc.data, request_id=request.id)
        except Exception as exc:
            logger.exception("Unhandled error while processing %s", request.method)
            return json_rpc_error(
                APPLICATION_ERROR,
                str(exc) or "Unknown error",
                request_id=request.id,
            )

    async def _handle_initialize(self, params: Dict[str, Any], request_id: Any) -> RpcReply:
        try:
            init = InitializeParams.model_validate(params)
        except ValidationError:
            # клиент прислал что-то своё: версию сервера это не меняет
            init = InitializeParams()
        logger.info(
            "initialize from %s (protocol %s)",
            init.clientInfo.get("name", "unknown"),
            init.protocolVersion,
        )
        result = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": SERVER_CAPABILITIES,
            "serverInfo": SERVER_INFO,
        }
        return JsonRpcResponse(result=result, id=request_id)

    async def _handle_ping(self, params: Dict[str, Any], request_id: Any) -> RpcReply:
        return JsonRpcResponse(result={}, id=request_id)

    async def _handle_tools_list(self, params: Dict[str, Any], request_id: Any) -> RpcReply:
        result = {"tools": [spec.as_mcp_dict() for spec in self._tools.values()]}
        return JsonRpcResponse(result=result, id=request_id)

    async def _handle_tools_call(self, params: Dict[str, Any], request_id: Any) -> RpcReply:
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(name, str):
            raise ProtocolError("Invalid params: 'name' must be a string", code=INVALID_PARAMS)
        if not isinstance(arguments, dict):
            raise ProtocolError("Invalid params: 'arguments' must be an object", code=INVALID_PARAMS)

        spec = self._tools.get(name)
        handler = self._handlers.get(name)
        if spec is None or handler is None:
            # неизвестный инструмент - это текстовый результат, а не ошибка протокола
            result = ToolCallResult.from_text(f"Unknown tool: {name}")
            return JsonRpcResponse(result=result.model_dump(), id=request_id)

        missing = spec.missing_arguments(arguments)
        if missing:
            raise ProtocolError(
                f"Invalid params: missing required argument(s): {', '.join(missing)}",
                code=INVALID_PARAMS,
                data={"tool": name, "missing": missing},
            )

        try:
            text = await handler(arguments)
        except UpstreamError as exc:
            logger.warning("Tool %s failed upstream: %s", name, exc)
            return json_rpc_error(APPLICATION_ERROR, str(exc), request_id=request_id)
        return JsonRpcResponse(result=ToolCallResult.from_text(text).model_dump(), id=request_id)


__all__ = [
    "APPLICATION_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "McpDispatcher",
]
