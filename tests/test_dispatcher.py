from __future__ import annotations

import asyncio
from typing import Any, Dict

from sg_bus_mcp.api.dispatcher import McpDispatcher
from sg_bus_mcp.core.errors import UpstreamError
from sg_bus_mcp.models.json_rpc import JsonRpcError, JsonRpcResponse
from sg_bus_mcp.tools.registry import TOOLS


def _dispatcher(**handlers: Any) -> McpDispatcher:
    return McpDispatcher(tools=TOOLS, handlers=handlers)


def _dispatch(dispatcher: McpDispatcher, message: Any) -> Any:
    return asyncio.run(dispatcher.dispatch(message))


def _tools_call(request_id: Any, name: str, arguments: Any) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


def test_notifications_never_produce_a_response() -> None:
    called = []

    async def search_bus_stops(arguments: Dict[str, Any]) -> str:
        called.append(arguments)
        return "ok"

    dispatcher = _dispatcher(search_bus_stops=search_bus_stops)
    assert _dispatch(dispatcher, {"jsonrpc": "2.0", "method": "initialized"}) is None
    notification = {"jsonrpc": "2.0", "method": "tools/call", "params": {"name": "search_bus_stops"}}
    assert _dispatch(dispatcher, notification) is None
    assert called == []


def test_explicit_null_id_is_still_a_request() -> None:
    reply = _dispatch(_dispatcher(), {"jsonrpc": "2.0", "id": None, "method": "ping"})
    assert isinstance(reply, JsonRpcResponse)
    assert reply.result == {}


def test_invalid_envelope_is_invalid_request() -> None:
    reply = _dispatch(_dispatcher(), {"jsonrpc": "1.0", "id": 4, "method": "ping"})
    assert isinstance(reply, JsonRpcError)
    assert reply.error.code == -32600
    assert reply.id == 4

    reply = _dispatch(_dispatcher(), ["not", "an", "object"])
    assert reply.error.code == -32600
    assert reply.id is None


def test_tools_call_wraps_text_result() -> None:
    async def get_bus_routes(arguments: Dict[str, Any]) -> str:
        return f"route {arguments['service_no']}"

    reply = _dispatch(
        _dispatcher(get_bus_routes=get_bus_routes),
        _tools_call("abc", "get_bus_routes", {"service_no": "960"}),
    )
    assert reply.model_dump() == {
        "jsonrpc": "2.0",
        "id": "abc",
        "result": {"content": [{"type": "text", "text": "route 960"}]},
    }


def test_handler_failures_become_application_errors() -> None:
    async def upstream_down(arguments: Dict[str, Any]) -> str:
        raise UpstreamError("LTA API error: 503 Service Unavailable")

    async def broken(arguments: Dict[str, Any]) -> str:
        raise RuntimeError("boom")

    dispatcher = _dispatcher(get_bus_arrivals=upstream_down, get_bus_routes=broken)
    reply = _dispatch(
        dispatcher,
        _tools_call(1, "get_bus_arrivals", {"bus_stop_code": "1"}),
    )
    assert reply.error.code == -32000
    assert reply.error.message == "LTA API error: 503 Service Unavailable"

    reply = _dispatch(
        dispatcher,
        _tools_call(2, "get_bus_routes", {"service_no": "1"}),
    )
    assert reply.error.code == -32000
    assert reply.error.message == "boom"


def test_non_object_arguments_are_invalid_params() -> None:
    reply = _dispatch(_dispatcher(), _tools_call(3, "get_bus_routes", ["960"]))
    assert reply.error.code == -32602


def test_initialize_tolerates_non_object_client_info() -> None:
    reply = _dispatch(
        _dispatcher(),
        {"jsonrpc": "2.0", "id": 7, "method": "initialize", "params": {"clientInfo": "cursor"}},
    )
    assert isinstance(reply, JsonRpcResponse)
    assert reply.id == 7
    assert reply.result["protocolVersion"] == "2024-11-05"
    assert reply.result["serverInfo"]["name"] == "sg-bus-mcp"


def test_initialize_tolerates_non_object_params() -> None:
    for params in ("cursor", ["2024-11-05"], None):
        reply = _dispatch(
            _dispatcher(),
            {"jsonrpc": "2.0", "id": 8, "method": "initialize", "params": params},
        )
        assert isinstance(reply, JsonRpcResponse)
        assert reply.result["protocolVersion"] == "2024-11-05"


def test_non_object_params_for_tools_call_are_invalid_params() -> None:
    reply = _dispatch(
        _dispatcher(),
        {"jsonrpc": "2.0", "id": 9, "method": "tools/call", "params": ["get_bus_routes"]},
    )
    assert isinstance(reply, JsonRpcError)
    assert reply.error.code == -32602
