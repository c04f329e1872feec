from .json_rpc import (
    InitializeParams,
    JsonRpcError,
    JsonRpcErrorObj,
    JsonRpcRequest,
    JsonRpcResponse,
    RpcReply,
    TextContent,
    ToolCallResult,
    json_rpc_error,
)

__all__ = [
    "InitializeParams",
    "JsonRpcError",
    "JsonRpcErrorObj",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "RpcReply",
    "TextContent",
    "ToolCallResult",
    "json_rpc_error",
]
