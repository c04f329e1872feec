"""Pydantic-модели JSON-RPC 2.0 конверта."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class JsonRpcRequest(BaseModel):
    """Входящее сообщение; без поля `id` считается уведомлением."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: Optional[Any] = None
    id: Optional[Any] = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class InitializeParams(BaseModel):
    """Параметры метода `initialize` MCP."""

    protocolVersion: Optional[str] = None
    clientInfo: Dict[str, Any] = Field(default_factory=dict)
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class JsonRpcResponse(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    result: Any = None
    id: Optional[Any] = None


class JsonRpcErrorObj(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcError(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    error: JsonRpcErrorObj
    id: Optional[Any] = None


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """Результат `tools/call`: текст инструмента в одном блоке."""

    content: List[TextContent] = Field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "ToolCallResult":
        return cls(content=[TextContent(text=text)])


def json_rpc_error(
    code: int,
    message: str,
    *,
    data: Any = None,
    request_id: Any = None,
) -> JsonRpcError:
    return JsonRpcError(
        error=JsonRpcErrorObj(code=code, message=message, data=data),
        id=request_id,
    )


RpcReply = JsonRpcResponse | JsonRpcError

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
