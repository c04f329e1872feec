from .handlers import TransitToolHandlers
from .registry import TOOLS, ToolHandler, ToolSchema, ToolSpec

__all__ = ["TOOLS", "ToolHandler", "ToolSchema", "ToolSpec", "TransitToolHandlers"]
