from .dispatcher import McpDispatcher
from .routes import build_router

__all__ = ["McpDispatcher", "build_router"]
