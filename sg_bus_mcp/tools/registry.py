"""Описание схем и реестра MCP-инструментов."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List

from pydantic import BaseModel, ConfigDict, Field

ToolHandler = Callable[[Dict[str, Any]], Awaitable[str]]

_BUS_STOP_CODE = {
    "type": "string",
    "description": 'The 5-digit bus stop code (e.g., "83139", "01012")',
}


class ToolSchema(BaseModel):
    """JSON-схема аргументов инструмента."""

    model_config = ConfigDict(frozen=True)

    type: str = "object"
    properties: Dict[str, Any] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ToolSpec(BaseModel):
    """Спецификация инструмента, публикуемая в `tools/list`."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: ToolSchema

    def as_mcp_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.as_dict(),
        }

    def missing_arguments(self, arguments: Dict[str, Any]) -> List[str]:
        return [
            name
            for name in self.input_schema.required
            if not isinstance(arguments.get(name), str) or not arguments[name].strip()
        ]


TOOLS: Dict[str, ToolSpec] = {
    "get_bus_arrivals": ToolSpec(
        name="get_bus_arrivals",
        description=(
            "Get real-time bus arrival times for a specific bus stop in Singapore. Returns arrival "
            "times for all bus services at that stop, or filter by a specific bus service number."
        ),
        input_schema=ToolSchema(
            properties={
                "bus_stop_code": _BUS_STOP_CODE,
                "service_no": {
                    "type": "string",
                    "description": (
                        'Optional: Filter by specific bus service number '
                        '(e.g., "15", "77", "NR1")'
                    ),
                },
            },
            required=["bus_stop_code"],
        ),
    ),
    "search_bus_stops": ToolSpec(
        name="search_bus_stops",
        description=(
            "Search for bus stops by name, road name, or description. "
            "Returns bus stop codes and details."
        ),
        input_schema=ToolSchema(
            properties={
                "query": {
                    "type": "string",
                    "description": (
                        "Search query - can be a bus stop name, road name, or landmark "
                        '(e.g., "Orchard", "Tampines", "MRT")'
                    ),
                },
            },
            required=["query"],
        ),
    ),
    "get_bus_stop_info": ToolSpec(
        name="get_bus_stop_info",
        description=(
            "Get detailed information about a specific bus stop, including its name, road, "
            "and all bus services that stop there."
        ),
        input_schema=ToolSchema(
            properties={"bus_stop_code": _BUS_STOP_CODE},
            required=["bus_stop_code"],
        ),
    ),
    "get_bus_routes": ToolSpec(
        name="get_bus_routes",
        description="Get the full route information for a bus service, including all stops along the route.",
        input_schema=ToolSchema(
            properties={
                "service_no": {
                    "type": "string",
                    "description": 'The bus service number (e.g., "15", "77", "960")',
                },
            },
            required=["service_no"],
        ),
    ),
}

__all__ = [
    "ToolHandler",
    "ToolSchema",
    "ToolSpec",
    "TOOLS",
]
