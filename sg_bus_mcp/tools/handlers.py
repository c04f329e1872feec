"""Обработчики MCP-инструментов поверх LTA DataMall."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sg_bus_mcp.core.cache import DatasetCache, FetchUpstream
from sg_bus_mcp.core.errors import UpstreamError
from sg_bus_mcp.services import formatting
from sg_bus_mcp.tools.registry import ToolHandler

logger = logging.getLogger("sg_bus_mcp.tools.handlers")

BUS_ARRIVAL_ENDPOINT = "v3/BusArrival"


class TransitToolHandlers:
    """Набор обработчиков; зависимости передаются при сборке приложения.

    Обработчики возвращают готовый текст. `UpstreamError` пробрасывается
    наружу и превращается диспетчером в JSON-RPC ошибку.
    """

    def __init__(self, fetch: FetchUpstream, *, stops: DatasetCache, routes: DatasetCache) -> None:
        self._fetch = fetch
        self._stops = stops
        self._routes = routes

    def as_mapping(self) -> Dict[str, ToolHandler]:
        return {
            "get_bus_arrivals": self.get_bus_arrivals,
            "search_bus_stops": self.search_bus_stops,
            "get_bus_stop_info": self.get_bus_stop_info,
            "get_bus_routes": self.get_bus_routes,
        }

    async def _fetch_services(
        self, bus_stop_code: str, service_no: str | None = None
    ) -> List[Dict[str, Any]]:
        params = {"BusStopCode": bus_stop_code, "ServiceNo": service_no}
        data = await self._fetch(BUS_ARRIVAL_ENDPOINT, params)
        services = data.get("Services") or []
        return services if isinstance(services, list) else []

    async def get_bus_arrivals(self, arguments: Dict[str, Any]) -> str:
        bus_stop_code = arguments["bus_stop_code"].strip()
        service_no = arguments.get("service_no")
        if not isinstance(service_no, str) or not service_no.strip():
            service_no = None
        services = await self._fetch_services(bus_stop_code, service_no)
        return formatting.format_bus_arrivals(bus_stop_code, services)

    async def search_bus_stops(self, arguments: Dict[str, Any]) -> str:
        query = arguments["query"].strip()
        stops = await self._stops.get_dataset()
        return formatting.format_stop_search(query, formatting.match_bus_stops(stops, query))

    async def get_bus_stop_info(self, arguments: Dict[str, Any]) -> str:
        bus_stop_code = arguments["bus_stop_code"].strip()
        stops = await self._stops.get_dataset()
        stop = next((item for item in stops if item.get("BusStopCode") == bus_stop_code), None)
        if stop is None:
            return f"Bus stop {bus_stop_code} not found. Please check if the code is correct."

        try:
            services = await self._fetch_services(bus_stop_code)
        except UpstreamError as exc:
            logger.warning("Arrival lookup for stop %s failed: %s", bus_stop_code, exc)
            summary = "Unable to fetch services"
        else:
            numbers = [str(service.get("ServiceNo")) for service in services]
            summary = ", ".join(numbers) or "No services available"
        return formatting.format_stop_info(stop, summary)

    async def get_bus_routes(self, arguments: Dict[str, Any]) -> str:
        service_no = arguments["service_no"].strip()
        dataset = await self._routes.get_dataset()
        routes = [route for route in dataset if route.get("ServiceNo") == service_no]
        if not routes:
            return formatting.format_bus_routes(service_no, [], [])
        stops = await self._stops.get_dataset()
        return formatting.format_bus_routes(service_no, routes, stops)


__all__ = ["BUS_ARRIVAL_ENDPOINT", "TransitToolHandlers"]
