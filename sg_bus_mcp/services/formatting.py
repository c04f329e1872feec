"""Текстовое представление данных LTA для ответов инструментов."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

Record = Dict[str, Any]

SEPARATOR = "━" * 30
SEARCH_RESULT_LIMIT = 15
ROUTE_STOPS_LIMIT = 20

# (метка, поле ответа LTA, показывать ли тип автобуса)
_UPCOMING_BUSES = (("1st", "NextBus", True), ("2nd", "NextBus2", False), ("3rd", "NextBus3", False))

_LOADS = {
    "SEA": "Seats Available",
    "SDA": "Standing Available",
    "LSD": "Limited Standing",
}
_BUS_TYPES = {
    "SD": "Single Deck",
    "DD": "Double Deck",
    "BD": "Bendy",
}
_OPERATORS = {
    "SBST": "SBS Transit",
    "SMRT": "SMRT Corporation",
    "TTS": "Tower Transit",
    "GAS": "Go Ahead",
}


def minutes_until_arrival(estimated_arrival: Optional[str], *, now: Optional[datetime] = None) -> str:
    if not estimated_arrival:
        return "N/A"
    try:
        arrival = datetime.fromisoformat(estimated_arrival)
    except ValueError:
        return "N/A"
    if arrival.tzinfo is None:
        arrival = arrival.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    # округление половин вверх, как в клиентах DataMall
    minutes = math.floor((arrival - current).total_seconds() / 60.0 + 0.5)
    if minutes <= 0:
        return "Arriving"
    if minutes == 1:
        return "1 min"
    return f"{minutes} mins"


def format_load(load: Optional[str]) -> str:
    return _LOADS.get(load or "", load or "Unknown")


def format_bus_type(bus_type: Optional[str]) -> str:
    return _BUS_TYPES.get(bus_type or "", bus_type or "Unknown")


def format_operator(operator: Optional[str]) -> str:
    return _OPERATORS.get(operator or "", operator or "Unknown")


def no_services_message(bus_stop_code: str) -> str:
    return f"No bus services found at bus stop {bus_stop_code}. Please check if the bus stop code is correct."


def format_bus_arrivals(
    bus_stop_code: str,
    services: List[Record],
    *,
    now: Optional[datetime] = None,
) -> str:
    if not services:
        return no_services_message(bus_stop_code)

    lines = [f"🚌 Bus Arrivals at Stop {bus_stop_code}", SEPARATOR, ""]
    for service in services:
        operator = format_operator(service.get("Operator"))
        lines.append(f"📍 Service {service.get('ServiceNo')} ({operator})")
        for label, key, with_type in _UPCOMING_BUSES:
            bus = service.get(key) or {}
            if not bus.get("EstimatedArrival"):
                continue
            eta = minutes_until_arrival(bus["EstimatedArrival"], now=now)
            line = f"   {label}: {eta} | {format_load(bus.get('Load'))}"
            if with_type:
                line += f" | {format_bus_type(bus.get('Type'))}"
            lines.append(line)
        lines.append("")
    return "\n".join(lines) + "\n"


def match_bus_stops(stops: Iterable[Record], query: str) -> List[Record]:
    needle = query.lower()
    matches = []
    for stop in stops:
        description = str(stop.get("Description") or "").lower()
        road = str(stop.get("RoadName") or "").lower()
        code = str(stop.get("BusStopCode") or "")
        if needle in description or needle in road or query in code:
            matches.append(stop)
    return matches


def format_stop_search(query: str, matches: List[Record]) -> str:
    if not matches:
        return f'No bus stops found matching "{query}". Try a different search term.'

    shown = matches[:SEARCH_RESULT_LIMIT]
    lines = [
        f'🔍 Bus Stops matching "{query}"',
        SEPARATOR,
        "",
        f"Found {len(matches)} stops (showing first {len(shown)})",
        "",
    ]
    for stop in shown:
        lines.append(f"📍 {stop.get('Description')}")
        lines.append(f"   Code: {stop.get('BusStopCode')}")
        lines.append(f"   Road: {stop.get('RoadName')}")
        lines.append("")
    return "\n".join(lines) + "\n"


def format_stop_info(stop: Record, services: str) -> str:
    return "\n".join(
        [
            "📍 Bus Stop Information",
            SEPARATOR,
            "",
            f"Name: {stop.get('Description')}",
            f"Code: {stop.get('BusStopCode')}",
            f"Road: {stop.get('RoadName')}",
            f"Location: {stop.get('Latitude')}, {stop.get('Longitude')}",
            "",
            f"🚌 Bus Services: {services}",
        ]
    )


def _direction_block(direction: int, route_stops: List[Record], stop_names: Dict[str, str]) -> List[str]:
    lines = [f"📍 Direction {direction} ({len(route_stops)} stops)"]
    for stop in route_stops[:ROUTE_STOPS_LIMIT]:
        code = stop.get("BusStopCode")
        name = stop_names.get(str(code), "Unknown")
        lines.append(f"   {stop.get('StopSequence')}. {name} ({code})")
    if len(route_stops) > ROUTE_STOPS_LIMIT:
        lines.append(f"   ... and {len(route_stops) - ROUTE_STOPS_LIMIT} more stops")
    return lines


def format_bus_routes(service_no: str, routes: List[Record], stops: Iterable[Record]) -> str:
    if not routes:
        return f"No routes found for bus service {service_no}. Please check if the service number is correct."

    stop_names = {str(stop.get("BusStopCode")): str(stop.get("Description")) for stop in stops}
    lines = [f"🚌 Bus Route {service_no}", SEPARATOR, ""]
    for direction in (1, 2):
        route_stops = sorted(
            (route for route in routes if route.get("Direction") == direction),
            key=lambda route: route.get("StopSequence") or 0,
        )
        if route_stops:
            lines.extend(_direction_block(direction, route_stops, stop_names))
            lines.append("")
    return "\n".join(lines)


__all__ = [
    "format_bus_arrivals",
    "format_bus_routes",
    "format_bus_type",
    "format_load",
    "format_operator",
    "format_stop_info",
    "format_stop_search",
    "match_bus_stops",
    "minutes_until_arrival",
    "no_services_message",
]
