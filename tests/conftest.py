from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from sg_bus_mcp.core.config import ServerSettings
from sg_bus_mcp.main import create_app

LTA_BASE = "https://lta.test/ltaodataservice"

BUS_STOPS: List[Dict[str, Any]] = [
    {
        "BusStopCode": "01012",
        "RoadName": "Victoria St",
        "Description": "Hotel Grand Pacific",
        "Latitude": 1.2968,
        "Longitude": 103.8525,
    },
    {
        "BusStopCode": "09047",
        "RoadName": "Orchard Rd",
        "Description": "Orchard Stn/Tang Plaza",
        "Latitude": 1.3044,
        "Longitude": 103.8330,
    },
    {
        "BusStopCode": "83139",
        "RoadName": "Joo Chiat Rd",
        "Description": "Blk 40",
        "Latitude": 1.3127,
        "Longitude": 103.9015,
    },
]


class FakeLta:
    """Заглушка LTA DataMall для httpx.MockTransport."""

    def __init__(self) -> None:
        self.stops: List[Dict[str, Any]] = list(BUS_STOPS)
        self.routes: List[Dict[str, Any]] = []
        self.services: List[Dict[str, Any]] = []
        self.page_size = 2
        self.fail_with: Optional[int] = None
        self.calls: Counter[str] = Counter()
        self.requests: List[httpx.Request] = []

    def _page(self, records: List[Dict[str, Any]], request: httpx.Request) -> httpx.Response:
        skip = int(request.url.params.get("$skip", "0"))
        return httpx.Response(200, json={"value": records[skip : skip + self.page_size]})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("ltaodataservice/", 1)[-1]
        self.calls[endpoint] += 1
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with)
        if endpoint == "BusStops":
            return self._page(self.stops, request)
        if endpoint == "BusRoutes":
            return self._page(self.routes, request)
        if endpoint == "v3/BusArrival":
            bus_stop_code = request.url.params.get("BusStopCode")
            return httpx.Response(200, json={"BusStopCode": bus_stop_code, "Services": self.services})
        return httpx.Response(404)


@pytest.fixture
def fake_lta() -> FakeLta:
    return FakeLta()


@pytest.fixture
def make_client(fake_lta: FakeLta) -> Callable[..., TestClient]:
    def _make(**overrides: Any) -> TestClient:
        settings = ServerSettings(lta_api_base=LTA_BASE, page_size=fake_lta.page_size, **overrides)
        http_client = httpx.AsyncClient(base_url=LTA_BASE + "/", transport=httpx.MockTransport(fake_lta))
        return TestClient(create_app(settings, http_client=http_client))

    return _make


