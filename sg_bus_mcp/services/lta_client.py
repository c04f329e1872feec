"""Клиент LTA DataMall поверх httpx."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from sg_bus_mcp.core.config import ServerSettings
from sg_bus_mcp.core.errors import UpstreamError

logger = logging.getLogger("sg_bus_mcp.services.lta_client")


def create_http_client(settings: ServerSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.lta_api_base + "/",
        timeout=settings.upstream_timeout,
        headers={
            "AccountKey": settings.lta_api_key,
            "Accept": "application/json",
        },
    )


class LtaClient:
    """Единственная точка выхода в upstream: `fetch(endpoint, params) -> JSON`.

    Ретраев нет: каждый запрос ограничен таймаутом httpx-клиента, любой
    не-2xx статус или сетевой сбой превращается в `UpstreamError`.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def fetch(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = {key: str(value) for key, value in (params or {}).items() if value not in (None, "")}
        try:
            response = await self._client.get(endpoint.lstrip("/"), params=query)
        except httpx.HTTPError as exc:
            logger.warning("LTA request %s failed: %s", endpoint, exc)
            raise UpstreamError(f"LTA API request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                f"LTA API error: {response.status_code} {response.reason_phrase}".rstrip(),
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(f"LTA API returned invalid JSON for {endpoint}") from exc
        if not isinstance(data, dict):
            raise UpstreamError(f"LTA API returned unexpected payload for {endpoint}")
        logger.debug("LTA %s %s -> %s", endpoint, query, response.status_code)
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["LtaClient", "create_http_client"]
