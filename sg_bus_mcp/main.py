# sg_bus_mcp/main.py
"""Точка входа FastAPI: MCP-сервер автобусов Сингапура поверх SSE.

Здесь собираются все зависимости: httpx-клиент LTA DataMall, кэши наборов
данных (остановки и маршруты), обработчики инструментов, диспетчер JSON-RPC
и реестр SSE-сессий. Глобального изменяемого состояния нет: всё живёт
в `app.state` конкретного приложения.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI

from .api import McpDispatcher, build_router
from .core.cache import DatasetCache, DatasetSpec, build_dataset_cache
from .core.config import SERVER_INFO, ServerSettings
from .core.session import SessionRegistry
from .services.lta_client import LtaClient, create_http_client
from .tools import TOOLS, TransitToolHandlers

logger = logging.getLogger("sg_bus_mcp")


def configure_logging(level: str) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logger.setLevel(level)


def _dataset_specs(settings: ServerSettings) -> tuple[DatasetSpec, DatasetSpec]:
    stops = DatasetSpec(
        key="bus_stops",
        endpoint="BusStops",
        page_size=settings.page_size,
        max_offset=settings.max_offset,
    )
    routes = DatasetSpec(
        key="bus_routes",
        endpoint="BusRoutes",
        page_size=settings.page_size,
        max_offset=settings.max_offset,
    )
    return stops, routes


def create_app(
    settings: Optional[ServerSettings] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    settings = settings or ServerSettings.from_env()
    configure_logging(settings.log_level)

    upstream = LtaClient(http_client or create_http_client(settings))
    stops_spec, routes_spec = _dataset_specs(settings)
    stops: DatasetCache = build_dataset_cache(upstream.fetch, stops_spec, ttl=settings.dataset_ttl)
    routes: DatasetCache = build_dataset_cache(upstream.fetch, routes_spec, ttl=settings.dataset_ttl)

    handlers = TransitToolHandlers(upstream.fetch, stops=stops, routes=routes)
    dispatcher = McpDispatcher(tools=TOOLS, handlers=handlers.as_mapping())
    sessions = SessionRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "%s starting (mode=%s, endpoint=%s)",
            SERVER_INFO["name"],
            settings.session_mode,
            settings.base_path,
        )
        yield
        closed = sessions.close_all()
        await upstream.aclose()
        logger.info("%s stopped, closed %d session(s)", SERVER_INFO["name"], closed)

    app = FastAPI(title="SG Bus MCP", version=SERVER_INFO["version"], lifespan=lifespan)
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.dispatcher = dispatcher
    app.state.datasets = {stops.key: stops, routes.key: routes}
    app.include_router(build_router(dispatcher=dispatcher, sessions=sessions, settings=settings))
    return app


app = create_app()
