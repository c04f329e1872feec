"""Запуск сервера: `python -m sg_bus_mcp`."""

from __future__ import annotations

import uvicorn

from sg_bus_mcp.core.config import ServerSettings
from sg_bus_mcp.main import create_app


def main() -> None:
    settings = ServerSettings.from_env()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
