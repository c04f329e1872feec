"""Кэш полных наборов данных LTA, собранных из постраничного API."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sg_bus_mcp.core.errors import UpstreamError

logger = logging.getLogger("sg_bus_mcp.core.cache")

Record = Dict[str, Any]
Dataset = List[Record]
FetchUpstream = Callable[[str, Dict[str, Any]], Awaitable[Dict[str, Any]]]

PAGE_OFFSET_PARAM = "$skip"


@dataclass(frozen=True)
class DatasetSpec:
    """Описание постраничного ресурса LTA DataMall."""

    key: str
    endpoint: str
    page_size: int = 500
    max_offset: Optional[int] = None


@dataclass(frozen=True)
class CacheEntry:
    payload: Dataset
    fetched_at: float


async def fetch_all_pages(fetch: FetchUpstream, spec: DatasetSpec) -> Dataset:
    """Собрать весь набор данных, запрашивая страницы по возрастающему смещению.

    Останавливается на пустой или неполной странице, либо когда следующее
    смещение достигает `spec.max_offset`. Ошибка любой страницы, как и
    `value` не-списком, прерывает сборку целиком: частичный результат наружу
    не отдаётся.
    """
    records: Dataset = []
    offset = 0
    while spec.max_offset is None or offset < spec.max_offset:
        data = await fetch(spec.endpoint, {PAGE_OFFSET_PARAM: offset})
        page = data.get("value")
        if page is None:
            break
        if not isinstance(page, list):
            raise UpstreamError(f"Unexpected page payload from {spec.endpoint} at offset {offset}")
        if not page:
            break
        records.extend(page)
        if len(page) < spec.page_size:
            break
        offset += spec.page_size
    return records


class DatasetCache:
    """TTL-кэш одного набора данных с защитой от параллельных обновлений.

    В каждый момент выполняется не больше одного обновления. Пока оно идёт,
    остальные вызывающие получают устаревшие данные (если они есть) или ждут
    того же самого обновления и разделяют его результат или ошибку.
    """

    def __init__(
        self,
        spec: DatasetSpec,
        loader: Callable[[], Awaitable[Dataset]],
        *,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._spec = spec
        self._loader = loader
        self._ttl = ttl
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional[asyncio.Task[Dataset]] = None

    @property
    def key(self) -> str:
        return self._spec.key

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def _is_fresh(self, entry: Optional[CacheEntry]) -> bool:
        return entry is not None and (self._clock() - entry.fetched_at) < self._ttl

    async def get_dataset(self) -> Dataset:
        entry = self._entry
        if self._is_fresh(entry):
            return entry.payload

        inflight = self._inflight
        if inflight is None:
            inflight = asyncio.create_task(self._refresh())
            self._inflight = inflight
        elif entry is not None:
            logger.debug("Refresh of %s in progress, serving stale payload", self.key)
            return entry.payload

        # shield: отмена одного ожидающего не должна обрывать общее обновление
        return await asyncio.shield(inflight)

    async def _refresh(self) -> Dataset:
        previous = self._entry
        started = self._clock()
        try:
            payload = await self._loader()
        except UpstreamError as exc:
            if previous is not None:
                logger.warning(
                    "Refresh of %s failed (%s), serving stale payload", self.key, exc
                )
                return previous.payload
            logger.error("Refresh of %s failed with nothing cached: %s", self.key, exc)
            raise
        finally:
            self._inflight = None

        self._entry = CacheEntry(payload=payload, fetched_at=self._clock())
        logger.info(
            "Dataset %s refreshed: %d records in %.1f ms",
            self.key,
            len(payload),
            (self._clock() - started) * 1000.0,
        )
        return payload

    def invalidate(self) -> None:
        self._entry = None


def build_dataset_cache(
    fetch: FetchUpstream,
    spec: DatasetSpec,
    *,
    ttl: float,
    clock: Callable[[], float] = time.monotonic,
) -> DatasetCache:
    async def _load() -> Dataset:
        return await fetch_all_pages(fetch, spec)

    return DatasetCache(spec, _load, ttl=ttl, clock=clock)


__all__ = [
    "CacheEntry",
    "Dataset",
    "DatasetCache",
    "DatasetSpec",
    "FetchUpstream",
    "PAGE_OFFSET_PARAM",
    "build_dataset_cache",
    "fetch_all_pages",
]
