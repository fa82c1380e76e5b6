"""
목적:
- 프로세스 내 검색 결과 캐시를 제공한다.

설명:
- 항목은 TTL이 지나면 만료되고, 최대 개수를 넘으면 가장 오래 사용되지 않은 항목부터 제거한다.
- 적중/미스 카운터로 캐시 효율(%)을 계산해 오케스트레이터 메트릭에 제공한다.

디자인 패턴:
- LRU 캐시(Least Recently Used Cache).

참조:
- src_py/mataresit_search/cache/keys.py
- src_py/mataresit_search/contracts/collaborators.py
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from mataresit_search.cache.keys import build_cache_key, is_temporal_query
from mataresit_search.config.models import MemoryCacheConfig
from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.contracts.status_models import CacheMetrics

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _CacheEntry:
    data: Any
    stored_at: float


class InMemorySearchCache:
    """TTL/LRU 기반 검색 결과 캐시."""

    def __init__(
        self,
        config: MemoryCacheConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config or MemoryCacheConfig()
        self._clock = clock or _monotonic_ms
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    async def get(self, params: SearchParams, user_id: str) -> Any | None:
        """캐시된 검색 결과를 반환한다. 없거나 만료되었으면 None."""
        if self._bypass(params):
            self._misses += 1
            return None

        key = build_cache_key(params, user_id)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.stored_at > self._config.ttl_ms:
            del self._entries[key]
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return entry.data

    async def set(self, params: SearchParams, user_id: str, result: Any) -> None:
        """검색 결과를 저장한다."""
        if self._bypass(params):
            logger.debug("기간 질의는 캐시에 저장하지 않습니다: query=%s", params.query)
            return

        key = build_cache_key(params, user_id)
        self._entries[key] = _CacheEntry(data=result, stored_at=self._clock())
        self._entries.move_to_end(key)

        while len(self._entries) > self._config.max_entries:
            self._entries.popitem(last=False)
            self._evictions += 1

    async def delete(self, params: SearchParams, user_id: str) -> None:
        self._entries.pop(build_cache_key(params, user_id), None)

    def clear(self) -> None:
        self._entries.clear()

    def get_metrics(self) -> CacheMetrics:
        total = self._hits + self._misses
        return CacheMetrics(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            total_requests=total,
            cache_efficiency=(self._hits / total * 100.0) if total else 0.0,
            entry_count=len(self._entries),
        )

    def _bypass(self, params: SearchParams) -> bool:
        return self._config.bypass_temporal_queries and is_temporal_query(params.query)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0
