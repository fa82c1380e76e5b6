"""
목적:
- 외부 협력자(캐시, 검색 실행기)와 교체 가능한 정책의 인터페이스를 정의한다.

설명:
- 오케스트레이터는 구현체가 아닌 프로토콜에만 의존한다.
- 캐시 조회는 멱등이어야 하며 만료 정책은 캐시가 소유한다.
- 실행기는 취소 시 호출 측에서 결과를 버려도 안전해야 한다.

디자인 패턴:
- 포트(Port) 인터페이스.

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/cache/memory.py
- src_py/mataresit_search/runtime/executor.py
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from mataresit_search.config.models import ResourceConfig
from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.contracts.status_models import (
    CacheMetrics,
    PriorityDecision,
    ResourceUtilization,
    SystemLoad,
)


@runtime_checkable
class SearchCache(Protocol):
    async def get(self, params: SearchParams, user_id: str) -> Any | None: ...

    def get_metrics(self) -> CacheMetrics: ...


@runtime_checkable
class SearchExecutor(Protocol):
    async def execute_search(self, params: SearchParams, user_id: str) -> Any: ...


class SearchPrioritizer(Protocol):
    def determine_priority(
        self,
        query: str,
        params: SearchParams,
        user_id: str,
        load: SystemLoad,
    ) -> PriorityDecision: ...


class ResourceEstimator(Protocol):
    def estimate(self, active_searches: int, config: ResourceConfig) -> ResourceUtilization: ...
