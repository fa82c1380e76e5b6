"""
목적:
- 백그라운드 검색 집계 메트릭을 보관하고 갱신한다.

설명:
- 제출/완료/실패 카운터와 평균 검색 시간은 상태 전이 시점에 즉시 갱신한다.
- 동시성 사용률, 캐시 적중률, 평균 대기 시간은 주기 루프에서 샘플링한다.
- 자원 사용률은 주입된 추정기로 계산한다.

디자인 패턴:
- 수집기(Collector).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/policy/resources.py
"""

from __future__ import annotations

from mataresit_search.contracts.status_models import (
    BackgroundSearchMetrics,
    CacheMetrics,
    ResourceUtilization,
    SystemLoad,
)


class SearchMetricsCollector:
    """백그라운드 검색 메트릭 수집기."""

    def __init__(self) -> None:
        self._metrics = BackgroundSearchMetrics()

    def snapshot(self) -> BackgroundSearchMetrics:
        """메트릭 사본을 반환한다."""
        return self._metrics.model_copy(deep=True)

    def record_submitted(self) -> None:
        self._metrics.total_searches += 1

    def record_completed(self, search_time_ms: float) -> None:
        metrics = self._metrics
        metrics.completed_searches += 1
        completed = metrics.completed_searches
        metrics.average_search_time_ms = (
            metrics.average_search_time_ms * (completed - 1) + max(0.0, search_time_ms)
        ) / completed

    def record_failed(self) -> None:
        self._metrics.failed_searches += 1

    def error_rate(self) -> float:
        return self._metrics.failed_searches / max(1, self._metrics.total_searches)

    def sample(
        self,
        *,
        active_searches: int,
        max_concurrent: int,
        average_queue_time_ms: float,
        cache_metrics: CacheMetrics | None,
    ) -> None:
        """주기 메트릭(동시성, 캐시 적중률, 대기 시간)을 갱신한다."""
        metrics = self._metrics
        metrics.concurrency_utilization = utilization(active_searches, max_concurrent)
        if cache_metrics is not None:
            metrics.cache_hit_rate = cache_metrics.cache_efficiency
        metrics.average_queue_time_ms = max(0.0, average_queue_time_ms)

    def update_resources(self, resources: ResourceUtilization) -> None:
        self._metrics.resource_utilization = resources

    def system_load(self, *, active_searches: int, queue_length: int) -> SystemLoad:
        """우선순위 판정용 부하 스냅샷을 만든다."""
        metrics = self._metrics
        return SystemLoad(
            cpu_usage=metrics.resource_utilization.cpu,
            memory_usage=metrics.resource_utilization.memory,
            active_searches=active_searches,
            queue_length=queue_length,
            average_response_time_ms=metrics.average_search_time_ms,
            error_rate=min(1.0, self.error_rate()),
        )

    def reset(self) -> None:
        self._metrics = BackgroundSearchMetrics()


def utilization(active_searches: int, max_concurrent: int) -> float:
    return active_searches / max(1, max_concurrent) * 100.0
