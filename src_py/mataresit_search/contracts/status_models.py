"""
목적:
- 검색 상태/큐 상태/메트릭/우선순위 판정 응답 모델을 정의한다.

설명:
- UI 계층이 조회하는 값은 모두 pydantic 모델로 반환해 직렬화를 단순화한다.
- 메트릭 모델은 영속화하지 않고 주기적으로 다시 계산한다.

디자인 패턴:
- 상태 객체(State DTO).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/metrics/collector.py
- src_py/mataresit_search/policy/prioritizer.py
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from mataresit_search.contracts.task_models import SearchPriority

SearchStatusName = Literal["idle", "queued", "active", "completed", "failed"]


class SearchStatus(BaseModel):
    """대화별 검색 상태 조회 모델."""

    status: SearchStatusName
    progress: str | None = Field(default=None)
    queue_position: int | None = Field(default=None, ge=1)
    priority: SearchPriority | None = Field(default=None)
    error: str | None = Field(default=None)


class QueueStatus(BaseModel):
    """큐/동시성 사용 현황 모델."""

    queue_length: int = Field(ge=0)
    active_searches: int = Field(ge=0)
    max_concurrent: int = Field(ge=1)
    utilization_rate: float = Field(ge=0.0)


class ResourceUtilization(BaseModel):
    """추정 자원 사용률(%) 모델."""

    memory: float = Field(default=0.0, ge=0.0)
    cpu: float = Field(default=0.0, ge=0.0)


class BackgroundSearchMetrics(BaseModel):
    """백그라운드 검색 집계 메트릭 모델."""

    total_searches: int = Field(default=0, ge=0)
    completed_searches: int = Field(default=0, ge=0)
    failed_searches: int = Field(default=0, ge=0)
    average_search_time_ms: float = Field(default=0.0, ge=0.0)
    average_queue_time_ms: float = Field(default=0.0, ge=0.0)
    cache_hit_rate: float = Field(default=0.0, ge=0.0)
    concurrency_utilization: float = Field(default=0.0, ge=0.0)
    resource_utilization: ResourceUtilization = Field(default_factory=ResourceUtilization)


class SystemLoad(BaseModel):
    """우선순위 판정 시점의 시스템 부하 스냅샷."""

    cpu_usage: float = Field(default=0.0, ge=0.0)
    memory_usage: float = Field(default=0.0, ge=0.0)
    active_searches: int = Field(default=0, ge=0)
    queue_length: int = Field(default=0, ge=0)
    average_response_time_ms: float = Field(default=0.0, ge=0.0)
    error_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class PriorityDecision(BaseModel):
    """우선순위 판정 결과 모델."""

    priority: SearchPriority
    reasoning: list[str] = Field(default_factory=list)
    estimated_wait_ms: float = Field(default=0.0, ge=0.0)


class PriorityAnalytics(BaseModel):
    """우선순위 판정 이력 집계 모델."""

    total_decisions: int = Field(default=0, ge=0)
    distribution: dict[str, int] = Field(default_factory=dict)


class CacheMetrics(BaseModel):
    """검색 결과 캐시 메트릭 모델."""

    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    total_requests: int = Field(default=0, ge=0)
    cache_efficiency: float = Field(default=0.0, ge=0.0, le=100.0)
    entry_count: int = Field(default=0, ge=0)
