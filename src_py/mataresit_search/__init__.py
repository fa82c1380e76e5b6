"""
목적:
- Mataresit 백그라운드 검색 Python 패키지의 공개 진입점을 제공한다.

설명:
- 라이브러리 핵심 클래스는 `BackgroundSearchService`다.
- 설정/계약 모델/예외/캐시 및 실행기 어댑터/정책을 함께 노출한다.

디자인 패턴:
- 퍼사드(Facade).

참조:
- src_py/mataresit_search/search/service.py
"""

from .cache import InMemorySearchCache, RedisSearchCache, build_cache_key, is_temporal_query
from .config.models import (
    MemoryCacheConfig,
    PrioritizerConfig,
    RedisCacheConfig,
    ResourceConfig,
)
from .contracts import (
    BackgroundSearchMetrics,
    CacheMetrics,
    CancellationToken,
    PriorityAnalytics,
    PriorityDecision,
    QueueStatus,
    ResourceEstimator,
    ResourceUtilization,
    SearchCache,
    SearchExecutor,
    SearchParams,
    SearchPrioritizer,
    SearchPriority,
    SearchStatus,
    SearchTask,
    SystemLoad,
    TaskState,
)
from .exceptions import (
    ConfigurationError,
    DependencyUnavailableError,
    MataresitSearchError,
    QueueFullError,
    SearchCancelledError,
    SearchExecutionError,
    SearchTimeoutError,
)
from .metrics import SearchMetricsCollector
from .policy import KeywordSearchPrioritizer, ProcessResourceEstimator
from .queue import SearchTaskQueue
from .runtime import CallableSearchExecutor
from .search.service import BackgroundSearchService
from .version import __version__

__all__ = [
    "__version__",
    "BackgroundSearchService",
    "ResourceConfig",
    "PrioritizerConfig",
    "MemoryCacheConfig",
    "RedisCacheConfig",
    "SearchParams",
    "SearchPriority",
    "SearchTask",
    "TaskState",
    "CancellationToken",
    "SearchStatus",
    "QueueStatus",
    "BackgroundSearchMetrics",
    "ResourceUtilization",
    "SystemLoad",
    "PriorityDecision",
    "PriorityAnalytics",
    "CacheMetrics",
    "SearchCache",
    "SearchExecutor",
    "SearchPrioritizer",
    "ResourceEstimator",
    "SearchTaskQueue",
    "SearchMetricsCollector",
    "KeywordSearchPrioritizer",
    "ProcessResourceEstimator",
    "InMemorySearchCache",
    "RedisSearchCache",
    "CallableSearchExecutor",
    "build_cache_key",
    "is_temporal_query",
    "MataresitSearchError",
    "ConfigurationError",
    "QueueFullError",
    "SearchTimeoutError",
    "SearchExecutionError",
    "SearchCancelledError",
    "DependencyUnavailableError",
]
