"""
목적:
- Python 계약 모델 계층의 공개 심볼을 제공한다.

설명:
- 검색 파라미터/작업/상태 모델과 협력자 프로토콜을 하나의 네임스페이스에서 재노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/contracts/search_models.py
- src_py/mataresit_search/contracts/task_models.py
- src_py/mataresit_search/contracts/status_models.py
- src_py/mataresit_search/contracts/collaborators.py
"""

from .collaborators import (
    ResourceEstimator,
    SearchCache,
    SearchExecutor,
    SearchPrioritizer,
)
from .search_models import SearchParams
from .status_models import (
    BackgroundSearchMetrics,
    CacheMetrics,
    PriorityAnalytics,
    PriorityDecision,
    QueueStatus,
    ResourceUtilization,
    SearchStatus,
    SystemLoad,
)
from .task_models import (
    CancellationToken,
    SearchPriority,
    SearchTask,
    TaskState,
)

__all__ = [
    "SearchParams",
    "SearchPriority",
    "SearchTask",
    "TaskState",
    "CancellationToken",
    "SearchStatus",
    "QueueStatus",
    "ResourceUtilization",
    "BackgroundSearchMetrics",
    "SystemLoad",
    "PriorityDecision",
    "PriorityAnalytics",
    "CacheMetrics",
    "SearchCache",
    "SearchExecutor",
    "SearchPrioritizer",
    "ResourceEstimator",
]
