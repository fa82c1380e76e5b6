"""
목적:
- 백그라운드 검색 작업(SearchTask)과 우선순위/상태 타입을 정의한다.

설명:
- 작업은 대기(queued) -> 실행(active) -> 완료(completed)/실패(failed) 중 하나의 상태만 가진다.
- 취소된 작업은 `cancelled` 상태로 버려지며 종결 콜백을 호출하지 않는다.
- 취소 토큰은 실행 중인 외부 호출과 재시도 대기 모두에서 확인한다.

디자인 패턴:
- 상태 객체(State Object).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/queue/priority_queue.py
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable
from uuid import uuid4

from mataresit_search.contracts.search_models import SearchParams

ProgressCallback = Callable[[str, str], None]
CompleteCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


def generate_task_id() -> str:
    return f"search_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


class SearchPriority(IntEnum):
    """검색 우선순위. 값이 클수록 먼저 실행된다."""

    LOW = 1
    NORMAL = 2
    HIGH = 3
    URGENT = 4

    def boosted(self) -> SearchPriority:
        """한 단계 올린 우선순위를 반환한다. URGENT를 넘지 않는다."""
        return SearchPriority(min(self.value + 1, SearchPriority.URGENT.value))


class TaskState(str, Enum):
    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CancellationToken:
    """작업 취소 신호를 전달하는 토큰."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """취소될 때까지 대기한다."""
        await self._event.wait()


@dataclass(slots=True)
class SearchTask:
    """대화 단위로 조정되는 단일 검색 작업."""

    conversation_id: str
    query: str
    params: SearchParams
    user_id: str
    priority: SearchPriority
    created_at: float
    max_retries: int
    id: str = field(default_factory=generate_task_id)
    started_at: float | None = None
    completed_at: float | None = None
    retry_count: int = 0
    boosted: bool = False
    state: TaskState = TaskState.QUEUED
    progress: str = ""
    error: Exception | None = None
    token: CancellationToken = field(default_factory=CancellationToken)
    on_progress: ProgressCallback | None = None
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def wait_ms(self, now: float) -> float:
        """생성 이후 경과 시간을 밀리초로 반환한다."""
        return max(0.0, now - self.created_at)

    def cancel(self) -> None:
        self.token.cancel()
        self.state = TaskState.CANCELLED
