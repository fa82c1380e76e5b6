"""
목적:
- 동시성 상한 때문에 즉시 실행하지 못한 검색 작업을 우선순위 순서로 보관한다.

설명:
- 삽입은 안정 정렬을 유지한다. 같은 우선순위에서는 도착 순서를 보존한다.
- 큐가 가득 차면 가장 늦게 꺼내질 작업(최저 우선순위의 마지막 작업) 하나를 밀어낸다.
  새 작업이 그보다 낮은 우선순위라면 새 작업을 거절한다.
- 대기 시간이 임계값을 넘은 작업은 꺼내기 직전에 한 단계 승격한다.
- 모든 연산은 동기/비차단이며, 단일 이벤트 루프 안에서만 변경된다.

디자인 패턴:
- 우선순위 큐(Priority Queue).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/contracts/task_models.py
"""

from __future__ import annotations

import logging
from typing import Iterator

from mataresit_search.contracts.task_models import SearchTask, TaskState
from mataresit_search.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SearchTaskQueue:
    """우선순위 기반 검색 작업 대기열."""

    def __init__(self, max_size: int) -> None:
        self._tasks: list[SearchTask] = []
        self.max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    @max_size.setter
    def max_size(self, value: int) -> None:
        if value < 1:
            raise ConfigurationError("max_size는 1 이상이어야 합니다")
        self._max_size = value

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[SearchTask]:
        return iter(list(self._tasks))

    def __bool__(self) -> bool:
        return bool(self._tasks)

    def enqueue(self, task: SearchTask) -> SearchTask | None:
        """작업을 우선순위 위치에 삽입하고, 밀려난 작업이 있으면 반환한다.

        반환된 작업은 큐에 남아 있지 않으며 호출자가 취소/오류 통지를 책임진다.
        """
        displaced: SearchTask | None = None
        if len(self._tasks) >= self._max_size:
            tail = self._tasks[-1]
            if task.priority < tail.priority:
                logger.warning(
                    "큐 포화로 신규 작업을 거절합니다: conversation=%s priority=%s",
                    task.conversation_id,
                    task.priority.name,
                )
                return task
            displaced = self._tasks.pop()
            logger.warning(
                "큐 포화로 대기 작업을 밀어냅니다: conversation=%s priority=%s",
                displaced.conversation_id,
                displaced.priority.name,
            )

        index = self._insert_index(task)
        self._tasks.insert(index, task)
        task.state = TaskState.QUEUED
        logger.debug(
            "검색 작업을 큐 %d번째에 추가했습니다: conversation=%s priority=%s",
            index + 1,
            task.conversation_id,
            task.priority.name,
        )
        return displaced

    def apply_boosts(self, now: float, threshold_ms: float) -> list[SearchTask]:
        """대기 시간이 임계값을 넘은 작업을 한 단계 승격하고 승격된 작업을 반환한다."""
        boosted: list[SearchTask] = []
        for task in self._tasks:
            if task.boosted or task.wait_ms(now) <= threshold_ms:
                continue
            task.boosted = True
            promoted = task.priority.boosted()
            if promoted == task.priority:
                continue
            task.priority = promoted
            boosted.append(task)

        if boosted:
            # sort는 안정 정렬이므로 같은 우선순위 안의 도착 순서가 유지된다.
            self._tasks.sort(key=lambda item: -item.priority)
            for task in boosted:
                logger.info(
                    "대기 시간 초과로 우선순위를 승격했습니다: conversation=%s priority=%s",
                    task.conversation_id,
                    task.priority.name,
                )
        return boosted

    def pop(self) -> SearchTask | None:
        """가장 앞의 작업을 꺼낸다. 비어 있으면 None."""
        if not self._tasks:
            return None
        return self._tasks.pop(0)

    def remove_conversation(self, conversation_id: str) -> list[SearchTask]:
        """대화에 속한 대기 작업을 모두 제거해 반환한다."""
        removed = [task for task in self._tasks if task.conversation_id == conversation_id]
        if removed:
            self._tasks = [task for task in self._tasks if task.conversation_id != conversation_id]
        return removed

    def position(self, conversation_id: str) -> int | None:
        """대화의 대기 위치(1부터 시작)를 반환한다."""
        for index, task in enumerate(self._tasks):
            if task.conversation_id == conversation_id:
                return index + 1
        return None

    def find(self, conversation_id: str) -> SearchTask | None:
        for task in self._tasks:
            if task.conversation_id == conversation_id:
                return task
        return None

    def shrink_to_capacity(self) -> list[SearchTask]:
        """최대 크기를 넘는 꼬리 작업을 제거해 반환한다. 최대 크기를 줄인 뒤 호출한다."""
        overflow = self._tasks[self._max_size :]
        del self._tasks[self._max_size :]
        return overflow

    def average_wait_ms(self, now: float) -> float:
        if not self._tasks:
            return 0.0
        return sum(task.wait_ms(now) for task in self._tasks) / len(self._tasks)

    def clear(self) -> list[SearchTask]:
        """큐를 비우고 남아 있던 작업을 반환한다."""
        drained = self._tasks
        self._tasks = []
        return drained

    def _insert_index(self, task: SearchTask) -> int:
        for index, queued in enumerate(self._tasks):
            if task.priority > queued.priority:
                return index
        return len(self._tasks)
