from __future__ import annotations

import pytest

from mataresit_search import ConfigurationError, SearchParams, SearchPriority, SearchTask, TaskState
from mataresit_search.queue import SearchTaskQueue


def make_task(conversation_id: str, priority: SearchPriority, created_at: float = 0.0) -> SearchTask:
    return SearchTask(
        conversation_id=conversation_id,
        query=f"query for {conversation_id}",
        params=SearchParams(query=f"query for {conversation_id}"),
        user_id="user-1",
        priority=priority,
        created_at=created_at,
        max_retries=2,
    )


def drain(queue: SearchTaskQueue) -> list[str]:
    order = []
    while (task := queue.pop()) is not None:
        order.append(task.conversation_id)
    return order


def test_dequeue_order_is_priority_then_arrival() -> None:
    queue = SearchTaskQueue(max_size=10)
    arrivals = [
        ("low", SearchPriority.LOW),
        ("high", SearchPriority.HIGH),
        ("normal-1", SearchPriority.NORMAL),
        ("urgent", SearchPriority.URGENT),
        ("normal-2", SearchPriority.NORMAL),
    ]
    for conversation_id, priority in arrivals:
        assert queue.enqueue(make_task(conversation_id, priority)) is None

    assert drain(queue) == ["urgent", "high", "normal-1", "normal-2", "low"]


def test_overflow_evicts_exactly_one_lowest_priority_task() -> None:
    queue = SearchTaskQueue(max_size=3)
    queue.enqueue(make_task("high", SearchPriority.HIGH))
    queue.enqueue(make_task("low", SearchPriority.LOW))
    queue.enqueue(make_task("normal", SearchPriority.NORMAL))

    evicted = queue.enqueue(make_task("urgent", SearchPriority.URGENT))

    assert evicted is not None
    assert evicted.conversation_id == "low"
    assert len(queue) == 3
    assert drain(queue) == ["urgent", "high", "normal"]


def test_overflow_rejects_new_task_that_ranks_below_every_queued_task() -> None:
    queue = SearchTaskQueue(max_size=2)
    queue.enqueue(make_task("high-1", SearchPriority.HIGH))
    queue.enqueue(make_task("high-2", SearchPriority.HIGH))

    newcomer = make_task("low", SearchPriority.LOW)
    rejected = queue.enqueue(newcomer)

    assert rejected is newcomer
    assert drain(queue) == ["high-1", "high-2"]


def test_overflow_with_equal_priority_displaces_latest_arrival() -> None:
    queue = SearchTaskQueue(max_size=2)
    queue.enqueue(make_task("first", SearchPriority.NORMAL))
    queue.enqueue(make_task("second", SearchPriority.NORMAL))

    evicted = queue.enqueue(make_task("third", SearchPriority.NORMAL))

    assert evicted is not None
    assert evicted.conversation_id == "second"
    assert drain(queue) == ["first", "third"]


def test_boost_raises_priority_once_and_caps_at_urgent() -> None:
    queue = SearchTaskQueue(max_size=5)
    low = make_task("low", SearchPriority.LOW, created_at=0.0)
    urgent = make_task("urgent", SearchPriority.URGENT, created_at=0.0)
    fresh = make_task("fresh", SearchPriority.LOW, created_at=900.0)
    for task in (urgent, low, fresh):
        queue.enqueue(task)

    boosted = queue.apply_boosts(now=1_000.0, threshold_ms=500.0)

    assert boosted == [low]
    assert low.priority is SearchPriority.NORMAL
    assert urgent.priority is SearchPriority.URGENT
    assert fresh.priority is SearchPriority.LOW

    assert queue.apply_boosts(now=5_000.0, threshold_ms=500.0) == [fresh]
    assert low.priority is SearchPriority.NORMAL


def test_boost_reorders_queue_stably() -> None:
    queue = SearchTaskQueue(max_size=5)
    queue.enqueue(make_task("normal", SearchPriority.NORMAL, created_at=900.0))
    queue.enqueue(make_task("old-low", SearchPriority.LOW, created_at=0.0))

    queue.apply_boosts(now=1_000.0, threshold_ms=500.0)

    assert drain(queue) == ["normal", "old-low"]


def test_remove_conversation_and_position() -> None:
    queue = SearchTaskQueue(max_size=5)
    queue.enqueue(make_task("a", SearchPriority.NORMAL))
    queue.enqueue(make_task("b", SearchPriority.NORMAL))
    queue.enqueue(make_task("c", SearchPriority.NORMAL))

    assert queue.position("b") == 2
    removed = queue.remove_conversation("b")

    assert [task.conversation_id for task in removed] == ["b"]
    assert queue.position("b") is None
    assert queue.position("c") == 2
    assert queue.find("c").conversation_id == "c"
    assert queue.find("b") is None


def test_shrink_to_capacity_returns_tail() -> None:
    queue = SearchTaskQueue(max_size=4)
    for name, priority in [("low", SearchPriority.LOW), ("high", SearchPriority.HIGH), ("normal", SearchPriority.NORMAL)]:
        queue.enqueue(make_task(name, priority))

    queue.max_size = 1
    trimmed = queue.shrink_to_capacity()

    assert [task.conversation_id for task in trimmed] == ["normal", "low"]
    assert drain(queue) == ["high"]


def test_average_wait_and_clear() -> None:
    queue = SearchTaskQueue(max_size=5)
    assert queue.average_wait_ms(now=100.0) == 0.0

    queue.enqueue(make_task("a", SearchPriority.NORMAL, created_at=0.0))
    queue.enqueue(make_task("b", SearchPriority.NORMAL, created_at=50.0))

    assert queue.average_wait_ms(now=100.0) == pytest.approx(75.0)
    assert all(task.state is TaskState.QUEUED for task in queue)

    drained = queue.clear()
    assert len(drained) == 2
    assert len(queue) == 0


def test_max_size_must_be_positive() -> None:
    with pytest.raises(ConfigurationError):
        SearchTaskQueue(max_size=0)
