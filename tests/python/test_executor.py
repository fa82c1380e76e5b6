from __future__ import annotations

import pytest

from mataresit_search import CallableSearchExecutor, SearchExecutionError, SearchParams


class RecordingCache:
    def __init__(self, fail: bool = False) -> None:
        self.stored: list[tuple[str, str, object]] = []
        self.fail = fail

    async def set(self, params: SearchParams, user_id: str, result: object) -> None:
        if self.fail:
            raise ConnectionError("cache down")
        self.stored.append((params.query, user_id, result))


@pytest.mark.asyncio
async def test_async_search_function_result_is_cached() -> None:
    cache = RecordingCache()

    async def search(params: SearchParams, user_id: str) -> dict:
        return {"query": params.query, "user": user_id}

    executor = CallableSearchExecutor(search, cache=cache)
    result = await executor.execute_search(SearchParams(query="coffee"), "user-1")

    assert result == {"query": "coffee", "user": "user-1"}
    assert cache.stored == [("coffee", "user-1", result)]


@pytest.mark.asyncio
async def test_sync_search_function_runs_in_thread() -> None:
    def search(params: SearchParams, user_id: str) -> list[str]:
        return [params.query.upper()]

    executor = CallableSearchExecutor(search)

    assert await executor.execute_search(SearchParams(query="fuel"), "user-1") == ["FUEL"]


@pytest.mark.asyncio
async def test_search_failure_is_wrapped() -> None:
    async def search(params: SearchParams, user_id: str) -> dict:
        raise TimeoutError("edge function unavailable")

    executor = CallableSearchExecutor(search)

    with pytest.raises(SearchExecutionError, match="edge function unavailable") as exc_info:
        await executor.execute_search(SearchParams(query="coffee"), "user-1")
    assert isinstance(exc_info.value.__cause__, TimeoutError)


@pytest.mark.asyncio
async def test_missing_result_is_an_error() -> None:
    executor = CallableSearchExecutor(lambda params, user_id: None)

    with pytest.raises(SearchExecutionError, match="반환하지 않았습니다"):
        await executor.execute_search(SearchParams(query="coffee"), "user-1")


@pytest.mark.asyncio
async def test_cache_write_failure_keeps_result() -> None:
    async def search(params: SearchParams, user_id: str) -> dict:
        return {"total": 1}

    executor = CallableSearchExecutor(search, cache=RecordingCache(fail=True))

    assert await executor.execute_search(SearchParams(query="coffee"), "user-1") == {"total": 1}
