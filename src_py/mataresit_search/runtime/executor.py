"""
목적:
- 임의의 검색 함수를 오케스트레이터의 실행기 계약에 맞게 감싼다.

설명:
- 코루틴 함수는 그대로 await 하고, 동기 함수는 `asyncio.to_thread`로 실행한다.
- 실행 실패는 `SearchExecutionError`로 변환한다.
- 캐시가 주어지면 성공 결과를 캐시에 기록한다(write-through).
  캐시 기록 실패는 검색 결과에 영향을 주지 않는다.

디자인 패턴:
- 어댑터(Adapter).

참조:
- src_py/mataresit_search/contracts/collaborators.py
- src_py/mataresit_search/search/service.py
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.exceptions import SearchExecutionError

logger = logging.getLogger(__name__)

SearchFunction = Callable[[SearchParams, str], Any]


class CallableSearchExecutor:
    """검색 함수 래퍼 실행기."""

    def __init__(self, search_fn: SearchFunction, cache=None) -> None:
        self._search_fn = search_fn
        self._cache = cache

    async def execute_search(self, params: SearchParams, user_id: str) -> Any:
        """검색 함수를 실행하고 결과를 반환한다."""
        try:
            if inspect.iscoroutinefunction(self._search_fn):
                result = await self._search_fn(params, user_id)
            else:
                result = await asyncio.to_thread(self._search_fn, params, user_id)
        except asyncio.CancelledError:
            raise
        except SearchExecutionError:
            raise
        except Exception as exc:
            raise SearchExecutionError(f"검색 실행 실패: {exc}") from exc

        if result is None:
            raise SearchExecutionError("검색 함수가 결과를 반환하지 않았습니다")

        await self._write_through(params, user_id, result)
        return result

    async def _write_through(self, params: SearchParams, user_id: str, result: Any) -> None:
        if self._cache is None or not hasattr(self._cache, "set"):
            return
        try:
            await self._cache.set(params, user_id, result)
        except Exception:
            logger.warning("검색 결과 캐시 기록에 실패했습니다: user=%s", user_id, exc_info=True)
