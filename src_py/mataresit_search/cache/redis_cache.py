"""
목적:
- Redis 기반 검색 결과 캐시를 제공한다.

설명:
- 결과를 JSON 문자열로 직렬화해 TTL과 함께 저장한다.
- 여러 프로세스가 같은 결과 캐시를 공유할 때 사용한다.
- 적중/미스 카운터는 프로세스 로컬 값이다.

디자인 패턴:
- 저장소 패턴(Repository Pattern).

참조:
- src_py/mataresit_search/cache/keys.py
- src_py/mataresit_search/config/models.py
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel

from mataresit_search.cache.keys import build_cache_key, is_temporal_query
from mataresit_search.config.models import RedisCacheConfig
from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.contracts.status_models import CacheMetrics
from mataresit_search.exceptions import DependencyUnavailableError

logger = logging.getLogger(__name__)


class RedisSearchCache:
    """Redis 문자열 키 기반 검색 결과 캐시."""

    def __init__(self, config: RedisCacheConfig, client=None) -> None:
        self._config = config
        self._redis = client if client is not None else self._create_client(config)
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _create_client(config: RedisCacheConfig):
        try:
            from redis import asyncio as redis_asyncio
        except Exception as exc:  # pragma: no cover - 런타임 환경 의존
            raise DependencyUnavailableError(f"redis 패키지를 불러오지 못했습니다: {exc}") from exc

        return redis_asyncio.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            username=config.username,
            password=config.password,
            ssl=config.use_ssl,
            decode_responses=True,
        )

    @property
    def config(self) -> RedisCacheConfig:
        """캐시 설정 객체를 반환한다."""
        return self._config

    async def get(self, params: SearchParams, user_id: str) -> Any | None:
        """캐시된 검색 결과를 반환한다. 없으면 None."""
        if self._bypass(params):
            self._misses += 1
            return None

        try:
            raw = await self._redis.get(self._key(params, user_id))
        except Exception as exc:
            raise DependencyUnavailableError(f"Redis 캐시 조회 실패: {exc}") from exc

        if not raw:
            self._misses += 1
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("손상된 캐시 항목을 무시합니다: user=%s", user_id)
            self._misses += 1
            return None

        self._hits += 1
        return payload

    async def set(self, params: SearchParams, user_id: str, result: Any) -> None:
        """검색 결과를 TTL과 함께 저장한다."""
        if self._bypass(params):
            return

        payload = _to_json(result)
        try:
            await self._redis.set(self._key(params, user_id), payload, ex=self._config.ttl_sec)
        except Exception as exc:
            raise DependencyUnavailableError(f"Redis 캐시 저장 실패: {exc}") from exc

    async def delete(self, params: SearchParams, user_id: str) -> None:
        try:
            await self._redis.delete(self._key(params, user_id))
        except Exception as exc:
            raise DependencyUnavailableError(f"Redis 캐시 삭제 실패: {exc}") from exc

    async def close(self) -> None:
        await self._redis.aclose()

    def get_metrics(self) -> CacheMetrics:
        total = self._hits + self._misses
        return CacheMetrics(
            hits=self._hits,
            misses=self._misses,
            total_requests=total,
            cache_efficiency=(self._hits / total * 100.0) if total else 0.0,
        )

    def _key(self, params: SearchParams, user_id: str) -> str:
        return f"{self._config.key_prefix}:{user_id}:{build_cache_key(params, user_id)}"

    def _bypass(self, params: SearchParams) -> bool:
        return self._config.bypass_temporal_queries and is_temporal_query(params.query)


def _to_json(result: Any) -> str:
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    return json.dumps(result, ensure_ascii=False, default=str)
