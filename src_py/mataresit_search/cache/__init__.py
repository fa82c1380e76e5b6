"""
목적:
- 검색 결과 캐시 계층의 공개 진입점을 제공한다.

설명:
- 프로세스 내 캐시와 Redis 캐시, 키 생성 유틸을 재노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/cache/memory.py
- src_py/mataresit_search/cache/redis_cache.py
- src_py/mataresit_search/cache/keys.py
"""

from .keys import build_cache_key, is_temporal_query
from .memory import InMemorySearchCache
from .redis_cache import RedisSearchCache

__all__ = [
    "InMemorySearchCache",
    "RedisSearchCache",
    "build_cache_key",
    "is_temporal_query",
]
