"""
목적:
- 검색 파라미터와 사용자 ID로 캐시 키를 만든다.

설명:
- 질의는 소문자/공백 정리, 소스는 정렬, 필터는 키 정렬 JSON으로 정규화한 뒤 해시한다.
- 날짜/기간 표현이 들어간 질의(temporal query)는 항상 최신 결과가 필요하므로
  캐시 구현체가 조회/저장을 건너뛸 수 있도록 판별 함수를 제공한다.

디자인 패턴:
- 유틸리티 모듈(Utility Module).

참조:
- src_py/mataresit_search/cache/memory.py
- src_py/mataresit_search/cache/redis_cache.py
"""

from __future__ import annotations

import hashlib
import json
import re

from mataresit_search.contracts.search_models import SearchParams

_MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
    "|jan|feb|mar|apr|jun|jul|aug|sep|oct|nov|dec"
)

_TEMPORAL_PATTERNS = [
    re.compile(rf"\b(from|since|after|before|during|in|on)\s+({_MONTHS})\b", re.IGNORECASE),
    re.compile(
        r"\b(yesterday|today|tomorrow|last\s+week|this\s+week|next\s+week"
        r"|last\s+month|this\s+month|next\s+month)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),
    re.compile(r"\b\d{1,2}-\d{1,2}-\d{2,4}\b"),
    re.compile(rf"\b(from|since|after|before)\s+\d{{1,2}}\s+({_MONTHS})\b", re.IGNORECASE),
]


def is_temporal_query(query: str) -> bool:
    """날짜/기간 표현이 포함된 질의인지 판별한다."""
    return any(pattern.search(query) for pattern in _TEMPORAL_PATTERNS)


def build_cache_key(params: SearchParams, user_id: str) -> str:
    """정규화한 파라미터의 SHA-256 해시를 캐시 키로 반환한다."""
    key_data = {
        "query": params.query.strip().lower(),
        "sources": sorted(params.sources),
        "filters": json.dumps(params.filters, sort_keys=True, ensure_ascii=False, default=str),
        "user_id": user_id,
        "language": params.filters.get("language"),
        "similarity_threshold": params.similarity_threshold,
        "limit": params.limit,
        "offset": params.offset,
    }
    canonical = json.dumps(key_data, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
