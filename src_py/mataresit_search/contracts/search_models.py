"""
목적:
- 검색 요청 파라미터 모델을 정의한다.

설명:
- 통합 검색 엣지 함수로 전달되는 필터/정렬 파라미터를 하나의 모델로 고정한다.
- 실행기/캐시가 추가 키를 사용할 수 있도록 알 수 없는 키도 보존한다.

디자인 패턴:
- DTO(Data Transfer Object).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/cache/keys.py
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchParams(BaseModel):
    """통합 검색 파라미터 모델."""

    model_config = ConfigDict(extra="allow")

    query: str = Field(default="")
    sources: list[str] = Field(default_factory=list)
    filters: dict[str, Any] = Field(default_factory=dict)
    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)
    similarity_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    include_metadata: bool = Field(default=True)
    aggregation_mode: str = Field(default="relevance", min_length=1)

    def filter_count(self) -> int:
        """값이 지정된 필터 키 개수를 반환한다."""
        return sum(1 for value in self.filters.values() if value is not None)
