"""
목적:
- 백그라운드 검색 라이브러리의 설정 인터페이스를 정의한다.

설명:
- 동시성/큐/타임아웃/재시도/주기 작업 값을 `ResourceConfig` 하나로 관리한다.
- 우선순위 키워드와 캐시 백엔드 설정은 별도 모델로 분리한다.
- 라이브러리는 환경 변수를 직접 읽지 않는다. 설정 객체는 호출자가 생성해 주입한다.

디자인 패턴:
- 값 객체(Value Object).

참조:
- scripts/run-background-search.py
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/policy/prioritizer.py
- src_py/mataresit_search/cache/redis_cache.py
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ResourceConfig(BaseModel):
    """백그라운드 검색 자원 제어 설정 모델."""

    max_concurrent_searches: int = Field(default=3, ge=1)
    max_queue_size: int = Field(default=20, ge=1)
    search_timeout_ms: int = Field(default=30_000, ge=1)
    retry_delay_ms: int = Field(default=2_000, ge=0)
    priority_boost_threshold_ms: int = Field(default=10_000, ge=0)
    memory_threshold: float = Field(default=80.0, ge=0.0, le=100.0)
    cpu_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    default_max_retries: int = Field(default=2, ge=0)
    processing_interval_ms: int = Field(default=1_000, ge=1)
    metrics_interval_ms: int = Field(default=5_000, ge=1)
    completed_ttl_ms: int = Field(default=3_600_000, ge=1)
    history_limit: int = Field(default=1_000, ge=1)
    history_keep: int = Field(default=500, ge=1)

    @field_validator("history_keep")
    @classmethod
    def validate_history_keep(cls, value: int, info) -> int:
        history_limit = info.data.get("history_limit", 1_000)
        if value > history_limit:
            raise ValueError("history_keep은 history_limit 이하이어야 합니다")
        return value


class PrioritizerConfig(BaseModel):
    """키워드 기반 우선순위 판정 설정 모델."""

    urgent_keywords: list[str] = Field(
        default_factory=lambda: ["urgent", "asap", "immediately", "now", "emergency"]
    )
    important_keywords: list[str] = Field(
        default_factory=lambda: ["important", "critical", "need", "must", "required"]
    )
    deferrable_keywords: list[str] = Field(
        default_factory=lambda: ["maybe", "perhaps", "sometime", "eventually", "when possible"]
    )
    whole_word_keywords: bool = Field(default=False)
    complex_query_length: int = Field(default=100, ge=1)
    complex_filter_count: int = Field(default=3, ge=0)
    history_limit: int = Field(default=10_000, ge=1)
    history_keep: int = Field(default=5_000, ge=1)

    @field_validator("urgent_keywords", "important_keywords", "deferrable_keywords")
    @classmethod
    def normalize_keywords(cls, value: list[str]) -> list[str]:
        normalized = [keyword.strip().lower() for keyword in value if keyword.strip()]
        if not normalized:
            raise ValueError("키워드 목록은 비어 있을 수 없습니다")
        return normalized

    @field_validator("history_keep")
    @classmethod
    def validate_history_keep(cls, value: int, info) -> int:
        history_limit = info.data.get("history_limit", 10_000)
        if value > history_limit:
            raise ValueError("history_keep은 history_limit 이하이어야 합니다")
        return value


class MemoryCacheConfig(BaseModel):
    """프로세스 내 검색 결과 캐시 설정 모델."""

    ttl_ms: int = Field(default=180_000, ge=1)
    max_entries: int = Field(default=150, ge=1)
    bypass_temporal_queries: bool = Field(default=True)


class RedisCacheConfig(BaseModel):
    """Redis 검색 결과 캐시 설정 모델."""

    host: str = Field(min_length=1)
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    username: str | None = Field(default=None)
    password: str | None = Field(default=None)
    use_ssl: bool = Field(default=False)
    key_prefix: str = Field(default="mataresit:search-cache", min_length=1)
    ttl_sec: int = Field(default=900, ge=1)
    bypass_temporal_queries: bool = Field(default=True)
