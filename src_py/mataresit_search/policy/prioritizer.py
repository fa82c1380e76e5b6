"""
목적:
- 신규 검색 작업의 초기 우선순위를 판정한다.

설명:
- 질의 키워드(긴급 -> 중요 -> 보류 순서)로 먼저 판정하고, 해당 키워드가 없으면
  질의 길이/필터 개수로 복잡도를 보고 HIGH 또는 NORMAL을 부여한다.
- 판정 결과에는 사유 목록과 예상 대기 시간을 함께 담는다. 시스템 부하는
  대기 시간 추정에만 쓰고 우선순위 자체는 바꾸지 않는다.
- 키워드는 기본적으로 부분 문자열로 일치시킨다("needed"는 "need"에 걸린다).
  `whole_word_keywords`를 켜면 단어 경계 단위로만 일치시킨다.
- 키워드/임계값은 `PrioritizerConfig`로 교체할 수 있다.

디자인 패턴:
- 전략(Strategy).

참조:
- src_py/mataresit_search/config/models.py
- src_py/mataresit_search/search/service.py
"""

from __future__ import annotations

import re
from collections import Counter

from mataresit_search.config.models import PrioritizerConfig
from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.contracts.status_models import PriorityAnalytics, PriorityDecision, SystemLoad
from mataresit_search.contracts.task_models import SearchPriority

_BASE_WAIT_MS = 2_000.0
_QUEUE_DELAY_MS = 500.0
_MIN_WAIT_MS = 100.0
_WAIT_MULTIPLIER = {
    SearchPriority.URGENT: 0.1,
    SearchPriority.HIGH: 0.3,
    SearchPriority.NORMAL: 1.0,
    SearchPriority.LOW: 2.0,
}


class KeywordSearchPrioritizer:
    """키워드/복잡도 휴리스틱 기반 우선순위 판정기."""

    def __init__(self, config: PrioritizerConfig | None = None) -> None:
        self._config = config or PrioritizerConfig()
        whole_word = self._config.whole_word_keywords
        self._rules = [
            (SearchPriority.URGENT, _compile(self._config.urgent_keywords, whole_word), "긴급 키워드"),
            (SearchPriority.HIGH, _compile(self._config.important_keywords, whole_word), "중요 키워드"),
            (SearchPriority.LOW, _compile(self._config.deferrable_keywords, whole_word), "보류 가능 키워드"),
        ]
        self._history: list[SearchPriority] = []

    @property
    def config(self) -> PrioritizerConfig:
        return self._config

    def determine_priority(
        self,
        query: str,
        params: SearchParams,
        user_id: str,
        load: SystemLoad,
    ) -> PriorityDecision:
        """질의와 부하 스냅샷으로 우선순위를 판정한다."""
        priority, reasoning = self._classify(query, params)

        if load.queue_length > 0:
            reasoning.append(f"대기 중인 검색 {load.queue_length}건")

        decision = PriorityDecision(
            priority=priority,
            reasoning=reasoning,
            estimated_wait_ms=self.estimate_wait_ms(priority, load),
        )
        self._record(priority)
        return decision

    def estimate_wait_ms(self, priority: SearchPriority, load: SystemLoad) -> float:
        base = load.average_response_time_ms or _BASE_WAIT_MS
        wait = base * _WAIT_MULTIPLIER[priority] + load.queue_length * _QUEUE_DELAY_MS
        return max(_MIN_WAIT_MS, wait)

    def get_analytics(self) -> PriorityAnalytics:
        counts = Counter(self._history)
        return PriorityAnalytics(
            total_decisions=len(self._history),
            distribution={priority.name: counts.get(priority, 0) for priority in SearchPriority},
        )

    def clear_history(self) -> None:
        self._history = []

    def _classify(self, query: str, params: SearchParams) -> tuple[SearchPriority, list[str]]:
        lowered = query.lower()
        for priority, pattern, label in self._rules:
            match = pattern.search(lowered)
            if match:
                return priority, [f"{label} '{match.group(0)}'"]

        if len(query) > self._config.complex_query_length:
            return SearchPriority.HIGH, [f"긴 질의({len(query)}자)"]
        filter_count = params.filter_count()
        if filter_count > self._config.complex_filter_count:
            return SearchPriority.HIGH, [f"복잡한 필터({filter_count}개)"]

        return SearchPriority.NORMAL, ["기본 우선순위"]

    def _record(self, priority: SearchPriority) -> None:
        self._history.append(priority)
        if len(self._history) > self._config.history_limit:
            self._history = self._history[-self._config.history_keep :]


def _compile(keywords: list[str], whole_word: bool) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    if whole_word:
        return re.compile(rf"\b(?:{alternatives})\b")
    return re.compile(alternatives)
