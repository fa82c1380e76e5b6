"""
목적:
- 메트릭 수집 계층의 공개 진입점을 제공한다.

설명:
- 집계 메트릭 수집기와 사용률 계산 함수를 재노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/metrics/collector.py
"""

from .collector import SearchMetricsCollector, utilization

__all__ = ["SearchMetricsCollector", "utilization"]
