"""
목적:
- 교체 가능한 정책(우선순위 판정, 자원 추정) 계층의 공개 진입점을 제공한다.

설명:
- 오케스트레이터 내부를 수정하지 않고 휴리스틱을 교체할 수 있도록 분리했다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/policy/prioritizer.py
- src_py/mataresit_search/policy/resources.py
"""

from .prioritizer import KeywordSearchPrioritizer
from .resources import ProcessResourceEstimator, estimate_cpu

__all__ = ["KeywordSearchPrioritizer", "ProcessResourceEstimator", "estimate_cpu"]
