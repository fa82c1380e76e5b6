"""
목적:
- 검색 실행기 어댑터 계층의 공개 진입점을 제공한다.

설명:
- 오케스트레이터는 검색 함수를 직접 호출하지 않고 본 래퍼를 통해 호출한다.

디자인 패턴:
- 파사드(Facade).

참조:
- src_py/mataresit_search/runtime/executor.py
"""

from .executor import CallableSearchExecutor

__all__ = ["CallableSearchExecutor"]
