"""
목적:
- 백그라운드 검색 오케스트레이션 계층의 공개 심볼을 정의한다.

설명:
- 외부에는 `BackgroundSearchService`를 기본 진입점으로 제공한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/search/service.py
"""

from mataresit_search.search.service import BackgroundSearchService

__all__ = ["BackgroundSearchService"]
