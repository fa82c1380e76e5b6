"""
목적:
- 프로세스 내 검색 작업 큐 계층의 공개 진입점을 제공한다.

설명:
- 우선순위 삽입, 밀어내기, 대기 승격을 담당하는 객체를 재노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/mataresit_search/queue/priority_queue.py
"""

from .priority_queue import SearchTaskQueue

__all__ = ["SearchTaskQueue"]
