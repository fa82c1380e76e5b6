"""
목적:
- 백그라운드 검색 계층의 예외 타입을 표준화한다.

설명:
- 큐 포화, 타임아웃, 실행 실패, 취소, 의존성 오류를 명시적으로 구분해
  콜백 소비자가 처리 전략을 선택할 수 있게 한다.
- 작업 단위 오류는 호출 스택으로 던지지 않고 `on_error` 콜백으로만 전달한다.

디자인 패턴:
- 계층형 예외(Hierarchical Exception).

참조:
- src_py/mataresit_search/search/service.py
- src_py/mataresit_search/runtime/executor.py
"""


class MataresitSearchError(Exception):
    """백그라운드 검색 공통 베이스 예외."""


class ConfigurationError(MataresitSearchError):
    """설정값 또는 호출 인자가 유효하지 않을 때 발생한다."""


class QueueFullError(MataresitSearchError):
    """큐 포화로 작업이 밀려나거나 수용되지 못했을 때 콜백으로 전달된다."""


class SearchTimeoutError(MataresitSearchError):
    """단일 검색 시도가 제한 시간을 초과했을 때 사용한다."""


class SearchExecutionError(MataresitSearchError):
    """외부 검색 실행기가 실패했을 때 사용한다."""


class SearchCancelledError(MataresitSearchError):
    """작업이 완료 전에 취소되었음을 나타낸다. 콜백으로 전달되지 않는다."""


class DependencyUnavailableError(MataresitSearchError):
    """Redis/psutil 등 선택 의존성을 사용할 수 없을 때 발생한다."""
