"""
목적:
- 메트릭용 자원 사용률 추정치를 계산한다.

설명:
- 메모리는 psutil로 현재 프로세스의 메모리 점유율(%)을 읽는다.
- CPU는 실측이 아니라 실행 중인 검색 수에 비례한 근사치다.
- 두 값 모두 대략적인 지표이며, 실행 중 검색 수에 대해 단조 증가만 보장한다.
- 설정의 memory_threshold/cpu_threshold를 넘으면 경고 로그를 남긴다. 스케줄링은 바꾸지 않는다.

디자인 패턴:
- 전략(Strategy).

참조:
- src_py/mataresit_search/metrics/collector.py
- src_py/mataresit_search/search/service.py
"""

from __future__ import annotations

import logging

import psutil

from mataresit_search.config.models import ResourceConfig
from mataresit_search.contracts.status_models import ResourceUtilization

logger = logging.getLogger(__name__)

CPU_PERCENT_PER_SEARCH = 20.0


class ProcessResourceEstimator:
    """현재 프로세스 기준 자원 사용률 추정기."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()

    def estimate(self, active_searches: int, config: ResourceConfig) -> ResourceUtilization:
        memory = min(100.0, max(0.0, float(self._process.memory_percent())))
        cpu = estimate_cpu(active_searches)
        if memory > config.memory_threshold:
            logger.warning("메모리 사용률이 임계값을 넘었습니다: memory=%.1f threshold=%.1f", memory, config.memory_threshold)
        if cpu > config.cpu_threshold:
            logger.warning("CPU 추정치가 임계값을 넘었습니다: cpu=%.1f threshold=%.1f", cpu, config.cpu_threshold)
        return ResourceUtilization(memory=memory, cpu=cpu)


def estimate_cpu(active_searches: int) -> float:
    return min(100.0, max(0, active_searches) * CPU_PERCENT_PER_SEARCH)
