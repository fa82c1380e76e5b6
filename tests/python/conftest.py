from __future__ import annotations

import asyncio
from typing import Any

import pytest
import pytest_asyncio

from mataresit_search import (
    BackgroundSearchService,
    CacheMetrics,
    ResourceConfig,
    ResourceUtilization,
    SearchParams,
)
from mataresit_search.policy import estimate_cpu


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeCache:
    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], Any] = {}
        self.calls: list[str] = []
        self.efficiency = 75.0

    async def get(self, params: SearchParams, user_id: str) -> Any | None:
        self.calls.append(params.query)
        return self.entries.get((params.query, user_id))

    async def set(self, params: SearchParams, user_id: str, result: Any) -> None:
        self.entries[(params.query, user_id)] = result

    def get_metrics(self) -> CacheMetrics:
        return CacheMetrics(hits=75, misses=25, total_requests=100, cache_efficiency=self.efficiency)


class FakeExecutor:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, int] = {}

    def block(self, query: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[query] = gate
        return gate

    def fail(self, query: str, times: int = 1_000) -> None:
        self.failures[query] = times

    async def execute_search(self, params: SearchParams, user_id: str) -> Any:
        self.calls.append(params.query)
        gate = self.gates.get(params.query)
        if gate is not None:
            await gate.wait()
        remaining = self.failures.get(params.query, 0)
        if remaining > 0:
            self.failures[params.query] = remaining - 1
            raise RuntimeError(f"remote search failed for {params.query}")
        return {"query": params.query, "user_id": user_id, "results": [{"id": "r-1"}]}


class FixedResourceEstimator:
    def estimate(self, active_searches: int, config: ResourceConfig) -> ResourceUtilization:
        return ResourceUtilization(memory=12.5, cpu=estimate_cpu(active_searches))


class CallbackRecorder:
    def __init__(self) -> None:
        self.stages: list[str] = []
        self.results: list[Any] = []
        self.errors: list[Exception] = []
        self.done = asyncio.Event()

    def on_progress(self, stage: str, message: str) -> None:
        self.stages.append(stage)

    def on_complete(self, result: Any) -> None:
        self.results.append(result)
        self.done.set()

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)
        self.done.set()

    @property
    def callbacks(self) -> dict[str, Any]:
        return {
            "on_progress": self.on_progress,
            "on_complete": self.on_complete,
            "on_error": self.on_error,
        }

    async def wait(self, timeout: float = 1.0) -> None:
        await asyncio.wait_for(self.done.wait(), timeout)


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def params() -> SearchParams:
    return SearchParams(query="test query", sources=["receipts"], limit=20)


@pytest_asyncio.fixture
async def make_service(cache: FakeCache, executor: FakeExecutor):
    created: list[BackgroundSearchService] = []

    def factory(**overrides: Any) -> BackgroundSearchService:
        clock = overrides.pop("clock", None)
        config = ResourceConfig(**{"retry_delay_ms": 1, "search_timeout_ms": 1_000, **overrides})
        service = BackgroundSearchService(
            cache,
            executor,
            config=config,
            resource_estimator=FixedResourceEstimator(),
            clock=clock,
        )
        created.append(service)
        return service

    yield factory

    for service in created:
        service.cleanup()
    await settle()
