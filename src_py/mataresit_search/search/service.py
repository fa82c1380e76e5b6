"""
목적:
- 대화 단위 백그라운드 검색을 우선순위/동시성 제한 아래에서 조정한다.

설명:
- 대화마다 진행 중인 검색은 최대 하나다. 새 검색은 이전 검색을 먼저 취소한다.
- 여유가 있으면 즉시 실행하고, 없으면 우선순위 큐에 넣는다.
- 실행은 캐시 조회 -> (미스 시) 외부 실행기 호출을 타임아웃/취소와 경쟁시키는 순서다.
- 실패 시 `retry_delay_ms * 재시도 횟수`만큼 기다린 뒤 재시도하고, 한도를 넘으면 실패로 종결한다.
- 결과는 콜백(on_progress/on_complete/on_error)으로 전달한다. 종결 콜백은 작업당 정확히 한 번이며,
  취소된 작업은 어떤 종결 콜백도 호출하지 않는다.
- 모든 상태 변경은 await 사이에서 동기적으로 끝나므로 잠금이 필요 없다.

디자인 패턴:
- 서비스 레이어(Service Layer) + 스케줄러(Scheduler).

참조:
- src_py/mataresit_search/queue/priority_queue.py
- src_py/mataresit_search/policy/prioritizer.py
- src_py/mataresit_search/metrics/collector.py
- src_py/mataresit_search/contracts/collaborators.py
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from mataresit_search.config.models import ResourceConfig
from mataresit_search.contracts.collaborators import (
    ResourceEstimator,
    SearchCache,
    SearchExecutor,
    SearchPrioritizer,
)
from mataresit_search.contracts.search_models import SearchParams
from mataresit_search.contracts.status_models import (
    BackgroundSearchMetrics,
    QueueStatus,
    SearchStatus,
)
from mataresit_search.contracts.task_models import (
    CompleteCallback,
    ErrorCallback,
    ProgressCallback,
    SearchPriority,
    SearchTask,
    TaskState,
)
from mataresit_search.exceptions import (
    ConfigurationError,
    QueueFullError,
    SearchCancelledError,
    SearchExecutionError,
    SearchTimeoutError,
)
from mataresit_search.metrics.collector import SearchMetricsCollector, utilization
from mataresit_search.policy.prioritizer import KeywordSearchPrioritizer
from mataresit_search.policy.resources import ProcessResourceEstimator
from mataresit_search.queue.priority_queue import SearchTaskQueue

logger = logging.getLogger(__name__)


class BackgroundSearchService:
    """우선순위 큐와 동시성 상한을 가진 백그라운드 검색 오케스트레이터."""

    def __init__(
        self,
        cache: SearchCache,
        executor: SearchExecutor,
        config: ResourceConfig | None = None,
        prioritizer: SearchPrioritizer | None = None,
        resource_estimator: ResourceEstimator | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._cache = cache
        self._executor = executor
        self._config = config or ResourceConfig()
        self._prioritizer = prioritizer or KeywordSearchPrioritizer()
        self._resource_estimator = resource_estimator or ProcessResourceEstimator()
        self._clock = clock or _monotonic_ms

        self._queue = SearchTaskQueue(self._config.max_queue_size)
        self._active: dict[str, SearchTask] = {}
        self._completed: dict[str, SearchTask] = {}
        self._history: list[SearchTask] = []
        self._metrics = SearchMetricsCollector()

        self._runners: set[asyncio.Task] = set()
        self._loops: list[asyncio.Task] = []

    @property
    def config(self) -> ResourceConfig:
        """현재 자원 설정 객체를 반환한다."""
        return self._config

    @property
    def running(self) -> bool:
        return bool(self._loops)

    # ------------------------------------------------------------------
    # 수명 주기
    # ------------------------------------------------------------------

    def start(self) -> None:
        """주기 루프(큐 처리, 메트릭 수집)를 시작한다. 실행 중인 이벤트 루프가 필요하다."""
        if self._loops:
            return
        self._loops = [
            asyncio.create_task(
                self._run_periodic("processing_interval_ms", self.run_maintenance, "큐 처리"),
                name="background-search:processing",
            ),
            asyncio.create_task(
                self._run_periodic("metrics_interval_ms", self.collect_metrics, "메트릭 수집"),
                name="background-search:metrics",
            ),
        ]
        logger.info("백그라운드 검색 서비스를 시작했습니다")

    async def stop(self) -> None:
        """주기 루프를 중지한다. 진행 중인 검색은 계속된다."""
        loops, self._loops = self._loops, []
        for loop_task in loops:
            loop_task.cancel()
        await asyncio.gather(*loops, return_exceptions=True)

    async def __aenter__(self) -> BackgroundSearchService:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        pending = [*self._runners, *self._loops]
        self.cleanup()
        await asyncio.gather(*pending, return_exceptions=True)

    def cleanup(self) -> None:
        """진행/대기 중인 모든 작업을 취소하고 내부 상태를 비운다."""
        for task in list(self._active.values()):
            task.cancel()
        for task in self._queue.clear():
            task.cancel()
        for runner in list(self._runners):
            runner.cancel()
        for loop_task in self._loops:
            loop_task.cancel()

        self._loops = []
        self._active.clear()
        self._completed.clear()
        self._history = []
        logger.info("백그라운드 검색 서비스 상태를 정리했습니다")

    # ------------------------------------------------------------------
    # 공개 API
    # ------------------------------------------------------------------

    async def start_search(
        self,
        conversation_id: str,
        query: str,
        params: SearchParams | Mapping[str, Any] | None,
        user_id: str,
        *,
        priority: SearchPriority | int | None = None,
        max_retries: int | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> str:
        """대화의 검색을 시작하고 작업 ID를 반환한다.

        같은 대화에 대기/실행 중인 검색이 있으면 먼저 취소한다. 큐 포화, 실행 실패,
        타임아웃은 예외로 던지지 않고 `on_error`로 전달한다.
        """
        if not conversation_id:
            raise ConfigurationError("conversation_id는 비어 있을 수 없습니다")
        if max_retries is not None and max_retries < 0:
            raise ConfigurationError("max_retries는 0 이상이어야 합니다")

        search_params = _coerce_params(params, query)

        self.cancel_search(conversation_id)

        if priority is None:
            load = self._metrics.system_load(
                active_searches=len(self._active),
                queue_length=len(self._queue),
            )
            decision = self._prioritizer.determine_priority(query, search_params, user_id, load)
            resolved_priority = decision.priority
            logger.debug(
                "우선순위 판정: conversation=%s priority=%s reasoning=%s",
                conversation_id,
                decision.priority.name,
                decision.reasoning,
            )
        else:
            resolved_priority = SearchPriority(priority)

        task = SearchTask(
            conversation_id=conversation_id,
            query=query,
            params=search_params,
            user_id=user_id,
            priority=resolved_priority,
            created_at=self._clock(),
            max_retries=self._config.default_max_retries if max_retries is None else max_retries,
            on_progress=on_progress,
            on_complete=on_complete,
            on_error=on_error,
        )
        self._metrics.record_submitted()

        if len(self._active) < self._config.max_concurrent_searches:
            self._activate(task)
        else:
            displaced = self._queue.enqueue(task)
            if displaced is not None:
                self._reject(displaced, QueueFullError("큐가 가득 차 검색 작업이 제외되었습니다"))

        return task.id

    def cancel_search(self, conversation_id: str) -> None:
        """대화의 실행 중/대기 중 검색을 취소한다."""
        for task in [task for task in self._active.values() if task.conversation_id == conversation_id]:
            task.cancel()
            del self._active[task.id]
            logger.info("실행 중인 검색을 취소했습니다: conversation=%s", conversation_id)

        for task in self._queue.remove_conversation(conversation_id):
            task.cancel()
            logger.info("대기 중인 검색을 제거했습니다: conversation=%s", conversation_id)

    def get_search_status(self, conversation_id: str) -> SearchStatus:
        """실행 -> 대기 -> 종결 순서로 대화의 검색 상태를 조회한다."""
        for task in self._active.values():
            if task.conversation_id == conversation_id:
                return SearchStatus(
                    status="active",
                    progress=task.progress or "검색 중...",
                    priority=task.priority,
                )

        queued = self._queue.find(conversation_id)
        if queued is not None:
            return SearchStatus(
                status="queued",
                progress="대기열에서 순서를 기다리는 중...",
                queue_position=self._queue.position(conversation_id),
                priority=queued.priority,
            )

        record = self._latest_record(conversation_id)
        if record is None:
            return SearchStatus(status="idle")
        if record.state is TaskState.FAILED:
            return SearchStatus(
                status="failed",
                error=str(record.error) if record.error else None,
            )
        return SearchStatus(status="completed")

    async def get_search_results(self, conversation_id: str) -> Any | None:
        """완료된 검색의 결과를 캐시에서 다시 조회한다."""
        record = self._latest_record(conversation_id)
        if record is None or record.state is not TaskState.COMPLETED:
            return None
        return await self._cache.get(record.params, record.user_id)

    def get_metrics(self) -> BackgroundSearchMetrics:
        return self._metrics.snapshot()

    def get_queue_status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=len(self._queue),
            active_searches=len(self._active),
            max_concurrent=self._config.max_concurrent_searches,
            utilization_rate=utilization(len(self._active), self._config.max_concurrent_searches),
        )

    def update_config(self, partial: Mapping[str, Any] | None = None, **changes: Any) -> ResourceConfig:
        """설정을 부분 갱신한다. 검증에 실패하면 기존 설정을 유지한다."""
        updates = {**(partial or {}), **changes}
        unknown = sorted(set(updates) - set(ResourceConfig.model_fields))
        if unknown:
            raise ConfigurationError(f"알 수 없는 설정 키입니다: {', '.join(unknown)}")

        try:
            merged = ResourceConfig.model_validate({**self._config.model_dump(), **updates})
        except ValidationError as exc:
            raise ConfigurationError(f"설정값이 유효하지 않습니다: {exc}") from exc

        self._config = merged
        self._queue.max_size = merged.max_queue_size
        logger.info("백그라운드 검색 설정을 갱신했습니다: %s", updates)

        for task in self._queue.shrink_to_capacity():
            logger.warning(
                "큐 크기 축소로 대기 작업을 제외합니다: conversation=%s priority=%s",
                task.conversation_id,
                task.priority.name,
            )
            self._reject(task, QueueFullError("큐 크기가 줄어 검색 작업이 제외되었습니다"))
        return merged

    # ------------------------------------------------------------------
    # 주기 작업
    # ------------------------------------------------------------------

    def drain_queue(self) -> None:
        """동시성 여유가 있는 동안 큐 앞쪽 작업을 실행한다."""
        self._queue.apply_boosts(self._clock(), self._config.priority_boost_threshold_ms)
        while self._queue and len(self._active) < self._config.max_concurrent_searches:
            task = self._queue.pop()
            if task is None:
                break
            if task.cancelled:
                continue
            self._activate(task)

    def run_maintenance(self) -> None:
        """큐 처리, 만료 작업 정리, 자원 사용률 갱신을 수행한다."""
        self.drain_queue()
        self._evict_completed()
        self._metrics.update_resources(
            self._resource_estimator.estimate(len(self._active), self._config)
        )

    def collect_metrics(self) -> None:
        """동시성 사용률, 캐시 적중률, 평균 대기 시간을 샘플링한다."""
        self._metrics.sample(
            active_searches=len(self._active),
            max_concurrent=self._config.max_concurrent_searches,
            average_queue_time_ms=self._queue.average_wait_ms(self._clock()),
            cache_metrics=self._cache.get_metrics(),
        )

    async def _run_periodic(self, interval_field: str, step: Callable[[], None], label: str) -> None:
        while True:
            await asyncio.sleep(getattr(self._config, interval_field) / 1000.0)
            try:
                step()
            except Exception:
                logger.exception("%s 주기 작업이 실패했습니다", label)

    # ------------------------------------------------------------------
    # 실행
    # ------------------------------------------------------------------

    def _activate(self, task: SearchTask) -> None:
        task.state = TaskState.ACTIVE
        task.started_at = self._clock()
        self._active[task.id] = task
        logger.info(
            "검색 실행을 시작합니다: conversation=%s priority=%s",
            task.conversation_id,
            task.priority.name,
        )

        runner = asyncio.create_task(self._run_task(task), name=f"background-search:{task.id}")
        self._runners.add(runner)
        runner.add_done_callback(self._runners.discard)

    async def _run_task(self, task: SearchTask) -> None:
        while True:
            try:
                result = await self._attempt(task)
            except SearchCancelledError:
                logger.debug("취소된 검색의 결과를 버립니다: conversation=%s", task.conversation_id)
                return
            except Exception as exc:
                error = exc
            else:
                self._complete(task, result)
                return

            if not self._is_live(task):
                return

            if task.retry_count < task.max_retries:
                task.retry_count += 1
                delay_ms = self._config.retry_delay_ms * task.retry_count
                logger.warning(
                    "검색 실패, 재시도합니다: conversation=%s attempt=%d delay_ms=%d error=%s",
                    task.conversation_id,
                    task.retry_count,
                    delay_ms,
                    error,
                )
                if not await self._backoff(task, delay_ms):
                    return
                continue

            self._fail(task, error)
            return

    async def _attempt(self, task: SearchTask) -> Any:
        self._ensure_live(task)
        task.started_at = self._clock()
        self._emit_progress(task, "preprocessing", "캐시를 확인하는 중...")

        cached = await self._lookup_cache(task)
        self._ensure_live(task)
        if cached is not None:
            logger.info("캐시 적중: conversation=%s", task.conversation_id)
            self._emit_progress(task, "cached", "캐시된 결과를 불러오는 중...")
            return cached

        self._emit_progress(task, "searching", "데이터를 검색하는 중...")
        return await self._execute_with_timeout(task)

    async def _lookup_cache(self, task: SearchTask) -> Any | None:
        try:
            return await self._cache.get(task.params, task.user_id)
        except Exception:
            logger.warning(
                "캐시 조회에 실패해 미스로 처리합니다: conversation=%s",
                task.conversation_id,
                exc_info=True,
            )
            return None

    async def _execute_with_timeout(self, task: SearchTask) -> Any:
        timeout_ms = self._config.search_timeout_ms
        try:
            search = asyncio.ensure_future(self._executor.execute_search(task.params, task.user_id))
        except Exception as exc:
            raise SearchExecutionError(f"검색 실행 실패: {exc}") from exc
        cancel_wait = asyncio.ensure_future(task.token.wait())
        try:
            done, _ = await asyncio.wait(
                {search, cancel_wait},
                timeout=timeout_ms / 1000.0,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_wait.cancel()
            if not search.done():
                search.cancel()

        if not self._is_live(task):
            _consume_outcome(search)
            raise SearchCancelledError(f"검색이 취소되었습니다: conversation={task.conversation_id}")

        if search not in done:
            raise SearchTimeoutError(f"검색 시간이 초과되었습니다: timeout_ms={timeout_ms}")

        # 실행기 내부에서 올라온 CancelledError. 러너 자체의 취소는 위의 await에서 전파된다.
        if search.cancelled():
            raise SearchExecutionError("검색 실행기가 작업을 취소했습니다")

        try:
            return search.result()
        except SearchExecutionError:
            raise
        except Exception as exc:
            raise SearchExecutionError(f"검색 실행 실패: {exc}") from exc

    async def _backoff(self, task: SearchTask, delay_ms: float) -> bool:
        """재시도 전 대기한다. 대기 중 취소되면 False."""
        try:
            await asyncio.wait_for(task.token.wait(), timeout=delay_ms / 1000.0)
        except asyncio.TimeoutError:
            return self._is_live(task)
        return False

    def _complete(self, task: SearchTask, result: Any) -> None:
        if not self._is_live(task):
            return

        now = self._clock()
        task.completed_at = now
        task.state = TaskState.COMPLETED
        del self._active[task.id]
        self._remember(task)

        search_time_ms = now - (task.started_at or task.created_at)
        self._metrics.record_completed(search_time_ms)

        self._emit_progress(task, "complete", "검색이 완료되었습니다")
        _invoke(task.on_complete, result)
        logger.info(
            "검색이 완료되었습니다: conversation=%s elapsed_ms=%.1f",
            task.conversation_id,
            search_time_ms,
        )

        self.drain_queue()

    def _fail(self, task: SearchTask, error: Exception) -> None:
        if not self._is_live(task):
            return

        task.completed_at = self._clock()
        task.state = TaskState.FAILED
        task.error = error
        del self._active[task.id]
        self._remember(task)
        self._metrics.record_failed()

        logger.error(
            "검색이 최종 실패했습니다: conversation=%s retries=%d error=%s",
            task.conversation_id,
            task.retry_count,
            error,
        )
        _invoke(task.on_error, error)

        self.drain_queue()

    def _reject(self, task: SearchTask, error: QueueFullError) -> None:
        task.token.cancel()
        task.completed_at = self._clock()
        task.state = TaskState.FAILED
        task.error = error
        self._remember(task)
        self._metrics.record_failed()
        _invoke(task.on_error, error)

    def _emit_progress(self, task: SearchTask, stage: str, message: str) -> None:
        task.progress = message
        logger.debug("검색 진행: conversation=%s stage=%s", task.conversation_id, stage)
        _invoke(task.on_progress, stage, message)

    def _is_live(self, task: SearchTask) -> bool:
        return not task.cancelled and self._active.get(task.id) is task

    def _ensure_live(self, task: SearchTask) -> None:
        if not self._is_live(task):
            raise SearchCancelledError(f"검색이 취소되었습니다: conversation={task.conversation_id}")

    # ------------------------------------------------------------------
    # 종결 작업 보관
    # ------------------------------------------------------------------

    def _remember(self, task: SearchTask) -> None:
        self._completed[task.id] = task
        self._history.append(task)

    def _latest_record(self, conversation_id: str) -> SearchTask | None:
        latest: SearchTask | None = None
        for task in self._completed.values():
            if task.conversation_id != conversation_id:
                continue
            if latest is None or (task.completed_at or 0.0) >= (latest.completed_at or 0.0):
                latest = task
        return latest

    def _evict_completed(self) -> None:
        now = self._clock()
        ttl_ms = self._config.completed_ttl_ms
        expired = [
            task_id
            for task_id, task in self._completed.items()
            if task.completed_at is not None and now - task.completed_at > ttl_ms
        ]
        for task_id in expired:
            del self._completed[task_id]

        if len(self._history) > self._config.history_limit:
            self._history = self._history[-self._config.history_keep :]
            retained = {task.id for task in self._history}
            for task_id in [task_id for task_id in self._completed if task_id not in retained]:
                del self._completed[task_id]


def _coerce_params(params: SearchParams | Mapping[str, Any] | None, query: str) -> SearchParams:
    if isinstance(params, SearchParams):
        search_params = params
    else:
        try:
            search_params = SearchParams.model_validate(dict(params or {}))
        except ValidationError as exc:
            raise ConfigurationError(f"검색 파라미터가 유효하지 않습니다: {exc}") from exc

    if not search_params.query:
        search_params = search_params.model_copy(update={"query": query})
    return search_params


def _invoke(callback: Callable[..., None] | None, *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("검색 콜백 실행 중 오류가 발생했습니다")


def _consume_outcome(future: asyncio.Future) -> None:
    if future.done() and not future.cancelled():
        future.exception()


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0
