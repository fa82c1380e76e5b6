"""
목적:
- 루트 `.env`를 읽어 BackgroundSearchService를 실행하는 드라이버 스크립트를 제공한다.

설명:
- 라이브러리 본체는 환경 파일을 직접 읽지 않는다.
- 이 스크립트는 검색 제출 -> 콜백 대기 -> 상태/결과/메트릭 조회 흐름을 데모한다.
- 검색 함수는 `module:function` 경로의 팩토리로 생성해 인자로 주입한다.
- `REDIS_HOST`가 있으면 Redis 캐시를, 없으면 프로세스 내 캐시를 사용한다.

디자인 패턴:
- 드라이버(Driver Script).

참조:
- src_py/mataresit_search/config/models.py
- src_py/mataresit_search/search/service.py
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import os
import sys
from pathlib import Path

from mataresit_search import (
    BackgroundSearchService,
    CallableSearchExecutor,
    InMemorySearchCache,
    RedisCacheConfig,
    RedisSearchCache,
    ResourceConfig,
    SearchParams,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mataresit 백그라운드 검색 드라이버")
    parser.add_argument(
        "--query",
        action="append",
        required=True,
        help="검색 질의 텍스트 (여러 번 지정하면 대화별로 동시에 제출)",
    )
    parser.add_argument("--user", default="driver-user", help="요청 사용자 ID")
    parser.add_argument(
        "--search-factory",
        required=True,
        help="검색 함수 팩토리 경로 (예: app.search_factories:create_search_fn)",
    )
    parser.add_argument("--wait-sec", type=float, default=60.0, help="전체 결과 대기 시간(초)")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="루트 기준 환경 파일 경로 (기본: .env)",
    )
    return parser.parse_args()


def load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)


def build_resource_config() -> ResourceConfig:
    env_map = {
        "max_concurrent_searches": "SEARCH_MAX_CONCURRENT",
        "max_queue_size": "SEARCH_MAX_QUEUE_SIZE",
        "search_timeout_ms": "SEARCH_TIMEOUT_MS",
        "retry_delay_ms": "SEARCH_RETRY_DELAY_MS",
        "priority_boost_threshold_ms": "SEARCH_PRIORITY_BOOST_MS",
        "default_max_retries": "SEARCH_MAX_RETRIES",
    }
    values = {field: int(os.environ[key]) for field, key in env_map.items() if os.environ.get(key)}
    return ResourceConfig(**values)


def build_cache():
    if not os.environ.get("REDIS_HOST"):
        return InMemorySearchCache()

    config = RedisCacheConfig(
        host=os.environ["REDIS_HOST"],
        port=int(os.environ.get("REDIS_PORT", "6379")),
        db=int(os.environ.get("REDIS_DB", "0")),
        username=os.environ.get("REDIS_USERNAME") or None,
        password=os.environ.get("REDIS_PASSWORD") or None,
        use_ssl=parse_bool_env("REDIS_USE_SSL", "false"),
        ttl_sec=int(os.environ.get("SEARCH_CACHE_TTL_SEC", "900")),
    )
    return RedisSearchCache(config)


def parse_bool_env(key: str, default: str) -> bool:
    raw = os.environ.get(key, default).strip().lower()
    if raw in {"1", "true", "yes", "y"}:
        return True
    if raw in {"0", "false", "no", "n"}:
        return False
    raise RuntimeError(f"불리언 환경 변수 형식이 잘못되었습니다: {key}={raw}")


def load_factory(spec: str):
    if ":" not in spec:
        raise RuntimeError("--search-factory 형식은 module:function 이어야 합니다")
    module_name, function_name = spec.split(":", 1)
    module = importlib.import_module(module_name)
    return getattr(module, function_name)


async def main() -> int:
    args = parse_args()
    repo_root = Path(__file__).resolve().parents[1]
    load_env_file(repo_root / args.env_file)

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cache = build_cache()
    search_fn = load_factory(args.search_factory)()
    executor = CallableSearchExecutor(search_fn, cache=cache)

    loop = asyncio.get_running_loop()
    pending: dict[str, asyncio.Future] = {}

    async with BackgroundSearchService(cache, executor, config=build_resource_config()) as service:
        for index, query in enumerate(args.query):
            conversation_id = f"driver-conversation-{index}"
            done = loop.create_future()
            pending[conversation_id] = done

            def on_progress(stage: str, message: str, conversation_id=conversation_id) -> None:
                print(f"[progress] {conversation_id} {stage}: {message}")

            def on_complete(result, done=done) -> None:
                if not done.done():
                    done.set_result(result)

            def on_error(error: Exception, done=done) -> None:
                if not done.done():
                    done.set_exception(error)

            task_id = await service.start_search(
                conversation_id,
                query,
                SearchParams(query=query),
                args.user,
                on_progress=on_progress,
                on_complete=on_complete,
                on_error=on_error,
            )
            status = service.get_search_status(conversation_id)
            print(f"[submit] {conversation_id} task_id={task_id}", status.model_dump_json())

        await asyncio.wait(pending.values(), timeout=args.wait_sec)

        for conversation_id, done in pending.items():
            status = service.get_search_status(conversation_id)
            print("[status]", conversation_id, status.model_dump_json())
            if done.done() and done.exception() is None:
                result = await service.get_search_results(conversation_id)
                print("[result]", conversation_id, result if result is not None else done.result())
            elif done.done():
                print(f"[failed] {conversation_id} {done.exception()}")
            else:
                print(f"[notice] {conversation_id} 아직 결과가 준비되지 않았습니다")

        print("[queue]", service.get_queue_status().model_dump_json())
        service.collect_metrics()
        print("[metrics]", service.get_metrics().model_dump_json())

    if isinstance(cache, RedisSearchCache):
        await cache.close()

    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    except Exception as exc:  # noqa: BLE001
        print(f"[error] {exc}", file=sys.stderr)
        raise SystemExit(1)
