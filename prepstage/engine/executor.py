# prepstage/engine/executor.py
from __future__ import annotations

import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Iterable, Callable, Any

from prepstage.engine.types import ExecutionBackend, ParallelKind
from prepstage import logs


class ParallelExecutor:
    """
    ParallelExecutor

    - 统一 serial / thread / process 三种后端
    - 结果顺序 == 输入顺序
    - fail fast：第一个失败取消剩余任务并原样抛出
    - 不重试，不持久化
    """

    @staticmethod
    def run(
            *,
            kind: ParallelKind,
            items: Iterable[Any],
            handler: Callable[[Any], Any],
            max_workers: int | None = None,
            backend: ExecutionBackend = ExecutionBackend.THREAD,
    ) -> list[Any]:
        items = list(items)
        if not items:
            logs.debug(f"[ParallelExecutor] no items to process kind={kind.value}")
            return []

        workers = ParallelExecutor._resolve_workers(items, max_workers)

        logs.debug(
            f"[ParallelExecutor] start "
            f"kind={kind.value} backend={backend.value} "
            f"total={len(items)} workers={workers}"
        )

        if workers == 1 or backend is ExecutionBackend.SERIAL:
            return ParallelExecutor._run_sequential(items, handler)
        return ParallelExecutor._run_parallel(items, handler, workers, backend)

    # ---------------- internal ----------------

    @staticmethod
    def _resolve_workers(items: list, max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))

    @staticmethod
    def _run_sequential(
            items: list,
            handler: Callable[[Any], Any],
    ) -> list:
        return [handler(item) for item in items]

    @staticmethod
    def _make_pool(backend: ExecutionBackend, workers: int) -> Executor:
        if backend is ExecutionBackend.PROCESS:
            return ProcessPoolExecutor(max_workers=workers)
        return ThreadPoolExecutor(max_workers=workers)

    @staticmethod
    def _run_parallel(
            items: list,
            handler: Callable[[Any], Any],
            workers: int,
            backend: ExecutionBackend,
    ) -> list:
        with ParallelExecutor._make_pool(backend, workers) as pool:
            futures = [pool.submit(handler, item) for item in items]
            results = []
            try:
                # 按提交顺序取结果，保证 output[i] <-> items[i]
                for fut in futures:
                    results.append(fut.result())
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise

        return results
