# prepstage/engine/context.py
from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence, TypeVar

import pandas as pd
import pyarrow as pa

from prepstage import logs
from prepstage.config.app_config import AppConfig
from prepstage.engine.dataset import Dataset, split_even
from prepstage.engine.executor import ParallelExecutor
from prepstage.engine.types import ExecutionBackend, ParallelKind

T = TypeVar("T")


class ExecutionContext:
    """
    ExecutionContext = 执行引擎句柄（每次 prepare 调用都会传入）

    职责：
      - 创建 Dataset（parallelize / from_table / from_frame）
      - 把分区级工作交给 ParallelExecutor
      - 携带 AppConfig（只读）

    不负责：调度 / 重试 / 容错
    """

    def __init__(self, config: AppConfig | None = None):
        self.config = config if config is not None else AppConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "ExecutionContext":
        return cls(AppConfig.load(path))

    @property
    def app_name(self) -> str:
        return self.config.engine.app_name

    @property
    def backend(self) -> ExecutionBackend:
        return self.config.engine.backend

    @property
    def default_partitions(self) -> int:
        return self.config.engine.default_partitions

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(app={self.app_name!r}, "
            f"backend={self.backend.value})"
        )

    # --------------------------------------------------
    # dataset constructors
    # --------------------------------------------------
    def parallelize(
            self, items: Iterable[T], num_partitions: int | None = None
    ) -> Dataset[T]:
        items = list(items)
        n = num_partitions if num_partitions is not None else self.default_partitions
        return Dataset(self, split_even(items, n))

    def from_partitions(self, partitions: Iterable[Iterable[T]]) -> Dataset[T]:
        """Keep the caller's partition boundaries as-is."""
        return Dataset(self, partitions)

    def from_table(
            self, table: pa.Table, num_partitions: int | None = None
    ) -> Dataset[dict]:
        """
        Arrow table -> Dataset of row dicts (column name -> python value).
        """
        return self.parallelize(table.to_pylist(), num_partitions)

    def from_frame(
            self, df: pd.DataFrame, num_partitions: int | None = None
    ) -> Dataset[dict]:
        table = pa.Table.from_pandas(df, preserve_index=False)
        return self.from_table(table, num_partitions)

    # --------------------------------------------------
    # engine primitive
    # --------------------------------------------------
    def run_partitions(
            self,
            handler: Callable[[Any], Any],
            partitions: Sequence[Any],
            *,
            kind: ParallelKind = ParallelKind.PARTITION,
    ) -> list[Any]:
        engine = self.config.engine
        logs.debug(
            f"[ExecutionContext] run {kind.value} "
            f"partitions={len(partitions)} backend={engine.backend.value}"
        )
        return ParallelExecutor.run(
            kind=kind,
            items=partitions,
            handler=handler,
            max_workers=engine.max_workers,
            backend=engine.backend,
        )
