# prepstage/engine/dataset.py
from __future__ import annotations

from functools import partial, reduce as _reduce
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, Sequence, TypeVar

from prepstage.engine.types import ParallelKind

if TYPE_CHECKING:
    from prepstage.engine.context import ExecutionContext

T = TypeVar("T")
U = TypeVar("U")


# ------------------------------------------------------------------
# partition-level handlers (module level -> picklable for PROCESS backend)
# ------------------------------------------------------------------
def _map_partition(fn: Callable[[Any], Any], part: tuple) -> tuple:
    return tuple(fn(x) for x in part)


def _filter_partition(pred: Callable[[Any], bool], part: tuple) -> tuple:
    return tuple(x for x in part if pred(x))


def _flat_map_partition(fn: Callable[[Any], Iterable[Any]], part: tuple) -> tuple:
    return tuple(y for x in part for y in fn(x))


def _apply_partition(fn: Callable[[Iterable[Any]], Iterable[Any]], part: tuple) -> tuple:
    return tuple(fn(iter(part)))


def _reduce_partition(fn: Callable[[Any, Any], Any], part: tuple) -> tuple[bool, Any]:
    # (has_value, value)，空分区不参与合并
    if not part:
        return False, None
    return True, _reduce(fn, part)


def split_even(items: Sequence[T], num_partitions: int) -> list[tuple]:
    """
    Contiguous split into ``num_partitions`` chunks, sizes differ by <= 1.
    Element order is kept; trailing partitions may be empty.
    """
    n = max(1, num_partitions)
    size, extra = divmod(len(items), n)
    parts = []
    start = 0
    for i in range(n):
        end = start + size + (1 if i < extra else 0)
        parts.append(tuple(items[start:end]))
        start = end
    return parts


class Dataset(Generic[T]):
    """
    Dataset（不可变的分区集合 / distributed-dataset handle）

    - transformations（map / filter / ...）返回新的 Dataset
    - actions（collect / count / reduce / ...）返回本地值
    - 分区结构与分区内顺序由 transformation 决定，map 是 1:1 保序
    - 所有分区级工作经 ExecutionContext -> ParallelExecutor 执行
    """

    __slots__ = ("_ctx", "_partitions")

    def __init__(self, ctx: "ExecutionContext", partitions: Iterable[Iterable[T]]):
        self._ctx = ctx
        self._partitions: tuple[tuple, ...] = tuple(tuple(p) for p in partitions)

    # --------------------------------------------------
    # identity
    # --------------------------------------------------
    @property
    def ctx(self) -> "ExecutionContext":
        return self._ctx

    @property
    def num_partitions(self) -> int:
        return len(self._partitions)

    def __repr__(self) -> str:
        return (
            f"Dataset(partitions={self.num_partitions}, "
            f"sizes={[len(p) for p in self._partitions]})"
        )

    # --------------------------------------------------
    # transformations
    # --------------------------------------------------
    def map(self, fn: Callable[[T], U]) -> "Dataset[U]":
        return self._transform(partial(_map_partition, fn))

    def filter(self, pred: Callable[[T], bool]) -> "Dataset[T]":
        return self._transform(partial(_filter_partition, pred))

    def flat_map(self, fn: Callable[[T], Iterable[U]]) -> "Dataset[U]":
        return self._transform(partial(_flat_map_partition, fn))

    def map_partitions(
            self, fn: Callable[[Iterable[T]], Iterable[U]]
    ) -> "Dataset[U]":
        return self._transform(partial(_apply_partition, fn))

    def repartition(self, num_partitions: int) -> "Dataset[T]":
        return Dataset(self._ctx, split_even(self.collect(), num_partitions))

    # --------------------------------------------------
    # actions
    # --------------------------------------------------
    def glom(self) -> list[list[T]]:
        return [list(p) for p in self._partitions]

    def collect(self) -> list[T]:
        return [x for p in self._partitions for x in p]

    def count(self) -> int:
        return sum(len(p) for p in self._partitions)

    def first(self) -> T:
        for p in self._partitions:
            if p:
                return p[0]
        raise ValueError("[Dataset] first() on empty dataset")

    def reduce(self, fn: Callable[[T, T], T]) -> T:
        partials = self._ctx.run_partitions(
            partial(_reduce_partition, fn),
            self._partitions,
            kind=ParallelKind.ACTION,
        )
        values = [v for ok, v in partials if ok]
        if not values:
            raise ValueError("[Dataset] reduce() on empty dataset")
        return _reduce(fn, values)

    # --------------------------------------------------
    # internal
    # --------------------------------------------------
    def _transform(self, handler: Callable[[tuple], tuple]) -> "Dataset[Any]":
        parts = self._ctx.run_partitions(
            handler, self._partitions, kind=ParallelKind.PARTITION
        )
        return Dataset(self._ctx, parts)
