# prepstage/controller/preparator.py
from __future__ import annotations

import pickle
from abc import abstractmethod
from functools import lru_cache
from typing import Any, ClassVar, Generic, TypeVar

from prepstage import logs
from prepstage.core.base import BaseDataSource, BasePreparator, PP, TD, PD
from prepstage.core.hydration import HydrationMixin
from prepstage.core.params import EmptyParams
from prepstage.engine.context import ExecutionContext
from prepstage.engine.dataset import Dataset
from prepstage.utils.errors import (
    PreparatorError,
    PreparedDataTooLargeError,
    StageExecutionError,
    UserInputError,
)

X = TypeVar("X")


def _log_failure(stage: str, e: Exception) -> None:
    logs.error(f"[{stage}] prepare failed: {type(e).__name__}: {e}")


# ============================================================
# Local preparator
# ============================================================
class LocalPreparator(HydrationMixin, BasePreparator[PP, Dataset[TD], Dataset[PD]]):
    """
    Local preparator（逐元素）

    - prepare(element) 对每个元素独立执行，1:1，分区内保序
    - 分区由执行引擎负责，这里只提供元素级函数
    - 任一元素失败 -> 整体失败（StageExecutionError），无部分结果

    子类只实现 prepare()。TD 以 JSON 文本到达时用 hydrate(text, TDType)。
    """

    def prepare_base(self, ctx: ExecutionContext, training_data: Dataset[TD]) -> Dataset[PD]:
        logs.info(
            f"[{self.stage_name}] prepare local "
            f"partitions={training_data.num_partitions}"
        )
        try:
            return training_data.map(self.prepare)
        except PreparatorError as e:
            _log_failure(self.stage_name, e)
            raise
        except Exception as e:
            _log_failure(self.stage_name, e)
            raise StageExecutionError(self.stage_name, e) from e

    @abstractmethod
    def prepare(self, training_data: TD) -> PD:
        """
        Produce prepared data for one training-data element.

        Must be pure w.r.t. ``self.params``: the engine may re-run it.
        """
        ...


# ============================================================
# Parallel preparator
# ============================================================
class ParallelPreparator(BasePreparator[PP, TD, PD]):
    """
    Parallel preparator（整体数据集）

    prepare(ctx, td) 拿到整个 dataset handle，可以做 join / aggregate /
    shuffle 等全局操作。确定性与幂等由作者负责。

    产出的 PD 预期足够小（后续可能被广播），
    配置 preparator.size_limit_bytes 时会检查。
    """

    def prepare_base(self, ctx: ExecutionContext, training_data: TD) -> PD:
        logs.info(f"[{self.stage_name}] prepare parallel")
        try:
            prepared = self.prepare(ctx, training_data)
        except PreparatorError as e:
            _log_failure(self.stage_name, e)
            raise
        except Exception as e:
            _log_failure(self.stage_name, e)
            raise StageExecutionError(self.stage_name, e) from e

        self._check_prepared_size(ctx, prepared)
        return prepared

    @abstractmethod
    def prepare(self, ctx: ExecutionContext, training_data: TD) -> PD:
        """
        Produce prepared data from the whole training data handle.
        """
        ...

    # --------------------------------------------------
    # size check
    # --------------------------------------------------
    def _check_prepared_size(self, ctx: ExecutionContext, prepared: PD) -> None:
        cfg = ctx.config.preparator
        limit = cfg.size_limit_bytes
        if limit is None:
            return

        size = estimate_size(prepared)
        if size is None:
            logs.warning(
                f"[{self.stage_name}] prepared data size unknown "
                f"(not picklable), limit={limit} not checked"
            )
            return

        if size <= limit:
            logs.debug(f"[{self.stage_name}] prepared size={size} limit={limit}")
            return

        if cfg.size_limit_strict:
            logs.error(f"[{self.stage_name}] prepared size={size} > limit={limit}")
            raise PreparedDataTooLargeError(self.stage_name, size, limit)

        logs.warning(
            f"[{self.stage_name}] prepared size={size} > limit={limit}, "
            f"broadcasting it later may be expensive"
        )


def estimate_size(obj: Any) -> int | None:
    """
    Pickled size in bytes; a Dataset is measured by its elements.
    """
    if isinstance(obj, Dataset):
        obj = obj.glom()
    try:
        return len(pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL))
    except (pickle.PicklingError, TypeError, AttributeError):
        return None


# ============================================================
# Identity preparator
# ============================================================
class IdentityPreparator(BasePreparator[EmptyParams, X, X], Generic[X]):
    """
    Pass training data through unchanged.

    Default stage when a pipeline declares no preparation.
    """

    params_class = EmptyParams
    training_data_type: ClassVar[Any] = object
    prepared_data_type: ClassVar[Any] = object

    def prepare_base(self, ctx: ExecutionContext, training_data: X) -> X:
        return training_data

    @classmethod
    def for_data_source(cls, data_source: type[BaseDataSource]) -> type["IdentityPreparator"]:
        """
        IdentityPreparator class specialised to the data source's declared
        training_data_type. Same type -> same class.
        """
        td_type = getattr(data_source, "training_data_type", None)
        if td_type is None:
            raise UserInputError(
                f"[IdentityPreparator] {getattr(data_source, '__name__', data_source)} "
                f"does not declare training_data_type"
            )
        return _identity_for(td_type)


@lru_cache(maxsize=None)
def _identity_for(td_type: Any) -> type[IdentityPreparator]:
    name = getattr(td_type, "__name__", repr(td_type))
    return type(IdentityPreparator)(
        f"IdentityPreparator[{name}]",
        (IdentityPreparator,),
        {
            "training_data_type": td_type,
            "prepared_data_type": td_type,
            "__module__": __name__,
        },
    )
