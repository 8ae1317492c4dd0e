# prepstage/core/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from prepstage.core.params import EmptyParams, Params
from prepstage.engine.context import ExecutionContext

PP = TypeVar("PP", bound=Params)
TD = TypeVar("TD")
PD = TypeVar("PD")


class BasePreparator(ABC, Generic[PP, TD, PD]):
    """
    BasePreparator（dispatch contract）

    编排层唯一调用入口：prepare_base(ctx, training_data)

    - 编排层不区分 local / parallel，只持有 BasePreparator
    - 子类通过 params_class 声明参数类型
    - 实例持有 params（只读），调用之间无状态
    """

    params_class: ClassVar[type[Params]] = EmptyParams

    def __init__(self, params: PP | None = None):
        if params is None:
            params = self.params_class()
        if not isinstance(params, self.params_class):
            raise TypeError(
                f"[{type(self).__name__}] expected params of type "
                f"{self.params_class.__name__}, got {type(params).__name__}"
            )
        self.params: PP = params

    @classmethod
    def from_json(cls, text: str):
        """Rebuild the stage from a serialised params payload."""
        return cls(cls.params_class.from_json(text))

    @property
    def stage_name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.stage_name}(params={self.params!r})"

    @abstractmethod
    def prepare_base(self, ctx: ExecutionContext, training_data: TD) -> PD:
        ...


class BaseDataSource(ABC, Generic[TD]):
    """
    Upstream data source contract (minimal).

    training_data_type 必须显式声明，供 IdentityPreparator.for_data_source 使用
    """

    training_data_type: ClassVar[Any]

    @abstractmethod
    def read_training(self, ctx: ExecutionContext) -> TD:
        ...
