from __future__ import annotations

from prepstage.pipeline.context import PipelineContext
from prepstage.observability.instrumentation import (
    Instrumentation,
    NoOpInstrumentation,
)


class PipelineStep:
    """
    Pipeline Step 基类

    职责：
      1. 作为 orchestration 层的一个单元：run(ctx) -> ctx
      2. 提供 Step 级时间语义边界（parent scope）

    - Instrumentation 是可选横切关注点
    - Step 行为不依赖 inst 是否存在
    """

    def __init__(self, inst: Instrumentation | None = None):
        # 永远保证 inst 可用（No-op 语义）
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    @property
    def step_name(self) -> str:
        """默认使用类名作为 Step 名称。"""
        return self.__class__.__name__

    def timed(self):
        """Leaf timer for the step body, recorded into the timeline."""
        return self.inst.timer(self.step_name)

    def run(self, ctx: PipelineContext) -> PipelineContext:
        raise NotImplementedError
