# prepstage/steps/prepare_step.py
from __future__ import annotations

from prepstage import logs
from prepstage.core.base import BasePreparator
from prepstage.engine.dataset import Dataset
from prepstage.observability.instrumentation import Instrumentation
from prepstage.pipeline.context import PipelineContext
from prepstage.pipeline.step import PipelineStep


class PrepareStep(PipelineStep):
    """
    ctx.training_data -> preparator.prepare_base -> ctx.prepared_data

    只调用 dispatch 入口，不区分 local / parallel。
    失败原样抛出，不写 prepared_data。
    """

    def __init__(self, preparator: BasePreparator, inst: Instrumentation | None = None):
        super().__init__(inst)
        self.preparator = preparator

    def run(self, ctx: PipelineContext) -> PipelineContext:
        with self.timed():
            prepared = self.preparator.prepare_base(ctx.engine, ctx.training_data)

        ctx.prepared_data = prepared
        if isinstance(prepared, Dataset):
            ctx.metrics["prepared_count"] = prepared.count()

        logs.info(
            f"[{self.step_name}] stage={self.preparator.stage_name} "
            f"prepared_count={ctx.metrics.get('prepared_count', '-')}"
        )
        return ctx
