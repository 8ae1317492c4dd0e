# prepstage/steps/train_step.py
from __future__ import annotations

from typing import Any, Callable

from prepstage import logs
from prepstage.engine.context import ExecutionContext
from prepstage.observability.instrumentation import Instrumentation
from prepstage.pipeline.context import PipelineContext
from prepstage.pipeline.step import PipelineStep

Trainer = Callable[[ExecutionContext, Any], Any]


class TrainStep(PipelineStep):
    """
    ctx.prepared_data -> trainer -> ctx.model
    """

    def __init__(self, trainer: Trainer, inst: Instrumentation | None = None):
        super().__init__(inst)
        self.trainer = trainer

    def run(self, ctx: PipelineContext) -> PipelineContext:
        with self.timed():
            ctx.model = self.trainer(ctx.engine, ctx.prepared_data)

        logs.info(f"[{self.step_name}] model={type(ctx.model).__name__}")
        return ctx
