# prepstage/steps/read_training_step.py
from __future__ import annotations

from prepstage import logs
from prepstage.core.base import BaseDataSource
from prepstage.engine.dataset import Dataset
from prepstage.observability.instrumentation import Instrumentation
from prepstage.pipeline.context import PipelineContext
from prepstage.pipeline.step import PipelineStep


class ReadTrainingStep(PipelineStep):
    """
    data source -> ctx.training_data
    """

    def __init__(self, data_source: BaseDataSource, inst: Instrumentation | None = None):
        super().__init__(inst)
        self.data_source = data_source

    def run(self, ctx: PipelineContext) -> PipelineContext:
        with self.timed():
            ctx.training_data = self.data_source.read_training(ctx.engine)

        if isinstance(ctx.training_data, Dataset):
            ctx.metrics["training_count"] = ctx.training_data.count()

        logs.info(
            f"[{self.step_name}] source={type(self.data_source).__name__} "
            f"training_count={ctx.metrics.get('training_count', '-')}"
        )
        return ctx
