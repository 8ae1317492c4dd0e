#!filepath: prepstage/pipeline/pipeline.py
from __future__ import annotations

import uuid

from prepstage import logs
from prepstage.controller.preparator import IdentityPreparator
from prepstage.core.base import BaseDataSource, BasePreparator
from prepstage.engine.context import ExecutionContext
from prepstage.observability.instrumentation import Instrumentation
from prepstage.pipeline.context import PipelineContext
from prepstage.pipeline.step import PipelineStep
from prepstage.steps.prepare_step import PrepareStep
from prepstage.steps.read_training_step import ReadTrainingStep
from prepstage.steps.train_step import Trainer, TrainStep


class PreparationPipeline:
    """
    PreparationPipeline = 调度器

    data source -> preparator -> (trainer)

    - 未声明 preparator 时自动接入 IdentityPreparator（按 data source 的 TD 类型）
    - Pipeline 只负责顺序与上下文，失败原样抛出
    """

    def __init__(
            self,
            *,
            data_source: BaseDataSource,
            preparator: BasePreparator | None = None,
            trainer: Trainer | None = None,
            engine: ExecutionContext | None = None,
            inst: Instrumentation | None = None,
    ):
        if preparator is None:
            preparator = IdentityPreparator.for_data_source(type(data_source))()
            logs.info(
                f"[Pipeline] no preparator declared -> {preparator.stage_name}"
            )

        self.data_source = data_source
        self.preparator = preparator
        self.trainer = trainer
        self.engine = engine if engine is not None else ExecutionContext()
        self.inst = inst if inst is not None else Instrumentation()

        self.steps: list[PipelineStep] = [
            ReadTrainingStep(data_source, inst=self.inst),
            PrepareStep(preparator, inst=self.inst),
        ]
        if trainer is not None:
            self.steps.append(TrainStep(trainer, inst=self.inst))

    def run(self, run_id: str | None = None) -> PipelineContext:
        run_id = run_id or uuid.uuid4().hex[:12]
        logs.info(f"[Pipeline] ====== START {run_id} ======")

        ctx = PipelineContext(run_id=run_id, engine=self.engine)

        for step in self.steps:
            ctx = step.run(ctx)

        self.inst.report(f"Pipeline timeline for {run_id}")
        logs.info(f"[Pipeline] ====== DONE {run_id} ======")
        return ctx
