#!filepath: prepstage/pipeline/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from prepstage.engine.context import ExecutionContext


@dataclass
class PipelineContext:
    """
    PipelineContext = 一次 pipeline run 的唯一上下文

    - Pipeline 负责构造
    - Step 之间唯一通信载体
    - 只存事实 / 中间态，不放业务逻辑
    """

    # -------------------------
    # identity
    # -------------------------
    run_id: str
    engine: ExecutionContext

    # -------------------------
    # data layer
    # -------------------------
    training_data: Any = None
    prepared_data: Any = None
    model: Any = None

    # -------------------------
    # facts
    # -------------------------
    metrics: Dict[str, Any] = field(default_factory=dict)
