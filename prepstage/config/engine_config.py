# prepstage/config/engine_config.py
from typing import Optional

from pydantic import BaseModel, Field

from prepstage.engine.types import ExecutionBackend


class EngineConfig(BaseModel):
    app_name: str = "prepstage"
    backend: ExecutionBackend = ExecutionBackend.THREAD
    max_workers: Optional[int] = Field(default=None, ge=1)  # None -> cpu count
    default_partitions: int = Field(default=2, ge=1)
