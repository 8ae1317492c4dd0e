# prepstage/config/preparator_config.py
from typing import Optional

from pydantic import BaseModel, Field


class PreparatorConfig(BaseModel):
    """
    Prepared-data size check (parallel stage only).

    size_limit_bytes=None 时不检查
    """
    size_limit_bytes: Optional[int] = Field(default=None, ge=0)
    size_limit_strict: bool = False
