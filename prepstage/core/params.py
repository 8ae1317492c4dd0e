# prepstage/core/params.py
from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict

P = TypeVar("P", bound="Params")


class Params(BaseModel):
    """
    Stage 参数基类（FROZEN）

    - 不可变，按字段值判等
    - 字段类型全部可哈希时才可 hash（tuple 可以，list / dict 不行）
    - JSON round-trip：to_json() / from_json()
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls: type[P], text: str) -> P:
        return cls.model_validate_json(text)


class EmptyParams(Params):
    """Params for stages that take no configuration."""
