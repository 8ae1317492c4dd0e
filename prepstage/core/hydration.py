# prepstage/core/hydration.py
from __future__ import annotations

import json
import threading
from types import MappingProxyType
from typing import Any, Callable, Mapping, TypeVar

import pandas as pd
import pyarrow as pa
from pydantic import TypeAdapter, ValidationError

from prepstage import logs
from prepstage.utils.errors import HydrationError

T = TypeVar("T")

Decoder = Callable[[str], Any]
Encoder = Callable[[Any], str]


def _type_name(target: Any) -> str:
    return target if isinstance(target, str) else getattr(target, "__name__", repr(target))


def _lookup(table: Mapping[Any, Any], key: Any) -> Any:
    try:
        return table.get(key)
    except TypeError:  # unhashable type witness
        return None


class Formats:
    """
    Formats = 解码注册表（type witness -> decoder）

    - key: Python type / typing 构造（list[Rating]）/ 字符串标识
    - 未注册的类型走 pydantic TypeAdapter（按声明字段解码 JSON）
    - 实例不可变：with_codec() 返回新实例
    - 内部 TypeAdapter 缓存加锁，可并发 decode
    """

    def __init__(
            self,
            decoders: Mapping[Any, Decoder] | None = None,
            encoders: Mapping[Any, Encoder] | None = None,
    ):
        self._decoders = MappingProxyType(dict(decoders or {}))
        self._encoders = MappingProxyType(dict(encoders or {}))
        self._adapters: dict[Any, TypeAdapter] = {}
        self._lock = threading.Lock()

    def with_codec(
            self,
            key: Any,
            decoder: Decoder,
            encoder: Encoder | None = None,
    ) -> "Formats":
        encoders = dict(self._encoders)
        if encoder is not None:
            encoders[key] = encoder
        return Formats({**self._decoders, key: decoder}, encoders)

    def registered(self) -> list[Any]:
        return list(self._decoders)

    # --------------------------------------------------
    # adapters
    # --------------------------------------------------
    def adapter(self, target: Any) -> TypeAdapter:
        with self._lock:
            adapter = _lookup(self._adapters, target)
            if adapter is None:
                try:
                    adapter = TypeAdapter(target)
                except Exception as e:
                    raise HydrationError(
                        f"[Formats] no decoder for target {_type_name(target)}: {e}",
                        target=target,
                    ) from e
                try:
                    self._adapters[target] = adapter
                except TypeError:
                    pass  # unhashable witness, not cached
            return adapter

    # --------------------------------------------------
    # decode / encode
    # --------------------------------------------------
    def decode(self, text: str, target: Any) -> Any:
        decoder = _lookup(self._decoders, target)
        if decoder is not None:
            try:
                return decoder(text)
            except HydrationError:
                raise
            except Exception as e:
                raise HydrationError(
                    f"[Formats] cannot decode {_type_name(target)}: {e}",
                    target=target,
                ) from e

        if isinstance(target, str):
            raise HydrationError(
                f"[Formats] unknown type identifier: {target!r}", target=target
            )

        try:
            return self.adapter(target).validate_json(text)
        except ValidationError as e:
            raise HydrationError(
                f"[Formats] cannot decode {_type_name(target)}: "
                f"{e.error_count()} error(s): {e.errors()[0]['msg']}",
                target=target,
            ) from e

    def encode(self, value: Any, target: Any = None) -> str:
        key = target if target is not None else type(value)
        encoder = _lookup(self._encoders, key)
        if encoder is not None:
            return encoder(value)
        return self.adapter(key).dump_json(value).decode("utf-8")


# ------------------------------------------------------------------
# built-in codecs: JSON rows <-> Arrow / pandas
# ------------------------------------------------------------------
def _rows(text: str) -> list[dict]:
    rows = json.loads(text)
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise HydrationError("[Formats] expected a JSON array of objects")
    return rows


def _decode_table(text: str) -> pa.Table:
    return pa.Table.from_pylist(_rows(text))


def _encode_table(table: pa.Table) -> str:
    return json.dumps(table.to_pylist())


def _decode_frame(text: str) -> pd.DataFrame:
    return pd.DataFrame.from_records(_rows(text))


def _encode_frame(df: pd.DataFrame) -> str:
    return df.to_json(orient="records")


def default_formats() -> Formats:
    return (
        Formats()
        .with_codec(pa.Table, _decode_table, _encode_table)
        .with_codec(pd.DataFrame, _decode_frame, _encode_frame)
    )


class HydrationMixin:
    """
    Lazily materialised, memoised Formats for a stage instance.

    - 第一次访问 formats 时构建（加锁，只构建一次）
    - 之后只读共享
    - pickle 时丢弃（worker 端重新懒加载）
    """

    _formats: Formats | None = None
    _formats_lock: threading.Lock | None = None

    def build_formats(self) -> Formats:
        """Override to register custom decoders."""
        return default_formats()

    @property
    def formats(self) -> Formats:
        fmt = self.__dict__.get("_formats")
        if fmt is not None:
            return fmt

        with self._get_formats_lock():
            fmt = self.__dict__.get("_formats")
            if fmt is None:
                fmt = self.build_formats()
                self._formats = fmt
                logs.debug(
                    f"[{type(self).__name__}] formats materialized "
                    f"registered={[_type_name(k) for k in fmt.registered()]}"
                )
        return fmt

    def hydrate(self, text: str, target: type[T] | Any) -> T:
        """
        Decode ``text`` into the type given by the ``target`` witness.

        Raises HydrationError on malformed payloads or shape mismatch.
        """
        return self.formats.decode(text, target)

    def _get_formats_lock(self) -> threading.Lock:
        lock = self.__dict__.get("_formats_lock")
        if lock is None:
            # setdefault 是原子操作，并发首访只会留下一把锁
            lock = self.__dict__.setdefault("_formats_lock", threading.Lock())
        return lock

    def __getstate__(self):
        state = self.__dict__.copy()
        state.pop("_formats", None)
        state.pop("_formats_lock", None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
