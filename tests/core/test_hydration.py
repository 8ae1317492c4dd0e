# tests/core/test_hydration.py
from __future__ import annotations

import pickle
import threading
import time
from dataclasses import dataclass, field

import pandas as pd
import pyarrow as pa
import pytest
from pydantic import BaseModel

from prepstage.core.hydration import Formats, HydrationMixin, default_formats
from prepstage.utils.errors import HydrationError


@dataclass
class Rating:
    user: str
    item: str
    score: float
    tags: list[str] = field(default_factory=list)
    extra: dict[str, int] = field(default_factory=dict)


class Event(BaseModel):
    name: str
    ts: int
    values: list[float]


# ============================================================
# Formats
# ============================================================
@pytest.mark.parametrize(
    "value, target",
    [
        (Rating("u1", "i1", 4.5, ["a", "b"], {"clicks": 3}), Rating),
        (Event(name="e", ts=1, values=[0.5, 1.5]), Event),
        ([1, 2, 3], list[int]),
        ({"a": [1.0], "b": []}, dict[str, list[float]]),
    ],
)
def test_round_trip(value, target):
    fmt = default_formats()

    text = fmt.encode(value, target)

    assert fmt.decode(text, target) == value


@pytest.mark.parametrize("target", [Rating, Event, int, list[int], dict[str, int]])
def test_malformed_text_fails(target):
    with pytest.raises(HydrationError) as exc:
        default_formats().decode("{not valid}", target)

    assert exc.value.target is target


def test_empty_object_missing_mandatory_field():
    with pytest.raises(HydrationError):
        default_formats().decode("{}", Rating)


def test_field_type_mismatch():
    text = '{"user": "u", "item": "i", "score": [1]}'

    with pytest.raises(HydrationError):
        default_formats().decode(text, Rating)


def test_hydration_error_chains_cause():
    with pytest.raises(HydrationError) as exc:
        default_formats().decode("{}", Event)

    assert exc.value.__cause__ is not None


def test_registered_string_identifier():
    fmt = Formats().with_codec("csv_ints", lambda s: [int(x) for x in s.split(",")])

    assert fmt.decode("1,2,3", "csv_ints") == [1, 2, 3]


def test_unknown_string_identifier():
    with pytest.raises(HydrationError):
        Formats().decode("1", "nope")


def test_registered_decoder_failure_becomes_hydration_error():
    fmt = Formats().with_codec("csv_ints", lambda s: [int(x) for x in s.split(",")])

    with pytest.raises(HydrationError) as exc:
        fmt.decode("1,x", "csv_ints")

    assert isinstance(exc.value.__cause__, ValueError)


def test_registered_type_decoder_takes_precedence():
    fmt = Formats().with_codec(int, lambda s: 42)

    assert fmt.decode("7", int) == 42
    assert Formats().decode("7", int) == 7


def test_with_codec_returns_new_instance():
    base = Formats()
    extended = base.with_codec("x", str.upper)

    assert base.registered() == []
    assert extended.registered() == ["x"]


def test_adapter_cached_per_target():
    fmt = Formats()

    assert fmt.adapter(Rating) is fmt.adapter(Rating)


def test_unsupported_target_fails_with_hydration_error():
    class Opaque:
        def __init__(self, handle):
            self.handle = handle

    with pytest.raises(HydrationError):
        Formats().decode("{}", Opaque)


def test_table_codec():
    fmt = default_formats()
    text = '[{"user": "u1", "score": 1.0}, {"user": "u2", "score": 2.5}]'

    table = fmt.decode(text, pa.Table)

    assert table.num_rows == 2
    assert table.column("score").to_pylist() == [1.0, 2.5]
    assert fmt.decode(fmt.encode(table), pa.Table).equals(table)


def test_frame_codec():
    fmt = default_formats()
    text = '[{"user": "u1", "score": 1.0}, {"user": "u2", "score": 2.5}]'

    df = fmt.decode(text, pd.DataFrame)

    assert list(df.columns) == ["user", "score"]
    pd.testing.assert_frame_equal(fmt.decode(fmt.encode(df), pd.DataFrame), df)


def test_table_codec_rejects_non_rows():
    with pytest.raises(HydrationError):
        default_formats().decode('{"user": "u1"}', pa.Table)


# ============================================================
# HydrationMixin（懒加载 + 并发只构建一次）
# ============================================================
class CountingHolder(HydrationMixin):
    def __init__(self):
        self.build_calls = 0
        self._calls_lock = threading.Lock()

    def build_formats(self) -> Formats:
        with self._calls_lock:
            self.build_calls += 1
        time.sleep(0.01)  # widen the first-use race
        return default_formats().with_codec("upper", str.upper)

    def __getstate__(self):
        state = super().__getstate__()
        state.pop("_calls_lock", None)
        return state

    def __setstate__(self, state):
        super().__setstate__(state)
        self._calls_lock = threading.Lock()


def test_formats_materialized_lazily_once():
    holder = CountingHolder()
    assert holder.build_calls == 0

    first = holder.formats
    second = holder.formats

    assert first is second
    assert holder.build_calls == 1


def test_formats_concurrent_first_use():
    holder = CountingHolder()
    n = 8
    barrier = threading.Barrier(n)
    seen = []

    def worker():
        barrier.wait()
        seen.append(holder.formats)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert holder.build_calls == 1
    assert len({id(f) for f in seen}) == 1


def test_hydrate_uses_stage_formats():
    holder = CountingHolder()

    assert holder.hydrate("abc", "upper") == "ABC"
    assert holder.hydrate('{"user": "u", "item": "i", "score": 1}', Rating) == Rating("u", "i", 1.0)


def test_concurrent_hydration():
    holder = CountingHolder()
    payloads = [f'{{"user": "u{i}", "item": "i", "score": {i}}}' for i in range(50)]
    results = [None] * len(payloads)

    def worker(i):
        results[i] = holder.hydrate(payloads[i], Rating)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(len(payloads))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [r.user for r in results] == [f"u{i}" for i in range(50)]
    assert holder.build_calls == 1


def test_formats_dropped_on_pickle():
    holder = CountingHolder()
    _ = holder.formats

    restored = pickle.loads(pickle.dumps(holder))

    assert "_formats" not in restored.__dict__
    assert restored.hydrate("x", "upper") == "X"
