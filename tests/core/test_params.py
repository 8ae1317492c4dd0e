# tests/core/test_params.py
from __future__ import annotations

import pytest
from pydantic import ValidationError

from prepstage.core.params import EmptyParams, Params


class ScaleParams(Params):
    factor: float
    columns: tuple[str, ...] = ()
    clip: dict[str, float] = {}


def test_params_equal_by_value():
    a = ScaleParams(factor=2.0, columns=("x", "y"))
    b = ScaleParams(factor=2.0, columns=("x", "y"))

    assert a == b
    assert a != ScaleParams(factor=3.0, columns=("x", "y"))


def test_params_frozen():
    p = ScaleParams(factor=2.0)

    with pytest.raises(ValidationError):
        p.factor = 5.0


def test_params_json_round_trip():
    p = ScaleParams(factor=0.5, columns=("a",), clip={"a": 1.5})

    restored = ScaleParams.from_json(p.to_json())

    assert restored == p


def test_params_reject_unknown_fields():
    with pytest.raises(ValidationError):
        ScaleParams(factor=1.0, unknown=1)


def test_params_missing_field_fails_at_construction():
    with pytest.raises(ValidationError):
        ScaleParams()


def test_empty_params():
    assert EmptyParams() == EmptyParams()
    assert EmptyParams.from_json("{}") == EmptyParams()


class WindowParams(Params):
    size: int
    columns: tuple[str, ...] = ()


def test_params_with_hashable_fields_are_hashable():
    a = WindowParams(size=3, columns=("x",))
    b = WindowParams(size=3, columns=("x",))

    assert hash(a) == hash(b)
    assert len({a: 1, b: 2}) == 1


def test_params_with_dict_field_are_not_hashable():
    with pytest.raises(TypeError):
        hash(ScaleParams(factor=1.0, clip={"a": 1.0}))
