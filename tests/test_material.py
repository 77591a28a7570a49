import pytest

from core.exceptions import MaterialError
from core.material.material import (
    Concrete, Rebar, Steel, bar_area, bar_weight, development_length, lap_splice_length, unit_weight,
)


def test_bar_properties():
    assert bar_area(20) == pytest.approx(3.1416, abs=1e-4)
    assert unit_weight(20) == pytest.approx(2.468)
    # 2D20 x 6m
    assert bar_weight(20, 6000, 2) == pytest.approx(29.616)
    assert bar_weight(20, 6000, 0) == 0.0


def test_invalid_materials():
    with pytest.raises(MaterialError):
        Rebar(21)
    with pytest.raises(MaterialError):
        Steel("SD700")
    with pytest.raises(MaterialError):
        Concrete(fck=0)


def test_concrete_from_grade():
    assert Concrete.from_grade("C27").fck == 27
    assert Concrete.from_grade("fck30").fck == 30
    assert Concrete.from_grade("24").fck == 24
    with pytest.raises(MaterialError):
        Concrete.from_grade("abc")


def test_lap_splice_length():
    concrete, steel = Concrete.from_grade("C27"), Steel("SD400")
    ldb = development_length(20, concrete, steel)
    assert ldb == pytest.approx(923.76, abs=0.01)
    assert lap_splice_length(20, concrete, steel, "B") == pytest.approx(1200.9, abs=0.1)
    assert lap_splice_length(20, concrete, steel, "A") == pytest.approx(ldb)
    # 가는 철근은 최소 길이 300mm
    assert lap_splice_length(10, Concrete(fck=100), Steel("SD300"), "A") == 300
    with pytest.raises(MaterialError):
        lap_splice_length(20, concrete, steel, "C")
