import pytest

from conftest import make_context, make_group
from core.exceptions import SectionError
from core.models import (
    BeamGroup, ContinuousBeamSolution, Face, LocationKey, NeighborDesign, ProjectConstraints, RebarSpec, Section,
    Span, SpanResultData, Station,
)


def test_location_key():
    key = LocationKey("S2", Face.TOP, Section.LEFT)
    assert str(key) == "S2_Top_Left"
    assert key.covers(Station.START) and not key.covers(Station.MID)
    assert LocationKey("S2", Face.BOTTOM, Section.FULL).covers(Station.END)
    assert key == LocationKey("S2", Face.TOP, Section.LEFT)


def test_group_validation():
    with pytest.raises(SectionError):
        BeamGroup("B1", (Span("S1", 6000, 300, 600), Span("S1", 5000, 300, 600)))
    with pytest.raises(SectionError):
        Span("S1", 0, 300, 600)
    with pytest.raises(SectionError):
        SpanResultData(top_area=(1.0, 2.0))


def test_girder_detection():
    assert make_group("G3").is_girder
    assert make_group("B1", group_type="GIRDER").is_girder
    assert not make_group("B1").is_girder
    assert make_group("B1", lengths=(6000, 4500)).total_length == 10500


def test_required_area_is_never_negative():
    result = SpanResultData(top_area=(-1.0, 2.0, 3.0))
    assert result.required(Face.TOP, Station.START) == 0.0
    assert result.required(Face.TOP, Station.END) == 3.0
    assert result.required(Face.BOTTOM, Station.MID) == 0.0


def test_provided_area_sums_covering_reinforcement():
    sol = ContinuousBeamSolution("2D20", 20, 16, 2, 3)
    sol.reinforcements[LocationKey("S1", Face.TOP, Section.RIGHT)] = RebarSpec(20, 2)
    sol.reinforcements[LocationKey("S2", Face.TOP, Section.FULL)] = RebarSpec(16, 2)
    assert sol.provided_area("S1", Face.TOP, Station.END) == pytest.approx(4 * 3.14159, abs=1e-3)
    assert sol.provided_area("S1", Face.TOP, Station.MID) == pytest.approx(sol.as_backbone_top)
    assert sol.provided_area("S2", Face.TOP, Station.MID) == pytest.approx(sol.as_backbone_top + 2 * 2.01062, abs=1e-3)
    assert sol.provided_area("S1", Face.BOTTOM, Station.END) == pytest.approx(3 * 2.01062, abs=1e-3)


def test_constraints_are_snapshots():
    base = ProjectConstraints()
    updated = base.with_neighbor("B1", NeighborDesign(20, 2, 10)).with_preferred_diameter(20)
    assert base.neighbor_designs == {} and base.preferred_main_diameter is None
    assert updated.neighbor_designs["B1"].backbone_diameter == 20
    assert updated.preferred_main_diameter == 20


def test_clone_resets_outputs(two_span_group, two_span_results):
    ctx = make_context(two_span_group, two_span_results)
    ctx.invalidate("Test", "failed")
    ctx.accumulated_waste_count = 3
    copy = ctx.clone()
    assert copy.is_valid and copy.current_solution is None
    assert copy.accumulated_waste_count == 0 and copy.scenario_id == ""
    assert copy.group is ctx.group and copy.beam_width == ctx.beam_width
    assert ctx.failure_message == "failed"
