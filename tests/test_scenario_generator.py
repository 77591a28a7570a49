from conftest import make_group
from core.models import (
    BeamGroup, ExternalConstraints, LockedDesign, NeighborDesign, ProjectConstraints, SolutionContext, Span,
    SpanResultData,
)
from core.settings import RebarSettings
from services.scenario_generator import ScenarioGenerator, min_bars_for_spacing, scenario_id


def _seed(group, constraints=None, external=None, settings=None):
    return SolutionContext(group=group, span_results=[SpanResultData() for _ in group.spans],
                           settings=settings or RebarSettings(),
                           global_constraints=constraints or ProjectConstraints(),
                           external_constraints=external)


def test_scenario_id_format():
    assert scenario_id(2, 20, 2, 20) == "2D20"
    assert scenario_id(3, 20, 2, 16) == "T:3D20/B:2D16"


def test_min_bars_for_spacing():
    settings = RebarSettings()
    assert min_bars_for_spacing(300, 20, settings) == 2
    # 보 폭 800mm -> 180mm 당 1개 규칙으로 5개
    assert min_bars_for_spacing(800, 20, settings) == 5


def test_default_scenarios():
    contexts = ScenarioGenerator().generate(_seed(make_group()))
    assert len(contexts) == 225
    ids = {ctx.scenario_id for ctx in contexts}
    assert "2D20" in ids
    assert "T:3D20/B:2D16" in ids
    for ctx in contexts:
        assert ctx.is_valid
        assert 2 <= ctx.top_backbone_count <= 4
        assert abs(ctx.top_backbone_count - ctx.bot_backbone_count) <= 2
        assert ctx.beam_width == 300 and ctx.beam_height == 600
        assert ctx.total_length == 12000
        assert ctx.current_solution is None


def test_forced_backbone_from_lock():
    external = ExternalConstraints.from_locked(LockedDesign(22, 3, 3))
    contexts = ScenarioGenerator().generate(_seed(make_group(), external=external))
    assert [ctx.scenario_id for ctx in contexts] == ["3D22"]
    assert external.source == "UserLock"


def test_preferred_diameter_bonus():
    constraints = ProjectConstraints(preferred_main_diameter=20)
    contexts = {ctx.scenario_id: ctx for ctx in ScenarioGenerator().generate(_seed(make_group(), constraints))}
    assert contexts["2D20"].preferred_diameter_bonus == 10
    assert contexts["T:2D20/B:2D16"].preferred_diameter_bonus == 5
    assert contexts["2D16"].preferred_diameter_bonus == 0


def test_neighbor_design_counts_as_preferred():
    constraints = ProjectConstraints().with_neighbor("G1", NeighborDesign(25, 3, 10))
    group = make_group(neighbor_groups=("G1",))
    contexts = {ctx.scenario_id: ctx for ctx in ScenarioGenerator().generate(_seed(group, constraints))}
    assert contexts["2D25"].preferred_diameter_bonus == 10
    assert contexts["2D20"].preferred_diameter_bonus == 0


def test_allowed_diameter_override():
    constraints = ProjectConstraints(allowed_diameters_override=(16, 22))
    contexts = ScenarioGenerator().generate(_seed(make_group(), constraints))
    assert {ctx.top_backbone_diameter for ctx in contexts} == {16, 22}


def test_narrowest_span_limits_counts():
    group = BeamGroup("B1", (Span("S1", 6000, 300, 600), Span("S2", 6000, 0.18, 0.6)), width=300, depth=600)
    contexts = ScenarioGenerator().generate(_seed(group))
    assert contexts[0].beam_width == 180
    assert max(ctx.top_backbone_count for ctx in contexts if ctx.top_backbone_diameter == 20) == 2
    assert max(ctx.top_backbone_count for ctx in contexts) == 3


def test_too_narrow_beam_is_invalidated():
    contexts = ScenarioGenerator().generate(_seed(make_group(width=120)))
    assert len(contexts) == 1
    assert not contexts[0].is_valid
    assert "no backbone layout fits" in contexts[0].failure_message


def test_missing_dimensions_are_invalidated():
    contexts = ScenarioGenerator().generate(_seed(make_group(width=0, depth=0)))
    assert len(contexts) == 1
    assert not contexts[0].is_valid
    assert "no valid section dimensions" in contexts[0].failure_message
