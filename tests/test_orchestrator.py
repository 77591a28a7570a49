from types import SimpleNamespace

from conftest import make_group
from core.exceptions import SectionError
from core.models import LockedDesign, ProjectConstraints, SpanResultData
from services.orchestrator import BeamJob, MultiBeamOrchestrator
from services.pipeline import RebarPipeline, default_stages
from services.stage import PipelineStage


class ConstraintSpy(PipelineStage):
    """파이프라인에 들어온 제약 조건을 보 이름별로 기록합니다."""
    name = "ConstraintSpy"
    order = 0

    def __init__(self):
        self.seen = {}

    def process(self, contexts):
        ctx = contexts[0]
        self.seen[ctx.group.name] = (ctx.global_constraints, ctx.external_constraints)
        return contexts


class RaisingPipeline(RebarPipeline):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def execute_detailed(self, *args, **kwargs):
        raise self.error


def _zero_results(n):
    return [SpanResultData() for _ in range(n)]


def _floor(two_span_results):
    return [
        BeamJob(make_group("B1"), two_span_results),
        BeamJob(make_group("B2", neighbor_groups=("B1",)), _zero_results(2)),
    ]


def test_neighbor_design_is_visible_to_later_beams(settings, two_span_results):
    spy = ConstraintSpy()
    orchestrator = MultiBeamOrchestrator(RebarPipeline(stages=[spy, *default_stages()]))
    results = orchestrator.solve_floor(_floor(two_span_results), settings)

    b1 = results["B1"]
    assert b1.is_valid
    first_constraints, _ = spy.seen["B1"]
    assert first_constraints.neighbor_designs == {}

    second_constraints, _ = spy.seen["B2"]
    neighbor = second_constraints.neighbor_designs["B1"]
    assert neighbor.backbone_diameter == b1.backbone_diameter_top
    assert neighbor.backbone_count == b1.backbone_count_top
    assert neighbor.stirrup_diameter == 10
    assert second_constraints.preferred_main_diameter == b1.backbone_diameter_top
    assert set(orchestrator.constraints.neighbor_designs) == {"B1", "B2"}


def test_preferred_diameter_is_not_overwritten(settings, two_span_results):
    orchestrator = MultiBeamOrchestrator()
    orchestrator.solve_floor(_floor(two_span_results), settings,
                             initial_constraints=ProjectConstraints(preferred_main_diameter=16))
    assert orchestrator.constraints.preferred_main_diameter == 16


def test_best_solution_carries_alternatives(settings, two_span_results):
    results = MultiBeamOrchestrator().solve_floor(_floor(two_span_results)[:1], settings)
    best = results["B1"]
    assert best.strategy_label == "최적안"
    assert 1 <= len(best.alternative_solutions) <= 4
    assert all(alt.strategy_label for alt in best.alternative_solutions)


def test_failed_beam_gets_failed_entry(settings, two_span_results):
    jobs = [BeamJob(make_group("N1", width=120), two_span_results), *_floor(two_span_results)]
    results = MultiBeamOrchestrator().solve_floor(jobs, settings)
    assert list(results) == ["N1", "B1", "B2"]
    failed = results["N1"]
    assert failed.option_name == "FAILED"
    assert not failed.is_valid
    assert "no backbone layout fits" in failed.validation_message
    assert results["B1"].is_valid and results["B2"].is_valid


def test_exceptions_become_failed_entries(settings, two_span_results):
    job = _floor(two_span_results)[:1]
    crashed = MultiBeamOrchestrator(RaisingPipeline(RuntimeError("boom"))).solve_floor(job, settings)
    assert crashed["B1"].option_name == "FAILED"
    assert crashed["B1"].validation_message == "Critical Error: boom"

    rejected = MultiBeamOrchestrator(RaisingPipeline(SectionError("bad span"))).solve_floor(job, settings)
    assert rejected["B1"].validation_message == "Error: bad span"


def test_deadline_marks_remaining_beams(monkeypatch, settings, two_span_results):
    ticks = iter([0.0, 0.5, 5.0])
    monkeypatch.setattr("services.orchestrator.time", SimpleNamespace(monotonic=lambda: next(ticks)))
    results = MultiBeamOrchestrator().solve_floor(_floor(two_span_results), settings, deadline=1.0)
    assert results["B1"].is_valid
    assert results["B2"].option_name == "FAILED"
    assert results["B2"].validation_message.startswith("Timeout")


def test_locked_design_is_forced(settings, two_span_results):
    spy = ConstraintSpy()
    group = make_group("B3", locked_design=LockedDesign(22, 3, 3))
    orchestrator = MultiBeamOrchestrator(RebarPipeline(stages=[spy, *default_stages()]))
    result = orchestrator.recalculate_single(BeamJob(group, _zero_results(2)), settings)

    _, external = spy.seen["B3"]
    assert external.source == "UserLock"
    assert result.option_name == "3D22"
    assert (result.backbone_count_top, result.backbone_count_bot) == (3, 3)
    assert result.alternative_solutions == []


def test_recalculate_single_uses_given_constraints(settings, two_span_results):
    spy = ConstraintSpy()
    orchestrator = MultiBeamOrchestrator(RebarPipeline(stages=[spy, *default_stages()]))
    constraints = ProjectConstraints(preferred_main_diameter=22)
    orchestrator.recalculate_single(BeamJob(make_group("B1"), two_span_results), settings, constraints)
    seen, _ = spy.seen["B1"]
    assert seen.preferred_main_diameter == 22
    assert "B1" in orchestrator.constraints.neighbor_designs
