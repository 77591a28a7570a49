import pytest

from conftest import make_group
from core.models import ContinuousBeamSolution, Face, LocationKey, RebarSpec, Section
from services.scoring import ConstructabilityScorer, ScoreWeights


def _backbone_only(n=2, dia=20):
    return ContinuousBeamSolution("x", dia, dia, n, n)


def test_simple_layout_scores_full(settings):
    scorer = ConstructabilityScorer()
    assert scorer(_backbone_only(), make_group(lengths=(6000,)), settings) == pytest.approx(100.0)


def test_splices_lower_the_score(settings):
    breakdown = ConstructabilityScorer().breakdown(_backbone_only(), make_group(lengths=(6000,) * 5), settings)
    assert breakdown.cuts == 0.0
    assert breakdown.total == pytest.approx(65.0)
    assert "시공성 점수: 65.0/100" in breakdown.report(ScoreWeights())


def test_mixed_diameters_and_layers(settings):
    sol = _backbone_only()
    sol.reinforcements[LocationKey("S1", Face.TOP, Section.LEFT)] = RebarSpec(16, 4, 2, Face.TOP, (4, 2))
    breakdown = ConstructabilityScorer().breakdown(sol, make_group(lengths=(6000,)), settings)
    assert breakdown.diversity == 0.5
    assert breakdown.layering == 0.8


def test_crowded_layer_loses_spacing_points(settings):
    # 순폭 230mm 에 D25 5개 -> 순간격 26.25 < 26.6
    breakdown = ConstructabilityScorer().breakdown(_backbone_only(5, 25), make_group(lengths=(6000,)), settings)
    assert breakdown.spacing == pytest.approx((26.25 / 26.6) ** 2)


def test_invalid_solution_scores_zero(settings):
    assert ConstructabilityScorer()(ContinuousBeamSolution.failed("x"), make_group(), settings) == 0.0


def test_weight_presets_sum_to_one():
    for weights in (ScoreWeights(), ScoreWeights.economical(), ScoreWeights.fast_construction()):
        assert weights.cuts + weights.diversity + weights.spacing + weights.layering == pytest.approx(1.0)
