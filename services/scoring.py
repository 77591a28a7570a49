# services/scoring.py

"""
시공성 점수 (0~100).
이음 개수, 직경 종류 수, 철근 순간격, 배근 층 수를 가중합합니다.
파이프라인은 scorer(solution, group, settings) 형태의 호출 가능 객체만 요구하므로 다른 구현으로 교체할 수 있습니다.
"""

from dataclasses import dataclass
from typing import Callable

from core.cutting import estimate_bar_count
from core.helpers import clamp, normalize_dimension
from core.models import BeamGroup, ContinuousBeamSolution
from core.placement import min_clear_spacing, usable_width
from core.settings import RebarSettings

Scorer = Callable[[ContinuousBeamSolution, BeamGroup, RebarSettings], float]

_LAYERING_SCORES = {1: 1.0, 2: 0.8, 3: 0.5}


@dataclass(frozen=True)
class ScoreWeights:
    cuts: float = 0.35
    diversity: float = 0.30
    spacing: float = 0.20
    layering: float = 0.15

    @classmethod
    def economical(cls) -> "ScoreWeights":
        return cls(cuts=0.2, diversity=0.2, spacing=0.1, layering=0.5)

    @classmethod
    def fast_construction(cls) -> "ScoreWeights":
        return cls(cuts=0.5, diversity=0.3, spacing=0.15, layering=0.05)


@dataclass(frozen=True)
class ScoreBreakdown:
    cuts: float
    diversity: float
    spacing: float
    layering: float
    total: float

    def report(self, weights: ScoreWeights) -> str:
        return (f"시공성 점수: {self.total:.1f}/100\n"
                f"  1. 이음   ({weights.cuts * 100:.0f}%): {self.cuts * 100:.1f}\n"
                f"  2. 직경수 ({weights.diversity * 100:.0f}%): {self.diversity * 100:.1f}\n"
                f"  3. 순간격 ({weights.spacing * 100:.0f}%): {self.spacing * 100:.1f}\n"
                f"  4. 층수   ({weights.layering * 100:.0f}%): {self.layering * 100:.1f}")


class ConstructabilityScorer:
    def __init__(self, weights: ScoreWeights = ScoreWeights()):
        self.weights = weights

    def __call__(self, solution: ContinuousBeamSolution, group: BeamGroup, settings: RebarSettings) -> float:
        return self.breakdown(solution, group, settings).total

    def breakdown(self, solution: ContinuousBeamSolution, group: BeamGroup,
                  settings: RebarSettings) -> ScoreBreakdown:
        if not solution.is_valid:
            return ScoreBreakdown(0.0, 0.0, 0.0, 0.0, 0.0)
        cuts = _cuts_score(solution, group, settings)
        diversity = _diversity_score(solution)
        spacing = _spacing_score(solution, group, settings)
        layering = _LAYERING_SCORES.get(solution.max_layer(), 0.3)
        w = self.weights
        total = w.cuts * cuts + w.diversity * diversity + w.spacing * spacing + w.layering * layering
        return ScoreBreakdown(cuts, diversity, spacing, layering, clamp(total * 100, 0.0, 100.0))


def _cuts_score(sol: ContinuousBeamSolution, group: BeamGroup, settings: RebarSettings) -> float:
    """기본근 1줄당 이음 개수 x 기본근 개수를 전체 철근 개수와 비교"""
    total_bars = (sol.backbone_count_top + sol.backbone_count_bot
                  + sum(max(0, spec.count) for spec in sol.reinforcements.values()))
    if total_bars <= 0:
        return 0.0
    splices_per_line = max(0, estimate_bar_count(group.total_length, settings.detailing.max_bar_length) - 1)
    splices = splices_per_line * (sol.backbone_count_top + sol.backbone_count_bot)
    return max(0.0, 1.0 - min(1.0, splices / total_bars))


def _diversity_score(sol: ContinuousBeamSolution) -> float:
    diameters = {d for d in (sol.backbone_diameter_top, sol.backbone_diameter_bot) if d > 0}
    diameters.update(spec.diameter for spec in sol.reinforcements.values() if spec.diameter > 0)
    return 1.0 / max(1, len(diameters))


def _spacing_score(sol: ContinuousBeamSolution, group: BeamGroup, settings: RebarSettings) -> float:
    widths = [normalize_dimension(s.width) for s in group.spans]
    widths = [w for w in widths if w > 0] or [normalize_dimension(group.width)]
    usable = usable_width(min(widths), settings.beam)
    if usable <= 0:
        return 0.0
    top = _layer_spacing_score(usable, sol.backbone_count_top, sol.backbone_diameter_top, settings)
    bot = _layer_spacing_score(usable, sol.backbone_count_bot, sol.backbone_diameter_bot, settings)
    return max(0.0, min(top, bot))


def _layer_spacing_score(usable: float, count: int, diameter: int, settings: RebarSettings) -> float:
    if count <= 1 or diameter <= 0:
        return 1.0
    remaining = usable - count * diameter
    if remaining <= 0:
        return 0.0
    ratio = (remaining / (count - 1)) / min_clear_spacing(diameter, settings.beam)
    # 소요 순간격 미만이면 제곱으로 감점
    return ratio * ratio if ratio < 1.0 else 1.0
