# services/proposal_selector.py

"""
후보 해 중에서 성격이 서로 다른 최대 5개를 고릅니다.
점수 상위 5개를 그대로 쓰면 거의 같은 안만 남기 때문에, 관점별 대표안을 하나씩 뽑은 뒤 나머지를 점수순으로 채웁니다.
"""

from typing import Callable, List, Sequence

from core.constants import MAX_SOLUTIONS
from core.exceptions import DesignError
from core.models import ContinuousBeamSolution

LABEL_BEST = "최적안"
LABEL_ECONOMICAL = "최소 물량"
LABEL_ROBUST = "안전 (큰 기본근)"
LABEL_SIMPLE = "시공 용이"
LABEL_UNIFORM = "직경 통일"
LABEL_OTHER = "기타"


def count_layer2_positions(sol: ContinuousBeamSolution) -> int:
    return sum(1 for spec in sol.reinforcements.values() if spec.layer >= 2)


def uniformity_score(sol: ContinuousBeamSolution) -> int:
    """보강근 직경이 기본근과 같을수록, 상하부 기본근 직경이 같을수록 높습니다."""
    score = 0
    backbone = (sol.backbone_diameter_top, sol.backbone_diameter_bot)
    for spec in sol.reinforcements.values():
        if spec.diameter in backbone:
            score += 2
        elif any(abs(spec.diameter - d) <= 2 for d in backbone):
            score += 1
    if sol.backbone_diameter_top == sol.backbone_diameter_bot:
        score += 5
    return score


class ProposalSelector:
    def __init__(self, max_count: int = MAX_SOLUTIONS):
        if max_count < 1:
            raise DesignError(f"max_count must be at least 1, got {max_count}")
        self.max_count = max_count

    def select(self, proposals: Sequence[ContinuousBeamSolution]) -> List[ContinuousBeamSolution]:
        candidates = [p for p in proposals if p.is_valid]
        selected: List[ContinuousBeamSolution] = []
        if not candidates:
            return selected

        picks = [
            (LABEL_BEST, lambda p: -p.total_score),
            (LABEL_ECONOMICAL, lambda p: (p.total_steel_weight, -p.total_score)),
            (LABEL_ROBUST, lambda p: (-(p.backbone_count_top + p.backbone_count_bot),
                                      -max(p.backbone_diameter_top, p.backbone_diameter_bot), -p.total_score)),
            (LABEL_SIMPLE, lambda p: (count_layer2_positions(p), len(p.reinforcements), -p.total_score)),
            (LABEL_UNIFORM, lambda p: (-uniformity_score(p), -p.total_score)),
        ]
        for label, key in picks:
            if len(selected) >= self.max_count:
                break
            self._pick(candidates, selected, label, key)

        remainder = sorted((p for p in candidates if not _contains(selected, p)), key=lambda p: -p.total_score)
        for sol in remainder[:max(0, self.max_count - len(selected))]:
            sol.strategy_label = sol.strategy_label or LABEL_OTHER
            selected.append(sol)
        return selected

    @staticmethod
    def _pick(candidates, selected, label: str, key: Callable) -> None:
        remaining = [p for p in candidates if not _contains(selected, p)]
        if not remaining:
            return
        # sorted() 는 안정 정렬이므로 동점이면 파이프라인 순위가 유지됨
        best = sorted(remaining, key=key)[0]
        best.strategy_label = label
        selected.append(best)


def _contains(items: List[ContinuousBeamSolution], sol: ContinuousBeamSolution) -> bool:
    return any(item is sol for item in items)
