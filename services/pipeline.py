# services/pipeline.py

"""
연속보 1개의 배근 안을 생성/검증/평가/순위화하는 파이프라인입니다.

    seed -> [기본근 시나리오] -> [보강근 채움] -> [설계 규칙] -> 철근량 충족 검토 -> 점수 -> 순위

각 단계는 컨텍스트 목록을 받아 목록을 반환하며, 무효가 된 컨텍스트는 단계마다 걸러집니다.
모든 후보가 탈락해도 예외를 던지지 않고 빈 목록(과 가장 구체적인 실패 사유)을 반환합니다.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from core.constants import (
    ADMISSIBILITY_TOLERANCE, CONSTRUCTABILITY_SCORE_FACTOR, MAX_SOLUTIONS, WEIGHT_SCORE_FACTOR,
)
from core.exceptions import DesignError
from core.helpers import is_equal, is_greater_or_equal
from core.models import (
    BeamGroup, ContinuousBeamSolution, ExternalConstraints, Face, ProjectConstraints, SolutionContext,
    SpanResultData, Station,
)
from core.settings import RebarSettings
from services.reinforcement_filler import ReinforcementFiller
from services.rule_engine import RuleEngine
from services.scenario_generator import ScenarioGenerator
from services.scoring import ConstructabilityScorer, Scorer
from services.stage import PipelineStage


@dataclass
class PipelineOutcome:
    solutions: List[ContinuousBeamSolution] = field(default_factory=list)
    failure_message: str = ""
    candidate_count: int = 0

    @property
    def is_success(self) -> bool:
        return bool(self.solutions)


def default_stages() -> List[PipelineStage]:
    return [ScenarioGenerator(), ReinforcementFiller(), RuleEngine()]


class RebarPipeline:
    def __init__(self, stages: Optional[Sequence[PipelineStage]] = None, scorer: Optional[Scorer] = None,
                 max_solutions: int = MAX_SOLUTIONS):
        self.stages = sorted(stages if stages is not None else default_stages(), key=lambda s: s.order)
        if not self.stages:
            raise DesignError("RebarPipeline needs at least one stage.")
        self.scorer = scorer or ConstructabilityScorer()
        self.max_solutions = max_solutions

    def execute(self, group: BeamGroup, span_results: List[SpanResultData], settings: RebarSettings,
                global_constraints: Optional[ProjectConstraints] = None,
                external_constraints: Optional[ExternalConstraints] = None) -> List[ContinuousBeamSolution]:
        """최대 5개의 배근 안을 좋은 순서로 반환합니다. 가능한 안이 없으면 빈 목록."""
        return self.execute_detailed(group, span_results, settings, global_constraints,
                                     external_constraints).solutions

    def execute_detailed(self, group: BeamGroup, span_results: List[SpanResultData], settings: RebarSettings,
                         global_constraints: Optional[ProjectConstraints] = None,
                         external_constraints: Optional[ExternalConstraints] = None) -> PipelineOutcome:
        seed = SolutionContext(
            group=group,
            span_results=list(span_results),
            settings=settings,
            global_constraints=global_constraints or ProjectConstraints(),
            external_constraints=external_constraints,
        )
        contexts = [seed]
        failure = ""
        candidate_count = 0
        expanded = False

        for stage in self.stages:
            contexts = stage.process(contexts)
            # 시드를 처음으로 후보 목록으로 바꾼 단계의 결과가 후보 수
            produced = not expanded and any(ctx is not seed for ctx in contexts)
            dropped = [ctx for ctx in contexts if not ctx.is_valid]
            contexts = [ctx for ctx in contexts if ctx.is_valid]
            if produced:
                expanded = True
                candidate_count = len(contexts)
            if dropped:
                # 뒤 단계의 실패 사유가 더 구체적
                failure = dropped[0].failure_message
                logger.debug(f"[{group.name}] {stage.name}: {len(dropped)} dropped, {len(contexts)} remain")
            if not contexts:
                logger.info(f"[{group.name}] no candidate survived {stage.name}: {failure}")
                return PipelineOutcome([], failure or f"No candidate survived {stage.name}", candidate_count)

        survivors = []
        for ctx in contexts:
            message = check_admissibility(ctx)
            if message:
                ctx.current_solution.is_valid = False
                ctx.current_solution.validation_message = message
                ctx.is_valid = False
                ctx.fail_stage = "Admissibility"
                failure = message
                logger.warning(f"[{group.name}] {ctx.scenario_id}: {message}")
                continue
            survivors.append(ctx)
        if not survivors:
            return PipelineOutcome([], failure, candidate_count)

        self._score(survivors)
        ranked = self._rank([ctx.current_solution for ctx in survivors])
        logger.info(f"[{group.name}] {len(survivors)} admissible candidates, best: "
                    f"{ranked[0].option_name} ({ranked[0].total_score:.1f})")
        return PipelineOutcome(ranked, "", candidate_count)

    def _score(self, contexts: List[SolutionContext]) -> None:
        weights = np.array([ctx.current_solution.total_steel_weight for ctx in contexts], dtype=float)
        spread = weights.max() - weights.min()
        if is_equal(float(spread), 0.0):
            weight_scores = np.full_like(weights, 100.0)
        else:
            weight_scores = 100.0 * (weights.max() - weights) / spread

        for ctx, weight_score in zip(contexts, weight_scores):
            sol = ctx.current_solution
            sol.constructability_score = float(self.scorer(sol, ctx.group, ctx.settings))
            sol.total_score = (WEIGHT_SCORE_FACTOR * float(weight_score)
                               + CONSTRUCTABILITY_SCORE_FACTOR * sol.constructability_score
                               - ctx.total_penalty + ctx.preferred_diameter_bonus)

    def _rank(self, solutions: List[ContinuousBeamSolution]) -> List[ContinuousBeamSolution]:
        best: Dict[str, ContinuousBeamSolution] = {}
        for sol in solutions:
            kept = best.get(sol.option_name)
            if kept is None or sol.total_score > kept.total_score:
                best[sol.option_name] = sol
        ranked = sorted(best.values(), key=lambda s: (-s.total_score, s.total_steel_weight))
        return ranked[:self.max_solutions]


def check_admissibility(ctx: SolutionContext) -> str:
    """
    모든 경간 x 상하부 x 검토 단면에서 제공 철근량 >= 소요 철근량 x 0.98 인지 확인합니다.
    부족한 단면이 있으면 단면별 부족 내역을 담은 메시지를, 없으면 빈 문자열을 반환합니다.
    """
    sol = ctx.current_solution
    deficits = []
    for span, result in zip(ctx.group.spans, ctx.span_results):
        for face in (Face.TOP, Face.BOTTOM):
            for station in Station:
                required = result.required(face, station)
                provided = sol.provided_area(span.span_id, face, station)
                if not is_greater_or_equal(provided, required * ADMISSIBILITY_TOLERANCE):
                    deficits.append(f"{span.span_id}_{face.value}_{station.name.title()}:"
                                    f"{provided:.2f}/{required:.2f}")
    if not deficits:
        return ""
    return "FATAL: Local Steel Deficit! " + ", ".join(deficits)
