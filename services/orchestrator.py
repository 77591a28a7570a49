# services/orchestrator.py

"""
한 층의 연속보들을 우선순위 순서대로 하나씩 해석합니다.

앞서 해석된 보의 기본근이 뒤의 보에서 인접 보 정보(NeighborDesign)로 쓰이므로 순서에 의존합니다.
공유 상태(ProjectConstraints)는 불변 스냅샷이며, 각 보의 해석이 끝난 뒤 이 클래스만 새 스냅샷으로 교체합니다.
"""

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from loguru import logger
from tqdm.auto import tqdm

from core.exceptions import RCDException
from core.models import (
    BeamGroup, ContinuousBeamSolution, ExternalConstraints, NeighborDesign, ProjectConstraints, SpanResultData,
)
from core.settings import RebarSettings
from services.pipeline import RebarPipeline
from services.proposal_selector import ProposalSelector


@dataclass
class BeamJob:
    group: BeamGroup
    span_results: List[SpanResultData]


class MultiBeamOrchestrator:
    def __init__(self, pipeline: Optional[RebarPipeline] = None, selector: Optional[ProposalSelector] = None):
        self.pipeline = pipeline or RebarPipeline()
        self.selector = selector or ProposalSelector()
        self.constraints = ProjectConstraints()

    def solve_floor(self, beams: Sequence[BeamJob], settings: RebarSettings,
                    initial_constraints: Optional[ProjectConstraints] = None,
                    deadline: Optional[float] = None, progress: bool = False) -> Dict[str, ContinuousBeamSolution]:
        """
        모든 보에 대해 결과를 하나씩 반환합니다. (해석 실패 시 option_name='FAILED', is_valid=False)

        Args:
            beams: 해석 순서대로 정렬된 (보, 해석 결과) 목록
            deadline: 층 전체 해석 시간 한도 (초). 초과하면 아직 시작하지 않은 보는 시간 초과로 실패 처리.
                보 사이에서만 확인하므로 이미 시작한 보의 파이프라인은 끝까지 실행됩니다.
            progress: tqdm 진행 표시 여부
        """
        self.constraints = initial_constraints or ProjectConstraints()
        started = time.monotonic()
        results: Dict[str, ContinuousBeamSolution] = {}

        for job in tqdm(beams, desc="Floor", ncols=120, disable=not progress):
            name = job.group.name
            if deadline is not None and time.monotonic() - started > deadline:
                results[name] = ContinuousBeamSolution.failed(f"Timeout: floor deadline of {deadline:.1f}s exceeded "
                                                              f"before '{name}' was started.")
                logger.warning(f"[{name}] skipped: deadline exceeded")
                continue
            results[name] = self._solve_one(job, settings)

        solved = sum(1 for sol in results.values() if sol.is_valid)
        logger.info(f"Floor solved: {solved}/{len(results)} beams")
        return results

    def recalculate_single(self, job: BeamJob, settings: RebarSettings,
                           constraints: Optional[ProjectConstraints] = None) -> ContinuousBeamSolution:
        """보 1개만 다시 해석합니다. (예: 사용자가 설계를 확정한 뒤)"""
        if constraints is not None:
            self.constraints = constraints
        return self._solve_one(job, settings)

    def _solve_one(self, job: BeamJob, settings: RebarSettings) -> ContinuousBeamSolution:
        group = job.group
        external = ExternalConstraints.from_locked(group.locked_design) if group.locked_design else None
        try:
            outcome = self.pipeline.execute_detailed(group, job.span_results, settings, self.constraints, external)
        except RCDException as e:
            logger.exception(f"[{group.name}] design error")
            return ContinuousBeamSolution.failed(f"Error: {e}")
        except Exception as e:
            logger.exception(f"[{group.name}] unexpected error")
            return ContinuousBeamSolution.failed(f"Critical Error: {e}")

        selected = self.selector.select(outcome.solutions)
        if not selected:
            message = outcome.failure_message or f"No feasible design for '{group.name}'."
            logger.warning(f"[{group.name}] FAILED: {message}")
            return ContinuousBeamSolution.failed(message)

        best = selected[0]
        best.alternative_solutions = selected[1:]
        self._record(group.name, best, settings)
        logger.info(f"[{group.name}] {best.option_name} {best.total_steel_weight:.1f}kg "
                    f"score {best.total_score:.1f} ({len(selected)} proposals)")
        return best

    def _record(self, name: str, best: ContinuousBeamSolution, settings: RebarSettings) -> None:
        design = NeighborDesign(
            backbone_diameter=best.backbone_diameter_top,
            backbone_count=best.backbone_count_top,
            stirrup_diameter=int(settings.beam.estimated_stirrup_diameter),
        )
        snapshot = self.constraints.with_neighbor(name, design)
        if snapshot.preferred_main_diameter is None:
            snapshot = snapshot.with_preferred_diameter(best.backbone_diameter_top)
        self.constraints = snapshot
