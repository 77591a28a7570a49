# services/reinforcement_filler.py

"""
기본근이 정해진 컨텍스트마다 지점부/경간중앙 보강근을 설계하여 ContinuousBeamSolution 을 완성하는 단계입니다.

처리 순서 (FillerState):
    SETUP -> UNIFY_SUPPORTS -> FILL_SPANS -> BRIDGING -> METRICS -> DONE
어느 단계에서든 철근을 배치할 수 없으면 FAILED 로 끝나며, 컨텍스트는 무효 처리되고
부족량을 포함한 메시지가 기록됩니다. 부분적으로 채워진 해는 다음 단계로 넘기지 않습니다.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from loguru import logger

from core.constants import (
    BRIDGING_GAP_DIAMETER_FACTOR, BRIDGING_MIN_GAP, FULL_SPAN_REINF_RATIO, LAP_SPLICE_WASTE_FACTOR,
)
from core.helpers import is_greater_or_equal, normalize_dimension
from core.material.material import bar_area, bar_weight
from core.models import (
    ContinuousBeamSolution, Face, LocationKey, RebarSpec, Section, SolutionContext, Station,
)
from core.placement import can_fit_mixed_bars, max_bars_per_layer, stirrup_leg_count
from core.strategies import DEFAULT_STRATEGIES, FillingContext, run_strategies
from services.stage import PipelineStage


class FillerState(Enum):
    SETUP = "Setup"
    UNIFY_SUPPORTS = "UnifySupports"
    FILL_SPANS = "FillSpansAndBridge"
    BRIDGING = "IntelligentBridging"
    METRICS = "ComputeMetrics"
    DONE = "Done"
    FAILED = "Failed"


_DESCRIPTIONS = {2: "경제형", 3: "균형형", 4: "안전형"}


class FillerFailure(Exception):
    """채움 단계 내부에서만 사용하는 실패 신호. 단계 밖으로 전파되지 않습니다."""
    def __init__(self, state: FillerState, message: str):
        self.state = state
        self.message = message
        super().__init__(message)


@dataclass
class _Candidate:
    spec: RebarSpec
    score: int
    waste: int = 0


class ReinforcementFiller(PipelineStage):
    name = "ReinforcementFiller"
    order = 2

    def __init__(self, strategies=DEFAULT_STRATEGIES):
        self.strategies = tuple(strategies)

    def process(self, contexts: List[SolutionContext]) -> List[SolutionContext]:
        return [self.fill(ctx) if ctx.is_valid else ctx for ctx in contexts]

    def fill(self, ctx: SolutionContext) -> SolutionContext:
        """컨텍스트 하나를 채웁니다. 같은 컨텍스트를 (유효 또는 무효 상태로) 반환합니다."""
        ctx.current_solution = ContinuousBeamSolution(
            option_name=ctx.scenario_id or "seed",
            backbone_diameter_top=ctx.top_backbone_diameter,
            backbone_diameter_bot=ctx.bot_backbone_diameter,
            backbone_count_top=ctx.top_backbone_count,
            backbone_count_bot=ctx.bot_backbone_count,
        )
        ctx.accumulated_waste_count = 0
        state = FillerState.SETUP
        try:
            self._setup(ctx)
            state = FillerState.UNIFY_SUPPORTS
            top_supports, bot_supports = self._unify_supports(ctx)
            state = FillerState.FILL_SPANS
            self._fill_spans(ctx, top_supports, bot_supports)
            state = FillerState.BRIDGING
            self._apply_bridging(ctx)
            state = FillerState.METRICS
            self._compute_metrics(ctx)
        except FillerFailure as e:
            logger.debug(f"[{ctx.scenario_id}] filler failed at {e.state.value}: {e.message}")
            return ctx.invalidate(f"{self.name}:{e.state.value}", e.message)

        logger.debug(f"[{ctx.scenario_id}] filled {len(ctx.current_solution.reinforcements)} addon positions, "
                     f"{ctx.current_solution.total_steel_weight:.1f}kg ({state.value} -> {FillerState.DONE.value})")
        return ctx

    # --------------------------------------------------------------------------
    # 1. Setup
    # --------------------------------------------------------------------------
    def _setup(self, ctx: SolutionContext) -> None:
        spans, results = ctx.group.spans, ctx.span_results
        if not spans:
            raise FillerFailure(FillerState.SETUP, f"Beam '{ctx.group.name}' has no spans.")
        if not results:
            raise FillerFailure(FillerState.SETUP, f"Beam '{ctx.group.name}' has no analysis results.")
        for idx, span in enumerate(spans):
            if idx >= len(results) or results[idx] is None:
                raise FillerFailure(FillerState.SETUP,
                                    f"Missing analysis result for span '{span.span_id}' "
                                    f"({len(results)} results for {len(spans)} spans).")
        if len(results) != len(spans):
            raise FillerFailure(FillerState.SETUP,
                                f"Beam '{ctx.group.name}' has {len(results)} results for {len(spans)} spans.")
        if ctx.top_backbone_count <= 0 or ctx.bot_backbone_count <= 0:
            raise FillerFailure(FillerState.SETUP, f"[{ctx.scenario_id}] backbone is not defined.")

        if ctx.beam_width <= 0:
            ctx.beam_width = normalize_dimension(ctx.group.width)
        if ctx.beam_width <= 0:
            raise FillerFailure(FillerState.SETUP, f"Beam '{ctx.group.name}' has no valid width.")
        ctx.stirrup_leg_count = stirrup_leg_count(ctx.beam_width, ctx.settings,
                                                  bar_count=ctx.top_backbone_count, has_addon=False)

    # --------------------------------------------------------------------------
    # 2. 지점부 통합 설계
    # --------------------------------------------------------------------------
    def _unify_supports(self, ctx: SolutionContext):
        """지점 i (0..n) 마다 좌우 경간의 포락값으로 한 번만 설계합니다."""
        sol = ctx.current_solution
        sf = ctx.settings.rules.safety_factor
        results = ctx.span_results
        n = len(ctx.group.spans)
        top: Dict[int, RebarSpec] = {}
        bot: Dict[int, RebarSpec] = {}

        for i in range(n + 1):
            left = results[i - 1] if i > 0 else None
            right = results[i] if i < n else None

            req_top = max(left.required(Face.TOP, Station.END) if left else 0.0,
                          right.required(Face.TOP, Station.START) if right else 0.0) * sf
            spec = self.design_location(ctx, req_top, ctx.top_backbone_diameter, ctx.top_backbone_count,
                                        sol.as_backbone_top, Face.TOP)
            if spec is None:
                raise FillerFailure(FillerState.UNIFY_SUPPORTS,
                                    _deficit_message(f"Support {i} top", req_top, sol.as_backbone_top))
            top[i] = spec

            req_bot = max(left.required(Face.BOTTOM, Station.END) if left else 0.0,
                          right.required(Face.BOTTOM, Station.START) if right else 0.0) * sf
            if req_bot > sol.as_backbone_bot:
                spec = self.design_location(ctx, req_bot, ctx.bot_backbone_diameter, ctx.bot_backbone_count,
                                            sol.as_backbone_bot, Face.BOTTOM)
                if spec is None:
                    raise FillerFailure(FillerState.UNIFY_SUPPORTS,
                                        _deficit_message(f"Support {i} bottom", req_bot, sol.as_backbone_bot))
                bot[i] = spec
        return top, bot

    # --------------------------------------------------------------------------
    # 3. 위치별 보강근 설계
    # --------------------------------------------------------------------------
    def design_location(self, ctx: SolutionContext, required_area: float, backbone_diameter: int,
                        backbone_count: int, backbone_area: float, face: Face) -> Optional[RebarSpec]:
        """
        한 위치에 필요한 보강근을 설계합니다. required_area 는 안전율이 이미 적용된 값입니다.

        - 기본근으로 충분하면 개수 0인 spec
        - 1단 배치가 가능한 직경 중 점수가 가장 높은 안
        - 1단 배치가 불가능하면 Greedy/Balanced 다단 배치 중 점수가 가장 높은 안
        - 어떤 조합도 들어가지 않으면 None
        """
        if is_greater_or_equal(backbone_area, required_area):
            return RebarSpec(diameter=backbone_diameter, count=0, layer=1, face=face,
                             layer_breakdown=(backbone_count,))

        diameters = self._diameter_order(ctx, backbone_diameter)
        best = self._single_layer(ctx, required_area, backbone_diameter, backbone_count,
                                  backbone_area, face, diameters)
        if best is None:
            best = self._multi_layer(ctx, required_area, backbone_diameter, backbone_count,
                                     backbone_area, face, diameters)
        if best is None:
            return None
        ctx.accumulated_waste_count += best.waste
        return best.spec

    def _diameter_order(self, ctx: SolutionContext, backbone_diameter: int) -> List[int]:
        """같은 직경 -> 작은 직경(내림차순) -> 큰 직경(오름차순)"""
        if ctx.settings.beam.prefer_single_diameter:
            return [backbone_diameter]
        available = ctx.allowed_diameters or ctx.settings.main_bar_diameters
        smaller = sorted((d for d in available if d < backbone_diameter), reverse=True)
        larger = sorted(d for d in available if d > backbone_diameter)
        return [backbone_diameter] + smaller + larger

    def _single_layer(self, ctx, required_area, backbone_diameter, backbone_count, backbone_area, face,
                      diameters) -> Optional[_Candidate]:
        best = None
        for dia in diameters:
            count = int(math.ceil((required_area - backbone_area) / bar_area(dia) - 1e-9))
            if count <= 0:
                continue
            if not can_fit_mixed_bars(ctx.beam_width, backbone_count, backbone_diameter, count, dia, ctx.settings):
                continue
            score = 1000 - count * 10
            if dia == backbone_diameter:
                score += 50
            elif dia < backbone_diameter:
                score += 20
            if best is None or score > best.score:
                best = _Candidate(RebarSpec(diameter=dia, count=count, layer=1, face=face,
                                            layer_breakdown=(backbone_count + count,)), score)
        return best

    def _multi_layer(self, ctx, required_area, backbone_diameter, backbone_count, backbone_area, face,
                     diameters) -> Optional[_Candidate]:
        beam = ctx.settings.beam
        best = None
        for dia in diameters:
            capacity = max_bars_per_layer(ctx.beam_width, max(backbone_diameter, dia), ctx.settings)
            if backbone_count > capacity:
                continue
            filling_ctx = FillingContext(
                required_area=required_area,
                backbone_area=backbone_area,
                backbone_count=backbone_count,
                backbone_diameter=backbone_diameter,
                addon_diameter=dia,
                layer_capacity=capacity,
                stirrup_leg_count=ctx.stirrup_leg_count,
                max_layers=beam.max_layers,
                prefer_symmetric=beam.prefer_symmetric,
            )
            result = run_strategies(filling_ctx, self.strategies)
            if result is None:
                continue
            addon = result.total_count - backbone_count
            if addon <= 0:
                continue
            layer1_addon = result.layer1_count - backbone_count
            if layer1_addon > 0 and not can_fit_mixed_bars(ctx.beam_width, backbone_count, backbone_diameter,
                                                           layer1_addon, dia, ctx.settings):
                continue
            if result.layer2_count > 0 and not can_fit_mixed_bars(ctx.beam_width, 0, 0,
                                                                   result.layer2_count, dia, ctx.settings):
                continue

            score = 1000 - addon * 10 - result.layer_count * 50 - result.waste_count * 5
            if dia == backbone_diameter:
                score += 30
            elif dia < backbone_diameter:
                score += 15
            if best is None or score > best.score:
                spec = RebarSpec(diameter=dia, count=addon, layer=result.layer_count, face=face,
                                 layer_breakdown=result.layer_breakdown)
                best = _Candidate(spec, score, result.waste_count)
        return best

    # --------------------------------------------------------------------------
    # 4. 경간별 배치
    # --------------------------------------------------------------------------
    def _fill_spans(self, ctx: SolutionContext, top_supports: Dict[int, RebarSpec],
                    bot_supports: Dict[int, RebarSpec]) -> None:
        sol = ctx.current_solution
        sf = ctx.settings.rules.safety_factor

        for i, (span, result) in enumerate(zip(ctx.group.spans, ctx.span_results)):
            # 같은 지점의 좌우 키는 동일한 spec 객체를 참조
            _assign(sol, LocationKey(span.span_id, Face.TOP, Section.LEFT), top_supports.get(i))
            _assign(sol, LocationKey(span.span_id, Face.TOP, Section.RIGHT), top_supports.get(i + 1))
            _assign(sol, LocationKey(span.span_id, Face.BOTTOM, Section.LEFT), bot_supports.get(i))
            _assign(sol, LocationKey(span.span_id, Face.BOTTOM, Section.RIGHT), bot_supports.get(i + 1))

            req_bot = result.required(Face.BOTTOM, Station.MID) * sf
            spec = self.design_location(ctx, req_bot, ctx.bot_backbone_diameter, ctx.bot_backbone_count,
                                        sol.as_backbone_bot, Face.BOTTOM)
            if spec is None:
                raise FillerFailure(FillerState.FILL_SPANS,
                                    _deficit_message(f"{span.span_id} bottom mid", req_bot, sol.as_backbone_bot))
            _assign(sol, LocationKey(span.span_id, Face.BOTTOM, Section.MID), spec)

            req_top = result.required(Face.TOP, Station.MID) * sf
            if req_top > sol.as_backbone_top:
                spec = self.design_location(ctx, req_top, ctx.top_backbone_diameter, ctx.top_backbone_count,
                                            sol.as_backbone_top, Face.TOP)
                if spec is None:
                    raise FillerFailure(FillerState.FILL_SPANS,
                                        _deficit_message(f"{span.span_id} top mid", req_top, sol.as_backbone_top))
                _assign(sol, LocationKey(span.span_id, Face.TOP, Section.MID), spec)

    # --------------------------------------------------------------------------
    # 5. 관통 보강근
    # --------------------------------------------------------------------------
    def _apply_bridging(self, ctx: SolutionContext) -> None:
        """짧은 경간에서 좌우 지점 보강근 사이 간격이 작으면 하나의 관통 보강근으로 합칩니다."""
        sol = ctx.current_solution
        curtailment = ctx.settings.beam.curtailment_for(ctx.group.is_girder)
        merged = []

        for span in ctx.group.spans:
            for face in (Face.TOP, Face.BOTTOM):
                left_key = LocationKey(span.span_id, face, Section.LEFT)
                right_key = LocationKey(span.span_id, face, Section.RIGHT)
                left, right = sol.reinforcements.get(left_key), sol.reinforcements.get(right_key)
                if left is None or right is None or not left.is_similar(right):
                    continue

                gap = span.length - 2 * span.length * curtailment.top_support_ext_ratio
                limit = max(BRIDGING_MIN_GAP, BRIDGING_GAP_DIAMETER_FACTOR * left.diameter)
                if gap >= limit:
                    continue

                del sol.reinforcements[left_key]
                del sol.reinforcements[right_key]
                sol.reinforcements[LocationKey(span.span_id, face, Section.FULL)] = RebarSpec(
                    diameter=left.diameter, count=left.count, layer=left.layer, face=face,
                    layer_breakdown=left.layer_breakdown, is_running_through=True)
                merged.append(f"{face.value} {span.span_id}")

        if merged:
            sol.description = " ".join(f"[관통 {m}]" for m in merged)

    # --------------------------------------------------------------------------
    # 6. 중량 / 효율
    # --------------------------------------------------------------------------
    def _compute_metrics(self, ctx: SolutionContext) -> None:
        sol = ctx.current_solution
        total_length = ctx.group.total_length
        curtailment = ctx.settings.beam.curtailment_for(ctx.group.is_girder)
        span_lengths = {s.span_id: s.length for s in ctx.group.spans}

        w_backbone = (bar_weight(sol.backbone_diameter_top, total_length, sol.backbone_count_top)
                      + bar_weight(sol.backbone_diameter_bot, total_length, sol.backbone_count_bot))
        w_backbone *= LAP_SPLICE_WASTE_FACTOR

        w_addon = 0.0
        for key, spec in sol.reinforcements.items():
            if spec.count <= 0:
                continue
            if key.section is Section.FULL:
                ratio = FULL_SPAN_REINF_RATIO
            elif key.section is Section.MID:
                ratio = curtailment.mid_span_reinf_ratio
            else:
                ratio = curtailment.support_reinf_ratio
            w_addon += bar_weight(spec.diameter, span_lengths[key.span_id] * ratio, spec.count)

        sol.total_steel_weight = w_backbone + w_addon
        efficiency = 10000.0 / (sol.total_steel_weight + 1)
        if any(spec.layer >= 2 for spec in sol.reinforcements.values()):
            efficiency *= 0.95
        if sol.backbone_count_top != sol.backbone_count_bot:
            efficiency *= 0.98
        sol.efficiency_score = efficiency

        label = _DESCRIPTIONS.get(sol.backbone_count_top, "")
        sol.description = " ".join(part for part in (label, sol.description) if part)


def _assign(sol: ContinuousBeamSolution, key: LocationKey, spec: Optional[RebarSpec]) -> None:
    if spec is not None and spec.count > 0:
        sol.reinforcements[key] = spec


def _deficit_message(location: str, required: float, backbone: float) -> str:
    return (f"CRITICAL: cannot place reinforcement at {location} "
            f"(required {required:.2f} cm², backbone {backbone:.2f} cm², deficit {required - backbone:.2f} cm²)")
