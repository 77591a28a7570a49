# services/scenario_generator.py

"""
기본근(backbone) 시나리오 생성 단계.
하나의 seed 컨텍스트를 (상부 직경, 하부 직경, 상부 개수, 하부 개수) 조합별 컨텍스트 N 개로 펼칩니다.
"""

import math
from typing import List, Optional, Tuple

from loguru import logger

from core.helpers import normalize_dimension
from core.models import ProjectConstraints, SolutionContext
from core.placement import max_bars_per_layer, usable_width
from core.settings import RebarSettings
from services.stage import PipelineStage

# 개수 탐색 폭: 최소 개수부터 +2 까지
_COUNT_SEARCH_RANGE = 2
_MAX_COUNT_DIFFERENCE = 2


def min_bars_for_spacing(width: float, diameter: int, settings: RebarSettings) -> int:
    """
    최대 순간격을 넘지 않기 위한 최소 철근 개수.
    max(2, 순간격 규칙, 보 폭 180mm 당 1개 규칙)
    """
    beam = settings.beam
    usable = usable_width(width, beam)
    if usable <= 0 or beam.max_clear_spacing <= 0:
        return 2
    by_spacing = int(math.ceil(usable / (beam.max_clear_spacing + diameter)))
    by_density = int(math.ceil(width / beam.density_heuristic)) if beam.density_heuristic > 0 else 0
    return max(2, by_spacing, by_density)


def scenario_id(n_top: int, top_dia: int, n_bot: int, bot_dia: int) -> str:
    if n_top == n_bot and top_dia == bot_dia:
        return f"{n_top}D{top_dia}"
    return f"T:{n_top}D{top_dia}/B:{n_bot}D{bot_dia}"


class ScenarioGenerator(PipelineStage):
    name = "ScenarioGenerator"
    order = 1

    def process(self, contexts: List[SolutionContext]) -> List[SolutionContext]:
        seeds = [ctx for ctx in contexts if ctx.is_valid]
        if not seeds:
            return contexts
        return self.generate(seeds[0])

    def generate(self, seed: SolutionContext) -> List[SolutionContext]:
        settings = seed.settings
        external = seed.external_constraints
        constraints = seed.global_constraints

        # 1. 기하 정보: 가장 좁은 경간이 최대 개수를, 가장 넓은 경간이 최소 개수를 결정
        min_width, max_width, height = self._resolve_geometry(seed)
        if min_width <= 0 or height <= 0:
            return [seed.clone().invalidate(self.name, f"Beam '{seed.group.name}' has no valid section dimensions.")]

        # 2. 사용 가능 직경
        allowed = self._allowed_diameters(settings, constraints, external)
        if not allowed:
            return [seed.clone().invalidate(self.name, f"Beam '{seed.group.name}': no allowed backbone diameter.")]

        preferred = self._preferred_diameters(seed)
        scenarios = []
        for top_dia in allowed:
            top_range = self._count_range(min_width, max_width, top_dia, settings,
                                          external.forced_backbone_count_top if external else None)
            if top_range is None:
                continue
            for bot_dia in allowed:
                bot_range = self._count_range(min_width, max_width, bot_dia, settings,
                                              external.forced_backbone_count_bot if external else None)
                if bot_range is None:
                    continue
                for n_top in range(top_range[0], top_range[1] + 1):
                    for n_bot in range(bot_range[0], bot_range[1] + 1):
                        if abs(n_top - n_bot) > _MAX_COUNT_DIFFERENCE:
                            continue
                        ctx = seed.clone()
                        ctx.scenario_id = scenario_id(n_top, top_dia, n_bot, bot_dia)
                        ctx.top_backbone_diameter, ctx.bot_backbone_diameter = top_dia, bot_dia
                        ctx.top_backbone_count, ctx.bot_backbone_count = n_top, n_bot
                        ctx.beam_width, ctx.beam_height = min_width, height
                        ctx.total_length = seed.group.total_length
                        ctx.allowed_diameters = tuple(allowed)
                        bonus = constraints.neighbor_match_bonus / 2
                        ctx.preferred_diameter_bonus = (bonus * (top_dia in preferred)
                                                        + bonus * (bot_dia in preferred))
                        scenarios.append(ctx)

        if not scenarios:
            return [seed.clone().invalidate(
                self.name, f"Beam '{seed.group.name}': no backbone layout fits width {min_width:.0f}mm.")]
        logger.debug(f"[{seed.group.name}] {len(scenarios)} backbone scenarios "
                     f"(width {min_width:.0f}~{max_width:.0f}mm, diameters {allowed})")
        return scenarios

    def _resolve_geometry(self, seed: SolutionContext) -> Tuple[float, float, float]:
        widths = [normalize_dimension(s.width) for s in seed.group.spans]
        widths = [w for w in widths if w > 0]
        if not widths:
            group_width = normalize_dimension(seed.group.width)
            widths = [group_width] if group_width > 0 else []
        height = normalize_dimension(seed.group.depth)
        if height <= 0:
            depths = [normalize_dimension(s.depth) for s in seed.group.spans]
            height = max(depths, default=0.0)
        if not widths:
            return 0.0, 0.0, height
        return min(widths), max(widths), height

    def _allowed_diameters(self, settings: RebarSettings, constraints: ProjectConstraints, external) -> List[int]:
        allowed = settings.main_bar_diameters
        if constraints.allowed_diameters_override:
            allowed = [d for d in allowed if d in constraints.allowed_diameters_override]
        if external is not None and external.forced_backbone_diameter is not None:
            allowed = [external.forced_backbone_diameter]
        return sorted(allowed)

    def _preferred_diameters(self, seed: SolutionContext) -> set:
        """층 전체 선호 직경과 인접 보(neighbor_groups)에서 이미 정해진 기본근 직경"""
        constraints = seed.global_constraints
        preferred = set()
        if constraints.preferred_main_diameter is not None:
            preferred.add(constraints.preferred_main_diameter)
        for name in seed.group.neighbor_groups:
            neighbor = constraints.neighbor_designs.get(name)
            if neighbor is not None:
                preferred.add(neighbor.backbone_diameter)
        return preferred

    def _count_range(self, min_width: float, max_width: float, diameter: int, settings: RebarSettings,
                     forced: Optional[int]) -> Optional[Tuple[int, int]]:
        if forced is not None:
            return forced, forced
        low = min_bars_for_spacing(max_width, diameter, settings)
        high = max_bars_per_layer(min_width, diameter, settings)
        if high < low:
            return None
        start = max(2, low)
        return start, min(start + _COUNT_SEARCH_RANGE, high)
