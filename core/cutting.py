# core/cutting.py

"""
연속 기본근 1줄(상부 또는 하부)을 제작 가능한 길이로 절단하고,
이음 위치를 엇갈리게(stagger) 배치한 뒤, 단부 정착 갈고리(hook)를 붙이는 알고리즘입니다.

처리 순서는 항상 절단 -> 엇이음 -> 단부 정착이며, 외부에서는 process_complete() 만 사용합니다.
이 모듈에는 '실패' 결과가 없습니다. 허용 구간을 찾지 못하면 목표 위치를 그대로 사용합니다.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from core.constants import (
    DEFAULT_HOOK_ANGLE, MIDSPAN_SPLICE_ZONE, SPLICE_SEARCH_RATIO, SPLICE_SNAP_OFFSET, STAGGER_END_CLEARANCE,
)
from core.models import Span
from core.settings import RebarSettings, SpliceZone

Zone = Tuple[float, float]


@dataclass
class BarSegment:
    """절단된 철근 1개. 위치는 보 시작점으로부터의 거리 (mm)."""
    start_pos: float
    end_pos: float
    bar_index: int = 0
    splice_at_start: bool = False
    splice_at_end: bool = False
    splice_position: float = 0.0
    is_staggered: bool = False
    hook_at_start: bool = False
    hook_at_end: bool = False
    hook_angle: int = DEFAULT_HOOK_ANGLE
    hook_length: float = 0.0

    @property
    def length(self) -> float:
        return self.end_pos - self.start_pos


@dataclass
class CuttingResult:
    segments: List[BarSegment] = field(default_factory=list)

    @property
    def total_bars(self) -> int:
        return len(self.segments)

    @property
    def total_length(self) -> float:
        return sum(s.length for s in self.segments)

    @property
    def splice_count(self) -> int:
        return sum(1 for s in self.segments if s.splice_at_end)

    @property
    def has_hooks(self) -> bool:
        return any(s.hook_at_start or s.hook_at_end for s in self.segments)


def requires_hook(support_type: Optional[str]) -> bool:
    """기둥/벽체 지점이면 갈고리 정착이 필요합니다."""
    if not support_type:
        return False
    kind = support_type.upper()
    return "COL" in kind or "WALL" in kind


def estimate_bar_count(total_length: float, max_bar_length: float) -> int:
    """절단 후 철근 개수 (이음 개수 = 결과 - 1)"""
    if total_length <= 0:
        return 0
    return max(1, int(math.ceil(total_length / max_bar_length)))


class RebarCuttingAlgorithm:
    """장스팬 연속보 기본근의 자동 절단 / 엇이음 / 단부 정착"""

    def __init__(self, settings: Optional[RebarSettings] = None):
        settings = settings or RebarSettings()
        self.detailing = settings.detailing
        self.anchorage = settings.anchorage

    # --------------------------------------------------------------------------
    # 1. 자동 절단
    # --------------------------------------------------------------------------
    def auto_cut_bars(self, total_length: float, spans: Sequence[Span], is_top_bar: bool,
                      group_type: str = "BEAM") -> CuttingResult:
        max_length = self.detailing.max_bar_length
        if total_length <= max_length:
            return CuttingResult([BarSegment(start_pos=0.0, end_pos=total_length)])

        rule = self.detailing.get_rule(group_type)
        zone_kind = rule.top_splice_zone if is_top_bar else rule.bot_splice_zone
        zones = build_allowed_zones(spans, zone_kind, rule.support_zone_ratio)

        num_bars = estimate_bar_count(total_length, max_length)
        ideal_length = total_length / num_bars
        search_range = max_length * SPLICE_SEARCH_RATIO

        result = CuttingResult()
        current = 0.0
        for i in range(num_bars):
            is_last = i == num_bars - 1
            end = total_length if is_last else min(current + ideal_length, total_length)
            if not is_last:
                snapped = find_valid_splice_point(end, zones, search_range)
                # 절단 위치는 앞 철근보다 뒤, 보 끝보다 앞이어야 함
                if current < snapped < total_length:
                    end = snapped
            result.segments.append(BarSegment(
                start_pos=current,
                end_pos=end,
                bar_index=i,
                splice_at_start=i > 0,
                splice_at_end=not is_last,
                splice_position=end if not is_last else 0.0,
            ))
            current = end

        logger.debug(f"Cut {total_length:.0f}mm {'top' if is_top_bar else 'bottom'} bar into "
                     f"{result.total_bars} pieces ({zone_kind.value})")
        return result

    # --------------------------------------------------------------------------
    # 2. 엇이음
    # --------------------------------------------------------------------------
    def apply_staggering(self, result: CuttingResult, diameter: int, concrete_grade: Optional[str] = None,
                         steel_grade: Optional[str] = None, bars_per_layer: int = 2) -> CuttingResult:
        """홀수 번째 철근의 이음 위치를 엇이음 거리만큼 뒤로 옮깁니다."""
        if len(result.segments) < 2 or bars_per_layer < 2:
            return result

        lap_length = self.anchorage.get_splice_length(diameter, concrete_grade, steel_grade)
        stagger = max(self.detailing.min_stagger_distance, lap_length * self.detailing.stagger_factor)

        for idx, segment in enumerate(result.segments):
            if not segment.splice_at_end or segment.bar_index % 2 == 0:
                continue
            original = segment.splice_position
            shifted = original + stagger
            if idx + 1 < len(result.segments):
                limit = result.segments[idx + 1].end_pos - STAGGER_END_CLEARANCE
                shifted = min(shifted, limit)
            segment.splice_position = max(shifted, original)
            segment.is_staggered = segment.splice_position > original
        return result

    # --------------------------------------------------------------------------
    # 3. 단부 정착
    # --------------------------------------------------------------------------
    def apply_end_anchorage(self, result: CuttingResult, start_support_type: Optional[str],
                            end_support_type: Optional[str], diameter: int) -> CuttingResult:
        if not result.segments:
            return result
        hook_length = self.anchorage.hook_length(diameter)

        if requires_hook(start_support_type):
            first = result.segments[0]
            first.hook_at_start = True
            first.hook_angle = DEFAULT_HOOK_ANGLE
            first.hook_length = hook_length

        if requires_hook(end_support_type):
            last = result.segments[-1]
            last.hook_at_end = True
            last.hook_angle = DEFAULT_HOOK_ANGLE
            last.hook_length = hook_length
        return result

    def process_complete(self, total_length: float, spans: Sequence[Span], is_top_bar: bool, group_type: str,
                         start_support_type: Optional[str], end_support_type: Optional[str], diameter: int,
                         bars_per_layer: int = 2, concrete_grade: Optional[str] = None,
                         steel_grade: Optional[str] = None) -> CuttingResult:
        result = self.auto_cut_bars(total_length, spans, is_top_bar, group_type)
        self.apply_staggering(result, diameter, concrete_grade, steel_grade, bars_per_layer)
        self.apply_end_anchorage(result, start_support_type, end_support_type, diameter)
        return result


# ==============================================================================
# 이음 허용 구간
# ==============================================================================
def build_allowed_zones(spans: Sequence[Span], zone: SpliceZone, support_ratio: float) -> List[Zone]:
    """경간별 이음 허용 구간을 보 전체 좌표로 이어 붙입니다."""
    zones = []
    cursor = 0.0
    for span in spans:
        start, length = cursor, span.length
        end = start + length
        if zone is SpliceZone.SUPPORT:
            zones.append((start, start + length * support_ratio))
            zones.append((end - length * support_ratio, end))
        elif zone is SpliceZone.QUARTER_SPAN:
            zones.append((start + length * support_ratio, end - length * support_ratio))
        elif zone is SpliceZone.MID_SPAN:
            low, high = MIDSPAN_SPLICE_ZONE
            zones.append((start + length * low, start + length * high))
        else:
            raise ValueError(f"Unknown splice zone: {zone}")
        cursor = end
    return zones


def find_valid_splice_point(target: float, zones: Sequence[Zone], search_range: float) -> float:
    """
    목표 위치가 허용 구간 안이면 그대로, 아니면 탐색 반경 안의 가장 가까운 경계에서
    50mm 안쪽으로 옮깁니다. 찾지 못하면 목표 위치를 그대로 반환합니다.
    """
    for low, high in zones:
        if low <= target <= high:
            return target

    best, best_dist = target, math.inf
    for low, high in zones:
        dist = abs(target - low)
        if dist < best_dist and dist <= search_range:
            best, best_dist = low + SPLICE_SNAP_OFFSET, dist
        dist = abs(target - high)
        if dist < best_dist and dist <= search_range:
            best, best_dist = high - SPLICE_SNAP_OFFSET, dist
    return best
