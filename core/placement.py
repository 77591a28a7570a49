# core/placement.py

"""
보 단면 내 철근 배치 가능 여부를 판단하는 규칙들입니다.
- 한 층에 들어가는 최대 철근 개수
- 기본근 + 보강근 혼합 배치의 폭 검토
- 스터럽 다리(leg) 수 결정
"""

import math
from typing import Optional

from loguru import logger

from core.helpers import is_less_or_equal
from core.settings import BeamConfig, RebarSettings, parse_leg_rules

_FALLBACK_LEG_RULES = "250-2 400-4 600-6"


def usable_width(width: float, beam: BeamConfig) -> float:
    """피복과 스터럽을 제외한 순폭 (mm)"""
    return width - 2 * beam.cover_side - 2 * beam.estimated_stirrup_diameter


def min_clear_spacing(diameter: float, beam: BeamConfig) -> float:
    """
    철근 순간격 = max(철근 직경, 굵은골재 최대치수의 4/3, 최소 순간격[, 직경 x 배수])
    """
    spacing = max(diameter, 1.33 * beam.aggregate_size, beam.min_clear_spacing)
    if beam.use_bar_diameter_for_spacing:
        spacing = max(spacing, diameter * beam.bar_diameter_spacing_multiplier)
    return spacing


def max_bars_per_layer(width: float, diameter: float, settings: RebarSettings) -> int:
    """
    n개의 철근과 (n-1)개의 순간격이 순폭에 들어가는 최대 n.
    n = floor((usable + s) / (d + s))
    """
    usable = usable_width(width, settings.beam)
    if usable <= 0 or diameter <= 0:
        return 0
    spacing = min_clear_spacing(diameter, settings.beam)
    return max(0, int(math.floor((usable + spacing) / (diameter + spacing) + 1e-9)))


def can_fit_mixed_bars(width: float, backbone_count: int, backbone_diameter: float,
                       addon_count: int, addon_diameter: float, settings: RebarSettings) -> bool:
    """직경이 다른 두 종류의 철근을 한 층에 배치할 수 있는지 검토합니다. 순간격은 큰 직경 기준."""
    total = backbone_count + addon_count
    if total <= 0:
        return True
    usable = usable_width(width, settings.beam)
    if usable <= 0:
        return False
    bar_widths = backbone_count * backbone_diameter + addon_count * addon_diameter
    spacing = min_clear_spacing(max(backbone_diameter, addon_diameter), settings.beam)
    return is_less_or_equal(bar_widths + (total - 1) * spacing, usable)


def stirrup_leg_count(width: float, settings: RebarSettings,
                      bar_count: Optional[int] = None, has_addon: bool = False) -> int:
    """
    스터럽 다리 수.
    상세 규칙이 켜져 있고 철근 개수가 주어지면 표에서 찾고, 아니면 보 폭 기준 규칙을 사용합니다.
    """
    if settings.stirrup.enable_advanced_rules and bar_count is not None:
        return settings.stirrup.get_leg_count(bar_count, has_addon)

    try:
        rules = parse_leg_rules(settings.beam.auto_legs_rules)
    except ValueError as e:
        logger.warning(f"Invalid leg rule string '{settings.beam.auto_legs_rules}' ({e}); using defaults.")
        rules = parse_leg_rules(_FALLBACK_LEG_RULES)

    for threshold, legs in rules:
        if width <= threshold:
            return legs
    return max(legs for _, legs in rules)
