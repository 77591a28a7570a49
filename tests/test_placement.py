import pytest

from core.placement import can_fit_mixed_bars, max_bars_per_layer, min_clear_spacing, stirrup_leg_count
from core.settings import BeamConfig, RebarSettings, StirrupConfig


def test_max_bars_per_layer():
    settings = RebarSettings()
    # 순폭 300 - 2x25 - 2x10 = 230, 순간격 max(20, 1.33x20, 25) = 26.6
    assert max_bars_per_layer(300, 20, settings) == 5
    assert max_bars_per_layer(100, 20, settings) == 1
    assert max_bars_per_layer(70, 20, settings) == 0


def test_clear_spacing_uses_diameter_multiplier():
    beam = BeamConfig(bar_diameter_spacing_multiplier=1.5)
    assert min_clear_spacing(25, beam) == 37.5
    assert min_clear_spacing(25, BeamConfig(use_bar_diameter_for_spacing=False,
                                            bar_diameter_spacing_multiplier=1.5)) == pytest.approx(26.6)


def test_can_fit_mixed_bars():
    settings = RebarSettings()
    assert can_fit_mixed_bars(300, 2, 20, 2, 20, settings)
    assert can_fit_mixed_bars(300, 2, 20, 3, 16, settings)
    assert not can_fit_mixed_bars(300, 2, 20, 5, 20, settings)
    assert can_fit_mixed_bars(300, 0, 0, 0, 0, settings)
    assert not can_fit_mixed_bars(60, 2, 20, 0, 0, settings)


def test_stirrup_legs_by_width():
    settings = RebarSettings()
    assert stirrup_leg_count(250, settings) == 2
    assert stirrup_leg_count(300, settings) == 4
    assert stirrup_leg_count(600, settings) == 6
    assert stirrup_leg_count(900, settings) == 6


def test_malformed_leg_rules_fall_back_to_defaults():
    settings = RebarSettings(beam=BeamConfig(auto_legs_rules="wide-four narrow"))
    assert stirrup_leg_count(300, settings) == 4


def test_stirrup_legs_from_table():
    settings = RebarSettings(stirrup=StirrupConfig(enable_advanced_rules=True))
    assert stirrup_leg_count(300, settings, bar_count=5, has_addon=False) == 3
    assert stirrup_leg_count(300, settings, bar_count=5, has_addon=True) == 4
    # 표에 없는 개수는 가장 가까운 작은 키를 사용
    assert stirrup_leg_count(300, settings, bar_count=12, has_addon=True) == 6
    # 철근 개수가 없으면 폭 기준
    assert stirrup_leg_count(300, settings) == 4
