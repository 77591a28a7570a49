import itertools

from core.material.material import bar_area
from core.strategies import (
    BalancedFillingStrategy, FillingContext, FillingResult, GreedyFillingStrategy, filling_score,
    run_strategies, select_best_filling,
)

BACKBONE_2D20 = 2 * bar_area(20)


def _ctx(required, capacity, **kwargs):
    params = dict(required_area=required, backbone_area=BACKBONE_2D20, backbone_count=2,
                  backbone_diameter=20, layer_capacity=capacity)
    params.update(kwargs)
    return FillingContext(**params)


def _required_for(addon_bars):
    # 기본근 2D20 + D20 addon_bars 개가 정확히 필요하도록 약간 모자란 면적
    return BACKBONE_2D20 + addon_bars * bar_area(20) - 0.5


def test_backbone_covers_requirement():
    for strategy in (GreedyFillingStrategy(), BalancedFillingStrategy()):
        result = strategy.compute(_ctx(BACKBONE_2D20 + 0.005, capacity=4))
        assert result.is_valid
        assert (result.layer1_count, result.layer2_count) == (2, 0)


def test_greedy_fills_first_layer_to_capacity():
    result = GreedyFillingStrategy().compute(_ctx(_required_for(5), capacity=6))
    assert result.is_valid
    # 6 + 1 -> 대칭 보정으로 2단 2개
    assert (result.layer1_count, result.layer2_count) == (6, 2)


def test_balanced_splits_evenly():
    result = BalancedFillingStrategy().compute(_ctx(_required_for(5), capacity=6))
    assert result.is_valid
    assert (result.layer1_count, result.layer2_count) == (4, 4)


def test_second_layer_rejected_when_single_layer_only():
    result = GreedyFillingStrategy().compute(_ctx(_required_for(5), capacity=4, max_layers=1))
    assert not result.is_valid
    assert "max layers" in result.failing_reason


def test_layer2_snaps_to_stirrup_legs():
    result = GreedyFillingStrategy().compute(_ctx(_required_for(7), capacity=6, stirrup_leg_count=4))
    assert result.is_valid
    assert (result.layer1_count, result.layer2_count) == (6, 4)


def test_single_bar_layer_is_bumped_with_waste():
    result = GreedyFillingStrategy().compute(_ctx(_required_for(4), capacity=5, prefer_symmetric=False))
    assert result.is_valid
    assert (result.layer1_count, result.layer2_count) == (5, 2)
    assert result.waste_count == 1


def test_addon_diameter_sets_bar_count():
    # D13 보강근은 D20 보다 많이 필요
    with_d20 = GreedyFillingStrategy().compute(_ctx(12.0, capacity=8))
    with_d13 = GreedyFillingStrategy().compute(_ctx(12.0, capacity=8, addon_diameter=13))
    assert with_d13.total_count > with_d20.total_count


def test_pyramid_invariant_holds_for_all_valid_results():
    strategies = (GreedyFillingStrategy(), BalancedFillingStrategy())
    for strategy, addon, capacity, legs, symmetric in itertools.product(
            strategies, range(0, 12), range(2, 9), (2, 3, 4, 6), (True, False)):
        result = strategy.compute(_ctx(_required_for(addon) + 0.4, capacity, stirrup_leg_count=legs,
                                       prefer_symmetric=symmetric))
        if not result.is_valid:
            assert result.failing_reason
            continue
        assert result.layer1_count <= capacity
        assert result.layer2_count <= result.layer1_count
        assert result.layer2_count == 0 or result.layer2_count >= 2
        assert result.layer1_count >= 2


def test_filling_score_prefers_fewer_layers_then_fewer_bars():
    one_layer = FillingResult(layer1_count=6, is_valid=True)
    two_layers = FillingResult(layer1_count=3, layer2_count=2, is_valid=True)
    fewer_bars = FillingResult(layer1_count=4, is_valid=True)
    invalid = FillingResult(is_valid=False, failing_reason="x")

    assert filling_score(one_layer) > filling_score(two_layers)
    assert filling_score(fewer_bars) > filling_score(one_layer)
    assert select_best_filling([invalid, two_layers, one_layer, fewer_bars]) is fewer_bars
    assert select_best_filling([invalid]) is None


def test_run_strategies_returns_best_of_both():
    best = run_strategies(_ctx(_required_for(5), capacity=6))
    assert best is not None
    assert best.strategy_name == "Greedy"
