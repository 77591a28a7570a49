# core/strategies.py

"""
소요 철근량과 기본근 구성이 주어졌을 때, 층별 철근 개수(1단/2단)를 제안하는 배근 전략입니다.

- GreedyFillingStrategy: 1단을 최대한 채운 뒤 2단으로 넘깁니다. (층 수 최소화)
- BalancedFillingStrategy: 전체 개수를 1단/2단에 고르게 나눕니다.

두 전략은 초기 분배 방식만 다르고, 이후의 제약 보정 과정은 동일합니다.
전략끼리의 우열은 filling_score() 하나로 판단합니다.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from core.constants import MIN_BARS_PER_LAYER, MISSING_AREA_EPSILON
from core.material.material import bar_area


@dataclass(frozen=True)
class FillingContext:
    """전략 입력값. 면적은 cm²."""
    required_area: float
    backbone_area: float
    backbone_count: int
    backbone_diameter: int
    layer_capacity: int
    stirrup_leg_count: int = 2
    max_layers: int = 2
    prefer_symmetric: bool = True
    addon_diameter: Optional[int] = None

    @property
    def effective_addon_diameter(self) -> int:
        return self.addon_diameter or self.backbone_diameter

    @property
    def missing_area(self) -> float:
        return self.required_area - self.backbone_area


@dataclass(frozen=True)
class FillingResult:
    layer1_count: int = 0
    layer2_count: int = 0
    waste_count: int = 0
    is_valid: bool = False
    failing_reason: str = ""
    strategy_name: str = ""

    @property
    def total_count(self) -> int:
        return self.layer1_count + self.layer2_count

    @property
    def layer_count(self) -> int:
        return 2 if self.layer2_count > 0 else 1

    @property
    def layer_breakdown(self) -> Tuple[int, ...]:
        if self.layer2_count > 0:
            return (self.layer1_count, self.layer2_count)
        return (self.layer1_count,)


class FillingStrategy(ABC):
    """배근 전략의 추상 기반 클래스"""
    name: str = "Base"

    def compute(self, ctx: FillingContext) -> FillingResult:
        if ctx.missing_area <= MISSING_AREA_EPSILON:
            return FillingResult(layer1_count=ctx.backbone_count, is_valid=True, strategy_name=self.name)

        addon_bar = bar_area(ctx.effective_addon_diameter)
        if addon_bar <= 0:
            return self._fail(f"Invalid addon diameter {ctx.effective_addon_diameter}")
        total = ctx.backbone_count + int(math.ceil(ctx.missing_area / addon_bar - 1e-9))

        n1, n2 = self.split(total, ctx)
        return self._apply_constraints(n1, n2, ctx)

    @abstractmethod
    def split(self, total: int, ctx: FillingContext) -> Tuple[int, int]:
        """전체 개수를 (1단, 2단)으로 나눕니다."""
        raise NotImplementedError

    def _fail(self, reason: str) -> FillingResult:
        return FillingResult(is_valid=False, failing_reason=reason, strategy_name=self.name)

    def _apply_constraints(self, n1: int, n2: int, ctx: FillingContext) -> FillingResult:
        capacity = ctx.layer_capacity
        waste = 0

        # 1. 피라미드 규칙
        if n2 > n1:
            return self._fail(f"Pyramid violation: layer2 ({n2}) > layer1 ({n1})")

        # 2. 허용 층 수
        if n2 > 0 and ctx.max_layers < 2:
            return self._fail(f"Second layer required ({n2} bars) but max layers is {ctx.max_layers}")

        # 3. 2단 개수를 스터럽 다리 수에 맞춤
        legs = ctx.stirrup_leg_count
        if n2 > 0 and legs > 2 and legs - 1 <= n2 < legs <= n1:
            n2 = legs

        # 4. 대칭 배근
        if ctx.prefer_symmetric:
            if n1 % 2 == 1 and n1 + 1 <= capacity:
                n1 += 1
            if n2 % 2 == 1 and n2 + 1 <= n1:
                n2 += 1

        # 5. 상하 정렬
        if n2 > 0 and n1 % 2 == 0 and n2 % 2 == 1 and n2 + 1 <= n1:
            n2 += 1

        # 6. 층당 최소 2개
        if 0 < n1 < MIN_BARS_PER_LAYER:
            if MIN_BARS_PER_LAYER > capacity:
                return self._fail(f"Layer 1 needs {MIN_BARS_PER_LAYER} bars but capacity is {capacity}")
            waste += MIN_BARS_PER_LAYER - n1
            n1 = MIN_BARS_PER_LAYER
        if 0 < n2 < MIN_BARS_PER_LAYER:
            if MIN_BARS_PER_LAYER > n1:
                return self._fail(f"Layer 2 needs {MIN_BARS_PER_LAYER} bars but layer 1 has {n1}")
            waste += MIN_BARS_PER_LAYER - n2
            n2 = MIN_BARS_PER_LAYER

        # 최종 확인
        if n1 > capacity:
            return self._fail(f"Layer 1 ({n1}) exceeds capacity ({capacity})")
        if n2 > n1:
            return self._fail(f"Pyramid violation after adjustment: layer2 ({n2}) > layer1 ({n1})")

        return FillingResult(layer1_count=n1, layer2_count=n2, waste_count=waste,
                             is_valid=True, strategy_name=self.name)


class GreedyFillingStrategy(FillingStrategy):
    name = "Greedy"

    def split(self, total: int, ctx: FillingContext) -> Tuple[int, int]:
        n1 = max(min(total, ctx.layer_capacity), ctx.backbone_count)
        return n1, total - n1


class BalancedFillingStrategy(FillingStrategy):
    name = "Balanced"

    def split(self, total: int, ctx: FillingContext) -> Tuple[int, int]:
        n1 = min(max(int(math.ceil(total / 2)), ctx.backbone_count), ctx.layer_capacity)
        return n1, total - n1


DEFAULT_STRATEGIES = (GreedyFillingStrategy(), BalancedFillingStrategy())


def filling_score(result: FillingResult) -> float:
    """
    전략 결과 비교용 점수 (클수록 좋음).
    층 수가 적을수록, 그다음 철근 개수가 적을수록, 그다음 여분 철근이 적을수록 우선합니다.
    """
    if not result.is_valid:
        return -math.inf
    return -(result.layer_count * 1_000_000 + result.total_count * 1_000 + result.waste_count)


def select_best_filling(results: Iterable[FillingResult]) -> Optional[FillingResult]:
    """유효한 결과 중 filling_score 가 가장 큰 것. 동점이면 먼저 나온 결과를 유지합니다."""
    best = None
    for result in results:
        if not result.is_valid:
            continue
        if best is None or filling_score(result) > filling_score(best):
            best = result
    return best


def run_strategies(ctx: FillingContext, strategies=DEFAULT_STRATEGIES) -> Optional[FillingResult]:
    return select_best_filling(s.compute(ctx) for s in strategies)

