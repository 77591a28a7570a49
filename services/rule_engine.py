# services/rule_engine.py

"""
채워진 해에 대한 설계 규칙 검토.
- CRITICAL 위반: 해당 컨텍스트를 제거
- WARNING 위반: 벌점(penalty)으로 누적되어 종합 점수에서 차감
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from loguru import logger

from core.constants import MIN_BARS_PER_LAYER
from core.models import SolutionContext
from services.stage import PipelineStage


class Severity(Enum):
    PASS = "Pass"
    WARNING = "Warning"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class ValidationResult:
    rule_name: str
    severity: Severity = Severity.PASS
    penalty: float = 0.0
    message: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    @classmethod
    def passed(cls, rule_name: str) -> "ValidationResult":
        return cls(rule_name=rule_name)


class DesignRule(ABC):
    name: str = "Rule"
    priority: int = 0

    @abstractmethod
    def validate(self, ctx: SolutionContext) -> ValidationResult:
        raise NotImplementedError


class PyramidRule(DesignRule):
    """2단 철근은 1단보다 많을 수 없고, 비어있지 않은 층은 2개 이상이어야 합니다."""
    name = "Pyramid"
    priority = 10

    def validate(self, ctx: SolutionContext) -> ValidationResult:
        for key, spec in ctx.current_solution.reinforcements.items():
            layers = spec.layer_breakdown
            if len(layers) >= 2 and layers[1] > layers[0]:
                return ValidationResult(self.name, Severity.CRITICAL,
                                        message=f"{key}: layer 2 ({layers[1]}) > layer 1 ({layers[0]})")
            if any(0 < n < MIN_BARS_PER_LAYER for n in layers):
                return ValidationResult(self.name, Severity.CRITICAL,
                                        message=f"{key}: layer with a single bar {list(layers)}")
        return ValidationResult.passed(self.name)


class VerticalAlignmentRule(DesignRule):
    """상하부 기본근 개수의 홀짝이 다르거나 차이가 크면 스터럽 정렬이 어렵습니다."""
    name = "VerticalAlignment"
    priority = 12

    def validate(self, ctx: SolutionContext) -> ValidationResult:
        rules = ctx.settings.rules
        sol = ctx.current_solution
        n_top, n_bot = sol.backbone_count_top, sol.backbone_count_bot
        if n_top % 2 != n_bot % 2:
            return ValidationResult(self.name, Severity.WARNING, rules.alignment_penalty,
                                    f"Odd/even mismatch: top={n_top}, bottom={n_bot}")
        diff = abs(n_top - n_bot)
        if diff > 2:
            return ValidationResult(self.name, Severity.WARNING, (diff - 2) * rules.count_difference_penalty,
                                    f"Large count difference: top={n_top}, bottom={n_bot}")
        return ValidationResult.passed(self.name)


class WastePenaltyRule(DesignRule):
    name = "WastePenalty"
    priority = 15

    def validate(self, ctx: SolutionContext) -> ValidationResult:
        waste = ctx.accumulated_waste_count
        if waste <= 0:
            return ValidationResult.passed(self.name)
        penalty = waste * ctx.settings.rules.waste_penalty
        return ValidationResult(self.name, Severity.WARNING, penalty,
                                f"{waste} extra bars added for detailing (-{penalty:.0f})")


DEFAULT_RULES = (PyramidRule(), VerticalAlignmentRule(), WastePenaltyRule())


class RuleEngine(PipelineStage):
    name = "RuleEngine"
    order = 3

    def __init__(self, rules: Optional[Sequence[DesignRule]] = None):
        self.rules = sorted(rules if rules is not None else DEFAULT_RULES, key=lambda r: r.priority)

    def process(self, contexts: List[SolutionContext]) -> List[SolutionContext]:
        return [self.validate(ctx) if ctx.is_valid else ctx for ctx in contexts]

    def validate(self, ctx: SolutionContext) -> SolutionContext:
        if ctx.current_solution is None:
            return ctx.invalidate(self.name, f"[{ctx.scenario_id}] no solution to validate")
        ctx.validation_results = [rule.validate(ctx) for rule in self.rules]
        if ctx.has_critical_error:
            critical = [v for v in ctx.validation_results if v.is_critical]
            message = "; ".join(f"{v.rule_name}: {v.message}" for v in critical)
            logger.debug(f"[{ctx.scenario_id}] rejected by rules: {message}")
            return ctx.invalidate(self.name, f"CRITICAL: {message}")
        ctx.total_penalty = sum(v.penalty for v in ctx.validation_results if v.severity is Severity.WARNING)
        return ctx
