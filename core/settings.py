# core/settings.py

"""
배근 엔진의 모든 설정값을 담는 불변 설정 객체들을 정의합니다.

설정은 해석 시작 시 한 번 생성되며, 모든 기본값은 생성 시점에 적용되고
__post_init__ 에서 검증됩니다. 계산 코드에서는 기본값 처리 없이 필드를 그대로 읽습니다.
외부 설정(JSON 등)은 RebarSettings.from_dict() 로 변환합니다.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from core.exceptions import ConfigurationError, MaterialError
from core.material.material import Concrete, Rebar, Steel, lap_splice_length


class SpliceZone(str, Enum):
    """이음 허용 구간의 종류"""
    SUPPORT = "SUPPORT"             # 지점부 (경간 양 끝 ratio 구간)
    QUARTER_SPAN = "QUARTER_SPAN"   # ratio ~ 1-ratio 구간
    MID_SPAN = "MID_SPAN"           # 0.35L ~ 0.65L


def _default_leg_table() -> Dict[Tuple[int, bool], int]:
    # (1단 철근 개수, 보강근 유무) -> 스터럽 다리 수
    return {
        (2, False): 2, (3, False): 2, (4, False): 2, (5, False): 3, (6, False): 4, (7, False): 4, (8, False): 4,
        (2, True): 2, (3, True): 3, (4, True): 4, (5, True): 4, (6, True): 4, (7, True): 6, (8, True): 6,
    }


def parse_diameter_range(text: str, inventory: Sequence[int]) -> List[int]:
    """
    '16-25', '16,20,25', '20' 형식의 직경 범위 문자열을 보유 직경(inventory)과 교차시켜 반환합니다.
    """
    text = (text or "").strip()
    if not text:
        return sorted(inventory)
    try:
        if "-" in text:
            low, high = (int(part) for part in text.split("-", 1))
            return sorted(d for d in inventory if low <= d <= high)
        wanted = {int(part) for part in text.replace(" ", "").split(",") if part}
    except ValueError as e:
        raise ConfigurationError("main_bar_range", f"cannot parse '{text}'") from e
    return sorted(d for d in inventory if d in wanted)


def parse_leg_rules(rules: str) -> List[Tuple[int, int]]:
    """
    '250-2 400-4 600-6' 형식의 폭-다리수 규칙을 (폭, 다리수) 목록으로 변환합니다.
    형식이 잘못된 항목이 하나라도 있으면 ValueError 를 발생시킵니다.
    """
    parsed = []
    for token in (rules or "").split():
        width_text, sep, legs_text = token.partition("-")
        if not sep:
            raise ValueError(f"malformed leg rule '{token}'")
        width, legs = int(width_text), int(legs_text)
        if width <= 0 or legs <= 0:
            raise ValueError(f"non-positive leg rule '{token}'")
        parsed.append((width, legs))
    if not parsed:
        raise ValueError("empty leg rules")
    return sorted(parsed)


# ==============================================================================
# 설정 데이터 클래스
# ==============================================================================
@dataclass(frozen=True)
class CurtailmentConfig:
    """보강근 절단 비율 (경간 길이 대비)"""
    top_support_ext_ratio: float = 0.25     # 지점 보강근이 경간 안쪽으로 연장되는 비율
    support_reinf_ratio: float = 0.33       # 중량 산정용: 지점 보강근 길이 비율
    mid_span_reinf_ratio: float = 0.8       # 중량 산정용: 경간중앙 보강근 길이 비율

    def __post_init__(self):
        for name in ("top_support_ext_ratio", "support_reinf_ratio", "mid_span_reinf_ratio"):
            value = getattr(self, name)
            if not (0 < value <= 1.0):
                raise ConfigurationError(name, f"must be in (0, 1], got {value}")
        if self.top_support_ext_ratio >= 0.5:
            raise ConfigurationError("top_support_ext_ratio", "left and right extensions would overlap")


@dataclass(frozen=True)
class BeamConfig:
    """보 단면 배근에 관한 설정"""
    cover_side: float = 25.0
    estimated_stirrup_diameter: float = 10.0
    aggregate_size: float = 20.0
    min_clear_spacing: float = 25.0
    use_bar_diameter_for_spacing: bool = True
    bar_diameter_spacing_multiplier: float = 1.0
    max_clear_spacing: float = 150.0
    density_heuristic: float = 180.0        # 보 폭 180mm 당 철근 1개 이상
    max_layers: int = 2
    prefer_symmetric: bool = True
    prefer_single_diameter: bool = False
    prefer_even_diameter: bool = False
    main_bar_range: str = "16-25"
    auto_legs_rules: str = "250-2 400-4 600-6"
    beam_curtailment: CurtailmentConfig = field(default_factory=CurtailmentConfig)
    girder_curtailment: CurtailmentConfig = field(default_factory=CurtailmentConfig)

    def __post_init__(self):
        if self.cover_side < 0 or self.estimated_stirrup_diameter < 0:
            raise ConfigurationError("cover_side", "cover and stirrup diameter must be non-negative")
        if self.aggregate_size <= 0:
            raise ConfigurationError("aggregate_size", "must be positive")
        if self.min_clear_spacing <= 0:
            raise ConfigurationError("min_clear_spacing", "must be positive")
        if self.max_layers not in (1, 2):
            raise ConfigurationError("max_layers", f"only 1 or 2 layers are supported, got {self.max_layers}")
        if self.bar_diameter_spacing_multiplier <= 0:
            raise ConfigurationError("bar_diameter_spacing_multiplier", "must be positive")

    def curtailment_for(self, is_girder: bool) -> CurtailmentConfig:
        return self.girder_curtailment if is_girder else self.beam_curtailment


@dataclass(frozen=True)
class StirrupConfig:
    enable_advanced_rules: bool = False
    leg_table: Dict[Tuple[int, bool], int] = field(default_factory=_default_leg_table)

    def get_leg_count(self, bar_count: int, has_addon: bool) -> int:
        """표에서 다리 수를 찾습니다. 정확한 키가 없으면 가장 가까운 작은 철근 개수를 사용합니다."""
        candidates = [n for (n, addon) in self.leg_table if addon == has_addon and n <= bar_count]
        if not candidates:
            return 2
        return self.leg_table[(max(candidates), has_addon)]


@dataclass(frozen=True)
class ArrangementRule:
    """부재 종류(보/거더)별 이음 위치 규칙"""
    top_splice_zone: SpliceZone = SpliceZone.MID_SPAN
    bot_splice_zone: SpliceZone = SpliceZone.SUPPORT
    support_zone_ratio: float = 0.25

    def __post_init__(self):
        if not (0 < self.support_zone_ratio < 0.5):
            raise ConfigurationError("support_zone_ratio", f"must be in (0, 0.5), got {self.support_zone_ratio}")


@dataclass(frozen=True)
class DetailingConfig:
    max_bar_length: float = 11700.0
    min_stagger_distance: float = 600.0
    stagger_factor: float = 1.3
    beam_rule: ArrangementRule = field(default_factory=ArrangementRule)
    girder_rule: ArrangementRule = field(
        default_factory=lambda: ArrangementRule(top_splice_zone=SpliceZone.QUARTER_SPAN,
                                                bot_splice_zone=SpliceZone.SUPPORT))

    def __post_init__(self):
        if self.max_bar_length <= 0:
            raise ConfigurationError("max_bar_length", "must be positive")
        if self.min_stagger_distance < 0 or self.stagger_factor < 0:
            raise ConfigurationError("min_stagger_distance", "stagger settings must be non-negative")

    def get_rule(self, group_type: Optional[str]) -> ArrangementRule:
        return self.girder_rule if (group_type or "").upper() == "GIRDER" else self.beam_rule


@dataclass(frozen=True)
class AnchorageConfig:
    concrete_grade: str = "C27"
    steel_grade: str = "SD400"
    lap_class: str = "B"
    hook_90_factor: float = 12.0
    min_hook_length: float = 75.0
    manual_splice_lengths: Dict[int, float] = field(default_factory=dict)

    def __post_init__(self):
        try:
            Concrete.from_grade(self.concrete_grade)
            Steel(grade=self.steel_grade)
        except MaterialError as e:
            raise ConfigurationError("anchorage", str(e)) from e
        if self.hook_90_factor <= 0 or self.min_hook_length < 0:
            raise ConfigurationError("hook_90_factor", "hook settings must be positive")

    def get_splice_length(self, diameter: int, concrete_grade: Optional[str] = None,
                          steel_grade: Optional[str] = None) -> float:
        """직경/콘크리트 등급/강종에 따른 겹침이음 길이 (mm). 수동 표가 있으면 우선합니다."""
        if diameter in self.manual_splice_lengths:
            return self.manual_splice_lengths[diameter]
        concrete = Concrete.from_grade(concrete_grade or self.concrete_grade)
        steel = Steel(grade=steel_grade or self.steel_grade)
        return lap_splice_length(diameter, concrete, steel, self.lap_class)

    def hook_length(self, diameter: int) -> float:
        return max(self.hook_90_factor * diameter, self.min_hook_length)


@dataclass(frozen=True)
class RuleConfig:
    safety_factor: float = 1.0
    alignment_penalty: float = 25.0
    count_difference_penalty: float = 5.0
    waste_penalty: float = 20.0

    def __post_init__(self):
        if not (1.0 <= self.safety_factor <= 2.0):
            raise ConfigurationError("safety_factor", f"must be in [1.0, 2.0], got {self.safety_factor}")


@dataclass(frozen=True)
class RebarSettings:
    """배근 엔진 전체 설정 (해석 1회당 한 번 생성)"""
    available_diameters: Tuple[int, ...] = (10, 12, 14, 16, 18, 20, 22, 25, 28, 32)
    beam: BeamConfig = field(default_factory=BeamConfig)
    stirrup: StirrupConfig = field(default_factory=StirrupConfig)
    detailing: DetailingConfig = field(default_factory=DetailingConfig)
    anchorage: AnchorageConfig = field(default_factory=AnchorageConfig)
    rules: RuleConfig = field(default_factory=RuleConfig)

    def __post_init__(self):
        if not self.available_diameters:
            raise ConfigurationError("available_diameters", "at least one diameter is required")
        for diameter in self.available_diameters:
            try:
                Rebar(diameter)
            except MaterialError as e:
                raise ConfigurationError("available_diameters", str(e)) from e
        object.__setattr__(self, "available_diameters", tuple(sorted(set(self.available_diameters))))

    @property
    def main_bar_diameters(self) -> List[int]:
        """주근으로 사용할 수 있는 직경 목록 (main_bar_range ∩ 보유 직경)"""
        dias = parse_diameter_range(self.beam.main_bar_range, self.available_diameters)
        if self.beam.prefer_even_diameter:
            dias = [d for d in dias if d % 2 == 0]
        return dias

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "RebarSettings":
        """중첩된 dict(JSON 등)로부터 설정 객체를 생성합니다. 없는 키는 기본값을 사용합니다."""
        return _build(cls, data or {})


# ==============================================================================
# dict -> dataclass 변환
# ==============================================================================
def _parse_leg_table(raw: Mapping[Any, int]) -> Dict[Tuple[int, bool], int]:
    # JSON 키 형식: "4" (보강근 없음), "4+" (보강근 있음)
    table = {}
    for key, legs in raw.items():
        if isinstance(key, tuple):
            table[(int(key[0]), bool(key[1]))] = int(legs)
            continue
        text = str(key).strip()
        has_addon = text.endswith("+")
        try:
            table[(int(text.rstrip("+")), has_addon)] = int(legs)
        except ValueError as e:
            raise ConfigurationError("leg_table", f"bad key '{key}'") from e
    return table


def _build(cls, data: Mapping[str, Any]):
    kwargs = {}
    known = {f.name: f for f in dataclasses.fields(cls)}
    for key, value in data.items():
        if key not in known:
            raise ConfigurationError(key, f"unknown setting for {cls.__name__}")
        f = known[key]
        default = f.default_factory() if f.default_factory is not dataclasses.MISSING else f.default
        if dataclasses.is_dataclass(default) and isinstance(value, Mapping):
            value = _build(type(default), value)
        elif isinstance(default, SpliceZone):
            try:
                value = SpliceZone(str(value).upper())
            except ValueError as e:
                raise ConfigurationError(key, f"unknown splice zone '{value}'") from e
        elif key == "leg_table":
            value = _parse_leg_table(value)
        elif key == "manual_splice_lengths":
            value = {int(k): float(v) for k, v in value.items()}
        elif key == "available_diameters":
            value = tuple(int(v) for v in value)
        kwargs[key] = value
    return cls(**kwargs)
