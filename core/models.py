# core/models.py

"""
연속보 배근 엔진의 데이터 모델을 정의합니다.

- 입력 (불변): Span, BeamGroup, SpanResultData, ExternalConstraints, ProjectConstraints
- 위치 키: LocationKey (경간 ID + 상/하부 + 구간)
- 결과: RebarSpec, ContinuousBeamSolution
- 파이프라인 작업 단위: SolutionContext

단위: 길이/직경 mm, 철근 단면적 cm², 중량 kg.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from core.exceptions import SectionError
from core.material.material import bar_area
from core.settings import RebarSettings


class Face(str, Enum):
    TOP = "Top"
    BOTTOM = "Bot"


class Section(str, Enum):
    """보강근이 배치되는 구간"""
    LEFT = "Left"
    MID = "Mid"
    RIGHT = "Right"
    FULL = "Full"


class Station(int, Enum):
    """해석 결과가 주어지는 검토 단면. 값은 SpanResultData 튜플의 인덱스입니다."""
    START = 0
    MID = 1
    END = 2


@dataclass(frozen=True)
class LocationKey:
    """보강근 위치를 나타내는 키. 문자열 표현은 'Span2_Top_Left' 형식입니다."""
    span_id: str
    face: Face
    section: Section

    def __str__(self) -> str:
        return f"{self.span_id}_{self.face.value}_{self.section.value}"

    def covers(self, station: Station) -> bool:
        """이 위치의 보강근이 주어진 검토 단면을 덮는지 여부"""
        if self.section is Section.FULL:
            return True
        if self.section is Section.LEFT:
            return station is Station.START
        if self.section is Section.MID:
            return station is Station.MID
        if self.section is Section.RIGHT:
            return station is Station.END
        raise ValueError(f"Unknown section: {self.section}")


# ==============================================================================
# 입력 데이터
# ==============================================================================
@dataclass(frozen=True)
class Span:
    span_id: str
    length: float
    width: float
    depth: float

    def __post_init__(self):
        if not self.span_id:
            raise SectionError("Span id must not be empty.")
        if self.length <= 0:
            raise SectionError(f"Span '{self.span_id}' length must be positive.")
        if self.width < 0 or self.depth < 0:
            raise SectionError(f"Span '{self.span_id}' dimensions must be non-negative.")


@dataclass(frozen=True)
class LockedDesign:
    """사용자가 확정(lock)한 기본근 구성"""
    backbone_diameter: int
    backbone_count_top: int
    backbone_count_bot: int


@dataclass
class BeamGroup:
    """
    여러 기둥을 지나는 하나의 연속보.
    경간(spans)은 로드 후 불변이며, locked_design 만 사용자 확정 시 변경됩니다.
    """
    name: str
    spans: Tuple[Span, ...]
    width: float = 0.0
    depth: float = 0.0
    group_type: str = "BEAM"
    neighbor_groups: Tuple[str, ...] = ()
    locked_design: Optional[LockedDesign] = None

    def __post_init__(self):
        self.spans = tuple(self.spans)
        self.neighbor_groups = tuple(self.neighbor_groups)
        ids = [s.span_id for s in self.spans]
        if len(ids) != len(set(ids)):
            raise SectionError(f"Beam group '{self.name}' has duplicated span ids: {ids}")

    @property
    def total_length(self) -> float:
        return sum(s.length for s in self.spans)

    @property
    def is_girder(self) -> bool:
        if self.group_type.upper() == "GIRDER":
            return True
        return self.name.startswith("G") or "Girder" in self.name

    def lock(self, design: LockedDesign) -> None:
        self.locked_design = design


@dataclass(frozen=True)
class SpanResultData:
    """경간 1개의 소요 철근량 (cm²). 각 튜플은 (Start, Mid, End) 순서입니다."""
    top_area: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    bot_area: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    start_support_type: str = "COLUMN"
    end_support_type: str = "COLUMN"

    def __post_init__(self):
        if len(self.top_area) != 3 or len(self.bot_area) != 3:
            raise SectionError("Span result areas must have exactly three values (Start, Mid, End).")
        object.__setattr__(self, "top_area", tuple(float(v) for v in self.top_area))
        object.__setattr__(self, "bot_area", tuple(float(v) for v in self.bot_area))

    def required(self, face: Face, station: Station) -> float:
        values = self.top_area if face is Face.TOP else self.bot_area
        return max(0.0, values[station.value])


@dataclass(frozen=True)
class NeighborDesign:
    backbone_diameter: int
    backbone_count: int
    stirrup_diameter: int


@dataclass(frozen=True)
class ProjectConstraints:
    """
    층 단위 해석에서 보 사이에 공유되는 제약 조건의 '스냅샷'입니다.
    변경은 새 스냅샷을 반환하는 with_* 메서드로만 이루어지며, 오케스트레이터만 적용합니다.
    """
    neighbor_designs: Mapping[str, NeighborDesign] = field(default_factory=dict)
    preferred_main_diameter: Optional[int] = None
    allowed_diameters_override: Tuple[int, ...] = ()
    neighbor_match_bonus: float = 10.0

    def with_neighbor(self, group_name: str, design: NeighborDesign) -> "ProjectConstraints":
        designs = dict(self.neighbor_designs)
        designs[group_name] = design
        return replace(self, neighbor_designs=designs)

    def with_preferred_diameter(self, diameter: int) -> "ProjectConstraints":
        return replace(self, preferred_main_diameter=diameter)


@dataclass(frozen=True)
class ExternalConstraints:
    forced_backbone_diameter: Optional[int] = None
    forced_backbone_count_top: Optional[int] = None
    forced_backbone_count_bot: Optional[int] = None
    source: str = ""

    @classmethod
    def from_locked(cls, design: LockedDesign) -> "ExternalConstraints":
        return cls(forced_backbone_diameter=design.backbone_diameter,
                   forced_backbone_count_top=design.backbone_count_top,
                   forced_backbone_count_bot=design.backbone_count_bot,
                   source="UserLock")


# ==============================================================================
# 결과 데이터
# ==============================================================================
@dataclass
class RebarSpec:
    """한 위치의 보강근(addon). layer 는 사용한 층 수, layer_breakdown 은 기본근 포함 층별 개수입니다."""
    diameter: int
    count: int
    layer: int = 1
    face: Face = Face.TOP
    layer_breakdown: Tuple[int, ...] = ()
    is_running_through: bool = False

    @property
    def area(self) -> float:
        return self.count * bar_area(self.diameter)

    @property
    def display(self) -> str:
        return f"{self.count}D{self.diameter}"

    def is_similar(self, other: "RebarSpec") -> bool:
        return (self.diameter == other.diameter and self.count == other.count
                and self.layer == other.layer)


@dataclass
class ContinuousBeamSolution:
    """연속보 1개에 대한 배근 안 (기본근 1조합)"""
    option_name: str
    backbone_diameter_top: int = 0
    backbone_diameter_bot: int = 0
    backbone_count_top: int = 0
    backbone_count_bot: int = 0
    reinforcements: Dict[LocationKey, RebarSpec] = field(default_factory=dict)
    total_steel_weight: float = 0.0
    efficiency_score: float = 0.0
    constructability_score: float = 0.0
    total_score: float = 0.0
    is_valid: bool = True
    validation_message: str = ""
    description: str = ""
    strategy_label: str = ""
    alternative_solutions: List["ContinuousBeamSolution"] = field(default_factory=list)

    @property
    def backbone_diameter(self) -> int:
        return self.backbone_diameter_top

    @property
    def as_backbone_top(self) -> float:
        return self.backbone_count_top * bar_area(self.backbone_diameter_top)

    @property
    def as_backbone_bot(self) -> float:
        return self.backbone_count_bot * bar_area(self.backbone_diameter_bot)

    def backbone_area(self, face: Face) -> float:
        return self.as_backbone_top if face is Face.TOP else self.as_backbone_bot

    def provided_area(self, span_id: str, face: Face, station: Station) -> float:
        """
        검토 단면의 제공 철근량 (cm²) = 기본근 + 해당 단면을 덮는 보강근.
        철근량 계산은 이 메서드 하나로만 이루어집니다.
        """
        total = self.backbone_area(face)
        for key, spec in self.reinforcements.items():
            if key.span_id == span_id and key.face is face and key.covers(station):
                total += spec.area
        return total

    def max_layer(self) -> int:
        return max((spec.layer for spec in self.reinforcements.values()), default=1)

    @classmethod
    def failed(cls, message: str) -> "ContinuousBeamSolution":
        return cls(option_name="FAILED", is_valid=False, validation_message=message)


# ==============================================================================
# 파이프라인 컨텍스트
# ==============================================================================
@dataclass
class SolutionContext:
    """
    파이프라인을 흐르는 작업 단위. 기본근 단계에서 하나의 seed 가 N 개로 복제됩니다.
    입력 필드는 형제 컨텍스트끼리 공유하고(읽기 전용), 출력/제어 필드는 각자 소유합니다.
    """
    group: BeamGroup
    span_results: List[SpanResultData]
    settings: RebarSettings
    global_constraints: ProjectConstraints = field(default_factory=ProjectConstraints)
    external_constraints: Optional[ExternalConstraints] = None

    # 기본근 단계에서 설정
    beam_width: float = 0.0
    beam_height: float = 0.0
    total_length: float = 0.0
    allowed_diameters: Tuple[int, ...] = ()
    scenario_id: str = ""
    top_backbone_diameter: int = 0
    bot_backbone_diameter: int = 0
    top_backbone_count: int = 0
    bot_backbone_count: int = 0
    preferred_diameter_bonus: float = 0.0

    # 이후 단계에서 설정
    accumulated_waste_count: int = 0
    stirrup_leg_count: int = 2
    current_solution: Optional[ContinuousBeamSolution] = None
    validation_results: list = field(default_factory=list)

    # 파이프라인 제어
    is_valid: bool = True
    fail_stage: str = ""
    total_penalty: float = 0.0

    @property
    def has_critical_error(self) -> bool:
        return any(v.is_critical for v in self.validation_results)

    @property
    def failure_message(self) -> str:
        if self.current_solution is not None and self.current_solution.validation_message:
            return self.current_solution.validation_message
        return f"{self.scenario_id or 'seed'}: failed at {self.fail_stage or 'unknown stage'}"

    def invalidate(self, stage: str, message: str) -> "SolutionContext":
        self.is_valid = False
        self.fail_stage = stage
        if self.current_solution is None:
            self.current_solution = ContinuousBeamSolution(option_name=self.scenario_id or "seed")
        self.current_solution.is_valid = False
        self.current_solution.validation_message = message
        return self

    def clone(self) -> "SolutionContext":
        """입력과 정리된 기하 정보만 복사하고, 시나리오/출력/제어 필드는 초기화합니다."""
        return SolutionContext(
            group=self.group,
            span_results=self.span_results,
            settings=self.settings,
            global_constraints=self.global_constraints,
            external_constraints=self.external_constraints,
            beam_width=self.beam_width,
            beam_height=self.beam_height,
            total_length=self.total_length,
            allowed_diameters=self.allowed_diameters,
        )
