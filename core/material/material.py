# core/material/material.py

"""
이 모듈은 철근과 콘크리트 재료의 특성, 그리고 철근 직경별 단면적/단위중량을
정의하는 데이터 클래스들을 제공합니다.

각 클래스는 불변(immutable) 객체로 설계되어 데이터의 일관성과 안정성을 보장합니다.
객체 생성 시 유효성 검사를 수행합니다.
단위: 직경/길이 mm, 철근 단면적 cm², 강도 MPa, 중량 kg.
"""

import math
import re
from dataclasses import dataclass
from math import sqrt

from core.constants import UNIT_WEIGHT_FACTOR
from core.exceptions import MaterialError

# ==============================================================================
# Module Root Level Constants
# ==============================================================================
_REBAR_SPECS = {
    "SD300": (300, 440), "SD350": (350, 490), "SD400": (400, 560), "SD500": (500, 620), "SD600": (600, 710),
    "SD400W": (400, 560), "SD500W": (500, 620)
}

# KS(13, 19, 29 ...)와 미터계열(12, 14, 18, 20 ...) 공칭 직경을 모두 지원
REBAR_DIA_LIST = [10, 12, 13, 14, 16, 18, 19, 20, 22, 25, 28, 29, 32, 35, 36, 38, 40]

# 겹침이음 등급별 정착길이 배율 (KDS 14 20 52, A급 1.0ld / B급 1.3ld)
_LAP_CLASS_FACTORS = {"A": 1.0, "B": 1.3}
MIN_LAP_LENGTH = 300.0

_CONCRETE_GRADE_PATTERN = re.compile(r"^[A-Z]*\s*(\d+(?:\.\d+)?)$")


def bar_area(diameter: float) -> float:
    """철근 1개의 공칭 단면적 (cm²) = π·d²/400"""
    return math.pi * diameter * diameter / 400.0


def unit_weight(diameter: float) -> float:
    """철근의 단위 길이당 중량 (kg/m)"""
    return diameter * diameter * UNIT_WEIGHT_FACTOR


def bar_weight(diameter: float, length_mm: float, count: int) -> float:
    """철근 중량 (kg). 길이는 mm 로 받아 m 로 변환합니다."""
    if count <= 0 or length_mm <= 0 or diameter <= 0:
        return 0.0
    return unit_weight(diameter) * (length_mm / 1000.0) * count


# ==============================================================================
# Material Classes
# ==============================================================================
@dataclass(frozen=True)
class Steel:
    grade: str

    def __post_init__(self):
        if self.grade not in _REBAR_SPECS:
            raise MaterialError(f"Unknown rebar grade: '{self.grade}'.")
        if self.fy > 600:
            raise MaterialError(f"Design yield strength (fy={self.fy} MPa) exceeds 600 MPa limit (KDS 14.20.10).")

    @property
    def fy(self) -> float:
        """설계기준항복강도 (MPa)"""
        return _REBAR_SPECS[self.grade][0]


@dataclass(frozen=True)
class Rebar:
    """단일 철근의 직경을 정의하는 불변 객체."""
    diameter: int

    def __post_init__(self):
        if self.diameter not in REBAR_DIA_LIST:
            raise MaterialError(f"Unsupported rebar diameter: {self.diameter}mm.")

    @property
    def area(self) -> float:
        """철근의 공칭 단면적 (cm²)"""
        return bar_area(self.diameter)

    @property
    def unit_weight(self) -> float:
        """단위중량 (kg/m)"""
        return unit_weight(self.diameter)


@dataclass(frozen=True)
class Concrete:
    """콘크리트 재료의 고유한 기계적 특성을 정의하는 불변 객체."""
    fck: float
    lightweight_factor_lambda: float = 1.0

    def __post_init__(self):
        if self.fck <= 0:
            raise MaterialError("fck must be a positive number.")
        if not (0.75 <= self.lightweight_factor_lambda <= 1.0):
            raise MaterialError("Lightweight factor (lambda) must be between 0.75 and 1.0.")

    @classmethod
    def from_grade(cls, grade: str) -> "Concrete":
        """'C27', '27', 'fck30' 같은 등급 문자열로부터 객체를 생성합니다."""
        match = _CONCRETE_GRADE_PATTERN.match(str(grade).strip().upper())
        if not match:
            raise MaterialError(f"Unknown concrete grade: '{grade}'.")
        return cls(fck=float(match.group(1)))


# ==============================================================================
# 정착 / 이음 길이
# ==============================================================================
def development_length(diameter: int, concrete: Concrete, steel: Steel) -> float:
    """인장 이형철근의 기본정착길이 ldb = 0.6·d·fy / (λ·√fck) (mm). KDS 14 20 52 (4.1-1)"""
    return 0.6 * diameter * steel.fy / (concrete.lightweight_factor_lambda * sqrt(concrete.fck))


def lap_splice_length(diameter: int, concrete: Concrete, steel: Steel, lap_class: str = "B") -> float:
    """인장 겹침이음 길이 (mm). 최소 300mm."""
    if lap_class not in _LAP_CLASS_FACTORS:
        raise MaterialError(f"Unknown lap splice class: '{lap_class}'.")
    length = _LAP_CLASS_FACTORS[lap_class] * development_length(diameter, concrete, steel)
    return max(MIN_LAP_LENGTH, length)
