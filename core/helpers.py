# core/helpers.py

"""
core/services 모듈이 공통으로 사용하는 저수준 도우미 함수입니다.
철근량(cm²)과 치수(mm) 비교는 부동소수점 오차를 고려해 아래 함수로만 수행합니다.
"""

# 철근량/폭 비교 허용 오차
TOLERANCE = 1e-9

def is_greater_or_equal(a: float, b: float) -> bool:
    """a >= b (허용 오차 포함). 제공 철근량 >= 소요 철근량 검토에 사용합니다."""
    return (a - b) > -TOLERANCE

def is_less_or_equal(a: float, b: float) -> bool:
    """a <= b (허용 오차 포함). 철근 폭 합계 <= 순폭 검토에 사용합니다."""
    return (a - b) < TOLERANCE

def is_equal(a: float, b: float) -> bool:
    return abs(a - b) < TOLERANCE

def normalize_dimension(value: float) -> float:
    """
    단위가 섞여 들어오는 치수값을 mm로 정규화합니다.
    5 미만은 m, 100 미만은 cm로 간주합니다. (예: 0.4 -> 400, 40 -> 400)
    """
    if value is None or value <= 0:
        return 0.0
    if value < 5:
        return value * 1000.0
    if value < 100:
        return value * 10.0
    return float(value)

def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
