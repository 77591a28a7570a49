# core/constants.py

"""
엔진 전체에서 공유하는 고정 상수입니다.
사용자가 바꿀 수 있는 값은 core/settings.py 에 두고, 여기에는 알고리즘의 일부인 값만 둡니다.
"""

# --- 철근량 충족 검토 ---
ADMISSIBILITY_TOLERANCE = 0.98      # 제공 철근량 >= 소요 철근량 x 0.98
MISSING_AREA_EPSILON = 0.01         # cm², 이 이하의 부족량은 무시

# --- 층 배근 ---
MIN_BARS_PER_LAYER = 2              # 비어있지 않은 층의 최소 철근 개수

# --- 결과 개수 ---
MAX_SOLUTIONS = 5

# --- 종합 점수 가중치 ---
WEIGHT_SCORE_FACTOR = 0.6
CONSTRUCTABILITY_SCORE_FACTOR = 0.4

# --- 중량 산정 ---
UNIT_WEIGHT_FACTOR = 0.00617        # kg/m = d² x 0.00617 (7850 x π/4 / 10⁶)
LAP_SPLICE_WASTE_FACTOR = 1.02      # 기본근(연속근) 이음 할증
FULL_SPAN_REINF_RATIO = 1.0         # 관통(running-through) 보강근은 경간 전체 길이

# --- 관통 보강근(bridging) ---
BRIDGING_MIN_GAP = 1000.0           # mm
BRIDGING_GAP_DIAMETER_FACTOR = 40   # 40d

# --- 절단 / 이음 ---
SPLICE_SNAP_OFFSET = 50.0           # 이음 허용구간 경계에서 안쪽으로 들이는 거리 (mm)
SPLICE_SEARCH_RATIO = 0.10          # 탐색 반경 = 최대 철근 길이 x 0.10
STAGGER_END_CLEARANCE = 200.0       # 엇이음 위치와 다음 철근 끝단 사이 최소 거리 (mm)
MIDSPAN_SPLICE_ZONE = (0.35, 0.65)
DEFAULT_HOOK_ANGLE = 90
