# main.py

import sys

from loguru import logger

from interface import cli
from core.cutting import RebarCuttingAlgorithm
from core.exceptions import RCDException
from core.material.material import REBAR_DIA_LIST
from core.models import BeamGroup, Span, SpanResultData
from core.settings import RebarSettings
from services.pipeline import RebarPipeline
from services.scoring import ConstructabilityScorer, ScoreWeights

# ==========================================================
# 사용자 설정 (User Configuration)
# ==========================================================
# 이 부분만 수정하면 프로그램 전체에 적용됩니다.
CALCULATION_DIAMETERS = [13, 16, 19, 22, 25, 29, 32] # 사용자가 여기서 수정
MAIN_BAR_RANGE = "16-25"
LOG_LEVEL = "INFO"
SCORE_WEIGHTS = ScoreWeights()  # ScoreWeights.economical(), ScoreWeights.fast_construction()

# --- 예제 연속보: 3경간, 단면 400x700 ---
EXAMPLE_BEAM = BeamGroup(
    name="B1",
    spans=(
        Span("S1", length=7200, width=400, depth=700),
        Span("S2", length=6000, width=400, depth=700),
        Span("S3", length=7200, width=400, depth=700),
    ),
    width=400, depth=700,
)
# 소요 철근량 (cm²): 상부/하부 x (시점, 중앙, 종점)
EXAMPLE_RESULTS = [
    SpanResultData(top_area=(8.5, 3.0, 18.2), bot_area=(4.0, 14.6, 4.0), start_support_type="COLUMN"),
    SpanResultData(top_area=(16.8, 2.5, 16.8), bot_area=(3.5, 9.8, 3.5)),
    SpanResultData(top_area=(18.2, 3.0, 8.5), bot_area=(4.0, 14.6, 4.0), end_support_type="WALL"),
]


def validate_configuration():
    """
    사용자 설정값이 프로그램에서 지원하는 범위 내에 있는지 확인합니다.
    """
    all_supported_dias = set(REBAR_DIA_LIST)
    user_selected_dias = set(CALCULATION_DIAMETERS)

    if not user_selected_dias.issubset(all_supported_dias):
        unsupported_dias = user_selected_dias - all_supported_dias
        print("="*50)
        print("❌ 설정 오류 (Configuration Error)")
        print(f"다음 철근 직경은 지원하지 않습니다: {sorted(list(unsupported_dias))}")
        print(f"지원 가능한 전체 직경: {sorted(list(all_supported_dias))}")
        print("main.py 상단의 'CALCULATION_DIAMETERS' 설정을 수정해주세요.")
        print("="*50)
        sys.exit(1) # 프로그램 비정상 종료


def main():
    """
    연속보 배근 엔진 예제 실행 함수.
    예제 보 1개에 대해 배근 안을 제안하고, 최적안의 기본근 절단/이음/정착을 출력합니다.
    """
    print("="*50)
    print("      Continuous Beam Rebar Designer")
    print("="*50)
    print("모든 치수 단위는 'mm', 철근량 단위는 'cm²' 입니다.")

    logger.remove()
    logger.add(sys.stderr, level=LOG_LEVEL)

    validate_configuration()

    try:
        settings = RebarSettings.from_dict({
            "available_diameters": CALCULATION_DIAMETERS,
            "beam": {"main_bar_range": MAIN_BAR_RANGE},
        })
        scorer = ConstructabilityScorer(SCORE_WEIGHTS)
        solutions = RebarPipeline(scorer=scorer).execute(EXAMPLE_BEAM, EXAMPLE_RESULTS, settings)
        cli.display_solutions(EXAMPLE_BEAM.name, solutions)
        if not solutions:
            return

        best = solutions[0]
        print(scorer.breakdown(best, EXAMPLE_BEAM, settings).report(scorer.weights))
        cutter = RebarCuttingAlgorithm(settings)
        first, last = EXAMPLE_RESULTS[0], EXAMPLE_RESULTS[-1]
        for is_top, dia, count in ((True, best.backbone_diameter_top, best.backbone_count_top),
                                   (False, best.backbone_diameter_bot, best.backbone_count_bot)):
            result = cutter.process_complete(
                EXAMPLE_BEAM.total_length, EXAMPLE_BEAM.spans, is_top, EXAMPLE_BEAM.group_type,
                first.start_support_type, last.end_support_type, dia, bars_per_layer=count)
            cli.display_cutting_result(f"{'상부' if is_top else '하부'} 기본근 {count}D{dia}", result)

    except RCDException as e:
        cli.display_error(e)

    print("\n프로그램을 종료합니다.")

if __name__ == "__main__":
    main()
