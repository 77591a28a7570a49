# main_batch.py

import sys
import time

import numpy as np
from loguru import logger

from core.models import BeamGroup, LockedDesign, Span, SpanResultData
from interface.batch_runner import BatchRunner
from services.orchestrator import BeamJob


# =================================
# 층 구성 (해석 순서대로)
# =================================
def build_floor():
    """예제 층: 거더 1개와 거더에 인접한 보 2개. B2 는 사용자가 기본근을 확정한 상태."""
    g1 = BeamGroup(
        name="G1",
        spans=(Span("S1", 8400, 500, 800), Span("S2", 8400, 500, 800)),
        width=500, depth=800, group_type="GIRDER",
    )
    b1 = BeamGroup(
        name="B1",
        spans=(Span("S1", 6000, 400, 650), Span("S2", 6000, 400, 650), Span("S3", 4500, 400, 650)),
        width=400, depth=650, neighbor_groups=("G1",),
    )
    b2 = BeamGroup(
        name="B2",
        spans=(Span("S1", 6000, 0.4, 0.65), Span("S2", 6000, 0.4, 0.65)),   # 단면 치수는 m 단위 입력도 정규화됨
        width=0.4, depth=0.65, neighbor_groups=("B1",),
    )
    # 사용자가 확정한 기본근
    b2.lock(LockedDesign(backbone_diameter=22, backbone_count_top=3, backbone_count_bot=3))
    return [
        BeamJob(g1, [
            SpanResultData(top_area=(12.0, 4.0, 28.5), bot_area=(5.0, 22.4, 6.0), start_support_type="COLUMN"),
            SpanResultData(top_area=(28.5, 4.0, 12.0), bot_area=(6.0, 22.4, 5.0), end_support_type="COLUMN"),
        ]),
        BeamJob(b1, [
            SpanResultData(top_area=(6.0, 2.0, 14.2), bot_area=(3.0, 11.5, 3.0), start_support_type="COLUMN"),
            SpanResultData(top_area=(13.5, 2.0, 13.5), bot_area=(3.0, 8.2, 3.0)),
            SpanResultData(top_area=(10.8, 2.0, 5.0), bot_area=(3.0, 5.5, 3.0), end_support_type="FREE"),
        ]),
        BeamJob(b2, [
            SpanResultData(top_area=(5.0, 2.0, 11.0), bot_area=(3.0, 9.0, 3.0)),
            SpanResultData(top_area=(11.0, 2.0, 5.0), bot_area=(3.0, 9.0, 3.0)),
        ]),
    ]


# =================================
# 배치 실행 시나리오 정의
# =================================
# --- 안전율/층수 변화 ---
safety_factor_study = {
    "rules.safety_factor": np.round(np.linspace(1.0, 1.2, 5), 2).tolist(),
    "beam.max_layers": [1, 2],
}

# --- 주근 직경 범위 변화 ---
diameter_range_study = {
    "beam.main_bar_range": ["16-22", "16-25", "19-29"],
    "beam.prefer_single_diameter": [True, False],
}


def main():
    """
    Continuous Beam Rebar Designer (Batch Mode)의 메인 실행 함수.
    치수 단위 : mm, 철근량 단위 : cm²
    """
    print("="*50)
    print("    Continuous Beam Rebar Designer - Batch Mode")
    print("="*50)

    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    logger.add("batch_run.log", level="DEBUG", rotation="10 MB", encoding="utf-8")

    # 실행할 배치 입력
    param = safety_factor_study ; output_filename = 'batch_safety_factor_result'
    # param = diameter_range_study ; output_filename = 'batch_diameter_range_result'

    outfile_name = str(output_filename + '.csv')

    start_time = time.time()

    runner = BatchRunner(build_floor(), param)
    runner.run()
    runner.save_to_csv(outfile_name)

    end_time = time.time()
    print(f"총 실행 시간: {end_time - start_time:.2f} 초")

if __name__ == "__main__":
    main()
