# interface/cli.py

from typing import List

from core.cutting import CuttingResult
from core.models import ContinuousBeamSolution, Section

# --- [1. 결과 출력(Display) 함수] ---

def display_solutions(group_name: str, solutions: List[ContinuousBeamSolution]):
    """파이프라인/오케스트레이터가 제안한 배근 안들을 출력합니다."""
    print("\n" + "="*60)
    print(f"      ✅ [{group_name}] 연속보 배근 제안")
    print("="*60)
    if not solutions:
        print("  제안할 배근 안이 없습니다.")
        print("="*60)
        return

    for i, sol in enumerate(solutions):
        if not sol.is_valid:
            print(f"--- [ 제안 {i+1} ] ❌ 배근 실패 ---")
            print(f"  - 사유: {sol.validation_message}")
            continue
        print(f"--- [ 제안 {i+1} ] {sol.option_name}  {sol.strategy_label} ---")
        print(f"  - 기본근     : 상부 {sol.backbone_count_top}D{sol.backbone_diameter_top} / "
              f"하부 {sol.backbone_count_bot}D{sol.backbone_diameter_bot}")
        print(f"  - 철근 중량  : {sol.total_steel_weight:.1f} kg")
        print(f"  - 점수       : 종합 {sol.total_score:.1f} (시공성 {sol.constructability_score:.1f})")
        if sol.description:
            print(f"  - 비고       : {sol.description}")
        for key, spec in sorted(sol.reinforcements.items(), key=lambda kv: str(kv[0])):
            running = " (관통)" if key.section is Section.FULL else ""
            layers = f" {spec.layer}단 {list(spec.layer_breakdown)}" if spec.layer > 1 else ""
            print(f"      {str(key):<22}: {spec.display}{layers}{running}")
    print("="*60)

def display_cutting_result(title: str, result: CuttingResult):
    """기본근 절단/이음/정착 결과를 출력합니다."""
    print("\n" + "-"*60)
    print(f"  [{title}] 철근 {result.total_bars}개, 이음 {result.splice_count}개")
    for seg in result.segments:
        hooks = []
        if seg.hook_at_start:
            hooks.append(f"시점 갈고리 {seg.hook_angle}° L={seg.hook_length:.0f}")
        if seg.hook_at_end:
            hooks.append(f"종점 갈고리 {seg.hook_angle}° L={seg.hook_length:.0f}")
        splice = f", 이음 @ {seg.splice_position:.0f}" if seg.splice_at_end else ""
        stagger = " (엇이음)" if seg.is_staggered else ""
        print(f"    #{seg.bar_index+1}: {seg.start_pos:.0f} ~ {seg.end_pos:.0f} mm "
              f"(L={seg.length:.0f}){splice}{stagger} {' / '.join(hooks)}")
    print("-"*60)

def display_error(error: Exception):
    print("\n" + "-"*40)
    print("      ❌ 오류 발생 (Error)")
    print(f"  오류 유형: {type(error).__name__}")
    print(f"  상세 내용: {error}")
    print("-"*40)
