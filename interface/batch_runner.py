# interface/batch_runner.py

import itertools
import pandas as pd
from tqdm.auto import tqdm
from typing import Dict, List, Any, Sequence

from loguru import logger

from core.exceptions import RCDException
from core.models import ContinuousBeamSolution
from core.settings import RebarSettings
from services.orchestrator import BeamJob, MultiBeamOrchestrator


class BatchRunner:
    """
    설정 파라미터의 여러 조합에 대해 층 전체 배근 해석을 반복 실행하고 결과 표를 생성합니다.

    params 의 키는 'beam.max_layers', 'rules.safety_factor' 처럼 점(.)으로 구분한 설정 경로이며,
    값은 검토할 값의 목록입니다. 모든 조합(itertools.product)이 실행됩니다.
    """
    def __init__(self, beams: Sequence[BeamJob], params: Dict[str, List[Any]] = None):
        self.beams = list(beams)
        self.params = params or {}
        self.results = []

    def run(self):
        """배치 실행을 시작하고 모든 조합에 대한 계산을 수행합니다."""
        combinations = self._generate_combinations()

        for combo in tqdm(combinations, desc="Batch Processing", ncols=120):
            try:
                settings = RebarSettings.from_dict(self._nest(combo))
                orchestrator = MultiBeamOrchestrator()
                solutions = orchestrator.solve_floor(self.beams, settings)
                for job in self.beams:
                    self._append_solution(combo, job, solutions[job.group.name])
            except RCDException as e:
                logger.warning(f"Batch case {combo} failed: {e}")
                self.results.append({**combo, "status": "Error", "message": str(e)})
            except Exception as e:
                logger.exception(f"Batch case {combo} crashed")
                self.results.append({**combo, "status": "Critical Error", "message": str(e)})

    def _generate_combinations(self) -> List[Dict[str, Any]]:
        """itertools.product를 사용하여 모든 파라미터 조합 딕셔너리를 생성합니다."""
        keys = self.params.keys()
        values = self.params.values()
        return [dict(zip(keys, p)) for p in itertools.product(*values)]

    @staticmethod
    def _nest(combo: Dict[str, Any]) -> Dict[str, Any]:
        """{'beam.max_layers': 1} -> {'beam': {'max_layers': 1}}"""
        nested: Dict[str, Any] = {}
        for path, value in combo.items():
            node = nested
            *parents, leaf = path.split(".")
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = value
        return nested

    def _append_solution(self, combo: Dict[str, Any], job: BeamJob, sol: ContinuousBeamSolution):
        """보 1개의 최적안(및 대안)을 결과 행으로 펼칩니다."""
        for rank, option in enumerate([sol] + sol.alternative_solutions, start=1):
            self.results.append({
                **combo,
                "beam": job.group.name,
                "rank": rank,
                "status": "OK" if option.is_valid else "Failed",
                "option": option.option_name,
                "label": option.strategy_label,
                "top_backbone": f"{option.backbone_count_top}D{option.backbone_diameter_top}",
                "bot_backbone": f"{option.backbone_count_bot}D{option.backbone_diameter_bot}",
                "addons": "; ".join(f"{key}={spec.display}" + (f"({spec.layer}단)" if spec.layer > 1 else "")
                                    for key, spec in sorted(option.reinforcements.items(), key=lambda kv: str(kv[0]))),
                "weight": option.total_steel_weight,
                "constructability": option.constructability_score,
                "total_score": option.total_score,
                "description": option.description,
                "message": option.validation_message,
            })

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.results)

    def save_to_csv(self, filename: str):
        """결과를 pandas DataFrame으로 변환하고 CSV 파일로 저장합니다."""
        if not self.results:
            print("결과가 없습니다. 저장할 내용이 없습니다.")
            return

        df = self.to_dataframe()
        # 중량/점수는 소수 둘째 자리까지 출력
        for col in ("weight", "constructability", "total_score"):
            if col in df.columns:
                df[col] = df[col].round(2)

        df.to_csv(filename, index=False, encoding='utf-8-sig')
        print(f"\n결과가 '{filename}' 파일로 성공적으로 저장되었습니다.")
