# services/stage.py

"""파이프라인 단계의 공통 인터페이스"""

from abc import ABC, abstractmethod
from typing import List

from core.models import SolutionContext


class PipelineStage(ABC):
    """
    파이프라인의 한 단계. 컨텍스트 목록을 받아 새 목록을 반환합니다.
    무효(is_valid=False)가 된 컨텍스트도 목록에 남겨 두면, 파이프라인이 걸러내면서 실패 사유를 보관합니다.
    """
    name: str = "Stage"
    order: int = 0

    @abstractmethod
    def process(self, contexts: List[SolutionContext]) -> List[SolutionContext]:
        raise NotImplementedError
