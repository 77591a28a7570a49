# core/exceptions.py

"""
이 모듈은 연속보 배근 엔진에서 사용되는 모든 사용자 정의 예외 클래스를
중앙에서 관리합니다.

예외는 '잘못된 입력/설정'처럼 프로그램이 더 진행할 수 없는 경우에만 사용합니다.
배근 불가, 철근량 부족, 규칙 위반 같은 설계 결과는 예외가 아니라
유효하지 않은(IsValid=False) 해(solution) 객체로 표현됩니다.
모든 예외는 기본 RCDException을 상속받습니다.
"""

class RCDException(Exception):
    """
    연속보 배근 엔진(Reinforced Concrete Design)의 모든 사용자 정의 예외에 대한 기본 클래스입니다.
    오케스트레이터는 보 1개 단위로, 배치 실행기는 설정 조합 단위로 이 예외를 잡아 실패 결과로 기록합니다.
    """
    pass

# --- 입력값 및 정의 관련 오류 ---

class MaterialError(RCDException):
    """재료(철근 직경, 강종, 콘크리트 등급) 정의와 관련된 오류입니다."""
    pass

class SectionError(RCDException):
    """경간(span) 및 보 그룹의 기하 정보 정의와 관련된 오류입니다."""
    pass

class ConfigurationError(RCDException):
    """
    설정값(RebarSettings)이 유효 범위를 벗어나거나 해석할 수 없을 때 발생하는 예외입니다.
    설정은 해석 시작 시 한 번만 검증되므로, 이 예외는 계산 도중에는 발생하지 않습니다.
    """
    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = f"Invalid setting '{field_name}': {message}"
        super().__init__(self.message)

# --- 설계 계산 과정에서 발생하는 오류 ---

class DesignError(RCDException):
    """파이프라인 구성이나 호출 방법이 잘못되었을 때 발생하는 일반적인 오류입니다."""
    pass
