"""
예외 정의

학습지 코어에서 호출자에게 전달하는 오류 유형입니다.
- ValidationError: 입력 검증 실패 (빈 선택, 잘못된 문제 ID 등). 저장 전에 발생
- NotFoundError: 학습지 없음
- AuthorizationError: 학습지는 있으나 요청자가 소유자가 아님
- StoreError: DB 미연결 또는 조회/저장 실패
- ImageFetchError / RenderError: 외부 이미지·PDF 렌더러 실패
"""
from typing import Optional


class WorksheetError(Exception):
    """학습지 코어 공통 예외"""


class ValidationError(WorksheetError, ValueError):
    """입력 검증 실패"""


class NotFoundError(WorksheetError, LookupError):
    """대상 레코드 없음"""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind}을(를) 찾을 수 없습니다: {record_id}")


class AuthorizationError(WorksheetError, PermissionError):
    """소유자가 아닌 요청자"""

    def __init__(self, record_id: str, requester: Optional[str]):
        self.record_id = record_id
        self.requester = requester
        super().__init__(f"학습지 {record_id}에 대한 권한이 없습니다 (요청자={requester})")


class StoreError(WorksheetError, ConnectionError):
    """DB 연결/조회 실패"""


class ImageFetchError(WorksheetError):
    """문제 이미지 로드 실패"""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"이미지를 불러오지 못했습니다: {filename} ({reason})")


class RenderError(WorksheetError):
    """PDF 렌더링 실패"""
