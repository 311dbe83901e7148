"""
문제 ID 분류/파싱

문제 ID는 두 가지 체계를 사용합니다.
- 기본(통합사회): DB surrogate key 문자열
- 태그 과목(경제, 사회문화, 생활과윤리, 세계지리, 한국지리):
  "{과목}_{학년}_{연도}_{월}_{시험유형}_{문항번호}_{문제|해설}" 구조 문자열
  예) 경제_고3_2024_03_학평_1_문제

ID 체계는 경계에서 classify_problem_id()로 판별하고,
하위 코드는 판별된 ProblemIdKind를 전달받아 사용합니다.
학습지 조회는 ID마다 체계를 판별해 묶음(group_by_kind)별로 처리합니다.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from core.exceptions import ValidationError


logger = logging.getLogger(__name__)


ECONOMY_SUBJECT = "경제"
TAGGED_SUBJECTS = ("경제", "사회문화", "생활과윤리", "세계지리", "한국지리")
TAGGED_SUBJECT_PREFIXES = tuple(f"{s}_" for s in TAGGED_SUBJECTS)

PROBLEM_SUFFIX = "_문제"
ANSWER_SUFFIX = "_해설"

# 경제는 과목 공통 태그 타입이 아니라 MT 단원 태그를 사용
ECONOMY_TAG_TYPE = "MT_단원_태그"


class ProblemIdKind(Enum):
    """문제 ID 네임스페이스"""
    DEFAULT = "default"
    TAGGED = "tagged"
    ECONOMY = "economy"

    @property
    def is_structured(self) -> bool:
        return self is not ProblemIdKind.DEFAULT


@dataclass(frozen=True)
class ParsedProblemId:
    """구조화된 문제 ID 파싱 결과"""
    subject: str
    grade: str
    year: str
    month: str
    exam_type: str
    question_number: int
    suffix: str = ""  # "문제" | "해설" | ""

    @property
    def exam_year(self) -> Optional[int]:
        try:
            return int(self.year)
        except ValueError:
            return None

    @property
    def month_number(self) -> Optional[int]:
        try:
            return int(self.month)
        except ValueError:
            return None

    @property
    def problem_type(self) -> str:
        """표시용 문제 유형: 예) '학평 2024년 3월'"""
        month = self.month_number
        month_text = str(month) if month is not None else self.month
        return f"{self.exam_type} {self.year}년 {month_text}월"


def strip_suffix(problem_id: str) -> str:
    for suffix in (PROBLEM_SUFFIX, ANSWER_SUFFIX):
        if problem_id.endswith(suffix):
            return problem_id[: -len(suffix)]
    return problem_id


def parse_problem_id(problem_id: str) -> Optional[ParsedProblemId]:
    """
    구조화된 문제 ID를 파싱합니다.

    - 끝의 _문제/_해설 접미사를 먼저 제거
    - '_'로 분리해 최소 6개 세그먼트 + 정수 문항번호 필요
    - 형식이 맞지 않으면 추측하지 않고 None 반환
    """
    if not problem_id or not isinstance(problem_id, str):
        return None

    suffix = ""
    if problem_id.endswith(PROBLEM_SUFFIX):
        suffix = "문제"
    elif problem_id.endswith(ANSWER_SUFFIX):
        suffix = "해설"

    parts = strip_suffix(problem_id).split("_")
    if len(parts) < 6:
        logger.warning("잘못된 문제 ID 형식: %s", problem_id)
        return None

    subject, grade, year, month, exam_type = parts[:5]
    try:
        question_number = int(parts[5])
    except ValueError:
        logger.warning("문항번호를 해석할 수 없는 문제 ID: %s", problem_id)
        return None

    return ParsedProblemId(
        subject=subject,
        grade=grade,
        year=year,
        month=month,
        exam_type=exam_type,
        question_number=question_number,
        suffix=suffix,
    )


def require_problem_id(problem_id: str) -> ParsedProblemId:
    parsed = parse_problem_id(problem_id)
    if parsed is None:
        raise ValidationError(f"문제 ID 형식이 올바르지 않습니다: {problem_id!r}")
    return parsed


def classify_problem_id(problem_id: str) -> ProblemIdKind:
    pid = problem_id or ""
    if pid.startswith(f"{ECONOMY_SUBJECT}_"):
        return ProblemIdKind.ECONOMY
    if pid.startswith(TAGGED_SUBJECT_PREFIXES):
        return ProblemIdKind.TAGGED
    return ProblemIdKind.DEFAULT


def classify_problem_ids(problem_ids: Sequence[str]) -> ProblemIdKind:
    """문제 목록의 대표 체계 (첫 ID 기준, 빈 목록은 DEFAULT). 필터/정렬 모드 판별용."""
    if not problem_ids:
        return ProblemIdKind.DEFAULT
    return classify_problem_id(problem_ids[0])


def group_by_kind(problem_ids: Sequence[str]) -> Dict[ProblemIdKind, List[str]]:
    """ID를 체계별로 묶음 (체계 안에서는 입력 순서 유지)."""
    groups: Dict[ProblemIdKind, List[str]] = {}
    for pid in problem_ids:
        groups.setdefault(classify_problem_id(pid), []).append(pid)
    return groups


def parse_structured_id(problem_id: str) -> Optional[ParsedProblemId]:
    """태그 과목 ID일 때만 파싱 (기본 ID는 경고 없이 None)."""
    if not classify_problem_id(problem_id).is_structured:
        return None
    return parse_problem_id(problem_id)


def subject_from_problem_id(problem_id: str) -> Optional[str]:
    for subject in TAGGED_SUBJECTS:
        if (problem_id or "").startswith(f"{subject}_"):
            return subject
    return None


def answer_id_for(problem_id: str) -> str:
    if problem_id.endswith(PROBLEM_SUFFIX):
        return problem_id[: -len(PROBLEM_SUFFIX)] + ANSWER_SUFFIX
    return problem_id


def tag_type_for_subject(subject: str) -> str:
    """과목별 단원 태그 타입: 예) '사회문화' -> '단원_사회탐구_사회문화'"""
    if subject == ECONOMY_SUBJECT:
        return ECONOMY_TAG_TYPE
    return f"단원_사회탐구_{subject}"
