"""
학습지(Worksheet) 서비스 모듈

- 문제 필터 (단원/난이도/유형/과목/정답률 조건)
- 정렬 규칙 엔진 (다중 키 안정 정렬, 셔플, 프리셋)
- 학습지 저장/조회(재구성)/수정/삭제
- 풀이 채점 (정답 비교, 배점 합산)
"""

from .grading import grade_answers
from .problem_filter import ChapterMatchPolicy, ProblemFilter
from .sort_rules import (
    PRESET_RULES,
    SORT_FIELD_LABELS,
    apply_sort_rules,
    available_fields,
    matching_preset,
    mode_for_problems,
)
from .worksheet_service import (
    DefaultHydrator,
    ProblemHydrator,
    TaggedHydrator,
    WorksheetService,
)

__all__ = [
    "grade_answers",
    "ChapterMatchPolicy",
    "ProblemFilter",
    "PRESET_RULES",
    "SORT_FIELD_LABELS",
    "apply_sort_rules",
    "available_fields",
    "matching_preset",
    "mode_for_problems",
    "ProblemHydrator",
    "DefaultHydrator",
    "TaggedHydrator",
    "WorksheetService",
]
