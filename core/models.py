"""
데이터 모델 정의

DB에서 읽어오는 문제/단원/학습지 데이터의 구조를 정의합니다.
- Problem 모델 클래스 (필터/정렬 대상, 읽기 전용 투영)
- ChapterNode / TagRow (단원 트리와 그 원천인 태그 경로 행)
- FilterCriteria / SortRule (학습지를 만든 조건, 재편집용으로 저장)
- Worksheet 메타데이터 모델
- SolveRecord / ProblemResult (학습지 풀이 채점 기록)
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
from enum import Enum
import json


def _dt(v):
    if not v:
        return None
    if isinstance(v, str):
        try:
            return datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError:
            return None
    return v


def _str_list(v) -> List[str]:
    """JSON 문자열/리스트/None 모두 문자열 리스트로."""
    if v is None:
        return []
    if isinstance(v, str):
        try:
            v = json.loads(v)
        except json.JSONDecodeError:
            return [v] if v else []
    if not isinstance(v, (list, tuple)):
        return []
    return [str(x) for x in v if x is not None]


def _opt_float(v) -> Optional[float]:
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _opt_int(v) -> Optional[int]:
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


class SortField(Enum):
    """정렬 필드. RANDOM/MANUAL은 UI 선택지가 아닌 저장용 표식"""
    CHAPTER = "chapter"
    TAGS = "tags"
    CORRECT_RATE = "correct_rate"
    EXAM_YEAR = "exam_year"
    PROBLEM_TYPE = "problem_type"
    RELATED_SUBJECTS = "related_subjects"
    RANDOM = "random"
    MANUAL = "manual"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class Problem:
    """문제 모델 - 필터/정렬 시스템은 이 객체를 변경하지 않음"""
    id: str = ""

    # 이미지 파일
    problem_filename: Optional[str] = None
    answer_filename: Optional[str] = None

    answer: Optional[int] = None  # 객관식 정답 (1~5)
    chapter_id: Optional[str] = None
    difficulty: str = ""
    problem_type: str = ""
    tags: List[str] = field(default_factory=list)  # 순서 있음 (태그 과목은 단원 경로 라벨)
    tag_ids: List[str] = field(default_factory=list)  # 태그 과목 단원 경로 ID
    related_subjects: List[str] = field(default_factory=list)
    correct_rate: Optional[float] = None  # 0~100
    exam_year: Optional[int] = None
    score: Optional[int] = None  # 배점 (2 또는 3점)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # 학습지 재구성 시 더 이상 존재하지 않는 문제의 자리 표시
    is_missing: bool = False

    @property
    def has_answer(self) -> bool:
        return bool(self.answer_filename)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "problem_filename": self.problem_filename,
            "answer_filename": self.answer_filename,
            "answer": self.answer,
            "chapter_id": self.chapter_id,
            "difficulty": self.difficulty,
            "problem_type": self.problem_type,
            "tags": list(self.tags),
            "tag_ids": list(self.tag_ids),
            "related_subjects": list(self.related_subjects),
            "correct_rate": self.correct_rate,
            "exam_year": self.exam_year,
            "score": self.score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "is_missing": self.is_missing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Problem":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            problem_filename=data.get("problem_filename"),
            answer_filename=data.get("answer_filename"),
            answer=_opt_int(data.get("answer")),
            chapter_id=data.get("chapter_id"),
            difficulty=data.get("difficulty") or "",
            problem_type=data.get("problem_type") or "",
            tags=_str_list(data.get("tags")),
            tag_ids=_str_list(data.get("tag_ids")),
            related_subjects=_str_list(data.get("related_subjects")),
            correct_rate=_opt_float(data.get("correct_rate")),
            exam_year=_opt_int(data.get("exam_year")),
            score=_opt_int(data.get("score")),
            created_at=_dt(data.get("created_at")),
            updated_at=_dt(data.get("updated_at")),
            is_missing=bool(data.get("is_missing", False)),
        )


@dataclass
class ChapterNode:
    """단원 트리 노드"""
    id: str
    label: str
    type: str = "category"  # category | item
    expanded: bool = False
    children: List["ChapterNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "expanded": self.expanded,
            "children": [c.to_dict() for c in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChapterNode":
        return cls(
            id=str(data.get("id", "")),
            label=data.get("label", "") or "",
            type=data.get("type", "category") or "category",
            expanded=bool(data.get("expanded", False)),
            children=[cls.from_dict(c) for c in (data.get("children") or [])],
        )


@dataclass
class TagRow:
    """태그 경로 한 줄 (루트 → 리프)"""
    tag_ids: List[str] = field(default_factory=list)
    tag_labels: List[str] = field(default_factory=list)
    problem_id: Optional[str] = None
    type: str = ""

    def path(self) -> List[Tuple[str, str]]:
        return list(zip(self.tag_ids, self.tag_labels))

    def is_well_formed(self) -> bool:
        return bool(self.tag_ids) and len(self.tag_ids) == len(self.tag_labels)

    @classmethod
    def from_dict(cls, data: dict) -> "TagRow":
        return cls(
            tag_ids=_str_list(data.get("tag_ids")),
            tag_labels=_str_list(data.get("tag_labels")),
            problem_id=data.get("problem_id"),
            type=data.get("type", "") or "",
        )


@dataclass
class FilterCriteria:
    """
    문제 필터 조건

    - selected_* 가 비어 있으면 해당 차원은 제약 없음
    - correct_rate_range는 양 끝 포함, 기본값 (0, 100)
    - problem_count는 결과 상한 (0이면 상한 없음)
    """
    selected_chapters: List[str] = field(default_factory=list)
    selected_difficulties: List[str] = field(default_factory=list)
    selected_problem_types: List[str] = field(default_factory=list)
    selected_subjects: List[str] = field(default_factory=list)
    correct_rate_range: Tuple[float, float] = (0.0, 100.0)
    problem_count: int = 0

    # 태그 과목/연도 조건
    selected_years: List[int] = field(default_factory=list)
    selected_grades: List[str] = field(default_factory=list)
    selected_months: List[str] = field(default_factory=list)
    selected_exam_types: List[str] = field(default_factory=list)

    def is_default_rate_range(self) -> bool:
        lo, hi = self.correct_rate_range
        return float(lo) <= 0 and float(hi) >= 100

    def to_dict(self) -> dict:
        """저장용 (원본 웹앱과 같은 camelCase 키)"""
        return {
            "selectedChapters": list(self.selected_chapters),
            "selectedDifficulties": list(self.selected_difficulties),
            "selectedProblemTypes": list(self.selected_problem_types),
            "selectedSubjects": list(self.selected_subjects),
            "correctRateRange": [self.correct_rate_range[0], self.correct_rate_range[1]],
            "problemCount": self.problem_count,
            "selectedYears": list(self.selected_years),
            "selectedGrades": list(self.selected_grades),
            "selectedMonths": list(self.selected_months),
            "selectedExamTypes": list(self.selected_exam_types),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FilterCriteria":
        data = data or {}
        rate = data.get("correctRateRange") or [0, 100]
        try:
            rate_range = (float(rate[0]), float(rate[1]))
        except (TypeError, ValueError, IndexError):
            rate_range = (0.0, 100.0)
        years = []
        for y in data.get("selectedYears") or []:
            yi = _opt_int(y)
            if yi is not None:
                years.append(yi)
        return cls(
            selected_chapters=_str_list(data.get("selectedChapters")),
            selected_difficulties=_str_list(data.get("selectedDifficulties")),
            selected_problem_types=_str_list(data.get("selectedProblemTypes")),
            selected_subjects=_str_list(data.get("selectedSubjects")),
            correct_rate_range=rate_range,
            problem_count=_opt_int(data.get("problemCount")) or 0,
            selected_years=years,
            selected_grades=_str_list(data.get("selectedGrades")),
            selected_months=_str_list(data.get("selectedMonths")),
            selected_exam_types=_str_list(data.get("selectedExamTypes")),
        )


@dataclass(frozen=True)
class SortRule:
    """정렬 규칙 1개"""
    field: SortField
    direction: SortDirection = SortDirection.ASC

    def to_dict(self) -> dict:
        return {"field": self.field.value, "direction": self.direction.value}

    @classmethod
    def from_dict(cls, data: dict) -> "SortRule":
        return cls(
            field=SortField(data["field"]),
            direction=SortDirection(data.get("direction") or "asc"),
        )


def sort_rules_from_list(data: Optional[Sequence[Any]]) -> List[SortRule]:
    """저장된 정렬 규칙 복원. 알 수 없는 필드는 건너뜀."""
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError:
            return []
    rules: List[SortRule] = []
    for item in data or []:
        if isinstance(item, SortRule):
            rules.append(item)
            continue
        try:
            rules.append(SortRule.from_dict(item))
        except (KeyError, TypeError, ValueError):
            continue
    return rules


@dataclass
class Worksheet:
    """
    학습지 메타데이터 모델

    - selected_problem_ids의 순서가 기준이며, 조회 시 이 순서대로 문제를 재구성합니다.
    - filters는 학습지를 만든 조건(재편집용), sorting은 적용한 정렬 규칙입니다.
    """

    id: Optional[str] = None

    title: str = ""
    author: str = ""
    created_at: Optional[datetime] = None

    selected_problem_ids: List[str] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)
    is_public: bool = False
    sorting: List[SortRule] = field(default_factory=list)
    created_by: Optional[str] = None  # 소유자

    @property
    def problem_count(self) -> int:
        return len(self.selected_problem_ids)

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "title": self.title,
            "author": self.author,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "selected_problem_ids": list(self.selected_problem_ids or []),
            "filters": dict(self.filters or {}),
            "is_public": self.is_public,
            "sorting": [r.to_dict() for r in self.sorting],
            "created_by": self.created_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Worksheet":
        filters = data.get("filters") or {}
        if isinstance(filters, str):
            try:
                filters = json.loads(filters)
            except json.JSONDecodeError:
                filters = {}

        return cls(
            id=data.get("_id"),
            title=data.get("title", "") or "",
            author=data.get("author", "") or "",
            created_at=_dt(data.get("created_at")),
            selected_problem_ids=_str_list(data.get("selected_problem_ids")),
            filters=dict(filters),
            is_public=bool(data.get("is_public", False)),
            sorting=sort_rules_from_list(data.get("sorting")),
            created_by=data.get("created_by"),
        )


@dataclass
class ProblemResult:
    """풀이 한 문제의 채점 결과"""
    user_answer: Optional[int]
    correct_answer: int
    is_correct: bool
    score: int  # 배점

    def to_dict(self) -> dict:
        return {
            "user_answer": self.user_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemResult":
        return cls(
            user_answer=_opt_int(data.get("user_answer")),
            correct_answer=int(data.get("correct_answer") or 0),
            is_correct=bool(data.get("is_correct", False)),
            score=int(data.get("score") or 0),
        )


@dataclass
class SolveRecord:
    """
    학습지 풀이 기록

    - results: problem_id -> ProblemResult (정답이 있는 문제만)
    - score / max_score: 맞힌 문제 배점 합 / 채점한 문제 배점 합
    """

    worksheet_id: str
    user_id: str
    results: Dict[str, ProblemResult] = field(default_factory=dict)
    score: int = 0
    max_score: int = 0
    correct_count: int = 0
    total_problems: int = 0
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def wrong_problem_ids(self) -> List[str]:
        return [pid for pid, r in self.results.items() if not r.is_correct]

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "worksheet_id": self.worksheet_id,
            "user_id": self.user_id,
            "score": self.score,
            "max_score": self.max_score,
            "correct_count": self.correct_count,
            "total_problems": self.total_problems,
            "results": {pid: r.to_dict() for pid, r in self.results.items()},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SolveRecord":
        results = data.get("results") or {}
        return cls(
            id=data.get("_id"),
            worksheet_id=str(data.get("worksheet_id") or ""),
            user_id=str(data.get("user_id") or ""),
            results={str(pid): ProblemResult.from_dict(r) for pid, r in results.items()},
            score=int(data.get("score") or 0),
            max_score=int(data.get("max_score") or 0),
            correct_count=int(data.get("correct_count") or 0),
            total_problems=int(data.get("total_problems") or 0),
            created_at=_dt(data.get("created_at")),
        )
