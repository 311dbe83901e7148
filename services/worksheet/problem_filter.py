"""
문제 필터 (순수 로직)

필터 조건(FilterCriteria)의 각 차원을 술어로 만들고, 모든 술어를 통과한 문제만 남깁니다.
- 선택값이 비어 있는 차원은 제약 없음
- 정답률 범위가 기본값(0~100)이 아니면 정답률 없는 문제는 제외
- 입력 순서 유지, problem_count(>0)만큼 앞에서부터 자름
- 선택 단원이 하나도 없으면 결과는 항상 빈 목록

단원 매칭 방식은 과목 모드별로 명시적으로 고릅니다 (ChapterMatchPolicy).
- TREE: 통합사회. 선택 단원을 단원 트리의 하위 단원 전체로 확장한 뒤 chapter_id 포함 여부
- TAG_OVERLAP: 태그 과목. 문제의 단원 경로 태그(tag_ids) 중 하나라도 선택되어 있으면 통과,
  과목 루트(과목명)를 선택하면 그 과목 문제 전체
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Sequence, Set

from core.difficulty import DEFAULT_SCALE, MISSING_RATE_DEFAULT, DifficultyScale, matches_difficulty
from core.models import ChapterNode, FilterCriteria, Problem
from core.problem_id import parse_structured_id, subject_from_problem_id
from services.chapter.chapter_tree import expand_selection


Predicate = Callable[[Problem], bool]


class ChapterMatchPolicy(Enum):
    TREE = "tree"
    TAG_OVERLAP = "tag_overlap"


def _month_key(v) -> str:
    s = str(v).strip()
    return str(int(s)) if s.isdigit() else s


class ProblemFilter:
    """
    필터 조건 적용기

    Args:
        policy: 단원 매칭 방식
        content_tree: TREE 방식에서 하위 단원 확장에 쓰는 단원 트리
        scale: TREE 방식에서 정답률 → 난이도 변환 구간
    """

    def __init__(
        self,
        policy: ChapterMatchPolicy = ChapterMatchPolicy.TREE,
        content_tree: Optional[Sequence[ChapterNode]] = None,
        scale: DifficultyScale = DEFAULT_SCALE,
    ):
        self.policy = policy
        self.content_tree = list(content_tree or [])
        self.scale = scale

    # ----------------------------
    # 차원별 술어
    # ----------------------------
    def _chapter_predicate(self, selected: Set[str]) -> Predicate:
        if self.policy is ChapterMatchPolicy.TREE:
            allowed = set(selected) | expand_selection(self.content_tree, selected)
            return lambda p: p.chapter_id is not None and p.chapter_id in allowed

        def overlaps(p: Problem) -> bool:
            if p.chapter_id in selected or any(t in selected for t in p.tag_ids):
                return True
            subject = subject_from_problem_id(p.id)
            if subject and subject in selected:
                return True
            return any(s in selected for s in p.related_subjects)

        return overlaps

    def _difficulty_predicate(self, selected: Set[str]) -> Predicate:
        if self.policy is ChapterMatchPolicy.TREE:
            def by_rate(p: Problem) -> bool:
                rate = p.correct_rate if p.correct_rate is not None else MISSING_RATE_DEFAULT
                return self.scale.label_for(rate) in selected
            return by_rate

        # 태그 과목: 저장된 라벨 기준, 라벨 없는 문제는 통과
        return lambda p: not p.difficulty or matches_difficulty(p.difficulty, selected)

    @staticmethod
    def _problem_type_predicate(selected: Set[str]) -> Predicate:
        def check(p: Problem) -> bool:
            if p.problem_type:
                return p.problem_type in selected
            parsed = parse_structured_id(p.id)
            return parsed is not None and (parsed.problem_type in selected or parsed.exam_type in selected)
        return check

    @staticmethod
    def _subject_predicate(selected: Set[str]) -> Predicate:
        def check(p: Problem) -> bool:
            if any(s in selected for s in p.related_subjects):
                return True
            subject = subject_from_problem_id(p.id)
            return bool(subject) and subject in selected
        return check

    @staticmethod
    def _year_predicate(selected: Set[int]) -> Predicate:
        def check(p: Problem) -> bool:
            year = p.exam_year
            if year is None:
                parsed = parse_structured_id(p.id)
                year = parsed.exam_year if parsed else None
            return year is not None and year in selected
        return check

    @staticmethod
    def _parsed_field_predicate(selected: Set[str], attr: str, normalize=str) -> Predicate:
        wanted = {normalize(s) for s in selected}

        def check(p: Problem) -> bool:
            parsed = parse_structured_id(p.id)
            return parsed is not None and normalize(getattr(parsed, attr)) in wanted
        return check

    @staticmethod
    def _rate_predicate(lo: float, hi: float) -> Predicate:
        return lambda p: p.correct_rate is not None and lo <= p.correct_rate <= hi

    def build_predicates(self, criteria: FilterCriteria) -> List[Predicate]:
        """활성화된 차원의 술어 목록 (단원은 항상 포함)."""
        preds: List[Predicate] = [self._chapter_predicate(set(criteria.selected_chapters))]
        if criteria.selected_difficulties:
            preds.append(self._difficulty_predicate(set(criteria.selected_difficulties)))
        if criteria.selected_problem_types:
            preds.append(self._problem_type_predicate(set(criteria.selected_problem_types)))
        if criteria.selected_subjects:
            preds.append(self._subject_predicate(set(criteria.selected_subjects)))
        if criteria.selected_years:
            preds.append(self._year_predicate({int(y) for y in criteria.selected_years}))
        if criteria.selected_grades:
            preds.append(self._parsed_field_predicate(set(criteria.selected_grades), "grade"))
        if criteria.selected_months:
            preds.append(self._parsed_field_predicate(set(criteria.selected_months), "month", _month_key))
        if criteria.selected_exam_types:
            preds.append(self._parsed_field_predicate(set(criteria.selected_exam_types), "exam_type"))
        if not criteria.is_default_rate_range():
            lo, hi = criteria.correct_rate_range
            preds.append(self._rate_predicate(float(lo), float(hi)))
        return preds

    def matches(self, problem: Problem, criteria: FilterCriteria) -> bool:
        if not criteria.selected_chapters:
            return False
        return all(pred(problem) for pred in self.build_predicates(criteria))

    def filter(self, problems: Sequence[Problem], criteria: FilterCriteria) -> List[Problem]:
        """조건을 모두 만족하는 문제 (입력 순서 유지, 개수 상한 적용)."""
        if not criteria.selected_chapters:
            return []

        preds = self.build_predicates(criteria)
        out = [p for p in problems if all(pred(p) for pred in preds)]
        if criteria.problem_count and criteria.problem_count > 0:
            out = out[: criteria.problem_count]
        return out
