"""
학습지 문제 정렬 규칙 엔진 (순수 로직)

규칙(SortRule) 목록의 해석:
- [] : 입력 순서 그대로 (복사본)
- [RANDOM] : 완전 셔플 (Fisher-Yates, 모든 순열이 같은 확률)
- [MANUAL] : 수동(드래그) 정렬 표식, 입력 순서 그대로
- 그 외 : 우선순위 순서의 다중 키 안정 정렬
  (앞 규칙이 같으면 다음 규칙, 모두 같으면 입력 순서 유지)

필드 비교는 과목 모드(ChapterMatchPolicy)에 따라 다릅니다.
- 통합사회(TREE): 단원은 단원 트리 인덱스 경로 비교, 태그는 문자열 배열 비교
- 태그 과목(TAG_OVERLAP): 단원/태그 모두 태그 라벨의 앞 번호("1", "1-1") 비교 후 문자열 비교

입력 리스트와 문제 객체는 변경하지 않습니다.
"""

from __future__ import annotations

import functools
import random
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from core.difficulty import MISSING_RATE_DEFAULT
from core.models import ChapterNode, Problem, SortDirection, SortField, SortRule
from core.problem_id import classify_problem_ids, parse_structured_id
from services.chapter.chapter_tree import build_chapter_path_map
from services.worksheet.problem_filter import ChapterMatchPolicy


# UI 표시용 (RANDOM/MANUAL은 저장용 표식이라 제외)
SORT_FIELD_LABELS: Dict[SortField, str] = {
    SortField.CHAPTER: "단원",
    SortField.TAGS: "태그",
    SortField.CORRECT_RATE: "정답률",
    SortField.EXAM_YEAR: "출제년도",
    SortField.PROBLEM_TYPE: "문제 유형",
    SortField.RELATED_SUBJECTS: "관련 과목",
}

_FIELDS_BY_MODE: Dict[ChapterMatchPolicy, List[SortField]] = {
    ChapterMatchPolicy.TREE: [
        SortField.CHAPTER,
        SortField.TAGS,
        SortField.CORRECT_RATE,
        SortField.EXAM_YEAR,
        SortField.PROBLEM_TYPE,
        SortField.RELATED_SUBJECTS,
    ],
    ChapterMatchPolicy.TAG_OVERLAP: [
        SortField.CHAPTER,
        SortField.CORRECT_RATE,
        SortField.EXAM_YEAR,
        SortField.PROBLEM_TYPE,
    ],
}

PRESET_MANUAL = "수동"
PRESET_RANDOM = "무작위"
PRESET_PRACTICE = "연습"
PRESET_CUSTOM = "커스텀"

PRESET_RULES: Dict[ChapterMatchPolicy, Dict[str, List[SortRule]]] = {
    ChapterMatchPolicy.TREE: {
        PRESET_MANUAL: [SortRule(SortField.MANUAL)],
        PRESET_RANDOM: [SortRule(SortField.RANDOM)],
        # 정답률 높은 문제(쉬운 문제)부터
        PRESET_PRACTICE: [
            SortRule(SortField.CHAPTER, SortDirection.ASC),
            SortRule(SortField.TAGS, SortDirection.ASC),
            SortRule(SortField.CORRECT_RATE, SortDirection.DESC),
        ],
    },
    ChapterMatchPolicy.TAG_OVERLAP: {
        PRESET_MANUAL: [SortRule(SortField.MANUAL)],
        PRESET_RANDOM: [SortRule(SortField.RANDOM)],
        PRESET_PRACTICE: [
            SortRule(SortField.CHAPTER, SortDirection.ASC),
            SortRule(SortField.CORRECT_RATE, SortDirection.DESC),
        ],
    },
}


def available_fields(mode: ChapterMatchPolicy) -> List[SortField]:
    return list(_FIELDS_BY_MODE[mode])


def matching_preset(rules: Sequence[SortRule], mode: ChapterMatchPolicy) -> str:
    """현재 규칙과 일치하는 프리셋 이름. 빈 규칙/기타 조합은 '커스텀'."""
    rules = list(rules)
    if len(rules) == 1 and rules[0].field is SortField.MANUAL:
        return PRESET_MANUAL
    if len(rules) == 1 and rules[0].field is SortField.RANDOM:
        return PRESET_RANDOM
    if rules and rules == PRESET_RULES[mode][PRESET_PRACTICE]:
        return PRESET_PRACTICE
    return PRESET_CUSTOM


def mode_for_problems(problems: Sequence[Problem]) -> ChapterMatchPolicy:
    """문제 목록의 ID 체계로 정렬 모드 결정 (태그/경제 ID면 TAG_OVERLAP)."""
    kind = classify_problem_ids([p.id for p in problems])
    return ChapterMatchPolicy.TAG_OVERLAP if kind.is_structured else ChapterMatchPolicy.TREE


# ----------------------------
# 비교 함수
# ----------------------------
_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:[-.]\d+)*)")


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def compare_sequences(a: Sequence, b: Sequence) -> int:
    """앞에서부터 원소 비교, 공통 구간이 같으면 짧은 쪽이 앞."""
    for x, y in zip(a, b):
        c = _cmp(x, y)
        if c:
            return c
    return _cmp(len(a), len(b))


def leading_number(label: str) -> Optional[List[int]]:
    """'1-1 시장과 경쟁' -> [1, 1], 번호가 없으면 None"""
    m = _LEADING_NUMBER.match(label or "")
    if not m:
        return None
    return [int(x) for x in re.split(r"[-.]", m.group(1))]


def compare_numbered_labels(a: Sequence[str], b: Sequence[str]) -> int:
    """
    태그 과목 단원 라벨 배열 비교

    - 같은 위치의 라벨끼리 앞 번호를 정수 배열로 비교 (둘 다 번호가 있을 때)
    - 번호가 같거나 없으면 라벨 문자열 비교
    - 공통 구간이 모두 같으면 짧은 쪽이 앞
    """
    for x, y in zip(a, b):
        nx, ny = leading_number(x), leading_number(y)
        if nx is not None and ny is not None:
            c = compare_sequences(nx, ny)
            if c:
                return c
        c = _cmp(x, y)
        if c:
            return c
    return _cmp(len(a), len(b))


@dataclass
class SortContext:
    mode: ChapterMatchPolicy
    path_map: Dict[str, List[int]] = field(default_factory=dict)


Comparator = Callable[[Problem, Problem, SortContext], int]


def _compare_chapter(a: Problem, b: Problem, ctx: SortContext) -> int:
    if ctx.mode is ChapterMatchPolicy.TAG_OVERLAP:
        return compare_numbered_labels(a.tags, b.tags)
    pa = ctx.path_map.get(a.chapter_id) if a.chapter_id else None
    pb = ctx.path_map.get(b.chapter_id) if b.chapter_id else None
    # 트리에 없는 단원은 뒤로
    if pa is None and pb is None:
        return 0
    if pa is None:
        return 1
    if pb is None:
        return -1
    return compare_sequences(pa, pb)


def _compare_tags(a: Problem, b: Problem, ctx: SortContext) -> int:
    if ctx.mode is ChapterMatchPolicy.TAG_OVERLAP:
        return compare_numbered_labels(a.tags, b.tags)
    return compare_sequences(a.tags, b.tags)


def _compare_related_subjects(a: Problem, b: Problem, ctx: SortContext) -> int:
    return compare_sequences(a.related_subjects, b.related_subjects)


def _rate(p: Problem) -> float:
    return p.correct_rate if p.correct_rate is not None else MISSING_RATE_DEFAULT


def _compare_correct_rate(a: Problem, b: Problem, ctx: SortContext) -> int:
    return _cmp(_rate(a), _rate(b))


def _exam_year(p: Problem) -> int:
    if p.exam_year is not None:
        return p.exam_year
    parsed = parse_structured_id(p.id)
    return (parsed.exam_year or 0) if parsed else 0


def _compare_exam_year(a: Problem, b: Problem, ctx: SortContext) -> int:
    return _cmp(_exam_year(a), _exam_year(b))


def _problem_type(p: Problem) -> str:
    if p.problem_type:
        return p.problem_type
    parsed = parse_structured_id(p.id)
    return parsed.exam_type if parsed else ""


def _compare_problem_type(a: Problem, b: Problem, ctx: SortContext) -> int:
    return _cmp(_problem_type(a), _problem_type(b))


_COMPARATORS: Dict[SortField, Comparator] = {
    SortField.CHAPTER: _compare_chapter,
    SortField.TAGS: _compare_tags,
    SortField.CORRECT_RATE: _compare_correct_rate,
    SortField.EXAM_YEAR: _compare_exam_year,
    SortField.PROBLEM_TYPE: _compare_problem_type,
    SortField.RELATED_SUBJECTS: _compare_related_subjects,
}

# 순서를 정하지 않는 표식 필드
_MARKER_FIELDS = frozenset({SortField.RANDOM, SortField.MANUAL})

_unhandled = set(SortField) - set(_COMPARATORS) - _MARKER_FIELDS
if _unhandled:
    raise RuntimeError(f"비교 함수가 없는 정렬 필드: {sorted(f.value for f in _unhandled)}")


def shuffle(problems: Sequence[Problem], rng: Optional[random.Random] = None) -> List[Problem]:
    """Fisher-Yates 셔플 (복사본)."""
    rng = rng or random.Random()
    out = list(problems)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def build_comparator(rules: Sequence[SortRule], ctx: SortContext) -> Callable[[Problem, Problem], int]:
    active = [r for r in rules if r.field not in _MARKER_FIELDS]

    def compare(a: Problem, b: Problem) -> int:
        for rule in active:
            c = _COMPARATORS[rule.field](a, b, ctx)
            if rule.direction is SortDirection.DESC:
                c = -c
            if c:
                return c
        return 0

    return compare


def apply_sort_rules(
    problems: Sequence[Problem],
    rules: Sequence[SortRule],
    mode: ChapterMatchPolicy = ChapterMatchPolicy.TREE,
    content_tree: Optional[Sequence[ChapterNode]] = None,
    rng: Optional[random.Random] = None,
) -> List[Problem]:
    """
    정렬 규칙 적용 (항상 새 리스트 반환)

    Args:
        problems: 정렬할 문제 목록
        rules: 우선순위 순서의 정렬 규칙
        mode: 과목 모드 (단원/태그 비교 방식)
        content_tree: TREE 모드 단원 경로 비교에 쓰는 단원 트리
        rng: 셔플용 난수 생성기 (테스트에서 seed 고정)
    """
    rules = list(rules or [])
    if not problems or not rules:
        return list(problems)

    if len(rules) == 1 and rules[0].field is SortField.RANDOM:
        return shuffle(problems, rng)
    if len(rules) == 1 and rules[0].field is SortField.MANUAL:
        return list(problems)

    ctx = SortContext(mode=mode)
    if mode is ChapterMatchPolicy.TREE:
        ctx.path_map = build_chapter_path_map(content_tree or [])

    # sorted()는 안정 정렬: 모든 규칙이 같으면 입력 순서 유지
    return sorted(problems, key=functools.cmp_to_key(build_comparator(rules, ctx)))
