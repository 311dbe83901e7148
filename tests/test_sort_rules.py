import random
from collections import Counter

import pytest

from core.models import ChapterNode, Problem, SortDirection, SortField, SortRule
from services.worksheet.problem_filter import ChapterMatchPolicy
from services.worksheet.sort_rules import (
    PRESET_CUSTOM,
    PRESET_MANUAL,
    PRESET_PRACTICE,
    PRESET_RANDOM,
    PRESET_RULES,
    apply_sort_rules,
    available_fields,
    compare_numbered_labels,
    compare_sequences,
    leading_number,
    matching_preset,
    mode_for_problems,
    shuffle,
)


TREE = [
    ChapterNode(id="u1", label="I", children=[
        ChapterNode(id="u1-1", label="01", type="item"),
        ChapterNode(id="u1-2", label="02", type="item"),
    ]),
    ChapterNode(id="u2", label="II", children=[ChapterNode(id="u2-1", label="01", type="item")]),
]


def _ids(problems):
    return [p.id for p in problems]


def test_correct_rate_missing_sorts_as_midpoint():
    problems = [
        Problem(id="problem1", correct_rate=80.0),
        Problem(id="problem2", correct_rate=None),
        Problem(id="problem3", correct_rate=30.0),
    ]
    result = apply_sort_rules(problems, [SortRule(SortField.CORRECT_RATE, SortDirection.ASC)])
    assert _ids(result) == ["problem3", "problem2", "problem1"]
    assert _ids(problems) == ["problem1", "problem2", "problem3"]


def test_random_returns_permutation():
    problems = [Problem(id=str(i)) for i in range(1, 6)]
    first = apply_sort_rules(problems, [SortRule(SortField.RANDOM)])
    second = apply_sort_rules(problems, [SortRule(SortField.RANDOM)])
    for result in (first, second):
        assert sorted(_ids(result)) == ["1", "2", "3", "4", "5"]
        assert len(result) == 5


def test_shuffle_is_uniform():
    rng = random.Random(1234)
    items = [Problem(id=str(i)) for i in range(4)]
    trials = 24000
    positions = {p.id: Counter() for p in items}
    perms = Counter()
    for _ in range(trials):
        out = shuffle(items, rng)
        perms[tuple(_ids(out))] += 1
        for pos, p in enumerate(out):
            positions[p.id][pos] += 1

    expected_pos = trials / 4
    for counter in positions.values():
        for pos in range(4):
            assert abs(counter[pos] - expected_pos) < expected_pos * 0.05

    assert len(perms) == 24
    expected_perm = trials / 24
    for count in perms.values():
        assert abs(count - expected_perm) < expected_perm * 0.15


def test_empty_and_manual_rules_keep_order():
    problems = [Problem(id="b"), Problem(id="a")]
    for rules in ([], [SortRule(SortField.MANUAL)]):
        result = apply_sort_rules(problems, rules)
        assert _ids(result) == ["b", "a"]
        assert result is not problems


def test_stable_when_all_rules_tie():
    problems = [Problem(id=str(i), correct_rate=50.0, exam_year=2024, tags=["x"]) for i in range(20)]
    rules = [
        SortRule(SortField.CORRECT_RATE, SortDirection.DESC),
        SortRule(SortField.EXAM_YEAR),
        SortRule(SortField.TAGS),
    ]
    assert _ids(apply_sort_rules(problems, rules)) == [str(i) for i in range(20)]


def test_multi_key_with_direction_per_rule():
    problems = [
        Problem(id="a", exam_year=2023, correct_rate=40.0),
        Problem(id="b", exam_year=2024, correct_rate=90.0),
        Problem(id="c", exam_year=2023, correct_rate=70.0),
        Problem(id="d", exam_year=2024, correct_rate=10.0),
    ]
    rules = [SortRule(SortField.EXAM_YEAR, SortDirection.DESC), SortRule(SortField.CORRECT_RATE)]
    assert _ids(apply_sort_rules(problems, rules)) == ["d", "b", "a", "c"]


def test_sort_is_deterministic():
    rng = random.Random(3)
    problems = [
        Problem(id=str(i), correct_rate=float(rng.randint(0, 5) * 20), exam_year=rng.choice([2022, 2023]))
        for i in range(30)
    ]
    rules = [SortRule(SortField.EXAM_YEAR), SortRule(SortField.CORRECT_RATE, SortDirection.DESC)]
    assert _ids(apply_sort_rules(problems, rules)) == _ids(apply_sort_rules(problems, rules))


def test_chapter_by_tree_path():
    problems = [
        Problem(id="p1", chapter_id="u2-1"),
        Problem(id="p2", chapter_id="unknown"),
        Problem(id="p3", chapter_id="u1-2"),
        Problem(id="p4", chapter_id="u1-1"),
    ]
    result = apply_sort_rules(problems, [SortRule(SortField.CHAPTER)], content_tree=TREE)
    assert _ids(result) == ["p4", "p3", "p1", "p2"]


def test_chapter_by_numbered_labels_in_tag_mode():
    problems = [
        Problem(id="경제_고3_2024_03_학평_1_문제", tags=["2. 시장", "2-10. 시장 실패"]),
        Problem(id="경제_고3_2024_03_학평_2_문제", tags=["2. 시장", "2-2. 수요"]),
        Problem(id="경제_고3_2024_03_학평_3_문제", tags=["1. 경제", "1-1. 희소성"]),
    ]
    result = apply_sort_rules(problems, [SortRule(SortField.CHAPTER)], ChapterMatchPolicy.TAG_OVERLAP)
    assert [p.id[-4:] for p in result] == ["3_문제", "2_문제", "1_문제"]


def test_exam_year_and_type_derived_from_id():
    problems = [
        Problem(id="사회문화_고3_2024_03_학평_1_문제"),
        Problem(id="사회문화_고3_2022_06_모평_1_문제"),
        Problem(id="1001"),
    ]
    by_year = apply_sort_rules(problems, [SortRule(SortField.EXAM_YEAR)], ChapterMatchPolicy.TAG_OVERLAP)
    assert _ids(by_year) == ["1001", "사회문화_고3_2022_06_모평_1_문제", "사회문화_고3_2024_03_학평_1_문제"]
    by_type = apply_sort_rules(problems[:2], [SortRule(SortField.PROBLEM_TYPE)], ChapterMatchPolicy.TAG_OVERLAP)
    assert _ids(by_type) == ["사회문화_고3_2022_06_모평_1_문제", "사회문화_고3_2024_03_학평_1_문제"]


def test_related_subjects_shorter_first():
    problems = [
        Problem(id="a", related_subjects=["통합사회1", "통합사회2"]),
        Problem(id="b", related_subjects=["통합사회1"]),
    ]
    result = apply_sort_rules(problems, [SortRule(SortField.RELATED_SUBJECTS)])
    assert _ids(result) == ["b", "a"]


def test_markers_are_ignored_in_mixed_rules():
    problems = [Problem(id="a", correct_rate=90.0), Problem(id="b", correct_rate=10.0)]
    rules = [SortRule(SortField.RANDOM), SortRule(SortField.CORRECT_RATE)]
    assert _ids(apply_sort_rules(problems, rules)) == ["b", "a"]


def test_comparison_helpers():
    assert compare_sequences([1, 2], [1, 2, 0]) < 0
    assert compare_sequences([2], [1, 9]) > 0
    assert compare_sequences([], []) == 0
    assert leading_number("1-10 시장") == [1, 10]
    assert leading_number("1.2 항목") == [1, 2]
    assert leading_number("시장") is None
    assert compare_numbered_labels(["2"], ["10"]) < 0
    assert compare_numbered_labels(["가"], ["나"]) < 0


@pytest.mark.parametrize("mode", list(ChapterMatchPolicy))
def test_presets(mode):
    assert matching_preset(PRESET_RULES[mode][PRESET_PRACTICE], mode) == PRESET_PRACTICE
    assert matching_preset([SortRule(SortField.MANUAL)], mode) == PRESET_MANUAL
    assert matching_preset([SortRule(SortField.RANDOM)], mode) == PRESET_RANDOM
    assert matching_preset([], mode) == PRESET_CUSTOM
    assert matching_preset([SortRule(SortField.EXAM_YEAR)], mode) == PRESET_CUSTOM
    assert SortField.CHAPTER in available_fields(mode)


def test_practice_preset_order():
    rules = PRESET_RULES[ChapterMatchPolicy.TREE][PRESET_PRACTICE]
    assert [(r.field, r.direction) for r in rules] == [
        (SortField.CHAPTER, SortDirection.ASC),
        (SortField.TAGS, SortDirection.ASC),
        (SortField.CORRECT_RATE, SortDirection.DESC),
    ]
    assert SortField.TAGS not in available_fields(ChapterMatchPolicy.TAG_OVERLAP)


def test_mode_for_problems():
    assert mode_for_problems([Problem(id="1")]) is ChapterMatchPolicy.TREE
    assert mode_for_problems([Problem(id="경제_고3_2024_03_학평_1_문제")]) is ChapterMatchPolicy.TAG_OVERLAP
