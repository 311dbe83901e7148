from core.difficulty import ECONOMY_SCALE
from core.models import ChapterNode, FilterCriteria, Problem
from services.chapter.chapter_service import ChapterService
from services.problem.problem_service import ProblemService
from services.worksheet.problem_filter import ChapterMatchPolicy, ProblemFilter


TREE = [
    ChapterNode(id="u1", label="I", children=[
        ChapterNode(id="u1-1", label="01", type="item"),
        ChapterNode(id="u1-2", label="02", type="item"),
    ]),
    ChapterNode(id="u2", label="II", children=[ChapterNode(id="u2-1", label="01", type="item")]),
]


def _problems():
    return [
        Problem(id=str(i), chapter_id=ch, correct_rate=rate, problem_type=ptype, exam_year=year)
        for i, (ch, rate, ptype, year) in enumerate([
            ("u1-1", 80.0, "기출", 2023),
            ("u1-2", None, "기출", 2024),
            ("u2-1", 30.0, "자작", 2024),
            ("u1-1", 55.0, "자작", 2022),
            ("u2-1", 65.0, "기출", 2023),
        ], start=1)
    ]


def _filter():
    return ProblemFilter(ChapterMatchPolicy.TREE, content_tree=TREE)


def test_no_chapter_selected_returns_empty():
    problems = [Problem(id=str(i), chapter_id="u1-1", correct_rate=50.0) for i in range(10)]
    assert _filter().filter(problems, FilterCriteria()) == []
    assert not _filter().matches(problems[0], FilterCriteria())


def test_rate_range_excludes_missing_rate():
    criteria = FilterCriteria(selected_chapters=["u1", "u2"], correct_rate_range=(40, 70))
    result = _filter().filter(_problems(), criteria)
    assert [p.id for p in result] == ["4", "5"]


def test_default_rate_range_keeps_missing_rate():
    criteria = FilterCriteria(selected_chapters=["u1"])
    assert [p.id for p in _filter().filter(_problems(), criteria)] == ["1", "2", "4"]


def test_parent_selection_expands_to_descendants():
    criteria = FilterCriteria(selected_chapters=["u2"])
    assert [p.id for p in _filter().filter(_problems(), criteria)] == ["3", "5"]
    leaf = FilterCriteria(selected_chapters=["u1-2"])
    assert [p.id for p in _filter().filter(_problems(), leaf)] == ["2"]


def test_difficulty_from_rate_in_tree_mode():
    criteria = FilterCriteria(selected_chapters=["u1", "u2"], selected_difficulties=["상"])
    assert [p.id for p in _filter().filter(_problems(), criteria)] == ["3"]
    # 정답률 없는 문제는 50으로 보고 '중'
    mid = FilterCriteria(selected_chapters=["u1", "u2"], selected_difficulties=["중"])
    assert [p.id for p in _filter().filter(_problems(), mid)] == ["2", "4", "5"]


def test_type_year_and_count():
    criteria = FilterCriteria(
        selected_chapters=["u1", "u2"],
        selected_problem_types=["기출"],
        selected_years=[2023, 2024],
        problem_count=2,
    )
    assert [p.id for p in _filter().filter(_problems(), criteria)] == ["1", "2"]


def test_filter_preserves_input_order_and_does_not_mutate():
    problems = list(reversed(_problems()))
    before = [p.to_dict() for p in problems]
    result = _filter().filter(problems, FilterCriteria(selected_chapters=["u1", "u2"]))
    assert [p.id for p in result] == ["5", "4", "3", "2", "1"]
    assert [p.to_dict() for p in problems] == before


def test_filter_is_idempotent():
    criteria = FilterCriteria(selected_chapters=["u1", "u2"], correct_rate_range=(20, 70), problem_count=2)
    f = _filter()
    once = f.filter(_problems(), criteria)
    assert f.filter(once, criteria) == once


def test_adding_constraints_never_grows_result():
    f = _filter()
    base = FilterCriteria(selected_chapters=["u1", "u2"])
    constrained = [
        FilterCriteria(selected_chapters=["u1", "u2"], selected_difficulties=["하"]),
        FilterCriteria(selected_chapters=["u1", "u2"], selected_problem_types=["자작"]),
        FilterCriteria(selected_chapters=["u1", "u2"], correct_rate_range=(0, 60)),
        FilterCriteria(selected_chapters=["u1", "u2"], selected_years=[2022]),
    ]
    full = len(f.filter(_problems(), base))
    for criteria in constrained:
        assert len(f.filter(_problems(), criteria)) <= full


def _tagged():
    return [
        Problem(
            id="경제_고3_2024_03_학평_1_문제",
            tag_ids=["경제-1", "경제-1-1"],
            tags=["1. 경제", "1-1. 희소성"],
            difficulty="중상",
            correct_rate=55.0,
            related_subjects=["경제"],
        ),
        Problem(
            id="경제_고3_2023_06_모평_2_문제",
            tag_ids=["경제-2", "경제-2-1"],
            tags=["2. 시장", "2-1. 수요"],
            difficulty="",
            correct_rate=91.0,
            related_subjects=["경제"],
        ),
        Problem(
            id="사회문화_고2_2024_09_학평_3_문제",
            tag_ids=["사회문화-1"],
            tags=["사회문화", "1. 탐구"],
            difficulty="하",
            correct_rate=75.0,
            related_subjects=["사회문화"],
        ),
    ]


def test_tag_overlap_policy():
    f = ProblemFilter(ChapterMatchPolicy.TAG_OVERLAP, scale=ECONOMY_SCALE)
    leaf = FilterCriteria(selected_chapters=["경제-1-1"])
    assert [p.id for p in f.filter(_tagged(), leaf)] == ["경제_고3_2024_03_학평_1_문제"]
    subject_root = FilterCriteria(selected_chapters=["경제"])
    assert len(f.filter(_tagged(), subject_root)) == 2


def test_tag_mode_difficulty_and_parsed_fields():
    f = ProblemFilter(ChapterMatchPolicy.TAG_OVERLAP)
    roots = ["경제", "사회문화"]
    # 중상은 상/중 선택에 포함, 라벨 없는 문제는 통과
    hard = FilterCriteria(selected_chapters=roots, selected_difficulties=["상"])
    assert [p.id for p in f.filter(_tagged(), hard)] == [
        "경제_고3_2024_03_학평_1_문제",
        "경제_고3_2023_06_모평_2_문제",
    ]
    grade = FilterCriteria(selected_chapters=roots, selected_grades=["고2"])
    assert [p.id for p in f.filter(_tagged(), grade)] == ["사회문화_고2_2024_09_학평_3_문제"]
    month = FilterCriteria(selected_chapters=roots, selected_months=["3", "9"])
    assert len(f.filter(_tagged(), month)) == 2
    exam = FilterCriteria(selected_chapters=roots, selected_exam_types=["모평"])
    assert [p.id for p in f.filter(_tagged(), exam)] == ["경제_고3_2023_06_모평_2_문제"]
    subject = FilterCriteria(selected_chapters=roots, selected_subjects=["사회문화"])
    assert len(f.filter(_tagged(), subject)) == 1


def test_problem_service_default(seeded_db):
    service = ProblemService(seeded_db)
    content_tree = ChapterService(seeded_db).get_default_tree()
    criteria = FilterCriteria(selected_chapters=["통합사회_1권_1단원"])
    result = service.find_problems(criteria, content_tree=content_tree)
    assert [p.id for p in result] == ["1001", "1002"]
    assert result[0].related_subjects == ["통합사회1"]


def test_problem_service_tagged(seeded_db):
    service = ProblemService(seeded_db)
    problems = service.load_tagged_problems("사회문화")
    assert len(problems) == 3
    by_id = {p.id: p for p in problems}
    p = by_id["사회문화_고3_2024_03_학평_1_문제"]
    assert p.correct_rate == 72.0
    assert p.answer == 2
    assert p.tags[0] == "사회문화"
    assert p.problem_filename == "사회문화_고3_2024_03_학평_1_문제.png"
    assert p.answer_filename == "사회문화_고3_2024_03_학평_1_해설.png"

    result = service.find_problems(FilterCriteria(selected_chapters=["사회문화-1"]), subject="사회문화")
    assert len(result) == 2

    economy = service.load_tagged_problems("경제")
    missing_rate = [p for p in economy if p.correct_rate is None]
    assert len(missing_rate) == 1
    assert missing_rate[0].difficulty == "중"
