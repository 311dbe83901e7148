import pytest

from core.exceptions import ValidationError
from core.problem_id import (
    ECONOMY_TAG_TYPE,
    ProblemIdKind,
    answer_id_for,
    classify_problem_id,
    classify_problem_ids,
    group_by_kind,
    parse_problem_id,
    parse_structured_id,
    require_problem_id,
    subject_from_problem_id,
    tag_type_for_subject,
)


def test_parse_full_id():
    parsed = parse_problem_id("사회문화_고3_2024_03_학평_12_문제")
    assert parsed.subject == "사회문화"
    assert parsed.grade == "고3"
    assert parsed.exam_year == 2024
    assert parsed.month_number == 3
    assert parsed.exam_type == "학평"
    assert parsed.question_number == 12
    assert parsed.suffix == "문제"
    assert parsed.problem_type == "학평 2024년 3월"


def test_parse_rejects_malformed_ids():
    assert parse_problem_id("경제_고3_2024") is None
    assert parse_problem_id("경제_고3_2024_03_학평_x_문제") is None
    assert parse_problem_id("") is None
    with pytest.raises(ValidationError):
        require_problem_id("nope")


def test_classification():
    assert classify_problem_id("1001") is ProblemIdKind.DEFAULT
    assert classify_problem_id("세계지리_고3_2024_03_학평_1_문제") is ProblemIdKind.TAGGED
    assert classify_problem_id("경제_고3_2024_03_학평_1_문제") is ProblemIdKind.ECONOMY
    assert classify_problem_ids([]) is ProblemIdKind.DEFAULT
    assert not ProblemIdKind.DEFAULT.is_structured
    assert ProblemIdKind.ECONOMY.is_structured


def test_group_by_kind_keeps_order_within_kind():
    ids = ["경제_고3_2024_03_학평_1_문제", "1", "사회문화_고3_2024_03_학평_2_문제", "2", "경제_고3_2023_06_모평_3_문제"]
    groups = group_by_kind(ids)
    assert groups[ProblemIdKind.ECONOMY] == [ids[0], ids[4]]
    assert groups[ProblemIdKind.DEFAULT] == ["1", "2"]
    assert groups[ProblemIdKind.TAGGED] == [ids[2]]
    assert group_by_kind([]) == {}


def test_default_ids_are_not_parsed():
    assert parse_structured_id("1001") is None
    assert parse_structured_id("경제_고3_2024_03_학평_1_문제").subject == "경제"


def test_helpers():
    assert subject_from_problem_id("한국지리_고3_2022_11_수능_3_문제") == "한국지리"
    assert subject_from_problem_id("1001") is None
    assert answer_id_for("경제_고3_2024_03_학평_1_문제") == "경제_고3_2024_03_학평_1_해설"
    assert tag_type_for_subject("경제") == ECONOMY_TAG_TYPE
    assert tag_type_for_subject("사회문화") == "단원_사회탐구_사회문화"
