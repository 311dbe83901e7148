from database.repositories import ChapterRepository, ProblemRepository, TagRepository
from dev.mock_data import get_mock_problems, get_mock_tag_rows, seed


def test_seed_counts(tmp_db):
    counts = seed(tmp_db)
    assert counts == {"subjects": 2, "chapters": 8, "problems": 4, "tag_rows": 5}
    assert len(ChapterRepository(tmp_db).list_subjects()) == 2
    assert len(ProblemRepository(tmp_db).list_all()) == len(get_mock_problems())


def test_seeded_repositories(seeded_db):
    problems = ProblemRepository(seeded_db)
    assert problems.count_by_chapter()["통합사회_1권_1단원_1"] == 1
    assert problems.find_by_id("1004").correct_rate is None
    assert problems.find_by_id("nope") is None
    assert problems.delete("1004")
    assert not problems.delete("1004")

    tags = TagRepository(seeded_db)
    rows = tags.list_by_problem_ids([r.problem_id for r in get_mock_tag_rows()])
    assert len(rows) == 5
    tags.upsert_accuracy("경제_고3_2023_11_수능_15_문제", accuracy_rate=12.5, difficulty="상", correct_answer=1, score=3)
    tags.upsert_accuracy("경제_고3_2023_11_수능_15_문제", accuracy_rate=13.0, difficulty="상", correct_answer=1, score=3)
    assert tags.list_accuracy(["경제_고3_2023_11_수능_15_문제"])["경제_고3_2023_11_수능_15_문제"]["accuracy_rate"] == 13.0
