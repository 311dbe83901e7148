import random

from core.models import ChapterNode, TagRow
from services.chapter.chapter_service import ChapterService
from services.chapter.chapter_tree import (
    build_chapter_path_map,
    build_tree_from_chapters,
    build_tree_from_tag_rows,
    chapter_sort_key,
    expand_selection,
    extract_numbers,
    find_node,
    wrap_with_subject,
)


def _row(ids, labels, pid="p"):
    return TagRow(tag_ids=ids, tag_labels=labels, problem_id=pid)


def _shape(nodes):
    return [(n.id, n.label, n.type, _shape(n.children)) for n in nodes]


def test_two_rows_share_root():
    rows = [_row(["A", "A-1"], ["Root", "Child1"]), _row(["A", "A-2"], ["Root", "Child2"])]
    tree = build_tree_from_tag_rows(rows)
    assert len(tree) == 1
    root = tree[0]
    assert root.id == "A"
    assert root.label == "Root"
    assert [c.id for c in root.children] == ["A-1", "A-2"]
    assert all(c.type == "item" for c in root.children)
    assert root.type == "category"


def test_children_sorted_numerically_not_lexically():
    rows = [
        _row(["경제-2", "경제-2-10"], ["2", "2-10"]),
        _row(["경제-2", "경제-2-2"], ["2", "2-2"]),
        _row(["경제-1", "경제-1-1"], ["1", "1-1"]),
    ]
    tree = build_tree_from_tag_rows(rows)
    assert [n.id for n in tree] == ["경제-1", "경제-2"]
    assert [c.id for c in tree[1].children] == ["경제-2-2", "경제-2-10"]


def test_build_is_independent_of_row_order():
    rows = [
        _row(["S-1", "S-1-1"], ["1", "1-1"]),
        _row(["S-1", "S-1-2"], ["1", "1-2"]),
        _row(["S-2", "S-2-1"], ["2", "2-1"]),
        _row(["S-2", "S-2-1", "S-2-1-3"], ["2", "2-1", "2-1-3"]),
    ]
    expected = _shape(build_tree_from_tag_rows(rows))
    rng = random.Random(7)
    for _ in range(10):
        shuffled = list(rows)
        rng.shuffle(shuffled)
        assert _shape(build_tree_from_tag_rows(shuffled)) == expected


def test_redundant_subject_prefix_is_stripped():
    rows = [
        _row(["사회탐구_사회문화", "사회문화-1", "사회문화-1-1"], ["사회탐구 사회문화", "1", "1-1"]),
        _row(["사회문화-1", "사회문화-1-2"], ["1", "1-2"]),
    ]
    tree = build_tree_from_tag_rows(rows)
    assert [n.id for n in tree] == ["사회문화-1"]
    assert [c.id for c in tree[0].children] == ["사회문화-1-1", "사회문화-1-2"]


def test_malformed_and_empty_rows_are_skipped():
    rows = [
        _row(["A", "A-1"], ["Root"]),
        _row([], []),
        _row(["B-1"], ["B"]),
    ]
    tree = build_tree_from_tag_rows(rows)
    assert [n.id for n in tree] == ["B-1"]


def test_extract_numbers_and_sort_key():
    assert extract_numbers("경제-1-10") == [1, 10]
    assert extract_numbers("A") == []
    assert chapter_sort_key("A-1") < chapter_sort_key("A-1-1")
    assert chapter_sort_key("A-2") < chapter_sort_key("A-10")


def test_wrap_with_subject():
    wrapped = wrap_with_subject("경제", [ChapterNode(id="경제-1", label="1")])
    assert wrapped[0].id == "경제"
    assert wrapped[0].label == "경제"
    assert wrapped[0].children[0].id == "경제-1"


def test_build_tree_from_chapters():
    subjects = [{"id": 1, "name": "통합사회1"}]
    chapters = [
        {"id": 10, "name": "통합적 관점", "chapter_number": 1, "parent_id": None, "subject_id": 1},
        {"id": 11, "name": "관점", "chapter_number": 2, "parent_id": 10, "subject_id": 1},
        {"id": 12, "name": "필요성", "chapter_number": 1, "parent_id": 10, "subject_id": 1},
    ]
    tree = build_tree_from_chapters(subjects, chapters)
    root = tree[0]
    assert root.id == "통합사회_1"
    main = root.children[0]
    assert main.id == "통합사회_1권_1단원"
    assert main.label == "I. 통합적 관점"
    assert [c.id for c in main.children] == ["통합사회_1권_1단원_1", "통합사회_1권_1단원_2"]
    assert main.children[0].label == "01. 필요성"


def test_path_map_and_expand_selection():
    tree = build_tree_from_tag_rows([
        _row(["A", "A-1"], ["Root", "C1"]),
        _row(["A", "A-2"], ["Root", "C2"]),
    ])
    path_map = build_chapter_path_map(tree)
    assert path_map == {"A": [0], "A-1": [0, 0], "A-2": [0, 1]}
    assert expand_selection(tree, ["A"]) == {"A", "A-1", "A-2"}
    assert expand_selection(tree, ["missing"]) == set()
    assert find_node(tree, "A-2").label == "C2"


def test_chapter_service_trees(seeded_db):
    service = ChapterService(seeded_db)
    default_tree = service.get_tree()
    assert [n.id for n in default_tree] == ["통합사회_1", "통합사회_2"]

    socio = service.get_tree("사회문화")
    assert socio[0].id == "사회문화"
    assert [n.id for n in socio[0].children] == ["사회문화-1", "사회문화-2"]

    assert service.get_tagged_tree("한국지리") == []


def test_chapter_service_falls_back_to_configured_tree(tmp_db):
    from core.config import AppConfig

    fallback = [ChapterNode(id="x", label="X")]
    service = ChapterService(tmp_db, AppConfig(default_content_tree=fallback))
    assert [n.id for n in service.get_default_tree()] == ["x"]
