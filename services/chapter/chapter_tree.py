"""
단원 트리 빌더 (순수 로직)

- 태그 경로 행(루트→리프 ID/라벨 목록)들을 합쳐 중복 없는 단원 트리 생성
- 각 레벨의 자식은 ID에 들어 있는 숫자 경로("경제-1", "경제-1-1")로 정렬,
  숫자가 같거나 없으면 ID 문자열 비교
- 일부 행에 섞여 있는 과목 접두 태그("사회탐구_사회문화")는 제거 후 처리
- 통합사회는 subjects/chapters 테이블 행으로 트리 생성

트리 전체 순회 유틸(경로 인덱스 맵, 하위 단원 확장)도 제공합니다.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from core.models import ChapterNode, TagRow

logger = logging.getLogger(__name__)

REDUNDANT_SUBJECT_PREFIX = "사회탐구_"
ROMAN_NUMERALS = ("I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X")

def extract_numbers(node_id: str) -> List[int]:
    """'경제-1-10' -> [1, 10]  (숫자가 아닌 세그먼트는 버림)"""
    out: List[int] = []
    for part in (node_id or "").split("-"):
        part = part.strip()
        if part.isdigit():
            out.append(int(part))
    return out

def chapter_sort_key(node_id: str) -> Tuple[List[int], str]:
    # 리스트 비교는 공통 접두가 같으면 짧은 쪽이 앞
    return (extract_numbers(node_id), node_id)

def _strip_redundant_prefix(row: TagRow) -> Tuple[List[str], List[str]]:
    ids, labels = list(row.tag_ids), list(row.tag_labels)
    if ids and ids[0].startswith(REDUNDANT_SUBJECT_PREFIX):
        return ids[1:], labels[1:]
    return ids, labels

def _sort_tree(nodes: List[ChapterNode]) -> List[ChapterNode]:
    nodes.sort(key=lambda n: chapter_sort_key(n.id))
    for n in nodes:
        if n.children:
            _sort_tree(n.children)
    return nodes

def build_tree_from_tag_rows(rows: Iterable[TagRow]) -> List[ChapterNode]:
    """
    태그 경로 행들로 단원 트리(forest) 생성

    - ID/라벨 길이가 다르거나 비어 있는 행은 건너뜀
    - 이미 만들어진 노드(ID 기준)는 다시 만들지 않음 → 경로 합집합
    - 행 순서와 무관하게 같은 트리(정렬 포함)가 나옴
    """
    node_map: Dict[str, ChapterNode] = {}
    roots: List[ChapterNode] = []

    # 행 순서와 무관한 결과를 위해 경로 자체를 정렬된 순서로 처리
    paths: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = []
    for row in rows:
        if not row.is_well_formed():
            logger.debug("형식이 맞지 않는 태그 행 건너뜀: %s / %s", row.tag_ids, row.tag_labels)
            continue
        ids, labels = _strip_redundant_prefix(row)
        if not ids:
            continue
        paths.append((tuple(ids), tuple(labels)))
    paths.sort()

    for ids, labels in paths:
        for depth, (node_id, label) in enumerate(zip(ids, labels)):
            if node_id in node_map:
                continue
            node = ChapterNode(id=node_id, label=label, type="category", expanded=False)
            node_map[node_id] = node
            if depth == 0:
                roots.append(node)
            else:
                parent = node_map.get(ids[depth - 1])
                if parent is not None:
                    parent.children.append(node)

    # 자식이 없는 노드는 선택 단위(item)
    for node in node_map.values():
        if not node.children:
            node.type = "item"

    return _sort_tree(roots)

def wrap_with_subject(subject: str, nodes: List[ChapterNode]) -> List[ChapterNode]:
    """태그 과목 트리를 과목명 루트 하나로 감쌈 (ID/라벨 = 과목명)."""
    return [ChapterNode(id=subject, label=subject, type="category", expanded=True, children=nodes)]

def _main_unit_label(chapter_number: int, name: str) -> str:
    if 1 <= chapter_number <= len(ROMAN_NUMERALS):
        return f"{ROMAN_NUMERALS[chapter_number - 1]}. {name}"
    return f"{chapter_number}. {name}"


def _sub_chapter_label(chapter_number: int, name: str) -> str:
    return f"{chapter_number:02d}. {name}"


def build_tree_from_chapters(subjects: Sequence[dict], chapters: Sequence[dict]) -> List[ChapterNode]:
    """
    통합사회 subjects/chapters 행으로 트리 생성

    subjects: [{'id', 'name'}], chapters: [{'id', 'name', 'chapter_number', 'parent_id', 'subject_id'}]
    - 과목 루트: 통합사회_1 / 통합사회_2
    - 대단원: '{과목}권_{n}단원', 라벨은 로마숫자
    - 소단원: '{과목}권_{n}단원_{m}', 라벨은 두 자리 번호, item 노드
    """
    by_subject: Dict[str, List[dict]] = {}
    for ch in chapters:
        by_subject.setdefault(str(ch.get("subject_id")), []).append(ch)

    tree: List[ChapterNode] = []
    for subject in subjects:
        subject_chapters = by_subject.get(str(subject.get("id")))
        if not subject_chapters:
            continue
        name = subject.get("name", "") or ""
        volume = "1" if name.strip().endswith("1") else "2"
        root = ChapterNode(id=f"통합사회_{volume}", label=name, type="category", expanded=True)

        mains = sorted(
            (c for c in subject_chapters if c.get("parent_id") is None),
            key=lambda c: int(c.get("chapter_number") or 0),
        )
        for main in mains:
            main_no = int(main.get("chapter_number") or 0)
            main_id = f"통합사회_{volume}권_{main_no}단원"
            main_node = ChapterNode(
                id=main_id,
                label=_main_unit_label(main_no, main.get("name", "")),
                type="category",
                expanded=True,
            )
            subs = sorted(
                (c for c in subject_chapters if str(c.get("parent_id")) == str(main.get("id"))),
                key=lambda c: int(c.get("chapter_number") or 0),
            )
            for sub in subs:
                sub_no = int(sub.get("chapter_number") or 0)
                main_node.children.append(
                    ChapterNode(
                        id=f"{main_id}_{sub_no}",
                        label=_sub_chapter_label(sub_no, sub.get("name", "")),
                        type="item",
                    )
                )
            root.children.append(main_node)
        tree.append(root)
    return tree


# ----------------------------
# 순회 유틸
# ----------------------------
def iter_nodes(tree: Sequence[ChapterNode]) -> Iterator[ChapterNode]:
    for node in tree:
        yield node
        if node.children:
            yield from iter_nodes(node.children)

def find_node(tree: Sequence[ChapterNode], node_id: str) -> Optional[ChapterNode]:
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None

def build_chapter_path_map(tree: Sequence[ChapterNode]) -> Dict[str, List[int]]:
    """
    chapter_id → 트리 인덱스 경로
    예) {'chapter-id-1': [0, 2, 1]} : root[0] -> children[2] -> children[1]
    """
    path_map: Dict[str, List[int]] = {}

    def traverse(items: Sequence[ChapterNode], path: List[int]) -> None:
        for index, item in enumerate(items):
            current = path + [index]
            path_map[item.id] = current
            if item.children:
                traverse(item.children, current)

    traverse(tree, [])
    return path_map

def expand_selection(tree: Sequence[ChapterNode], selected_ids: Iterable[str]) -> Set[str]:
    """선택된 단원 ID + 그 하위 단원 ID 전체 (트리에 없는 ID는 제외)."""
    selected = set(selected_ids)
    out: Set[str] = set()
    for node in iter_nodes(tree):
        if node.id in selected:
            out.update(n.id for n in iter_nodes([node]))
    return out
