"""
태그 과목 문제 변환

problem_tags(단원 경로) 행과 accuracy_rate(정답률/정답) 행을 합쳐 Problem을 만듭니다.
ID에서 파싱한 시험 정보로 문제 유형/연도/이미지 파일명을 채웁니다.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from core.models import Problem, TagRow
from core.problem_id import ECONOMY_SUBJECT, answer_id_for, parse_problem_id


DEFAULT_TAGGED_DIFFICULTY = "중"


def problem_from_tag_row(row: TagRow, accuracy: Optional[dict] = None) -> Optional[Problem]:
    """
    태그 행 + 정답률 행 → Problem

    - 경제는 태그 라벨만, 그 외 과목은 [과목, *라벨]을 tags로 사용
    - ID를 파싱할 수 없으면 None
    """
    pid = row.problem_id or ""
    parsed = parse_problem_id(pid)
    if parsed is None:
        return None
    acc = accuracy or {}
    economy = parsed.subject == ECONOMY_SUBJECT
    return Problem(
        id=pid,
        problem_filename=f"{pid}.png",
        answer_filename=f"{answer_id_for(pid)}.png",
        answer=acc.get("correct_answer"),
        chapter_id=row.tag_ids[-1] if row.tag_ids else None,
        difficulty=acc.get("difficulty") or DEFAULT_TAGGED_DIFFICULTY,
        problem_type=parsed.problem_type,
        tags=list(row.tag_labels) if economy else [parsed.subject, *row.tag_labels],
        tag_ids=list(row.tag_ids),
        related_subjects=[parsed.subject],
        correct_rate=acc.get("accuracy_rate"),
        exam_year=parsed.exam_year,
        score=acc.get("score"),
    )


def pick_tag_rows(rows: Iterable[TagRow]) -> Dict[str, TagRow]:
    """문제별 태그 행 1개 (처음 나온 행)."""
    picked: Dict[str, TagRow] = {}
    for row in rows:
        pid = row.problem_id
        if not pid:
            continue
        if pid not in picked:
            picked[pid] = row
    return picked
