"""
Problem 저장소 (통합사회 기본 문제)

- SQLite 테이블: problems, problem_subjects (+ subjects 이름 조인)
- 태그 과목 문제는 problems 테이블이 아니라 problem_tags/accuracy_rate에 있음
  (TagRepository 참고)
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.exceptions import StoreError
from core.models import Problem
from database.sqlite_connection import SQLiteConnection, json_col, parse_json, row_to_dict


logger = logging.getLogger(__name__)


_SELECT_PROBLEMS = """
SELECT p.*,
       (SELECT json_group_array(s.name)
          FROM problem_subjects ps JOIN subjects s ON s.id = ps.subject_id
         WHERE ps.problem_id = p.id) AS subject_names_json
  FROM problems p
"""


class ProblemRepository:
    def __init__(self, db_connection: SQLiteConnection):
        self._db = db_connection

    def _conn(self) -> sqlite3.Connection:
        if not self._db.is_connected():
            raise StoreError("DB에 연결되지 않았습니다.")
        return self._db.get_conn()

    @staticmethod
    def _to_problem(row: sqlite3.Row) -> Problem:
        d = row_to_dict(row, id_key="id")
        d["tags"] = parse_json(d.get("tags_json"), [])
        d["related_subjects"] = sorted(parse_json(d.get("subject_names_json"), []))
        return Problem.from_dict(d)

    def create(self, problem: Problem, subject_ids: Iterable[int] = ()) -> str:
        if not problem.id:
            raise StoreError("문제 ID가 없습니다.")
        conn = self._conn()
        now = datetime.now()
        try:
            conn.execute(
                """INSERT INTO problems (
                    id, problem_filename, answer_filename, answer, chapter_id,
                    difficulty, problem_type, tags_json, correct_rate, exam_year,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    problem.id,
                    problem.problem_filename,
                    problem.answer_filename,
                    problem.answer,
                    problem.chapter_id,
                    problem.difficulty or "",
                    problem.problem_type or "",
                    json_col(problem.tags),
                    problem.correct_rate,
                    problem.exam_year,
                    (problem.created_at or now).isoformat(),
                    (problem.updated_at or now).isoformat(),
                ),
            )
            for sid in subject_ids:
                conn.execute(
                    "INSERT OR IGNORE INTO problem_subjects (problem_id, subject_id) VALUES (?, ?)",
                    (problem.id, int(sid)),
                )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"문제 저장 실패: {e}") from e
        return problem.id

    def find_by_id(self, problem_id: str) -> Optional[Problem]:
        found = self.list_by_ids([problem_id])
        return found[0] if found else None

    def list_by_ids(self, problem_ids: List[str]) -> List[Problem]:
        """
        ID 목록 조회 (한 번의 IN 쿼리, 순서 보장 없음)

        배치 분할은 호출자(학습지 서비스) 책임입니다.
        """
        ids = [str(x) for x in (problem_ids or []) if str(x).strip()]
        if not ids:
            return []
        conn = self._conn()
        placeholders = ",".join("?" * len(ids))
        try:
            rows = conn.execute(
                f"{_SELECT_PROBLEMS} WHERE p.id IN ({placeholders})", ids
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"문제 조회 실패: {e}") from e
        return [self._to_problem(r) for r in rows]

    def list_all(self) -> List[Problem]:
        conn = self._conn()
        try:
            rows = conn.execute(f"{_SELECT_PROBLEMS} ORDER BY p.created_at, p.id").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"문제 목록 조회 실패: {e}") from e
        return [self._to_problem(r) for r in rows]

    def list_by_chapters(self, chapter_ids: Iterable[str]) -> List[Problem]:
        ids = [str(c) for c in chapter_ids]
        if not ids:
            return []
        conn = self._conn()
        placeholders = ",".join("?" * len(ids))
        try:
            rows = conn.execute(
                f"{_SELECT_PROBLEMS} WHERE p.chapter_id IN ({placeholders}) ORDER BY p.created_at, p.id",
                ids,
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"단원별 문제 조회 실패: {e}") from e
        return [self._to_problem(r) for r in rows]

    def count_by_chapter(self) -> Dict[str, int]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT chapter_id, COUNT(*) AS n FROM problems WHERE chapter_id IS NOT NULL GROUP BY chapter_id"
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"단원별 문제 수 조회 실패: {e}") from e
        return {r["chapter_id"]: int(r["n"]) for r in rows}

    def delete(self, problem_id: str) -> bool:
        conn = self._conn()
        try:
            cur = conn.execute("DELETE FROM problems WHERE id = ?", (str(problem_id),))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"문제 삭제 실패: {e}") from e
        return cur.rowcount > 0
