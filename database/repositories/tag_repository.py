"""
Tag 저장소 (사회탐구 태그 과목)

- SQLite 테이블: problem_tags (문제별 단원 경로 태그), accuracy_rate (정답률/정답)
- 태그 타입: '단원_사회탐구_{과목}', 경제는 'MT_단원_태그'
"""
from __future__ import annotations

import sqlite3
from typing import Dict, Iterable, List, Optional

from core.exceptions import StoreError
from core.models import TagRow
from database.sqlite_connection import SQLiteConnection, json_col, parse_json


class TagRepository:
    def __init__(self, db_connection: SQLiteConnection):
        self._db = db_connection

    def _conn(self) -> sqlite3.Connection:
        if not self._db.is_connected():
            raise StoreError("DB에 연결되지 않았습니다.")
        return self._db.get_conn()

    @staticmethod
    def _to_tag_row(row: sqlite3.Row) -> TagRow:
        return TagRow(
            tag_ids=[str(x) for x in parse_json(row["tag_ids_json"], [])],
            tag_labels=[str(x) for x in parse_json(row["tag_labels_json"], [])],
            problem_id=row["problem_id"],
            type=row["type"] or "",
        )

    def add_tag_row(self, row: TagRow) -> None:
        conn = self._conn()
        try:
            conn.execute(
                "INSERT INTO problem_tags (problem_id, type, tag_ids_json, tag_labels_json) VALUES (?, ?, ?, ?)",
                (row.problem_id, row.type or "", json_col(row.tag_ids), json_col(row.tag_labels)),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"태그 저장 실패: {e}") from e

    def upsert_accuracy(
        self,
        problem_id: str,
        *,
        accuracy_rate: Optional[float] = None,
        difficulty: Optional[str] = None,
        correct_answer: Optional[int] = None,
        score: Optional[int] = None,
    ) -> None:
        conn = self._conn()
        try:
            conn.execute(
                """INSERT INTO accuracy_rate (problem_id, difficulty, accuracy_rate, correct_answer, score)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(problem_id) DO UPDATE SET
                       difficulty = excluded.difficulty,
                       accuracy_rate = excluded.accuracy_rate,
                       correct_answer = excluded.correct_answer,
                       score = excluded.score""",
                (problem_id, difficulty, accuracy_rate, correct_answer, score),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"정답률 저장 실패: {e}") from e

    def list_tag_rows(self, tag_type: str) -> List[TagRow]:
        """태그 타입의 전체 경로 행 (단원 트리 생성용)."""
        try:
            rows = self._conn().execute(
                "SELECT problem_id, type, tag_ids_json, tag_labels_json FROM problem_tags WHERE type = ? ORDER BY id",
                (tag_type,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"태그 조회 실패: {e}") from e
        return [self._to_tag_row(r) for r in rows]

    def list_by_problem_ids(self, problem_ids: List[str], tag_type: Optional[str] = None) -> List[TagRow]:
        """
        문제 ID 목록의 태그 행 (한 번의 IN 쿼리)

        tag_type이 없으면 타입 무관 (과목이 섞인 학습지)
        """
        ids = [str(x) for x in (problem_ids or []) if str(x).strip()]
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        sql = (
            "SELECT problem_id, type, tag_ids_json, tag_labels_json FROM problem_tags "
            f"WHERE problem_id IN ({placeholders})"
        )
        params: list = list(ids)
        if tag_type:
            sql += " AND type = ?"
            params.append(tag_type)
        try:
            rows = self._conn().execute(sql + " ORDER BY id", params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"문제 태그 조회 실패: {e}") from e
        return [self._to_tag_row(r) for r in rows]

    def list_accuracy(self, problem_ids: Iterable[str]) -> Dict[str, dict]:
        """problem_id → {'difficulty', 'accuracy_rate', 'correct_answer', 'score'}"""
        ids = [str(x) for x in problem_ids if str(x).strip()]
        if not ids:
            return {}
        placeholders = ",".join("?" * len(ids))
        try:
            rows = self._conn().execute(
                "SELECT problem_id, difficulty, accuracy_rate, correct_answer, score "
                f"FROM accuracy_rate WHERE problem_id IN ({placeholders})",
                ids,
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"정답률 조회 실패: {e}") from e
        return {r["problem_id"]: dict(r) for r in rows}

    def delete_problem(self, problem_id: str) -> int:
        """태그 문제 삭제 (태그 행 + 정답률). 삭제된 태그 행 수 반환."""
        conn = self._conn()
        try:
            cur = conn.execute("DELETE FROM problem_tags WHERE problem_id = ?", (problem_id,))
            conn.execute("DELETE FROM accuracy_rate WHERE problem_id = ?", (problem_id,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"태그 문제 삭제 실패: {e}") from e
        return cur.rowcount
