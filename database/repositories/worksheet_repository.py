"""
Worksheet 저장소

- SQLite 테이블: worksheets
- 풀이 기록: solves (채점 결과, worksheets 삭제 시 ON DELETE CASCADE)
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from core.exceptions import StoreError
from core.models import SolveRecord, Worksheet
from database.sqlite_connection import SQLiteConnection, json_col, parse_json, row_to_dict


class WorksheetRepository:
    def __init__(self, db_connection: SQLiteConnection):
        self._db = db_connection

    def _conn(self) -> sqlite3.Connection:
        if not self._db.is_connected():
            raise StoreError("DB에 연결되지 않았습니다.")
        return self._db.get_conn()

    @staticmethod
    def _to_worksheet(row: sqlite3.Row) -> Worksheet:
        d = row_to_dict(row)
        d["selected_problem_ids"] = parse_json(d.get("selected_problem_ids_json"), [])
        d["filters"] = parse_json(d.get("filters_json"), {})
        d["sorting"] = parse_json(d.get("sorting_json"), [])
        return Worksheet.from_dict(d)

    @staticmethod
    def _int_id(worksheet_id: str) -> Optional[int]:
        try:
            return int(worksheet_id)
        except (TypeError, ValueError):
            return None

    def create(self, worksheet: Worksheet) -> str:
        conn = self._conn()
        if worksheet.created_at is None:
            worksheet.created_at = datetime.now()
        try:
            cur = conn.execute(
                """INSERT INTO worksheets (
                    title, author, created_at, selected_problem_ids_json,
                    filters_json, sorting_json, is_public, created_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    worksheet.title or "",
                    worksheet.author or "",
                    worksheet.created_at.isoformat(),
                    json_col(list(worksheet.selected_problem_ids)),
                    json_col(dict(worksheet.filters or {}), "{}"),
                    json_col([r.to_dict() for r in worksheet.sorting]),
                    1 if worksheet.is_public else 0,
                    worksheet.created_by,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"학습지 저장 실패: {e}") from e
        worksheet.id = str(cur.lastrowid)
        return worksheet.id

    def find_by_id(self, worksheet_id: str) -> Optional[Worksheet]:
        wid = self._int_id(worksheet_id)
        if wid is None:
            return None
        try:
            row = self._conn().execute("SELECT * FROM worksheets WHERE id = ?", (wid,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"학습지 조회 실패: {e}") from e
        return self._to_worksheet(row) if row else None

    def update(self, worksheet: Worksheet) -> bool:
        """내용 갱신. created_at / created_by 컬럼은 건드리지 않음."""
        wid = self._int_id(worksheet.id)
        if wid is None:
            return False
        conn = self._conn()
        try:
            cur = conn.execute(
                """UPDATE worksheets SET
                    title = ?, author = ?, selected_problem_ids_json = ?,
                    filters_json = ?, sorting_json = ?, is_public = ?
                WHERE id = ?""",
                (
                    worksheet.title or "",
                    worksheet.author or "",
                    json_col(list(worksheet.selected_problem_ids)),
                    json_col(dict(worksheet.filters or {}), "{}"),
                    json_col([r.to_dict() for r in worksheet.sorting]),
                    1 if worksheet.is_public else 0,
                    wid,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"학습지 수정 실패: {e}") from e
        return cur.rowcount > 0

    def set_public(self, worksheet_id: str, is_public: bool) -> bool:
        wid = self._int_id(worksheet_id)
        if wid is None:
            return False
        conn = self._conn()
        try:
            cur = conn.execute(
                "UPDATE worksheets SET is_public = ? WHERE id = ?", (1 if is_public else 0, wid)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"공개 설정 변경 실패: {e}") from e
        return cur.rowcount > 0

    def delete(self, worksheet_id: str) -> bool:
        wid = self._int_id(worksheet_id)
        if wid is None:
            return False
        conn = self._conn()
        try:
            cur = conn.execute("DELETE FROM worksheets WHERE id = ?", (wid,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"학습지 삭제 실패: {e}") from e
        return cur.rowcount > 0

    def list_public(self, search: str = "", offset: int = 0, limit: int = 20) -> List[Worksheet]:
        """공개 학습지 (최신순). search는 제목 부분 일치 (대소문자 무시)."""
        sql = "SELECT * FROM worksheets WHERE is_public = 1"
        params: list = []
        term = (search or "").strip()
        if term:
            sql += " AND LOWER(title) LIKE ? ESCAPE '\\'"
            escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            params.append(f"%{escaped}%")
        sql += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([int(limit), int(offset)])
        try:
            rows = self._conn().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"공개 학습지 조회 실패: {e}") from e
        return [self._to_worksheet(r) for r in rows]

    def list_by_owner(self, owner: str) -> List[Worksheet]:
        try:
            rows = self._conn().execute(
                "SELECT * FROM worksheets WHERE created_by = ? ORDER BY created_at DESC, id DESC",
                (owner,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"학습지 목록 조회 실패: {e}") from e
        return [self._to_worksheet(r) for r in rows]

    # ----------------------------
    # 풀이 기록 (solves)
    # ----------------------------
    @staticmethod
    def _to_solve(row: sqlite3.Row) -> SolveRecord:
        d = row_to_dict(row)
        d["results"] = parse_json(d.get("results_json"), {})
        return SolveRecord.from_dict(d)

    def add_solve(self, solve: SolveRecord) -> str:
        wid = self._int_id(solve.worksheet_id)
        if wid is None:
            raise StoreError(f"풀이 기록 저장 실패: 잘못된 학습지 ID {solve.worksheet_id!r}")
        if solve.created_at is None:
            solve.created_at = datetime.now()
        conn = self._conn()
        try:
            cur = conn.execute(
                """INSERT INTO solves (
                    worksheet_id, user_id, score, max_score, correct_count,
                    total_problems, results_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    wid,
                    solve.user_id,
                    solve.score,
                    solve.max_score,
                    solve.correct_count,
                    solve.total_problems,
                    json_col({pid: r.to_dict() for pid, r in solve.results.items()}, "{}"),
                    solve.created_at.isoformat(),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"풀이 기록 저장 실패: {e}") from e
        solve.id = str(cur.lastrowid)
        return solve.id

    def list_solves(self, worksheet_id: str, user_id: str) -> List[SolveRecord]:
        """학습지 하나에 대한 사용자의 풀이 기록 (최신순)"""
        wid = self._int_id(worksheet_id)
        if wid is None:
            return []
        try:
            rows = self._conn().execute(
                "SELECT * FROM solves WHERE worksheet_id = ? AND user_id = ? ORDER BY created_at DESC, id DESC",
                (wid, user_id),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"풀이 기록 조회 실패: {e}") from e
        return [self._to_solve(r) for r in rows]

    def list_solves_by_user(self, user_id: str) -> List[SolveRecord]:
        """사용자의 전체 풀이 기록 (오래된 순)"""
        try:
            rows = self._conn().execute(
                "SELECT * FROM solves WHERE user_id = ? ORDER BY created_at, id", (user_id,)
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"풀이 기록 조회 실패: {e}") from e
        return [self._to_solve(r) for r in rows]

    def count_solves(self, worksheet_id: str) -> int:
        wid = self._int_id(worksheet_id)
        if wid is None:
            return 0
        try:
            row = self._conn().execute(
                "SELECT COUNT(*) FROM solves WHERE worksheet_id = ?", (wid,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"풀이 기록 조회 실패: {e}") from e
        return int(row[0])

