"""
Chapter 저장소

- SQLite 테이블: subjects, chapters (통합사회 단원 구조)
- 트리 변환은 services/chapter/chapter_tree.py 에서 수행
"""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from core.exceptions import StoreError
from database.sqlite_connection import SQLiteConnection, row_to_dict


class ChapterRepository:
    def __init__(self, db_connection: SQLiteConnection):
        self._db = db_connection

    def _conn(self) -> sqlite3.Connection:
        if not self._db.is_connected():
            raise StoreError("DB에 연결되지 않았습니다.")
        return self._db.get_conn()

    def create_subject(self, name: str) -> str:
        conn = self._conn()
        try:
            cur = conn.execute("INSERT INTO subjects (name) VALUES (?)", (name or "",))
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"과목 저장 실패: {e}") from e
        return str(cur.lastrowid)

    def create_chapter(
        self,
        subject_id: str,
        name: str,
        chapter_number: int,
        parent_id: Optional[str] = None,
    ) -> str:
        conn = self._conn()
        try:
            cur = conn.execute(
                "INSERT INTO chapters (subject_id, parent_id, name, chapter_number) VALUES (?, ?, ?, ?)",
                (
                    int(subject_id),
                    int(parent_id) if parent_id is not None else None,
                    name or "",
                    int(chapter_number),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"단원 저장 실패: {e}") from e
        return str(cur.lastrowid)

    def list_subjects(self) -> List[dict]:
        try:
            rows = self._conn().execute("SELECT id, name FROM subjects ORDER BY name").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"과목 조회 실패: {e}") from e
        return [row_to_dict(r, id_key="id") for r in rows]

    def list_chapters(self) -> List[dict]:
        try:
            rows = self._conn().execute(
                "SELECT id, name, chapter_number, parent_id, subject_id FROM chapters ORDER BY chapter_number"
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"단원 조회 실패: {e}") from e
        return [row_to_dict(r, id_key="id") for r in rows]
