"""
SQLite 연결

- 단일 DB 파일로 데이터 관리 (배포·이동 시 파일만 복사)
- 문제/단원/태그/정답률/학습지 테이블
- 학습지 삭제 시 풀이 기록(solves)은 외래키 ON DELETE CASCADE로 함께 삭제
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from typing import Optional

from core.exceptions import StoreError


logger = logging.getLogger(__name__)


def _schema_sql() -> str:
    return """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS chapters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    parent_id INTEGER REFERENCES chapters(id) ON DELETE CASCADE,
    name TEXT NOT NULL DEFAULT '',
    chapter_number INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS problems (
    id TEXT PRIMARY KEY,
    problem_filename TEXT,
    answer_filename TEXT,
    answer INTEGER,
    chapter_id TEXT,
    difficulty TEXT NOT NULL DEFAULT '',
    problem_type TEXT NOT NULL DEFAULT '',
    tags_json TEXT NOT NULL DEFAULT '[]',
    correct_rate REAL,
    exam_year INTEGER,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS problem_subjects (
    problem_id TEXT NOT NULL REFERENCES problems(id) ON DELETE CASCADE,
    subject_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    PRIMARY KEY (problem_id, subject_id)
);

CREATE TABLE IF NOT EXISTS problem_tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    problem_id TEXT,
    type TEXT NOT NULL DEFAULT '',
    tag_ids_json TEXT NOT NULL DEFAULT '[]',
    tag_labels_json TEXT NOT NULL DEFAULT '[]'
);

CREATE INDEX IF NOT EXISTS ix_problem_tags_problem ON problem_tags(problem_id);
CREATE INDEX IF NOT EXISTS ix_problem_tags_type ON problem_tags(type);

CREATE TABLE IF NOT EXISTS accuracy_rate (
    problem_id TEXT PRIMARY KEY,
    difficulty TEXT,
    accuracy_rate REAL,
    correct_answer INTEGER,
    score INTEGER
);

CREATE TABLE IF NOT EXISTS worksheets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    author TEXT NOT NULL DEFAULT '',
    created_at TEXT,
    selected_problem_ids_json TEXT NOT NULL DEFAULT '[]',
    filters_json TEXT NOT NULL DEFAULT '{}',
    sorting_json TEXT NOT NULL DEFAULT '[]',
    is_public INTEGER NOT NULL DEFAULT 0,
    created_by TEXT
);

CREATE INDEX IF NOT EXISTS ix_worksheets_public_created ON worksheets(is_public, created_at);
CREATE INDEX IF NOT EXISTS ix_worksheets_owner_created ON worksheets(created_by, created_at);

CREATE TABLE IF NOT EXISTS solves (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    worksheet_id INTEGER NOT NULL REFERENCES worksheets(id) ON DELETE CASCADE,
    user_id TEXT,
    score INTEGER NOT NULL DEFAULT 0,
    max_score INTEGER NOT NULL DEFAULT 0,
    correct_count INTEGER NOT NULL DEFAULT 0,
    total_problems INTEGER NOT NULL DEFAULT 0,
    results_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_solves_worksheet ON solves(worksheet_id);
CREATE INDEX IF NOT EXISTS ix_solves_user_created ON solves(user_id, created_at);
"""


class SQLiteConnection:
    """SQLite 단일 파일 연결. is_connected / get_conn 만 노출."""

    def __init__(self, db_path: str):
        # ':memory:'는 경로 변환 없이 그대로 사용
        self._path = db_path if db_path == ":memory:" else os.path.abspath(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> bool:
        """DB 파일 생성·연결 및 스키마 초기화."""
        try:
            if self._path != ":memory:":
                parent = os.path.dirname(self._path)
                if parent:
                    os.makedirs(parent, exist_ok=True)
            self._conn = sqlite3.connect(self._path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_schema_sql())
            self._conn.commit()
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error("DB 연결 실패 (%s): %s", self._path, e)
            self._conn = None
            return False

    def disconnect(self) -> None:
        if self._conn:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning("DB 연결 종료 중 오류: %s", e)
            self._conn = None

    def is_connected(self) -> bool:
        if self._conn is None:
            return False
        try:
            self._conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False

    def get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("DB에 연결되지 않았습니다.")
        return self._conn


def row_to_dict(row: sqlite3.Row, *, id_key: str = "_id") -> dict:
    """SQLite Row를 dict로. id 컬럼을 id_key(기본 _id)로 넣어 모델 호환."""
    d = dict(row)
    if "id" in d and id_key != "id":
        d[id_key] = str(d["id"])
        del d["id"]
    return d


def json_col(val, default: str = "[]") -> str:
    if val is None:
        return default
    if isinstance(val, str):
        return val
    return json.dumps(val, ensure_ascii=False)


def parse_json(s, default):
    if not s:
        return default
    if isinstance(s, str):
        try:
            return json.loads(s)
        except json.JSONDecodeError:
            return default
    return s


def chunked(items, size: int):
    """리스트를 size개씩 나눈 조각 (IN 절 크기 제한)."""
    for i in range(0, len(items), size):
        yield items[i:i + size]
