"""
단원 트리 조회 Service

- 통합사회: subjects/chapters 테이블 → 트리 (테이블이 비어 있으면 설정의 기본 트리)
- 태그 과목: problem_tags 경로 행 → 트리, 과목명 루트로 감쌈
"""
from __future__ import annotations

import logging
from typing import List, Optional

from core.config import AppConfig
from core.models import ChapterNode
from core.problem_id import tag_type_for_subject
from database.repositories import ChapterRepository, TagRepository
from database.sqlite_connection import SQLiteConnection
from services.chapter.chapter_tree import (
    build_tree_from_chapters,
    build_tree_from_tag_rows,
    wrap_with_subject,
)


logger = logging.getLogger(__name__)


class ChapterService:
    def __init__(self, db_connection: SQLiteConnection, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        self.chapter_repo = ChapterRepository(db_connection)
        self.tag_repo = TagRepository(db_connection)

    def get_default_tree(self) -> List[ChapterNode]:
        tree = build_tree_from_chapters(self.chapter_repo.list_subjects(), self.chapter_repo.list_chapters())
        if not tree:
            return list(self.config.default_content_tree)
        return tree

    def get_tagged_tree(self, subject: str) -> List[ChapterNode]:
        rows = self.tag_repo.list_tag_rows(tag_type_for_subject(subject))
        if not rows:
            logger.debug("%s 단원 태그 없음", subject)
            return []
        return wrap_with_subject(subject, build_tree_from_tag_rows(rows))

    def get_tree(self, subject: Optional[str] = None) -> List[ChapterNode]:
        """subject가 없으면 통합사회 트리."""
        if subject:
            return self.get_tagged_tree(subject)
        return self.get_default_tree()
