"""
Problem 조회 Service

필터에 넣을 후보 문제 목록을 DB에서 읽어옵니다.
- 통합사회: problems 테이블 (chapter_id 기준)
- 태그 과목: problem_tags(단원 경로) + accuracy_rate(정답률/정답) 병합
  ID에서 파싱한 시험 정보로 문제 유형/연도/파일명을 채움
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from core.config import AppConfig
from core.models import ChapterNode, FilterCriteria, Problem
from core.problem_id import ECONOMY_SUBJECT, tag_type_for_subject
from database.repositories import ProblemRepository, TagRepository
from database.sqlite_connection import SQLiteConnection, chunked
from services.chapter.chapter_tree import expand_selection
from services.problem.tagged_problem import pick_tag_rows, problem_from_tag_row
from services.worksheet.problem_filter import ChapterMatchPolicy, ProblemFilter


logger = logging.getLogger(__name__)


class ProblemService:
    """필터 후보 문제 조회 서비스"""

    def __init__(self, db_connection: SQLiteConnection, config: Optional[AppConfig] = None):
        self.db_connection = db_connection
        self.config = config or AppConfig()
        self.problem_repo = ProblemRepository(db_connection)
        self.tag_repo = TagRepository(db_connection)

    # ----------------------------
    # 통합사회
    # ----------------------------
    def load_default_problems(
        self,
        selected_chapters: Optional[Sequence[str]] = None,
        content_tree: Optional[Sequence[ChapterNode]] = None,
    ) -> List[Problem]:
        """선택 단원(하위 단원 포함)의 문제. selected_chapters가 None이면 전체."""
        if selected_chapters is None:
            return self.problem_repo.list_all()
        tree = content_tree if content_tree is not None else self.config.default_content_tree
        chapter_ids = set(selected_chapters) | expand_selection(tree, selected_chapters)
        return self.problem_repo.list_by_chapters(sorted(chapter_ids))

    # ----------------------------
    # 태그 과목
    # ----------------------------
    def load_tagged_problems(self, subject: str) -> List[Problem]:
        """과목 태그 타입의 문제 전체 (정답률은 배치로 조회)."""
        rows = self.tag_repo.list_tag_rows(tag_type_for_subject(subject))
        by_id = pick_tag_rows(rows)
        ids = list(by_id.keys())

        accuracy: Dict[str, dict] = {}
        for batch in chunked(ids, self.config.tagged_batch_size):
            accuracy.update(self.tag_repo.list_accuracy(batch))
        logger.debug("%s 태그 문제 %d개, 정답률 %d개 조회", subject, len(ids), len(accuracy))

        out: List[Problem] = []
        for pid in ids:
            problem = problem_from_tag_row(by_id[pid], accuracy.get(pid))
            if problem is not None:
                out.append(problem)
        return out

    # ----------------------------
    # 필터 적용
    # ----------------------------
    def find_problems(
        self,
        criteria: FilterCriteria,
        subject: Optional[str] = None,
        content_tree: Optional[Sequence[ChapterNode]] = None,
    ) -> List[Problem]:
        """
        조건에 맞는 문제 조회

        Args:
            criteria: 필터 조건
            subject: 태그 과목명 (None이면 통합사회)
            content_tree: 통합사회 단원 트리 (None이면 설정의 기본 트리)
        """
        if not criteria.selected_chapters:
            return []

        if subject:
            scale_name = "economy" if subject == ECONOMY_SUBJECT else "default"
            problem_filter = ProblemFilter(
                policy=ChapterMatchPolicy.TAG_OVERLAP,
                scale=self.config.scale_for(scale_name),
            )
            candidates = self.load_tagged_problems(subject)
        else:
            tree = content_tree if content_tree is not None else self.config.default_content_tree
            problem_filter = ProblemFilter(
                policy=ChapterMatchPolicy.TREE,
                content_tree=tree,
                scale=self.config.scale_for("default"),
            )
            candidates = self.load_default_problems(criteria.selected_chapters, tree)

        result = problem_filter.filter(candidates, criteria)
        logger.info("문제 조회: 후보 %d개 → %d개", len(candidates), len(result))
        return result
