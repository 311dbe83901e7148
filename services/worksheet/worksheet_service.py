"""
WorksheetService (학습지 생성/조회/수정/삭제)

- 생성: 필터/정렬이 끝난 문제 목록의 ID를 순서 그대로 저장 + 필터 조건/정렬 규칙 저장
- 조회: 저장된 ID 순서대로 현재 문제 데이터를 다시 읽어 재구성
  더 이상 없는 문제는 빠뜨리지 않고 자리 표시(is_missing) 문제로 채움
- 수정/삭제/공개 설정: 소유자만 가능
- 풀이: 답안 채점 후 기록 저장, 사용자별 오답 문제 조회

문제 ID 체계(기본/태그/경제)는 ID마다 판별해 체계별로 묶고,
묶음마다 재구성 전략(ProblemHydrator)을 적용한 뒤 저장 순서대로 합칩니다.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple, Union

from core.config import AppConfig
from core.exceptions import AuthorizationError, NotFoundError, StoreError, ValidationError
from core.models import (
    ChapterNode,
    FilterCriteria,
    Problem,
    SolveRecord,
    SortRule,
    Worksheet,
    sort_rules_from_list,
)
from core.problem_id import (
    ECONOMY_TAG_TYPE,
    ProblemIdKind,
    classify_problem_ids,
    group_by_kind,
    parse_structured_id,
)
from database.repositories import ProblemRepository, TagRepository, WorksheetRepository
from database.sqlite_connection import SQLiteConnection, chunked
from services.problem.tagged_problem import pick_tag_rows, problem_from_tag_row

from .grading import grade_answers
from .problem_filter import ChapterMatchPolicy, ProblemFilter
from .sort_rules import apply_sort_rules, mode_for_problems


logger = logging.getLogger(__name__)


CriteriaLike = Union[FilterCriteria, dict, None]


def _criteria_dict(criteria: CriteriaLike) -> dict:
    if criteria is None:
        return {}
    if isinstance(criteria, FilterCriteria):
        return criteria.to_dict()
    return dict(criteria)


def missing_placeholder(problem_id: str) -> Problem:
    """더 이상 존재하지 않는 문제의 자리 표시 (ID에서 읽을 수 있는 정보만 채움)."""
    parsed = parse_structured_id(problem_id)
    if parsed is None:
        return Problem(id=problem_id, difficulty="-", problem_type="-", is_missing=True)
    return Problem(
        id=problem_id,
        difficulty="-",
        problem_type=parsed.problem_type,
        tags=[parsed.subject],
        related_subjects=[parsed.subject],
        exam_year=parsed.exam_year,
        is_missing=True,
    )


# ----------------------------
# ID 체계별 재구성 전략
# ----------------------------
class ProblemHydrator:
    """ID 배치 → 현재 문제 데이터. 배치 하나라도 실패하면 StoreError."""

    batch_size = 100

    def fetch_batch(self, problem_ids: List[str]) -> List[Problem]:
        raise NotImplementedError

    def hydrate(self, problem_ids: Sequence[str]) -> List[Problem]:
        ids = list(problem_ids)
        found: Dict[str, Problem] = {}
        total = (len(ids) + self.batch_size - 1) // self.batch_size
        for n, batch in enumerate(chunked(ids, self.batch_size), start=1):
            logger.debug("문제 배치 조회 %d/%d (%d개)", n, total, len(batch))
            try:
                problems = self.fetch_batch(batch)
            except StoreError as e:
                logger.error("문제 배치 %d/%d 조회 실패: %s", n, total, e)
                raise
            for p in problems:
                found[p.id] = p

        out: List[Problem] = []
        for pid in ids:
            problem = found.get(pid)
            out.append(problem if problem is not None else missing_placeholder(pid))
        return out


class DefaultHydrator(ProblemHydrator):
    """통합사회: problems 테이블 (과목 조인 포함)"""

    def __init__(self, problem_repo: ProblemRepository, batch_size: int = 100):
        self.problem_repo = problem_repo
        self.batch_size = batch_size

    def fetch_batch(self, problem_ids: List[str]) -> List[Problem]:
        return self.problem_repo.list_by_ids(problem_ids)


class TaggedHydrator(ProblemHydrator):
    """
    태그 과목: problem_tags + accuracy_rate

    - tag_type이 없으면 태그 타입 무관 (여러 과목이 섞인 학습지)
    - 경제는 MT_단원_태그 타입만 사용
    """

    def __init__(self, tag_repo: TagRepository, batch_size: int = 50, tag_type: Optional[str] = None):
        self.tag_repo = tag_repo
        self.batch_size = batch_size
        self.tag_type = tag_type

    def fetch_batch(self, problem_ids: List[str]) -> List[Problem]:
        rows = self.tag_repo.list_by_problem_ids(problem_ids, tag_type=self.tag_type)
        accuracy = self.tag_repo.list_accuracy(problem_ids)
        out = []
        for pid, row in pick_tag_rows(rows).items():
            problem = problem_from_tag_row(row, accuracy.get(pid))
            if problem is not None:
                out.append(problem)
        return out


class WorksheetService:
    """학습지 생성/조회/수정/삭제 서비스"""

    def __init__(self, db_connection: SQLiteConnection, config: Optional[AppConfig] = None):
        self.db_connection = db_connection
        self.config = config or AppConfig()
        self.worksheet_repo = WorksheetRepository(db_connection)
        self.problem_repo = ProblemRepository(db_connection)
        self.tag_repo = TagRepository(db_connection)
        self._hydrators: Dict[ProblemIdKind, ProblemHydrator] = {
            ProblemIdKind.DEFAULT: DefaultHydrator(self.problem_repo, self.config.default_batch_size),
            ProblemIdKind.TAGGED: TaggedHydrator(self.tag_repo, self.config.tagged_batch_size),
            ProblemIdKind.ECONOMY: TaggedHydrator(
                self.tag_repo, self.config.tagged_batch_size, tag_type=ECONOMY_TAG_TYPE
            ),
        }

    def hydrator_for(self, kind: ProblemIdKind) -> ProblemHydrator:
        return self._hydrators[kind]

    # ----------------------------
    # 내부 유틸
    # ----------------------------
    @staticmethod
    def _clean_title(title: Optional[str]) -> str:
        return (title or "").strip()

    @staticmethod
    def _problem_ids(problems: Sequence[Union[Problem, str]]) -> List[str]:
        ids = [p.id if isinstance(p, Problem) else str(p) for p in (problems or [])]
        if not ids:
            raise ValidationError("학습지에는 최소 1개 이상의 문제가 필요합니다.")
        return ids

    def _require(self, worksheet_id: str) -> Worksheet:
        ws = self.worksheet_repo.find_by_id(worksheet_id)
        if ws is None:
            raise NotFoundError("학습지", worksheet_id)
        return ws

    @staticmethod
    def _authorize(ws: Worksheet, requester: Optional[str]) -> None:
        # 소유자가 없는 학습지는 아무도 수정할 수 없음
        if not requester or requester != ws.created_by:
            raise AuthorizationError(ws.id, requester)

    # ----------------------------
    # 생성
    # ----------------------------
    def create_worksheet(
        self,
        title: str,
        author: str,
        criteria: CriteriaLike,
        problems: Sequence[Union[Problem, str]],
        *,
        created_by: Optional[str] = None,
        sorting: Optional[Sequence[SortRule]] = None,
        is_public: bool = False,
    ) -> Tuple[str, int]:
        """
        학습지 저장

        Args:
            title: 제목
            author: 작성자 표시명
            criteria: 문제를 고른 필터 조건 (재편집용)
            problems: 필터/정렬이 끝난 문제 목록 (또는 ID 목록), 이 순서대로 저장
            created_by: 소유자
            sorting: 적용한 정렬 규칙

        Returns:
            (학습지 ID, 문제 수)
        """
        ws = Worksheet(
            title=self._clean_title(title),
            author=(author or "").strip(),
            selected_problem_ids=self._problem_ids(problems),
            filters=_criteria_dict(criteria),
            is_public=is_public,
            sorting=sort_rules_from_list(sorting),
            created_by=created_by,
        )
        worksheet_id = self.worksheet_repo.create(ws)
        logger.info("학습지 생성: id=%s, 문제 %d개", worksheet_id, ws.problem_count)
        return worksheet_id, ws.problem_count

    def create_from_criteria(
        self,
        title: str,
        author: str,
        criteria: FilterCriteria,
        candidates: Sequence[Problem],
        *,
        sorting: Optional[Sequence[SortRule]] = None,
        created_by: Optional[str] = None,
        policy: Optional[ChapterMatchPolicy] = None,
        content_tree: Optional[Sequence[ChapterNode]] = None,
        rng: Optional[random.Random] = None,
    ) -> Tuple[str, int]:
        """후보 문제에 필터 → 정렬 규칙을 적용한 결과로 학습지 생성."""
        mode = policy or mode_for_problems(candidates)
        tree = content_tree if content_tree is not None else self.config.default_content_tree
        kind = classify_problem_ids([p.id for p in candidates])
        scale = self.config.scale_for("economy" if kind is ProblemIdKind.ECONOMY else "default")

        selected = ProblemFilter(policy=mode, content_tree=tree, scale=scale).filter(candidates, criteria)
        rules = list(sorting or [])
        ordered = apply_sort_rules(selected, rules, mode, content_tree=tree, rng=rng)
        return self.create_worksheet(
            title, author, criteria, ordered, created_by=created_by, sorting=rules
        )

    # ----------------------------
    # 조회
    # ----------------------------
    def hydrate(self, problem_ids: Sequence[str]) -> List[Problem]:
        """ID 목록 → 현재 문제 데이터 (체계가 섞여 있어도 저장 순서 유지)"""
        found: Dict[str, Problem] = {}
        for kind, ids in group_by_kind(problem_ids).items():
            for problem in self.hydrator_for(kind).hydrate(ids):
                found[problem.id] = problem
        return [found[pid] for pid in problem_ids]

    def get_worksheet(self, worksheet_id: str) -> Tuple[Worksheet, List[Problem]]:
        """
        학습지 + 저장 순서대로 재구성한 문제 목록

        - 없는 학습지: NotFoundError
        - 사라진 문제: is_missing 자리 표시 (목록 길이/순서 유지)
        - 배치 조회 실패: StoreError (부분 결과 없음)
        """
        ws = self._require(worksheet_id)
        problems = self.hydrate(ws.selected_problem_ids)
        missing = sum(1 for p in problems if p.is_missing)
        if missing:
            logger.info("학습지 %s: 사라진 문제 %d개", worksheet_id, missing)
        return ws, problems

    def list_public(
        self, search: str = "", page: int = 0, page_size: Optional[int] = None
    ) -> Tuple[List[Worksheet], bool]:
        """공개 학습지 페이지 조회 → (목록, 다음 페이지 여부)"""
        size = page_size or self.config.public_page_size
        rows = self.worksheet_repo.list_public(search=search, offset=max(page, 0) * size, limit=size)
        return rows, len(rows) == size

    def list_by_owner(self, owner: str) -> List[Worksheet]:
        return self.worksheet_repo.list_by_owner(owner)

    # ----------------------------
    # 수정
    # ----------------------------
    def update_worksheet(
        self,
        worksheet_id: str,
        *,
        title: Optional[str] = None,
        author: Optional[str] = None,
        criteria: CriteriaLike = None,
        problems: Optional[Sequence[Union[Problem, str]]] = None,
        sorting: Optional[Sequence[SortRule]] = None,
        requester: Optional[str] = None,
    ) -> Worksheet:
        """None인 항목은 그대로 둠. 생성 시각/소유자는 바뀌지 않음."""
        # 저장 전에 입력부터 검증
        new_title = self._clean_title(title) if title is not None else None
        new_ids = self._problem_ids(problems) if problems is not None else None

        ws = self._require(worksheet_id)
        self._authorize(ws, requester)

        if new_title is not None:
            ws.title = new_title
        if author is not None:
            ws.author = author.strip()
        if new_ids is not None:
            ws.selected_problem_ids = new_ids
        if criteria is not None:
            ws.filters = _criteria_dict(criteria)
        if sorting is not None:
            ws.sorting = sort_rules_from_list(sorting)

        self.worksheet_repo.update(ws)
        logger.info("학습지 수정: id=%s", worksheet_id)
        return ws

    def rename_worksheet(
        self,
        worksheet_id: str,
        title: Optional[str] = None,
        author: Optional[str] = None,
        requester: Optional[str] = None,
    ) -> Worksheet:
        return self.update_worksheet(worksheet_id, title=title, author=author, requester=requester)

    def set_public(self, worksheet_id: str, is_public: bool = True, requester: Optional[str] = None) -> None:
        ws = self._require(worksheet_id)
        self._authorize(ws, requester)
        self.worksheet_repo.set_public(worksheet_id, is_public)
        logger.info("학습지 공개 설정: id=%s, is_public=%s", worksheet_id, is_public)

    # ----------------------------
    # 삭제
    # ----------------------------
    def delete_worksheet(self, worksheet_id: str, requester: Optional[str]) -> None:
        """소유자만 삭제. 풀이 기록은 DB에서 함께 삭제됨."""
        ws = self._require(worksheet_id)
        self._authorize(ws, requester)
        self.worksheet_repo.delete(worksheet_id)
        logger.info("학습지 삭제: id=%s", worksheet_id)

    # ----------------------------
    # 풀이 (채점/오답)
    # ----------------------------
    def submit_solve(self, worksheet_id: str, user_id: str, answers: Dict[str, object]) -> SolveRecord:
        """
        답안 채점 후 풀이 기록 저장

        Args:
            answers: problem_id -> 선택 번호(1~5). 빠진 문제는 오답 처리

        Returns:
            저장된 SolveRecord (id 포함)
        """
        if not user_id:
            raise ValidationError("풀이 기록에는 사용자 ID가 필요합니다.")
        ws, problems = self.get_worksheet(worksheet_id)
        solve = grade_answers(ws.id, user_id, problems, answers or {})
        self.worksheet_repo.add_solve(solve)
        logger.info(
            "풀이 저장: 학습지 %s, 사용자 %s, %d/%d점 (%d/%d문제)",
            ws.id, user_id, solve.score, solve.max_score, solve.correct_count, solve.total_problems,
        )
        return solve

    def list_solves(self, worksheet_id: str, user_id: str) -> List[SolveRecord]:
        return self.worksheet_repo.list_solves(worksheet_id, user_id)

    def get_wrong_problem_ids(self, user_id: str) -> List[str]:
        """사용자가 한 번이라도 틀린 문제 ID (중복 없이, 처음 틀린 순서)"""
        wrong: Dict[str, None] = {}
        for solve in self.worksheet_repo.list_solves_by_user(user_id):
            for pid in solve.wrong_problem_ids:
                wrong.setdefault(pid, None)
        return list(wrong)
