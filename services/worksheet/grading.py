"""
학습지 풀이 채점

OMR 답안(problem_id -> 선택 번호)을 학습지 문제의 정답과 비교합니다.
- 자리 표시(is_missing) 문제와 정답이 없는 문제는 채점하지 않음
- 답하지 않은 문제는 오답
- 배점은 문제의 score, 없으면 DEFAULT_POINTS
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from core.exceptions import ValidationError
from core.models import Problem, ProblemResult, SolveRecord


DEFAULT_POINTS = 2
CHOICES = range(1, 6)


def _user_answer(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        answer = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"답안은 1~5 사이의 번호여야 합니다: {value!r}") from e
    if answer not in CHOICES:
        raise ValidationError(f"답안은 1~5 사이의 번호여야 합니다: {value!r}")
    return answer


def grade_answers(
    worksheet_id: str,
    user_id: str,
    problems: Sequence[Problem],
    answers: Mapping[str, object],
) -> SolveRecord:
    """문제 목록(학습지 순서) + 답안 → 채점된 SolveRecord (저장 전)"""
    results: Dict[str, ProblemResult] = {}
    for problem in problems:
        if problem.is_missing or problem.answer is None or problem.id in results:
            continue
        user_answer = _user_answer(answers.get(problem.id))
        results[problem.id] = ProblemResult(
            user_answer=user_answer,
            correct_answer=problem.answer,
            is_correct=user_answer == problem.answer,
            score=problem.score or DEFAULT_POINTS,
        )

    correct = [r for r in results.values() if r.is_correct]
    return SolveRecord(
        worksheet_id=worksheet_id,
        user_id=user_id,
        results=results,
        score=sum(r.score for r in correct),
        max_score=sum(r.score for r in results.values()),
        correct_count=len(correct),
        total_problems=len(results),
    )
