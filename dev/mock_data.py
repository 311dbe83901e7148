"""
목업 데이터

개발 및 테스트를 위한 샘플 데이터를 제공합니다.
- 통합사회 과목/단원 + 샘플 문제
- 태그 과목(사회문화, 경제) 단원 태그 행 + 정답률
- seed(): 빈 DB에 위 데이터를 한 번에 저장
"""
from datetime import datetime, timedelta

from core.models import Problem, TagRow
from core.problem_id import ECONOMY_TAG_TYPE, tag_type_for_subject
from database.repositories import ChapterRepository, ProblemRepository, TagRepository


# (과목명, [(대단원 번호, 대단원명, [(소단원 번호, 소단원명), ...]), ...])
MOCK_CHAPTERS = [
    ("통합사회1", [
        (1, "통합적 관점", [(1, "인간, 사회, 환경을 바라보는 다양한 관점"), (2, "통합적 관점의 필요성")]),
        (2, "인간, 사회, 환경과 행복", [(1, "행복의 의미와 기준"), (2, "행복한 삶을 실현하기 위한 조건")]),
    ]),
    ("통합사회2", [
        (1, "인권 보장과 헌법", [(1, "인권의 의미와 변화")]),
    ]),
]


def get_mock_problems() -> list[Problem]:
    """통합사회 샘플 문제 (chapter_id는 DB 단원 트리 ID 체계)"""
    now = datetime.now()
    return [
        Problem(
            id="1001",
            problem_filename="1001.png",
            answer_filename="1001_a.png",
            answer=3,
            chapter_id="통합사회_1권_1단원_1",
            difficulty="중",
            problem_type="기출",
            tags=["시간적 관점"],
            correct_rate=55.0,
            exam_year=2023,
            created_at=now - timedelta(days=3),
        ),
        Problem(
            id="1002",
            problem_filename="1002.png",
            answer_filename="1002_a.png",
            answer=1,
            chapter_id="통합사회_1권_1단원_2",
            difficulty="상",
            problem_type="기출",
            tags=["통합적 관점"],
            correct_rate=32.5,
            exam_year=2024,
            created_at=now - timedelta(days=2),
        ),
        Problem(
            id="1003",
            problem_filename="1003.png",
            answer_filename=None,
            answer=5,
            chapter_id="통합사회_1권_2단원_1",
            difficulty="하",
            problem_type="자작",
            tags=["행복"],
            correct_rate=81.0,
            exam_year=2024,
            created_at=now - timedelta(days=1),
        ),
        Problem(
            id="1004",
            problem_filename="1004.png",
            answer_filename="1004_a.png",
            answer=2,
            chapter_id="통합사회_2권_1단원_1",
            difficulty="중",
            problem_type="기출",
            tags=["인권"],
            correct_rate=None,
            exam_year=2022,
            created_at=now,
        ),
    ]


def get_mock_tag_rows() -> list[TagRow]:
    """태그 과목 단원 경로 (일부 행은 '사회탐구_' 접두 태그 포함)"""
    socio = tag_type_for_subject("사회문화")
    return [
        TagRow(
            problem_id="사회문화_고3_2024_03_학평_1_문제",
            type=socio,
            tag_ids=["사회문화-1", "사회문화-1-1"],
            tag_labels=["1. 사회·문화 현상의 탐구", "1-1. 사회·문화 현상의 이해"],
        ),
        TagRow(
            problem_id="사회문화_고3_2024_06_모평_7_문제",
            type=socio,
            tag_ids=["사회탐구_사회문화", "사회문화-1", "사회문화-1-2"],
            tag_labels=["사회탐구 사회문화", "1. 사회·문화 현상의 탐구", "1-2. 자료 수집 방법"],
        ),
        TagRow(
            problem_id="사회문화_고3_2023_09_모평_12_문제",
            type=socio,
            tag_ids=["사회문화-2", "사회문화-2-1"],
            tag_labels=["2. 개인과 사회 구조", "2-1. 사회화와 사회화 기관"],
        ),
        TagRow(
            problem_id="경제_고3_2024_03_학평_3_문제",
            type=ECONOMY_TAG_TYPE,
            tag_ids=["경제-1", "경제-1-1"],
            tag_labels=["1. 경제생활과 경제 문제", "1-1. 희소성과 합리적 선택"],
        ),
        TagRow(
            problem_id="경제_고3_2023_11_수능_15_문제",
            type=ECONOMY_TAG_TYPE,
            tag_ids=["경제-2", "경제-2-10"],
            tag_labels=["2. 시장과 경제 활동", "2-10. 시장 실패"],
        ),
    ]


def get_mock_accuracy() -> dict[str, dict]:
    """문제 ID → 정답률 행"""
    return {
        "사회문화_고3_2024_03_학평_1_문제": {"accuracy_rate": 72.0, "difficulty": "하", "correct_answer": 2, "score": 2},
        "사회문화_고3_2024_06_모평_7_문제": {"accuracy_rate": 45.5, "difficulty": "중", "correct_answer": 4, "score": 3},
        "사회문화_고3_2023_09_모평_12_문제": {"accuracy_rate": 21.0, "difficulty": "상", "correct_answer": 1, "score": 3},
        "경제_고3_2024_03_학평_3_문제": {"accuracy_rate": 64.0, "difficulty": "중", "correct_answer": 5, "score": 2},
    }


def seed(db_connection) -> dict:
    """
    빈 DB에 목업 데이터 저장

    Returns:
        {'subjects': n, 'chapters': n, 'problems': n, 'tag_rows': n}
    """
    chapter_repo = ChapterRepository(db_connection)
    problem_repo = ProblemRepository(db_connection)
    tag_repo = TagRepository(db_connection)

    counts = {"subjects": 0, "chapters": 0, "problems": 0, "tag_rows": 0}
    subject_ids = {}
    for subject_name, mains in MOCK_CHAPTERS:
        subject_id = chapter_repo.create_subject(subject_name)
        subject_ids[subject_name] = subject_id
        counts["subjects"] += 1
        for main_no, main_name, subs in mains:
            main_id = chapter_repo.create_chapter(subject_id, main_name, main_no)
            counts["chapters"] += 1
            for sub_no, sub_name in subs:
                chapter_repo.create_chapter(subject_id, sub_name, sub_no, parent_id=main_id)
                counts["chapters"] += 1

    for problem in get_mock_problems():
        volume = "통합사회1" if problem.chapter_id.startswith("통합사회_1권") else "통합사회2"
        problem_repo.create(problem, subject_ids=[subject_ids[volume]])
        counts["problems"] += 1

    for row in get_mock_tag_rows():
        tag_repo.add_tag_row(row)
        counts["tag_rows"] += 1
    for pid, acc in get_mock_accuracy().items():
        tag_repo.upsert_accuracy(pid, **acc)

    return counts
