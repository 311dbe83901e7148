"""
학습지 PDF 문서 정의 생성 (순수 로직)

이미지(data URI) 목록을 받아 렌더러에 넘길 선언형 문서 트리(dict)를 만듭니다.
네트워크/파일 I/O는 하지 않습니다 (이미지 로드는 image_loader 담당).

문서 구조
- A4, 여백 [좌, 상, 우, 하] = [40, 60, 40, 30]
- 머리말: 과목명 / 학습지 제목 / "날짜 | N문제 | 작성자 | 이름 ____" / 구분선
- 본문: 한 줄에 이미지 2개 (왼쪽/오른쪽 열), 홀수면 마지막 줄은 왼쪽만
- 해설: 페이지 나눔 후 같은 머리말 + 같은 2단 배치
- 꼬리말: 페이지마다 구분선 + 현재 쪽 번호 (전체 쪽수 표시 없음)

노드 종류: columns / image / text / canvas(line) / pageBreak / pageNumber
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

PAGE_SIZE = "A4"
PAGE_MARGINS = [40, 60, 40, 30]
PAGE_WIDTH = 595

IMAGE_WIDTH = 240
IMAGE_MARGIN = [0, 0, 0, 20]
COLUMN_GAP = 15
ROW_MARGIN = [0, 0, 0, 30]

RULE_COLOR = "#e0e0e0"
PAGE_NUMBER_COLOR = "#666666"

DEFAULT_SUBJECT_TITLE = "통합사회"
ANSWER_SECTION_TITLE = "정답 및 해설"


def _rule(margin: Sequence[int]) -> dict:
    return {
        "canvas": [
            {
                "type": "line",
                "x1": 0, "y1": 0, "x2": PAGE_WIDTH, "y2": 0,
                "lineWidth": 1,
                "lineColor": RULE_COLOR,
            }
        ],
        "margin": list(margin),
    }


def create_two_column_layout(images: Sequence[str]) -> List[dict]:
    """이미지 2개씩 한 줄 (columns 노드 목록)."""
    rows: List[dict] = []
    for i in range(0, len(images), 2):
        column_content = [
            {
                "image": image,
                "width": IMAGE_WIDTH,
                "alignment": "center",
                "margin": list(IMAGE_MARGIN),
            }
            for image in images[i:i + 2]
            if image
        ]
        if column_content:
            rows.append({
                "columns": column_content,
                "columnGap": COLUMN_GAP,
                "margin": list(ROW_MARGIN),
            })
    return rows


def create_footer() -> List[dict]:
    """페이지마다 그릴 꼬리말 (쪽 번호는 렌더링 시 채움)."""
    return [
        _rule([0, 0, 0, 0]),
        {
            "pageNumber": True,
            "alignment": "center",
            "fontSize": 10,
            "color": PAGE_NUMBER_COLOR,
            "margin": [0, 8, 0, 0],
        },
    ]


def format_date(created_at: Optional[datetime]) -> str:
    return (created_at or datetime.now()).strftime("%Y.%m.%d")


def create_header(
    problem_count: int,
    title: Optional[str] = None,
    author: Optional[str] = None,
    created_at: Optional[datetime] = None,
    subject: Optional[str] = None,
) -> List[dict]:
    header: List[dict] = [
        {
            "text": subject or DEFAULT_SUBJECT_TITLE,
            "fontSize": 20,
            "color": "#FF00A1",
            "alignment": "left",
            "margin": [0, 0, 0, 8],
        }
    ]
    if title:
        header.append({
            "text": title,
            "fontSize": 16,
            "color": "#6A6A6A",
            "alignment": "left",
            "margin": [0, 0, 0, 20],
        })
    else:
        header.append({"text": "", "margin": [0, 0, 0, 12]})

    header.append({
        "text": f"{format_date(created_at)} | {problem_count}문제 | {author or ''} | 이름 _______________",
        "fontSize": 9,
        "color": "#888888",
        "alignment": "left",
        "margin": [0, 0, 0, 20],
    })
    # 머리말 구분선은 왼쪽 끝까지
    header.append(_rule([-PAGE_MARGINS[0], 0, 0, 20]))
    return header


def build_document(
    problem_images: Sequence[str],
    answer_images: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    author: Optional[str] = None,
    created_at: Optional[datetime] = None,
    subject: Optional[str] = None,
) -> dict:
    """
    학습지 문서 정의 생성

    Args:
        problem_images: 문제 이미지 data URI (출력 순서)
        answer_images: 해설 이미지 data URI (없으면 해설 페이지 생략)
        title: 학습지 제목
        author: 작성자
        created_at: 머리말 날짜 (없으면 오늘)
        subject: 과목명 (없으면 '통합사회')

    Returns:
        렌더러 입력 dict (pageSize, pageMargins, footer, content)
    """
    problem_images = list(problem_images or [])
    content: List[dict] = create_header(len(problem_images), title, author, created_at, subject)
    content.extend(create_two_column_layout(problem_images))

    answers = list(answer_images or [])
    if answers:
        content.append({"pageBreak": "after", "text": ""})
        content.extend(create_header(len(problem_images), title, author, created_at, subject))
        content.append({
            "text": ANSWER_SECTION_TITLE,
            "fontSize": 14,
            "alignment": "left",
            "margin": [0, 0, 0, 16],
        })
        content.extend(create_two_column_layout(answers))

    return {
        "pageSize": PAGE_SIZE,
        "pageMargins": list(PAGE_MARGINS),
        "footer": create_footer(),
        "content": content,
    }
