"""
Repository 모듈

모든 Repository 클래스를 export합니다.
"""
from .problem_repository import ProblemRepository
from .chapter_repository import ChapterRepository
from .tag_repository import TagRepository
from .worksheet_repository import WorksheetRepository

__all__ = [
    'ProblemRepository',
    'ChapterRepository',
    'TagRepository',
    'WorksheetRepository',
]
