"""
문제/해설 이미지 로더

이미지 서버(base_url)에서 PNG를 받아 PDF 문서 정의에 넣을 data URI로 변환합니다.
- HTTP 오류/네트워크 오류는 ImageFetchError (대체 이미지 없음)
- 자리 표시(사라진 문제)와 해설 이미지가 없는 문제는 건너뜀
"""
from __future__ import annotations

import base64
import logging
import os
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests

from core.exceptions import ImageFetchError
from core.models import Problem


logger = logging.getLogger(__name__)


def problem_image_refs(problems: Sequence[Problem]) -> List[str]:
    return [p.problem_filename for p in problems if not p.is_missing and p.problem_filename]


def answer_image_refs(problems: Sequence[Problem]) -> List[str]:
    return [p.answer_filename for p in problems if not p.is_missing and p.has_answer]


def to_data_uri(data: bytes, filename: str) -> str:
    ext = os.path.splitext(filename)[1].lstrip(".").lower() or "png"
    if ext == "jpg":
        ext = "jpeg"
    return f"data:image/{ext};base64,{base64.b64encode(data).decode('ascii')}"


class ImageLoader:
    """
    Args:
        base_url: 이미지 서버 주소 (예: https://cdn.example.com/problems)
        timeout: 요청 타임아웃(초)
        session: requests.Session (없으면 requests 모듈 함수 사용)
    """

    def __init__(self, base_url: str, timeout: float = 15.0, session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._http = session or requests

    def url_for(self, filename: str) -> str:
        return f"{self.base_url}/{quote(filename)}"

    def load(self, filename: str) -> str:
        if not filename:
            raise ImageFetchError(filename, "파일명이 비어 있습니다")
        url = self.url_for(filename)
        try:
            r = self._http.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("이미지 요청 실패: %s (%s)", url, e)
            raise ImageFetchError(filename, str(e)) from e
        if r.status_code != 200:
            raise ImageFetchError(filename, f"HTTP {r.status_code}")
        if not r.content:
            raise ImageFetchError(filename, "빈 응답")
        return to_data_uri(r.content, filename)

    def load_many(self, filenames: Sequence[str]) -> List[str]:
        """순서 유지, 하나라도 실패하면 ImageFetchError."""
        out = []
        for name in filenames:
            out.append(self.load(name))
        logger.debug("이미지 %d개 로드", len(out))
        return out
