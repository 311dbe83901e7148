"""
설정 로드

config/config.json을 읽어 AppConfig로 변환합니다.
- 파일이 없으면 기본값 사용
- HAKSUPJI_CONFIG 환경변수로 다른 경로 지정 가능
- 기본 단원 트리(default_content_tree)는 전역 상수가 아니라 설정값으로 읽어
  필요한 함수에 인자로 전달합니다.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.difficulty import DEFAULT_SCALE, ECONOMY_SCALE, DifficultyScale
from core.exceptions import ValidationError
from core.models import ChapterNode


CONFIG_ENV = "HAKSUPJI_CONFIG"


def _project_root() -> str:
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def default_config_path() -> str:
    return os.path.join(_project_root(), "config", "config.json")


@dataclass
class AppConfig:
    db_path: str = "data/haksupji.db"
    image_base_url: str = ""
    request_timeout: float = 15.0
    font_path: Optional[str] = None
    default_batch_size: int = 100
    tagged_batch_size: int = 50
    public_page_size: int = 20
    log_level: str = "INFO"
    difficulty_scales: Dict[str, DifficultyScale] = field(
        default_factory=lambda: {"default": DEFAULT_SCALE, "economy": ECONOMY_SCALE}
    )
    default_content_tree: List[ChapterNode] = field(default_factory=list)

    def scale_for(self, name: str) -> DifficultyScale:
        return self.difficulty_scales.get(name) or self.difficulty_scales["default"]

    def resolved_db_path(self) -> str:
        if os.path.isabs(self.db_path):
            return self.db_path
        return os.path.join(_project_root(), self.db_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        cfg = cls()
        db = data.get("database") or {}
        pdf = data.get("pdf") or {}
        worksheet = data.get("worksheet") or {}

        cfg.db_path = db.get("path", cfg.db_path)
        cfg.image_base_url = (pdf.get("image_base_url") or "").rstrip("/")
        cfg.request_timeout = float(pdf.get("request_timeout", cfg.request_timeout))
        cfg.font_path = pdf.get("font_path") or None
        cfg.default_batch_size = int(worksheet.get("default_batch_size", cfg.default_batch_size))
        cfg.tagged_batch_size = int(worksheet.get("tagged_batch_size", cfg.tagged_batch_size))
        cfg.public_page_size = int(worksheet.get("public_page_size", cfg.public_page_size))
        cfg.log_level = str(data.get("log_level", cfg.log_level)).upper()

        if cfg.default_batch_size <= 0 or cfg.tagged_batch_size <= 0:
            raise ValidationError("배치 크기는 1 이상이어야 합니다.")

        for name, bands in (data.get("difficulty_scales") or {}).items():
            cfg.difficulty_scales[name] = DifficultyScale.from_list(bands)

        cfg.default_content_tree = [
            ChapterNode.from_dict(n) for n in (data.get("default_content_tree") or [])
        ]
        return cfg


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    설정 파일 로드

    Args:
        config_path: config.json 경로 (기본값: 환경변수 → config/config.json)
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV) or default_config_path()

    if not os.path.isfile(config_path):
        return AppConfig()

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"설정 파일 형식이 올바르지 않습니다: {config_path} ({e})") from e

    if not isinstance(data, dict):
        raise ValidationError(f"설정 파일 최상위는 객체여야 합니다: {config_path}")
    return AppConfig.from_dict(data)
