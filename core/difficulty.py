"""
정답률 ↔ 난이도 구간

난이도 라벨과 정답률 구간의 대응은 분석 스크립트로 정한 값이라 고정 규칙이 아니라
설정 데이터로 다룹니다. 기본값은 아래 두 가지이며 config.json의
difficulty_scales로 덮어쓸 수 있습니다.

- 통합사회(기본): 상 0-40 / 중 40-70 / 하 70-100
- 경제: 최상 0-29 / 상 30-49 / 중상 50-59 / 중 60-79 / 중하 80-89 / 하 90-100
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from core.exceptions import ValidationError


FULL_RATE_RANGE: Tuple[float, float] = (0.0, 100.0)
MISSING_RATE_DEFAULT = 50.0


@dataclass(frozen=True)
class DifficultyBand:
    label: str
    min_rate: float
    max_rate: float

    def overlaps(self, lo: float, hi: float) -> bool:
        return lo <= self.max_rate and hi >= self.min_rate


@dataclass(frozen=True)
class DifficultyScale:
    """정답률 낮은 구간(어려움)부터 높은 구간 순서로 나열된 난이도 구간 목록"""

    bands: Tuple[DifficultyBand, ...]

    @property
    def labels(self) -> List[str]:
        return [b.label for b in self.bands]

    def label_for(self, rate: float) -> str:
        """정답률이 속한 난이도 라벨. 다음 구간 하한 미만이면 현재 구간."""
        for band, nxt in zip(self.bands, self.bands[1:]):
            if rate < nxt.min_rate:
                return band.label
        return self.bands[-1].label

    def rate_range_for(self, labels: Iterable[str]) -> Tuple[float, float]:
        """선택 난이도들을 모두 포함하는 정답률 범위 (없거나 전체 선택이면 0-100)."""
        by_label = {b.label: b for b in self.bands}
        picked = [by_label[l] for l in labels if l in by_label]
        if not picked or len({b.label for b in picked}) == len(self.bands):
            return FULL_RATE_RANGE
        return (min(b.min_rate for b in picked), max(b.max_rate for b in picked))

    def labels_for(self, rate_range: Sequence[float]) -> List[str]:
        lo, hi = rate_range
        return [b.label for b in self.bands if b.overlaps(lo, hi)]

    def to_list(self) -> List[dict]:
        return [{"label": b.label, "min": b.min_rate, "max": b.max_rate} for b in self.bands]

    @classmethod
    def from_list(cls, data: Sequence[dict]) -> "DifficultyScale":
        if not data:
            raise ValidationError("난이도 구간이 비어 있습니다.")
        bands = []
        for item in data:
            try:
                bands.append(
                    DifficultyBand(
                        label=str(item["label"]),
                        min_rate=float(item["min"]),
                        max_rate=float(item["max"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"난이도 구간 형식 오류: {item!r}") from e
        return cls(bands=tuple(bands))


DEFAULT_SCALE = DifficultyScale(
    bands=(
        DifficultyBand("상", 0, 40),
        DifficultyBand("중", 40, 70),
        DifficultyBand("하", 70, 100),
    )
)

ECONOMY_SCALE = DifficultyScale(
    bands=(
        DifficultyBand("최상", 0, 29),
        DifficultyBand("상", 30, 49),
        DifficultyBand("중상", 50, 59),
        DifficultyBand("중", 60, 79),
        DifficultyBand("중하", 80, 89),
        DifficultyBand("하", 90, 100),
    )
)

# 태그 과목 데이터에 섞여 있는 비표준 난이도 → 매칭되는 표준 난이도
_NON_STANDARD_MATCHES: Dict[str, Tuple[str, ...]] = {
    "중상": ("중", "상"),
    "중하": ("중", "하"),
    "최상": ("상",),
}


def matches_difficulty(label: str, selected: Iterable[str]) -> bool:
    selected = set(selected)
    if label in selected:
        return True
    return any(s in selected for s in _NON_STANDARD_MATCHES.get(label, ()))
