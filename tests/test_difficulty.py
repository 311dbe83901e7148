import pytest

from core.difficulty import DEFAULT_SCALE, ECONOMY_SCALE, DifficultyScale, matches_difficulty
from core.exceptions import ValidationError


@pytest.mark.parametrize("rate,label", [(0, "상"), (39.9, "상"), (40, "중"), (69, "중"), (70, "하"), (100, "하")])
def test_default_scale_labels(rate, label):
    assert DEFAULT_SCALE.label_for(rate) == label


def test_economy_scale_labels():
    assert ECONOMY_SCALE.label_for(29.5) == "최상"
    assert ECONOMY_SCALE.label_for(55) == "중상"
    assert ECONOMY_SCALE.label_for(95) == "하"


def test_rate_range_for_labels():
    assert DEFAULT_SCALE.rate_range_for(["중"]) == (40, 70)
    assert DEFAULT_SCALE.rate_range_for(["상", "중"]) == (0, 70)
    assert DEFAULT_SCALE.rate_range_for(["상", "중", "하"]) == (0.0, 100.0)
    assert DEFAULT_SCALE.rate_range_for([]) == (0.0, 100.0)
    assert DEFAULT_SCALE.labels_for((45, 50)) == ["중"]


def test_scale_from_list():
    scale = DifficultyScale.from_list([{"label": "어려움", "min": 0, "max": 50}, {"label": "쉬움", "min": 50, "max": 100}])
    assert scale.labels == ["어려움", "쉬움"]
    assert scale.to_list()[1] == {"label": "쉬움", "min": 50.0, "max": 100.0}
    with pytest.raises(ValidationError):
        DifficultyScale.from_list([])
    with pytest.raises(ValidationError):
        DifficultyScale.from_list([{"label": "x"}])


def test_non_standard_difficulty_matches():
    assert matches_difficulty("중상", ["상"])
    assert matches_difficulty("최상", ["상"])
    assert not matches_difficulty("중하", ["상"])
    assert matches_difficulty("중", ["중"])
