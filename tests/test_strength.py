import pytest

from lift_tracker.domain.strength import estimate_one_rep_max


@pytest.mark.parametrize(
    "weight, reps, expected",
    [
        (100, 0, 100),
        (100, 10, 133),
        (90, 8, 114),
        (60, 5, 70),
        (0, 12, 0),
    ],
)
def test_epley_estimate(weight, reps, expected):
    assert estimate_one_rep_max(weight, reps) == expected


def test_rounds_half_away_from_zero():
    # 15 * (1 + 1/30) = 15.5
    assert estimate_one_rep_max(15, 1) == 16


def test_returns_int():
    assert isinstance(estimate_one_rep_max(82.5, 6), int)
