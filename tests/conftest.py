import numpy as np
import pytest

from powerball_predictor.data import Drawing, LotteryDataManager


def make_drawing(numbers, powerball, day=1, jackpot=None):
    return Drawing(numbers=tuple(numbers), powerball=powerball,
                   date=f"2025-01-{day:02d}", jackpot=jackpot)


def assert_valid_ticket(numbers, powerball):
    assert len(numbers) == 5
    assert len(set(numbers)) == 5
    assert all(isinstance(n, int) and 1 <= n <= 69 for n in numbers)
    assert isinstance(powerball, int) and 1 <= powerball <= 26


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture(scope="session")
def history():
    return LotteryDataManager.generate_mock_history(500, seed=42)


@pytest.fixture
def block_history():
    """Ten drawings, drawing i holds 5i+1..5i+5 with powerball i+1, most recent first."""
    return [
        make_drawing(range(5 * i + 1, 5 * i + 6), i + 1, day=28 - i)
        for i in range(10)
    ]
