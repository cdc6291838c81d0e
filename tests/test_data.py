import json

import pandas as pd
import pytest

from powerball_predictor.data import (
    Drawing,
    LotteryDataManager,
    coerce_history,
    is_history_usable,
    is_valid_drawing,
)

from conftest import make_drawing


def test_valid_drawing_shapes():
    assert is_valid_drawing(make_drawing([1, 2, 3, 4, 5], 6))
    assert is_valid_drawing({"numbers": [69, 1, 30, 12, 44], "powerball": 26})


@pytest.mark.parametrize("raw", [
    {"numbers": [1, 2, 3, 4], "powerball": 6},
    {"numbers": [1, 2, 3, 4, 4], "powerball": 6},
    {"numbers": [0, 2, 3, 4, 5], "powerball": 6},
    {"numbers": [1, 2, 3, 4, 70], "powerball": 6},
    {"numbers": [1, 2, 3, 4, 5], "powerball": 27},
    {"numbers": [1, 2, 3, 4, 5], "powerball": 0},
    {"numbers": [1, 2, 3, 4, 5.5], "powerball": 6},
    {"numbers": [1, 2, 3, 4, 5]},
    {"powerball": 6},
    "1 2 3 4 5 6",
    None,
])
def test_invalid_drawings_rejected(raw):
    assert not is_valid_drawing(raw)


def test_history_usable_needs_ten_valid_drawings(block_history):
    assert is_history_usable(block_history)
    assert not is_history_usable(block_history[:9])
    assert not is_history_usable([])
    assert not is_history_usable(None)
    assert not is_history_usable({"numbers": [1, 2, 3, 4, 5], "powerball": 1})

    broken = list(block_history)
    broken[4] = {"numbers": [1, 1, 2, 3, 4], "powerball": 3}
    assert not is_history_usable(broken)


def test_coerce_history_converts_mappings(block_history):
    raw = [d.to_dict() for d in block_history]
    drawings = coerce_history(raw)
    assert all(isinstance(d, Drawing) for d in drawings)
    assert drawings[0].numbers == (1, 2, 3, 4, 5)
    assert coerce_history(raw[:5]) is None


def test_load_json_sorts_most_recent_first(tmp_path, block_history):
    path = tmp_path / "history.json"
    # Written oldest first on purpose
    LotteryDataManager.save_history(list(reversed(block_history)), path)

    loaded = LotteryDataManager(str(path)).load_data()
    assert len(loaded) == 10
    assert loaded[0].date == "2025-01-28"
    assert loaded[-1].date == "2025-01-19"


def test_load_json_skips_malformed_rows(tmp_path, block_history):
    rows = [d.to_dict() for d in block_history]
    rows.append({"numbers": [1, 2, 3], "powerball": 4, "date": "2025-02-01"})
    rows.append({"date": "2025-02-02"})
    path = tmp_path / "history.json"
    path.write_text(json.dumps({"drawings": rows}))

    loaded = LotteryDataManager(str(path)).load_data()
    assert len(loaded) == 10


def test_load_csv_with_ball_columns(tmp_path):
    df = pd.DataFrame({
        "date": ["2025-03-01", "2025-03-04"],
        "n1": [1, 10], "n2": [2, 20], "n3": [3, 30], "n4": [4, 40], "n5": [5, 50],
        "powerball": [6, 26],
        "jackpot": [100000000.0, None],
    })
    path = tmp_path / "history.csv"
    df.to_csv(path, index=False)

    loaded = LotteryDataManager(str(path)).load_data()
    assert [d.numbers for d in loaded] == [(10, 20, 30, 40, 50), (1, 2, 3, 4, 5)]
    assert loaded[0].jackpot is None
    assert loaded[1].jackpot == 100000000.0


def test_load_csv_with_numbers_column(tmp_path):
    path = tmp_path / "history.csv"
    path.write_text("date,numbers,powerball\n2025-03-01,\"5 17 22 41 68\",9\n")
    loaded = LotteryDataManager(str(path)).load_data()
    assert loaded[0].numbers == (5, 17, 22, 41, 68)
    assert loaded[0].powerball == 9


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        LotteryDataManager(str(tmp_path / "missing.json")).load_data()

    path = tmp_path / "history.txt"
    path.write_text("nothing")
    with pytest.raises(ValueError):
        LotteryDataManager(str(path)).load_data()


def test_mock_history_is_valid_and_descending(history):
    assert len(history) == 500
    assert is_history_usable(history)
    dates = pd.to_datetime([d.date for d in history])
    assert dates.is_monotonic_decreasing
    assert all(20_000_000 <= d.jackpot < 520_000_000 for d in history)


def test_mock_history_is_seeded():
    a = LotteryDataManager.generate_mock_history(20, seed=3)
    b = LotteryDataManager.generate_mock_history(20, seed=3)
    assert [d.numbers for d in a] == [d.numbers for d in b]


def test_to_dataframe(block_history):
    df = LotteryDataManager.to_dataframe(block_history)
    assert list(df.columns) == ["date", "numbers", "powerball", "jackpot", "sum"]
    assert df["sum"].iloc[0] == 15
