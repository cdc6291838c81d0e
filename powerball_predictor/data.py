import json
import logging
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import DATA_FILE, ENGINE_CONFIG, MAIN_NUMBER_RANGE, N_MAIN, POWERBALL_RANGE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Drawing:
    """One historical Powerball result."""

    numbers: tuple
    powerball: int
    date: str = ""
    jackpot: Optional[float] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Drawing":
        numbers = raw["numbers"]
        if isinstance(numbers, str):
            numbers = [n for n in numbers.replace(",", " ").split() if n]
        jackpot = raw.get("jackpot")
        if jackpot is not None:
            try:
                jackpot = float(jackpot)
            except (TypeError, ValueError):
                jackpot = None
            else:
                if np.isnan(jackpot):
                    jackpot = None
        return cls(
            numbers=tuple(int(n) for n in numbers),
            powerball=int(raw["powerball"]),
            date=str(raw.get("date", "") or ""),
            jackpot=jackpot,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["numbers"] = list(self.numbers)
        return d


DrawingLike = Union[Drawing, Mapping[str, Any]]


def is_valid_main_numbers(numbers: Sequence[Any]) -> bool:
    """Exactly five distinct integers in [1, 69]."""
    try:
        if len(numbers) != N_MAIN:
            return False
    except TypeError:
        return False
    for n in numbers:
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            return False
        if not 1 <= n <= MAIN_NUMBER_RANGE:
            return False
    return len(set(int(n) for n in numbers)) == N_MAIN


def is_valid_powerball(powerball: Any) -> bool:
    if isinstance(powerball, bool) or not isinstance(powerball, (int, np.integer)):
        return False
    return 1 <= powerball <= POWERBALL_RANGE


def is_valid_drawing(drawing: Any) -> bool:
    if isinstance(drawing, Drawing):
        numbers, powerball = drawing.numbers, drawing.powerball
    elif isinstance(drawing, Mapping):
        numbers, powerball = drawing.get("numbers"), drawing.get("powerball")
    else:
        return False
    return is_valid_main_numbers(numbers) and is_valid_powerball(powerball)


def is_history_usable(history: Any, min_history: int = ENGINE_CONFIG["min_history"]) -> bool:
    """True iff history is a most-recent-first sequence of at least
    ``min_history`` drawings that are all individually valid."""
    if history is None or isinstance(history, (str, bytes, Mapping)):
        return False
    try:
        if len(history) < min_history:
            return False
    except TypeError:
        return False
    return all(is_valid_drawing(d) for d in history)


def coerce_history(history: Any, min_history: int = ENGINE_CONFIG["min_history"]) -> Optional[List[Drawing]]:
    """Return the history as a list of Drawing objects, or None if it is unusable."""
    if not is_history_usable(history, min_history):
        return None
    return [d if isinstance(d, Drawing) else Drawing.from_mapping(d) for d in history]


class LotteryDataManager:
    """Loads, converts and synthesizes drawing histories."""

    def __init__(self, file_path: str = str(DATA_FILE)):
        self.file_path = file_path
        self.data = None

    def load_data(self) -> List[Drawing]:
        """Load drawings from a JSON or CSV file, most recent first."""
        if self.data is not None:
            return self.data

        path = Path(self.file_path)
        if not path.exists():
            raise FileNotFoundError(f"History file not found: {path}")

        try:
            if path.suffix.lower() == ".json":
                with open(path, "r") as f:
                    raw = json.load(f)
                if isinstance(raw, Mapping):
                    raw = raw.get("drawings", [])
                records = list(raw)
            elif path.suffix.lower() == ".csv":
                records = self._read_csv(path)
            else:
                raise ValueError(f"Unsupported history format: {path.suffix}")

            drawings = []
            skipped = 0
            for record in records:
                if not isinstance(record, Mapping):
                    skipped += 1
                    continue
                try:
                    drawing = Drawing.from_mapping(record)
                except (KeyError, TypeError, ValueError):
                    skipped += 1
                    continue
                if not is_valid_drawing(drawing):
                    skipped += 1
                    continue
                drawings.append(drawing)

            if skipped:
                logger.warning(f"Skipped {skipped} malformed drawings in {path.name}")

            self.data = self.sort_most_recent_first(drawings)
            logger.info(f"Successfully loaded {len(self.data)} draws.")
            return self.data

        except Exception as e:
            logger.error(f"Error loading data: {str(e)}")
            raise

    def _read_csv(self, path: Path) -> List[Dict[str, Any]]:
        df = pd.read_csv(path)
        df.columns = [c.strip().lower() for c in df.columns]
        ball_cols = [f"n{i}" for i in range(1, N_MAIN + 1)]
        if "numbers" not in df.columns and all(c in df.columns for c in ball_cols):
            df["numbers"] = df[ball_cols].values.tolist()
        if "numbers" not in df.columns or "powerball" not in df.columns:
            raise ValueError("CSV history needs 'numbers' (or n1..n5) and 'powerball' columns")
        keep = [c for c in ("numbers", "powerball", "date", "jackpot") if c in df.columns]
        return df[keep].to_dict(orient="records")

    @staticmethod
    def sort_most_recent_first(drawings: List[Drawing]) -> List[Drawing]:
        """Order by date descending; keeps file order when any date is missing or unparseable."""
        if not drawings or not all(d.date for d in drawings):
            return list(drawings)
        parsed = pd.Series(pd.to_datetime([d.date for d in drawings], errors="coerce"))
        if parsed.isna().any():
            return list(drawings)
        order = parsed.sort_values(ascending=False, kind="stable").index
        return [drawings[i] for i in order]

    @staticmethod
    def to_dataframe(history: Sequence[DrawingLike]) -> pd.DataFrame:
        """Tabular view of a history, one row per drawing, same order."""
        rows = []
        for d in history:
            drawing = d if isinstance(d, Drawing) else Drawing.from_mapping(d)
            rows.append({
                "date": drawing.date,
                "numbers": sorted(drawing.numbers),
                "powerball": drawing.powerball,
                "jackpot": drawing.jackpot,
            })
        df = pd.DataFrame(rows, columns=["date", "numbers", "powerball", "jackpot"])
        df["sum"] = df["numbers"].apply(sum) if not df.empty else pd.Series(dtype=int)
        return df

    @staticmethod
    def save_history(history: Sequence[Drawing], file_path: Union[str, Path]) -> None:
        with open(file_path, "w") as f:
            json.dump([d.to_dict() for d in history], f, indent=4)

    @staticmethod
    def generate_mock_history(n_draws: int = 500, seed: Optional[int] = None,
                              end_date: Optional[date] = None) -> List[Drawing]:
        """Synthesize ``n_draws`` valid drawings, most recent first, roughly twice a week."""
        rng = np.random.default_rng(seed)
        end_date = end_date or date.today()
        drawings = []
        for i in range(n_draws):
            # Alternate 3 and 4 day spacing to average 3.5 days
            days_back = (i // 2) * 7 + (3 if i % 2 else 0)
            draw_date = end_date - timedelta(days=days_back)
            numbers = rng.choice(np.arange(1, MAIN_NUMBER_RANGE + 1), size=N_MAIN, replace=False)
            drawings.append(Drawing(
                numbers=tuple(sorted(int(n) for n in numbers)),
                powerball=int(rng.integers(1, POWERBALL_RANGE + 1)),
                date=draw_date.isoformat(),
                jackpot=float(rng.integers(20_000_000, 520_000_000)),
            ))
        return drawings
