import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import ANALYSIS_CONFIG, MAIN_NUMBER_RANGE, N_MAIN, POWERBALL_RANGE
from .data import Drawing, LotteryDataManager, is_valid_drawing

logger = logging.getLogger(__name__)


def _frequency_rows(counts: pd.Series, total_draws: int) -> List[Dict[str, Any]]:
    return [
        {
            "number": int(num),
            "count": int(count),
            "percentage": round(count / total_draws * 100, 1),
        }
        for num, count in counts.items()
    ]


def calculate_trend(values: Sequence[float], threshold_pct: float = ANALYSIS_CONFIG["trend_threshold_pct"]) -> str:
    """Compare the mean of the second half against the first half (chronological order)."""
    if len(values) < 2:
        return "stable"
    values = np.asarray(values, dtype=float)
    half = len(values) // 2
    first_avg = values[:half].mean()
    second_avg = values[half:].mean()
    if first_avg == 0:
        return "stable"

    change = (second_avg - first_avg) / first_avg * 100
    if change > threshold_pct:
        return "increasing"
    if change < -threshold_pct:
        return "decreasing"
    return "stable"


class HistoryAnalyzer:
    """Descriptive statistics over a drawing history, most recent first."""

    def __init__(self, limit: int = ANALYSIS_CONFIG["default_limit"]):
        self.limit = limit
        self.params = ANALYSIS_CONFIG

    def analyze(self, history: Sequence[Any]) -> Dict[str, Any]:
        drawings = [d if isinstance(d, Drawing) else Drawing.from_mapping(d)
                    for d in history if is_valid_drawing(d)]
        if not drawings:
            raise ValueError("No valid drawings provided for analysis.")

        skipped = len(history) - len(drawings)
        if skipped:
            logger.warning(f"Analysis skipped {skipped} malformed drawings")

        df = LotteryDataManager.to_dataframe(drawings[:self.limit])
        total = len(df)
        logger.info(f"Analyzing {total} drawings...")

        return {
            "total_drawings": total,
            "date_range": {
                "earliest": df["date"].iloc[-1] or None,
                "latest": df["date"].iloc[0] or None,
            },
            "hot_numbers": self.hot_numbers(df),
            "cold_numbers": self.cold_numbers(df),
            "powerball_stats": self.powerball_stats(df),
            "jackpot_stats": self.jackpot_stats(df),
            "patterns": self.patterns(df),
        }

    def _number_counts(self, df: pd.DataFrame) -> pd.Series:
        exploded = df["numbers"].explode().astype(int)
        return exploded.value_counts().reindex(range(1, MAIN_NUMBER_RANGE + 1), fill_value=0)

    def hot_numbers(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        counts = self._number_counts(df).sort_values(ascending=False, kind="stable")
        return _frequency_rows(counts.head(self.params["hot_cold_size"]), len(df))

    def cold_numbers(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        counts = self._number_counts(df).sort_values(ascending=True, kind="stable")
        return _frequency_rows(counts.head(self.params["hot_cold_size"]), len(df))

    def powerball_stats(self, df: pd.DataFrame) -> Dict[str, List[Dict[str, Any]]]:
        size = self.params["powerball_hot_cold_size"]
        counts = (df["powerball"].value_counts()
                  .reindex(range(1, POWERBALL_RANGE + 1), fill_value=0)
                  .sort_values(ascending=False, kind="stable"))
        rows = _frequency_rows(counts, len(df))
        return {
            "hot_powerballs": rows[:size],
            "cold_powerballs": list(reversed(rows[-size:])),
        }

    def jackpot_stats(self, df: pd.DataFrame) -> Optional[Dict[str, Any]]:
        jackpots = df["jackpot"].dropna().astype(float)
        if jackpots.empty:
            return None
        # Frame is most recent first; trend wants chronological order
        chronological = jackpots.iloc[::-1]
        return {
            "average": int(round(jackpots.mean())),
            "median": float(jackpots.median()),
            "min": float(jackpots.min()),
            "max": float(jackpots.max()),
            "trend": calculate_trend(chronological.tail(self.params["jackpot_trend_window"]).tolist()),
        }

    def patterns(self, df: pd.DataFrame) -> Dict[str, Any]:
        total = len(df)

        has_consecutive = df["numbers"].apply(
            lambda nums: any(b - a == 1 for a, b in zip(nums, nums[1:]))
        )
        consecutive_count = int(has_consecutive.sum())

        evens = df["numbers"].apply(lambda nums: sum(1 for n in nums if n % 2 == 0))
        even_counts = evens.value_counts().reindex(range(N_MAIN, -1, -1), fill_value=0)
        even_odd = [
            {
                "pattern": f"{even}-{N_MAIN - even} (Even-Odd)",
                "count": int(count),
                "percentage": round(count / total * 100, 1),
            }
            for even, count in even_counts.items()
        ]

        sums = df["sum"]
        return {
            "consecutive_numbers": {
                "count": consecutive_count,
                "percentage": round(consecutive_count / total * 100, 1),
            },
            "even_odd_distribution": even_odd,
            "sum_ranges": {
                "mean": float(sums.mean()),
                "std": float(sums.std(ddof=0)),
                "min": int(sums.min()),
                "max": int(sums.max()),
            },
        }


def analyze_history(history: Sequence[Any], limit: int = ANALYSIS_CONFIG["default_limit"]) -> Dict[str, Any]:
    return HistoryAnalyzer(limit=limit).analyze(history)
