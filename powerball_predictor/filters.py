from datetime import datetime, timezone
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from .config import LOW_HIGH_THRESHOLD, MAIN_NUMBER_RANGE, N_MAIN, POWERBALL_RANGE
from .data import is_valid_powerball


class PredictionValidator:
    """
    Structural checks for assembled predictions plus the derived
    statistics attached to every accepted one.
    """

    def __init__(self, main_range: int = MAIN_NUMBER_RANGE, powerball_range: int = POWERBALL_RANGE):
        self.main_range = main_range
        self.powerball_range = powerball_range

    def validate(self, numbers: Sequence[Any], powerball: Any) -> Tuple[bool, str]:
        """
        Validate a candidate ticket.
        Returns (is_valid, reason).
        """
        if not self._check_count(numbers):
            return False, f"Expected {N_MAIN} main numbers"

        if not self._check_integers(numbers):
            return False, "Main numbers must be integers"

        if not self._check_range(numbers):
            return False, f"Main numbers must be within 1-{self.main_range}"

        if not self._check_distinct(numbers):
            return False, "Duplicate main numbers"

        if not is_valid_powerball(powerball) or powerball > self.powerball_range:
            return False, f"Powerball must be within 1-{self.powerball_range}"

        return True, "OK"

    def _check_count(self, nums) -> bool:
        try:
            return len(nums) == N_MAIN
        except TypeError:
            return False

    def _check_integers(self, nums) -> bool:
        return all(isinstance(n, (int, np.integer)) and not isinstance(n, bool) for n in nums)

    def _check_range(self, nums) -> bool:
        return all(1 <= n <= self.main_range for n in nums)

    def _check_distinct(self, nums) -> bool:
        return len(set(nums)) == N_MAIN

    @staticmethod
    def build_metadata(numbers: Sequence[int], data_size: int) -> Dict[str, Any]:
        evens = sum(1 for n in numbers if n % 2 == 0)
        lows = sum(1 for n in numbers if n <= LOW_HIGH_THRESHOLD)
        return {
            "sum": int(sum(numbers)),
            "even_count": evens,
            "odd_count": len(numbers) - evens,
            "low_count": lows,
            "high_count": len(numbers) - lows,
            "range": int(max(numbers) - min(numbers)),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "data_size": data_size,
        }
