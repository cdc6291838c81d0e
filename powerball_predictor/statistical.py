import itertools
import logging
from collections import Counter
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .config import (
    ALGORITHM_CONFIG,
    MAIN_NUMBER_RANGE,
    N_MAIN,
    POWERBALL_RANGE,
    STRATEGY_PARAMS,
)
from .data import Drawing
from .fallback import fill_random, sample_main_numbers
from .strategy import BaseStrategy, StrategyResult

logger = logging.getLogger(__name__)


def top_numbers(scores: np.ndarray, k: int) -> np.ndarray:
    """1-based numbers of the ``k`` highest scores; ties resolve to the lower number."""
    return np.argsort(-scores, kind="stable")[:k] + 1


def powerball_counts(history: Sequence[Drawing]) -> np.ndarray:
    pbs = np.array([d.powerball for d in history], dtype=int)
    return np.bincount(pbs, minlength=POWERBALL_RANGE + 1)[1:].astype(float)


def presence_matrix(history: Sequence[Drawing]) -> np.ndarray:
    """Boolean matrix (n_draws, 69); row 0 is the most recent drawing."""
    presence = np.zeros((len(history), MAIN_NUMBER_RANGE), dtype=bool)
    for i, drawing in enumerate(history):
        presence[i, np.array(drawing.numbers) - 1] = True
    return presence


class EWMAFrequencyModel(BaseStrategy):
    """Exponentially weighted frequency of every number, recent drawings first."""

    strategy_id = "ewma"
    analysis = "EWMA frequency analysis with exponential weighting"

    def __init__(self, alpha: float = ALGORITHM_CONFIG["ewma_alpha"]):
        super().__init__()
        self.alpha = alpha
        self.params = STRATEGY_PARAMS

    def calculate_scores(self, history: Sequence[Drawing]) -> Tuple[np.ndarray, np.ndarray]:
        """Weighted frequency arrays for main numbers (69) and powerballs (26).

        Drawing ``i`` (0 = most recent) adds ``alpha * (1 - alpha) ** i`` to
        each number it contains.
        """
        main_scores = np.zeros(MAIN_NUMBER_RANGE)
        pb_scores = np.zeros(POWERBALL_RANGE)
        weights = self.alpha * (1 - self.alpha) ** np.arange(len(history))

        for weight, drawing in zip(weights, history):
            main_scores[np.array(drawing.numbers) - 1] += weight
            pb_scores[drawing.powerball - 1] += weight

        return main_scores, pb_scores

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        main_scores, pb_scores = self.calculate_scores(history)

        shortlist = rng.permutation(top_numbers(main_scores, self.params["ewma_shortlist"]))
        numbers: List[int] = []
        # Walk the shuffled shortlist with wrap-around until five are filled
        for i in range(len(shortlist) * 2):
            candidate = int(shortlist[i % len(shortlist)])
            if candidate not in numbers:
                numbers.append(candidate)
            if len(numbers) == N_MAIN:
                break
        numbers = fill_random(numbers, rng)

        pb_shortlist = rng.permutation(top_numbers(pb_scores, self.params["ewma_powerball_shortlist"]))
        powerball = int(rng.choice(pb_shortlist))

        return self._result(numbers, powerball, top_score=float(main_scores.max()))


class PairRelationshipModel(BaseStrategy):
    """Builds a ticket from the most frequently co-occurring number pairs."""

    strategy_id = "pairs"
    analysis = "Pair relationship analysis and co-occurrence patterns"

    def __init__(self):
        super().__init__()
        self.params = STRATEGY_PARAMS

    @staticmethod
    def count_pairs(history: Sequence[Drawing]) -> Counter:
        pair_freq = Counter()
        for drawing in history:
            pair_freq.update(itertools.combinations(sorted(drawing.numbers), 2))
        return pair_freq

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        pair_freq = self.count_pairs(history)
        ranked = sorted(pair_freq.items(), key=lambda kv: (-kv[1], kv[0]))

        numbers: List[int] = []
        for (a, b), _ in ranked:
            for n in (a, b):
                if n not in numbers and len(numbers) < N_MAIN:
                    numbers.append(n)
            if len(numbers) >= N_MAIN:
                break
        numbers = fill_random(numbers, rng)

        top_pbs = top_numbers(powerball_counts(history), self.params["pair_powerball_shortlist"])
        powerball = int(rng.choice(top_pbs))

        (a, b), count = ranked[0] if ranked else ((0, 0), 0)
        return self._result(numbers, powerball, strongest_pair=[int(a), int(b)], strongest_pair_count=int(count))


class GapAnalysisModel(BaseStrategy):
    """Favors numbers whose current absence is long relative to their usual gap."""

    strategy_id = "gaps"
    analysis = "Gap pattern analysis identifying overdue numbers"

    def __init__(self):
        super().__init__()
        self.params = STRATEGY_PARAMS

    @staticmethod
    def calculate_gaps(history: Sequence[Drawing]) -> Dict[str, np.ndarray]:
        """Current gap, average gap and overdue score for numbers 1..69.

        Current gap is the index of the latest appearance (history length if
        never drawn). Average gap is the mean distance between consecutive
        appearances, or the history length when there is fewer than two.
        """
        n_draws = len(history)
        presence = presence_matrix(history)
        current_gaps = np.full(MAIN_NUMBER_RANGE, float(n_draws))
        average_gaps = np.full(MAIN_NUMBER_RANGE, float(n_draws))

        for idx in range(MAIN_NUMBER_RANGE):
            appearances = np.flatnonzero(presence[:, idx])
            if appearances.size:
                current_gaps[idx] = appearances[0]
            if appearances.size > 1:
                average_gaps[idx] = np.diff(appearances).mean()

        with np.errstate(divide="ignore", invalid="ignore"):
            overdue = np.where(average_gaps > 0, current_gaps / average_gaps, 0.0)

        return {
            "current_gaps": current_gaps,
            "average_gaps": average_gaps,
            "overdue_scores": overdue,
        }

    @staticmethod
    def powerball_current_gaps(history: Sequence[Drawing]) -> np.ndarray:
        gaps = np.full(POWERBALL_RANGE, float(len(history)))
        for i in range(len(history) - 1, -1, -1):
            gaps[history[i].powerball - 1] = i
        return gaps

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        gaps = self.calculate_gaps(history)
        ranked = top_numbers(gaps["overdue_scores"], self.params["gap_shortlist"])

        n_most = self.params["gap_most_overdue"]
        n_moderate = self.params["gap_moderate_overdue"]
        most_overdue = rng.permutation(ranked[:n_most])
        moderate = rng.permutation(ranked[n_most:n_most + n_moderate])

        numbers = [int(n) for n in most_overdue[:n_most]]
        for n in moderate:
            if len(numbers) >= N_MAIN:
                break
            if int(n) not in numbers:
                numbers.append(int(n))
        numbers = fill_random(numbers, rng)

        powerball = int(np.argmax(self.powerball_current_gaps(history))) + 1

        return self._result(
            numbers,
            powerball,
            overdue_count=int(np.sum(gaps["overdue_scores"] > 1.5)),
        )


class SumRangeModel(BaseStrategy):
    """Constructs a ticket whose sum lands on a target drawn around the historical mean."""

    strategy_id = "sum"
    analysis = "Sum range optimization based on statistical distribution"

    def __init__(self):
        super().__init__()
        self.params = STRATEGY_PARAMS

    @staticmethod
    def sum_statistics(history: Sequence[Drawing]) -> Dict[str, float]:
        sums = np.array([sum(d.numbers) for d in history], dtype=float)
        return {"mean": float(sums.mean()), "std": float(sums.std())}

    def map_sum_to_powerball(self, target: int) -> int:
        low, high = self.params["sum_powerball_span"]
        scaled = 1 + (target - low) / (high - low) * (POWERBALL_RANGE - 1)
        return int(np.clip(round(scaled), 1, POWERBALL_RANGE))

    def build_numbers(self, target: int, rng: np.random.Generator) -> Tuple[List[int], int]:
        """Greedy construction of five distinct numbers summing to ``target``.

        Returns the numbers and the attempts used; after ``sum_max_attempts``
        failed constructions the numbers are uniform random.
        """
        jitter = self.params["sum_jitter"]
        max_attempts = self.params["sum_max_attempts"]

        for attempt in range(1, max_attempts + 1):
            numbers: List[int] = []
            remaining = target
            for slot in range(N_MAIN - 1):
                slots_left = N_MAIN - slot
                candidate = int(round(remaining / slots_left)) + int(rng.integers(-jitter, jitter + 1))
                candidate = int(np.clip(candidate, 1, MAIN_NUMBER_RANGE))
                if candidate in numbers:
                    break
                numbers.append(candidate)
                remaining -= candidate
            else:
                if 1 <= remaining <= MAIN_NUMBER_RANGE and remaining not in numbers:
                    return numbers + [remaining], attempt

        logger.debug(f"Sum construction for target {target} failed after {max_attempts} attempts")
        return sample_main_numbers(rng), max_attempts

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        stats = self.sum_statistics(history)
        target = int(round(stats["mean"] + (rng.random() - 0.5) * stats["std"]))

        numbers, attempts = self.build_numbers(target, rng)
        powerball = self.map_sum_to_powerball(target)

        return self._result(numbers, powerball, target_sum=target, attempts=attempts, **stats)
