import logging
from typing import List, Sequence

import numpy as np

from .config import MAIN_NUMBER_RANGE, N_MAIN, POWERBALL_RANGE, STRATEGY_PARAMS
from .data import Drawing
from .fallback import fill_random
from .strategy import BaseStrategy, StrategyResult

logger = logging.getLogger(__name__)


def build_transition_matrix(history: Sequence[Drawing]) -> np.ndarray:
    """Row-normalized 69x69 matrix of P(b in next draw | a in current draw).

    History is most-recent-first, so each older drawing ``history[i + 1]``
    transitions into the newer ``history[i]``.
    """
    counts = np.zeros((MAIN_NUMBER_RANGE, MAIN_NUMBER_RANGE), dtype=float)

    for i in range(len(history) - 1):
        current = np.array(history[i + 1].numbers) - 1
        nxt = np.array(history[i].numbers) - 1
        counts[np.ix_(current, nxt)] += 1

    row_sums = counts.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        matrix = np.divide(counts, row_sums, out=np.zeros_like(counts), where=row_sums != 0)

    return matrix


class MarkovChainModel(BaseStrategy):
    """First-order number-to-number transitions seeded by the latest drawing."""

    strategy_id = "markov"
    analysis = "Markov chain state transition analysis"

    def __init__(self):
        super().__init__()
        self.params = STRATEGY_PARAMS

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        matrix = build_transition_matrix(history)
        top_k = self.params["markov_top_targets"]
        pick_from = self.params["markov_pick_from"]

        numbers: List[int] = []
        for seed in history[0].numbers:
            if len(numbers) >= N_MAIN:
                break
            row = matrix[seed - 1]
            targets = np.argsort(-row, kind="stable")[:top_k]
            targets = [int(t) + 1 for t in targets if row[t] > 0]
            if not targets:
                continue
            candidate = int(rng.choice(targets[:pick_from]))
            if candidate not in numbers:
                numbers.append(candidate)
        numbers = fill_random(numbers, rng)

        window = self.params["markov_powerball_window"]
        jitter = self.params["markov_powerball_jitter"]
        recent_pbs = [d.powerball for d in history[:window]]
        powerball = int(round(np.mean(recent_pbs))) + int(rng.integers(-jitter, jitter + 1))
        powerball = int(np.clip(powerball, 1, POWERBALL_RANGE))

        return self._result(
            numbers,
            powerball,
            active_states=int(np.count_nonzero(matrix.sum(axis=1))),
        )
