import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import (
    LOW_HIGH_THRESHOLD,
    MAIN_NUMBER_RANGE,
    N_MAIN,
    POWERBALL_RANGE,
    STRATEGY_PARAMS,
)
from .data import Drawing
from .fallback import fill_random
from .strategy import BaseStrategy, StrategyResult

logger = logging.getLogger(__name__)

N_FEATURES = 10
MAX_SUM = N_MAIN * MAIN_NUMBER_RANGE


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


class NeuralPatternModel(BaseStrategy):
    """Heuristic scorer built on a fixed random 10 -> 20 -> 69 projection.

    The weights are drawn once from the supplied generator and never trained;
    the network is a deterministic-per-instance way of turning a handful of
    summary features into per-number scores, not a learned model.

    With weights in [-0.05, 0.05] and features in [-1, 1] every output stays
    within sigmoid(+-0.5), close to 0.5. Selection is therefore driven mostly
    by the acceptance boost, and the powerball is confined to 11-16 (in
    practice 14).
    """

    strategy_id = "neural"
    analysis = "Neural network pattern recognition and feature analysis"

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        super().__init__()
        self.params = STRATEGY_PARAMS
        self.weights = self.initialize_weights(rng if rng is not None else np.random.default_rng(seed))

    def initialize_weights(self, rng: np.random.Generator) -> Dict[str, np.ndarray]:
        hidden = self.params["neural_hidden"]
        return {
            "w1": (rng.random((N_FEATURES, hidden)) - 0.5) * 0.1,
            "b1": np.zeros(hidden),
            "w2": (rng.random((hidden, MAIN_NUMBER_RANGE)) - 0.5) * 0.1,
            "b2": np.zeros(MAIN_NUMBER_RANGE),
        }

    def extract_features(self, history: Sequence[Drawing]) -> np.ndarray:
        """Ten summary features from the most recent drawings.

        1-5  positional averages of the sorted numbers, / 69
        6    average sum, / 345
        7    sum trend (latest minus third latest), / 345
        8    share of even numbers
        9    share of high numbers (> 35)
        10   recency of the most frequent number, / window
        """
        recent = history[:self.params["neural_window"]]
        draws = np.array([sorted(d.numbers) for d in recent], dtype=float)
        sums = draws.sum(axis=1)

        positional = draws.mean(axis=0) / MAIN_NUMBER_RANGE
        avg_sum = sums.mean() / MAX_SUM
        trend = (sums[0] - sums[2]) / MAX_SUM if len(sums) >= 3 else 0.0
        even_ratio = float(np.mean(draws % 2 == 0))
        high_ratio = float(np.mean(draws > LOW_HIGH_THRESHOLD))

        values, counts = np.unique(draws.astype(int), return_counts=True)
        most_frequent = values[np.argmax(counts)]
        last_seen = next(i for i, d in enumerate(recent) if most_frequent in d.numbers)
        recency = last_seen / len(recent)

        return np.concatenate([positional, [avg_sum, trend, even_ratio, high_ratio, recency]])

    def forward_pass(self, features: np.ndarray) -> np.ndarray:
        hidden = np.tanh(features @ self.weights["w1"] + self.weights["b1"])
        return sigmoid(hidden @ self.weights["w2"] + self.weights["b2"])

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        features = self.extract_features(history)
        probs = self.forward_pass(features)
        boost = self.params["neural_accept_boost"]

        numbers: List[int] = []
        for idx in np.argsort(-probs, kind="stable"):
            if len(numbers) >= N_MAIN:
                break
            if rng.random() < min(1.0, probs[idx] + boost):
                numbers.append(int(idx) + 1)
        numbers = fill_random(numbers, rng)

        # Mean of the first five outputs keeps the mapping inside 1..26
        powerball = int(np.floor(probs[:N_MAIN].mean() * POWERBALL_RANGE)) + 1
        powerball = int(np.clip(powerball, 1, POWERBALL_RANGE))

        return self._result(numbers, powerball, mean_score=float(probs.mean()))
