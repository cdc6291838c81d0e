import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Sequence

import numpy as np

from .config import N_MAIN, EngineConfig

logger = logging.getLogger(__name__)


def match_score(numbers: Sequence[int], powerball: int,
                actual_numbers: Sequence[int], actual_powerball: int) -> float:
    """(matched main numbers + powerball match) / 6."""
    main_hits = len(set(numbers) & set(actual_numbers))
    pb_hit = 1 if powerball == actual_powerball else 0
    return (main_hits + pb_hit) / (N_MAIN + 1)


@dataclass
class AlgorithmPerformance:
    strategy_id: str
    weight: float
    success_rate: float
    window: int
    average_confidence: float
    recent_hits: Deque[float] = field(default_factory=deque)
    total_predictions: int = 0
    correct_predictions: int = 0
    confidence_samples: int = 0

    def __post_init__(self):
        self.recent_hits = deque(self.recent_hits, maxlen=self.window)

    def record_hit(self, score: float) -> None:
        self.recent_hits.append(score)
        self.total_predictions += 1
        if score > 0:
            self.correct_predictions += 1

    def record_confidence(self, confidence: int) -> None:
        self.confidence_samples += 1
        self.average_confidence += (confidence - self.average_confidence) / self.confidence_samples

    def refresh_success_rate(self) -> None:
        if self.recent_hits:
            self.success_rate = float(np.mean(self.recent_hits))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.strategy_id,
            "weight": round(self.weight, 4),
            "success_rate": round(self.success_rate, 4),
            "recent_hits": list(self.recent_hits),
            "total_predictions": self.total_predictions,
            "correct_predictions": self.correct_predictions,
            "average_confidence": round(self.average_confidence, 2),
        }


class PerformanceTracker:
    """Per-strategy success rates and ensemble weights, updated from real results."""

    def __init__(self, config: EngineConfig, strategy_ids: Iterable[str]):
        self.config = config
        self.algorithms: Dict[str, AlgorithmPerformance] = {}
        for sid in strategy_ids:
            self.algorithms[sid] = AlgorithmPerformance(
                strategy_id=sid,
                weight=float(np.clip(config.base_weights.get(sid, config.min_weight),
                                     config.min_weight, config.max_weight)),
                success_rate=config.initial_success_rate,
                window=config.performance_window,
                average_confidence=config.initial_average_confidence,
            )

    def __contains__(self, strategy_id: str) -> bool:
        return strategy_id in self.algorithms

    def get(self, strategy_id: str) -> AlgorithmPerformance:
        return self.algorithms[strategy_id]

    def weight(self, strategy_id: str) -> float:
        perf = self.algorithms.get(strategy_id)
        return perf.weight if perf else 0.0

    def record_outcomes(self, predictions: Sequence[Any], actual_numbers: Sequence[int],
                        actual_powerball: int) -> List[float]:
        """Score each prediction of a batch against the actual drawing."""
        scores = []
        for pred in predictions:
            score = match_score(pred.numbers, pred.powerball, actual_numbers, actual_powerball)
            scores.append(score)
            perf = self.algorithms.get(pred.strategy_id)
            if perf is None:
                continue
            perf.record_hit(score)
            perf.refresh_success_rate()
        return scores

    def update_metrics(self) -> None:
        """Recompute success rates and nudge weights; meant to run on a fixed interval."""
        cfg = self.config
        for sid, perf in self.algorithms.items():
            perf.refresh_success_rate()
            old_weight = perf.weight
            if perf.success_rate > cfg.high_success_threshold:
                perf.weight = min(cfg.max_weight, perf.weight * (1 + cfg.weight_step))
            elif perf.success_rate < cfg.low_success_threshold:
                perf.weight = max(cfg.min_weight, perf.weight * (1 - cfg.weight_step))
            if perf.weight != old_weight:
                logger.debug(f"Weight for {sid}: {old_weight:.4f} -> {perf.weight:.4f} "
                             f"(success rate {perf.success_rate:.3f})")

    def health(self) -> Dict[str, Dict[str, Any]]:
        return {
            sid: {
                "success_rate": perf.success_rate,
                "weight": perf.weight,
                "status": "healthy" if perf.success_rate > self.config.low_success_threshold else "degraded",
            }
            for sid, perf in self.algorithms.items()
        }

    def to_list(self) -> List[Dict[str, Any]]:
        return [perf.to_dict() for perf in self.algorithms.values()]
