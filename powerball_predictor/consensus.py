import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    ALGORITHM_NAMES,
    CONFIDENCE_CONFIG,
    RANDOM_STRATEGY_NAME,
    EngineConfig,
)
from .data import coerce_history, is_valid_main_numbers, is_valid_powerball
from .fallback import generate_fallback_predictions, generate_random_prediction
from .filters import PredictionValidator
from .markov import MarkovChainModel
from .neural import NeuralPatternModel
from .performance import PerformanceTracker
from .statistical import (
    EWMAFrequencyModel,
    GapAnalysisModel,
    PairRelationshipModel,
    SumRangeModel,
)
from .strategy import BaseStrategy, StrategyResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    numbers: Tuple[int, ...]
    powerball: int
    confidence: int
    strategy_id: str
    strategy: str
    analysis: str
    weight: float
    id: int
    diversity_index: int
    source: str
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)
    details: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "numbers": list(self.numbers),
            "powerball": self.powerball,
            "confidence": self.confidence,
            "strategy_id": self.strategy_id,
            "strategy": self.strategy,
            "analysis": self.analysis,
            "weight": self.weight,
            "diversity_index": self.diversity_index,
            "source": self.source,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
            "details": dict(self.details),
        }


class EnsemblePredictor:
    """Ensemble engine: runs every strategy, assembles round-robin prediction
    sets and learns per-strategy weights from real drawing results.

    One instance owns all mutable state (performance records, prediction
    history, neural weights). Construct it once and share the handle.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 strategies: Optional[List[BaseStrategy]] = None):
        self.config = config or EngineConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.strategies = strategies if strategies is not None else self.default_strategies()
        if not self.strategies:
            raise ValueError("EnsemblePredictor needs at least one strategy")
        self.validator = PredictionValidator()
        self.performance = PerformanceTracker(self.config, [s.strategy_id for s in self.strategies])
        self.prediction_history = deque(maxlen=self.config.history_capacity)
        self.last_batch: List[Prediction] = []
        self.is_learning = True
        self._lock = threading.Lock()

    def default_strategies(self) -> List[BaseStrategy]:
        return [
            EWMAFrequencyModel(alpha=self.config.ewma_alpha),
            NeuralPatternModel(rng=self.rng),
            PairRelationshipModel(),
            GapAnalysisModel(),
            MarkovChainModel(),
            SumRangeModel(),
        ]

    def generate_ensemble_prediction(self, history: Sequence[Any], requested_sets: int = 5) -> List[Prediction]:
        """Return exactly ``requested_sets`` valid predictions.

        Unusable history yields a fallback batch; a failing strategy or an
        invalid candidate only costs its own slot.
        """
        if requested_sets <= 0:
            raise ValueError(f"requested_sets must be positive, got {requested_sets}")

        with self._lock:
            drawings = coerce_history(history, self.config.min_history)
            timestamp = datetime.now(timezone.utc).isoformat()

            if drawings is None:
                size = len(history) if hasattr(history, "__len__") else 0
                logger.warning(f"Historical data validation failed ({size} drawings), using fallback")
                # Feedback scores this batch; the prediction history does not keep it
                self.last_batch = [
                    self._build_prediction(result, i, size, timestamp)
                    for i, result in enumerate(generate_fallback_predictions(requested_sets, self.rng))
                ]
                return self.last_batch

            logger.info(f"Generating {requested_sets} ensemble predictions from {len(drawings)} drawings")
            results = self.run_all_strategies(drawings)

            predictions = []
            for i in range(requested_sets):
                result = results[i % len(results)]
                is_valid, reason = self.validator.validate(result.numbers, result.powerball)
                if not is_valid:
                    logger.warning(f"Invalid prediction from {result.strategy_id} ({reason}), using fallback")
                    result = generate_random_prediction(i, self.rng)
                predictions.append(self._build_prediction(result, i, len(drawings), timestamp))

            self.prediction_history.extend(predictions)
            self.last_batch = predictions
            return predictions

    def run_all_strategies(self, drawings: Sequence[Any]) -> List[StrategyResult]:
        results = []
        for idx, strategy in enumerate(self.strategies):
            try:
                result = strategy.predict(drawings, self.rng)
            except Exception as e:
                logger.warning(f"Strategy {strategy.strategy_id} failed: {e}")
                result = generate_random_prediction(idx, self.rng)
            results.append(result)
        return results

    def calculate_prediction_confidence(self, numbers: Sequence[int], strategy_id: str) -> int:
        """Integer confidence in [65, 95] blending strategy track record with ticket shape."""
        cfg = CONFIDENCE_CONFIG
        confidence = float(cfg["base"])

        perf = self.performance.algorithms.get(strategy_id)
        if perf is not None:
            confidence = (confidence + cfg["success_scale"] * perf.success_rate + perf.average_confidence) / 2

        low, high = cfg["sum_bonus_range"]
        if low <= sum(numbers) <= high:
            confidence += cfg["sum_bonus"]
        if sum(1 for n in numbers if n % 2 == 0) in cfg["balanced_even_counts"]:
            confidence += cfg["balance_bonus"]

        confidence += self.rng.uniform(-cfg["jitter"], cfg["jitter"])
        confidence = int(np.clip(round(confidence), cfg["min"], cfg["max"]))

        if perf is not None:
            perf.record_confidence(confidence)
        return confidence

    def _build_prediction(self, result: StrategyResult, index: int, data_size: int, timestamp: str) -> Prediction:
        tracked = result.strategy_id in self.performance
        if tracked:
            confidence = self.calculate_prediction_confidence(result.numbers, result.strategy_id)
        else:
            raw = result.confidence if result.confidence is not None else CONFIDENCE_CONFIG["fallback_min"]
            confidence = int(np.clip(raw, CONFIDENCE_CONFIG["min"], CONFIDENCE_CONFIG["max"]))

        numbers = tuple(sorted(int(n) for n in result.numbers))
        return Prediction(
            numbers=numbers,
            powerball=int(result.powerball),
            confidence=confidence,
            strategy_id=result.strategy_id,
            strategy=ALGORITHM_NAMES.get(result.strategy_id, RANDOM_STRATEGY_NAME),
            analysis=result.analysis,
            weight=self.performance.weight(result.strategy_id),
            id=index + 1,
            diversity_index=index,
            source="ensemble" if tracked else "fallback",
            timestamp=timestamp,
            metadata=self.validator.build_metadata(numbers, data_size),
            details=dict(result.details),
        )

    def record_actual_drawing(self, actual_numbers: Sequence[int], actual_powerball: int) -> None:
        """Score the latest batch against a real result. No-op without a batch."""
        with self._lock:
            if not self.last_batch:
                logger.debug("No prediction batch recorded yet; ignoring actual drawing")
                return
            if not (is_valid_main_numbers(actual_numbers) and is_valid_powerball(actual_powerball)):
                logger.warning(f"Ignoring invalid actual drawing {actual_numbers} / {actual_powerball}")
                return

            scores = self.performance.record_outcomes(self.last_batch, actual_numbers, actual_powerball)
            logger.info(f"Recorded actual drawing against {len(scores)} predictions "
                        f"(best match score {max(scores):.3f})")

    def update_performance_metrics(self) -> None:
        """Periodic hook: refresh success rates and adjust weights."""
        with self._lock:
            self.performance.update_metrics()

    def get_performance_report(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "algorithms": self.performance.to_list(),
                "prediction_history_length": len(self.prediction_history),
                "is_learning": self.is_learning,
                "algorithm_health": self.performance.health(),
            }
