from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .data import Drawing


@dataclass
class StrategyResult:
    """Raw candidate produced by one strategy before ensemble decoration."""

    numbers: List[int]
    powerball: int
    strategy_id: str
    analysis: str
    confidence: Optional[int] = None
    slot_index: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


class BaseStrategy:
    """Base class for the heuristic generators.

    Subclasses set ``strategy_id`` and implement ``predict``. Strategies are
    pure functions of the history plus the random generator handed in, so a
    seeded generator makes them reproducible.
    """

    strategy_id = ""
    analysis = ""

    def predict(self, history: Sequence[Drawing], rng: np.random.Generator) -> StrategyResult:
        raise NotImplementedError(f"Strategy {self.strategy_id} must implement predict()")

    def _result(self, numbers: Sequence[int], powerball: int, **details) -> StrategyResult:
        return StrategyResult(
            numbers=sorted(int(n) for n in numbers),
            powerball=int(powerball),
            strategy_id=self.strategy_id,
            analysis=self.analysis,
            details=details,
        )

    def __repr__(self):
        return f"{type(self).__name__}(id={self.strategy_id!r})"
