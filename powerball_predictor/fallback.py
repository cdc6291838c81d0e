import logging
from typing import List, Optional

import numpy as np

from .config import (
    CONFIDENCE_CONFIG,
    MAIN_NUMBER_RANGE,
    N_MAIN,
    POWERBALL_RANGE,
    RANDOM_STRATEGY_ID,
)
from .strategy import StrategyResult

logger = logging.getLogger(__name__)


def sample_main_numbers(rng: np.random.Generator, exclude: Optional[set] = None, count: int = N_MAIN) -> List[int]:
    """Uniformly draw ``count`` distinct main numbers not already in ``exclude``."""
    exclude = exclude or set()
    pool = np.array([n for n in range(1, MAIN_NUMBER_RANGE + 1) if n not in exclude])
    picks = rng.choice(pool, size=count, replace=False)
    return [int(n) for n in picks]


def fill_random(numbers: List[int], rng: np.random.Generator) -> List[int]:
    """Top ``numbers`` up to five distinct values with uniform random picks."""
    missing = N_MAIN - len(numbers)
    if missing <= 0:
        return list(numbers[:N_MAIN])
    return list(numbers) + sample_main_numbers(rng, exclude=set(numbers), count=missing)


def random_powerball(rng: np.random.Generator) -> int:
    return int(rng.integers(1, POWERBALL_RANGE + 1))


def generate_random_prediction(slot_index: int, rng: np.random.Generator) -> StrategyResult:
    """Uniform-random valid candidate used whenever a strategy cannot be trusted."""
    confidence = int(rng.integers(CONFIDENCE_CONFIG["fallback_min"], CONFIDENCE_CONFIG["fallback_max"]))
    return StrategyResult(
        numbers=sorted(sample_main_numbers(rng)),
        powerball=random_powerball(rng),
        strategy_id=RANDOM_STRATEGY_ID,
        analysis="Statistical random generation with constraints",
        confidence=confidence,
        slot_index=slot_index,
    )


def generate_fallback_predictions(count: int, rng: np.random.Generator) -> List[StrategyResult]:
    logger.info(f"Generating {count} fallback predictions")
    return [generate_random_prediction(i, rng) for i in range(count)]
