from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Lottery Rules
MAIN_NUMBER_RANGE = 69
POWERBALL_RANGE = 26
N_MAIN = 5
LOW_HIGH_THRESHOLD = 35

# File Paths
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
DATA_DIR = PROJECT_ROOT / "lottery_data"
DATA_FILE = DATA_DIR / "powerball_history.json"
LOGS_DIR = PROJECT_ROOT / "logs"
PREDICTIONS_DIR = PROJECT_ROOT / "predictions"

# Strategy table, in round-robin order
ALGORITHM_CONFIG = {
    "ewma_alpha": 0.3,
    "algorithms": [
        {
            "id": "ewma",
            "name": "EWMA Frequency Consensus",
            "weight": 0.20,
            "description": "Exponentially Weighted Moving Average frequency analysis",
        },
        {
            "id": "neural",
            "name": "Neural Network Pattern Recognition",
            "weight": 0.17,
            "description": "Fixed random projection scoring positional patterns",
        },
        {
            "id": "pairs",
            "name": "Pair Relationship Analysis",
            "weight": 0.18,
            "description": "Co-occurrence pattern analysis identifying number relationships",
        },
        {
            "id": "gaps",
            "name": "Gap Pattern Optimization",
            "weight": 0.16,
            "description": "Overdue number identification using gap pattern analysis",
        },
        {
            "id": "markov",
            "name": "Markov Chain Transition",
            "weight": 0.14,
            "description": "State transition analysis predicting next numbers",
        },
        {
            "id": "sum",
            "name": "Sum Range Analysis",
            "weight": 0.15,
            "description": "Statistical sum range optimization",
        },
    ],
}

ALGORITHM_NAMES = {alg["id"]: alg["name"] for alg in ALGORITHM_CONFIG["algorithms"]}
RANDOM_STRATEGY_ID = "random"
RANDOM_STRATEGY_NAME = "Enhanced Random"

ENGINE_CONFIG = {
    "min_history": 10,
    "performance_window": 20,
    "history_capacity": 100,
    "initial_success_rate": 0.15,
    "initial_average_confidence": 75.0,
    "min_weight": 0.05,
    "max_weight": 0.25,
    "weight_step": 0.05,
    "high_success_threshold": 0.2,
    "low_success_threshold": 0.1,
}

# Confidence scoring (integer percentages)
CONFIDENCE_CONFIG = {
    "base": 70,
    "success_scale": 30,
    "sum_bonus_range": (100, 250),
    "sum_bonus": 5,
    "balanced_even_counts": (2, 3),
    "balance_bonus": 3,
    "jitter": 5,
    "min": 65,
    "max": 95,
    "fallback_min": 70,
    "fallback_max": 85,
}

STRATEGY_PARAMS = {
    "ewma_shortlist": 15,
    "ewma_powerball_shortlist": 8,
    "neural_window": 10,
    "neural_hidden": 20,
    "neural_accept_boost": 0.3,
    "pair_powerball_shortlist": 8,
    "gap_shortlist": 15,
    "gap_most_overdue": 3,
    "gap_moderate_overdue": 7,
    "markov_top_targets": 5,
    "markov_pick_from": 3,
    "markov_powerball_window": 5,
    "markov_powerball_jitter": 3,
    "sum_jitter": 10,
    "sum_max_attempts": 100,
    "sum_powerball_span": (75, 275),
}

ANALYSIS_CONFIG = {
    "default_limit": 100,
    "hot_cold_size": 15,
    "powerball_hot_cold_size": 5,
    "jackpot_trend_window": 10,
    "trend_threshold_pct": 10.0,
}


@dataclass
class EngineConfig:
    """Construction parameters for an EnsemblePredictor."""

    ewma_alpha: float = ALGORITHM_CONFIG["ewma_alpha"]
    performance_window: int = ENGINE_CONFIG["performance_window"]
    history_capacity: int = ENGINE_CONFIG["history_capacity"]
    min_history: int = ENGINE_CONFIG["min_history"]
    initial_success_rate: float = ENGINE_CONFIG["initial_success_rate"]
    initial_average_confidence: float = ENGINE_CONFIG["initial_average_confidence"]
    min_weight: float = ENGINE_CONFIG["min_weight"]
    max_weight: float = ENGINE_CONFIG["max_weight"]
    weight_step: float = ENGINE_CONFIG["weight_step"]
    high_success_threshold: float = ENGINE_CONFIG["high_success_threshold"]
    low_success_threshold: float = ENGINE_CONFIG["low_success_threshold"]
    base_weights: Dict[str, float] = field(
        default_factory=lambda: {alg["id"]: alg["weight"] for alg in ALGORITHM_CONFIG["algorithms"]}
    )
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 < self.ewma_alpha < 1.0:
            raise ValueError(f"ewma_alpha must be in (0, 1), got {self.ewma_alpha}")
        if self.performance_window < 1:
            raise ValueError("performance_window must be at least 1")
        if self.history_capacity < 1:
            raise ValueError("history_capacity must be at least 1")
        if self.min_weight > self.max_weight:
            raise ValueError("min_weight cannot exceed max_weight")
