import logging
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config import EngineConfig
from .consensus import EnsemblePredictor, Prediction
from .data import Drawing, coerce_history

logger = logging.getLogger(__name__)


class Backtester:
    """Walk-forward backtest of the ensemble, feeding each real result back into it."""

    def __init__(self, window: int = 50, sets_per_draw: int = 6, seed: Optional[int] = 42,
                 config: Optional[EngineConfig] = None):
        self.window = window
        self.sets_per_draw = max(1, sets_per_draw)
        self.config = config or EngineConfig(seed=seed)
        self.results: List[Dict[str, Any]] = []
        self.engine: Optional[EnsemblePredictor] = None

    def run(self, history: Sequence[Any]) -> Dict[str, Any]:
        """Backtest over the most recent ``window`` drawings of ``history``."""
        drawings = coerce_history(history, self.config.min_history + 1)
        if drawings is None:
            raise ValueError("Backtest needs a usable history with at least "
                             f"{self.config.min_history + 1} valid drawings.")

        logger.info(f"Starting Backtest over last {self.window} draws...")

        chronological = list(reversed(drawings))
        total_draws = len(chronological)
        min_train = self.config.min_history

        window = self.window
        if total_draws < window + min_train:
            logger.warning("Not enough data for requested backtest window. Adjusting...")
            window = total_draws - min_train

        self.results = []
        self.engine = EnsemblePredictor(self.config)
        start_idx = total_draws - window

        for i in range(start_idx, total_draws):
            # Only drawings strictly before the target are visible, most recent first
            train_data = chronological[:i][::-1]
            target_draw = chronological[i]

            logger.debug(f"Backtesting Draw {i + 1}/{total_draws} (Date: {target_draw.date})")

            predictions = self.engine.generate_ensemble_prediction(train_data, self.sets_per_draw)
            for pred in predictions:
                self._evaluate_prediction(pred, target_draw, i)

            self.engine.record_actual_drawing(target_draw.numbers, target_draw.powerball)
            self.engine.update_performance_metrics()

        return self._generate_report()

    def _evaluate_prediction(self, prediction: Prediction, actual: Drawing, draw_idx: int):
        main_hits = len(set(prediction.numbers) & set(actual.numbers))
        powerball_hit = int(prediction.powerball == actual.powerball)

        self.results.append({
            "draw_idx": draw_idx,
            "date": actual.date,
            "strategy_id": prediction.strategy_id,
            "main_hits": main_hits,
            "powerball_hit": powerball_hit,
            "confidence": prediction.confidence,
        })

    def _generate_report(self) -> Dict[str, Any]:
        df = pd.DataFrame(self.results)
        if df.empty:
            logger.warning("No results to report.")
            return {"draws_covered": 0, "tickets_evaluated": 0, "lines": []}

        total_predictions = len(df)
        unique_draws = df["draw_idx"].nunique()
        hit_counts = df["main_hits"].value_counts().sort_index()
        by_strategy = df.groupby("strategy_id")[["main_hits", "powerball_hit"]].mean().sort_index()
        final_weights = {
            perf["id"]: perf["weight"] for perf in self.engine.get_performance_report()["algorithms"]
        }

        report_lines = []
        report_lines.append("=== Backtest Report ===")
        report_lines.append(f"Draws Covered: {unique_draws}")
        report_lines.append(f"Tickets Evaluated: {total_predictions}")
        report_lines.append("Main Number Hits Distribution:")
        for hits, count in hit_counts.items():
            percentage = (count / total_predictions) * 100
            report_lines.append(f"{hits} Matches: {count} ({percentage:.1f}%)")

        report_lines.append(f"Average Main Hits: {df['main_hits'].mean():.2f}")
        report_lines.append(f"Powerball Hit Rate: {df['powerball_hit'].mean() * 100:.1f}%")

        report_lines.append("Avg Main Hits by Strategy:")
        for sid, row in by_strategy.iterrows():
            weight = final_weights.get(sid)
            weight_str = f" | weight {weight:.3f}" if weight is not None else ""
            report_lines.append(f"  {sid}: {row['main_hits']:.2f}{weight_str}")

        logger.info(" | ".join(report_lines))

        return {
            "draws_covered": int(unique_draws),
            "tickets_evaluated": int(total_predictions),
            "hit_distribution": {int(k): int(v) for k, v in hit_counts.items()},
            "average_main_hits": float(df["main_hits"].mean()),
            "powerball_hit_rate": float(df["powerball_hit"].mean()),
            "by_strategy": {sid: float(row["main_hits"]) for sid, row in by_strategy.iterrows()},
            "final_weights": final_weights,
            "lines": report_lines,
        }
