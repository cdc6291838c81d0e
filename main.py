import argparse
import json
import logging
import sys
from pathlib import Path

from powerball_predictor.config import DATA_FILE, LOGS_DIR, PREDICTIONS_DIR, EngineConfig
from powerball_predictor.consensus import EnsemblePredictor
from powerball_predictor.data import LotteryDataManager

# Ensure directories exist
for directory in [LOGS_DIR, PREDICTIONS_DIR]:
    directory.mkdir(exist_ok=True)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "powerball_predictor.log"),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def load_history(args):
    if args.mock:
        logger.info(f"Generating {args.mock} mock drawings...")
        return LotteryDataManager.generate_mock_history(args.mock, seed=args.seed)
    return LotteryDataManager(args.history).load_data()


def main():
    parser = argparse.ArgumentParser(description="Powerball Ensemble Number Predictor")
    parser.add_argument("--history", type=str, default=str(DATA_FILE), help="Drawing history file (JSON or CSV)")
    parser.add_argument("--mock", type=int, default=0, help="Use N synthetic drawings instead of a history file")
    parser.add_argument("--predictions", type=int, default=5, help="Number of prediction sets to generate")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument("--stats", action="store_true", help="Print historical statistics")
    parser.add_argument("--stats-limit", type=int, default=100, help="Number of recent drawings to analyze")
    parser.add_argument("--backtest", action="store_true", help="Run walk-forward backtest")
    parser.add_argument("--backtest-window", type=int, default=50, help="Number of past draws to backtest")
    parser.add_argument("--output", type=str, default=None, help="Where to write the predictions JSON")
    args = parser.parse_args()

    try:
        logger.info("=== Starting Powerball Ensemble Predictor ===")

        # 1. Load Data
        logger.info("Loading data...")
        history = load_history(args)

        if args.stats:
            from powerball_predictor.analysis import analyze_history
            stats = analyze_history(history, limit=args.stats_limit)
            print(json.dumps(stats, indent=4))
            return

        if args.backtest:
            from powerball_predictor.backtest import Backtester
            bt = Backtester(window=args.backtest_window, seed=args.seed)
            report = bt.run(history)
            print("\n".join(report["lines"]))
            return

        # 2. Generate Predictions
        engine = EnsemblePredictor(EngineConfig(seed=args.seed))
        predictions = engine.generate_ensemble_prediction(history, args.predictions)

        # 3. Output Results
        output_file = Path(args.output) if args.output else PREDICTIONS_DIR / "ensemble_predictions.json"
        with open(output_file, 'w') as f:
            json.dump([p.to_dict() for p in predictions], f, indent=4)

        print("\n=== Predictions ===")
        for pred in predictions:
            print(f"\nSet {pred.id} ({pred.strategy} | Confidence: {pred.confidence}%)")
            print(f"Numbers: {list(pred.numbers)}  Powerball: {pred.powerball}")
            meta = pred.metadata
            print(f"Sum {meta['sum']} | Even/Odd {meta['even_count']}/{meta['odd_count']} "
                  f"| Low/High {meta['low_count']}/{meta['high_count']}")

        logger.info(f"Predictions saved to {output_file}")
        logger.info("=== Execution Complete ===")

    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()

# python3 main.py --mock 500 --predictions 6 --seed 7
# python3 main.py --history lottery_data/powerball_history.json --backtest --backtest-window 100
