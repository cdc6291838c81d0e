import numpy as np
import pytest

from powerball_predictor.markov import MarkovChainModel, build_transition_matrix
from powerball_predictor.neural import NeuralPatternModel
from powerball_predictor.statistical import (
    EWMAFrequencyModel,
    GapAnalysisModel,
    PairRelationshipModel,
    SumRangeModel,
    top_numbers,
)

from conftest import assert_valid_ticket, make_drawing


ALL_MODELS = [
    EWMAFrequencyModel,
    PairRelationshipModel,
    GapAnalysisModel,
    SumRangeModel,
    MarkovChainModel,
    NeuralPatternModel,
]


@pytest.mark.parametrize("model_cls", ALL_MODELS)
def test_every_strategy_returns_valid_ticket(model_cls, history, rng):
    model = model_cls()
    for _ in range(20):
        result = model.predict(history, rng)
        assert_valid_ticket(result.numbers, result.powerball)
        assert result.numbers == sorted(result.numbers)
        assert result.strategy_id == model.strategy_id
        assert result.analysis


@pytest.mark.parametrize("model_cls", ALL_MODELS)
def test_strategies_handle_minimum_history(model_cls, block_history, rng):
    result = model_cls().predict(block_history, rng)
    assert_valid_ticket(result.numbers, result.powerball)


def test_top_numbers_breaks_ties_low_first():
    scores = np.array([0.1, 0.5, 0.5, 0.2])
    assert top_numbers(scores, 3).tolist() == [2, 3, 4]


class TestEWMA:
    def test_recent_drawings_dominate(self, block_history):
        model = EWMAFrequencyModel(alpha=0.3)
        main_scores, pb_scores = model.calculate_scores(block_history)

        assert main_scores[0] == pytest.approx(0.3)
        assert main_scores[5] == pytest.approx(0.3 * 0.7)
        assert main_scores[10] == pytest.approx(0.3 * 0.7 ** 2)
        assert main_scores[60] == 0.0
        assert pb_scores[0] > pb_scores[1] > pb_scores[9]

    def test_picks_from_shortlists(self, block_history, rng):
        model = EWMAFrequencyModel(alpha=0.3)
        for _ in range(25):
            result = model.predict(block_history, rng)
            assert set(result.numbers) <= set(range(1, 16))
            assert 1 <= result.powerball <= 8


class TestPairs:
    def test_most_frequent_pair_is_used(self, rng):
        history = [
            make_drawing([10, 20, 30 + i, 40 + i, 50 + i], (i % 26) + 1, day=i + 1)
            for i in range(12)
        ]
        counts = PairRelationshipModel.count_pairs(history)
        assert counts[(10, 20)] == 12
        assert counts[(30, 40)] == 1

        result = PairRelationshipModel().predict(history, rng)
        assert {10, 20} <= set(result.numbers)

    def test_powerball_from_most_frequent(self, rng):
        history = [make_drawing([1, 2, 3, 4, 5 + i], 7 if i % 2 else 9, day=i + 1) for i in range(12)]
        # Only 7 and 9 were drawn; the rest of the top eight are zero-count ties, lowest first
        allowed = {1, 2, 3, 4, 5, 6, 7, 9}
        for _ in range(10):
            result = PairRelationshipModel().predict(history, rng)
            assert result.powerball in allowed


class TestGaps:
    def test_gap_statistics(self, block_history):
        gaps = GapAnalysisModel.calculate_gaps(block_history)
        # 1..5 drawn in the most recent drawing only
        assert gaps["current_gaps"][0] == 0
        assert gaps["average_gaps"][0] == len(block_history)
        # 69 never drawn
        assert gaps["current_gaps"][68] == len(block_history)
        assert gaps["overdue_scores"][68] == pytest.approx(1.0)

    def test_average_gap_between_appearances(self):
        history = [
            make_drawing([7, 11, 12, 13, 14] if i % 3 == 1 else [21, 22, 23, 24, 25 + i], 1, day=i + 1)
            for i in range(12)
        ]
        gaps = GapAnalysisModel.calculate_gaps(history)
        assert gaps["current_gaps"][6] == 1
        assert gaps["average_gaps"][6] == pytest.approx(3.0)
        assert gaps["overdue_scores"][6] == pytest.approx(1 / 3)

    def test_numbers_come_from_overdue_shortlist(self, history, rng):
        model = GapAnalysisModel()
        ranked = top_numbers(model.calculate_gaps(history)["overdue_scores"], 15)
        for _ in range(10):
            result = model.predict(history, rng)
            assert set(ranked[:3].tolist()) <= set(result.numbers)
            assert set(result.numbers) <= set(ranked[:10].tolist())

    def test_powerball_is_most_overdue(self, rng):
        history = [make_drawing([1, 2, 3, 4, 5], (i % 26) + 1, day=(i % 28) + 1) for i in range(30)]
        result = GapAnalysisModel().predict(history, rng)
        assert result.powerball == 26


class TestMarkov:
    def alternating_history(self):
        a, b = [1, 2, 3, 4, 5], [6, 7, 8, 9, 10]
        return [make_drawing(a if i % 2 else b, 10, day=i + 1) for i in range(12)]

    def test_transition_matrix_rows(self):
        matrix = build_transition_matrix(self.alternating_history())
        assert matrix.shape == (69, 69)
        assert matrix[5, :5] == pytest.approx([0.2] * 5)
        assert matrix[5, 5:].sum() == 0
        row_sums = matrix.sum(axis=1)
        assert np.all((np.isclose(row_sums, 1.0)) | (row_sums == 0))

    def test_prediction_follows_transitions(self, rng):
        history = self.alternating_history()
        for _ in range(10):
            result = MarkovChainModel().predict(history, rng)
            assert set(result.numbers) & {1, 2, 3}
            assert 7 <= result.powerball <= 13


class TestSumRange:
    def flat_sum_history(self):
        layouts = [[33, 34, 35, 36, 37], [30, 34, 35, 36, 40]]
        return [make_drawing(layouts[i % 2], 5, day=i + 1) for i in range(15)]

    def test_hits_target_when_sums_are_constant(self, rng):
        model = SumRangeModel()
        history = self.flat_sum_history()
        stats = model.sum_statistics(history)
        assert stats["mean"] == 175
        assert stats["std"] == 0

        for _ in range(20):
            result = model.predict(history, rng)
            assert_valid_ticket(result.numbers, result.powerball)
            assert sum(result.numbers) == 175
            assert result.powerball == 14

    @pytest.mark.parametrize("target,expected", [(75, 1), (275, 26), (10, 1), (400, 26)])
    def test_powerball_mapping(self, target, expected):
        assert SumRangeModel().map_sum_to_powerball(target) == expected

    def test_impossible_target_falls_back(self, rng):
        numbers, attempts = SumRangeModel().build_numbers(5, rng)
        assert attempts == 100
        assert_valid_ticket(numbers, 1)


class TestNeural:
    def test_features_and_outputs(self, history):
        model = NeuralPatternModel(seed=1)
        features = model.extract_features(history)
        assert features.shape == (10,)
        assert np.all(features[:5] > 0) and np.all(features[:5] <= 1)
        assert 0 <= features[8] <= 1

        probs = model.forward_pass(features)
        assert probs.shape == (69,)
        assert np.all((probs > 0) & (probs < 1))

    def test_weights_are_seeded_and_fixed(self, history):
        a = NeuralPatternModel(seed=5)
        b = NeuralPatternModel(seed=5)
        for key in ("w1", "w2", "b1", "b2"):
            assert np.array_equal(a.weights[key], b.weights[key])
        assert a.weights["w1"].shape == (10, 20)
        assert a.weights["w2"].shape == (20, 69)
        assert np.all(np.abs(a.weights["w1"]) <= 0.05)

        before = a.weights["w2"].copy()
        a.predict(history, np.random.default_rng(0))
        assert np.array_equal(before, a.weights["w2"])

    def test_outputs_stay_close_to_half(self, history, rng):
        bound = 1 / (1 + np.exp(-0.5))
        for seed in range(10):
            model = NeuralPatternModel(seed=seed)
            probs = model.forward_pass(model.extract_features(history))
            assert np.all((probs > 1 - bound) & (probs < bound))
            assert 11 <= model.predict(history, rng).powerball <= 16

    @pytest.mark.parametrize("first_five,expected", [(0.0, 1), (0.5, 14), (0.999, 26), (0.2, 6)])
    def test_powerball_from_mean_of_first_outputs(self, history, rng, monkeypatch, first_five, expected):
        model = NeuralPatternModel(seed=0)
        probs = np.full(69, 0.1)
        probs[:5] = first_five
        monkeypatch.setattr(model, "forward_pass", lambda features: probs)
        assert model.predict(history, rng).powerball == expected

    def test_sum_trend_feature(self):
        history = [make_drawing([60, 61, 62, 63, 64], 1, day=3),
                   make_drawing([1, 2, 3, 4, 5], 1, day=2),
                   make_drawing([1, 2, 3, 4, 6], 1, day=1)]
        features = NeuralPatternModel(seed=0).extract_features(history)
        assert features[6] == pytest.approx((310 - 16) / 345)
