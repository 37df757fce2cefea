"""Tests for Markov-chain trade sequence analysis."""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from journal_analytics.analytics.markov import (
    analyze_sequence_streaks,
    analyze_trade_sequence,
    build_transition_matrix,
    calculate_consecutive_loss_impact,
    calculate_recovery_rate,
    classify_trade,
    find_patterns,
    predict_next_trade,
)
from journal_analytics.analytics.models import SequenceMetrics
from journal_analytics.data.models import Trade

W, L, B = "win", "loss", "breakeven"


def _dates(n: int) -> list[datetime]:
    return [datetime(2024, 1, 1) + timedelta(days=i) for i in range(n)]


def _trades_from_pnls(pnls: list[float]) -> list[Trade]:
    return [
        Trade(id=str(i), symbol="AAPL", entry_date=d, exit_date=d, pnl_amount=p)
        for i, (p, d) in enumerate(zip(pnls, _dates(len(pnls))))
    ]


class TestClassifyTrade:
    def test_default_threshold(self):
        assert classify_trade(5) == W
        assert classify_trade(-5) == L
        assert classify_trade(0) == B

    def test_breakeven_band(self):
        assert classify_trade(4, threshold=5) == B
        assert classify_trade(-5, threshold=5) == B
        assert classify_trade(6, threshold=5) == W


class TestTransitionMatrix:
    def test_row_normalized(self):
        m = build_transition_matrix([W, L, W, W])
        assert m.WW == pytest.approx(0.5)
        assert m.WL == pytest.approx(0.5)
        assert m.LW == pytest.approx(1.0)
        assert m.BW == m.BL == m.BB == 0.0

    def test_single_outcome_is_all_zero(self):
        m = build_transition_matrix([W])
        assert all(v == 0.0 for v in m.model_dump().values())


class TestFindPatterns:
    def test_sliding_windows(self):
        outcomes = [W, L, W, L, W]
        patterns = find_patterns(outcomes, _dates(5), [10, -5, 10, -5, 10])
        assert patterns[0].pattern == "WLW"
        assert patterns[0].count == 2
        assert patterns[0].probability == pytest.approx(2 / 3)
        assert patterns[0].avg_pnl == pytest.approx(15)
        assert patterns[1].pattern == "LWL"

    def test_too_short(self):
        assert find_patterns([W, L], _dates(2), [1, -1]) == []


class TestSequenceStreaks:
    def test_longest_tie_goes_to_most_recent(self):
        dates = _dates(3)
        streaks = analyze_sequence_streaks([W, L, W], dates, [1, -1, 2])
        assert streaks.longest_win_streak.start_date == dates[2]
        assert streaks.current_streak.type == W
        assert streaks.average_win_streak == 1.0

    def test_breakeven_run_can_be_current(self):
        streaks = analyze_sequence_streaks([W, B, B], _dates(3), [1, 0, 0])
        assert streaks.current_streak.type == B
        assert streaks.current_streak.length == 2
        assert streaks.longest_loss_streak is None


class TestPrediction:
    def test_empty(self):
        assert predict_next_trade([], build_transition_matrix([])) is None

    def test_uses_current_state_row(self):
        outcomes = [W, L, W, W]
        prediction = predict_next_trade(outcomes, build_transition_matrix(outcomes))
        assert prediction.current_state == W
        assert prediction.predictions.next_win_probability == pytest.approx(0.5)
        assert prediction.confidence == pytest.approx(0.5 * 4 / 30)
        assert prediction.sample_size == 4


class TestRecoveryAndLossImpact:
    def test_recovery_rate(self):
        assert calculate_recovery_rate([L, W, L, L]) == pytest.approx(0.5)
        assert calculate_recovery_rate([W, W]) == 0.0

    def test_consecutive_loss_impact(self):
        outcomes = [L, L, W, L, L, L]
        assert calculate_consecutive_loss_impact(outcomes) == pytest.approx(0.5 - 1 / 6)

    def test_no_double_losses(self):
        assert calculate_consecutive_loss_impact([L, W, L]) == 0.0


class TestAnalyzeTradeSequence:
    def test_empty(self):
        assert analyze_trade_sequence([]) == SequenceMetrics()

    def test_full_analysis(self):
        metrics = analyze_trade_sequence(_trades_from_pnls([10, -5, 0, 10, 10]))
        assert metrics.total_trades == 5
        # W | L | B | WW
        assert metrics.total_sequences == 4
        assert metrics.transition_matrix.LB == 1.0
        assert metrics.prediction.current_state == W
        assert metrics.streak_analysis.longest_win_streak.length == 2
