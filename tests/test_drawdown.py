"""Tests for drawdown period segmentation and metrics."""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from journal_analytics.analytics.drawdown import (
    analyze_drawdowns,
    compute_drawdown_metrics,
    find_drawdown_periods,
    symbol_drawdown_metrics,
    symbol_drawdown_periods,
)
from journal_analytics.analytics.equity import build_equity_curve
from journal_analytics.analytics.models import DrawdownMetrics
from journal_analytics.data.models import Trade


def _trades_from_pnls(pnls: list[float], symbol: str = "AAPL", start: datetime = datetime(2024, 1, 1)) -> list[Trade]:
    return [
        Trade(
            id=f"{symbol}-{i}", symbol=symbol,
            entry_date=start + timedelta(days=i),
            exit_date=start + timedelta(days=i),
            pnl_amount=pnl,
        )
        for i, pnl in enumerate(pnls)
    ]


class TestFindDrawdownPeriods:
    def test_no_drawdown(self):
        points = build_equity_curve(_trades_from_pnls([10, 20, 30]))
        assert find_drawdown_periods(points) == []

    def test_recovered_period(self):
        points = build_equity_curve(_trades_from_pnls([100, -150, -50, 300]))
        periods = find_drawdown_periods(points)
        assert len(periods) == 1
        p = periods[0]
        assert p.peak_value == 100
        assert p.trough_value == -100
        assert p.drawdown_amount == 200
        assert p.is_recovered
        assert p.start_date == datetime(2024, 1, 2)
        assert p.end_date == datetime(2024, 1, 3)
        assert p.recovery_date == datetime(2024, 1, 4)
        assert p.duration == 1
        assert p.recovery_time == 1

    def test_unrecovered_period_runs_to_last_point(self):
        points = build_equity_curve(_trades_from_pnls([100, -50, -20]))
        periods = find_drawdown_periods(points)
        assert len(periods) == 1
        p = periods[0]
        assert not p.is_recovered
        assert p.recovery_date is None
        assert p.end_date == datetime(2024, 1, 3)
        assert p.trough_value == 30
        assert p.drawdown_amount == 70

    def test_trough_only_moves_lower(self):
        points = build_equity_curve(_trades_from_pnls([100, -80, 30, -10, 100]))
        p = find_drawdown_periods(points)[0]
        assert p.trough_value == 20
        assert p.drawdown_amount == 80

    def test_multiple_periods(self):
        points = build_equity_curve(_trades_from_pnls([100, -10, 20, -30, 50]))
        periods = find_drawdown_periods(points)
        assert [p.drawdown_amount for p in periods] == [10, 30]
        assert all(p.is_recovered for p in periods)


class TestComputeDrawdownMetrics:
    def test_empty(self):
        assert compute_drawdown_metrics([], []) == DrawdownMetrics()

    def test_aggregates(self):
        points, periods, m = analyze_drawdowns(_trades_from_pnls([100, -10, 20, -30, 50]))
        assert m.total_drawdown_periods == 2
        assert m.max_drawdown == 30
        assert m.avg_drawdown == pytest.approx(20)
        assert m.current_drawdown == 0
        assert m.current_drawdown_duration == 0
        # 2 periods over 4 days
        assert m.drawdown_frequency == pytest.approx(2 / (4 / 365.25))

    def test_max_ties_keep_first_period(self):
        points = build_equity_curve(_trades_from_pnls([100, -10, 20, -10, 50]))
        periods = find_drawdown_periods(points)
        m = compute_drawdown_metrics(points, periods)
        assert m.max_drawdown_percentage == periods[0].drawdown_percentage

    def test_recovery_stats_only_count_recovered(self):
        points, periods, m = analyze_drawdowns(_trades_from_pnls([100, -10, 20, -30, -5]))
        assert [p.is_recovered for p in periods] == [True, False]
        assert m.avg_recovery_time == pytest.approx(periods[0].recovery_time)
        assert m.longest_recovery_time == periods[0].recovery_time
        assert m.current_drawdown == 35
        assert m.current_drawdown_duration == periods[1].duration

    def test_single_point_has_no_frequency(self):
        _, _, m = analyze_drawdowns(_trades_from_pnls([-10]))
        assert m.total_drawdown_periods == 1
        assert m.drawdown_frequency == 0.0


class TestSymbolDrawdowns:
    def test_each_symbol_has_its_own_curve(self):
        trades = _trades_from_pnls([100, -40, 60], symbol="AAPL") + _trades_from_pnls([-20, 10], symbol="MSFT")
        metrics = symbol_drawdown_metrics(trades)
        by_symbol = {m.symbol: m for m in metrics}
        assert by_symbol["AAPL"].max_drawdown == 40
        assert not by_symbol["AAPL"].is_in_drawdown
        assert by_symbol["MSFT"].max_drawdown == 20
        assert by_symbol["MSFT"].is_in_drawdown
        assert by_symbol["MSFT"].time_in_drawdown == 2
        assert by_symbol["MSFT"].time_in_drawdown_ratio == 1.0
        assert [m.symbol for m in metrics] == ["AAPL", "MSFT"]

    def test_symbols_without_drawdown_are_omitted(self):
        trades = _trades_from_pnls([10, 20], symbol="NVDA") + _trades_from_pnls([10, -5], symbol="AMD")
        assert [m.symbol for m in symbol_drawdown_metrics(trades)] == ["AMD"]

    def test_periods_sorted_deepest_first(self):
        trades = (
            _trades_from_pnls([10, -5, 10], symbol="A", start=datetime(2024, 1, 1))
            + _trades_from_pnls([10, -8, 10], symbol="B", start=datetime(2024, 6, 1))
            + _trades_from_pnls([10, -2, 10, -6, 10], symbol="C", start=datetime(2024, 3, 1))
        )
        periods = symbol_drawdown_periods(trades)
        assert [(p.symbol, p.drawdown_amount) for p in periods] == [
            ("B", 8), ("C", 6), ("A", 5), ("C", 2),
        ]
