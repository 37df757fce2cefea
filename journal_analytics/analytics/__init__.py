"""Trade journal analytics: equity, drawdowns, streaks, sequences, drift, cohorts and notes."""
from journal_analytics.analytics.cohort import analyze_cohorts, compare_cohorts, split_trade_cohorts
from journal_analytics.analytics.drawdown import (
    analyze_drawdowns,
    compute_drawdown_metrics,
    find_drawdown_periods,
    symbol_drawdown_metrics,
    symbol_drawdown_periods,
)
from journal_analytics.analytics.drift import analyze_drift
from journal_analytics.analytics.equity import build_equity_curve, drawdown_chart_data
from journal_analytics.analytics.export import export_results
from journal_analytics.analytics.markov import analyze_trade_sequence
from journal_analytics.analytics.models import CohortSplit, DriftConfig, JournalReport, NLPConfig
from journal_analytics.analytics.notes import analyze_sentiment, analyze_trade_notes
from journal_analytics.analytics.report import build_report
from journal_analytics.analytics.streaks import compute_streak_metrics, strategy_streaks, symbol_streaks

__all__ = [
    "CohortSplit",
    "DriftConfig",
    "JournalReport",
    "NLPConfig",
    "analyze_cohorts",
    "analyze_drawdowns",
    "analyze_drift",
    "analyze_sentiment",
    "analyze_trade_notes",
    "analyze_trade_sequence",
    "build_equity_curve",
    "build_report",
    "compare_cohorts",
    "compute_drawdown_metrics",
    "compute_streak_metrics",
    "drawdown_chart_data",
    "export_results",
    "find_drawdown_periods",
    "split_trade_cohorts",
    "strategy_streaks",
    "symbol_drawdown_metrics",
    "symbol_drawdown_periods",
    "symbol_streaks",
]
