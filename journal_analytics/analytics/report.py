"""Compose every analysis over one trade snapshot into a single report."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from journal_analytics.analytics.cohort import analyze_cohorts
from journal_analytics.analytics.drawdown import (
    analyze_drawdowns,
    symbol_drawdown_metrics,
    symbol_drawdown_periods,
)
from journal_analytics.analytics.drift import analyze_drift
from journal_analytics.analytics.markov import analyze_trade_sequence
from journal_analytics.analytics.models import CohortSplit, DriftConfig, JournalReport, NLPConfig
from journal_analytics.analytics.notes import analyze_trade_notes
from journal_analytics.analytics.performance import (
    daily_stats,
    day_of_week_performance,
    monthly_trend,
    strategy_performance,
    symbol_performance,
)
from journal_analytics.analytics.streaks import compute_streak_metrics, strategy_streaks, symbol_streaks
from journal_analytics.data.cache import AnalysisCache, fingerprint
from journal_analytics.data.models import closed_trades, normalize_trades

logger = logging.getLogger(__name__)


def build_report(
    trades: Iterable[Any],
    *,
    drift_config: Optional[DriftConfig] = None,
    cohort_split: Optional[CohortSplit] = None,
    nlp_config: Optional[NLPConfig] = None,
    cache: Optional[AnalysisCache] = None,
) -> JournalReport:
    """Run every analysis on the same normalized snapshot.

    ``trades`` may mix raw dicts and ``Trade`` instances; it is never mutated.
    When a cache is given, an identical snapshot and configuration returns
    the previously computed report.
    """
    snapshot = normalize_trades(trades)
    drift_config = drift_config or DriftConfig()
    cohort_split = cohort_split or CohortSplit()
    nlp_config = nlp_config or NLPConfig()

    def compute() -> JournalReport:
        return _compute_report(snapshot, drift_config, cohort_split, nlp_config)

    if cache is None:
        return compute()
    key = fingerprint(snapshot, drift_config, cohort_split, nlp_config)
    return cache.get_or_compute(key, compute)


def _compute_report(snapshot, drift_config, cohort_split, nlp_config) -> JournalReport:
    closed = closed_trades(snapshot)
    logger.info(f"Building report for {len(snapshot)} trades ({len(closed)} closed)")

    equity_curve, periods, drawdown_metrics = analyze_drawdowns(closed)
    return JournalReport(
        generated_at=datetime.now(),
        total_trades=len(snapshot),
        closed_trades=len(closed),
        equity_curve=equity_curve,
        drawdown_periods=periods,
        drawdown_metrics=drawdown_metrics,
        symbol_drawdowns=symbol_drawdown_metrics(closed),
        symbol_drawdown_periods=symbol_drawdown_periods(closed),
        streaks=compute_streak_metrics(closed),
        symbol_streaks=symbol_streaks(closed),
        strategy_streaks=strategy_streaks(closed),
        sequence=analyze_trade_sequence(closed),
        drift=analyze_drift(closed, drift_config),
        cohorts=analyze_cohorts(closed, cohort_split),
        notes=analyze_trade_notes(closed, nlp_config),
        strategy_performance=strategy_performance(closed),
        symbol_performance=symbol_performance(closed),
        day_of_week=day_of_week_performance(closed),
        monthly_trend=monthly_trend(closed),
        daily_stats=daily_stats(closed),
    )
