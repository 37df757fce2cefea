"""Early vs. recent cohort comparison of trading performance."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from journal_analytics.analytics.models import (
    CohortComparison,
    CohortMetrics,
    CohortPeriod,
    CohortSplit,
    ComparisonMetric,
    Insight,
    Significance,
)
from journal_analytics.analytics.performance import profit_factor, risk_reward_ratio
from journal_analytics.data.models import Trade, sort_by_exit_date

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_MONTH = 30
SECONDS_PER_DAY = 86_400
CHANGE_EPSILON = 0.01
TREND_THRESHOLD = 10

SIGNIFICANCE_POINTS: dict[str, int] = {"high": 15, "medium": 8, "low": 3}


def calculate_cohort_metrics(trades: Sequence[Trade]) -> CohortMetrics:
    """Performance aggregate for one cohort, evaluated in the order given."""
    if not trades:
        return CohortMetrics()

    pnls = np.array([t.pnl_amount for t in trades], dtype=float)
    n = len(pnls)
    wins = pnls[pnls > 0]
    losses = pnls[pnls < 0]

    total_pnl = float(pnls.sum())
    total_wins = float(wins.sum())
    total_losses = abs(float(losses.sum()))
    average_win = total_wins / len(wins) if len(wins) else 0.0
    average_loss = total_losses / len(losses) if len(losses) else 0.0

    win_rate = len(wins) / n * 100
    expectancy = (win_rate / 100) * average_win - ((100 - win_rate) / 100) * average_loss

    std = float(np.std(pnls))
    sharpe = float(np.mean(pnls)) / std * math.sqrt(TRADING_DAYS_PER_YEAR) if std > 0 else 0.0

    cumulative = np.cumsum(pnls)
    peaks = np.maximum.accumulate(np.concatenate(([0.0], cumulative)))[1:]
    max_drawdown = float(np.max(peaks - cumulative))

    hold_times = [
        (t.exit_date - t.entry_date).total_seconds() / SECONDS_PER_DAY
        for t in trades
        if t.entry_date and t.exit_date
    ]

    exit_dates = sorted(t.exit_date for t in trades if t.exit_date)
    frequency = 0.0
    if exit_dates:
        months = (exit_dates[-1] - exit_dates[0]).total_seconds() / (SECONDS_PER_DAY * DAYS_PER_MONTH)
        frequency = n / months if months > 0 else float(n)

    return CohortMetrics(
        total_trades=n,
        winning_trades=len(wins),
        losing_trades=len(losses),
        break_even_trades=int(np.sum(pnls == 0)),
        win_rate=win_rate,
        total_pnl=total_pnl,
        average_pnl=total_pnl / n,
        average_win=average_win,
        average_loss=average_loss,
        profit_factor=profit_factor(pnls),
        largest_win=float(wins.max()) if len(wins) else 0.0,
        largest_loss=float(losses.min()) if len(losses) else 0.0,
        expectancy=expectancy,
        sharpe_ratio=sharpe,
        max_drawdown=max_drawdown,
        average_hold_time=sum(hold_times) / len(hold_times) if hold_times else 0.0,
        trading_frequency=frequency,
        risk_reward_ratio=risk_reward_ratio(pnls),
    )


def split_trade_cohorts(
    trades: Sequence[Trade],
    split: Optional[CohortSplit] = None,
) -> tuple[list[Trade], list[Trade]]:
    """Split closed trades, ordered by exit date, into (early, recent)."""
    split = split or CohortSplit()
    ordered = sort_by_exit_date(trades)
    if not ordered:
        return [], []

    if split.method == "percentage":
        point = split.split_point if split.split_point is not None else 50
        index = math.floor(len(ordered) * point / 100)
    elif split.method == "date" and split.split_date is not None:
        index = next(
            (i for i, t in enumerate(ordered) if t.exit_date >= split.split_date),
            len(ordered),
        )
    else:
        index = len(ordered) // 2

    return ordered[:index], ordered[index:]


# ── Comparison ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _MetricSpec:
    name: str
    value: Callable[[CohortMetrics], float]
    high: float
    medium: float
    unit: Optional[str] = None
    lower_is_better: bool = False
    directional: bool = True
    # Percent change uses |early| as the base; otherwise requires early > 0
    signed_base: bool = False


COMPARISON_METRICS: tuple[_MetricSpec, ...] = (
    _MetricSpec("Win Rate", lambda m: m.win_rate, 10, 5, unit="%"),
    _MetricSpec("Average P&L", lambda m: m.average_pnl, 1000, 500, unit="currency", signed_base=True),
    _MetricSpec("Profit Factor", lambda m: m.profit_factor, 0.5, 0.2),
    _MetricSpec("Expectancy", lambda m: m.expectancy, 500, 200, unit="currency", signed_base=True),
    _MetricSpec("Risk-Reward Ratio", lambda m: m.risk_reward_ratio, 0.5, 0.2),
    _MetricSpec("Sharpe Ratio", lambda m: m.sharpe_ratio, 0.5, 0.2, signed_base=True),
    _MetricSpec("Max Drawdown", lambda m: m.max_drawdown, 5000, 2000, unit="currency", lower_is_better=True),
    # Trading more or less often is neither good nor bad in itself
    _MetricSpec("Trading Frequency", lambda m: m.trading_frequency, 10, 5, unit="/month", directional=False),
)


def _significance(delta: float, high: float, medium: float) -> Significance:
    if abs(delta) > high:
        return "high"
    if abs(delta) > medium:
        return "medium"
    return "low"


def compare_metric(spec: _MetricSpec, early: CohortMetrics, recent: CohortMetrics) -> ComparisonMetric:
    early_value = spec.value(early)
    recent_value = spec.value(recent)
    change = recent_value - early_value

    if spec.signed_base:
        change_percent = change / abs(early_value) * 100 if early_value != 0 else 0.0
    else:
        change_percent = change / early_value * 100 if early_value > 0 else 0.0

    if not spec.directional:
        is_improvement = False
    elif spec.lower_is_better:
        is_improvement = recent_value < early_value
    else:
        is_improvement = recent_value > early_value

    return ComparisonMetric(
        name=spec.name,
        early_value=early_value,
        recent_value=recent_value,
        change=change,
        change_percent=change_percent,
        is_improvement=is_improvement,
        significance=_significance(change, spec.high, spec.medium),
        unit=spec.unit,
    )


def trend_score(improvements: Sequence[ComparisonMetric], deteriorations: Sequence[ComparisonMetric]) -> int:
    score = sum(SIGNIFICANCE_POINTS[m.significance] for m in improvements)
    score -= sum(SIGNIFICANCE_POINTS[m.significance] for m in deteriorations)
    return score


def generate_cohort_insights(
    improvements: Sequence[ComparisonMetric],
    deteriorations: Sequence[ComparisonMetric],
    trend: str,
    early: CohortMetrics,
    recent: CohortMetrics,
) -> list[Insight]:
    """Deterministic rule list over the comparison; always yields at least one insight."""
    insights: list[Insight] = []

    def significant(metrics: Sequence[ComparisonMetric], name: str) -> bool:
        return any(m.name == name and m.significance == "high" for m in metrics)

    if trend == "improving":
        insights.append(Insight(
            message="Your trading performance is improving over time. Keep up the good work!",
            impact="high"))
        if significant(improvements, "Win Rate"):
            insights.append(Insight(
                message="Win rate has significantly improved, indicating better trade selection.",
                impact="high"))
        if significant(improvements, "Risk-Reward Ratio"):
            insights.append(Insight(
                message="Your risk-reward ratio has improved, showing better trade management.",
                impact="medium"))
    elif trend == "declining":
        insights.append(Insight(
            message="Recent performance shows decline. Review your strategy and risk management.",
            impact="high"))
        if significant(deteriorations, "Win Rate"):
            insights.append(Insight(
                message="Win rate has dropped significantly. Focus on trade quality over quantity.",
                impact="high"))
        if any(m.name == "Max Drawdown" for m in deteriorations) and recent.max_drawdown > early.max_drawdown:
            insights.append(Insight(
                message="Drawdowns are increasing. Consider reducing position sizes.",
                impact="high"))
    else:
        insights.append(Insight(
            message="Performance is stable. Look for opportunities to optimize further.",
            impact="low"))

    if recent.profit_factor > 1.5:
        insights.append(Insight(
            message="Recent profit factor is strong. Your edge is working.",
            impact="medium"))
    elif recent.profit_factor < 1:
        insights.append(Insight(
            message="Recent profit factor below 1.0. Review losing trades and adjust strategy.",
            impact="high"))

    if recent.expectancy > 0 and recent.expectancy > early.expectancy:
        insights.append(Insight(
            message="Positive expectancy is growing. Each trade has better expected value.",
            impact="medium"))

    if recent.trading_frequency > early.trading_frequency * 2:
        insights.append(Insight(
            message="Trading frequency has doubled. Ensure quality isn't sacrificed for quantity.",
            impact="low"))

    return insights


def _cohort_period(name: str, trades: list[Trade]) -> CohortPeriod:
    dates = [t.exit_date for t in trades if t.exit_date]
    return CohortPeriod(
        name=name,
        start_date=dates[0] if dates else None,
        end_date=dates[-1] if dates else None,
        trades=trades,
        metrics=calculate_cohort_metrics(trades),
        trade_count=len(trades),
    )


def compare_cohorts(early_trades: Sequence[Trade], recent_trades: Sequence[Trade]) -> CohortComparison:
    """Diff two cohorts metric by metric and score the overall trend.

    A metric whose change is within 0.01 is stable. Non-directional metrics
    are always reported as stable and never move the trend score.
    """
    early = _cohort_period("Early Trades", list(early_trades))
    recent = _cohort_period("Recent Trades", list(recent_trades))

    improvements: list[ComparisonMetric] = []
    deteriorations: list[ComparisonMetric] = []
    stable: list[ComparisonMetric] = []
    for spec in COMPARISON_METRICS:
        metric = compare_metric(spec, early.metrics, recent.metrics)
        if not spec.directional or abs(metric.change) <= CHANGE_EPSILON:
            stable.append(metric)
        elif metric.is_improvement:
            improvements.append(metric)
        else:
            deteriorations.append(metric)

    score = trend_score(improvements, deteriorations)
    if score > TREND_THRESHOLD:
        trend = "improving"
    elif score < -TREND_THRESHOLD:
        trend = "declining"
    else:
        trend = "stable"

    logger.debug(f"Cohort comparison: score={score} trend={trend}")
    return CohortComparison(
        early_cohort=early,
        recent_cohort=recent,
        improvements=improvements,
        deteriorations=deteriorations,
        stable_metrics=stable,
        overall_trend=trend,
        trend_score=score,
        key_insights=generate_cohort_insights(
            improvements, deteriorations, trend, early.metrics, recent.metrics,
        ),
    )


def analyze_cohorts(trades: Sequence[Trade], split: Optional[CohortSplit] = None) -> CohortComparison:
    """Split the closed trades and compare the two halves."""
    early, recent = split_trade_cohorts(trades, split)
    return compare_cohorts(early, recent)
