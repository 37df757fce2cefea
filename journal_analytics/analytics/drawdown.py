"""Drawdown period segmentation and aggregate drawdown statistics."""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

from journal_analytics.analytics.equity import build_equity_curve
from journal_analytics.analytics.models import (
    DrawdownMetrics,
    DrawdownPeriod,
    EquityPoint,
    SymbolDrawdownMetrics,
    SymbolDrawdownPeriod,
)
from journal_analytics.data.models import Trade, closed_trades

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365.25


def _days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded up."""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def find_drawdown_periods(points: Sequence[EquityPoint]) -> list[DrawdownPeriod]:
    """Segment an equity curve into drawdown periods.

    A period opens on the first point below the running peak, tracks the
    deepest trough while the curve stays under water, and closes on the
    first point back at the peak. A period still open at the end of the
    curve is emitted unrecovered with its duration measured to the last point.
    """
    periods: list[DrawdownPeriod] = []
    current: Optional[dict] = None

    for point in points:
        if point.is_in_drawdown and current is None:
            current = {
                "start_date": point.date,
                "end_date": point.date,
                "peak_value": point.running_peak,
                "trough_value": point.cumulative_pnl,
                "drawdown_amount": point.drawdown,
                "drawdown_percentage": point.drawdown_percentage,
            }
        elif point.is_in_drawdown:
            if point.cumulative_pnl < current["trough_value"]:
                current["trough_value"] = point.cumulative_pnl
                current["drawdown_amount"] = point.drawdown
                current["drawdown_percentage"] = point.drawdown_percentage
            current["end_date"] = point.date
        elif current is not None:
            periods.append(DrawdownPeriod(
                **current,
                duration=_days_between(current["start_date"], current["end_date"]),
                recovery_date=point.date,
                recovery_time=_days_between(current["end_date"], point.date),
                is_recovered=True,
            ))
            current = None

    if current is not None:
        current["end_date"] = points[-1].date
        periods.append(DrawdownPeriod(
            **current,
            duration=_days_between(current["start_date"], current["end_date"]),
            is_recovered=False,
        ))

    return periods


def compute_drawdown_metrics(
    points: Sequence[EquityPoint],
    periods: Sequence[DrawdownPeriod],
) -> DrawdownMetrics:
    """Aggregate statistics over the drawdown periods of one equity curve."""
    if not periods or not points:
        return DrawdownMetrics()

    # First occurrence wins on ties
    max_period = periods[0]
    for period in periods[1:]:
        if period.drawdown_amount > max_period.drawdown_amount:
            max_period = period

    n = len(periods)
    recovered = [p for p in periods if p.is_recovered]
    recovery_times = [p.recovery_time or 0 for p in recovered]
    ongoing = next((p for p in periods if not p.is_recovered), None)
    last_point = points[-1]

    frequency = 0.0
    if len(points) >= 2:
        years = (points[-1].date - points[0].date).total_seconds() / (SECONDS_PER_DAY * DAYS_PER_YEAR)
        if years > 0:
            frequency = n / years

    return DrawdownMetrics(
        max_drawdown=max_period.drawdown_amount,
        max_drawdown_percentage=max_period.drawdown_percentage,
        avg_drawdown=sum(p.drawdown_amount for p in periods) / n,
        avg_drawdown_percentage=sum(p.drawdown_percentage for p in periods) / n,
        avg_drawdown_duration=sum(p.duration for p in periods) / n,
        avg_recovery_time=sum(recovery_times) / len(recovery_times) if recovery_times else 0.0,
        total_drawdown_periods=n,
        current_drawdown=last_point.drawdown,
        current_drawdown_percentage=last_point.drawdown_percentage,
        current_drawdown_duration=ongoing.duration if ongoing else 0,
        longest_drawdown_duration=max(p.duration for p in periods),
        longest_recovery_time=max(recovery_times) if recovery_times else 0,
        drawdown_frequency=frequency,
    )


def analyze_drawdowns(trades: Sequence[Trade]) -> tuple[list[EquityPoint], list[DrawdownPeriod], DrawdownMetrics]:
    """Equity curve, drawdown periods and metrics for the whole trade set."""
    points = build_equity_curve(trades)
    periods = find_drawdown_periods(points)
    return points, periods, compute_drawdown_metrics(points, periods)


def _group_by_symbol(trades: Sequence[Trade]) -> dict[str, list[Trade]]:
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in closed_trades(trades):
        groups[trade.symbol or "Unknown"].append(trade)
    return groups


def symbol_drawdown_periods(trades: Sequence[Trade]) -> list[SymbolDrawdownPeriod]:
    """Drawdown periods per symbol, each symbol on its own equity curve.

    Sorted by drawdown amount, deepest first.
    """
    result: list[SymbolDrawdownPeriod] = []
    for symbol, symbol_trades in _group_by_symbol(trades).items():
        points = build_equity_curve(symbol_trades)
        for period in find_drawdown_periods(points):
            result.append(SymbolDrawdownPeriod(symbol=symbol, **period.model_dump()))
    return sorted(result, key=lambda p: p.drawdown_amount, reverse=True)


def symbol_drawdown_metrics(trades: Sequence[Trade]) -> list[SymbolDrawdownMetrics]:
    """Per-symbol drawdown summaries, most severe max drawdown first.

    Symbols whose curve never drops below its peak are omitted.
    """
    results: list[SymbolDrawdownMetrics] = []
    for symbol, symbol_trades in _group_by_symbol(trades).items():
        points = build_equity_curve(symbol_trades)
        periods = find_drawdown_periods(points)
        if not periods:
            continue
        metrics = compute_drawdown_metrics(points, periods)
        last = points[-1]
        time_in_drawdown = sum(1 for p in points if p.is_in_drawdown)
        results.append(SymbolDrawdownMetrics(
            symbol=symbol,
            total_trades=len(points),
            current_equity=last.cumulative_pnl,
            peak_equity=last.running_peak,
            max_drawdown=metrics.max_drawdown,
            max_drawdown_percentage=metrics.max_drawdown_percentage,
            avg_drawdown=metrics.avg_drawdown,
            total_drawdown_periods=metrics.total_drawdown_periods,
            current_drawdown=last.drawdown,
            current_drawdown_percentage=last.drawdown_percentage,
            time_in_drawdown=time_in_drawdown,
            time_in_drawdown_ratio=time_in_drawdown / len(points),
            avg_recovery_time=metrics.avg_recovery_time,
            is_in_drawdown=last.is_in_drawdown,
        ))

    logger.debug(f"Computed drawdown metrics for {len(results)} symbols")
    return sorted(results, key=lambda m: m.max_drawdown, reverse=True)
