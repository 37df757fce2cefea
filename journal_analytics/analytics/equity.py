"""Equity curve construction from closed trades."""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from journal_analytics.analytics.models import DrawdownChartPoint, EquityPoint
from journal_analytics.data.models import Trade, sort_by_exit_date

logger = logging.getLogger(__name__)


def build_equity_curve(trades: Sequence[Trade]) -> list[EquityPoint]:
    """Build the running cumulative P&L curve, one point per closed trade.

    Trades are ordered by exit date (stable on ties). The running peak starts
    at 0 rather than at the first trade's P&L, so equity is measured against
    "no P&L yet" and a losing first trade is already a drawdown.
    """
    ordered = sort_by_exit_date(trades)
    if not ordered:
        return []

    pnls = np.array([t.pnl_amount for t in ordered], dtype=float)
    cumulative = np.cumsum(pnls)
    # Prepend the zero baseline so the peak never starts below 0
    running_peak = np.maximum.accumulate(np.concatenate(([0.0], cumulative)))[1:]
    drawdowns = running_peak - cumulative

    points: list[EquityPoint] = []
    for trade, pnl, cum, peak, dd in zip(ordered, pnls, cumulative, running_peak, drawdowns):
        dd = float(dd)
        peak = float(peak)
        points.append(EquityPoint(
            date=trade.exit_date,
            pnl=float(pnl),
            cumulative_pnl=float(cum),
            running_peak=peak,
            drawdown=dd,
            drawdown_percentage=(dd / peak) * 100 if peak > 0 else 0.0,
            is_in_drawdown=dd > 0,
        ))

    logger.debug(f"Built equity curve with {len(points)} points")
    return points


def drawdown_chart_data(points: Sequence[EquityPoint]) -> list[DrawdownChartPoint]:
    """Equity, peak and drawdown per point, drawdowns negated for plotting under the axis."""
    return [
        DrawdownChartPoint(
            date=p.date,
            equity=p.cumulative_pnl,
            peak=p.running_peak,
            drawdown=-p.drawdown,
            drawdown_percentage=-p.drawdown_percentage,
        )
        for p in points
    ]
