"""Per-strategy, per-symbol and calendar performance breakdowns."""
from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from typing import Iterable, Sequence

from journal_analytics.analytics.models import (
    DailyStats,
    DayOfWeekPerformance,
    MonthlyTrend,
    StrategyPerformance,
    SymbolPerformance,
)
from journal_analytics.data.models import Trade, closed_trades

logger = logging.getLogger(__name__)

# Stand-in for an unbounded ratio (no losses but some wins)
RATIO_SENTINEL = 999.0
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


def profit_factor(pnls: Iterable[float]) -> float:
    """Gross profit over gross loss; 999 with no losses, 0 with neither."""
    values = list(pnls)
    gains = sum(p for p in values if p > 0)
    losses = abs(sum(p for p in values if p < 0))
    if losses > 0:
        return gains / losses
    return RATIO_SENTINEL if gains > 0 else 0.0


def risk_reward_ratio(pnls: Iterable[float]) -> float:
    """Average win over average loss magnitude, with the same sentinel policy."""
    values = list(pnls)
    wins = [p for p in values if p > 0]
    losses = [abs(p) for p in values if p < 0]
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = sum(losses) / len(losses) if losses else 0.0
    if avg_loss > 0:
        return avg_win / avg_loss
    return RATIO_SENTINEL if avg_win > 0 else 0.0


def strategy_performance(trades: Sequence[Trade]) -> list[StrategyPerformance]:
    """Aggregates per strategy tag, highest win rate first. Untagged trades are skipped."""
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in closed_trades(trades):
        name = (trade.strategy or "").strip()
        if name:
            groups[name].append(trade)

    results = []
    for name, group in groups.items():
        pnls = [t.pnl_amount for t in group]
        total_pnl = sum(pnls)
        total_capital = sum(t.position_size for t in group)
        wins = sum(1 for p in pnls if p > 0)
        count = len(group)
        results.append(StrategyPerformance(
            name=name,
            trade_count=count,
            winning_trades=wins,
            total_pnl=total_pnl,
            total_capital=total_capital,
            win_rate=wins / count * 100,
            avg_pnl=total_pnl / count,
            avg_capital=total_capital / count,
            return_on_capital=total_pnl / total_capital * 100 if total_capital > 0 else 0.0,
            profit_factor=profit_factor(pnls),
        ))
    return sorted(results, key=lambda s: s.win_rate, reverse=True)


def symbol_performance(trades: Sequence[Trade]) -> list[SymbolPerformance]:
    """Aggregates per symbol, highest total P&L first."""
    groups: dict[str, list[float]] = defaultdict(list)
    for trade in closed_trades(trades):
        groups[trade.symbol or "Unknown"].append(trade.pnl_amount)

    results = []
    for name, pnls in groups.items():
        wins = sum(1 for p in pnls if p > 0)
        total_pnl = sum(pnls)
        results.append(SymbolPerformance(
            name=name,
            trade_count=len(pnls),
            winning_trades=wins,
            total_pnl=total_pnl,
            win_rate=wins / len(pnls) * 100,
            avg_pnl=total_pnl / len(pnls),
            risk_reward=risk_reward_ratio(pnls),
        ))
    return sorted(results, key=lambda s: s.total_pnl, reverse=True)


def day_of_week_performance(trades: Sequence[Trade]) -> list[DayOfWeekPerformance]:
    """Average P&L by weekday of entry. Weekend entries are ignored."""
    counts = [0] * len(WEEKDAYS)
    totals = [0.0] * len(WEEKDAYS)
    for trade in closed_trades(trades):
        weekday = trade.entry_date.weekday()
        if weekday < len(WEEKDAYS):
            counts[weekday] += 1
            totals[weekday] += trade.pnl_amount

    return [
        DayOfWeekPerformance(
            day=day,
            trades=counts[i],
            avg_pnl=totals[i] / counts[i] if counts[i] else 0.0,
        )
        for i, day in enumerate(WEEKDAYS)
    ]


def monthly_trend(trades: Sequence[Trade]) -> list[MonthlyTrend]:
    """P&L per calendar month of entry, all years folded together.

    Months whose P&L nets to zero are dropped; the rest run December first.
    """
    pnl = [0.0] * 12
    count = [0] * 12
    for trade in closed_trades(trades):
        month = trade.entry_date.month - 1
        pnl[month] += trade.pnl_amount
        count[month] += 1

    return [
        MonthlyTrend(
            month=month,
            month_name=calendar.month_name[month + 1],
            pnl=pnl[month],
            trade_count=count[month],
        )
        for month in reversed(range(12))
        if pnl[month] != 0
    ]


def daily_stats(trades: Sequence[Trade]) -> DailyStats:
    """Day-level P&L statistics, grouping trades by entry date.

    Flat days count as trading days but neither extend nor break a day streak.
    """
    by_day: dict = defaultdict(float)
    for trade in closed_trades(trades):
        by_day[trade.entry_date.date()] += trade.pnl_amount

    if not by_day:
        return DailyStats()

    days = [by_day[d] for d in sorted(by_day)]
    profits = [p for p in days if p > 0]
    losses = [abs(p) for p in days if p < 0]

    win_run = loss_run = max_win = max_loss = 0
    for day_pnl in days:
        if day_pnl > 0:
            win_run += 1
            loss_run = 0
            max_win = max(max_win, win_run)
        elif day_pnl < 0:
            loss_run += 1
            win_run = 0
            max_loss = max(max_loss, loss_run)

    total_profit = sum(profits)
    total_loss = sum(losses)
    net = total_profit - total_loss

    return DailyStats(
        trading_days=len(days),
        win_days=len(profits),
        loss_days=len(losses),
        max_win_streak=max_win,
        max_loss_streak=max_loss,
        win_rate=round(len(profits) / len(days) * 100),
        max_profit_day=max(profits, default=0.0),
        max_loss_day=max(losses, default=0.0),
        avg_profit_day=total_profit / len(profits) if profits else 0.0,
        avg_loss_day=total_loss / len(losses) if losses else 0.0,
        total_profit=total_profit,
        total_loss=total_loss,
        net_pnl=net,
        avg_daily_pnl=net / len(days),
    )
