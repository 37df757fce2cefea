"""Win/loss streak extraction: global, per symbol and per strategy."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Optional, Sequence

from journal_analytics.analytics.models import GroupStreak, StreakMetrics, StreakPeriod
from journal_analytics.data.models import Trade, sort_by_exit_date

logger = logging.getLogger(__name__)


def _decisive_trades(trades: Sequence[Trade]) -> list[Trade]:
    """Closed, non-breakeven trades in exit-date order."""
    return [t for t in sort_by_exit_date(trades) if t.pnl_amount != 0]


def _scan(ordered: Sequence[Trade]) -> StreakMetrics:
    """Single pass over already ordered decisive trades."""
    if not ordered:
        return StreakMetrics()

    history: list[StreakPeriod] = []
    win_lengths: list[int] = []
    loss_lengths: list[int] = []

    def close(streak_type: str, length: int, pnl: float, start, end) -> None:
        (win_lengths if streak_type == "winning" else loss_lengths).append(length)
        history.append(StreakPeriod(
            type=streak_type, length=length,
            start_date=start, end_date=end, total_pnl=pnl,
        ))

    temp_type: Optional[str] = None
    temp_length = 0
    temp_pnl = 0.0
    temp_start = None
    previous: Optional[Trade] = None

    for trade in ordered:
        trade_type = "winning" if trade.pnl_amount > 0 else "losing"
        if trade_type == temp_type:
            temp_length += 1
            temp_pnl += trade.pnl_amount
        else:
            if temp_type is not None:
                close(temp_type, temp_length, temp_pnl, temp_start, previous.exit_date)
            temp_type = trade_type
            temp_length = 1
            temp_pnl = trade.pnl_amount
            temp_start = trade.exit_date
        previous = trade

    # The final streak is always recorded
    close(temp_type, temp_length, temp_pnl, temp_start, previous.exit_date)

    return StreakMetrics(
        current_streak=temp_length,
        current_streak_type=temp_type,
        longest_win_streak=max(win_lengths, default=0),
        longest_loss_streak=max(loss_lengths, default=0),
        average_win_streak=sum(win_lengths) / len(win_lengths) if win_lengths else 0.0,
        average_loss_streak=sum(loss_lengths) / len(loss_lengths) if loss_lengths else 0.0,
        total_win_streaks=len(win_lengths),
        total_loss_streaks=len(loss_lengths),
        streak_history=history,
    )


def compute_streak_metrics(trades: Sequence[Trade]) -> StreakMetrics:
    """Consecutive win/loss streak statistics over all closed trades.

    A trade is a win iff its P&L is positive; breakeven trades are left out
    and neither extend nor break a streak.
    """
    return _scan(_decisive_trades(trades))


def _group_streaks(
    trades: Sequence[Trade],
    key: Callable[[Trade], Optional[str]],
) -> list[GroupStreak]:
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in _decisive_trades(trades):
        name = key(trade)
        if name:
            groups[name].append(trade)

    results = []
    for name, group in groups.items():
        metrics = _scan(group)
        results.append(GroupStreak(
            name=name,
            current_streak=metrics.current_streak,
            current_streak_type=metrics.current_streak_type,
            longest_win_streak=metrics.longest_win_streak,
            longest_loss_streak=metrics.longest_loss_streak,
            trades=len(group),
        ))
    return sorted(results, key=lambda s: s.current_streak, reverse=True)


def symbol_streaks(trades: Sequence[Trade]) -> list[GroupStreak]:
    """Streaks per symbol, longest current streak first."""
    return _group_streaks(trades, lambda t: t.symbol)


def strategy_streaks(trades: Sequence[Trade]) -> list[GroupStreak]:
    """Streaks per strategy tag; untagged trades are skipped."""
    return _group_streaks(trades, lambda t: (t.strategy or "").strip() or None)
