"""Markov-chain modelling of win/loss/breakeven trade sequences."""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import Optional, Sequence

from journal_analytics.analytics.models import (
    MarkovPrediction,
    NextTradeProbabilities,
    PatternOccurrence,
    RunSummary,
    SequenceMetrics,
    SequencePattern,
    SequenceStreaks,
    TradeOutcome,
    TransitionMatrix,
)
from journal_analytics.data.models import Trade, sort_by_exit_date

logger = logging.getLogger(__name__)

STATE_CODES: dict[str, str] = {"win": "W", "loss": "L", "breakeven": "B"}
CONFIDENCE_SAMPLE_SIZE = 30


def classify_trade(pnl: float, threshold: float = 0.0) -> TradeOutcome:
    """Win above +threshold, loss below -threshold, breakeven in between."""
    if pnl > threshold:
        return "win"
    if pnl < -threshold:
        return "loss"
    return "breakeven"


def build_transition_matrix(outcomes: Sequence[TradeOutcome]) -> TransitionMatrix:
    """Row-normalized transition probabilities between consecutive outcomes."""
    transitions: Counter[str] = Counter()
    from_counts: Counter[str] = Counter()
    for current, following in zip(outcomes, outcomes[1:]):
        src, dst = STATE_CODES[current], STATE_CODES[following]
        transitions[src + dst] += 1
        from_counts[src] += 1

    probabilities = {
        src + dst: (transitions[src + dst] / from_counts[src]) if from_counts[src] else 0.0
        for src in "WLB"
        for dst in "WLB"
    }
    return TransitionMatrix(**probabilities)


def find_patterns(
    outcomes: Sequence[TradeOutcome],
    dates: Sequence[datetime],
    pnls: Sequence[float],
    pattern_length: int = 3,
) -> list[SequencePattern]:
    """Count every sliding window of ``pattern_length`` outcomes, most frequent first."""
    total_windows = len(outcomes) - pattern_length + 1
    if pattern_length <= 0 or total_windows <= 0:
        return []

    windows: dict[str, list[int]] = defaultdict(list)
    for i in range(total_windows):
        key = "".join(STATE_CODES[o] for o in outcomes[i:i + pattern_length])
        windows[key].append(i)

    patterns = []
    for key, starts in windows.items():
        occurrences = [
            PatternOccurrence(
                start_date=dates[i],
                end_date=dates[i + pattern_length - 1],
                total_pnl=sum(pnls[i:i + pattern_length]),
                trades=pattern_length,
            )
            for i in starts
        ]
        patterns.append(SequencePattern(
            pattern=key,
            count=len(starts),
            probability=len(starts) / total_windows,
            avg_pnl=sum(o.total_pnl for o in occurrences) / len(occurrences),
            occurrences=occurrences,
        ))
    return sorted(patterns, key=lambda p: p.count, reverse=True)


def _runs(outcomes: Sequence[TradeOutcome]) -> list[tuple[TradeOutcome, int, int]]:
    """Maximal same-outcome runs as (outcome, start index, end index)."""
    runs = []
    start = 0
    for i in range(1, len(outcomes) + 1):
        if i == len(outcomes) or outcomes[i] != outcomes[start]:
            runs.append((outcomes[start], start, i - 1))
            start = i
    return runs


def analyze_sequence_streaks(
    outcomes: Sequence[TradeOutcome],
    dates: Sequence[datetime],
    pnls: Sequence[float],
) -> SequenceStreaks:
    """Current, longest and average runs; breakeven runs are a state of their own."""
    if not outcomes:
        return SequenceStreaks()

    def summarize(outcome: TradeOutcome, start: int, end: int) -> RunSummary:
        return RunSummary(
            type=outcome,
            length=end - start + 1,
            total_pnl=sum(pnls[start:end + 1]),
            start_date=dates[start],
            end_date=dates[end],
        )

    runs = _runs(outcomes)
    longest: dict[str, Optional[RunSummary]] = {"win": None, "loss": None}
    lengths: dict[str, list[int]] = {"win": [], "loss": []}
    for outcome, start, end in runs:
        if outcome not in lengths:
            continue
        length = end - start + 1
        lengths[outcome].append(length)
        best = longest[outcome]
        # Ties resolve to the most recent run
        if best is None or length >= best.length:
            longest[outcome] = summarize(outcome, start, end)

    def average(values: list[int]) -> float:
        return sum(values) / len(values) if values else 0.0

    return SequenceStreaks(
        current_streak=summarize(*runs[-1]),
        longest_win_streak=longest["win"],
        longest_loss_streak=longest["loss"],
        average_win_streak=average(lengths["win"]),
        average_loss_streak=average(lengths["loss"]),
    )


def predict_next_trade(
    outcomes: Sequence[TradeOutcome],
    matrix: TransitionMatrix,
) -> Optional[MarkovPrediction]:
    """Next-outcome probabilities from the current state's matrix row."""
    if not outcomes:
        return None

    current = outcomes[-1]
    src = STATE_CODES[current]
    predictions = NextTradeProbabilities(
        next_win_probability=getattr(matrix, src + "W"),
        next_loss_probability=getattr(matrix, src + "L"),
        next_breakeven_probability=getattr(matrix, src + "B"),
    )
    max_prob = max(
        predictions.next_win_probability,
        predictions.next_loss_probability,
        predictions.next_breakeven_probability,
    )
    return MarkovPrediction(
        current_state=current,
        predictions=predictions,
        confidence=max_prob * min(len(outcomes) / CONFIDENCE_SAMPLE_SIZE, 1),
        sample_size=len(outcomes),
    )


def calculate_recovery_rate(outcomes: Sequence[TradeOutcome]) -> float:
    """Probability that a loss is immediately followed by a win."""
    followers = [nxt for cur, nxt in zip(outcomes, outcomes[1:]) if cur == "loss"]
    if not followers:
        return 0.0
    return sum(1 for o in followers if o == "win") / len(followers)


def calculate_consecutive_loss_impact(outcomes: Sequence[TradeOutcome]) -> float:
    """Win rate after two or more straight losses minus the overall win rate.

    Negative values mean losing streaks tend to extend; 0 when no trade
    follows a double loss.
    """
    if not outcomes:
        return 0.0
    after_losses = [
        outcomes[i] for i in range(2, len(outcomes))
        if outcomes[i - 1] == "loss" and outcomes[i - 2] == "loss"
    ]
    if not after_losses:
        return 0.0
    overall = sum(1 for o in outcomes if o == "win") / len(outcomes)
    conditional = sum(1 for o in after_losses if o == "win") / len(after_losses)
    return conditional - overall


def analyze_trade_sequence(
    trades: Sequence[Trade],
    breakeven_threshold: float = 0.0,
    pattern_length: int = 3,
) -> SequenceMetrics:
    """Full Markov analysis over closed trades in exit-date order."""
    ordered = sort_by_exit_date(trades)
    if not ordered:
        return SequenceMetrics()

    pnls = [t.pnl_amount for t in ordered]
    dates = [t.exit_date for t in ordered]
    outcomes = [classify_trade(p, breakeven_threshold) for p in pnls]
    matrix = build_transition_matrix(outcomes)

    return SequenceMetrics(
        total_trades=len(ordered),
        total_sequences=len(_runs(outcomes)),
        transition_matrix=matrix,
        streak_analysis=analyze_sequence_streaks(outcomes, dates, pnls),
        common_patterns=find_patterns(outcomes, dates, pnls, pattern_length),
        prediction=predict_next_trade(outcomes, matrix),
        recovery_rate=calculate_recovery_rate(outcomes),
        consecutive_loss_impact=calculate_consecutive_loss_impact(outcomes),
    )
