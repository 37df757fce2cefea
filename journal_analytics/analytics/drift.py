"""Performance regime drift detection with rolling Z-scores and CUSUM control charts."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from journal_analytics.analytics.models import (
    AlertLevel,
    DriftAlert,
    DriftAnalysis,
    DriftConfig,
    DriftEvent,
    DriftPoint,
    DriftStatistics,
    Regime,
    RegimeChange,
)
from journal_analytics.data.models import Trade, sort_by_exit_date

logger = logging.getLogger(__name__)

RECENT_REGIME_WINDOW = 10
RECENT_EVENT_WINDOW = 20
REGIME_INSTABILITY_COUNT = 3


def rolling_z_scores(returns: Sequence[float], window: int = 20) -> list[float]:
    """Z-score of each value against the trailing ``window`` values (inclusive).

    Indices with less than a full window of history score 0, as does any
    window with zero standard deviation.
    """
    values = np.asarray(returns, dtype=float)
    scores: list[float] = []
    for i in range(len(values)):
        if i < window - 1:
            scores.append(0.0)
            continue
        trailing = values[i - window + 1:i + 1]
        mean = float(np.mean(trailing))
        std = float(np.std(trailing))
        scores.append((float(values[i]) - mean) / std if std > 0 else 0.0)
    return scores


def cusum(
    returns: Sequence[float],
    target_mean: float,
    drift: float = 0.5,
) -> tuple[list[float], list[float]]:
    """Page's one-sided CUSUM recursions against a fixed target mean.

    Returns (positive, negative) sums; the negative side is reported as a
    magnitude. The drift term is the slack that keeps small fluctuations
    from accumulating.
    """
    positive: list[float] = []
    negative: list[float] = []
    pos = 0.0
    neg = 0.0
    for value in returns:
        deviation = value - target_mean
        pos = max(0.0, pos + deviation - drift)
        neg = min(0.0, neg + deviation + drift)
        positive.append(pos)
        negative.append(abs(neg))
    return positive, negative


def detect_regime(
    z_score: float,
    cusum_positive: float,
    cusum_negative: float,
    config: DriftConfig,
) -> Regime:
    """Classify one point. Volatility takes precedence over either drift direction."""
    if abs(z_score) > config.z_score_threshold * 2:
        return "volatile"
    if cusum_positive > config.cusum_threshold:
        return "improving"
    if cusum_negative > config.cusum_threshold:
        return "deteriorating"
    return "normal"


def _is_drift(z_score: float, cusum_positive: float, cusum_negative: float, config: DriftConfig) -> bool:
    return (
        cusum_positive > config.cusum_threshold
        or cusum_negative > config.cusum_threshold
        or abs(z_score) > config.z_score_threshold
    )


def _severity(magnitude: float, config: DriftConfig) -> str:
    if magnitude > config.cusum_threshold * 2:
        return "high"
    if magnitude > config.cusum_threshold * 1.5:
        return "medium"
    return "low"


def _event_description(event_type: str, magnitude: float) -> str:
    if event_type == "positive":
        return f"Sustained above-average performance period (magnitude: {magnitude:.2f})"
    if event_type == "negative":
        return f"Sustained below-average performance period (magnitude: {magnitude:.2f})"
    return f"High volatility period with significant fluctuations (magnitude: {magnitude:.2f})"


def detect_drift_events(points: Sequence[DriftPoint], config: DriftConfig) -> list[DriftEvent]:
    """Group contiguous drifting points into events.

    Type and magnitude are fixed by the point that opens the event.
    """
    events: list[DriftEvent] = []
    start: Optional[int] = None
    event_type = "positive"
    magnitude = 0.0

    def close(end: int) -> None:
        events.append(DriftEvent(
            start_index=start,
            end_index=end,
            start_date=points[start].date,
            end_date=points[end].date,
            type=event_type,
            magnitude=magnitude,
            description=_event_description(event_type, magnitude),
            severity=_severity(magnitude, config),
        ))

    for i, point in enumerate(points):
        if point.is_drift and start is None:
            start = i
            if point.cusum_positive > point.cusum_negative:
                event_type = "positive"
            elif abs(point.z_score) > config.z_score_threshold:
                event_type = "volatility"
            else:
                event_type = "negative"
            magnitude = max(point.cusum_positive, point.cusum_negative, abs(point.z_score))
        elif not point.is_drift and start is not None:
            close(i - 1)
            start = None

    if start is not None:
        close(len(points) - 1)

    return events


def detect_regime_changes(points: Sequence[DriftPoint]) -> list[RegimeChange]:
    """Every index where the regime label differs from the previous point."""
    changes: list[RegimeChange] = []
    for i in range(1, len(points)):
        prev, curr = points[i - 1], points[i]
        if prev.regime == curr.regime:
            continue
        cusum_value = max(curr.cusum_positive, curr.cusum_negative)
        changes.append(RegimeChange(
            change_index=i,
            change_date=curr.date,
            previous_regime=prev.regime,
            new_regime=curr.regime,
            confidence=min(cusum_value / 5, 1.0),
            cusum_value=cusum_value,
            z_score_value=curr.z_score,
        ))
    return changes


def generate_drift_alerts(
    last_point: DriftPoint,
    events: Sequence[DriftEvent],
    regime_changes: Sequence[RegimeChange],
    config: DriftConfig,
) -> list[DriftAlert]:
    """Rule-based alerts on the latest state. Never returns an empty list."""
    alerts: list[DriftAlert] = []

    def add(level: AlertLevel, message: str, recommendation: str) -> None:
        alerts.append(DriftAlert(
            type=level,
            message=message,
            date=last_point.date,
            trade_index=last_point.trade_index,
            recommendation=recommendation,
        ))

    if abs(last_point.z_score) > config.z_score_threshold * 1.5:
        add(AlertLevel.CRITICAL,
            f"High volatility detected: Z-score is {last_point.z_score:.2f}",
            "Consider reducing position sizes until volatility normalizes")

    if last_point.cusum_positive > config.cusum_threshold:
        add(AlertLevel.INFO,
            "Positive drift detected: Performance above baseline",
            "Current strategy is working well. Document what you're doing right.")

    if last_point.cusum_negative > config.cusum_threshold:
        add(AlertLevel.WARNING,
            "Negative drift detected: Performance below baseline",
            "Review recent trades for pattern changes or market condition shifts")

    if last_point.regime == "deteriorating":
        add(AlertLevel.WARNING,
            "Trading regime has shifted to deteriorating",
            "Consider taking a break to reassess your strategy")

    if last_point.regime == "volatile":
        add(AlertLevel.CRITICAL,
            "High volatility regime detected",
            "Extreme volatility detected. Reduce risk exposure immediately.")

    recent_changes = [
        rc for rc in regime_changes
        if rc.change_index > last_point.trade_index - RECENT_REGIME_WINDOW
    ]
    if len(recent_changes) >= REGIME_INSTABILITY_COUNT:
        add(AlertLevel.WARNING,
            f"{len(recent_changes)} regime changes in last {RECENT_REGIME_WINDOW} trades",
            "Unstable performance pattern. Review your decision-making process.")

    recent_events = [e for e in events if e.end_index >= last_point.trade_index - RECENT_EVENT_WINDOW]
    if any(e.severity == "high" for e in recent_events):
        add(AlertLevel.CRITICAL,
            "Significant drift event detected in recent trades",
            "Major performance deviation detected. Immediate strategy review recommended.")

    if not alerts:
        add(AlertLevel.INFO,
            "Performance is stable with no significant drift",
            "Maintain current approach and continue monitoring")

    return alerts


def analyze_drift(trades: Sequence[Trade], config: Optional[DriftConfig] = None) -> DriftAnalysis:
    """Run the full drift analysis over closed trades in exit-date order.

    With fewer closed trades than the Z-score window this returns an empty
    analysis carrying a single informational alert rather than raising.
    """
    config = config or DriftConfig()
    ordered = sort_by_exit_date(trades)

    if len(ordered) < config.z_score_window:
        logger.info(f"Drift analysis skipped: {len(ordered)} trades, need {config.z_score_window}")
        return DriftAnalysis(
            statistics=DriftStatistics(total_trades=len(ordered)),
            alerts=[DriftAlert(
                type=AlertLevel.INFO,
                message=f"Need at least {config.z_score_window} trades for drift analysis",
                date=ordered[-1].exit_date if ordered else None,
                trade_index=len(ordered) - 1,
                recommendation="Continue trading to build statistical baseline",
            )],
        )

    returns = np.array([t.pnl_amount for t in ordered], dtype=float)
    mean_return = float(np.mean(returns))
    std_return = float(np.std(returns))

    z_scores = rolling_z_scores(returns, config.z_score_window)
    cusum_pos, cusum_neg = cusum(returns.tolist(), mean_return, config.cusum_drift)
    cumulative = np.cumsum(returns)

    points: list[DriftPoint] = []
    for i, trade in enumerate(ordered):
        z, pos, neg = z_scores[i], cusum_pos[i], cusum_neg[i]
        points.append(DriftPoint(
            date=trade.exit_date,
            trade_index=i,
            pnl=trade.pnl_amount,
            cumulative_pnl=float(cumulative[i]),
            returns=trade.pnl_amount,
            z_score=z,
            cusum_positive=pos,
            cusum_negative=neg,
            is_drift=_is_drift(z, pos, neg, config),
            regime=detect_regime(z, pos, neg, config),
        ))

    events = detect_drift_events(points, config)
    changes = detect_regime_changes(points)
    last = points[-1]
    drift_count = sum(1 for p in points if p.is_drift)

    return DriftAnalysis(
        equity_points=points,
        drift_events=events,
        regime_changes=changes,
        current_regime=last.regime,
        statistics=DriftStatistics(
            total_trades=len(ordered),
            mean_return=mean_return,
            std_dev_return=std_return,
            current_z_score=last.z_score,
            max_positive_drift=max(cusum_pos),
            max_negative_drift=max(cusum_neg),
            drift_event_count=len(events),
            regime_change_count=len(changes),
            time_in_drift=drift_count,
            drift_percentage=drift_count / len(points) * 100,
        ),
        alerts=generate_drift_alerts(last, events, changes, config),
    )
