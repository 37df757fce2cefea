"""Export journal reports to JSON or CSV."""
from __future__ import annotations

import csv
import json
import os
from datetime import date, datetime
from typing import Any

from journal_analytics.analytics.models import JournalReport


def _v(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val)


def export_json(report: JournalReport, path: str) -> None:
    """Export a JournalReport to a JSON file with camelCase keys."""
    data = report.model_dump(mode="json", by_alias=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def export_csv(report: JournalReport, path: str) -> None:
    """Export a JournalReport to a multi-section CSV file."""
    dd = report.drawdown_metrics
    streaks = report.streaks
    drift = report.drift
    cohorts = report.cohorts

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)

        # Section 1: Summary
        writer.writerow(["# Summary"])
        writer.writerow([
            "generated_at", "total_trades", "closed_trades",
            "max_drawdown", "max_drawdown_pct", "current_drawdown",
            "longest_win_streak", "longest_loss_streak",
            "current_regime", "overall_trend", "trend_score", "overall_sentiment",
        ])
        writer.writerow([
            _v(report.generated_at),
            report.total_trades,
            report.closed_trades,
            dd.max_drawdown,
            dd.max_drawdown_percentage,
            dd.current_drawdown,
            streaks.longest_win_streak,
            streaks.longest_loss_streak,
            drift.current_regime,
            cohorts.overall_trend,
            cohorts.trend_score,
            report.notes.overall_sentiment.overall,
        ])
        writer.writerow([])

        # Section 2: Drawdown periods
        writer.writerow(["# Drawdown Periods"])
        writer.writerow([
            "start_date", "end_date", "peak_value", "trough_value", "drawdown_amount",
            "drawdown_pct", "duration_days", "recovery_date", "recovery_days", "recovered",
        ])
        for p in report.drawdown_periods:
            writer.writerow([
                _v(p.start_date), _v(p.end_date), p.peak_value, p.trough_value,
                p.drawdown_amount, p.drawdown_percentage, p.duration,
                _v(p.recovery_date), _v(p.recovery_time), p.is_recovered,
            ])
        writer.writerow([])

        # Section 3: Streak history
        writer.writerow(["# Streak History"])
        writer.writerow(["type", "length", "start_date", "end_date", "total_pnl"])
        for s in streaks.streak_history:
            writer.writerow([s.type, s.length, _v(s.start_date), _v(s.end_date), s.total_pnl])
        writer.writerow([])

        # Section 4: Drift alerts
        writer.writerow(["# Drift Alerts"])
        writer.writerow(["level", "message", "date", "trade_index", "recommendation"])
        for a in drift.alerts:
            writer.writerow([a.type.value, a.message, _v(a.date), a.trade_index, a.recommendation])
        writer.writerow([])

        # Section 5: Cohort comparison
        writer.writerow(["# Cohort Comparison"])
        writer.writerow([
            "metric", "early_value", "recent_value", "change", "change_pct",
            "classification", "significance", "unit",
        ])
        for label, metrics in (
            ("improvement", cohorts.improvements),
            ("deterioration", cohorts.deteriorations),
            ("stable", cohorts.stable_metrics),
        ):
            for m in metrics:
                writer.writerow([
                    m.name, m.early_value, m.recent_value, m.change, m.change_percent,
                    label, m.significance, _v(m.unit),
                ])
        writer.writerow([])

        # Section 6: Keywords
        writer.writerow(["# Keywords"])
        writer.writerow(["word", "count", "sentiment", "win_rate", "trades"])
        for k in report.notes.top_keywords:
            writer.writerow([k.word, k.count, k.sentiment, k.win_rate, ";".join(k.trades)])
        writer.writerow([])

        # Section 7: Insights
        writer.writerow(["# Insights"])
        writer.writerow(["source", "impact", "title", "message"])
        for i in cohorts.key_insights:
            writer.writerow(["cohort", i.impact, "", i.message])
        for n in report.notes.insights:
            writer.writerow(["notes", n.impact, n.title, n.description])


def export_results(report: JournalReport, path: str) -> None:
    """Export a report to JSON or CSV based on file extension.

    Raises ValueError for unsupported extensions.
    """
    _, ext = os.path.splitext(path)
    ext = ext.lower()
    if ext == ".json":
        export_json(report, path)
    elif ext == ".csv":
        export_csv(report, path)
    else:
        raise ValueError(f"Unsupported export format: '{ext}'. Use .json or .csv")
