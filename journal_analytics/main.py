"""Trade Journal Analytics — command-line entry point."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from journal_analytics.analytics.export import export_results
from journal_analytics.analytics.models import (
    AlertLevel,
    CohortSplit,
    DriftConfig,
    EquityPoint,
    JournalReport,
    NLPConfig,
)
from journal_analytics.analytics.report import build_report
from journal_analytics.config.settings import (
    DEFAULT_SPLIT_METHOD,
    DRIFT_CUSUM_DRIFT,
    DRIFT_CUSUM_THRESHOLD,
    DRIFT_Z_SCORE_THRESHOLD,
    DRIFT_Z_SCORE_WINDOW,
    LOG_LEVEL,
    NLP_KEYWORD_MIN_FREQUENCY,
    NLP_MIN_NOTE_LENGTH,
    validate_drift_settings,
    validate_log_level,
)
from journal_analytics.data.loader import load_trades

console = Console()

ALERT_COLORS = {AlertLevel.INFO: "cyan", AlertLevel.WARNING: "yellow", AlertLevel.CRITICAL: "red"}
IMPACT_COLORS = {"high": "red", "medium": "yellow", "low": "dim"}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trade Journal Analytics — performance diagnostics for a trade log")
    parser.add_argument("--file", "-f", type=str, required=True, help="Trade journal file (.json or .csv)")
    parser.add_argument(
        "--split-method", type=str, default=DEFAULT_SPLIT_METHOD,
        choices=["equal", "percentage", "date"],
        help=f"Cohort split method (default: {DEFAULT_SPLIT_METHOD})",
    )
    parser.add_argument("--split-point", type=float, default=None, help="Split percentage for --split-method percentage")
    parser.add_argument("--split-date", type=str, default=None, help="Split date (YYYY-MM-DD) for --split-method date")
    parser.add_argument("--z-window", type=int, default=DRIFT_Z_SCORE_WINDOW,
                        help=f"Rolling Z-score window in trades (default: {DRIFT_Z_SCORE_WINDOW})")
    parser.add_argument("--z-threshold", type=float, default=DRIFT_Z_SCORE_THRESHOLD,
                        help=f"Z-score drift threshold (default: {DRIFT_Z_SCORE_THRESHOLD})")
    parser.add_argument("--cusum-threshold", type=float, default=DRIFT_CUSUM_THRESHOLD,
                        help=f"CUSUM drift threshold (default: {DRIFT_CUSUM_THRESHOLD})")
    parser.add_argument("--export", "-o", type=str, default=None, help="Write the full report to .json or .csv")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_configs(args: argparse.Namespace) -> tuple[DriftConfig, CohortSplit, NLPConfig]:
    """Turn CLI arguments into analysis configuration models."""
    drift = DriftConfig(
        z_score_window=args.z_window,
        z_score_threshold=args.z_threshold,
        cusum_threshold=args.cusum_threshold,
        cusum_drift=DRIFT_CUSUM_DRIFT,
    )
    split = CohortSplit(
        method=args.split_method,
        split_point=args.split_point,
        split_date=datetime.fromisoformat(args.split_date) if args.split_date else None,
    )
    nlp = NLPConfig(
        min_note_length=NLP_MIN_NOTE_LENGTH,
        keyword_min_frequency=NLP_KEYWORD_MIN_FREQUENCY,
    )
    return drift, split, nlp


# ── Display helpers ─────────────────────────────────────────────────


def _money(val: float) -> str:
    color = "green" if val >= 0 else "red"
    return f"[{color}]{val:,.2f}[/{color}]"


def _date(val: Optional[datetime]) -> str:
    return val.strftime("%Y-%m-%d") if val else "-"


def _display_summary(report: JournalReport) -> None:
    net = report.equity_curve[-1].cumulative_pnl if report.equity_curve else 0.0
    lines = [
        f"Trades:       {report.total_trades} ({report.closed_trades} closed)",
        f"Net P&L:      {_money(net)}",
        f"Regime:       {report.drift.current_regime}",
        f"Trend:        {report.cohorts.overall_trend} (score {report.cohorts.trend_score:+d})",
        f"Sentiment:    {report.notes.overall_sentiment.type} ({report.notes.overall_sentiment.overall:+.2f})",
    ]
    console.print(Panel("\n".join(lines), title="Journal Summary", border_style="cyan"))


def _display_drawdowns(report: JournalReport) -> None:
    m = report.drawdown_metrics
    table = Table(title="Drawdowns", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Max Drawdown", f"{m.max_drawdown:,.2f} ({m.max_drawdown_percentage:.1f}%)")
    table.add_row("Avg Drawdown", f"{m.avg_drawdown:,.2f}")
    table.add_row("Periods", str(m.total_drawdown_periods))
    table.add_row("Longest Duration", f"{m.longest_drawdown_duration} days")
    table.add_row("Avg Recovery", f"{m.avg_recovery_time:.1f} days")
    table.add_row("Current Drawdown", f"{m.current_drawdown:,.2f} ({m.current_drawdown_percentage:.1f}%)")
    table.add_row("Frequency", f"{m.drawdown_frequency:.2f} / year")
    console.print(table)


def _display_streaks(report: JournalReport) -> None:
    s = report.streaks
    seq = report.sequence
    table = Table(title="Streaks & Sequences", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    color = {"winning": "green", "losing": "red"}.get(s.current_streak_type, "yellow")
    table.add_row("Current Streak", f"[{color}]{s.current_streak} {s.current_streak_type}[/{color}]")
    table.add_row("Longest Win Streak", str(s.longest_win_streak))
    table.add_row("Longest Loss Streak", str(s.longest_loss_streak))
    table.add_row("Avg Win / Loss Streak", f"{s.average_win_streak:.1f} / {s.average_loss_streak:.1f}")
    table.add_row("Recovery Rate", f"{seq.recovery_rate * 100:.1f}%")
    if seq.prediction:
        p = seq.prediction.predictions
        table.add_row(
            "Next Trade (W/L/B)",
            f"{p.next_win_probability:.0%} / {p.next_loss_probability:.0%} / {p.next_breakeven_probability:.0%}",
        )
    console.print(table)


def _display_drift(report: JournalReport) -> None:
    table = Table(title="Drift Alerts", show_header=True, header_style="bold cyan")
    table.add_column("Level")
    table.add_column("Message", max_width=50)
    table.add_column("Recommendation", max_width=50)
    for alert in report.drift.alerts:
        color = ALERT_COLORS[alert.type]
        table.add_row(f"[{color}]{alert.type.value.upper()}[/{color}]", alert.message, alert.recommendation)
    console.print(table)


def _display_cohorts(report: JournalReport) -> None:
    cohorts = report.cohorts
    table = Table(
        title=f"Cohorts: {cohorts.early_cohort.trade_count} early vs {cohorts.recent_cohort.trade_count} recent",
        show_header=True, header_style="bold cyan",
    )
    table.add_column("Metric", style="bold")
    table.add_column("Early", justify="right")
    table.add_column("Recent", justify="right")
    table.add_column("Change", justify="right")

    for metrics, color in (
        (cohorts.improvements, "green"),
        (cohorts.deteriorations, "red"),
        (cohorts.stable_metrics, "dim"),
    ):
        for m in metrics:
            table.add_row(
                m.name,
                f"{m.early_value:,.2f}",
                f"{m.recent_value:,.2f}",
                f"[{color}]{m.change:+,.2f}[/{color}]",
            )
    console.print(table)

    for insight in cohorts.key_insights:
        color = IMPACT_COLORS[insight.impact]
        console.print(f"  [{color}]•[/{color}] {insight.message}")


def _display_notes(report: JournalReport) -> None:
    notes = report.notes
    if not notes.notes_with_content:
        console.print("[dim]No trade notes to analyze.[/dim]")
        return

    table = Table(title=f"Note Insights ({notes.notes_with_content} notes)", show_header=True, header_style="bold cyan")
    table.add_column("Impact")
    table.add_column("Insight", style="bold")
    table.add_column("Detail", max_width=60)
    for insight in notes.insights:
        color = IMPACT_COLORS[insight.impact]
        table.add_row(f"[{color}]{insight.impact}[/{color}]", insight.title, insight.description)
    console.print(table)

    d = notes.discipline
    console.print(
        f"Plan following {d.plan_following_score}% | Emotional control {d.emotional_control_score}% | "
        f"Reflection {d.reflection_quality}% | Negative patterns {d.negative_patterns}"
    )


def _display_equity_curve(points: list[EquityPoint], width: int = 60, height: int = 12) -> None:
    """Display ASCII equity curve."""
    if len(points) < 2:
        return

    values = [p.cumulative_pnl for p in points]
    min_val = min(values)
    max_val = max(values)
    val_range = max_val - min_val
    if val_range == 0:
        return

    if len(values) > width:
        step = len(values) / width
        sampled = [values[int(i * step)] for i in range(width)]
    else:
        sampled = values
        width = len(sampled)

    console.print(Panel.fit("[bold cyan]Equity Curve[/bold cyan]"))
    for row in range(height - 1, -1, -1):
        threshold = min_val + (val_range * row / (height - 1))
        if row == height - 1:
            label = f"{max_val:>12,.0f} |"
        elif row == 0:
            label = f"{min_val:>12,.0f} |"
        else:
            label = "             |"
        console.print(label + "".join("█" if v >= threshold else " " for v in sampled))

    console.print("             +" + "─" * width)
    start_label = _date(points[0].date)
    end_label = _date(points[-1].date)
    padding = max(width - len(start_label) - len(end_label), 1)
    console.print(f"              {start_label}{' ' * padding}{end_label}")


# ── Main ────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.debug else validate_log_level(LOG_LEVEL)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    console.print(f"\n[bold green]Trade Journal Analytics[/bold green] — {args.file}\n")

    try:
        validate_drift_settings()
        drift_config, cohort_split, nlp_config = build_configs(args)
        trades = load_trades(args.file)
        report = build_report(
            trades,
            drift_config=drift_config,
            cohort_split=cohort_split,
            nlp_config=nlp_config,
        )
        if args.export:
            export_results(report, args.export)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    _display_summary(report)
    console.print()
    _display_drawdowns(report)
    console.print()
    _display_streaks(report)
    console.print()
    _display_drift(report)
    console.print()
    _display_cohorts(report)
    console.print()
    _display_notes(report)
    console.print()
    _display_equity_curve(report.equity_curve)
    if args.export:
        console.print(f"\nReport written to [bold]{args.export}[/bold]")
    console.print()


if __name__ == "__main__":
    main()
