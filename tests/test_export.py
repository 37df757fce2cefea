"""Tests for journal report export (JSON & CSV)."""
from __future__ import annotations

import csv
import json
from datetime import datetime, timedelta

import pytest

from journal_analytics.analytics.export import export_csv, export_json, export_results
from journal_analytics.analytics.models import JournalReport
from journal_analytics.analytics.report import build_report


def _make_report() -> JournalReport:
    """Build a small report over a handful of closed trades."""
    start = datetime(2025, 1, 6)
    pnls = [120.0, -80.0, -40.0, 200.0, -30.0, 60.0]
    notes = [
        "Followed plan on the breakout",
        "Chased the move, fomo entry",
        "Stopped out, bad timing",
        "Patient entry, breakout worked",
        None,
        "Great trade, waited for the setup",
    ]
    trades = [
        {
            "id": f"t{i}",
            "symbol": "AAPL" if i % 2 == 0 else "MSFT",
            "entryDate": (start + timedelta(days=i)).isoformat(),
            "exitDate": (start + timedelta(days=i, hours=5)).isoformat(),
            "pnlAmount": pnl,
            "strategy": "Breakout",
            "notes": note,
        }
        for i, (pnl, note) in enumerate(zip(pnls, notes))
    ]
    return build_report(trades)


class TestExportJson:
    def test_export_json(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.json")
        export_json(report, path)

        with open(path) as f:
            data = json.load(f)

        assert data["totalTrades"] == 6
        assert data["closedTrades"] == 6
        assert len(data["equityCurve"]) == 6
        assert data["equityCurve"][-1]["cumulativePnL"] == pytest.approx(230.0)
        assert "maxDrawdown" in data["drawdownMetrics"]
        assert data["cohorts"]["overallTrend"] in ("improving", "declining", "stable")
        assert data["drift"]["alerts"][0]["type"] == "info"

    def test_export_json_dates_are_iso(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.json")
        export_json(report, path)

        with open(path) as f:
            data = json.load(f)

        assert data["equityCurve"][0]["date"] == "2025-01-06T05:00:00"
        restored = JournalReport.model_validate(data)
        assert restored.total_trades == report.total_trades
        assert len(restored.equity_curve) == len(report.equity_curve)


    def test_export_json_matches_model_dump(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.json")
        export_json(report, path)

        with open(path) as f:
            data = json.load(f)

        assert data == report.model_dump(mode="json", by_alias=True)
        assert "symbolDrawdownPeriods" in data


class TestExportCsv:
    def test_export_csv_sections(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.csv")
        export_csv(report, path)

        with open(path) as f:
            content = f.read()

        for section in (
            "# Summary", "# Drawdown Periods", "# Streak History", "# Drift Alerts",
            "# Cohort Comparison", "# Keywords", "# Insights",
        ):
            assert section in content

    def test_export_csv_summary_row(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.csv")
        export_csv(report, path)

        with open(path, newline="") as f:
            rows = list(csv.reader(f))

        assert rows[0] == ["# Summary"]
        header, values = rows[1], rows[2]
        summary = dict(zip(header, values))
        assert summary["total_trades"] == "6"
        assert summary["max_drawdown"] == str(report.drawdown_metrics.max_drawdown)

    def test_export_csv_cohort_rows(self, tmp_path):
        report = _make_report()
        path = str(tmp_path / "report.csv")
        export_csv(report, path)

        with open(path, newline="") as f:
            rows = list(csv.reader(f))

        start = rows.index(["# Cohort Comparison"])
        metric_rows = []
        for row in rows[start + 2:]:
            if not row:
                break
            metric_rows.append(row)
        assert len(metric_rows) == 8
        assert {r[0] for r in metric_rows} >= {"Win Rate", "Trading Frequency"}


class TestExportResults:
    def test_dispatches_on_extension(self, tmp_path):
        report = _make_report()
        json_path = tmp_path / "out.JSON"
        csv_path = tmp_path / "out.csv"
        export_results(report, str(json_path))
        export_results(report, str(csv_path))
        assert json_path.exists()
        assert csv_path.exists()

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_results(_make_report(), str(tmp_path / "report.xlsx"))
