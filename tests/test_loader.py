"""Tests for loading trade snapshots from disk."""
from __future__ import annotations

import json
from datetime import datetime

import pytest

from journal_analytics.data.loader import load_trades

CSV_CONTENT = """id,symbol,entryDate,exitDate,pnlAmount,strategy,notes
1,AAPL,2024-01-02,2024-01-03,150.5,Breakout,Clean entry
2,MSFT,2024-01-04,,,,
3,TSLA,2024-01-05,2024-01-06,oops,,
"""


class TestLoadJson:
    def test_list_of_trades(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([
            {"id": 1, "symbol": "AAPL", "entryDate": "2024-01-02", "exitDate": "2024-01-03", "pnl": 10},
            {"id": "2", "symbol": "MSFT", "entryDate": "2024-01-04T10:00:00Z"},
        ]))
        trades = load_trades(str(path))
        assert [t.id for t in trades] == ["1", "2"]
        assert trades[0].pnl_amount == 10
        assert trades[1].entry_date == datetime(2024, 1, 4, 10)
        assert not trades[1].is_closed

    def test_wrapped_in_object(self, tmp_path):
        path = tmp_path / "journal.json"
        path.write_text(json.dumps({"trades": [{"id": "a", "symbol": "AMD", "entryDate": "2024-01-02"}]}))
        assert len(load_trades(str(path))) == 1

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text(json.dumps({"trades": "nope"}))
        with pytest.raises(ValueError, match="Expected a list"):
            load_trades(str(path))


class TestLoadCsv:
    def test_rows_with_blank_cells(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_text(CSV_CONTENT)
        trades = load_trades(str(path))
        # The row with a non-numeric P&L is dropped
        assert [t.id for t in trades] == ["1", "2"]
        assert trades[0].pnl_amount == pytest.approx(150.5)
        assert trades[0].strategy == "Breakout"
        assert trades[1].exit_date is None
        assert trades[1].strategy is None


class TestUnsupportedFormat:
    def test_raises(self, tmp_path):
        path = tmp_path / "trades.xlsx"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported trade file format"):
            load_trades(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_trades(str(tmp_path / "absent.json"))
