"""Load trade journal snapshots from JSON or CSV files."""
from __future__ import annotations

import csv
import json
import logging
import os
from typing import Any

from journal_analytics.data.models import Trade, normalize_trades

logger = logging.getLogger(__name__)


def _read_json(path: str) -> list[Any]:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("trades", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of trades in {path}, got {type(data).__name__}")
    return data


def _read_csv(path: str) -> list[dict[str, Any]]:
    """Rows as dicts of strings; blank cells are left out so optional fields stay unset."""
    records = []
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            record: dict[str, Any] = {}
            for column, cell in row.items():
                if column is None:
                    continue
                cell = (cell or "").strip()
                if not cell:
                    continue
                record[column] = cell
            records.append(record)
    return records


def load_trades(path: str) -> list[Trade]:
    """Read and normalize a trade snapshot.

    ``.json`` files hold a list of trade objects or ``{"trades": [...]}``;
    ``.csv`` files have one trade per row with a header of field names.
    Malformed records are dropped by ``normalize_trades``.

    Raises ValueError for unsupported extensions.
    """
    _, ext = os.path.splitext(path)
    ext = ext.lower()
    if ext == ".json":
        records = _read_json(path)
    elif ext == ".csv":
        records = _read_csv(path)
    else:
        raise ValueError(f"Unsupported trade file format: '{ext}'. Use .json or .csv")

    trades = normalize_trades(records)
    logger.info(f"Loaded {len(trades)} trades from {path}")
    return trades
