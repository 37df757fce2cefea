"""Tests for the analytics cache and snapshot fingerprinting."""
from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

from journal_analytics.analytics.models import CohortSplit, DriftConfig
from journal_analytics.data.cache import AnalysisCache, fingerprint
from journal_analytics.data.models import Trade


def _make_trades(pnl: float = 10.0) -> list[Trade]:
    return [
        Trade(id="1", symbol="AAPL", entry_date=datetime(2024, 1, 1),
              exit_date=datetime(2024, 1, 2), pnl_amount=pnl),
    ]


class TestAnalysisCache:
    def test_set_and_get(self):
        cache = AnalysisCache(default_ttl_minutes=5)
        cache.set("k", {"v": 1})
        assert cache.get("k") == {"v": 1}
        assert cache.get("missing") is None

    def test_zero_ttl_expires_immediately(self):
        cache = AnalysisCache(default_ttl_minutes=5)
        cache.set("k", 1, ttl_minutes=0)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_ttl_from_settings(self):
        with patch("journal_analytics.data.cache.ANALYTICS_CACHE_TTL_MINUTES", 0):
            cache = AnalysisCache()
        cache.set("k", 1)
        assert cache.get("k") is None

    def test_lru_eviction(self):
        cache = AnalysisCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_get_or_compute_runs_once(self):
        cache = AnalysisCache()
        calls = []

        def compute():
            calls.append(1)
            return "report"

        assert cache.get_or_compute("k", compute) == "report"
        assert cache.get_or_compute("k", compute) == "report"
        assert len(calls) == 1

    def test_invalidation_hooks(self):
        cache = AnalysisCache()
        seen = []
        cache.on_invalidate(seen.append)
        cache.set("k", 1)
        cache.invalidate("k")
        cache.clear()
        assert seen == ["k", None]
        assert cache.get("k") is None

    def test_cleanup_and_stats(self):
        cache = AnalysisCache(default_ttl_minutes=5, max_size=10)
        cache.set("fresh", 1)
        cache.set("stale", 2, ttl_minutes=0)
        cache.get("fresh")
        cache.get("nope")

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 2
        assert stats["valid_entries"] == 1
        assert stats["expired_entries"] == 1
        assert stats["max_size"] == 10

        assert cache.cleanup() == 1
        assert len(cache) == 1


class TestFingerprint:
    def test_equal_snapshots_hash_equal(self):
        assert fingerprint(_make_trades()) == fingerprint(_make_trades())

    def test_trade_change_changes_hash(self):
        assert fingerprint(_make_trades(10)) != fingerprint(_make_trades(11))

    def test_config_changes_hash(self):
        trades = _make_trades()
        assert fingerprint(trades, DriftConfig()) != fingerprint(trades, DriftConfig(z_score_window=30))
        assert fingerprint(trades, CohortSplit()) != fingerprint(trades, CohortSplit(method="percentage"))
