from journal_analytics.data.cache import AnalysisCache, fingerprint
from journal_analytics.data.loader import load_trades
from journal_analytics.data.models import Trade, closed_trades, normalize_trades, sort_by_exit_date

__all__ = [
    "AnalysisCache",
    "Trade",
    "closed_trades",
    "fingerprint",
    "load_trades",
    "normalize_trades",
    "sort_by_exit_date",
]
