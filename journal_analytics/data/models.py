"""Trade record input contract and ingestion-time normalization."""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Trade(BaseModel):
    """One journal entry: a position with its realized P&L once closed.

    Accepts camelCase (``entryDate``, ``pnlAmount``) or snake_case keys.
    Instances are frozen so every analysis sees an immutable snapshot.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str
    symbol: str
    entry_date: datetime
    exit_date: Optional[datetime] = None
    pnl_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("pnlAmount", "pnl_amount", "pnl"),
        serialization_alias="pnlAmount",
    )
    strategy: Optional[str] = None
    notes: Optional[str] = None
    lessons: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("lessons", "lessonsLearned", "lessons_learned"),
        serialization_alias="lessons",
    )
    trade_type: Optional[str] = None  # "BUY" or "SELL"
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    quantity: Optional[float] = None
    fees: float = 0.0
    position_size: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("entry_date", "exit_date", mode="before")
    @classmethod
    def _coerce_date_input(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day)
        return value

    @field_validator("entry_date", "exit_date")
    @classmethod
    def _to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @property
    def is_closed(self) -> bool:
        """True when the trade has an exit date and a finite realized P&L."""
        return (
            self.exit_date is not None
            and self.pnl_amount is not None
            and math.isfinite(self.pnl_amount)
        )

    @property
    def pnl(self) -> float:
        """Realized P&L, 0 for trades that are still open."""
        return self.pnl_amount if self.is_closed else 0.0

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def combined_notes(self) -> str:
        """Notes and lessons joined by a blank line; either alone when only one is set."""
        notes = self.notes or ""
        lessons = self.lessons or ""
        if notes and lessons:
            return f"{notes}\n\n{lessons}"
        return notes or lessons


def normalize_trades(records: Iterable[Any]) -> list[Trade]:
    """Validate raw trade records once at the ingestion boundary.

    Records that are already ``Trade`` instances pass through. Dicts are
    validated; records that fail (unparseable dates, non-numeric P&L,
    missing id or symbol) are dropped with a warning instead of raising.
    """
    trades: list[Trade] = []
    dropped = 0
    for record in records:
        if isinstance(record, Trade):
            trades.append(record)
            continue
        try:
            trades.append(Trade.model_validate(record))
        except ValidationError as e:
            dropped += 1
            record_id = record.get("id", "?") if isinstance(record, dict) else "?"
            logger.warning(f"Dropping malformed trade record {record_id}: {e.error_count()} error(s)")
    if dropped:
        logger.info(f"Normalized {len(trades)} trades, dropped {dropped} malformed record(s)")
    return trades


def closed_trades(trades: Sequence[Trade]) -> list[Trade]:
    """Return only trades eligible for analysis, preserving input order."""
    return [t for t in trades if t.is_closed]


def sort_by_exit_date(trades: Sequence[Trade]) -> list[Trade]:
    """Closed trades ascending by exit date; ties keep their input order."""
    return sorted(closed_trades(trades), key=lambda t: t.exit_date)
