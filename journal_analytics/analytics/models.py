"""Analytics result data classes."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from journal_analytics.data.models import Trade


class AnalyticsModel(BaseModel):
    """Plain data output; serializes with camelCase keys via ``by_alias=True``."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Equity & drawdown ─────────────────────────────────────────────────


class EquityPoint(AnalyticsModel):
    """Running equity after one closed trade, relative to a zero baseline."""
    date: datetime
    pnl: float
    cumulative_pnl: float = Field(alias="cumulativePnL")
    running_peak: float
    drawdown: float
    drawdown_percentage: float
    is_in_drawdown: bool


class DrawdownPeriod(AnalyticsModel):
    """A contiguous stretch of equity points below the running peak."""
    start_date: datetime
    end_date: datetime
    peak_value: float
    trough_value: float
    drawdown_amount: float
    drawdown_percentage: float
    duration: int = 0  # days
    recovery_date: Optional[datetime] = None
    recovery_time: Optional[int] = None  # days
    is_recovered: bool = False


class SymbolDrawdownPeriod(DrawdownPeriod):
    symbol: str


class DrawdownMetrics(AnalyticsModel):
    """Aggregate drawdown statistics over one equity curve."""
    max_drawdown: float = 0.0
    max_drawdown_percentage: float = 0.0
    avg_drawdown: float = 0.0
    avg_drawdown_percentage: float = 0.0
    avg_drawdown_duration: float = 0.0
    avg_recovery_time: float = 0.0
    total_drawdown_periods: int = 0
    current_drawdown: float = 0.0
    current_drawdown_percentage: float = 0.0
    current_drawdown_duration: int = 0
    longest_drawdown_duration: int = 0
    longest_recovery_time: int = 0
    drawdown_frequency: float = 0.0  # periods per year


class SymbolDrawdownMetrics(AnalyticsModel):
    """Drawdown summary for one symbol's independent equity curve."""
    symbol: str
    total_trades: int
    current_equity: float
    peak_equity: float
    max_drawdown: float
    max_drawdown_percentage: float
    avg_drawdown: float
    total_drawdown_periods: int
    current_drawdown: float
    current_drawdown_percentage: float
    time_in_drawdown: int  # points below the peak
    time_in_drawdown_ratio: float
    avg_recovery_time: float
    is_in_drawdown: bool


class DrawdownChartPoint(AnalyticsModel):
    date: datetime
    equity: float
    peak: float
    drawdown: float  # negative for display
    drawdown_percentage: float


# ── Streaks ───────────────────────────────────────────────────────────

StreakType = Literal["winning", "losing"]


class StreakPeriod(AnalyticsModel):
    type: StreakType
    length: int
    start_date: datetime
    end_date: datetime
    total_pnl: float = Field(alias="totalPnL")


class StreakMetrics(AnalyticsModel):
    current_streak: int = 0
    current_streak_type: Literal["winning", "losing", "none"] = "none"
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    average_win_streak: float = 0.0
    average_loss_streak: float = 0.0
    total_win_streaks: int = 0
    total_loss_streaks: int = 0
    streak_history: list[StreakPeriod] = Field(default_factory=list)


class GroupStreak(AnalyticsModel):
    """Streak summary scoped to one symbol or one strategy."""
    name: str
    current_streak: int
    current_streak_type: Literal["winning", "losing", "none"]
    longest_win_streak: int
    longest_loss_streak: int
    trades: int


# ── Markov sequences ──────────────────────────────────────────────────

TradeOutcome = Literal["win", "loss", "breakeven"]


class TransitionMatrix(BaseModel):
    """Row-normalized transition probabilities between W/L/B states."""
    WW: float = 0.0
    WL: float = 0.0
    WB: float = 0.0
    LW: float = 0.0
    LL: float = 0.0
    LB: float = 0.0
    BW: float = 0.0
    BL: float = 0.0
    BB: float = 0.0


class PatternOccurrence(AnalyticsModel):
    start_date: datetime
    end_date: datetime
    total_pnl: float = Field(alias="totalPnL")
    trades: int


class SequencePattern(AnalyticsModel):
    pattern: str
    count: int
    probability: float
    avg_pnl: float = Field(alias="avgPnL")
    occurrences: list[PatternOccurrence] = Field(default_factory=list)


class RunSummary(AnalyticsModel):
    type: TradeOutcome
    length: int
    total_pnl: float = Field(alias="totalPnL")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SequenceStreaks(AnalyticsModel):
    current_streak: Optional[RunSummary] = None
    longest_win_streak: Optional[RunSummary] = None
    longest_loss_streak: Optional[RunSummary] = None
    average_win_streak: float = 0.0
    average_loss_streak: float = 0.0


class NextTradeProbabilities(AnalyticsModel):
    next_win_probability: float
    next_loss_probability: float
    next_breakeven_probability: float


class MarkovPrediction(AnalyticsModel):
    current_state: TradeOutcome
    predictions: NextTradeProbabilities
    confidence: float
    sample_size: int


class SequenceMetrics(AnalyticsModel):
    total_trades: int = 0
    total_sequences: int = 0
    transition_matrix: TransitionMatrix = Field(default_factory=TransitionMatrix)
    streak_analysis: SequenceStreaks = Field(default_factory=SequenceStreaks)
    common_patterns: list[SequencePattern] = Field(default_factory=list)
    prediction: Optional[MarkovPrediction] = None
    recovery_rate: float = 0.0
    consecutive_loss_impact: float = 0.0


# ── Drift ─────────────────────────────────────────────────────────────

Regime = Literal["normal", "improving", "deteriorating", "volatile"]


class AlertLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class DriftConfig(AnalyticsModel):
    z_score_window: int = Field(default=20, ge=2)
    z_score_threshold: float = Field(default=2.0, gt=0)
    cusum_threshold: float = Field(default=5.0, gt=0)
    cusum_drift: float = Field(default=0.5, ge=0)


class DriftPoint(AnalyticsModel):
    """Per-trade drift state: return, rolling z-score and CUSUM accumulators."""
    date: datetime
    trade_index: int
    pnl: float
    cumulative_pnl: float = Field(alias="cumulativePnL")
    returns: float
    z_score: float
    cusum_positive: float
    cusum_negative: float
    is_drift: bool
    regime: Regime


class DriftEvent(AnalyticsModel):
    start_index: int
    end_index: int
    start_date: datetime
    end_date: datetime
    type: Literal["positive", "negative", "volatility"]
    magnitude: float
    description: str
    severity: Literal["low", "medium", "high"]


class RegimeChange(AnalyticsModel):
    change_index: int
    change_date: datetime
    previous_regime: Regime
    new_regime: Regime
    confidence: float
    cusum_value: float
    z_score_value: float


class DriftStatistics(AnalyticsModel):
    total_trades: int = 0
    mean_return: float = 0.0
    std_dev_return: float = 0.0
    current_z_score: float = 0.0
    max_positive_drift: float = 0.0
    max_negative_drift: float = 0.0
    drift_event_count: int = 0
    regime_change_count: int = 0
    time_in_drift: int = 0
    drift_percentage: float = 0.0


class DriftAlert(AnalyticsModel):
    type: AlertLevel
    message: str
    date: Optional[datetime] = None
    trade_index: int
    recommendation: str


class DriftAnalysis(AnalyticsModel):
    equity_points: list[DriftPoint] = Field(default_factory=list)
    drift_events: list[DriftEvent] = Field(default_factory=list)
    regime_changes: list[RegimeChange] = Field(default_factory=list)
    current_regime: Regime = "normal"
    statistics: DriftStatistics = Field(default_factory=DriftStatistics)
    alerts: list[DriftAlert] = Field(default_factory=list)


# ── Cohorts ───────────────────────────────────────────────────────────

Significance = Literal["high", "medium", "low"]


class CohortSplit(AnalyticsModel):
    method: Literal["equal", "percentage", "date"] = "equal"
    split_point: Optional[float] = Field(default=None, ge=0, le=100)  # percentage
    split_date: Optional[datetime] = None

    @field_validator("split_date")
    @classmethod
    def _to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class CohortMetrics(AnalyticsModel):
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    break_even_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = Field(default=0.0, alias="totalPnL")
    average_pnl: float = Field(default=0.0, alias="averagePnL")
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    expectancy: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    average_hold_time: float = 0.0  # days
    trading_frequency: float = 0.0  # trades per month
    risk_reward_ratio: float = 0.0


class CohortPeriod(AnalyticsModel):
    name: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    trades: list[Trade] = Field(default_factory=list)
    metrics: CohortMetrics = Field(default_factory=CohortMetrics)
    trade_count: int = 0


class ComparisonMetric(AnalyticsModel):
    name: str
    early_value: float
    recent_value: float
    change: float
    change_percent: float
    is_improvement: bool
    significance: Significance
    unit: Optional[str] = None


class Insight(AnalyticsModel):
    """A rule-generated observation with a machine-readable impact tier."""
    message: str
    impact: Significance


class CohortComparison(AnalyticsModel):
    early_cohort: CohortPeriod
    recent_cohort: CohortPeriod
    improvements: list[ComparisonMetric] = Field(default_factory=list)
    deteriorations: list[ComparisonMetric] = Field(default_factory=list)
    stable_metrics: list[ComparisonMetric] = Field(default_factory=list)
    overall_trend: Literal["improving", "declining", "stable"] = "stable"
    trend_score: int = 0
    key_insights: list[Insight] = Field(default_factory=list)


# ── Note analysis ─────────────────────────────────────────────────────

SentimentType = Literal["positive", "negative", "neutral", "mixed"]
EmotionalState = Literal[
    "confident", "fearful", "greedy", "disciplined",
    "frustrated", "calm", "excited", "anxious",
]


class NLPConfig(AnalyticsModel):
    min_note_length: int = Field(default=10, ge=0)
    sentiment_threshold: float = Field(default=0.3, ge=0, le=1)
    keyword_min_frequency: int = Field(default=2, ge=1)


class SentimentScore(AnalyticsModel):
    overall: float  # -1 to 1
    type: SentimentType
    confidence: float  # 0 to 1
    positive_words: list[str] = Field(default_factory=list)
    negative_words: list[str] = Field(default_factory=list)


class NoteSentiment(AnalyticsModel):
    trade_id: str
    date: datetime
    sentiment: SentimentScore
    emotional_state: list[EmotionalState]
    note_length: int
    has_action: bool


class KeywordFrequency(AnalyticsModel):
    word: str
    count: int
    sentiment: float  # mean sentiment of the notes containing the word
    trades: list[str] = Field(default_factory=list)
    win_rate: float


class EmotionalPattern(AnalyticsModel):
    emotion: EmotionalState
    frequency: int
    win_rate: float
    avg_pnl: float = Field(alias="avgPnL")
    description: str


class DisciplineMetrics(AnalyticsModel):
    plan_following_score: int = 0  # 0-100
    emotional_control_score: int = 0  # 0-100
    reflection_quality: int = 0  # 0-100
    actionable_insights: int = 0
    positive_reinforcement: int = 0
    negative_patterns: int = 0


class InsightEvidence(AnalyticsModel):
    trade_count: int
    win_rate: Optional[float] = None
    avg_pnl: Optional[float] = Field(default=None, alias="avgPnL")
    keywords: Optional[list[str]] = None


class NLPInsight(AnalyticsModel):
    type: Literal["warning", "tip", "pattern", "correlation"]
    category: Literal["emotional", "discipline", "strategy", "timing"]
    title: str
    description: str
    impact: Significance
    evidence: InsightEvidence


class SentimentTrend(AnalyticsModel):
    date: str  # YYYY-MM-DD
    sentiment: float
    trade_count: int
    win_rate: float
    pnl: float


class SentimentCorrelation(AnalyticsModel):
    """Raw co-moment E[s*p] - E[s]E[p]; unbounded, not a Pearson coefficient."""
    correlation: float = 0.0
    description: str = ""


class NLPAnalysis(AnalyticsModel):
    total_notes: int = 0
    notes_with_content: int = 0
    avg_note_length: float = 0.0
    overall_sentiment: SentimentScore
    sentiment_by_trade: list[NoteSentiment] = Field(default_factory=list)
    sentiment_trend: list[SentimentTrend] = Field(default_factory=list)
    top_keywords: list[KeywordFrequency] = Field(default_factory=list)
    emotional_patterns: list[EmotionalPattern] = Field(default_factory=list)
    discipline: DisciplineMetrics = Field(default_factory=DisciplineMetrics)
    insights: list[NLPInsight] = Field(default_factory=list)
    sentiment_vs_performance: SentimentCorrelation = Field(default_factory=SentimentCorrelation)


# ── Performance breakdowns ────────────────────────────────────────────


class StrategyPerformance(AnalyticsModel):
    name: str
    trade_count: int
    winning_trades: int
    total_pnl: float = Field(alias="totalPnL")
    total_capital: float
    win_rate: float
    avg_pnl: float = Field(alias="avgPnL")
    avg_capital: float
    return_on_capital: float
    profit_factor: float


class SymbolPerformance(AnalyticsModel):
    name: str
    trade_count: int
    winning_trades: int
    total_pnl: float = Field(alias="totalPnL")
    win_rate: float
    avg_pnl: float = Field(alias="avgPnL")
    risk_reward: float


class DayOfWeekPerformance(AnalyticsModel):
    day: str
    trades: int
    avg_pnl: float = Field(alias="avgPnL")


class MonthlyTrend(AnalyticsModel):
    month: int  # 0 = January
    month_name: str
    pnl: float
    trade_count: int


class DailyStats(AnalyticsModel):
    trading_days: int = 0
    win_days: int = 0
    loss_days: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    win_rate: int = 0
    max_profit_day: float = 0.0
    max_loss_day: float = 0.0
    avg_profit_day: float = 0.0
    avg_loss_day: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    net_pnl: float = Field(default=0.0, alias="netPnL")
    avg_daily_pnl: float = Field(default=0.0, alias="avgDailyPnL")


# ── Report ────────────────────────────────────────────────────────────


class JournalReport(AnalyticsModel):
    """Every analysis computed over a single trade snapshot."""
    generated_at: datetime
    total_trades: int
    closed_trades: int
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    drawdown_periods: list[DrawdownPeriod] = Field(default_factory=list)
    drawdown_metrics: DrawdownMetrics = Field(default_factory=DrawdownMetrics)
    symbol_drawdowns: list[SymbolDrawdownMetrics] = Field(default_factory=list)
    symbol_drawdown_periods: list[SymbolDrawdownPeriod] = Field(default_factory=list)
    streaks: StreakMetrics = Field(default_factory=StreakMetrics)
    symbol_streaks: list[GroupStreak] = Field(default_factory=list)
    strategy_streaks: list[GroupStreak] = Field(default_factory=list)
    sequence: SequenceMetrics = Field(default_factory=SequenceMetrics)
    drift: DriftAnalysis = Field(default_factory=DriftAnalysis)
    cohorts: CohortComparison
    notes: NLPAnalysis
    strategy_performance: list[StrategyPerformance] = Field(default_factory=list)
    symbol_performance: list[SymbolPerformance] = Field(default_factory=list)
    day_of_week: list[DayOfWeekPerformance] = Field(default_factory=list)
    monthly_trend: list[MonthlyTrend] = Field(default_factory=list)
    daily_stats: DailyStats = Field(default_factory=DailyStats)
