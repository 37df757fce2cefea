"""Lexicon-based sentiment, emotion and discipline analysis of trade notes."""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Optional, Sequence

from journal_analytics.analytics.models import (
    DisciplineMetrics,
    EmotionalPattern,
    EmotionalState,
    InsightEvidence,
    KeywordFrequency,
    NLPAnalysis,
    NLPConfig,
    NLPInsight,
    NoteSentiment,
    SentimentCorrelation,
    SentimentScore,
    SentimentTrend,
    SentimentType,
)
from journal_analytics.data.models import Trade, closed_trades

logger = logging.getLogger(__name__)

POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "perfect", "successful", "profit", "win", "gained",
    "strong", "confident", "disciplined", "patient", "followed", "plan", "executed",
    "opportunity", "momentum", "breakout", "target", "reward", "achieved", "worked",
    "smart", "correct", "right", "better", "improved", "learning", "growth",
})

NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "loss", "lost", "failed", "mistake", "error", "wrong",
    "fear", "panic", "revenge", "greed", "fomo", "impulsive", "emotional",
    "stopped", "missed", "late", "early", "hesitated", "chased", "overtraded",
    "poor", "weak", "difficult", "struggle", "regret", "shouldve", "couldve",
})

# Substring matches, so stems like "frustrat" cover every inflection
EMOTIONAL_KEYWORDS: dict[str, tuple[str, ...]] = {
    "confident": ("confident", "sure", "certain", "conviction", "strong belief", "comfortable"),
    "fearful": ("fear", "scared", "worried", "nervous", "hesitant", "uncertain"),
    "greedy": ("greed", "more", "bigger", "fomo", "chase", "oversize"),
    "disciplined": ("plan", "discipline", "rules", "strategy", "followed", "patient", "waited"),
    "frustrated": ("frustrat", "annoyed", "irritated", "stuck", "struggle"),
    "calm": ("calm", "patient", "relaxed", "composed", "steady"),
    "excited": ("excited", "enthusiast", "eager", "pumped", "hyped"),
    "anxious": ("anxious", "stress", "pressure", "tense", "uneasy"),
}

EMOTION_DESCRIPTIONS: dict[str, str] = {
    "fearful": "Fear often leads to missed opportunities",
    "greedy": "Greed typically results in poor outcomes",
    "disciplined": "Discipline is key to consistent performance",
    "frustrated": "Frustration can cloud judgment",
    "calm": "Staying calm improves decision quality",
    "excited": "Excitement needs to be balanced with discipline",
    "anxious": "Anxiety often precedes poor decisions",
}

ACTION_WORDS = (
    "will", "should", "must", "need to", "plan to", "going to", "next time",
    "remember", "focus", "improve", "work on", "avoid", "continue",
)

PLAN_MARKERS = ("plan", "strategy", "followed")
CONTROL_MARKERS = ("patient", "disciplined", "waited")
REFLECTION_MARKERS = ("because", "learned")
NEGATIVE_PATTERN_MARKERS = ("revenge", "fomo", "impulsive")

MIN_NOTE_LENGTH = 10
REFLECTION_MIN_LENGTH = 100
KEYWORD_MIN_LENGTH = 4
TOP_KEYWORDS = 50
INSIGHT_KEYWORD_MIN_COUNT = 3
CORRELATION_BAND = 0.1

IMPACT_ORDER = {"high": 3, "medium": 2, "low": 1}

_NON_WORD = re.compile(r"[^\w\s]", flags=re.ASCII)


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation, and keep tokens longer than two characters."""
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [word for word in cleaned.split() if len(word) > 2]


def analyze_sentiment(text: str, threshold: float = 0.3) -> SentimentScore:
    """Score text against the fixed lexicons.

    Text with no lexicon hits is neutral with a fixed 0.5 confidence.
    """
    words = tokenize(text)
    positive = [w for w in words if w in POSITIVE_WORDS]
    negative = [w for w in words if w in NEGATIVE_WORDS]
    total = len(positive) + len(negative)

    if total == 0:
        return SentimentScore(overall=0.0, type="neutral", confidence=0.5)

    overall = (len(positive) - len(negative)) / total
    sentiment_type: SentimentType = "neutral"
    if overall > threshold:
        sentiment_type = "positive"
    elif overall < -threshold:
        sentiment_type = "negative"
    elif positive and negative:
        sentiment_type = "mixed"

    return SentimentScore(
        overall=overall,
        type=sentiment_type,
        confidence=min(total / 10, 1.0),
        positive_words=positive,
        negative_words=negative,
    )


def detect_emotions(text: str) -> list[EmotionalState]:
    """Every emotional state with a keyword hit, or ``["calm"]`` when none match."""
    lower = text.lower()
    emotions = [
        emotion for emotion, keywords in EMOTIONAL_KEYWORDS.items()
        if any(keyword in lower for keyword in keywords)
    ]
    return emotions or ["calm"]


def has_actionable_content(text: str) -> bool:
    lower = text.lower()
    return any(word in lower for word in ACTION_WORDS)


def _emotion_description(emotion: str, win_ratio: float) -> str:
    if emotion == "confident":
        return "Confidence correlates with success" if win_ratio > 0.5 else "Overconfidence may be an issue"
    return EMOTION_DESCRIPTIONS[emotion]


def _notes_trades(trades: Sequence[Trade], min_length: int) -> list[Trade]:
    return [t for t in trades if t.combined_notes and len(t.combined_notes) >= min_length]


def extract_keywords(
    trades: Sequence[Trade],
    min_frequency: int = 2,
    min_note_length: int = MIN_NOTE_LENGTH,
) -> list[KeywordFrequency]:
    """Recurring words across notes with their mean sentiment and win rate.

    Notes shorter than ``min_note_length`` are skipped. Counts every occurrence;
    the win rate is over the distinct trades that mention the word. Returns at
    most 50, most frequent first.
    """
    counts: dict[str, int] = defaultdict(int)
    sentiments: dict[str, list[float]] = defaultdict(list)
    trade_ids: dict[str, list[str]] = defaultdict(list)
    wins: dict[str, int] = defaultdict(int)

    for trade in trades:
        text = trade.combined_notes
        if not text or len(text) < min_note_length or not trade.id:
            continue
        score = analyze_sentiment(text).overall
        for word in tokenize(text):
            counts[word] += 1
            sentiments[word].append(score)
            if trade.id not in trade_ids[word]:
                trade_ids[word].append(trade.id)
                if trade.is_win:
                    wins[word] += 1

    keywords = [
        KeywordFrequency(
            word=word,
            count=count,
            sentiment=sum(sentiments[word]) / len(sentiments[word]),
            trades=trade_ids[word],
            win_rate=wins[word] / len(trade_ids[word]) * 100 if trade_ids[word] else 0.0,
        )
        for word, count in counts.items()
        if count >= min_frequency and len(word) >= KEYWORD_MIN_LENGTH
    ]
    keywords.sort(key=lambda k: k.count, reverse=True)
    return keywords[:TOP_KEYWORDS]


def analyze_emotional_patterns(trades: Sequence[Trade]) -> list[EmotionalPattern]:
    """Win rate and average P&L per detected emotional state, most frequent first."""
    stats: dict[str, dict[str, float]] = {}
    for trade in trades:
        text = trade.combined_notes
        if not text:
            continue
        for emotion in detect_emotions(text):
            entry = stats.setdefault(emotion, {"count": 0, "wins": 0, "pnl": 0.0})
            entry["count"] += 1
            entry["wins"] += 1 if trade.is_win else 0
            entry["pnl"] += trade.pnl

    patterns = [
        EmotionalPattern(
            emotion=emotion,
            frequency=int(data["count"]),
            win_rate=data["wins"] / data["count"] * 100,
            avg_pnl=data["pnl"] / data["count"],
            description=_emotion_description(emotion, data["wins"] / data["count"]),
        )
        for emotion, data in stats.items()
    ]
    return sorted(patterns, key=lambda p: p.frequency, reverse=True)


def calculate_discipline_metrics(
    trades: Sequence[Trade],
    min_note_length: int = MIN_NOTE_LENGTH,
) -> DisciplineMetrics:
    """Share of notes showing plan-following, emotional control and reflection.

    Percentages are over the trades whose notes reach ``min_note_length``.
    """
    plan = control = reflection = actionable = reinforcement = negative = 0
    valid = 0

    for trade in trades:
        text = trade.combined_notes
        if not text or len(text) < min_note_length:
            continue
        valid += 1
        lower = text.lower()
        if any(m in lower for m in PLAN_MARKERS):
            plan += 1
        if any(m in lower for m in CONTROL_MARKERS):
            control += 1
        if len(text) > REFLECTION_MIN_LENGTH and any(m in lower for m in REFLECTION_MARKERS):
            reflection += 1
        if has_actionable_content(text):
            actionable += 1
        if analyze_sentiment(text).overall > 0.5 and trade.is_win:
            reinforcement += 1
        if any(m in lower for m in NEGATIVE_PATTERN_MARKERS):
            negative += 1

    total = valid or 1
    return DisciplineMetrics(
        plan_following_score=round(plan / total * 100),
        emotional_control_score=round(control / total * 100),
        reflection_quality=round(reflection / total * 100),
        actionable_insights=actionable,
        positive_reinforcement=reinforcement,
        negative_patterns=negative,
    )


def generate_note_insights(
    trades: Sequence[Trade],
    keywords: Sequence[KeywordFrequency],
    patterns: Sequence[EmotionalPattern],
    discipline: DisciplineMetrics,
) -> list[NLPInsight]:
    """Rule-based insights, highest impact first."""
    insights: list[NLPInsight] = []

    if discipline.plan_following_score < 30:
        insights.append(NLPInsight(
            type="warning", category="discipline", title="Low Plan Following",
            description=(
                f"Only {discipline.plan_following_score}% of your notes mention following a plan. "
                "Consider documenting your strategy before each trade."
            ),
            impact="high",
            evidence=InsightEvidence(trade_count=len(trades)),
        ))

    if discipline.emotional_control_score > 70:
        insights.append(NLPInsight(
            type="tip", category="emotional", title="Strong Emotional Control",
            description=(
                f"{discipline.emotional_control_score}% of trades show emotional discipline. "
                "Keep maintaining this mental edge."
            ),
            impact="high",
            evidence=InsightEvidence(trade_count=len(trades)),
        ))

    if discipline.negative_patterns > len(trades) * 0.2:
        insights.append(NLPInsight(
            type="warning", category="emotional", title="Emotional Trading Patterns Detected",
            description=(
                f"{discipline.negative_patterns} trades show revenge trading, FOMO, or impulsive "
                "behavior. Focus on emotional control."
            ),
            impact="high",
            evidence=InsightEvidence(trade_count=discipline.negative_patterns),
        ))

    by_emotion = {p.emotion: p for p in patterns}
    disciplined = by_emotion.get("disciplined")
    if disciplined and disciplined.win_rate > 60:
        insights.append(NLPInsight(
            type="pattern", category="discipline", title="Discipline Leads to Success",
            description=f"Trades where you followed discipline have a {disciplined.win_rate:.1f}% win rate.",
            impact="high",
            evidence=InsightEvidence(
                trade_count=disciplined.frequency,
                win_rate=disciplined.win_rate,
                avg_pnl=disciplined.avg_pnl,
            ),
        ))

    fearful = by_emotion.get("fearful")
    if fearful and fearful.win_rate < 40:
        insights.append(NLPInsight(
            type="warning", category="emotional", title="Fear Impacts Performance",
            description=(
                f"Trades marked by fear have only {fearful.win_rate:.1f}% win rate. "
                "Work on confidence building."
            ),
            impact="medium",
            evidence=InsightEvidence(trade_count=fearful.frequency, win_rate=fearful.win_rate),
        ))

    best = next((k for k in keywords if k.win_rate > 70 and k.count >= INSIGHT_KEYWORD_MIN_COUNT), None)
    if best:
        insights.append(NLPInsight(
            type="correlation", category="strategy", title="High Win Rate Pattern",
            description=(
                f'Trades mentioning "{best.word}" have {best.win_rate:.1f}% win rate. '
                f"This appears in {best.count} trades."
            ),
            impact="medium",
            evidence=InsightEvidence(trade_count=len(best.trades), win_rate=best.win_rate, keywords=[best.word]),
        ))

    worst = next((k for k in keywords if k.win_rate < 30 and k.count >= INSIGHT_KEYWORD_MIN_COUNT), None)
    if worst:
        insights.append(NLPInsight(
            type="warning", category="strategy", title="Poor Performance Pattern",
            description=(
                f'Trades mentioning "{worst.word}" have only {worst.win_rate:.1f}% win rate. '
                "Avoid this pattern."
            ),
            impact="medium",
            evidence=InsightEvidence(trade_count=len(worst.trades), win_rate=worst.win_rate, keywords=[worst.word]),
        ))

    return sorted(insights, key=lambda i: IMPACT_ORDER[i.impact], reverse=True)


def calculate_sentiment_trend(trades: Sequence[Trade]) -> list[SentimentTrend]:
    """Mean note sentiment per entry day, oldest first."""
    days: dict[str, dict] = {}
    for trade in trades:
        text = trade.combined_notes
        if not text:
            continue
        day = trade.entry_date.strftime("%Y-%m-%d")
        entry = days.setdefault(day, {"sentiment": [], "wins": 0, "pnl": 0.0})
        entry["sentiment"].append(analyze_sentiment(text).overall)
        entry["wins"] += 1 if trade.is_win else 0
        entry["pnl"] += trade.pnl

    return [
        SentimentTrend(
            date=day,
            sentiment=sum(data["sentiment"]) / len(data["sentiment"]),
            trade_count=len(data["sentiment"]),
            win_rate=data["wins"] / len(data["sentiment"]) * 100,
            pnl=data["pnl"],
        )
        for day, data in sorted(days.items())
    ]


def sentiment_performance_correlation(
    sentiments: Sequence[float],
    pnls: Sequence[float],
) -> SentimentCorrelation:
    """Co-moment E[s*p] - E[s]E[p] between note sentiment and P&L.

    The value is in P&L units and unbounded; only its sign and rough size
    are meaningful.
    """
    n = len(sentiments) or 1
    mean_product = sum(s * p for s, p in zip(sentiments, pnls)) / n
    value = mean_product - (sum(sentiments) / n) * (sum(pnls) / n)

    if value > CORRELATION_BAND:
        description = "Positive sentiment correlates with better performance"
    elif value < -CORRELATION_BAND:
        description = "Negative sentiment correlates with worse performance"
    else:
        description = "No strong correlation between sentiment and performance"
    return SentimentCorrelation(correlation=value, description=description)


def analyze_trade_notes(trades: Sequence[Trade], config: Optional[NLPConfig] = None) -> NLPAnalysis:
    """Full note analysis over closed trades whose combined notes meet the minimum length."""
    config = config or NLPConfig()
    closed = closed_trades(trades)
    with_notes = _notes_trades(closed, config.min_note_length)

    sentiment_by_trade = []
    for trade in with_notes:
        text = trade.combined_notes
        sentiment_by_trade.append(NoteSentiment(
            trade_id=trade.id,
            date=trade.entry_date,
            sentiment=analyze_sentiment(text, config.sentiment_threshold),
            emotional_state=detect_emotions(text),
            note_length=len(text),
            has_action=has_actionable_content(text),
        ))

    scores = [s.sentiment.overall for s in sentiment_by_trade]
    overall_score = sum(scores) / (len(scores) or 1)
    if overall_score > config.sentiment_threshold:
        overall_type: SentimentType = "positive"
    elif overall_score < -config.sentiment_threshold:
        overall_type = "negative"
    else:
        overall_type = "neutral"

    keywords = extract_keywords(with_notes, config.keyword_min_frequency, config.min_note_length)
    patterns = analyze_emotional_patterns(with_notes)
    discipline = calculate_discipline_metrics(with_notes, config.min_note_length)

    logger.debug(f"Analyzed notes on {len(with_notes)} of {len(closed)} closed trades")
    return NLPAnalysis(
        total_notes=sum(1 for t in closed if t.combined_notes),
        notes_with_content=len(with_notes),
        avg_note_length=sum(len(t.combined_notes) for t in with_notes) / (len(with_notes) or 1),
        overall_sentiment=SentimentScore(
            overall=overall_score,
            type=overall_type,
            confidence=min(len(scores) / 20, 1.0),
        ),
        sentiment_by_trade=sentiment_by_trade,
        sentiment_trend=calculate_sentiment_trend(with_notes),
        top_keywords=keywords,
        emotional_patterns=patterns,
        discipline=discipline,
        insights=generate_note_insights(with_notes, keywords, patterns, discipline),
        sentiment_vs_performance=sentiment_performance_correlation(scores, [t.pnl for t in with_notes]),
    )
