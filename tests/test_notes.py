"""Tests for trade-note sentiment, emotion and discipline analysis."""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from journal_analytics.analytics.models import NLPConfig
from journal_analytics.analytics.notes import (
    analyze_emotional_patterns,
    analyze_sentiment,
    analyze_trade_notes,
    calculate_discipline_metrics,
    calculate_sentiment_trend,
    detect_emotions,
    extract_keywords,
    has_actionable_content,
    sentiment_performance_correlation,
    tokenize,
)
from journal_analytics.data.models import Trade


def _make_trade(i: int, pnl: float | None, notes: str | None = None, lessons: str | None = None,
                entry_date: datetime | None = None, closed: bool = True) -> Trade:
    entry = entry_date or datetime(2024, 1, 1) + timedelta(days=i)
    return Trade(
        id=f"t{i}", symbol="AAPL",
        entry_date=entry,
        exit_date=entry + timedelta(days=1) if closed else None,
        pnl_amount=pnl,
        notes=notes,
        lessons=lessons,
    )


class TestTokenize:
    def test_strips_punctuation_and_short_words(self):
        assert tokenize("I'm up, big win!") == ["big", "win"]

    def test_lowercases(self):
        assert tokenize("GREAT Breakout") == ["great", "breakout"]


class TestAnalyzeSentiment:
    def test_no_lexicon_hits_is_neutral(self):
        score = analyze_sentiment("Bought the dip today")
        assert score.overall == 0
        assert score.type == "neutral"
        assert score.confidence == 0.5

    def test_positive(self):
        score = analyze_sentiment("great trade, followed plan")
        assert score.overall == 1.0
        assert score.type == "positive"
        assert score.positive_words == ["great", "followed", "plan"]
        assert score.confidence == pytest.approx(0.3)

    def test_mixed_when_both_balance(self):
        score = analyze_sentiment("good entry but bad exit")
        assert score.overall == 0
        assert score.type == "mixed"

    def test_negative(self):
        score = analyze_sentiment("Revenge trade, big mistake")
        assert score.type == "negative"
        assert score.overall == -1.0

    def test_score_bounds(self):
        for text in ["good bad", "good good bad", "loss loss loss win", "panic"]:
            score = analyze_sentiment(text)
            assert -1 <= score.overall <= 1
            assert 0 <= score.confidence <= 1


class TestDetectEmotions:
    def test_multiple_states(self):
        assert detect_emotions("I was scared and anxious") == ["fearful", "anxious"]

    def test_defaults_to_calm(self):
        assert detect_emotions("Bought at the open") == ["calm"]

    def test_substring_stems(self):
        assert "frustrated" in detect_emotions("Frustrating chop all morning")


class TestActionableContent:
    def test_detects_action_phrases(self):
        assert has_actionable_content("Next time wait for the retest")
        assert not has_actionable_content("Closed at target")


class TestCombinedNotes:
    def test_notes_and_lessons_joined(self):
        trade = _make_trade(0, 10, notes="Entry on breakout", lessons="Size up")
        assert trade.combined_notes == "Entry on breakout\n\nSize up"

    def test_lessons_only(self):
        assert _make_trade(0, 10, lessons="Size up").combined_notes == "Size up"


class TestExtractKeywords:
    def test_counts_and_win_rate(self):
        trades = [
            _make_trade(0, 100, notes="breakout breakout setup"),
            _make_trade(1, -50, notes="breakout failed"),
        ]
        keywords = extract_keywords(trades)
        top = keywords[0]
        assert top.word == "breakout"
        assert top.count == 3
        assert top.trades == ["t0", "t1"]
        assert top.win_rate == pytest.approx(50.0)

    def test_short_and_rare_words_dropped(self):
        keywords = extract_keywords([_make_trade(0, 10, notes="the the the once")])
        assert keywords == []

    def test_short_notes_skipped(self):
        trades = [_make_trade(0, 10, notes="long"), _make_trade(1, 20, notes="long")]
        assert extract_keywords(trades) == []
        assert [k.word for k in extract_keywords(trades, min_note_length=1)] == ["long"]


class TestEmotionalPatterns:
    def test_win_rate_per_emotion(self):
        trades = [
            _make_trade(0, 100, notes="Followed the plan exactly"),
            _make_trade(1, 50, notes="Stuck to my plan"),
            _make_trade(2, -20, notes="Scared out early"),
        ]
        patterns = {p.emotion: p for p in analyze_emotional_patterns(trades)}
        assert patterns["disciplined"].frequency == 2
        assert patterns["disciplined"].win_rate == 100
        assert patterns["fearful"].avg_pnl == -20
        assert patterns["fearful"].description == "Fear often leads to missed opportunities"


class TestDisciplineMetrics:
    def test_scores_are_percentages(self):
        trades = [
            _make_trade(0, 100, notes="Followed plan, waited for the setup"),
            _make_trade(1, -50, notes="Revenge trade after the loss"),
        ]
        d = calculate_discipline_metrics(trades)
        assert d.plan_following_score == 50
        assert d.emotional_control_score == 50
        assert d.negative_patterns == 1

    def test_empty(self):
        d = calculate_discipline_metrics([])
        assert d.plan_following_score == 0
        assert d.actionable_insights == 0

    def test_short_notes_excluded_from_denominator(self):
        trades = [
            _make_trade(0, 100, notes="followed my plan patiently"),
            _make_trade(1, -10, notes="meh"),
        ]
        assert calculate_discipline_metrics(trades).plan_following_score == 100
        assert calculate_discipline_metrics(trades, min_note_length=1).plan_following_score == 50


class TestSentimentTrend:
    def test_grouped_by_entry_day(self):
        day = datetime(2024, 3, 5, 9, 30)
        trades = [
            _make_trade(0, 100, notes="great trade", entry_date=day),
            _make_trade(1, -100, notes="bad trade", entry_date=day + timedelta(hours=2)),
            _make_trade(2, 10, notes="good", entry_date=datetime(2024, 3, 1)),
        ]
        trend = calculate_sentiment_trend(trades)
        assert [t.date for t in trend] == ["2024-03-01", "2024-03-05"]
        assert trend[1].sentiment == 0
        assert trend[1].trade_count == 2
        assert trend[1].win_rate == 50


class TestCorrelation:
    def test_positive_co_moment(self):
        corr = sentiment_performance_correlation([1, -1], [100, -100])
        assert corr.correlation == pytest.approx(100)
        assert corr.description == "Positive sentiment correlates with better performance"

    def test_empty(self):
        corr = sentiment_performance_correlation([], [])
        assert corr.correlation == 0
        assert corr.description == "No strong correlation between sentiment and performance"


class TestNLPConfig:
    def test_fields(self):
        assert set(NLPConfig.model_fields) == {"min_note_length", "sentiment_threshold", "keyword_min_frequency"}


class TestAnalyzeTradeNotes:
    def test_empty(self):
        analysis = analyze_trade_notes([])
        assert analysis.total_notes == 0
        assert analysis.notes_with_content == 0
        assert analysis.overall_sentiment.type == "neutral"
        assert analysis.overall_sentiment.confidence == 0

    def test_keyword_pattern_insight(self):
        trades = [_make_trade(i, 100, notes="breakout worked nicely today") for i in range(3)]
        analysis = analyze_trade_notes(trades)
        titles = [i.title for i in analysis.insights]
        assert titles == ["Low Plan Following", "High Win Rate Pattern"]
        assert analysis.insights[1].evidence.keywords == ["breakout"]
        assert analysis.overall_sentiment.type == "positive"
        assert analysis.overall_sentiment.confidence == pytest.approx(3 / 20)

    def test_skips_short_notes_and_open_trades(self):
        trades = [
            _make_trade(0, 10, notes="ok"),
            _make_trade(1, 10, notes="Clean breakout entry"),
            _make_trade(2, None, notes="Still holding this one", closed=False),
        ]
        analysis = analyze_trade_notes(trades)
        assert analysis.total_notes == 2
        assert analysis.notes_with_content == 1
        assert [s.trade_id for s in analysis.sentiment_by_trade] == ["t1"]
        assert analysis.sentiment_by_trade[0].date == trades[1].entry_date

    def test_custom_min_length(self):
        trades = [_make_trade(0, 10, notes="ok")]
        analysis = analyze_trade_notes(trades, NLPConfig(min_note_length=1))
        assert analysis.notes_with_content == 1

    def test_insights_sorted_by_impact(self):
        trades = [_make_trade(i, -10, notes="fomo chase, scared and late") for i in range(4)]
        impacts = [i.impact for i in analyze_trade_notes(trades).insights]
        order = {"high": 3, "medium": 2, "low": 1}
        assert impacts == sorted(impacts, key=order.get, reverse=True)
