"""
Tests for the market breadth calculator and analyzer.
"""

import pytest

from siamflow.analytics.breadth import (
    BreadthStatus,
    BreadthTrend,
    BreadthTrendStrength,
    MarketOverview,
    VolatilityLevel,
    analyze_market_breadth,
    calculate_breadth,
    calculate_breadth_confidence,
    calculate_breadth_metrics,
    calculate_breadth_status,
    calculate_breadth_trend,
    calculate_volatility_level,
    detect_breadth_trend,
    generate_breadth_insights,
)
from siamflow.config.settings import BreadthThresholds, EngineConfig


def overview(advances, declines, unchanged=0, highs=0, lows=0):
    return MarketOverview(
        advance_count=advances,
        decline_count=declines,
        unchanged_count=unchanged,
        new_high_count=highs,
        new_low_count=lows,
    )


def metrics(*args, **kwargs):
    return calculate_breadth_metrics(overview(*args, **kwargs))


class TestBreadthMetrics:
    """Tests for calculate_breadth_metrics."""

    def test_basic(self, bullish_overview):
        """Test ratio, percentages and net new highs."""
        m = calculate_breadth_metrics(bullish_overview)
        assert m.total_traded == 1000
        assert m.ad_ratio == 3.5
        assert m.advance_percent == 70
        assert m.decline_percent == 20
        assert m.unchanged_percent == 10
        assert m.net_new_highs == 25

    def test_two_decimal_rounding(self):
        """Test two-decimal rounding of percentages."""
        m = metrics(2, 1)
        assert m.ad_ratio == 2.0
        assert m.advance_percent == pytest.approx(66.67)
        assert m.decline_percent == pytest.approx(33.33)

    def test_rounds_half_up(self):
        """Test that an exact half rounds up."""
        assert metrics(450, 400, 150).ad_ratio == pytest.approx(1.13)

    @pytest.mark.parametrize("advances", range(0, 30))
    def test_percentages_partition_total(self, advances):
        """Test that the three percentages sum to 100 within rounding."""
        for declines in range(0, 30):
            for unchanged in range(0, 30):
                if advances + declines + unchanged == 0:
                    continue
                m = metrics(advances, declines, unchanged)
                parts = m.advance_percent + m.decline_percent + m.unchanged_percent
                assert parts == pytest.approx(100, abs=0.02)

    def test_no_declines_sentinel(self):
        """Test the 999 sentinel when nothing declined."""
        assert metrics(10, 0, 5).ad_ratio == 999

    def test_nothing_traded(self):
        """Test zeros when no issue traded."""
        m = metrics(0, 0, 0)
        assert m.ad_ratio == 0
        assert m.advance_percent == 0
        assert m.decline_percent == 0

    def test_optional_counts_default(self):
        """Test that missing new high/low counts default to zero."""
        m = calculate_breadth_metrics(
            {"advance_count": 10, "decline_count": 5, "unchanged_count": 1}
        )
        assert m.new_highs == 0
        assert m.new_lows == 0


class TestBreadthStatus:
    """Tests for calculate_breadth_status."""

    @pytest.mark.parametrize(
        "counts,expected",
        [
            ((700, 200, 100), BreadthStatus.STRONGLY_BULLISH),
            ((550, 300, 150), BreadthStatus.BULLISH),
            ((450, 400, 150), BreadthStatus.NEUTRAL),
            ((350, 550, 100), BreadthStatus.BEARISH),
            ((200, 700, 100), BreadthStatus.STRONGLY_BEARISH),
        ],
    )
    def test_tiers(self, counts, expected):
        """Test the five status tiers."""
        assert calculate_breadth_status(metrics(*counts)) == expected

    def test_ratio_alone_not_enough(self):
        """Test that a high ratio with few advancers is not Strongly Bullish."""
        # ratio 3.0 but only 30% advancers
        assert calculate_breadth_status(metrics(300, 100, 600)) != BreadthStatus.STRONGLY_BULLISH

    def test_nothing_traded_is_strongly_bearish(self):
        """Test the all-zero session."""
        assert calculate_breadth_status(metrics(0, 0, 0)) == BreadthStatus.STRONGLY_BEARISH


class TestVolatility:
    """Tests for calculate_volatility_level."""

    @pytest.mark.parametrize(
        "counts,expected",
        [
            ((500, 500, 0, 0, 0), VolatilityLevel.CALM),
            ((600, 200, 0, 0, 0), VolatilityLevel.AGGRESSIVE),
            ((200, 500, 0, 0, 0), VolatilityLevel.MODERATE),
            ((500, 500, 0, 40, 20), VolatilityLevel.AGGRESSIVE),
            ((500, 500, 0, 3, 2), VolatilityLevel.CALM),
            ((500, 500, 0, 15, 5), VolatilityLevel.MODERATE),
            ((200, 500, 0, 15, 5), VolatilityLevel.AGGRESSIVE),
        ],
    )
    def test_levels(self, counts, expected):
        """Test volatility with and without new high/low data."""
        assert calculate_volatility_level(metrics(*counts)) == expected


class TestConfidence:
    """Tests for calculate_breadth_confidence."""

    def test_full_confidence_stack(self, bullish_overview):
        """Test sample, extremity and high/low contributions."""
        assert calculate_breadth_confidence(calculate_breadth_metrics(bullish_overview)) == 95

    def test_medium_sample(self):
        """Test the medium sample bonus alone."""
        assert calculate_breadth_confidence(metrics(200, 200, 100)) == 60

    def test_wide_ratio(self):
        """Test the wide ratio bonus."""
        assert calculate_breadth_confidence(metrics(50, 20)) == 60

    def test_capped(self):
        """Test the cap at 100."""
        config = EngineConfig(breadth=BreadthThresholds(base_confidence=90))
        m = calculate_breadth_metrics(overview(900, 100, 0, 50, 1), config)
        assert calculate_breadth_confidence(m, config) == 100


class TestBreadthTrend:
    """Tests for the session-to-session breadth trend."""

    def test_no_history(self):
        """Test that no history is stable."""
        assert calculate_breadth_trend(metrics(700, 200)) == BreadthTrend.STABLE

    def test_compares_previous_session(self):
        """Test that only the most recent history entry is compared."""
        history = [metrics(300, 100), metrics(120, 100)]
        assert calculate_breadth_trend(metrics(150, 100), history) == BreadthTrend.IMPROVING

    def test_deteriorating(self):
        """Test a falling ratio."""
        history = [metrics(200, 100)]
        assert calculate_breadth_trend(metrics(150, 100), history) == BreadthTrend.DETERIORATING

    def test_small_change_stable(self):
        """Test a change within the threshold."""
        history = [metrics(110, 100)]
        assert calculate_breadth_trend(metrics(120, 100), history) == BreadthTrend.STABLE


class TestCalculateBreadth:
    """Tests for calculate_breadth."""

    def test_result(self, bullish_overview):
        """Test the combined classification."""
        result = calculate_breadth(bullish_overview)
        assert result.status == BreadthStatus.STRONGLY_BULLISH
        assert result.volatility == VolatilityLevel.AGGRESSIVE
        assert result.confidence == 95
        assert result.trend == BreadthTrend.STABLE
        assert result.to_dict()["status"] == "Strongly Bullish"


class TestAnalyzeMarketBreadth:
    """Tests for analyze_market_breadth."""

    def test_explanation(self, bullish_overview):
        """Test the templated explanation."""
        analysis = analyze_market_breadth(bullish_overview)
        assert analysis.explanation == (
            "Market breadth is strongly bullish with A/D ratio of 3.50 (70% advancers). "
            "Volatility is aggressive and breadth trend is stable."
        )
        assert analysis.timestamp == 1709251200

    def test_observations(self, bullish_overview):
        """Test observation order without history."""
        analysis = analyze_market_breadth(bullish_overview)
        assert analysis.observations == [
            "Extremely strong breadth with broad participation",
            "High volatility with significant swings",
            "30 new highs vs 5 new lows - bullish",
        ]

    def test_observations_with_trend(self, bullish_overview):
        """Test that an improving trend adds an observation."""
        previous = overview(500, 250, 250)
        analysis = analyze_market_breadth(bullish_overview, [previous])
        assert analysis.trend == BreadthTrend.IMPROVING
        assert "Breadth improving over recent sessions" in analysis.observations
        assert len(analysis.observations) == 4

    def test_bearish_observations(self):
        """Test observations on a broad selloff."""
        analysis = analyze_market_breadth(overview(200, 700, 100, 2, 40))
        assert analysis.observations == [
            "Very weak breadth with broad-based selling",
            "High volatility with significant swings",
            "40 new lows vs 2 new highs - bearish",
        ]

    def test_empty_session(self):
        """Test that a session with no trades still analyzes."""
        analysis = analyze_market_breadth(overview(0, 0, 0))
        assert analysis.metrics.total_traded == 0
        assert analysis.status == BreadthStatus.STRONGLY_BEARISH


class TestBreadthInsights:
    """Tests for generate_breadth_insights."""

    def test_bullish(self, bullish_overview):
        """Test insights for a strong, volatile session."""
        insights = generate_breadth_insights(analyze_market_breadth(bullish_overview))

        assert insights.primary.category == "strength"
        assert insights.primary.message == "Strong breadth with 70% advancers"
        assert [i.message for i in insights.secondary] == [
            "35 stocks hitting new extremes",
            "Net new highs: +25",
        ]
        assert insights.recommendation == (
            "Breadth strong but volatility high - consider position sizing"
        )

    def test_bearish(self):
        """Test insights for a broad selloff."""
        insights = generate_breadth_insights(
            analyze_market_breadth(overview(200, 700, 100, 2, 40))
        )

        assert insights.primary.category == "weakness"
        assert insights.primary.message == "Weak breadth with 70% decliners"
        assert [i.message for i in insights.secondary] == [
            "42 stocks hitting new extremes",
            "Net new highs: -38",
        ]
        assert insights.recommendation == (
            "Weak breadth with high volatility - reduce exposure, preserve capital"
        )

    def test_neutral(self):
        """Test insights for a balanced session."""
        insights = generate_breadth_insights(analyze_market_breadth(overview(450, 400, 150)))

        assert insights.primary.category == "neutral"
        assert insights.primary.message == "Balanced breadth at 1.13 A/D ratio"
        assert insights.secondary == []
        assert insights.recommendation == "Mixed breadth - wait for clearer directional signal"

    def test_to_dict(self, bullish_overview):
        """Test serialization."""
        data = generate_breadth_insights(analyze_market_breadth(bullish_overview)).to_dict()
        assert data["primary"]["comparison"] == "above"
        assert len(data["secondary"]) == 2


class TestDetectBreadthTrend:
    """Tests for detect_breadth_trend over several sessions."""

    def test_improving(self):
        """Test a steadily rising A/D ratio."""
        history = [overview(a, 100) for a in (100, 120, 150, 200)]
        summary = detect_breadth_trend(history)

        assert summary.direction == BreadthTrend.IMPROVING
        assert summary.strength == BreadthTrendStrength.STRONG
        assert summary.description == "Breadth improving over 4 periods (strong strength)"

    def test_deteriorating(self):
        """Test a falling A/D ratio."""
        summary = detect_breadth_trend([overview(200, 100), overview(150, 100)])
        assert summary.direction == BreadthTrend.DETERIORATING
        assert summary.strength == BreadthTrendStrength.STRONG

    def test_stable_weak(self):
        """Test a small change."""
        summary = detect_breadth_trend([overview(100, 100), overview(110, 100)])
        assert summary.direction == BreadthTrend.STABLE
        assert summary.strength == BreadthTrendStrength.WEAK

    def test_uses_last_five(self):
        """Test that only the five most recent sessions are compared."""
        history = [overview(a, 100) for a in (500, 100, 100, 100, 100, 100)]
        summary = detect_breadth_trend(history)
        assert summary.direction == BreadthTrend.STABLE
        assert "5 periods" in summary.description

    @pytest.mark.parametrize("count", [0, 1])
    def test_insufficient_history(self, count):
        """Test fewer than two sessions."""
        summary = detect_breadth_trend([overview(100, 100)] * count)
        assert summary.direction == BreadthTrend.STABLE
        assert summary.strength == BreadthTrendStrength.WEAK
        assert summary.description == "Insufficient historical data for trend analysis"
