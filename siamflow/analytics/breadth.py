"""
Market Breadth Calculator

Threshold classification of market-wide advance/decline and new high/low
counts into a breadth status, volatility level, confidence and trend, plus
the explanation, observations, insights and recommendation built on top.

Historical observations are chronological: oldest first, the previous
session last.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from siamflow.config.settings import BreadthThresholds, EngineConfig, resolve_config

logger = logging.getLogger(__name__)


class BreadthStatus(Enum):
    STRONGLY_BULLISH = "Strongly Bullish"
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"
    STRONGLY_BEARISH = "Strongly Bearish"

    @property
    def is_bullish(self) -> bool:
        return self in (BreadthStatus.STRONGLY_BULLISH, BreadthStatus.BULLISH)

    @property
    def is_bearish(self) -> bool:
        return self in (BreadthStatus.STRONGLY_BEARISH, BreadthStatus.BEARISH)


class VolatilityLevel(Enum):
    AGGRESSIVE = "Aggressive"
    MODERATE = "Moderate"
    CALM = "Calm"


class BreadthTrend(Enum):
    IMPROVING = "Improving"
    STABLE = "Stable"
    DETERIORATING = "Deteriorating"


class BreadthTrendStrength(Enum):
    STRONG = "Strong"
    MODERATE = "Moderate"
    WEAK = "Weak"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class MarketOverview:
    """Raw market-wide counts for one session."""

    advance_count: int
    decline_count: int
    unchanged_count: int
    new_high_count: int = 0
    new_low_count: int = 0
    timestamp: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MarketOverview":
        return cls(
            advance_count=int(data["advance_count"]),
            decline_count=int(data["decline_count"]),
            unchanged_count=int(data.get("unchanged_count", 0)),
            new_high_count=int(data.get("new_high_count", 0) or 0),
            new_low_count=int(data.get("new_low_count", 0) or 0),
            timestamp=int(data.get("timestamp", 0) or 0),
        )


MarketOverviewLike = Union[MarketOverview, Mapping[str, Any]]


def as_market_overview(overview: MarketOverviewLike) -> MarketOverview:
    if isinstance(overview, MarketOverview):
        return overview
    return MarketOverview.from_mapping(overview)


@dataclass
class BreadthMetrics:
    """Derived breadth metrics, percentages and ratio rounded to 2 decimals."""

    advances: int
    declines: int
    unchanged: int
    total_traded: int
    ad_ratio: float
    advance_percent: float
    decline_percent: float
    unchanged_percent: float
    new_highs: int
    new_lows: int
    net_new_highs: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "advances": self.advances,
            "declines": self.declines,
            "unchanged": self.unchanged,
            "total_traded": self.total_traded,
            "ad_ratio": self.ad_ratio,
            "advance_percent": self.advance_percent,
            "decline_percent": self.decline_percent,
            "unchanged_percent": self.unchanged_percent,
            "new_highs": self.new_highs,
            "new_lows": self.new_lows,
            "net_new_highs": self.net_new_highs,
        }


@dataclass
class BreadthResult:
    metrics: BreadthMetrics
    status: BreadthStatus
    volatility: VolatilityLevel
    confidence: float
    trend: BreadthTrend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": self.metrics.to_dict(),
            "status": self.status.value,
            "volatility": self.volatility.value,
            "confidence": self.confidence,
            "trend": self.trend.value,
        }


@dataclass
class BreadthAnalysis:
    """Breadth classification with a plain-language explanation."""

    metrics: BreadthMetrics
    status: BreadthStatus
    trend: BreadthTrend
    volatility: VolatilityLevel
    confidence: float
    explanation: str
    observations: List[str] = field(default_factory=list)
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": self.metrics.to_dict(),
            "status": self.status.value,
            "trend": self.trend.value,
            "volatility": self.volatility.value,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "observations": list(self.observations),
            "timestamp": self.timestamp,
        }


@dataclass
class BreadthInsight:
    category: str  # "strength", "weakness", "neutral" or "warning"
    message: str
    value: Optional[float] = None
    comparison: Optional[str] = None  # "above", "below" or "at"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "message": self.message,
            "value": self.value,
            "comparison": self.comparison,
        }


@dataclass
class BreadthInsights:
    primary: BreadthInsight
    secondary: List[BreadthInsight]
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": [i.to_dict() for i in self.secondary],
            "recommendation": self.recommendation,
        }


@dataclass
class BreadthTrendSummary:
    direction: BreadthTrend
    strength: BreadthTrendStrength
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "strength": self.strength.value,
            "description": self.description,
        }


# =============================================================================
# Calculator
# =============================================================================


def _round2(value: float) -> float:
    """Round half up to 2 decimals."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_breadth_metrics(
    overview: MarketOverviewLike, config: Optional[EngineConfig] = None
) -> BreadthMetrics:
    """
    Derive breadth metrics from raw counts.

    The A/D ratio is the sentinel 999 when nothing declined but something
    advanced, and 0 when nothing moved. Percentages are 0 when nothing traded.
    """
    b = resolve_config(config).breadth
    o = as_market_overview(overview)

    total = o.advance_count + o.decline_count + o.unchanged_count

    if o.decline_count > 0:
        ad_ratio = o.advance_count / o.decline_count
    elif o.advance_count > 0:
        ad_ratio = b.no_declines_sentinel
    else:
        ad_ratio = 0.0

    def pct(count: int) -> float:
        return _round2(count / total * 100) if total > 0 else 0.0

    return BreadthMetrics(
        advances=o.advance_count,
        declines=o.decline_count,
        unchanged=o.unchanged_count,
        total_traded=total,
        ad_ratio=_round2(ad_ratio),
        advance_percent=pct(o.advance_count),
        decline_percent=pct(o.decline_count),
        unchanged_percent=pct(o.unchanged_count),
        new_highs=o.new_high_count,
        new_lows=o.new_low_count,
        net_new_highs=o.new_high_count - o.new_low_count,
    )


def calculate_breadth_status(
    metrics: BreadthMetrics, config: Optional[EngineConfig] = None
) -> BreadthStatus:
    """Five-tier status gated jointly on A/D ratio and advance percent."""
    b = resolve_config(config).breadth
    ratio, adv = metrics.ad_ratio, metrics.advance_percent

    if ratio >= b.strongly_bullish_ad_ratio and adv >= b.strongly_bullish_advance_pct:
        return BreadthStatus.STRONGLY_BULLISH
    if ratio >= b.bullish_ad_ratio and adv >= b.bullish_advance_pct:
        return BreadthStatus.BULLISH
    if ratio >= b.bearish_ad_ratio and adv >= b.bearish_advance_pct:
        return BreadthStatus.NEUTRAL
    if ratio >= b.strongly_bearish_ad_ratio or adv >= b.strongly_bearish_advance_pct:
        return BreadthStatus.BEARISH
    return BreadthStatus.STRONGLY_BEARISH


def calculate_volatility_level(
    metrics: BreadthMetrics, config: Optional[EngineConfig] = None
) -> VolatilityLevel:
    """
    Volatility from new high/low activity and A/D ratio extremity.

    Without any new high/low data only the ratio is used.
    """
    b = resolve_config(config).breadth
    ratio = metrics.ad_ratio
    extremes = metrics.new_highs + metrics.new_lows
    calm_low, calm_high = b.calm_ad_ratio_range

    if extremes == 0:
        if ratio >= b.aggressive_ad_swing:
            return VolatilityLevel.AGGRESSIVE
        if calm_low <= ratio <= calm_high:
            return VolatilityLevel.CALM
        return VolatilityLevel.MODERATE

    if (
        extremes >= b.aggressive_new_high_low_sum
        or ratio >= b.aggressive_ad_swing
        or ratio <= 1 / b.aggressive_ad_swing
    ):
        return VolatilityLevel.AGGRESSIVE

    if extremes <= b.calm_new_high_low_sum and calm_low <= ratio <= calm_high:
        return VolatilityLevel.CALM

    return VolatilityLevel.MODERATE


def calculate_breadth_confidence(
    metrics: BreadthMetrics, config: Optional[EngineConfig] = None
) -> float:
    """Additive confidence from sample size, ratio extremity and high/low data."""
    b: BreadthThresholds = resolve_config(config).breadth
    confidence = b.base_confidence

    if metrics.total_traded > b.large_sample:
        confidence += b.large_sample_confidence
    elif metrics.total_traded > b.medium_sample:
        confidence += b.medium_sample_confidence

    ratio = metrics.ad_ratio
    extreme_low, extreme_high = b.extreme_ad_ratio_range
    wide_low, wide_high = b.wide_ad_ratio_range
    if ratio > extreme_high or ratio < extreme_low:
        confidence += b.extreme_ad_confidence
    elif ratio > wide_high or ratio < wide_low:
        confidence += b.wide_ad_confidence

    if metrics.new_highs > 0 or metrics.new_lows > 0:
        confidence += b.high_low_data_confidence

    return float(min(100.0, confidence))


def calculate_breadth_trend(
    current: BreadthMetrics,
    historical: Optional[Sequence[BreadthMetrics]] = None,
    config: Optional[EngineConfig] = None,
) -> BreadthTrend:
    """Compare the A/D ratio with the previous session (the last history entry)."""
    if not historical:
        return BreadthTrend.STABLE

    threshold = resolve_config(config).breadth.trend_change
    change = current.ad_ratio - historical[-1].ad_ratio

    if change > threshold:
        return BreadthTrend.IMPROVING
    if change < -threshold:
        return BreadthTrend.DETERIORATING
    return BreadthTrend.STABLE


def calculate_breadth(
    overview: MarketOverviewLike,
    historical: Optional[Sequence[MarketOverviewLike]] = None,
    config: Optional[EngineConfig] = None,
) -> BreadthResult:
    """
    Full breadth classification for one session.

    Args:
        overview: Current session counts
        historical: Prior sessions, chronological
        config: Engine configuration

    Returns:
        BreadthResult
    """
    cfg = resolve_config(config)
    metrics = calculate_breadth_metrics(overview, cfg)
    history = [calculate_breadth_metrics(h, cfg) for h in historical or []]

    return BreadthResult(
        metrics=metrics,
        status=calculate_breadth_status(metrics, cfg),
        volatility=calculate_volatility_level(metrics, cfg),
        confidence=calculate_breadth_confidence(metrics, cfg),
        trend=calculate_breadth_trend(metrics, history, cfg),
    )


# =============================================================================
# Analyzer
# =============================================================================

_STATUS_OBSERVATIONS = {
    BreadthStatus.STRONGLY_BULLISH: "Extremely strong breadth with broad participation",
    BreadthStatus.BULLISH: "Healthy breadth indicating broad-based buying",
    BreadthStatus.NEUTRAL: "Mixed breadth with no clear directional bias",
    BreadthStatus.BEARISH: "Weak breadth indicating selling pressure",
    BreadthStatus.STRONGLY_BEARISH: "Very weak breadth with broad-based selling",
}


def generate_breadth_explanation(result: BreadthResult) -> str:
    m = result.metrics
    return (
        f"Market breadth is {result.status.value.lower()} with A/D ratio of {m.ad_ratio:.2f} "
        f"({m.advance_percent:.0f}% advancers). Volatility is {result.volatility.value.lower()} "
        f"and breadth trend is {result.trend.value.lower()}."
    )


def generate_breadth_observations(
    result: BreadthResult, config: Optional[EngineConfig] = None
) -> List[str]:
    """Status, volatility, trend and new high/low observations, at most four."""
    b = resolve_config(config).breadth
    m = result.metrics
    observations = [_STATUS_OBSERVATIONS[result.status]]

    if result.volatility == VolatilityLevel.AGGRESSIVE:
        observations.append("High volatility with significant swings")
    elif result.volatility == VolatilityLevel.CALM:
        observations.append("Low volatility, relatively calm market")

    if result.trend == BreadthTrend.IMPROVING:
        observations.append("Breadth improving over recent sessions")
    elif result.trend == BreadthTrend.DETERIORATING:
        observations.append("Breadth deteriorating over recent sessions")

    if m.new_highs > m.new_lows * 2:
        observations.append(f"{m.new_highs} new highs vs {m.new_lows} new lows - bullish")
    elif m.new_lows > m.new_highs * 2:
        observations.append(f"{m.new_lows} new lows vs {m.new_highs} new highs - bearish")

    return observations[: b.max_observations]


def analyze_market_breadth(
    overview: MarketOverviewLike,
    historical: Optional[Sequence[MarketOverviewLike]] = None,
    config: Optional[EngineConfig] = None,
) -> BreadthAnalysis:
    """
    Analyze market breadth for one session.

    Args:
        overview: Current session counts
        historical: Prior sessions, chronological
        config: Engine configuration

    Returns:
        BreadthAnalysis with explanation and observations
    """
    cfg = resolve_config(config)
    current = as_market_overview(overview)
    result = calculate_breadth(current, historical, cfg)

    if result.metrics.total_traded == 0:
        logger.warning("Breadth analysis on a session with no traded issues")

    logger.info(
        f"Breadth: status={result.status.value} ad_ratio={result.metrics.ad_ratio:.2f} "
        f"volatility={result.volatility.value} trend={result.trend.value}"
    )

    return BreadthAnalysis(
        metrics=result.metrics,
        status=result.status,
        trend=result.trend,
        volatility=result.volatility,
        confidence=result.confidence,
        explanation=generate_breadth_explanation(result),
        observations=generate_breadth_observations(result, cfg),
        timestamp=current.timestamp,
    )


# =============================================================================
# Insights
# =============================================================================


def _primary_insight(analysis: BreadthAnalysis) -> BreadthInsight:
    m = analysis.metrics
    if analysis.status.is_bullish:
        return BreadthInsight(
            "strength",
            f"Strong breadth with {m.advance_percent:.0f}% advancers",
            m.advance_percent,
            "above",
        )
    if analysis.status.is_bearish:
        return BreadthInsight(
            "weakness",
            f"Weak breadth with {m.decline_percent:.0f}% decliners",
            m.decline_percent,
            "above",
        )
    return BreadthInsight(
        "neutral", f"Balanced breadth at {m.ad_ratio:.2f} A/D ratio", m.ad_ratio, "at"
    )


def _secondary_insights(analysis: BreadthAnalysis, b: BreadthThresholds) -> List[BreadthInsight]:
    m = analysis.metrics
    insights = []

    if analysis.volatility == VolatilityLevel.AGGRESSIVE:
        extremes = m.new_highs + m.new_lows
        insights.append(
            BreadthInsight("warning", f"{extremes} stocks hitting new extremes", extremes, "above")
        )

    if analysis.trend == BreadthTrend.IMPROVING:
        insights.append(BreadthInsight("strength", "Breadth trend improving"))
    elif analysis.trend == BreadthTrend.DETERIORATING:
        insights.append(BreadthInsight("weakness", "Breadth trend deteriorating"))

    if m.net_new_highs > b.net_new_highs_notable:
        insights.append(
            BreadthInsight("strength", f"Net new highs: +{m.net_new_highs}", m.net_new_highs, "above")
        )
    elif m.net_new_highs < -b.net_new_highs_notable:
        insights.append(
            BreadthInsight("weakness", f"Net new highs: {m.net_new_highs}", m.net_new_highs, "below")
        )

    return insights[: b.max_secondary_insights]


def _recommendation(analysis: BreadthAnalysis) -> str:
    aggressive = analysis.volatility == VolatilityLevel.AGGRESSIVE

    if analysis.status.is_bullish:
        if aggressive:
            return "Breadth strong but volatility high - consider position sizing"
        return "Strong breadth supports long positions - focus on quality leaders"

    if analysis.status.is_bearish:
        if aggressive:
            return "Weak breadth with high volatility - reduce exposure, preserve capital"
        return "Weak breadth - defensive posture recommended, wait for improvement"

    if aggressive:
        return "Mixed breadth with high volatility - stay selective, avoid chasing"
    return "Mixed breadth - wait for clearer directional signal"


def generate_breadth_insights(
    analysis: BreadthAnalysis, config: Optional[EngineConfig] = None
) -> BreadthInsights:
    """Primary insight, up to three secondary insights and a recommendation."""
    b = resolve_config(config).breadth
    return BreadthInsights(
        primary=_primary_insight(analysis),
        secondary=_secondary_insights(analysis, b),
        recommendation=_recommendation(analysis),
    )


def detect_breadth_trend(
    historical: Sequence[MarketOverviewLike], config: Optional[EngineConfig] = None
) -> BreadthTrendSummary:
    """
    Breadth trend across the most recent sessions.

    Compares the A/D ratio of the oldest and newest of the last five
    sessions; strength is the average change per session.
    """
    cfg = resolve_config(config)
    b = cfg.breadth

    if len(historical) < 2:
        return BreadthTrendSummary(
            direction=BreadthTrend.STABLE,
            strength=BreadthTrendStrength.WEAK,
            description="Insufficient historical data for trend analysis",
        )

    recent = list(historical)[-b.history_trend_periods:]
    ratios = [calculate_breadth_metrics(o, cfg).ad_ratio for o in recent]
    change = ratios[-1] - ratios[0]

    if change > b.history_trend_change:
        direction = BreadthTrend.IMPROVING
    elif change < -b.history_trend_change:
        direction = BreadthTrend.DETERIORATING
    else:
        direction = BreadthTrend.STABLE

    avg_change = abs(change) / len(ratios)
    if avg_change > b.strong_avg_change:
        strength = BreadthTrendStrength.STRONG
    elif avg_change > b.moderate_avg_change:
        strength = BreadthTrendStrength.MODERATE
    else:
        strength = BreadthTrendStrength.WEAK

    return BreadthTrendSummary(
        direction=direction,
        strength=strength,
        description=(
            f"Breadth {direction.value.lower()} over {len(ratios)} periods "
            f"({strength.value.lower()} strength)"
        ),
    )
