"""
Composite Scorer and Confidence Aggregator

Combines per-category analyses into a weighted 0-100 smart money score and
reconciles per-category confidences into one overall confidence. Foreign and
institutional flows dominate; retail and prop desks only corroborate.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from siamflow.analytics.models import (
    CompositeScoreComponents,
    FlowTrend,
    InvestorAnalysis,
    SignalStrength,
)
from siamflow.analytics.trend_analyzer import linear_fit
from siamflow.config.settings import EngineConfig, MarketContext, resolve_config

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return float(min(high, max(low, value)))


# =============================================================================
# Composite Score
# =============================================================================


def calculate_individual_score(
    analysis: InvestorAnalysis, config: Optional[EngineConfig] = None
) -> float:
    """
    Individual investor score (0-50), neutral at 25.

    Args:
        analysis: Investor analysis
        config: Engine configuration

    Returns:
        Score clamped to [0, 50]
    """
    s = resolve_config(config).scoring
    score = s.base_score

    strength = analysis.signal_strength
    if strength == SignalStrength.STRONG_BUY:
        score += s.strong_tier_points
    elif strength == SignalStrength.BUY:
        score += s.tier_points
    elif strength == SignalStrength.STRONG_SELL:
        score -= s.strong_tier_points
    elif strength == SignalStrength.SELL:
        score -= s.tier_points

    if analysis.flow_trend == FlowTrend.ACCELERATING_BUY:
        score += s.accelerating_points
    elif analysis.flow_trend == FlowTrend.ACCELERATING_SELL:
        score -= s.accelerating_points

    if analysis.trend_5day > s.trend_5day_threshold:
        score += s.trend_5day_points
    elif analysis.trend_5day < -s.trend_5day_threshold:
        score -= s.trend_5day_points

    return _clamp(score, 0.0, s.max_score_per_investor)


def calculate_smart_money_score(
    foreign: InvestorAnalysis,
    institution: InvestorAnalysis,
    retail: Optional[InvestorAnalysis] = None,
    prop: Optional[InvestorAnalysis] = None,
    config: Optional[EngineConfig] = None,
) -> CompositeScoreComponents:
    """
    Calculate the combined smart money score.

    Foreign flows are amplified (1.2x) because they move the SET; retail and
    prop contribute a quarter weight each and only 20% of the total.

    Args:
        foreign: Foreign investor analysis
        institution: Institution investor analysis
        retail: Retail investor analysis (optional)
        prop: Prop desk analysis (optional)
        config: Engine configuration

    Returns:
        CompositeScoreComponents with every component clamped to its range
    """
    cfg = resolve_config(config)
    s = cfg.scoring

    foreign_score = calculate_individual_score(foreign, cfg) * s.foreign_weight_multiplier
    institution_score = calculate_individual_score(institution, cfg)

    retail_score = (
        calculate_individual_score(retail, cfg) * s.context_investor_weight if retail else 0.0
    )
    prop_score = (
        calculate_individual_score(prop, cfg) * s.context_investor_weight if prop else 0.0
    )

    smart_money_total = min(100.0, foreign_score + institution_score)
    context_total = retail_score + prop_score
    total_score = _clamp(
        smart_money_total * s.smart_money_share + context_total * s.context_share, 0.0, 100.0
    )

    return CompositeScoreComponents(
        foreign_score=_clamp(foreign_score, 0.0, s.max_score_per_investor),
        institution_score=_clamp(institution_score, 0.0, s.max_score_per_investor),
        retail_score=_clamp(retail_score, 0.0, s.max_context_score),
        prop_score=_clamp(prop_score, 0.0, s.max_context_score),
        total_score=total_score,
    )


# =============================================================================
# Confidence Aggregation
# =============================================================================


def calculate_overall_confidence(
    foreign: InvestorAnalysis,
    institution: InvestorAnalysis,
    retail: Optional[InvestorAnalysis] = None,
    prop: Optional[InvestorAnalysis] = None,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Overall smart money confidence (0-100).

    Starts from the mean of the foreign and institution confidences, boosted
    when both sit in the same directional family and penalized when one buys
    while the other sells. Retail and prop are accepted for call-site symmetry
    but do not enter the value.
    """
    s = resolve_config(config).scoring
    confidence = (foreign.confidence + institution.confidence) / 2

    f, i = foreign.signal_strength, institution.signal_strength
    if (f.is_bullish and i.is_bullish) or (f.is_bearish and i.is_bearish):
        confidence += s.agreement_boost
    elif (f.is_bullish and i.is_bearish) or (f.is_bearish and i.is_bullish):
        confidence -= s.disagreement_penalty

    return _clamp(confidence, 0.0, 100.0)


# =============================================================================
# Market Context
# =============================================================================


def apply_market_context(
    score: float,
    foreign_net: float,
    context: Optional[MarketContext] = None,
) -> float:
    """
    Amplify a score by the foreign impact factor when foreigners are net buying.

    Args:
        score: Base score (0-100)
        foreign_net: Foreign net flow
        context: Market context, defaults to the SET context

    Returns:
        Adjusted score clamped to [0, 100]
    """
    context = context or resolve_config(None).market
    adjusted = score
    if foreign_net > 0:
        adjusted *= context.foreign_impact_factor
    return _clamp(adjusted, 0.0, 100.0)


def calculate_momentum_strength(
    historical_nets: Sequence[float], config: Optional[EngineConfig] = None
) -> float:
    """
    Momentum strength (0-100) from the OLS slope relative to the mean flow.

    A slope of half the mean flow per day scores 100. Returns 50 with fewer
    than two points.
    """
    values = np.asarray(historical_nets, dtype=float)
    if len(values) < 2:
        return resolve_config(config).trend.neutral_strength

    slope, _, _ = linear_fit(values)
    relative_slope = abs(slope / (abs(float(np.mean(values))) + 1))
    return _clamp(relative_slope * resolve_config(config).trend.momentum_scale, 0.0, 100.0)
