"""
Investor Scorer

Turns a classified flow plus short history into a per-category analysis
record with a confidence value.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from siamflow.analytics.flow_classifier import classify_signal_strength, detect_flow_trend
from siamflow.analytics.models import (
    FlowLike,
    FlowTrend,
    InvestorAnalysis,
    InvestorCategory,
    SignalStrength,
    as_flow,
)
from siamflow.config.settings import EngineConfig, resolve_config

logger = logging.getLogger(__name__)


def score_investor_signal(
    category: InvestorCategory,
    today_flow: FlowLike,
    historical_flows: Optional[Sequence[FlowLike]] = None,
    config: Optional[EngineConfig] = None,
) -> InvestorAnalysis:
    """
    Score an individual investor category for today.

    Args:
        category: Investor category
        today_flow: Today's {buy, sell, net}
        historical_flows: Prior days, chronological (most recent last)
        config: Engine configuration

    Returns:
        InvestorAnalysis with strength, trend, confidence and 5-day stats
    """
    cfg = resolve_config(config)
    today_net = as_flow(today_flow).net

    historical_nets = [as_flow(f).net for f in historical_flows or []]

    strength = classify_signal_strength(today_net, cfg)
    trend = detect_flow_trend(today_net, historical_nets, cfg)

    window = historical_nets[-cfg.scoring.history_window:]
    if window:
        trend_5day = float(np.sum(window))
        avg_5day = float(np.mean(window))
        vs_average = today_net - avg_5day
    else:
        trend_5day = 0.0
        avg_5day = 0.0
        vs_average = 0.0

    confidence = calculate_investor_confidence(strength, trend, today_net, cfg)

    logger.debug(
        f"{category.value}: net={today_net:.0f} strength={strength.value} "
        f"trend={trend.value} confidence={confidence:.0f}"
    )

    return InvestorAnalysis(
        category=category,
        today_net=today_net,
        signal_strength=strength,
        flow_trend=trend,
        confidence=confidence,
        trend_5day=trend_5day,
        avg_5day=avg_5day,
        vs_average=vs_average,
    )


def calculate_investor_confidence(
    strength: SignalStrength,
    trend: FlowTrend,
    net_flow: float,
    config: Optional[EngineConfig] = None,
) -> float:
    """Confidence (0-100) from tier, trend and flow magnitude."""
    s = resolve_config(config).scoring
    confidence = s.base_confidence

    if strength.is_strong:
        confidence += s.strong_tier_confidence
    elif strength in (SignalStrength.BUY, SignalStrength.SELL):
        confidence += s.tier_confidence

    if trend.is_accelerating:
        confidence += s.accelerating_confidence
    elif trend.is_stable:
        confidence += s.stable_confidence

    abs_flow = abs(net_flow)
    if abs_flow > s.very_large_flow:
        confidence += s.very_large_flow_confidence
    elif abs_flow > s.large_flow:
        confidence += s.large_flow_confidence

    return float(min(100.0, max(0.0, confidence)))
