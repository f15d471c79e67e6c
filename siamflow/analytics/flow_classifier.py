"""
Flow Classifier

Classifies one day's net flow into a signal strength tier and a flow trend
relative to recent history.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from siamflow.analytics.models import FlowTrend, SignalStrength
from siamflow.config.settings import EngineConfig, resolve_config

logger = logging.getLogger(__name__)


def classify_signal_strength(
    net_flow: float, config: Optional[EngineConfig] = None
) -> SignalStrength:
    """
    Classify signal strength from net flow.

    Strong tiers are closed at their boundary: 500 is Strong Buy, 499 is Buy.

    Args:
        net_flow: Net flow in million THB
        config: Engine configuration

    Returns:
        SignalStrength tier
    """
    t = resolve_config(config).flow

    if net_flow >= t.strong_buy:
        return SignalStrength.STRONG_BUY
    if net_flow >= t.buy:
        return SignalStrength.BUY
    if net_flow <= t.strong_sell:
        return SignalStrength.STRONG_SELL
    if net_flow <= t.sell:
        return SignalStrength.SELL
    return SignalStrength.NEUTRAL


def detect_flow_trend(
    current_net: float,
    historical_nets: Optional[Sequence[float]] = None,
    config: Optional[EngineConfig] = None,
) -> FlowTrend:
    """
    Detect the flow trend of today's net flow against its history.

    Without history the trend is read from today's value alone. With history,
    today's deviation from the historical mean decides whether buying or
    selling is accelerating, stable or tapering off. Near-neutral days with a
    large deviation are read as the opposite side tapering.

    Args:
        current_net: Today's net flow
        historical_nets: Prior net flows (chronological); None and [] are equivalent
        config: Engine configuration

    Returns:
        FlowTrend
    """
    t = resolve_config(config).flow

    if historical_nets is None or len(historical_nets) == 0:
        if current_net > t.buy:
            return FlowTrend.STABLE_BUY
        if current_net < t.sell:
            return FlowTrend.STABLE_SELL
        return FlowTrend.NEUTRAL

    avg_flow = float(np.mean(np.asarray(historical_nets, dtype=float)))
    change = current_net - avg_flow

    if current_net > t.buy:
        if change > t.accelerating_change:
            return FlowTrend.ACCELERATING_BUY
        if change > t.stable_change:
            return FlowTrend.STABLE_BUY
        return FlowTrend.DECREASING_BUY

    if current_net < t.sell:
        if change < -t.accelerating_change:
            return FlowTrend.ACCELERATING_SELL
        if change < -t.stable_change:
            return FlowTrend.STABLE_SELL
        return FlowTrend.DECREASING_SELL

    # Near neutral
    if change > t.neutral_reversal_change:
        return FlowTrend.DECREASING_SELL
    if change < -t.neutral_reversal_change:
        return FlowTrend.DECREASING_BUY

    return FlowTrend.NEUTRAL
