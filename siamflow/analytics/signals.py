"""
Signal and Risk Generator

Derives the combined smart money signal, the risk-on/off regime, evidence
and observation strings, the day's primary driver and the prop desk reading
from per-category analyses and composite scores.
"""

import logging
from typing import List, Optional

from siamflow.analytics.models import (
    CombinedSignal,
    CompositeScoreComponents,
    FlowLike,
    InvestorAnalysis,
    PrimaryDriver,
    PropTradingAnalysis,
    RiskSignal,
    SignalStrength,
    SmartMoneySignal,
    as_flow,
)
from siamflow.config.settings import EngineConfig, SignalThresholds, resolve_config

logger = logging.getLogger(__name__)


# =============================================================================
# Combined Signal
# =============================================================================


def generate_combined_signal(
    foreign: InvestorAnalysis,
    institution: InvestorAnalysis,
    config: Optional[EngineConfig] = None,
) -> CombinedSignal:
    """
    Combined smart money signal from today's foreign + institution net flow.

    Magnitude decides first; below the combined threshold the signal falls
    back to directional agreement of the two categories.

    Args:
        foreign: Foreign investor analysis
        institution: Institution investor analysis
        config: Engine configuration

    Returns:
        CombinedSignal
    """
    s = resolve_config(config).signals
    total_net = foreign.today_net + institution.today_net

    if total_net >= s.combined_strong:
        return CombinedSignal.STRONG_BUY
    if total_net >= s.combined:
        return CombinedSignal.BUY
    if total_net <= -s.combined_strong:
        return CombinedSignal.STRONG_SELL
    if total_net <= -s.combined:
        return CombinedSignal.SELL

    f, i = foreign.signal_strength, institution.signal_strength
    if f.is_bullish and i.is_bullish:
        return CombinedSignal.BUY
    if f.is_bearish and i.is_bearish:
        return CombinedSignal.SELL

    return CombinedSignal.NEUTRAL


def generate_risk_on_off_signal(
    signal: CombinedSignal,
    foreign: Optional[InvestorAnalysis],
    scores: CompositeScoreComponents,
    config: Optional[EngineConfig] = None,
) -> RiskSignal:
    """
    Risk regime from the combined signal and total score jointly.

    The foreign analysis is accepted for call-site symmetry and not used.
    """
    s = resolve_config(config).signals
    total = scores.total_score

    if total >= s.risk_on_score and signal == CombinedSignal.STRONG_BUY:
        return RiskSignal.RISK_ON
    if total >= s.risk_on_mild_score and signal == CombinedSignal.BUY:
        return RiskSignal.RISK_ON_MILD
    if total <= s.risk_off_score and signal == CombinedSignal.STRONG_SELL:
        return RiskSignal.RISK_OFF
    if total <= s.risk_off_mild_score and signal == CombinedSignal.SELL:
        return RiskSignal.RISK_OFF_MILD

    return RiskSignal.NEUTRAL


def generate_smart_money_signal(
    scores: CompositeScoreComponents,
    confidence: float,
    config: Optional[EngineConfig] = None,
) -> SmartMoneySignal:
    """
    Signal and risk regime derived from the total score alone.

    Args:
        scores: Composite score components
        confidence: Overall confidence (0-100)
        config: Engine configuration

    Returns:
        SmartMoneySignal with up to three evidence strings
    """
    s = resolve_config(config).signals
    total = scores.total_score

    if total >= s.score_strong_buy:
        signal, risk = CombinedSignal.STRONG_BUY, RiskSignal.RISK_ON
    elif total >= s.score_buy:
        signal, risk = CombinedSignal.BUY, RiskSignal.RISK_ON_MILD
    elif total <= s.score_strong_sell:
        signal, risk = CombinedSignal.STRONG_SELL, RiskSignal.RISK_OFF
    elif total <= s.score_sell:
        signal, risk = CombinedSignal.SELL, RiskSignal.RISK_OFF_MILD
    else:
        signal, risk = CombinedSignal.NEUTRAL, RiskSignal.NEUTRAL

    return SmartMoneySignal(
        signal=signal,
        risk_signal=risk,
        scores=scores,
        confidence=float(min(100.0, max(0.0, confidence))),
        evidence=generate_signal_evidence(scores, config),
    )


def _score_band(score: float, subject: str, s: SignalThresholds) -> Optional[str]:
    if score >= s.evidence_strong_buying:
        return f"{subject} showing strong buying"
    if score >= s.evidence_buying:
        return f"{subject} net buying"
    if score <= s.evidence_strong_selling:
        return f"{subject} showing strong selling"
    if score <= s.evidence_selling:
        return f"{subject} net selling"
    return None


def generate_signal_evidence(
    scores: CompositeScoreComponents, config: Optional[EngineConfig] = None
) -> List[str]:
    """Evidence strings from the per-category and total score bands."""
    s = resolve_config(config).signals
    evidence = [
        _score_band(scores.foreign_score, "Foreign investors", s),
        _score_band(scores.institution_score, "Institutions", s),
    ]

    total = scores.total_score
    if total >= s.score_strong_buy:
        evidence.append("Smart money strongly bullish")
    elif total >= s.score_buy:
        evidence.append("Smart money moderately bullish")
    elif total <= s.score_strong_sell:
        evidence.append("Smart money strongly bearish")
    elif total <= s.score_sell:
        evidence.append("Smart money moderately bearish")

    return [e for e in evidence if e][: s.max_evidence]


# =============================================================================
# Primary Driver
# =============================================================================


def detect_primary_driver(
    foreign: InvestorAnalysis,
    institution: InvestorAnalysis,
    retail: Optional[InvestorAnalysis] = None,
    prop: Optional[InvestorAnalysis] = None,
    config: Optional[EngineConfig] = None,
) -> PrimaryDriver:
    """
    Which category is driving today's flow.

    Foreign and institution both in Strong tiers on the same side is "both".
    Otherwise nothing drives below the minimum flow; above it a category
    drives when its |net| dominates by the configured ratio.
    """
    s = resolve_config(config).signals

    abs_foreign = abs(foreign.today_net)
    abs_institution = abs(institution.today_net)
    abs_retail = abs(retail.today_net) if retail else 0.0
    abs_prop = abs(prop.today_net) if prop else 0.0

    both_strong = foreign.signal_strength.is_strong and institution.signal_strength.is_strong
    same_side = (foreign.today_net > 0) == (institution.today_net > 0)
    if both_strong and same_side:
        return PrimaryDriver.BOTH

    max_flow = max(abs_foreign, abs_institution, abs_retail, abs_prop)
    if max_flow < s.driver_min_flow:
        return PrimaryDriver.NONE

    ratio = s.driver_dominance_ratio
    if abs_prop == max_flow and abs_prop > abs_institution * ratio:
        return PrimaryDriver.PROP
    if abs_retail == max_flow and abs_retail > abs_institution * ratio:
        return PrimaryDriver.RETAIL
    if abs_foreign > abs_institution * ratio:
        return PrimaryDriver.FOREIGN
    if abs_institution > abs_foreign * ratio:
        return PrimaryDriver.INSTITUTION

    return PrimaryDriver.NONE


# =============================================================================
# Risk Confirmation
# =============================================================================


def confirm_risk_on(
    scores: CompositeScoreComponents, config: Optional[EngineConfig] = None
) -> bool:
    return scores.total_score >= resolve_config(config).signals.confirm_risk_on_score


def confirm_risk_off(
    scores: CompositeScoreComponents, config: Optional[EngineConfig] = None
) -> bool:
    return scores.total_score <= resolve_config(config).signals.confirm_risk_off_score


# =============================================================================
# Observations
# =============================================================================


def _signed(value: float) -> str:
    return f"+{value:.0f}" if value >= 0 else f"{value:.0f}"


def generate_smart_money_observations(
    foreign: InvestorAnalysis,
    institution: InvestorAnalysis,
    retail: Optional[InvestorAnalysis] = None,
    prop: Optional[InvestorAnalysis] = None,
    scores: Optional[CompositeScoreComponents] = None,
    config: Optional[EngineConfig] = None,
) -> List[str]:
    """
    Ranked, templated observations about today's flow.

    Order: foreign, institution, combined, prop desk, retail, acceleration.
    Light prop selling is read as the desks trimming their sell volume, which
    is mildly bullish on the SET.

    Returns:
        At most max_observations strings
    """
    s = resolve_config(config).signals
    observations: List[str] = []

    if foreign.signal_strength == SignalStrength.STRONG_BUY:
        observations.append(f"Foreign investors aggressive buying: {_signed(foreign.today_net)}M")
    elif foreign.signal_strength == SignalStrength.STRONG_SELL:
        observations.append(f"Foreign investors aggressive selling: {_signed(foreign.today_net)}M")
    elif foreign.today_net != 0:
        observations.append(f"Foreign flow: {_signed(foreign.today_net)}M")

    if institution.signal_strength == SignalStrength.STRONG_BUY:
        observations.append(f"Institutions strong buying: {_signed(institution.today_net)}M")
    elif institution.signal_strength == SignalStrength.STRONG_SELL:
        observations.append(f"Institutions strong selling: {_signed(institution.today_net)}M")
    elif institution.today_net != 0:
        observations.append(f"Institution flow: {_signed(institution.today_net)}M")

    total_net = foreign.today_net + institution.today_net
    if total_net > s.combined_observation_flow:
        observations.append("Strong combined smart money buying")
    elif total_net < -s.combined_observation_flow:
        observations.append("Strong combined smart money selling")

    if prop is not None and prop.signal_strength.is_bearish:
        if abs(prop.today_net) < s.prop_light_sell_flow:
            observations.append("Prop firms reducing sell volume (bullish)")
        elif prop.signal_strength == SignalStrength.STRONG_SELL:
            observations.append("Prop firms heavy selling (caution)")

    if retail is not None:
        if retail.today_net > s.retail_observation_flow:
            observations.append("Retail investors showing strong interest")
        elif retail.today_net < -s.retail_observation_flow:
            observations.append("Retail investors exiting positions")

    if foreign.flow_trend.is_accelerating or institution.flow_trend.is_accelerating:
        observations.append("Smart money flow accelerating")

    return observations[: s.max_observations]


# =============================================================================
# Prop Desk
# =============================================================================


def analyze_prop_trading(
    prop_flow: FlowLike, config: Optional[EngineConfig] = None
) -> PropTradingAnalysis:
    """
    Read proprietary desk flow for its effect on market risk.

    Args:
        prop_flow: Prop desk {buy, sell, net}
        config: Engine configuration

    Returns:
        PropTradingAnalysis
    """
    s = resolve_config(config).signals
    net = as_flow(prop_flow).net
    abs_flow = abs(net)

    if abs_flow > s.prop_high_activity:
        activity = "High"
    elif abs_flow > s.prop_normal_activity:
        activity = "Normal"
    else:
        activity = "Low"

    reducing = False
    if net > 0:
        impact, signal = "Neutral", "Prop firms net buying"
    elif net < 0:
        if abs_flow < s.prop_light_sell_flow:
            impact, signal = "Reducing Risk", "Prop firms reducing sell volume"
            reducing = True
        else:
            impact, signal = "Amplifying Risk", "Prop firms heavy selling"
    else:
        impact, signal = "Neutral", "Prop firms flat"

    return PropTradingAnalysis(
        net_flow=net,
        activity=activity,
        impact=impact,
        signal=signal,
        reducing_sell_volume=reducing,
    )
