"""
Flow Pattern Detector

Scans a chronological window of investor flow for multi-day behavioral
patterns: smart money accumulation and distribution, smart money versus
retail divergence, retail FOMO and retail panic.

Every pattern is described by a PatternRule (qualifying-day predicate,
minimum day count, counting mode and strength weights) and run through the
same detector. Actionable guidance comes from a single table keyed by
pattern type and smart money direction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from siamflow.analytics.models import (
    DetectedPattern,
    InvestorCategory,
    InvestorTrendData,
    ParticipantRole,
    PatternType,
)
from siamflow.analytics.signals import _signed
from siamflow.config.settings import EngineConfig, PatternConfig, resolve_config

logger = logging.getLogger(__name__)

FOREIGN = InvestorCategory.FOREIGN
INSTITUTION = InvestorCategory.INSTITUTION
RETAIL = InvestorCategory.RETAIL


@dataclass(frozen=True)
class PatternDay:
    """Foreign, institution and retail net flow for one day."""

    date: str
    foreign: float
    institution: float
    retail: float

    @property
    def smart_money(self) -> float:
        return self.foreign + self.institution


@dataclass
class PatternMatch:
    """Days matched by a rule within the scanned window."""

    window: List[PatternDay]
    matched: List[PatternDay]
    start_date: str

    @property
    def count(self) -> int:
        return len(self.matched)

    @property
    def smart_money_total(self) -> float:
        return sum(d.smart_money for d in self.matched)

    @property
    def retail_total(self) -> float:
        return sum(d.retail for d in self.matched)

    @property
    def window_smart_money_total(self) -> float:
        return sum(d.smart_money for d in self.window)


@dataclass(frozen=True)
class PatternRule:
    """
    Parameterization of the generic run detector.

    Attributes:
        type: Pattern reported when the rule fires
        qualifies: Predicate over a single day
        min_days: Minimum run length (or qualifying day count)
        consecutive: Count the longest consecutive run instead of all
            qualifying days
        weight: Strength points per counted day
        flow_scale: Divisor turning |total_flow| into strength points
        total_flow: Signed flow reported for the match
        smart_money_buying: Direction used for guidance lookup
        roles: Participant roles for the match
        describe: Description text for (match, total_flow)
        involved: Categories taking part in the pattern
    """

    type: PatternType
    qualifies: Callable[[PatternDay], bool]
    min_days: int
    consecutive: bool
    weight: float
    flow_scale: float
    total_flow: Callable[[PatternMatch], float]
    smart_money_buying: Callable[[PatternMatch, float], bool]
    roles: Callable[[PatternMatch, float], Dict[InvestorCategory, ParticipantRole]]
    describe: Callable[[PatternMatch, float], str]
    involved: Tuple[InvestorCategory, ...] = (FOREIGN, INSTITUTION)


# =============================================================================
# Guidance
# =============================================================================


@dataclass(frozen=True)
class Guidance:
    action: str
    risk_level: str
    insight: str
    strong_action: Optional[str] = None
    strong_risk_level: Optional[str] = None


# Keyed by (pattern, smart money buying); None matches either direction.
GUIDANCE_TABLE: Dict[Tuple[PatternType, Optional[bool]], Guidance] = {
    (PatternType.ACCUMULATION, None): Guidance(
        "buy",
        "low",
        "Smart money quietly buying. Add on pullbacks for swing trades.",
        strong_action="accumulate",
    ),
    (PatternType.DISTRIBUTION, None): Guidance(
        "reduce",
        "medium",
        "Smart money exiting. Reduce exposure, avoid new entries.",
        strong_risk_level="high",
    ),
    (PatternType.DIVERGENCE, True): Guidance(
        "buy", "medium", "Smart money buying while retail sells. Bullish signal."
    ),
    (PatternType.DIVERGENCE, False): Guidance(
        "sell", "medium", "Smart money selling into retail buying. Be cautious."
    ),
    (PatternType.FOMO, None): Guidance(
        "wait", "high", "Retail chasing prices. Smart money typically sells into this."
    ),
    (PatternType.PANIC, True): Guidance(
        "buy", "medium", "Capitulation selling. Smart money absorbing - opportunity."
    ),
    (PatternType.PANIC, False): Guidance(
        "wait", "high", "Panic selling in progress. Wait for stabilization."
    ),
    (PatternType.REVERSAL, None): Guidance(
        "hold", "medium", "Trend changing direction. Wait for confirmation before acting."
    ),
}

DEFAULT_GUIDANCE = Guidance("hold", "medium", "Monitor closely for more signals.")


def get_pattern_guidance(
    pattern_type: PatternType,
    strength: float,
    smart_money_buying: bool,
    config: Optional[EngineConfig] = None,
) -> Tuple[str, str, str]:
    """
    Look up (action, risk_level, insight) for a pattern.

    Entries with a strong_action or strong_risk_level switch to it once the
    strength reaches the configured high-strength mark.
    """
    entry = GUIDANCE_TABLE.get((pattern_type, smart_money_buying)) or GUIDANCE_TABLE.get(
        (pattern_type, None), DEFAULT_GUIDANCE
    )

    strong = strength >= resolve_config(config).patterns.high_strength
    action = entry.strong_action if strong and entry.strong_action else entry.action
    risk = entry.strong_risk_level if strong and entry.strong_risk_level else entry.risk_level
    return action, risk, entry.insight


# =============================================================================
# Participant Roles
# =============================================================================


def get_participant_role(
    investor_net: float,
    reference_flow: float,
    threshold: float,
    driving_share: float = 0.5,
) -> ParticipantRole:
    """
    Role of one category in a pattern.

    Args:
        investor_net: Category's total net flow over the window
        reference_flow: Signed pattern flow; its sign is the pattern direction
            and its magnitude the total the share is measured against
        threshold: Minimum |net| to count as taking part
        driving_share: Share of the reference above which a category drives

    Returns:
        ParticipantRole
    """
    if abs(investor_net) < threshold:
        return ParticipantRole.ABSENT

    share = abs(investor_net / reference_flow) if reference_flow != 0 else 0.0
    same_direction = investor_net * reference_flow > 0

    if share > driving_share and same_direction:
        return ParticipantRole.DRIVING
    if same_direction:
        return ParticipantRole.FOLLOWING
    return ParticipantRole.OPPOSING


# =============================================================================
# Rules
# =============================================================================


def _window_totals(window: Sequence[PatternDay]) -> Dict[InvestorCategory, float]:
    return {
        FOREIGN: sum(d.foreign for d in window),
        INSTITUTION: sum(d.institution for d in window),
        RETAIL: sum(d.retail for d in window),
    }


def _retail_only_roles(match: PatternMatch, total_flow: float):
    return {
        FOREIGN: ParticipantRole.ABSENT,
        INSTITUTION: ParticipantRole.ABSENT,
        RETAIL: ParticipantRole.DRIVING,
    }


def build_rules(config: Optional[EngineConfig] = None) -> List[PatternRule]:
    """Pattern rules in detection order."""
    p: PatternConfig = resolve_config(config).patterns

    def smart_money_roles(direction: float):
        """Roles measured against |total flow| in the pattern's own direction."""

        def roles(match: PatternMatch, total_flow: float):
            reference = direction * abs(total_flow)
            totals = _window_totals(match.window)
            return {
                FOREIGN: get_participant_role(
                    totals[FOREIGN], reference, p.smart_money_role_threshold, p.driving_share
                ),
                INSTITUTION: get_participant_role(
                    totals[INSTITUTION], reference, p.smart_money_role_threshold, p.driving_share
                ),
                RETAIL: ParticipantRole.ABSENT,
            }

        return roles

    def divergence_roles(match: PatternMatch, total_flow: float):
        totals = _window_totals(match.window)
        magnitude = abs(match.smart_money_total) + abs(match.retail_total)
        reference = magnitude if total_flow >= 0 else -magnitude
        return {
            FOREIGN: get_participant_role(
                totals[FOREIGN], reference, p.divergence_role_threshold, p.driving_share
            ),
            INSTITUTION: get_participant_role(
                totals[INSTITUTION], reference, p.divergence_role_threshold, p.driving_share
            ),
            RETAIL: get_participant_role(
                totals[RETAIL], reference, p.retail_role_threshold, p.driving_share
            ),
        }

    def divergence_description(match: PatternMatch, total_flow: float) -> str:
        retail = match.retail_total
        if total_flow > 0:
            return (
                f"Smart money accumulating (+{total_flow:.0f}M) "
                f"while retail distributing ({retail:.0f}M)"
            )
        return (
            f"Smart money distributing ({total_flow:.0f}M) "
            f"while retail accumulating (+{retail:.0f}M)"
        )

    def diverges(d: PatternDay) -> bool:
        gate = p.divergence_flow
        return (d.smart_money > gate and d.retail < -gate) or (
            d.smart_money < -gate and d.retail > gate
        )

    return [
        PatternRule(
            type=PatternType.ACCUMULATION,
            qualifies=lambda d: d.smart_money > 0,
            min_days=p.accumulation_min_days,
            consecutive=True,
            weight=p.run_weight,
            flow_scale=p.run_flow_scale,
            total_flow=lambda m: m.window_smart_money_total,
            smart_money_buying=lambda m, flow: True,
            roles=smart_money_roles(1.0),
            describe=lambda m, flow: (
                f"Smart money accumulation detected "
                f"({m.count} consecutive buy days, {_signed(flow)}M total)"
            ),
        ),
        PatternRule(
            type=PatternType.DISTRIBUTION,
            qualifies=lambda d: d.smart_money < 0,
            min_days=p.distribution_min_days,
            consecutive=True,
            weight=p.run_weight,
            flow_scale=p.run_flow_scale,
            total_flow=lambda m: m.window_smart_money_total,
            smart_money_buying=lambda m, flow: False,
            roles=smart_money_roles(-1.0),
            describe=lambda m, flow: (
                f"Smart money distribution detected "
                f"({m.count} consecutive sell days, {_signed(flow)}M total)"
            ),
        ),
        PatternRule(
            type=PatternType.DIVERGENCE,
            qualifies=diverges,
            min_days=p.divergence_min_days,
            consecutive=False,
            weight=p.count_weight,
            flow_scale=p.divergence_flow_scale,
            total_flow=lambda m: m.smart_money_total,
            smart_money_buying=lambda m, flow: flow > 0,
            roles=divergence_roles,
            describe=divergence_description,
            involved=(FOREIGN, INSTITUTION, RETAIL),
        ),
        PatternRule(
            type=PatternType.FOMO,
            qualifies=lambda d: d.retail > p.retail_heavy_flow,
            min_days=p.fomo_min_days,
            consecutive=False,
            weight=p.count_weight,
            flow_scale=p.retail_flow_scale,
            total_flow=lambda m: sum(d.retail for d in m.window if d.retail > 0),
            smart_money_buying=lambda m, flow: False,
            roles=_retail_only_roles,
            describe=lambda m, flow: (
                f"Retail FOMO detected ({m.count} heavy buy days, +{flow:.0f}M total)"
            ),
            involved=(RETAIL,),
        ),
        PatternRule(
            type=PatternType.PANIC,
            qualifies=lambda d: d.retail < -p.retail_heavy_flow,
            min_days=p.panic_min_days,
            consecutive=False,
            weight=p.count_weight,
            flow_scale=p.retail_flow_scale,
            total_flow=lambda m: sum(d.retail for d in m.window if d.retail < 0),
            smart_money_buying=lambda m, flow: m.window_smart_money_total > 0,
            roles=_retail_only_roles,
            describe=lambda m, flow: (
                f"Retail panic selling detected ({m.count} heavy sell days, {flow:.0f}M total)"
            ),
            involved=(RETAIL,),
        ),
    ]


# =============================================================================
# Detection
# =============================================================================


def _longest_run(window: List[PatternDay], qualifies: Callable[[PatternDay], bool]):
    """(start index, length) of the first longest run of qualifying days."""
    best_start, best_len = 0, 0
    run_start, run_len = 0, 0

    for i, day in enumerate(window):
        if qualifies(day):
            if run_len == 0:
                run_start = i
            run_len += 1
            if run_len > best_len:
                best_start, best_len = run_start, run_len
        else:
            run_len = 0

    return best_start, best_len


def match_rule(rule: PatternRule, window: List[PatternDay]) -> Optional[PatternMatch]:
    """Apply a rule's predicate and minimum count to a window."""
    if rule.consecutive:
        start, length = _longest_run(window, rule.qualifies)
        matched = window[start:start + length]
    else:
        matched = [d for d in window if rule.qualifies(d)]

    if len(matched) < rule.min_days or not matched:
        return None

    return PatternMatch(window=window, matched=matched, start_date=matched[0].date)


def apply_rule(
    rule: PatternRule,
    window: List[PatternDay],
    config: Optional[EngineConfig] = None,
) -> Optional[DetectedPattern]:
    """Run one rule over a window, returning the detected pattern or None."""
    match = match_rule(rule, window)
    if match is None:
        return None

    total_flow = float(rule.total_flow(match))
    strength = min(100.0, max(0.0, match.count * rule.weight + abs(total_flow) / rule.flow_scale))
    action, risk_level, insight = get_pattern_guidance(
        rule.type, strength, rule.smart_money_buying(match, total_flow), config
    )

    return DetectedPattern(
        type=rule.type,
        description=rule.describe(match, total_flow),
        start_date=match.start_date,
        strength=strength,
        involved_categories=list(rule.involved),
        consecutive_days=match.count,
        total_flow=total_flow,
        action=action,
        risk_level=risk_level,
        insight=insight,
        participant_roles=rule.roles(match, total_flow),
    )


def build_window(
    foreign: InvestorTrendData,
    institution: InvestorTrendData,
    retail: InvestorTrendData,
) -> List[PatternDay]:
    """Align the three daily series by position."""
    lengths = {len(foreign.daily), len(institution.daily), len(retail.daily)}
    if len(lengths) > 1:
        logger.warning(f"Pattern series lengths differ {sorted(lengths)}, truncating to shortest")

    return [
        PatternDay(date=f.date, foreign=f.net, institution=i.net, retail=r.net)
        for f, i, r in zip(foreign.daily, institution.daily, retail.daily)
    ]


def detect_patterns(
    foreign: InvestorTrendData,
    institution: InvestorTrendData,
    retail: InvestorTrendData,
    config: Optional[EngineConfig] = None,
) -> List[DetectedPattern]:
    """
    Detect all flow patterns in a window.

    Args:
        foreign: Foreign trend data (chronological)
        institution: Institution trend data
        retail: Retail trend data
        config: Engine configuration

    Returns:
        Detected patterns in rule order (Accumulation, Distribution,
        Divergence, FOMO, Panic); empty when nothing qualifies
    """
    window = build_window(foreign, institution, retail)
    if not window:
        return []

    patterns = []
    for rule in build_rules(config):
        pattern = apply_rule(rule, window, config)
        if pattern is not None:
            logger.debug(
                f"{pattern.type.value} detected: {pattern.consecutive_days} days, "
                f"strength={pattern.strength:.0f}"
            )
            patterns.append(pattern)

    return patterns
