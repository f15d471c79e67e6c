"""
Smart Money Data Model

Enums and result records shared by the flow classifier, scorers, signal
generator, trend analyzer, pattern detector and breadth calculator.
All flow values are in millions of THB. Every record is created per call and
owned by the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd


def _value(obj: Any) -> Any:
    """Render enums as their value, recursing into containers."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {_value(k): _value(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_value(v) for v in obj]
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


# =============================================================================
# Enumerations
# =============================================================================


class InvestorCategory(Enum):
    """Investor categories reported by the exchange."""

    FOREIGN = "foreign"
    INSTITUTION = "institution"
    RETAIL = "retail"
    PROP = "prop"

    @property
    def is_smart_money(self) -> bool:
        return self in (InvestorCategory.FOREIGN, InvestorCategory.INSTITUTION)


class SignalStrength(Enum):
    """Per-category flow strength classification."""

    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    NEUTRAL = "Neutral"
    SELL = "Sell"
    STRONG_SELL = "Strong Sell"

    @property
    def is_bullish(self) -> bool:
        return self in (SignalStrength.STRONG_BUY, SignalStrength.BUY)

    @property
    def is_bearish(self) -> bool:
        return self in (SignalStrength.STRONG_SELL, SignalStrength.SELL)

    @property
    def is_strong(self) -> bool:
        return self in (SignalStrength.STRONG_BUY, SignalStrength.STRONG_SELL)


class FlowTrend(Enum):
    """Flow trend relative to recent history."""

    ACCELERATING_BUY = "Accelerating Buy"
    STABLE_BUY = "Stable Buy"
    DECREASING_BUY = "Decreasing Buy"
    NEUTRAL = "Neutral"
    DECREASING_SELL = "Decreasing Sell"
    STABLE_SELL = "Stable Sell"
    ACCELERATING_SELL = "Accelerating Sell"

    @property
    def is_accelerating(self) -> bool:
        return self in (FlowTrend.ACCELERATING_BUY, FlowTrend.ACCELERATING_SELL)

    @property
    def is_stable(self) -> bool:
        return self in (FlowTrend.STABLE_BUY, FlowTrend.STABLE_SELL)


class CombinedSignal(Enum):
    """Combined smart money (foreign + institution) signal."""

    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    NEUTRAL = "Neutral"
    SELL = "Sell"
    STRONG_SELL = "Strong Sell"


class RiskSignal(Enum):
    """Risk-on/off regime derived from smart money."""

    RISK_ON = "Risk-On"
    RISK_ON_MILD = "Risk-On Mild"
    NEUTRAL = "Neutral"
    RISK_OFF_MILD = "Risk-Off Mild"
    RISK_OFF = "Risk-Off"


class TrendDirection(Enum):
    """OLS trend direction of daily net flow."""

    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


class PatternType(Enum):
    """Multi-day behavioral patterns."""

    ACCUMULATION = "Accumulation"
    DISTRIBUTION = "Distribution"
    DIVERGENCE = "Divergence"
    FOMO = "FOMO"
    PANIC = "Panic"
    REVERSAL = "Reversal"


class ParticipantRole(Enum):
    """Role an investor category plays in a detected pattern."""

    DRIVING = "driving"
    FOLLOWING = "following"
    ABSENT = "absent"
    OPPOSING = "opposing"


class PrimaryDriver(Enum):
    """Which investor category is driving the flow."""

    FOREIGN = "foreign"
    INSTITUTION = "institution"
    RETAIL = "retail"
    PROP = "prop"
    BOTH = "both"
    NONE = "none"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class FlowRecord:
    """One investor category, one trading day."""

    buy: float
    sell: float
    net: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FlowRecord":
        return cls(
            buy=float(data.get("buy", 0.0)),
            sell=float(data.get("sell", 0.0)),
            net=float(data["net"]),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"buy": self.buy, "sell": self.sell, "net": self.net}


FlowLike = Union[FlowRecord, Mapping[str, Any]]


def as_flow(flow: FlowLike) -> FlowRecord:
    """Accept a FlowRecord or a {buy, sell, net} mapping."""
    if isinstance(flow, FlowRecord):
        return flow
    return FlowRecord.from_mapping(flow)


@dataclass(frozen=True)
class DailyFlows:
    """All four investor categories for one trading day."""

    date: str
    foreign: FlowRecord
    institution: FlowRecord
    retail: FlowRecord
    prop: FlowRecord
    timestamp: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DailyFlows":
        return cls(
            date=str(data.get("date", "")),
            timestamp=int(data.get("timestamp", 0) or 0),
            foreign=as_flow(data["foreign"]),
            institution=as_flow(data["institution"]),
            retail=as_flow(data["retail"]),
            prop=as_flow(data["prop"]),
        )

    def get(self, category: InvestorCategory) -> FlowRecord:
        return getattr(self, category.value)

    @property
    def smart_money_net(self) -> float:
        return self.foreign.net + self.institution.net


DailyFlowsLike = Union[DailyFlows, Mapping[str, Any]]


def as_daily_flows(day: DailyFlowsLike) -> DailyFlows:
    """Accept a DailyFlows or a nested mapping keyed by category."""
    if isinstance(day, DailyFlows):
        return day
    return DailyFlows.from_mapping(day)


# =============================================================================
# Smart Money Results
# =============================================================================


@dataclass
class InvestorAnalysis:
    """Per-category analysis of today's flow against recent history."""

    category: InvestorCategory
    today_net: float
    signal_strength: SignalStrength
    flow_trend: FlowTrend
    confidence: float
    trend_5day: float = 0.0
    avg_5day: float = 0.0
    vs_average: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "today_net": self.today_net,
            "signal_strength": self.signal_strength.value,
            "flow_trend": self.flow_trend.value,
            "confidence": self.confidence,
            "trend_5day": self.trend_5day,
            "avg_5day": self.avg_5day,
            "vs_average": self.vs_average,
        }


@dataclass
class CompositeScoreComponents:
    """Weighted composite score, smart money weighted above context investors."""

    foreign_score: float
    institution_score: float
    retail_score: float
    prop_score: float
    total_score: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "foreign_score": self.foreign_score,
            "institution_score": self.institution_score,
            "retail_score": self.retail_score,
            "prop_score": self.prop_score,
            "total_score": self.total_score,
        }


@dataclass
class SmartMoneySignal:
    """Signal and risk regime derived from the composite score alone."""

    signal: CombinedSignal
    risk_signal: RiskSignal
    scores: CompositeScoreComponents
    confidence: float
    evidence: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signal": self.signal.value,
            "risk_signal": self.risk_signal.value,
            "scores": self.scores.to_dict(),
            "confidence": self.confidence,
            "evidence": list(self.evidence),
        }


@dataclass
class PropTradingAnalysis:
    """Proprietary desk activity and its risk impact."""

    net_flow: float
    activity: str  # "High", "Normal" or "Low"
    impact: str  # "Amplifying Risk", "Reducing Risk" or "Neutral"
    signal: str
    reducing_sell_volume: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "net_flow": self.net_flow,
            "activity": self.activity,
            "impact": self.impact,
            "signal": self.signal,
            "reducing_sell_volume": self.reducing_sell_volume,
        }


@dataclass
class SmartMoneyAnalysis:
    """Complete smart money analysis for one trading day."""

    investors: Dict[InvestorCategory, InvestorAnalysis]
    combined_signal: CombinedSignal
    risk_signal: RiskSignal
    score: float
    confidence: float
    observations: List[str]
    primary_driver: PrimaryDriver
    risk_on_confirmed: bool
    risk_off_confirmed: bool
    scores: Optional[CompositeScoreComponents] = None
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "investors": {k.value: v.to_dict() for k, v in self.investors.items()},
            "combined_signal": self.combined_signal.value,
            "risk_signal": self.risk_signal.value,
            "score": self.score,
            "confidence": self.confidence,
            "observations": list(self.observations),
            "primary_driver": self.primary_driver.value,
            "risk_on_confirmed": self.risk_on_confirmed,
            "risk_off_confirmed": self.risk_off_confirmed,
            "scores": self.scores.to_dict() if self.scores else None,
            "timestamp": self.timestamp,
        }


# =============================================================================
# Trend Results
# =============================================================================


@dataclass
class DailyTrendPoint:
    """One category, one day, with buy/sell shares of that day's turnover."""

    date: str
    timestamp: int
    buy: float
    sell: float
    net: float
    buy_pct: float
    sell_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "timestamp": self.timestamp,
            "buy": self.buy,
            "sell": self.sell,
            "net": self.net,
            "buy_pct": self.buy_pct,
            "sell_pct": self.sell_pct,
        }


@dataclass
class PeakDay:
    date: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "value": self.value}


@dataclass
class AggregatedMetrics:
    """Window statistics for one investor category."""

    total_buy: float
    total_sell: float
    total_net: float
    avg_daily: float
    max_buy: PeakDay
    max_sell: PeakDay
    trend_direction: TrendDirection
    trend_strength: float
    std_dev: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_buy": self.total_buy,
            "total_sell": self.total_sell,
            "total_net": self.total_net,
            "avg_daily": self.avg_daily,
            "max_buy": self.max_buy.to_dict(),
            "max_sell": self.max_sell.to_dict(),
            "trend_direction": self.trend_direction.value,
            "trend_strength": self.trend_strength,
            "std_dev": self.std_dev,
        }


@dataclass
class MovingAverages:
    ma3: Optional[float] = None
    ma5: Optional[float] = None
    ma10: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"ma3": self.ma3, "ma5": self.ma5, "ma10": self.ma10}


@dataclass
class InvestorTrendData:
    """Daily series plus aggregates for one investor category."""

    category: InvestorCategory
    name: str
    daily: List[DailyTrendPoint]
    aggregated: AggregatedMetrics
    moving_averages: MovingAverages

    def nets(self) -> List[float]:
        return [d.net for d in self.daily]

    def to_frame(self) -> pd.DataFrame:
        """Daily points as a DataFrame indexed by date."""
        columns = ["date", "timestamp", "buy", "sell", "net", "buy_pct", "sell_pct"]
        if not self.daily:
            return pd.DataFrame(columns=columns).set_index("date")
        return pd.DataFrame([d.to_dict() for d in self.daily], columns=columns).set_index("date")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "name": self.name,
            "daily": [d.to_dict() for d in self.daily],
            "aggregated": self.aggregated.to_dict(),
            "moving_averages": self.moving_averages.to_dict(),
        }


@dataclass
class CombinedTrendPoint:
    """Smart money versus context investor flows for one day."""

    date: str
    timestamp: int
    smart_money_net: float
    retail_net: float
    prop_net: float
    total_net: float
    signal: CombinedSignal
    risk_signal: RiskSignal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "timestamp": self.timestamp,
            "smart_money_net": self.smart_money_net,
            "retail_net": self.retail_net,
            "prop_net": self.prop_net,
            "total_net": self.total_net,
            "signal": self.signal.value,
            "risk_signal": self.risk_signal.value,
        }


@dataclass
class DetectedPattern:
    """A multi-day behavioral pattern with actionable guidance."""

    type: PatternType
    description: str
    start_date: str
    strength: float
    involved_categories: List[InvestorCategory]
    consecutive_days: int
    total_flow: float
    action: str
    risk_level: str
    insight: str
    participant_roles: Dict[InvestorCategory, ParticipantRole] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "start_date": self.start_date,
            "strength": self.strength,
            "involved_categories": _value(self.involved_categories),
            "consecutive_days": self.consecutive_days,
            "total_flow": self.total_flow,
            "action": self.action,
            "risk_level": self.risk_level,
            "insight": self.insight,
            "participant_roles": _value(self.participant_roles),
        }


@dataclass
class TrendAnalysis:
    """Per-category trends, combined daily trend and detected patterns."""

    investors: Dict[InvestorCategory, InvestorTrendData]
    combined: List[CombinedTrendPoint]
    patterns: List[DetectedPattern]
    primary_driver: PrimaryDriver

    def to_dict(self) -> Dict[str, Any]:
        return {
            "investors": {k.value: v.to_dict() for k, v in self.investors.items()},
            "combined": [p.to_dict() for p in self.combined],
            "patterns": [p.to_dict() for p in self.patterns],
            "primary_driver": self.primary_driver.value,
        }
