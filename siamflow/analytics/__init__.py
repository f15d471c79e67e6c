# SiamFlow Analytics Module

from siamflow.analytics.models import (
    AggregatedMetrics,
    CombinedSignal,
    CombinedTrendPoint,
    CompositeScoreComponents,
    DailyFlows,
    DailyTrendPoint,
    DetectedPattern,
    FlowRecord,
    FlowTrend,
    InvestorAnalysis,
    InvestorCategory,
    InvestorTrendData,
    MovingAverages,
    ParticipantRole,
    PatternType,
    PeakDay,
    PrimaryDriver,
    PropTradingAnalysis,
    RiskSignal,
    SignalStrength,
    SmartMoneyAnalysis,
    SmartMoneySignal,
    TrendAnalysis,
    TrendDirection,
)
from siamflow.analytics.flow_classifier import classify_signal_strength, detect_flow_trend
from siamflow.analytics.investor_scorer import calculate_investor_confidence, score_investor_signal
from siamflow.analytics.composite import (
    apply_market_context,
    calculate_individual_score,
    calculate_momentum_strength,
    calculate_overall_confidence,
    calculate_smart_money_score,
)
from siamflow.analytics.signals import (
    analyze_prop_trading,
    confirm_risk_off,
    confirm_risk_on,
    detect_primary_driver,
    generate_combined_signal,
    generate_risk_on_off_signal,
    generate_smart_money_observations,
    generate_smart_money_signal,
)
from siamflow.analytics.trend_analyzer import (
    TrendAnalyzer,
    calculate_aggregated_metrics,
    calculate_moving_average,
    calculate_std_dev,
    calculate_trend_direction,
    calculate_trend_strength,
    convert_to_investor_trend,
    detect_trend_primary_driver,
    generate_combined_trend,
)
from siamflow.analytics.patterns import PatternRule, detect_patterns, get_participant_role
from siamflow.analytics.smart_money import SmartMoneyAnalyzer

# Market breadth
from siamflow.analytics.breadth import (
    BreadthAnalysis,
    BreadthInsight,
    BreadthInsights,
    BreadthMetrics,
    BreadthResult,
    BreadthStatus,
    BreadthTrend,
    BreadthTrendStrength,
    BreadthTrendSummary,
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

__all__ = [
    # Analyzers
    "SmartMoneyAnalyzer",
    "TrendAnalyzer",
    # Data model
    "AggregatedMetrics",
    "CombinedSignal",
    "CombinedTrendPoint",
    "CompositeScoreComponents",
    "DailyFlows",
    "DailyTrendPoint",
    "DetectedPattern",
    "FlowRecord",
    "FlowTrend",
    "InvestorAnalysis",
    "InvestorCategory",
    "InvestorTrendData",
    "MovingAverages",
    "ParticipantRole",
    "PatternType",
    "PeakDay",
    "PrimaryDriver",
    "PropTradingAnalysis",
    "RiskSignal",
    "SignalStrength",
    "SmartMoneyAnalysis",
    "SmartMoneySignal",
    "TrendAnalysis",
    "TrendDirection",
    # Classification and scoring
    "classify_signal_strength",
    "detect_flow_trend",
    "score_investor_signal",
    "calculate_investor_confidence",
    "calculate_individual_score",
    "calculate_smart_money_score",
    "calculate_overall_confidence",
    "calculate_momentum_strength",
    "apply_market_context",
    # Signals
    "generate_combined_signal",
    "generate_risk_on_off_signal",
    "generate_smart_money_signal",
    "generate_smart_money_observations",
    "detect_primary_driver",
    "confirm_risk_on",
    "confirm_risk_off",
    "analyze_prop_trading",
    # Trends and patterns
    "convert_to_investor_trend",
    "calculate_aggregated_metrics",
    "calculate_trend_direction",
    "calculate_trend_strength",
    "calculate_moving_average",
    "calculate_std_dev",
    "generate_combined_trend",
    "detect_trend_primary_driver",
    "detect_patterns",
    "get_participant_role",
    "PatternRule",
    # Market breadth
    "BreadthAnalysis",
    "BreadthInsight",
    "BreadthInsights",
    "BreadthMetrics",
    "BreadthResult",
    "BreadthStatus",
    "BreadthTrend",
    "BreadthTrendStrength",
    "BreadthTrendSummary",
    "MarketOverview",
    "VolatilityLevel",
    "calculate_breadth_metrics",
    "calculate_breadth_status",
    "calculate_volatility_level",
    "calculate_breadth_confidence",
    "calculate_breadth_trend",
    "calculate_breadth",
    "analyze_market_breadth",
    "generate_breadth_insights",
    "detect_breadth_trend",
]
