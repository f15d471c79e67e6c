"""
Smart Money Trend Analyzer

Aggregates historical investor flow into per-category trend data: daily
buy/sell shares, totals, moving averages, an OLS trend direction with R^2
strength, and volatility. Also builds the combined smart money trend used by
charts and runs pattern detection over the same window.

All series are chronological: oldest first, most recent last.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from siamflow.analytics.models import (
    AggregatedMetrics,
    CombinedSignal,
    CombinedTrendPoint,
    DailyFlowsLike,
    DailyTrendPoint,
    InvestorCategory,
    InvestorTrendData,
    MovingAverages,
    PeakDay,
    PrimaryDriver,
    RiskSignal,
    TrendAnalysis,
    TrendDirection,
    as_daily_flows,
)
from siamflow.analytics.patterns import detect_patterns
from siamflow.config.settings import EngineConfig, resolve_config

logger = logging.getLogger(__name__)

CATEGORY_NAMES: Dict[InvestorCategory, str] = {
    InvestorCategory.FOREIGN: "นักลงทุนต่างประเทศ",
    InvestorCategory.INSTITUTION: "สถาบันในประเทศ",
    InvestorCategory.RETAIL: "นักลงทุนทั่วไปในประเทศ",
    InvestorCategory.PROP: "บัญชีบริษัทหลักทรัพย์",
}


# =============================================================================
# Regression Helpers
# =============================================================================


def linear_fit(values: Sequence[float]) -> Tuple[float, float, Optional[float]]:
    """
    Ordinary least squares fit of values against their index.

    Returns:
        (slope, intercept, r_squared). r_squared is None when the values have
        zero variance; slope is 0 with fewer than two points.
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    if n == 0:
        return 0.0, 0.0, None
    if n < 2:
        return 0.0, float(y[0]), None

    x = np.arange(n, dtype=float)
    x_dev = x - x.mean()
    y_dev = y - y.mean()

    ss_x = float(np.sum(x_dev**2))
    ss_tot = float(np.sum(y_dev**2))
    if ss_x == 0:
        return 0.0, float(y.mean()), None

    slope = float(np.sum(x_dev * y_dev) / ss_x)
    intercept = float(y.mean() - slope * x.mean())

    if ss_tot == 0:
        return slope, intercept, None

    residuals = y - (slope * x + intercept)
    r_squared = 1.0 - float(np.sum(residuals**2)) / ss_tot
    return slope, intercept, r_squared


def calculate_trend_direction(
    nets: Sequence[float], config: Optional[EngineConfig] = None
) -> TrendDirection:
    """Trend direction from the OLS slope of net flow per day."""
    if len(nets) < 2:
        return TrendDirection.SIDEWAYS

    threshold = resolve_config(config).trend.slope_threshold
    slope, _, _ = linear_fit(nets)

    if slope > threshold:
        return TrendDirection.UP
    if slope < -threshold:
        return TrendDirection.DOWN
    return TrendDirection.SIDEWAYS


def calculate_trend_strength(
    nets: Sequence[float],
    direction: Optional[TrendDirection] = None,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Trend strength (0-100) as the R^2 of the OLS fit.

    A clean trend scores high, an equally sloped but noisy one scores low.
    Returns the neutral 50 for fewer than three points, a sideways trend, or
    a series with no variance.

    Args:
        nets: Daily net flows (chronological)
        direction: Precomputed direction, derived from nets when omitted
        config: Engine configuration
    """
    t = resolve_config(config).trend
    if len(nets) < t.min_points_for_strength:
        return t.neutral_strength

    if direction is None:
        direction = calculate_trend_direction(nets, config)
    if direction == TrendDirection.SIDEWAYS:
        return t.neutral_strength

    _, _, r_squared = linear_fit(nets)
    if r_squared is None:
        return t.neutral_strength

    return float(round(min(100.0, max(0.0, r_squared * 100))))


def calculate_moving_average(nets: Sequence[float], period: int) -> Optional[float]:
    """Simple moving average of the last `period` values, None if too short."""
    if period <= 0 or len(nets) < period:
        return None
    return float(np.mean(np.asarray(nets[-period:], dtype=float)))


def calculate_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation, 0 for an empty series."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


# =============================================================================
# Aggregation
# =============================================================================


def calculate_aggregated_metrics(
    daily: Sequence[DailyTrendPoint], config: Optional[EngineConfig] = None
) -> AggregatedMetrics:
    """
    Aggregate statistics over a daily window.

    Args:
        daily: Daily trend points (chronological)
        config: Engine configuration

    Returns:
        AggregatedMetrics; an empty window yields zeros and a sideways trend
    """
    if not daily:
        return AggregatedMetrics(
            total_buy=0.0,
            total_sell=0.0,
            total_net=0.0,
            avg_daily=0.0,
            max_buy=PeakDay(date="", value=0.0),
            max_sell=PeakDay(date="", value=0.0),
            trend_direction=TrendDirection.SIDEWAYS,
            trend_strength=0.0,
            std_dev=0.0,
        )

    buys = np.array([d.buy for d in daily], dtype=float)
    sells = np.array([d.sell for d in daily], dtype=float)
    nets = [d.net for d in daily]

    total_net = float(np.sum(nets))

    # argmax returns the first occurrence on ties
    max_buy_idx = int(np.argmax(buys))
    max_sell_idx = int(np.argmax(sells))

    direction = calculate_trend_direction(nets, config)

    return AggregatedMetrics(
        total_buy=float(buys.sum()),
        total_sell=float(sells.sum()),
        total_net=total_net,
        avg_daily=total_net / len(daily),
        max_buy=PeakDay(date=daily[max_buy_idx].date, value=float(buys[max_buy_idx])),
        max_sell=PeakDay(date=daily[max_sell_idx].date, value=float(sells[max_sell_idx])),
        trend_direction=direction,
        trend_strength=calculate_trend_strength(nets, direction, config),
        std_dev=calculate_std_dev(nets),
    )


def convert_to_investor_trend(
    series: Sequence[DailyFlowsLike],
    category: InvestorCategory,
    config: Optional[EngineConfig] = None,
) -> InvestorTrendData:
    """
    Build trend data for one investor category.

    Args:
        series: Daily flows for all categories (chronological)
        category: Category to extract
        config: Engine configuration

    Returns:
        InvestorTrendData with daily points, aggregates and 3/5/10-day SMAs
    """
    cfg = resolve_config(config)

    daily: List[DailyTrendPoint] = []
    for item in series:
        day = as_daily_flows(item)
        flow = day.get(category)
        total = flow.buy + flow.sell
        buy_pct = flow.buy / total * 100 if total > 0 else 50.0
        sell_pct = flow.sell / total * 100 if total > 0 else 50.0

        daily.append(
            DailyTrendPoint(
                date=day.date,
                timestamp=day.timestamp,
                buy=flow.buy,
                sell=flow.sell,
                net=flow.net,
                buy_pct=buy_pct,
                sell_pct=sell_pct,
            )
        )

    nets = [d.net for d in daily]
    short, medium, long = cfg.trend.moving_average_periods

    return InvestorTrendData(
        category=category,
        name=CATEGORY_NAMES[category],
        daily=daily,
        aggregated=calculate_aggregated_metrics(daily, cfg),
        moving_averages=MovingAverages(
            ma3=calculate_moving_average(nets, short),
            ma5=calculate_moving_average(nets, medium),
            ma10=calculate_moving_average(nets, long),
        ),
    )


# =============================================================================
# Combined Trend
# =============================================================================


def _daily_combined_signal(smart_money_net: float, config: EngineConfig) -> CombinedSignal:
    s = config.signals
    if smart_money_net >= s.combined_strong:
        return CombinedSignal.STRONG_BUY
    if smart_money_net >= s.combined:
        return CombinedSignal.BUY
    if smart_money_net <= -s.combined_strong:
        return CombinedSignal.STRONG_SELL
    if smart_money_net <= -s.combined:
        return CombinedSignal.SELL
    return CombinedSignal.NEUTRAL


def _daily_risk_signal(smart_money_net: float, config: EngineConfig) -> RiskSignal:
    s = config.signals
    if smart_money_net >= s.trend_risk_on_flow:
        return RiskSignal.RISK_ON
    if smart_money_net >= s.trend_risk_on_mild_flow:
        return RiskSignal.RISK_ON_MILD
    if smart_money_net <= -s.trend_risk_on_flow:
        return RiskSignal.RISK_OFF
    if smart_money_net <= -s.trend_risk_on_mild_flow:
        return RiskSignal.RISK_OFF_MILD
    return RiskSignal.NEUTRAL


def generate_combined_trend(
    series: Sequence[DailyFlowsLike], config: Optional[EngineConfig] = None
) -> List[CombinedTrendPoint]:
    """Per-day smart money versus retail/prop flow with a daily signal."""
    cfg = resolve_config(config)
    points = []

    for item in series:
        day = as_daily_flows(item)
        smart_money_net = day.smart_money_net
        points.append(
            CombinedTrendPoint(
                date=day.date,
                timestamp=day.timestamp,
                smart_money_net=smart_money_net,
                retail_net=day.retail.net,
                prop_net=day.prop.net,
                total_net=smart_money_net + day.retail.net + day.prop.net,
                signal=_daily_combined_signal(smart_money_net, cfg),
                risk_signal=_daily_risk_signal(smart_money_net, cfg),
            )
        )

    return points


def detect_trend_primary_driver(
    foreign: AggregatedMetrics,
    institution: AggregatedMetrics,
    retail: AggregatedMetrics,
    prop: AggregatedMetrics,
    config: Optional[EngineConfig] = None,
) -> PrimaryDriver:
    """Which category drove the window, by absolute total net flow."""
    t = resolve_config(config).trend

    abs_foreign = abs(foreign.total_net)
    abs_institution = abs(institution.total_net)
    abs_retail = abs(retail.total_net)
    abs_prop = abs(prop.total_net)

    max_flow = max(abs_foreign, abs_institution, abs_retail, abs_prop)
    if max_flow < t.driver_min_flow:
        return PrimaryDriver.NONE

    if abs_foreign > abs_institution * t.driver_dominance_ratio:
        return PrimaryDriver.FOREIGN
    if abs_institution > abs_foreign * t.driver_dominance_ratio:
        return PrimaryDriver.INSTITUTION

    if abs_retail > max_flow * t.retail_share_of_max:
        return PrimaryDriver.RETAIL
    if abs_prop > max_flow * t.prop_share_of_max:
        return PrimaryDriver.PROP

    return PrimaryDriver.FOREIGN if abs_foreign >= abs_institution else PrimaryDriver.INSTITUTION


# =============================================================================
# Trend Analyzer
# =============================================================================


class TrendAnalyzer:
    """
    Historical flow analysis across all four investor categories.

    Builds per-category trend data, the combined daily trend, detected
    patterns and the window's primary driver in one pass.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize TrendAnalyzer.

        Args:
            config: Engine configuration (defaults to the SET calibration)
        """
        self.config = resolve_config(config)
        logger.info("TrendAnalyzer initialized")

    def analyze(self, series: Sequence[DailyFlowsLike]) -> TrendAnalysis:
        """
        Analyze a chronological window of daily flows.

        Args:
            series: Daily flows, oldest first

        Returns:
            TrendAnalysis
        """
        days = [as_daily_flows(d) for d in series]
        if not days:
            logger.warning("Trend analysis requested with no daily flows")

        investors = {
            category: convert_to_investor_trend(days, category, self.config)
            for category in InvestorCategory
        }

        patterns = detect_patterns(
            investors[InvestorCategory.FOREIGN],
            investors[InvestorCategory.INSTITUTION],
            investors[InvestorCategory.RETAIL],
            self.config,
        )

        driver = detect_trend_primary_driver(
            investors[InvestorCategory.FOREIGN].aggregated,
            investors[InvestorCategory.INSTITUTION].aggregated,
            investors[InvestorCategory.RETAIL].aggregated,
            investors[InvestorCategory.PROP].aggregated,
            self.config,
        )

        logger.info(
            f"Trend analysis complete: {len(days)} days, {len(patterns)} patterns, "
            f"driver={driver.value}"
        )

        return TrendAnalysis(
            investors=investors,
            combined=generate_combined_trend(days, self.config),
            patterns=patterns,
            primary_driver=driver,
        )

    def health_check(self) -> bool:
        return True
