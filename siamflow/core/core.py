"""
SiamFlow Core Module

Main SiamFlow class that wires one configuration into every analyzer.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import pandas as pd

from siamflow.analytics.breadth import (
    BreadthAnalysis,
    BreadthInsights,
    MarketOverviewLike,
    analyze_market_breadth,
    generate_breadth_insights,
)
from siamflow.analytics.models import DailyFlowsLike, SmartMoneyAnalysis, TrendAnalysis
from siamflow.analytics.smart_money import SmartMoneyAnalyzer
from siamflow.analytics.trend_analyzer import TrendAnalyzer
from siamflow.config.logging import analysis_logger, log_performance
from siamflow.config.settings import EngineConfig, load_config

logger = logging.getLogger(__name__)


def _smart_money_event(result, duration_ms, facade, current, historical=None) -> None:
    date = current.date if hasattr(current, "date") else str(current.get("date", ""))
    analysis_logger.log_smart_money(
        date,
        result.combined_signal.value,
        result.risk_signal.value,
        result.score,
        result.confidence,
        duration_ms,
    )


def _trend_event(result, duration_ms, facade, series) -> None:
    analysis_logger.log_trend(
        len(series), len(result.patterns), result.primary_driver.value, duration_ms
    )


def _breadth_event(result, duration_ms, facade, overview, historical=None) -> None:
    analysis_logger.log_breadth(
        result.status.value, result.metrics.ad_ratio, result.confidence, duration_ms
    )


class SiamFlow:
    """
    Entry point to the smart money and market breadth engines.
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[EngineConfig] = None,
    ):
        """
        Initialize SiamFlow with configuration.

        Args:
            config_path: YAML configuration file; falls back to the
                SIAMFLOW_CONFIG environment variable, then to defaults
            config: Ready-made configuration, takes precedence over config_path
        """
        self.config = config if config is not None else load_config(config_path)
        self.smart_money = SmartMoneyAnalyzer(self.config)
        self.trends = TrendAnalyzer(self.config)
        logger.info("SiamFlow initialized successfully")

    @log_performance(on_complete=_smart_money_event)
    def analyze_smart_money(
        self,
        current: DailyFlowsLike,
        historical: Optional[Sequence[DailyFlowsLike]] = None,
    ) -> SmartMoneyAnalysis:
        """
        Analyze one trading day of investor flows.

        Args:
            current: Today's flows for all four categories
            historical: Prior days, chronological

        Returns:
            SmartMoneyAnalysis
        """
        return self.smart_money.analyze(current, historical)

    def analyze_smart_money_frame(self, df: pd.DataFrame) -> SmartMoneyAnalysis:
        """Analyze the last row of a flow DataFrame against the rows before it."""
        return self.smart_money.analyze_frame(df)

    @log_performance(on_complete=_trend_event)
    def analyze_trend(self, series: Sequence[DailyFlowsLike]) -> TrendAnalysis:
        """
        Analyze a chronological window of daily flows.

        Returns:
            TrendAnalysis with per-category trends, combined trend and patterns
        """
        return self.trends.analyze(series)

    @log_performance(on_complete=_breadth_event)
    def analyze_breadth(
        self,
        overview: MarketOverviewLike,
        historical: Optional[Sequence[MarketOverviewLike]] = None,
    ) -> BreadthAnalysis:
        """Analyze market breadth for one session."""
        return analyze_market_breadth(overview, historical, self.config)

    def breadth_insights(self, analysis: BreadthAnalysis) -> BreadthInsights:
        return generate_breadth_insights(analysis, self.config)

    def health_check(self) -> Dict[str, Union[bool, str]]:
        """
        Check health of all SiamFlow components.

        Returns:
            Dictionary with health status of each component
        """
        smart_money_ok = self.smart_money.health_check()
        trends_ok = self.trends.health_check()
        return {
            "core": True,
            "smart_money": smart_money_ok,
            "trends": trends_ok,
            "status": "operational" if smart_money_ok and trends_ok else "degraded",
        }
