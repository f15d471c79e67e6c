"""
Smart Money Analyzer

End-to-end daily analysis of SET investor flows. Scores each investor
category against its recent history, builds the composite score and overall
confidence, and derives the combined signal, risk regime, primary driver,
observations and risk confirmations.

Foreign and institutional investors are the smart money; retail investors
and proprietary desks only corroborate.
"""

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from siamflow.analytics.composite import calculate_overall_confidence, calculate_smart_money_score
from siamflow.analytics.investor_scorer import score_investor_signal
from siamflow.analytics.models import (
    DailyFlowsLike,
    InvestorAnalysis,
    InvestorCategory,
    SmartMoneyAnalysis,
    as_daily_flows,
)
from siamflow.analytics.signals import (
    confirm_risk_off,
    confirm_risk_on,
    detect_primary_driver,
    generate_combined_signal,
    generate_risk_on_off_signal,
    generate_smart_money_observations,
)
from siamflow.config.settings import EngineConfig, resolve_config
from siamflow.core.errors import DataError, ErrorCodes
from siamflow.validation.flows import flows_from_frame

logger = logging.getLogger(__name__)


class SmartMoneyAnalyzer:
    """
    Daily smart money analysis for the Thai market.

    Holds an injected EngineConfig and no other state, so one instance can
    serve concurrent callers.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize SmartMoneyAnalyzer.

        Args:
            config: Engine configuration (defaults to the SET calibration)
        """
        self.config = resolve_config(config)
        logger.info("SmartMoneyAnalyzer initialized")

    def score_investors(
        self,
        current: DailyFlowsLike,
        historical: Optional[Sequence[DailyFlowsLike]] = None,
    ) -> Dict[InvestorCategory, InvestorAnalysis]:
        """Score all four investor categories for the current day."""
        today = as_daily_flows(current)
        history = [as_daily_flows(d) for d in historical or []]

        return {
            category: score_investor_signal(
                category,
                today.get(category),
                [day.get(category) for day in history],
                self.config,
            )
            for category in InvestorCategory
        }

    def analyze(
        self,
        current: DailyFlowsLike,
        historical: Optional[Sequence[DailyFlowsLike]] = None,
    ) -> SmartMoneyAnalysis:
        """
        Analyze one trading day.

        Args:
            current: Today's flows for all four categories
            historical: Prior days, chronological (most recent last)

        Returns:
            SmartMoneyAnalysis
        """
        today = as_daily_flows(current)
        if not historical:
            logger.debug("No flow history supplied, trends fall back to today's flow")

        investors = self.score_investors(today, historical)
        foreign = investors[InvestorCategory.FOREIGN]
        institution = investors[InvestorCategory.INSTITUTION]
        retail = investors[InvestorCategory.RETAIL]
        prop = investors[InvestorCategory.PROP]

        scores = calculate_smart_money_score(foreign, institution, retail, prop, self.config)
        confidence = calculate_overall_confidence(foreign, institution, retail, prop, self.config)

        combined = generate_combined_signal(foreign, institution, self.config)
        risk = generate_risk_on_off_signal(combined, foreign, scores, self.config)
        driver = detect_primary_driver(foreign, institution, retail, prop, self.config)
        observations = generate_smart_money_observations(
            foreign, institution, retail, prop, scores, self.config
        )

        logger.info(
            f"Smart money analysis {today.date or '-'}: signal={combined.value} "
            f"risk={risk.value} score={scores.total_score:.1f} confidence={confidence:.0f}"
        )

        return SmartMoneyAnalysis(
            investors=investors,
            combined_signal=combined,
            risk_signal=risk,
            score=scores.total_score,
            confidence=confidence,
            observations=observations,
            primary_driver=driver,
            risk_on_confirmed=confirm_risk_on(scores, self.config),
            risk_off_confirmed=confirm_risk_off(scores, self.config),
            scores=scores,
            timestamp=today.timestamp,
        )

    def analyze_frame(self, df: pd.DataFrame) -> SmartMoneyAnalysis:
        """
        Analyze a DataFrame of daily flows, one row per day.

        Expects `<category>_buy`, `<category>_sell` and `<category>_net`
        columns for every category. Rows are chronological; the last row is
        today and the rows before it are history.

        Raises:
            DataError: If the frame is empty or columns are missing
        """
        if df is None or df.empty:
            raise DataError(ErrorCodes.DATA_EMPTY_SERIES, detail="flow frame has no rows")

        days = flows_from_frame(df)
        return self.analyze(days[-1], days[:-1])

    def analyze_series(self, series: Sequence[DailyFlowsLike]) -> List[SmartMoneyAnalysis]:
        """Analyze every day of a chronological series against its own past."""
        days = [as_daily_flows(d) for d in series]
        return [self.analyze(day, days[:i]) for i, day in enumerate(days)]

    def health_check(self) -> bool:
        """Check if smart money analyzer is operational."""
        return True
