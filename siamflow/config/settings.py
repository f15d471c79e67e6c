"""
SiamFlow Engine Configuration

Named thresholds, weights and multipliers for the smart money and market
breadth engines. Values are in millions of THB unless stated otherwise.
A single EngineConfig is injected into every analyzer so the engine can be
recalibrated per market without code edits.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from siamflow.core.errors import ConfigurationError, ErrorCodes

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SIAMFLOW_CONFIG"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Smart Money Thresholds
# =============================================================================


class FlowThresholds(_FrozenModel):
    """Per-category signal strength and flow trend thresholds."""

    strong_buy: float = Field(default=500.0, gt=0, description="Net flow at or above is Strong Buy")
    buy: float = Field(default=100.0, gt=0, description="Net flow at or above is Buy")
    sell: float = Field(default=-100.0, lt=0, description="Net flow at or below is Sell")
    strong_sell: float = Field(default=-500.0, lt=0, description="Net flow at or below is Strong Sell")

    # Change versus historical average
    accelerating_change: float = Field(default=100.0, ge=0)
    stable_change: float = Field(default=20.0, ge=0)
    neutral_reversal_change: float = Field(default=50.0, ge=0)

    @model_validator(mode="after")
    def check_ordering(self) -> "FlowThresholds":
        if not (self.strong_sell < self.sell < 0 < self.buy < self.strong_buy):
            raise ValueError("flow thresholds must satisfy strong_sell < sell < 0 < buy < strong_buy")
        if self.stable_change > self.accelerating_change:
            raise ValueError("stable_change must not exceed accelerating_change")
        return self


class ScoringConfig(_FrozenModel):
    """Weights for investor confidence and composite scoring."""

    # Investor confidence (0-100)
    base_confidence: float = Field(default=50.0, ge=0, le=100)
    strong_tier_confidence: float = 25.0
    tier_confidence: float = 15.0
    accelerating_confidence: float = 15.0
    stable_confidence: float = 10.0
    very_large_flow: float = Field(default=1000.0, gt=0)
    very_large_flow_confidence: float = 10.0
    large_flow: float = Field(default=500.0, gt=0)
    large_flow_confidence: float = 5.0

    # Individual score (0-50)
    base_score: float = Field(default=25.0, ge=0)
    max_score_per_investor: float = Field(default=50.0, gt=0)
    max_context_score: float = Field(default=25.0, gt=0)
    strong_tier_points: float = 20.0
    tier_points: float = 10.0
    accelerating_points: float = 5.0
    trend_5day_threshold: float = Field(default=200.0, ge=0)
    trend_5day_points: float = 3.0
    history_window: int = Field(default=5, ge=1)

    # Composite weights
    foreign_weight_multiplier: float = Field(default=1.2, gt=0)
    context_investor_weight: float = Field(default=0.25, ge=0)
    smart_money_share: float = Field(default=0.8, ge=0, le=1)
    context_share: float = Field(default=0.2, ge=0, le=1)

    # Overall confidence
    agreement_boost: float = 10.0
    disagreement_penalty: float = 15.0


class SignalThresholds(_FrozenModel):
    """Combined signal, risk regime and observation thresholds."""

    # Combined foreign + institution net flow. The strong tier sits above the
    # per-category strong threshold on purpose.
    combined_strong: float = Field(default=600.0, gt=0)
    combined: float = Field(default=100.0, gt=0)

    # Risk-on/off table on the total score
    risk_on_score: float = 70.0
    risk_on_mild_score: float = 60.0
    risk_off_score: float = 30.0
    risk_off_mild_score: float = 40.0

    # Score-only smart money signal
    score_strong_buy: float = 70.0
    score_buy: float = 55.0
    score_strong_sell: float = 30.0
    score_sell: float = 45.0

    # Evidence bands for per-category scores (0-50)
    evidence_strong_buying: float = 35.0
    evidence_buying: float = 25.0
    evidence_strong_selling: float = 15.0
    evidence_selling: float = 20.0
    max_evidence: int = Field(default=3, ge=1)

    # Primary driver
    driver_dominance_ratio: float = Field(default=1.5, gt=1)
    driver_min_flow: float = Field(default=500.0, ge=0)

    # Observations
    combined_observation_flow: float = 500.0
    retail_observation_flow: float = 500.0
    prop_light_sell_flow: float = Field(default=200.0, gt=0)
    max_observations: int = Field(default=4, ge=1)

    # Risk confirmation
    confirm_risk_on_score: float = 60.0
    confirm_risk_off_score: float = 40.0

    # Prop desk activity
    prop_high_activity: float = 1000.0
    prop_normal_activity: float = 300.0

    # Daily combined trend risk bands (smart money net)
    trend_risk_on_flow: float = 1000.0
    trend_risk_on_mild_flow: float = 300.0


class PatternConfig(_FrozenModel):
    """Run-length, magnitude gates and strength weights for pattern detection."""

    accumulation_min_days: int = Field(default=3, ge=1)
    distribution_min_days: int = Field(default=3, ge=1)
    divergence_min_days: int = Field(default=2, ge=1)
    fomo_min_days: int = Field(default=2, ge=1)
    panic_min_days: int = Field(default=2, ge=1)

    divergence_flow: float = Field(default=100.0, ge=0)
    retail_heavy_flow: float = Field(default=500.0, ge=0)

    run_weight: float = 15.0
    run_flow_scale: float = Field(default=100.0, gt=0)
    count_weight: float = 20.0
    divergence_flow_scale: float = Field(default=50.0, gt=0)
    retail_flow_scale: float = Field(default=100.0, gt=0)

    smart_money_role_threshold: float = Field(default=200.0, ge=0)
    divergence_role_threshold: float = Field(default=150.0, ge=0)
    retail_role_threshold: float = Field(default=200.0, ge=0)
    driving_share: float = Field(default=0.5, ge=0, le=1)

    high_strength: float = 70.0
    low_strength: float = 40.0


class TrendConfig(_FrozenModel):
    """OLS trend classification and moving average windows."""

    slope_threshold: float = Field(default=50.0, ge=0)
    min_points_for_strength: int = Field(default=3, ge=2)
    neutral_strength: float = 50.0
    moving_average_periods: Tuple[int, int, int] = (3, 5, 10)
    momentum_scale: float = 200.0

    # Trend-level primary driver
    driver_min_flow: float = 500.0
    driver_dominance_ratio: float = 1.5
    retail_share_of_max: float = 0.4
    prop_share_of_max: float = 0.3


class BreadthThresholds(_FrozenModel):
    """Market breadth status, volatility and confidence thresholds."""

    strongly_bullish_ad_ratio: float = 2.5
    strongly_bullish_advance_pct: float = 70.0
    bullish_ad_ratio: float = 1.5
    bullish_advance_pct: float = 55.0
    bearish_ad_ratio: float = 0.8
    bearish_advance_pct: float = 45.0
    strongly_bearish_ad_ratio: float = 0.5
    strongly_bearish_advance_pct: float = 30.0

    aggressive_new_high_low_sum: int = 50
    aggressive_ad_swing: float = Field(default=2.0, gt=1)
    calm_new_high_low_sum: int = 10
    calm_ad_ratio_range: Tuple[float, float] = (0.8, 1.2)

    no_declines_sentinel: float = 999.0

    trend_change: float = 0.2
    history_trend_change: float = 0.3
    history_trend_periods: int = 5
    strong_avg_change: float = 0.2
    moderate_avg_change: float = 0.1

    base_confidence: float = 50.0
    large_sample: int = 500
    large_sample_confidence: float = 20.0
    medium_sample: int = 300
    medium_sample_confidence: float = 10.0
    extreme_ad_ratio_range: Tuple[float, float] = (0.33, 3.0)
    extreme_ad_confidence: float = 15.0
    wide_ad_ratio_range: Tuple[float, float] = (0.5, 2.0)
    wide_ad_confidence: float = 10.0
    high_low_data_confidence: float = 10.0

    net_new_highs_notable: int = 10
    max_observations: int = Field(default=4, ge=1)
    max_secondary_insights: int = Field(default=3, ge=1)


class MarketContext(_FrozenModel):
    """Thai market (SET) structural context."""

    foreign_market_cap_percent: float = Field(default=38.0, ge=0, le=100)
    foreign_impact_factor: float = Field(default=1.5, gt=0)
    prop_trading_significance: str = Field(default="high", pattern="^(high|medium|low)$")
    strong_buy_range: Tuple[float, float] = (500.0, 2000.0)
    strong_sell_range: Tuple[float, float] = (-2000.0, -500.0)


class EngineConfig(_FrozenModel):
    """Complete engine configuration."""

    flow: FlowThresholds = Field(default_factory=FlowThresholds)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    signals: SignalThresholds = Field(default_factory=SignalThresholds)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    breadth: BreadthThresholds = Field(default_factory=BreadthThresholds)
    market: MarketContext = Field(default_factory=MarketContext)


DEFAULT_CONFIG = EngineConfig()


def resolve_config(config: Optional[EngineConfig]) -> EngineConfig:
    """Return the given config or the module default."""
    return config if config is not None else DEFAULT_CONFIG


def config_from_dict(data: Optional[Dict[str, Any]]) -> EngineConfig:
    """
    Build an EngineConfig from a (partial) nested mapping.

    Missing sections and keys keep their defaults.

    Raises:
        ConfigurationError: If a value fails validation
    """
    try:
        return EngineConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(
            ErrorCodes.CONFIG_INVALID,
            detail=f"{e.error_count()} invalid setting(s)",
            original_error=e,
            context={"errors": e.errors(include_url=False)},
        ) from e


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        path: YAML file path. Falls back to the SIAMFLOW_CONFIG environment
            variable, then to the built-in defaults.

    Returns:
        Validated EngineConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
        if not path:
            logger.debug("No configuration file given, using defaults")
            return DEFAULT_CONFIG

    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            ErrorCodes.CONFIG_NOT_FOUND,
            detail=str(config_path),
        )

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            ErrorCodes.CONFIG_INVALID,
            detail=f"{config_path}: {e}",
            original_error=e,
        ) from e

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(
            ErrorCodes.CONFIG_INVALID,
            detail=f"{config_path}: top level must be a mapping",
        )

    config = config_from_dict(data)
    logger.info(f"Loaded engine configuration from {config_path}")
    return config
