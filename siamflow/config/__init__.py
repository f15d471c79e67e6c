# SiamFlow Configuration Module

from siamflow.config.settings import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG,
    BreadthThresholds,
    EngineConfig,
    FlowThresholds,
    MarketContext,
    PatternConfig,
    ScoringConfig,
    SignalThresholds,
    TrendConfig,
    config_from_dict,
    load_config,
    resolve_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "BreadthThresholds",
    "EngineConfig",
    "FlowThresholds",
    "MarketContext",
    "PatternConfig",
    "ScoringConfig",
    "SignalThresholds",
    "TrendConfig",
    "config_from_dict",
    "load_config",
    "resolve_config",
]
