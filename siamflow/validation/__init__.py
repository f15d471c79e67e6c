"""
SiamFlow Validation Module

pydantic input models and the validation error hierarchy for daily investor
flows and market overview counts.
"""

from .errors import (
    BreadthValidationError,
    FlowValidationError,
    RangeValidationError,
    ValidationError,
)
from .flows import (
    flow_columns,
    flows_from_frame,
    flows_to_frame,
    validate_daily_flows,
    validate_flow_series,
    validate_market_overview,
)
from .models import DailyFlowsModel, FlowRecordModel, MarketOverviewModel

__all__ = [
    # Errors
    "ValidationError",
    "FlowValidationError",
    "BreadthValidationError",
    "RangeValidationError",
    # Models
    "FlowRecordModel",
    "DailyFlowsModel",
    "MarketOverviewModel",
    # Conversion
    "flow_columns",
    "flows_from_frame",
    "flows_to_frame",
    "validate_daily_flows",
    "validate_flow_series",
    "validate_market_overview",
]
