"""
Pydantic Validation Models

Input models for daily investor flows and market overview counts. Each model
converts to the engine's plain dataclass via `to_domain()`.
"""

import math
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from siamflow.analytics.breadth import MarketOverview
from siamflow.analytics.models import DailyFlows, FlowRecord

# Buy/sell turnover in million THB
TurnoverField = Annotated[
    float,
    Field(ge=0, le=1_000_000, description="Turnover in million THB"),
]

CountField = Annotated[
    int,
    Field(ge=0, le=100_000, description="Number of listed issues"),
]


class FlowRecordModel(BaseModel):
    """One investor category, one trading day."""

    model_config = ConfigDict(extra="ignore")

    buy: TurnoverField = 0.0
    sell: TurnoverField = 0.0
    net: float

    @field_validator("buy", "sell", "net")
    @classmethod
    def check_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("flow values must be finite")
        return v

    def to_domain(self) -> FlowRecord:
        return FlowRecord(buy=self.buy, sell=self.sell, net=self.net)


class DailyFlowsModel(BaseModel):
    """All four investor categories for one trading day."""

    model_config = ConfigDict(extra="ignore")

    date: str = ""
    timestamp: int = Field(default=0, ge=0)
    foreign: FlowRecordModel
    institution: FlowRecordModel
    retail: FlowRecordModel
    prop: FlowRecordModel

    def to_domain(self) -> DailyFlows:
        return DailyFlows(
            date=self.date,
            timestamp=self.timestamp,
            foreign=self.foreign.to_domain(),
            institution=self.institution.to_domain(),
            retail=self.retail.to_domain(),
            prop=self.prop.to_domain(),
        )


class MarketOverviewModel(BaseModel):
    """Market-wide advance/decline and new high/low counts for one session."""

    model_config = ConfigDict(extra="ignore")

    advance_count: CountField
    decline_count: CountField
    unchanged_count: CountField = 0
    new_high_count: CountField = 0
    new_low_count: CountField = 0
    timestamp: int = Field(default=0, ge=0)

    def to_domain(self) -> MarketOverview:
        return MarketOverview(
            advance_count=self.advance_count,
            decline_count=self.decline_count,
            unchanged_count=self.unchanged_count,
            new_high_count=self.new_high_count,
            new_low_count=self.new_low_count,
            timestamp=self.timestamp,
        )
