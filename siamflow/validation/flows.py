"""
Flow Series Validation

Converts raw mappings and DataFrames into validated engine inputs.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from siamflow.analytics.breadth import MarketOverview
from siamflow.analytics.models import DailyFlows, FlowRecord, InvestorCategory
from siamflow.core.errors import DataError, ErrorCodes
from siamflow.validation.errors import (
    BreadthValidationError,
    FlowValidationError,
    RangeValidationError,
)
from siamflow.validation.models import DailyFlowsModel, MarketOverviewModel

logger = logging.getLogger(__name__)

FLOW_FIELDS = ("buy", "sell", "net")


def flow_columns() -> List[str]:
    """Expected DataFrame columns, e.g. foreign_buy, foreign_sell, foreign_net."""
    return [f"{c.value}_{f}" for c in InvestorCategory for f in FLOW_FIELDS]


def _issues(error: PydanticValidationError) -> List[dict]:
    return [
        {"loc": ".".join(str(p) for p in e["loc"]), "msg": e["msg"]}
        for e in error.errors(include_url=False)
    ]


def validate_daily_flows(data: Mapping[str, Any], index: Optional[int] = None) -> DailyFlows:
    """
    Validate one day of flows.

    Raises:
        FlowValidationError: If a category is missing or a value is invalid
    """
    try:
        model = DailyFlowsModel.model_validate(data)
    except PydanticValidationError as e:
        issues = _issues(e)
        first = issues[0]["loc"] if issues else None
        date = data.get("date") if isinstance(data, Mapping) else None
        raise FlowValidationError(
            f"Invalid daily flows{f' at index {index}' if index is not None else ''}: "
            f"{e.error_count()} issue(s)",
            field=first,
            index=index,
            date=date,
            issues=issues,
        ) from e
    return model.to_domain()


def validate_flow_series(series: Sequence[Mapping[str, Any]]) -> List[DailyFlows]:
    """
    Validate a chronological list of daily flow mappings.

    Args:
        series: Mappings with date, timestamp and one {buy, sell, net} per
            category

    Returns:
        List of DailyFlows in the same order

    Raises:
        FlowValidationError: On the first invalid day
    """
    days = [validate_daily_flows(item, index=i) for i, item in enumerate(series)]

    dates = [d.date for d in days if d.date]
    if dates != sorted(dates):
        logger.warning("Flow series dates are not in ascending order")

    return days


def validate_market_overview(data: Mapping[str, Any]) -> MarketOverview:
    """
    Validate market overview counts.

    Raises:
        BreadthValidationError: If a count is missing or negative
    """
    try:
        return MarketOverviewModel.model_validate(data).to_domain()
    except PydanticValidationError as e:
        issues = _issues(e)
        raise BreadthValidationError(
            f"Invalid market overview: {e.error_count()} issue(s)",
            field=issues[0]["loc"] if issues else None,
            issues=issues,
        ) from e


def flows_from_frame(df: pd.DataFrame) -> List[DailyFlows]:
    """
    Convert a DataFrame with one row per day into DailyFlows.

    The index (or a `date` column) supplies the date; an optional
    `timestamp` column is carried through.

    Raises:
        DataError: If any category column is missing
        RangeValidationError: If a buy or sell value is negative
    """
    missing = [c for c in flow_columns() if c not in df.columns]
    if missing:
        raise DataError(
            ErrorCodes.DATA_MISSING_COLUMNS,
            detail=", ".join(missing),
            context={"missing": missing},
        )

    dates = df["date"] if "date" in df.columns else df.index
    timestamps = df["timestamp"] if "timestamp" in df.columns else [0] * len(df)

    days = []
    for (_, row), date, ts in zip(df.iterrows(), dates, timestamps):
        records = {
            c: FlowRecord(
                buy=float(row[f"{c.value}_buy"]),
                sell=float(row[f"{c.value}_sell"]),
                net=float(row[f"{c.value}_net"]),
            )
            for c in InvestorCategory
        }
        for c, flow in records.items():
            for name in ("buy", "sell"):
                value = getattr(flow, name)
                if value < 0:
                    raise RangeValidationError(f"{c.value}_{name}", value, min_value=0)
        days.append(
            DailyFlows(
                date=str(date.date()) if isinstance(date, pd.Timestamp) else str(date),
                timestamp=int(ts),
                foreign=records[InvestorCategory.FOREIGN],
                institution=records[InvestorCategory.INSTITUTION],
                retail=records[InvestorCategory.RETAIL],
                prop=records[InvestorCategory.PROP],
            )
        )
    return days


def flows_to_frame(days: Sequence[DailyFlows]) -> pd.DataFrame:
    """Inverse of flows_from_frame: one row per day, indexed by date."""
    rows = []
    for day in days:
        row = {"date": day.date, "timestamp": day.timestamp}
        for c in InvestorCategory:
            flow = day.get(c)
            row[f"{c.value}_buy"] = flow.buy
            row[f"{c.value}_sell"] = flow.sell
            row[f"{c.value}_net"] = flow.net
        rows.append(row)

    return pd.DataFrame(rows, columns=["date", "timestamp"] + flow_columns()).set_index("date")
