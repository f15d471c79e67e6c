"""
Shared test fixtures for SiamFlow test suite.
"""

from datetime import date, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pytest

from siamflow.analytics.models import DailyFlows, FlowRecord, InvestorCategory
from siamflow.analytics.trend_analyzer import convert_to_investor_trend


def make_flow(net: float, turnover: float = 1000.0) -> FlowRecord:
    """FlowRecord with buy/sell consistent with the net flow."""
    buy = turnover + max(net, 0.0)
    sell = buy - net
    return FlowRecord(buy=buy, sell=sell, net=net)


def make_day(
    day: int,
    foreign: float = 0.0,
    institution: float = 0.0,
    retail: float = 0.0,
    prop: float = 0.0,
) -> DailyFlows:
    d = date(2024, 3, 1) + timedelta(days=day)
    return DailyFlows(
        date=d.isoformat(),
        timestamp=day,
        foreign=make_flow(foreign),
        institution=make_flow(institution),
        retail=make_flow(retail),
        prop=make_flow(prop),
    )


def make_series(
    foreign: Sequence[float],
    institution: Optional[Sequence[float]] = None,
    retail: Optional[Sequence[float]] = None,
    prop: Optional[Sequence[float]] = None,
) -> List[DailyFlows]:
    n = len(foreign)
    institution = institution if institution is not None else [0.0] * n
    retail = retail if retail is not None else [0.0] * n
    prop = prop if prop is not None else [0.0] * n
    return [
        make_day(i, foreign[i], institution[i], retail[i], prop[i]) for i in range(n)
    ]


def make_trends(series: Sequence[DailyFlows]):
    """(foreign, institution, retail) trend data for pattern detection."""
    return tuple(
        convert_to_investor_trend(series, c)
        for c in (InvestorCategory.FOREIGN, InvestorCategory.INSTITUTION, InvestorCategory.RETAIL)
    )


@pytest.fixture
def scenario_a_series():
    """Three days of strong, rising foreign and institutional buying."""
    return make_series(foreign=[500, 550, 600], institution=[400, 450, 500])


@pytest.fixture
def scenario_b_day():
    """Foreign Strong Sell against near-flat institutions."""
    return make_day(0, foreign=-600, institution=50)


@pytest.fixture
def random_series():
    """Thirty days of noisy flows."""
    np.random.seed(42)
    n = 30
    return make_series(
        foreign=np.random.normal(0, 800, n).tolist(),
        institution=np.random.normal(0, 500, n).tolist(),
        retail=np.random.normal(0, 900, n).tolist(),
        prop=np.random.normal(0, 300, n).tolist(),
    )


@pytest.fixture
def bullish_overview():
    """Broad advance with more new highs than lows."""
    return {
        "advance_count": 700,
        "decline_count": 200,
        "unchanged_count": 100,
        "new_high_count": 30,
        "new_low_count": 5,
        "timestamp": 1709251200,
    }
