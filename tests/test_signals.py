"""
Tests for combined signals, risk regime, primary driver, observations and
prop desk analysis.
"""

import pytest

from siamflow.analytics.composite import calculate_overall_confidence
from siamflow.analytics.investor_scorer import score_investor_signal
from siamflow.analytics.models import (
    CombinedSignal,
    CompositeScoreComponents,
    InvestorCategory,
    PrimaryDriver,
    RiskSignal,
    SignalStrength,
)
from siamflow.analytics.signals import (
    analyze_prop_trading,
    confirm_risk_off,
    confirm_risk_on,
    detect_primary_driver,
    generate_combined_signal,
    generate_risk_on_off_signal,
    generate_signal_evidence,
    generate_smart_money_observations,
    generate_smart_money_signal,
)
from siamflow.config.settings import EngineConfig, SignalThresholds


def scored(category, net, history=None):
    return score_investor_signal(
        category, {"net": net}, [{"net": h} for h in history] if history else None
    )


def pair(foreign_net, institution_net):
    return (
        scored(InvestorCategory.FOREIGN, foreign_net),
        scored(InvestorCategory.INSTITUTION, institution_net),
    )


def total(score):
    return CompositeScoreComponents(
        foreign_score=25, institution_score=25, retail_score=0, prop_score=0, total_score=score
    )


class TestCombinedSignal:
    """Tests for generate_combined_signal."""

    @pytest.mark.parametrize(
        "foreign,institution,expected",
        [
            (600, 500, CombinedSignal.STRONG_BUY),
            (300, 300, CombinedSignal.STRONG_BUY),
            (50, 60, CombinedSignal.BUY),
            (-300, -350, CombinedSignal.STRONG_SELL),
            (-60, -50, CombinedSignal.SELL),
            (80, -70, CombinedSignal.NEUTRAL),
        ],
    )
    def test_magnitude_bands(self, foreign, institution, expected):
        """Test the combined net flow bands."""
        assert generate_combined_signal(*pair(foreign, institution)) == expected

    def test_category_strong_threshold_differs(self):
        """Test that 550 combined is only Buy although 550 is a per-category Strong Buy."""
        assert generate_combined_signal(*pair(550, 0)) == CombinedSignal.BUY

    def test_scenario_b_combined_signal(self, scenario_b_day):
        """Test that foreign Strong Sell against flat institutions is a combined Sell."""
        foreign = score_investor_signal(InvestorCategory.FOREIGN, scenario_b_day.foreign)
        institution = score_investor_signal(
            InvestorCategory.INSTITUTION, scenario_b_day.institution
        )

        assert foreign.signal_strength == SignalStrength.STRONG_SELL
        assert institution.signal_strength == SignalStrength.NEUTRAL
        assert generate_combined_signal(foreign, institution) == CombinedSignal.SELL
        assert calculate_overall_confidence(foreign, institution) == pytest.approx(
            (foreign.confidence + institution.confidence) / 2
        )

    def test_agreement_fallback(self):
        """Test directional agreement below a raised combined threshold."""
        config = EngineConfig(signals=SignalThresholds(combined=300, combined_strong=1000))
        f, i = pair(120, 150)
        assert generate_combined_signal(f, i, config) == CombinedSignal.BUY
        f, i = pair(-120, -150)
        assert generate_combined_signal(f, i, config) == CombinedSignal.SELL
        f, i = pair(120, -150)
        assert generate_combined_signal(f, i, config) == CombinedSignal.NEUTRAL


class TestRiskOnOff:
    """Tests for generate_risk_on_off_signal."""

    @pytest.mark.parametrize(
        "signal,score,expected",
        [
            (CombinedSignal.STRONG_BUY, 75, RiskSignal.RISK_ON),
            (CombinedSignal.BUY, 65, RiskSignal.RISK_ON_MILD),
            (CombinedSignal.STRONG_SELL, 25, RiskSignal.RISK_OFF),
            (CombinedSignal.SELL, 35, RiskSignal.RISK_OFF_MILD),
            (CombinedSignal.NEUTRAL, 50, RiskSignal.NEUTRAL),
        ],
    )
    def test_table(self, signal, score, expected):
        """Test the joint signal and score table."""
        assert generate_risk_on_off_signal(signal, None, total(score)) == expected

    def test_signal_and_score_must_agree(self):
        """Test that a Strong Buy with a mid score is not Risk-On."""
        assert generate_risk_on_off_signal(
            CombinedSignal.STRONG_BUY, None, total(65)
        ) == RiskSignal.NEUTRAL

    def test_high_score_without_signal(self):
        """Test that a high score alone does not switch risk on."""
        assert generate_risk_on_off_signal(
            CombinedSignal.NEUTRAL, None, total(90)
        ) == RiskSignal.NEUTRAL


class TestSmartMoneySignal:
    """Tests for generate_smart_money_signal and evidence."""

    @pytest.mark.parametrize(
        "score,signal,risk",
        [
            (72, CombinedSignal.STRONG_BUY, RiskSignal.RISK_ON),
            (60, CombinedSignal.BUY, RiskSignal.RISK_ON_MILD),
            (50, CombinedSignal.NEUTRAL, RiskSignal.NEUTRAL),
            (44, CombinedSignal.SELL, RiskSignal.RISK_OFF_MILD),
            (30, CombinedSignal.STRONG_SELL, RiskSignal.RISK_OFF),
        ],
    )
    def test_score_bands(self, score, signal, risk):
        """Test signal and regime from the total score alone."""
        result = generate_smart_money_signal(total(score), 60)
        assert result.signal == signal
        assert result.risk_signal == risk

    def test_confidence_clamped(self):
        """Test confidence clamping to 100."""
        assert generate_smart_money_signal(total(50), 120).confidence == 100

    def test_bullish_evidence(self):
        """Test evidence strings for strong buying."""
        scores = CompositeScoreComponents(40, 30, 0, 0, 75)
        assert generate_signal_evidence(scores) == [
            "Foreign investors showing strong buying",
            "Institutions net buying",
            "Smart money strongly bullish",
        ]

    def test_bearish_evidence(self):
        """Test evidence strings for selling."""
        scores = CompositeScoreComponents(10, 18, 0, 0, 20)
        assert generate_signal_evidence(scores) == [
            "Foreign investors showing strong selling",
            "Institutions net selling",
            "Smart money strongly bearish",
        ]

    def test_neutral_evidence_empty(self):
        """Test that mid-band scores produce no evidence."""
        assert generate_signal_evidence(CompositeScoreComponents(22, 22, 0, 0, 50)) == []

    def test_evidence_capped(self):
        """Test the configurable evidence cap."""
        config = EngineConfig(signals=SignalThresholds(max_evidence=2))
        scores = CompositeScoreComponents(40, 30, 0, 0, 75)
        assert len(generate_signal_evidence(scores, config)) == 2


class TestPrimaryDriver:
    """Tests for detect_primary_driver."""

    def test_both_strong_same_side(self):
        """Test that both strong buyers drive together."""
        assert detect_primary_driver(*pair(600, 500)) == PrimaryDriver.BOTH

    def test_both_strong_opposite_sides(self):
        """Test that opposing strong flows of equal size have no driver."""
        assert detect_primary_driver(*pair(600, -600)) == PrimaryDriver.NONE

    def test_small_flows(self):
        """Test that flows under the minimum have no driver."""
        assert detect_primary_driver(*pair(400, 50)) == PrimaryDriver.NONE

    def test_foreign_dominates(self):
        """Test foreign dominance by the 1.5 ratio."""
        assert detect_primary_driver(*pair(900, 100)) == PrimaryDriver.FOREIGN

    def test_institution_dominates(self):
        """Test institution dominance by the 1.5 ratio."""
        assert detect_primary_driver(*pair(200, 800)) == PrimaryDriver.INSTITUTION

    def test_retail_dominates(self):
        """Test retail as the largest flow."""
        f, i = pair(100, 100)
        retail = scored(InvestorCategory.RETAIL, -1000)
        assert detect_primary_driver(f, i, retail) == PrimaryDriver.RETAIL

    def test_prop_dominates(self):
        """Test prop as the largest flow."""
        f, i = pair(100, 100)
        retail = scored(InvestorCategory.RETAIL, 1000)
        prop = scored(InvestorCategory.PROP, 1200)
        assert detect_primary_driver(f, i, retail, prop) == PrimaryDriver.PROP


class TestRiskConfirmation:
    """Tests for confirm_risk_on and confirm_risk_off."""

    def test_risk_on(self):
        """Test the 60 threshold."""
        assert confirm_risk_on(total(60)) is True
        assert confirm_risk_on(total(59.9)) is False

    def test_risk_off(self):
        """Test the 40 threshold."""
        assert confirm_risk_off(total(40)) is True
        assert confirm_risk_off(total(40.1)) is False


class TestObservations:
    """Tests for generate_smart_money_observations."""

    def test_strong_buying(self):
        """Test observations for strong foreign and institutional buying."""
        f, i = pair(600, 500)
        assert generate_smart_money_observations(f, i) == [
            "Foreign investors aggressive buying: +600M",
            "Institutions strong buying: +500M",
            "Strong combined smart money buying",
        ]

    def test_plain_flows(self):
        """Test plain flow observations below the strong tier."""
        f, i = pair(50, -300)
        assert generate_smart_money_observations(f, i) == [
            "Foreign flow: +50M",
            "Institution flow: -300M",
        ]

    def test_zero_flow_silent(self):
        """Test that a zero flow produces no observation."""
        assert generate_smart_money_observations(*pair(0, 0)) == []

    def test_strong_selling(self):
        """Test observations for strong selling."""
        f, i = pair(-700, -600)
        assert generate_smart_money_observations(f, i) == [
            "Foreign investors aggressive selling: -700M",
            "Institutions strong selling: -600M",
            "Strong combined smart money selling",
        ]

    def test_light_prop_selling(self):
        """Test that light prop selling is read as bullish."""
        f, i = pair(0, 0)
        prop = scored(InvestorCategory.PROP, -150)
        assert generate_smart_money_observations(f, i, prop=prop) == [
            "Prop firms reducing sell volume (bullish)"
        ]

    def test_heavy_prop_selling(self):
        """Test the caution observation for Strong Sell prop flow."""
        f, i = pair(0, 0)
        prop = scored(InvestorCategory.PROP, -800)
        assert generate_smart_money_observations(f, i, prop=prop) == [
            "Prop firms heavy selling (caution)"
        ]

    def test_moderate_prop_selling_silent(self):
        """Test that moderate prop selling produces no observation."""
        f, i = pair(0, 0)
        prop = scored(InvestorCategory.PROP, -300)
        assert generate_smart_money_observations(f, i, prop=prop) == []

    def test_retail(self):
        """Test retail interest and exit observations."""
        f, i = pair(0, 0)
        assert generate_smart_money_observations(
            f, i, retail=scored(InvestorCategory.RETAIL, 800)
        ) == ["Retail investors showing strong interest"]
        assert generate_smart_money_observations(
            f, i, retail=scored(InvestorCategory.RETAIL, -800)
        ) == ["Retail investors exiting positions"]

    def test_acceleration(self):
        """Test the acceleration observation."""
        f = scored(InvestorCategory.FOREIGN, 300, [50, 50])
        i = scored(InvestorCategory.INSTITUTION, 0)
        assert generate_smart_money_observations(f, i) == [
            "Foreign flow: +300M",
            "Smart money flow accelerating",
        ]

    def test_capped_at_four(self):
        """Test that at most four observations are returned in order."""
        f = scored(InvestorCategory.FOREIGN, 600, [0, 0])
        i = scored(InvestorCategory.INSTITUTION, 600)
        retail = scored(InvestorCategory.RETAIL, 800)
        prop = scored(InvestorCategory.PROP, -150)
        observations = generate_smart_money_observations(f, i, retail, prop)
        assert observations == [
            "Foreign investors aggressive buying: +600M",
            "Institutions strong buying: +600M",
            "Strong combined smart money buying",
            "Prop firms reducing sell volume (bullish)",
        ]


class TestPropTrading:
    """Tests for analyze_prop_trading."""

    def test_net_buying(self):
        """Test high-activity net buying."""
        result = analyze_prop_trading({"buy": 3000, "sell": 1500, "net": 1500})
        assert result.activity == "High"
        assert result.impact == "Neutral"
        assert result.signal == "Prop firms net buying"
        assert result.reducing_sell_volume is False

    def test_light_selling(self):
        """Test light selling reduces risk."""
        result = analyze_prop_trading({"net": -150})
        assert result.activity == "Low"
        assert result.impact == "Reducing Risk"
        assert result.reducing_sell_volume is True

    def test_heavy_selling(self):
        """Test heavier selling amplifies risk."""
        result = analyze_prop_trading({"net": -400})
        assert result.activity == "Normal"
        assert result.impact == "Amplifying Risk"
        assert result.signal == "Prop firms heavy selling"

    def test_flat(self):
        """Test a flat desk."""
        result = analyze_prop_trading({"net": 0})
        assert result.signal == "Prop firms flat"
        assert result.to_dict()["impact"] == "Neutral"
