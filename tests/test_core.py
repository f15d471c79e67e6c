"""
Tests for SiamFlow core module.
"""

import pytest

from siamflow import SiamFlow, __version__
from siamflow.analytics.breadth import BreadthStatus
from siamflow.analytics.models import CombinedSignal, PatternType
from siamflow.config.settings import DEFAULT_CONFIG, config_from_dict
from siamflow.core.errors import ConfigurationError
from siamflow.validation.flows import flows_to_frame


class TestSiamFlowInit:
    """Tests for SiamFlow initialization."""

    def test_init_no_config(self, monkeypatch):
        """Test initialization without config path."""
        monkeypatch.delenv("SIAMFLOW_CONFIG", raising=False)
        siamflow = SiamFlow()
        assert siamflow.config is DEFAULT_CONFIG

    def test_init_with_config_path_string(self, tmp_path):
        """Test initialization with string config path."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("flow:\n  strong_buy: 700\n")
        siamflow = SiamFlow(config_path=str(config_file))
        assert siamflow.config.flow.strong_buy == 700

    def test_init_with_config_path_object(self, tmp_path):
        """Test initialization with Path config path."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("breadth:\n  bullish_ad_ratio: 1.8\n")
        siamflow = SiamFlow(config_path=config_file)
        assert siamflow.config.breadth.bullish_ad_ratio == 1.8

    def test_config_object_wins(self, tmp_path):
        """Test that a config object takes precedence over a path."""
        config = config_from_dict({"flow": {"buy": 200}})
        siamflow = SiamFlow(config_path=tmp_path / "missing.yaml", config=config)
        assert siamflow.smart_money.config is config
        assert siamflow.trends.config is config

    def test_missing_config_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError):
            SiamFlow(config_path=tmp_path / "missing.yaml")

    def test_multiple_instances(self):
        """Test creating multiple SiamFlow instances."""
        s1 = SiamFlow(config=DEFAULT_CONFIG)
        s2 = SiamFlow(config=DEFAULT_CONFIG)
        assert s1 is not s2

    def test_version(self):
        """Test the package version string."""
        assert __version__ == "0.1.0"


class TestSiamFlowAnalysis:
    """Tests for the facade analysis methods."""

    @pytest.fixture
    def siamflow(self):
        return SiamFlow(config=DEFAULT_CONFIG)

    def test_analyze_smart_money(self, siamflow, scenario_a_series):
        """Test daily smart money analysis."""
        result = siamflow.analyze_smart_money(scenario_a_series[-1], scenario_a_series[:-1])
        assert result.combined_signal == CombinedSignal.STRONG_BUY

    def test_analyze_smart_money_mapping(self, siamflow):
        """Test daily analysis from a plain dict."""
        day = {
            "date": "2024-03-01",
            "foreign": {"net": -700},
            "institution": {"net": -200},
            "retail": {"net": 600},
            "prop": {"net": 0},
        }
        assert siamflow.analyze_smart_money(day).combined_signal == CombinedSignal.STRONG_SELL

    def test_analyze_smart_money_frame(self, siamflow, scenario_a_series):
        """Test daily analysis from a DataFrame."""
        result = siamflow.analyze_smart_money_frame(flows_to_frame(scenario_a_series))
        assert result.score == pytest.approx(82.5)

    def test_analyze_trend(self, siamflow, scenario_a_series):
        """Test trend analysis."""
        result = siamflow.analyze_trend(scenario_a_series)
        assert [p.type for p in result.patterns] == [PatternType.ACCUMULATION]

    def test_analyze_breadth(self, siamflow, bullish_overview):
        """Test breadth analysis and insights."""
        analysis = siamflow.analyze_breadth(bullish_overview)
        assert analysis.status == BreadthStatus.STRONGLY_BULLISH

        insights = siamflow.breadth_insights(analysis)
        assert insights.primary.category == "strength"

    def test_event_logged(self, siamflow, bullish_overview, caplog):
        """Test the structured analysis event."""
        with caplog.at_level("INFO", logger="siamflow.events"):
            siamflow.analyze_breadth(bullish_overview)
        events = [r for r in caplog.records if r.name == "siamflow.events"]
        assert events
        assert events[0].ctx_event == "breadth_analysis"

    def test_event_reuses_measured_duration(self, siamflow, scenario_a_series, caplog):
        """Test that the analysis event carries the duration logged by the timer."""
        with caplog.at_level("DEBUG"):
            siamflow.analyze_smart_money(scenario_a_series[-1], scenario_a_series[:-1])

        timed = [r for r in caplog.records if r.name == "siamflow.core.core"]
        events = [r for r in caplog.records if r.name == "siamflow.events"]
        assert len(timed) == 1
        assert len(events) == 1
        assert events[0].ctx_event == "smart_money_analysis"
        assert events[0].ctx_date == "2024-03-03"
        assert events[0].ctx_duration_ms == timed[0].ctx_duration_ms


class TestHealthCheck:
    """Tests for health_check method."""

    def test_returns_dict(self):
        """Test that health_check returns a dictionary."""
        result = SiamFlow(config=DEFAULT_CONFIG).health_check()
        assert isinstance(result, dict)

    def test_components_operational(self):
        """Test that every component reports healthy."""
        result = SiamFlow(config=DEFAULT_CONFIG).health_check()
        assert result["core"] is True
        assert result["smart_money"] is True
        assert result["trends"] is True
        assert result["status"] == "operational"
