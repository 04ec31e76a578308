# -*- coding: utf-8 -*-
"""Tests for OpterraRiskConfig."""

import pytest

from opterra.exceptions import ConfigurationError
from opterra.risk.config import (
    OpterraRiskConfig,
    get_config,
    reset_config,
    set_config,
)


class TestDefaults:

    def test_defaults(self):
        cfg = OpterraRiskConfig()
        assert cfg.enabled
        assert cfg.enable_metrics
        assert cfg.enable_provenance
        assert cfg.cache_size == 256
        assert cfg.horizon_months == [6, 12, 24, 36]
        assert cfg.output_format == "table"

    def test_normalisation(self):
        cfg = OpterraRiskConfig(log_level="debug", output_format="JSON")
        assert cfg.log_level == "DEBUG"
        assert cfg.output_format == "json"

    def test_horizons_sorted_unique(self):
        cfg = OpterraRiskConfig(projection_horizons="24, 6,6,12")
        assert cfg.horizon_months == [6, 12, 24]

    def test_to_dict_round_trip(self):
        cfg = OpterraRiskConfig(cache_size=8)
        assert OpterraRiskConfig(**cfg.to_dict()).to_dict() == cfg.to_dict()


class TestValidation:

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"log_level": "LOUD"},
            {"output_format": "xml"},
            {"cache_size": -1},
            {"projection_horizons": "soon"},
            {"projection_horizons": ""},
            {"projection_horizons": "0,12"},
            {"projection_horizons": "12,999"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            OpterraRiskConfig(**kwargs)

    def test_errors_collected(self):
        with pytest.raises(ValueError) as exc_info:
            OpterraRiskConfig(log_level="LOUD", cache_size=-3)
        assert len(exc_info.value.context["errors"]) == 2


class TestEnvironment:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPTERRA_RISK_CACHE_SIZE", "0")
        monkeypatch.setenv("OPTERRA_RISK_ENABLE_METRICS", "false")
        monkeypatch.setenv("OPTERRA_RISK_ENABLE_PROVENANCE", "no")
        monkeypatch.setenv("OPTERRA_RISK_PROJECTION_HORIZONS", "3,9")
        monkeypatch.setenv("OPTERRA_RISK_OUTPUT_FORMAT", "json")
        cfg = OpterraRiskConfig.from_env()
        assert cfg.cache_size == 0
        assert not cfg.enable_metrics
        assert not cfg.enable_provenance
        assert cfg.horizon_months == [3, 9]
        assert cfg.output_format == "json"

    @pytest.mark.parametrize("value", ["TRUE", "1", "yes"])
    def test_bool_spellings(self, monkeypatch, value):
        monkeypatch.setenv("OPTERRA_RISK_ENABLED", value)
        assert OpterraRiskConfig.from_env().enabled

    def test_bad_integer_falls_back(self, monkeypatch):
        monkeypatch.setenv("OPTERRA_RISK_CACHE_SIZE", "lots")
        assert OpterraRiskConfig.from_env().cache_size == 256

    def test_bad_value_raises(self, monkeypatch):
        monkeypatch.setenv("OPTERRA_RISK_LOG_LEVEL", "CHATTY")
        with pytest.raises(ConfigurationError):
            OpterraRiskConfig.from_env()


class TestSingleton:

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_and_reset(self, monkeypatch):
        custom = OpterraRiskConfig(cache_size=7)
        set_config(custom)
        assert get_config() is custom
        reset_config()
        monkeypatch.setenv("OPTERRA_RISK_CACHE_SIZE", "11")
        assert get_config().cache_size == 11
