# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures for the Opterra risk engine."""

from typing import Any, Callable, Dict

import pytest

from opterra.risk.config import OpterraRiskConfig, reset_config, set_config
from opterra.risk.models import ForensicInputs, FuelType
from opterra.risk.pipeline import OpterraRiskEngine, calculate_opterra_risk


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Every test starts from a default configuration."""
    for name in (
        "ENABLED", "LOG_LEVEL", "ENABLE_METRICS", "ENABLE_PROVENANCE",
        "CACHE_SIZE", "PROJECTION_HORIZONS", "OUTPUT_FORMAT",
    ):
        monkeypatch.delenv(f"OPTERRA_RISK_{name}", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_inputs() -> Callable[..., ForensicInputs]:
    """Factory for ForensicInputs with keyword overrides."""

    def _make(**overrides: Any) -> ForensicInputs:
        return ForensicInputs(**overrides)

    return _make


@pytest.fixture
def assess():
    """Run the pure pipeline on keyword inputs."""

    def _assess(**overrides: Any):
        inputs = ForensicInputs(**overrides)
        return inputs, calculate_opterra_risk(inputs)

    return _assess


@pytest.fixture
def failing_tank_payload() -> Dict[str, Any]:
    """12-year-old tank, failed PRV, no expansion tank, hard water, leaking."""
    return {
        "calendar_age": 12,
        "house_psi": 95,
        "has_prv": True,
        "has_exp_tank": False,
        "measured_hardness_gpg": 18,
        "has_softener": False,
        "is_leaking": True,
    }


@pytest.fixture
def healthy_tank_payload() -> Dict[str, Any]:
    """2-year-old tank on a regulated, expansion-controlled system."""
    return {
        "calendar_age": 2,
        "house_psi": 55,
        "has_prv": True,
        "has_exp_tank": True,
        "measured_hardness_gpg": 8,
        "has_softener": False,
        "is_leaking": False,
    }


@pytest.fixture
def failing_tank(failing_tank_payload) -> ForensicInputs:
    return ForensicInputs(**failing_tank_payload)


@pytest.fixture
def healthy_tank(healthy_tank_payload) -> ForensicInputs:
    return ForensicInputs(**healthy_tank_payload)


@pytest.fixture
def scaled_tankless() -> ForensicInputs:
    """Tankless unit on hard water that has never been descaled."""
    return ForensicInputs(
        fuel_type=FuelType.TANKLESS_GAS,
        calendar_age=8,
        measured_hardness_gpg=20,
        house_psi=55,
    )


@pytest.fixture
def config() -> OpterraRiskConfig:
    cfg = OpterraRiskConfig(cache_size=4, enable_metrics=True)
    set_config(cfg)
    return cfg


@pytest.fixture
def engine(config) -> OpterraRiskEngine:
    return OpterraRiskEngine(config)
