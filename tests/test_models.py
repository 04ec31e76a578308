# -*- coding: utf-8 -*-
"""Tests for the Opterra data models: clamping, immutability, enums."""

import math

import pytest
from pydantic import ValidationError

from opterra.risk.models import (
    ALGORITHM_VERSION,
    ExpansionTankStatus,
    ForensicInputs,
    FuelType,
    RepairImpact,
    RepairOption,
    SoftenerContext,
    SoftenerServiceFrequency,
    StressFactors,
    StressFactorKind,
    UnitType,
    is_hybrid,
    is_tankless,
    unit_type_for,
)


class TestForensicInputsClamping:
    """Out-of-range numerics are clamped, never rejected."""

    @pytest.mark.parametrize(
        "field, value, expected",
        [
            ("house_psi", -20, 0.0),
            ("house_psi", 500, 200.0),
            ("calendar_age", -3, 0.0),
            ("calendar_age", 75, 50.0),
            ("people_count", 0, 1),
            ("people_count", 45, 20),
            ("anode_count", 0, 1),
            ("anode_count", 3, 2),
            ("measured_hardness_gpg", -1, 0.0),
            ("measured_hardness_gpg", 250, 100.0),
            ("last_flush_years_ago", -2, 0.0),
            ("error_code_count", -4, 0),
            ("igniter_health", 140, 100.0),
            ("compressor_health", -10, 0.0),
            ("tank_capacity_gallons", 0, 1.0),
        ],
    )
    def test_clamps(self, field, value, expected):
        inputs = ForensicInputs(**{field: value})
        assert getattr(inputs, field) == expected

    def test_unknown_history_stays_none(self):
        inputs = ForensicInputs()
        assert inputs.last_flush_years_ago is None
        assert inputs.last_anode_replace_years_ago is None
        assert inputs.last_descale_years_ago is None

    def test_softener_install_age_clamped(self):
        ctx = SoftenerContext(install_years_ago=-1)
        assert ctx.install_years_ago == 0.0


class TestNonFiniteInputs:
    """NaN readings fall back to a default; infinities clamp to a bound."""

    @pytest.mark.parametrize(
        "field, expected",
        [
            ("house_psi", 60.0),
            ("calendar_age", 0.0),
            ("warranty_years", 6.0),
            ("tank_capacity_gallons", 50.0),
            ("measured_hardness_gpg", None),
            ("street_hardness_gpg", None),
            ("last_flush_years_ago", None),
            ("btu_rating", None),
            ("igniter_health", None),
        ],
    )
    def test_nan_uses_default(self, field, expected):
        inputs = ForensicInputs(**{field: float("nan")})
        assert getattr(inputs, field) == expected

    @pytest.mark.parametrize(
        "field, value, expected",
        [
            ("house_psi", math.inf, 200.0),
            ("house_psi", -math.inf, 0.0),
            ("calendar_age", math.inf, 50.0),
            ("calendar_age", -math.inf, 0.0),
            ("measured_hardness_gpg", math.inf, 100.0),
            ("measured_hardness_gpg", -math.inf, 0.0),
            ("btu_rating", math.inf, 1_000_000.0),
        ],
    )
    def test_infinity_clamps(self, field, value, expected):
        inputs = ForensicInputs(**{field: value})
        assert getattr(inputs, field) == expected

    def test_softener_install_age_nan(self):
        assert SoftenerContext(install_years_ago=float("nan")).install_years_ago is None

    @pytest.mark.parametrize(
        "field",
        ["house_psi", "calendar_age", "measured_hardness_gpg", "street_hardness_gpg"],
    )
    @pytest.mark.parametrize("value", [float("nan"), math.inf, -math.inf])
    def test_assessment_stays_finite(self, assess, field, value):
        _, result = assess(**{field: value})
        assert math.isfinite(result.metrics.fail_prob)
        assert 0 <= result.metrics.health_score <= 100
        assert math.isfinite(result.metrics.bio_age)


class TestForensicInputsValidation:

    def test_frozen(self):
        inputs = ForensicInputs()
        with pytest.raises(ValidationError):
            inputs.house_psi = 90

    def test_invalid_enum_member_rejected(self):
        with pytest.raises(ValidationError):
            ForensicInputs(fuel_type="steam")

    def test_enum_accepts_values(self):
        inputs = ForensicInputs(fuel_type="tankless_gas", gas_line_size="1/2")
        assert inputs.fuel_type == FuelType.TANKLESS_GAS
        assert inputs.gas_line_size.value == "1/2"

    def test_missing_expansion_tank_overrides_flag(self):
        inputs = ForensicInputs(
            has_exp_tank=True, exp_tank_status=ExpansionTankStatus.MISSING,
        )
        assert inputs.has_exp_tank is False

    def test_waterlogged_tank_is_still_present(self):
        inputs = ForensicInputs(
            has_exp_tank=True, exp_tank_status=ExpansionTankStatus.WATERLOGGED,
        )
        assert inputs.has_exp_tank is True

    def test_equal_inputs_are_equal(self):
        assert ForensicInputs(calendar_age=4) == ForensicInputs(calendar_age=4)


class TestUnitClassification:

    @pytest.mark.parametrize(
        "fuel, tankless, hybrid, unit",
        [
            (FuelType.GAS, False, False, UnitType.TANK),
            (FuelType.ELECTRIC, False, False, UnitType.TANK),
            (FuelType.HYBRID, False, True, UnitType.HYBRID),
            (FuelType.TANKLESS_GAS, True, False, UnitType.TANKLESS),
            (FuelType.TANKLESS_ELECTRIC, True, False, UnitType.TANKLESS),
        ],
    )
    def test_routing(self, fuel, tankless, hybrid, unit):
        assert is_tankless(fuel) is tankless
        assert is_hybrid(fuel) is hybrid
        assert unit_type_for(fuel) == unit

    def test_accepts_raw_string(self):
        assert is_tankless("tankless_electric") is True


class TestOutputModels:

    def test_stress_factors_below_one_rejected(self):
        with pytest.raises(ValidationError):
            StressFactors(pressure=0.9)

    def test_stress_factor_primitive_lookup(self):
        sf = StressFactors(pressure=1.4, loop=1.5)
        assert sf.primitive(StressFactorKind.PRESSURE) == 1.4
        assert sf.primitive(StressFactorKind.LOOP) == 1.5
        assert sf.primitive(StressFactorKind.UNDERSIZING) == 1.0

    def test_repair_option_cost_range(self):
        with pytest.raises(ValidationError):
            RepairOption(
                id="x", name="x", description="x",
                cost_min=500, cost_max=100, impact=RepairImpact(),
            )

    def test_assessment_columns_match_result(self, assess):
        _, result = assess(calendar_age=9, house_psi=72)
        columns = result.assessment_columns()
        assert columns == {
            "bio_age": result.metrics.bio_age,
            "fail_probability": result.metrics.fail_prob,
            "health_score": result.metrics.health_score,
            "risk_level": result.metrics.risk_level,
            "algorithm_version": ALGORITHM_VERSION,
        }


class TestSoftenerContext:

    def test_service_frequency_values(self):
        assert {f.value for f in SoftenerServiceFrequency} == {
            "professional", "diy_salt", "never", "unknown",
        }

    def test_defaults(self):
        ctx = SoftenerContext()
        assert ctx.service_frequency == SoftenerServiceFrequency.UNKNOWN
        assert not hasattr(ctx, "water_source")
