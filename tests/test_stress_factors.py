# -*- coding: utf-8 -*-
"""Tests for StressFactorCalculator: primitive curves, sub-models, bounds."""

import pytest

from opterra.risk.models import (
    AnodeStatus,
    ConnectionType,
    ExpansionTankStatus,
    FilterStatus,
    FuelType,
    RoomVolumeType,
    SanitizerType,
    ServiceStatus,
    SoftenerContext,
    SoftenerSaltStatus,
    SoftenerServiceFrequency,
    TempSetting,
    UsageType,
)
from opterra.risk.stress_factors import (
    DEFAULT_HARDNESS_GPG,
    StressFactorCalculator,
    compute_stress_factors,
    resolve_hardness,
)

calc = StressFactorCalculator()


class TestPressureFactor:

    @pytest.mark.parametrize(
        "psi, expected",
        [(0, 1.0), (59.9, 1.0), (60, 1.0), (70, 1.125), (80, 1.25), (90, 1.5), (100, 2.25)],
    )
    def test_curve(self, psi, expected):
        assert calc.pressure_factor(psi) == pytest.approx(expected)

    def test_monotone_in_psi(self, make_inputs):
        values = [
            compute_stress_factors(make_inputs(house_psi=psi)).pressure
            for psi in range(0, 201, 5)
        ]
        assert values == sorted(values)


class TestChemicalFactor:

    @pytest.mark.parametrize(
        "gpg, expected",
        [(0, 1.0), (9.9, 1.0), (10, 1.0), (12, 1.06), (15, 1.25), (20, 1.5), (60, 2.5)],
    )
    def test_curve(self, gpg, expected):
        assert calc.chemical_factor(gpg) == pytest.approx(expected)

    def test_hardness_never_lowers_chemical_or_corrosion(self, make_inputs):
        factors = [
            compute_stress_factors(make_inputs(measured_hardness_gpg=h, calendar_age=3))
            for h in range(0, 101, 5)
        ]
        chemical = [f.chemical for f in factors]
        corrosion = [f.corrosion for f in factors]
        assert chemical == sorted(chemical)
        assert corrosion == sorted(corrosion)


class TestHardnessResolution:

    def test_measured_wins(self, make_inputs):
        inputs = make_inputs(measured_hardness_gpg=7, street_hardness_gpg=20, has_softener=True)
        assert resolve_hardness(inputs) == 7

    def test_unknown_defaults_to_moderate(self, make_inputs):
        assert resolve_hardness(make_inputs()) == DEFAULT_HARDNESS_GPG

    @pytest.mark.parametrize(
        "salt, expected",
        [
            (SoftenerSaltStatus.OK, 0.5),
            (SoftenerSaltStatus.EMPTY, 22.0),
            (SoftenerSaltStatus.UNKNOWN, 3.0),
        ],
    )
    def test_softener_salt(self, make_inputs, salt, expected):
        inputs = make_inputs(
            street_hardness_gpg=22,
            has_softener=True,
            softener=SoftenerContext(salt_status=salt),
        )
        assert resolve_hardness(inputs) == expected

    @pytest.mark.parametrize(
        "service, expected",
        [
            (SoftenerServiceFrequency.PROFESSIONAL, 0.5),
            (SoftenerServiceFrequency.NEVER, 22.0),
            (SoftenerServiceFrequency.DIY_SALT, 3.0),
            (SoftenerServiceFrequency.UNKNOWN, 3.0),
        ],
    )
    def test_unchecked_salt_uses_service_frequency(self, make_inputs, service, expected):
        inputs = make_inputs(
            street_hardness_gpg=22,
            has_softener=True,
            softener=SoftenerContext(service_frequency=service),
        )
        assert resolve_hardness(inputs) == expected

    @pytest.mark.parametrize(
        "salt, service, expected",
        [
            (SoftenerSaltStatus.OK, SoftenerServiceFrequency.NEVER, 0.5),
            (SoftenerSaltStatus.EMPTY, SoftenerServiceFrequency.PROFESSIONAL, 22.0),
        ],
    )
    def test_checked_salt_beats_service_frequency(self, make_inputs, salt, service, expected):
        inputs = make_inputs(
            street_hardness_gpg=22,
            has_softener=True,
            softener=SoftenerContext(salt_status=salt, service_frequency=service),
        )
        assert resolve_hardness(inputs) == expected

    def test_softener_without_context(self, make_inputs):
        inputs = make_inputs(street_hardness_gpg=22, has_softener=True)
        assert resolve_hardness(inputs) == 3.0


class TestLoopAndCirculation:

    def test_closed_system_without_expansion_tank(self, make_inputs):
        assert compute_stress_factors(make_inputs(has_prv=True)).loop == 1.5

    def test_waterlogged_tank_counts_as_missing(self, make_inputs):
        inputs = make_inputs(
            is_closed_loop=True,
            has_exp_tank=True,
            exp_tank_status=ExpansionTankStatus.WATERLOGGED,
        )
        assert compute_stress_factors(inputs).loop == 1.5

    def test_functional_expansion_tank(self, make_inputs):
        assert compute_stress_factors(make_inputs(has_prv=True, has_exp_tank=True)).loop == 1.0

    def test_open_system(self, make_inputs):
        assert compute_stress_factors(make_inputs()).loop == 1.0

    def test_tankless_has_no_loop_stress(self, make_inputs):
        inputs = make_inputs(fuel_type=FuelType.TANKLESS_GAS, has_prv=True)
        assert compute_stress_factors(inputs).loop == 1.0

    def test_mechanical_is_pressure_times_loop(self, make_inputs):
        sf = compute_stress_factors(make_inputs(has_prv=True, house_psi=90))
        assert sf.mechanical == pytest.approx(sf.pressure * sf.loop, abs=1e-3)

    @pytest.mark.parametrize(
        "fuel, kwargs, expected",
        [
            (FuelType.GAS, {"has_circ_pump": True}, 1.4),
            (FuelType.GAS, {}, 1.0),
            (FuelType.TANKLESS_GAS, {"has_recirculation_loop": True}, 1.5),
            (FuelType.TANKLESS_ELECTRIC, {"has_circ_pump": True}, 1.5),
        ],
    )
    def test_circulation(self, make_inputs, fuel, kwargs, expected):
        assert compute_stress_factors(make_inputs(fuel_type=fuel, **kwargs)).circ == expected


class TestUsageAndSizing:

    @pytest.mark.parametrize(
        "fuel, people, usage, expected",
        [
            (FuelType.GAS, 3, UsageType.NORMAL, 1.0),
            (FuelType.GAS, 6, UsageType.HEAVY, 2.6),
            (FuelType.GAS, 2, UsageType.LIGHT, 1.0),
            (FuelType.TANKLESS_GAS, 5, UsageType.NORMAL, 2.0),
            (FuelType.GAS, 20, UsageType.HEAVY, 4.0),
        ],
    )
    def test_usage_intensity(self, make_inputs, fuel, people, usage, expected):
        inputs = make_inputs(fuel_type=fuel, people_count=people, usage_type=usage)
        assert compute_stress_factors(inputs).usage_intensity == pytest.approx(expected)

    def test_undersized_tank(self, make_inputs):
        inputs = make_inputs(people_count=6, tank_capacity_gallons=40)
        assert compute_stress_factors(inputs).undersizing == pytest.approx(1.8)

    def test_undersizing_capped(self, make_inputs):
        inputs = make_inputs(
            people_count=6, usage_type=UsageType.HEAVY, tank_capacity_gallons=30,
        )
        assert compute_stress_factors(inputs).undersizing == 2.0

    def test_tankless_never_undersized(self, make_inputs):
        inputs = make_inputs(
            fuel_type=FuelType.TANKLESS_ELECTRIC, people_count=8, tank_capacity_gallons=1,
        )
        assert compute_stress_factors(inputs).undersizing == 1.0

    def test_high_temperature(self, make_inputs):
        sf = compute_stress_factors(make_inputs(temp_setting=TempSetting.HIGH))
        assert sf.temp == 1.5
        assert sf.temp_chemical == pytest.approx(sf.temp * sf.chemical, abs=1e-3)


class TestAnodeModel:

    def test_standard_anode(self, make_inputs):
        anode = calc.anode_model(make_inputs(calendar_age=2))
        assert anode.base_mass_years == 4.0
        assert anode.burn_rate == 1.0
        assert anode.shield_life == pytest.approx(2.0)
        assert anode.status == AnodeStatus.INSPECT

    def test_premium_anode(self, make_inputs):
        anode = calc.anode_model(make_inputs(calendar_age=4, anode_count=2))
        assert anode.base_mass_years == 7.5
        assert anode.shield_life == pytest.approx(3.5)

    def test_softener_burns_anode(self, make_inputs):
        anode = calc.anode_model(make_inputs(calendar_age=4, has_softener=True))
        assert anode.burn_rate == 3.0
        assert anode.shield_life < 0
        assert anode.is_depleted
        assert anode.status == AnodeStatus.NAKED
        assert anode.depletion_pct == 100.0

    def test_late_softener_only_counts_its_own_years(self, make_inputs):
        anode = calc.anode_model(make_inputs(
            calendar_age=4,
            has_softener=True,
            softener=SoftenerContext(install_years_ago=1),
        ))
        assert anode.consumed_years == pytest.approx(6.0)
        assert anode.shield_life == pytest.approx(-2.0 / 3.0, abs=1e-3)

    def test_burn_multipliers_stack(self, make_inputs):
        anode = calc.anode_model(make_inputs(
            calendar_age=1,
            connection_type=ConnectionType.DIRECT_COPPER,
            has_circ_pump=True,
            sanitizer_type=SanitizerType.CHLORAMINE,
        ))
        assert anode.burn_rate == pytest.approx(2.5 * 1.25 * 1.2)

    def test_replacement_resets_anode_age(self, make_inputs):
        fresh = calc.anode_model(make_inputs(calendar_age=10, last_anode_replace_years_ago=1))
        old = calc.anode_model(make_inputs(calendar_age=10))
        assert fresh.shield_life > old.shield_life

    def test_observed_naked_anode(self, make_inputs):
        anode = calc.anode_model(make_inputs(calendar_age=1, anode_status=AnodeStatus.NAKED))
        assert anode.shield_life == 0.0
        assert anode.status == AnodeStatus.NAKED

    def test_depleted_anode_penalizes_corrosion(self, make_inputs):
        base = compute_stress_factors(make_inputs(calendar_age=1, measured_hardness_gpg=5))
        naked = compute_stress_factors(make_inputs(
            calendar_age=1, measured_hardness_gpg=5, anode_status=AnodeStatus.NAKED,
        ))
        assert base.corrosion == 1.0
        assert naked.corrosion == pytest.approx(1.5)


class TestSedimentModel:

    def test_lockout(self, make_inputs):
        analysis = calc.analyze(make_inputs(
            fuel_type=FuelType.ELECTRIC, calendar_age=10, measured_hardness_gpg=20,
        ))
        assert analysis.sediment.sediment_lbs == pytest.approx(16.0)
        assert analysis.sediment.status == ServiceStatus.LOCKOUT
        assert analysis.sediment.months_to_lockout is None

    def test_due_with_projection(self, make_inputs):
        analysis = calc.analyze(make_inputs(calendar_age=10, measured_hardness_gpg=20))
        sediment = analysis.sediment
        assert sediment.sediment_lbs == pytest.approx(8.8)
        assert sediment.status == ServiceStatus.DUE
        assert sediment.months_to_flush is None
        assert sediment.months_to_lockout == 85

    def test_recent_flush_is_ok(self, make_inputs):
        analysis = calc.analyze(make_inputs(
            calendar_age=5, measured_hardness_gpg=10, last_flush_years_ago=0.5,
        ))
        assert analysis.sediment.status == ServiceStatus.OK
        assert analysis.sediment.months_to_flush > 0

    def test_unknown_flush_history_is_due(self, make_inputs):
        analysis = calc.analyze(make_inputs(calendar_age=2, measured_hardness_gpg=3))
        assert analysis.sediment.status == ServiceStatus.DUE

    def test_new_unit_is_ok(self, make_inputs):
        analysis = calc.analyze(make_inputs(calendar_age=0.5))
        assert analysis.sediment.status == ServiceStatus.OK

    def test_sediment_factor(self, make_inputs):
        sf = compute_stress_factors(make_inputs(calendar_age=10, measured_hardness_gpg=20))
        assert sf.sediment == pytest.approx(1.44)


class TestScaleModel:

    @pytest.mark.parametrize(
        "hardness, descaled, age, status",
        [
            (15, 6, 8, ServiceStatus.LOCKOUT),
            (8, 2, 5, ServiceStatus.DUE),
            (8, 1, 5, ServiceStatus.OK),
            (20, None, 8, ServiceStatus.LOCKOUT),
            (4, None, 3, ServiceStatus.OK),
        ],
    )
    def test_status(self, make_inputs, hardness, descaled, age, status):
        analysis = calc.analyze(make_inputs(
            fuel_type=FuelType.TANKLESS_GAS,
            calendar_age=age,
            measured_hardness_gpg=hardness,
            last_descale_years_ago=descaled,
        ))
        assert analysis.scale.status == status
        assert analysis.sediment is None
        assert analysis.anode is None

    def test_score_capped(self, make_inputs):
        analysis = calc.analyze(make_inputs(
            fuel_type=FuelType.TANKLESS_ELECTRIC, calendar_age=30, measured_hardness_gpg=50,
        ))
        assert analysis.scale.score == 100.0


class TestHybridEfficiency:

    def test_clean_unit(self, make_inputs):
        assert calc.hybrid_efficiency(make_inputs(fuel_type=FuelType.HYBRID)) == 100.0

    def test_degraded_unit(self, make_inputs):
        inputs = make_inputs(
            fuel_type=FuelType.HYBRID,
            air_filter_status=FilterStatus.DIRTY,
            room_volume_type=RoomVolumeType.CLOSET_SEALED,
            compressor_health=80,
            is_condensate_clear=False,
        )
        assert calc.hybrid_efficiency(inputs) == pytest.approx(39.0)

    def test_never_negative(self, make_inputs):
        inputs = make_inputs(
            fuel_type=FuelType.HYBRID,
            air_filter_status=FilterStatus.CLOGGED,
            compressor_health=0,
            is_condensate_clear=False,
        )
        assert calc.hybrid_efficiency(inputs) == 0.0


class TestBounds:

    @pytest.mark.parametrize("fuel", list(FuelType))
    @pytest.mark.parametrize("psi", [0, 60, 95, 200])
    @pytest.mark.parametrize("hardness", [0, 12, 40])
    def test_every_factor_at_least_one(self, make_inputs, fuel, psi, hardness):
        sf = compute_stress_factors(make_inputs(
            fuel_type=fuel,
            calendar_age=15,
            house_psi=psi,
            measured_hardness_gpg=hardness,
            has_prv=True,
            has_softener=True,
        ))
        assert all(value >= 1.0 for value in sf.model_dump().values())
        assert sf.total <= 12.0
