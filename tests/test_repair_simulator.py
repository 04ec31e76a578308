# -*- coding: utf-8 -*-
"""Tests for the repair catalog, repair selection and simulation."""

import pytest

from opterra.exceptions import UnknownRepairError
from opterra.risk.models import (
    FilterStatus,
    FuelType,
    RepairImpact,
    RepairOption,
    RepairStatus,
    UnitType,
    VentStatus,
)
from opterra.risk.pipeline import calculate_opterra_risk
from opterra.risk.repair_simulator import (
    REPAIR_CATALOG,
    REPAIR_SCORE_CAP,
    RepairSimulator,
    get_available_repairs,
    get_repair,
    get_repairs_by_unit_type,
    simulate_repairs,
)


def _available(assess, **kwargs):
    inputs, result = assess(**kwargs)
    return [o.id for o in get_available_repairs(inputs, result.metrics, result.verdict)]


class TestCatalog:

    def test_size(self):
        assert len(REPAIR_CATALOG) == 21

    def test_replacements_reset_everything(self):
        replacements = [o for o in REPAIR_CATALOG.values() if o.is_full_replacement]
        assert sorted(o.id for o in replacements) == [
            "replace_hybrid",
            "replace_tank",
            "replace_tankless",
        ]
        for option in replacements:
            assert option.impact.failure_prob_reduction == 100
            assert option.impact.aging_factor_reduction == 100

    def test_cost_ranges_valid(self):
        assert all(o.cost_min <= o.cost_max for o in REPAIR_CATALOG.values())

    def test_get_repair(self):
        assert get_repair("flush").name == "Flush Sediment"

    def test_unknown_repair(self):
        with pytest.raises(UnknownRepairError) as exc_info:
            get_repair("polish")
        err = exc_info.value
        assert err.context["repair_id"] == "polish"
        assert "flush" in err.context["known_ids"]
        assert err.component == "RepairSimulator"
        assert err.error_code == "OP_UNKNOWN_REPAIR_ERROR"

    @pytest.mark.parametrize(
        "fuel, present, absent",
        [
            (FuelType.GAS, "anode", "descale"),
            (FuelType.ELECTRIC, "replace_tank", "replace_hybrid"),
            (FuelType.HYBRID, "flush", "anode"),
            (FuelType.TANKLESS_GAS, "descale", "flush"),
            (FuelType.TANKLESS_ELECTRIC, "replace_tankless", "prv"),
        ],
    )
    def test_by_unit_type(self, fuel, present, absent):
        ids = [o.id for o in get_repairs_by_unit_type(fuel)]
        assert present in ids
        assert absent not in ids


class TestSimulate:

    def test_empty_selection_keeps_state(self):
        result = simulate_repairs(40, 1.8, 23.0)
        assert result.new_score == 40
        assert result.new_aging_factor == 1.8
        assert result.new_failure_prob == 23.0
        assert result.repair_ids == []
        assert result.total_cost_min == result.total_cost_max == 0

    def test_combined_repairs(self):
        result = simulate_repairs(40, 1.8, 23.0, ["flush", "anode"])
        assert result.new_failure_prob == 13.6
        assert result.new_score == 58
        assert result.new_status == RepairStatus.WARNING
        assert result.new_aging_factor == 1.0
        assert result.total_cost_min == 350
        assert result.total_cost_max == 600
        assert result.repair_ids == ["flush", "anode"]

    def test_diminishing_returns(self):
        single = simulate_repairs(40, 2.0, 30.0, ["flush"])
        double = simulate_repairs(40, 2.0, 30.0, ["flush", "flush"])
        gain_first = 30.0 - single.new_failure_prob
        gain_second = single.new_failure_prob - double.new_failure_prob
        assert 0 < gain_second < gain_first

    def test_score_capped_without_replacement(self):
        result = simulate_repairs(80, 1.2, 5.0, ["prv_exp_package", "flush", "anode"])
        assert result.new_score == REPAIR_SCORE_CAP
        assert result.new_failure_prob == 2.0

    def test_never_worse_than_current(self):
        result = simulate_repairs(90, 1.0, 1.0, ["flush"])
        assert result.new_score == 90
        assert result.new_failure_prob <= 1.0
        assert result.new_aging_factor <= 1.0

    @pytest.mark.parametrize("repairs", [["inlet_filter"], ["descale", "inlet_filter"], ["prv"]])
    @pytest.mark.parametrize("score, aging, fail_prob", [(2, 3.5, 99.9), (55, 1.4, 15.0), (95, 1.0, 1.2)])
    def test_non_harm(self, repairs, score, aging, fail_prob):
        result = simulate_repairs(score, aging, fail_prob, repairs)
        assert result.new_score >= score
        assert result.new_failure_prob <= fail_prob
        assert result.new_aging_factor <= aging

    @pytest.mark.parametrize("fail_prob", [3.09, 3.04, 47.26, 0.26])
    @pytest.mark.parametrize("reduction", [0.5, 1.0, 1.5])
    def test_small_reduction_never_rounds_up(self, fail_prob, reduction):
        tweak = RepairOption(
            id="tweak", name="Tweak", description="Small adjustment",
            cost_min=10, cost_max=20,
            impact=RepairImpact(failure_prob_reduction=reduction),
        )
        result = simulate_repairs(70, 1.3, fail_prob, [tweak])
        assert result.new_failure_prob <= fail_prob

    def test_replacement_resets(self):
        result = simulate_repairs(20, 2.5, 70.0, ["replace_tank"])
        assert result.new_score == 98
        assert result.new_status == RepairStatus.OPTIMAL
        assert result.new_aging_factor == 1.0
        assert result.new_failure_prob == 0.5
        assert result.new_bio_age == 0.0
        assert (result.total_cost_min, result.total_cost_max) == (2800, 4500)

    def test_replacement_dominates_other_repairs(self):
        result = simulate_repairs(20, 2.5, 70.0, ["flush", "replace_tank", "anode"])
        assert result.repair_ids == ["replace_tank"]
        assert result.total_cost_min == 2800

    def test_accepts_catalog_objects(self):
        by_id = simulate_repairs(40, 1.8, 23.0, ["flush"])
        by_object = simulate_repairs(40, 1.8, 23.0, [REPAIR_CATALOG["flush"]])
        assert by_id == by_object

    def test_unknown_id_raises(self):
        with pytest.raises(UnknownRepairError):
            RepairSimulator().simulate(40, 1.8, 23.0, ["flush", "gold_plating"])


class TestAvailableRepairs:

    def test_replace_verdict_offers_only_replacement(self, failing_tank):
        result = calculate_opterra_risk(failing_tank)
        options = get_available_repairs(failing_tank, result.metrics, result.verdict)
        assert [o.id for o in options] == ["replace_tank"]

    def test_tankless_lockout_offers_replacement(self, scaled_tankless):
        result = calculate_opterra_risk(scaled_tankless)
        options = get_available_repairs(scaled_tankless, result.metrics, result.verdict)
        assert [o.id for o in options] == ["replace_tankless"]

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({"calendar_age": 3, "house_psi": 85}, ["prv_exp_package"]),
            ({"calendar_age": 3, "house_psi": 72, "has_exp_tank": True}, ["prv"]),
            ({"calendar_age": 3, "house_psi": 55, "has_prv": True}, ["exp_tank"]),
            (
                {
                    "calendar_age": 3, "house_psi": 55, "has_prv": True,
                    "has_exp_tank": True, "exp_tank_status": "waterlogged",
                },
                ["replace_exp"],
            ),
            (
                {
                    "fuel_type": FuelType.ELECTRIC, "calendar_age": 3,
                    "house_psi": 55, "measured_hardness_gpg": 25,
                },
                ["flush"],
            ),
            ({"calendar_age": 3, "house_psi": 55, "has_softener": True}, ["anode"]),
            ({"calendar_age": 2, "house_psi": 55}, []),
        ],
    )
    def test_tank(self, assess, kwargs, expected):
        assert _available(assess, **kwargs) == expected

    def test_hybrid(self, assess):
        ids = _available(
            assess,
            fuel_type=FuelType.HYBRID,
            calendar_age=2,
            house_psi=55,
            air_filter_status=FilterStatus.DIRTY,
            compressor_health=80,
        )
        assert ids == ["air_filter_service", "refrigerant_check"]

    def test_tankless_gas(self, assess):
        ids = _available(
            assess,
            fuel_type=FuelType.TANKLESS_GAS,
            calendar_age=4,
            house_psi=55,
            measured_hardness_gpg=12,
            has_isolation_valves=True,
            inlet_filter_status=FilterStatus.DIRTY,
            igniter_health=60,
            vent_status=VentStatus.RESTRICTED,
            has_recirculation_loop=True,
        )
        assert ids == [
            "descale",
            "inlet_filter",
            "igniter_service",
            "vent_cleaning",
            "recirculation_service",
        ]

    def test_tankless_without_valves_needs_valves_first(self, assess):
        ids = _available(
            assess, fuel_type=FuelType.TANKLESS_ELECTRIC, calendar_age=3,
            house_psi=55, measured_hardness_gpg=12, has_isolation_valves=False,
        )
        assert ids == ["isolation_valves"]

    def test_every_option_matches_unit_type(self, assess):
        inputs, result = assess(fuel_type=FuelType.HYBRID, calendar_age=2, house_psi=90)
        for option in get_available_repairs(inputs, result.metrics, result.verdict):
            assert UnitType.HYBRID in option.unit_types
