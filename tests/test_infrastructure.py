# -*- coding: utf-8 -*-
"""Tests for InfrastructureAuditor rules."""

import pytest

from opterra.risk.infrastructure import (
    InfrastructureAuditor,
    calculate_issue_costs,
    get_infrastructure_issues,
    get_issues_by_category,
)
from opterra.risk.models import FuelType, IssueCategory, Location
from opterra.risk.pipeline import calculate_opterra_risk


def _ids(assess, **kwargs):
    inputs, result = assess(**kwargs)
    return [issue.id for issue in get_infrastructure_issues(inputs, result.metrics)]


class TestPressureRules:

    def test_no_prv_above_code_limit_is_violation(self, assess):
        inputs, result = assess(house_psi=95)
        issues = get_infrastructure_issues(inputs, result.metrics)
        assert [i.id for i in issues] == ["prv_critical"]
        assert issues[0].category == IssueCategory.VIOLATION
        assert issues[0].is_violation

    @pytest.mark.parametrize("psi, expected", [(59, []), (60, ["prv_missing"]), (80, ["prv_missing"])])
    def test_prv_missing_band(self, assess, psi, expected):
        assert _ids(assess, house_psi=psi) == expected

    @pytest.mark.parametrize(
        "psi, category",
        [(78, IssueCategory.ISSUE), (85, IssueCategory.VIOLATION)],
    )
    def test_failed_prv(self, assess, psi, category):
        inputs, result = assess(house_psi=psi, has_prv=True, has_exp_tank=True)
        issues = get_infrastructure_issues(inputs, result.metrics)
        assert [i.id for i in issues] == ["prv_failed"]
        assert issues[0].category == category

    def test_working_prv_is_clean(self, assess):
        assert _ids(assess, house_psi=55, has_prv=True, has_exp_tank=True) == []


class TestExpansionRules:

    def test_closed_system_without_tank(self, assess):
        assert _ids(assess, house_psi=55, has_prv=True) == [
            "exp_tank_required",
            "thermal_stress",
        ]

    def test_check_valve_counts_as_closed(self, assess):
        assert "exp_tank_required" in _ids(assess, is_closed_loop=True)

    def test_waterlogged_tank(self, assess):
        assert _ids(
            assess, house_psi=55, has_prv=True, has_exp_tank=True,
            exp_tank_status="waterlogged",
        ) == ["exp_tank_replace", "thermal_stress"]

    def test_open_system_needs_nothing(self, assess):
        assert _ids(assess, house_psi=55) == []

    def test_tankless_skips_expansion_rules(self, assess):
        ids = _ids(
            assess, fuel_type=FuelType.TANKLESS_GAS, house_psi=55, is_closed_loop=True,
        )
        assert "exp_tank_required" not in ids
        assert "thermal_stress" not in ids


class TestTreatmentAndContainment:

    def test_softener_out_of_salt(self, assess):
        ids = _ids(
            assess, house_psi=55, has_softener=True,
            softener={"salt_status": "empty"},
        )
        assert ids == ["softener_service"]

    @pytest.mark.parametrize("hardness, flagged", [(15, False), (16, True)])
    def test_softener_recommended_above_15_gpg(self, assess, hardness, flagged):
        ids = _ids(assess, house_psi=55, measured_hardness_gpg=hardness)
        assert ("softener_recommended" in ids) is flagged

    def test_softener_installed_suppresses_recommendation(self, assess):
        ids = _ids(assess, house_psi=55, measured_hardness_gpg=25, has_softener=True)
        assert "softener_recommended" not in ids

    @pytest.mark.parametrize(
        "location, drain_pan, flagged",
        [
            (Location.ATTIC, False, True),
            (Location.ATTIC, None, False),
            (Location.ATTIC, True, False),
            (Location.GARAGE, False, False),
        ],
    )
    def test_drain_pan(self, assess, location, drain_pan, flagged):
        ids = _ids(assess, house_psi=55, location=location, has_drain_pan=drain_pan)
        assert ("drain_pan_missing" in ids) is flagged

    def test_drain_pan_rule_applies_to_tankless(self, assess):
        ids = _ids(
            assess, fuel_type=FuelType.TANKLESS_ELECTRIC, house_psi=55,
            location=Location.UPPER_FLOOR, has_drain_pan=False,
        )
        assert ids == ["drain_pan_missing"]


class TestOrderingAndCosts:

    def test_violations_come_first(self, failing_tank):
        result = calculate_opterra_risk(failing_tank)
        issues = InfrastructureAuditor().audit(failing_tank, result.metrics)
        assert [i.id for i in issues] == [
            "prv_failed",
            "exp_tank_required",
            "thermal_stress",
            "softener_recommended",
        ]
        assert result.infrastructure_issues == issues

    def test_by_category(self, failing_tank):
        issues = calculate_opterra_risk(failing_tank).infrastructure_issues
        violations = get_issues_by_category(issues, IssueCategory.VIOLATION)
        assert [i.id for i in violations] == ["prv_failed"]
        assert len(get_issues_by_category(issues, IssueCategory.ISSUE)) == 3

    def test_costs(self, failing_tank):
        issues = calculate_opterra_risk(failing_tank).infrastructure_issues
        assert calculate_issue_costs(issues) == {"low": 3000, "high": 4150}

    def test_costs_empty(self):
        assert calculate_issue_costs([]) == {"low": 0, "high": 0}
