# -*- coding: utf-8 -*-
"""
InfrastructureAuditor - Opterra Risk Engine

Detects installation defects (as opposed to continuous wear) around a
water heater: pressure regulation, thermal expansion, water treatment and
leak containment.

Rule Set:
    +----------------------+---------------------------------------+-----------+
    | id                   | condition                             | category  |
    +----------------------+---------------------------------------+-----------+
    | exp_tank_required    | closed system, no expansion tank      | ISSUE     |
    | exp_tank_replace     | closed system, waterlogged tank       | ISSUE     |
    | thermal_stress       | closed system, loop factor > 1        | ISSUE     |
    | prv_critical         | no PRV, psi > 80                      | VIOLATION |
    | prv_failed           | PRV present, psi > 75                 | VIOLATION |
    |                      |                                       | above 80  |
    | prv_missing          | no PRV, 60 <= psi <= 80               | ISSUE     |
    | softener_service     | softener with empty salt              | ISSUE     |
    | softener_recommended | no softener, hardness > 15 GPG        | ISSUE     |
    | drain_pan_missing    | risk level 4, no drain pan            | ISSUE     |
    +----------------------+---------------------------------------+-----------+

Tankless units have no storage volume to expand, so the expansion-tank
and thermal-stress rules do not apply to them.

Violations are returned first; within a category rules keep table order.
The auditor only reads ``metrics``.

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.pipeline import calculate_opterra_risk
    >>> inputs = ForensicInputs(calendar_age=5, house_psi=95)
    >>> result = calculate_opterra_risk(inputs)
    >>> [i.id for i in get_infrastructure_issues(inputs, result.metrics)]
    ['prv_critical']

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Tuple

from opterra.risk.models import (
    ExpansionTankStatus,
    ForensicInputs,
    InfrastructureIssue,
    IssueCategory,
    OpterraMetrics,
    SoftenerSaltStatus,
    UnitType,
)

logger = logging.getLogger(__name__)

__all__ = [
    "InfrastructureAuditor",
    "get_infrastructure_issues",
    "get_issues_by_category",
    "calculate_issue_costs",
]

_PSI_PRV_SET_POINT = 60.0
_PSI_PRV_DRIFT = 75.0
_PSI_CODE_LIMIT = 80.0
_SOFTENER_RECOMMENDED_GPG = 15.0
_EXTREME_RISK_LEVEL = 4


def _is_closed(inputs: ForensicInputs) -> bool:
    return inputs.is_closed_loop or inputs.has_prv


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _exp_tank_required(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if not _is_closed(inputs) or inputs.has_exp_tank:
        return []
    return [InfrastructureIssue(
        id="exp_tank_required",
        name="Expansion Tank Install",
        friendly_name="Missing Expansion Tank",
        category=IssueCategory.ISSUE,
        description=(
            "The plumbing is a closed system (check valve or PRV) with no "
            "room for heated water to expand."
        ),
        recommendation="Install a thermal expansion tank sized to the system.",
        cost_min=250,
        cost_max=400,
    )]


def _exp_tank_replace(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if not (
        _is_closed(inputs)
        and inputs.has_exp_tank
        and inputs.exp_tank_status == ExpansionTankStatus.WATERLOGGED
    ):
        return []
    return [InfrastructureIssue(
        id="exp_tank_replace",
        name="Expansion Tank Replacement",
        friendly_name="Waterlogged Expansion Tank",
        category=IssueCategory.ISSUE,
        description=(
            "The expansion tank bladder has failed and no longer absorbs "
            "thermal expansion."
        ),
        recommendation="Replace the expansion tank and set its air charge to house pressure.",
        cost_min=250,
        cost_max=400,
    )]


def _thermal_stress(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if not _is_closed(inputs) or metrics.stress_factors.loop <= 1.0:
        return []
    return [InfrastructureIssue(
        id="thermal_stress",
        name="Thermal Expansion Stress",
        friendly_name="Pressure Spikes Every Heating Cycle",
        category=IssueCategory.ISSUE,
        description=(
            "Without working expansion control, pressure spikes on every "
            "heating cycle and fatigues the tank welds."
        ),
        recommendation="Restore thermal expansion control on the closed system.",
        cost_min=0,
        cost_max=0,
    )]


def _prv_rules(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    psi = inputs.house_psi
    if inputs.has_prv:
        if psi <= _PSI_PRV_DRIFT:
            return []
        category = IssueCategory.VIOLATION if psi > _PSI_CODE_LIMIT else IssueCategory.ISSUE
        return [InfrastructureIssue(
            id="prv_failed",
            name="PRV Replacement",
            friendly_name="Pressure Regulator Not Holding",
            category=category,
            description=(
                f"A pressure reducing valve is installed but house pressure "
                f"reads {psi:.0f} psi."
            ),
            recommendation="Replace the pressure reducing valve and reset it to 50-60 psi.",
            cost_min=350,
            cost_max=550,
        )]

    if psi > _PSI_CODE_LIMIT:
        return [InfrastructureIssue(
            id="prv_critical",
            name="PRV Installation (Critical)",
            friendly_name="Dangerous Water Pressure",
            category=IssueCategory.VIOLATION,
            description=(
                f"House pressure of {psi:.0f} psi exceeds the 80 psi code "
                f"limit with no pressure reducing valve."
            ),
            recommendation="Install a pressure reducing valve.",
            cost_min=350,
            cost_max=550,
        )]
    if psi >= _PSI_PRV_SET_POINT:
        return [InfrastructureIssue(
            id="prv_missing",
            name="PRV Installation",
            friendly_name="High Water Pressure",
            category=IssueCategory.ISSUE,
            description=(
                f"House pressure of {psi:.0f} psi is within code but adds "
                f"mechanical stress to the tank."
            ),
            recommendation="Install a pressure reducing valve set to 50-60 psi.",
            cost_min=350,
            cost_max=550,
        )]
    return []


def _softener_service(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if not (
        inputs.has_softener
        and inputs.softener is not None
        and inputs.softener.salt_status == SoftenerSaltStatus.EMPTY
    ):
        return []
    return [InfrastructureIssue(
        id="softener_service",
        name="Water Softener Service",
        friendly_name="Softener Out of Salt",
        category=IssueCategory.ISSUE,
        description="The softener has run out of salt and hard water is reaching the heater.",
        recommendation="Refill the brine tank and service the softener.",
        cost_min=200,
        cost_max=350,
    )]


def _softener_recommended(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if inputs.has_softener or metrics.effective_hardness_gpg <= _SOFTENER_RECOMMENDED_GPG:
        return []
    return [InfrastructureIssue(
        id="softener_recommended",
        name="Water Softener Installation",
        friendly_name="Very Hard Water",
        category=IssueCategory.ISSUE,
        description=(
            f"Water hardness of {metrics.effective_hardness_gpg:.0f} GPG "
            f"builds scale and sediment quickly."
        ),
        recommendation="Install a water softener.",
        cost_min=2400,
        cost_max=3200,
    )]


def _drain_pan_missing(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[InfrastructureIssue]:
    if metrics.risk_level < _EXTREME_RISK_LEVEL or inputs.has_drain_pan is not False:
        return []
    return [InfrastructureIssue(
        id="drain_pan_missing",
        name="Drain Pan Install",
        friendly_name="No Leak Protection",
        category=IssueCategory.ISSUE,
        description=(
            "The unit sits above living space with no drain pan to contain "
            "a leak."
        ),
        recommendation="Install a drain pan plumbed to a drain.",
        cost_min=150,
        cost_max=300,
    )]


_Rule = Callable[[ForensicInputs, OpterraMetrics], List[InfrastructureIssue]]

#: (rule, applies to tankless units)
_RULES: Tuple[Tuple[_Rule, bool], ...] = (
    (_exp_tank_required, False),
    (_exp_tank_replace, False),
    (_thermal_stress, False),
    (_prv_rules, True),
    (_softener_service, True),
    (_softener_recommended, True),
    (_drain_pan_missing, True),
)


# ---------------------------------------------------------------------------
# InfrastructureAuditor
# ---------------------------------------------------------------------------


class InfrastructureAuditor:
    """Stateless rule runner for installation defects."""

    def audit(
        self, inputs: ForensicInputs, metrics: OpterraMetrics,
    ) -> List[InfrastructureIssue]:
        """Return detected issues, violations first.

        Args:
            inputs: Forensic snapshot.
            metrics: Engine metrics (read only).

        Returns:
            List of InfrastructureIssue.
        """
        tankless = metrics.unit_type == UnitType.TANKLESS
        issues: List[InfrastructureIssue] = []
        for rule, applies_to_tankless in _RULES:
            if tankless and not applies_to_tankless:
                continue
            issues.extend(rule(inputs, metrics))

        ordered = [i for i in issues if i.is_violation] + [
            i for i in issues if not i.is_violation
        ]
        if ordered:
            logger.debug(
                "Infrastructure audit: %s",
                ", ".join(f"{i.id}({i.category.value})" for i in ordered),
            )
        return ordered


_default_auditor = InfrastructureAuditor()


def get_infrastructure_issues(
    inputs: ForensicInputs, metrics: OpterraMetrics,
) -> List[InfrastructureIssue]:
    """Detect infrastructure issues for a unit. See InfrastructureAuditor."""
    return _default_auditor.audit(inputs, metrics)


def get_issues_by_category(
    issues: Iterable[InfrastructureIssue], category: IssueCategory,
) -> List[InfrastructureIssue]:
    return [issue for issue in issues if issue.category == category]


def calculate_issue_costs(issues: Iterable[InfrastructureIssue]) -> Dict[str, int]:
    """Total cost range of a set of issues."""
    low = high = 0
    for issue in issues:
        low += issue.cost_min
        high += issue.cost_max
    return {"low": low, "high": high}
