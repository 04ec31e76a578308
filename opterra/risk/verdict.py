# -*- coding: utf-8 -*-
"""
VerdictEngine - Opterra Risk Engine

Chooses one of REPLACE / REPAIR / UPGRADE / MAINTAIN / PASS for a unit.
Each unit type has an ordered decision tree; the first matching rule wins,
so identical metrics and issues always produce the identical verdict.

Tank Tree:
    1.  containment breach (rust, tank-body leak)   -> REPLACE
    2.  sediment lockout                            -> REPLACE
    3.  > 100 psi on a unit older than 10 years     -> REPLACE
    4.  health < 30                                 -> REPLACE
    5.  code violation on a fragile, old unit       -> REPLACE
    6.  fitting or drain-pan leak                   -> REPAIR
    7.  closed system without expansion control     -> REPAIR
    8.  > 80 psi                                    -> REPAIR
    9.  pressure 60-80 psi without a PRV            -> UPGRADE
    10. heavy sediment (fragile tank: PASS)         -> MAINTAIN
    11. anode nearly spent on a young unit          -> MAINTAIN
    12. otherwise                                   -> PASS

Hybrid units check a breach first, then heat-pump faults (clogged air
filter, blocked condensate, sealed closet), then run the tank tree.

Tankless units treat scale lockout as an unconditional REPLACE: the
damage is irreversible and descaling can open pinholes.

Badge:
    REPLACE                 -> CRITICAL (urgent or health < 30) or REPLACE
    REPAIR/UPGRADE/MAINTAIN -> SERVICE
    PASS                    -> OPTIMAL (health >= 60) or MONITOR

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from opterra.risk.failure_model import is_containment_breach
from opterra.risk.models import (
    HEALTH_CRITICAL_THRESHOLD,
    HEALTH_HEALTHY_THRESHOLD,
    Badge,
    FilterStatus,
    ForensicInputs,
    GasLineSize,
    InfrastructureIssue,
    LeakSource,
    OpterraMetrics,
    Recommendation,
    RoomVolumeType,
    ServiceStatus,
    UnitType,
    VentStatus,
    VerdictAction,
)

logger = logging.getLogger(__name__)

__all__ = [
    "BADGE_COLORS",
    "VerdictEngine",
    "badge_for",
    "determine_verdict",
]

BADGE_COLORS: Dict[Badge, str] = {
    Badge.CRITICAL: "red",
    Badge.REPLACE: "orange",
    Badge.SERVICE: "yellow",
    Badge.MONITOR: "blue",
    Badge.OPTIMAL: "green",
}

_VESSEL_FATIGUE_PSI = 100.0
_VESSEL_FATIGUE_AGE = 10.0
_CODE_LIMIT_PSI = 80.0
_FRAGILE_AGE = 12.0
_FLUSH_SEDIMENT_LBS = 5.0
_ANODE_REFRESH_SHIELD = 1.0
_ANODE_REFRESH_MAX_AGE = 8.0
_LIABILITY_RISK_LEVEL = 3

_CHRONIC_FAULT_CODES = 10
_TANKLESS_END_OF_LIFE_AGE = 15.0
_URGENT_SCALE_SCORE = 25.0
_GAS_STARVATION_BTU = 150_000.0
_ISOLATION_VALVE_MIN_AGE = 1.0


def badge_for(action: VerdictAction, health_score: int, urgent: bool) -> Badge:
    """Derive the coarse UI badge from an action and health score."""
    if action == VerdictAction.REPLACE:
        if urgent or health_score < HEALTH_CRITICAL_THRESHOLD:
            return Badge.CRITICAL
        return Badge.REPLACE
    if action == VerdictAction.PASS:
        return Badge.OPTIMAL if health_score >= HEALTH_HEALTHY_THRESHOLD else Badge.MONITOR
    return Badge.SERVICE


class VerdictEngine:
    """Deterministic decision trees for tank, hybrid and tankless units."""

    def determine(
        self,
        inputs: ForensicInputs,
        metrics: OpterraMetrics,
        issues: Iterable[InfrastructureIssue] = (),
    ) -> Recommendation:
        """Return the verdict for a unit.

        Args:
            inputs: Forensic snapshot.
            metrics: Engine metrics.
            issues: Infrastructure findings for the same snapshot.

        Returns:
            Recommendation.
        """
        issue_list = list(issues)
        if metrics.unit_type == UnitType.TANKLESS:
            verdict = self._tankless(inputs, metrics)
        elif metrics.unit_type == UnitType.HYBRID:
            verdict = self._hybrid(inputs, metrics) or self._tank(inputs, metrics, issue_list)
        else:
            verdict = self._tank(inputs, metrics, issue_list)

        logger.debug(
            "Verdict: unit=%s action=%s reason=%s badge=%s",
            metrics.unit_type.value, verdict.action.value, verdict.reason,
            verdict.badge.value,
        )
        return verdict

    # ------------------------------------------------------------------
    # Trees
    # ------------------------------------------------------------------

    def _tank(
        self,
        inputs: ForensicInputs,
        metrics: OpterraMetrics,
        issues: List[InfrastructureIssue],
    ) -> Recommendation:
        health = metrics.health_score
        age = inputs.calendar_age
        psi = inputs.house_psi
        fragile = health < HEALTH_HEALTHY_THRESHOLD or age >= _FRAGILE_AGE

        if is_containment_breach(inputs, metrics.unit_type):
            return _rec(
                VerdictAction.REPLACE, "containment_breach", health,
                "Tank Failure Detected",
                "Rust or a leak from the tank body means the steel vessel has "
                "failed. It cannot be repaired.",
                urgent=True,
            )
        if metrics.flush_status == ServiceStatus.LOCKOUT:
            return _rec(
                VerdictAction.REPLACE, "sediment_lockout", health,
                "Sediment Past the Point of Flushing",
                f"An estimated {metrics.sediment_lbs:.0f} lbs of hardened "
                f"sediment is in the tank. Flushing now risks clogging the "
                f"drain valve and opening leaks.",
            )
        if psi > _VESSEL_FATIGUE_PSI and age > _VESSEL_FATIGUE_AGE:
            return _rec(
                VerdictAction.REPLACE, "vessel_fatigue", health,
                "Pressure Fatigue on an Aging Tank",
                f"{age:.0f} years at {psi:.0f} psi has fatigued the tank "
                f"welds beyond a safe margin.",
                urgent=True,
            )
        if health < HEALTH_CRITICAL_THRESHOLD:
            if metrics.risk_level >= _LIABILITY_RISK_LEVEL:
                return _rec(
                    VerdictAction.REPLACE, "liability_hazard", health,
                    "High-Risk Location",
                    "Failure is likely and a leak here would damage living "
                    "space. Replace before it fails.",
                    urgent=True,
                )
            return _rec(
                VerdictAction.REPLACE, "end_of_life", health,
                "End of Service Life",
                f"The tank's wear-adjusted age is {metrics.bio_age:.0f} years. "
                f"Plan the replacement on your schedule.",
            )
        if age >= _FRAGILE_AGE and health < HEALTH_HEALTHY_THRESHOLD and any(
            issue.is_violation for issue in issues
        ):
            return _rec(
                VerdictAction.REPLACE, "violation_on_fragile_unit", health,
                "Code Violation on an Aging Unit",
                "Fixing the code violation would mean investing in a tank "
                "near the end of its life. Replace and correct both together.",
            )
        if inputs.is_leaking and inputs.leak_source in (
            LeakSource.FITTING_VALVE, LeakSource.DRAIN_PAN,
        ):
            return _rec(
                VerdictAction.REPAIR, "fitting_leak", health,
                "Repair Leaking Fitting",
                "The leak is at a fitting or valve, not the tank. It can be "
                "repaired.",
                urgent=True,
            )
        if metrics.stress_factors.loop > 1.0:
            return _rec(
                VerdictAction.REPAIR, "thermal_expansion", health,
                "Install Expansion Control",
                "The plumbing is closed with no working expansion tank, so "
                "pressure spikes every time the water heats.",
            )
        if psi > _CODE_LIMIT_PSI:
            if inputs.has_prv:
                return _rec(
                    VerdictAction.REPAIR, "prv_failed", health,
                    "Replace Pressure Regulator",
                    f"The pressure reducing valve is not holding: house "
                    f"pressure is {psi:.0f} psi.",
                )
            return _rec(
                VerdictAction.REPAIR, "pressure_violation", health,
                "Dangerous Water Pressure",
                f"House pressure of {psi:.0f} psi exceeds the 80 psi code "
                f"limit. Install a pressure reducing valve.",
                urgent=True,
            )
        if any(issue.id == "prv_missing" for issue in issues):
            return _rec(
                VerdictAction.UPGRADE, "pressure_optimization", health,
                "Reduce Water Pressure",
                f"At {psi:.0f} psi the tank ages faster than it needs to. A "
                f"pressure reducing valve extends its life.",
            )
        if (
            metrics.flush_status == ServiceStatus.DUE
            and metrics.sediment_lbs >= _FLUSH_SEDIMENT_LBS
        ):
            if fragile:
                return _rec(
                    VerdictAction.PASS, "maintenance_risk", health,
                    "Monitor, Do Not Flush",
                    "Flushing an older tank with heavy sediment can dislodge "
                    "debris that was sealing weak spots. Leave it alone and "
                    "monitor.",
                )
            return _rec(
                VerdictAction.MAINTAIN, "flush_due", health,
                "Flush the Tank",
                f"About {metrics.sediment_lbs:.1f} lbs of sediment has built "
                f"up. Flushing restores efficiency.",
            )
        if (
            metrics.shield_life is not None
            and metrics.shield_life < _ANODE_REFRESH_SHIELD
            and age < _ANODE_REFRESH_MAX_AGE
        ):
            return _rec(
                VerdictAction.MAINTAIN, "anode_refresh", health,
                "Replace the Anode Rod",
                "The sacrificial anode is nearly spent. Replacing it now "
                "protects a tank that still has years of life.",
            )
        return _rec(
            VerdictAction.PASS, "system_healthy", health,
            "System Healthy",
            "No action needed beyond routine maintenance.",
        )

    def _hybrid(
        self, inputs: ForensicInputs, metrics: OpterraMetrics,
    ) -> Optional[Recommendation]:
        health = metrics.health_score
        if is_containment_breach(inputs, metrics.unit_type):
            return _rec(
                VerdictAction.REPLACE, "containment_breach", health,
                "Tank Failure Detected",
                "Rust or a leak from the tank body means the vessel has "
                "failed. It cannot be repaired.",
                urgent=True,
            )
        if inputs.air_filter_status == FilterStatus.CLOGGED:
            return _rec(
                VerdictAction.REPAIR, "air_filter_clogged", health,
                "Clean the Air Filter",
                "A clogged filter forces the heat pump onto resistance "
                "heating and strains the compressor.",
            )
        if inputs.is_condensate_clear is False:
            return _rec(
                VerdictAction.REPAIR, "condensate_blocked", health,
                "Clear the Condensate Line",
                "The condensate line is blocked and can overflow around the "
                "unit.",
                urgent=True,
            )
        if inputs.room_volume_type == RoomVolumeType.CLOSET_SEALED:
            return _rec(
                VerdictAction.UPGRADE, "insufficient_airflow", health,
                "Improve Airflow",
                "A sealed closet does not hold enough air for the heat pump. "
                "Louvered doors or ducting restore efficiency.",
            )
        return None

    def _tankless(
        self, inputs: ForensicInputs, metrics: OpterraMetrics,
    ) -> Recommendation:
        health = metrics.health_score
        age = inputs.calendar_age
        psi = inputs.house_psi
        codes = inputs.error_code_count
        scale = metrics.scale_buildup_score or 0.0

        if metrics.descale_status == ServiceStatus.LOCKOUT:
            return _rec(
                VerdictAction.REPLACE, "scale_lockout", health,
                "Scale Damage Is Irreversible",
                f"Scale buildup ({scale:.0f}%) has passed the point where "
                f"descaling is safe. Replace the unit.",
                urgent=True,
            )
        if inputs.vent_status == VentStatus.BLOCKED:
            return _rec(
                VerdictAction.REPLACE, "vent_blocked", health,
                "Blocked Exhaust Vent",
                "A blocked vent is a combustion safety hazard and has "
                "overheated the unit.",
                urgent=True,
            )
        if is_containment_breach(inputs, metrics.unit_type):
            return _rec(
                VerdictAction.REPLACE, "containment_breach", health,
                "Heat Exchanger Leak",
                "Water is leaking from the unit; the heat exchanger has "
                "failed.",
                urgent=True,
            )
        if codes > _CHRONIC_FAULT_CODES:
            return _rec(
                VerdictAction.REPLACE, "chronic_faults", health,
                "Chronic Fault Codes",
                f"{codes} fault codes point to failing electronics. Repairs "
                f"are unlikely to last.",
            )
        if age > _TANKLESS_END_OF_LIFE_AGE or health < HEALTH_CRITICAL_THRESHOLD:
            return _rec(
                VerdictAction.REPLACE, "end_of_life", health,
                "End of Service Life",
                f"At {age:.0f} years the unit is at the end of its expected "
                f"service life.",
            )
        if codes > 0:
            return _rec(
                VerdictAction.REPAIR, "active_faults", health,
                "Diagnose Fault Codes",
                f"The controller has logged {codes} fault code(s). A "
                f"technician should diagnose them.",
            )
        if psi > _CODE_LIMIT_PSI:
            reason = "prv_failed" if inputs.has_prv else "pressure_violation"
            return _rec(
                VerdictAction.REPAIR, reason, health,
                "Correct Water Pressure",
                f"House pressure of {psi:.0f} psi exceeds the 80 psi code "
                f"limit.",
                urgent=not inputs.has_prv,
            )
        if metrics.descale_status == ServiceStatus.DUE:
            return _rec(
                VerdictAction.MAINTAIN, "descale_due", health,
                "Descale the Heat Exchanger",
                "Mineral scale is building up on the heat exchanger.",
                urgent=scale > _URGENT_SCALE_SCORE,
            )
        if (
            inputs.btu_rating is not None
            and inputs.btu_rating > _GAS_STARVATION_BTU
            and inputs.gas_line_size == GasLineSize.HALF_INCH
        ):
            return _rec(
                VerdictAction.UPGRADE, "gas_starvation", health,
                "Upsize the Gas Line",
                f"A {inputs.btu_rating:,.0f} BTU burner on a 1/2\" line is "
                f"starved for gas at full fire.",
            )
        if inputs.has_isolation_valves is False and age > _ISOLATION_VALVE_MIN_AGE:
            return _rec(
                VerdictAction.UPGRADE, "isolation_valves", health,
                "Install Isolation Valves",
                "Service valves make routine descaling possible.",
            )
        return _rec(
            VerdictAction.PASS, "system_healthy", health,
            "System Healthy",
            "No action needed beyond routine maintenance.",
        )


def _rec(
    action: VerdictAction,
    reason: str,
    health_score: int,
    title: str,
    detail: str,
    urgent: bool = False,
) -> Recommendation:
    badge = badge_for(action, health_score, urgent)
    return Recommendation(
        action=action,
        badge=badge,
        badge_color=BADGE_COLORS[badge],
        reason=reason,
        title=title,
        detail=detail,
        urgent=urgent,
    )


_default_engine = VerdictEngine()


def determine_verdict(
    inputs: ForensicInputs,
    metrics: OpterraMetrics,
    issues: Iterable[InfrastructureIssue] = (),
) -> Recommendation:
    """Return the verdict for a unit. See VerdictEngine.determine."""
    return _default_engine.determine(inputs, metrics, issues)
