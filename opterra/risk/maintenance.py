# -*- coding: utf-8 -*-
"""
MaintenanceScheduler - Opterra Risk Engine

Builds a ranked, unit-type-aware maintenance plan:

- Tank: sediment flush (12 months) and anode inspection (36 months,
  24 with a softener or a burn rate of 2x or more, and never later than
  a year before the anode shield runs out)
- Hybrid: flush, heat-pump air filter, condensate line and a compressor
  inspection when compressor health is below 70%
- Tankless: descale (12 / 24 / 36 months by hardness), inlet filter,
  isolation valves, diagnostics when fault codes are logged, and a
  replacement consult once scale has locked out

``months_until_due`` is the interval minus the months since the last
service; negative values are overdue. Unknown service history counts from
installation, and no task is reported overdue by more than the unit's age.

Tasks are ranked by months until due, then by type priority. The top two
tasks are bundled into one visit when they fall within two months of each
other; isolation valves are always scheduled alongside a descale because
the descale needs them.

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.pipeline import calculate_opterra_risk
    >>> inputs = ForensicInputs(calendar_age=3, last_flush_years_ago=2)
    >>> result = calculate_opterra_risk(inputs)
    >>> schedule = calculate_maintenance_schedule(inputs, result.metrics)
    >>> schedule.primary_task.type.value
    'flush'

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from opterra.risk.infrastructure import get_infrastructure_issues
from opterra.risk.models import (
    FilterStatus,
    ForensicInputs,
    InfrastructureIssue,
    MaintenanceSchedule,
    MaintenanceTask,
    MaintenanceType,
    OpterraMetrics,
    Recommendation,
    ServiceStatus,
    TaskUrgency,
    UnitType,
    VerdictAction,
)

logger = logging.getLogger(__name__)

__all__ = [
    "BUNDLE_THRESHOLD_MONTHS",
    "MaintenanceScheduler",
    "calculate_maintenance_schedule",
    "get_infrastructure_maintenance_tasks",
    "urgency_for",
]

BUNDLE_THRESHOLD_MONTHS = 2

_FLUSH_INTERVAL = 12
_ANODE_INTERVAL = 36
_ANODE_INTERVAL_FAST = 24
_FAST_BURN_RATE = 2.0
_DUE_SOON_MONTHS = 3
_COMPRESSOR_INSPECTION_HEALTH = 70.0

_AIR_FILTER_MONTHS: Dict[Optional[FilterStatus], int] = {
    FilterStatus.CLOGGED: 0,
    FilterStatus.DIRTY: 1,
    FilterStatus.CLEAN: 12,
    None: 3,
}

_INLET_FILTER_MONTHS: Dict[Optional[FilterStatus], int] = {
    FilterStatus.CLOGGED: 0,
    FilterStatus.DIRTY: 1,
    FilterStatus.CLEAN: 6,
    None: 1,
}

#: Tie-break order when two tasks are due in the same month.
_TYPE_PRIORITY: Dict[MaintenanceType, int] = {
    MaintenanceType.PRV: 0,
    MaintenanceType.REPLACEMENT_CONSULT: 1,
    MaintenanceType.INSPECTION: 2,
    MaintenanceType.FLUSH: 3,
    MaintenanceType.DESCALE: 4,
    MaintenanceType.ISOLATION_VALVES: 5,
    MaintenanceType.ANODE: 6,
    MaintenanceType.CONDENSATE: 7,
    MaintenanceType.AIR_FILTER: 8,
    MaintenanceType.INLET_FILTER: 9,
}

_MAINTENANCE_RISK_REASON = "maintenance_risk"


def urgency_for(months_until_due: int) -> TaskUrgency:
    """Urgency bucket for a due date."""
    if months_until_due < 0:
        return TaskUrgency.OVERDUE
    if months_until_due == 0:
        return TaskUrgency.IMMEDIATE
    if months_until_due <= _DUE_SOON_MONTHS:
        return TaskUrgency.DUE_SOON
    return TaskUrgency.SCHEDULED


def _task(
    type_: MaintenanceType,
    label: str,
    months: int,
    why: str,
    benefit: str = "",
    aging_multiplier: Optional[float] = None,
    is_violation: bool = False,
) -> MaintenanceTask:
    return MaintenanceTask(
        type=type_,
        label=label,
        months_until_due=months,
        urgency=urgency_for(months),
        why_explanation=why,
        benefit=benefit,
        aging_multiplier=aging_multiplier,
        is_violation=is_violation,
    )


# ---------------------------------------------------------------------------
# MaintenanceScheduler
# ---------------------------------------------------------------------------


class MaintenanceScheduler:
    """Stateless maintenance planner.

    Example:
        >>> scheduler = MaintenanceScheduler()
        >>> schedule = scheduler.schedule(inputs, metrics)  # doctest: +SKIP
    """

    def schedule(
        self,
        inputs: ForensicInputs,
        metrics: OpterraMetrics,
        verdict: Optional[Recommendation] = None,
    ) -> MaintenanceSchedule:
        """Build the maintenance schedule for a unit.

        Args:
            inputs: Forensic snapshot.
            metrics: Engine metrics.
            verdict: Optional verdict. REPLACE yields an empty schedule;
                a fragile tank (``maintenance_risk``) yields a monitor-only
                schedule without a flush.

        Returns:
            MaintenanceSchedule.
        """
        unit_type = metrics.unit_type
        if verdict is not None and verdict.action == VerdictAction.REPLACE:
            logger.debug("Verdict REPLACE: maintenance schedule suppressed")
            return MaintenanceSchedule(unit_type=unit_type)

        monitor_only = verdict is not None and verdict.reason == _MAINTENANCE_RISK_REASON

        if unit_type == UnitType.TANKLESS:
            tasks = self._tankless_tasks(inputs, metrics)
        else:
            tasks = self._storage_tasks(inputs, metrics, include_flush=not monitor_only)
            if unit_type == UnitType.HYBRID:
                tasks.extend(self._hybrid_tasks(inputs))

        schedule = self._assemble(unit_type, tasks, monitor_only)
        logger.debug(
            "Maintenance schedule: unit=%s tasks=%s bundled=%s monitor_only=%s",
            unit_type.value,
            [f"{t.type.value}:{t.months_until_due}" for t in schedule.all_tasks],
            schedule.is_bundled,
            schedule.monitor_only,
        )
        return schedule

    # ------------------------------------------------------------------
    # Task builders
    # ------------------------------------------------------------------

    @staticmethod
    def _months_due(
        interval: int, years_since: Optional[float], calendar_age: float,
    ) -> int:
        since = calendar_age if years_since is None else min(years_since, calendar_age)
        months = interval - since * 12.0
        floor = -calendar_age * 12.0
        return int(round(max(months, floor)))

    def _storage_tasks(
        self, inputs: ForensicInputs, metrics: OpterraMetrics, include_flush: bool,
    ) -> List[MaintenanceTask]:
        tasks: List[MaintenanceTask] = []
        age = inputs.calendar_age

        if include_flush and metrics.flush_status != ServiceStatus.LOCKOUT:
            months = self._months_due(_FLUSH_INTERVAL, inputs.last_flush_years_ago, age)
            if metrics.flush_status == ServiceStatus.DUE:
                months = min(months, 0)
            tasks.append(_task(
                MaintenanceType.FLUSH,
                "Tank Flush",
                months,
                _flush_explanation(metrics),
                benefit=(
                    f"Remove {metrics.sediment_lbs:.1f} lbs of sediment"
                    if metrics.sediment_lbs > 0
                    else "Maintain peak efficiency"
                ),
            ))

        if metrics.unit_type == UnitType.TANK:
            burn = metrics.anode_burn_rate or 1.0
            interval = (
                _ANODE_INTERVAL_FAST
                if inputs.has_softener or burn >= _FAST_BURN_RATE
                else _ANODE_INTERVAL
            )
            months = self._months_due(interval, inputs.last_anode_replace_years_ago, age)
            if metrics.shield_life is not None:
                months = min(months, int(round((metrics.shield_life - 1.0) * 12.0)))
            months = max(months, int(round(-age * 12.0)))
            tasks.append(_task(
                MaintenanceType.ANODE,
                "Anode Rod Inspection",
                months,
                (
                    "The sacrificial anode corrodes so the tank steel does not. "
                    "Inspection confirms it is still protecting the tank."
                ),
                benefit="Prevent tank corrosion",
            ))
        return tasks

    @staticmethod
    def _hybrid_tasks(inputs: ForensicInputs) -> List[MaintenanceTask]:
        tasks = [
            _task(
                MaintenanceType.AIR_FILTER,
                "Clean Air Filter",
                _AIR_FILTER_MONTHS[inputs.air_filter_status],
                (
                    "A dirty filter starves the evaporator of air and forces the "
                    "unit onto less efficient resistance heating."
                ),
                benefit="Maximize heat pump efficiency",
            ),
            _task(
                MaintenanceType.CONDENSATE,
                "Clear Condensate Drain",
                0 if inputs.is_condensate_clear is False else 12,
                (
                    "Heat pumps produce condensation; a blocked line overflows "
                    "and damages the area around the unit."
                ),
                benefit="Prevent water damage",
            ),
        ]
        if (
            inputs.compressor_health is not None
            and inputs.compressor_health < _COMPRESSOR_INSPECTION_HEALTH
        ):
            tasks.append(_task(
                MaintenanceType.INSPECTION,
                "Compressor Inspection",
                1,
                (
                    f"Compressor health is {inputs.compressor_health:.0f}%. "
                    f"A technician should check refrigerant charge and "
                    f"electrical components."
                ),
                benefit="Catch compressor failure early",
            ))
        return tasks

    def _tankless_tasks(
        self, inputs: ForensicInputs, metrics: OpterraMetrics,
    ) -> List[MaintenanceTask]:
        tasks: List[MaintenanceTask] = []
        hardness = metrics.effective_hardness_gpg
        scale = metrics.scale_buildup_score or 0.0

        if metrics.descale_status == ServiceStatus.LOCKOUT:
            tasks.append(_task(
                MaintenanceType.REPLACEMENT_CONSULT,
                "Replacement Consultation",
                0,
                (
                    f"Scale buildup ({scale:.0f}%) is past the point where "
                    f"descaling is safe; acid can open pinholes in the heat "
                    f"exchanger."
                ),
                benefit="Avoid an unplanned failure",
            ))
        else:
            interval = 12 if hardness > 10 else 24 if hardness >= 5 else 36
            months = self._months_due(
                interval, inputs.last_descale_years_ago, inputs.calendar_age,
            )
            if metrics.descale_status == ServiceStatus.DUE:
                months = min(months, 0)
            tasks.append(_task(
                MaintenanceType.DESCALE,
                "Descale Heat Exchanger",
                months,
                _descale_explanation(scale, hardness),
                benefit=(
                    f"Remove {scale:.0f}% scale buildup"
                    if scale > 5
                    else "Maintain heat transfer efficiency"
                ),
            ))

        tasks.append(_task(
            MaintenanceType.INLET_FILTER,
            "Clean Inlet Filter",
            _INLET_FILTER_MONTHS[inputs.inlet_filter_status],
            (
                "The inlet screen catches debris before it reaches the heat "
                "exchanger. A clogged screen cuts flow and triggers fault codes."
            ),
            benefit="Maintain water flow",
        ))

        if inputs.has_isolation_valves is False:
            tasks.append(_task(
                MaintenanceType.ISOLATION_VALVES,
                "Install Isolation Valves",
                0,
                (
                    "Without service valves the unit cannot be descaled. This "
                    "one-time upgrade enables routine maintenance."
                ),
                benefit="Enable descaling",
            ))

        if inputs.error_code_count > 0:
            tasks.append(_task(
                MaintenanceType.INSPECTION,
                "Fault Code Diagnostics",
                0,
                (
                    f"The controller has logged {inputs.error_code_count} fault "
                    f"code(s). A technician should read and clear them."
                ),
                benefit="Resolve active faults",
            ))
        return tasks

    # ------------------------------------------------------------------
    # Ranking and bundling
    # ------------------------------------------------------------------

    @staticmethod
    def rank(tasks: List[MaintenanceTask]) -> List[MaintenanceTask]:
        """Order tasks by due date then type; keep valves next to descale."""
        ranked = sorted(
            tasks, key=lambda t: (t.months_until_due, _TYPE_PRIORITY[t.type]),
        )
        types = [t.type for t in ranked]
        if MaintenanceType.DESCALE in types and MaintenanceType.ISOLATION_VALVES in types:
            descale = ranked[types.index(MaintenanceType.DESCALE)]
            valves = ranked[types.index(MaintenanceType.ISOLATION_VALVES)]
            position = min(ranked.index(descale), ranked.index(valves))
            rest = [t for t in ranked if t is not descale and t is not valves]
            ranked = rest[:position] + [descale, valves] + rest[position:]
        return ranked

    def _assemble(
        self, unit_type: UnitType, tasks: List[MaintenanceTask], monitor_only: bool,
    ) -> MaintenanceSchedule:
        ranked = self.rank(tasks)
        if not ranked:
            return MaintenanceSchedule(unit_type=unit_type, monitor_only=monitor_only)

        bundle, reason = self._bundle(ranked)
        if bundle:
            return MaintenanceSchedule(
                unit_type=unit_type,
                primary_task=ranked[0],
                secondary_task=None,
                additional_tasks=ranked[2:],
                is_bundled=True,
                bundled_tasks=bundle,
                bundle_reason=reason,
                monitor_only=monitor_only,
            )
        return MaintenanceSchedule(
            unit_type=unit_type,
            primary_task=ranked[0],
            secondary_task=ranked[1] if len(ranked) > 1 else None,
            additional_tasks=ranked[2:],
            monitor_only=monitor_only,
        )

    @staticmethod
    def _bundle(
        ranked: List[MaintenanceTask],
    ) -> Tuple[List[MaintenanceTask], Optional[str]]:
        if len(ranked) < 2:
            return [], None
        first, second = ranked[0], ranked[1]
        pair = {first.type, second.type}
        if pair == {MaintenanceType.DESCALE, MaintenanceType.ISOLATION_VALVES}:
            return [first, second], "Isolation valves are installed during the descale visit"
        if abs(first.months_until_due - second.months_until_due) <= BUNDLE_THRESHOLD_MONTHS:
            earliest = min(first.months_until_due, second.months_until_due)
            if earliest <= 0:
                return [first, second], "Complete both in one service visit"
            return [first, second], f"Both due within {BUNDLE_THRESHOLD_MONTHS} months"
        return [], None

    # ------------------------------------------------------------------
    # Infrastructure view
    # ------------------------------------------------------------------

    def infrastructure_tasks(
        self, inputs: ForensicInputs, metrics: OpterraMetrics,
    ) -> List[MaintenanceTask]:
        """Code-violation tasks that must render ahead of routine work."""
        multiplier = round(
            metrics.stress_factors.pressure * metrics.stress_factors.loop, 1,
        )
        tasks = [
            _violation_task(issue, multiplier)
            for issue in get_infrastructure_issues(inputs, metrics)
            if issue.is_violation
        ]
        return tasks


_VIOLATION_TASKS: Dict[str, Tuple[MaintenanceType, str, str]] = {
    "prv_critical": (
        MaintenanceType.PRV,
        "Install Pressure Reducing Valve",
        "Bring house pressure under the 80 psi code limit",
    ),
    "prv_failed": (
        MaintenanceType.PRV,
        "Replace Pressure Reducing Valve",
        "Restore pressure regulation",
    ),
}


def _violation_task(issue: InfrastructureIssue, multiplier: float) -> MaintenanceTask:
    type_, label, benefit = _VIOLATION_TASKS.get(
        issue.id, (MaintenanceType.INSPECTION, issue.name, issue.recommendation),
    )
    return _task(
        type_,
        label,
        0,
        issue.description,
        benefit=benefit,
        aging_multiplier=multiplier,
        is_violation=True,
    )


def _flush_explanation(metrics: OpterraMetrics) -> str:
    if metrics.sediment_lbs > 1:
        return (
            f"About {metrics.sediment_lbs:.1f} lbs of mineral sediment has "
            f"settled in the tank. Flushing restores heating efficiency and "
            f"protects the tank lining."
        )
    if metrics.effective_hardness_gpg > 10:
        return (
            "Hard water speeds up sediment buildup. Regular flushing keeps "
            "efficiency up and extends tank life."
        )
    return (
        "Periodic flushing removes mineral deposits before they reduce "
        "efficiency."
    )


def _descale_explanation(scale: float, hardness: float) -> str:
    if scale > 20:
        return (
            f"Mineral scale ({scale:.0f}%) is insulating the heat exchanger. "
            f"Descaling restores efficiency and prevents overheating."
        )
    if hardness > 10:
        return (
            f"At {hardness:.0f} GPG, scale builds quickly on the heat "
            f"exchanger. Annual descaling keeps it clean."
        )
    return "Periodic descaling keeps mineral deposits off the heat exchanger."


_default_scheduler = MaintenanceScheduler()


def calculate_maintenance_schedule(
    inputs: ForensicInputs,
    metrics: OpterraMetrics,
    verdict: Optional[Recommendation] = None,
) -> MaintenanceSchedule:
    """Build the maintenance schedule. See MaintenanceScheduler.schedule."""
    return _default_scheduler.schedule(inputs, metrics, verdict)


def get_infrastructure_maintenance_tasks(
    inputs: ForensicInputs, metrics: OpterraMetrics,
) -> List[MaintenanceTask]:
    """Violation-only task view. See MaintenanceScheduler.infrastructure_tasks."""
    return _default_scheduler.infrastructure_tasks(inputs, metrics)
