# -*- coding: utf-8 -*-
"""
RepairSimulator - Opterra Risk Engine

Repair catalog for tank, tankless and hybrid units, selection of the
repairs that apply to a given unit, and a before/after simulation.

Simulation Model:
    Full replacement short-circuits to a reset: aging factor 1.0, failure
    probability 0.5% and the matching health score.

    Otherwise reductions accumulate with diminishing returns:

        reduction = min(100, sum(impact_i / (1 + 0.2 * i)))
        new_fail_prob = max(min(2, current), current * (1 - reduction))
        new_aging     = max(min(1, current), current * (1 - reduction))
        new_score     = max(current, min(85, health(new_fail_prob)))

    A repair can only lower failure probability and aging, and the score
    never falls below the current score. Only a replacement can score
    above 85.

Example:
    >>> from opterra.risk.repair_simulator import simulate_repairs
    >>> result = simulate_repairs(40, 1.8, 23.0, ["flush", "anode"])
    >>> result.new_score >= 40
    True

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Union

from opterra.exceptions import UnknownRepairError
from opterra.risk.failure_model import fail_prob_to_health_score
from opterra.risk.models import (
    HEALTH_CRITICAL_THRESHOLD,
    HEALTH_HEALTHY_THRESHOLD,
    ExpansionTankStatus,
    FilterStatus,
    FlameRodStatus,
    ForensicInputs,
    FuelType,
    OpterraMetrics,
    Recommendation,
    RepairImpact,
    RepairOption,
    RepairStatus,
    ServiceStatus,
    SimulatedResult,
    UnitType,
    VentStatus,
    VerdictAction,
    unit_type_for,
)

logger = logging.getLogger(__name__)

__all__ = [
    "REPAIR_CATALOG",
    "REPLACEMENT_FAIL_PROB",
    "REPAIR_SCORE_CAP",
    "RepairSimulator",
    "get_repair",
    "get_repairs_by_unit_type",
    "get_available_repairs",
    "simulate_repairs",
]

#: Failure probability of a freshly installed unit.
REPLACEMENT_FAIL_PROB: float = 0.5

#: Best score reachable without replacing the unit.
REPAIR_SCORE_CAP: int = 85

_DIMINISHING_STEP = 0.2
_MIN_REPAIRED_FAIL_PROB = 2.0

_T = UnitType.TANK
_TL = UnitType.TANKLESS
_H = UnitType.HYBRID


def _option(
    id_: str,
    name: str,
    description: str,
    cost: tuple,
    impact: tuple,
    unit_types: tuple,
    replacement: bool = False,
) -> RepairOption:
    boost, aging, failure = impact
    return RepairOption(
        id=id_,
        name=name,
        description=description,
        cost_min=cost[0],
        cost_max=cost[1],
        impact=RepairImpact(
            health_score_boost=boost,
            aging_factor_reduction=aging,
            failure_prob_reduction=failure,
        ),
        is_full_replacement=replacement,
        unit_types=unit_types,
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

_CATALOG: List[RepairOption] = [
    # Tank
    _option("replace_tank", "Replace Water Heater",
            "Full tank replacement with a code-compliant installation",
            (2800, 4500), (100, 100, 100), (_T,), replacement=True),
    _option("prv", "Install PRV",
            "Pressure reducing valve to control inlet pressure",
            (350, 550), (20, 25, 30), (_T, _H)),
    _option("prv_exp_package", "Install PRV + Expansion Tank",
            "A PRV closes the system, so it is installed with an expansion tank",
            (600, 950), (35, 45, 55), (_T, _H)),
    _option("exp_tank", "Install Expansion Tank",
            "Absorbs thermal expansion on a closed system",
            (250, 400), (15, 20, 25), (_T, _H)),
    _option("replace_prv", "Replace Failed PRV",
            "Replace a pressure reducing valve that no longer regulates",
            (350, 550), (22, 28, 35), (_T, _H)),
    _option("replace_exp", "Replace Expansion Tank",
            "Replace a failed or waterlogged expansion tank",
            (250, 400), (18, 22, 28), (_T, _H)),
    _option("flush", "Flush Sediment",
            "Professional tank flush and drain",
            (150, 250), (15, 25, 20), (_T, _H)),
    _option("anode", "Replace Anode Rod",
            "New sacrificial anode installation",
            (200, 350), (18, 35, 25), (_T,)),
    # Tankless
    _option("replace_tankless", "Replace Tankless Unit",
            "Full tankless replacement with a code-compliant installation",
            (3500, 5500), (100, 100, 100), (_TL,), replacement=True),
    _option("descale", "Descale Heat Exchanger",
            "Vinegar flush to remove mineral scale",
            (200, 350), (20, 30, 25), (_TL,)),
    _option("isolation_valves", "Install Isolation Valves",
            "Service valves that make descaling possible",
            (400, 650), (10, 15, 20), (_TL,)),
    _option("inlet_filter", "Clean/Replace Inlet Filter",
            "Remove debris from the water inlet screen",
            (75, 150), (8, 10, 12), (_TL,)),
    _option("igniter_service", "Service Igniter/Flame Rod",
            "Clean or replace ignition components on gas units",
            (150, 300), (12, 15, 18), (_TL,)),
    _option("flow_sensor", "Replace Flow Sensor",
            "Restore accurate flow detection and proper firing",
            (200, 400), (15, 20, 22), (_TL,)),
    _option("vent_cleaning", "Vent System Cleaning",
            "Clear blocked or restricted exhaust venting",
            (150, 300), (10, 12, 15), (_TL,)),
    _option("recirculation_service", "Recirculation System Service",
            "Tune recirculation timing to reduce burner cycling",
            (200, 400), (8, 20, 15), (_TL,)),
    # Hybrid
    _option("replace_hybrid", "Replace Hybrid Unit",
            "Full heat pump water heater replacement",
            (3800, 5800), (100, 100, 100), (_H,), replacement=True),
    _option("air_filter_service", "Clean/Replace Air Filter",
            "Restore heat pump efficiency with clean airflow",
            (50, 100), (10, 15, 10), (_H,)),
    _option("condensate_clear", "Clear Condensate Drain",
            "Restore proper condensate drainage",
            (100, 200), (8, 10, 12), (_H,)),
    _option("compressor_service", "Compressor Service",
            "Diagnose and service the heat pump compressor",
            (300, 600), (20, 25, 30), (_H,)),
    _option("refrigerant_check", "Refrigerant Check & Recharge",
            "Verify refrigerant charge and recharge if needed",
            (200, 400), (15, 20, 18), (_H,)),
]

REPAIR_CATALOG: Dict[str, RepairOption] = {option.id: option for option in _CATALOG}

_REPLACEMENT_FOR: Dict[UnitType, str] = {
    UnitType.TANK: "replace_tank",
    UnitType.TANKLESS: "replace_tankless",
    UnitType.HYBRID: "replace_hybrid",
}

_FRAGILE_FAIL_PROB = 60.0
_FRAGILE_AGE = 12.0
_FLUSH_MIN_LBS = 5.0
_FLUSH_MAX_LBS = 15.0


def get_repair(repair_id: str) -> RepairOption:
    """Look up a catalog entry.

    Raises:
        UnknownRepairError: If ``repair_id`` is not in the catalog.
    """
    try:
        return REPAIR_CATALOG[repair_id]
    except KeyError:
        raise UnknownRepairError(
            f"Unknown repair option: {repair_id!r}",
            component="RepairSimulator",
            repair_id=repair_id,
            known_ids=sorted(REPAIR_CATALOG),
        ) from None


def get_repairs_by_unit_type(fuel_type: FuelType) -> List[RepairOption]:
    """Every catalog entry that applies to a fuel type's unit category."""
    unit_type = unit_type_for(fuel_type)
    return [option for option in _CATALOG if unit_type in option.unit_types]


def _status_for(score: int) -> RepairStatus:
    if score < HEALTH_CRITICAL_THRESHOLD:
        return RepairStatus.CRITICAL
    if score < HEALTH_HEALTHY_THRESHOLD:
        return RepairStatus.WARNING
    return RepairStatus.OPTIMAL


# ---------------------------------------------------------------------------
# RepairSimulator
# ---------------------------------------------------------------------------


class RepairSimulator:
    """Selects applicable repairs and simulates their effect."""

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def available(
        self,
        inputs: ForensicInputs,
        metrics: OpterraMetrics,
        verdict: Recommendation,
    ) -> List[RepairOption]:
        """Repairs that make sense for this unit right now.

        A REPLACE verdict offers only the replacement.
        """
        unit_type = unit_type_for(inputs.fuel_type)
        if verdict.action == VerdictAction.REPLACE:
            return [REPAIR_CATALOG[_REPLACEMENT_FOR[unit_type]]]

        if unit_type == UnitType.TANKLESS:
            ids = self._tankless_ids(inputs, metrics)
        elif unit_type == UnitType.HYBRID:
            ids = self._hybrid_ids(inputs) + self._pressure_ids(inputs, hybrid=True)
            ids += self._flush_ids(inputs, metrics)
        else:
            ids = self._pressure_ids(inputs, hybrid=False)
            ids += self._flush_ids(inputs, metrics)
            if (
                metrics.shield_life is not None
                and metrics.shield_life < 1
                and inputs.calendar_age < 8
            ):
                ids.append("anode")

        seen: List[str] = []
        for repair_id in ids:
            if repair_id not in seen:
                seen.append(repair_id)
        return [REPAIR_CATALOG[repair_id] for repair_id in seen]

    @staticmethod
    def _pressure_ids(inputs: ForensicInputs, hybrid: bool) -> List[str]:
        ids: List[str] = []
        psi = inputs.house_psi
        closed = inputs.is_closed_loop or inputs.has_prv

        # A new PRV closes the system, so it needs expansion control too.
        if not inputs.has_prv and psi >= 70:
            if not inputs.has_exp_tank or (psi > 80 and not hybrid):
                ids.append("prv_exp_package")
            else:
                ids.append("prv")

        if inputs.has_prv and psi > 75:
            ids.append("replace_prv")

        if closed and not inputs.has_exp_tank and "prv_exp_package" not in ids:
            ids.append("exp_tank")

        if inputs.has_exp_tank and (
            inputs.exp_tank_status == ExpansionTankStatus.WATERLOGGED
            or (inputs.has_prv and psi > 80)
        ):
            ids.append("replace_exp")
        return ids

    @staticmethod
    def _flush_ids(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[str]:
        fragile = metrics.fail_prob > _FRAGILE_FAIL_PROB or inputs.calendar_age > _FRAGILE_AGE
        serviceable = _FLUSH_MIN_LBS <= metrics.sediment_lbs <= _FLUSH_MAX_LBS
        return ["flush"] if serviceable and not fragile else []

    @staticmethod
    def _hybrid_ids(inputs: ForensicInputs) -> List[str]:
        ids: List[str] = []
        if inputs.air_filter_status in (FilterStatus.DIRTY, FilterStatus.CLOGGED):
            ids.append("air_filter_service")
        if inputs.is_condensate_clear is False:
            ids.append("condensate_clear")
        compressor = inputs.compressor_health if inputs.compressor_health is not None else 100.0
        if compressor < 70:
            ids.append("compressor_service")
        elif compressor < 90:
            ids.append("refrigerant_check")
        return ids

    @staticmethod
    def _tankless_ids(inputs: ForensicInputs, metrics: OpterraMetrics) -> List[str]:
        ids: List[str] = []
        has_valves = bool(inputs.has_isolation_valves)
        scale = metrics.scale_buildup_score or 0.0

        if not has_valves:
            ids.append("isolation_valves")
        elif metrics.descale_status is not None and (
            metrics.descale_status == ServiceStatus.DUE or scale > 10
        ):
            ids.append("descale")

        if inputs.inlet_filter_status in (FilterStatus.DIRTY, FilterStatus.CLOGGED):
            ids.append("inlet_filter")

        is_gas = inputs.fuel_type == FuelType.TANKLESS_GAS
        igniter = inputs.igniter_health if inputs.igniter_health is not None else 100.0
        if is_gas and (
            igniter < 70
            or inputs.flame_rod_status in (FlameRodStatus.WORN, FlameRodStatus.FAILING)
        ):
            ids.append("igniter_service")
        if is_gas and inputs.vent_status in (VentStatus.RESTRICTED, VentStatus.BLOCKED):
            ids.append("vent_cleaning")

        if (inputs.has_recirculation_loop or inputs.has_circ_pump) and inputs.calendar_age > 3:
            ids.append("recirculation_service")
        return ids

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def simulate(
        self,
        current_score: float,
        current_aging_factor: float,
        current_fail_prob: float,
        repairs: Sequence[Union[str, RepairOption]],
    ) -> SimulatedResult:
        """Simulate the effect of a set of repairs.

        Args:
            current_score: Current health score.
            current_aging_factor: Current aging rate.
            current_fail_prob: Current failure probability (percent).
            repairs: Repair options or catalog ids.

        Returns:
            SimulatedResult, never worse than the current state.

        Raises:
            UnknownRepairError: If an id is not in the catalog.
        """
        options = [
            repair if isinstance(repair, RepairOption) else get_repair(repair)
            for repair in repairs
        ]
        score = int(round(min(100.0, max(0.0, current_score))))
        aging = max(0.0, current_aging_factor)
        fail_prob = min(100.0, max(0.0, current_fail_prob))

        if not options:
            return SimulatedResult(
                new_score=score,
                new_status=_status_for(score),
                new_aging_factor=round(aging, 2),
                new_failure_prob=round(fail_prob, 1),
            )

        replacement = next((o for o in options if o.is_full_replacement), None)
        if replacement is not None:
            new_score = max(score, fail_prob_to_health_score(REPLACEMENT_FAIL_PROB))
            logger.debug("Repair simulation: replacement %s", replacement.id)
            return SimulatedResult(
                new_score=new_score,
                new_status=_status_for(new_score),
                new_aging_factor=1.0,
                new_failure_prob=min(fail_prob, REPLACEMENT_FAIL_PROB),
                new_bio_age=0.0,
                total_cost_min=replacement.cost_min,
                total_cost_max=replacement.cost_max,
                repair_ids=[replacement.id],
            )

        aging_reduction = 0.0
        failure_reduction = 0.0
        for index, option in enumerate(options):
            weight = 1.0 / (1.0 + index * _DIMINISHING_STEP)
            aging_reduction += option.impact.aging_factor_reduction * weight
            failure_reduction += option.impact.failure_prob_reduction * weight
        aging_reduction = min(100.0, aging_reduction) / 100.0
        failure_reduction = min(100.0, failure_reduction) / 100.0

        new_fail_prob = max(
            min(_MIN_REPAIRED_FAIL_PROB, fail_prob),
            fail_prob * (1.0 - failure_reduction),
        )
        new_aging = max(min(1.0, aging), aging * (1.0 - aging_reduction))
        # Rounding never lifts the repaired probability above the current one.
        new_fail_prob = min(fail_prob, round(new_fail_prob, 1))
        new_score = max(
            score, min(REPAIR_SCORE_CAP, fail_prob_to_health_score(new_fail_prob)),
        )

        result = SimulatedResult(
            new_score=new_score,
            new_status=_status_for(new_score),
            new_aging_factor=round(new_aging, 2),
            new_failure_prob=new_fail_prob,
            total_cost_min=sum(o.cost_min for o in options),
            total_cost_max=sum(o.cost_max for o in options),
            repair_ids=[o.id for o in options],
        )
        logger.debug(
            "Repair simulation: repairs=%s score %d -> %d, fail_prob %.1f -> %.1f",
            result.repair_ids, score, result.new_score, fail_prob,
            result.new_failure_prob,
        )
        return result


_default_simulator = RepairSimulator()


def get_available_repairs(
    inputs: ForensicInputs,
    metrics: OpterraMetrics,
    verdict: Recommendation,
) -> List[RepairOption]:
    """Applicable repairs for a unit. See RepairSimulator.available."""
    return _default_simulator.available(inputs, metrics, verdict)


def simulate_repairs(
    current_score: float,
    current_aging_factor: float,
    current_fail_prob: float,
    repairs: Iterable[Union[str, RepairOption]] = (),
) -> SimulatedResult:
    """Simulate repairs. See RepairSimulator.simulate."""
    return _default_simulator.simulate(
        current_score, current_aging_factor, current_fail_prob, list(repairs),
    )
