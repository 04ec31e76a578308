# -*- coding: utf-8 -*-
"""
Opterra Risk Pipeline

End-to-end assessment of one forensic snapshot:

    1. StressFactorCalculator  -> stress factors + anode/sediment/scale
    2. AgingEngine             -> biological age, aging rate, life figures
    3. FailureModel            -> failure probability (+ evidence overrides)
    4. health score, band and location risk level
    5. InfrastructureAuditor   -> installation findings
    6. VerdictEngine           -> recommendation
    7. HardWaterCalculator     -> hard water tax
    8. provenance              -> input hash + provenance hash
    9. FinancialForecaster     -> replacement budget (only with ``as_of``)

``calculate_opterra_risk`` is pure: the same inputs always produce the
same result, including both hashes. The financial forecast depends on
the ``as_of`` date passed in and sits outside the provenance hash. ``OpterraRiskEngine`` wraps it with
configuration, an LRU result cache keyed by input hash, Prometheus
metrics and a payload boundary for raw mappings.

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.failure_model import fail_prob_to_health_score
    >>> from opterra.risk.pipeline import calculate_opterra_risk
    >>> result = calculate_opterra_risk(ForensicInputs(calendar_age=3))
    >>> result.metrics.health_score == fail_prob_to_health_score(
    ...     result.metrics.fail_prob)
    True

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from opterra.exceptions import InvalidInputError, OpterraException
from opterra.risk.aging import AgingEngine
from opterra.risk.config import OpterraRiskConfig, get_config
from opterra.risk.financial import FinancialForecaster
from opterra.risk.failure_model import (
    FailureModel,
    fail_prob_to_health_score,
    health_band,
    location_risk_level,
)
from opterra.risk.hard_water import HardWaterCalculator
from opterra.risk.infrastructure import InfrastructureAuditor
from opterra.risk.maintenance import MaintenanceScheduler
from opterra.risk.metrics import MetricsCollector
from opterra.risk.models import (
    ALGORITHM_VERSION,
    FinancialForecast,
    ForensicInputs,
    MaintenanceSchedule,
    MaintenanceTask,
    OpterraMetrics,
    OpterraResult,
    ProjectedHealth,
    RepairOption,
    SimulatedResult,
    is_hybrid,
    is_tankless,
    unit_type_for,
)
from opterra.risk.projection import ProjectionEngine
from opterra.risk.provenance import compute_input_hash, compute_provenance_hash
from opterra.risk.repair_simulator import RepairSimulator
from opterra.risk.stress_factors import StressFactorCalculator
from opterra.risk.verdict import VerdictEngine

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_opterra_risk",
    "is_tankless",
    "is_hybrid",
    "unit_type_for",
    "OpterraRiskEngine",
]

_stress = StressFactorCalculator()
_aging = AgingEngine()
_failure = FailureModel()
_auditor = InfrastructureAuditor()
_verdicts = VerdictEngine()
_hard_water = HardWaterCalculator()
_forecaster = FinancialForecaster()


def _build_metrics(inputs: ForensicInputs) -> OpterraMetrics:
    analysis = _stress.analyze(inputs)
    unit_type = analysis.unit_type
    profile = _aging.profile(inputs.calendar_age, analysis.factors, unit_type)

    descale_status = analysis.scale.status if analysis.scale is not None else None
    fail_prob = _failure.fail_prob(inputs, profile.bio_age, unit_type, descale_status)
    health = fail_prob_to_health_score(fail_prob)

    fields: Dict[str, Any] = {
        "unit_type": unit_type,
        "calendar_age": inputs.calendar_age,
        "bio_age": profile.bio_age,
        "aging_rate": profile.aging_rate,
        "is_accelerated": profile.is_accelerated,
        "fail_prob": fail_prob,
        "health_score": health,
        "health_band": health_band(health),
        "risk_level": location_risk_level(inputs.location, inputs.is_finished_area),
        "effective_hardness_gpg": round(analysis.effective_hardness_gpg, 2),
        "stress_factors": analysis.factors,
        "optimized_rate": profile.optimized_rate,
        "years_left_current": profile.years_left_current,
        "years_left_optimized": profile.years_left_optimized,
        "life_extension": profile.life_extension,
        "primary_stressor": profile.primary_stressor,
        "hybrid_efficiency": analysis.hybrid_efficiency,
    }
    if analysis.sediment is not None:
        sediment = analysis.sediment
        fields.update(
            flush_status=sediment.status,
            sediment_lbs=sediment.sediment_lbs,
            sediment_rate_lbs_per_year=sediment.rate_lbs_per_year,
            months_to_flush=sediment.months_to_flush,
            months_to_lockout=sediment.months_to_lockout,
        )
    if analysis.anode is not None:
        anode = analysis.anode
        fields.update(
            shield_life=anode.shield_life,
            anode_depletion_pct=anode.depletion_pct,
            anode_status=anode.status,
            anode_burn_rate=anode.burn_rate,
        )
    if analysis.scale is not None:
        fields.update(
            descale_status=analysis.scale.status,
            scale_buildup_score=analysis.scale.score,
        )
    return OpterraMetrics(**fields)


def calculate_opterra_risk(
    inputs: ForensicInputs, as_of: Optional[date] = None,
) -> OpterraResult:
    """Assess one water heater.

    Args:
        inputs: Forensic snapshot.
        as_of: Date for the replacement budget plan. Without it the
            result carries no financial forecast.

    Returns:
        OpterraResult stamped with ALGORITHM_VERSION, the input hash and
        the provenance hash.
    """
    metrics = _build_metrics(inputs)
    issues = _auditor.audit(inputs, metrics)
    verdict = _verdicts.determine(inputs, metrics, issues)
    hard_water_tax = _hard_water.calculate(inputs, metrics.effective_hardness_gpg)

    input_hash = compute_input_hash(inputs)
    provenance_hash = compute_provenance_hash(
        input_hash, ALGORITHM_VERSION, metrics, verdict, issues, hard_water_tax,
    )
    financial: Optional[FinancialForecast] = None
    if as_of is not None:
        financial = _forecaster.forecast(inputs, metrics, verdict, as_of)
    logger.debug(
        "Assessment: unit=%s age=%.1f bio=%.2f fail_prob=%.1f health=%d "
        "action=%s reason=%s issues=%d",
        metrics.unit_type.value, metrics.calendar_age, metrics.bio_age,
        metrics.fail_prob, metrics.health_score, verdict.action.value,
        verdict.reason, len(issues),
    )
    return OpterraResult(
        metrics=metrics,
        verdict=verdict,
        infrastructure_issues=issues,
        algorithm_version=ALGORITHM_VERSION,
        input_hash=input_hash,
        provenance_hash=provenance_hash,
        hard_water_tax=hard_water_tax,
        financial=financial,
    )


# ---------------------------------------------------------------------------
# OpterraRiskEngine
# ---------------------------------------------------------------------------


class OpterraRiskEngine:
    """Configured facade over the pure pipeline.

    Adds a thread-safe LRU cache keyed by input hash, Prometheus metric
    recording and a boundary for raw payloads. Results are identical to
    ``calculate_opterra_risk``; the cache never changes an answer.

    Example:
        >>> engine = OpterraRiskEngine()
        >>> result = engine.assess_payload({"calendar_age": 8, "house_psi": 85})
        >>> result.verdict.action.value in {"REPLACE", "REPAIR", "UPGRADE",
        ...                                 "MAINTAIN", "PASS"}
        True
    """

    def __init__(self, config: Optional[OpterraRiskConfig] = None):
        self.config = config or get_config()
        self._cache: "OrderedDict[str, OpterraResult]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._scheduler = MaintenanceScheduler()
        self._projection = ProjectionEngine()
        self._simulator = RepairSimulator()
        logger.info(
            "OpterraRiskEngine initialized: algorithm=%s cache_size=%d "
            "metrics=%s provenance=%s",
            ALGORITHM_VERSION, self.config.cache_size,
            self.config.enable_metrics, self.config.enable_provenance,
        )

    # ------------------------------------------------------------------
    # Assessment
    # ------------------------------------------------------------------

    def assess(
        self, inputs: ForensicInputs, as_of: Optional[date] = None,
    ) -> OpterraResult:
        """Assess a snapshot, serving repeats from the cache.

        The cache holds the dateless result; a forecast for ``as_of`` is
        attached on the way out.

        Raises:
            OpterraException: If the engine is disabled by configuration.
        """
        if not self.config.enabled:
            raise OpterraException(
                "Opterra risk engine is disabled (OPTERRA_RISK_ENABLED=false)",
                component="OpterraRiskEngine",
            )

        start = time.perf_counter()
        key = compute_input_hash(inputs)
        result = self._cache_get(key)
        if result is None:
            result = calculate_opterra_risk(inputs)
            self._cache_put(key, result)
            self._record(result)

        if self.config.enable_metrics:
            MetricsCollector.observe_duration("assess", time.perf_counter() - start)

        if as_of is not None:
            result = result.model_copy(
                update={"financial": self.financial(inputs, as_of, result)},
            )
        if not self.config.enable_provenance:
            return result.model_copy(update={"input_hash": "", "provenance_hash": ""})
        return result

    def assess_payload(self, payload: Mapping[str, Any]) -> OpterraResult:
        """Validate a raw mapping and assess it.

        Raises:
            InvalidInputError: If the payload is not a valid snapshot.
        """
        return self.assess(self.parse_inputs(payload))

    @staticmethod
    def parse_inputs(payload: Mapping[str, Any]) -> ForensicInputs:
        """Turn a raw mapping into ForensicInputs.

        Raises:
            InvalidInputError: With one entry per invalid field.
        """
        try:
            return ForensicInputs.model_validate(dict(payload))
        except ValidationError as exc:
            invalid = {
                ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
                for error in exc.errors()
            }
            raise InvalidInputError(
                f"Invalid forensic inputs: {len(invalid)} field(s) rejected",
                component="OpterraRiskEngine",
                invalid_fields=invalid,
            ) from exc

    def verify(self, inputs: ForensicInputs, result: OpterraResult) -> bool:
        """Recompute ``inputs`` and compare against a stored result."""
        if result.algorithm_version != ALGORITHM_VERSION:
            logger.warning(
                "Stored result was produced by %s, engine is %s",
                result.algorithm_version, ALGORITHM_VERSION,
            )
            return False
        fresh = calculate_opterra_risk(inputs)
        matches = (
            fresh.input_hash == result.input_hash
            and fresh.provenance_hash == result.provenance_hash
        )
        if not matches:
            logger.warning(
                "Provenance mismatch for input %s...", fresh.input_hash[:12],
            )
        return matches

    # ------------------------------------------------------------------
    # Downstream views
    # ------------------------------------------------------------------

    def schedule(
        self, inputs: ForensicInputs, result: Optional[OpterraResult] = None,
    ) -> MaintenanceSchedule:
        result = result or self.assess(inputs)
        return self._scheduler.schedule(inputs, result.metrics, result.verdict)

    def infrastructure_tasks(
        self, inputs: ForensicInputs, result: Optional[OpterraResult] = None,
    ) -> List[MaintenanceTask]:
        result = result or self.assess(inputs)
        return self._scheduler.infrastructure_tasks(inputs, result.metrics)

    def project(
        self,
        inputs: ForensicInputs,
        horizons: Optional[Iterable[int]] = None,
        result: Optional[OpterraResult] = None,
    ) -> List[ProjectedHealth]:
        """Project health at ``horizons`` (config default if omitted)."""
        result = result or self.assess(inputs)
        months = list(horizons) if horizons is not None else self.config.horizon_months
        return self._projection.timeline(
            result.metrics.bio_age,
            result.metrics.aging_rate,
            months,
            result.metrics.unit_type,
        )

    def financial(
        self,
        inputs: ForensicInputs,
        as_of: date,
        result: Optional[OpterraResult] = None,
    ) -> FinancialForecast:
        """Replacement budget plan for the unit as of ``as_of``."""
        result = result or self.assess(inputs)
        return _forecaster.forecast(inputs, result.metrics, result.verdict, as_of)

    def available_repairs(
        self, inputs: ForensicInputs, result: Optional[OpterraResult] = None,
    ) -> List[RepairOption]:
        result = result or self.assess(inputs)
        return self._simulator.available(inputs, result.metrics, result.verdict)

    def simulate(
        self,
        inputs: ForensicInputs,
        repairs: Sequence[Union[str, RepairOption]],
        result: Optional[OpterraResult] = None,
    ) -> SimulatedResult:
        """Simulate repairs against the unit's current assessment."""
        result = result or self.assess(inputs)
        metrics = result.metrics
        simulated = self._simulator.simulate(
            metrics.health_score, metrics.aging_rate, metrics.fail_prob, repairs,
        )
        if self.config.enable_metrics:
            if not simulated.repair_ids:
                mode = "empty"
            elif simulated.new_bio_age is not None:
                mode = "replacement"
            else:
                mode = "combined"
            MetricsCollector.record_simulation(mode)
        return simulated

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> Optional[OpterraResult]:
        if self.config.cache_size <= 0:
            return None
        with self._lock:
            result = self._cache.get(key)
            if result is not None:
                self._cache.move_to_end(key)
                self._hits += 1
            else:
                self._misses += 1
        if self.config.enable_metrics:
            MetricsCollector.record_cache_lookup(result is not None)
        return result

    def _cache_put(self, key: str, result: OpterraResult) -> None:
        if self.config.cache_size <= 0:
            return
        with self._lock:
            self._cache[key] = result
            self._cache.move_to_end(key)
            while len(self._cache) > self.config.cache_size:
                self._cache.popitem(last=False)
            size = len(self._cache)
        if self.config.enable_metrics:
            MetricsCollector.set_cached_results(size)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        if self.config.enable_metrics:
            MetricsCollector.set_cached_results(0)

    def cache_stats(self) -> Dict[str, Any]:
        """Hit/miss counters and current size."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "max_size": self.config.cache_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total else 0.0,
            }

    def _record(self, result: OpterraResult) -> None:
        if not self.config.enable_metrics:
            return
        metrics, verdict = result.metrics, result.verdict
        MetricsCollector.record_assessment(metrics.unit_type.value, verdict.action.value)
        MetricsCollector.record_verdict(verdict.action.value, verdict.badge.value)
        for issue in result.infrastructure_issues:
            MetricsCollector.record_issue(issue.id, issue.category.value)
