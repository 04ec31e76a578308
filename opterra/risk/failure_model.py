# -*- coding: utf-8 -*-
"""
FailureModel - Opterra Risk Engine

Maps biological age onto a unit-type-specific Weibull hazard curve and
converts failure probability to the 0-100 health score used everywhere.

Weibull Model:
    R(t)      = exp(-(t / eta) ** beta)
    fail_prob = (1 - R(t + 1) / R(t)) * 100     (next 12 months, given
                                                survival to bio age t)

    +----------+-------+------+
    | unit     |  eta  | beta |
    +----------+-------+------+
    | tank     | 11.5  | 2.2  |
    | hybrid   | 13.0  | 2.4  |
    | tankless | 20.0  | 2.5  |
    +----------+-------+------+

The statistical curve is capped at 85%. Observed failure evidence
(rust, a tank-body leak, a blocked vent) overrides the curve with 99.9%.

Health Score:
    health = round(clamp(100 * exp(-0.04 * fail_prob), 0, 100))

``fail_prob_to_health_score`` is the single shared transform; every
metrics object satisfies ``health_score == fail_prob_to_health_score(
fail_prob)``.

Example:
    >>> from opterra.risk.failure_model import fail_prob_to_health_score
    >>> fail_prob_to_health_score(0.0)
    100
    >>> fail_prob_to_health_score(99.9)
    2

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from opterra.risk.models import (
    HEALTH_CRITICAL_THRESHOLD,
    HEALTH_HEALTHY_THRESHOLD,
    ForensicInputs,
    HealthBand,
    LeakSource,
    Location,
    ServiceStatus,
    UnitType,
    VentStatus,
)

logger = logging.getLogger(__name__)

__all__ = [
    "STATISTICAL_CAP",
    "BREACH_FAIL_PROB",
    "WeibullCurve",
    "WEIBULL_CURVES",
    "FailureModel",
    "bio_age_to_fail_prob",
    "fail_prob_to_health_score",
    "health_band",
    "location_risk_level",
    "is_containment_breach",
]

#: Highest probability the age curve alone may report.
STATISTICAL_CAP: float = 85.0

#: Probability reported when failure has been observed.
BREACH_FAIL_PROB: float = 99.9

_HEALTH_DECAY = 0.04

# Tankless operational floors
_ERROR_CODE_FLOOR = 25.0
_TANKLESS_END_OF_LIFE_AGE = 15.0
_TANKLESS_END_OF_LIFE_FLOOR = 85.0
_SCALE_LOCKOUT_FLOOR = 50.0
_SCALE_DUE_FLOOR = 15.0


@dataclass(frozen=True)
class WeibullCurve:
    """Two-parameter Weibull life distribution.

    Attributes:
        eta: Scale parameter (characteristic life, years).
        beta: Shape parameter (> 1 means wear-out failures).
    """

    eta: float
    beta: float

    def reliability(self, t: float) -> float:
        """Probability of surviving to age ``t``."""
        if t <= 0:
            return 1.0
        return math.exp(-((t / self.eta) ** self.beta))

    def conditional_fail_prob(self, t: float, horizon: float = 1.0) -> float:
        """Percent chance of failing within ``horizon`` years after ``t``."""
        r_now = self.reliability(t)
        if r_now <= 0:
            return 100.0
        return (1.0 - self.reliability(t + horizon) / r_now) * 100.0


WEIBULL_CURVES: Dict[UnitType, WeibullCurve] = {
    UnitType.TANK: WeibullCurve(eta=11.5, beta=2.2),
    UnitType.HYBRID: WeibullCurve(eta=13.0, beta=2.4),
    UnitType.TANKLESS: WeibullCurve(eta=20.0, beta=2.5),
}


# ---------------------------------------------------------------------------
# Shared pure functions
# ---------------------------------------------------------------------------


def bio_age_to_fail_prob(bio_age: float, unit_type: UnitType = UnitType.TANK) -> float:
    """One-year failure probability from biological age, capped at 85%.

    Args:
        bio_age: Wear-adjusted age in years (negatives treated as 0).
        unit_type: Selects the Weibull curve.

    Returns:
        Probability in percent, rounded to one decimal.
    """
    curve = WEIBULL_CURVES[UnitType(unit_type)]
    prob = curve.conditional_fail_prob(max(0.0, bio_age))
    return round(min(STATISTICAL_CAP, max(0.0, prob)), 1)


def fail_prob_to_health_score(fail_prob: float) -> int:
    """Convert failure probability (0-100) to a health score (0-100).

    Monotone decreasing. Used by every consumer of the engine so that a
    given failure probability always renders as the same score.
    """
    fp = min(100.0, max(0.0, float(fail_prob)))
    raw = min(100.0, max(0.0, 100.0 * math.exp(-_HEALTH_DECAY * fp)))
    return int(Decimal(repr(raw)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def health_band(health_score: float) -> HealthBand:
    """Band a health score: critical < 30 <= fair < 60 <= healthy."""
    if health_score < HEALTH_CRITICAL_THRESHOLD:
        return HealthBand.CRITICAL
    if health_score < HEALTH_HEALTHY_THRESHOLD:
        return HealthBand.FAIR
    return HealthBand.HEALTHY


_RISK_BY_LOCATION: Dict[Location, Tuple[int, int]] = {
    # (finished area, unfinished area)
    Location.ATTIC: (4, 4),
    Location.UPPER_FLOOR: (4, 4),
    Location.MAIN_LIVING: (3, 3),
    Location.BASEMENT: (3, 2),
    Location.GARAGE: (2, 1),
    Location.CRAWLSPACE: (2, 1),
    Location.UTILITY_CLOSET: (2, 1),
    Location.EXTERIOR: (1, 1),
}


def location_risk_level(location: Location, is_finished_area: bool) -> int:
    """Leak liability of an installation location, 1 (low) to 4 (extreme)."""
    finished, unfinished = _RISK_BY_LOCATION[Location(location)]
    return finished if is_finished_area else unfinished


def is_containment_breach(inputs: ForensicInputs, unit_type: UnitType) -> bool:
    """Observed evidence that the vessel or heat exchanger has failed.

    On a storage tank only a tank-body leak (or one with no reported
    source) is a breach; on a tankless unit any leak is.
    """
    if inputs.visual_rust and unit_type != UnitType.TANKLESS:
        return True
    if not inputs.is_leaking:
        return False
    if unit_type == UnitType.TANKLESS:
        return True
    return inputs.leak_source in (None, LeakSource.TANK_BODY)


# ---------------------------------------------------------------------------
# FailureModel
# ---------------------------------------------------------------------------


class FailureModel:
    """Failure probability with observed-evidence overrides.

    Example:
        >>> from opterra.risk.models import ForensicInputs, UnitType
        >>> fm = FailureModel()
        >>> fm.fail_prob(ForensicInputs(visual_rust=True), 3.0, UnitType.TANK)
        99.9
    """

    def fail_prob(
        self,
        inputs: ForensicInputs,
        bio_age: float,
        unit_type: UnitType,
        descale_status: Optional[ServiceStatus] = None,
    ) -> float:
        """One-year failure probability for a unit.

        Args:
            inputs: Forensic snapshot (for observed failure evidence).
            bio_age: Biological age from the aging engine.
            unit_type: Engine branch.
            descale_status: Tankless scale status, if any.

        Returns:
            Probability in percent, rounded to one decimal.
        """
        if is_containment_breach(inputs, unit_type):
            logger.debug("Containment breach observed; fail_prob=%.1f", BREACH_FAIL_PROB)
            return BREACH_FAIL_PROB

        prob = bio_age_to_fail_prob(bio_age, unit_type)
        if unit_type != UnitType.TANKLESS:
            return prob

        if inputs.vent_status == VentStatus.BLOCKED:
            return BREACH_FAIL_PROB
        if inputs.error_code_count > 0:
            prob = max(prob, _ERROR_CODE_FLOOR)
        if inputs.calendar_age > _TANKLESS_END_OF_LIFE_AGE:
            prob = max(prob, _TANKLESS_END_OF_LIFE_FLOOR)
        if descale_status == ServiceStatus.LOCKOUT:
            prob = max(prob, _SCALE_LOCKOUT_FLOOR)
        elif descale_status == ServiceStatus.DUE:
            prob = max(prob, _SCALE_DUE_FLOOR)
        return round(prob, 1)
