# -*- coding: utf-8 -*-
"""
AgingEngine - Opterra Risk Engine

Turns stress factors into a biological (wear-adjusted) age and the
"aging speedometer" shown to homeowners.

Model:
    aging_rate = max(1.0, stress.total)
    bio_age    = clamp(calendar_age * aging_rate, calendar_age, 50)

A unit is never reported younger than its calendar age. A brand-new unit
(calendar age 0) has bio age 0 and a reported aging rate of exactly 1.0.

Speedometer:
    optimized_rate   = rate with the pressure and thermal-expansion
                       factors fixed (the two a plumber can remove)
    years_left_*     = max(0, (design_life - bio_age) / rate)
    life_extension   = years_left_optimized - years_left_current

Example:
    >>> from opterra.risk.aging import compute_bio_age
    >>> compute_bio_age(10.0, 1.5)
    15.0
    >>> compute_bio_age(0.0, 3.0)
    0.0

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from opterra.risk.models import (
    ACCELERATED_AGING_THRESHOLD,
    MAX_CALENDAR_AGE,
    StressFactorKind,
    StressFactors,
    UnitType,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DESIGN_LIFE_YEARS",
    "AgingProfile",
    "AgingEngine",
    "compute_aging_rate",
    "compute_bio_age",
]

#: Expected service life at an aging rate of 1.0.
DESIGN_LIFE_YEARS: Dict[UnitType, float] = {
    UnitType.TANK: 12.0,
    UnitType.HYBRID: 13.0,
    UnitType.TANKLESS: 20.0,
}

_TOTAL_STRESS_CAP = 12.0


@dataclass(frozen=True)
class AgingProfile:
    """Biological age plus the speedometer figures.

    Attributes:
        bio_age: Wear-adjusted age in years.
        aging_rate: Reported rate, unrounded bio age over calendar age
            (1.0 at age 0).
        raw_rate: Rate derived from stress before the age clamp.
        is_accelerated: Reported rate above 1.2.
        optimized_rate: Rate with pressure and loop stress removed.
        years_left_current: Remaining design life at raw_rate.
        years_left_optimized: Remaining design life at optimized_rate.
        life_extension: Years gained by optimizing.
        primary_stressor: Largest primitive factor above 1.0, or "none".
    """

    bio_age: float
    aging_rate: float
    raw_rate: float
    is_accelerated: bool
    optimized_rate: float
    years_left_current: float
    years_left_optimized: float
    life_extension: float
    primary_stressor: str


def compute_aging_rate(stress_factors: StressFactors) -> float:
    """Combine the stress factors into one rate (>= 1.0)."""
    return max(1.0, stress_factors.total)


def compute_bio_age(calendar_age: float, aging_rate: float) -> float:
    """Biological age, never below the calendar age.

    Args:
        calendar_age: Years since installation.
        aging_rate: Rate from compute_aging_rate.

    Returns:
        Bio age in years, clamped to ``[calendar_age, 50]`` and rounded
        to 2 decimals (never below ``calendar_age``).
    """
    if calendar_age <= 0:
        return 0.0
    # Rounded output stays >= calendar_age.
    return max(round(_bio_age(calendar_age, aging_rate), 2), calendar_age)


def _bio_age(calendar_age: float, aging_rate: float) -> float:
    upper = max(calendar_age, MAX_CALENDAR_AGE)
    return min(max(calendar_age * aging_rate, calendar_age), upper)


class AgingEngine:
    """Stateless engine for biological age and remaining-life figures.

    Example:
        >>> from opterra.risk.models import StressFactors, UnitType
        >>> profile = AgingEngine().profile(
        ...     6.0, StressFactors(pressure=1.5, mechanical=1.5, total=1.5),
        ...     UnitType.TANK,
        ... )
        >>> profile.bio_age
        9.0
    """

    def profile(
        self,
        calendar_age: float,
        stress_factors: StressFactors,
        unit_type: UnitType,
    ) -> AgingProfile:
        """Build the aging profile for a unit.

        Args:
            calendar_age: Years since installation.
            stress_factors: Output of the stress calculator.
            unit_type: Engine branch, selects the design life.

        Returns:
            AgingProfile.
        """
        raw_rate = compute_aging_rate(stress_factors)
        bio_age = compute_bio_age(calendar_age, raw_rate)
        # Rate from the unrounded bio age.
        reported = (
            _bio_age(calendar_age, raw_rate) / calendar_age
            if calendar_age > 0
            else 1.0
        )

        optimized = self.optimized_rate(stress_factors)
        design_life = DESIGN_LIFE_YEARS[unit_type]
        years_current = max(0.0, (design_life - bio_age) / raw_rate)
        years_optimized = max(0.0, (design_life - bio_age) / optimized)

        profile = AgingProfile(
            bio_age=bio_age,
            aging_rate=round(reported, 3),
            raw_rate=round(raw_rate, 4),
            is_accelerated=reported > ACCELERATED_AGING_THRESHOLD,
            optimized_rate=round(optimized, 4),
            years_left_current=round(years_current, 1),
            years_left_optimized=round(years_optimized, 1),
            life_extension=round(max(0.0, years_optimized - years_current), 1),
            primary_stressor=self.primary_stressor(stress_factors),
        )
        logger.debug(
            "Aging profile: age=%.1f bio=%.2f rate=%.3f optimized=%.3f "
            "stressor=%s",
            calendar_age, profile.bio_age, profile.aging_rate,
            profile.optimized_rate, profile.primary_stressor,
        )
        return profile

    @staticmethod
    def optimized_rate(stress_factors: StressFactors) -> float:
        """Aging rate once pressure and thermal expansion are corrected."""
        sf = stress_factors
        rate = sf.temp * sf.corrosion * sf.sediment * sf.usage_intensity * sf.undersizing
        return min(max(1.0, sf.total), max(1.0, min(_TOTAL_STRESS_CAP, rate)))

    @staticmethod
    def primary_stressor(stress_factors: StressFactors) -> str:
        """Name of the largest primitive factor above 1.0."""
        best_kind = None
        best_value = 1.0
        for kind in StressFactorKind:
            value = stress_factors.primitive(kind)
            if value > best_value:
                best_kind, best_value = kind, value
        return best_kind.value if best_kind is not None else "none"
