# -*- coding: utf-8 -*-
"""
ProjectionEngine - Opterra Risk Engine

Extrapolates biological age forward and re-applies the failure model:

    future_bio_age = bio_age + months / 12 * aging_rate

For an aging rate above zero a longer horizon never yields a better
health score, because both the bio-age step and the Weibull hazard are
monotone.

Example:
    >>> from opterra.risk.projection import project_future_health
    >>> now = project_future_health(8.0, 1.5, 0)
    >>> later = project_future_health(8.0, 1.5, 24)
    >>> later.health_score <= now.health_score
    True

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from opterra.risk.failure_model import bio_age_to_fail_prob, fail_prob_to_health_score
from opterra.risk.models import ProjectedHealth, UnitType

logger = logging.getLogger(__name__)

__all__ = [
    "ProjectionEngine",
    "project_future_health",
    "project_health_timeline",
]


class ProjectionEngine:
    """Stateless forward projection of health."""

    def project(
        self,
        bio_age: float,
        aging_rate: float,
        months: int,
        unit_type: UnitType = UnitType.TANK,
    ) -> ProjectedHealth:
        """Project health ``months`` ahead.

        Args:
            bio_age: Current biological age (negatives clamped to 0).
            aging_rate: Current aging rate (negatives clamped to 0).
            months: Horizon in months (negatives clamped to 0).
            unit_type: Selects the failure curve.

        Returns:
            ProjectedHealth for the horizon.
        """
        months = max(0, int(months))
        future = max(0.0, bio_age) + months / 12.0 * max(0.0, aging_rate)
        fail_prob = bio_age_to_fail_prob(future, unit_type)
        return ProjectedHealth(
            months=months,
            bio_age=round(future, 2),
            fail_prob=fail_prob,
            health_score=fail_prob_to_health_score(fail_prob),
        )

    def timeline(
        self,
        bio_age: float,
        aging_rate: float,
        horizons: Iterable[int],
        unit_type: UnitType = UnitType.TANK,
    ) -> List[ProjectedHealth]:
        """Project every horizon, sorted ascending."""
        points = [
            self.project(bio_age, aging_rate, months, unit_type)
            for months in sorted(set(max(0, int(m)) for m in horizons))
        ]
        logger.debug(
            "Projection timeline: bio_age=%.2f rate=%.3f points=%s",
            bio_age, aging_rate, [(p.months, p.health_score) for p in points],
        )
        return points


_default_engine = ProjectionEngine()


def project_future_health(
    bio_age: float,
    aging_rate: float,
    months: int,
    unit_type: UnitType = UnitType.TANK,
) -> ProjectedHealth:
    """Project health ``months`` ahead. See ProjectionEngine.project."""
    return _default_engine.project(bio_age, aging_rate, months, unit_type)


def project_health_timeline(
    bio_age: float,
    aging_rate: float,
    horizons: Iterable[int],
    unit_type: UnitType = UnitType.TANK,
) -> List[ProjectedHealth]:
    """Project several horizons. See ProjectionEngine.timeline."""
    return _default_engine.timeline(bio_age, aging_rate, horizons, unit_type)
