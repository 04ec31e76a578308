# -*- coding: utf-8 -*-
"""
FinancialForecast - Opterra Risk Engine

Replacement budget plan: when the unit should be replaced, what the
replacement will cost by then and how much to set aside each month.

Model:
    years_left  = 0 if the verdict is REPLACE, else metrics.years_left_current
    months      = round(years_left * 12)
    future_cost = like_for_like_cost * 1.03 ** years_left   (+/- 10% range)
    monthly     = future_cost / max(months, 1)

Budget Urgency:
    IMMEDIATE  years_left <= 0 or health < 30
    HIGH       years_left < 2  or health < 50
    MED        years_left < 5  or health < 70
    LOW        otherwise

The forecast is a function of an explicit ``as_of`` date; nothing here
reads the clock. The target date is the first of the month ``months``
after ``as_of``.

Example:
    >>> from datetime import date
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.pipeline import calculate_opterra_risk
    >>> inputs = ForensicInputs(calendar_age=4)
    >>> result = calculate_opterra_risk(inputs)
    >>> plan = calculate_financial_forecast(
    ...     inputs, result.metrics, result.verdict, date(2026, 10, 19))
    >>> plan.current_tier.tier.value
    'mid'

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from opterra.risk.models import (
    BudgetUrgency,
    FinancialForecast,
    ForensicInputs,
    FuelType,
    OpterraMetrics,
    QualityTier,
    Recommendation,
    TierProfile,
    UnitType,
    VerdictAction,
)

logger = logging.getLogger(__name__)

__all__ = [
    "TANK_TIER_PROFILES",
    "TANKLESS_TIER_PROFILES",
    "FinancialForecaster",
    "calculate_financial_forecast",
    "tier_profile_for",
]

# ---------------------------------------------------------------------------
# Tier profiles (today's installed prices)
# ---------------------------------------------------------------------------

TANK_TIER_PROFILES: Dict[QualityTier, TierProfile] = {
    QualityTier.ENTRY: TierProfile(
        tier=QualityTier.ENTRY,
        tier_label="Builder Grade",
        warranty_years=6,
        expected_life=10,
        features=("Basic glass-lined tank", "Single anode rod", "Standard thermostat"),
        base_cost_gas=1400,
        base_cost_electric=1200,
        base_cost_hybrid=2800,
    ),
    QualityTier.MID: TierProfile(
        tier=QualityTier.MID,
        tier_label="Standard",
        warranty_years=9,
        expected_life=12,
        features=("Premium glass lining", "Larger anode rod", "Self-cleaning dip tube"),
        base_cost_gas=1900,
        base_cost_electric=1600,
        base_cost_hybrid=3400,
    ),
    QualityTier.PREMIUM: TierProfile(
        tier=QualityTier.PREMIUM,
        tier_label="Premium / Lifetime",
        warranty_years=15,
        expected_life=18,
        features=("Dual or powered anode", "Leak detection", "WiFi monitoring"),
        base_cost_gas=3500,
        base_cost_electric=3000,
        base_cost_hybrid=5200,
    ),
}

TANKLESS_TIER_PROFILES: Dict[QualityTier, TierProfile] = {
    QualityTier.ENTRY: TierProfile(
        tier=QualityTier.ENTRY,
        tier_label="Economy Tankless",
        warranty_years=5,
        expected_life=12,
        features=("Basic heat exchanger", "Standard ignition", "Manual controls"),
        base_cost_gas=2400,
        base_cost_electric=1800,
    ),
    QualityTier.MID: TierProfile(
        tier=QualityTier.MID,
        tier_label="Standard Tankless",
        warranty_years=10,
        expected_life=15,
        features=("Copper heat exchanger", "Electronic ignition", "Digital display"),
        base_cost_gas=3200,
        base_cost_electric=2400,
    ),
    QualityTier.PREMIUM: TierProfile(
        tier=QualityTier.PREMIUM,
        tier_label="Premium Tankless",
        warranty_years=15,
        expected_life=20,
        features=("Condensing heat exchanger", "Built-in recirculation", "Leak detection"),
        base_cost_gas=5500,
        base_cost_electric=4200,
    ),
}

_TIER_ORDER = (QualityTier.ENTRY, QualityTier.MID, QualityTier.PREMIUM)

_INFLATION_RATE = 0.03
_ESTIMATE_SPREAD = 0.10


def _dollars(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _add_months(start: date, months: int) -> date:
    """First day of the month ``months`` after ``start``."""
    years, month_index = divmod(start.month - 1 + months, 12)
    return date(start.year + years, month_index + 1, 1)


def tier_profile_for(unit_type: UnitType, tier: QualityTier) -> TierProfile:
    """Tier profile for a unit family and product line."""
    table = TANKLESS_TIER_PROFILES if unit_type == UnitType.TANKLESS else TANK_TIER_PROFILES
    return table[tier]


def _base_cost(profile: TierProfile, fuel_type: FuelType) -> int:
    if fuel_type == FuelType.HYBRID:
        return profile.base_cost_hybrid
    if fuel_type in (FuelType.ELECTRIC, FuelType.TANKLESS_ELECTRIC):
        return profile.base_cost_electric
    return profile.base_cost_gas


def _urgency(years_left: float, health_score: int) -> BudgetUrgency:
    if years_left <= 0 or health_score < 30:
        return BudgetUrgency.IMMEDIATE
    if years_left < 2 or health_score < 50:
        return BudgetUrgency.HIGH
    if years_left < 5 or health_score < 70:
        return BudgetUrgency.MED
    return BudgetUrgency.LOW


class FinancialForecaster:
    """Stateless replacement budget planner."""

    def forecast(
        self,
        inputs: ForensicInputs,
        metrics: OpterraMetrics,
        verdict: Recommendation,
        as_of: date,
    ) -> FinancialForecast:
        """Build the replacement budget plan.

        Args:
            inputs: Forensic snapshot.
            metrics: Engine metrics.
            verdict: Engine verdict; REPLACE means the budget is due now.
            as_of: Date the plan is made for.

        Returns:
            FinancialForecast.
        """
        years_left = (
            0.0 if verdict.action == VerdictAction.REPLACE else metrics.years_left_current
        )
        months = int(Decimal(repr(years_left * 12)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

        current = tier_profile_for(metrics.unit_type, inputs.quality_tier)
        base = _base_cost(current, inputs.fuel_type)
        future = base * (1.0 + _INFLATION_RATE) ** years_left

        upgrade: Optional[TierProfile] = None
        upgrade_cost: Optional[int] = None
        value_prop: Optional[str] = None
        position = _TIER_ORDER.index(current.tier)
        if position + 1 < len(_TIER_ORDER):
            upgrade = tier_profile_for(metrics.unit_type, _TIER_ORDER[position + 1])
            upgrade_cost = _base_cost(upgrade, inputs.fuel_type)
            value_prop = (
                f"{upgrade.tier_label}: {upgrade.warranty_years}-year warranty and "
                f"about {upgrade.expected_life} years of expected life for "
                f"${upgrade_cost - base:,} more."
            )

        plan = FinancialForecast(
            as_of=as_of,
            target_replacement_date=_add_months(as_of, months),
            months_until_target=months,
            est_replacement_cost=_dollars(future),
            est_replacement_cost_min=_dollars(future * (1.0 - _ESTIMATE_SPREAD)),
            est_replacement_cost_max=_dollars(future * (1.0 + _ESTIMATE_SPREAD)),
            monthly_budget=_dollars(future / max(months, 1)),
            budget_urgency=_urgency(years_left, metrics.health_score),
            recommendation=(
                "Prepare for Replacement" if metrics.health_score < 50 else "Save for Future"
            ),
            current_tier=current,
            like_for_like_cost=base,
            upgrade_tier=upgrade,
            upgrade_cost=upgrade_cost,
            upgrade_value_prop=value_prop,
        )
        logger.debug(
            "Financial forecast: months=%d cost=%d monthly=%d urgency=%s",
            plan.months_until_target, plan.est_replacement_cost,
            plan.monthly_budget, plan.budget_urgency.value,
        )
        return plan


_default_forecaster = FinancialForecaster()


def calculate_financial_forecast(
    inputs: ForensicInputs,
    metrics: OpterraMetrics,
    verdict: Recommendation,
    as_of: date,
) -> FinancialForecast:
    """Replacement budget plan as of ``as_of``. See FinancialForecaster."""
    return _default_forecaster.forecast(inputs, metrics, verdict, as_of)
