# -*- coding: utf-8 -*-
"""
HardWaterTax - Opterra Risk Engine

Annual household cost of hard water and the case for a softener.

Loss Model (h = hardness capped at 30 GPG, p = household size):
    +------------------------+------------------------------------------+
    | loss                   | formula                                  |
    +------------------------+------------------------------------------+
    | energy_loss            | heating cost/person x p x min(1.5% x h,  |
    |                        | 30%)                                     |
    | appliance_depreciation | $10 x h                                  |
    | detergent_overspend    | $2.50 x p x h                            |
    | plumbing_protection    | $3 x h                                   |
    +------------------------+------------------------------------------+

Losses are charged at the hardness that reaches the fixtures. Behind a
working softener that is the residual hardness, and the difference from
the supply hardness is reported as ``protected_amount``.

Recommendation (no softener):
    supply < 7 GPG        NONE       green
    7 <= supply <= 15 GPG CONSIDER   yellow
    supply > 15 GPG       RECOMMEND  orange

A softener that is installed but passing hard water (7 GPG or more at the
fixtures) gets CONSIDER with a service reason; a working one PROTECTED.

Dollar amounts are rounded half-up to whole dollars.

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> tax = calculate_hard_water_tax(
    ...     ForensicInputs(street_hardness_gpg=18, people_count=3), 18.0)
    >>> tax.total_annual_loss, tax.recommendation.value
    (466, 'RECOMMEND')

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from opterra.risk.models import (
    FuelType,
    ForensicInputs,
    HardWaterTax,
    SoftenerRecommendation,
)
from opterra.risk.stress_factors import DEFAULT_HARDNESS_GPG

logger = logging.getLogger(__name__)

__all__ = [
    "SOFTENER_ANNUAL_COST",
    "SOFTENER_INSTALL_COST",
    "HardWaterCalculator",
    "calculate_hard_water_tax",
    "supply_hardness",
]

#: Annual water-heating energy cost per person, by fuel.
_HEATING_COST_PER_PERSON: Dict[FuelType, float] = {
    FuelType.GAS: 120.0,
    FuelType.ELECTRIC: 190.0,
    FuelType.HYBRID: 70.0,
    FuelType.TANKLESS_GAS: 110.0,
    FuelType.TANKLESS_ELECTRIC: 180.0,
}

_ENERGY_LOSS_PER_GPG = 0.015
_ENERGY_LOSS_CAP = 0.30
_APPLIANCE_PER_GPG = 10.0
_DETERGENT_PER_PERSON_GPG = 2.5
_PLUMBING_PER_GPG = 3.0
_LOSS_HARDNESS_CAP = 30.0
_BURNOUT_PER_GPG = 4.0

_ELECTRIC_FUELS = frozenset({
    FuelType.ELECTRIC, FuelType.HYBRID, FuelType.TANKLESS_ELECTRIC,
})

#: Running cost of a softener (salt, service), about $20 a month.
SOFTENER_ANNUAL_COST: int = 240

#: Installed price of a softener, mid-range of the install issue.
SOFTENER_INSTALL_COST: int = 2800

_HARD_GPG = 7.0
_VERY_HARD_GPG = 15.0


def _dollars(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def supply_hardness(inputs: ForensicInputs) -> float:
    """Hardness of the water entering the house, before any softener.

    A site measurement behind a softener describes softened water, so it
    only counts as supply hardness when there is no softener.
    """
    if inputs.street_hardness_gpg is not None:
        return inputs.street_hardness_gpg
    if inputs.measured_hardness_gpg is not None and not inputs.has_softener:
        return inputs.measured_hardness_gpg
    return DEFAULT_HARDNESS_GPG


class HardWaterCalculator:
    """Stateless calculator for the hard water tax."""

    @staticmethod
    def losses(fuel_type: FuelType, people: int, hardness_gpg: float) -> Dict[str, int]:
        """Annual losses at ``hardness_gpg`` for a household."""
        h = min(max(hardness_gpg, 0.0), _LOSS_HARDNESS_CAP)
        heating = _HEATING_COST_PER_PERSON[fuel_type] * people
        energy = heating * min(h * _ENERGY_LOSS_PER_GPG, _ENERGY_LOSS_CAP)
        losses = {
            "energy_loss": _dollars(energy),
            "appliance_depreciation": _dollars(_APPLIANCE_PER_GPG * h),
            "detergent_overspend": _dollars(_DETERGENT_PER_PERSON_GPG * people * h),
            "plumbing_protection": _dollars(_PLUMBING_PER_GPG * h),
        }
        losses["total_annual_loss"] = sum(losses.values())
        return losses

    def calculate(self, inputs: ForensicInputs, effective_hardness_gpg: float) -> HardWaterTax:
        """Hard water tax for a household.

        Args:
            inputs: Forensic snapshot.
            effective_hardness_gpg: Hardness after softener resolution,
                as reported in the engine metrics.

        Returns:
            HardWaterTax.
        """
        supply = supply_hardness(inputs)
        people = inputs.people_count
        current = self.losses(inputs.fuel_type, people, effective_hardness_gpg)

        burnout: Optional[int] = None
        if inputs.fuel_type in _ELECTRIC_FUELS:
            burnout = min(100, _dollars(effective_hardness_gpg * _BURNOUT_PER_GPG))

        payback: Optional[float] = None
        protected = 0
        if inputs.has_softener:
            unsoftened = self.losses(inputs.fuel_type, people, supply)
            protected = max(0, unsoftened["total_annual_loss"] - current["total_annual_loss"])
            net = max(0, protected - SOFTENER_ANNUAL_COST)
            if effective_hardness_gpg < _HARD_GPG:
                recommendation = SoftenerRecommendation.PROTECTED
                color = "green"
                reason = (
                    f"Your softener is removing {supply:.0f} GPG hardness and "
                    f"preventing about ${protected:,} a year in losses."
                )
            else:
                recommendation = SoftenerRecommendation.CONSIDER
                color = "yellow"
                reason = (
                    f"A softener is installed but {effective_hardness_gpg:.0f} GPG "
                    f"water is reaching the fixtures. Service it to stop the losses."
                )
        else:
            net = max(0, current["total_annual_loss"] - SOFTENER_ANNUAL_COST)
            if net > 0:
                payback = round(SOFTENER_INSTALL_COST / net, 1)
            if supply < _HARD_GPG:
                recommendation = SoftenerRecommendation.NONE
                color = "green"
                reason = "Your water is soft enough that a softener would not pay for itself."
            elif supply <= _VERY_HARD_GPG:
                recommendation = SoftenerRecommendation.CONSIDER
                color = "yellow"
                reason = (
                    f"Moderately hard water ({supply:.0f} GPG) costs about "
                    f"${current['total_annual_loss']:,} a year."
                )
            else:
                recommendation = SoftenerRecommendation.RECOMMEND
                color = "orange"
                reason = (
                    f"Very hard water ({supply:.0f} GPG) costs about "
                    f"${current['total_annual_loss']:,} a year; a softener "
                    f"saves more than it costs to run."
                )

        tax = HardWaterTax(
            hardness_gpg=round(supply, 2),
            effective_hardness_gpg=round(effective_hardness_gpg, 2),
            has_softener=inputs.has_softener,
            energy_loss=current["energy_loss"],
            appliance_depreciation=current["appliance_depreciation"],
            detergent_overspend=current["detergent_overspend"],
            plumbing_protection=current["plumbing_protection"],
            total_annual_loss=current["total_annual_loss"],
            element_burnout_risk=burnout,
            softener_annual_cost=SOFTENER_ANNUAL_COST,
            net_annual_savings=net,
            payback_years=payback,
            recommendation=recommendation,
            reason=reason,
            badge_color=color,
            protected_amount=protected,
        )
        logger.debug(
            "Hard water tax: supply=%.1f effective=%.1f loss=%d net=%d rec=%s",
            supply, effective_hardness_gpg, tax.total_annual_loss,
            tax.net_annual_savings, tax.recommendation.value,
        )
        return tax


_default_calculator = HardWaterCalculator()


def calculate_hard_water_tax(
    inputs: ForensicInputs, effective_hardness_gpg: float,
) -> HardWaterTax:
    """Hard water tax for a household. See HardWaterCalculator."""
    return _default_calculator.calculate(inputs, effective_hardness_gpg)
