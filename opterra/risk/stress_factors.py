# -*- coding: utf-8 -*-
"""
StressFactorCalculator - Opterra Risk Engine

Converts a forensic snapshot into independent wear multipliers and the
condition sub-models that feed them (sacrificial anode, tank sediment,
tankless scale, heat-pump efficiency).

Combination Model:
    mechanical      = pressure * loop
    corrosion       = chemical * circ * naked_penalty
    temp_mechanical = temp * mechanical
    temp_chemical   = temp * chemical
    total           = min(12, temp * mechanical * corrosion * sediment
                              * usage_intensity * undersizing)

Every primitive factor is exactly 1.0 under nominal conditions and never
drops below 1.0.

Threshold Anchors:
    - Pressure: rises from 60 psi (warning), steepens above 80 psi
      (code limit for a PRV)
    - Hardness: rises from 10 GPG (warning), steepens from 15 GPG
    - Aging rate above 1.2 is reported as accelerated

Conservative Defaults:
    - Missing hardness is treated as 12 GPG (moderately hard)
    - An unchecked softener passes 3 GPG unless it is professionally
      serviced (softened) or never serviced (street hardness)
    - Unknown flush / anode / descale history is treated as "never done"
      for the whole calendar age

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.stress_factors import compute_stress_factors
    >>> sf = compute_stress_factors(ForensicInputs(calendar_age=5, house_psi=90))
    >>> sf.pressure > 1.25
    True

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from opterra.risk.models import (
    AnodeStatus,
    ConnectionType,
    ExpansionTankStatus,
    FilterStatus,
    ForensicInputs,
    FuelType,
    QualityTier,
    RoomVolumeType,
    SanitizerType,
    ServiceStatus,
    SoftenerSaltStatus,
    SoftenerServiceFrequency,
    StressFactors,
    TempSetting,
    UnitType,
    UsageType,
    unit_type_for,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_HARDNESS_GPG",
    "AnodeModel",
    "SedimentModel",
    "ScaleModel",
    "StressAnalysis",
    "StressFactorCalculator",
    "resolve_hardness",
    "compute_stress_factors",
]

# ---------------------------------------------------------------------------
# Hardness resolution
# ---------------------------------------------------------------------------

#: Assumed hardness when neither a measurement nor a street value exists.
DEFAULT_HARDNESS_GPG: float = 12.0

#: Residual hardness behind a working softener.
_SOFTENED_HARDNESS_GPG: float = 0.5

#: Hardness assumed behind a softener whose salt level is unknown.
_UNKNOWN_SALT_HARDNESS_GPG: float = 3.0

# ---------------------------------------------------------------------------
# Pressure and chemistry curves
# ---------------------------------------------------------------------------

_PSI_WARNING = 60.0
_PSI_CRITICAL = 80.0
_PSI_WARNING_FACTOR = 1.25
_PSI_QUADRATIC_SPAN = 20.0

_HARDNESS_WARNING = 10.0
_HARDNESS_CRITICAL = 15.0
_HARDNESS_WARNING_SLOPE = 0.03
_HARDNESS_CRITICAL_SLOPE = 0.05
_CHEMICAL_CAP = 2.5

# ---------------------------------------------------------------------------
# Installation and usage factors
# ---------------------------------------------------------------------------

_TEMP_FACTOR: Dict[TempSetting, float] = {
    TempSetting.LOW: 1.0,
    TempSetting.NORMAL: 1.0,
    TempSetting.HIGH: 1.5,
}

_TANK_CIRC_FACTOR = 1.4
_TANKLESS_RECIRC_FACTOR = 1.5
_THERMAL_LOOP_FACTOR = 1.5

_USAGE_MULTIPLIER: Dict[UsageType, float] = {
    UsageType.LIGHT: 0.7,
    UsageType.NORMAL: 1.0,
    UsageType.HEAVY: 1.3,
}
_TANK_PEOPLE_BASELINE = 3.0
_TANKLESS_PEOPLE_BASELINE = 2.5
_MIN_PEOPLE_RATIO = 0.4
_USAGE_INTENSITY_CAP = 4.0

#: Recommended storage per person (gallons).
_GALLONS_PER_PERSON: Dict[UsageType, float] = {
    UsageType.LIGHT: 8.0,
    UsageType.NORMAL: 12.0,
    UsageType.HEAVY: 15.0,
}
_UNDERSIZING_CAP = 2.0

_TOTAL_STRESS_CAP = 12.0

# ---------------------------------------------------------------------------
# Anode model
# ---------------------------------------------------------------------------

_ANODE_MASS_STANDARD = 4.0
_ANODE_MASS_PREMIUM = 7.5
_PREMIUM_WARRANTY_YEARS = 12.0

_SOFTENER_BURN = 3.0
_GALVANIC_BURN = 2.5
_RECIRC_BURN = 1.25
_CHLORAMINE_BURN = 1.2
_BURN_RATE_CAP = 8.0

_NAKED_PENALTY = 1.5

# ---------------------------------------------------------------------------
# Sediment model
# ---------------------------------------------------------------------------

#: Sediment lbs per year per GPG of hardness, by fuel.
_SEDIMENT_FUEL_FACTOR: Dict[FuelType, float] = {
    FuelType.ELECTRIC: 0.08,
    FuelType.GAS: 0.044,
    FuelType.HYBRID: 0.06,
}
_SEDIMENT_FLUSH_LBS = 5.0
_SEDIMENT_LOCKOUT_LBS = 15.0
_SEDIMENT_FACTOR_PER_LB = 0.05
_SEDIMENT_FACTOR_CAP = 2.5
_FLUSH_INTERVAL_YEARS = 1.0

# ---------------------------------------------------------------------------
# Tankless scale model
# ---------------------------------------------------------------------------

_SCALE_COEFFICIENT = 0.8
_SCALE_LOCKOUT_SCORE = 60.0
_SCALE_DUE_SCORE = 10.0
_HARD_WATER_GPG = 10.0
_NEVER_DESCALED_LOCKOUT_AGE = 6.0
_NEVER_DESCALED_DUE_AGE = 2.0


# ---------------------------------------------------------------------------
# Sub-model records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnodeModel:
    """Sacrificial anode state.

    Attributes:
        base_mass_years: Protection the anode provides at nominal burn.
        burn_rate: Current consumption multiplier.
        consumed_years: Nominal anode-years already consumed.
        shield_life: Years of protection left at the current burn rate;
            zero or negative means the tank steel is exposed.
        depletion_pct: Consumed fraction of the anode (0-100).
        status: Condition bucket.
    """

    base_mass_years: float
    burn_rate: float
    consumed_years: float
    shield_life: float
    depletion_pct: float
    status: AnodeStatus

    @property
    def is_depleted(self) -> bool:
        return self.shield_life <= 0


@dataclass(frozen=True)
class SedimentModel:
    """Tank sediment accumulation."""

    rate_lbs_per_year: float
    sediment_lbs: float
    status: ServiceStatus
    months_to_flush: Optional[int]
    months_to_lockout: Optional[int]


@dataclass(frozen=True)
class ScaleModel:
    """Tankless heat-exchanger scale."""

    score: float
    years_since_descale: float
    never_descaled: bool
    status: ServiceStatus


@dataclass(frozen=True)
class StressAnalysis:
    """Stress factors plus the sub-models used to derive them."""

    unit_type: UnitType
    effective_hardness_gpg: float
    factors: StressFactors
    anode: Optional[AnodeModel] = None
    sediment: Optional[SedimentModel] = None
    scale: Optional[ScaleModel] = None
    hybrid_efficiency: Optional[float] = None


# ---------------------------------------------------------------------------
# Hardness
# ---------------------------------------------------------------------------


def resolve_hardness(inputs: ForensicInputs) -> float:
    """Return the hardness the heater actually sees (GPG).

    A site measurement wins. Behind a softener the street value only
    applies when the salt has run out, or when the salt was not checked
    and nobody services the softener.
    """
    if inputs.measured_hardness_gpg is not None:
        return inputs.measured_hardness_gpg

    street = (
        inputs.street_hardness_gpg
        if inputs.street_hardness_gpg is not None
        else DEFAULT_HARDNESS_GPG
    )
    if not inputs.has_softener:
        return street

    softener = inputs.softener
    salt = softener.salt_status if softener is not None else SoftenerSaltStatus.UNKNOWN
    if salt == SoftenerSaltStatus.OK:
        return _SOFTENED_HARDNESS_GPG
    if salt == SoftenerSaltStatus.EMPTY:
        return street

    # Salt not checked: fall back on who services it.
    service = (
        softener.service_frequency
        if softener is not None
        else SoftenerServiceFrequency.UNKNOWN
    )
    if service == SoftenerServiceFrequency.PROFESSIONAL:
        return _SOFTENED_HARDNESS_GPG
    if service == SoftenerServiceFrequency.NEVER:
        return street
    return _UNKNOWN_SALT_HARDNESS_GPG


# ---------------------------------------------------------------------------
# StressFactorCalculator
# ---------------------------------------------------------------------------


class StressFactorCalculator:
    """Stateless calculator for wear multipliers and condition sub-models.

    All methods are pure; a single instance can be shared between threads.

    Example:
        >>> calc = StressFactorCalculator()
        >>> analysis = calc.analyze(ForensicInputs(calendar_age=8))
        >>> analysis.factors.total >= 1.0
        True
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, inputs: ForensicInputs) -> StressAnalysis:
        """Compute every stress factor and sub-model for a snapshot.

        Args:
            inputs: Forensic snapshot.

        Returns:
            StressAnalysis with the combined StressFactors.
        """
        unit_type = unit_type_for(inputs.fuel_type)
        hardness = resolve_hardness(inputs)
        tankless = unit_type == UnitType.TANKLESS

        pressure = self.pressure_factor(inputs.house_psi)
        chemical = self.chemical_factor(hardness)
        temp = _TEMP_FACTOR[inputs.temp_setting]
        circ = self.circulation_factor(inputs, tankless)
        loop = 1.0 if tankless else self.loop_factor(inputs)
        usage = self.usage_intensity(inputs, tankless)
        undersizing = 1.0 if tankless else self.undersizing_factor(inputs)

        anode: Optional[AnodeModel] = None
        sediment: Optional[SedimentModel] = None
        scale: Optional[ScaleModel] = None
        hybrid_efficiency: Optional[float] = None

        sediment_factor = 1.0
        naked_penalty = 1.0
        if tankless:
            scale = self.scale_model(inputs, hardness, temp)
        else:
            anode = self.anode_model(inputs)
            sediment = self.sediment_model(inputs, hardness, usage)
            sediment_factor = min(
                _SEDIMENT_FACTOR_CAP,
                1.0 + _SEDIMENT_FACTOR_PER_LB * sediment.sediment_lbs,
            )
            if anode.is_depleted:
                naked_penalty = _NAKED_PENALTY
            if unit_type == UnitType.HYBRID:
                hybrid_efficiency = self.hybrid_efficiency(inputs)

        mechanical = pressure * loop
        corrosion = chemical * circ * naked_penalty
        total = min(
            _TOTAL_STRESS_CAP,
            temp * mechanical * corrosion * sediment_factor * usage * undersizing,
        )

        factors = StressFactors(
            mechanical=_r(mechanical),
            chemical=_r(chemical),
            pressure=_r(pressure),
            corrosion=_r(corrosion),
            temp=_r(temp),
            temp_mechanical=_r(temp * mechanical),
            temp_chemical=_r(temp * chemical),
            circ=_r(circ),
            loop=_r(loop),
            sediment=_r(sediment_factor),
            usage_intensity=_r(usage),
            undersizing=_r(undersizing),
            total=_r(max(1.0, total)),
        )

        logger.debug(
            "Stress analysis: unit=%s hardness=%.1f pressure=%.3f "
            "chemical=%.3f loop=%.2f sediment=%.3f total=%.3f",
            unit_type.value, hardness, pressure, chemical, loop,
            sediment_factor, factors.total,
        )

        return StressAnalysis(
            unit_type=unit_type,
            effective_hardness_gpg=hardness,
            factors=factors,
            anode=anode,
            sediment=sediment,
            scale=scale,
            hybrid_efficiency=hybrid_efficiency,
        )

    # ------------------------------------------------------------------
    # Primitive factors
    # ------------------------------------------------------------------

    @staticmethod
    def pressure_factor(psi: float) -> float:
        """Mechanical fatigue from static pressure; monotone in psi."""
        if psi < _PSI_WARNING:
            return 1.0
        if psi <= _PSI_CRITICAL:
            span = _PSI_CRITICAL - _PSI_WARNING
            return 1.0 + (_PSI_WARNING_FACTOR - 1.0) * (psi - _PSI_WARNING) / span
        excess = (psi - _PSI_CRITICAL) / _PSI_QUADRATIC_SPAN
        return _PSI_WARNING_FACTOR + excess ** 2

    @staticmethod
    def chemical_factor(hardness_gpg: float) -> float:
        """Scale and mineral stress from hardness; monotone, capped."""
        if hardness_gpg < _HARDNESS_WARNING:
            return 1.0
        if hardness_gpg < _HARDNESS_CRITICAL:
            return 1.0 + _HARDNESS_WARNING_SLOPE * (hardness_gpg - _HARDNESS_WARNING)
        factor = 1.25 + _HARDNESS_CRITICAL_SLOPE * (hardness_gpg - _HARDNESS_CRITICAL)
        return min(_CHEMICAL_CAP, factor)

    @staticmethod
    def circulation_factor(inputs: ForensicInputs, tankless: bool) -> float:
        if tankless:
            if inputs.has_circ_pump or inputs.has_recirculation_loop:
                return _TANKLESS_RECIRC_FACTOR
            return 1.0
        return _TANK_CIRC_FACTOR if inputs.has_circ_pump else 1.0

    @staticmethod
    def has_functional_expansion_tank(inputs: ForensicInputs) -> bool:
        return (
            inputs.has_exp_tank
            and inputs.exp_tank_status != ExpansionTankStatus.WATERLOGGED
        )

    @staticmethod
    def is_closed_system(inputs: ForensicInputs) -> bool:
        """A check valve or PRV traps thermal expansion in the house."""
        return inputs.is_closed_loop or inputs.has_prv

    @classmethod
    def loop_factor(cls, inputs: ForensicInputs) -> float:
        """Thermal expansion cycling on a closed system."""
        if cls.is_closed_system(inputs) and not cls.has_functional_expansion_tank(inputs):
            return _THERMAL_LOOP_FACTOR
        return 1.0

    @staticmethod
    def usage_intensity(inputs: ForensicInputs, tankless: bool) -> float:
        baseline = _TANKLESS_PEOPLE_BASELINE if tankless else _TANK_PEOPLE_BASELINE
        ratio = max(_MIN_PEOPLE_RATIO, inputs.people_count / baseline)
        raw = _USAGE_MULTIPLIER[inputs.usage_type] * ratio
        return min(_USAGE_INTENSITY_CAP, max(1.0, raw))

    @staticmethod
    def recommended_capacity(inputs: ForensicInputs) -> float:
        """Storage the household needs (gallons)."""
        return inputs.people_count * _GALLONS_PER_PERSON[inputs.usage_type]

    @classmethod
    def undersizing_factor(cls, inputs: ForensicInputs) -> float:
        """Duty-cycle stress when the tank is too small for the household."""
        recommended = cls.recommended_capacity(inputs)
        if inputs.tank_capacity_gallons >= recommended:
            return 1.0
        return min(_UNDERSIZING_CAP, recommended / inputs.tank_capacity_gallons)

    # ------------------------------------------------------------------
    # Sub-models
    # ------------------------------------------------------------------

    @staticmethod
    def anode_model(inputs: ForensicInputs) -> AnodeModel:
        """Estimate sacrificial anode consumption.

        The anode age is the years since the last replacement, or the
        calendar age when the history is unknown. A softener installed
        after the heater only accelerates consumption for its own age.
        """
        premium = (
            inputs.anode_count >= 2
            or inputs.quality_tier == QualityTier.PREMIUM
            or inputs.warranty_years >= _PREMIUM_WARRANTY_YEARS
        )
        base = _ANODE_MASS_PREMIUM if premium else _ANODE_MASS_STANDARD

        base_burn = 1.0
        if inputs.connection_type == ConnectionType.DIRECT_COPPER:
            base_burn *= _GALVANIC_BURN
        if inputs.has_circ_pump:
            base_burn *= _RECIRC_BURN
        if inputs.sanitizer_type == SanitizerType.CHLORAMINE:
            base_burn *= _CHLORAMINE_BURN
        base_burn = min(_BURN_RATE_CAP, base_burn)
        burn = (
            min(_BURN_RATE_CAP, base_burn * _SOFTENER_BURN)
            if inputs.has_softener
            else base_burn
        )

        anode_age = (
            inputs.last_anode_replace_years_ago
            if inputs.last_anode_replace_years_ago is not None
            else inputs.calendar_age
        )
        anode_age = min(anode_age, inputs.calendar_age)

        softened_years = 0.0
        if inputs.has_softener:
            softened_years = anode_age
            if inputs.softener is not None and inputs.softener.install_years_ago is not None:
                softened_years = min(anode_age, inputs.softener.install_years_ago)
        consumed = (anode_age - softened_years) * base_burn + softened_years * burn

        shield_life = (base - consumed) / burn
        depletion = consumed / base * 100.0
        if depletion < 50.0:
            status = AnodeStatus.PROTECTED
        elif depletion < 75.0:
            status = AnodeStatus.INSPECT
        elif depletion < 100.0:
            status = AnodeStatus.REPLACE
        else:
            status = AnodeStatus.NAKED

        if inputs.anode_status is not None:
            status = inputs.anode_status
            if status == AnodeStatus.NAKED:
                shield_life = min(shield_life, 0.0)
                depletion = max(depletion, 100.0)

        return AnodeModel(
            base_mass_years=base,
            burn_rate=_r(burn),
            consumed_years=_r(consumed),
            shield_life=_r(shield_life),
            depletion_pct=_r(min(100.0, depletion)),
            status=status,
        )

    @staticmethod
    def sediment_model(
        inputs: ForensicInputs, hardness_gpg: float, usage_intensity: float,
    ) -> SedimentModel:
        """Estimate sediment in a storage tank and its flush state."""
        fuel_factor = _SEDIMENT_FUEL_FACTOR.get(inputs.fuel_type, _SEDIMENT_FUEL_FACTOR[FuelType.GAS])
        rate = fuel_factor * hardness_gpg * usage_intensity

        age = inputs.calendar_age
        last_flush = inputs.last_flush_years_ago
        years = min(last_flush if last_flush is not None else age, age)
        lbs = rate * years

        if lbs > _SEDIMENT_LOCKOUT_LBS:
            status = ServiceStatus.LOCKOUT
        elif lbs >= _SEDIMENT_FLUSH_LBS:
            status = ServiceStatus.DUE
        elif last_flush is None and age >= _FLUSH_INTERVAL_YEARS:
            status = ServiceStatus.DUE
        elif last_flush is not None and last_flush > _FLUSH_INTERVAL_YEARS:
            status = ServiceStatus.DUE
        else:
            status = ServiceStatus.OK

        return SedimentModel(
            rate_lbs_per_year=_r(rate),
            sediment_lbs=_r(lbs),
            status=status,
            months_to_flush=_months_until(lbs, _SEDIMENT_FLUSH_LBS, rate),
            months_to_lockout=_months_until(lbs, _SEDIMENT_LOCKOUT_LBS, rate),
        )

    @staticmethod
    def scale_model(
        inputs: ForensicInputs, hardness_gpg: float, temp_factor: float,
    ) -> ScaleModel:
        """Estimate heat-exchanger scale on a tankless unit."""
        never_descaled = inputs.last_descale_years_ago is None
        years = (
            inputs.calendar_age
            if never_descaled
            else min(inputs.last_descale_years_ago, inputs.calendar_age)
        )
        score = min(100.0, hardness_gpg * years * _SCALE_COEFFICIENT * temp_factor)

        hard_never = hardness_gpg > _HARD_WATER_GPG and never_descaled
        age = inputs.calendar_age
        if score > _SCALE_LOCKOUT_SCORE or (hard_never and age > _NEVER_DESCALED_LOCKOUT_AGE):
            status = ServiceStatus.LOCKOUT
        elif score > _SCALE_DUE_SCORE or (hard_never and age > _NEVER_DESCALED_DUE_AGE):
            status = ServiceStatus.DUE
        else:
            status = ServiceStatus.OK

        return ScaleModel(
            score=_r(score),
            years_since_descale=years,
            never_descaled=never_descaled,
            status=status,
        )

    @staticmethod
    def hybrid_efficiency(inputs: ForensicInputs) -> float:
        """Heat-pump efficiency estimate (0-100)."""
        efficiency = 100.0
        if inputs.air_filter_status == FilterStatus.DIRTY:
            efficiency -= 15.0
        elif inputs.air_filter_status == FilterStatus.CLOGGED:
            efficiency -= 40.0

        if inputs.room_volume_type == RoomVolumeType.CLOSET_LOUVERED:
            efficiency -= 10.0
        elif inputs.room_volume_type == RoomVolumeType.CLOSET_SEALED:
            efficiency -= 30.0

        compressor = inputs.compressor_health if inputs.compressor_health is not None else 100.0
        efficiency *= compressor / 100.0

        if inputs.is_condensate_clear is False:
            efficiency -= 5.0
        return _r(min(100.0, max(0.0, efficiency)))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _r(value: float) -> float:
    """Round to the engine's working precision."""
    return round(value, 4)


def _months_until(current: float, threshold: float, rate: float) -> Optional[int]:
    if current >= threshold or rate <= 0:
        return None
    return int(math.ceil((threshold - current) / rate * 12.0))


_default_calculator = StressFactorCalculator()


def compute_stress_factors(inputs: ForensicInputs) -> StressFactors:
    """Return the stress factors for a snapshot."""
    return _default_calculator.analyze(inputs).factors
