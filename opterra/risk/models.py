# -*- coding: utf-8 -*-
"""
Opterra Risk Engine Data Models

Pydantic v2 data models for the Opterra water-heater risk engine covering
tank (gas/electric), tankless (gas/electric) and hybrid heat-pump units:

- ForensicInputs: the canonical, immutable snapshot of a unit's
  installation and maintenance facts. Numeric fields are clamped at the
  boundary rather than rejected so that a slider dragged past its range
  still produces an assessment.
- StressFactors: fixed-key record of wear multipliers (every value >= 1.0).
- OpterraMetrics: biological age, failure probability, health score and
  the anode / sediment / scale sub-model outputs.
- Recommendation: the verdict (action, badge, machine reason, copy).
- InfrastructureIssue, MaintenanceTask, MaintenanceSchedule.
- RepairOption, SimulatedResult, ProjectedHealth.
- HardWaterTax, TierProfile, FinancialForecast: the cost side of hard
  water and of the eventual replacement.
- OpterraResult: metrics + verdict + findings, stamped with
  ALGORITHM_VERSION and SHA-256 hashes for reproducibility audits.

Enumerations (29):
    FuelType, UnitType, QualityTier, Location, TempSetting, UsageType,
    ExpansionTankStatus, SoftenerSaltStatus, SoftenerServiceFrequency,
    SanitizerType, ConnectionType, LeakSource, AnodeStatus, VentStatus,
    GasLineSize, FilterStatus, FlameRodStatus, RoomVolumeType,
    ServiceStatus, HealthBand, VerdictAction, Badge, IssueCategory,
    MaintenanceType, TaskUrgency, RepairStatus, StressFactorKind,
    SoftenerRecommendation, BudgetUrgency

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Algorithm version stamped on every result. Bump whenever a constant or
#: decision rule changes so stored assessments are never reinterpreted.
ALGORITHM_VERSION: str = "opterra-risk-1.0.0"

#: Oldest calendar age accepted (years); older values are clamped.
MAX_CALENDAR_AGE: float = 50.0

#: Highest house pressure accepted (psi); higher readings are clamped.
MAX_HOUSE_PSI: float = 200.0

#: Highest water hardness accepted (grains per gallon).
MAX_HARDNESS_GPG: float = 100.0

#: Highest burner input accepted (BTU/h).
MAX_BTU_RATING: float = 1_000_000.0

#: Health score bands shared by every consumer.
HEALTH_CRITICAL_THRESHOLD: int = 30
HEALTH_HEALTHY_THRESHOLD: int = 60

#: Aging rate above which a unit is reported as aging faster than normal.
ACCELERATED_AGING_THRESHOLD: float = 1.2


def _clamp(value: float, low: float, high: float, default: Optional[float]) -> Optional[float]:
    """Clamp ``value`` into ``[low, high]``.

    Infinities clamp to the nearest bound; NaN carries no reading at all
    and becomes ``default``.
    """
    if math.isnan(value):
        return default
    return min(max(value, low), high)


# ---------------------------------------------------------------------------
# Enumerations: unit classification
# ---------------------------------------------------------------------------


class FuelType(str, Enum):
    """Fuel / technology of the water heater.

    GAS: Atmospheric or power-vented gas tank.
    ELECTRIC: Electric resistance tank.
    HYBRID: Heat-pump water heater with storage tank.
    TANKLESS_GAS: On-demand gas unit.
    TANKLESS_ELECTRIC: On-demand electric unit.
    """

    GAS = "gas"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    TANKLESS_GAS = "tankless_gas"
    TANKLESS_ELECTRIC = "tankless_electric"


class UnitType(str, Enum):
    """Engine branch a fuel type routes to."""

    TANK = "tank"
    TANKLESS = "tankless"
    HYBRID = "hybrid"


_TANKLESS_FUELS = frozenset({FuelType.TANKLESS_GAS, FuelType.TANKLESS_ELECTRIC})


def is_tankless(fuel_type: FuelType) -> bool:
    """Return True for on-demand (tankless) units."""
    return FuelType(fuel_type) in _TANKLESS_FUELS


def is_hybrid(fuel_type: FuelType) -> bool:
    """Return True for heat-pump units."""
    return FuelType(fuel_type) == FuelType.HYBRID


def unit_type_for(fuel_type: FuelType) -> UnitType:
    """Map a fuel type to the engine branch that handles it."""
    if is_tankless(fuel_type):
        return UnitType.TANKLESS
    if is_hybrid(fuel_type):
        return UnitType.HYBRID
    return UnitType.TANK


class QualityTier(str, Enum):
    """Manufacturer product line. PREMIUM lines ship a dual/large anode."""

    ENTRY = "entry"
    MID = "mid"
    PREMIUM = "premium"


class Location(str, Enum):
    """Where the unit is installed; drives leak liability (risk level)."""

    ATTIC = "attic"
    GARAGE = "garage"
    BASEMENT = "basement"
    MAIN_LIVING = "main_living"
    UTILITY_CLOSET = "utility_closet"
    CRAWLSPACE = "crawlspace"
    EXTERIOR = "exterior"
    UPPER_FLOOR = "upper_floor"


class TempSetting(str, Enum):
    """Thermostat setting. HIGH is 140F and above."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class UsageType(str, Enum):
    """Household hot-water usage pattern."""

    LIGHT = "light"
    NORMAL = "normal"
    HEAVY = "heavy"


# ---------------------------------------------------------------------------
# Enumerations: equipment and condition
# ---------------------------------------------------------------------------


class ExpansionTankStatus(str, Enum):
    """Observed condition of the thermal expansion tank.

    WATERLOGGED: The bladder has failed; the tank is present but absorbs
        no expansion and is treated as missing for stress purposes.
    """

    FUNCTIONAL = "functional"
    WATERLOGGED = "waterlogged"
    MISSING = "missing"


class SoftenerSaltStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    UNKNOWN = "unknown"


class SoftenerServiceFrequency(str, Enum):
    """Who keeps the softener running.

    Consulted when the salt level was not checked: a professionally
    serviced softener is assumed working, a never-serviced one exhausted.
    """

    PROFESSIONAL = "professional"
    DIY_SALT = "diy_salt"
    NEVER = "never"
    UNKNOWN = "unknown"


class SanitizerType(str, Enum):
    """Municipal disinfectant. Chloramine attacks anodes faster."""

    CHLORINE = "chlorine"
    CHLORAMINE = "chloramine"
    UNKNOWN = "unknown"


class ConnectionType(str, Enum):
    """Water-line connection at the tank nipples.

    DIRECT_COPPER: Copper threaded straight into steel; galvanic couple
        that multiplies anode consumption.
    """

    DIELECTRIC = "dielectric"
    BRASS = "brass"
    DIRECT_COPPER = "direct_copper"


class LeakSource(str, Enum):
    """Where an observed leak originates.

    Only TANK_BODY is a containment breach; fittings and a wet drain pan
    are repairable. An unreported source is treated as the tank body.
    """

    TANK_BODY = "tank_body"
    FITTING_VALVE = "fitting_valve"
    DRAIN_PAN = "drain_pan"


class AnodeStatus(str, Enum):
    """Sacrificial anode condition by depletion percentage."""

    PROTECTED = "protected"
    INSPECT = "inspect"
    REPLACE = "replace"
    NAKED = "naked"


class VentStatus(str, Enum):
    CLEAR = "clear"
    RESTRICTED = "restricted"
    BLOCKED = "blocked"


class GasLineSize(str, Enum):
    HALF_INCH = "1/2"
    THREE_QUARTER_INCH = "3/4"
    ONE_INCH = "1"


class FilterStatus(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    CLOGGED = "clogged"


class FlameRodStatus(str, Enum):
    GOOD = "good"
    WORN = "worn"
    FAILING = "failing"


class RoomVolumeType(str, Enum):
    """Air volume available to a heat-pump unit."""

    OPEN = "open"
    CLOSET_LOUVERED = "closet_louvered"
    CLOSET_SEALED = "closet_sealed"


# ---------------------------------------------------------------------------
# Enumerations: engine outputs
# ---------------------------------------------------------------------------


class ServiceStatus(str, Enum):
    """Maintenance state for flush (tank) or descale (tankless).

    LOCKOUT: Deposits have hardened past the point where service is safe
        or effective; the damage is irreversible.
    """

    OK = "ok"
    DUE = "due"
    LOCKOUT = "lockout"


class HealthBand(str, Enum):
    """Health score band: critical < 30 <= fair < 60 <= healthy."""

    CRITICAL = "critical"
    FAIR = "fair"
    HEALTHY = "healthy"


class VerdictAction(str, Enum):
    REPLACE = "REPLACE"
    REPAIR = "REPAIR"
    UPGRADE = "UPGRADE"
    MAINTAIN = "MAINTAIN"
    PASS = "PASS"


class Badge(str, Enum):
    CRITICAL = "CRITICAL"
    REPLACE = "REPLACE"
    SERVICE = "SERVICE"
    MONITOR = "MONITOR"
    OPTIMAL = "OPTIMAL"


class IssueCategory(str, Enum):
    """VIOLATION: plumbing-code violation. ISSUE: infrastructure risk."""

    VIOLATION = "VIOLATION"
    ISSUE = "ISSUE"


class MaintenanceType(str, Enum):
    FLUSH = "flush"
    ANODE = "anode"
    DESCALE = "descale"
    INLET_FILTER = "inlet_filter"
    ISOLATION_VALVES = "isolation_valves"
    AIR_FILTER = "air_filter"
    CONDENSATE = "condensate"
    INSPECTION = "inspection"
    PRV = "prv"
    REPLACEMENT_CONSULT = "replacement_consult"


class TaskUrgency(str, Enum):
    OVERDUE = "overdue"
    IMMEDIATE = "immediate"
    DUE_SOON = "due_soon"
    SCHEDULED = "scheduled"


class RepairStatus(str, Enum):
    """Status bucket of a simulated post-repair score."""

    CRITICAL = "critical"
    WARNING = "warning"
    OPTIMAL = "optimal"


class StressFactorKind(str, Enum):
    """Primitive stress factors, in tie-break order for primary stressor."""

    PRESSURE = "pressure"
    LOOP = "loop"
    CHEMICAL = "chemical"
    SEDIMENT = "sediment"
    CIRC = "circ"
    TEMP = "temp"
    USAGE_INTENSITY = "usage_intensity"
    UNDERSIZING = "undersizing"


class SoftenerRecommendation(str, Enum):
    """Hard-water-tax verdict on a water softener.

    PROTECTED: A working softener is already installed.
    """

    NONE = "NONE"
    CONSIDER = "CONSIDER"
    RECOMMEND = "RECOMMEND"
    PROTECTED = "PROTECTED"


class BudgetUrgency(str, Enum):
    """How soon a homeowner should fund a replacement."""

    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"
    IMMEDIATE = "IMMEDIATE"


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class SoftenerContext(BaseModel):
    """Water softener details gathered during calibration.

    Attributes:
        salt_status: Brine tank salt level.
        service_frequency: Who services the softener; decides the
            hardness assumed when the salt level is unknown.
        install_years_ago: Years since the softener was installed; a
            softener younger than the heater has only been eating the
            anode for part of its life.
    """

    model_config = ConfigDict(frozen=True)

    salt_status: SoftenerSaltStatus = SoftenerSaltStatus.UNKNOWN
    service_frequency: SoftenerServiceFrequency = SoftenerServiceFrequency.UNKNOWN
    install_years_ago: Optional[float] = Field(
        default=None,
        description="Years since the softener was installed",
    )

    @field_validator("install_years_ago")
    @classmethod
    def _clamp_install_age(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, MAX_CALENDAR_AGE, None)


class ForensicInputs(BaseModel):
    """Canonical snapshot of a water heater's installation facts.

    Immutable per computation. Optional service-history fields use None
    for "unknown", which the engine treats conservatively (as overdue).

    Attributes:
        fuel_type: Unit technology; selects the tank/tankless/hybrid branch.
        calendar_age: Years since installation.
        warranty_years: Manufacturer tank warranty in years.
        quality_tier: Product line.
        tank_capacity_gallons: Storage capacity (ignored for tankless).
        location: Installation location.
        is_finished_area: Whether the area has finished surfaces.
        house_psi: Static house water pressure.
        has_prv: Pressure reducing valve present.
        has_exp_tank: Thermal expansion tank present.
        exp_tank_status: Observed expansion tank condition.
        is_closed_loop: Check valve / backflow preventer present.
        measured_hardness_gpg: Hardness measured on site.
        street_hardness_gpg: Hardness from utility records for the address.
        has_softener: Water softener installed.
        softener: Softener context.
        sanitizer_type: Municipal disinfectant.
        connection_type: Nipple connection type.
        anode_count: Number of sacrificial anodes (1 or 2).
        temp_setting: Thermostat setting.
        people_count: Household size.
        usage_type: Usage pattern.
        has_circ_pump: Recirculation pump installed.
        has_drain_pan: Drain pan under the unit (None = not recorded).
        last_flush_years_ago: Years since the last tank flush.
        last_anode_replace_years_ago: Years since the anode was replaced.
        last_descale_years_ago: Years since the last tankless descale.
        is_leaking: Active leak observed.
        leak_source: Origin of the leak, if known.
        visual_rust: Rust visible on the tank body.
        anode_status: Technician-observed anode condition.
        vent_status: Exhaust vent condition (tankless gas).
        gas_line_size: Gas supply line diameter.
        btu_rating: Burner input rating.
        inlet_filter_status: Tankless inlet screen condition.
        error_code_count: Fault codes logged by the controller.
        has_isolation_valves: Service valves present (tankless).
        has_recirculation_loop: Dedicated recirculation loop (tankless).
        igniter_health: Igniter health percentage (tankless gas).
        flame_rod_status: Flame rod condition (tankless gas).
        air_filter_status: Heat-pump air filter condition (hybrid).
        is_condensate_clear: Condensate line drains freely (hybrid).
        compressor_health: Compressor health percentage (hybrid).
        room_volume_type: Air volume around a hybrid unit.
    """

    model_config = ConfigDict(frozen=True)

    # -- Identity and age ---------------------------------------------------
    fuel_type: FuelType = Field(default=FuelType.GAS, description="Unit technology")
    calendar_age: float = Field(default=0.0, description="Years since installation")
    warranty_years: float = Field(default=6.0, description="Tank warranty in years")
    quality_tier: QualityTier = Field(default=QualityTier.MID, description="Product line")
    tank_capacity_gallons: float = Field(default=50.0, description="Storage capacity")

    # -- Location -----------------------------------------------------------
    location: Location = Field(default=Location.GARAGE, description="Installation location")
    is_finished_area: bool = Field(default=False, description="Finished surfaces nearby")

    # -- Pressure system ----------------------------------------------------
    house_psi: float = Field(default=60.0, description="Static house water pressure")
    has_prv: bool = False
    has_exp_tank: bool = False
    exp_tank_status: Optional[ExpansionTankStatus] = None
    is_closed_loop: bool = False

    # -- Water chemistry ----------------------------------------------------
    measured_hardness_gpg: Optional[float] = Field(default=None, description="Measured hardness")
    street_hardness_gpg: Optional[float] = Field(default=None, description="Utility-reported hardness")
    has_softener: bool = False
    softener: Optional[SoftenerContext] = None
    sanitizer_type: SanitizerType = SanitizerType.UNKNOWN
    connection_type: Optional[ConnectionType] = None
    anode_count: int = Field(default=1, description="Sacrificial anodes installed")

    # -- Usage --------------------------------------------------------------
    temp_setting: TempSetting = TempSetting.NORMAL
    people_count: int = Field(default=3, description="Household size")
    usage_type: UsageType = UsageType.NORMAL
    has_circ_pump: bool = False
    has_drain_pan: Optional[bool] = None

    # -- Service history (None = unknown) -----------------------------------
    last_flush_years_ago: Optional[float] = None
    last_anode_replace_years_ago: Optional[float] = None
    last_descale_years_ago: Optional[float] = None

    # -- Condition ----------------------------------------------------------
    is_leaking: bool = False
    leak_source: Optional[LeakSource] = None
    visual_rust: bool = False
    anode_status: Optional[AnodeStatus] = None

    # -- Tankless -----------------------------------------------------------
    vent_status: Optional[VentStatus] = None
    gas_line_size: Optional[GasLineSize] = None
    btu_rating: Optional[float] = None
    inlet_filter_status: Optional[FilterStatus] = None
    error_code_count: int = 0
    has_isolation_valves: Optional[bool] = None
    has_recirculation_loop: bool = False
    igniter_health: Optional[float] = None
    flame_rod_status: Optional[FlameRodStatus] = None

    # -- Hybrid -------------------------------------------------------------
    air_filter_status: Optional[FilterStatus] = None
    is_condensate_clear: Optional[bool] = None
    compressor_health: Optional[float] = None
    room_volume_type: Optional[RoomVolumeType] = None

    # -- Boundary clamping --------------------------------------------------

    @field_validator("calendar_age")
    @classmethod
    def _clamp_calendar_age(cls, v: float) -> float:
        return _clamp(v, 0.0, MAX_CALENDAR_AGE, 0.0)

    @field_validator("warranty_years")
    @classmethod
    def _clamp_warranty(cls, v: float) -> float:
        return _clamp(v, 0.0, 30.0, 6.0)

    @field_validator("tank_capacity_gallons")
    @classmethod
    def _clamp_capacity(cls, v: float) -> float:
        return _clamp(v, 1.0, 200.0, 50.0)

    @field_validator("house_psi")
    @classmethod
    def _clamp_psi(cls, v: float) -> float:
        return _clamp(v, 0.0, MAX_HOUSE_PSI, 60.0)

    @field_validator("measured_hardness_gpg", "street_hardness_gpg")
    @classmethod
    def _clamp_hardness(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, MAX_HARDNESS_GPG, None)

    @field_validator("anode_count")
    @classmethod
    def _clamp_anode_count(cls, v: int) -> int:
        return int(_clamp(v, 1, 2, 1))

    @field_validator("people_count")
    @classmethod
    def _clamp_people(cls, v: int) -> int:
        return int(_clamp(v, 1, 20, 3))

    @field_validator(
        "last_flush_years_ago",
        "last_anode_replace_years_ago",
        "last_descale_years_ago",
    )
    @classmethod
    def _clamp_service_history(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, MAX_CALENDAR_AGE, None)

    @field_validator("btu_rating")
    @classmethod
    def _clamp_btu(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, MAX_BTU_RATING, None)

    @field_validator("error_code_count")
    @classmethod
    def _clamp_error_codes(cls, v: int) -> int:
        return int(_clamp(v, 0, 999, 0))

    @field_validator("igniter_health", "compressor_health")
    @classmethod
    def _clamp_percentage(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, 100.0, None)

    @model_validator(mode="after")
    def _reconcile_expansion_tank(self) -> ForensicInputs:
        """An expansion tank reported MISSING cannot also be present."""
        if self.exp_tank_status == ExpansionTankStatus.MISSING and self.has_exp_tank:
            object.__setattr__(self, "has_exp_tank", False)
        return self


# ---------------------------------------------------------------------------
# Output models: stress and metrics
# ---------------------------------------------------------------------------


class StressFactors(BaseModel):
    """Fixed-key record of wear multipliers; 1.0 means no extra stress.

    ``mechanical`` = pressure x loop, ``corrosion`` = chemical x circ x
    depleted-anode penalty, ``temp_mechanical`` = temp x mechanical,
    ``temp_chemical`` = temp x chemical, and ``total`` is the capped
    product temp x mechanical x corrosion x sediment x usage_intensity x
    undersizing.
    """

    model_config = ConfigDict(frozen=True)

    mechanical: float = Field(default=1.0, ge=1.0)
    chemical: float = Field(default=1.0, ge=1.0)
    pressure: float = Field(default=1.0, ge=1.0)
    corrosion: float = Field(default=1.0, ge=1.0)
    temp: float = Field(default=1.0, ge=1.0)
    temp_mechanical: float = Field(default=1.0, ge=1.0)
    temp_chemical: float = Field(default=1.0, ge=1.0)
    circ: float = Field(default=1.0, ge=1.0)
    loop: float = Field(default=1.0, ge=1.0)
    sediment: float = Field(default=1.0, ge=1.0)
    usage_intensity: float = Field(default=1.0, ge=1.0)
    undersizing: float = Field(default=1.0, ge=1.0)
    total: float = Field(default=1.0, ge=1.0)

    def primitive(self, kind: StressFactorKind) -> float:
        """Return the value of one primitive factor."""
        return float(getattr(self, kind.value))


class OpterraMetrics(BaseModel):
    """Engine output for one forensic snapshot.

    Attributes:
        unit_type: Branch used for the computation.
        calendar_age: Calendar age after clamping.
        bio_age: Wear-adjusted age (years).
        aging_rate: bio_age / calendar_age, 1.0 for a new unit.
        is_accelerated: Aging rate above ACCELERATED_AGING_THRESHOLD.
        fail_prob: Probability of failure in the next 12 months (0-100).
        health_score: fail_prob_to_health_score(fail_prob).
        health_band: Band of health_score.
        risk_level: Leak liability by location, 1 (low) to 4 (extreme).
        effective_hardness_gpg: Hardness after softener resolution.
        stress_factors: Wear multipliers.
        flush_status: Tank/hybrid sediment flush status.
        descale_status: Tankless descale status.
        sediment_lbs: Estimated sediment in the tank.
        sediment_rate_lbs_per_year: Accumulation rate.
        months_to_flush: Months until 5 lbs (None if already past).
        months_to_lockout: Months until 15 lbs (None if already past).
        shield_life: Years of anode protection left; <= 0 means depleted.
        anode_depletion_pct: Anode mass consumed (0-100).
        anode_status: Anode condition bucket.
        anode_burn_rate: Anode consumption multiplier.
        scale_buildup_score: Tankless heat-exchanger scale (0-100).
        hybrid_efficiency: Heat-pump efficiency estimate (0-100).
        optimized_rate: Aging rate with pressure and expansion fixed.
        years_left_current: Remaining design life on the current path.
        years_left_optimized: Remaining design life if optimized.
        life_extension: Years gained by optimizing.
        primary_stressor: Largest primitive stress factor, or "none".
    """

    model_config = ConfigDict(frozen=True)

    unit_type: UnitType
    calendar_age: float = Field(..., ge=0)
    bio_age: float = Field(..., ge=0)
    aging_rate: float = Field(..., ge=0)
    is_accelerated: bool = False
    fail_prob: float = Field(..., ge=0, le=100)
    health_score: int = Field(..., ge=0, le=100)
    health_band: HealthBand
    risk_level: int = Field(..., ge=1, le=4)
    effective_hardness_gpg: float = Field(..., ge=0)
    stress_factors: StressFactors

    flush_status: Optional[ServiceStatus] = None
    descale_status: Optional[ServiceStatus] = None

    sediment_lbs: float = Field(default=0.0, ge=0)
    sediment_rate_lbs_per_year: float = Field(default=0.0, ge=0)
    months_to_flush: Optional[int] = None
    months_to_lockout: Optional[int] = None

    shield_life: Optional[float] = None
    anode_depletion_pct: Optional[float] = None
    anode_status: Optional[AnodeStatus] = None
    anode_burn_rate: Optional[float] = None

    scale_buildup_score: Optional[float] = None
    hybrid_efficiency: Optional[float] = None

    optimized_rate: float = Field(default=1.0, ge=1.0)
    years_left_current: float = Field(default=0.0, ge=0)
    years_left_optimized: float = Field(default=0.0, ge=0)
    life_extension: float = Field(default=0.0, ge=0)
    primary_stressor: str = "none"


# ---------------------------------------------------------------------------
# Output models: verdict, findings, schedule
# ---------------------------------------------------------------------------


class Recommendation(BaseModel):
    """Verdict for a unit.

    Attributes:
        action: Recommended action.
        badge: Coarse UI classification derived from action and health.
        badge_color: Display colour for the badge.
        reason: Short machine-usable cause code (e.g. ``sediment_lockout``).
        title: Human-readable headline.
        detail: Human-readable explanation.
        urgent: Whether the action should happen immediately.
    """

    model_config = ConfigDict(frozen=True)

    action: VerdictAction
    badge: Badge
    badge_color: str
    reason: str
    title: str
    detail: str
    urgent: bool = False


class InfrastructureIssue(BaseModel):
    """Installation defect distinct from continuous wear."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    friendly_name: str
    category: IssueCategory
    description: str
    recommendation: str
    cost_min: int = Field(default=0, ge=0)
    cost_max: int = Field(default=0, ge=0)

    @property
    def is_violation(self) -> bool:
        return self.category == IssueCategory.VIOLATION


class MaintenanceTask(BaseModel):
    """A single maintenance item; negative months_until_due is overdue."""

    model_config = ConfigDict(frozen=True)

    type: MaintenanceType
    label: str
    months_until_due: int
    urgency: TaskUrgency
    why_explanation: str
    benefit: str = ""
    aging_multiplier: Optional[float] = None
    is_violation: bool = False


class MaintenanceSchedule(BaseModel):
    """Ranked maintenance plan for a unit."""

    model_config = ConfigDict(frozen=True)

    unit_type: UnitType
    primary_task: Optional[MaintenanceTask] = None
    secondary_task: Optional[MaintenanceTask] = None
    additional_tasks: List[MaintenanceTask] = Field(default_factory=list)
    is_bundled: bool = False
    bundled_tasks: List[MaintenanceTask] = Field(default_factory=list)
    bundle_reason: Optional[str] = None
    monitor_only: bool = False

    @property
    def all_tasks(self) -> List[MaintenanceTask]:
        """Every task in ranked order."""
        if self.is_bundled:
            return list(self.bundled_tasks) + list(self.additional_tasks)
        tasks = [t for t in (self.primary_task, self.secondary_task) if t is not None]
        return tasks + list(self.additional_tasks)


# ---------------------------------------------------------------------------
# Output models: projection and repairs
# ---------------------------------------------------------------------------


class ProjectedHealth(BaseModel):
    """Health extrapolated ``months`` into the future."""

    model_config = ConfigDict(frozen=True)

    months: int = Field(..., ge=0)
    bio_age: float = Field(..., ge=0)
    fail_prob: float = Field(..., ge=0, le=100)
    health_score: int = Field(..., ge=0, le=100)


class RepairImpact(BaseModel):
    """Effect of a repair, in points (score) and percent (reductions)."""

    model_config = ConfigDict(frozen=True)

    health_score_boost: float = Field(default=0.0, ge=0, le=100)
    aging_factor_reduction: float = Field(default=0.0, ge=0, le=100)
    failure_prob_reduction: float = Field(default=0.0, ge=0, le=100)


class RepairOption(BaseModel):
    """A repair or replacement a homeowner can select."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    cost_min: int = Field(..., ge=0)
    cost_max: int = Field(..., ge=0)
    impact: RepairImpact
    is_full_replacement: bool = False
    unit_types: Tuple[UnitType, ...] = ()

    @model_validator(mode="after")
    def _validate_cost_range(self) -> RepairOption:
        if self.cost_max < self.cost_min:
            raise ValueError(
                f"cost_max ({self.cost_max}) must be >= cost_min ({self.cost_min})"
            )
        return self


class SimulatedResult(BaseModel):
    """Before/after comparison for a set of repairs."""

    model_config = ConfigDict(frozen=True)

    new_score: int = Field(..., ge=0, le=100)
    new_status: RepairStatus
    new_aging_factor: float = Field(..., ge=0)
    new_failure_prob: float = Field(..., ge=0, le=100)
    new_bio_age: Optional[float] = None
    total_cost_min: int = Field(default=0, ge=0)
    total_cost_max: int = Field(default=0, ge=0)
    repair_ids: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Output models: cost
# ---------------------------------------------------------------------------


class HardWaterTax(BaseModel):
    """Annual household cost of hard water, in whole dollars.

    Attributes:
        hardness_gpg: Hardness of the supply before any softener.
        effective_hardness_gpg: Hardness that reaches the fixtures.
        has_softener: Softener installed.
        energy_loss: Water-heating energy lost to scale insulation.
        appliance_depreciation: Shortened appliance and fixture life.
        detergent_overspend: Extra soap and cleaner.
        plumbing_protection: Scale damage to pipes and valves.
        total_annual_loss: Sum of the four losses at effective hardness.
        element_burnout_risk: Heating element scale risk (percent),
            electric units only.
        softener_annual_cost: Running cost of a softener.
        net_annual_savings: Loss a softener removes, less its running cost.
        payback_years: Years for a new softener to pay for itself; None
            when it never does or one is already installed.
        protected_amount: Loss an installed softener is preventing.
    """

    model_config = ConfigDict(frozen=True)

    hardness_gpg: float = Field(..., ge=0)
    effective_hardness_gpg: float = Field(..., ge=0)
    has_softener: bool
    energy_loss: int = Field(..., ge=0)
    appliance_depreciation: int = Field(..., ge=0)
    detergent_overspend: int = Field(..., ge=0)
    plumbing_protection: int = Field(..., ge=0)
    total_annual_loss: int = Field(..., ge=0)
    element_burnout_risk: Optional[int] = Field(default=None, ge=0, le=100)
    softener_annual_cost: int = Field(..., ge=0)
    net_annual_savings: int = Field(..., ge=0)
    payback_years: Optional[float] = None
    recommendation: SoftenerRecommendation
    reason: str
    badge_color: str
    protected_amount: int = Field(default=0, ge=0)


class TierProfile(BaseModel):
    """Product line with its replacement price by fuel (today's dollars)."""

    model_config = ConfigDict(frozen=True)

    tier: QualityTier
    tier_label: str
    warranty_years: int = Field(..., ge=0)
    expected_life: int = Field(..., ge=1)
    features: Tuple[str, ...] = ()
    base_cost_gas: int = Field(..., ge=0)
    base_cost_electric: int = Field(..., ge=0)
    base_cost_hybrid: int = Field(default=0, ge=0)


class FinancialForecast(BaseModel):
    """Replacement budget plan as of a given date.

    Attributes:
        as_of: Date the forecast was made for.
        target_replacement_date: First of the month the unit should be
            replaced by.
        months_until_target: Months from ``as_of`` to the target.
        est_replacement_cost: Like-for-like cost inflated to the target.
        est_replacement_cost_min: Low end of the estimate (-10%).
        est_replacement_cost_max: High end of the estimate (+10%).
        monthly_budget: Monthly saving that funds the replacement.
        budget_urgency: How soon the money is needed.
        recommendation: Homeowner-facing summary.
        current_tier: Product line of the installed unit.
        like_for_like_cost: Today's price of the same product line.
        upgrade_tier: Next product line up, if any.
        upgrade_cost: Today's price of the upgrade tier.
        upgrade_value_prop: Why the upgrade is worth considering.
    """

    model_config = ConfigDict(frozen=True)

    as_of: date
    target_replacement_date: date
    months_until_target: int = Field(..., ge=0)
    est_replacement_cost: int = Field(..., ge=0)
    est_replacement_cost_min: int = Field(..., ge=0)
    est_replacement_cost_max: int = Field(..., ge=0)
    monthly_budget: int = Field(..., ge=0)
    budget_urgency: BudgetUrgency
    recommendation: str
    current_tier: TierProfile
    like_for_like_cost: int = Field(..., ge=0)
    upgrade_tier: Optional[TierProfile] = None
    upgrade_cost: Optional[int] = None
    upgrade_value_prop: Optional[str] = None


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------


class OpterraResult(BaseModel):
    """Complete assessment, reproducible from its inputs.

    Attributes:
        metrics: Engine metrics.
        verdict: Recommendation.
        infrastructure_issues: Findings used by the verdict.
        algorithm_version: Engine version that produced the result.
        input_hash: SHA-256 of the canonical forensic inputs.
        provenance_hash: SHA-256 of metrics, verdict, issues, hard water
            tax, version and input hash.
        hard_water_tax: Annual cost of hard water for the household.
        financial: Replacement budget plan; only present when the
            assessment was made for an ``as_of`` date, and not covered by
            the provenance hash.
    """

    model_config = ConfigDict(frozen=True)

    metrics: OpterraMetrics
    verdict: Recommendation
    infrastructure_issues: List[InfrastructureIssue] = Field(default_factory=list)
    hard_water_tax: Optional[HardWaterTax] = None
    financial: Optional[FinancialForecast] = None
    algorithm_version: str = ALGORITHM_VERSION
    input_hash: str = ""
    provenance_hash: str = ""

    def assessment_columns(self) -> Dict[str, Any]:
        """Denormalized columns stored alongside a persisted result."""
        return {
            "bio_age": self.metrics.bio_age,
            "fail_probability": self.metrics.fail_prob,
            "health_score": self.metrics.health_score,
            "risk_level": self.metrics.risk_level,
            "algorithm_version": self.algorithm_version,
        }


__all__ = [
    "ALGORITHM_VERSION",
    "MAX_CALENDAR_AGE",
    "MAX_HOUSE_PSI",
    "MAX_HARDNESS_GPG",
    "MAX_BTU_RATING",
    "HEALTH_CRITICAL_THRESHOLD",
    "HEALTH_HEALTHY_THRESHOLD",
    "ACCELERATED_AGING_THRESHOLD",
    # Enums
    "FuelType",
    "UnitType",
    "QualityTier",
    "Location",
    "TempSetting",
    "UsageType",
    "ExpansionTankStatus",
    "SoftenerSaltStatus",
    "SoftenerServiceFrequency",
    "SanitizerType",
    "ConnectionType",
    "LeakSource",
    "AnodeStatus",
    "VentStatus",
    "GasLineSize",
    "FilterStatus",
    "FlameRodStatus",
    "RoomVolumeType",
    "ServiceStatus",
    "HealthBand",
    "VerdictAction",
    "Badge",
    "IssueCategory",
    "MaintenanceType",
    "TaskUrgency",
    "RepairStatus",
    "StressFactorKind",
    "SoftenerRecommendation",
    "BudgetUrgency",
    "is_tankless",
    "is_hybrid",
    "unit_type_for",
    # Models
    "SoftenerContext",
    "ForensicInputs",
    "StressFactors",
    "OpterraMetrics",
    "Recommendation",
    "InfrastructureIssue",
    "MaintenanceTask",
    "MaintenanceSchedule",
    "ProjectedHealth",
    "RepairImpact",
    "RepairOption",
    "SimulatedResult",
    "HardWaterTax",
    "TierProfile",
    "FinancialForecast",
    "OpterraResult",
]
