# -*- coding: utf-8 -*-
"""
Opterra Risk Engine

Deterministic risk engine for tank, tankless and hybrid water heaters.

Components:
    - StressFactorCalculator: wear multipliers, anode/sediment/scale models
    - AgingEngine: biological age and remaining-life figures
    - FailureModel: Weibull failure probability and the health score
    - InfrastructureAuditor: installation defects and code violations
    - MaintenanceScheduler: ranked, bundled maintenance plan
    - VerdictEngine: replace / repair / upgrade / maintain / pass
    - ProjectionEngine: forward health projection
    - RepairSimulator: repair catalog and before/after simulation
    - HardWaterCalculator: annual cost of hard water and softener payback
    - FinancialForecaster: replacement budget plan for a given date

Example:
    >>> from opterra.risk import ForensicInputs, calculate_opterra_risk
    >>> result = calculate_opterra_risk(ForensicInputs(calendar_age=10, house_psi=85))
    >>> result.algorithm_version
    'opterra-risk-1.0.0'

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from opterra.risk.aging import AgingEngine
from opterra.risk.config import (
    OpterraRiskConfig,
    get_config,
    reset_config,
    set_config,
)
from opterra.risk.failure_model import (
    FailureModel,
    bio_age_to_fail_prob,
    fail_prob_to_health_score,
)
from opterra.risk.financial import FinancialForecaster, calculate_financial_forecast
from opterra.risk.hard_water import HardWaterCalculator, calculate_hard_water_tax
from opterra.risk.infrastructure import (
    InfrastructureAuditor,
    calculate_issue_costs,
    get_infrastructure_issues,
    get_issues_by_category,
)
from opterra.risk.maintenance import (
    MaintenanceScheduler,
    calculate_maintenance_schedule,
    get_infrastructure_maintenance_tasks,
)
from opterra.risk.models import (
    ALGORITHM_VERSION,
    FinancialForecast,
    FuelType,
    ForensicInputs,
    HardWaterTax,
    InfrastructureIssue,
    MaintenanceSchedule,
    MaintenanceTask,
    OpterraMetrics,
    OpterraResult,
    ProjectedHealth,
    Recommendation,
    RepairOption,
    SimulatedResult,
    SoftenerContext,
    StressFactors,
    TierProfile,
    UnitType,
    VerdictAction,
)
from opterra.risk.pipeline import (
    OpterraRiskEngine,
    calculate_opterra_risk,
    is_hybrid,
    is_tankless,
    unit_type_for,
)
from opterra.risk.projection import (
    ProjectionEngine,
    project_future_health,
    project_health_timeline,
)
from opterra.risk.repair_simulator import (
    REPAIR_CATALOG,
    RepairSimulator,
    get_available_repairs,
    get_repair,
    get_repairs_by_unit_type,
    simulate_repairs,
)
from opterra.risk.stress_factors import StressFactorCalculator, compute_stress_factors
from opterra.risk.verdict import VerdictEngine, determine_verdict

__all__ = [
    "ALGORITHM_VERSION",
    # Operations
    "calculate_opterra_risk",
    "fail_prob_to_health_score",
    "project_future_health",
    "project_health_timeline",
    "simulate_repairs",
    "calculate_maintenance_schedule",
    "get_infrastructure_issues",
    "get_infrastructure_maintenance_tasks",
    "get_issues_by_category",
    "calculate_issue_costs",
    "get_available_repairs",
    "get_repair",
    "get_repairs_by_unit_type",
    "determine_verdict",
    "compute_stress_factors",
    "calculate_hard_water_tax",
    "calculate_financial_forecast",
    "bio_age_to_fail_prob",
    "is_tankless",
    "is_hybrid",
    "unit_type_for",
    # Components
    "StressFactorCalculator",
    "AgingEngine",
    "FailureModel",
    "InfrastructureAuditor",
    "MaintenanceScheduler",
    "VerdictEngine",
    "ProjectionEngine",
    "RepairSimulator",
    "HardWaterCalculator",
    "FinancialForecaster",
    "REPAIR_CATALOG",
    "OpterraRiskEngine",
    # Configuration
    "OpterraRiskConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Models
    "FuelType",
    "UnitType",
    "VerdictAction",
    "ForensicInputs",
    "SoftenerContext",
    "StressFactors",
    "OpterraMetrics",
    "Recommendation",
    "InfrastructureIssue",
    "MaintenanceTask",
    "MaintenanceSchedule",
    "ProjectedHealth",
    "RepairOption",
    "SimulatedResult",
    "HardWaterTax",
    "TierProfile",
    "FinancialForecast",
    "OpterraResult",
]
