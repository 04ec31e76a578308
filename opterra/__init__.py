"""
Opterra: Water-Heater Risk Engine
=================================

Turns a forensic snapshot of a water heater's installation facts into a
biological age, a failure probability, a 0-100 health score, stress
multipliers, infrastructure findings, a maintenance schedule, a verdict,
forward projections and repair simulations, plus the annual hard water tax
and a dated replacement budget plan.

The engine lives in :mod:`opterra.risk`; this module re-exports its
public operations.
"""

from ._version import __version__

__author__ = "Opterra Platform Team"

from opterra.exceptions import (
    ConfigurationError,
    InvalidInputError,
    OpterraException,
    UnknownRepairError,
)
from opterra.risk import (
    ALGORITHM_VERSION,
    ForensicInputs,
    OpterraResult,
    OpterraRiskEngine,
    calculate_financial_forecast,
    calculate_hard_water_tax,
    calculate_maintenance_schedule,
    calculate_opterra_risk,
    fail_prob_to_health_score,
    get_infrastructure_issues,
    get_infrastructure_maintenance_tasks,
    is_tankless,
    project_future_health,
    simulate_repairs,
)

__all__ = [
    "__version__",
    "ALGORITHM_VERSION",
    # Operations
    "calculate_opterra_risk",
    "fail_prob_to_health_score",
    "project_future_health",
    "simulate_repairs",
    "calculate_maintenance_schedule",
    "calculate_hard_water_tax",
    "calculate_financial_forecast",
    "get_infrastructure_issues",
    "get_infrastructure_maintenance_tasks",
    "is_tankless",
    # Engine and models
    "OpterraRiskEngine",
    "ForensicInputs",
    "OpterraResult",
    # Exceptions
    "OpterraException",
    "InvalidInputError",
    "UnknownRepairError",
    "ConfigurationError",
]
