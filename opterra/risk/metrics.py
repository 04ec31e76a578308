# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Opterra Risk Engine

Seven Prometheus metrics for monitoring the water-heater risk engine.

All metric names use the ``opterra_`` prefix for consistent
identification in Prometheus queries, dashboards and alerting rules.

Metrics:
    1. opterra_assessments_total                (Counter,   labels: unit_type, action)
    2. opterra_verdicts_total                   (Counter,   labels: action, badge)
    3. opterra_infrastructure_issues_total      (Counter,   labels: issue_id, category)
    4. opterra_repair_simulations_total         (Counter,   labels: mode)
    5. opterra_assessment_duration_seconds      (Histogram, labels: operation)
    6. opterra_cache_lookups_total              (Counter,   labels: result)
    7. opterra_cached_results                   (Gauge)

Label Values Reference:
    unit_type:
        tank, tankless, hybrid.
    action:
        REPLACE, REPAIR, UPGRADE, MAINTAIN, PASS.
    badge:
        CRITICAL, REPLACE, SERVICE, MONITOR, OPTIMAL.
    category:
        VIOLATION, ISSUE.
    mode:
        replacement, combined, empty.
    result:
        hit, miss.
    operation:
        assess.

Example:
    >>> from opterra.risk.metrics import record_assessment, observe_duration
    >>> record_assessment("tank", "PASS")
    >>> observe_duration("assess", 0.002)

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Assessments by unit type and resulting action
op_assessments_total = Counter(
    "opterra_assessments_total",
    "Total water heater risk assessments performed",
    labelnames=["unit_type", "action"],
)

# 2. Verdicts by action and badge
op_verdicts_total = Counter(
    "opterra_verdicts_total",
    "Total verdicts issued by action and badge",
    labelnames=["action", "badge"],
)

# 3. Infrastructure findings by rule id and category
op_infrastructure_issues_total = Counter(
    "opterra_infrastructure_issues_total",
    "Total infrastructure issues detected by rule and category",
    labelnames=["issue_id", "category"],
)

# 4. Repair simulations by mode
op_repair_simulations_total = Counter(
    "opterra_repair_simulations_total",
    "Total repair simulations by mode",
    labelnames=["mode"],
)

# 5. Duration histogram by operation
op_assessment_duration_seconds = Histogram(
    "opterra_assessment_duration_seconds",
    "Duration of risk engine operations in seconds",
    labelnames=["operation"],
    buckets=(
        0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01,
        0.025, 0.05, 0.1, 0.25, 0.5, 1.0,
    ),
)

# 6. Result cache lookups by outcome
op_cache_lookups_total = Counter(
    "opterra_cache_lookups_total",
    "Total result cache lookups by outcome",
    labelnames=["result"],
)

# 7. Results currently held in the facade cache
op_cached_results = Gauge(
    "opterra_cached_results",
    "Number of assessment results currently cached",
)


# ---------------------------------------------------------------------------
# MetricsCollector class
# ---------------------------------------------------------------------------


class MetricsCollector:
    """Facade for recording risk engine Prometheus metrics.

    Example:
        >>> collector = MetricsCollector()
        >>> collector.record_assessment("tankless", "MAINTAIN")
        >>> collector.observe_duration("assess", 0.001)
    """

    @staticmethod
    def record_assessment(unit_type: str, action: str) -> None:
        """Record a completed assessment.

        Args:
            unit_type: Engine branch (tank, tankless, hybrid).
            action: Verdict action.
        """
        op_assessments_total.labels(
            unit_type=unit_type,
            action=action,
        ).inc()

    @staticmethod
    def record_verdict(action: str, badge: str) -> None:
        """Record an issued verdict.

        Args:
            action: Verdict action.
            badge: Verdict badge.
        """
        op_verdicts_total.labels(action=action, badge=badge).inc()

    @staticmethod
    def record_issue(issue_id: str, category: str) -> None:
        """Record a detected infrastructure issue.

        Args:
            issue_id: Rule id (e.g. prv_critical).
            category: VIOLATION or ISSUE.
        """
        op_infrastructure_issues_total.labels(
            issue_id=issue_id,
            category=category,
        ).inc()

    @staticmethod
    def record_simulation(mode: str) -> None:
        """Record a repair simulation.

        Args:
            mode: replacement, combined or empty.
        """
        op_repair_simulations_total.labels(mode=mode).inc()

    @staticmethod
    def observe_duration(operation: str, seconds: float) -> None:
        """Record the duration of an engine operation.

        Args:
            operation: Operation name (assess, schedule, project, simulate).
            seconds: Elapsed wall-clock time.
        """
        op_assessment_duration_seconds.labels(operation=operation).observe(
            seconds
        )

    @staticmethod
    def record_cache_lookup(hit: bool) -> None:
        """Record a result cache lookup."""
        op_cache_lookups_total.labels(result="hit" if hit else "miss").inc()

    @staticmethod
    def set_cached_results(count: int) -> None:
        """Set the number of results held in the cache."""
        op_cached_results.set(count)


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------


def record_assessment(unit_type: str, action: str) -> None:
    """Record a completed assessment. See MetricsCollector."""
    MetricsCollector.record_assessment(unit_type, action)


def record_verdict(action: str, badge: str) -> None:
    """Record an issued verdict. See MetricsCollector."""
    MetricsCollector.record_verdict(action, badge)


def record_issue(issue_id: str, category: str) -> None:
    """Record an infrastructure issue. See MetricsCollector."""
    MetricsCollector.record_issue(issue_id, category)


def record_simulation(mode: str) -> None:
    """Record a repair simulation. See MetricsCollector."""
    MetricsCollector.record_simulation(mode)


def observe_duration(operation: str, seconds: float) -> None:
    """Record an operation duration. See MetricsCollector."""
    MetricsCollector.observe_duration(operation, seconds)


def record_cache_lookup(hit: bool) -> None:
    """Record a cache lookup. See MetricsCollector."""
    MetricsCollector.record_cache_lookup(hit)


def set_cached_results(count: int) -> None:
    """Set the cached result count. See MetricsCollector."""
    MetricsCollector.set_cached_results(count)


__all__ = [
    "MetricsCollector",
    "record_assessment",
    "record_verdict",
    "record_issue",
    "record_simulation",
    "observe_duration",
    "record_cache_lookup",
    "set_cached_results",
]
