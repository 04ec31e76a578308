# -*- coding: utf-8 -*-
"""
Provenance Hashing for the Opterra Risk Engine

Deterministic SHA-256 digests that make stored assessments auditable:
recomputing a stored ``ForensicInputs`` snapshot with the same
``ALGORITHM_VERSION`` must reproduce the same ``provenance_hash``.

Guarantees:
    - All hashes are deterministic SHA-256 over canonical JSON
      (``sort_keys=True``, enum members serialised by value)
    - The input hash covers every forensic field, including defaults
    - The provenance hash chains the input hash, the algorithm version
      and the serialised metrics, verdict, infrastructure issues and
      hard water tax

Example:
    >>> from opterra.risk.models import ForensicInputs
    >>> from opterra.risk.provenance import compute_input_hash
    >>> h = compute_input_hash(ForensicInputs(calendar_age=4))
    >>> len(h)
    64

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Iterable, Optional

from opterra.risk.models import (
    HardWaterTax,
    InfrastructureIssue,
    OpterraMetrics,
    ForensicInputs,
    Recommendation,
)

logger = logging.getLogger(__name__)


def hash_data(data: Optional[Any]) -> str:
    """Compute a SHA-256 hash for arbitrary JSON-serialisable data.

    Args:
        data: Any JSON-serialisable object, or None.

    Returns:
        Hex-encoded SHA-256 hash string.
    """
    if data is None:
        serialized = "null"
    else:
        serialized = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def compute_input_hash(inputs: ForensicInputs) -> str:
    """Hash a forensic snapshot; equal inputs always share a hash."""
    return hash_data(inputs.model_dump(mode="json"))


def compute_provenance_hash(
    input_hash: str,
    algorithm_version: str,
    metrics: OpterraMetrics,
    verdict: Recommendation,
    issues: Iterable[InfrastructureIssue],
    hard_water_tax: Optional[HardWaterTax] = None,
) -> str:
    """Chain the input hash with everything the engine produced.

    Args:
        input_hash: Hash from compute_input_hash.
        algorithm_version: Engine version that produced the result.
        metrics: Engine metrics.
        verdict: Verdict.
        issues: Infrastructure findings.
        hard_water_tax: Hard water tax, chained when present.

    Returns:
        Hex-encoded SHA-256 provenance hash.
    """
    payload = {
        "algorithm_version": algorithm_version,
        "input_hash": input_hash,
        "metrics": metrics.model_dump(mode="json"),
        "verdict": verdict.model_dump(mode="json"),
        "issues": [issue.model_dump(mode="json") for issue in issues],
    }
    if hard_water_tax is not None:
        payload["hard_water_tax"] = hard_water_tax.model_dump(mode="json")
    digest = hash_data(payload)
    logger.debug(
        "Provenance hash computed: input=%s..., result=%s...",
        input_hash[:12], digest[:12],
    )
    return digest


__all__ = [
    "hash_data",
    "compute_input_hash",
    "compute_provenance_hash",
]
