# -*- coding: utf-8 -*-
"""
Opterra Risk Engine Configuration

Centralized configuration for the Opterra water-heater risk engine covering:
- Master enable flag and logging level
- Prometheus metrics export toggle
- Provenance hashing toggle (input/result SHA-256 digests)
- Result cache sizing for the OpterraRiskEngine facade
- Default projection horizons used by the CLI and the facade
- Default CLI output format (table or json)

Engine constants (stress curves, Weibull parameters, thresholds) are NOT
configurable: a result must depend only on its inputs and on
``ALGORITHM_VERSION`` so stored assessments can be reproduced.

All settings can be overridden via environment variables with the
``OPTERRA_RISK_`` prefix (e.g. ``OPTERRA_RISK_CACHE_SIZE``).

Environment Variable Reference (OPTERRA_RISK_ prefix):
    OPTERRA_RISK_ENABLED                 - Enable/disable the engine facade
    OPTERRA_RISK_LOG_LEVEL               - Logging level
    OPTERRA_RISK_ENABLE_METRICS          - Enable Prometheus metrics export
    OPTERRA_RISK_ENABLE_PROVENANCE       - Attach SHA-256 hashes to results
    OPTERRA_RISK_CACHE_SIZE              - Max cached results (0 disables)
    OPTERRA_RISK_PROJECTION_HORIZONS     - Comma-separated months (e.g. 6,12,24)
    OPTERRA_RISK_OUTPUT_FORMAT           - CLI output format (table/json)

Example:
    >>> from opterra.risk.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.cache_size, cfg.projection_horizons)
    256 6,12,24,36

    >>> # Override for testing
    >>> from opterra.risk.config import set_config, reset_config
    >>> from opterra.risk.config import OpterraRiskConfig
    >>> set_config(OpterraRiskConfig(cache_size=0))
    >>> reset_config()  # teardown

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from opterra.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "OPTERRA_RISK_"

# ---------------------------------------------------------------------------
# Valid enumeration values for configuration validation
# ---------------------------------------------------------------------------

_VALID_LOG_LEVELS = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

_VALID_OUTPUT_FORMATS = frozenset({"table", "json"})

#: Longest projection horizon accepted (months).
MAX_PROJECTION_MONTHS: int = 240


# ---------------------------------------------------------------------------
# OpterraRiskConfig
# ---------------------------------------------------------------------------


@dataclass
class OpterraRiskConfig:
    """Operational configuration for the Opterra risk engine.

    Attributes:
        enabled: Master enable flag for the engine facade.
        log_level: Logging verbosity level.
        enable_metrics: Record Prometheus metrics for assessments.
        enable_provenance: Attach input/result SHA-256 hashes to results.
        cache_size: Maximum number of cached results keyed by input hash.
            Zero disables caching.
        projection_horizons: Comma-separated list of projection horizons
            in months.
        output_format: Default CLI rendering (``table`` or ``json``).
    """

    enabled: bool = True
    log_level: str = "INFO"
    enable_metrics: bool = True
    enable_provenance: bool = True
    cache_size: int = 256
    projection_horizons: str = "6,12,24,36"
    output_format: str = "table"

    # ------------------------------------------------------------------
    # Post-init validation
    # ------------------------------------------------------------------

    def __post_init__(self) -> None:
        """Validate configuration constraints after initialisation.

        Collects all validation errors before raising a single
        ConfigurationError (a ValueError subclass).

        Raises:
            ConfigurationError: If any configuration value is outside its
                valid range or violates a constraint.
        """
        errors: list[str] = []

        normalised_log = self.log_level.upper()
        if normalised_log not in _VALID_LOG_LEVELS:
            errors.append(
                f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}, "
                f"got '{self.log_level}'"
            )
        else:
            self.log_level = normalised_log

        normalised_format = self.output_format.lower()
        if normalised_format not in _VALID_OUTPUT_FORMATS:
            errors.append(
                f"output_format must be one of "
                f"{sorted(_VALID_OUTPUT_FORMATS)}, "
                f"got '{self.output_format}'"
            )
        else:
            self.output_format = normalised_format

        if self.cache_size < 0:
            errors.append(
                f"cache_size must be >= 0, got {self.cache_size}"
            )

        try:
            horizons = _parse_horizons(self.projection_horizons)
        except ValueError:
            errors.append(
                f"projection_horizons must be comma-separated integers, "
                f"got '{self.projection_horizons}'"
            )
        else:
            if not horizons:
                errors.append("projection_horizons must not be empty")
            for months in horizons:
                if not (0 < months <= MAX_PROJECTION_MONTHS):
                    errors.append(
                        f"projection horizon must be in "
                        f"(0, {MAX_PROJECTION_MONTHS}], got {months}"
                    )

        if errors:
            raise ConfigurationError(
                "OpterraRiskConfig validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors),
                component="OpterraRiskConfig",
                context={"errors": errors},
            )

        logger.debug(
            "OpterraRiskConfig validated successfully: "
            "metrics=%s, provenance=%s, cache_size=%d, horizons=%s, "
            "output_format=%s",
            self.enable_metrics,
            self.enable_provenance,
            self.cache_size,
            self.projection_horizons,
            self.output_format,
        )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def horizon_months(self) -> List[int]:
        """Projection horizons as a sorted list of unique month counts."""
        return sorted(set(_parse_horizons(self.projection_horizons)))

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> OpterraRiskConfig:
        """Build an OpterraRiskConfig from environment variables.

        Every field can be overridden via ``OPTERRA_RISK_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Malformed integers fall back to the class-level default and emit
        a WARNING log.

        Returns:
            Populated OpterraRiskConfig instance, validated via
            ``__post_init__``.

        Example:
            >>> import os
            >>> os.environ["OPTERRA_RISK_CACHE_SIZE"] = "0"
            >>> cfg = OpterraRiskConfig.from_env()
            >>> cfg.cache_size
            0
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.strip().lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val.strip())
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%r, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val.strip()

        config = cls(
            enabled=_bool("ENABLED", cls.enabled),
            log_level=_str("LOG_LEVEL", cls.log_level),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
            enable_provenance=_bool(
                "ENABLE_PROVENANCE", cls.enable_provenance,
            ),
            cache_size=_int("CACHE_SIZE", cls.cache_size),
            projection_horizons=_str(
                "PROJECTION_HORIZONS", cls.projection_horizons,
            ),
            output_format=_str("OUTPUT_FORMAT", cls.output_format),
        )

        logger.info(
            "OpterraRiskConfig loaded: metrics=%s, provenance=%s, "
            "cache_size=%d, horizons=%s, output_format=%s",
            config.enable_metrics,
            config.enable_provenance,
            config.cache_size,
            config.projection_horizons,
            config.output_format,
        )
        return config

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration to a plain Python dictionary."""
        return {
            "enabled": self.enabled,
            "log_level": self.log_level,
            "enable_metrics": self.enable_metrics,
            "enable_provenance": self.enable_provenance,
            "cache_size": self.cache_size,
            "projection_horizons": self.projection_horizons,
            "output_format": self.output_format,
        }

    def __repr__(self) -> str:
        d = self.to_dict()
        pairs = ", ".join(f"{k}={v!r}" for k, v in d.items())
        return f"OpterraRiskConfig({pairs})"


def _parse_horizons(raw: str) -> List[int]:
    """Parse ``"6,12,24"`` into ``[6, 12, 24]``; raises ValueError."""
    return [int(part.strip()) for part in raw.split(",") if part.strip()]


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[OpterraRiskConfig] = None
_config_lock = threading.Lock()


def get_config() -> OpterraRiskConfig:
    """Return the singleton OpterraRiskConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.

    Returns:
        OpterraRiskConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = OpterraRiskConfig.from_env()
    return _config_instance


def set_config(config: OpterraRiskConfig) -> None:
    """Replace the singleton OpterraRiskConfig.

    Primarily intended for testing and dependency injection.

    Args:
        config: New OpterraRiskConfig to install as the singleton.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info(
        "OpterraRiskConfig replaced programmatically: "
        "metrics=%s, provenance=%s, cache_size=%d",
        config.enable_metrics,
        config.enable_provenance,
        config.cache_size,
    )


def reset_config() -> None:
    """Reset the singleton OpterraRiskConfig to None.

    The next call to get_config() will re-read environment variables
    and construct a fresh instance. Intended for test teardown.
    """
    global _config_instance
    with _config_lock:
        _config_instance = None
    logger.debug("OpterraRiskConfig singleton reset")


# ---------------------------------------------------------------------------
# Public surface
# ---------------------------------------------------------------------------

__all__ = [
    "OpterraRiskConfig",
    "MAX_PROJECTION_MONTHS",
    "get_config",
    "set_config",
    "reset_config",
]
