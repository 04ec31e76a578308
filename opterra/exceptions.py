"""Opterra Exception Hierarchy.

Exceptions raised at the edges of the risk engine. The engine itself never
raises for typed input (numeric values are clamped and unknown facts take
conservative defaults); these exceptions cover the payload boundary,
repair-catalog lookups and configuration problems.

Exception Hierarchy:
    OpterraException (base)
    ├── InvalidInputError
    ├── UnknownRepairError
    └── ConfigurationError

All exceptions include rich context:
- error_code: Unique error identifier
- component: Name of the engine component that raised the error
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from opterra.exceptions import UnknownRepairError
    >>> raise UnknownRepairError(
    ...     message="Unknown repair option: 'polish'",
    ...     context={"repair_id": "polish"},
    ... )

Author: Opterra Platform Team
Date: October 2026
Status: Production Ready
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class OpterraException(Exception):
    """Base exception for all Opterra errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "OP_INVALID_INPUT_ERROR")
        component: Engine component that raised the error (optional)
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "OP"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize Opterra exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            component: Engine component that raised the error
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "OP_UNKNOWN_REPAIR_ERROR"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        """String representation with error code and message."""
        parts = [f"[{self.error_code}]"]
        if self.component:
            parts.append(f"Component: {self.component}")
        parts.append(self.message)
        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"component='{self.component}')"
        )


# ==============================================================================
# Concrete Exceptions
# ==============================================================================

class InvalidInputError(OpterraException):
    """Forensic input payload could not be parsed.

    Raised at the payload boundary when a raw mapping does not describe a
    valid snapshot (unknown enumeration member, wrong type).

    Example:
        >>> raise InvalidInputError(
        ...     message="Invalid forensic inputs",
        ...     component="OpterraRiskEngine",
        ...     invalid_fields={"fuel_type": "Input should be 'gas', ..."},
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        """Initialize invalid input error.

        Args:
            message: Error message
            component: Engine component
            context: Error context
            invalid_fields: Dictionary of field_name -> reason
        """
        if invalid_fields:
            context = context or {}
            context["invalid_fields"] = invalid_fields
        super().__init__(message, component=component, context=context)

    @property
    def invalid_fields(self) -> Dict[str, str]:
        return self.context.get("invalid_fields", {})


class UnknownRepairError(OpterraException):
    """A repair option id is not present in the repair catalog."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        repair_id: Optional[str] = None,
        known_ids: Optional[List[str]] = None,
    ):
        context = context or {}
        if repair_id is not None:
            context["repair_id"] = repair_id
        if known_ids:
            context["known_ids"] = known_ids
        super().__init__(message, component=component, context=context)


class ConfigurationError(OpterraException, ValueError):
    """Engine or CLI configuration is invalid.

    Also a ValueError, so configuration validation keeps the built-in
    contract callers already catch.

    Example:
        >>> raise ConfigurationError(
        ...     message="Invalid projection horizon 'soon'",
        ...     context={"env_var": "OPTERRA_RISK_PROJECTION_HORIZONS"},
        ... )
    """
    pass


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current: Optional[BaseException] = exc

    while current is not None:
        if isinstance(current, OpterraException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, "__cause__", None)

    return "\n".join(lines)


__all__ = [
    "OpterraException",
    "InvalidInputError",
    "UnknownRepairError",
    "ConfigurationError",
    "format_exception_chain",
]
