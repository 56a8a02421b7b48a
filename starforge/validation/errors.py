"""
Error Handling
==============

Error taxonomy, bounded diagnostics log and numeric guards.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SimulationErrorType(Enum):
    """Kinds of simulation failure."""
    INVALID_PARAMETERS = 'INVALID_PARAMETERS'
    NUMERICAL_INSTABILITY = 'NUMERICAL_INSTABILITY'
    UNSTABLE_SYSTEM = 'UNSTABLE_SYSTEM'
    CALCULATION_TIMEOUT = 'CALCULATION_TIMEOUT'
    INSUFFICIENT_MASS = 'INSUFFICIENT_MASS'
    EXTREME_VALUES = 'EXTREME_VALUES'
    ORBITAL_INSTABILITY = 'ORBITAL_INSTABILITY'


class SimulationError(Exception):
    """
    Typed simulation failure.

    Args:
        error_type: Machine-readable kind
        message: Human-readable description
        details: Structured payload (offending values, names)
        recoverable: True when the caller may continue with a fallback
    """

    def __init__(self,
                 error_type: SimulationErrorType,
                 message: str,
                 details: Optional[Dict[str, Any]] = None,
                 recoverable: bool = False):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return (f"SimulationError({self.error_type.value}, {self.message!r}, "
                f"recoverable={self.recoverable})")


@dataclass
class ErrorLogEntry:
    """One diagnostics record."""
    error_type: SimulationErrorType
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorLog:
    """
    Bounded diagnostics sink.

    Keeps the most recent entries only. Each entry is also forwarded to the
    module logger so the usual logging configuration sees it.
    """

    DEFAULT_CAPACITY = 100

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        assert capacity > 0, "Error log capacity must be positive"
        self.capacity = capacity
        self._entries: Deque[ErrorLogEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def log(self, error: SimulationError) -> ErrorLogEntry:
        """Record a SimulationError."""
        return self.record(error.error_type, error.message,
                           details=error.details, recoverable=error.recoverable)

    def record(self,
               error_type: SimulationErrorType,
               message: str,
               details: Optional[Dict[str, Any]] = None,
               recoverable: bool = True) -> ErrorLogEntry:
        """Record an issue that was not raised."""
        entry = ErrorLogEntry(error_type, message, dict(details or {}), recoverable)
        self._entries.append(entry)

        level = logging.WARNING if recoverable else logging.ERROR
        logger.log(level, "[%s] %s", error_type.value, message)
        return entry

    def get_logs(self) -> List[ErrorLogEntry]:
        """All retained entries, oldest first."""
        return list(self._entries)

    def get_recent_logs(self, count: int = 10) -> List[ErrorLogEntry]:
        """The newest ``count`` entries, oldest first."""
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def clear(self):
        self._entries.clear()

    def get_error_counts(self) -> Dict[SimulationErrorType, int]:
        """Number of retained entries per error type."""
        counts = {error_type: 0 for error_type in SimulationErrorType}
        for entry in self._entries:
            counts[entry.error_type] += 1
        return counts


def check_numerical_stability(value: float, name: str,
                              error_log: Optional[ErrorLog] = None) -> float:
    """
    Reject NaN and infinite results.

    Args:
        value: Computed value
        name: Quantity name for the error message
        error_log: Optional sink that also receives the failure

    Returns:
        The value unchanged when finite

    Raises:
        SimulationError: NUMERICAL_INSTABILITY for NaN or Infinity
    """
    if math.isfinite(value):
        return value

    error = SimulationError(
        SimulationErrorType.NUMERICAL_INSTABILITY,
        f"Numerical instability in {name}: {value}",
        details={'name': name, 'value': value},
        recoverable=True,
    )
    if error_log is not None:
        error_log.log(error)
    raise error


def check_extreme_value(value: float, name: str,
                        min_value: float, max_value: float,
                        error_log: Optional[ErrorLog] = None) -> bool:
    """
    Warn when a value falls outside its typical range.

    Returns:
        True if the value is within range
    """
    if min_value <= value <= max_value:
        return True

    if error_log is not None:
        error_log.record(
            SimulationErrorType.EXTREME_VALUES,
            f"{name} = {value} is outside the typical range [{min_value}, {max_value}]",
            details={'name': name, 'value': value, 'min': min_value, 'max': max_value},
        )
    else:
        logger.warning("%s = %s is outside the typical range [%s, %s]",
                       name, value, min_value, max_value)
    return False


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def safe_divide(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Division returning ``fallback`` for a zero or non-finite result."""
    if denominator == 0:
        return fallback
    result = numerator / denominator
    return result if math.isfinite(result) else fallback


def safe_sqrt(value: float, fallback: float = 0.0) -> float:
    """Square root returning ``fallback`` for negative or non-finite input."""
    if value < 0 or not math.isfinite(value):
        return fallback
    return math.sqrt(value)


def safe_pow(base: float, exponent: float, fallback: float = 0.0) -> float:
    """Power returning ``fallback`` for 0^negative, complex or overflowing results."""
    if base == 0 and exponent < 0:
        return fallback
    if base < 0 and not float(exponent).is_integer():
        return fallback
    try:
        result = math.pow(base, exponent)
    except (OverflowError, ValueError):
        return fallback
    return result if math.isfinite(result) else fallback


def with_error_handling(operation: Callable[[], T],
                        fallback: T,
                        context: str,
                        error_log: Optional[ErrorLog] = None) -> T:
    """
    Run ``operation`` and return ``fallback`` if it raises a recoverable
    SimulationError. Non-recoverable errors propagate.

    Floating-point failures (overflow, domain errors) are treated as a
    recoverable NUMERICAL_INSTABILITY.
    """
    try:
        return operation()
    except (ArithmeticError, ValueError) as exc:
        error = SimulationError(
            SimulationErrorType.NUMERICAL_INSTABILITY,
            f"{type(exc).__name__}: {exc}",
            recoverable=True,
        )
    except SimulationError as exc:
        if not exc.recoverable:
            raise
        error = exc

    if error_log is not None:
        error_log.record(error.error_type, f"{context}: {error.message}",
                         details=error.details)
    else:
        logger.warning("%s: %s", context, error.message)
    return fallback
