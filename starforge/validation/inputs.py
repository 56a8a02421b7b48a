"""
Input Validation
================

Range checks on user-supplied parameters, producing readable messages.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from ..constants import VALIDATION_RANGES, ValueRange
from ..core.bodies import CloudParameters
from .errors import SimulationError, SimulationErrorType


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        return ValidationResult(self.errors + other.errors)

    def raise_if_invalid(self, context: str):
        """
        Raise INVALID_PARAMETERS listing every problem.

        Raises:
            SimulationError: if any check failed
        """
        if self.errors:
            raise SimulationError(
                SimulationErrorType.INVALID_PARAMETERS,
                f"{context}: " + "; ".join(self.errors),
                details={'errors': list(self.errors)},
                recoverable=False,
            )


def _check_range(value: Optional[float], label: str, unit: str,
                 limits: ValueRange, errors: List[str], required: bool = False):
    if value is None:
        if required:
            errors.append(f"{label} must be a number")
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        errors.append(f"{label} must be a number")
    elif not math.isfinite(value):
        errors.append(f"{label} must be a finite number")
    elif not limits.contains(value):
        errors.append(f"{label} must be between {limits.min:g} and {limits.max:g} {unit}".rstrip())


def validate_cloud_parameters(params: CloudParameters) -> ValidationResult:
    """Check every cloud parameter against its accepted range."""
    errors: List[str] = []
    ranges = VALIDATION_RANGES

    if params.mass is None:
        errors.append("Cloud mass is required")
    if params.metallicity is None:
        errors.append("Metallicity is required")
    if params.angular_momentum is None:
        errors.append("Angular momentum is required")

    _check_range(params.mass, "Cloud mass", "solar masses", ranges.cloud_mass, errors)
    _check_range(params.metallicity, "Metallicity", "solar metallicity", ranges.metallicity, errors)
    _check_range(params.angular_momentum, "Angular momentum", "kg·m²/s",
                 ranges.angular_momentum, errors)
    _check_range(params.temperature, "Temperature", "K", ranges.temperature, errors)
    _check_range(params.radius, "Radius", "pc", ranges.radius, errors)
    _check_range(params.turbulence_velocity, "Turbulence velocity", "km/s",
                 ranges.turbulence_velocity, errors)
    _check_range(params.magnetic_field_strength, "Magnetic field strength", "μG",
                 ranges.magnetic_field_strength, errors)

    return ValidationResult(errors)


def validate_time_scale(time_scale: float) -> ValidationResult:
    errors: List[str] = []
    if isinstance(time_scale, (int, float)) and math.isfinite(time_scale) and time_scale <= 0:
        errors.append("Time scale must be positive")
    else:
        _check_range(time_scale, "Time scale", "", VALIDATION_RANGES.time_scale, errors,
                     required=True)
    return ValidationResult(errors)


def validate_simulation_time(time: float) -> ValidationResult:
    errors: List[str] = []
    if isinstance(time, (int, float)) and math.isfinite(time) and time < 0:
        errors.append("Simulation time cannot be negative")
    else:
        _check_range(time, "Simulation time", "years", VALIDATION_RANGES.simulation_time, errors,
                     required=True)
    return ValidationResult(errors)


def validate_stellar_mass(mass: float) -> ValidationResult:
    errors: List[str] = []
    _check_range(mass, "Stellar mass", "solar masses", VALIDATION_RANGES.stellar_mass, errors,
                 required=True)
    return ValidationResult(errors)
