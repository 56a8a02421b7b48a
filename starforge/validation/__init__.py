"""
Validation Module
=================

Error types, diagnostics log, input validation and stability checks.
"""

from .errors import ErrorLog, SimulationError, SimulationErrorType
from .inputs import ValidationResult, validate_cloud_parameters
from .stability import check_star_system_stability

__all__ = [
    'ErrorLog',
    'SimulationError',
    'SimulationErrorType',
    'ValidationResult',
    'validate_cloud_parameters',
    'check_star_system_stability',
]
