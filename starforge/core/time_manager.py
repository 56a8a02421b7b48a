"""
Simulation Time Manager
=======================

Time management for the simulation framework.
Tracks elapsed simulated years, the time scale and update count.
"""

import math

from ..validation.errors import SimulationError, SimulationErrorType


class SimulationTime:
    """
    Manages simulation time.

    Provides:
    - Elapsed time tracking in years
    - Time scale (years per driver time unit)
    - Update counting and human-readable formatting
    """

    def __init__(self, time_scale: float = 1.0):
        """
        Initialize simulation time.

        Args:
            time_scale: Simulated years per driver time unit
        """
        self.time_scale = time_scale
        self.elapsed_years = 0.0
        self.step_count = 0

    def reset(self):
        """Reset simulation time to zero."""
        self.elapsed_years = 0.0
        self.step_count = 0

    @staticmethod
    def check_step(delta_years: float):
        """
        Reject a step that is not a finite, non-negative number of years.

        Raises:
            SimulationError: INVALID_PARAMETERS
        """
        if (not isinstance(delta_years, (int, float)) or isinstance(delta_years, bool)
                or not math.isfinite(delta_years) or delta_years < 0):
            raise SimulationError(
                SimulationErrorType.INVALID_PARAMETERS,
                f"Time step must be finite and non-negative, got {delta_years}",
                details={'delta_time': delta_years},
                recoverable=False,
            )

    def advance(self, delta_years: float) -> float:
        """
        Advance time.

        Args:
            delta_years: Step [yr], finite and non-negative

        Returns:
            Current elapsed time [yr]
        """
        self.check_step(delta_years)
        self.elapsed_years += delta_years
        self.step_count += 1
        return self.elapsed_years

    def scaled(self, driver_delta: float) -> float:
        """Years corresponding to ``driver_delta`` driver time units."""
        return driver_delta * self.time_scale

    @staticmethod
    def format_years(years: float) -> str:
        """Format a duration with a yr/kyr/Myr/Gyr suffix."""
        for unit, size in (('Gyr', 1e9), ('Myr', 1e6), ('kyr', 1e3)):
            if abs(years) >= size:
                return f"{years / size:.3g} {unit}"
        return f"{years:.3g} yr"

    def __str__(self) -> str:
        return f"SimulationTime({self.format_years(self.elapsed_years)}, scale={self.time_scale})"
