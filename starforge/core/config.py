"""
Simulation Configuration
========================

Defaults and run options for star system simulations.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..constants import VALIDATION_RANGES
from .bodies import CloudParameters


@dataclass(frozen=True)
class CloudDefaults:
    """Values used for optional cloud parameters left unset (a dense prestellar core)."""
    temperature_K: float = 10.0              # cold molecular gas
    radius_pc: float = 0.015                 # ~3000 AU core
    turbulence_velocity_km_s: float = 0.2    # subsonic core dispersion
    magnetic_field_uG: float = 10.0          # typical ISM field

    def __post_init__(self):
        """Validate defaults."""
        assert self.temperature_K > 0, "Temperature must be positive"
        assert self.radius_pc > 0, "Radius must be positive"
        assert self.turbulence_velocity_km_s > 0, "Turbulence velocity must be positive"
        assert self.magnetic_field_uG > 0, "Magnetic field must be positive"


@dataclass
class SimulationConfig:
    """Complete simulation configuration."""
    # Random source; None draws fresh entropy once per initialization
    seed: Optional[int] = None

    # Formation
    max_planets_per_star: int = 10
    cloud_defaults: CloudDefaults = field(default_factory=CloudDefaults)

    # Time control
    initial_time_scale: float = 1.0          # yr per update unit

    # Diagnostics
    error_log_capacity: int = 100            # entries
    max_history: int = 1000                  # snapshots
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration."""
        assert self.max_planets_per_star >= 0, "Planet count cannot be negative"
        assert self.error_log_capacity > 0, "Error log capacity must be positive"
        assert self.max_history > 0, "History length must be positive"
        assert VALIDATION_RANGES.time_scale.contains(self.initial_time_scale), \
            "Time scale out of range"


# Pre-defined cloud parameter sets
def create_solar_nebula_params() -> CloudParameters:
    """Core that collapses into a single star of about one solar mass."""
    return CloudParameters(mass=2.3, metallicity=1.0, angular_momentum=1e42)


def create_binary_forming_params() -> CloudParameters:
    """Core massive enough to split into two fragments."""
    return CloudParameters(mass=3.0, metallicity=1.0, angular_momentum=1e46)


def create_cluster_forming_params() -> CloudParameters:
    """Massive clump that fragments into a small cluster."""
    return CloudParameters(mass=10.0, metallicity=1.0, angular_momentum=1e47,
                           turbulence_velocity=0.3)
