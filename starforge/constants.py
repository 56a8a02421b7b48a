"""
Physical Constants
==================

Physical constants and empirical lookup tables used across the kernels.
"""

from dataclasses import dataclass


# Solar reference values
SOLAR_MASS = 1.989e30          # kg
SOLAR_RADIUS = 6.96e8          # m
SOLAR_LUMINOSITY = 3.828e26    # W
SOLAR_TEMPERATURE = 5778.0     # K

# Earth reference values
EARTH_MASS = 5.972e24          # kg
EARTH_RADIUS = 6.371e6         # m
EARTH_MASSES_PER_SOLAR_MASS = SOLAR_MASS / EARTH_MASS  # ~333000

# Distances and time
AU = 1.496e11                  # m
PARSEC = 3.086e16              # m
SECONDS_PER_YEAR = 3.154e7     # s

# Fundamental constants
G = 6.674e-11                  # m³/(kg·s²)
STEFAN_BOLTZMANN = 5.670e-8    # W/(m²·K⁴)
BOLTZMANN = 1.381e-23          # J/K
HYDROGEN_MASS = 1.673e-27      # kg
MEAN_MOLECULAR_WEIGHT = 2.33   # molecular gas with helium

# Conversion between Sun radii and AU (used for stellar contact checks)
SOLAR_RADIUS_AU = SOLAR_RADIUS / AU  # ~0.00465


@dataclass(frozen=True)
class ValueRange:
    """Inclusive [min, max] range."""
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class ValidationRanges:
    """Accepted input ranges."""
    cloud_mass: ValueRange = ValueRange(0.1, 1000.0)                 # M☉
    metallicity: ValueRange = ValueRange(0.0001, 3.0)                # Z☉
    angular_momentum: ValueRange = ValueRange(0.0, 1e50)             # kg·m²/s
    temperature: ValueRange = ValueRange(5.0, 100.0)                 # K
    radius: ValueRange = ValueRange(0.001, 100.0)                    # pc
    turbulence_velocity: ValueRange = ValueRange(0.01, 10.0)         # km/s
    magnetic_field_strength: ValueRange = ValueRange(0.1, 1000.0)    # μG
    stellar_mass: ValueRange = ValueRange(0.08, 150.0)               # M☉
    time_scale: ValueRange = ValueRange(0.001, 1000.0)               # yr per tick unit
    simulation_time: ValueRange = ValueRange(0.0, 1e11)              # yr


VALIDATION_RANGES = ValidationRanges()

# Mass-luminosity relation: (upper mass bound, exponent), evaluated in order
MASS_LUMINOSITY_BANDS = (
    (0.43, 2.3),
    (2.0, 4.0),
    (55.0, 3.5),
    (float('inf'), 1.0),
)

# Mass-radius relation
MASS_RADIUS_BREAK = 1.0
MASS_RADIUS_LOW_EXPONENT = 0.8
MASS_RADIUS_HIGH_EXPONENT = 0.57

# Main-sequence lifetime of the Sun
LIFETIME_COEFFICIENT = 1e10    # yr

# Spectral classes by minimum effective temperature, hottest first
SPECTRAL_TYPE_THRESHOLDS = (
    ('O', 30000.0),
    ('B', 10000.0),
    ('A', 7500.0),
    ('F', 6000.0),
    ('G', 5200.0),
    ('K', 3700.0),
)

# Evolution phase boundaries as age / main-sequence lifetime
PROTOSTAR_END = 0.01
MAIN_SEQUENCE_END = 0.9
RED_GIANT_END = 0.95
HORIZONTAL_BRANCH_END = 0.98
ASYMPTOTIC_GIANT_END = 1.0
PLANETARY_NEBULA_END = 1.01

# Stellar remnant boundaries (M☉)
LOW_MASS_LIMIT = 0.5
WHITE_DWARF_LIMIT = 8.0
NEUTRON_STAR_LIMIT = 25.0

# Planet formation
SNOW_LINE_COEFFICIENT = 2.7        # AU per sqrt(L☉)
MIN_DISK_MASS_FRACTION = 0.01
MAX_DISK_MASS_FRACTION = 0.1
MIN_DISK_TO_STAR_RATIO = 0.005
REFERENCE_MAGNETIC_FIELD = 10.0    # μG
MAGNETIC_BRAKING_EXPONENT = -0.7
DISK_OUTER_RADIUS_RANGE = ValueRange(10.0, 1000.0)  # AU

# Star formation
SALPETER_EXPONENT = 2.35
MAX_FRAGMENTS = 10
