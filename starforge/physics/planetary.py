"""
Planetary Formation Physics
===========================

Protoplanetary disk structure and planet mass/radius relations.
"""

import math
import numpy as np

from .. import constants as const
from ..core.bodies import PlanetComposition
from ..validation.errors import check_numerical_stability, clamp_value, safe_divide, safe_sqrt

# Feeding-zone cap: a planet takes at most this share of the disk mass
MAX_PLANET_DISK_SHARE = 0.01

# Reference disk mass for gas-giant envelope accretion [M☉]
REFERENCE_DISK_MASS = 0.01

# Jupiter mass in Earth masses
JUPITER_MASS_EARTH = 318.0


def calculate_disk_mass(stellar_mass: float, metallicity: float) -> float:
    """
    Disk mass as a metallicity-dependent fraction of the stellar mass.

    Fraction runs from 1% (metal-free) to 10% (twice solar and above).

    Returns:
        Disk mass [M☉]
    """
    span = const.MAX_DISK_MASS_FRACTION - const.MIN_DISK_MASS_FRACTION
    fraction = const.MIN_DISK_MASS_FRACTION + span * min(metallicity, 2.0) / 2.0
    return check_numerical_stability(stellar_mass * fraction, 'disk mass')


def calculate_disk_inner_radius(luminosity: float) -> float:
    """Dust sublimation radius 0.05 √L [AU]."""
    return check_numerical_stability(0.05 * safe_sqrt(luminosity), 'disk inner radius')


def calculate_disk_outer_radius(stellar_mass: float) -> float:
    """Disk truncation radius 30 √M [AU]."""
    return check_numerical_stability(30.0 * math.sqrt(stellar_mass), 'disk outer radius')


def calculate_magnetic_braking_factor(magnetic_field_strength: float) -> float:
    """Outer-radius scaling (B / B_ref)^-0.7 from magnetic braking."""
    ratio = magnetic_field_strength / const.REFERENCE_MAGNETIC_FIELD
    return check_numerical_stability(ratio ** const.MAGNETIC_BRAKING_EXPONENT,
                                     'magnetic braking factor')


def apply_magnetic_braking(outer_radius: float, braking_factor: float) -> float:
    """Braked outer radius, clamped to the allowed disk size [AU]."""
    limits = const.DISK_OUTER_RADIUS_RANGE
    return clamp_value(outer_radius * braking_factor, limits.min, limits.max)


def calculate_snow_line(luminosity: float) -> float:
    """Water ice condensation distance 2.7 √L [AU]."""
    return check_numerical_stability(const.SNOW_LINE_COEFFICIENT * safe_sqrt(luminosity),
                                     'snow line')


def can_form_planets(disk_mass: float, stellar_mass: float) -> bool:
    """True if the disk carries enough mass relative to its star."""
    return safe_divide(disk_mass, stellar_mass) >= const.MIN_DISK_TO_STAR_RATIO


def determine_planet_composition(distance: float,
                                 snow_line: float,
                                 metallicity: float) -> PlanetComposition:
    """
    Planet type by position relative to the snow line.

    Inside the snow line planets are rocky. Between one and three snow-line
    radii cores become ice giants, or gas giants in metal-rich disks. Further
    out gas giants form unless the disk is metal poor.
    """
    if distance < snow_line:
        return PlanetComposition.ROCKY
    if distance < 3 * snow_line:
        if metallicity > 1.5:
            return PlanetComposition.GAS_GIANT
        return PlanetComposition.ICE_GIANT
    if metallicity > 0.5:
        return PlanetComposition.GAS_GIANT
    return PlanetComposition.ICE_GIANT


def calculate_planet_mass(composition: PlanetComposition,
                          disk_mass: float,
                          metallicity: float,
                          rng: np.random.Generator) -> float:
    """
    Planet mass drawn for its composition class.

    Args:
        composition: Planet type
        disk_mass: Disk mass [M☉]
        metallicity: Disk metallicity [Z☉]
        rng: Random source

    Returns:
        Planet mass [M⊕]
    """
    u = rng.random()

    if composition == PlanetComposition.ROCKY:
        mass = (0.5 + u * 5.0) * (0.5 + 0.5 * metallicity)
    elif composition == PlanetComposition.ICE_GIANT:
        mass = 10.0 + u * 10.0
    elif composition == PlanetComposition.GAS_GIANT:
        disk_factor = min(disk_mass / REFERENCE_DISK_MASS, 2.0)
        mass = (50.0 + u * 450.0) * disk_factor
    else:
        raise ValueError(f"Unknown planet composition: {composition}")

    max_mass = disk_mass * const.EARTH_MASSES_PER_SOLAR_MASS * MAX_PLANET_DISK_SHARE
    return check_numerical_stability(min(mass, max_mass), 'planet mass')


def calculate_planet_radius(mass: float, composition: PlanetComposition) -> float:
    """
    Planet radius from mass-radius relations.

    Args:
        mass: Planet mass [M⊕]
        composition: Planet type

    Returns:
        Radius [R⊕]
    """
    if composition == PlanetComposition.ROCKY:
        radius = mass ** 0.27
    elif composition == PlanetComposition.ICE_GIANT:
        radius = mass ** 0.31
    elif composition == PlanetComposition.GAS_GIANT:
        # Roughly constant radius near Jupiter's 11 R⊕
        radius = 11.0 * (mass / JUPITER_MASS_EARTH) ** 0.1
    else:
        raise ValueError(f"Unknown planet composition: {composition}")

    return check_numerical_stability(radius, 'planet radius')


def calculate_planet_eccentricity(rng: np.random.Generator,
                                  max_eccentricity: float = 0.3) -> float:
    """Eccentricity drawn uniformly in [0, max_eccentricity)."""
    return rng.uniform(0.0, max_eccentricity)

