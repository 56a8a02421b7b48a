"""
Cloud Formation
===============

Collapse and fragmentation of a molecular cloud into a star system.
"""

import logging
import math
import numpy as np
from dataclasses import replace
from typing import List, Optional, Tuple

from .. import constants as const
from ..core.bodies import (
    CloudParameters,
    DerivedCloudProperties,
    Star,
    StarSystem,
    generate_id,
)
from ..core.config import CloudDefaults
from ..physics.cloud import calculate_derived_properties
from ..physics.orbital import (
    calculate_orbital_elements,
    calculate_orbital_period,
    calculate_orbital_position,
    calculate_orbital_velocity,
    distance,
)
from ..validation.errors import (
    ErrorLog,
    SimulationError,
    SimulationErrorType,
    check_extreme_value,
    check_numerical_stability,
    clamp_value,
    safe_divide,
    safe_pow,
)
from .stellar_evolution import create_star

logger = logging.getLogger(__name__)

STAR_NAMES = (
    'Alpha', 'Beta', 'Gamma', 'Delta', 'Epsilon',
    'Zeta', 'Eta', 'Theta', 'Iota', 'Kappa',
)

# Turbulent velocity at which fragmentation is neither boosted nor suppressed
REFERENCE_TURBULENCE = 0.2       # km/s

# Inner binary share of the cloud angular momentum in multiple systems
INNER_BINARY_MOMENTUM_SHARE = 0.6

# Outer companions of hierarchical systems
MAX_OUTER_INCLINATION = math.radians(15.0)

# Lower bound on a binary separation so periods stay defined
MIN_SEPARATION = 1e-6            # AU


def _fragment_estimate(params: CloudParameters, derived: DerivedCloudProperties) -> int:
    """Uncapped number of fragments."""
    base = safe_pow(safe_divide(params.mass, derived.jeans_mass), 1.0 / 3.0)

    turbulence = clamp_value(math.sqrt(params.turbulence_velocity / REFERENCE_TURBULENCE), 0.5, 2.0)

    alpha = derived.virial_parameter
    penalty = 1.0 if alpha < 1.0 else max(0.5, 2.0 - alpha)

    typical_momentum = (params.mass * const.SOLAR_MASS *
                        params.radius * const.PARSEC *
                        params.turbulence_velocity * 1e3)
    normalized = safe_divide(params.angular_momentum, typical_momentum)
    bonus = min(3, int(math.floor(2 * math.log10(1 + normalized))))

    return int(round(base * turbulence * penalty)) + bonus


def _geometric_fragment_cap(params: CloudParameters, derived: DerivedCloudProperties) -> int:
    """Number of turbulent Jeans volumes that fit in the cloud (at least one)."""
    cells = (params.radius / derived.turbulent_jeans_length) ** 3
    return max(1, int(math.floor(cells)))


def determine_fragmentation(params: CloudParameters, derived: DerivedCloudProperties) -> int:
    """
    Number of fragments a collapsing cloud breaks into.

    Combines the mass in Jeans masses with turbulence, rotation and
    boundedness, capped to [1, 10] and to the number of turbulent Jeans
    volumes inside the cloud.

    Args:
        params: Cloud parameters with optional fields resolved
        derived: Derived properties of the same cloud

    Returns:
        Fragment count
    """
    count = int(clamp_value(_fragment_estimate(params, derived), 1, const.MAX_FRAGMENTS))
    return min(count, _geometric_fragment_cap(params, derived))


def calculate_number_of_stars(params: CloudParameters, derived: DerivedCloudProperties) -> int:
    """Stars formed by the cloud; 0 if it does not collapse."""
    if params.mass < derived.jeans_mass:
        return 0
    if not derived.is_bound:
        return 0
    return determine_fragmentation(params, derived)


def calculate_star_formation_efficiency(virial_parameter: float) -> float:
    """
    Fraction of cloud mass that ends up in stars.

    Strongly bound clouds convert 30-50%, marginally bound ones 10-30%, and
    unbound ones decay exponentially to a 1% floor.
    """
    if virial_parameter < 1.0:
        return 0.5 - 0.2 * virial_parameter
    if virial_parameter <= 2.0:
        return 0.3 - 0.2 * (virial_parameter - 1.0)
    return max(0.01, 0.1 * math.exp(-(virial_parameter - 2.0)))


def sample_salpeter_mass(u: float, min_mass: float, max_mass: float,
                         alpha: float = const.SALPETER_EXPONENT) -> float:
    """Inverse-CDF draw from dN/dM ∝ M^-alpha on [min_mass, max_mass]."""
    if max_mass <= min_mass:
        return min_mass
    k = 1.0 - alpha
    lo = min_mass ** k
    hi = max_mass ** k
    return (lo + u * (hi - lo)) ** (1.0 / k)


def calculate_mass_distribution(total_mass: float,
                                num_stars: int,
                                efficiency: float,
                                rng: np.random.Generator) -> List[float]:
    """
    Split the star-forming mass between ``num_stars`` stars.

    Args:
        total_mass: Cloud mass [M☉]
        num_stars: Number of stars
        efficiency: Star formation efficiency (0-1)
        rng: Random source, one uniform draw per star

    Returns:
        Stellar masses [M☉], most massive first
    """
    available = total_mass * efficiency
    if num_stars == 1:
        return [available]

    limits = const.VALIDATION_RANGES.stellar_mass
    max_mass = min(total_mass * 0.5, limits.max)

    raw = np.array([sample_salpeter_mass(u, limits.min, max_mass)
                    for u in rng.random(num_stars)])
    scaled = raw * (available / raw.sum())

    masses = sorted((float(m) for m in scaled), reverse=True)
    return [clamp_value(m, limits.min, limits.max) for m in masses]


def configure_binary_system(star1: Star, star2: Star,
                            angular_momentum: float,
                            rng: np.random.Generator) -> Tuple[Star, Star]:
    """
    Place two stars on a bound orbit about their common centre of mass.

    star2 sits at its orbital position at t = 0, star1 on the opposite side
    scaled by the mass ratio.

    Returns:
        (star1, star2) with positions [AU] and velocities [AU/yr]
    """
    m1, m2 = star1.mass, star2.mass
    eccentricity = rng.uniform(0.1, 0.4)

    elements = calculate_orbital_elements(angular_momentum, m1, m2, eccentricity, rng)
    elements = replace(elements, semi_major_axis=max(elements.semi_major_axis, MIN_SEPARATION))

    period = calculate_orbital_period(elements.semi_major_axis, m1 + m2)
    relative_position = calculate_orbital_position(elements, 0.0, period)
    relative_velocity = calculate_orbital_velocity(elements, 0.0, period)

    position2 = relative_position
    position1 = -relative_position * (m2 / m1)

    total = m1 + m2
    velocity2 = relative_velocity * (m1 / total)
    velocity1 = -relative_velocity * (m2 / total)

    return (replace(star1, position=position1, velocity=velocity1),
            replace(star2, position=position2, velocity=velocity2))


def configure_hierarchical_system(stars: List[Star],
                                  angular_momentum: float,
                                  rng: np.random.Generator) -> List[Star]:
    """
    Inner binary of the two most massive stars with companions further out.

    Companion i (from 2) sits at (5 + 2i) inner separations from the origin,
    at a random azimuth and an inclination within ±15°, on a circular
    velocity about the mass inside its orbit.
    """
    ordered = sorted(stars, key=lambda s: s.mass, reverse=True)

    primary, secondary = configure_binary_system(
        ordered[0], ordered[1], angular_momentum * INNER_BINARY_MOMENTUM_SHARE, rng)
    configured = [primary, secondary]

    inner_separation = distance(primary.position, secondary.position)
    enclosed_mass = primary.mass + secondary.mass

    for i, star in enumerate(ordered[2:], start=2):
        radius = inner_separation * (5 + 2 * i)
        azimuth = rng.uniform(0.0, 2 * math.pi)
        inclination = rng.uniform(-MAX_OUTER_INCLINATION, MAX_OUTER_INCLINATION)

        position = radius * np.array([
            math.cos(inclination) * math.cos(azimuth),
            math.cos(inclination) * math.sin(azimuth),
            math.sin(inclination),
        ])
        speed = 2 * math.pi * math.sqrt(enclosed_mass / radius)  # AU/yr
        velocity = speed * np.array([-math.sin(azimuth), math.cos(azimuth), 0.0])

        configured.append(replace(star, position=position, velocity=velocity))
        enclosed_mass += star.mass

    return configured


def configure_orbital_system(stars: List[Star],
                             angular_momentum: float,
                             rng: np.random.Generator) -> List[Star]:
    """Arrange stars as a single, binary or hierarchical system."""
    if len(stars) <= 1:
        return list(stars)
    if len(stars) == 2:
        return list(configure_binary_system(stars[0], stars[1], angular_momentum, rng))
    return configure_hierarchical_system(stars, angular_momentum, rng)


def star_name(index: int) -> str:
    if index < len(STAR_NAMES):
        return STAR_NAMES[index]
    return f"Star {index + 1}"


def generate_star_system_from_cloud(params: CloudParameters,
                                    rng: Optional[np.random.Generator] = None,
                                    error_log: Optional[ErrorLog] = None,
                                    defaults: Optional[CloudDefaults] = None) -> StarSystem:
    """
    Collapse a cloud into a star system without planets.

    Args:
        params: Cloud parameters, stored verbatim on the system
        rng: Random source (fresh unseeded generator if omitted)
        error_log: Sink for non-fatal warnings
        defaults: Values for unset optional cloud parameters

    Returns:
        StarSystem at age zero

    Raises:
        SimulationError: INSUFFICIENT_MASS if the cloud does not collapse,
            NUMERICAL_INSTABILITY if a stellar mass is not finite
    """
    rng = rng if rng is not None else np.random.default_rng()
    defaults = defaults or CloudDefaults()

    resolved = params.resolved(defaults)
    derived = calculate_derived_properties(params, defaults)

    num_stars = calculate_number_of_stars(resolved, derived)
    if num_stars == 0:
        raise SimulationError(
            SimulationErrorType.INSUFFICIENT_MASS,
            f"Cloud of {params.mass} M☉ does not collapse "
            f"(Jeans mass {derived.jeans_mass:.3g} M☉, virial parameter "
            f"{derived.virial_parameter:.3g})",
            details={
                'mass': params.mass,
                'jeans_mass': derived.jeans_mass,
                'virial_parameter': derived.virial_parameter,
                'is_bound': derived.is_bound,
            },
            recoverable=False,
        )

    # Estimates above the cap are clamped, but flagged
    check_extreme_value(_fragment_estimate(resolved, derived), 'fragmentation estimate',
                        0, const.MAX_FRAGMENTS, error_log)

    efficiency = calculate_star_formation_efficiency(derived.virial_parameter)
    masses = calculate_mass_distribution(params.mass, num_stars, efficiency, rng)

    stars = []
    for index, mass in enumerate(masses):
        check_numerical_stability(mass, f"mass of star {index + 1}")
        stars.append(create_star(mass, params.metallicity, name=star_name(index), rng=rng))

    stars = configure_orbital_system(stars, params.angular_momentum, rng)

    logger.info("Cloud of %.3g M☉ formed %d star(s), efficiency %.2f",
                params.mass, len(stars), efficiency)

    return StarSystem(
        id=generate_id(rng),
        name=f"{stars[0].name} System",
        stars=stars,
        planets=[],
        age=0.0,
        initial_cloud_parameters=params,
        derived_cloud_properties=derived,
    )
