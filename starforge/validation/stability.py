"""
Orbital Stability
=================

Plausibility checks for stellar and planetary orbits.

Checks never raise; failures are reported to the optional ErrorLog as
ORBITAL_INSTABILITY warnings and the check returns False.
"""

import itertools
import math
import numpy as np
from typing import List, Optional, Tuple

from ..constants import SOLAR_RADIUS_AU
from ..core.bodies import Star, StarSystem
from .errors import ErrorLog, SimulationErrorType, safe_divide, safe_sqrt

# Outer orbit must be this many inner separations away
HIERARCHICAL_STABILITY_RATIO = 3.0

# Planets closer than this many stellar radii graze the star
MIN_PLANET_DISTANCE_RADII = 2.0

# Bound orbits are assumed within 1000 AU × M^(1/3)
MAX_BOUND_DISTANCE = 1000.0

# Stability lifetime in dynamical times
DYNAMICAL_TIMES = 1000.0


def _report(error_log: Optional[ErrorLog], message: str, **details) -> bool:
    if error_log is not None:
        error_log.record(SimulationErrorType.ORBITAL_INSTABILITY, message, details=details)
    return False


def _separation(star1: Star, star2: Star) -> float:
    return float(np.linalg.norm(star2.position - star1.position))


def check_binary_stability(star1: Star, star2: Star,
                           error_log: Optional[ErrorLog] = None) -> bool:
    """Reject binaries in contact or too wide to stay bound."""
    separation = _separation(star1, star2)

    min_separation = (star1.radius + star2.radius) * SOLAR_RADIUS_AU
    if separation < min_separation:
        return _report(
            error_log,
            f"Binary {star1.name}/{star2.name} unstable: stars too close "
            f"({separation:.4g} AU < {min_separation:.4g} AU)",
            star1=star1.name, star2=star2.name,
            separation=separation, min_separation=min_separation,
        )

    max_separation = MAX_BOUND_DISTANCE * (star1.mass + star2.mass) ** (1.0 / 3.0)
    if separation > max_separation:
        return _report(
            error_log,
            f"Binary {star1.name}/{star2.name} potentially unbound "
            f"({separation:.4g} AU > {max_separation:.4g} AU)",
            star1=star1.name, star2=star2.name,
            separation=separation, max_separation=max_separation,
        )

    return True


def _closest_pair(stars: List[Star]) -> Tuple[int, int, float]:
    best = (0, 1, math.inf)
    for i, j in itertools.combinations(range(len(stars)), 2):
        separation = _separation(stars[i], stars[j])
        if separation < best[2]:
            best = (i, j, separation)
    return best


def check_hierarchical_stability(stars: List[Star],
                                 error_log: Optional[ErrorLog] = None) -> bool:
    """
    Check a multiple system as an inner binary plus outer companions.

    The closest pair is taken as the inner binary; every other star must be
    at least three inner separations from the binary's centre of mass.
    """
    if len(stars) < 2:
        return True
    if len(stars) == 2:
        return check_binary_stability(stars[0], stars[1], error_log)

    i, j, inner_separation = _closest_pair(stars)
    inner1, inner2 = stars[i], stars[j]
    if not check_binary_stability(inner1, inner2, error_log):
        return False

    total = inner1.mass + inner2.mass
    center = (inner1.position * inner1.mass + inner2.position * inner2.mass) / total
    required = inner_separation * HIERARCHICAL_STABILITY_RATIO

    for k, star in enumerate(stars):
        if k in (i, j):
            continue
        outer_separation = float(np.linalg.norm(star.position - center))
        if outer_separation < required:
            return _report(
                error_log,
                f"Hierarchical system unstable: {star.name} too close to inner binary "
                f"({outer_separation:.4g} AU < {required:.4g} AU)",
                outer_star=star.name,
                inner_binary=[inner1.name, inner2.name],
                outer_separation=outer_separation,
                inner_separation=inner_separation,
            )

    return True


def check_star_system_stability(system: StarSystem,
                                error_log: Optional[ErrorLog] = None) -> bool:
    """Stability of the stellar configuration of a whole system."""
    return check_hierarchical_stability(system.stars, error_log)


def check_planetary_orbit_stability(planet_distance: float,
                                    star_radius: float,
                                    star_mass: float,
                                    error_log: Optional[ErrorLog] = None) -> bool:
    """
    Check a planet orbit against its host.

    Args:
        planet_distance: Orbital distance [AU]
        star_radius: Host radius [R☉]
        star_mass: Host mass [M☉]
        error_log: Optional sink for warnings

    Returns:
        True if the orbit clears the star and stays bound
    """
    min_distance = star_radius * SOLAR_RADIUS_AU * MIN_PLANET_DISTANCE_RADII
    if planet_distance < min_distance:
        return _report(
            error_log,
            f"Planet orbit too close to star ({planet_distance:.4g} AU < {min_distance:.4g} AU)",
            planet_distance=planet_distance, min_distance=min_distance,
        )

    max_distance = MAX_BOUND_DISTANCE * star_mass ** (1.0 / 3.0)
    if planet_distance > max_distance:
        return _report(
            error_log,
            f"Planet orbit too far from star ({planet_distance:.4g} AU > {max_distance:.4g} AU)",
            planet_distance=planet_distance, max_distance=max_distance,
        )

    return True


def estimate_stability_lifetime(system: StarSystem) -> float:
    """
    Rough time the stellar configuration stays stable [yr].

    Singles are stable indefinitely, binaries for the shortest stellar
    lifetime, and higher multiples for 1000 dynamical times of the closest
    pair.
    """
    stars = system.stars
    if len(stars) <= 1:
        return math.inf
    if len(stars) == 2:
        return min(star.lifetime for star in stars)

    _, _, min_separation = _closest_pair(stars)
    total_mass = sum(star.mass for star in stars)

    # G = 4π² AU³ / (M☉ yr²)
    dynamical_time = safe_sqrt(safe_divide(min_separation**3, 4 * math.pi**2 * total_mass))
    return DYNAMICAL_TIMES * dynamical_time
