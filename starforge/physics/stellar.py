"""
Stellar Physics
===============

Main-sequence relations for luminosity, radius, temperature and lifetime.
"""

import math

from .. import constants as const
from ..core.bodies import SpectralType
from ..validation.errors import (
    SimulationError,
    SimulationErrorType,
    check_numerical_stability,
)


def _band_coefficients():
    """
    Coefficients that make the piecewise mass-luminosity relation continuous.

    The [0.43, 2) band is anchored at L = M^4; every other band is scaled to
    meet its neighbour at the shared breakpoint.
    """
    (m1, k1), (m2, k2), (m3, k3), (_, k4) = const.MASS_LUMINOSITY_BANDS
    c2 = 1.0
    c1 = c2 * m1 ** k2 / m1 ** k1
    c3 = c2 * m2 ** k2 / m2 ** k3
    c4 = c3 * m3 ** k3 / m3 ** k4
    return (c1, c2, c3, c4)


# ~(0.238, 1.0, 1.414, 3.17e4), close to the empirical 0.23 / 1 / 1.4 / 32000
LUMINOSITY_COEFFICIENTS = _band_coefficients()


def _require_positive_mass(mass: float):
    if not math.isfinite(mass) or mass <= 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            f"Stellar mass must be positive and finite, got {mass}",
            details={'mass': mass},
        )


def calculate_luminosity(mass: float) -> float:
    """
    Main-sequence luminosity from the mass-luminosity relation.

    Args:
        mass: Stellar mass [M☉]

    Returns:
        Luminosity [L☉]
    """
    _require_positive_mass(mass)

    for (upper, exponent), coefficient in zip(const.MASS_LUMINOSITY_BANDS,
                                              LUMINOSITY_COEFFICIENTS):
        if mass < upper:
            return check_numerical_stability(coefficient * mass ** exponent, 'luminosity')

    # Unreachable: last band extends to infinity
    raise ValueError(f"No luminosity band for mass {mass}")


def calculate_radius(mass: float) -> float:
    """
    Main-sequence radius from the mass-radius relation.

    Args:
        mass: Stellar mass [M☉]

    Returns:
        Radius [R☉]
    """
    _require_positive_mass(mass)

    if mass < const.MASS_RADIUS_BREAK:
        radius = mass ** const.MASS_RADIUS_LOW_EXPONENT
    else:
        radius = mass ** const.MASS_RADIUS_HIGH_EXPONENT
    return check_numerical_stability(radius, 'radius')


def calculate_temperature(luminosity: float, radius: float) -> float:
    """
    Effective temperature from the Stefan-Boltzmann law.

    Args:
        luminosity: Luminosity [L☉]
        radius: Radius [R☉]

    Returns:
        Effective temperature [K]
    """
    if radius <= 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            f"Radius must be positive, got {radius}",
            details={'radius': radius},
        )

    luminosity_w = luminosity * const.SOLAR_LUMINOSITY
    radius_m = radius * const.SOLAR_RADIUS
    t4 = luminosity_w / (4 * math.pi * radius_m**2 * const.STEFAN_BOLTZMANN)
    return check_numerical_stability(t4 ** 0.25, 'temperature')


def determine_spectral_type(temperature: float) -> SpectralType:
    """Spectral class for an effective temperature (hottest class wins ties)."""
    for letter, minimum in const.SPECTRAL_TYPE_THRESHOLDS:
        if temperature >= minimum:
            return SpectralType(letter)
    return SpectralType.M


def calculate_main_sequence_lifetime(mass: float) -> float:
    """
    Main-sequence lifetime, t = 1e10 yr × M / L.

    Args:
        mass: Stellar mass [M☉]

    Returns:
        Lifetime [yr]
    """
    luminosity = calculate_luminosity(mass)
    lifetime = const.LIFETIME_COEFFICIENT * mass / luminosity
    return check_numerical_stability(lifetime, 'lifetime')
