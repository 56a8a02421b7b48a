"""
Orbital Mechanics
=================

Closed-form Keplerian orbits in AU / year / solar-mass units.

Positions advance the mean anomaly linearly and map it to the true anomaly
with the equation-of-center series instead of solving Kepler's equation.
The error grows as e³, which is acceptable for e ≤ 0.4 used here.
"""

import math
import numpy as np
from typing import Optional

from .. import constants as const
from ..core.bodies import OrbitalElements
from ..validation.errors import (
    SimulationError,
    SimulationErrorType,
    check_numerical_stability,
)


def calculate_orbital_period(semi_major_axis: float, total_mass: float) -> float:
    """
    Orbital period from Kepler's third law.

    Args:
        semi_major_axis: Semi-major axis [AU]
        total_mass: Combined mass of both bodies [M☉]

    Returns:
        Period [yr]
    """
    if semi_major_axis <= 0 or total_mass <= 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            "Semi-major axis and mass must be positive",
            details={'semi_major_axis': semi_major_axis, 'total_mass': total_mass},
        )

    a_m = semi_major_axis * const.AU
    mu = const.G * total_mass * const.SOLAR_MASS
    period_s = 2 * math.pi * math.sqrt(a_m**3 / mu)
    return check_numerical_stability(period_s / const.SECONDS_PER_YEAR, 'orbital period')


def calculate_semi_major_axis(period: float, total_mass: float) -> float:
    """Semi-major axis [AU] for a period [yr] around total_mass [M☉]."""
    if period <= 0 or total_mass <= 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            "Period and mass must be positive",
            details={'period': period, 'total_mass': total_mass},
        )

    period_s = period * const.SECONDS_PER_YEAR
    mu = const.G * total_mass * const.SOLAR_MASS
    a_m = (mu * (period_s / (2 * math.pi))**2) ** (1.0 / 3.0)
    return check_numerical_stability(a_m / const.AU, 'semi-major axis')


def calculate_semi_major_axis_from_angular_momentum(angular_momentum: float,
                                                    mass1: float,
                                                    mass2: float,
                                                    eccentricity: float = 0.0) -> float:
    """
    Semi-major axis of a two-body orbit carrying a given angular momentum.

    L = μ √(G M a (1 - e²)), with μ the reduced mass.

    Args:
        angular_momentum: Orbital angular momentum [kg·m²/s]
        mass1: Primary mass [M☉]
        mass2: Secondary mass [M☉]
        eccentricity: Orbital eccentricity

    Returns:
        Semi-major axis [AU]
    """
    if not 0 <= eccentricity < 1:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            f"Eccentricity must be in [0, 1), got {eccentricity}",
            details={'eccentricity': eccentricity},
        )

    m1 = mass1 * const.SOLAR_MASS
    m2 = mass2 * const.SOLAR_MASS
    total = m1 + m2
    reduced = m1 * m2 / total

    a_m = angular_momentum**2 / (reduced**2 * const.G * total * (1 - eccentricity**2))
    return check_numerical_stability(a_m / const.AU, 'semi-major axis')


def calculate_orbital_elements(angular_momentum: float,
                               mass1: float,
                               mass2: float,
                               eccentricity: float,
                               rng: np.random.Generator) -> OrbitalElements:
    """
    Orbital elements for a newly formed pair with random orientation.

    Inclination is drawn in [0°, 30°), node, periapsis and epoch anomaly in
    [0, 2π).
    """
    a = calculate_semi_major_axis_from_angular_momentum(
        angular_momentum, mass1, mass2, eccentricity)

    return OrbitalElements(
        semi_major_axis=a,
        eccentricity=eccentricity,
        inclination=rng.uniform(0.0, math.radians(30.0)),
        raan=rng.uniform(0.0, 2 * math.pi),
        arg_periapsis=rng.uniform(0.0, 2 * math.pi),
        mean_anomaly_epoch=rng.uniform(0.0, 2 * math.pi),
    )


def calculate_mean_anomaly(time: float, period: float, mean_anomaly_epoch: float = 0.0) -> float:
    """Mean anomaly [rad] in [0, 2π) at ``time`` [yr]."""
    return (mean_anomaly_epoch + 2 * math.pi * time / period) % (2 * math.pi)


def approximate_true_anomaly(mean_anomaly: float, eccentricity: float) -> float:
    """
    True anomaly from the equation of center, to second order in e.

    ν ≈ M + 2e sin M + 5/4 e² sin 2M
    """
    M = mean_anomaly
    e = eccentricity
    return M + 2 * e * math.sin(M) + 1.25 * e**2 * math.sin(2 * M)


def rotation_matrix(elements: OrbitalElements) -> np.ndarray:
    """Perifocal-to-reference rotation Rz(Ω)·Rx(i)·Rz(ω)."""
    Omega = elements.raan
    i = elements.inclination
    omega = elements.arg_periapsis

    R3_Omega = np.array([
        [np.cos(Omega), -np.sin(Omega), 0],
        [np.sin(Omega), np.cos(Omega), 0],
        [0, 0, 1]
    ])

    R1_i = np.array([
        [1, 0, 0],
        [0, np.cos(i), -np.sin(i)],
        [0, np.sin(i), np.cos(i)]
    ])

    R3_omega = np.array([
        [np.cos(omega), -np.sin(omega), 0],
        [np.sin(omega), np.cos(omega), 0],
        [0, 0, 1]
    ])

    return R3_Omega @ R1_i @ R3_omega


def calculate_orbital_position(elements: OrbitalElements,
                               time: float,
                               period: float) -> np.ndarray:
    """
    Position on the orbit at a given time.

    Args:
        elements: Orbital elements
        time: Time since epoch [yr]
        period: Orbital period [yr]

    Returns:
        Position relative to the focus [AU]
    """
    a = elements.semi_major_axis
    e = elements.eccentricity

    M = calculate_mean_anomaly(time, period, elements.mean_anomaly_epoch)
    nu = approximate_true_anomaly(M, e)

    r = a * (1 - e**2) / (1 + e * math.cos(nu))
    r_pqw = r * np.array([math.cos(nu), math.sin(nu), 0.0])

    position = rotation_matrix(elements) @ r_pqw
    for value in position:
        check_numerical_stability(float(value), 'orbital position')
    return position


def calculate_orbital_velocity(elements: OrbitalElements,
                               time: float,
                               period: float) -> np.ndarray:
    """
    Velocity on the orbit at a given time [AU/yr].

    Uses μ = 4π² a³ / P² so the result is consistent with ``period``.
    """
    a = elements.semi_major_axis
    e = elements.eccentricity

    M = calculate_mean_anomaly(time, period, elements.mean_anomaly_epoch)
    nu = approximate_true_anomaly(M, e)

    mu = 4 * math.pi**2 * a**3 / period**2
    p = a * (1 - e**2)
    v_pqw = math.sqrt(mu / p) * np.array([-math.sin(nu), e + math.cos(nu), 0.0])
    return rotation_matrix(elements) @ v_pqw


def calculate_hill_radius(semi_major_axis: float,
                          body_mass: float,
                          central_mass: float) -> float:
    """
    Hill sphere radius, r_H = a (m / 3M)^(1/3).

    Args:
        semi_major_axis: Orbit of the body [AU]
        body_mass: Orbiting body mass (any unit, same as central_mass)
        central_mass: Central body mass

    Returns:
        Hill radius [AU]
    """
    return semi_major_axis * (body_mass / (3 * central_mass)) ** (1.0 / 3.0)


def check_system_stability(inner_semi_major_axis: float,
                           outer_semi_major_axis: float,
                           min_ratio: float = 3.0) -> bool:
    """True if the outer orbit is at least ``min_ratio`` times the inner one."""
    if inner_semi_major_axis <= 0:
        return False
    return outer_semi_major_axis / inner_semi_major_axis >= min_ratio


def distance(a: np.ndarray, b: Optional[np.ndarray] = None) -> float:
    """Euclidean distance between two positions (or from the origin)."""
    if b is None:
        return float(np.linalg.norm(a))
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))
