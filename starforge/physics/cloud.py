"""
Cloud Properties
================

Bulk properties of a uniform spherical molecular cloud.

All functions expect CloudParameters with the optional fields resolved
(see ``CloudParameters.resolved``).
"""

import math

from .. import constants as const
from ..core.bodies import CloudParameters, DerivedCloudProperties
from ..core.config import CloudDefaults
from ..validation.errors import check_numerical_stability

# Particle mass of molecular gas (H2 + He)
PARTICLE_MASS = const.MEAN_MOLECULAR_WEIGHT * const.HYDROGEN_MASS  # kg

# Critical flux-to-mass ratio 2π√G in cgs units [G·cm²/g]
CRITICAL_FLUX_TO_MASS = 2 * math.pi * math.sqrt(const.G * 1e3)

MICROGAUSS_TO_GAUSS = 1e-6
BOUND_VIRIAL_LIMIT = 2.0


def _mass_kg(params: CloudParameters) -> float:
    return params.mass * const.SOLAR_MASS


def _radius_m(params: CloudParameters) -> float:
    return params.radius * const.PARSEC


def mass_density(params: CloudParameters) -> float:
    """Mean mass density [kg/m³]."""
    volume = 4.0 / 3.0 * math.pi * _radius_m(params)**3
    return _mass_kg(params) / volume


def calculate_density(params: CloudParameters) -> float:
    """Mean number density [particles/cm³]."""
    number_density_m3 = mass_density(params) / PARTICLE_MASS
    return check_numerical_stability(number_density_m3 * 1e-6, 'cloud density')


def calculate_virial_parameter(params: CloudParameters) -> float:
    """
    Virial parameter α = 5σ²R / (GM).

    α < 2 means the cloud is gravitationally bound.
    """
    sigma = params.turbulence_velocity * 1e3  # m/s
    alpha = 5 * sigma**2 * _radius_m(params) / (const.G * _mass_kg(params))
    return check_numerical_stability(alpha, 'virial parameter')


def calculate_jeans_mass(params: CloudParameters) -> float:
    """
    Thermal Jeans mass.

    M_J = (5kT / (G μ m_H))^(3/2) · (3 / (4πρ))^(1/2)

    Returns:
        Jeans mass [M☉]
    """
    rho = mass_density(params)
    thermal = (5 * const.BOLTZMANN * params.temperature /
               (const.G * PARTICLE_MASS)) ** 1.5
    jeans_kg = thermal * math.sqrt(3 / (4 * math.pi * rho))
    return check_numerical_stability(jeans_kg / const.SOLAR_MASS, 'Jeans mass')


def calculate_collapse_timescale(params: CloudParameters) -> float:
    """Free-fall time √(3π / (32Gρ)) [yr]."""
    t_ff = math.sqrt(3 * math.pi / (32 * const.G * mass_density(params)))
    return check_numerical_stability(t_ff / const.SECONDS_PER_YEAR, 'collapse timescale')


def calculate_turbulent_jeans_length(params: CloudParameters) -> float:
    """Turbulent Jeans length σ√(π / (Gρ)) [pc]."""
    sigma = params.turbulence_velocity * 1e3
    length_m = sigma * math.sqrt(math.pi / (const.G * mass_density(params)))
    return check_numerical_stability(length_m / const.PARSEC, 'turbulent Jeans length')


def calculate_magnetic_flux_to_mass_ratio(params: CloudParameters) -> float:
    """
    Flux-to-mass ratio normalised to the critical value.

    Values above 1 mean the field can support the cloud against collapse.
    """
    field_G = params.magnetic_field_strength * MICROGAUSS_TO_GAUSS
    radius_cm = _radius_m(params) * 1e2
    mass_g = _mass_kg(params) * 1e3
    flux = field_G * math.pi * radius_cm**2
    ratio = flux / mass_g / CRITICAL_FLUX_TO_MASS
    return check_numerical_stability(ratio, 'magnetic flux-to-mass ratio')


def calculate_derived_properties(params: CloudParameters,
                                 defaults: CloudDefaults = None) -> DerivedCloudProperties:
    """
    Compute every derived property of a cloud.

    Args:
        params: Cloud parameters (optional fields may be unset)
        defaults: Values for unset optional fields

    Returns:
        DerivedCloudProperties
    """
    resolved = params.resolved(defaults or CloudDefaults())

    virial = calculate_virial_parameter(resolved)
    return DerivedCloudProperties(
        density=calculate_density(resolved),
        virial_parameter=virial,
        is_bound=virial < BOUND_VIRIAL_LIMIT,
        jeans_mass=calculate_jeans_mass(resolved),
        collapse_timescale=calculate_collapse_timescale(resolved),
        turbulent_jeans_length=calculate_turbulent_jeans_length(resolved),
        magnetic_flux_to_mass_ratio=calculate_magnetic_flux_to_mass_ratio(resolved),
    )
