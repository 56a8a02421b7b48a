"""
Stellar Evolution
=================

Star creation and phase-driven evolution of stellar properties.

The phase is recomputed from (mass, age / lifetime) on every call, so
evolving in one large step or many small ones lands in the same phase.
"""

import logging
import math
import numpy as np
from dataclasses import dataclass, replace
from typing import Optional

from .. import constants as const
from ..core.bodies import EvolutionPhase, Star, generate_id
from ..physics.internal_structure import calculate_internal_structure
from ..physics.stellar import (
    calculate_luminosity,
    calculate_main_sequence_lifetime,
    calculate_radius,
    calculate_temperature,
    determine_spectral_type,
)
from ..validation.errors import (
    SimulationError,
    SimulationErrorType,
    check_numerical_stability,
)

logger = logging.getLogger(__name__)

# Schwarzschild radius per solar mass, in solar radii (2GM/c²)
SCHWARZSCHILD_RADIUS_PER_MASS = 2 * const.G * const.SOLAR_MASS / (299792458.0**2) / const.SOLAR_RADIUS


@dataclass(frozen=True)
class PhaseProperties:
    """Luminosity [L☉], radius [R☉] and effective temperature [K]."""
    luminosity: float
    radius: float
    temperature: float


def determine_final_state(mass: float) -> EvolutionPhase:
    """Remnant left by a star of the given initial mass."""
    if mass < const.WHITE_DWARF_LIMIT:
        return EvolutionPhase.WHITE_DWARF
    if mass < const.NEUTRON_STAR_LIMIT:
        return EvolutionPhase.NEUTRON_STAR
    return EvolutionPhase.BLACK_HOLE


def determine_evolution_phase(mass: float, age_ratio: float) -> EvolutionPhase:
    """
    Evolution phase as a pure function of mass and age / lifetime.

    Args:
        mass: Initial stellar mass [M☉]
        age_ratio: Age divided by main-sequence lifetime

    Returns:
        EvolutionPhase
    """
    if age_ratio < const.PROTOSTAR_END:
        return EvolutionPhase.PROTOSTAR

    # Red dwarfs burn slowly and fade straight into white dwarfs
    if mass < const.LOW_MASS_LIMIT:
        if age_ratio < const.ASYMPTOTIC_GIANT_END:
            return EvolutionPhase.MAIN_SEQUENCE
        return EvolutionPhase.WHITE_DWARF

    if age_ratio < const.MAIN_SEQUENCE_END:
        return EvolutionPhase.MAIN_SEQUENCE

    if mass < const.WHITE_DWARF_LIMIT:
        if age_ratio < const.RED_GIANT_END:
            return EvolutionPhase.RED_GIANT
        if age_ratio < const.HORIZONTAL_BRANCH_END:
            return EvolutionPhase.HORIZONTAL_BRANCH
        if age_ratio < const.ASYMPTOTIC_GIANT_END:
            return EvolutionPhase.ASYMPTOTIC_GIANT
        if age_ratio < const.PLANETARY_NEBULA_END:
            return EvolutionPhase.PLANETARY_NEBULA
        return EvolutionPhase.WHITE_DWARF

    # Massive stars: supergiant, then core collapse
    if age_ratio < const.RED_GIANT_END:
        return EvolutionPhase.RED_GIANT
    return determine_final_state(mass)


def calculate_phase_properties(mass: float,
                               phase: EvolutionPhase,
                               age_ratio: float) -> PhaseProperties:
    """
    Luminosity, radius and temperature for a phase.

    Each phase scales the star's own main-sequence luminosity and radius;
    the temperature follows from Stefan-Boltzmann.

    Args:
        mass: Initial stellar mass [M☉]
        phase: Evolution phase
        age_ratio: Age divided by main-sequence lifetime

    Returns:
        PhaseProperties
    """
    base_luminosity = calculate_luminosity(mass)
    base_radius = calculate_radius(mass)

    if phase == EvolutionPhase.PROTOSTAR:
        l_mult, r_mult = 1.0, 1.0
    elif phase == EvolutionPhase.MAIN_SEQUENCE:
        # Slow brightening as helium builds up in the core
        f = 1.0 + 0.3 * age_ratio
        l_mult, r_mult = f, math.sqrt(f)
    elif phase == EvolutionPhase.RED_GIANT:
        if mass < const.WHITE_DWARF_LIMIT:
            l_mult, r_mult = 100.0, 25.0
        else:
            # Red supergiant
            l_mult, r_mult = 5.0, 100.0
    elif phase == EvolutionPhase.HORIZONTAL_BRANCH:
        l_mult, r_mult = 50.0, 10.0
    elif phase == EvolutionPhase.ASYMPTOTIC_GIANT:
        l_mult, r_mult = 300.0, 60.0
    elif phase == EvolutionPhase.PLANETARY_NEBULA:
        # Exposed hot core
        l_mult, r_mult = 100.0, 0.1
    elif phase == EvolutionPhase.WHITE_DWARF:
        # Cooling track, fading with age; underflows to 0 for extreme ages
        l_mult = 1e-3 * max(age_ratio, 1.0) ** -2.0
        r_mult = 0.01
    elif phase == EvolutionPhase.NEUTRON_STAR:
        l_mult, r_mult = 1e-4, 5e-6
    elif phase == EvolutionPhase.BLACK_HOLE:
        return PhaseProperties(
            luminosity=0.0,
            radius=SCHWARZSCHILD_RADIUS_PER_MASS * mass,
            temperature=0.0,
        )
    else:
        raise ValueError(f"Unknown evolution phase: {phase}")

    luminosity = check_numerical_stability(base_luminosity * l_mult, 'luminosity')
    radius = check_numerical_stability(base_radius * r_mult, 'radius')
    return PhaseProperties(
        luminosity=luminosity,
        radius=radius,
        temperature=calculate_temperature(luminosity, radius),
    )


def create_star(mass: float,
                metallicity: float,
                name: Optional[str] = None,
                rng: Optional[np.random.Generator] = None,
                position: Optional[np.ndarray] = None,
                velocity: Optional[np.ndarray] = None) -> Star:
    """
    Create a protostar at age zero.

    Args:
        mass: Stellar mass [M☉]
        metallicity: Metallicity [Z☉]
        name: Display name (defaults to a mass-based label)
        rng: Random source for the identifier
        position: Initial position [AU]
        velocity: Initial velocity [AU/yr]

    Returns:
        New Star
    """
    stellar_range = const.VALIDATION_RANGES.stellar_mass
    if not math.isfinite(mass) or mass <= 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            f"Stellar mass must be positive, got {mass}",
            details={'mass': mass},
        )
    if not stellar_range.contains(mass):
        logger.warning("Stellar mass %.3f M☉ outside [%s, %s]",
                       mass, stellar_range.min, stellar_range.max)

    phase = EvolutionPhase.PROTOSTAR
    props = calculate_phase_properties(mass, phase, 0.0)

    return Star(
        id=generate_id(rng),
        name=name or f"Star {mass:.2f} M☉",
        mass=mass,
        radius=props.radius,
        luminosity=props.luminosity,
        temperature=props.temperature,
        age=0.0,
        metallicity=metallicity,
        spectral_type=determine_spectral_type(props.temperature),
        evolution_phase=phase,
        lifetime=calculate_main_sequence_lifetime(mass),
        position=np.zeros(3) if position is None else np.asarray(position, dtype=float).copy(),
        velocity=np.zeros(3) if velocity is None else np.asarray(velocity, dtype=float).copy(),
        internal_structure=calculate_internal_structure(
            mass, props.radius, props.luminosity, phase, 0.0, metallicity),
    )


def evolve_star(star: Star, delta_time: float) -> Star:
    """
    Advance a star by ``delta_time`` years.

    The input star is left untouched; a new Star is returned.

    Args:
        star: Star to evolve
        delta_time: Elapsed time [yr], non-negative

    Returns:
        Evolved Star

    Raises:
        SimulationError: INVALID_PARAMETERS for a bad step,
            NUMERICAL_INSTABILITY if a property becomes non-finite
    """
    if not math.isfinite(delta_time) or delta_time < 0:
        raise SimulationError(
            SimulationErrorType.INVALID_PARAMETERS,
            f"Time step must be finite and non-negative, got {delta_time}",
            details={'delta_time': delta_time, 'star_id': star.id},
        )

    age = star.age + delta_time
    age_ratio = check_numerical_stability(age / star.lifetime, 'age ratio')

    phase = determine_evolution_phase(star.mass, age_ratio)
    props = calculate_phase_properties(star.mass, phase, age_ratio)

    structure = calculate_internal_structure(
        star.mass, props.radius, props.luminosity, phase, age_ratio,
        star.metallicity, previous=star.internal_structure, delta_time=delta_time)

    return replace(
        star,
        age=age,
        evolution_phase=phase,
        luminosity=props.luminosity,
        radius=props.radius,
        temperature=props.temperature,
        spectral_type=determine_spectral_type(props.temperature),
        position=star.position.copy(),
        velocity=star.velocity.copy(),
        internal_structure=structure,
    )
