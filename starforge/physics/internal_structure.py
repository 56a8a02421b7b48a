"""
Internal Structure
==================

Simplified stellar interior: core composition, temperature, pressure,
nuclear burning and layer boundaries.
"""

import math
from dataclasses import replace
from typing import List, Optional

from .. import constants as const
from ..core.bodies import (
    ActiveReactions,
    CoreComposition,
    EvolutionPhase,
    InternalStructure,
    LayerStructure,
    NuclearReaction,
    ShellBurning,
)
from ..validation.errors import check_numerical_stability

# Ignition temperatures [K]
T_PP_CHAIN = 4e6
T_CNO_CYCLE = 1.5e7
T_HELIUM = 1e8
T_CARBON = 6e8

PRIMORDIAL_HELIUM = 0.25
SOLAR_METAL_FRACTION = 0.02

# Burned core mass fraction per year per solar mass (~0.6 of the Sun's core hydrogen in 10 Gyr)
BURN_RATE = 1.5e-11

# Share of the metal fraction carried by each element
METAL_MIX = {
    'carbon': 0.3,
    'oxygen': 0.5,
    'neon': 0.1,
    'magnesium': 0.05,
    'silicon': 0.04,
    'iron': 0.01,
}

# Core pressure multiplier on G M² / R⁴
PRESSURE_FACTORS = {
    EvolutionPhase.PROTOSTAR: 0.5,
    EvolutionPhase.MAIN_SEQUENCE: 1.0,
    EvolutionPhase.RED_GIANT: 100.0,
    EvolutionPhase.ASYMPTOTIC_GIANT: 100.0,
    EvolutionPhase.HORIZONTAL_BRANCH: 50.0,
    EvolutionPhase.WHITE_DWARF: 1e6,
    EvolutionPhase.NEUTRON_STAR: 1e12,
}

# Fraction of the luminosity produced by the core reaction
CORE_ENERGY_SHARE = {
    NuclearReaction.PP_CHAIN: 0.99,
    NuclearReaction.CNO_CYCLE: 0.99,
    NuclearReaction.TRIPLE_ALPHA: 0.8,
    NuclearReaction.HELIUM_CARBON: 0.8,
    NuclearReaction.CARBON_BURNING: 0.5,
    NuclearReaction.NEON_BURNING: 0.5,
    NuclearReaction.OXYGEN_BURNING: 0.5,
    NuclearReaction.SILICON_BURNING: 0.5,
}


def calculate_initial_core_composition(metallicity: float) -> CoreComposition:
    """Zero-age composition: primordial helium, metals scaled from solar."""
    metals = metallicity * SOLAR_METAL_FRACTION
    hydrogen = 1.0 - PRIMORDIAL_HELIUM - metals

    return CoreComposition(
        hydrogen=max(0.0, hydrogen),
        helium=PRIMORDIAL_HELIUM,
        **{element: metals * share for element, share in METAL_MIX.items()},
    )


def calculate_core_temperature(mass: float, phase: EvolutionPhase, age_ratio: float) -> float:
    """
    Central temperature for a phase.

    Args:
        mass: Stellar mass [M☉]
        phase: Evolution phase
        age_ratio: Age / main-sequence lifetime

    Returns:
        Core temperature [K]
    """
    base = 1.5e7 * math.sqrt(mass)  # ~15 MK for the Sun

    if phase == EvolutionPhase.PROTOSTAR:
        # Contracting towards ignition
        temperature = base * (0.5 + 0.5 * min(age_ratio / const.PROTOSTAR_END, 1.0))
    elif phase == EvolutionPhase.MAIN_SEQUENCE:
        temperature = base * (1.0 + 0.2 * age_ratio)
    elif phase in (EvolutionPhase.RED_GIANT, EvolutionPhase.ASYMPTOTIC_GIANT):
        temperature = base * (2.0 + 3.0 * age_ratio)
    elif phase == EvolutionPhase.HORIZONTAL_BRANCH:
        temperature = base * 5.0
    elif phase == EvolutionPhase.PLANETARY_NEBULA:
        temperature = base * 10.0
    elif phase == EvolutionPhase.WHITE_DWARF:
        temperature = 1e7 * math.exp(-age_ratio)
    elif phase == EvolutionPhase.NEUTRON_STAR:
        temperature = 1e9
    elif phase == EvolutionPhase.BLACK_HOLE:
        temperature = 0.0
    else:
        raise ValueError(f"Unknown evolution phase: {phase}")

    return check_numerical_stability(temperature, 'core temperature')


def calculate_core_pressure(mass: float, radius: float, phase: EvolutionPhase) -> float:
    """
    Central pressure P ≈ G M² / R⁴ scaled per phase.

    Returns:
        Core pressure [Pa]
    """
    if phase == EvolutionPhase.BLACK_HOLE:
        return 0.0

    mass_kg = mass * const.SOLAR_MASS
    radius_m = radius * const.SOLAR_RADIUS
    base = const.G * mass_kg**2 / radius_m**4

    pressure = base * PRESSURE_FACTORS.get(phase, 1.0)
    return check_numerical_stability(pressure, 'core pressure')


def determine_active_reactions(core_temperature: float,
                               composition: CoreComposition,
                               phase: EvolutionPhase,
                               mass: float) -> NuclearReaction:
    """Core reaction running at this temperature and composition."""
    if phase == EvolutionPhase.MAIN_SEQUENCE:
        if composition.hydrogen > 0.01:
            if mass > 1.5 and core_temperature >= T_CNO_CYCLE:
                return NuclearReaction.CNO_CYCLE
            if core_temperature >= T_PP_CHAIN:
                return NuclearReaction.PP_CHAIN
        return NuclearReaction.NONE

    if phase == EvolutionPhase.RED_GIANT:
        if composition.helium > 0.1 and core_temperature >= T_HELIUM:
            return NuclearReaction.TRIPLE_ALPHA
        return NuclearReaction.NONE

    if phase == EvolutionPhase.HORIZONTAL_BRANCH:
        if composition.helium > 0.01:
            if composition.carbon > 0.01 and core_temperature >= T_HELIUM:
                return NuclearReaction.HELIUM_CARBON
            return NuclearReaction.TRIPLE_ALPHA
        return NuclearReaction.NONE

    if phase == EvolutionPhase.ASYMPTOTIC_GIANT:
        if mass > 8 and composition.carbon > 0.01 and core_temperature >= T_CARBON:
            return NuclearReaction.CARBON_BURNING
        return NuclearReaction.NONE

    # Protostars and remnants have no core fusion
    return NuclearReaction.NONE


def determine_shell_burning(phase: EvolutionPhase, mass: float) -> ShellBurning:
    """Which shells around the core are burning."""
    if phase in (EvolutionPhase.RED_GIANT, EvolutionPhase.HORIZONTAL_BRANCH):
        return ShellBurning(hydrogen_shell=True)
    if phase == EvolutionPhase.ASYMPTOTIC_GIANT:
        return ShellBurning(hydrogen_shell=True, helium_shell=True, carbon_shell=mass > 8)
    return ShellBurning()


def shell_reactions(shell_burning: ShellBurning, mass: float) -> List[NuclearReaction]:
    reactions = []
    if shell_burning.hydrogen_shell:
        reactions.append(NuclearReaction.CNO_CYCLE if mass > 1.5 else NuclearReaction.PP_CHAIN)
    if shell_burning.helium_shell:
        reactions.append(NuclearReaction.TRIPLE_ALPHA)
    if shell_burning.carbon_shell:
        reactions.append(NuclearReaction.CARBON_BURNING)
    return reactions


def calculate_layer_structure(mass: float, phase: EvolutionPhase, age_ratio: float) -> LayerStructure:
    """Core, radiative and convective boundaries as fractions of the radius."""
    if phase == EvolutionPhase.PROTOSTAR:
        # Mostly convective
        return LayerStructure(0.1, 0.3, 1.0)

    if phase == EvolutionPhase.MAIN_SEQUENCE:
        if mass < 0.5:
            # Fully convective
            return LayerStructure(0.2, 0.2, 1.0)
        if mass < 1.5:
            # Radiative core, convective envelope
            return LayerStructure(0.25, 0.7, 1.0)
        # Convective core, radiative envelope
        return LayerStructure(0.3, 1.0, 0.3)

    if phase in (EvolutionPhase.RED_GIANT, EvolutionPhase.ASYMPTOTIC_GIANT):
        return LayerStructure(0.01 + 0.02 * age_ratio, 0.1, 1.0)

    if phase == EvolutionPhase.HORIZONTAL_BRANCH:
        return LayerStructure(0.15, 0.6, 1.0)

    if phase == EvolutionPhase.WHITE_DWARF:
        # Degenerate throughout
        return LayerStructure(0.99, 1.0, 1.0)

    return LayerStructure()


def calculate_energy_production_rate(reaction: NuclearReaction, luminosity: float) -> float:
    """Core energy output [L☉]."""
    return luminosity * CORE_ENERGY_SHARE.get(reaction, 0.0)


def evolve_core_composition(composition: CoreComposition,
                            reaction: NuclearReaction,
                            delta_time: float,
                            mass: float) -> CoreComposition:
    """
    Burn core fuel for ``delta_time`` years and renormalise.

    Args:
        composition: Current core composition
        reaction: Active core reaction
        delta_time: Time step [yr]
        mass: Stellar mass [M☉]

    Returns:
        New composition (input unchanged)
    """
    burned = BURN_RATE * mass * delta_time
    new = replace(composition)

    if reaction in (NuclearReaction.PP_CHAIN, NuclearReaction.CNO_CYCLE):
        # 4 H -> He
        hydrogen = min(new.hydrogen, 4 * burned)
        new.hydrogen -= hydrogen
        new.helium += 0.99 * hydrogen
    elif reaction == NuclearReaction.TRIPLE_ALPHA:
        # 3 He -> C
        helium = min(new.helium, 3 * burned)
        new.helium -= helium
        new.carbon += 0.95 * helium
    elif reaction == NuclearReaction.HELIUM_CARBON:
        # He + C -> O
        helium = min(new.helium, burned)
        carbon = min(new.carbon, 0.5 * burned)
        new.helium -= helium
        new.carbon -= carbon
        new.oxygen += 0.9 * (helium + carbon)
    elif reaction == NuclearReaction.CARBON_BURNING:
        # C -> Ne, Mg
        carbon = min(new.carbon, 2 * burned)
        new.carbon -= carbon
        new.neon += 0.5 * carbon
        new.magnesium += 0.4 * carbon

    return new.normalized()


def calculate_internal_structure(mass: float,
                                 radius: float,
                                 luminosity: float,
                                 phase: EvolutionPhase,
                                 age_ratio: float,
                                 metallicity: float,
                                 previous: Optional[InternalStructure] = None,
                                 delta_time: float = 0.0) -> InternalStructure:
    """
    Full interior snapshot.

    The composition is evolved from ``previous`` when given; a zero step
    keeps the previous composition as is.

    Args:
        mass: Stellar mass [M☉]
        radius: Current radius [R☉]
        luminosity: Current luminosity [L☉]
        phase: Evolution phase
        age_ratio: Age / main-sequence lifetime
        metallicity: Metallicity [Z☉]
        previous: Structure from the previous step
        delta_time: Time since ``previous`` [yr]

    Returns:
        InternalStructure
    """
    core_temperature = calculate_core_temperature(mass, phase, age_ratio)
    core_pressure = calculate_core_pressure(mass, radius, phase)

    if previous is None:
        composition = calculate_initial_core_composition(metallicity)
    elif delta_time > 0:
        reaction = determine_active_reactions(
            core_temperature, previous.core_composition, phase, mass)
        composition = evolve_core_composition(
            previous.core_composition, reaction, delta_time, mass)
    else:
        composition = replace(previous.core_composition)

    core_reaction = determine_active_reactions(core_temperature, composition, phase, mass)
    shell_burning = determine_shell_burning(phase, mass)

    active = ActiveReactions(
        core_reaction=core_reaction,
        shell_reactions=shell_reactions(shell_burning, mass),
        energy_production_rate=calculate_energy_production_rate(core_reaction, luminosity),
    )

    return InternalStructure(
        core_composition=composition,
        core_temperature=core_temperature,
        core_pressure=core_pressure,
        active_reactions=active,
        shell_burning=shell_burning,
        layer_structure=calculate_layer_structure(mass, phase, age_ratio),
    )
