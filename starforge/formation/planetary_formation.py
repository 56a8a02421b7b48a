"""
Planetary Formation
===================

Protoplanetary disks and the planets that form in them.
"""

import logging
import numpy as np
from dataclasses import replace
from typing import List, Optional

from .. import constants as const
from ..core.bodies import OrbitalElements, Planet, ProtoplanetaryDisk, Star, generate_id
from ..physics.orbital import (
    calculate_hill_radius,
    calculate_orbital_period,
    calculate_orbital_position,
)
from ..physics.planetary import (
    apply_magnetic_braking,
    calculate_disk_inner_radius,
    calculate_disk_mass,
    calculate_disk_outer_radius,
    calculate_magnetic_braking_factor,
    calculate_planet_eccentricity,
    calculate_planet_mass,
    calculate_planet_radius,
    calculate_snow_line,
    can_form_planets,
    determine_planet_composition,
)
from ..validation.errors import ErrorLog, SimulationError

logger = logging.getLogger(__name__)

PLANET_LETTERS = 'bcdefghijklmnopqrstuvwxyz'

# Innermost planet never closer than this [AU]
MIN_FIRST_ORBIT = 0.3

# Mass used for spacing when a planet is light or failed to form [M⊕]
REFERENCE_PLANET_MASS = 5.0

# Spacing between neighbours in mutual Hill radii
MIN_HILL_SPACING = 10.0
MAX_HILL_SPACING = 20.0


def create_protoplanetary_disk(star: Star,
                               magnetic_field_strength: Optional[float] = None
                               ) -> Optional[ProtoplanetaryDisk]:
    """
    Build the disk around a newly formed star.

    Args:
        star: Host star
        magnetic_field_strength: Cloud field [μG]; brakes the outer disk

    Returns:
        ProtoplanetaryDisk, or None if the disk is too light to form planets
    """
    disk_mass = calculate_disk_mass(star.mass, star.metallicity)
    if not can_form_planets(disk_mass, star.mass):
        logger.info("Disk of %.3g M☉ around %s too light for planets", disk_mass, star.name)
        return None

    outer_radius = calculate_disk_outer_radius(star.mass)
    braking_factor = None
    if magnetic_field_strength is not None:
        braking_factor = calculate_magnetic_braking_factor(magnetic_field_strength)
        outer_radius = apply_magnetic_braking(outer_radius, braking_factor)

    inner_radius = calculate_disk_inner_radius(star.luminosity)
    if inner_radius >= outer_radius:
        logger.info("Disk around %s sublimated out to its outer edge", star.name)
        return None

    return ProtoplanetaryDisk(
        star_id=star.id,
        mass=disk_mass,
        inner_radius=inner_radius,
        outer_radius=outer_radius,
        snow_line=calculate_snow_line(star.luminosity),
        metallicity=star.metallicity,
        magnetic_braking_factor=braking_factor,
    )


def _form_planet(disk: ProtoplanetaryDisk, star: Star, semi_major_axis: float,
                 name: str, rng: np.random.Generator) -> Planet:
    composition = determine_planet_composition(semi_major_axis, disk.snow_line, disk.metallicity)
    mass = calculate_planet_mass(composition, disk.mass, disk.metallicity, rng)
    radius = calculate_planet_radius(mass, composition)
    eccentricity = calculate_planet_eccentricity(rng)
    period = calculate_orbital_period(semi_major_axis, star.mass)

    orbit = OrbitalElements(semi_major_axis=semi_major_axis, eccentricity=eccentricity)

    return Planet(
        id=generate_id(rng),
        name=name,
        mass=mass,
        radius=radius,
        composition=composition,
        semi_major_axis=semi_major_axis,
        eccentricity=eccentricity,
        orbital_period=period,
        parent_star_id=star.id,
        orbit=orbit,
        position=star.position + calculate_orbital_position(orbit, 0.0, period),
    )


def generate_planets(disk: ProtoplanetaryDisk,
                     star: Star,
                     max_planets: int = 10,
                     rng: Optional[np.random.Generator] = None,
                     error_log: Optional[ErrorLog] = None) -> List[Planet]:
    """
    Populate a disk with planets, inside out.

    Each orbit lies 10-20 Hill radii beyond the previous planet, so spacing
    grows outward with distance and planet mass. Generation stops at the disk
    outer edge or after ``max_planets`` planets.

    Args:
        disk: Protoplanetary disk
        star: Host star
        max_planets: Upper bound on planets
        rng: Random source
        error_log: Sink for planets that failed to form

    Returns:
        Planets ordered by increasing semi-major axis
    """
    rng = rng if rng is not None else np.random.default_rng()
    planets: List[Planet] = []

    semi_major_axis = max(2 * disk.inner_radius, MIN_FIRST_ORBIT)
    while len(planets) < max_planets and semi_major_axis <= disk.outer_radius:
        name = f"{star.name} {PLANET_LETTERS[len(planets) % len(PLANET_LETTERS)]}"
        spacing_mass = REFERENCE_PLANET_MASS
        try:
            planet = _form_planet(disk, star, semi_major_axis, name, rng)
            planets.append(planet)
            spacing_mass = max(planet.mass, REFERENCE_PLANET_MASS)
        except SimulationError as error:
            if error_log is not None:
                error_log.log(error)
            logger.warning("Skipping planet at %.3f AU around %s: %s",
                           semi_major_axis, star.name, error.message)

        hill = calculate_hill_radius(semi_major_axis,
                                     spacing_mass / const.EARTH_MASSES_PER_SOLAR_MASS,
                                     star.mass)
        semi_major_axis += hill * rng.uniform(MIN_HILL_SPACING, MAX_HILL_SPACING)

    return planets


def update_planet_position(planet: Planet, star: Star, time: float) -> Planet:
    """New planet at its orbital position at ``time`` [yr] around ``star``."""
    offset = calculate_orbital_position(planet.orbit, time, planet.orbital_period)
    return replace(planet, position=star.position + offset)
