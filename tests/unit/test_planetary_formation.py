import math
from dataclasses import replace

import numpy as np
import pytest

from starforge import constants as const
from starforge.core.bodies import PlanetComposition
from starforge.formation import planetary_formation
from starforge.formation.planetary_formation import (
    create_protoplanetary_disk,
    generate_planets,
    update_planet_position,
)
from starforge.formation.stellar_evolution import create_star
from starforge.physics.orbital import calculate_hill_radius
from starforge.physics.planetary import (
    apply_magnetic_braking,
    calculate_disk_mass,
    calculate_magnetic_braking_factor,
    calculate_planet_mass,
    calculate_snow_line,
    can_form_planets,
    determine_planet_composition,
)
from starforge.validation.errors import ErrorLog, SimulationError, SimulationErrorType


@pytest.fixture
def star():
    return create_star(1.0, 1.0, name="Sol", rng=np.random.default_rng(0))


def test_disk_mass_fraction_tracks_metallicity():
    assert calculate_disk_mass(1.0, 0.0) == pytest.approx(0.01)
    assert calculate_disk_mass(1.0, 1.0) == pytest.approx(0.055)
    assert calculate_disk_mass(1.0, 2.0) == pytest.approx(0.1)
    assert calculate_disk_mass(1.0, 3.0) == pytest.approx(0.1)


def test_snow_line_of_the_sun():
    assert calculate_snow_line(1.0) == pytest.approx(2.7)


def test_can_form_planets_threshold():
    assert can_form_planets(0.005, 1.0)
    assert not can_form_planets(0.004, 1.0)
    assert not can_form_planets(0.01, 0.0)


def test_magnetic_braking_factor_and_clamp():
    assert calculate_magnetic_braking_factor(10.0) == pytest.approx(1.0)
    assert calculate_magnetic_braking_factor(100.0) < 1.0
    assert apply_magnetic_braking(30.0, 1e-3) == 10.0
    assert apply_magnetic_braking(30.0, 1e3) == 1000.0
    assert apply_magnetic_braking(30.0, 2.0) == pytest.approx(60.0)


@pytest.mark.parametrize("distance, metallicity, expected", [
    (1.0, 1.0, PlanetComposition.ROCKY),
    (4.0, 1.0, PlanetComposition.ICE_GIANT),
    (4.0, 2.0, PlanetComposition.GAS_GIANT),
    (10.0, 1.0, PlanetComposition.GAS_GIANT),
    (10.0, 0.3, PlanetComposition.ICE_GIANT),
])
def test_composition_by_snow_line(distance, metallicity, expected):
    assert determine_planet_composition(distance, 2.7, metallicity) == expected


def test_planet_mass_capped_by_disk():
    rng = np.random.default_rng(0)
    disk_mass = 1e-4
    cap = disk_mass * const.EARTH_MASSES_PER_SOLAR_MASS * 0.01
    for _ in range(20):
        assert calculate_planet_mass(PlanetComposition.GAS_GIANT, disk_mass, 1.0, rng) <= cap


def test_disk_around_sun(star):
    disk = create_protoplanetary_disk(star)
    assert disk.star_id == star.id
    assert disk.inner_radius < disk.snow_line < disk.outer_radius
    assert disk.magnetic_braking_factor is None


def test_strong_field_shrinks_disk(star):
    free = create_protoplanetary_disk(star)
    braked = create_protoplanetary_disk(star, magnetic_field_strength=100.0)
    assert braked.outer_radius < free.outer_radius
    assert braked.magnetic_braking_factor < 1.0


def test_metal_free_disk_still_forms(star):
    poor = replace(star, metallicity=0.0)
    assert create_protoplanetary_disk(poor) is not None


def test_planets_lie_inside_disk_in_order(star):
    disk = create_protoplanetary_disk(star)
    planets = generate_planets(disk, star, rng=np.random.default_rng(3))

    assert planets
    axes = [p.semi_major_axis for p in planets]
    assert axes == sorted(axes)
    assert all(disk.inner_radius <= a <= disk.outer_radius for a in axes)
    assert all(p.parent_star_id == star.id for p in planets)
    assert planets[0].name == "Sol b"


def test_planets_spaced_by_hill_radii(star):
    disk = create_protoplanetary_disk(star)
    planets = generate_planets(disk, star, rng=np.random.default_rng(8))

    for inner, outer in zip(planets, planets[1:]):
        hill = calculate_hill_radius(inner.semi_major_axis,
                                     inner.mass / const.EARTH_MASSES_PER_SOLAR_MASS,
                                     star.mass)
        assert outer.semi_major_axis - inner.semi_major_axis > 3 * hill


def test_planet_periods_follow_kepler(star):
    disk = create_protoplanetary_disk(star)
    for planet in generate_planets(disk, star, rng=np.random.default_rng(1)):
        expected = math.sqrt(planet.semi_major_axis**3 / star.mass)
        assert planet.orbital_period == pytest.approx(expected, rel=0.01)


def test_max_planets_respected(star):
    disk = create_protoplanetary_disk(star)
    assert len(generate_planets(disk, star, max_planets=2, rng=np.random.default_rng(0))) <= 2
    assert generate_planets(disk, star, max_planets=0, rng=np.random.default_rng(0)) == []


def test_planet_generation_is_seeded(star):
    disk = create_protoplanetary_disk(star)
    a = generate_planets(disk, star, rng=np.random.default_rng(21))
    b = generate_planets(disk, star, rng=np.random.default_rng(21))
    assert [p.semi_major_axis for p in a] == [p.semi_major_axis for p in b]
    assert [p.id for p in a] == [p.id for p in b]


def test_planet_position_follows_parent(star):
    disk = create_protoplanetary_disk(star)
    planet = generate_planets(disk, star, max_planets=1, rng=np.random.default_rng(0))[0]

    moved_star = replace(star, position=np.array([100.0, 0.0, 0.0]))
    moved = update_planet_position(planet, moved_star, planet.orbital_period)

    offset = moved.position - moved_star.position
    assert np.allclose(offset, planet.position - star.position)
    # Input planet unchanged
    assert not np.allclose(planet.position, moved.position)


def test_failed_planet_is_skipped_and_logged(star, monkeypatch):
    real_mass = planetary_formation.calculate_planet_mass
    calls = []

    def failing_second_draw(*args):
        calls.append(args)
        if len(calls) == 2:
            raise SimulationError(SimulationErrorType.NUMERICAL_INSTABILITY,
                                  "Numerical instability in planet mass: nan",
                                  recoverable=True)
        return real_mass(*args)

    disk = create_protoplanetary_disk(star)
    reference = generate_planets(disk, star, rng=np.random.default_rng(5))

    monkeypatch.setattr(planetary_formation, "calculate_planet_mass", failing_second_draw)
    log = ErrorLog()
    planets = generate_planets(disk, star, rng=np.random.default_rng(5), error_log=log)

    assert len(calls) > 2
    assert len(planets) >= 2
    assert planets[0].semi_major_axis == reference[0].semi_major_axis
    axes = [p.semi_major_axis for p in planets]
    assert axes == sorted(axes)
    assert [p.name for p in planets[:2]] == ["Sol b", "Sol c"]
    assert log.get_error_counts()[SimulationErrorType.NUMERICAL_INSTABILITY] == 1
