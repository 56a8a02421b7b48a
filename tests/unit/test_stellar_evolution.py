import numpy as np
import pytest

from starforge.core.bodies import EvolutionPhase, NuclearReaction, SpectralType
from starforge.formation.stellar_evolution import (
    SCHWARZSCHILD_RADIUS_PER_MASS,
    calculate_phase_properties,
    create_star,
    determine_evolution_phase,
    determine_final_state,
    evolve_star,
)
from starforge.validation.errors import SimulationError, SimulationErrorType

PHASE_ORDER = list(EvolutionPhase)


@pytest.fixture
def sun():
    return create_star(1.0, 1.0, name="Sol", rng=np.random.default_rng(0))


def test_new_star_is_protostar(sun):
    assert sun.age == 0.0
    assert sun.evolution_phase == EvolutionPhase.PROTOSTAR
    assert sun.lifetime == pytest.approx(1e10)
    assert sun.luminosity == pytest.approx(1.0)
    assert sun.spectral_type == SpectralType.G
    assert sun.internal_structure is not None


@pytest.mark.parametrize("mass, expected", [
    (7.99, EvolutionPhase.WHITE_DWARF),
    (8.01, EvolutionPhase.NEUTRON_STAR),
    (24.99, EvolutionPhase.NEUTRON_STAR),
    (25.01, EvolutionPhase.BLACK_HOLE),
])
def test_final_state_boundaries(mass, expected):
    assert determine_final_state(mass) == expected


@pytest.mark.parametrize("age, expected", [
    (5e7, EvolutionPhase.PROTOSTAR),
    (5e9, EvolutionPhase.MAIN_SEQUENCE),
    (9.2e9, EvolutionPhase.RED_GIANT),
    (9.6e9, EvolutionPhase.HORIZONTAL_BRANCH),
    (9.9e9, EvolutionPhase.ASYMPTOTIC_GIANT),
    (1.005e10, EvolutionPhase.PLANETARY_NEBULA),
    (1.1e10, EvolutionPhase.WHITE_DWARF),
])
def test_sun_like_life_cycle(sun, age, expected):
    assert evolve_star(sun, age).evolution_phase == expected


@pytest.mark.parametrize("mass", [0.3, 1.0, 3.0, 12.0, 40.0])
def test_phases_never_go_backwards(mass):
    ranks = [PHASE_ORDER.index(determine_evolution_phase(mass, r))
             for r in np.linspace(0.0, 1.5, 301)]
    assert all(a <= b for a, b in zip(ranks, ranks[1:]))


def test_red_dwarf_skips_giant_phases():
    phases = {determine_evolution_phase(0.3, r) for r in np.linspace(0.0, 2.0, 401)}
    assert phases == {EvolutionPhase.PROTOSTAR, EvolutionPhase.MAIN_SEQUENCE,
                      EvolutionPhase.WHITE_DWARF}


def test_massive_stars_collapse():
    assert determine_evolution_phase(12.0, 0.97) == EvolutionPhase.NEUTRON_STAR
    assert determine_evolution_phase(40.0, 0.97) == EvolutionPhase.BLACK_HOLE


def test_black_hole_is_dark():
    props = calculate_phase_properties(40.0, EvolutionPhase.BLACK_HOLE, 1.2)
    assert props.luminosity == 0.0
    assert props.temperature == 0.0
    assert props.radius == pytest.approx(40.0 * SCHWARZSCHILD_RADIUS_PER_MASS)


def test_giant_is_brighter_and_larger(sun):
    giant = evolve_star(sun, 9.2e9)
    assert giant.luminosity > 10 * sun.luminosity
    assert giant.radius > 10 * sun.radius
    assert giant.temperature < sun.temperature


def test_white_dwarf_is_small_and_faint(sun):
    dwarf = evolve_star(sun, 1.1e10)
    assert dwarf.radius == pytest.approx(0.01)
    assert dwarf.luminosity < 1e-3


def test_zero_step_is_identity(sun):
    same = evolve_star(sun, 0.0)
    assert same.age == sun.age
    assert same.evolution_phase == sun.evolution_phase
    assert same.luminosity == sun.luminosity
    assert same.radius == sun.radius
    assert same.temperature == sun.temperature
    assert same.spectral_type == sun.spectral_type
    assert np.array_equal(same.position, sun.position)
    assert same.internal_structure == sun.internal_structure


def test_step_size_does_not_change_phase(sun):
    one_step = evolve_star(sun, 8e9)

    many_steps = sun
    for _ in range(10):
        many_steps = evolve_star(many_steps, 8e8)

    assert many_steps.age == pytest.approx(one_step.age)
    assert many_steps.evolution_phase == one_step.evolution_phase
    assert many_steps.luminosity == pytest.approx(one_step.luminosity)


def test_evolve_does_not_mutate_input(sun):
    evolved = evolve_star(sun, 5e9)
    assert sun.age == 0.0
    assert sun.evolution_phase == EvolutionPhase.PROTOSTAR
    assert evolved.position is not sun.position
    assert evolved.id == sun.id


def test_main_sequence_burns_hydrogen(sun):
    evolved = evolve_star(sun, 5e9)
    structure = evolved.internal_structure
    assert structure.active_reactions.core_reaction == NuclearReaction.PP_CHAIN
    assert structure.core_composition.hydrogen < sun.internal_structure.core_composition.hydrogen


@pytest.mark.parametrize("delta", [-1.0, float('nan'), float('inf')])
def test_bad_time_step_rejected(sun, delta):
    with pytest.raises(SimulationError) as excinfo:
        evolve_star(sun, delta)
    assert excinfo.value.error_type == SimulationErrorType.INVALID_PARAMETERS


def test_create_star_rejects_non_positive_mass():
    with pytest.raises(SimulationError):
        create_star(0.0, 1.0)
