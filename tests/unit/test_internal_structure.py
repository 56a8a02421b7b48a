import pytest

from starforge.core.bodies import CoreComposition, EvolutionPhase, NuclearReaction
from starforge.physics.internal_structure import (
    calculate_core_pressure,
    calculate_core_temperature,
    calculate_initial_core_composition,
    calculate_internal_structure,
    determine_active_reactions,
    determine_shell_burning,
    evolve_core_composition,
)


def test_initial_composition_sums_to_one():
    composition = calculate_initial_core_composition(1.0)
    assert composition.total() == pytest.approx(1.0)
    assert composition.helium == pytest.approx(0.25)
    assert composition.hydrogen == pytest.approx(0.73)


def test_metal_rich_star_has_less_hydrogen():
    assert calculate_initial_core_composition(2.0).hydrogen < \
        calculate_initial_core_composition(1.0).hydrogen


def test_sun_core_temperature():
    assert calculate_core_temperature(1.0, EvolutionPhase.MAIN_SEQUENCE, 0.0) == pytest.approx(1.5e7)


def test_giant_core_is_hotter_than_main_sequence():
    ms = calculate_core_temperature(1.0, EvolutionPhase.MAIN_SEQUENCE, 0.5)
    giant = calculate_core_temperature(1.0, EvolutionPhase.RED_GIANT, 0.92)
    assert giant > ms


def test_black_hole_has_no_pressure():
    assert calculate_core_pressure(30.0, 1e-4, EvolutionPhase.BLACK_HOLE) == 0.0
    assert calculate_core_pressure(1.0, 1.0, EvolutionPhase.MAIN_SEQUENCE) > 0.0


def test_massive_main_sequence_runs_cno():
    composition = calculate_initial_core_composition(1.0)
    hot = calculate_core_temperature(5.0, EvolutionPhase.MAIN_SEQUENCE, 0.1)
    assert determine_active_reactions(hot, composition, EvolutionPhase.MAIN_SEQUENCE, 5.0) == \
        NuclearReaction.CNO_CYCLE
    warm = calculate_core_temperature(1.0, EvolutionPhase.MAIN_SEQUENCE, 0.1)
    assert determine_active_reactions(warm, composition, EvolutionPhase.MAIN_SEQUENCE, 1.0) == \
        NuclearReaction.PP_CHAIN


def test_exhausted_core_stops_burning():
    empty = CoreComposition(helium=1.0)
    assert determine_active_reactions(2e7, empty, EvolutionPhase.MAIN_SEQUENCE, 1.0) == \
        NuclearReaction.NONE


def test_shell_burning_by_phase():
    assert determine_shell_burning(EvolutionPhase.RED_GIANT, 1.0).hydrogen_shell
    agb = determine_shell_burning(EvolutionPhase.ASYMPTOTIC_GIANT, 10.0)
    assert agb.helium_shell and agb.carbon_shell
    assert not determine_shell_burning(EvolutionPhase.MAIN_SEQUENCE, 1.0).hydrogen_shell


def test_hydrogen_burning_makes_helium():
    start = calculate_initial_core_composition(1.0)
    burned = evolve_core_composition(start, NuclearReaction.PP_CHAIN, 1e9, 1.0)
    assert burned.hydrogen < start.hydrogen
    assert burned.helium > start.helium
    assert burned.total() == pytest.approx(1.0)
    # Input unchanged
    assert start.hydrogen == pytest.approx(0.73)


def test_triple_alpha_makes_carbon():
    start = CoreComposition(hydrogen=0.0, helium=0.98, carbon=0.02)
    burned = evolve_core_composition(start, NuclearReaction.TRIPLE_ALPHA, 1e9, 1.0)
    assert burned.carbon > start.carbon
    assert burned.helium < start.helium


def test_structure_zero_step_keeps_composition():
    first = calculate_internal_structure(1.0, 1.0, 1.0, EvolutionPhase.MAIN_SEQUENCE, 0.2, 1.0)
    again = calculate_internal_structure(1.0, 1.0, 1.0, EvolutionPhase.MAIN_SEQUENCE, 0.2, 1.0,
                                         previous=first, delta_time=0.0)
    assert again.core_composition == first.core_composition
    assert again.core_composition is not first.core_composition


def test_main_sequence_energy_comes_from_core():
    structure = calculate_internal_structure(1.0, 1.0, 1.0, EvolutionPhase.MAIN_SEQUENCE, 0.2, 1.0)
    assert structure.active_reactions.energy_production_rate == pytest.approx(0.99)
    assert structure.layer_structure.radiative_zone_radius == pytest.approx(0.7)
