import math

import numpy as np
import pytest

from starforge import constants as const
from starforge.core.bodies import CloudParameters, EvolutionPhase
from starforge.core.config import CloudDefaults, create_binary_forming_params, create_cluster_forming_params
from starforge.formation import cloud_formation
from starforge.formation.cloud_formation import (
    calculate_mass_distribution,
    calculate_number_of_stars,
    calculate_star_formation_efficiency,
    configure_binary_system,
    generate_star_system_from_cloud,
    sample_salpeter_mass,
)
from starforge.formation.stellar_evolution import create_star
from starforge.physics.cloud import calculate_derived_properties
from starforge.validation.errors import ErrorLog, SimulationError, SimulationErrorType


def _star_count(mass, **overrides):
    params = CloudParameters(mass=mass, metallicity=1.0, angular_momentum=1e42, **overrides)
    resolved = params.resolved(CloudDefaults())
    return calculate_number_of_stars(resolved, calculate_derived_properties(resolved))


@pytest.mark.parametrize("mass, expected", [(1.0, 1), (2.3, 1), (3.0, 2), (5.0, 3)])
def test_number_of_stars_grows_with_mass(mass, expected):
    assert _star_count(mass) == expected


def test_cloud_below_jeans_mass_forms_nothing():
    assert _star_count(0.3) == 0


def test_unbound_cloud_forms_nothing():
    assert _star_count(5.0, turbulence_velocity=3.0) == 0


def test_star_count_capped_for_massive_clumps():
    for mass in (100.0, 1000.0):
        assert _star_count(mass) == const.MAX_FRAGMENTS


@pytest.mark.parametrize("alpha, expected", [
    (0.0, 0.5),
    (0.5, 0.4),
    (1.0, 0.3),
    (2.0, 0.1),
    (3.0, 0.1 * math.exp(-1)),
    (50.0, 0.01),
])
def test_star_formation_efficiency(alpha, expected):
    assert calculate_star_formation_efficiency(alpha) == pytest.approx(expected)


def test_salpeter_sample_covers_range():
    assert sample_salpeter_mass(0.0, 0.1, 10.0) == pytest.approx(0.1)
    assert sample_salpeter_mass(1.0, 0.1, 10.0) == pytest.approx(10.0)
    # Bottom-heavy: the median is close to the lower limit
    assert sample_salpeter_mass(0.5, 0.1, 10.0) < 0.2


def test_single_star_takes_all_available_mass():
    masses = calculate_mass_distribution(2.0, 1, 0.4, np.random.default_rng(0))
    assert masses == [pytest.approx(0.8)]


def test_mass_distribution_is_sorted_and_seeded():
    limits = const.VALIDATION_RANGES.stellar_mass
    for seed in range(10):
        masses = calculate_mass_distribution(20.0, 4, 0.3, np.random.default_rng(seed))
        again = calculate_mass_distribution(20.0, 4, 0.3, np.random.default_rng(seed))
        assert masses == again
        assert len(masses) == 4
        assert masses == sorted(masses, reverse=True)
        assert all(limits.min <= m <= limits.max for m in masses)
        if all(limits.min < m < limits.max for m in masses):
            assert sum(masses) == pytest.approx(6.0)


def test_binary_conserves_centre_of_mass_and_momentum():
    rng = np.random.default_rng(1)
    star1 = create_star(1.2, 1.0, rng=rng)
    star2 = create_star(0.6, 1.0, rng=rng)
    a, b = configure_binary_system(star1, star2, 1e46, rng)

    assert np.allclose(a.mass * a.position + b.mass * b.position, 0.0, atol=1e-9)
    assert np.allclose(a.mass * a.velocity + b.mass * b.velocity, 0.0, atol=1e-9)
    assert np.linalg.norm(b.position - a.position) > 1.0
    # Inputs are not moved
    assert np.allclose(star1.position, 0.0)


def test_generated_system_starts_at_age_zero():
    params = CloudParameters(mass=1.0, metallicity=1.0, angular_momentum=1e42)
    system = generate_star_system_from_cloud(params, rng=np.random.default_rng(0))

    assert len(system.stars) == 1
    assert system.age == 0.0
    assert system.planets == []
    assert system.initial_cloud_parameters is params
    assert system.name == "Alpha System"

    star = system.stars[0]
    assert star.evolution_phase == EvolutionPhase.PROTOSTAR
    assert star.mass == pytest.approx(params.mass * calculate_star_formation_efficiency(
        system.derived_cloud_properties.virial_parameter))


def test_generation_is_reproducible():
    params = create_binary_forming_params()
    a = generate_star_system_from_cloud(params, rng=np.random.default_rng(11))
    b = generate_star_system_from_cloud(params, rng=np.random.default_rng(11))
    assert a.id == b.id
    assert [s.mass for s in a.stars] == [s.mass for s in b.stars]
    assert all(np.array_equal(s.position, t.position) for s, t in zip(a.stars, b.stars))


def test_binary_stars_named_by_mass():
    system = generate_star_system_from_cloud(create_binary_forming_params(),
                                             rng=np.random.default_rng(2))
    assert [s.name for s in system.stars] == ['Alpha', 'Beta']
    assert system.stars[0].mass >= system.stars[1].mass


def test_hierarchical_companions_sit_outside_inner_binary():
    system = generate_star_system_from_cloud(create_cluster_forming_params(),
                                             rng=np.random.default_rng(4))
    assert len(system.stars) == 3

    inner = np.linalg.norm(system.stars[1].position - system.stars[0].position)
    outer = np.linalg.norm(system.stars[2].position)
    assert outer == pytest.approx(9 * inner)


def test_insufficient_mass_raises():
    params = CloudParameters(mass=0.3, metallicity=1.0, angular_momentum=1e42)
    log = ErrorLog()
    with pytest.raises(SimulationError) as excinfo:
        generate_star_system_from_cloud(params, rng=np.random.default_rng(0), error_log=log)
    assert excinfo.value.error_type == SimulationErrorType.INSUFFICIENT_MASS
    assert not excinfo.value.recoverable
    assert excinfo.value.details['jeans_mass'] > 0.3


def test_capped_fragmentation_is_logged():
    params = CloudParameters(mass=100.0, metallicity=1.0, angular_momentum=1e42)
    log = ErrorLog()
    system = generate_star_system_from_cloud(params, rng=np.random.default_rng(0), error_log=log)

    assert len(system.stars) == const.MAX_FRAGMENTS
    assert log.get_error_counts()[SimulationErrorType.EXTREME_VALUES] == 1


def test_estimate_rounding_to_zero_is_not_flagged(monkeypatch):
    monkeypatch.setattr(cloud_formation, "_fragment_estimate", lambda params, derived: 0)

    log = ErrorLog()
    params = CloudParameters(mass=2.3, metallicity=1.0, angular_momentum=1e42)
    system = generate_star_system_from_cloud(params, rng=np.random.default_rng(0), error_log=log)

    assert len(system.stars) == 1
    assert log.get_error_counts()[SimulationErrorType.EXTREME_VALUES] == 0


def test_non_finite_stellar_mass_is_rejected(monkeypatch):
    monkeypatch.setattr(cloud_formation, "calculate_mass_distribution",
                        lambda total, n, efficiency, rng: [float("nan")])

    params = CloudParameters(mass=2.3, metallicity=1.0, angular_momentum=1e42)
    with pytest.raises(SimulationError) as excinfo:
        generate_star_system_from_cloud(params, rng=np.random.default_rng(0), error_log=ErrorLog())
    assert excinfo.value.error_type == SimulationErrorType.NUMERICAL_INSTABILITY
