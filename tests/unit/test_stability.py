import math
from dataclasses import replace

import numpy as np
import pytest

from starforge.core.bodies import CloudParameters, StarSystem
from starforge.formation.stellar_evolution import create_star
from starforge.validation.errors import ErrorLog, SimulationErrorType
from starforge.validation.stability import (
    check_binary_stability,
    check_hierarchical_stability,
    check_planetary_orbit_stability,
    check_star_system_stability,
    estimate_stability_lifetime,
)


def _star(mass, position, name):
    star = create_star(mass, 1.0, name=name, rng=np.random.default_rng(0))
    return replace(star, radius=1.0, position=np.array(position, dtype=float))


def _system(stars):
    return StarSystem(id="sys", name="Test System", stars=stars, planets=[], age=0.0,
                      initial_cloud_parameters=CloudParameters(1.0, 1.0, 1e42))


def test_wide_binary_is_stable():
    log = ErrorLog()
    assert check_binary_stability(_star(1.0, [0, 0, 0], "A"), _star(1.0, [10, 0, 0], "B"), log)
    assert len(log) == 0


def test_contact_binary_is_unstable():
    log = ErrorLog()
    assert not check_binary_stability(_star(1.0, [0, 0, 0], "A"), _star(1.0, [0.001, 0, 0], "B"), log)

    entry = log.get_logs()[0]
    assert entry.error_type == SimulationErrorType.ORBITAL_INSTABILITY
    assert "too close" in entry.message


def test_very_wide_binary_is_unbound():
    log = ErrorLog()
    assert not check_binary_stability(_star(1.0, [0, 0, 0], "A"), _star(1.0, [5000, 0, 0], "B"), log)
    assert "unbound" in log.get_logs()[0].message


def test_check_without_log_still_returns_result():
    assert not check_binary_stability(_star(1.0, [0, 0, 0], "A"), _star(1.0, [0.001, 0, 0], "B"))


def test_hierarchical_triple():
    inner = [_star(1.0, [-0.5, 0, 0], "A"), _star(1.0, [0.5, 0, 0], "B")]

    assert check_hierarchical_stability(inner + [_star(0.5, [10, 0, 0], "C")])

    log = ErrorLog()
    assert not check_hierarchical_stability(inner + [_star(0.5, [0, 2, 0], "C")], log)
    assert log.get_logs()[0].details['outer_star'] == "C"


def test_single_star_system_is_stable():
    assert check_star_system_stability(_system([_star(1.0, [0, 0, 0], "A")]))
    assert check_hierarchical_stability([])


@pytest.mark.parametrize("distance, expected", [(1.0, True), (0.001, False), (2000.0, False)])
def test_planetary_orbit_stability(distance, expected):
    assert check_planetary_orbit_stability(distance, 1.0, 1.0) is expected


def test_stability_lifetime():
    single = _system([_star(1.0, [0, 0, 0], "A")])
    assert math.isinf(estimate_stability_lifetime(single))

    binary = _system([_star(1.0, [0, 0, 0], "A"), _star(2.0, [10, 0, 0], "B")])
    assert estimate_stability_lifetime(binary) == min(s.lifetime for s in binary.stars)

    # 1 AU pair in 3 M☉: T = sqrt(1 / (4π² · 3)) yr
    triple = _system([_star(1.0, [0, 0, 0], "A"), _star(1.0, [1, 0, 0], "B"),
                      _star(1.0, [20, 0, 0], "C")])
    expected = 1000.0 * math.sqrt(1.0 / (4 * math.pi**2 * 3.0))
    assert estimate_stability_lifetime(triple) == pytest.approx(expected)
