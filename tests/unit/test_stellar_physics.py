import numpy as np
import pytest

from starforge.core.bodies import SpectralType
from starforge.physics.stellar import (
    calculate_luminosity,
    calculate_main_sequence_lifetime,
    calculate_radius,
    calculate_temperature,
    determine_spectral_type,
)
from starforge.validation.errors import SimulationError, SimulationErrorType


def test_sun_like_star_has_solar_values():
    assert calculate_luminosity(1.0) == pytest.approx(1.0)
    assert calculate_radius(1.0) == pytest.approx(1.0)
    assert calculate_main_sequence_lifetime(1.0) == pytest.approx(1e10)

    temperature = calculate_temperature(1.0, 1.0)
    assert temperature == pytest.approx(5772, abs=30)
    assert determine_spectral_type(temperature) == SpectralType.G


@pytest.mark.parametrize("breakpoint", [0.43, 2.0, 55.0])
def test_luminosity_is_continuous_at_band_edges(breakpoint):
    below = calculate_luminosity(breakpoint * (1 - 1e-9))
    at = calculate_luminosity(breakpoint)
    assert below == pytest.approx(at, rel=1e-6)


def test_luminosity_and_radius_grow_with_mass():
    masses = np.logspace(np.log10(0.08), np.log10(150), 60)
    luminosities = [calculate_luminosity(m) for m in masses]
    radii = [calculate_radius(m) for m in masses]
    assert all(a < b for a, b in zip(luminosities, luminosities[1:]))
    assert all(a < b for a, b in zip(radii, radii[1:]))


def test_massive_stars_live_shorter():
    assert calculate_main_sequence_lifetime(10.0) < calculate_main_sequence_lifetime(1.0)
    assert calculate_main_sequence_lifetime(0.3) > calculate_main_sequence_lifetime(1.0)


@pytest.mark.parametrize("temperature, expected", [
    (40000.0, SpectralType.O),
    (30000.0, SpectralType.O),
    (29999.0, SpectralType.B),
    (8000.0, SpectralType.A),
    (6500.0, SpectralType.F),
    (5200.0, SpectralType.G),
    (4000.0, SpectralType.K),
    (3000.0, SpectralType.M),
])
def test_spectral_type_thresholds(temperature, expected):
    assert determine_spectral_type(temperature) == expected


@pytest.mark.parametrize("mass", [0.0, -1.0, float('nan')])
def test_non_positive_mass_rejected(mass):
    with pytest.raises(SimulationError) as excinfo:
        calculate_luminosity(mass)
    assert excinfo.value.error_type == SimulationErrorType.INVALID_PARAMETERS


def test_temperature_requires_positive_radius():
    with pytest.raises(SimulationError):
        calculate_temperature(1.0, 0.0)
