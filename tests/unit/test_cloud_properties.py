from dataclasses import replace

import pytest

from starforge.core.bodies import CloudParameters
from starforge.core.config import CloudDefaults
from starforge.physics.cloud import (
    calculate_collapse_timescale,
    calculate_derived_properties,
    calculate_jeans_mass,
    calculate_magnetic_flux_to_mass_ratio,
    calculate_virial_parameter,
)


@pytest.fixture
def core():
    return CloudParameters(mass=1.0, metallicity=1.0, angular_momentum=1e42).resolved(CloudDefaults())


def test_defaults_fill_unset_fields_only():
    params = CloudParameters(mass=1.0, metallicity=1.0, angular_momentum=1e42, temperature=20.0)
    resolved = params.resolved(CloudDefaults())
    assert resolved.temperature == 20.0
    assert resolved.radius == CloudDefaults().radius_pc
    assert resolved.turbulence_velocity == CloudDefaults().turbulence_velocity_km_s
    assert resolved.magnetic_field_strength == CloudDefaults().magnetic_field_uG
    # Original is untouched
    assert params.radius is None


def test_dense_core_is_bound_and_unstable(core):
    derived = calculate_derived_properties(core)
    assert derived.is_bound
    assert derived.virial_parameter == pytest.approx(0.697, rel=1e-2)
    assert derived.jeans_mass == pytest.approx(0.486, rel=1e-2)
    assert derived.jeans_mass < core.mass
    assert derived.density > 1e5


def test_unset_fields_use_defaults():
    params = CloudParameters(mass=1.0, metallicity=1.0, angular_momentum=1e42)
    assert calculate_derived_properties(params) == calculate_derived_properties(
        params.resolved(CloudDefaults()))


def test_jeans_mass_scales_with_temperature(core):
    hotter = replace(core, temperature=core.temperature * 4)
    assert calculate_jeans_mass(hotter) == pytest.approx(8 * calculate_jeans_mass(core))


def test_virial_parameter_scales_with_turbulence(core):
    stirred = replace(core, turbulence_velocity=core.turbulence_velocity * 3)
    assert calculate_virial_parameter(stirred) == pytest.approx(9 * calculate_virial_parameter(core))


def test_fast_turbulence_unbinds_cloud(core):
    derived = calculate_derived_properties(replace(core, turbulence_velocity=2.0))
    assert not derived.is_bound


def test_free_fall_time_of_dense_core(core):
    assert calculate_collapse_timescale(core) == pytest.approx(3.04e4, rel=0.02)


def test_flux_to_mass_ratio_linear_in_field(core):
    doubled = replace(core, magnetic_field_strength=core.magnetic_field_strength * 2)
    assert calculate_magnetic_flux_to_mass_ratio(doubled) == pytest.approx(
        2 * calculate_magnetic_flux_to_mass_ratio(core))
    # Weak field, magnetically supercritical
    assert calculate_magnetic_flux_to_mass_ratio(core) < 1.0
