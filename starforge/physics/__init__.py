"""
Physics Module
==============

Stateless physical relations: stellar, orbital, cloud, disk and
internal-structure kernels.
"""

from .stellar import (
    calculate_luminosity,
    calculate_radius,
    calculate_temperature,
    determine_spectral_type,
    calculate_main_sequence_lifetime,
)
from .orbital import calculate_orbital_period, calculate_orbital_position, calculate_hill_radius
from .cloud import calculate_derived_properties
from .internal_structure import calculate_internal_structure

__all__ = [
    'calculate_luminosity',
    'calculate_radius',
    'calculate_temperature',
    'determine_spectral_type',
    'calculate_main_sequence_lifetime',
    'calculate_orbital_period',
    'calculate_orbital_position',
    'calculate_hill_radius',
    'calculate_derived_properties',
    'calculate_internal_structure',
]
