"""
Formation Module
================

Cloud collapse, stellar evolution and planet formation.
"""

from .cloud_formation import generate_star_system_from_cloud
from .stellar_evolution import create_star, evolve_star
from .planetary_formation import create_protoplanetary_disk, generate_planets

__all__ = [
    'generate_star_system_from_cloud',
    'create_star',
    'evolve_star',
    'create_protoplanetary_disk',
    'generate_planets',
]
