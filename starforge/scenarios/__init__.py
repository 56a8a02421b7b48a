"""
Simulation Scenarios
====================

Pre-configured star system runs.
"""

from .solar_analog import SolarAnalogScenario
from .cluster import StellarClusterScenario

__all__ = [
    'SolarAnalogScenario',
    'StellarClusterScenario',
]
