"""
StarForge Stellar System Simulation
===================================

Python framework for simulating how star systems form and evolve.

Pipeline:
- Molecular cloud collapse (Jeans mass, virial parameter, fragmentation)
- Star formation (Salpeter masses, binary and hierarchical orbits)
- Protoplanetary disks and planet formation
- Stellar evolution from protostar to remnant
- Internal structure (core composition, burning shells, layers)

Time control:
- Start, pause, reset
- Time scale and jumps to arbitrary ages
"""

__version__ = "1.0.0"

from starforge.core.bodies import CloudParameters, Planet, Star, StarSystem
from starforge.core.config import SimulationConfig
from starforge.core.controller import SimulationController
from starforge.validation.errors import ErrorLog, SimulationError, SimulationErrorType

__all__ = [
    'SimulationController',
    'SimulationConfig',
    'CloudParameters',
    'Star',
    'Planet',
    'StarSystem',
    'ErrorLog',
    'SimulationError',
    'SimulationErrorType',
]
