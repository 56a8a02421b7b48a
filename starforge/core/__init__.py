"""
Simulation Core Module
======================

Configuration, data model, time management and the controller.
"""

from .config import SimulationConfig, CloudDefaults
from .bodies import (
    CloudParameters,
    EvolutionPhase,
    Planet,
    SimulationState,
    Star,
    StarSystem,
)
from .time_manager import SimulationTime
from .controller import SimulationController, SimulationSnapshot

__all__ = [
    'SimulationConfig',
    'CloudDefaults',
    'CloudParameters',
    'EvolutionPhase',
    'Planet',
    'SimulationState',
    'Star',
    'StarSystem',
    'SimulationTime',
    'SimulationController',
    'SimulationSnapshot',
]
