"""
Celestial Bodies
================

Data model: cloud parameters, stars, planets, disks and star systems.
"""

import uuid
import numpy as np
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .config import CloudDefaults


def generate_id(rng: Optional[np.random.Generator] = None) -> str:
    """Random UUID4 string, reproducible when drawn from a seeded generator."""
    if rng is None:
        return str(uuid.uuid4())
    return str(uuid.UUID(bytes=rng.bytes(16), version=4))


class EvolutionPhase(Enum):
    """Stellar evolutionary phase."""
    PROTOSTAR = 'protostar'
    MAIN_SEQUENCE = 'main_sequence'
    RED_GIANT = 'red_giant'
    HORIZONTAL_BRANCH = 'horizontal_branch'
    ASYMPTOTIC_GIANT = 'asymptotic_giant'
    PLANETARY_NEBULA = 'planetary_nebula'
    WHITE_DWARF = 'white_dwarf'
    NEUTRON_STAR = 'neutron_star'
    BLACK_HOLE = 'black_hole'


class SpectralType(Enum):
    """Harvard spectral class."""
    O = 'O'
    B = 'B'
    A = 'A'
    F = 'F'
    G = 'G'
    K = 'K'
    M = 'M'


class PlanetComposition(Enum):
    ROCKY = 'rocky'
    ICE_GIANT = 'ice_giant'
    GAS_GIANT = 'gas_giant'


class NuclearReaction(Enum):
    NONE = 'none'
    PP_CHAIN = 'pp_chain'
    CNO_CYCLE = 'cno_cycle'
    TRIPLE_ALPHA = 'triple_alpha'
    HELIUM_CARBON = 'helium_carbon'
    CARBON_BURNING = 'carbon_burning'
    NEON_BURNING = 'neon_burning'
    OXYGEN_BURNING = 'oxygen_burning'
    SILICON_BURNING = 'silicon_burning'


class SimulationState(Enum):
    """Controller run state."""
    STOPPED = 'stopped'
    RUNNING = 'running'
    PAUSED = 'paused'


@dataclass(frozen=True)
class CloudParameters:
    """Initial conditions of the collapsing cloud."""
    mass: float                                      # M☉
    metallicity: float                               # Z☉
    angular_momentum: float                          # kg·m²/s
    temperature: Optional[float] = None              # K
    radius: Optional[float] = None                   # pc
    turbulence_velocity: Optional[float] = None      # km/s
    magnetic_field_strength: Optional[float] = None  # μG

    def resolved(self, defaults: 'CloudDefaults') -> 'CloudParameters':
        """Copy with every optional field filled in from ``defaults``."""
        return replace(
            self,
            temperature=defaults.temperature_K if self.temperature is None else self.temperature,
            radius=defaults.radius_pc if self.radius is None else self.radius,
            turbulence_velocity=(defaults.turbulence_velocity_km_s
                                 if self.turbulence_velocity is None
                                 else self.turbulence_velocity),
            magnetic_field_strength=(defaults.magnetic_field_uG
                                     if self.magnetic_field_strength is None
                                     else self.magnetic_field_strength),
        )


@dataclass(frozen=True)
class DerivedCloudProperties:
    """Bulk properties computed once from CloudParameters."""
    density: float                      # particles/cm³
    virial_parameter: float
    is_bound: bool
    jeans_mass: float                   # M☉
    collapse_timescale: float           # yr
    turbulent_jeans_length: float       # pc
    magnetic_flux_to_mass_ratio: float  # in units of the critical ratio


@dataclass
class CoreComposition:
    """Core mass fractions."""
    hydrogen: float = 0.0
    helium: float = 0.0
    carbon: float = 0.0
    oxygen: float = 0.0
    neon: float = 0.0
    magnesium: float = 0.0
    silicon: float = 0.0
    iron: float = 0.0

    def total(self) -> float:
        return (self.hydrogen + self.helium + self.carbon + self.oxygen +
                self.neon + self.magnesium + self.silicon + self.iron)

    def normalized(self) -> 'CoreComposition':
        total = self.total()
        if total <= 0:
            return replace(self)
        return CoreComposition(
            hydrogen=self.hydrogen / total,
            helium=self.helium / total,
            carbon=self.carbon / total,
            oxygen=self.oxygen / total,
            neon=self.neon / total,
            magnesium=self.magnesium / total,
            silicon=self.silicon / total,
            iron=self.iron / total,
        )


@dataclass
class ShellBurning:
    hydrogen_shell: bool = False
    helium_shell: bool = False
    carbon_shell: bool = False


@dataclass
class LayerStructure:
    """Layer boundaries as fractions of the stellar radius."""
    core_radius: float = 0.25
    radiative_zone_radius: float = 0.7
    convective_zone_radius: float = 1.0


@dataclass
class ActiveReactions:
    core_reaction: NuclearReaction = NuclearReaction.NONE
    shell_reactions: List[NuclearReaction] = field(default_factory=list)
    energy_production_rate: float = 0.0  # L☉


@dataclass
class InternalStructure:
    """Snapshot of the stellar interior."""
    core_composition: CoreComposition
    core_temperature: float   # K
    core_pressure: float      # Pa
    active_reactions: ActiveReactions
    shell_burning: ShellBurning
    layer_structure: LayerStructure


@dataclass
class OrbitalElements:
    """Keplerian elements, angles in radians."""
    semi_major_axis: float        # AU
    eccentricity: float = 0.0
    inclination: float = 0.0
    raan: float = 0.0             # longitude of ascending node
    arg_periapsis: float = 0.0
    mean_anomaly_epoch: float = 0.0


@dataclass
class Star:
    """A single star. Luminosity, radius and temperature are in solar units / K."""
    id: str
    name: str
    mass: float                     # M☉
    radius: float                   # R☉
    luminosity: float               # L☉
    temperature: float              # K
    age: float                      # yr
    metallicity: float              # Z☉
    spectral_type: SpectralType
    evolution_phase: EvolutionPhase
    lifetime: float                 # yr
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))  # AU
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))  # AU/yr
    internal_structure: Optional[InternalStructure] = None

    @property
    def age_ratio(self) -> float:
        return self.age / self.lifetime


@dataclass
class Planet:
    """A planet on a fixed Keplerian orbit around its parent star."""
    id: str
    name: str
    mass: float                     # M⊕
    radius: float                   # R⊕
    composition: PlanetComposition
    semi_major_axis: float          # AU
    eccentricity: float
    orbital_period: float           # yr
    parent_star_id: str
    orbit: OrbitalElements
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))  # AU


@dataclass
class ProtoplanetaryDisk:
    """Transient disk consumed during planet generation."""
    star_id: str
    mass: float                     # M☉
    inner_radius: float             # AU
    outer_radius: float             # AU
    snow_line: float                # AU
    metallicity: float
    magnetic_braking_factor: Optional[float] = None


@dataclass
class StarSystem:
    """Stars and planets formed from one cloud."""
    id: str
    name: str
    stars: List[Star]
    planets: List[Planet]
    age: float
    initial_cloud_parameters: CloudParameters
    derived_cloud_properties: Optional[DerivedCloudProperties] = None

    def get_star(self, star_id: str) -> Optional[Star]:
        for star in self.stars:
            if star.id == star_id:
                return star
        return None

    def planets_of(self, star_id: str) -> List[Planet]:
        return [p for p in self.planets if p.parent_star_id == star_id]

    @property
    def total_stellar_mass(self) -> float:
        return sum(star.mass for star in self.stars)


@dataclass(frozen=True)
class SimulationStatus:
    """Read-only view of the controller."""
    state: SimulationState
    current_time: float
    time_scale: float
    system: Optional[StarSystem]
