"""
Simulation Controller
=====================

Lifecycle of a star-system simulation: formation from a cloud,
time evolution, pause/reset and time jumps.
"""

import logging
import numpy as np
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from .bodies import CloudParameters, Planet, SimulationState, SimulationStatus, Star, StarSystem
from .config import SimulationConfig
from .time_manager import SimulationTime
from ..formation.cloud_formation import generate_star_system_from_cloud
from ..formation.planetary_formation import (
    create_protoplanetary_disk,
    generate_planets,
    update_planet_position,
)
from ..formation.stellar_evolution import evolve_star
from ..validation.errors import (
    ErrorLog,
    SimulationError,
    SimulationErrorType,
    with_error_handling,
)
from ..validation.inputs import (
    ValidationResult,
    validate_cloud_parameters,
    validate_simulation_time,
    validate_time_scale,
)
from ..validation.stability import (
    check_planetary_orbit_stability,
    check_star_system_stability,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationSnapshot:
    """Stellar state after one update, for plotting and export."""
    time_years: float = 0.0
    step: int = 0
    star_names: List[str] = field(default_factory=list)
    phases: List[str] = field(default_factory=list)
    luminosities: np.ndarray = field(default_factory=lambda: np.zeros(0))   # L☉
    temperatures: np.ndarray = field(default_factory=lambda: np.zeros(0))   # K
    radii: np.ndarray = field(default_factory=lambda: np.zeros(0))          # R☉
    planet_positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))  # AU


class SimulationController:
    """
    Star system simulation engine.

    Coordinates:
    - Cloud collapse into stars
    - Disk and planet formation per star
    - Stellar evolution and planet orbital motion
    - Run state (STOPPED / RUNNING / PAUSED) and time control

    The controller does not run a clock of its own; a driver calls
    ``update_simulation`` with a step in years, typically
    ``controller.time.scaled(driver_delta)`` while the state is RUNNING.
    """

    def __init__(self,
                 config: Optional[SimulationConfig] = None,
                 error_log: Optional[ErrorLog] = None):
        """
        Initialize controller.

        Args:
            config: Simulation configuration
            error_log: Diagnostics sink (a fresh one if omitted)
        """
        self.config = config or SimulationConfig()
        self._error_log = error_log if error_log is not None else \
            ErrorLog(self.config.error_log_capacity)

        self.time = SimulationTime(time_scale=self.config.initial_time_scale)
        self.state = SimulationState.STOPPED
        self.system: Optional[StarSystem] = None

        # Kept so reset and backward jumps rebuild the identical system
        self._initial_params: Optional[CloudParameters] = None
        self._seed: Optional[int] = None

        self.history: Deque[SimulationSnapshot] = deque(maxlen=self.config.max_history)
        self.step_callbacks: List[Callable] = []

    @property
    def error_log(self) -> ErrorLog:
        return self._error_log

    @property
    def seed(self) -> Optional[int]:
        """Seed of the current system, None before initialization."""
        return self._seed

    # === Lifecycle ===

    def initialize_simulation(self,
                              params: CloudParameters,
                              seed: Optional[int] = None) -> StarSystem:
        """
        Form a new star system from cloud parameters.

        Nothing is changed if validation or collapse fails.

        Args:
            params: Cloud parameters
            seed: Random seed (config seed, then fresh entropy, if omitted)

        Returns:
            The generated star system at age zero

        Raises:
            SimulationError: INVALID_PARAMETERS for bad parameters,
                INSUFFICIENT_MASS if the cloud does not collapse
        """
        self._raise_if_invalid(validate_cloud_parameters(params), "Invalid cloud parameters")

        if seed is None:
            seed = self.config.seed
        if seed is None:
            seed = int(np.random.SeedSequence().entropy)

        system = self._build_system(params, seed)

        self.system = system
        self._initial_params = params
        self._seed = seed
        self.time.reset()
        self.state = SimulationState.STOPPED
        self.history.clear()

        if self.config.verbose:
            print(f"Initialized {system.name}: {len(system.stars)} star(s), "
                  f"{len(system.planets)} planet(s), seed {seed}")

        return system

    def _build_system(self, params: CloudParameters, seed: int) -> StarSystem:
        rng = np.random.default_rng(seed)

        try:
            system = generate_star_system_from_cloud(
                params, rng=rng, error_log=self._error_log,
                defaults=self.config.cloud_defaults)
        except SimulationError as error:
            self._error_log.log(error)
            raise

        if not check_star_system_stability(system, self._error_log):
            self._error_log.record(
                SimulationErrorType.UNSTABLE_SYSTEM,
                f"{system.name} may be dynamically unstable",
                details={'system_id': system.id, 'num_stars': len(system.stars)},
            )

        planets: List[Planet] = []
        for star in system.stars:
            try:
                disk = create_protoplanetary_disk(star, params.magnetic_field_strength)
                if disk is None:
                    continue
                formed = generate_planets(disk, star,
                                          max_planets=self.config.max_planets_per_star,
                                          rng=rng, error_log=self._error_log)
            except SimulationError as error:
                self._error_log.record(
                    error.error_type,
                    f"Failed to generate planets for {star.name}: {error.message}",
                    details={'star_id': star.id, 'star_name': star.name},
                )
                continue

            for planet in formed:
                check_planetary_orbit_stability(planet.semi_major_axis, star.radius,
                                                star.mass, self._error_log)
            planets.extend(formed)

        system.planets = planets
        logger.info("Built %s with %d star(s) and %d planet(s)",
                    system.name, len(system.stars), len(planets))
        return system

    def start_simulation(self):
        """Enter RUNNING. Requires an initialized system."""
        if self.system is None:
            raise SimulationError(
                SimulationErrorType.INVALID_PARAMETERS,
                "No simulation initialized. Call initialize_simulation first.",
            )
        self.state = SimulationState.RUNNING

    def pause_simulation(self):
        """Enter PAUSED; ignored unless RUNNING."""
        if self.state == SimulationState.RUNNING:
            self.state = SimulationState.PAUSED

    def reset_simulation(self):
        """Rebuild the initial system from the stored parameters and seed."""
        if self.system is None:
            return
        self.system = self._build_system(self._initial_params, self._seed)
        self.time.reset()
        self.state = SimulationState.STOPPED
        self.history.clear()

    # === Time control ===

    def set_time_scale(self, scale: float):
        """
        Set simulated years per driver time unit.

        Raises:
            SimulationError: INVALID_PARAMETERS outside [0.001, 1000]
        """
        self._raise_if_invalid(validate_time_scale(scale), "Invalid time scale")
        self.time.time_scale = scale

    def jump_to_time(self, target_time: float):
        """
        Move the simulation to ``target_time`` years.

        Jumping forward evolves by the difference. Jumping backward rebuilds
        the initial system and replays from zero, so its cost grows with the
        target time rather than the jump distance.

        Raises:
            SimulationError: INVALID_PARAMETERS with no system or a target
                outside [0, 1e11] yr
        """
        if self.system is None:
            self._raise_if_invalid(ValidationResult(["No simulation initialized"]),
                                   "Cannot jump")
        self._raise_if_invalid(validate_simulation_time(target_time), "Invalid target time")

        delta = target_time - self.time.elapsed_years
        if delta == 0:
            return

        if delta < 0:
            logger.debug("Rewinding from %.4g yr to %.4g yr", self.time.elapsed_years, target_time)
            self.system = self._build_system(self._initial_params, self._seed)
            self.time.reset()
            self.history.clear()
            if target_time > 0:
                self.update_simulation(target_time)
        else:
            self.update_simulation(delta)

    def update_simulation(self, delta_time: float):
        """
        Advance the simulation by ``delta_time`` years.

        Stars and planets that fail to update keep their previous state and
        the failure is logged.

        Args:
            delta_time: Step [yr], finite and non-negative

        Raises:
            SimulationError: INVALID_PARAMETERS for a bad step
        """
        if self.system is None:
            return

        try:
            self.time.check_step(delta_time)
        except SimulationError as error:
            self._error_log.log(error)
            raise

        current_time = self.time.elapsed_years + delta_time
        stars = [self._evolve(star, delta_time) for star in self.system.stars]

        # Planets follow their parents' updated positions
        stars_by_id = {star.id: star for star in stars}
        planets = [self._move(planet, stars_by_id, current_time)
                   for planet in self.system.planets]

        # Clock and system move together once every body is updated
        self.system.stars = stars
        self.system.planets = planets
        self.system.age = self.time.advance(delta_time)

        snapshot = self._snapshot()
        self.history.append(snapshot)

        for callback in self.step_callbacks:
            callback(self, snapshot)

    def _evolve(self, star: Star, delta_time: float) -> Star:
        return with_error_handling(
            lambda: evolve_star(star, delta_time),
            fallback=star,
            context=f"Failed to evolve star {star.name}",
            error_log=self._error_log,
        )

    def _move(self, planet: Planet, stars_by_id: Dict[str, Star], time: float) -> Planet:
        parent = stars_by_id.get(planet.parent_star_id)
        if parent is None:
            return planet
        return with_error_handling(
            lambda: update_planet_position(planet, parent, time),
            fallback=planet,
            context=f"Failed to update planet {planet.name}",
            error_log=self._error_log,
        )

    def _raise_if_invalid(self, result: ValidationResult, context: str):
        try:
            result.raise_if_invalid(context)
        except SimulationError as error:
            self._error_log.log(error)
            raise

    # === Status ===

    def get_status(self) -> SimulationStatus:
        return SimulationStatus(
            state=self.state,
            current_time=self.time.elapsed_years,
            time_scale=self.time.time_scale,
            system=self.system,
        )

    def get_current_system(self) -> Optional[StarSystem]:
        return self.system

    def get_current_time(self) -> float:
        """Elapsed simulated time [yr]."""
        return self.time.elapsed_years

    def get_state(self) -> SimulationState:
        return self.state

    def get_time_scale(self) -> float:
        return self.time.time_scale

    def add_step_callback(self, callback: Callable):
        """Add callback called as ``callback(controller, snapshot)`` after each update."""
        self.step_callbacks.append(callback)

    def _snapshot(self) -> SimulationSnapshot:
        stars = self.system.stars
        positions = np.array([p.position for p in self.system.planets]).reshape(-1, 3)
        return SimulationSnapshot(
            time_years=self.time.elapsed_years,
            step=self.time.step_count,
            star_names=[s.name for s in stars],
            phases=[s.evolution_phase.value for s in stars],
            luminosities=np.array([s.luminosity for s in stars]),
            temperatures=np.array([s.temperature for s in stars]),
            radii=np.array([s.radius for s in stars]),
            planet_positions=positions,
        )

    def get_telemetry(self) -> Dict:
        """
        Get current telemetry data.

        Returns:
            Dictionary of plain Python values
        """
        telemetry = {
            'time_years': self.time.elapsed_years,
            'step': self.time.step_count,
            'state': self.state.value,
            'time_scale': self.time.time_scale,
            'seed': self._seed,
            'error_counts': {k.value: v for k, v in self._error_log.get_error_counts().items()},
        }
        if self.system is None:
            return telemetry

        telemetry['system'] = self.system.name
        telemetry['stars'] = [
            {
                'name': s.name,
                'mass': s.mass,
                'phase': s.evolution_phase.value,
                'spectral_type': s.spectral_type.value,
                'luminosity': s.luminosity,
                'temperature': s.temperature,
                'radius': s.radius,
                'position': s.position.tolist(),
            }
            for s in self.system.stars
        ]
        telemetry['planets'] = [
            {
                'name': p.name,
                'composition': p.composition.value,
                'mass': p.mass,
                'semi_major_axis': p.semi_major_axis,
                'position': p.position.tolist(),
            }
            for p in self.system.planets
        ]
        return telemetry
