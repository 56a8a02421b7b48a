"""
Solar Analog Scenario
=====================

Single-star system followed from collapse through its whole life.
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..core.bodies import CloudParameters, EvolutionPhase, SimulationState
from ..core.config import SimulationConfig, create_solar_nebula_params
from ..core.controller import SimulationController, SimulationSnapshot

PHASE_ORDER = list(EvolutionPhase)


@dataclass
class SolarAnalogScenarioConfig:
    """Configuration for solar analog scenario."""
    cloud: CloudParameters = field(default_factory=create_solar_nebula_params)
    duration_years: float = 1.2e10    # past the main-sequence lifetime
    num_steps: int = 500
    time_scale: float = 1000.0        # yr per driver time unit
    seed: int = 42


class SolarAnalogScenario:
    """
    Single-star life cycle scenario.

    Simulates:
    - Collapse of a Sun-like core into one star
    - Disk and planet formation
    - Evolution in fixed steps driven through the time scale

    Success criteria:
    - Exactly one star forms
    - Evolution phases never go backwards
    """

    def __init__(self, config: SolarAnalogScenarioConfig = None):
        """
        Initialize solar analog scenario.

        Args:
            config: Scenario configuration
        """
        self.config = config or SolarAnalogScenarioConfig()
        self.sim_config = SimulationConfig(seed=self.config.seed)

        self.controller: Optional[SimulationController] = None
        self.results: Dict = {}
        self.history: List[SimulationSnapshot] = []

    def setup(self):
        """Form the system and start the clock."""
        self.controller = SimulationController(self.sim_config)
        self.controller.initialize_simulation(self.config.cloud)
        self.controller.set_time_scale(self.config.time_scale)
        self.history.clear()
        self.controller.add_step_callback(self._record)
        self.controller.start_simulation()

    def _record(self, controller: SimulationController, snapshot: SimulationSnapshot):
        self.history.append(snapshot)

    def run(self, progress_callback=None) -> Dict:
        """
        Run solar analog scenario.

        Returns:
            Results dictionary
        """
        if self.controller is None:
            self.setup()

        controller = self.controller
        step_years = self.config.duration_years / self.config.num_steps

        print(f"Running Solar Analog Scenario: "
              f"{controller.time.format_years(self.config.duration_years)}")
        print(f"  System: {controller.system.name}, "
              f"{len(controller.system.planets)} planet(s)")

        driver_delta = step_years / controller.get_time_scale()
        for _ in range(self.config.num_steps):
            if controller.get_state() != SimulationState.RUNNING:
                break
            controller.update_simulation(controller.time.scaled(driver_delta))

            if progress_callback and controller.time.step_count % 50 == 0:
                progress_callback(controller.get_current_time() / self.config.duration_years)

        controller.pause_simulation()

        self.results = self._analyze_results()
        return self.results

    def _analyze_results(self) -> Dict:
        """Analyze evolutionary track of the primary."""
        if not self.history:
            return {'success': False, 'reason': 'No data'}

        system = self.controller.system
        primary = system.stars[0]

        phases = [s.phases[0] for s in self.history]
        visited = [p for i, p in enumerate(phases) if i == 0 or p != phases[i - 1]]
        ranks = [PHASE_ORDER.index(EvolutionPhase(p)) for p in phases]
        monotonic = all(a <= b for a, b in zip(ranks, ranks[1:]))

        main_sequence_start = next(
            (s.time_years for s in self.history
             if s.phases[0] == EvolutionPhase.MAIN_SEQUENCE.value), None)

        luminosities = np.array([s.luminosities[0] for s in self.history])

        return {
            'success': len(system.stars) == 1 and monotonic,
            'num_stars': len(system.stars),
            'num_planets': len(system.planets),
            'star_mass': primary.mass,
            'lifetime_years': primary.lifetime,
            'phases_visited': visited,
            'phases_monotonic': monotonic,
            'main_sequence_start_years': main_sequence_start,
            'final_phase': primary.evolution_phase.value,
            'final_luminosity': primary.luminosity,
            'peak_luminosity': float(luminosities.max()),
            'final_time_years': self.controller.get_current_time(),
            'num_errors': len(self.controller.error_log),
        }

    def get_summary(self) -> str:
        """Get human-readable summary."""
        if not self.results:
            return "Scenario not yet run."

        status = "SUCCESS ✓" if self.results['success'] else "FAILED ✗"
        fmt = self.controller.time.format_years
        ms_start = self.results['main_sequence_start_years']

        return f"""
Solar Analog Scenario Summary
=============================
Result: {status}

Star: {self.results['star_mass']:.3f} M☉, lifetime {fmt(self.results['lifetime_years'])}
Planets: {self.results['num_planets']}

Main sequence from: {fmt(ms_start) if ms_start is not None else 'N/A'}
Phases: {' -> '.join(self.results['phases_visited'])}
Final phase: {self.results['final_phase']} at {fmt(self.results['final_time_years'])}
Peak luminosity: {self.results['peak_luminosity']:.3g} L☉
Logged issues: {self.results['num_errors']}
"""

    def plot_results(self):
        """Plot the primary's track on a Hertzsprung-Russell diagram."""
        import matplotlib.pyplot as plt

        temperatures = np.array([s.temperatures[0] for s in self.history])
        luminosities = np.array([s.luminosities[0] for s in self.history])
        visible = (temperatures > 0) & (luminosities > 0)

        fig, ax = plt.subplots(figsize=(8, 6))
        ax.loglog(temperatures[visible], luminosities[visible], marker='.')
        ax.invert_xaxis()
        ax.set_xlabel('Effective Temperature (K)')
        ax.set_ylabel('Luminosity (L☉)')
        ax.set_title('Evolutionary Track')
        ax.grid(True, which='both', alpha=0.3)

        plt.tight_layout()
        return fig
