"""
Stellar Cluster Scenario
========================

Massive clump fragmenting into several stars, sampled by time jumps.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from ..core.bodies import CloudParameters
from ..core.config import SimulationConfig, create_cluster_forming_params
from ..core.controller import SimulationController
from ..validation.stability import estimate_stability_lifetime

Checkpoint = Tuple[float, List[str], np.ndarray]


@dataclass
class StellarClusterScenarioConfig:
    """Configuration for cluster scenario."""
    cloud: CloudParameters = field(default_factory=create_cluster_forming_params)
    checkpoints_years: Tuple[float, ...] = (1e6, 1e8, 1e9, 5e9, 2e10)
    seed: int = 7


class StellarClusterScenario:
    """
    Multiple-star formation scenario.

    Tests:
    - Fragmentation into several stars
    - Divergent evolution of stars of different mass
    - Rewinding with a backward jump

    Success criteria:
    - At least two stars form
    - Jumping back to the first checkpoint reproduces it exactly
    """

    def __init__(self, config: StellarClusterScenarioConfig = None):
        """
        Initialize cluster scenario.

        Args:
            config: Scenario configuration
        """
        self.config = config or StellarClusterScenarioConfig()
        self.sim_config = SimulationConfig(seed=self.config.seed)

        self.controller: Optional[SimulationController] = None
        self.results: Dict = {}
        self.checkpoints: List[Checkpoint] = []

    def setup(self):
        """Form the cluster."""
        self.controller = SimulationController(self.sim_config)
        self.controller.initialize_simulation(self.config.cloud)
        self.checkpoints.clear()

    def _capture(self) -> Checkpoint:
        system = self.controller.system
        return (
            self.controller.get_current_time(),
            [s.evolution_phase.value for s in system.stars],
            np.array([s.luminosity for s in system.stars]),
        )

    def run(self, progress_callback=None) -> Dict:
        """
        Run cluster scenario.

        Returns:
            Results dictionary
        """
        if self.controller is None:
            self.setup()

        system = self.controller.system
        print(f"Running Stellar Cluster Scenario: {len(system.stars)} star(s), "
              f"{len(self.config.checkpoints_years)} checkpoints")

        for i, target in enumerate(self.config.checkpoints_years):
            self.controller.jump_to_time(target)
            self.checkpoints.append(self._capture())
            if progress_callback:
                progress_callback((i + 1) / len(self.config.checkpoints_years))

        # Rewind to the first checkpoint
        self.controller.jump_to_time(self.config.checkpoints_years[0])
        rewound = self._capture()

        self.results = self._analyze_results(rewound)
        return self.results

    def _analyze_results(self, rewound: Checkpoint) -> Dict:
        """Analyze checkpoints and the rewind."""
        if not self.checkpoints:
            return {'success': False, 'reason': 'No data'}

        system = self.controller.system
        first = self.checkpoints[0]
        rewind_matches = rewound[1] == first[1] and np.allclose(rewound[2], first[2])

        masses = [s.mass for s in system.stars]
        final_phases = self.checkpoints[-1][1]

        return {
            'success': len(system.stars) >= 2 and rewind_matches,
            'num_stars': len(system.stars),
            'num_planets': len(system.planets),
            'star_masses': masses,
            'total_stellar_mass': system.total_stellar_mass,
            'star_formation_efficiency': system.total_stellar_mass / self.config.cloud.mass,
            'phases_by_checkpoint': {t: phases for t, phases, _ in self.checkpoints},
            'final_phases': final_phases,
            'rewind_matches': rewind_matches,
            'stability_lifetime_years': estimate_stability_lifetime(system),
            'num_errors': len(self.controller.error_log),
        }

    def get_summary(self) -> str:
        """Get human-readable summary."""
        if not self.results:
            return "Scenario not yet run."

        status = "SUCCESS ✓" if self.results['success'] else "FAILED ✗"
        masses = ', '.join(f"{m:.2f}" for m in self.results['star_masses'])

        return f"""
Stellar Cluster Scenario Summary
================================
Result: {status}

Stars: {self.results['num_stars']} ({masses} M☉)
Efficiency: {self.results['star_formation_efficiency'] * 100:.1f}%
Planets: {self.results['num_planets']}

Final phases: {', '.join(self.results['final_phases'])}
Rewind reproducible: {self.results['rewind_matches']}
Stability lifetime: {self.results['stability_lifetime_years']:.3g} yr
Logged issues: {self.results['num_errors']}
"""
