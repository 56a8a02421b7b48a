#!/usr/bin/env python3
"""
StarForge Simulation Example
============================

Example script demonstrating the simulation framework.
"""

import time

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from starforge.core.config import (
    SimulationConfig,
    create_binary_forming_params,
    create_solar_nebula_params,
)
from starforge.core.controller import SimulationController
from starforge.core.time_manager import SimulationTime
from starforge.validation.errors import SimulationError


def run_quick_simulation():
    """Form a single-star system and evolve it to 1 Gyr."""
    print("=" * 60)
    print("StarForge Quick Simulation")
    print("=" * 60)

    params = create_solar_nebula_params()
    controller = SimulationController(SimulationConfig(seed=42))

    print(f"\nCloud Parameters:")
    print(f"  Mass: {params.mass} M☉")
    print(f"  Metallicity: {params.metallicity} Z☉")
    print(f"  Angular momentum: {params.angular_momentum:.1e} kg·m²/s")

    system = controller.initialize_simulation(params)
    derived = system.derived_cloud_properties
    print(f"\nDerived Properties:")
    print(f"  Jeans mass: {derived.jeans_mass:.3f} M☉")
    print(f"  Virial parameter: {derived.virial_parameter:.3f}")
    print(f"  Free-fall time: {SimulationTime.format_years(derived.collapse_timescale)}")

    print("\nRunning simulation...")
    start_time = time.time()

    controller.start_simulation()
    for _ in range(100):
        controller.update_simulation(1e7)

    elapsed = time.time() - start_time
    print(f"Simulation complete in {elapsed:.2f}s")

    print(f"\nFinal State ({SimulationTime.format_years(controller.get_current_time())}):")
    for star in system.stars:
        print(f"  {star.name}: {star.mass:.3f} M☉, {star.spectral_type.value}-type "
              f"{star.evolution_phase.value}, L={star.luminosity:.3g} L☉, "
              f"T={star.temperature:.0f} K")
    for planet in system.planets:
        print(f"  {planet.name}: {planet.composition.value}, {planet.mass:.2f} M⊕ "
              f"at {planet.semi_major_axis:.2f} AU")


def run_binary_evolution():
    """Follow a binary through its stars' lives with time jumps."""
    print("\n" + "=" * 60)
    print("Binary Evolution")
    print("=" * 60)

    controller = SimulationController(SimulationConfig(seed=3))
    system = controller.initialize_simulation(create_binary_forming_params())

    print(f"\n{'Age':>10} " + " ".join(f"{s.name:>22}" for s in system.stars))
    print("-" * (11 + 23 * len(system.stars)))

    for age in (1e6, 1e8, 1e9, 1e10, 5e10):
        controller.jump_to_time(age)
        phases = " ".join(f"{s.evolution_phase.value:>22}"
                          for s in controller.get_current_system().stars)
        print(f"{SimulationTime.format_years(age):>10} {phases}")


def run_cluster_scenario():
    """Run cluster scenario."""
    print("\n" + "=" * 60)
    print("Stellar Cluster Scenario")
    print("=" * 60)

    from starforge.scenarios.cluster import StellarClusterScenario

    scenario = StellarClusterScenario()
    scenario.run()

    print(scenario.get_summary())


def run_solar_analog_scenario():
    """Run solar analog scenario."""
    print("\n" + "=" * 60)
    print("Solar Analog Scenario")
    print("=" * 60)

    from starforge.scenarios.solar_analog import SolarAnalogScenario, SolarAnalogScenarioConfig

    # Fewer steps for demo
    scenario = SolarAnalogScenario(SolarAnalogScenarioConfig(num_steps=100))
    scenario.run()

    print(scenario.get_summary())


def demonstrate_failed_collapse():
    """Show the error raised by a cloud too light to collapse."""
    print("\n" + "=" * 60)
    print("Failed Collapse")
    print("=" * 60)

    from starforge.core.bodies import CloudParameters

    controller = SimulationController()
    try:
        controller.initialize_simulation(
            CloudParameters(mass=0.3, metallicity=1.0, angular_momentum=1e42))
    except SimulationError as error:
        print(f"\n  {error.error_type.value}: {error.message}")

    print(f"  Logged errors: {len(controller.error_log)}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="StarForge Simulation Examples")
    parser.add_argument('--all', action='store_true', help='Run all examples')
    parser.add_argument('--quick', action='store_true', help='Run quick simulation')
    parser.add_argument('--binary', action='store_true', help='Binary evolution with jumps')
    parser.add_argument('--cluster', action='store_true', help='Run cluster scenario')
    parser.add_argument('--solar', action='store_true', help='Run solar analog scenario')
    parser.add_argument('--collapse', action='store_true', help='Failed collapse demo')

    args = parser.parse_args()

    # Default to quick if no args
    if not any(vars(args).values()):
        args.quick = True

    if args.all or args.quick:
        run_quick_simulation()

    if args.all or args.binary:
        run_binary_evolution()

    if args.all or args.cluster:
        run_cluster_scenario()

    if args.all or args.solar:
        run_solar_analog_scenario()

    if args.all or args.collapse:
        demonstrate_failed_collapse()

    print("\n" + "=" * 60)
    print("Examples complete!")
    print("=" * 60)
