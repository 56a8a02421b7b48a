import matplotlib
import pytest

matplotlib.use("Agg")

from starforge.core.bodies import EvolutionPhase
from starforge.scenarios.cluster import StellarClusterScenario, StellarClusterScenarioConfig
from starforge.scenarios.solar_analog import SolarAnalogScenario, SolarAnalogScenarioConfig


def test_solar_analog_follows_a_single_star():
    scenario = SolarAnalogScenario(SolarAnalogScenarioConfig(num_steps=60))
    results = scenario.run()

    assert results['success']
    assert results['num_stars'] == 1
    assert results['phases_monotonic']
    assert results['final_phase'] == EvolutionPhase.WHITE_DWARF.value
    assert EvolutionPhase.MAIN_SEQUENCE.value in results['phases_visited']
    assert results['final_time_years'] == pytest.approx(scenario.config.duration_years)
    assert len(scenario.history) == 60
    assert "SUCCESS" in scenario.get_summary()


def test_solar_analog_plot():
    scenario = SolarAnalogScenario(SolarAnalogScenarioConfig(num_steps=20))
    scenario.run()
    fig = scenario.plot_results()
    assert fig.axes[0].get_xlabel() == 'Effective Temperature (K)'


def test_summary_before_run():
    assert SolarAnalogScenario().get_summary() == "Scenario not yet run."
    assert StellarClusterScenario().get_summary() == "Scenario not yet run."


def test_cluster_rewind_is_reproducible():
    scenario = StellarClusterScenario(StellarClusterScenarioConfig(checkpoints_years=(1e6, 1e9, 1e10)))
    results = scenario.run()

    assert results['num_stars'] >= 2
    assert results['rewind_matches']
    assert results['success']
    assert scenario.controller.get_current_time() == 1e6
    assert len(scenario.checkpoints) == 3
