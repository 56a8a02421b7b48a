import csv
import json

import pytest

from starforge.core.config import SimulationConfig, create_binary_forming_params
from starforge.core.controller import SimulationController
from starforge.export import (
    PLANET_FIELDS,
    STAR_FIELDS,
    export_orbital_parameters,
    export_stellar_properties,
    export_telemetry_json,
)


@pytest.fixture
def controller():
    ctrl = SimulationController(SimulationConfig(seed=3))
    ctrl.initialize_simulation(create_binary_forming_params())
    ctrl.update_simulation(1e8)
    return ctrl


def _read_rows(path):
    lines = [line for line in path.read_text(encoding="utf-8").splitlines()
             if not line.startswith("#")]
    return list(csv.DictReader(lines))


def test_stellar_properties_csv(controller, tmp_path):
    system = controller.get_current_system()
    path = export_stellar_properties(system, tmp_path / "stars.csv")

    text = path.read_text(encoding="utf-8")
    assert text.startswith("# StarForge export")
    assert f"# System: {system.name}" in text

    rows = _read_rows(path)
    assert list(rows[0]) == STAR_FIELDS
    assert [r['name'] for r in rows] == [s.name for s in system.stars]
    assert float(rows[0]['age_yr']) == pytest.approx(1e8)
    assert float(rows[1]['x_au']) == pytest.approx(system.stars[1].position[0])


def test_orbital_parameters_csv_without_metadata(controller, tmp_path):
    system = controller.get_current_system()
    path = export_orbital_parameters(system, tmp_path / "out" / "planets.csv", include_metadata=False)

    text = path.read_text(encoding="utf-8")
    assert text.splitlines()[0] == ",".join(PLANET_FIELDS)

    rows = _read_rows(path)
    assert len(rows) == len(system.planets)
    star_ids = {s.id for s in system.stars}
    assert all(r['parent_star_id'] in star_ids for r in rows)


def test_telemetry_json(controller, tmp_path):
    path = export_telemetry_json(controller.get_telemetry(), tmp_path / "telemetry.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data['time_years'] == pytest.approx(1e8)
    assert data['seed'] == 3
    assert len(data['stars']) == len(controller.get_current_system().stars)
