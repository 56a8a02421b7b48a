"""
Data Export
===========

CSV and JSON export of a star system's current state.

CSV files may start with ``#`` comment lines describing the system and the
cloud it formed from; the rows follow a single header line.
"""

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from .core.bodies import StarSystem
from .core.config import CloudDefaults

STAR_FIELDS = [
    'id', 'name', 'mass_msun', 'radius_rsun', 'luminosity_lsun', 'temperature_k',
    'age_yr', 'metallicity_zsun', 'spectral_type', 'evolution_phase', 'lifetime_yr',
    'x_au', 'y_au', 'z_au',
]

PLANET_FIELDS = [
    'id', 'name', 'composition', 'mass_mearth', 'radius_rearth', 'semi_major_axis_au',
    'eccentricity', 'orbital_period_yr', 'parent_star_id', 'x_au', 'y_au', 'z_au',
]


def star_rows(system: StarSystem) -> List[Dict[str, Any]]:
    """One row per star, in system order."""
    rows = []
    for star in system.stars:
        x, y, z = (float(v) for v in star.position)
        rows.append({
            'id': star.id,
            'name': star.name,
            'mass_msun': star.mass,
            'radius_rsun': star.radius,
            'luminosity_lsun': star.luminosity,
            'temperature_k': star.temperature,
            'age_yr': star.age,
            'metallicity_zsun': star.metallicity,
            'spectral_type': star.spectral_type.value,
            'evolution_phase': star.evolution_phase.value,
            'lifetime_yr': star.lifetime,
            'x_au': x, 'y_au': y, 'z_au': z,
        })
    return rows


def planet_rows(system: StarSystem) -> List[Dict[str, Any]]:
    """One row per planet, with its orbit and current position."""
    rows = []
    for planet in system.planets:
        x, y, z = (float(v) for v in planet.position)
        rows.append({
            'id': planet.id,
            'name': planet.name,
            'composition': planet.composition.value,
            'mass_mearth': planet.mass,
            'radius_rearth': planet.radius,
            'semi_major_axis_au': planet.semi_major_axis,
            'eccentricity': planet.eccentricity,
            'orbital_period_yr': planet.orbital_period,
            'parent_star_id': planet.parent_star_id,
            'x_au': x, 'y_au': y, 'z_au': z,
        })
    return rows


def metadata_lines(system: StarSystem,
                   defaults: Optional[CloudDefaults] = None) -> List[str]:
    """
    Comment header describing the system.

    Unset optional cloud parameters are shown with the defaults the system
    was formed with.
    """
    cloud = system.initial_cloud_parameters.resolved(defaults or CloudDefaults())
    lines = [
        "# StarForge export",
        f"# Export date: {datetime.now(timezone.utc).isoformat()}",
        f"# System: {system.name}",
        f"# System age: {system.age:.4e} yr",
        "# Initial cloud:",
        f"#   mass {cloud.mass:.4f} M☉, metallicity {cloud.metallicity:.4f} Z☉, "
        f"angular momentum {cloud.angular_momentum:.4e} kg·m²/s",
        f"#   temperature {cloud.temperature:.2f} K, radius {cloud.radius:.4f} pc, "
        f"turbulence {cloud.turbulence_velocity:.4f} km/s, "
        f"field {cloud.magnetic_field_strength:.4f} μG",
    ]

    derived = system.derived_cloud_properties
    if derived is not None:
        lines += [
            "# Derived cloud properties:",
            f"#   density {derived.density:.4e} cm⁻³, virial parameter "
            f"{derived.virial_parameter:.4f} ({'bound' if derived.is_bound else 'unbound'})",
            f"#   Jeans mass {derived.jeans_mass:.4f} M☉, collapse time "
            f"{derived.collapse_timescale:.4e} yr",
        ]
    return lines


def write_csv(path: Path, fieldnames: List[str], rows: List[Dict[str, Any]],
              header_lines: Optional[List[str]] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        for line in header_lines or []:
            f.write(line + "\n")
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return path


def export_stellar_properties(system: StarSystem, path: Path,
                              include_metadata: bool = True) -> Path:
    """
    Write per-star properties as CSV.

    Args:
        system: Star system to export
        path: Output file
        include_metadata: Prefix the ``#`` system header

    Returns:
        Path written
    """
    header = metadata_lines(system) if include_metadata else None
    return write_csv(path, STAR_FIELDS, star_rows(system), header)


def export_orbital_parameters(system: StarSystem, path: Path,
                              include_metadata: bool = True) -> Path:
    """Write per-planet orbital parameters as CSV."""
    header = metadata_lines(system) if include_metadata else None
    return write_csv(path, PLANET_FIELDS, planet_rows(system), header)


def export_telemetry_json(telemetry: Dict[str, Any], path: Path) -> Path:
    """Write a controller telemetry dict as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    def _default(o: Any):
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.generic):
            return o.item()
        return str(o)

    path.write_text(json.dumps(telemetry, indent=2, sort_keys=True, default=_default) + "\n",
                    encoding="utf-8")
    return path
