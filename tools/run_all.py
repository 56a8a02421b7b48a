#!/usr/bin/env python3
"""Run *complete* StarForge validations.

This script executes:
- Python unit tests (pytest)
- Simulation scenarios (solar analog, stellar cluster)
- Evolutionary tracks for a grid of stellar masses

It writes full logs + data + images into build/reports/.

Usage:
  python3 tools/run_all.py
  python3 tools/run_all.py --out build/reports
"""

from __future__ import annotations

import argparse
import contextlib
import csv
import io
import json
import os
import shutil
import subprocess
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

# Force headless plotting
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_OUT_ROOT = REPO_ROOT / "build" / "reports"

TRACK_MASSES = (0.3, 1.0, 3.0, 12.0, 40.0)


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")


def _run_cmd(
    cmd: list[str],
    *,
    cwd: Path,
    log_path: Path,
    env: Optional[dict[str, str]] = None,
) -> int:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("w", encoding="utf-8") as f:
        f.write(f"$ {' '.join(cmd)}\n")
        f.write(f"cwd={cwd}\n\n")
        f.flush()
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            env=env,
        )
        assert proc.stdout is not None
        for line in proc.stdout:
            f.write(line)
        return proc.wait()


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    def _default(o: Any):
        # Numpy types
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.generic):
            return o.item()
        if isinstance(o, Enum):
            return o.value
        # Dataclasses
        if is_dataclass(o):
            return asdict(o)
        return str(o)

    path.write_text(json.dumps(obj, indent=2, sort_keys=True, default=_default) + "\n", encoding="utf-8")


def _history_to_rows(history: Iterable[Any], star_index: int = 0) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for s in history:
        rows.append(
            {
                "time_yr": float(s.time_years),
                "phase": s.phases[star_index],
                "luminosity_lsun": float(s.luminosities[star_index]),
                "temperature_k": float(s.temperatures[star_index]),
                "radius_rsun": float(s.radii[star_index]),
            }
        )
    return rows


def _write_csv(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        path.write_text("", encoding="utf-8")
        return
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def _plot_timeseries(rows: list[dict[str, Any]], out_png: Path, title: str) -> None:
    out_png.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        return

    t_gyr = np.array([r["time_yr"] for r in rows]) / 1e9
    lum = np.array([r["luminosity_lsun"] for r in rows])
    temp = np.array([r["temperature_k"] for r in rows])
    rad = np.array([r["radius_rsun"] for r in rows])

    fig, axs = plt.subplots(3, 1, figsize=(12, 9), sharex=True)
    fig.suptitle(title)

    axs[0].semilogy(t_gyr, np.maximum(lum, 1e-12))
    axs[0].set_ylabel("Luminosity (L☉)")
    axs[0].grid(True, which="both")

    axs[1].plot(t_gyr, temp)
    axs[1].set_ylabel("Temperature (K)")
    axs[1].grid(True)

    axs[2].semilogy(t_gyr, np.maximum(rad, 1e-12))
    axs[2].set_ylabel("Radius (R☉)")
    axs[2].set_xlabel("Time (Gyr)")
    axs[2].grid(True, which="both")

    fig.tight_layout(rect=(0, 0, 1, 0.96))
    fig.savefig(out_png, dpi=160)
    plt.close(fig)


def _plot_hr_diagram(tracks: dict[str, list[dict[str, Any]]], out_png: Path) -> None:
    out_png.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(9, 7))
    for label, rows in tracks.items():
        temp = np.array([r["temperature_k"] for r in rows])
        lum = np.array([r["luminosity_lsun"] for r in rows])
        # Black holes have no photosphere
        visible = (temp > 0) & (lum > 0)
        ax.loglog(temp[visible], lum[visible], marker=".", label=label)

    ax.invert_xaxis()
    ax.set_xlabel("Effective temperature (K)")
    ax.set_ylabel("Luminosity (L☉)")
    ax.set_title("Hertzsprung-Russell diagram")
    ax.grid(True, which="both", alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_png, dpi=160)
    plt.close(fig)


def _evolve_track(mass: float, steps: int) -> list[dict[str, Any]]:
    from starforge.core.time_manager import SimulationTime
    from starforge.formation.stellar_evolution import create_star, evolve_star

    star = create_star(mass, 1.0, rng=np.random.default_rng(0))
    # Run to 1.2 lifetimes so every star reaches its remnant
    end = 1.2 * star.lifetime
    dt = end / steps

    time = SimulationTime()
    rows = []
    for _ in range(steps):
        star = evolve_star(star, dt)
        time.advance(dt)
        rows.append(
            {
                "time_yr": time.elapsed_years,
                "phase": star.evolution_phase.value,
                "luminosity_lsun": star.luminosity,
                "temperature_k": star.temperature,
                "radius_rsun": star.radius,
            }
        )
    return rows


def _run_simulation_bundle(out_dir: Path, *, profile: str) -> dict[str, Any]:
    # Import here so repo root is on sys.path
    sys.path.insert(0, str(REPO_ROOT))

    from starforge.export import export_orbital_parameters, export_stellar_properties, export_telemetry_json
    from starforge.scenarios.cluster import StellarClusterScenario
    from starforge.scenarios.solar_analog import SolarAnalogScenario, SolarAnalogScenarioConfig

    results: dict[str, Any] = {}

    def _capture(name: str, fn):
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf), contextlib.redirect_stderr(buf):
            out = fn()
        (out_dir / "logs").mkdir(parents=True, exist_ok=True)
        (out_dir / "logs" / f"simulation_{name}.log").write_text(buf.getvalue(), encoding="utf-8")
        return out

    steps = {"smoke": 100, "standard": 500, "full": 2000}[profile]

    # Scenarios
    solar = SolarAnalogScenario(SolarAnalogScenarioConfig(num_steps=steps))
    results["solar_analog"] = _capture("solar_analog", solar.run)
    _write_json(out_dir / "data" / "solar_analog_results.json", results["solar_analog"])

    rows = _history_to_rows(solar.history)
    _write_csv(out_dir / "data" / "solar_analog_timeseries.csv", rows)
    _plot_timeseries(rows, out_dir / "images" / "solar_analog_timeseries.png", "Scenario: solar_analog")

    fig = solar.plot_results()
    fig.savefig(out_dir / "images" / "solar_analog_hr.png", dpi=160)
    plt.close(fig)

    cluster = StellarClusterScenario()
    results["cluster"] = _capture("cluster", cluster.run)
    _write_json(out_dir / "data" / "cluster_results.json", results["cluster"])

    # Final state of each system
    for name, scenario in (("solar_analog", solar), ("cluster", cluster)):
        system = scenario.controller.get_current_system()
        export_stellar_properties(system, out_dir / "data" / f"{name}_stars.csv")
        export_orbital_parameters(system, out_dir / "data" / f"{name}_planets.csv")
        export_telemetry_json(scenario.controller.get_telemetry(), out_dir / "data" / f"{name}_telemetry.json")

    # Mass grid
    tracks: dict[str, list[dict[str, Any]]] = {}
    for mass in TRACK_MASSES:
        label = f"{mass:g} M☉"
        rows = _evolve_track(mass, steps)
        tracks[label] = rows
        name = f"track_{mass:g}msun"
        _write_csv(out_dir / "data" / f"{name}.csv", rows)
        _plot_timeseries(rows, out_dir / "images" / f"{name}.png", f"Evolutionary track: {label}")
    _plot_hr_diagram(tracks, out_dir / "images" / "hr_diagram.png")
    results["tracks"] = {label: rows[-1]["phase"] for label, rows in tracks.items()}

    return results


def main() -> int:
    parser = argparse.ArgumentParser(description="Run complete tests + simulations and write artifacts into build/")
    parser.add_argument("--out", default=str(DEFAULT_OUT_ROOT), help="Output root (default: build/reports)")
    parser.add_argument("--skip-pytests", action="store_true", help="Skip pytest")
    parser.add_argument("--skip-sim", action="store_true", help="Skip simulations")
    parser.add_argument(
        "--profile",
        choices=["smoke", "standard", "full"],
        default="smoke",
        help="Simulation workload profile (default: smoke)",
    )
    args = parser.parse_args()

    out_root = Path(args.out)
    stamp = _utc_stamp()
    run_dir = out_root / stamp
    latest_dir = out_root / "latest"

    run_dir.mkdir(parents=True, exist_ok=True)
    (run_dir / "logs").mkdir(exist_ok=True)
    (run_dir / "data").mkdir(exist_ok=True)
    (run_dir / "images").mkdir(exist_ok=True)

    meta = {
        "timestamp_utc": stamp,
        "python": sys.version,
        "repo": str(REPO_ROOT),
        "profile": args.profile,
    }
    _write_json(run_dir / "meta.json", meta)

    summary: dict[str, Any] = {"meta": meta, "steps": {}}

    # Pytests
    if not args.skip_pytests:
        code = _run_cmd(
            [
                sys.executable,
                "-m",
                "pytest",
                "-q",
                "--disable-warnings",
                "--maxfail=1",
                f"--junitxml={str(run_dir / 'data' / 'pytest-junit.xml')}",
                "tests",
            ],
            cwd=REPO_ROOT,
            log_path=run_dir / "logs" / "pytest.log",
            env={**os.environ, "PYTHONPATH": str(REPO_ROOT)},
        )
        summary["steps"]["pytest"] = {"exit_code": code}

    # Simulations
    if not args.skip_sim:
        try:
            sim_results = _run_simulation_bundle(run_dir, profile=args.profile)
            _write_json(run_dir / "data" / "simulation_summary.json", sim_results)
            summary["steps"]["simulations"] = {"ok": True, "scenarios": list(sim_results.keys())}
        except KeyboardInterrupt:
            (run_dir / "logs" / "simulation_runner_error.log").write_text("KeyboardInterrupt\n", encoding="utf-8")
            summary["steps"]["simulations"] = {"ok": False, "error": "KeyboardInterrupt"}
        except Exception as e:
            (run_dir / "logs" / "simulation_runner_error.log").write_text(str(e) + "\n", encoding="utf-8")
            summary["steps"]["simulations"] = {"ok": False, "error": str(e)}

    _write_json(run_dir / "summary.json", summary)

    # Human-readable summary
    lines = [
        f"StarForge Validation Report ({stamp})",
        f"Output: {run_dir}",
        "",
        "Steps:",
    ]
    for k, v in summary["steps"].items():
        lines.append(f"- {k}: {v}")
    (run_dir / "summary.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")

    # Refresh latest/
    if latest_dir.exists():
        shutil.rmtree(latest_dir)
    shutil.copytree(run_dir, latest_dir)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
