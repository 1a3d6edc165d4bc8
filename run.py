"""
run.py: classify one SVI parameter set, simulate it and write a report.

Usage:
  python run.py --preset hysteresis_waning --init rare_infection
  python run.py --preset perfect_vaccine --I0 0.01 --t-max 2000
  python run.py --preset vaccination --outdir reports/vaccination

Results land in reports/<timestamp>/ unless --outdir is given:
  classification.json, trajectory.csv, steady_states.csv,
  jacobian_eigs.csv, manifest.json
"""
from __future__ import annotations
import argparse, json, logging, sys, time
from pathlib import Path

import numpy as np
import pandas as pd

from svi.classify import classify
from svi.config import (
    get_initial_condition,
    get_preset,
    known_disagreements,
    load_config,
    simulation_settings,
)
from svi.diagnostics import conservation_error, nearest_steady_state
from svi.dynamics import jacobian_eigenvalues
from svi.model import integrate
from svi.params import COMPARTMENTS, as_params, as_state, make_state
from svi.trajectory import simulate_trajectory, trajectory_frame


def build_solver(settings):
    """Bind the configured solver options to `integrate`."""
    def solver(rhs, y0, pars, t_eval):
        return integrate(rhs, y0, pars, t_eval, method=settings["method"],
                         rtol=settings["rtol"], atol=settings["atol"])
    return solver


def run_report(pars, y0, outdir: Path, settings: dict, preset: str | None = None,
               flagged: bool = False) -> dict:
    """
    Runs classification, simulation and equilibrium checks for a single
    parameter set and writes every table into `outdir`.
    Returns the manifest dict.
    """
    pars = as_params(pars)
    y0 = as_state(y0)
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    # --- 1. Closed-form classification ---
    result = classify(pars, y0)
    print(f"  R0 = {result.R0:.4g}, R0_phi = {result.R0_phi:.4g}")
    print(f"  Regime: {result.regime.value} ({result.case.value})")
    with open(outdir / "classification.json", "w") as f:
        json.dump(result.to_dict(), f, indent=2)

    # --- 2. Steady states and their local stability ---
    ss_rows, eig_rows = [], []
    for k, state in enumerate(result.steady_states()):
        evals = jacobian_eigenvalues(pars, state)
        ss_rows.append({"index": k, **dict(zip(COMPARTMENTS, state)),
                        "max_re_eig": float(np.max(evals.real))})
        eig_rows.extend({"index": k, "re": ev.real, "im": ev.imag} for ev in evals)
    pd.DataFrame(ss_rows).to_csv(outdir / "steady_states.csv", index=False)
    pd.DataFrame(eig_rows, columns=["index", "re", "im"]).to_csv(outdir / "jacobian_eigs.csv", index=False)

    # --- 3. Trajectory ---
    t_eval = np.linspace(0.0, settings["t_max"], settings["n_points"])
    print(f"  Simulating t in [0, {settings['t_max']:g}] ({settings['n_points']} points)...")
    t0 = time.time()
    try:
        Y = simulate_trajectory(t_eval, y0, pars, integrator=build_solver(settings),
                                classification=result)
    except Exception as e:
        print(f"  ERROR: Simulation failed: {e}")
        (outdir / "simulation_error.txt").write_text(str(e))
        raise
    trajectory_frame(t_eval, Y).to_csv(outdir / "trajectory.csv", index=False)

    idx, dist = nearest_steady_state(result, Y[-1])
    print(f"  Final state: S={Y[-1, 0]:.4f} V={Y[-1, 1]:.4f} I={Y[-1, 2]:.4f}")
    print(f"  Distance to steady state #{idx}: {dist:.2e}")

    manifest = {
        "created": time.strftime("%Y-%m-%d %H:%M:%S"),
        "preset": preset,
        "params": pars.to_dict(),
        "y0": [float(v) for v in y0],
        "simulation": settings,
        "elapsed_s": round(time.time() - t0, 3),
        "regime": result.regime.value,
        "conservation_error": conservation_error(Y),
        "nearest_steady_state": idx,
        "final_distance": dist,
        "known_disagreement": bool(flagged),
    }
    with open(outdir / "manifest.json", "w") as f:
        json.dump(manifest, f, indent=2)
    return manifest


def main(argv=None):
    ap = argparse.ArgumentParser(description="Classify and simulate the SVI model.")
    ap.add_argument("--preset", default="hysteresis_waning", help="Named parameter set.")
    ap.add_argument("--init", default=None, help="Named initial condition (e.g. rare_infection).")
    ap.add_argument("--I0", type=float, default=None, help="Initial infected fraction.")
    ap.add_argument("--V0", type=float, default=0.0, help="Initial vaccinated fraction.")
    ap.add_argument("--t-max", type=float, default=None)
    ap.add_argument("--n-points", type=int, default=None)
    ap.add_argument("--outdir", type=str, default=None, help="Defaults to reports/<timestamp>.")
    ap.add_argument("--config", type=str, default=None, help="Alternative presets YAML file.")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.DEBUG)

    try:
        config = load_config(args.config)
        pars = get_preset(args.preset, config).validate()
        if args.I0 is not None:
            y0 = make_state(args.I0, args.V0)
        else:
            y0 = get_initial_condition(args.init or "common_infection", config)
    except (FileNotFoundError, KeyError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    settings = simulation_settings(config)
    if args.t_max is not None:
        settings["t_max"] = args.t_max
    if args.n_points is not None:
        settings["n_points"] = args.n_points

    outdir = Path(args.outdir) if args.outdir else Path("reports") / time.strftime("%Y-%m-%d_%H%M%S")
    print(f"Starting run '{args.preset}'. Results will be in {outdir}")

    flagged = args.preset in known_disagreements(config)
    if flagged:
        print("  NOTE: this preset is a known simulation/analysis disagreement.")
    run_report(pars, y0, outdir, settings, preset=args.preset, flagged=flagged)

    print(f"\nDone. Results are in {outdir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
