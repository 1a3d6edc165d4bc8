"""
Loading of the named presets, initial conditions and solver settings.

The defaults ship with the package as ``presets.yaml``; any other file
with the same layout can be passed instead.
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import yaml

from .params import SVIParams, make_state

DEFAULT_CONFIG = Path(__file__).with_name("presets.yaml")

DEFAULT_SIMULATION = {
    "t_max": 5000.0,
    "n_points": 5001,
    "method": "RK23",
    "rtol": 1e-7,
    "atol": 1e-9,
}


def load_config(path: Optional[str | Path] = None) -> dict:
    path = Path(path) if path is not None else DEFAULT_CONFIG
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    return config


def load_presets(config: Optional[dict] = None) -> Dict[str, SVIParams]:
    config = load_config() if config is None else config
    return {name: SVIParams.from_mapping(values)
            for name, values in config.get("presets", {}).items()}


def load_initial_conditions(config: Optional[dict] = None) -> Dict[str, np.ndarray]:
    """Named initial states as (S, V, I) arrays."""
    config = load_config() if config is None else config
    states = {}
    for name, values in config.get("initial_conditions", {}).items():
        state = make_state(float(values["I"]), float(values.get("V", 0.0)))
        if "S" in values:
            state[0] = float(values["S"])
        states[name] = state
    return states


def _lookup(table: dict, name: str, kind: str):
    if name not in table:
        raise KeyError(f"unknown {kind} '{name}'; choose from {sorted(table)}")
    return table[name]


def get_preset(name: str, config: Optional[dict] = None) -> SVIParams:
    return _lookup(load_presets(config), name, "preset")


def get_initial_condition(name: str, config: Optional[dict] = None) -> np.ndarray:
    return _lookup(load_initial_conditions(config), name, "initial condition")


def known_disagreements(config: Optional[dict] = None) -> list:
    """Presets whose simulated long-run state is known to miss the analytical one."""
    config = load_config() if config is None else config
    return list(config.get("known_disagreements", []))


def simulation_settings(config: Optional[dict] = None) -> dict:
    config = load_config() if config is None else config
    settings = dict(DEFAULT_SIMULATION)
    settings.update(config.get("simulation", {}) or {})
    settings["t_max"] = float(settings["t_max"])
    settings["n_points"] = int(settings["n_points"])
    settings["rtol"] = float(settings["rtol"])
    settings["atol"] = float(settings["atol"])
    return settings
