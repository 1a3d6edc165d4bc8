"""SVI model: closed-form regime classification and trajectory simulation."""
from .params import SVIParams, as_params, as_state, make_state
from .model import svi_rhs, integrate, simulate
from .classify import (
    Case,
    Classification,
    Pair,
    Regime,
    Single,
    classify,
    reproduction_number,
    vaccine_reproduction_number,
)
from .trajectory import simulate_trajectory, trajectory_frame

__all__ = [
    "SVIParams",
    "as_params",
    "as_state",
    "make_state",
    "svi_rhs",
    "integrate",
    "simulate",
    "Case",
    "Classification",
    "Pair",
    "Regime",
    "Single",
    "classify",
    "reproduction_number",
    "vaccine_reproduction_number",
    "simulate_trajectory",
    "trajectory_frame",
]
