"""
Time series of compartment fractions over a requested time grid.

The classification decides whether integration is needed at all: a
neutral system stays at its initial condition forever, so its trajectory
is returned in closed form. Every other regime is handed to the ODE
integrator with `svi_rhs` as right-hand side.
"""
from __future__ import annotations
import logging

import numpy as np
import pandas as pd

from .classify import Regime, classify
from .model import integrate, svi_rhs
from .params import COMPARTMENTS, as_params, as_state

logger = logging.getLogger(__name__)


def simulate_trajectory(t_eval, y0, pars, integrator=None, classification=None):
    """
    Compartment fractions (S, V, I) at each point of `t_eval`.

    Parameters
    ----------
    t_eval : array-like
        Increasing, non-negative time points.
    y0 : array-like
        Initial state (S, V, I).
    pars : SVIParams or dict
        The five rates.
    integrator : callable, optional
        `integrator(rhs, y0, pars, t_eval) -> (T, 3) array`; defaults to
        `svi.model.integrate`. Failures are not caught.
    classification : Classification, optional
        Re-use an existing classification of (pars, y0).

    Returns
    -------
    np.ndarray
        A (len(t_eval), 3) array, one row per requested time point.
    """
    pars = as_params(pars)
    y0 = as_state(y0)
    t_eval = np.asarray(t_eval, dtype=float)

    result = classification if classification is not None else classify(pars, y0)
    if result.regime is Regime.NEUTRAL:
        logger.debug("neutral regime, returning the initial state")
        return np.tile(y0, (t_eval.size, 1))

    integrator = integrator or integrate
    return np.asarray(integrator(svi_rhs, y0, pars, t_eval), dtype=float)


def trajectory_frame(t_eval, Y) -> pd.DataFrame:
    """Wrap a (T, 3) series into a DataFrame with columns t, S, V, I."""
    Y = np.asarray(Y, dtype=float)
    df = pd.DataFrame(Y, columns=list(COMPARTMENTS))
    df.insert(0, "t", np.asarray(t_eval, dtype=float))
    return df
