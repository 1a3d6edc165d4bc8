"""
Regime maps: classify the SVI model over a grid of parameter values.

Every point of the Cartesian product of the grid axes is classified
around a base parameter set, which gives the data behind a bifurcation
diagram (e.g. transmission rate against vaccination rate) without any
time integration.
"""
from __future__ import annotations
import itertools
import logging
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .classify import classify
from .params import PARAM_NAMES, as_params, make_state

logger = logging.getLogger(__name__)


def regime_map(
    base,
    grid: Mapping[str, Sequence[float]],
    y0=None,
    progress: bool = False,
) -> pd.DataFrame:
    """
    Classify every combination of the `grid` values.

    Parameters
    ----------
    base : SVIParams or dict
        Rates that are not varied.
    grid : dict
        Parameter name -> values to sweep, e.g.
        {"beta": np.linspace(0.1, 4, 50), "phi": np.linspace(0, 0.3, 40)}.
    y0 : array-like, optional
        Initial state used by the neutral regimes. Defaults to I0 = 0.01.
    progress : bool, optional
        Show a `tqdm` progress bar.

    Returns
    -------
    pd.DataFrame
        One row per grid point: the swept parameters, `regime`, `case`,
        `R0`, `R0_phi`, the first steady state (`S_star`, `V_star`,
        `I_star`) and `n_steady_states`.

    Raises
    ------
    KeyError
        If `grid` names a parameter the model does not have.
    """
    base = as_params(base)
    unknown = [name for name in grid if name not in PARAM_NAMES]
    if unknown:
        raise KeyError(f"unknown SVI parameter(s) {unknown}; expected {list(PARAM_NAMES)}")
    y0 = make_state(0.01) if y0 is None else np.asarray(y0, dtype=float)

    names = list(grid)
    axes = [np.asarray(grid[name], dtype=float) for name in names]
    n_points = int(np.prod([a.size for a in axes]))
    logger.debug("regime map over %s (%d points)", names, n_points)

    rows = []
    for values in tqdm(itertools.product(*axes), total=n_points, disable=not progress):
        pars = base.replace(**dict(zip(names, values)))
        result = classify(pars, y0)
        S, V, I = result.steady_states()[0]
        rows.append({
            **dict(zip(names, (float(v) for v in values))),
            "regime": result.regime.value,
            "case": result.case.value,
            "R0": result.R0,
            "R0_phi": result.R0_phi,
            "S_star": S,
            "V_star": V,
            "I_star": I,
            "n_steady_states": len(result.steady_states()),
        })
    return pd.DataFrame(rows)
