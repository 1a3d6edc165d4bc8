from __future__ import annotations
from typing import Tuple

import numpy as np

from .classify import Classification


def conservation_error(Y) -> float:
    """Largest |S + V + I - 1| over a (T, 3) series."""
    Y = np.atleast_2d(np.asarray(Y, dtype=float))
    return float(np.max(np.abs(Y.sum(axis=1) - 1.0)))


def nearest_steady_state(result: Classification, state) -> Tuple[int, float]:
    """
    Index of the classified steady state closest to `state` (max-norm),
    and the distance to it.
    """
    state = np.asarray(state, dtype=float)
    dists = [float(np.max(np.abs(state - np.asarray(ss)))) for ss in result.steady_states()]
    idx = int(np.argmin(dists))
    return idx, dists[idx]


def matches_steady_state(result: Classification, state, atol=1e-3) -> bool:
    _, dist = nearest_steady_state(result, state)
    return dist <= atol
