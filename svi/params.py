"""
Parameter set and compartment state for the SVI model.

The five rates follow the notation of the bifurcation analysis:

  beta:  transmission rate
  gamma: recovery rate (1/gamma = infectious period)
  theta: vaccine waning rate
  sigma: relative susceptibility of vaccinated individuals, in [0, 1]
         (sigma = 0 is a perfect vaccine, sigma = 1 a useless one)
  phi:   vaccination rate

States are ordered (S, V, I) and are fractions of a closed population.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Mapping, Sequence

import numpy as np

COMPARTMENTS = ("S", "V", "I")
PARAM_NAMES = ("beta", "gamma", "theta", "sigma", "phi")


@dataclass(frozen=True)
class SVIParams:
    beta: float     # transmission rate
    gamma: float    # recovery rate
    theta: float    # waning of vaccine protection
    sigma: float    # vaccinated transmission modifier
    phi: float      # vaccination rate

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float]) -> "SVIParams":
        """Build from any mapping holding the five rates; extra keys are ignored."""
        return cls(**{f.name: float(mapping[f.name]) for f in fields(cls)})

    def to_dict(self) -> dict:
        return asdict(self)

    def replace(self, **changes) -> "SVIParams":
        values = self.to_dict()
        for name, value in changes.items():
            if name not in values:
                raise KeyError(f"unknown SVI parameter '{name}'")
            values[name] = float(value)
        return SVIParams(**values)

    def validate(self) -> "SVIParams":
        """
        Boundary check for user-supplied parameters.

        The classifier itself accepts any finite input; this is for
        callers (CLI, sweeps) that want to reject nonsense early.

        Raises
        ------
        ValueError
            If a rate is negative or non-finite, or `sigma` is outside [0, 1].
        """
        for name, value in self.to_dict().items():
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.sigma > 1:
            raise ValueError(f"sigma must lie in [0, 1], got {self.sigma}")
        return self


def as_params(pars) -> SVIParams:
    if isinstance(pars, SVIParams):
        return pars
    return SVIParams.from_mapping(pars)


def make_state(I0: float, V0: float = 0.0) -> np.ndarray:
    """Initial state (S, V, I) with S taking up the remainder of the population."""
    return np.array([1.0 - V0 - I0, V0, I0], dtype=float)


def as_state(y: Sequence[float]) -> np.ndarray:
    y = np.asarray(y, dtype=float)
    if y.shape != (3,):
        raise ValueError(f"state must be (S, V, I), got shape {y.shape}")
    return y
