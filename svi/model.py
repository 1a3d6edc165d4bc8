"""
Defines the core SVI model dynamics.

This module contains the ODE equation system for the SVI
(Susceptible, Vaccinated, Infected) compartment model with imperfect,
waning vaccination. It also includes an `integrate` wrapper that runs
deterministic simulations using `scipy.integrate.solve_ivp`.

The population is closed (no births, deaths or disease mortality) and
the states are fractions, so the three derivatives always sum to zero.
Vaccinated individuals can still be infected at a reduced rate
`sigma * beta`, and lose their protection at rate `theta`.

"""
from __future__ import annotations
import logging

import numpy as np
from scipy.integrate import solve_ivp

from .params import as_params

logger = logging.getLogger(__name__)


def svi_rhs(t, y, pars):
    """
    Defines the SVI ODE system. Calculates the derivatives for the
    3 state variables [S, V, I] based on the current state `y` and
    the parameters in `pars`.

    Parameters
    ----------
    t : float
        The current time (ignored, as the system is autonomous).
    y : array-like
        The 3-state vector [S, V, I].
    pars : SVIParams or dict
        The five rates beta, gamma, theta, sigma and phi.

    Returns
    -------
    np.ndarray
        A 1D float array of the 3 derivatives [dSdt, dVdt, dIdt].

    Notes
    --------
    No simplex constraint is enforced on `y`; the equations are
    well-defined for any finite reals and the derivatives sum to zero
    by construction.
    """
    p = as_params(pars)
    S, V, I = y

    infection_S = p.beta * I * S
    infection_V = p.sigma * p.beta * I * V

    dSdt = p.theta * V + p.gamma * I - infection_S - p.phi * S
    dVdt = p.phi * S - infection_V - p.theta * V
    dIdt = infection_S + infection_V - p.gamma * I

    return np.array([dSdt, dVdt, dIdt], dtype=float)


def integrate(rhs, y0, pars, t_eval, method="RK23", rtol=1e-7, atol=1e-9):
    """
    Integrates `rhs` over the time grid `t_eval` using
    `scipy.integrate.solve_ivp`.

    The default "RK23" method is the adaptive Bogacki-Shampine pair.
    Fixed-step schemes give visibly wrong trajectories near regime
    boundaries, so any replacement should stay adaptive.

    Parameters
    ----------
    rhs : callable
        `rhs(t, y, pars)` returning the derivative vector.
    y0 : array-like
        The initial state vector.
    pars : SVIParams or dict
        Passed through to `rhs`.
    t_eval : array-like
        Increasing time points at which to store the solution.
    method : str, optional
        Any explicit `solve_ivp` method.
    rtol : float, optional
        Relative tolerance for the ODE solver.
    atol : float, optional
        Absolute tolerance for the ODE solver.

    Returns
    -------
    np.ndarray
        A (T, n) array containing the state vector at each time in
        `t_eval`.

    Raises
    ------
    ValueError
        If the initial conditions `y0` contain non-finite values.
    RuntimeError
        If the `solve_ivp` ODE integration fails.

    """
    y0 = np.asarray(y0, dtype=float)
    t_eval = np.asarray(t_eval, dtype=float)
    if not np.all(np.isfinite(y0)):
        raise ValueError(f"integrate(): non-finite y0 {y0}")
    if t_eval.size == 0:
        return np.empty((0, y0.size))
    if t_eval[0] == t_eval[-1]:
        # zero-length span: solve_ivp has nothing to step over
        return np.tile(y0, (t_eval.size, 1))

    logger.debug("integrating %s over [%g, %g] (%d points)",
                 method, t_eval[0], t_eval[-1], t_eval.size)
    sol = solve_ivp(
        fun=lambda t, y: rhs(t, y, pars),
        t_span=(t_eval[0], t_eval[-1]),
        y0=y0,
        t_eval=t_eval,
        method=method,
        rtol=rtol,
        atol=atol,
    )
    if not sol.success:
        raise RuntimeError(f"ODE failed: {sol.message}")
    return sol.y.T


def simulate(pars, y0, t_eval, **solver_kwargs):
    """Runs a deterministic simulation of the SVI model; returns a (T, 3) array."""
    return integrate(svi_rhs, y0, as_params(pars), t_eval, **solver_kwargs)
