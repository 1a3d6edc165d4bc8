from __future__ import annotations
import math

import numpy as np

from .model import svi_rhs
from .params import as_params


def svi_rhs_reduced(t, y_reduced, pars):
    """
    RHS for the 2-state reduced system [V, I].
    S is recovered from the conservation law S = 1 - V - I, which
    removes the zero eigenvalue of the full 3x3 Jacobian.
    """
    V, I = y_reduced
    dSdt, dVdt, dIdt = svi_rhs(t, np.array([1.0 - V - I, V, I]), pars)
    return np.array([dVdt, dIdt])


def numerical_jacobian(fun, y_star, pars, eps=1e-7):
    """
    Forward-difference Jacobian of `fun(t, y, pars)` at `y_star`.
    Used on the reduced [V, I] system, where it is a 2x2 matrix.
    """
    y_star = np.asarray(y_star, dtype=float)
    f0 = np.asarray(fun(0.0, y_star, pars), dtype=float)
    J = np.empty((f0.size, y_star.size))
    for j, step in enumerate(np.eye(y_star.size) * eps):
        J[:, j] = (fun(0.0, y_star + step, pars) - f0) / eps
    return J


def jacobian_eigenvalues(pars, state, eps=1e-7):
    """Eigenvalues of the reduced Jacobian at a full (S, V, I) state."""
    _, V, I = state
    J = numerical_jacobian(svi_rhs_reduced, [V, I], as_params(pars), eps=eps)
    return np.linalg.eigvals(J)


def is_locally_stable(pars, state, tol=1e-9):
    return bool(np.all(jacobian_eigenvalues(pars, state).real < -tol))


def endemic_equilibria(pars):
    """
    Exact endemic equilibria (I > 0) as a list of (S, V, I) tuples,
    ordered by increasing I.

    With I > 0, dI/dt = 0 gives S = gamma/beta - sigma*V and dV/dt = 0
    then gives V = phi*(gamma/beta) / (sigma*beta*I + theta + sigma*phi).
    Substituting into S + V + I = 1 leaves

        sigma*beta*I^2 - B*I - C = 0,
        B = sigma*(beta - gamma) - (theta + sigma*phi),
        C = (1 - gamma/beta)*(theta + sigma*phi) - (1 - sigma)*phi*gamma/beta.

    Only roots inside the simplex are kept.
    """
    p = as_params(pars)
    if p.beta <= 0:
        return []
    g_b = p.gamma / p.beta
    theta_s = p.theta + p.sigma * p.phi
    a = p.sigma * p.beta
    B = p.sigma * (p.beta - p.gamma) - theta_s
    C = (1 - g_b) * theta_s - (1 - p.sigma) * p.phi * g_b

    if a == 0:
        if B != 0:
            roots = [-C / B]
        elif p.phi == 0:
            # no vaccination and no waning: the SIS equilibrium
            roots = [1 - g_b]
        else:
            roots = []
    else:
        disc = B * B + 4 * a * C
        if disc < 0:
            roots = []
        else:
            sq = math.sqrt(disc)
            roots = sorted({(B - sq) / (2 * a), (B + sq) / (2 * a)})

    equilibria = []
    for I in roots:
        if not 0 < I <= 1:
            continue
        denom = a * I + theta_s
        V = p.phi * g_b / denom if p.phi > 0 else 0.0
        S = 1.0 - V - I
        if S < -1e-12 or V < -1e-12:
            continue
        equilibria.append((S, V, I))
    return equilibria


def equilibrium_newton(pars, y_guess, max_iter=50, tol=1e-12):
    """
    Solve f(y)=0 by Newton (finite-diff Jacobian) on the reduced
    [V, I] system, starting from a full (S, V, I) guess.
    Returns the full (S, V, I) equilibrium.
    """
    p = as_params(pars)
    y = np.asarray(y_guess, float)[1:].copy()
    for _ in range(max_iter):
        f = svi_rhs_reduced(0.0, y, p)
        if np.linalg.norm(f, ord=np.inf) < tol:
            break
        J = numerical_jacobian(svi_rhs_reduced, y, p)
        try:
            step = np.linalg.solve(J, -f)
        except np.linalg.LinAlgError:
            step = -np.linalg.pinv(J) @ f
        y = y + step
        if np.linalg.norm(step, ord=np.inf) < tol:
            break
    else:
        raise RuntimeError("Equilibrium not found (reduced system)")
    V, I = y
    return np.array([1.0 - V - I, V, I])
