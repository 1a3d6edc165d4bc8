"""
Closed-form classification of the long-run behaviour of the SVI model.

Given the five rates and an initial state, `classify` decides which
qualitative regime the system settles into and computes the matching
steady-state fractions, without integrating anything. The conditions
come from the bifurcation analysis of the SIS model with imperfect,
waning vaccination (Kribs-Zaleta & Velasco-Hernandez, 2000):

  R0     = beta / gamma
  R0_phi = R0 * (theta + sigma*phi) / (theta + phi)
  B      = sigma*(beta - gamma) - (theta + sigma*phi)

  inequality 1:  (theta + sigma*phi)^2 < gamma*sigma*(1 - sigma)*phi
  inequality 2:  gamma - (theta + sigma*phi)/sigma
                   + (2/sigma)*sqrt(gamma*sigma*(1 - sigma)*phi)
                 < beta < gamma*(theta + phi)/(theta + sigma*phi)

The conditions overlap, so they are tried in a fixed order and the first
match wins (see `RULES`). Degenerate rates never raise: gamma = 0 gives
an infinite R0 and theta = phi = 0 gives a NaN R0_phi, and both are
routed to the appropriate rule.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Optional, Tuple, Union

from .params import as_params, as_state

logger = logging.getLogger(__name__)


class Regime(str, Enum):
    DISEASE_FREE = "always disease-free regardless of vaccination"
    ENDEMIC = "always endemic"
    BISTABLE = "both disease-free and endemic equilibria locally stable"
    NEUTRAL = "neutral"
    VACCINE_DISEASE_FREE = "disease-free as a result of vaccination"


class Case(str, Enum):
    """Which rule of the ordered case analysis produced a result."""
    DISEASE_FREE = "disease_free"
    NO_VACCINE_ENDEMIC = "no_vaccine_endemic"
    NO_VACCINE_NEUTRAL = "no_vaccine_neutral"
    PERFECT_VACCINE_ENDEMIC = "perfect_vaccine_endemic"
    IMPERFECT_VACCINE_ENDEMIC = "imperfect_vaccine_endemic"
    BISTABLE = "bistable"
    NEUTRAL = "neutral"
    VACCINE_DISEASE_FREE = "vaccine_disease_free"


###### Steady-state values ######

@dataclass(frozen=True)
class Single:
    value: float

    @property
    def values(self) -> Tuple[float, ...]:
        return (self.value,)


@dataclass(frozen=True)
class Pair:
    """Two coexisting locally stable values (disease-free first, endemic second)."""
    first: float
    second: float

    @property
    def values(self) -> Tuple[float, ...]:
        return (self.first, self.second)


SteadyState = Union[Single, Pair]


def _complement(I_star: SteadyState, V_star: SteadyState) -> SteadyState:
    """S* = 1 - I* - V*, elementwise."""
    if isinstance(I_star, Single) and isinstance(V_star, Single):
        return Single(1.0 - I_star.value - V_star.value)
    I1, I2 = _as_pair(I_star)
    V1, V2 = _as_pair(V_star)
    return Pair(1.0 - I1 - V1, 1.0 - I2 - V2)


def _as_pair(x: SteadyState) -> Tuple[float, float]:
    if isinstance(x, Pair):
        return x.first, x.second
    return x.value, x.value


@dataclass(frozen=True)
class Classification:
    R0: float
    R0_phi: float
    regime: Regime
    case: Case
    S_star: SteadyState
    V_star: SteadyState
    I_star: SteadyState
    I0: float
    V0: float

    @property
    def is_bistable(self) -> bool:
        return isinstance(self.I_star, Pair)

    def steady_states(self):
        """List of (S, V, I) tuples, one per steady state (two if bistable)."""
        n = 2 if self.is_bistable else 1
        S = _as_pair(self.S_star)
        V = _as_pair(self.V_star)
        I = _as_pair(self.I_star)
        return [(S[k], V[k], I[k]) for k in range(n)]

    def to_dict(self) -> dict:
        return {
            "R0": self.R0,
            "R0_phi": self.R0_phi,
            "regime": self.regime.value,
            "case": self.case.value,
            "S_star": list(self.S_star.values),
            "V_star": list(self.V_star.values),
            "I_star": list(self.I_star.values),
            "I0": self.I0,
            "V0": self.V0,
        }


###### Derived quantities ######

class _Context(NamedTuple):
    beta: float
    gamma: float
    theta: float
    sigma: float
    phi: float
    I0: float
    V0: float
    R0: float
    R0_phi: float
    B: float


def reproduction_number(beta: float, gamma: float) -> float:
    """R0 = beta / gamma; infinite for gamma = 0 (NaN if beta is 0 too)."""
    if gamma == 0:
        return math.inf if beta > 0 else math.nan
    return beta / gamma


def vaccine_reproduction_number(R0: float, theta: float, sigma: float, phi: float) -> float:
    """R0_phi; NaN when there is neither vaccination nor waning."""
    if theta + phi == 0:
        return math.nan
    return R0 * (theta + sigma * phi) / (theta + phi)


def _inequality1(c: _Context) -> bool:
    return (c.theta + c.sigma * c.phi) ** 2 < c.gamma * c.sigma * (1 - c.sigma) * c.phi


def _inequality2(c: _Context) -> bool:
    # only reached once inequality 1 holds, which implies 0 < sigma < 1
    theta_s = c.theta + c.sigma * c.phi
    lower = (c.gamma - theta_s / c.sigma
             + (2 / c.sigma) * math.sqrt(c.gamma * c.sigma * (1 - c.sigma) * c.phi))
    upper = c.gamma * (c.theta + c.phi) / theta_s
    return lower < c.beta < upper


def _dfe_vaccinated(c: _Context) -> float:
    total = c.phi + c.theta
    return c.phi / total if total > 0 else 0.0


def _imperfect_endemic_I(c: _Context) -> float:
    return c.B / (2 * c.beta * c.sigma)


def _imperfect_endemic_V(c: _Context) -> float:
    # NOTE: suspect grouping. Read literally, `phi / beta * sigma` is
    # (phi/beta)*sigma; phi/(beta*sigma) matches the 2*beta*sigma
    # denominator of I*. Not yet checked against the paper.
    bs2 = 2 * c.beta * c.sigma
    return (c.phi / (c.beta * c.sigma)) * ((bs2 - c.B) / (c.B + 2 * (c.theta + c.phi)))


###### Ordered case analysis ######

Outcome = Tuple[Regime, SteadyState, SteadyState]  # (regime, I*, V*)


class Rule(NamedTuple):
    case: Case
    applies: Callable[[_Context], bool]
    outcome: Callable[[_Context], Outcome]


def _no_vaccination(c: _Context) -> bool:
    return c.phi == 0 or math.isnan(c.R0_phi)


RULES: Tuple[Rule, ...] = (
    Rule(Case.DISEASE_FREE,
         lambda c: c.R0 < 1,
         lambda c: (Regime.DISEASE_FREE, Single(0.0), Single(_dfe_vaccinated(c)))),
    Rule(Case.NO_VACCINE_ENDEMIC,
         lambda c: _no_vaccination(c) and c.R0 > 1,
         lambda c: (Regime.ENDEMIC, Single(1 - 1 / c.R0), Single(0.0))),
    Rule(Case.NO_VACCINE_NEUTRAL,
         _no_vaccination,
         lambda c: (Regime.NEUTRAL, Single(c.I0), Single(c.V0))),
    Rule(Case.PERFECT_VACCINE_ENDEMIC,
         lambda c: c.R0_phi > 1 and c.sigma == 0,
         lambda c: (Regime.ENDEMIC,
                    Single(1 - (1 / c.R0) * (1 + c.phi / c.theta)),
                    Single(c.phi / (c.R0 * c.theta)))),
    Rule(Case.IMPERFECT_VACCINE_ENDEMIC,
         lambda c: c.R0_phi > 1,
         lambda c: (Regime.ENDEMIC,
                    Single(_imperfect_endemic_I(c)),
                    Single(_imperfect_endemic_V(c)))),
    Rule(Case.BISTABLE,
         lambda c: _inequality1(c) and _inequality2(c),
         lambda c: (Regime.BISTABLE,
                    Pair(0.0, _imperfect_endemic_I(c)),
                    Pair(_dfe_vaccinated(c), _imperfect_endemic_V(c)))),
    Rule(Case.NEUTRAL,
         lambda c: c.R0 == 1 and c.R0_phi == 1,
         lambda c: (Regime.NEUTRAL, Single(c.I0), Single(c.V0))),
    Rule(Case.VACCINE_DISEASE_FREE,
         lambda c: True,
         lambda c: (Regime.VACCINE_DISEASE_FREE, Single(0.0), Single(_dfe_vaccinated(c)))),
)


def _context(pars, y0) -> _Context:
    p = as_params(pars)
    _, V0, I0 = as_state(y0)
    R0 = reproduction_number(p.beta, p.gamma)
    R0_phi = vaccine_reproduction_number(R0, p.theta, p.sigma, p.phi)
    B = p.sigma * (p.beta - p.gamma) - (p.theta + p.sigma * p.phi)
    return _Context(p.beta, p.gamma, p.theta, p.sigma, p.phi,
                    float(I0), float(V0), R0, R0_phi, B)


def classify(pars, y0, rules: Optional[Tuple[Rule, ...]] = None) -> Classification:
    """
    Classify the long-run regime of the SVI model.

    Parameters
    ----------
    pars : SVIParams or dict
        The five rates.
    y0 : array-like
        Initial state (S, V, I). Only V0 and I0 are used, and only by the
        neutral regimes, whose steady state is the initial state itself.
    rules : tuple of Rule, optional
        Override of the ordered case analysis (defaults to `RULES`).

    Returns
    -------
    Classification
        R0, R0_phi, the regime, the rule that fired and the steady-state
        fractions S*, V*, I* (pairs in the bistable regime).
    """
    c = _context(pars, y0)
    for rule in rules or RULES:
        if rule.applies(c):
            regime, I_star, V_star = rule.outcome(c)
            break
    else:
        raise LookupError("no rule matched; the rule list needs a catch-all")

    result = Classification(
        R0=c.R0,
        R0_phi=c.R0_phi,
        regime=regime,
        case=rule.case,
        S_star=_complement(I_star, V_star),
        V_star=V_star,
        I_star=I_star,
        I0=c.I0,
        V0=c.V0,
    )
    logger.debug("R0=%.4g R0_phi=%.4g -> %s (%s)",
                 c.R0, c.R0_phi, regime.value, rule.case.value)
    return result
