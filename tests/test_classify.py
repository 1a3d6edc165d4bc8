"""Tests for the closed-form regime classification."""
import json
import math

import numpy as np
import pytest

from svi.classify import (
    RULES,
    Case,
    Pair,
    Regime,
    Rule,
    Single,
    classify,
    reproduction_number,
    vaccine_reproduction_number,
)
from svi.params import SVIParams, make_state


def _sums_to_one(result):
    for S, V, I in result.steady_states():
        assert S + V + I == pytest.approx(1.0)


###### Reproduction numbers ######

def test_reproduction_numbers():
    assert reproduction_number(1.1, 0.7) == pytest.approx(1.1 / 0.7)
    assert math.isinf(reproduction_number(0.5, 0.0))
    assert math.isnan(reproduction_number(0.0, 0.0))
    assert vaccine_reproduction_number(2.0, 0.1, 0.5, 0.1) == pytest.approx(2.0 * 0.15 / 0.2)
    assert math.isnan(vaccine_reproduction_number(2.0, 0.0, 0.5, 0.0))


###### Named parameter sets ######

def test_below_threshold_is_disease_free(presets, y0_small):
    result = classify(presets["below_threshold"], y0_small)
    assert result.regime is Regime.DISEASE_FREE
    assert result.regime.value == "always disease-free regardless of vaccination"
    assert result.I_star == Single(0.0)
    assert result.V_star == Single(0.0)
    assert result.S_star == Single(1.0)


def test_above_threshold_without_vaccination_is_endemic(presets, y0_small):
    result = classify(presets["above_threshold"], y0_small)
    assert result.regime is Regime.ENDEMIC
    assert result.case is Case.NO_VACCINE_ENDEMIC
    assert result.I_star.value == pytest.approx(1 - 0.7 / 1.1)
    assert result.I_star.value == pytest.approx(0.3636, abs=1e-4)
    assert result.V_star == Single(0.0)
    _sums_to_one(result)


def test_perfect_vaccine_endemic(presets, y0_small):
    result = classify(presets["perfect_vaccine"], y0_small)
    assert result.regime is Regime.ENDEMIC
    assert result.case is Case.PERFECT_VACCINE_ENDEMIC
    assert result.R0_phi > 1
    assert result.I_star.value == pytest.approx(0.34375)
    assert result.V_star.value == pytest.approx(0.21875)
    assert result.S_star.value == pytest.approx(0.4375)
    assert all(np.isfinite(v) for v in result.steady_states()[0])


def test_neutral_preset_echoes_initial_state(presets):
    y0 = make_state(0.2, 0.05)
    result = classify(presets["neutral"], y0)
    assert result.regime is Regime.NEUTRAL
    assert result.case is Case.NO_VACCINE_NEUTRAL
    assert result.R0 == 1.0
    assert result.I_star == Single(0.2)
    assert result.V_star == Single(0.05)
    assert result.I0 == 0.2 and result.V0 == 0.05
    assert result.S_star.value == pytest.approx(0.75)


@pytest.mark.parametrize("name", ["hysteresis_waning", "hysteresis"])
def test_bistability_detection(presets, y0_small, name):
    p = presets[name]
    result = classify(p, y0_small)
    assert result.regime is Regime.BISTABLE
    assert result.case is Case.BISTABLE
    assert result.is_bistable
    assert isinstance(result.I_star, Pair) and isinstance(result.V_star, Pair)
    assert isinstance(result.S_star, Pair)
    assert result.I_star.first == 0.0
    assert result.V_star.first == pytest.approx(p.phi / (p.phi + p.theta))

    B = p.sigma * (p.beta - p.gamma) - (p.theta + p.sigma * p.phi)
    assert result.I_star.second == pytest.approx(B / (2 * p.beta * p.sigma))
    assert len(result.steady_states()) == 2
    _sums_to_one(result)


def test_hysteresis_waning_endemic_value(presets, y0_small):
    result = classify(presets["hysteresis_waning"], y0_small)
    assert result.R0_phi < 1
    assert result.I_star.second == pytest.approx(0.3576, abs=1e-4)


def test_vaccination_effort_clears_disease(presets, initial_conditions):
    result = classify(presets["vaccination"], initial_conditions["common_infection"])
    assert result.regime is Regime.VACCINE_DISEASE_FREE
    assert result.regime.value == "disease-free as a result of vaccination"
    assert result.I_star == Single(0.0)
    assert result.V_star.value == pytest.approx(0.2 / 0.21)


def test_no_vaccination_endemic_preset(presets, initial_conditions):
    result = classify(presets["endemic"], initial_conditions["rare_infection"])
    assert result.regime is Regime.ENDEMIC
    assert result.I_star.value == pytest.approx(1 - 0.53 / 0.75)


@pytest.mark.parametrize("name", ["broken_1", "broken_2"])
def test_known_disagreement_presets_are_imperfect_vaccine_endemic(presets, y0_small, name):
    result = classify(presets[name], y0_small)
    assert result.case is Case.IMPERFECT_VACCINE_ENDEMIC
    _sums_to_one(result)


###### Rule order and degenerate inputs ######

def test_disease_free_takes_priority_over_no_vaccination_rule(y0_small):
    # R0 < 1 and phi = 0 both hold
    result = classify(SVIParams(0.5, 1.0, 0.0, 0.0, 0.0), y0_small)
    assert result.case is Case.DISEASE_FREE


def test_disease_free_with_vaccination_reports_vaccinated_share(y0_small):
    result = classify(SVIParams(0.5, 1.0, 0.1, 0.3, 0.3), y0_small)
    assert result.regime is Regime.DISEASE_FREE
    assert result.V_star.value == pytest.approx(0.75)


def test_fully_neutral_rule():
    # beta = gamma and sigma = 1: vaccination changes nothing, R0 = R0_phi = 1
    y0 = make_state(0.3, 0.2)
    result = classify(SVIParams(0.5, 0.5, 0.1, 1.0, 0.2), y0)
    assert result.R0 == 1.0 and result.R0_phi == 1.0
    assert result.case is Case.NEUTRAL
    assert result.regime is Regime.NEUTRAL
    assert result.I_star == Single(0.3)
    assert result.V_star == Single(0.2)


def test_zero_recovery_rate_is_always_endemic(y0_small):
    result = classify(SVIParams(0.5, 0.0, 0.0, 0.0, 0.0), y0_small)
    assert math.isinf(result.R0)
    assert result.regime is Regime.ENDEMIC
    assert result.I_star.value == 1.0


def test_zero_recovery_rate_with_imperfect_vaccine(y0_small):
    result = classify(SVIParams(0.5, 0.0, 0.1, 0.5, 0.1), y0_small)
    assert math.isinf(result.R0_phi)
    assert result.regime is Regime.ENDEMIC
    assert all(np.isfinite(v) for v in result.steady_states()[0])


def test_no_vaccination_and_no_waning_gives_nan_R0_phi(y0_small):
    result = classify(SVIParams(2.0, 1.0, 0.0, 0.3, 0.0), y0_small)
    assert math.isnan(result.R0_phi)
    assert result.case is Case.NO_VACCINE_ENDEMIC
    assert result.I_star.value == pytest.approx(0.5)


def test_waning_only_at_threshold_is_neutral(y0_small):
    result = classify(SVIParams(1.0, 1.0, 0.2, 0.0, 0.0), y0_small)
    assert result.case is Case.NO_VACCINE_NEUTRAL
    assert result.I_star.value == pytest.approx(0.01)


def test_perfect_vaccine_below_vaccine_threshold_does_not_divide_by_sigma(y0_small):
    result = classify(SVIParams(2.0, 1.0, 0.1, 0.0, 0.5), y0_small)
    assert result.R0_phi < 1
    assert result.regime is Regime.VACCINE_DISEASE_FREE
    assert result.V_star.value == pytest.approx(0.5 / 0.6)


def test_degenerate_grid_never_raises():
    values = [0.0, 0.3, 1.0, 2.5]
    y0 = make_state(0.1, 0.1)
    for beta in values:
        for gamma in values:
            for theta in values:
                for sigma in [0.0, 0.02, 0.5, 1.0]:
                    for phi in values:
                        result = classify(SVIParams(beta, gamma, theta, sigma, phi), y0)
                        assert isinstance(result.regime, Regime)


###### Purity and structure ######

def test_classification_is_deterministic(presets, y0_small):
    for name, pars in presets.items():
        first = classify(pars, y0_small).to_dict()
        second = classify(pars, y0_small).to_dict()
        assert json.dumps(first) == json.dumps(second), name


def test_classification_is_immutable(presets, y0_small):
    result = classify(presets["endemic"], y0_small)
    with pytest.raises(AttributeError):
        result.regime = Regime.NEUTRAL


def test_to_dict_is_json_friendly(presets, y0_small):
    d = classify(presets["hysteresis_waning"], y0_small).to_dict()
    assert d["regime"] == "both disease-free and endemic equilibria locally stable"
    assert d["case"] == "bistable"
    assert len(d["I_star"]) == 2 and d["I_star"][0] == 0.0
    json.dumps(d)


def test_dict_parameters_are_accepted(y0_small):
    result = classify({"beta": 1.1, "gamma": 0.7, "theta": 0, "sigma": 0, "phi": 0}, y0_small)
    assert result.regime is Regime.ENDEMIC


def test_custom_rules_without_catch_all(y0_small):
    rules = (Rule(Case.DISEASE_FREE, lambda c: False, lambda c: None),)
    with pytest.raises(LookupError):
        classify(SVIParams(1.1, 0.7, 0, 0, 0), y0_small, rules=rules)


def test_rule_table_ends_with_catch_all():
    assert RULES[-1].case is Case.VACCINE_DISEASE_FREE
    assert RULES[-1].applies(None)
