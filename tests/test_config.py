import numpy as np
import pytest

from svi.config import (
    get_initial_condition,
    get_preset,
    known_disagreements,
    load_config,
    load_initial_conditions,
    load_presets,
    simulation_settings,
)
from svi.params import SVIParams


def test_packaged_presets_load(presets):
    assert presets["neutral"] == SVIParams(0.93, 0.93, 0.0, 0.0, 0.0)
    assert presets["hysteresis_waning"] == SVIParams(3.27, 0.306, 0.01, 0.02, 0.125)
    for pars in presets.values():
        pars.validate()


def test_initial_conditions(initial_conditions):
    common = initial_conditions["common_infection"]
    rare = initial_conditions["rare_infection"]
    np.testing.assert_allclose(common, [1e-4, 0.0, 0.9999])
    assert rare[2] == 1e-12
    assert rare.sum() == pytest.approx(1.0)


def test_lookup_errors_list_choices():
    with pytest.raises(KeyError, match="neutral"):
        get_preset("no_such_preset")
    with pytest.raises(KeyError, match="rare_infection"):
        get_initial_condition("no_such_state")


def test_known_disagreements_are_presets(presets):
    flagged = known_disagreements()
    assert flagged == ["broken_1", "broken_2"]
    assert set(flagged) <= set(presets)


def test_simulation_settings_types():
    settings = simulation_settings()
    assert settings["method"] == "RK23"
    assert settings["t_max"] == 5000.0
    assert isinstance(settings["n_points"], int)
    assert settings["rtol"] == 1e-7 and settings["atol"] == 1e-9


def test_custom_config_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "presets:\n"
        "  mine: {beta: 2, gamma: 1, theta: 0.1, sigma: 0.5, phi: 0.2}\n"
        "initial_conditions:\n"
        "  seed: {I: 0.05, V: 0.1}\n"
        "simulation:\n"
        "  t_max: 100\n"
    )
    config = load_config(path)
    assert load_presets(config) == {"mine": SVIParams(2.0, 1.0, 0.1, 0.5, 0.2)}
    np.testing.assert_allclose(load_initial_conditions(config)["seed"], [0.85, 0.1, 0.05])
    settings = simulation_settings(config)
    assert settings["t_max"] == 100.0
    assert settings["method"] == "RK23"
    assert known_disagreements(config) == []


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
