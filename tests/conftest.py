import numpy as np
import pytest

from svi.config import load_initial_conditions, load_presets
from svi.params import make_state


@pytest.fixture(scope="session")
def presets():
    return load_presets()


@pytest.fixture(scope="session")
def initial_conditions():
    return load_initial_conditions()


@pytest.fixture
def y0_small():
    """One percent infected, nobody vaccinated."""
    return make_state(0.01)


@pytest.fixture
def long_grid():
    return np.linspace(0.0, 5000.0, 501)
