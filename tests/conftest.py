import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from pendulum_types import PendulumParameters, PendulumState


@pytest.fixture
def double_pendulum():
    params = PendulumParameters(masses=[15.0, 10.0], lengths=[1.5, 1.0], g=9.81)
    state = PendulumState(thetas=[np.pi / 2, np.pi / 1.5], omegas=[0.0, 0.0])
    return params, state


@pytest.fixture
def gentle_double_pendulum():
    params = PendulumParameters(masses=[1.0, 1.0], lengths=[1.0, 1.0], g=9.81)
    state = PendulumState.at_rest([np.pi / 6, np.pi / 4])
    return params, state
