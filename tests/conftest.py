import matplotlib

matplotlib.use("Agg")

import pytest

from pendulum_portrait.config import PhysicalParameters


@pytest.fixture
def device():
    # Kernels run on the CPU device so results do not depend on the GPU present
    return "cpu"


@pytest.fixture
def params():
    return PhysicalParameters(mass1=1.0, mass2=1.0, length1=1.0, length2=1.0, gravity=9.81)
