import math

import pytest

from pendulum_portrait.config import (
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    step_count,
    validate_grid_size,
)


def test_defaults_match_interactive_portrait():
    params = PhysicalParameters()
    assert (params.mass1, params.mass2, params.length1, params.length2, params.gravity) == \
        (1.0, 1.0, 1.0, 1.0, 9.81)
    assert IntegrationConfig().dt == 0.01


@pytest.mark.parametrize("field", ["mass1", "mass2", "length1", "length2", "gravity"])
@pytest.mark.parametrize("value", [0.0, -1.0, math.nan, math.inf])
def test_non_positive_physical_parameters_rejected(field, value):
    with pytest.raises(InvalidConfigurationError):
        PhysicalParameters(**{field: value})


def test_parameters_are_immutable():
    params = PhysicalParameters()
    with pytest.raises(AttributeError):
        params.mass1 = 2.0


@pytest.mark.parametrize("dt", [0.0, -0.01, math.nan])
def test_invalid_step_size_rejected(dt):
    with pytest.raises(InvalidConfigurationError):
        IntegrationConfig(dt=dt)


def test_negative_elapsed_time_rejected():
    with pytest.raises(InvalidConfigurationError):
        IntegrationConfig(dt=0.01, elapsed_time=-1.0)


def test_step_count_truncates_remainder():
    assert step_count(0.0, 0.01) == 0
    assert step_count(0.035, 0.01) == 3
    assert step_count(0.0099, 0.01) == 0
    assert step_count(1.0, 0.01) == 100


def test_step_count_of_whole_multiples():
    # 3 * 0.01 / 0.01 is 2.9999999999999996 in floating point
    for n in (1, 3, 7, 29, 100, 1234):
        assert step_count(n * 0.01, 0.01) == n


def test_integration_config_steps():
    assert IntegrationConfig(dt=0.02, elapsed_time=0.1).steps == 5


@pytest.mark.parametrize("width,height", [(0, 4), (4, 0), (-1, 4), (2.5, 4), (float("nan"), 4), (4, float("inf"))])
def test_invalid_grid_size_rejected(width, height):
    with pytest.raises(InvalidConfigurationError):
        validate_grid_size(width, height)
