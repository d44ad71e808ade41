import math

import numpy as np
import pytest
from jax import random

from jaxdl.initializers import (Constant, GlorotUniform, HeNormal, HeUniform, Ones, RandomUniform, TruncatedNormal,
                                VarianceScaling, Zeros, get_initializer)

KEY = random.PRNGKey(0)


def test_constant_initializers():
    np.testing.assert_array_equal(Zeros()(KEY, (2, 3)), np.zeros((2, 3)))
    np.testing.assert_array_equal(Ones()(KEY, (4,)), np.ones(4))
    np.testing.assert_allclose(Constant(0.1)(KEY, (3,)), np.full(3, 0.1), rtol=1e-6)


def test_random_uniform_bounds():
    value = np.asarray(RandomUniform()(KEY, (1000,)))
    assert value.min() >= -0.05 and value.max() <= 0.05


def test_truncated_normal_bounds_and_seed():
    first = np.asarray(TruncatedNormal(seed=3)(KEY, (500,)))
    second = np.asarray(TruncatedNormal(seed=3)(random.PRNGKey(7), (500,)))
    np.testing.assert_array_equal(first, second)
    assert np.abs(first).max() <= 2 * 0.05 + 1e-6


def test_he_uniform_uses_fan_in():
    fan_in = 50
    value = np.asarray(HeUniform()(KEY, (fan_in, 20), fan_in=fan_in, fan_out=20))
    limit = math.sqrt(3.0 * 2.0 / fan_in)
    assert value.shape == (fan_in, 20)
    assert np.abs(value).max() <= limit


def test_glorot_uniform_uses_fan_avg():
    value = np.asarray(GlorotUniform()(KEY, (10, 30), fan_in=10, fan_out=30))
    assert np.abs(value).max() <= math.sqrt(3.0 / 20)


def test_he_normal_spread():
    value = np.asarray(HeNormal()(KEY, (200, 200), fan_in=200, fan_out=200))
    np.testing.assert_allclose(value.std(), math.sqrt(2.0 / 200), rtol=0.1)


def test_variance_scaling_arguments():
    with pytest.raises(ValueError):
        VarianceScaling(mode="fan_max")
    with pytest.raises(ValueError):
        VarianceScaling(distribution="cauchy")
    with pytest.raises(ValueError):
        VarianceScaling(scale=0.0)


def test_get_initializer():
    assert isinstance(get_initializer("he_normal"), HeNormal)
    assert isinstance(get_initializer("zeros"), Zeros)
    with pytest.raises(ValueError):
        get_initializer("orthogonal")
