import jax.numpy as jnp
import numpy as np
import pytest

from jaxdl.activations import Activations, get_activation, hard_sigmoid


def test_relu_and_linear():
    x = jnp.array([-1.0, 0.0, 2.0])
    np.testing.assert_array_equal(Activations.Relu.apply(x), [0.0, 0.0, 2.0])
    np.testing.assert_array_equal(Activations.Linear.apply(x), x)


def test_softmax_rows_sum_to_one():
    x = jnp.array([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]])
    np.testing.assert_allclose(Activations.Softmax.apply(x).sum(axis=-1), [1.0, 1.0], rtol=1e-6)


def test_hard_sigmoid():
    np.testing.assert_allclose(hard_sigmoid(jnp.array([-5.0, 0.0, 5.0])), [0.0, 0.5, 1.0])


def test_get_activation():
    assert get_activation("RELU") is Activations.Relu
    assert get_activation(Activations.Tanh) is Activations.Tanh
    with pytest.raises(ValueError):
        get_activation("gelu_fast")
