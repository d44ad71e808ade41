import jax.numpy as jnp
import numpy as np
import pytest
from jax import random

from jaxdl.exceptions import OptimizerStateError
from jaxdl.graph import Graph, Variable, apply_updates
from jaxdl.initializers import Constant
from jaxdl.optimizer import (AdaDelta, AdaGrad, Adam, Adamax, ClipGradientByNorm, ClipGradientByValue, Momentum,
                             RMSProp, SGD)


def scalar_graph(optimizer, value=1.0, name="theta"):
    graph = Graph()
    variable = graph.add_variable(Variable(name, (), Constant(value)))
    optimizer.create_slots(graph, [variable])
    graph.initialize_layers(random.PRNGKey(0))
    graph.initialize_optimizer()
    return graph, variable


def step(optimizer, graph, variable, gradient):
    targets = optimizer.apply_gradients(graph.values, [variable], [jnp.asarray(gradient, dtype=jnp.float32)])
    graph.assign(targets)


class TestAdamax:
    def test_single_scalar_step(self):
        optimizer = Adamax()
        graph, theta = scalar_graph(optimizer)
        step(optimizer, graph, theta, 0.1)

        expected = 1.0 - 0.001 / (1 - 0.9) * 0.01 / (0.1 + 1e-7)
        np.testing.assert_allclose(graph.read("theta"), expected, rtol=1e-6)
        np.testing.assert_allclose(graph.read("optimizer_theta-m"), 0.01, rtol=1e-6)
        np.testing.assert_allclose(graph.read("optimizer_theta-v"), 0.1, rtol=1e-6)
        # 0.9 was used for this step, the next one uses 0.81
        np.testing.assert_allclose(graph.read("optimizer_beta1_power"), 0.81, rtol=1e-6)

    def test_slot_identity_is_stable(self):
        optimizer = Adamax()
        graph, theta = scalar_graph(optimizer)
        slot = optimizer.get_slot("theta", "m")
        for _ in range(3):
            step(optimizer, graph, theta, 0.1)
            assert optimizer.get_slot("theta", "m") is slot
        assert set(graph.optimizer_variables) == {"optimizer_theta-m", "optimizer_theta-v", "optimizer_beta1_power"}

    def test_beta_power_accumulates(self):
        optimizer = Adamax()
        graph, theta = scalar_graph(optimizer)
        for _ in range(3):
            step(optimizer, graph, theta, 0.1)
        np.testing.assert_allclose(graph.read("optimizer_beta1_power"), 0.9 ** 4, rtol=1e-6)


def test_sgd_step():
    optimizer = SGD(learning_rate=0.5)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 0.2)
    np.testing.assert_allclose(graph.read("theta"), 0.9, rtol=1e-6)
    assert graph.optimizer_variables == {}


def test_momentum_steps():
    optimizer = Momentum(learning_rate=0.1, momentum=0.9)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 1.0)
    step(optimizer, graph, theta, 1.0)
    # accumulations 1.0 then 1.9
    np.testing.assert_allclose(graph.read("optimizer_theta-momentum"), 1.9, rtol=1e-6)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - 0.1 - 0.19, rtol=1e-6)


def test_nesterov_momentum_step():
    optimizer = Momentum(learning_rate=0.1, momentum=0.9, nesterov=True)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 1.0)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - 0.1 - 0.1 * 0.9 * 1.0, rtol=1e-6)


def test_adam_first_step():
    optimizer = Adam(learning_rate=0.001)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 0.5)
    # the first bias corrected step has size close to the learning rate
    np.testing.assert_allclose(graph.read("theta"), 1.0 - 0.001, rtol=1e-5)
    np.testing.assert_allclose(graph.read("optimizer_beta2_power"), 0.999 ** 2, rtol=1e-6)


def test_adagrad_initial_accumulator():
    optimizer = AdaGrad(learning_rate=0.1, initial_accumulator_value=0.01)
    graph, theta = scalar_graph(optimizer)
    np.testing.assert_allclose(graph.read("optimizer_theta-accumulator"), 0.01, rtol=1e-6)
    step(optimizer, graph, theta, 0.3)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - 0.1 * 0.3 / np.sqrt(0.01 + 0.09), rtol=1e-5)


def test_rmsprop_steps():
    optimizer = RMSProp(learning_rate=0.01, decay=0.9, momentum=0.9, epsilon=1e-10)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 0.5)
    ms = 0.1 * 0.25
    mom = 0.01 * 0.5 / np.sqrt(ms + 1e-10)
    np.testing.assert_allclose(graph.read("optimizer_theta-rms"), ms, rtol=1e-6)
    np.testing.assert_allclose(graph.read("optimizer_theta-momentum"), mom, rtol=1e-5)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - mom, rtol=1e-6)

    step(optimizer, graph, theta, 0.5)
    ms = 0.9 * ms + 0.1 * 0.25
    theta_value = 1.0 - mom
    mom = 0.9 * mom + 0.01 * 0.5 / np.sqrt(ms + 1e-10)
    np.testing.assert_allclose(graph.read("optimizer_theta-rms"), ms, rtol=1e-6)
    np.testing.assert_allclose(graph.read("theta"), theta_value - mom, rtol=1e-6)


def test_centered_rmsprop_step():
    optimizer = RMSProp(learning_rate=0.01, decay=0.9, momentum=0.0, epsilon=1e-10, centered=True)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 0.5)
    ms, mg = 0.1 * 0.25, 0.1 * 0.5
    mom = 0.01 * 0.5 / np.sqrt(ms + 1e-10 - mg ** 2)
    np.testing.assert_allclose(graph.read("optimizer_theta-mg"), mg, rtol=1e-6)
    np.testing.assert_allclose(graph.read("optimizer_theta-momentum"), mom, rtol=1e-5)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - mom, rtol=1e-6)


def test_adadelta_step():
    optimizer = AdaDelta(learning_rate=1.0, rho=0.95, epsilon=1e-8)
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 0.5)
    accumulator = 0.05 * 0.25
    update = np.sqrt(1e-8) / np.sqrt(accumulator + 1e-8) * 0.5
    np.testing.assert_allclose(graph.read("optimizer_theta-accumulator"), accumulator, rtol=1e-6)
    np.testing.assert_allclose(graph.read("optimizer_theta-accumulator_update"), 0.05 * update ** 2, rtol=1e-5)
    np.testing.assert_allclose(graph.read("theta"), 1.0 - update, rtol=1e-6)


def test_apply_before_create_slots_raises():
    optimizer = Adamax()
    with pytest.raises(OptimizerStateError):
        optimizer.apply_gradients({"theta": jnp.ones(())}, ["theta"], [jnp.ones(())])


def test_create_slots_twice_raises():
    optimizer = Adam()
    graph, theta = scalar_graph(optimizer)
    with pytest.raises(OptimizerStateError):
        optimizer.create_slots(graph, [theta])


def test_length_mismatch_raises():
    optimizer = SGD()
    graph, theta = scalar_graph(optimizer)
    with pytest.raises(ValueError):
        optimizer.apply_gradients(graph.values, [theta], [])


def test_apply_gradients_accepts_names():
    optimizer = SGD(learning_rate=1.0)
    graph, _ = scalar_graph(optimizer)
    state = apply_updates(graph.values, optimizer.apply_gradients(graph.values, ["theta"], [jnp.asarray(0.25)]))
    np.testing.assert_allclose(state["theta"], 0.75)


def test_clip_by_value():
    optimizer = SGD(learning_rate=1.0, clip_gradient=ClipGradientByValue(0.1))
    graph, theta = scalar_graph(optimizer)
    step(optimizer, graph, theta, 5.0)
    np.testing.assert_allclose(graph.read("theta"), 0.9, rtol=1e-6)


def test_clip_by_norm():
    clip = ClipGradientByNorm(1.0)
    clipped = np.asarray(clip(jnp.array([3.0, 4.0])))
    np.testing.assert_allclose(clipped, [0.6, 0.8], rtol=1e-6)
    np.testing.assert_allclose(clip(jnp.array([0.3, 0.4])), [0.3, 0.4], rtol=1e-6)
