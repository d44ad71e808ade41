import numpy as np
import pytest

from jaxdl.activations import Activations
from jaxdl.exceptions import GraphClosedError, OptimizerStateError, RepeatableLayerNameError, ShapeMismatchError
from jaxdl.layers import Dense, Flatten, Input, SeparableConv2D
from jaxdl.metrics import Metrics
from jaxdl.models import Sequential
from jaxdl.optimizer import SGD, Adamax
from jaxdl.regularizers import L2


def blob_model(**dense_kwargs):
    return Sequential(
        Input(4),
        Dense(8, **dense_kwargs),
        Dense(2, activation=Activations.Linear),
    )


class TestConstruction:
    def test_default_names(self):
        model = blob_model()
        assert [layer.name for layer in model.layers] == ["input_0", "dense_1", "dense_2"]

    def test_duplicate_names_raise(self):
        with pytest.raises(RepeatableLayerNameError, match="The layer name a is used in previous layers"):
            Sequential(Input(4), Dense(2, name="a"), Dense(2, name="a"))

    def test_first_layer_must_be_input(self):
        with pytest.raises(ValueError):
            Sequential(Dense(2), Dense(2))

    def test_get_layer(self):
        model = Sequential(Input(4), Dense(2, name="out"))
        assert model.get_layer("out").output_size == 2
        with pytest.raises(ValueError):
            model.get_layer("missing")

    def test_default_names_skip_explicit_names(self):
        model = Sequential(Input(4), Dense(2, name="dense_2"), Dense(2))
        assert [layer.name for layer in model.layers] == ["input_0", "dense_2", "dense_3"]

    def test_default_names_bump_past_every_taken_name(self):
        model = Sequential(Input(4), Dense(2), Dense(2, name="dense_2"), Dense(2, name="dense_1"), Dense(2))
        names = [layer.name for layer in model.layers]
        assert names == ["input_0", "dense_3", "dense_2", "dense_1", "dense_4"]
        assert len(set(names)) == len(names)


class TestCompile:
    def test_output_shape_and_summary(self):
        model = blob_model()
        model.compile(SGD(0.1))
        assert model.output_shape == (None, 2)
        assert model.param_count == 4 * 8 + 8 + 8 * 2 + 2
        lines = model.summary(verbose=False)
        assert lines[-1] == f"Total params: {model.param_count}"

    def test_compile_twice_raises(self):
        model = blob_model()
        model.compile(SGD(0.1))
        with pytest.raises(RuntimeError):
            model.compile(SGD(0.1))

    def test_fit_before_compile_raises(self, blobs):
        with pytest.raises(RuntimeError):
            blob_model().fit(blobs)

    def test_failed_compile_leaves_layers_unbuilt(self):
        model = Sequential(Input(4, 4, 1), Dense(3))
        with pytest.raises(ShapeMismatchError):
            model.compile(SGD(0.1))
        assert not model.is_compiled
        assert model.graph is None
        assert all(not layer.is_built for layer in model.layers)
        # the same shape error again, not "already built"
        with pytest.raises(ShapeMismatchError):
            model.compile(SGD(0.1))

    def test_compile_can_be_retried(self):
        used = Adamax()
        blob_model().compile(used)
        model = blob_model()
        with pytest.raises(OptimizerStateError):
            model.compile(used)
        model.compile(Adamax())
        assert model.is_compiled
        assert model.output_shape == (None, 2)


class TestTraining:
    def test_fit_reduces_loss(self, blobs):
        model = blob_model()
        model.compile(SGD(0.1), seed=3)
        history = model.fit(blobs, epochs=10, batch_size=16, verbose=False)
        assert len(history) == 10
        assert history[-1]["loss"] < history[0]["loss"]
        assert model.iteration == 10 * 4
        assert model.evaluate(blobs) > 0.9

    def test_slots_are_stable_across_steps(self, blobs):
        optimizer = Adamax(learning_rate=0.01)
        model = blob_model()
        model.compile(optimizer)
        slots = dict(optimizer.slots)
        assert len(slots) == 2 * 4

        model.fit(blobs, epochs=1, batch_size=16, verbose=False)
        model.fit(blobs, epochs=1, batch_size=16, verbose=False)
        assert optimizer.slots.keys() == slots.keys()
        for key, slot in slots.items():
            assert optimizer.slots[key] is slot

    def test_beta_power_accumulates_across_fits(self, blobs):
        model = blob_model()
        model.compile(Adamax())
        model.fit(blobs, epochs=1, batch_size=32, verbose=False)
        np.testing.assert_allclose(model.graph.read("optimizer_beta1_power"), 0.9 ** 3, rtol=1e-5)
        model.fit(blobs, epochs=1, batch_size=32, verbose=False)
        np.testing.assert_allclose(model.graph.read("optimizer_beta1_power"), 0.9 ** 5, rtol=1e-5)

    def test_evaluate_does_not_change_variables(self, blobs):
        model = blob_model()
        model.compile(SGD(0.1))
        before = model.weights
        model.evaluate(blobs, metric=Metrics.MSE)
        after = model.weights
        for name in before:
            np.testing.assert_array_equal(before[name], after[name])

    def test_regularized_fit(self, blobs):
        model = blob_model(kernel_regularizer=L2(0.01))
        model.compile(SGD(0.1))
        assert len(model.regularized_variables) == 1
        history = model.fit(blobs, epochs=2, batch_size=16, verbose=False)
        assert np.isfinite(history[-1]["loss"])

    def test_non_trainable_layer_is_not_updated(self, images):
        model = Sequential(
            Input(8, 8, 1),
            SeparableConv2D(4, name="sep"),
            Flatten(),
            Dense(3, activation="linear", name="out"),
        )
        model.compile(Adamax(learning_rate=0.01), metric="accuracy")
        before = model.weights
        model.fit(images, epochs=1, batch_size=4, verbose=False)
        after = model.weights

        for name in ("sep_depthwise_kernel", "sep_pointwise_kernel", "sep_separable_conv2d_bias"):
            np.testing.assert_array_equal(before[name], after[name])
        assert not np.array_equal(before["out_dense_kernel"], after["out_dense_kernel"])
        assert "optimizer_sep_depthwise_kernel-m" not in model.graph.optimizer_variables


class TestPredict:
    def test_predict_and_predict_softly(self, blobs):
        model = blob_model()
        model.compile(SGD(0.1))
        x = blobs.features[:5]
        probabilities = model.predict_softly(x)
        assert probabilities.shape == (5, 2)
        np.testing.assert_allclose(probabilities.sum(axis=1), np.ones(5), rtol=1e-5)
        np.testing.assert_array_equal(model.predict(x), probabilities.argmax(axis=1))


def test_closed_model_raises(blobs):
    with blob_model() as model:
        model.compile(SGD(0.1))
        model.fit(blobs, epochs=1, verbose=False)
    with pytest.raises(GraphClosedError):
        model.weights
