import jax
import jax.numpy as jnp
from jax import random
import numpy as np
import wandb

from jaxdl.data.dataload import Dataset
from jaxdl.exceptions import RepeatableLayerNameError
from jaxdl.graph import Graph, apply_updates
from jaxdl.layers.core import Input
from jaxdl.loss.loss import get_loss
from jaxdl.metrics import Metrics, get_metric
from jaxdl.shape import shape_to_str
from jaxdl.utils.utility import load_weights, save_weights
from jaxdl.utils.utils import default_layer_name


class Sequential():
    """
    A linear stack of layers, the first one being an Input layer.\n
    Lifecycle: construct -> compile (build layers, bind optimizer and loss) -> fit -> evaluate / predict.\n
    Layer names must be unique, unnamed layers get <layer type>_<position>.
    """
    def __init__(self, input_layer, *layers) -> None:
        if not isinstance(input_layer, Input):
            raise ValueError(f"The first layer of a Sequential model should be Input, got {input_layer.__class__.__name__}")
        self.input_layer = input_layer
        self._layers = list(layers)
        self._name_layers()

        self.graph = None
        self.optimizer = None
        self.loss_fn = None
        self.metric = None
        self.output_shape = None
        self.seed = None
        self.iteration = 0
        self.is_compiled = False

    @classmethod
    def of(cls, *layers):
        return cls(*layers)

    def _name_layers(self):
        # explicit names must be unique, defaults skip every taken name
        names = set()
        for layer in self.layers:
            if not layer.name:
                continue
            if layer.name in names:
                raise RepeatableLayerNameError(layer.name)
            names.add(layer.name)
        for i, layer in enumerate(self.layers):
            if layer.name:
                continue
            index = i
            while default_layer_name(layer, index) in names:
                index += 1
            layer.name = default_layer_name(layer, index)
            names.add(layer.name)

    @property
    def layers(self):
        return [self.input_layer] + self._layers

    def get_layer(self, name):
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise ValueError(f"No layer with the name {name} in the model")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def close(self):
        if self.graph is not None:
            self.graph.close()

    ######################## Compile ########################

    def compile(self, optimizer, loss="softmax_cross_entropy_with_logits", metric=Metrics.ACCURACY, seed=12):
        """
        Builds every layer in order, creates the optimizer slots and prepares the jitted steps.\n
        No computation is run, variables are initialized on first use (or by init).
        """
        if self.is_compiled:
            raise RuntimeError("The model is already compiled")
        graph = Graph()
        try:
            # shape inference through the stack
            shape = self.input_layer.build(graph, self.input_layer.packed_dims)
            for layer in self._layers:
                shape = layer.build(graph, shape)
            loss_fn = get_loss(loss)
            metric = get_metric(metric)
            trainable_variables = graph.trainable_variables()
            optimizer.create_slots(graph, trainable_variables)
        except Exception:
            # a failed compile leaves every layer unbuilt, so compile can be retried
            for layer in self.layers:
                layer.reset()
            graph.close()
            raise

        self.graph = graph
        self.output_shape = shape
        self.optimizer = optimizer
        self.loss_fn = loss_fn
        self.metric = metric
        self.seed = seed

        self.trainable_variables = trainable_variables
        self.regularized_variables = [v for v in trainable_variables if v.regularizer is not None]

        self._jit_train_step = jax.jit(self._train_step)
        self._jit_forward = jax.jit(self._forward)
        self.is_compiled = True

    def _check_compiled(self):
        if not self.is_compiled:
            raise RuntimeError("The model should be compiled before use")

    def init(self, seed=None):
        """Initializes the layer variables, seed defaults to the one given to compile"""
        self._check_compiled()
        key = random.PRNGKey(self.seed if seed is None else seed)
        self.graph.initialize_layers(key)

    def _init_if_needed(self):
        if not self.graph.is_layers_initialized:
            self.init()

    ######################## Traced functions ########################

    def _forward(self, params, x):
        for layer in self.layers:
            x = layer.forward(params, x)
        return x

    def _objective(self, trainable, state, x, y):
        params = {**state, **trainable}
        loss = self.loss_fn(y, self._forward(params, x))
        for variable in self.regularized_variables:
            loss = loss + variable.regularizer(params[variable.name])
        return loss

    def _train_step(self, state, x, y):
        trainable = {v.name: state[v.name] for v in self.trainable_variables}
        loss, grads = jax.value_and_grad(self._objective)(trainable, state, x, y)
        targets = self.optimizer.apply_gradients(state, self.trainable_variables, [grads[v.name] for v in self.trainable_variables])
        return apply_updates(state, targets), loss

    ######################## Train and test ########################

    def _batches(self, dataset, batch_size, shuffle):
        if isinstance(dataset, Dataset):
            return dataset.batches(batch_size, shuffle=shuffle)
        # any re-iterable of (features, labels) batches
        return dataset

    def fit(self, dataset, epochs=5, batch_size=32, shuffle=True, verbose=True, log_frequency=1):
        """
        Trains for epochs * ceil(len(dataset) / batch_size) steps.\n
        Every step: forward -> loss -> gradients -> one apply_gradients -> assign.\n
        Returns: history, a list with the mean loss of every epoch
        """
        self._check_compiled()
        self._init_if_needed()
        # only the first fit initializes the optimizer slots
        self.graph.initialize_optimizer()

        batches = self._batches(dataset, batch_size, shuffle)
        history = []
        for epoch in range(epochs):
            loss_sum, n_samples = 0.0, 0
            for data, labels in batches:
                state, loss = self._jit_train_step(self.graph.values, data, labels)
                self.graph.values = state
                self.iteration += 1

                loss = float(loss)
                loss_sum += loss * len(data)
                n_samples += len(data)

                # Logging loss
                if wandb.run is not None and self.iteration % log_frequency == 0:
                    wandb.log({"loss": loss, "epoch": epoch, "iteration": self.iteration})

            epoch_loss = loss_sum / max(n_samples, 1)
            history.append({"epoch": epoch + 1, "loss": epoch_loss})
            if verbose:
                print(f"epochs: {epoch + 1}/{epochs} loss: {epoch_loss:.6f}")
        return history

    def evaluate(self, dataset, batch_size=256, metric=None):
        """
        Forward passes only, no variable is changed.\n
        Returns: the metric averaged over all samples
        """
        self._check_compiled()
        self._init_if_needed()
        metric = self.metric if metric is None else get_metric(metric)

        total, n_samples = 0.0, 0
        for data, labels in self._batches(dataset, batch_size, False):
            y_pred = self._jit_forward(self.graph.values, data)
            total += float(metric.batch_value(jnp.asarray(labels), y_pred)) * len(data)
            n_samples += len(data)
        if n_samples == 0:
            raise ValueError("Can't evaluate on an empty dataset")
        value = total / n_samples

        if wandb.run is not None:
            wandb.log({f"test {metric.value}": value})
        return value

    def predict_softly(self, x):
        """Softmax of the outputs of the model for the batch x"""
        self._check_compiled()
        self._init_if_needed()
        return np.asarray(jax.nn.softmax(self._jit_forward(self.graph.values, x), axis=-1))

    def predict(self, x):
        """Predicted classes (arg-max of the outputs) for the batch x"""
        self._check_compiled()
        self._init_if_needed()
        return np.asarray(jnp.argmax(self._jit_forward(self.graph.values, x), axis=-1))

    ######################## Weights ########################

    @property
    def weights(self):
        """dict variable name -> numpy array of all layer variables"""
        self._check_compiled()
        self._init_if_needed()
        weights = {}
        for layer in self.layers:
            weights.update(layer.weights)
        return weights

    @weights.setter
    def weights(self, weights):
        self._check_compiled()
        for layer in self.layers:
            if layer.variables:
                layer.weights = weights
        self.graph.is_layers_initialized = True

    @property
    def param_count(self):
        return sum(layer.param_count for layer in self.layers)

    def summary(self, verbose=True):
        self._check_compiled()
        lines = [f"{'Layer (type)':<40}{'Output Shape':<24}{'Param #':>10}"]
        for layer in self.layers:
            lines.append(f"{layer.name + ' (' + layer.__class__.__name__ + ')':<40}{shape_to_str(layer.output_shape):<24}{layer.param_count:>10}")
        lines.append(f"Total params: {self.param_count}")
        if verbose:
            print("\n".join(lines))
        return lines

    def save_weights(self, path, format="npz"):
        save_weights(self, path, format=format)

    def load_weights(self, path, format="npz"):
        load_weights(self, path, format=format)

    def __repr__(self) -> str:
        return f"Sequential(layers={[layer.name for layer in self.layers]}, optimizer={self.optimizer})"
