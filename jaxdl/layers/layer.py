import numpy as np
import jax.numpy as jnp

from jaxdl.exceptions import LayerNotBuiltError, ShapeMismatchError, WeightsMismatchError
from jaxdl.graph import Variable
from jaxdl.shape import num_elements, shape_to_str


class Layer():
    """
    Base class of all layers.\n
    A layer goes Unbuilt -> Built exactly once through build(graph, input_shape), which registers its
    variables in the graph. After that forward(params, x) can be called any number of times,
    it only describes the computation (it is traced by jax.jit), params being the dict of variable values.\n
    Subclasses implement _build, compute_output_shape and _forward.
    """
    # rank of the input including the batch dimension, None if any rank is accepted
    input_rank = None

    def __init__(self, name="") -> None:
        self.name = name
        self.is_trainable = True
        self.is_built = False
        self.graph = None
        self.input_shape = None
        self.output_shape = None

    def build(self, graph, input_shape):
        """
        Allocates the variables of the layer in the graph.\n
        Input: graph, input_shape (tuple with None as batch dimension)\n
        Returns: the output shape
        """
        if self.is_built:
            raise RuntimeError(f"Layer {self.name} is already built")
        input_shape = tuple(input_shape)
        if self.input_rank is not None and len(input_shape) != self.input_rank:
            raise ShapeMismatchError(f"Layer {self.name} expects an input of rank {self.input_rank}", self.input_rank, f"rank {len(input_shape)} {shape_to_str(input_shape)}")

        self.graph = graph
        self.input_shape = input_shape
        self._build(graph, input_shape)
        self.output_shape = self.compute_output_shape(input_shape)
        self.is_built = True
        return self.output_shape

    def reset(self):
        """Back to Unbuilt, dropping the graph the layer was built into"""
        self.graph = None
        self.input_shape = None
        self.output_shape = None
        self.is_built = False

    def _build(self, graph, input_shape):
        pass

    def compute_output_shape(self, input_shape):
        raise NotImplementedError("Output shape of the layer given the input shape")

    def forward(self, params, x):
        if not self.is_built:
            raise LayerNotBuiltError(self.name)
        return self._forward(params, x)

    def _forward(self, params, x):
        raise NotImplementedError("Forward pass of the layer")

    def __call__(self, params, x):
        return self.forward(params, x)

    def create_variable(self, graph, name, shape, fan_in, fan_out, initializer, regularizer=None):
        variable = Variable(name, shape, initializer, fan_in=fan_in, fan_out=fan_out, is_trainable=self.is_trainable, regularizer=regularizer)
        return graph.add_variable(variable)

    @property
    def variables(self):
        """The variables owned by the layer, None entries (e.g. disabled bias) are skipped"""
        return []

    @property
    def weights(self):
        """dict variable name -> numpy array with the current values"""
        if not self.is_built:
            raise LayerNotBuiltError(self.name, "reading weights")
        return {v.name: np.asarray(self.graph.read(v.name)) for v in self.variables}

    @weights.setter
    def weights(self, weights):
        if not self.is_built:
            raise LayerNotBuiltError(self.name, "assigning weights")
        targets = {}
        for variable in self.variables:
            if variable.name not in weights:
                raise WeightsMismatchError(f"Variable {variable.name} of layer {self.name} is missing in the weights")
            value = np.asarray(weights[variable.name])
            if tuple(value.shape) != variable.shape:
                raise WeightsMismatchError(f"Variable {variable.name} of layer {self.name} has shape {shape_to_str(variable.shape)}, but the weights have shape {shape_to_str(value.shape)}")
            targets[variable.name] = jnp.asarray(value, dtype=variable.dtype)
        self.graph.assign([targets])

    @property
    def param_count(self):
        return sum(num_elements(v.shape) for v in self.variables)

    @property
    def has_activation(self):
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, is_trainable={self.is_trainable})"
