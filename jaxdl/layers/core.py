import jax.numpy as jnp

from jaxdl.activations import Activations, get_activation
from jaxdl.initializers import HeNormal, HeUniform
from jaxdl.layers.layer import Layer
from jaxdl.shape import num_elements
from jaxdl.utils.utils import dense_bias_var_name, dense_kernel_var_name


class Input(Layer):
    """
    First layer of a Sequential model, describes the shape of one sample.\n
    Input(28, 28, 1) takes batches of shape (B, 28, 28, 1).
    """
    def __init__(self, *dims, name="") -> None:
        super().__init__(name)
        if len(dims) == 0:
            raise ValueError("Input needs at least one dimension")
        self.packed_dims = (None,) + tuple(int(d) for d in dims)

    def compute_output_shape(self, input_shape):
        return self.packed_dims

    def _forward(self, params, x):
        return x

    def __repr__(self) -> str:
        return f"Input(name={self.name}, shape={self.packed_dims})"


class Dense(Layer):
    """
    Densely connected layer: activation(x @ kernel + bias)\n
    Input: x (B, In)\n
    Returns: (B, output_size)
    """
    input_rank = 2

    def __init__(self, output_size=128, activation=Activations.Relu, kernel_initializer=None, bias_initializer=None,
                 kernel_regularizer=None, bias_regularizer=None, use_bias=True, name="") -> None:
        super().__init__(name)
        self.output_size = output_size
        self.activation = get_activation(activation)
        self.kernel_initializer = kernel_initializer if kernel_initializer is not None else HeNormal()
        self.bias_initializer = bias_initializer if bias_initializer is not None else HeUniform()
        self.kernel_regularizer = kernel_regularizer
        self.bias_regularizer = bias_regularizer
        self.use_bias = use_bias

        self.kernel = None
        self.bias = None

    def _build(self, graph, input_shape):
        fan_in = int(input_shape[-1])
        fan_out = self.output_size

        self.kernel = self.create_variable(graph, dense_kernel_var_name(self.name), (fan_in, self.output_size),
                                           fan_in, fan_out, self.kernel_initializer, self.kernel_regularizer)
        if self.use_bias:
            self.bias = self.create_variable(graph, dense_bias_var_name(self.name), (self.output_size,),
                                             fan_in, fan_out, self.bias_initializer, self.bias_regularizer)

    def compute_output_shape(self, input_shape):
        return (input_shape[0], self.output_size)

    def _forward(self, params, x):
        out = jnp.matmul(x, params[self.kernel.name])
        if self.bias is not None:
            out = out + params[self.bias.name]
        return self.activation.apply(out)

    @property
    def variables(self):
        return [v for v in (self.kernel, self.bias) if v is not None]

    @property
    def has_activation(self):
        return True

    def __repr__(self) -> str:
        return f"Dense(name={self.name}, output_size={self.output_size}, activation={self.activation}, use_bias={self.use_bias})"


class Flatten(Layer):
    """
    Flattens every dimension but the batch dimension\n
    Input: x (B, d1, ..., dn)\n
    Returns: (B, d1 * ... * dn)
    """
    def compute_output_shape(self, input_shape):
        return (input_shape[0], num_elements(input_shape[1:]))

    def _forward(self, params, x):
        return jnp.reshape(x, (x.shape[0], -1))
