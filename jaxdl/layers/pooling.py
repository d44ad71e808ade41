import jax.numpy as jnp
from jax import lax

from jaxdl.layers.layer import Layer
from jaxdl.shape import ConvPadding, conv_output_length, get_padding, require_array_size


class _Pool2D(Layer):
    """
    Pooling over the spatial dimensions of NHWC inputs.\n
    pool_size and strides are 4 element arrays (1, h, w, 1), ints are expanded to that form.
    """
    input_rank = 4

    def __init__(self, pool_size=(1, 2, 2, 1), strides=(1, 2, 2, 1), padding=ConvPadding.VALID, name="") -> None:
        super().__init__(name)
        if isinstance(pool_size, int):
            pool_size = (1, pool_size, pool_size, 1)
        if isinstance(strides, int):
            strides = (1, strides, strides, 1)
        self.pool_size = tuple(pool_size)
        self.strides = tuple(strides)
        require_array_size(self.pool_size, 4, "pool_size")
        require_array_size(self.strides, 4, "strides")
        self.padding = get_padding(padding)

    def compute_output_shape(self, input_shape):
        rows = conv_output_length(input_shape[1], self.pool_size[1], self.padding, self.strides[1])
        cols = conv_output_length(input_shape[2], self.pool_size[2], self.padding, self.strides[2])
        return (input_shape[0], rows, cols, input_shape[3])

    def _lax_padding(self):
        # batch and channel windows are 1, so FULL pads them with (0, 0)
        return self.padding.lax_padding(self.pool_size)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, pool_size={self.pool_size}, strides={self.strides}, padding={self.padding})"


class MaxPool2D(_Pool2D):
    """
    Input: x (B, H, W, C)\n
    Returns: (B, H', W', C) maximum of every window
    """
    def _forward(self, params, x):
        return lax.reduce_window(x, -jnp.inf, lax.max, self.pool_size, self.strides, self._lax_padding())


class AvgPool2D(_Pool2D):
    """
    Input: x (B, H, W, C)\n
    Returns: (B, H', W', C) mean of every window, padded positions are not counted
    """
    def _forward(self, params, x):
        padding = self._lax_padding()
        summed = lax.reduce_window(x, 0.0, lax.add, self.pool_size, self.strides, padding)
        counts = lax.reduce_window(jnp.ones_like(x), 0.0, lax.add, self.pool_size, self.strides, padding)
        return summed / counts
