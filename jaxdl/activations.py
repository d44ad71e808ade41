from enum import Enum

import jax.numpy as jnp
from jax import nn


class Activations(Enum):
    """Elementwise activation functions applied to the output of a layer"""
    Linear = "linear"
    Sigmoid = "sigmoid"
    Tanh = "tanh"
    Relu = "relu"
    Relu6 = "relu6"
    Elu = "elu"
    Selu = "selu"
    Softmax = "softmax"
    LogSoftmax = "log_softmax"
    Exponential = "exponential"
    SoftPlus = "softplus"
    SoftSign = "softsign"
    HardSigmoid = "hard_sigmoid"
    Swish = "swish"

    def apply(self, x):
        return _ACTIVATION_FUNCTIONS[self](x)


def hard_sigmoid(x):
    # piecewise linear approximation used by keras: clip(0.2 * x + 0.5, 0, 1)
    return jnp.clip(0.2 * x + 0.5, 0.0, 1.0)


_ACTIVATION_FUNCTIONS = {
    Activations.Linear: lambda x: x,
    Activations.Sigmoid: nn.sigmoid,
    Activations.Tanh: jnp.tanh,
    Activations.Relu: nn.relu,
    Activations.Relu6: nn.relu6,
    Activations.Elu: nn.elu,
    Activations.Selu: nn.selu,
    Activations.Softmax: lambda x: nn.softmax(x, axis=-1),
    Activations.LogSoftmax: lambda x: nn.log_softmax(x, axis=-1),
    Activations.Exponential: jnp.exp,
    Activations.SoftPlus: nn.softplus,
    Activations.SoftSign: nn.soft_sign,
    Activations.HardSigmoid: hard_sigmoid,
    Activations.Swish: nn.swish,
}


def get_activation(activation):
    if isinstance(activation, Activations):
        return activation
    try:
        return Activations(str(activation).lower())
    except ValueError:
        raise ValueError(f"Activation {activation} not found") from None
