import math

from jax import lax

from jaxdl.activations import Activations, get_activation
from jaxdl.initializers import HeNormal, HeUniform
from jaxdl.layers.layer import Layer
from jaxdl.shape import conv_output_length, get_padding, require_array_size, ConvPadding
from jaxdl.utils.utils import (conv2d_bias_var_name, conv2d_kernel_var_name,
                               depthwise_conv2d_bias_var_name, depthwise_conv2d_kernel_var_name,
                               separable_conv2d_bias_var_name, separable_conv2d_depthwise_kernel_var_name,
                               separable_conv2d_pointwise_kernel_var_name)

DIMENSION_NUMBERS = ('NHWC', 'HWIO', 'NHWC')

######################## Basic building blocks ########################

def expand_conv_arguments(kernel_size, strides, dilations):
    """
    Int shorthands to the full arrays:\n
    kernel_size k -> (k, k), strides s -> (1, s, s, 1), dilations d -> (1, d, d, 1)
    """
    if isinstance(kernel_size, int):
        kernel_size = (kernel_size, kernel_size)
    if isinstance(strides, int):
        strides = (1, strides, strides, 1)
    if isinstance(dilations, int):
        dilations = (1, dilations, dilations, 1)
    kernel_size, strides, dilations = tuple(kernel_size), tuple(strides), tuple(dilations)
    require_array_size(kernel_size, 2, "kernel_size")
    require_array_size(strides, 4, "strides")
    require_array_size(dilations, 4, "dilations")
    return kernel_size, strides, dilations

def round_half_up(x):
    return int(math.floor(x + 0.5))

def conv2d(x, w, strides, padding, dilations, kernel_size, feature_group_count=1):
    """
    Input: x (B, H, W, In_C), w (kH, kW, In_C / groups, Out_C)\n
    Returns: out (B, H', W', Out_C)
    """
    return lax.conv_general_dilated(
            lhs = x,
            rhs = w,
            window_strides = strides[1:3],
            padding = padding.lax_padding(kernel_size, dilations[1:3]),
            rhs_dilation = dilations[1:3],
            dimension_numbers = DIMENSION_NUMBERS,
            feature_group_count = feature_group_count
            )

def depthwise_conv2d(x, w, strides, padding, dilations):
    """
    Convolves every input channel with its own depth_multiplier filters.\n
    Input: x (B, H, W, C), w (kH, kW, C, D)\n
    Returns: out (B, H', W', C*D), channel c*D + d is filter d of input channel c
    """
    kh, kw, c, d = w.shape
    # grouped convolution, one group per input channel
    w = w.reshape(kh, kw, 1, c * d)
    return conv2d(x, w, strides, padding, dilations, (kh, kw), feature_group_count=c)


class _ConvBase(Layer):
    input_rank = 4

    def __init__(self, kernel_size, strides, dilations, activation, padding, use_bias, name) -> None:
        super().__init__(name)
        self.kernel_size, self.strides, self.dilations = expand_conv_arguments(kernel_size, strides, dilations)
        self.activation = get_activation(activation)
        self.padding = get_padding(padding)
        self.use_bias = use_bias

    def _channels(self, input_shape):
        channels = input_shape[-1]
        if channels is None:
            raise ValueError(f"Layer {self.name} needs a known number of input channels, got shape {input_shape}")
        return int(channels)

    def _fans(self, input_depth, output_depth):
        fan_in = input_depth * self.kernel_size[0] * self.kernel_size[1]
        fan_out = round_half_up(output_depth * self.kernel_size[0] * self.kernel_size[1] / (self.strides[0] * self.strides[1]))
        return fan_in, fan_out

    def _output_spatial(self, input_shape):
        rows = conv_output_length(input_shape[1], self.kernel_size[0], self.padding, self.strides[1], self.dilations[1])
        cols = conv_output_length(input_shape[2], self.kernel_size[1], self.padding, self.strides[2], self.dilations[2])
        return rows, cols

    @property
    def has_activation(self):
        return True


class Conv2D(_ConvBase):
    """
    2D convolution over NHWC inputs with an HWIO kernel.\n
    Input: x (B, H, W, C)\n
    Returns: (B, H', W', filters)
    """
    def __init__(self, filters=32, kernel_size=(3, 3), strides=(1, 1, 1, 1), dilations=(1, 1, 1, 1),
                 activation=Activations.Relu, kernel_initializer=None, bias_initializer=None,
                 kernel_regularizer=None, bias_regularizer=None, padding=ConvPadding.SAME, use_bias=True, name="") -> None:
        super().__init__(kernel_size, strides, dilations, activation, padding, use_bias, name)
        self.filters = filters
        self.kernel_initializer = kernel_initializer if kernel_initializer is not None else HeNormal()
        self.bias_initializer = bias_initializer if bias_initializer is not None else HeUniform()
        self.kernel_regularizer = kernel_regularizer
        self.bias_regularizer = bias_regularizer

        self.kernel = None
        self.bias = None

    def _build(self, graph, input_shape):
        channels = self._channels(input_shape)
        fan_in, fan_out = self._fans(channels, self.filters)

        kernel_shape = (*self.kernel_size, channels, self.filters)
        self.kernel = self.create_variable(graph, conv2d_kernel_var_name(self.name), kernel_shape,
                                           fan_in, fan_out, self.kernel_initializer, self.kernel_regularizer)
        if self.use_bias:
            self.bias = self.create_variable(graph, conv2d_bias_var_name(self.name), (self.filters,),
                                             fan_in, fan_out, self.bias_initializer, self.bias_regularizer)

    def compute_output_shape(self, input_shape):
        rows, cols = self._output_spatial(input_shape)
        return (input_shape[0], rows, cols, self.filters)

    def _forward(self, params, x):
        out = conv2d(x, params[self.kernel.name], self.strides, self.padding, self.dilations, self.kernel_size)
        if self.bias is not None:
            out = out + params[self.bias.name]
        return self.activation.apply(out)

    @property
    def variables(self):
        return [v for v in (self.kernel, self.bias) if v is not None]

    def __repr__(self) -> str:
        return (f"Conv2D(name={self.name}, filters={self.filters}, kernel_size={self.kernel_size}, strides={self.strides}, "
                f"dilations={self.dilations}, activation={self.activation}, padding={self.padding}, use_bias={self.use_bias})")


class DepthwiseConv2D(_ConvBase):
    """
    Depthwise 2D convolution, every input channel gets depth_multiplier filters of its own.\n
    Input: x (B, H, W, C)\n
    Returns: (B, H', W', C * depth_multiplier)
    """
    def __init__(self, kernel_size=(3, 3), strides=(1, 1, 1, 1), dilations=(1, 1, 1, 1), activation=Activations.Relu,
                 depth_multiplier=1, depthwise_initializer=None, bias_initializer=None, depthwise_regularizer=None,
                 bias_regularizer=None, padding=ConvPadding.SAME, use_bias=True, name="") -> None:
        super().__init__(kernel_size, strides, dilations, activation, padding, use_bias, name)
        self.depth_multiplier = depth_multiplier
        self.depthwise_initializer = depthwise_initializer if depthwise_initializer is not None else HeNormal()
        self.bias_initializer = bias_initializer if bias_initializer is not None else HeUniform()
        self.depthwise_regularizer = depthwise_regularizer
        self.bias_regularizer = bias_regularizer

        self.depthwise_kernel = None
        self.bias = None

    def _build(self, graph, input_shape):
        channels = self._channels(input_shape)
        output_depth = channels * self.depth_multiplier
        fan_in, fan_out = self._fans(channels, output_depth)

        kernel_shape = (*self.kernel_size, channels, self.depth_multiplier)
        self.depthwise_kernel = self.create_variable(graph, depthwise_conv2d_kernel_var_name(self.name), kernel_shape,
                                                     fan_in, fan_out, self.depthwise_initializer, self.depthwise_regularizer)
        if self.use_bias:
            self.bias = self.create_variable(graph, depthwise_conv2d_bias_var_name(self.name), (output_depth,),
                                             fan_in, fan_out, self.bias_initializer, self.bias_regularizer)

    def compute_output_shape(self, input_shape):
        rows, cols = self._output_spatial(input_shape)
        channels = None if input_shape[-1] is None else input_shape[-1] * self.depth_multiplier
        return (input_shape[0], rows, cols, channels)

    def _forward(self, params, x):
        out = depthwise_conv2d(x, params[self.depthwise_kernel.name], self.strides, self.padding, self.dilations)
        if self.bias is not None:
            out = out + params[self.bias.name]
        return self.activation.apply(out)

    @property
    def variables(self):
        return [v for v in (self.depthwise_kernel, self.bias) if v is not None]


class SeparableConv2D(_ConvBase):
    """
    2D convolution with separable filters.\n
    A depthwise convolution acting on every channel separately, followed by a 1x1 pointwise convolution mixing the channels.
    This is separability between the spatial dimensions and the channel dimension, not between height and width.\n
    Kernels: depthwise (kH, kW, C, depth_multiplier), pointwise (1, 1, C * depth_multiplier, filters), bias (filters,)\n
    Input: x (B, H, W, C)\n
    Returns: (B, H', W', filters)\n
    The layer is created non-trainable: its variables are built, exported and imported, but not handed to the optimizer.
    """
    def __init__(self, filters=32, kernel_size=(3, 3), strides=(1, 1, 1, 1), dilations=(1, 1, 1, 1),
                 activation=Activations.Relu, depth_multiplier=1, depthwise_initializer=None, pointwise_initializer=None,
                 bias_initializer=None, depthwise_regularizer=None, pointwise_regularizer=None, bias_regularizer=None,
                 padding=ConvPadding.SAME, use_bias=True, name="") -> None:
        super().__init__(kernel_size, strides, dilations, activation, padding, use_bias, name)
        self.filters = filters
        self.depth_multiplier = depth_multiplier
        self.depthwise_initializer = depthwise_initializer if depthwise_initializer is not None else HeNormal()
        self.pointwise_initializer = pointwise_initializer if pointwise_initializer is not None else HeNormal()
        self.bias_initializer = bias_initializer if bias_initializer is not None else HeUniform()
        self.depthwise_regularizer = depthwise_regularizer
        self.pointwise_regularizer = pointwise_regularizer
        self.bias_regularizer = bias_regularizer
        self.is_trainable = False

        self.depthwise_kernel = None
        self.pointwise_kernel = None
        self.bias = None

    def _build(self, graph, input_shape):
        # amount of channels is the last value of the input shape
        channels = self._channels(input_shape)
        output_depth = channels * self.depth_multiplier
        fan_in, fan_out = self._fans(channels, output_depth)

        depthwise_shape = (*self.kernel_size, channels, self.depth_multiplier)
        self.depthwise_kernel = self.create_variable(graph, separable_conv2d_depthwise_kernel_var_name(self.name), depthwise_shape,
                                                     fan_in, fan_out, self.depthwise_initializer, self.depthwise_regularizer)
        pointwise_shape = (1, 1, output_depth, self.filters)
        self.pointwise_kernel = self.create_variable(graph, separable_conv2d_pointwise_kernel_var_name(self.name), pointwise_shape,
                                                     fan_in, fan_out, self.pointwise_initializer, self.pointwise_regularizer)
        if self.use_bias:
            self.bias = self.create_variable(graph, separable_conv2d_bias_var_name(self.name), (self.filters,),
                                             fan_in, fan_out, self.bias_initializer, self.bias_regularizer)

    def compute_output_shape(self, input_shape):
        rows, cols = self._output_spatial(input_shape)
        return (input_shape[0], rows, cols, self.filters)

    def _forward(self, params, x):
        depthwise_output = depthwise_conv2d(x, params[self.depthwise_kernel.name], self.strides, self.padding, self.dilations)

        out = conv2d(depthwise_output, params[self.pointwise_kernel.name], (1, 1, 1, 1), ConvPadding.VALID, (1, 1, 1, 1), (1, 1))
        if self.bias is not None:
            out = out + params[self.bias.name]
        return self.activation.apply(out)

    @property
    def variables(self):
        return [v for v in (self.depthwise_kernel, self.pointwise_kernel, self.bias) if v is not None]

    @property
    def depthwise_shape(self):
        return None if self.depthwise_kernel is None else self.depthwise_kernel.shape

    @property
    def pointwise_shape(self):
        return None if self.pointwise_kernel is None else self.pointwise_kernel.shape

    @property
    def bias_shape(self):
        return None if self.bias is None else self.bias.shape

    def __repr__(self) -> str:
        return (f"SeparableConv2D(name={self.name}, is_trainable={self.is_trainable}, filters={self.filters}, "
                f"kernel_size={self.kernel_size}, strides={self.strides}, dilations={self.dilations}, "
                f"activation={self.activation}, depth_multiplier={self.depth_multiplier}, padding={self.padding}, "
                f"use_bias={self.use_bias}, depthwise_shape={self.depthwise_shape}, pointwise_shape={self.pointwise_shape}, "
                f"bias_shape={self.bias_shape})")
