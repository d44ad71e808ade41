from jaxdl.activations import Activations
from jaxdl.exceptions import RepeatableLayerNameError, LayerNotBuiltError, OptimizerStateError, GraphClosedError, ShapeMismatchError, WeightsMismatchError
from jaxdl.graph import Graph, Variable
from jaxdl.layers import Layer, Input, Dense, Flatten, Conv2D, DepthwiseConv2D, SeparableConv2D, MaxPool2D, AvgPool2D
from jaxdl.metrics import Metrics
from jaxdl.models import Sequential, get_model
from jaxdl.optimizer import get_optim, SGD, Momentum, Adam, Adamax, RMSProp, AdaGrad, AdaDelta
from jaxdl.shape import ConvPadding, conv_output_length
from jaxdl.data import Dataset
