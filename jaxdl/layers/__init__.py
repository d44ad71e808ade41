from .layer import Layer
from .core import Input, Dense, Flatten
from .convolutional import Conv2D, DepthwiseConv2D, SeparableConv2D
from .pooling import MaxPool2D, AvgPool2D
