from .optimizer import Optimizer
from .optimizers import get_optim, SGD, Momentum, Adam, Adamax, RMSProp, AdaGrad, AdaDelta
from .clip import ClipGradientAction, NoClipGradient, ClipGradientByValue, ClipGradientByNorm
