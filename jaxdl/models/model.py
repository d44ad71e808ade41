from jaxdl.activations import Activations, get_activation
from jaxdl.initializers import Constant, TruncatedNormal, Zeros
from jaxdl.layers import Input, Dense, Flatten, Conv2D, MaxPool2D
from jaxdl.models.sequential import Sequential


def get_lenet(cfg):
    """
    Input (28, 28, 1) -> Conv2D 32 -> MaxPool -> Conv2D 64 -> MaxPool -> Flatten -> Dense 120 -> Dense 84 -> Dense num_labels
    """
    mcfg = cfg.model
    seed = cfg.seed
    return Sequential(
        Input(*mcfg.input_shape),
        Conv2D(filters=32, kernel_size=(5, 5), kernel_initializer=TruncatedNormal(seed), bias_initializer=Zeros()),
        MaxPool2D(),
        Conv2D(filters=64, kernel_size=(5, 5), kernel_initializer=TruncatedNormal(seed), bias_initializer=Constant(0.1)),
        MaxPool2D(),
        Flatten(),
        Dense(120, kernel_initializer=TruncatedNormal(seed), bias_initializer=Constant(0.1)),
        Dense(84, kernel_initializer=TruncatedNormal(seed), bias_initializer=Constant(0.1)),
        Dense(mcfg.num_labels, activation=Activations.Linear, kernel_initializer=TruncatedNormal(seed), bias_initializer=Constant(0.1)),
    )


def get_mlp(cfg):
    mcfg = cfg.model
    activation = get_activation(mcfg.activation)
    hidden = [Dense(size, activation=activation) for size in mcfg.hidden_sizes]
    return Sequential(
        Input(*mcfg.input_shape),
        Flatten(),
        *hidden,
        Dense(mcfg.num_labels, activation=Activations.Linear),
    )


def get_model(cfg):
    if cfg.model.name == "lenet":
        return get_lenet(cfg)
    elif cfg.model.name == "mlp":
        return get_mlp(cfg)

    raise ValueError(f"Model {cfg.model.name} not found")
