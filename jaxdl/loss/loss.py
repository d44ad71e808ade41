import jax.numpy as jnp
import optax


def softmax_cross_entropy_with_logits(y_true, logits):
    """
    Input: y_true (B, N) one hot or probabilities, logits (B, N)\n
    Returns: mean cross entropy over the batch
    """
    return jnp.mean(optax.softmax_cross_entropy(logits, y_true))

def sparse_softmax_cross_entropy_with_logits(y_true, logits):
    """
    Input: y_true (B,) or (B, 1) class indices, logits (B, N)
    """
    labels = jnp.reshape(y_true, (-1,)).astype(jnp.int32)
    return jnp.mean(optax.softmax_cross_entropy_with_integer_labels(logits, labels))

def sigmoid_cross_entropy_with_logits(y_true, logits):
    return jnp.mean(optax.sigmoid_binary_cross_entropy(logits, y_true))

def mse(y_true, y_pred):
    return jnp.mean(optax.squared_error(y_pred, y_true))

def mae(y_true, y_pred):
    return jnp.mean(jnp.abs(y_pred - y_true))

def get_huber(delta=1.0):
    def huber(y_true, y_pred):
        return jnp.mean(optax.huber_loss(y_pred, y_true, delta=delta))
    return huber


LOSSES = {
    "softmax_cross_entropy_with_logits": softmax_cross_entropy_with_logits,
    "sparse_softmax_cross_entropy_with_logits": sparse_softmax_cross_entropy_with_logits,
    "sigmoid_cross_entropy_with_logits": sigmoid_cross_entropy_with_logits,
    "mse": mse,
    "mae": mae,
    "huber": get_huber(),
}


def get_loss(cfg):
    """
    cfg: a config with a loss group, or the name of the loss\n
    Returns: loss_fn(y_true, y_pred) -> scalar
    """
    if callable(cfg):
        return cfg
    if isinstance(cfg, str):
        name, delta = cfg, 1.0
    else:
        name, delta = cfg.loss.name, cfg.loss.get("delta", 1.0)

    if name == "huber":
        return get_huber(delta)
    elif name in LOSSES:
        return LOSSES[name]
    raise NotImplementedError(f"The loss {name} is not implemented")
