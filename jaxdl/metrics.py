from enum import Enum

import jax.numpy as jnp


class Metrics(Enum):
    ACCURACY = "accuracy"
    MAE = "mae"
    MSE = "mse"

    def batch_value(self, y_true, y_pred):
        """Mean of the metric over one batch"""
        if self is Metrics.ACCURACY:
            return accuracy(y_true, y_pred)
        elif self is Metrics.MAE:
            return jnp.mean(jnp.abs(y_pred - y_true))
        return jnp.mean(jnp.square(y_pred - y_true))


def accuracy(y_true, y_pred):
    """
    Input: y_true (B, N) one hot or (B,) class indices, y_pred (B, N) scores\n
    Returns: fraction of samples where the arg-max of y_pred is the true class
    """
    predicted_classes = jnp.argmax(y_pred, axis=1)
    if y_true.ndim == 2 and y_true.shape[1] > 1:
        correct_classes = jnp.argmax(y_true, axis=1)
    else:
        correct_classes = jnp.reshape(y_true, (-1,)).astype(predicted_classes.dtype)
    return jnp.mean(predicted_classes == correct_classes)


def get_metric(metric):
    if isinstance(metric, Metrics):
        return metric
    try:
        return Metrics(str(metric).lower())
    except ValueError:
        raise ValueError(f"Metric {metric} not found") from None
