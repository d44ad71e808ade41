"""Shared fixtures for the jaxdl test suite."""
import os

os.environ.setdefault("JAX_PLATFORMS", "cpu")
os.environ.setdefault("WANDB_MODE", "disabled")

import numpy as np
import pytest

from jaxdl.data import Dataset


@pytest.fixture()
def blobs():
    """Two well separated gaussian blobs in 4 dimensions, 64 samples, one hot labels."""
    rng = np.random.RandomState(0)
    n = 32
    first = rng.normal(-2.0, 0.5, size=(n, 4))
    second = rng.normal(2.0, 0.5, size=(n, 4))
    features = np.concatenate([first, second]).astype(np.float32)
    labels = np.array([0] * n + [1] * n)
    return Dataset.create(features, labels, num_classes=2)


@pytest.fixture()
def images():
    """Tiny 8x8 single channel images with 3 classes."""
    rng = np.random.RandomState(1)
    features = rng.rand(12, 8, 8, 1).astype(np.float32)
    labels = rng.randint(0, 3, size=12)
    return Dataset.create(features, labels, num_classes=3)
