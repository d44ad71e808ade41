import math

import jax
import jax.numpy as jnp
from jax import random

# stddev of a standard normal truncated to (-2, 2)
TRUNCATED_NORMAL_STDDEV = 0.87962566103423978


class Initializer():
    """
    Produces the initial value of a variable.\n
    Called as initializer(key, shape, fan_in, fan_out, dtype).\n
    fan_in/fan_out are given by the layer that owns the variable, they are not derived from the shape.\n
    If a seed is given it replaces the key supplied by the graph, making the value reproducible.
    """
    def __init__(self, seed=None) -> None:
        self.seed = seed

    def get_key(self, key):
        if self.seed is not None:
            return random.PRNGKey(self.seed)
        assert key is not None, f"{self} needs a random key or a seed"
        return key

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        raise NotImplementedError("Initial value of a variable")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Zeros(Initializer):
    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return jax.nn.initializers.zeros(key, shape, dtype)


class Ones(Initializer):
    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return jax.nn.initializers.ones(key, shape, dtype)


class Constant(Initializer):
    def __init__(self, value) -> None:
        super().__init__()
        self.value = value

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return jax.nn.initializers.constant(self.value, dtype)(key, shape, dtype)

    def __repr__(self) -> str:
        return f"Constant(value={self.value})"


class RandomNormal(Initializer):
    def __init__(self, mean=0.0, stddev=0.05, seed=None) -> None:
        super().__init__(seed)
        self.mean = mean
        self.stddev = stddev

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return self.mean + self.stddev * random.normal(self.get_key(key), shape, dtype)

    def __repr__(self) -> str:
        return f"RandomNormal(mean={self.mean}, stddev={self.stddev}, seed={self.seed})"


class RandomUniform(Initializer):
    def __init__(self, minval=-0.05, maxval=0.05, seed=None) -> None:
        super().__init__(seed)
        self.minval = minval
        self.maxval = maxval

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return random.uniform(self.get_key(key), shape, dtype, minval=self.minval, maxval=self.maxval)

    def __repr__(self) -> str:
        return f"RandomUniform(minval={self.minval}, maxval={self.maxval}, seed={self.seed})"


class TruncatedNormal(Initializer):
    """Normal distribution with values further than 2 stddevs from the mean redrawn"""
    def __init__(self, seed=None, mean=0.0, stddev=0.05) -> None:
        super().__init__(seed)
        self.mean = mean
        self.stddev = stddev

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        return self.mean + self.stddev * random.truncated_normal(self.get_key(key), -2.0, 2.0, shape, dtype)

    def __repr__(self) -> str:
        return f"TruncatedNormal(mean={self.mean}, stddev={self.stddev}, seed={self.seed})"


class VarianceScaling(Initializer):
    """
    Scales the variance by the fan of the variable.\n
    mode: "fan_in", "fan_out" or "fan_avg"\n
    distribution: "truncated_normal", "untruncated_normal" or "uniform"\n
    Same maths as jax.nn.initializers.variance_scaling, but with explicit fans.
    """
    def __init__(self, scale=1.0, mode="fan_in", distribution="truncated_normal", seed=None) -> None:
        super().__init__(seed)
        if scale <= 0.0:
            raise ValueError(f"scale should be positive, got {scale}")
        if mode not in ("fan_in", "fan_out", "fan_avg"):
            raise ValueError(f"Mode {mode} not found")
        if distribution not in ("truncated_normal", "untruncated_normal", "uniform"):
            raise ValueError(f"Distribution {distribution} not found")
        self.scale = scale
        self.mode = mode
        self.distribution = distribution

    def __call__(self, key, shape, fan_in=1, fan_out=1, dtype=jnp.float32):
        key = self.get_key(key)
        if self.mode == "fan_in":
            n = fan_in
        elif self.mode == "fan_out":
            n = fan_out
        else:
            n = (fan_in + fan_out) / 2
        variance = self.scale / max(1.0, n)

        if self.distribution == "truncated_normal":
            stddev = math.sqrt(variance) / TRUNCATED_NORMAL_STDDEV
            return stddev * random.truncated_normal(key, -2.0, 2.0, shape, dtype)
        elif self.distribution == "untruncated_normal":
            return math.sqrt(variance) * random.normal(key, shape, dtype)
        limit = math.sqrt(3.0 * variance)
        return random.uniform(key, shape, dtype, minval=-limit, maxval=limit)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(scale={self.scale}, mode={self.mode}, distribution={self.distribution}, seed={self.seed})"


class GlorotNormal(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(1.0, "fan_avg", "truncated_normal", seed)


class GlorotUniform(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(1.0, "fan_avg", "uniform", seed)


class HeNormal(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(2.0, "fan_in", "truncated_normal", seed)


class HeUniform(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(2.0, "fan_in", "uniform", seed)


class LeCunNormal(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(1.0, "fan_in", "truncated_normal", seed)


class LeCunUniform(VarianceScaling):
    def __init__(self, seed=None) -> None:
        super().__init__(1.0, "fan_in", "uniform", seed)


INITIALIZERS = {
    "zeros": Zeros,
    "ones": Ones,
    "random_normal": RandomNormal,
    "random_uniform": RandomUniform,
    "truncated_normal": TruncatedNormal,
    "glorot_normal": GlorotNormal,
    "glorot_uniform": GlorotUniform,
    "he_normal": HeNormal,
    "he_uniform": HeUniform,
    "lecun_normal": LeCunNormal,
    "lecun_uniform": LeCunUniform,
}


def get_initializer(name, seed=None):
    if isinstance(name, Initializer):
        return name
    if name not in INITIALIZERS:
        raise ValueError(f"Initializer {name} not found")
    if name in ("zeros", "ones"):
        return INITIALIZERS[name]()
    return INITIALIZERS[name](seed=seed)
