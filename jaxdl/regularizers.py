import jax.numpy as jnp


class Regularizer():
    """Penalty added to the loss for a single variable"""
    def __call__(self, x):
        raise NotImplementedError("Penalty of the variable x")


class L1L2(Regularizer):
    """
    penalty(x) = l1 * sum(|x|) + l2 * sum(x^2)
    """
    def __init__(self, l1=0.01, l2=0.01) -> None:
        self.l1 = l1
        self.l2 = l2

    def __call__(self, x):
        penalty = jnp.zeros((), dtype=x.dtype)
        if self.l1:
            penalty += self.l1 * jnp.sum(jnp.abs(x))
        if self.l2:
            penalty += self.l2 * jnp.sum(jnp.square(x))
        return penalty

    def __repr__(self) -> str:
        return f"L1L2(l1={self.l1}, l2={self.l2})"


class L1(L1L2):
    def __init__(self, l1=0.01) -> None:
        super().__init__(l1=l1, l2=0.0)

    def __repr__(self) -> str:
        return f"L1(l1={self.l1})"


class L2(L1L2):
    def __init__(self, l2=0.01) -> None:
        super().__init__(l1=0.0, l2=l2)

    def __repr__(self) -> str:
        return f"L2(l2={self.l2})"
