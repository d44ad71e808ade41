import optax

# https://github.com/deepmind/optax


class ClipGradientAction():
    """Transform applied to every gradient before the optimizer uses it"""
    def clip_gradient(self, gradient):
        raise NotImplementedError("Clipped gradient")

    def __call__(self, gradient):
        return self.clip_gradient(gradient)


class NoClipGradient(ClipGradientAction):
    def clip_gradient(self, gradient):
        return gradient

    def __repr__(self) -> str:
        return "NoClipGradient()"


class _OptaxClip(ClipGradientAction):
    def __init__(self, transform) -> None:
        self.transform = transform

    def clip_gradient(self, gradient):
        # the clipping transforms are stateless, the state is only needed for the optax api
        clipped, _ = self.transform.update(gradient, self.transform.init(gradient))
        return clipped


class ClipGradientByValue(_OptaxClip):
    """Clips every element of the gradient to [-clip_value, clip_value]"""
    def __init__(self, clip_value) -> None:
        super().__init__(optax.clip(clip_value))
        self.clip_value = clip_value

    def __repr__(self) -> str:
        return f"ClipGradientByValue(clip_value={self.clip_value})"


class ClipGradientByNorm(_OptaxClip):
    """Rescales the gradient so its L2 norm is at most clip_norm"""
    def __init__(self, clip_norm) -> None:
        # a single array is a pytree with one leaf, so the global norm is its own norm
        super().__init__(optax.clip_by_global_norm(clip_norm))
        self.clip_norm = clip_norm

    def __repr__(self) -> str:
        return f"ClipGradientByNorm(clip_norm={self.clip_norm})"


def get_clip_gradient(cfg):
    """cfg: the clip_gradient node of the optimizer config (or None)"""
    if cfg is None or cfg.name == "none":
        return NoClipGradient()
    elif cfg.name == "value":
        return ClipGradientByValue(cfg.value)
    elif cfg.name == "norm":
        return ClipGradientByNorm(cfg.value)
    raise ValueError(f"Gradient clipping {cfg.name} not found")
