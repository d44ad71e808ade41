class RepeatableLayerNameError(Exception):
    """
    Raised by the Sequential model during construction if the same layer name
    is used by more than one layer.
    """
    def __init__(self, layer_name):
        super().__init__(f"The layer name {layer_name} is used in previous layers. The layer name should be unique.")
        self.layer_name = layer_name


class LayerNotBuiltError(RuntimeError):
    """Raised when a layer is used before build() allocated its variables."""
    def __init__(self, layer_name, action="forward"):
        super().__init__(f"Layer {layer_name} is not built, call build() before {action}")
        self.layer_name = layer_name


class OptimizerStateError(RuntimeError):
    """Raised on slot misuse, e.g. apply_gradients before create_slots."""


class GraphClosedError(RuntimeError):
    """Raised when a closed Graph is accessed."""


class ShapeMismatchError(ValueError):
    def __init__(self, message, expected, actual):
        super().__init__(f"{message}: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class WeightsMismatchError(ValueError):
    """Raised when imported weights don't match the variables of the model."""
