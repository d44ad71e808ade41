import jax.numpy as jnp
from jax import random

from jaxdl.exceptions import GraphClosedError
from jaxdl.initializers import Zeros
from jaxdl.shape import shape_to_str


class Variable():
    """
    A named and shaped tensor owned by a layer or an optimizer.\n
    Only holds the description of the variable, the value is stored in the Graph it is registered in,
    so that training steps can be traced as pure functions of the values.
    """
    def __init__(self, name, shape, initializer=None, fan_in=1, fan_out=1, is_trainable=True, regularizer=None, dtype=jnp.float32) -> None:
        self.name = name
        self.shape = tuple(int(d) for d in shape)
        self.initializer = initializer if initializer is not None else Zeros()
        self.fan_in = fan_in
        self.fan_out = fan_out
        self.is_trainable = is_trainable
        self.regularizer = regularizer
        self.dtype = dtype

    def initial_value(self, key):
        value = self.initializer(key, self.shape, self.fan_in, self.fan_out, self.dtype)
        assert value.shape == self.shape, f"Initializer of {self.name} returned shape {value.shape}, expected {self.shape}"
        return value

    def __repr__(self) -> str:
        return f"Variable(name={self.name}, shape={shape_to_str(self.shape)}, trainable={self.is_trainable})"


def apply_updates(state, targets):
    """
    Merges update targets into the variable values.\n
    state: dict name -> array, targets: list of dicts name -> new array\n
    Returns: new dict, later targets win. Pure, so it can be used inside jit.
    """
    new_state = dict(state)
    for target in targets:
        new_state.update(target)
    return new_state


class Graph():
    """
    Registry of the variables of a model and the store of their values.\n
    Layer variables are initialized by initialize_layers, optimizer variables (slots) by initialize_optimizer.
    Both lists are run once, so optimizer state persists over several calls to fit.\n
    Use as a context manager (or call close) to release the values.
    """
    def __init__(self) -> None:
        self.variables = {}
        self.optimizer_variables = {}
        self._values = {}
        self.is_layers_initialized = False
        self.is_optimizer_initialized = False
        self.is_closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def close(self):
        self._values = {}
        self.is_closed = True

    def _check_open(self):
        if self.is_closed:
            raise GraphClosedError("The graph is closed, its variables are released")

    def _check_name(self, name):
        if name in self.variables or name in self.optimizer_variables:
            raise ValueError(f"Variable {name} is already registered in the graph")

    def add_variable(self, variable):
        self._check_open()
        self._check_name(variable.name)
        self.variables[variable.name] = variable
        return variable

    def add_optimizer_variable(self, variable):
        self._check_open()
        self._check_name(variable.name)
        self.optimizer_variables[variable.name] = variable
        return variable

    @property
    def values(self):
        self._check_open()
        return self._values

    @values.setter
    def values(self, values):
        self._check_open()
        self._values = dict(values)

    def trainable_variables(self):
        return [v for v in self.variables.values() if v.is_trainable]

    def initialize_layers(self, key):
        """Runs the initializers of all layer variables, with one subkey per variable"""
        self._check_open()
        if not self.variables:
            self.is_layers_initialized = True
            return
        subkeys = random.split(key, len(self.variables))
        for subkey, variable in zip(subkeys, self.variables.values()):
            self._values[variable.name] = variable.initial_value(subkey)
        self.is_layers_initialized = True

    def initialize_optimizer(self):
        """Runs the optimizer variable initializers, only the first call has an effect"""
        self._check_open()
        if self.is_optimizer_initialized:
            return
        for variable in self.optimizer_variables.values():
            self._values[variable.name] = variable.initial_value(None)
        self.is_optimizer_initialized = True

    def assign(self, targets):
        self._check_open()
        self._values = apply_updates(self._values, targets)

    def read(self, name):
        self._check_open()
        if name not in self._values:
            raise KeyError(f"Variable {name} has no value, initialize the graph first")
        return self._values[name]

    def layer_values(self):
        self._check_open()
        return {name: self._values[name] for name in self.variables if name in self._values}

    def optimizer_values(self):
        self._check_open()
        return {name: self._values[name] for name in self.optimizer_variables if name in self._values}

