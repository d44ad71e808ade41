from jaxdl.exceptions import OptimizerStateError
from jaxdl.graph import Variable
from jaxdl.initializers import Constant, Zeros
from jaxdl.optimizer.clip import NoClipGradient
from jaxdl.utils.utils import default_optimizer_variable_name, slot_var_name


class Optimizer():
    """
    Base class of the optimizers.\n
    The configuration (learning rate, decays, epsilon) is fixed at construction.
    The per variable state lives in slot variables registered in the graph, keyed by (variable name, slot name).\n
    create_slots must be called once before apply_gradients, which is a pure function of the variable values,
    so it can be traced inside a jitted training step.
    """
    # names of the slots every trainable variable gets
    slot_names = ()

    def __init__(self, clip_gradient=None) -> None:
        self.clip_gradient = clip_gradient if clip_gradient is not None else NoClipGradient()
        self.slots = {}
        self.global_variables = {}
        self.is_slots_created = False

    def create_slots(self, graph, variables):
        """
        Registers the slot variables of every variable as optimizer variables of the graph.\n
        The graph initializes them once, together with the other optimizer variables.
        """
        if self.is_slots_created:
            raise OptimizerStateError(f"Slots of {self.get_optimizer_name()} are already created, the slot set is fixed")
        for variable in variables:
            for slot_name in self.slot_names:
                self.create_slot(graph, variable, slot_name, self.slot_initializer(slot_name))
        self.create_global_variables(graph)
        self.is_slots_created = True

    def slot_initializer(self, slot_name):
        return Zeros()

    def create_global_variables(self, graph):
        pass

    def create_slot(self, graph, variable, slot_name, initializer):
        slot = Variable(slot_var_name(variable.name, slot_name), variable.shape, initializer, is_trainable=False, dtype=variable.dtype)
        graph.add_optimizer_variable(slot)
        self.slots[(variable.name, slot_name)] = slot
        return slot

    def create_global_variable(self, graph, name, value):
        """Scalar optimizer variable shared by all slots, e.g. beta1_power"""
        variable = Variable(default_optimizer_variable_name(name), (), Constant(value), is_trainable=False)
        graph.add_optimizer_variable(variable)
        self.global_variables[name] = variable
        return variable

    def get_slot(self, variable_name, slot_name):
        if (variable_name, slot_name) not in self.slots:
            raise OptimizerStateError(f"Slot {slot_name} of the variable {variable_name} not found, call create_slots before apply_gradients")
        return self.slots[(variable_name, slot_name)]

    def apply_gradients(self, state, weights, gradients):
        """
        Update targets for one training step.\n
        Input: state (dict name -> value), weights (variables or variable names), gradients (same order as weights)\n
        Returns: list of dicts name -> new value, one per variable (with its slots), then the global updates
        """
        if not self.is_slots_created:
            raise OptimizerStateError(f"{self.get_optimizer_name()}: create_slots must be called before apply_gradients")
        if len(weights) != len(gradients):
            raise ValueError(f"Got {len(weights)} variables but {len(gradients)} gradients")

        targets = []
        for weight, gradient in zip(weights, gradients):
            name = weight if isinstance(weight, str) else weight.name
            targets.append(self.apply_dense(state, name, self.clip_gradient(gradient)))
        targets.extend(self.finish_step(state))
        return targets

    def apply_dense(self, state, name, gradient):
        raise NotImplementedError("Update of a single variable and its slots")

    def finish_step(self, state):
        """Updates of the global variables, run once per step after the variable updates"""
        return []

    def slot_value(self, state, name, slot_name):
        return state[self.get_slot(name, slot_name).name]

    def get_optimizer_name(self):
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.get_optimizer_name()}(clip_gradient={self.clip_gradient})"
