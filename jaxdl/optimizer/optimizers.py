import jax.numpy as jnp

from jaxdl.initializers import Constant
from jaxdl.optimizer.clip import get_clip_gradient
from jaxdl.optimizer.optimizer import Optimizer

FIRST_MOMENT = "m"
SECOND_MOMENT = "v"
MOMENTUM = "momentum"
RMS = "rms"
MEAN_GRADIENT = "mg"
ACCUMULATOR = "accumulator"
ACCUMULATOR_UPDATE = "accumulator_update"

BETA_ONE_POWER = "beta1_power"
BETA_TWO_POWER = "beta2_power"


def get_optim(cfg):
    """Builds the optimizer described by the optimizer config group"""
    ocfg = cfg.optimizer
    clip = get_clip_gradient(ocfg.get("clip_gradient", None))
    if ocfg.name == "sgd":
        return SGD(ocfg.learning_rate, clip_gradient=clip)
    elif ocfg.name == "momentum":
        return Momentum(ocfg.learning_rate, ocfg.momentum, ocfg.get("nesterov", False), clip_gradient=clip)
    elif ocfg.name == "adam":
        return Adam(ocfg.learning_rate, ocfg.beta1, ocfg.beta2, ocfg.epsilon, clip_gradient=clip)
    elif ocfg.name == "adamax":
        return Adamax(ocfg.learning_rate, ocfg.beta1, ocfg.beta2, ocfg.epsilon, clip_gradient=clip)
    elif ocfg.name == "rmsprop":
        return RMSProp(ocfg.learning_rate, ocfg.decay, ocfg.momentum, ocfg.epsilon, ocfg.get("centered", False), clip_gradient=clip)
    elif ocfg.name == "adagrad":
        return AdaGrad(ocfg.learning_rate, ocfg.initial_accumulator_value, clip_gradient=clip)
    elif ocfg.name == "adadelta":
        return AdaDelta(ocfg.learning_rate, ocfg.rho, ocfg.epsilon, clip_gradient=clip)
    raise ValueError(f"Optimizer {ocfg.name} not found")


class SGD(Optimizer):
    """
    Stochastic gradient descent\n
    variable <- variable - learning_rate * g
    """
    def __init__(self, learning_rate=0.2, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate

    def apply_dense(self, state, name, gradient):
        return {name: state[name] - self.learning_rate * gradient}

    def __repr__(self) -> str:
        return f"SGD(learning_rate={self.learning_rate}, clip_gradient={self.clip_gradient})"


class Momentum(Optimizer):
    """
    accumulation <- momentum * accumulation + g\n
    variable <- variable - learning_rate * accumulation\n
    or with nesterov: variable <- variable - learning_rate * g - learning_rate * momentum * accumulation
    """
    slot_names = (MOMENTUM,)

    def __init__(self, learning_rate=0.001, momentum=0.99, nesterov=False, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.momentum = momentum
        self.nesterov = nesterov

    def apply_dense(self, state, name, gradient):
        accumulation = self.momentum * self.slot_value(state, name, MOMENTUM) + gradient
        if self.nesterov:
            variable = state[name] - self.learning_rate * gradient - self.learning_rate * self.momentum * accumulation
        else:
            variable = state[name] - self.learning_rate * accumulation
        return {name: variable, self.get_slot(name, MOMENTUM).name: accumulation}

    def __repr__(self) -> str:
        return f"Momentum(learning_rate={self.learning_rate}, momentum={self.momentum}, nesterov={self.nesterov})"


class Adam(Optimizer):
    """
    lr_t <- learning_rate * sqrt(1 - beta2^t) / (1 - beta1^t)\n
    m_t <- beta1 * m_{t-1} + (1 - beta1) * g\n
    v_t <- beta2 * v_{t-1} + (1 - beta2) * g^2\n
    variable <- variable - lr_t * m_t / (sqrt(v_t) + epsilon)\n
    beta1^t and beta2^t are running products stored as optimizer variables.
    """
    slot_names = (FIRST_MOMENT, SECOND_MOMENT)

    def __init__(self, learning_rate=0.001, beta1=0.9, beta2=0.999, epsilon=1e-07, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon

    def create_global_variables(self, graph):
        self.create_global_variable(graph, BETA_ONE_POWER, self.beta1)
        self.create_global_variable(graph, BETA_TWO_POWER, self.beta2)

    def apply_dense(self, state, name, gradient):
        beta1_power = state[self.global_variables[BETA_ONE_POWER].name]
        beta2_power = state[self.global_variables[BETA_TWO_POWER].name]
        lr_t = self.learning_rate * jnp.sqrt(1 - beta2_power) / (1 - beta1_power)

        m = self.beta1 * self.slot_value(state, name, FIRST_MOMENT) + (1 - self.beta1) * gradient
        v = self.beta2 * self.slot_value(state, name, SECOND_MOMENT) + (1 - self.beta2) * jnp.square(gradient)
        variable = state[name] - lr_t * m / (jnp.sqrt(v) + self.epsilon)
        return {name: variable, self.get_slot(name, FIRST_MOMENT).name: m, self.get_slot(name, SECOND_MOMENT).name: v}

    def finish_step(self, state):
        beta1_power = self.global_variables[BETA_ONE_POWER].name
        beta2_power = self.global_variables[BETA_TWO_POWER].name
        return [{beta1_power: state[beta1_power] * self.beta1, beta2_power: state[beta2_power] * self.beta2}]

    def __repr__(self) -> str:
        return f"Adam(learning_rate={self.learning_rate}, beta1={self.beta1}, beta2={self.beta2}, epsilon={self.epsilon})"


class Adamax(Optimizer):
    """
    Adamax optimizer from Section 7 of the Adam paper, a variant of Adam based on the infinity norm.\n
    m_t <- beta1 * m_{t-1} + (1 - beta1) * g\n
    v_t <- max(beta2 * v_{t-1}, abs(g))\n
    variable <- variable - learning_rate / (1 - beta1^t) * m_t / (v_t + epsilon)\n
    beta1^t is a running product: it starts at beta1 and is multiplied by beta1 once per step.
    It is never reset, so repeated calls to fit continue from the previous state.\n
    It is recommended to leave the parameters at their default values.
    """
    slot_names = (FIRST_MOMENT, SECOND_MOMENT)

    def __init__(self, learning_rate=0.001, beta1=0.9, beta2=0.999, epsilon=1e-07, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon

    def create_global_variables(self, graph):
        self.create_global_variable(graph, BETA_ONE_POWER, self.beta1)

    def apply_dense(self, state, name, gradient):
        beta1_power = state[self.global_variables[BETA_ONE_POWER].name]

        m = self.beta1 * self.slot_value(state, name, FIRST_MOMENT) + (1 - self.beta1) * gradient
        v = jnp.maximum(self.beta2 * self.slot_value(state, name, SECOND_MOMENT), jnp.abs(gradient))
        variable = state[name] - self.learning_rate / (1 - beta1_power) * m / (v + self.epsilon)
        return {name: variable, self.get_slot(name, FIRST_MOMENT).name: m, self.get_slot(name, SECOND_MOMENT).name: v}

    def finish_step(self, state):
        beta1_power = self.global_variables[BETA_ONE_POWER].name
        return [{beta1_power: state[beta1_power] * self.beta1}]

    def __repr__(self) -> str:
        return f"Adamax(learning_rate={self.learning_rate}, beta1={self.beta1}, beta2={self.beta2}, epsilon={self.epsilon})"


class RMSProp(Optimizer):
    """
    ms <- decay * ms + (1 - decay) * g^2\n
    mom <- momentum * mom + learning_rate * g / sqrt(ms + epsilon)\n
    variable <- variable - mom\n
    centered also tracks the mean gradient mg and uses ms - mg^2 in place of ms.
    """
    def __init__(self, learning_rate=0.001, decay=0.9, momentum=0.0, epsilon=1e-10, centered=False, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.decay = decay
        self.momentum = momentum
        self.epsilon = epsilon
        self.centered = centered
        self.slot_names = (RMS, MOMENTUM, MEAN_GRADIENT) if centered else (RMS, MOMENTUM)

    def apply_dense(self, state, name, gradient):
        ms = self.decay * self.slot_value(state, name, RMS) + (1 - self.decay) * jnp.square(gradient)
        targets = {self.get_slot(name, RMS).name: ms}

        denominator = ms + self.epsilon
        if self.centered:
            mg = self.decay * self.slot_value(state, name, MEAN_GRADIENT) + (1 - self.decay) * gradient
            denominator = denominator - jnp.square(mg)
            targets[self.get_slot(name, MEAN_GRADIENT).name] = mg

        mom = self.momentum * self.slot_value(state, name, MOMENTUM) + self.learning_rate * gradient / jnp.sqrt(denominator)
        targets[self.get_slot(name, MOMENTUM).name] = mom
        targets[name] = state[name] - mom
        return targets

    def __repr__(self) -> str:
        return (f"RMSProp(learning_rate={self.learning_rate}, decay={self.decay}, momentum={self.momentum}, "
                f"epsilon={self.epsilon}, centered={self.centered})")


class AdaGrad(Optimizer):
    """
    accumulator <- accumulator + g^2\n
    variable <- variable - learning_rate * g / sqrt(accumulator)
    """
    slot_names = (ACCUMULATOR,)

    def __init__(self, learning_rate=0.1, initial_accumulator_value=0.01, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.initial_accumulator_value = initial_accumulator_value

    def slot_initializer(self, slot_name):
        return Constant(self.initial_accumulator_value)

    def apply_dense(self, state, name, gradient):
        accumulator = self.slot_value(state, name, ACCUMULATOR) + jnp.square(gradient)
        variable = state[name] - self.learning_rate * gradient / jnp.sqrt(accumulator)
        return {name: variable, self.get_slot(name, ACCUMULATOR).name: accumulator}

    def __repr__(self) -> str:
        return f"AdaGrad(learning_rate={self.learning_rate}, initial_accumulator_value={self.initial_accumulator_value})"


class AdaDelta(Optimizer):
    """
    accumulator <- rho * accumulator + (1 - rho) * g^2\n
    update <- sqrt(accumulator_update + epsilon) / sqrt(accumulator + epsilon) * g\n
    accumulator_update <- rho * accumulator_update + (1 - rho) * update^2\n
    variable <- variable - learning_rate * update
    """
    slot_names = (ACCUMULATOR, ACCUMULATOR_UPDATE)

    def __init__(self, learning_rate=0.1, rho=0.95, epsilon=1e-8, clip_gradient=None) -> None:
        super().__init__(clip_gradient)
        self.learning_rate = learning_rate
        self.rho = rho
        self.epsilon = epsilon

    def apply_dense(self, state, name, gradient):
        accumulator = self.rho * self.slot_value(state, name, ACCUMULATOR) + (1 - self.rho) * jnp.square(gradient)
        accumulator_update = self.slot_value(state, name, ACCUMULATOR_UPDATE)
        update = jnp.sqrt(accumulator_update + self.epsilon) / jnp.sqrt(accumulator + self.epsilon) * gradient
        accumulator_update = self.rho * accumulator_update + (1 - self.rho) * jnp.square(update)
        return {
            name: state[name] - self.learning_rate * update,
            self.get_slot(name, ACCUMULATOR).name: accumulator,
            self.get_slot(name, ACCUMULATOR_UPDATE).name: accumulator_update,
        }

    def __repr__(self) -> str:
        return f"AdaDelta(learning_rate={self.learning_rate}, rho={self.rho}, epsilon={self.epsilon})"
