import os

from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs")

OPTIMIZER_PREFIX = "optimizer"


def get_hydra_config(config_dir=CONFIG_DIR, job_name='jaxdl', version_base='1.3', config='defaults', overrides=[], reload=True):
    """
    Load the hydra config manually.

    (The parameters are the same as loading a hydraconfig normally,
    except the config directory is absolute, so it works from any working directory)
    """
    if reload:
        GlobalHydra.instance().clear()
    initialize_config_dir(config_dir=config_dir, job_name=job_name, version_base=version_base)
    cfg = compose(config, overrides=list(overrides))
    return cfg


#### Names of variables ####
# Pure functions of the layer name, so no global name counter is needed.

def default_layer_name(layer, index):
    """Name of an unnamed layer: <layer type>_<position in the model>"""
    return f"{layer.__class__.__name__.lower()}_{index}"

def dense_kernel_var_name(layer_name):
    return f"{layer_name}_dense_kernel"

def dense_bias_var_name(layer_name):
    return f"{layer_name}_dense_bias"

def conv2d_kernel_var_name(layer_name):
    return f"{layer_name}_conv2d_kernel"

def conv2d_bias_var_name(layer_name):
    return f"{layer_name}_conv2d_bias"

def depthwise_conv2d_kernel_var_name(layer_name):
    return f"{layer_name}_depthwise_conv2d_kernel"

def depthwise_conv2d_bias_var_name(layer_name):
    return f"{layer_name}_depthwise_conv2d_bias"

def separable_conv2d_depthwise_kernel_var_name(layer_name):
    return f"{layer_name}_depthwise_kernel"

def separable_conv2d_pointwise_kernel_var_name(layer_name):
    return f"{layer_name}_pointwise_kernel"

def separable_conv2d_bias_var_name(layer_name):
    return f"{layer_name}_separable_conv2d_bias"

def default_optimizer_variable_name(name):
    return f"{OPTIMIZER_PREFIX}_{name}"

def slot_var_name(variable_name, slot_name):
    """Name of the slot variable slot_name of the variable variable_name"""
    return default_optimizer_variable_name(f"{variable_name}-{slot_name}")
