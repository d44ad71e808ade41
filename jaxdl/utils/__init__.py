from .utils import get_hydra_config, default_layer_name, slot_var_name, default_optimizer_variable_name
from .utility import save_weights, load_weights, read_weights, save_checkpoint, get_save_path_names, load_model_parameters, load_optimizer_parameters, get_wandb_input
