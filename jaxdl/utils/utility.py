import glob
import os
import pickle

import numpy as np
import jax.numpy as jnp
from omegaconf import OmegaConf

from jaxdl.exceptions import WeightsMismatchError
from jaxdl.shape import shape_to_str

TXT_SHAPE_HEADER = "shape:"


#### Weights export and import ####

def save_weights(model, path, format="npz"):
    """
    Saves {variable name -> array} of every layer variable.\n
    npz: a single compressed numpy archive at path\n
    txt: a directory with one <variable name>.txt file per variable, the first line holding the shape
    """
    weights = model.weights
    if format == "npz":
        with open(path, "wb") as f:
            np.savez_compressed(f, **weights)
    elif format == "txt":
        os.makedirs(path, exist_ok=True)
        for name, value in weights.items():
            header = f"{TXT_SHAPE_HEADER} {','.join(str(d) for d in value.shape)}"
            np.savetxt(os.path.join(path, f"{name}.txt"), value.reshape(-1), header=header)
    else:
        raise ValueError(f"Weights format {format} not found, use npz or txt")


def read_weights(path, format="npz"):
    if format == "npz":
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Unable to find {path}")
        with open(path, "rb") as f:
            archive = np.load(f)
            return {name: archive[name] for name in archive.files}
    elif format == "txt":
        if not os.path.isdir(path):
            raise FileNotFoundError(f"Unable to find {path}")
        weights = {}
        for file_name in sorted(glob.glob(os.path.join(path, "*.txt"))):
            name = os.path.splitext(os.path.basename(file_name))[0]
            with open(file_name) as f:
                header = f.readline().lstrip("#").strip()
            assert header.startswith(TXT_SHAPE_HEADER), f"{file_name} has no shape header"
            dims = header[len(TXT_SHAPE_HEADER):].strip()
            shape = tuple(int(d) for d in dims.split(",")) if dims else ()
            weights[name] = np.loadtxt(file_name, dtype=np.float32, ndmin=1).reshape(shape)
        return weights
    raise ValueError(f"Weights format {format} not found, use npz or txt")


def load_weights(model, path, format="npz"):
    """
    Assigns saved weights to a compiled model.\n
    Every variable of the model must be present with the same shape, otherwise WeightsMismatchError is raised.
    """
    weights = read_weights(path, format)
    unknown = set(weights) - set(model.graph.variables)
    if unknown:
        print(f"Skipping {len(unknown)} variables not in the model: {sorted(unknown)}")
    model.weights = weights


#### Checkpoints ####

def get_save_path_names(cfg):
    file_name = {}
    file_name['model'] = f"{cfg.model.name}-parameters.pickle"
    file_name['optimizer'] = f"{cfg.model.name}-{cfg.optimizer.name}-parameters.pickle"
    return file_name


def save_checkpoint(cfg, model, directory):
    """Pickles (iteration, values) of the layer variables and of the optimizer variables"""
    file_name = get_save_path_names(cfg)
    os.makedirs(directory, exist_ok=True)
    layer_values = {name: np.asarray(value) for name, value in model.graph.layer_values().items()}
    optimizer_values = {name: np.asarray(value) for name, value in model.graph.optimizer_values().items()}

    with open(os.path.join(directory, file_name["model"]), 'wb') as f:
        pickle.dump((model.iteration, layer_values), f, pickle.HIGHEST_PROTOCOL)
    with open(os.path.join(directory, file_name["optimizer"]), 'wb') as f:
        pickle.dump((model.iteration, optimizer_values), f, pickle.HIGHEST_PROTOCOL)


def _checkpoint_file(path, file_name):
    if os.path.isdir(path):
        return os.path.join(path, file_name)
    elif os.path.isfile(path):
        return path
    raise FileNotFoundError(f"Unable to find {path}")


def load_model_parameters(cfg, model):
    """Loads the layer variables if cfg.parameter_loading.model is set"""
    if not cfg.parameter_loading.model:
        return model
    file_name = get_save_path_names(cfg)
    with open(_checkpoint_file(cfg.parameter_loading.model_path, file_name["model"]), "rb") as mp:
        iteration, model_parameters = pickle.load(mp)

    model.weights = model_parameters
    model.iteration = iteration
    print(f"Loaded model: {cfg.model.name} parameters @ checkpoint iteration {iteration}")
    return model


def load_optimizer_parameters(cfg, model):
    """Loads the optimizer variables (slots) if cfg.parameter_loading.optimizer is set"""
    if not cfg.parameter_loading.optimizer:
        return model
    file_name = get_save_path_names(cfg)
    with open(_checkpoint_file(cfg.parameter_loading.optimizer_path, file_name["optimizer"]), "rb") as op:
        iteration, optimizer_parameters = pickle.load(op)

    graph = model.graph
    targets = {}
    for name, variable in graph.optimizer_variables.items():
        if name not in optimizer_parameters:
            raise WeightsMismatchError(f"Optimizer variable {name} is missing in the checkpoint")
        value = np.asarray(optimizer_parameters[name])
        if tuple(value.shape) != variable.shape:
            raise WeightsMismatchError(f"Optimizer variable {name} has shape {shape_to_str(variable.shape)}, but the checkpoint has shape {shape_to_str(value.shape)}")
        targets[name] = jnp.asarray(value, dtype=variable.dtype)
    graph.assign([targets])
    # loaded slots replace the initial values
    graph.is_optimizer_initialized = True

    print(f"Loaded optimizer: {cfg.optimizer.name} parameters @ checkpoint iteration {iteration}")
    return model


#### Weights and biases ####

def get_wandb_input(cfg):
    args = {}
    args["entity"] = cfg.wandb.setup.entity
    args["project"] = cfg.wandb.setup.project
    args["mode"] = cfg.wandb.setup.mode
    args["config"] = OmegaConf.to_container(cfg, resolve=True)

    tags = [cfg.wandb.setup.experiment, cfg.model.name, cfg.optimizer.name, cfg.loss.name]
    if cfg.wandb.setup.experiment == "batch_size":
        tags += [f"{cfg.train_and_test.train.batch_size}"]
    args["tags"] = tags
    return args
