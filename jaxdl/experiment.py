import os

import wandb

from jaxdl.loss.loss import get_loss
from jaxdl.metrics import get_metric
from jaxdl.models.model import get_model
from jaxdl.optimizer.optimizers import get_optim
from jaxdl.utils import utility


def run_experiment(cfg, train_dataset, test_dataset):
    """
    config -> model -> compile -> fit -> evaluate\n
    Returns: (model, test metric)
    """
    if cfg.wandb.enabled:
        wandb.init(**utility.get_wandb_input(cfg))

    model = get_model(cfg)
    optimizer = get_optim(cfg)
    tcfg = cfg.train_and_test

    model.compile(optimizer, loss=get_loss(cfg), metric=get_metric(tcfg.test.metric), seed=cfg.seed)
    if tcfg.verbose:
        model.summary()

    # Parameter loading
    model = utility.load_model_parameters(cfg, model)
    if cfg.parameter_loading.optimizer:
        model.graph.initialize_optimizer()
        model = utility.load_optimizer_parameters(cfg, model)

    model.fit(train_dataset,
              epochs=tcfg.train.epochs,
              batch_size=tcfg.train.batch_size,
              shuffle=tcfg.train.shuffle,
              verbose=tcfg.verbose,
              log_frequency=cfg.wandb.log.frequency)
    metric = model.evaluate(test_dataset, batch_size=tcfg.test.batch_size)
    if tcfg.verbose:
        print(f"test {model.metric.value}: {metric}")

    if tcfg.save_dir:
        utility.save_checkpoint(cfg, model, tcfg.save_dir)
        model.save_weights(os.path.join(tcfg.save_dir, f"{cfg.model.name}-weights.npz"))
    elif cfg.wandb.log.parameters and wandb.run is not None:
        utility.save_checkpoint(cfg, model, wandb.run.dir)

    if wandb.run is not None:
        wandb.finish()
    return model, metric

