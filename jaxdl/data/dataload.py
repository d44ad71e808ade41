import numpy as np
import torch
from torch.utils import data


def numpy_collate(batch):
  """
  Collation function for getting samples
  from `NumpyLoader`
  """
  if isinstance(batch[0], np.ndarray):
    return np.stack(batch)
  elif isinstance(batch[0], (tuple,list)):
    transposed = zip(*batch)
    return [numpy_collate(samples) for samples in transposed]
  else:
    return np.array(batch)

class NumpyLoader(data.DataLoader):
  """
  Torch dataloader yielding numpy batches, so they can be passed to jax directly
  """
  def __init__(self, dataset, batch_size=1,
                shuffle=False, sampler=None,
                batch_sampler=None, num_workers=0,
                pin_memory=False, drop_last=False,
                timeout=0, worker_init_fn=None,
                generator=None):
    super().__init__(dataset,
        batch_size=batch_size,
        shuffle=shuffle,
        sampler=sampler,
        batch_sampler=batch_sampler,
        num_workers=num_workers,
        collate_fn=numpy_collate,
        pin_memory=pin_memory,
        drop_last=drop_last,
        timeout=timeout,
        worker_init_fn=worker_init_fn,
        generator=generator)


def one_hot(labels, num_classes):
  labels = np.asarray(labels).reshape(-1).astype(np.int64)
  return np.eye(num_classes, dtype=np.float32)[labels]


class Dataset(data.Dataset):
  """
  In memory dataset of (features, labels) pairs.\n
  features: (N, ...) e.g. (N, 28, 28, 1) images, labels: (N, classes) one hot or (N,) values
  """
  def __init__(self, features, labels):
    features = np.asarray(features, dtype=np.float32)
    labels = np.asarray(labels, dtype=np.float32)
    assert len(features) == len(labels), f"Got {len(features)} samples but {len(labels)} labels"
    self.features = features
    self.labels = labels

  @classmethod
  def create(cls, features, labels, num_classes=None):
    """num_classes: if given the integer labels are one hot encoded"""
    if num_classes is not None:
      labels = one_hot(labels, num_classes)
    return cls(features, labels)

  def __len__(self):
    return len(self.features)

  def __getitem__(self, idx):
    return self.features[idx], self.labels[idx]

  def split(self, fraction, shuffle=False, seed=0):
    """
    Returns (first, second): first holds `fraction` of the samples, second the rest
    """
    if not 0.0 < fraction < 1.0:
      raise ValueError(f"The split fraction should be in (0, 1), got {fraction}")
    indices = np.arange(len(self))
    if shuffle:
      indices = np.random.default_rng(seed).permutation(indices)
    n = int(round(len(self) * fraction))
    first, second = indices[:n], indices[n:]
    return Dataset(self.features[first], self.labels[first]), Dataset(self.features[second], self.labels[second])

  def batches(self, batch_size, shuffle=False, seed=None):
    """NumpyLoader over the dataset, the last batch may be smaller"""
    generator = None
    if seed is not None:
      generator = torch.Generator().manual_seed(seed)
    return NumpyLoader(self, batch_size=batch_size, shuffle=shuffle, generator=generator)


def dataload(cfg):
  """
  Loads the npz archive at cfg.train_and_test.data_path (arrays "features" and "labels")\n
  Returns: train_dataset, test_dataset split by cfg.train_and_test.train_fraction
  """
  with np.load(cfg.train_and_test.data_path) as archive:
    features, labels = archive["features"], archive["labels"]
  num_classes = cfg.model.num_labels if labels.ndim == 1 else None
  dataset = Dataset.create(features, labels, num_classes=num_classes)
  return dataset.split(cfg.train_and_test.train_fraction, shuffle=True, seed=cfg.seed)
