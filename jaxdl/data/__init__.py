from .dataload import Dataset, NumpyLoader, numpy_collate, one_hot, dataload
