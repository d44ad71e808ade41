from .sequential import Sequential
from .model import get_model
