"""Models package initialization."""

from .linear_svm import LinearSVM, LinearSVMFunction
from .model_persistence import ModelPersistence

__all__ = ['LinearSVM', 'LinearSVMFunction', 'ModelPersistence']
