"""
Training module for the linear SVM.

This module provides:
- SVMTrainer: configures a model and runs one optimizer on it
- BatchOptimizer: L-BFGS over the full dataset
- ParallelOptimizer: lock-free parallel SGD over a thread pool
"""

from .optimizers import (
    Optimizer,
    OptimizationResult,
    BatchOptimizer,
    ParallelOptimizer,
    ConstantStep,
    create_optimizer,
    detect_parallel_backend,
)
from .svm_trainer import SVMTrainer

__all__ = [
    'SVMTrainer',
    'Optimizer',
    'OptimizationResult',
    'BatchOptimizer',
    'ParallelOptimizer',
    'ConstantStep',
    'create_optimizer',
    'detect_parallel_backend',
]
