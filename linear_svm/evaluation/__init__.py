"""
Evaluation Module
=================

Classification of test sets and accuracy reporting for trained models.
"""

from .evaluator import ModelEvaluator, EvaluationResult
from .metrics import EvaluationMetrics, ClassAccuracy

__all__ = [
    'ModelEvaluator',
    'EvaluationResult',
    'EvaluationMetrics',
    'ClassAccuracy'
]
