"""
linear_svm: trainer and evaluator for an L2-regularized linear multiclass SVM.
"""

from .models import LinearSVM
from .pipeline import LinearSVMPipeline, main

__version__ = '0.1.0'

__all__ = ['LinearSVM', 'LinearSVMPipeline', 'main', '__version__']
