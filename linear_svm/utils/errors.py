"""
Exception types raised by the linear SVM trainer/evaluator.

Configuration errors are detected from option values alone, before any data
is loaded. Everything else (bad files, dimension mismatches, optimizer
failures) is a runtime error. All of them are fatal for one invocation.
"""


class LinearSVMError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(LinearSVMError, ValueError):
    """An option value (or combination of options) is invalid."""


class DataLoadError(LinearSVMError, IOError):
    """A matrix, label vector or model could not be read or written."""


class DataDimensionError(LinearSVMError, ValueError):
    """Loaded data and model disagree on shape or label range."""


class UnsupportedOptimizerError(LinearSVMError, RuntimeError):
    """The selected optimizer backend is not available in this runtime."""


class OptimizerError(LinearSVMError, RuntimeError):
    """The optimizer failed while fitting the model."""
