"""Utility modules: configuration, logging, option validation and errors.

Keep imports lightweight so the command-line entry point can configure
logging before the numerical modules are imported.
"""

from .config import Config, TrainEvalConfig, build_config, load_config
from .errors import (
    LinearSVMError,
    ConfigurationError,
    DataLoadError,
    DataDimensionError,
    UnsupportedOptimizerError,
    OptimizerError,
)
from .validation import OptionValidator

__all__ = [
    'Config',
    'TrainEvalConfig',
    'build_config',
    'load_config',
    'LinearSVMError',
    'ConfigurationError',
    'DataLoadError',
    'DataDimensionError',
    'UnsupportedOptimizerError',
    'OptimizerError',
    'OptionValidator',
]
