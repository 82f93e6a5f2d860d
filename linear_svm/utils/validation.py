"""
Option validation, run before any data is touched.
"""

import logging
from typing import List

from .config import TrainEvalConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_OPTIMIZERS = ('lbfgs', 'psgd')

# Options that only mean something for the parallel SGD backend
PSGD_ONLY_OPTIONS = ('step_size', 'shuffle')

# Outputs that need a test set
TEST_DEPENDENT_OPTIONS = ('predictions_file', 'score_file', 'test_labels_file')


class OptionValidator:
    """
    Checks presence, set membership and numeric ranges of all options.

    Fatal problems raise ``ConfigurationError``; harmless ones are logged and
    returned so callers (and tests) can inspect them.
    """

    def validate(self, config: TrainEvalConfig) -> List[str]:
        """
        Validate a resolved configuration.

        Args:
            config: Options for this invocation

        Returns:
            List of non-fatal warning messages

        Raises:
            ConfigurationError: On the first fatal violation
        """
        warnings = []

        if not config.training_file and not config.input_model_file:
            raise ConfigurationError(
                "At least one of 'training' or 'input_model' must be specified"
            )

        if not config.has_output_sink:
            warnings.append(
                "Neither 'output_model', 'predictions' nor 'score' is specified; "
                "no output will be saved"
            )

        if not config.test_file:
            for name in TEST_DEPENDENT_OPTIONS:
                if getattr(config, name):
                    logger.debug(f"'{name}' ignored because no test set is given")

        self._check_ranges(config)

        if config.optimizer != 'psgd':
            for name in PSGD_ONLY_OPTIONS:
                if getattr(config, name) is not None:
                    warnings.append(f"'{name}' ignored because optimizer type is not 'psgd'")

        for message in warnings:
            logger.warning(message)

        return warnings

    def _check_ranges(self, config: TrainEvalConfig) -> None:
        if config.max_iterations < 0:
            raise ConfigurationError(
                f"max_iterations must be positive or zero (got {config.max_iterations})"
            )
        if config.tolerance < 0:
            raise ConfigurationError(f"tolerance must be positive or zero (got {config.tolerance})")
        if config.optimizer not in SUPPORTED_OPTIMIZERS:
            raise ConfigurationError(
                f"unknown optimizer '{config.optimizer}'; must be one of {list(SUPPORTED_OPTIMIZERS)}"
            )
        if config.lambda_ < 0:
            raise ConfigurationError(f"lambda must be positive or zero (got {config.lambda_})")
        if config.number_of_classes < 0:
            raise ConfigurationError(
                "number_of_classes must be greater than or equal to 0 "
                f"(0 when unspecified; got {config.number_of_classes})"
            )
        if config.delta < 0:
            raise ConfigurationError(
                f"delta (margin between correct and other classes) must be positive or zero (got {config.delta})"
            )
        if config.step_size is not None and config.step_size < 0:
            raise ConfigurationError(f"step_size must be positive (got {config.step_size})")
        if config.n_workers is not None and config.n_workers < 1:
            raise ConfigurationError(f"parallel.n_workers must be at least 1 (got {config.n_workers})")
