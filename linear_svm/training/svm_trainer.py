"""
SVM trainer module.

Configures a model's hyperparameters from the resolved options and runs
exactly one optimizer backend on it.
"""

import time
import logging

from .optimizers import create_optimizer
from ..data.data_loader import TrainingData, check_label_range
from ..models.linear_svm import LinearSVM
from ..utils.config import TrainEvalConfig
from ..utils.errors import DataDimensionError

logger = logging.getLogger(__name__)

OPTIMIZER_NAMES = {
    'lbfgs': 'L-BFGS',
    'psgd': 'ParallelSGD',
}


class SVMTrainer:
    """
    Trains a LinearSVM with the optimizer selected in the configuration.
    """

    def __init__(self, config: TrainEvalConfig, parallel_available: bool):
        """
        Initialize SVM trainer.

        Args:
            config: Resolved options for this invocation
            parallel_available: Whether the parallel SGD backend can run
        """
        self.config = config
        self.parallel_available = parallel_available

    def configure_model(self, model: LinearSVM, num_classes: int) -> LinearSVM:
        """Copy the hyperparameters from the configuration onto the model."""
        model.lambda_ = self.config.lambda_
        model.delta = self.config.delta
        model.fit_intercept = self.config.fit_intercept
        model.num_classes = num_classes
        return model

    def train(self, model: LinearSVM, training_data: TrainingData, num_classes: int) -> LinearSVM:
        """
        Train ``model`` in place and hand it back.

        Args:
            model: Fresh or loaded model
            training_data: Features (dimensions x points) and labels
            num_classes: Resolved class count

        Returns:
            The trained model
        """
        if training_data.n_points == 0:
            raise DataDimensionError("Training data contains no points")
        check_label_range(training_data.labels, num_classes, 'training labels')

        # Build the optimizer first so an unavailable backend leaves the model untouched
        optimizer = create_optimizer(self.config, training_data.n_points, self.parallel_available)

        self.configure_model(model, num_classes)
        logger.info(f"Training model with {OPTIMIZER_NAMES[optimizer.name]} optimizer.")
        logger.debug(
            f"{training_data.n_points} points, {training_data.dimensionality} dimensions, "
            f"{num_classes} classes, lambda={model.lambda_}, delta={model.delta}, "
            f"intercept={model.fit_intercept}"
        )

        start = time.perf_counter()
        objective = model.train(
            training_data.features,
            training_data.labels,
            num_classes,
            optimizer,
            random_state=self.config.random_state
        )
        elapsed = time.perf_counter() - start
        model.training_info['training_seconds'] = round(elapsed, 6)

        unit = 'points visited' if optimizer.name == 'psgd' else 'iterations'
        logger.info(
            f"Training finished in {elapsed:.3f}s: objective {objective:.6g}, "
            f"{model.training_info['iterations']} {unit}"
        )
        return model
