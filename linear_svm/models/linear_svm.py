"""
L2-regularized linear multiclass SVM.

The objective is the multiclass hinge loss with margin ``delta``:

    f(W) = 1/N * sum_i sum_{j != y_i} max(0, s_j(x_i) - s_{y_i}(x_i) + delta)
           + lambda / 2 * ||W||^2

with class scores ``s(x) = W^T [x; 1]``. The parameter matrix has one column
per class and, when an intercept is fit, a final row of per-class biases.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from ..utils.errors import DataDimensionError

logger = logging.getLogger(__name__)

INITIAL_WEIGHT_SCALE = 0.005


class LinearSVMFunction:
    """
    Objective and gradients of the linear SVM over a fixed training set.

    Optimizers only talk to this object: full-batch ``evaluate`` /
    ``gradient`` for L-BFGS, and per-point ``gradient_point`` for SGD.
    """

    def __init__(self,
                 features: np.ndarray,
                 labels: np.ndarray,
                 num_classes: int,
                 lambda_: float = 0.0001,
                 delta: float = 1.0,
                 fit_intercept: bool = True):
        self.num_classes = num_classes
        self.lambda_ = lambda_
        self.delta = delta
        self.fit_intercept = fit_intercept
        self.labels = np.asarray(labels, dtype=np.int64)

        if fit_intercept:
            ones = np.ones((1, features.shape[1]), dtype=np.float64)
            self.design = np.ascontiguousarray(np.vstack([features, ones]))
        else:
            self.design = np.ascontiguousarray(features, dtype=np.float64)

        self._columns = np.arange(self.labels.size)

    @property
    def num_functions(self) -> int:
        """Number of separable terms (training points)."""
        return self.labels.size

    @property
    def parameter_shape(self) -> Tuple[int, int]:
        return self.design.shape[0], self.num_classes

    def initial_point(self, random_state: Optional[int] = None) -> np.ndarray:
        """Small random weights drawn from a seeded generator."""
        rng = np.random.default_rng(random_state)
        return INITIAL_WEIGHT_SCALE * rng.standard_normal(self.parameter_shape)

    def _margins(self, parameters: np.ndarray) -> np.ndarray:
        scores = parameters.T @ self.design
        correct = scores[self.labels, self._columns]
        margins = scores - correct + self.delta
        margins[self.labels, self._columns] = 0.0
        return margins

    def _regularization(self, parameters: np.ndarray) -> float:
        return 0.5 * self.lambda_ * float(np.sum(parameters * parameters))

    def evaluate(self, parameters: np.ndarray) -> float:
        """Mean hinge loss over all points plus the L2 penalty."""
        margins = self._margins(parameters)
        loss = np.maximum(margins, 0.0).sum() / self.num_functions
        return float(loss) + self._regularization(parameters)

    def evaluate_with_gradient(self, parameters: np.ndarray) -> Tuple[float, np.ndarray]:
        margins = self._margins(parameters)
        loss = np.maximum(margins, 0.0).sum() / self.num_functions

        active = (margins > 0).astype(np.float64)
        active[self.labels, self._columns] = -active.sum(axis=0)
        gradient = (self.design @ active.T) / self.num_functions + self.lambda_ * parameters

        return float(loss) + self._regularization(parameters), gradient

    def gradient(self, parameters: np.ndarray) -> np.ndarray:
        return self.evaluate_with_gradient(parameters)[1]

    def evaluate_point(self, parameters: np.ndarray, index: int) -> float:
        """Hinge loss of a single point plus the L2 penalty."""
        x = self.design[:, index]
        label = self.labels[index]
        scores = parameters.T @ x
        margins = scores - scores[label] + self.delta
        margins[label] = 0.0
        return float(np.maximum(margins, 0.0).sum()) + self._regularization(parameters)

    def gradient_point(self, parameters: np.ndarray, index: int) -> np.ndarray:
        """Gradient of ``evaluate_point`` with respect to the parameters."""
        x = self.design[:, index]
        label = self.labels[index]
        scores = parameters.T @ x
        margins = scores - scores[label] + self.delta
        margins[label] = 0.0

        active = margins > 0
        gradient = self.lambda_ * parameters
        if active.any():
            gradient[:, active] += x[:, np.newaxis]
            gradient[:, label] -= active.sum() * x
        return gradient


class LinearSVM:
    """
    Linear multiclass support vector machine.

    Holds the hyperparameters and the learned parameter matrix. Training is
    delegated to an optimizer object; see ``linear_svm.training.optimizers``.
    """

    def __init__(self,
                 num_classes: int = 2,
                 lambda_: float = 0.0001,
                 delta: float = 1.0,
                 fit_intercept: bool = True):
        self.num_classes = num_classes
        self.lambda_ = lambda_
        self.delta = delta
        self.fit_intercept = fit_intercept
        self._parameters = np.zeros((0, 0))
        self.training_info: Dict[str, Any] = {}

    @property
    def parameters(self) -> np.ndarray:
        """Learned weights, shape (dimensions [+ 1], classes)."""
        return self._parameters

    @parameters.setter
    def parameters(self, value: np.ndarray) -> None:
        self._parameters = np.asarray(value, dtype=np.float64)

    @property
    def is_trained(self) -> bool:
        return self._parameters.size > 0

    @property
    def feature_dimensionality(self) -> int:
        """Dimensionality of the data the parameters were fit on."""
        rows = self._parameters.shape[0]
        return rows - 1 if self.fit_intercept else rows

    def train(self,
              features: np.ndarray,
              labels: np.ndarray,
              num_classes: int,
              optimizer,
              random_state: Optional[int] = None) -> float:
        """
        Fit the parameters with the given optimizer.

        Existing parameters of the right shape (e.g. from a loaded model) are
        used as the starting point; otherwise weights are freshly initialized.

        Args:
            features: Matrix of shape (dimensions, points)
            labels: Integer labels in [0, num_classes), one per point
            num_classes: Number of classes
            optimizer: Object with ``optimize(function, initial_point)``
            random_state: Seed for weight initialization

        Returns:
            Final objective value
        """
        labels = np.asarray(labels, dtype=np.int64).ravel()
        if features.shape[1] != labels.size:
            raise DataDimensionError(
                f"Training data has {features.shape[1]} points but {labels.size} labels were given"
            )

        self.num_classes = num_classes
        function = LinearSVMFunction(
            features, labels, num_classes,
            lambda_=self.lambda_, delta=self.delta, fit_intercept=self.fit_intercept
        )

        if self._parameters.shape == function.parameter_shape:
            logger.debug("Warm-starting from existing model parameters")
            initial = self._parameters.copy()
        else:
            initial = function.initial_point(random_state)

        result = optimizer.optimize(function, initial)
        self._parameters = result.parameters
        self.training_info = {
            'optimizer': optimizer.name,
            'objective': result.objective,
            'iterations': result.iterations,
            'converged': result.converged,
            'message': result.message,
            'training_points': int(labels.size),
            'feature_dimension': int(features.shape[0]),
        }
        return result.objective

    def check_dimensionality(self, features: np.ndarray) -> None:
        """Raise if ``features`` does not match the training dimensionality."""
        if not self.is_trained:
            raise DataDimensionError("Model has no trained parameters; train it or load a trained model")
        if features.shape[0] != self.feature_dimensionality:
            raise DataDimensionError(
                f"Test data dimensionality ({features.shape[0]}) must be the same as the "
                f"dimensionality of the training data ({self.feature_dimensionality})!"
            )

    def compute_scores(self, features: np.ndarray) -> np.ndarray:
        """Class scores of shape (classes, points)."""
        self.check_dimensionality(features)
        scores = self._parameters[:self.feature_dimensionality].T @ features
        if self.fit_intercept:
            scores += self._parameters[-1][:, np.newaxis]
        return scores

    def classify(self,
                 features: np.ndarray,
                 return_scores: bool = False) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
        """
        Predict a label for each column of ``features``.

        Args:
            features: Matrix of shape (dimensions, points)
            return_scores: Also return the (classes, points) score matrix

        Returns:
            Predictions, or (predictions, scores) when ``return_scores`` is set
        """
        scores = self.compute_scores(features)
        predictions = np.argmax(scores, axis=0).astype(np.int64)
        if return_scores:
            return predictions, scores
        return predictions

    def __repr__(self) -> str:
        return (f"LinearSVM(num_classes={self.num_classes}, lambda_={self.lambda_}, "
                f"delta={self.delta}, fit_intercept={self.fit_intercept}, "
                f"parameters_shape={self._parameters.shape})")
