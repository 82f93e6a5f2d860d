"""
Model Evaluation
================

Classifies a test set with a trained model and, when ground truth is given,
reports stratified and overall accuracy.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any

import numpy as np

from .metrics import EvaluationMetrics, ClassAccuracy
from ..data.data_loader import check_label_range
from ..models.linear_svm import LinearSVM
from ..utils.errors import DataDimensionError


@dataclass
class EvaluationResult:
    """Predictions for a test set, plus optional scores and accuracy."""
    predictions: np.ndarray
    scores: Optional[np.ndarray] = None
    accuracy: Optional[ClassAccuracy] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'n_points': int(self.predictions.size)}
        if self.accuracy is not None:
            result.update(self.accuracy.to_dict())
        return result


class ModelEvaluator:
    """
    Evaluator for trained linear SVM models.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.metrics_calculator = EvaluationMetrics()

    def evaluate(self,
                 model: LinearSVM,
                 test_set: np.ndarray,
                 test_labels: Optional[np.ndarray] = None,
                 compute_scores: bool = False,
                 num_classes: Optional[int] = None) -> EvaluationResult:
        """
        Classify the test set.

        Args:
            model: Trained or loaded model
            test_set: Matrix of shape (dimensions, points)
            test_labels: Optional ground truth, one label per point
            compute_scores: Also compute the (classes, points) score matrix
            num_classes: Class count for the accuracy report; defaults to the
                model's own

        Returns:
            EvaluationResult
        """
        model.check_dimensionality(test_set)

        scores = None
        if compute_scores:
            self.logger.info(f"Calculating class scores of {test_set.shape[1]} test points.")
            predictions, scores = model.classify(test_set, return_scores=True)
        else:
            predictions = model.classify(test_set)

        accuracy = None
        if test_labels is not None:
            test_labels = np.asarray(test_labels, dtype=np.int64).ravel()
            if test_set.shape[1] != test_labels.size:
                raise DataDimensionError(
                    f"Test data has {test_set.shape[1]} points, but test labels have "
                    f"{test_labels.size} labels!"
                )
            num_classes = num_classes or model.num_classes
            check_label_range(test_labels, num_classes, 'test labels')
            accuracy = self.metrics_calculator.calculate_class_accuracy(
                test_labels, predictions, num_classes
            )
            self._log_evaluation_results(accuracy)

        return EvaluationResult(predictions=predictions, scores=scores, accuracy=accuracy)

    def save_evaluation_results(self, result: EvaluationResult, output_path: str) -> Path:
        """
        Save evaluation results as JSON.

        Args:
            result: Evaluation result
            output_path: Destination file

        Returns:
            Path of the written file
        """
        results_path = Path(output_path)
        results_path.parent.mkdir(parents=True, exist_ok=True)

        with open(results_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)

        self.logger.info(f"Saved evaluation results to {results_path}")
        return results_path

    def _log_evaluation_results(self, accuracy: ClassAccuracy) -> None:
        """Log per-class and overall accuracy."""
        for label, class_accuracy in enumerate(accuracy.per_class_accuracy):
            if accuracy.label_size[label] == 0:
                self.logger.warning(
                    f"Accuracy for points with label {label} is undefined (no test points with this label)."
                )
                continue
            self.logger.info(
                f"Accuracy for points with label {label} is {class_accuracy:.6g} "
                f"({accuracy.bingo[label]} of {accuracy.label_size[label]})."
            )
        self.logger.info(
            f"Total accuracy for all points is {accuracy.overall_accuracy:.6g} "
            f"({accuracy.total_correct} of {accuracy.n_points})."
        )
