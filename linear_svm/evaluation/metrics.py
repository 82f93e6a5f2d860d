"""
Metrics Calculation Module
==========================

Per-class and overall accuracy for multiclass predictions.
"""

from dataclasses import dataclass
from typing import Dict, Any, List

import numpy as np
from sklearn.metrics import accuracy_score

from ..utils.errors import DataDimensionError


@dataclass
class ClassAccuracy:
    """
    Accuracy stratified by true label.

    ``bingo[c]`` counts correctly predicted points whose true label is ``c``
    and ``label_size[c]`` counts all points whose true label is ``c``.
    """
    bingo: np.ndarray
    label_size: np.ndarray
    total_correct: int
    n_points: int
    overall_accuracy: float

    @property
    def num_classes(self) -> int:
        return self.bingo.size

    @property
    def per_class_accuracy(self) -> np.ndarray:
        """``bingo / label_size``; NaN for classes with no test points."""
        accuracy = np.full(self.num_classes, np.nan)
        present = self.label_size > 0
        accuracy[present] = self.bingo[present] / self.label_size[present]
        return accuracy

    @property
    def absent_classes(self) -> List[int]:
        return [int(c) for c in np.flatnonzero(self.label_size == 0)]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view; undefined accuracies become None."""
        return {
            'per_class': [
                {
                    'label': c,
                    'correct': int(self.bingo[c]),
                    'total': int(self.label_size[c]),
                    'accuracy': None if np.isnan(acc) else float(acc),
                }
                for c, acc in enumerate(self.per_class_accuracy)
            ],
            'total_correct': self.total_correct,
            'n_points': self.n_points,
            'overall_accuracy': self.overall_accuracy,
        }


class EvaluationMetrics:
    """
    Metrics calculation for multiclass label predictions.
    """

    def calculate_class_accuracy(self,
                                 ground_truth: np.ndarray,
                                 predictions: np.ndarray,
                                 num_classes: int) -> ClassAccuracy:
        """
        Count correct predictions per true label.

        Args:
            ground_truth: True labels in [0, num_classes)
            predictions: Predicted labels, same length as ground_truth
            num_classes: Number of classes

        Returns:
            ClassAccuracy with per-class and overall counts
        """
        ground_truth = np.asarray(ground_truth, dtype=np.int64).ravel()
        predictions = np.asarray(predictions, dtype=np.int64).ravel()
        if ground_truth.size != predictions.size:
            raise DataDimensionError(
                f"{predictions.size} predictions cannot be scored against {ground_truth.size} labels"
            )

        correct = predictions == ground_truth
        label_size = np.bincount(ground_truth, minlength=num_classes)
        bingo = np.bincount(ground_truth[correct], minlength=num_classes)
        total_correct = int(bingo.sum())

        overall = float(accuracy_score(ground_truth, predictions)) if ground_truth.size else float('nan')

        return ClassAccuracy(
            bingo=bingo,
            label_size=label_size,
            total_correct=total_correct,
            n_points=int(ground_truth.size),
            overall_accuracy=overall,
        )
