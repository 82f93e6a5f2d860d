"""
Matrix and label loading for the linear SVM trainer/evaluator.

This module handles:
- Loading numeric matrices from CSV/TXT/NPY files
- Loading integer label vectors
- Splitting inline labels off the last row of a training matrix
- Resolving the number of classes
- Writing predictions and score matrices

In memory every matrix is (dimensions x points): one column per point. On
disk a matrix holds one point per line, so matrices are transposed on load
and on save.
"""

import numpy as np
from pathlib import Path
from typing import Optional, Union
from dataclasses import dataclass
import logging

from ..utils.errors import DataLoadError, DataDimensionError

PathLike = Union[str, Path]

TEXT_SUFFIXES = ('.csv', '.txt', '.tsv', '')


@dataclass
class TrainingData:
    """Features (dimensions x points) with one integer label per column."""
    features: np.ndarray
    labels: np.ndarray

    @property
    def n_points(self) -> int:
        return self.features.shape[1]

    @property
    def dimensionality(self) -> int:
        return self.features.shape[0]


def number_of_classes(override: int, labels: np.ndarray) -> int:
    """
    Resolve the class count.

    Args:
        override: User supplied class count; 0 means unspecified
        labels: Resolved label vector

    Returns:
        ``override`` verbatim if non-zero, otherwise the number of distinct labels
    """
    if override == 0:
        return int(np.unique(labels).size)
    return int(override)


def check_label_range(labels: np.ndarray, num_classes: int, name: str = 'labels') -> None:
    """Fail if any label falls outside [0, num_classes)."""
    if labels.size == 0:
        return
    max_label = int(labels.max())
    if max_label >= num_classes:
        raise DataDimensionError(
            f"Label {max_label} in {name} is out of range for {num_classes} classes "
            f"(labels must lie in [0, {num_classes}))"
        )


def _to_labels(values: np.ndarray, source: str) -> np.ndarray:
    """Convert a float array to non-negative integer labels, rejecting anything else."""
    values = np.asarray(values).ravel()
    if values.size and not np.all(np.isfinite(values)):
        raise DataLoadError(f"Labels in {source} contain non-finite values")
    if values.size and not np.all(np.equal(np.mod(values, 1), 0)):
        raise DataLoadError(f"Labels in {source} must be integers")
    labels = values.astype(np.int64)
    if labels.size and labels.min() < 0:
        raise DataLoadError(f"Labels in {source} must be non-negative (found {labels.min()})")
    return labels


class DataLoader:
    """
    Reads and writes the matrices consumed by the trainer and evaluator.
    """

    def __init__(self, delimiter: Optional[str] = None):
        """
        Initialize data loader.

        Args:
            delimiter: Column delimiter for text files; None sniffs ',' vs whitespace
        """
        self.delimiter = delimiter
        self.logger = logging.getLogger(__name__)

    def _read_array(self, path: PathLike) -> np.ndarray:
        path = Path(path)
        if not path.exists():
            raise DataLoadError(f"File not found: {path}")

        suffix = path.suffix.lower()
        try:
            if suffix == '.npy':
                return np.asarray(np.load(path, allow_pickle=False), dtype=np.float64)
            if suffix in TEXT_SUFFIXES:
                delimiter = self.delimiter or self._sniff_delimiter(path)
                return np.loadtxt(path, delimiter=delimiter, dtype=np.float64, ndmin=2)
        except ValueError as e:
            raise DataLoadError(f"Could not parse {path}: {e}") from e

        raise DataLoadError(f"Unsupported file format '{suffix}' for {path}")

    @staticmethod
    def _sniff_delimiter(path: Path) -> Optional[str]:
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip():
                    if ',' in line:
                        return ','
                    if '\t' in line:
                        return '\t'
                    break
        return None

    def load_matrix(self, path: PathLike) -> np.ndarray:
        """
        Load a numeric matrix.

        Args:
            path: CSV/TXT/NPY file with one point per line

        Returns:
            Matrix of shape (dimensions, points)
        """
        data = self._read_array(path)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        matrix = np.ascontiguousarray(data.T)
        self.logger.info(f"Loaded matrix '{Path(path).name}' ({matrix.shape[0]} x {matrix.shape[1]})")
        return matrix

    def load_labels(self, path: PathLike) -> np.ndarray:
        """
        Load an integer label vector stored as a single row or a single column.

        Args:
            path: Label file

        Returns:
            int64 vector of labels
        """
        data = self._read_array(path)
        if data.ndim == 2 and min(data.shape) > 1:
            raise DataLoadError(
                f"Labels in {path} must be a single row or column (got shape {data.shape})"
            )
        labels = _to_labels(data, str(path))
        self.logger.info(f"Loaded {labels.size} labels from '{Path(path).name}'")
        return labels

    def resolve_training_data(self,
                              training_set: np.ndarray,
                              labels: Optional[np.ndarray] = None) -> TrainingData:
        """
        Pair a training matrix with its labels.

        When ``labels`` is None the last row of ``training_set`` holds the
        labels; it is split off and the returned features have one row fewer.

        Args:
            training_set: Matrix of shape (dimensions, points)
            labels: Optional separate label vector

        Returns:
            TrainingData with matching features and labels
        """
        if labels is not None:
            labels = np.asarray(labels, dtype=np.int64).ravel()
            if training_set.shape[1] != labels.size:
                raise DataDimensionError(
                    "The labels must have the same number of points as the training dataset "
                    f"({labels.size} labels for {training_set.shape[1]} points)"
                )
            return TrainingData(features=training_set, labels=labels)

        if training_set.shape[0] < 2:
            raise DataDimensionError(
                "Can't get labels from training data since it has less than 2 rows"
            )

        inline_labels = _to_labels(training_set[-1, :], 'the last row of the training data')
        features = np.ascontiguousarray(training_set[:-1, :])
        self.logger.debug(f"Using last row of training data as labels ({inline_labels.size} points)")
        return TrainingData(features=features, labels=inline_labels)

    def save_labels(self, labels: np.ndarray, path: PathLike) -> Path:
        """Write one integer label per line."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(path, np.asarray(labels, dtype=np.int64).reshape(-1, 1), fmt='%d')
        self.logger.info(f"Saved {len(labels)} predictions to {path}")
        return path

    def save_matrix(self, matrix: np.ndarray, path: PathLike) -> Path:
        """Write a (dimensions, points) matrix with one point per line."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() == '.npy':
            np.save(path, matrix.T)
        else:
            delimiter = '\t' if path.suffix.lower() == '.tsv' else ','
            np.savetxt(path, matrix.T, delimiter=delimiter, fmt='%.12g')
        self.logger.info(f"Saved matrix ({matrix.shape[0]} x {matrix.shape[1]}) to {path}")
        return path
