"""
pytest configuration and shared fixtures
"""

import logging

import numpy as np
import pytest

from linear_svm.data import DataLoader
from linear_svm.utils.config import TrainEvalConfig


# Two well separated clusters; columns are points
TRAINING_FEATURES = np.array([
    [-2.0, 2.0, -1.5, 2.5],
    [-2.0, 2.0, -2.5, 1.5],
])
TRAINING_LABELS = np.array([0, 1, 0, 1])

TEST_FEATURES = np.array([
    [-2.0, 2.0],
    [-2.0, 2.0],
])
TEST_LABELS = np.array([0, 1])


@pytest.fixture(autouse=True)
def restore_root_logging():
    """``main`` reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def data_loader():
    return DataLoader()


@pytest.fixture
def training_features():
    return TRAINING_FEATURES.copy()


@pytest.fixture
def training_labels():
    return TRAINING_LABELS.copy()


@pytest.fixture
def training_with_inline_labels():
    """Training matrix whose last row holds the labels."""
    return np.vstack([TRAINING_FEATURES, TRAINING_LABELS])


@pytest.fixture
def test_features():
    return TEST_FEATURES.copy()


@pytest.fixture
def test_labels():
    return TEST_LABELS.copy()


@pytest.fixture
def blobs():
    """Three Gaussian clusters, features as (dimensions, points)."""
    rng = np.random.default_rng(0)
    centers = np.array([[-4.0, 0.0], [4.0, 0.0], [0.0, 5.0]])
    points = []
    labels = []
    for label, center in enumerate(centers):
        points.append(center + 0.5 * rng.standard_normal((30, 2)))
        labels.extend([label] * 30)
    return np.vstack(points).T.copy(), np.array(labels)


@pytest.fixture
def make_config():
    """Factory for configs with scenario defaults."""
    def _make(**overrides):
        options = {'training_file': 'train.csv', 'lambda_': 0.1, 'delta': 1.0}
        options.update(overrides)
        return TrainEvalConfig(**options)
    return _make


def write_points(path, matrix):
    """Write a (dimensions, points) matrix as CSV with one point per line."""
    np.savetxt(path, np.atleast_2d(matrix).T, delimiter=',')
    return str(path)


@pytest.fixture
def scenario_files(tmp_path, training_with_inline_labels, test_features, test_labels):
    """Training/test CSV files on disk for end-to-end runs."""
    return {
        'training': write_points(tmp_path / 'train.csv', training_with_inline_labels),
        'test': write_points(tmp_path / 'test.csv', test_features),
        'test_labels': write_points(tmp_path / 'test_labels.csv', test_labels.reshape(1, -1)),
        'test_3d': write_points(tmp_path / 'test_3d.csv', np.vstack([test_features, [0.0, 0.0]])),
        'dir': tmp_path,
    }
