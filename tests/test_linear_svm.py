"""
LinearSVM model: objective/gradient, training shape, classification and
the dimensionality check.
"""

import numpy as np
import pytest

from linear_svm.models import LinearSVM, LinearSVMFunction
from linear_svm.training import BatchOptimizer, OptimizationResult
from linear_svm.utils.errors import DataDimensionError


def numerical_gradient(function, parameters, eps=1e-6):
    gradient = np.zeros_like(parameters)
    for index in np.ndindex(parameters.shape):
        shifted = parameters.copy()
        shifted[index] += eps
        upper = function.evaluate(shifted)
        shifted[index] -= 2 * eps
        lower = function.evaluate(shifted)
        gradient[index] = (upper - lower) / (2 * eps)
    return gradient


@pytest.fixture
def random_problem():
    rng = np.random.default_rng(1)
    features = rng.standard_normal((3, 6))
    labels = np.array([0, 1, 2, 1, 0, 2])
    parameters = rng.standard_normal((4, 3))
    return features, labels, parameters


def test_gradient_matches_finite_differences(random_problem):
    features, labels, parameters = random_problem
    function = LinearSVMFunction(features, labels, 3, lambda_=0.1, delta=1.0)
    value, gradient = function.evaluate_with_gradient(parameters)
    assert value == pytest.approx(function.evaluate(parameters))
    np.testing.assert_allclose(gradient, numerical_gradient(function, parameters), atol=1e-5)


def test_point_gradients_average_to_batch_gradient(random_problem):
    features, labels, parameters = random_problem
    function = LinearSVMFunction(features, labels, 3, lambda_=0.1, delta=1.0)
    point_gradients = [function.gradient_point(parameters, i) for i in range(function.num_functions)]
    np.testing.assert_allclose(np.mean(point_gradients, axis=0), function.gradient(parameters))

    point_values = [function.evaluate_point(parameters, i) for i in range(function.num_functions)]
    assert np.mean(point_values) == pytest.approx(function.evaluate(parameters))


def test_parameter_shape_with_and_without_intercept(training_features, training_labels):
    with_intercept = LinearSVMFunction(training_features, training_labels, 2, fit_intercept=True)
    without = LinearSVMFunction(training_features, training_labels, 2, fit_intercept=False)
    assert with_intercept.parameter_shape == (3, 2)
    assert without.parameter_shape == (2, 2)


def test_initial_point_is_seeded(training_features, training_labels):
    function = LinearSVMFunction(training_features, training_labels, 2)
    np.testing.assert_array_equal(function.initial_point(42), function.initial_point(42))


def test_training_produces_intercept_row_per_class(training_features, training_labels):
    model = LinearSVM(lambda_=0.1, delta=1.0, fit_intercept=True)
    model.train(training_features, training_labels, 2, BatchOptimizer(), random_state=42)
    assert model.parameters.shape == (3, 2)
    assert model.feature_dimensionality == 2
    assert model.training_info['optimizer'] == 'lbfgs'


def test_lbfgs_training_is_deterministic(training_features, training_labels):
    first = LinearSVM(lambda_=0.1)
    second = LinearSVM(lambda_=0.1)
    first.train(training_features, training_labels, 2, BatchOptimizer(max_iterations=100), random_state=7)
    second.train(training_features, training_labels, 2, BatchOptimizer(max_iterations=100), random_state=7)
    np.testing.assert_array_equal(first.parameters, second.parameters)


def test_classify_returns_predictions_and_scores(training_features, training_labels, test_features):
    model = LinearSVM(lambda_=0.1)
    model.train(training_features, training_labels, 2, BatchOptimizer(), random_state=42)

    predictions, scores = model.classify(test_features, return_scores=True)
    assert scores.shape == (2, 2)
    np.testing.assert_array_equal(predictions, np.argmax(scores, axis=0))
    np.testing.assert_array_equal(model.classify(test_features), predictions)
    np.testing.assert_array_equal(predictions, [0, 1])


def test_classify_without_intercept(training_features, training_labels, test_features):
    model = LinearSVM(lambda_=0.1, fit_intercept=False)
    model.train(training_features, training_labels, 2, BatchOptimizer(), random_state=42)
    assert model.parameters.shape == (2, 2)
    assert model.feature_dimensionality == 2
    np.testing.assert_array_equal(model.classify(test_features), [0, 1])


def test_dimension_mismatch_names_both_dimensionalities(training_features, training_labels):
    model = LinearSVM(lambda_=0.1)
    model.train(training_features, training_labels, 2, BatchOptimizer(), random_state=42)
    with pytest.raises(DataDimensionError) as excinfo:
        model.classify(np.zeros((3, 2)))
    assert '(3)' in str(excinfo.value)
    assert '(2)' in str(excinfo.value)


def test_untrained_model_cannot_classify(test_features):
    with pytest.raises(DataDimensionError, match='no trained parameters'):
        LinearSVM().classify(test_features)


class RecordingOptimizer:
    """Returns its starting point unchanged."""

    name = 'recording'

    def __init__(self):
        self.initial = None

    def optimize(self, function, initial_parameters):
        self.initial = initial_parameters.copy()
        return OptimizationResult(
            parameters=initial_parameters,
            objective=function.evaluate(initial_parameters),
            iterations=0,
            converged=True,
        )


def test_existing_parameters_are_used_as_starting_point(training_features, training_labels):
    model = LinearSVM(lambda_=0.1)
    model.parameters = np.arange(6, dtype=float).reshape(3, 2)
    optimizer = RecordingOptimizer()
    model.train(training_features, training_labels, 2, optimizer, random_state=0)
    np.testing.assert_array_equal(optimizer.initial, np.arange(6).reshape(3, 2))


def test_incompatible_parameters_are_reinitialized(training_features, training_labels):
    model = LinearSVM(lambda_=0.1)
    model.parameters = np.ones((5, 4))
    optimizer = RecordingOptimizer()
    model.train(training_features, training_labels, 2, optimizer, random_state=0)
    assert optimizer.initial.shape == (3, 2)
    assert np.abs(optimizer.initial).max() < 0.1
