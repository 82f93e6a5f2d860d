"""
Option validation: fatal range/set/presence checks and non-fatal warnings.
"""

import logging

import pytest

from linear_svm.utils.errors import ConfigurationError
from linear_svm.utils.validation import OptionValidator


@pytest.fixture
def validator():
    return OptionValidator()


@pytest.mark.parametrize("overrides, option", [
    ({'max_iterations': -1}, 'max_iterations'),
    ({'tolerance': -0.5}, 'tolerance'),
    ({'optimizer': 'foo'}, 'optimizer'),
    ({'lambda_': -1.0}, 'lambda'),
    ({'number_of_classes': -2}, 'number_of_classes'),
    ({'delta': -1.0}, 'delta'),
    ({'step_size': -1.0}, 'step_size'),
])
def test_rejects_out_of_range_option(validator, make_config, overrides, option):
    with pytest.raises(ConfigurationError, match=option):
        validator.validate(make_config(**overrides))


def test_step_size_range_checked_for_any_optimizer(validator, make_config):
    with pytest.raises(ConfigurationError, match='step_size'):
        validator.validate(make_config(optimizer='lbfgs', step_size=-0.1))


def test_requires_training_or_input_model(validator, make_config):
    with pytest.raises(ConfigurationError, match="'training' or 'input_model'"):
        validator.validate(make_config(training_file=None))


def test_input_model_alone_is_enough(validator, make_config):
    warnings = validator.validate(
        make_config(training_file=None, input_model_file='model.pkl', output_model_file='out.pkl')
    )
    assert warnings == []


def test_warns_when_no_output_requested(validator, make_config, caplog):
    with caplog.at_level(logging.WARNING):
        warnings = validator.validate(make_config())
    assert any('no output will be saved' in w for w in warnings)
    assert 'no output will be saved' in caplog.text


@pytest.mark.parametrize("overrides, option", [
    ({'step_size': 0.5}, 'step_size'),
    ({'shuffle': False}, 'shuffle'),
])
def test_psgd_only_options_ignored_for_lbfgs(validator, make_config, overrides, option):
    warnings = validator.validate(make_config(output_model_file='m.pkl', **overrides))
    assert warnings == [f"'{option}' ignored because optimizer type is not 'psgd'"]


def test_psgd_only_options_accepted_for_psgd(validator, make_config):
    config = make_config(output_model_file='m.pkl', optimizer='psgd', step_size=0.5, shuffle=False)
    assert validator.validate(config) == []


def test_test_outputs_without_test_set_are_not_errors(validator, make_config):
    config = make_config(predictions_file='p.csv', score_file='s.csv', test_labels_file='l.csv')
    assert validator.validate(config) == []


def test_zero_values_are_valid(validator, make_config):
    config = make_config(
        output_model_file='m.pkl', max_iterations=0, tolerance=0.0,
        lambda_=0.0, delta=0.0, number_of_classes=0
    )
    assert validator.validate(config) == []
