"""
YAML configuration loading and merging with command-line options.
"""

import pytest

from linear_svm.pipeline import parse_arguments
from linear_svm.utils.config import Config, build_config, load_config, DEFAULT_STEP_SIZE
from linear_svm.utils.errors import ConfigurationError


def write_yaml(tmp_path, text):
    path = tmp_path / 'config.yaml'
    path.write_text(text)
    return str(path)


def test_defaults_without_config_file():
    config = build_config(parse_arguments(['-t', 'train.csv']))
    assert config.training_file == 'train.csv'
    assert config.lambda_ == 0.0001
    assert config.delta == 1.0
    assert config.number_of_classes == 0
    assert config.fit_intercept is True
    assert config.optimizer == 'lbfgs'
    assert config.tolerance == 1e-10
    assert config.max_iterations == 10000
    assert config.step_size is None
    assert config.shuffle is None
    assert config.effective_step_size == DEFAULT_STEP_SIZE
    assert config.effective_shuffle is True


def test_command_line_flags():
    args = parse_arguments([
        '-t', 'train.csv', '-l', 'labels.csv', '-L', '0.1', '-d', '2', '-c', '3', '-N',
        '-O', 'psgd', '-e', '1e-4', '-n', '50', '-s', '0.2', '-S',
        '-M', 'out.pkl', '-T', 'test.csv', '-A', 'tl.csv', '-P', 'p.csv', '-p', 's.csv',
    ])
    config = build_config(args)
    assert config.labels_file == 'labels.csv'
    assert config.lambda_ == 0.1
    assert config.delta == 2.0
    assert config.number_of_classes == 3
    assert config.fit_intercept is False
    assert config.optimizer == 'psgd'
    assert config.tolerance == 1e-4
    assert config.max_iterations == 50
    assert config.step_size == 0.2
    assert config.shuffle is False
    assert config.output_model_file == 'out.pkl'
    assert config.test_file == 'test.csv'
    assert config.test_labels_file == 'tl.csv'
    assert config.predictions_file == 'p.csv'
    assert config.score_file == 's.csv'


def test_yaml_values_used_as_defaults(tmp_path):
    path = write_yaml(tmp_path, """
training:
  lambda: 0.5
  fit_intercept: false
optimizer:
  type: psgd
  tolerance: 1.0e-6
  step_size: 0.05
system:
  parallel:
    enabled: false
    n_workers: 2
""")
    config = build_config(parse_arguments(['-t', 'train.csv']), load_config(path))
    assert config.lambda_ == 0.5
    assert config.fit_intercept is False
    assert config.optimizer == 'psgd'
    assert config.tolerance == 1e-6
    assert config.step_size == 0.05
    assert config.parallel_enabled is False
    assert config.n_workers == 2


def test_command_line_overrides_yaml(tmp_path):
    path = write_yaml(tmp_path, "training:\n  lambda: 0.5\noptimizer:\n  type: psgd\n")
    args = parse_arguments(['-t', 'train.csv', '-L', '0.25', '-O', 'lbfgs'])
    config = build_config(args, load_config(path))
    assert config.lambda_ == 0.25
    assert config.optimizer == 'lbfgs'


def test_yaml_tolerance_written_as_plain_exponent(tmp_path):
    # YAML 1.1 reads 1e-6 as a string
    path = write_yaml(tmp_path, "optimizer:\n  tolerance: 1e-6\n")
    config = build_config(parse_arguments([]), load_config(path))
    assert config.tolerance == 1e-6


def test_unknown_section_rejected(tmp_path):
    path = write_yaml(tmp_path, "features:\n  pca: true\n")
    with pytest.raises(ConfigurationError, match='features'):
        load_config(path)


def test_unknown_key_rejected(tmp_path):
    path = write_yaml(tmp_path, "training:\n  lambada: 0.1\n")
    with pytest.raises(ConfigurationError, match='lambada'):
        load_config(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match='not found'):
        Config(str(tmp_path / 'missing.yaml')).load()


def test_invalid_numeric_value(tmp_path):
    path = write_yaml(tmp_path, "optimizer:\n  max_iterations: lots\n")
    with pytest.raises(ConfigurationError, match='max_iterations'):
        build_config(parse_arguments([]), load_config(path))


def test_has_output_sink():
    assert not build_config(parse_arguments(['-t', 'x.csv'])).has_output_sink
    assert build_config(parse_arguments(['-t', 'x.csv', '-p', 's.csv'])).has_output_sink


def test_help_keeps_example_layout(capsys):
    with pytest.raises(SystemExit):
        parse_arguments(['--help'])
    help_text = capsys.readouterr().out
    assert "Examples:\n  linear-svm -t data.csv" in help_text
