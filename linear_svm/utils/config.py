"""
Configuration management for the linear SVM trainer/evaluator.

Options come from two places: an optional YAML file holding defaults, and
the command line. Both are merged once at the entry boundary into a single
``TrainEvalConfig`` that every stage receives explicitly.
"""

import yaml
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, Optional

from .errors import ConfigurationError


DEFAULT_LAMBDA = 0.0001
DEFAULT_DELTA = 1.0
DEFAULT_OPTIMIZER = 'lbfgs'
DEFAULT_TOLERANCE = 1e-10
DEFAULT_MAX_ITERATIONS = 10000
DEFAULT_STEP_SIZE = 0.01
DEFAULT_RANDOM_STATE = 42

# Recognised keys per YAML section
KNOWN_SECTIONS = {
    'data': {'training', 'labels', 'test', 'test_labels'},
    'training': {'lambda', 'delta', 'number_of_classes', 'fit_intercept', 'random_state'},
    'optimizer': {'type', 'tolerance', 'max_iterations', 'step_size', 'shuffle'},
    'output': {'input_model', 'output_model', 'predictions', 'score', 'evaluation'},
    'system': {'logging', 'parallel'},
}


class Config:
    """Simple YAML configuration loader."""

    def __init__(self, config_path: str = "config.yaml"):
        """Initialize config loader with path to YAML file."""
        self.config_path = Path(config_path)
        self._config = None

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file and reject unknown keys."""
        if not self.config_path.exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        loaded = loaded or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")

        for section, values in loaded.items():
            if section not in KNOWN_SECTIONS:
                raise ConfigurationError(f"Unknown config section: '{section}'")
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(f"Config section '{section}' must be a mapping")
            unknown = set(values) - KNOWN_SECTIONS[section]
            if unknown:
                raise ConfigurationError(
                    f"Unknown keys in config section '{section}': {sorted(unknown)}"
                )

        self._config = loaded
        return self._config

    def get(self, section: str, default: Any = None) -> Dict[str, Any]:
        """Get configuration section (e.g., 'training', 'optimizer')."""
        if self._config is None:
            self.load()
        value = self._config.get(section)
        if value is None:
            return {} if default is None else default
        return value

    @property
    def data(self) -> Dict[str, Any]:
        """Get data file configuration."""
        return self.get('data')

    @property
    def training(self) -> Dict[str, Any]:
        """Get model hyperparameter configuration."""
        return self.get('training')

    @property
    def optimizer(self) -> Dict[str, Any]:
        """Get optimizer configuration."""
        return self.get('optimizer')

    @property
    def output(self) -> Dict[str, Any]:
        """Get model/output path configuration."""
        return self.get('output')

    @property
    def system(self) -> Dict[str, Any]:
        """Get logging and parallelism configuration."""
        return self.get('system')


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file."""
    config = Config(config_path)
    config.load()
    return config


@dataclass
class TrainEvalConfig:
    """
    Fully resolved options for one invocation.

    ``step_size`` and ``shuffle`` stay ``None`` unless the user supplied them,
    so the validator can tell an explicit value from the default.
    """

    training_file: Optional[str] = None
    labels_file: Optional[str] = None
    input_model_file: Optional[str] = None
    output_model_file: Optional[str] = None
    test_file: Optional[str] = None
    test_labels_file: Optional[str] = None
    predictions_file: Optional[str] = None
    score_file: Optional[str] = None
    evaluation_file: Optional[str] = None

    lambda_: float = DEFAULT_LAMBDA
    delta: float = DEFAULT_DELTA
    number_of_classes: int = 0
    fit_intercept: bool = True
    optimizer: str = DEFAULT_OPTIMIZER
    tolerance: float = DEFAULT_TOLERANCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    step_size: Optional[float] = None
    shuffle: Optional[bool] = None
    random_state: int = DEFAULT_RANDOM_STATE

    parallel_enabled: bool = True
    n_workers: Optional[int] = None
    verbose: bool = False

    @property
    def effective_step_size(self) -> float:
        return DEFAULT_STEP_SIZE if self.step_size is None else self.step_size

    @property
    def effective_shuffle(self) -> bool:
        return True if self.shuffle is None else self.shuffle

    @property
    def has_output_sink(self) -> bool:
        return any([self.output_model_file, self.predictions_file, self.score_file])

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary view, used for model metadata."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(value: Any, cast, name: str) -> Any:
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{name}': {value!r}") from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', 'yes', '1', 'false', 'no', '0'):
        return value.lower() in ('true', 'yes', '1')
    raise ValueError(value)


def _as_int(value: Any) -> int:
    # Reject 2.5 instead of silently truncating it
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(value)
    return int(value)


def _pick(cli_value: Any, section: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Command-line value wins over the YAML value, which wins over the default."""
    if cli_value is not None:
        return cli_value
    return section.get(key, default)


def build_config(args: Any, yaml_config: Optional[Config] = None) -> TrainEvalConfig:
    """
    Merge parsed command-line arguments over YAML defaults.

    Args:
        args: ``argparse.Namespace`` (or any object with the same attributes)
        yaml_config: Optional loaded ``Config``

    Returns:
        Resolved ``TrainEvalConfig``
    """
    data = yaml_config.data if yaml_config else {}
    training = yaml_config.training if yaml_config else {}
    optimizer = yaml_config.optimizer if yaml_config else {}
    output = yaml_config.output if yaml_config else {}
    system = yaml_config.system if yaml_config else {}
    parallel = system.get('parallel', {}) or {}

    def get(name: str) -> Any:
        return getattr(args, name, None)

    # Flags are store_true on the command line, so False means "not given"
    fit_intercept = False if get('no_intercept') else training.get('fit_intercept', True)
    shuffle = False if get('no_shuffle') else optimizer.get('shuffle')

    return TrainEvalConfig(
        training_file=_pick(get('training'), data, 'training'),
        labels_file=_pick(get('labels'), data, 'labels'),
        test_file=_pick(get('test'), data, 'test'),
        test_labels_file=_pick(get('test_labels'), data, 'test_labels'),
        input_model_file=_pick(get('input_model'), output, 'input_model'),
        output_model_file=_pick(get('output_model'), output, 'output_model'),
        predictions_file=_pick(get('predictions'), output, 'predictions'),
        score_file=_pick(get('score'), output, 'score'),
        evaluation_file=_pick(get('evaluation_output'), output, 'evaluation'),
        lambda_=_coerce(_pick(get('lambda_'), training, 'lambda', DEFAULT_LAMBDA), float, 'lambda'),
        delta=_coerce(_pick(get('delta'), training, 'delta', DEFAULT_DELTA), float, 'delta'),
        number_of_classes=_coerce(
            _pick(get('number_of_classes'), training, 'number_of_classes', 0), _as_int, 'number_of_classes'
        ),
        fit_intercept=_coerce(fit_intercept, _as_bool, 'fit_intercept'),
        optimizer=str(_pick(get('optimizer'), optimizer, 'type', DEFAULT_OPTIMIZER)),
        tolerance=_coerce(_pick(get('tolerance'), optimizer, 'tolerance', DEFAULT_TOLERANCE), float, 'tolerance'),
        max_iterations=_coerce(
            _pick(get('max_iterations'), optimizer, 'max_iterations', DEFAULT_MAX_ITERATIONS), _as_int, 'max_iterations'
        ),
        step_size=_coerce(_pick(get('step_size'), optimizer, 'step_size'), float, 'step_size'),
        shuffle=_coerce(shuffle, _as_bool, 'shuffle'),
        random_state=_coerce(
            _pick(get('seed'), training, 'random_state', DEFAULT_RANDOM_STATE), _as_int, 'random_state'
        ),
        parallel_enabled=_coerce(parallel.get('enabled', True), _as_bool, 'parallel.enabled'),
        n_workers=_coerce(parallel.get('n_workers'), _as_int, 'parallel.n_workers'),
        verbose=bool(get('verbose')),
    )
