"""
Logging utilities for the trainer/evaluator.

Everything logs through module-level ``logging`` loggers; this module only
configures the root logger once per invocation.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import colorlog

from .errors import ConfigurationError


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def resolve_level(level) -> int:
    """Map a level name such as ``'info'`` (or a numeric level) to its value."""
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(
            f"Invalid log level: {level!r} (use DEBUG, INFO, WARNING, ERROR or CRITICAL)"
        )
    return numeric_level


def _console_handler(color_output: bool, format_string: str) -> logging.Handler:
    if color_output:
        handler = colorlog.StreamHandler(sys.stdout)
        handler.setFormatter(colorlog.ColoredFormatter('%(log_color)s' + format_string, log_colors=LOG_COLORS))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_string))
    return handler


def setup_logging(
    level="INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    color_output: bool = True,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or number
        log_file: Also append to this file
        console_output: Log to stdout
        color_output: Colorize console output with colorlog
        format_string: Record format; ``DEFAULT_FORMAT`` when None

    Returns:
        The root logger

    Raises:
        ConfigurationError: For an unknown level name
    """
    numeric_level = resolve_level(level)
    format_string = format_string or DEFAULT_FORMAT

    handlers = []
    if console_output:
        handlers.append(_console_handler(color_output, format_string))
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(format_string))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    return root


def setup_logging_from_config(system_config: dict, verbose: bool = False) -> logging.Logger:
    """
    Configure logging from the ``system.logging`` section of a YAML config.

    ``verbose`` forces DEBUG regardless of the configured level.
    """
    log_config = (system_config or {}).get('logging', {}) or {}
    level = 'DEBUG' if verbose else log_config.get('level', 'INFO')
    return setup_logging(
        level=level,
        log_file=log_config.get('file'),
        console_output=log_config.get('console_logging', True),
        color_output=log_config.get('color', True),
        format_string=log_config.get('format')
    )
