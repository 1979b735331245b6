"""
Configuration and Logging Setup

Central place for environment loading and logging of the task execution agent.
Values come from the process environment, optionally seeded from a ``.env``
file in the working directory.

Usage:
    from taskpilot.config import configure_logging, load_environment

    # At application startup
    load_environment()
    configure_logging()

    # In any module
    logger = logging.getLogger(__name__)
"""

import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s: %(message)s"

VALID_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers that are too chatty below DEBUG
NOISY_LOGGERS = ("playwright", "asyncio", "httpx", "httpcore", "anthropic")

TRUE_VALUES = ("true", "1", "yes", "on")

_environment_loaded = False


class ConfigurationError(ValueError):
    """Raised when the agent cannot be set up from the given configuration."""


def load_environment(override: bool = False) -> None:
    """
    Load variables from a ``.env`` file into the process environment.

    Safe to call more than once; only the first call reads the file
    unless ``override`` is set.

    Args:
        override: Let ``.env`` values replace variables already set in the shell
    """
    global _environment_loaded

    if _environment_loaded and not override:
        return
    load_dotenv(override=override)
    _environment_loaded = True


def env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment (true/1/yes/on)."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in TRUE_VALUES


def env_int(name: str, default: int) -> int:
    """
    Read an integer from the environment.

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'")


def env_float(name: str, default: Optional[float]) -> Optional[float]:
    """Read a float from the environment, ``default`` when unset."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got '{raw}'")


def get_log_level() -> int:
    """
    Get the log level from the LOG_LEVEL environment variable.

    Returns:
        Logging level constant (e.g., logging.INFO)
    """
    level_str = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    if level_str not in VALID_LEVELS:
        print(
            f"Warning: Invalid LOG_LEVEL '{level_str}'. "
            f"Valid values: {', '.join(VALID_LEVELS.keys())}. "
            f"Using {DEFAULT_LOG_LEVEL}.",
            file=sys.stderr,
        )
        return VALID_LEVELS[DEFAULT_LOG_LEVEL]

    return VALID_LEVELS[level_str]


def configure_logging(
    level: Optional[int] = None,
    verbose: bool = False,
) -> None:
    """
    Configure logging for taskpilot.

    Logs go to stderr so they never interleave with the event stream a
    caller may be writing to stdout.

    Args:
        level: Override log level (default: from LOG_LEVEL env var)
        verbose: Use detailed format with timestamps and logger names
    """
    if level is None:
        level = get_log_level()

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT if verbose else LOG_FORMAT_SIMPLE,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("taskpilot").setLevel(level)

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
