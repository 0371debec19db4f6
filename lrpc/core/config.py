'''
Configuration management system for the LRPC Toolbox.

This module provides the configuration layer consumed by the estimators. The
configuration follows a layered approach:

1. Default configurations built into the package
2. User-specific configuration file (JSON)
3. Environment variables (``LRPC_<SECTION>_<OPTION>``)
4. Runtime modifications through ``set_config``

Explicit keyword arguments passed to an estimator always take precedence over
the configuration; the configuration supplies defaults only.
'''

import os
import json
import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError
from .types import ConfigDict, LogLevel

# Set up module-level logger
logger = logging.getLogger("lrpc.core.config")

# Constants for configuration paths and environment variables
CONFIG_ENV_PREFIX = "LRPC_"
DEFAULT_CONFIG_FILENAME = "lrpc_config.json"
USER_CONFIG_DIR_ENV = "LRPC_CONFIG_DIR"


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    PERFORMANCE = "performance"
    NUMERICAL = "numerical"
    ESTIMATION = "estimation"
    LOGGING = "logging"


@dataclass
class PerformanceConfig:
    """
    Worker pool settings.

    Attributes:
        n_cores: Worker pool size; None selects min(available cores - 1, 3)
        executor: 'process' for a process pool, 'thread' for a thread pool
    """
    n_cores: Optional[int] = None
    executor: str = "process"


@dataclass
class NumericalConfig:
    """
    Numerical settings for the LP solver and the repair utilities.

    Attributes:
        lp_method: scipy.optimize.linprog method
        degenerate_loss: Cross-validation loss assigned to degenerate candidates
        pinv_rtol: Relative singular value cutoff for the pseudo-inverse
            (None uses max(s) * p * machine epsilon)
        repair_max_iter: Iteration cap for the bounded diagonal repair
    """
    lp_method: str = "highs"
    degenerate_loss: float = 1e12
    pinv_rtol: Optional[float] = None
    repair_max_iter: int = 1000


@dataclass
class EstimationConfig:
    """
    Default tuning settings for the assembler and the cross-validator.

    Attributes:
        n_folds: Number of cross-validation folds
        path_length: Number of regularisation values on the path
        symmetric: Symmetrisation rule
        do_correct: Whether to repair degenerate diagonals
        do_threshold: Whether to threshold Delta and Omega
        adaptive: Whether to use the two-stage adaptive estimator
        threshold_path_length: Number of candidate thresholds
    """
    n_folds: int = 1
    path_length: int = 10
    symmetric: str = "min"
    do_correct: bool = True
    do_threshold: bool = False
    adaptive: bool = False
    threshold_path_length: int = 500


@dataclass
class LoggingConfig:
    """
    Logging configuration settings.

    Attributes:
        log_level: Default logging level
        log_file: Path to log file (None for no file logging)
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to log to console
        file_logging: Whether to log to file
    """
    log_level: LogLevel = "INFO"
    log_file: Optional[Path] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True
    file_logging: bool = False


@dataclass
class LRPCConfig:
    """
    Complete configuration for the LRPC Toolbox.
    """
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Options whose type cannot be recovered from a None default
_OPTIONAL_TYPES = {
    ("performance", "n_cores"): int,
    ("numerical", "pinv_rtol"): float,
    ("logging", "log_file"): Path,
}

_CHOICES = {
    ("performance", "executor"): ("process", "thread"),
    ("numerical", "lp_method"): ("highs", "highs-ds", "highs-ipm"),
    ("estimation", "symmetric"): ("min", "max", "avg", "none"),
    ("logging", "log_level"): ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
}

_POSITIVE = {
    ("performance", "n_cores"),
    ("numerical", "degenerate_loss"),
    ("numerical", "pinv_rtol"),
    ("numerical", "repair_max_iter"),
    ("estimation", "n_folds"),
    ("estimation", "path_length"),
    ("estimation", "threshold_path_length"),
}


def _coerce(section: str, option: str, current: Any, value: Any) -> Any:
    """Convert a raw value (possibly a string) to the option's type."""
    if value is None:
        return None
    value_type = _OPTIONAL_TYPES.get((section, option), type(current))
    if value_type is bool:
        if isinstance(value, str):
            return value.strip().lower() in ('true', 'yes', '1', 'y')
        return bool(value)
    if value_type is Path:
        return Path(value)
    if isinstance(value, str) and value_type in (int, float) and value.strip().lower() == "none":
        return None
    return value_type(value)


def _check_constraint(section: str, option: str, value: Any) -> None:
    """Raise ConfigurationError when value violates a known constraint."""
    if value is None:
        return
    choices = _CHOICES.get((section, option))
    if choices is not None and value not in choices:
        raise ConfigurationError(
            f"Invalid value for {section}.{option}: {value!r}",
            setting=f"{section}.{option}",
            value=value,
            issue=f"Must be one of {list(choices)}"
        )
    if (section, option) in _POSITIVE and value <= 0:
        raise ConfigurationError(
            f"Invalid value for {section}.{option}: {value!r}",
            setting=f"{section}.{option}",
            value=value,
            issue="Must be positive"
        )


class ConfigManager:
    """
    Configuration manager for the LRPC Toolbox.

    Attributes:
        _config: The current configuration object
        _initialized: Whether the configuration manager has been initialized
        _config_file: Path to the user configuration file
    """

    def __init__(self):
        self._config = LRPCConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        """
        Initialize the configuration manager.

        Loads the user configuration file if present, then applies environment
        variable overrides. Invalid entries are logged and skipped.
        """
        if self._initialized:
            return

        self._config_file = self.get_user_config_dir() / DEFAULT_CONFIG_FILENAME
        self._load_user_config()
        self._apply_env_overrides()

        self._initialized = True
        logger.debug("Configuration manager initialized")

    def _load_user_config(self) -> None:
        """Load user configuration from file, if it exists."""
        if not self._config_file or not self._config_file.exists():
            logger.debug("No user configuration file found")
            return

        try:
            with open(self._config_file, 'r') as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load user configuration: {e}")
            return

        self._update_from_dict(user_config)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        """Apply ``LRPC_<SECTION>_<OPTION>`` environment variable overrides."""
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX):
                continue

            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split('_', 1)
            if len(parts) != 2:
                continue

            section, option = parts
            try:
                ConfigSection(section)
            except ValueError:
                continue

            section_obj = getattr(self._config, section)
            if not hasattr(section_obj, option):
                continue

            try:
                typed_value = _coerce(section, option, getattr(section_obj, option), value)
                _check_constraint(section, option, typed_value)
            except (ValueError, TypeError, ConfigurationError) as e:
                logger.warning(f"Failed to apply environment override {env_var}: {e}")
                continue

            setattr(section_obj, option, typed_value)
            logger.debug(f"Applied environment override: {env_var}={value}")

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update the configuration from a nested dictionary."""
        for section_name, section_dict in config_dict.items():
            if not hasattr(self._config, section_name) or not isinstance(section_dict, dict):
                logger.warning(f"Unknown configuration section: {section_name}")
                continue

            section = getattr(self._config, section_name)
            for option_name, option_value in section_dict.items():
                if not hasattr(section, option_name):
                    logger.warning(f"Unknown configuration option: {section_name}.{option_name}")
                    continue
                try:
                    typed_value = _coerce(section_name, option_name,
                                          getattr(section, option_name), option_value)
                    _check_constraint(section_name, option_name, typed_value)
                except (ValueError, TypeError, ConfigurationError) as e:
                    logger.warning(f"Failed to set {section_name}.{option_name}: {e}")
                    continue
                setattr(section, option_name, typed_value)

    def save_user_config(self) -> None:
        """Save the current configuration to the user configuration file."""
        config_file = self._config_file or (self.get_user_config_dir() / DEFAULT_CONFIG_FILENAME)
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                "Failed to save user configuration",
                config_file=config_file,
                issue=str(e)
            ) from e
        self._config_file = config_file
        logger.debug(f"Saved user configuration to {config_file}")

    def to_dict(self) -> ConfigDict:
        """Convert the configuration to a JSON-serialisable dictionary."""
        result = {}
        for section in ConfigSection:
            section_obj = getattr(self._config, section.value)
            section_dict = {}
            for f in fields(section_obj):
                value = getattr(section_obj, f.name)
                if isinstance(value, Path):
                    value = str(value)
                section_dict[f.name] = value
            result[section.value] = section_dict
        return result

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Get a configuration value, or default if it does not exist."""
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None or not hasattr(section_obj, option):
            return default
        return getattr(section_obj, option)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ConfigurationError: If the section or option is not found, or the
                value cannot be converted or violates a constraint
        """
        self.initialize()
        if not hasattr(self._config, section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=f"{section}.{option}",
                value=value,
                issue="Section not found"
            )

        section_obj = getattr(self._config, section)
        if not hasattr(section_obj, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue="Option not found"
            )

        try:
            typed_value = _coerce(section, option, getattr(section_obj, option), value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Failed to set configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue=str(e)
            ) from e
        _check_constraint(section, option, typed_value)

        setattr(section_obj, option, typed_value)
        self._modified_keys.add(f"{section}.{option}")
        logger.debug(f"Set configuration option: {section}.{option}={value}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to default values.

        Args:
            section: The configuration section to reset, or None to reset all
            option: The configuration option to reset, or None for the section

        Raises:
            ConfigurationError: If the section or option is not found
        """
        if section is None:
            self._config = LRPCConfig()
            self._modified_keys.clear()
            logger.debug("Reset all configuration to defaults")
            return

        if not hasattr(self._config, section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )

        default_section = getattr(LRPCConfig(), section)
        if option is None:
            setattr(self._config, section, default_section)
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(f"{section}.")}
            return

        if not hasattr(default_section, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                issue="Option not found"
            )
        setattr(getattr(self._config, section), option, getattr(default_section, option))
        self._modified_keys.discard(f"{section}.{option}")

    def get_modified_options(self) -> List[str]:
        """Return the options changed at runtime through ``set``."""
        return sorted(self._modified_keys)

    def get_user_config_dir(self) -> Path:
        """Return the user configuration directory (not created here)."""
        env_config_dir = os.environ.get(USER_CONFIG_DIR_ENV)
        if env_config_dir:
            return Path(env_config_dir)
        return Path.home() / ".lrpc"

    def get_section(self, section: str) -> Any:
        """Return a configuration section dataclass."""
        self.initialize()
        if not hasattr(self._config, section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )
        return getattr(self._config, section)


# Global configuration manager instance
_config_manager = ConfigManager()


def initialize_config() -> None:
    """Initialize the global configuration manager."""
    _config_manager.initialize()


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Get a configuration value from the global configuration."""
    return _config_manager.get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Set a configuration value in the global configuration."""
    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset the global configuration to defaults."""
    _config_manager.reset(section, option)


def save_config() -> None:
    """Persist the global configuration to the user configuration file."""
    _config_manager.save_user_config()


def get_config_manager() -> ConfigManager:
    """Return the global configuration manager."""
    return _config_manager


def default_n_cores() -> int:
    """
    Worker pool size used when none is configured.

    Returns min(available cores - 1, 3), and never less than one worker.
    """
    configured = get_config("performance", "n_cores")
    if configured is not None:
        return int(configured)
    return max(1, min((os.cpu_count() or 1) - 1, 3))
