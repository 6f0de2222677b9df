"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.contactsweep/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from contactsweep.domain.errors import ConfigurationError
from contactsweep.domain.models.common import RateSettings

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".contactsweep"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "CONTACTSWEEP_"

DEFAULT_LIST_TIMEOUT_S = 30.0
DEFAULT_REMOVE_TIMEOUT_S = 15.0

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug(".env file not found at or above current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML sections into dotted keys ('rate': {'backoff': 60} -> 'rate.backoff')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _coerce(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (CONTACTSWEEP_RATE_BACKOFF, then RATE_BACKOFF)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'rate.backoff'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace(".", "_")
    for candidate in (ENV_PREFIX + env_key, env_key):
        if candidate in os.environ:
            return _coerce(os.environ[candidate])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_linkedin_cookie() -> Optional[str]:
    """Returns the raw LinkedIn cookie header, if configured."""
    cookie = get_config("linkedin.cookie")
    return str(cookie) if cookie else None


def _number(key: str, default: Any, kind: type = float) -> Any:
    value = get_config(key, default)
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config key '{key}' must be a number, got {value!r}.") from e


def get_rate_settings() -> RateSettings:
    """Builds the removal cadence from config, falling back to the defaults.

    Raises:
        ConfigurationError: If a value is not a number or the cadence is inconsistent.
    """
    defaults = RateSettings()
    values = dict(
        min_delay=_number("rate.min_delay", defaults.min_delay),
        max_delay=_number("rate.max_delay", defaults.max_delay),
        batch_size=_number("rate.batch_size", defaults.batch_size, int),
        batch_pause_min=_number("rate.batch_pause_min", defaults.batch_pause_min),
        batch_pause_max=_number("rate.batch_pause_max", defaults.batch_pause_max),
        jitter=_number("rate.jitter", defaults.jitter),
        backoff=_number("rate.backoff", defaults.backoff),
    )
    try:
        return RateSettings(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid rate settings: {e}") from e


def get_list_timeout() -> float:
    """Timeout in seconds for one page of the contact list."""
    return _number("http.list_timeout", DEFAULT_LIST_TIMEOUT_S)


def get_remove_timeout() -> float:
    """Timeout in seconds for one removal mutation."""
    return _number("http.remove_timeout", DEFAULT_REMOVE_TIMEOUT_S)


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
