"""
Configuration loader module for Bitrix24 contact cleanup.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Validation of configuration keys and values
- Validation of the CRM webhook URL
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

from b24_contact_sync.utils.paths import CONFIG_DIR_ENV_VAR, DEFAULT_CONFIG_DIR

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

# Environment variable holding the CRM incoming webhook URL
WEBHOOK_URL_ENV_VAR = "B24_WEBHOOK_URL"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


# Valid configuration keys and their expected types
VALID_KEYS: dict[str, type[Any] | tuple[type[Any], ...]] = {
    # CRM options
    "webhook_url": str,
    "request_delay": (int, float),
    "max_fetch_retries": int,
    "request_timeout": (int, float),
    # Normalization options
    "phone_region": str,
    "name_service_url": str,
    "name_service_timeout": (int, float),
    # Run options
    "dry_run": bool,
    "verbose": bool,
    "cache_dir": str,
    # Logging options
    "log_dir": str,
    "log_retention_count": int,
}


def validate_webhook_url(webhook_url: Optional[str]) -> str:
    """
    Check that a webhook URL is present and looks like an http(s) URL.

    Args:
        webhook_url: Candidate URL, possibly None

    Returns:
        The stripped URL

    Raises:
        ConfigError: If the URL is missing or not an absolute http(s) URL
    """
    if webhook_url is None or not webhook_url.strip():
        raise ConfigError(
            f"CRM webhook URL is not configured. Set {WEBHOOK_URL_ENV_VAR}, "
            "pass --webhook-url or add webhook_url to the config file."
        )

    webhook_url = webhook_url.strip()
    parsed = urlparse(webhook_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid CRM webhook URL: {webhook_url}")

    return webhook_url


def _type_name(expected_type: type[Any] | tuple[type[Any], ...]) -> str:
    if isinstance(expected_type, tuple):
        return " or ".join(t.__name__ for t in expected_type)
    return expected_type.__name__


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.b24-contact-sync/ or $B24_CONTACT_SYNC_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
        else:
            env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
            self.config_dir = Path(env_dir) if env_dir else DEFAULT_CONFIG_DIR

        self.config_file = config_file

    def _get_config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Configuration values, or an empty dict if the file doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self._get_config_path())

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Args:
            path: Path to the configuration file

        Returns:
            Configuration values, or an empty dict if the file doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are ignored so newer config files keep working.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            if key not in VALID_KEYS:
                continue
            expected_type = VALID_KEYS[key]
            # bool is an int subclass; reject it for numeric options
            if isinstance(value, bool) and expected_type is not bool:
                raise ConfigError(
                    f"Invalid type for '{key}': expected {_type_name(expected_type)}, "
                    f"got bool"
                )
            if not isinstance(value, expected_type):
                raise ConfigError(
                    f"Invalid type for '{key}': expected {_type_name(expected_type)}, "
                    f"got {type(value).__name__}"
                )

        if "webhook_url" in config:
            validate_webhook_url(config["webhook_url"])

        if "name_service_url" in config:
            parsed = urlparse(config["name_service_url"])
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(
                    f"Invalid name_service_url: {config['name_service_url']}"
                )

        for key in ("max_fetch_retries", "log_retention_count", "request_delay"):
            if key in config and config[key] < 0:
                raise ConfigError(f"{key} must be >= 0, got {config[key]}")

        for key in ("request_timeout", "name_service_timeout"):
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

        if "phone_region" in config:
            region = config["phone_region"]
            if len(region) != 2 or not region.isalpha():
                raise ConfigError(
                    f"phone_region must be a two-letter region code, got '{region}'"
                )

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config
