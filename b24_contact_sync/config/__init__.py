"""
b24_contact_sync.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from b24_contact_sync.config.generator import generate_default_config, save_config_file
from b24_contact_sync.config.loader import (
    DEFAULT_CONFIG_FILE,
    WEBHOOK_URL_ENV_VAR,
    ConfigError,
    ConfigLoader,
    validate_webhook_url,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "WEBHOOK_URL_ENV_VAR",
    "ConfigError",
    "ConfigLoader",
    "generate_default_config",
    "save_config_file",
    "validate_webhook_url",
]
