"""
Configuration file generator for Bitrix24 contact cleanup.

Provides functionality to generate a default configuration file with
documentation for all available options.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# Bitrix24 Contact Sync Configuration
# ===================================
#
# CLI arguments and environment variables always override these values.
#
# To use this configuration:
#   1. Save as ~/.b24-contact-sync/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run b24-contact-sync commands normally

# CRM Connection
# --------------

# Incoming webhook URL of the CRM, including the trailing slash.
# Can also be set with the B24_WEBHOOK_URL environment variable or a .env file.
# webhook_url: https://example.bitrix24.ru/rest/1/abcdef123456/

# Seconds to wait after every CRM request (fixed rate limit)
# Default: 0.25
# request_delay: 0.25

# Retries of a failing page fetch before giving up.
# 0 keeps retrying forever.
# Default: 10
# max_fetch_retries: 10

# HTTP timeout for CRM requests in seconds
# Default: 30
# request_timeout: 30


# Normalization
# -------------

# Region used to interpret national phone numbers
# Default: RU
# phone_region: RU

# Name decomposition service. When set, contact names are joined and
# re-split into surname, given name and patronymic.
# Default: not set (names are only cleaned, never re-split)
# name_service_url: https://names.example.com/split
# name_service_timeout: 10


# Run Options
# -----------

# Preview changes without writing anything back to the CRM
# Default: false
# dry_run: false

# Enable verbose output with detailed logging
# Default: false
# verbose: false

# Directory for contacts.json / contacts_sanitized.json snapshots
# Default: ./cache
# cache_dir: ./cache


# Logging
# -------

# Directory for log files
# Default: logs/ in the project directory
# log_dir: /var/log/b24-contact-sync

# Number of daily log files to keep (0 = keep all)
# Default: 10
# log_retention_count: 10
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    The file may end up holding the webhook URL, which is a credential,
    so it is written with owner-only permissions.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message)
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
