"""
Path utilities for configuration and cache directory resolution.

Provides consistent path resolution for the b24-contact-sync configuration
directory and the snapshot cache directory across all modules.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".b24-contact-sync"

# Snapshot cache directory, relative to the working directory
DEFAULT_CACHE_DIR = Path("cache")

# Environment variables for overriding directories
CONFIG_DIR_ENV_VAR = "B24_CONTACT_SYNC_CONFIG_DIR"
CACHE_DIR_ENV_VAR = "B24_CONTACT_SYNC_CACHE_DIR"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter (if provided)
        2. B24_CONTACT_SYNC_CONFIG_DIR environment variable
        3. Default directory (~/.b24-contact-sync)

    Args:
        config_dir: Optional explicit configuration directory path.

    Returns:
        Resolved Path to the configuration directory
    """
    if config_dir is not None:
        return Path(config_dir).expanduser().resolve()

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return DEFAULT_CONFIG_DIR.expanduser().resolve()


def resolve_cache_dir(cache_dir: Path | str | None = None) -> Path:
    """
    Resolve the snapshot cache directory path.

    Same priority order as resolve_config_dir(), falling back to ./cache.
    The directory is not created here; the snapshot store creates it on
    first write.
    """
    if cache_dir is not None:
        return Path(cache_dir).expanduser().resolve()

    env_dir = os.environ.get(CACHE_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return (Path.cwd() / DEFAULT_CACHE_DIR).resolve()
