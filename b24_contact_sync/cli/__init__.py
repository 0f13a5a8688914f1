"""CLI package for b24_contact_sync."""

from b24_contact_sync.cli.main import (
    DEFAULT_CONFIG_FILE,
    build_normalizer,
    build_snapshot_store,
    cli,
    get_config_dir,
)
from b24_contact_sync.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "build_normalizer",
    "build_snapshot_store",
    "cli",
    "get_config_dir",
]
