"""
b24_contact_sync.utils - Utility module

Common utilities including field canonicalization and path resolution.
"""

from b24_contact_sync.utils.normalization import (
    canonicalize_email,
    canonicalize_phone,
    clean_text,
    is_blank,
    is_empty_list,
    sanitize_text,
)
from b24_contact_sync.utils.paths import (
    DEFAULT_CACHE_DIR,
    DEFAULT_CONFIG_DIR,
    resolve_cache_dir,
    resolve_config_dir,
)

__all__ = [
    "DEFAULT_CACHE_DIR",
    "DEFAULT_CONFIG_DIR",
    "canonicalize_email",
    "canonicalize_phone",
    "clean_text",
    "is_blank",
    "is_empty_list",
    "resolve_cache_dir",
    "resolve_config_dir",
    "sanitize_text",
]
