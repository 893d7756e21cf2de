"""Utility functions and helpers for Podtracks."""

from podtracks.utils.errors import (
    AuthError,
    CatalogCorruptError,
    CatalogError,
    ConfigError,
    EncryptionError,
    InvalidConfigError,
    MalformedInputError,
    NetworkError,
    NotFoundError,
    PodtracksError,
    RateLimitedError,
    ResolutionError,
    TransientNetworkError,
)
from podtracks.utils.paths import (
    get_backup_dir,
    get_catalog_file,
    get_config_dir,
    get_config_file,
    get_data_dir,
    get_key_file,
)

__all__ = [
    # Errors
    "PodtracksError",
    "ConfigError",
    "InvalidConfigError",
    "EncryptionError",
    "ResolutionError",
    "NotFoundError",
    "MalformedInputError",
    "NetworkError",
    "RateLimitedError",
    "TransientNetworkError",
    "AuthError",
    "CatalogError",
    "CatalogCorruptError",
    # Paths
    "get_config_dir",
    "get_data_dir",
    "get_config_file",
    "get_key_file",
    "get_catalog_file",
    "get_backup_dir",
]
