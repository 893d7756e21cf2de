"""XDG-compliant locations for Podtracks files."""

from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "podtracks"


def get_config_dir() -> Path:
    """Directory holding config.yaml and the encryption key."""
    return Path(user_config_dir(APP_NAME))


def get_data_dir() -> Path:
    """Directory holding the catalog and its backups."""
    return Path(user_data_dir(APP_NAME))


def get_config_file() -> Path:
    return get_config_dir() / "config.yaml"


def get_key_file() -> Path:
    return get_config_dir() / ".keyfile"


def get_catalog_file() -> Path:
    return get_data_dir() / "music-tracks.json"


def get_backup_dir() -> Path:
    return get_data_dir() / "backups"
