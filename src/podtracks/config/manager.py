"""Configuration manager for loading and saving Podtracks config."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from podtracks.config.crypto import CredentialEncryptor
from podtracks.config.schema import GlobalConfig
from podtracks.utils.api_keys import API_KEY_ENV, API_SECRET_ENV
from podtracks.utils.errors import InvalidConfigError
from podtracks.utils.paths import (
    get_backup_dir,
    get_catalog_file,
    get_config_dir,
    get_config_file,
    get_key_file,
)

DEFAULT_CONFIG_CONTENT = """\
# Podtracks configuration
version: "1"
log_level: INFO

directory:
  # Prefer the PODCAST_INDEX_API_KEY / PODCAST_INDEX_API_SECRET environment
  # variables; 'podtracks config set directory.api_secret ...' stores the
  # secret encrypted.
  base_url: https://api.podcastindex.org/api/1.0
  timeout_seconds: 10

batch:
  batch_size: 5
  request_delay_seconds: 0.5
  batch_delay_seconds: 2.0
  max_consecutive_rate_limits: 3
"""


class ConfigManager:
    """Manages the Podtracks configuration file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config manager.

        Args:
            config_dir: Optional custom config directory. Defaults to XDG config dir.
        """
        if config_dir is None:
            self.config_dir = get_config_dir()
            self.config_file = get_config_file()
            self.key_file = get_key_file()
        else:
            self.config_dir = config_dir
            self.config_file = config_dir / "config.yaml"
            self.key_file = config_dir / ".keyfile"

        self.encryptor = CredentialEncryptor(self.key_file)

    def load_config(self, apply_env: bool = True) -> GlobalConfig:
        """Load and validate global configuration.

        Args:
            apply_env: Let PODCAST_INDEX_API_KEY / PODCAST_INDEX_API_SECRET
                override the stored credentials

        Returns:
            Validated GlobalConfig instance

        Raises:
            InvalidConfigError: If config is invalid
        """
        if not self.config_file.exists():
            self._create_default_config()

        data = self._read_raw()
        directory = data.get("directory") or {}
        if directory.get("api_secret"):
            directory["api_secret"] = self.encryptor.decrypt(directory["api_secret"])

        try:
            config = GlobalConfig(**data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid configuration in {self.config_file}: {e}") from e

        if apply_env:
            env_key = os.environ.get(API_KEY_ENV)
            env_secret = os.environ.get(API_SECRET_ENV)
            if env_key:
                config.directory.api_key = env_key
            if env_secret:
                config.directory.api_secret = env_secret

        return config

    def save_config(self, config: GlobalConfig) -> None:
        """Save global configuration with the directory secret encrypted.

        Args:
            config: GlobalConfig instance to save
        """
        data = config.model_dump(mode="json", exclude_none=True)

        directory = data.get("directory", {})
        if directory.get("api_secret"):
            directory["api_secret"] = self.encryptor.encrypt(directory["api_secret"])

        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def set_value(self, dotted_key: str, value: Any) -> GlobalConfig:
        """Update one setting, e.g. ``batch.batch_size``, and persist it.

        Raises:
            InvalidConfigError: If the key is unknown or the value invalid
        """
        config = self.load_config(apply_env=False)
        data = config.model_dump(mode="python")

        parts = dotted_key.split(".")
        target = data
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                raise InvalidConfigError(f"Unknown configuration key: {dotted_key}")
            target = target[part]
        if parts[-1] not in target:
            raise InvalidConfigError(f"Unknown configuration key: {dotted_key}")
        target[parts[-1]] = value

        try:
            updated = GlobalConfig(**data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid value for {dotted_key}: {e}") from e

        self.save_config(updated)
        return updated

    def catalog_path(self, config: GlobalConfig) -> Path:
        """Catalog file location, defaulting to the XDG data dir."""
        if config.catalog.path is not None:
            return config.catalog.path.expanduser()
        return get_catalog_file()

    def backup_dir(self, config: GlobalConfig, catalog_path: Path | None = None) -> Path:
        """Backup directory, defaulting to ``backups/`` beside the catalog."""
        if config.catalog.backup_dir is not None:
            return config.catalog.backup_dir.expanduser()
        if catalog_path is not None:
            return catalog_path.parent / "backups"
        if config.catalog.path is not None:
            return config.catalog.path.expanduser().parent / "backups"
        return get_backup_dir()

    def _read_raw(self) -> dict[str, Any]:
        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"Invalid YAML in {self.config_file}: {e}") from e
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Expected a mapping in {self.config_file}")
        return data

    def _create_default_config(self) -> None:
        """Create default config.yaml file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(DEFAULT_CONFIG_CONTENT)
