"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from podtracks.utils.retry import BackoffPolicy, RetryPolicy

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

DEFAULT_DIRECTORY_URL = "https://api.podcastindex.org/api/1.0"
DEFAULT_USER_AGENT = "podtracks/0.3"


class DirectoryConfig(BaseModel):
    """Podcast directory API access."""

    api_key: str | None = None  # If None, will use environment variable
    api_secret: str | None = None  # Encrypted when stored
    base_url: str = DEFAULT_DIRECTORY_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = Field(default=10.0, gt=0)

    episode_scan_limit: int = Field(default=1000, ge=1, le=1000)


class FetchConfig(BaseModel):
    """Direct feed/playlist fetching."""

    timeout_seconds: float = Field(default=15.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT


class BatchConfig(BaseModel):
    """Batch pacing for directory rate limits."""

    batch_size: int = Field(default=5, ge=1, le=50)
    request_delay_seconds: float = Field(default=0.5, ge=0)
    batch_delay_seconds: float = Field(default=2.0, ge=0)
    max_consecutive_rate_limits: int = Field(default=3, ge=1)


class CatalogConfig(BaseModel):
    """Catalog file location and backup retention."""

    path: Path | None = None  # None -> data dir
    backup_dir: Path | None = None  # None -> <catalog dir>/backups
    max_backups: int = Field(default=20, ge=1)


class GlobalConfig(BaseModel):
    """Global Podtracks configuration."""

    version: str = "1"
    log_level: LogLevel = "INFO"

    directory: DirectoryConfig = Field(default_factory=DirectoryConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    rate_limit_backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
