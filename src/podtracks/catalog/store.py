"""JSON catalog file with a backup before every rewrite."""

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from podtracks.catalog.models import CatalogSnapshot
from podtracks.utils.datetime import backup_stamp
from podtracks.utils.errors import CatalogCorruptError, CatalogError

logger = logging.getLogger(__name__)


class CatalogStore:
    """Loads and saves the whole catalog file.

    Single writer only: there is no locking. Every save copies the current
    file into the backup directory, then writes the new state to a temp
    file and renames it over the catalog, so readers never see a partial
    file.

    Example:
        >>> store = CatalogStore(Path("music-tracks.json"))
        >>> snapshot = store.load()
        >>> store.save(snapshot)
    """

    def __init__(self, path: Path, backup_dir: Path | None = None, max_backups: int = 20) -> None:
        """Initialize the store.

        Args:
            path: Catalog file location
            backup_dir: Where backups go (default: ``backups/`` beside the catalog)
            max_backups: Newest backups to keep; 0 keeps all
        """
        self.path = path
        self.backup_dir = backup_dir or path.parent / "backups"
        self.max_backups = max_backups

    def load(self) -> CatalogSnapshot:
        """Read the catalog; a missing file is an empty catalog.

        Raises:
            CatalogCorruptError: If the file is not a valid catalog
        """
        if not self.path.exists():
            logger.debug("No catalog at %s; starting empty", self.path)
            return CatalogSnapshot()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogCorruptError(f"Cannot read catalog {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogCorruptError(f"Catalog {self.path} is not a JSON object")

        try:
            snapshot = CatalogSnapshot.model_validate(data)
        except ValidationError as e:
            raise CatalogCorruptError(f"Invalid catalog {self.path}: {e}") from e

        logger.debug("Loaded %d tracks from %s", len(snapshot.music_tracks), self.path)
        return snapshot

    def save(self, snapshot: CatalogSnapshot, last_run: dict[str, Any] | None = None) -> Path | None:
        """Back up the on-disk catalog, then rewrite it with ``snapshot``.

        Args:
            snapshot: Full catalog state to persist
            last_run: Run statistics recorded in ``metadata.lastRun``

        Returns:
            Path of the backup written, or None when there was no prior file

        Raises:
            CatalogError: If the catalog cannot be written
        """
        snapshot.refresh_metadata(last_run)
        payload = snapshot.model_dump(mode="json", by_alias=True)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        backup = self._backup() if self.path.exists() else None

        temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            temp_file.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
            temp_file.replace(self.path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise CatalogError(f"Failed to write catalog {self.path}: {e}") from e

        logger.info("Saved %d tracks to %s", len(snapshot.music_tracks), self.path)
        self._prune_backups()
        return backup

    def backups(self) -> list[Path]:
        """Existing backups, oldest first."""
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob(f"{self.path.stem}.backup-*{self.path.suffix}"))

    def _backup(self) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = backup_stamp()
        target = self.backup_dir / f"{self.path.stem}.backup-{stamp}{self.path.suffix}"
        counter = 1
        while target.exists():
            target = self.backup_dir / f"{self.path.stem}.backup-{stamp}-{counter}{self.path.suffix}"
            counter += 1
        try:
            shutil.copy2(self.path, target)
        except OSError as e:
            raise CatalogError(f"Failed to back up catalog to {target}: {e}") from e
        logger.debug("Backed up catalog to %s", target)
        return target

    def _prune_backups(self) -> None:
        if self.max_backups <= 0:
            return
        backups = self.backups()
        for old in backups[: -self.max_backups]:
            try:
                old.unlink()
            except OSError as e:
                logger.warning("Could not remove old backup %s: %s", old, e)
