"""
Draft Storage Module for xpost

Drafts are stored one JSON file per draft (``<id>.json``) inside the drafts
directory. The directory is created on first use.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from config import settings
from data.models import Draft
from utils.exceptions import DraftStorageError
from utils.logger import get_logger

logger = get_logger(__name__)


class DraftStore:
    """JSON-file backed implementation of the DraftStorage protocol."""

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else Path(settings.DRAFTS_DIR)

    def _ensure_dir(self) -> Path:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DraftStorageError(f"Failed to create drafts directory {self.directory}: {e}") from e
        return self.directory

    def _path_for(self, draft_id: str) -> Path:
        if not draft_id or "/" in draft_id or "\\" in draft_id or draft_id.startswith("."):
            raise DraftStorageError(f"Invalid draft id: {draft_id!r}")
        return self.directory / f"{draft_id}.json"

    def save(self, draft: Draft) -> None:
        """
        Write a draft to disk, replacing the file for the same id.

        Args:
            draft: The draft to persist.

        Raises:
            DraftStorageError: If the file cannot be written.
        """
        self._ensure_dir()
        path = self._path_for(draft.id)
        try:
            path.write_text(json.dumps(draft.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise DraftStorageError(f"Failed to write draft file {path}: {e}") from e
        logger.info(f"Saved draft {draft.id} ({len(draft.content)} chars)")

    def load_all(self) -> List[Draft]:
        """
        Load every readable draft, most recently updated first.

        Files that cannot be read or parsed are skipped with a warning.

        Returns:
            List[Draft]: Drafts sorted by updated_at descending.

        Raises:
            DraftStorageError: If the drafts directory cannot be listed.
        """
        directory = self._ensure_dir()
        try:
            paths = sorted(directory.glob("*.json"))
        except OSError as e:
            raise DraftStorageError(f"Failed to read drafts directory {directory}: {e}") from e

        drafts = []
        for path in paths:
            try:
                drafts.append(Draft.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable draft file {path.name}: {e}")

        drafts.sort(key=lambda d: d.updated_at, reverse=True)
        logger.debug(f"Loaded {len(drafts)} drafts from {directory}")
        return drafts

    def delete(self, draft_id: str) -> None:
        """
        Delete a draft file if it exists.

        Args:
            draft_id: The id of the draft to remove.

        Raises:
            DraftStorageError: If the file exists but cannot be removed.
        """
        path = self._path_for(draft_id)
        if not path.exists():
            logger.warning(f"Draft {draft_id} not found, nothing to delete")
            return
        try:
            path.unlink()
        except OSError as e:
            raise DraftStorageError(f"Failed to delete draft file {path}: {e}") from e
        logger.info(f"Deleted draft {draft_id}")
