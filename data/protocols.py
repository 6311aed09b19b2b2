"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for draft storage,
making the session state machine testable without touching the filesystem.

Protocols defined:
- DraftStorage: Interface for saving, listing and deleting drafts
"""

from typing import List, Protocol

from data.models import Draft


class DraftStorage(Protocol):
    """Protocol defining the interface for draft storage operations.

    Implementations should provide methods for:
    - Persisting a draft (create or overwrite by id)
    - Listing all drafts, most recently updated first
    - Deleting a draft by id
    """

    def save(self, draft: Draft) -> None:
        """Persist a draft, replacing any stored draft with the same id.

        Raises:
            DraftStorageError: If the draft cannot be written.
        """
        ...

    def load_all(self) -> List[Draft]:
        """Return every stored draft sorted by ``updated_at`` descending.

        Raises:
            DraftStorageError: If the storage location cannot be read.
        """
        ...

    def delete(self, draft_id: str) -> None:
        """Remove a draft. Deleting an unknown id is not an error.

        Raises:
            DraftStorageError: If an existing draft cannot be removed.
        """
        ...
