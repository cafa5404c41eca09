"""
In-memory map of the flag documents for currently open files.
"""
import os
from typing import Dict, List, Optional

from .models import FlagDocument


def canonical_file_id(path: str) -> str:
    """
    Normalize a file path into the identity used for registry and storage keys.

    Args:
        path: File path as reported by the editor

    Returns:
        Absolute, case-normalized path
    """
    return os.path.normcase(os.path.abspath(path))


class DocumentRegistry:
    """Owns the live flag documents, keyed by canonical file path."""

    def __init__(self):
        self._documents: Dict[str, FlagDocument] = {}

    def get(self, file_id: str) -> Optional[FlagDocument]:
        return self._documents.get(file_id)

    def get_or_create(self, file_id: str, line_count: int) -> FlagDocument:
        """
        Get a document, creating an empty one if the file is not tracked.

        The new document is not persisted; it only becomes durable once a
        flag is added and saved.

        Args:
            file_id: Canonical file path
            line_count: Current line count of the file

        Returns:
            The tracked document
        """
        document = self._documents.get(file_id)
        if document is None:
            document = FlagDocument(file_id=file_id, line_count=line_count)
            self._documents[file_id] = document
        return document

    def put(self, document: FlagDocument) -> None:
        """Track a document, replacing any previous entry for its file."""
        self._documents[document.file_id] = document

    def remove(self, file_id: str) -> None:
        self._documents.pop(file_id, None)

    def evict_if_empty(self, file_id: str) -> bool:
        """
        Remove a document that no longer holds any flags.

        Returns:
            True if the document was evicted
        """
        document = self._documents.get(file_id)
        if document is not None and document.is_empty():
            del self._documents[file_id]
            return True
        return False

    def file_ids(self) -> List[str]:
        return list(self._documents)

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)
