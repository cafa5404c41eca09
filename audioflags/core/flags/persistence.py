"""
Handles persistence of flag documents to/from JSON files.
"""
import hashlib
import json
import logging
import os
import threading
from typing import Any, Callable, List, Optional

from PyQt5.QtCore import QThreadPool
from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from .errors import CorruptPersistedRecord
from .garbage_collector import StaleRecordCheck
from .models import FlagDocument

logger = logging.getLogger(__name__)


class ToneRecord(BaseModel):
    name: StrictStr
    instrument: StrictInt = Field(..., ge=0, le=127, description="MIDI program 0-127")
    note: StrictStr


class FlagRecord(BaseModel):
    lineNum: StrictInt = Field(..., ge=0, description="0-based line index")
    tone: ToneRecord


class FlagDocumentRecord(BaseModel):
    """Schema of one stored document, exactly as written by save()."""
    fileId: StrictStr
    lineCount: StrictInt = Field(..., ge=0)
    flags: List[FlagRecord] = Field(..., min_length=1)


class JsonFlagStore:
    """
    Key/value store backed by one JSON file per key.

    Files are named by a hash of the key so any path can be stored, and
    each holds ``{"key": ..., "value": ...}`` so keys can be listed again.
    Access is locked because garbage collection runs on worker threads.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self._lock = threading.Lock()
        os.makedirs(directory, exist_ok=True)

    def get_json_path(self, key: str) -> str:
        """
        Get the JSON file path for a given key.

        Args:
            key: Store key (a canonical file path)

        Returns:
            Path to the corresponding JSON file
        """
        key_hash = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.directory, f"{key_hash}.json")

    def get(self, key: str) -> Optional[Any]:
        """
        Read the raw value stored for a key.

        Returns:
            The stored value, or None if nothing is stored
        """
        with self._lock:
            envelope = self._read_envelope(self.get_json_path(key))
        if envelope is None or envelope.get('key') != key:
            return None
        return envelope.get('value')

    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-compatible value under a key.

        Raises:
            OSError: If the file cannot be written
        """
        file_path = self.get_json_path(key)
        tmp_path = file_path + ".tmp"
        with self._lock:
            with open(tmp_path, 'w') as f:
                json.dump({'key': key, 'value': value}, f, indent=2)
            os.replace(tmp_path, file_path)

    def delete(self, key: str) -> bool:
        """
        Delete the value stored for a key.

        Returns:
            True if a file was removed
        """
        file_path = self.get_json_path(key)
        with self._lock:
            if not os.path.exists(file_path):
                return False
            os.remove(file_path)
            return True

    def keys(self) -> List[str]:
        """List every key currently stored."""
        keys = []
        with self._lock:
            for name in sorted(os.listdir(self.directory)):
                if not name.endswith(".json"):
                    continue
                envelope = self._read_envelope(os.path.join(self.directory, name))
                if envelope is not None:
                    keys.append(envelope['key'])
        return keys

    def _read_envelope(self, file_path: str) -> Optional[dict]:
        # Caller holds the lock. Unreadable files cannot be matched back to a
        # key, so they are removed here instead of lingering forever.
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, 'r') as f:
                envelope = json.load(f)
            if not isinstance(envelope, dict) or not isinstance(envelope.get('key'), str):
                raise ValueError("missing key")
            return envelope
        except (OSError, ValueError) as e:
            logger.warning("Removing unreadable flag store file %s: %s", file_path, e)
            try:
                os.remove(file_path)
            except OSError:
                logger.exception("Failed to remove %s", file_path)
            return None


class FlagPersistence:
    """Saves, loads and garbage-collects stored flag documents."""

    def __init__(self, store: JsonFlagStore):
        self.store = store

    def save(self, document: FlagDocument) -> None:
        """
        Persist a document, or delete its record if it has no flags.

        Args:
            document: Document to save

        Raises:
            OSError: If the record cannot be written
        """
        if document.is_empty():
            if self.store.delete(document.file_id):
                logger.debug("Deleted flag record for %s", document.file_id)
            return

        self.store.set(document.file_id, document.to_dict())
        logger.debug("Saved %d flags for %s", len(document.flags), document.file_id)

    def load(self, file_id: str) -> Optional[FlagDocument]:
        """
        Load the stored document for a file.

        Invalid records are deleted and reported as absent.

        Args:
            file_id: Canonical file path

        Returns:
            The stored document, or None
        """
        raw = self.store.get(file_id)
        if raw is None:
            return None

        try:
            return self._parse(file_id, raw)
        except CorruptPersistedRecord as e:
            logger.warning("Discarding flag record for %s: %s", file_id, e.message)
            self.store.delete(file_id)
            return None

    def _parse(self, file_id: str, raw: Any) -> FlagDocument:
        try:
            record = FlagDocumentRecord.model_validate(raw)
        except ValidationError as e:
            raise CorruptPersistedRecord(f"schema validation failed ({e.error_count()} errors)") from e

        if record.fileId != file_id:
            raise CorruptPersistedRecord(f"record belongs to {record.fileId}")

        document = FlagDocument.from_dict(record.model_dump())

        lines = [flag.line_num for flag in document.flags]
        tones = [flag.tone for flag in document.flags]
        if len(set(lines)) != len(lines) or len(set(tones)) != len(tones):
            raise CorruptPersistedRecord("duplicate flag line or tone")

        return document

    def startup_garbage_collect(self, exists: Callable[[str], bool] = os.path.exists,
                                pool: Optional[QThreadPool] = None) -> int:
        """
        Drop records whose file no longer exists.

        One check is scheduled per stored key and nothing waits for them,
        so a stale record may still load until its check has run.

        Args:
            exists: Predicate telling whether a file path exists
            pool: Thread pool to run checks on (global pool by default)

        Returns:
            Number of checks scheduled
        """
        if pool is None:
            pool = QThreadPool.globalInstance()

        keys = self.store.keys()
        for key in keys:
            pool.start(StaleRecordCheck(self.store, key, exists))
        logger.debug("Scheduled %d stale record checks", len(keys))
        return len(keys)
