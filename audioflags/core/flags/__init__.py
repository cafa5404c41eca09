"""
Line flag system for text files.
"""
from .models import Tone, Flag, FlagDocument
from .tones import TONE_CATALOG, available
from .errors import (
    FlagError,
    NoActiveFile,
    UnsavedDocument,
    DuplicateFlag,
    NotFound,
    SelectionCancelled,
    CorruptPersistedRecord,
    RenderingResourceUnavailable,
    ToneCatalogExhausted
)
from .reconciler import ReconcilePolicy, reconcile
from .persistence import FlagPersistence, JsonFlagStore
from .registry import DocumentRegistry, canonical_file_id
from .manager import FlagManager, next_flag

__all__ = [
    'Tone',
    'Flag',
    'FlagDocument',
    'TONE_CATALOG',
    'available',
    'FlagError',
    'NoActiveFile',
    'UnsavedDocument',
    'DuplicateFlag',
    'NotFound',
    'SelectionCancelled',
    'CorruptPersistedRecord',
    'RenderingResourceUnavailable',
    'ToneCatalogExhausted',
    'ReconcilePolicy',
    'reconcile',
    'FlagPersistence',
    'JsonFlagStore',
    'DocumentRegistry',
    'canonical_file_id',
    'FlagManager',
    'next_flag'
]
