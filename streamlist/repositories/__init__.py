"""
Persistence adapters.

``DataStore`` keeps records in memory and mirrors them to one JSON file per
store (``json_file``), debounced by ``scheduler``. Services depend on the
store's repository API rather than touching files or timers.
"""

from .datastore import (
    DataStore,
    DataStoreError,
    CorruptStoreError,
    DuplicateKeyError,
    ImmutableKeyError,
    InvalidRecordError,
    PersistenceState,
    PersistenceWriteError,
    RecordNotFoundError,
)

__all__ = [
    "DataStore",
    "DataStoreError",
    "CorruptStoreError",
    "DuplicateKeyError",
    "ImmutableKeyError",
    "InvalidRecordError",
    "PersistenceState",
    "PersistenceWriteError",
    "RecordNotFoundError",
]
