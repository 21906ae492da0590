"""
In-memory record store mirrored to a single JSON file.

Mutations are synchronous and run on the event loop thread. Each one bumps a
generation counter and rearms the debounce timer; when the timer expires the
current records are serialized on the loop and written by a worker thread.
A termination trigger reaches ``emergency_flush`` through the shutdown
registry and writes synchronously, once.

Dirty means "generation not yet confirmed on disk": a write only clears what
it actually captured, and a failed write leaves the store dirty and retries
after another quiet window.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Generic

from streamlist.core.lifecycle import ShutdownRegistry, shutdown_registry
from streamlist.domain.records import RecordT, is_valid_id, record_id
from streamlist.repositories import json_file
from streamlist.repositories.scheduler import DebounceScheduler

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_DELAY = 1.0


class DataStoreError(Exception):
    """Base error for store operations; carries an API-friendly code/status."""

    code = "store_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateKeyError(DataStoreError):
    code = "duplicate_key"
    status_code = 409


class RecordNotFoundError(DataStoreError):
    code = "not_found"
    status_code = 404


class InvalidRecordError(DataStoreError):
    code = "invalid_record"
    status_code = 400


class ImmutableKeyError(DataStoreError):
    """Raised when an update would change a record's id."""

    code = "immutable_key"
    status_code = 400


class CorruptStoreError(DataStoreError):
    code = "corrupt_store"


class PersistenceWriteError(DataStoreError):
    code = "write_failed"


class PersistenceState(Enum):
    CLEAN = "clean"
    DIRTY_PENDING = "dirty-pending"
    FLUSHING = "flushing"
    EMERGENCY_DONE = "emergency-done"


Predicate = Callable[[Any], bool]


class DataStore(Generic[RecordT]):
    """Uniquely-keyed records, kept in insertion order and autosaved."""

    def __init__(
        self,
        name: str,
        *,
        directory: str | None = None,
        flush_delay: float = DEFAULT_FLUSH_DELAY,
        indent: int | None = None,
        registry: ShutdownRegistry | None = None,
    ) -> None:
        self.name = name
        self.path = json_file.store_path(name, directory)
        self.indent = indent

        # Insertion-ordered: the dict is the sequence, its keys the id set.
        self._records: dict[int, RecordT] = {}
        self._generation = 0
        self._persisted_generation = 0

        self._persisting = False
        self._emergency_fired = False
        self._write_lock = threading.RLock()

        self.last_write_error: str | None = None
        self.consecutive_write_failures = 0

        self._scheduler = DebounceScheduler(self.flush, flush_delay)
        self._load()

        if registry is None:
            registry = shutdown_registry
            registry.install()
        self._registry = registry
        registry.register(self.emergency_flush)

    # -------------------------- state --------------------------
    @property
    def dirty(self) -> bool:
        return self._generation != self._persisted_generation

    @property
    def persisting(self) -> bool:
        return self._persisting

    @property
    def emergency_fired(self) -> bool:
        return self._emergency_fired

    @property
    def flush_pending(self) -> bool:
        return self._scheduler.pending

    @property
    def flush_delay(self) -> float:
        return self._scheduler.delay

    @property
    def state(self) -> PersistenceState:
        if self._emergency_fired:
            return PersistenceState.EMERGENCY_DONE
        if self._persisting:
            return PersistenceState.FLUSHING
        if self.dirty:
            return PersistenceState.DIRTY_PENDING
        return PersistenceState.CLEAN

    @property
    def identifiers(self) -> frozenset[int]:
        return frozenset(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return is_valid_id(key) and key in self._records

    # -------------------------- reads --------------------------
    def read_all(self) -> list[RecordT]:
        return [dict(record) for record in self._records.values()]  # type: ignore[misc]

    def read_where(self, predicate: Predicate) -> list[RecordT]:
        return [dict(record) for record in self._records.values() if predicate(record)]  # type: ignore[misc]

    def get(self, key: int) -> RecordT:
        record = self._lookup(key)
        if record is None:
            raise RecordNotFoundError(f"Key {key} not found")
        return dict(record)  # type: ignore[return-value]

    def _lookup(self, key: Any) -> RecordT | None:
        # 1.0 and True hash like 1; only real int ids address records.
        return self._records.get(key) if is_valid_id(key) else None

    def next_id(self) -> int:
        return max(self._records, default=0) + 1

    # -------------------------- mutations --------------------------
    def create(self, record: RecordT) -> RecordT:
        key = record_id(record)
        if key is None:
            raise InvalidRecordError("Record needs an integer 'id'")
        if key in self._records:
            raise DuplicateKeyError(f"Key {key} already in use")
        self._records[key] = dict(record)  # type: ignore[assignment]
        self._mark_dirty()
        return dict(record)  # type: ignore[return-value]

    def update(self, key: int, fields: Mapping[str, Any]) -> RecordT:
        current = self._lookup(key)
        if current is None:
            raise RecordNotFoundError(f"Key {key} not found")
        self._check_key_unchanged(fields, (key,))
        merged = {**current, **fields}
        self._records[key] = merged  # type: ignore[assignment]
        self._mark_dirty()
        return dict(merged)  # type: ignore[return-value]

    def update_where(self, predicate: Predicate, fields: Mapping[str, Any]) -> int:
        matches = [key for key, record in self._records.items() if predicate(record)]
        self._check_key_unchanged(fields, matches)
        for key in matches:
            self._records[key] = {**self._records[key], **fields}  # type: ignore[assignment]
        self._mark_dirty()
        return len(matches)

    def delete(self, key: int) -> bool:
        if not is_valid_id(key):
            return False
        removed = self._records.pop(key, None) is not None
        self._mark_dirty()
        return removed

    def delete_where(self, predicate: Predicate) -> int:
        kept = {key: record for key, record in self._records.items() if not predicate(record)}
        removed = len(self._records) - len(kept)
        self._records = kept
        self._mark_dirty()
        return removed

    def _check_key_unchanged(self, fields: Mapping[str, Any], keys) -> None:
        if "id" not in fields:
            return
        new_key = fields["id"]
        if not is_valid_id(new_key) or any(new_key != key for key in keys):
            raise ImmutableKeyError("The 'id' field cannot be changed")

    def _mark_dirty(self) -> None:
        self._generation += 1
        self._scheduler.arm()

    # -------------------------- persistence --------------------------
    def _load(self) -> None:
        try:
            document, size = json_file.load(self.path)
        except ValueError as exc:
            raise CorruptStoreError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(document, list):
            raise CorruptStoreError(f"{self.path} must hold a JSON array")
        records: dict[int, RecordT] = {}
        for index, item in enumerate(document):
            key = record_id(item)
            if key is None:
                raise CorruptStoreError(f"{self.path}: entry {index} has no integer 'id'")
            if key in records:
                raise CorruptStoreError(f"{self.path}: duplicate id {key}")
            records[key] = item
        self._records = records
        logger.info("Read %d bytes from %s", size, self.path)

    def _snapshot(self) -> tuple[int, str]:
        return self._generation, json_file.dumps(list(self._records.values()), self.indent)

    def _write(self, generation: int, payload: str) -> bool:
        with self._write_lock:
            # An older snapshot never overwrites a newer one already on disk.
            if generation < self._persisted_generation:
                return False
            json_file.save(self.path, payload)
            self._persisted_generation = generation
            return True

    async def flush(self) -> None:
        """Write the current records in a worker thread; one write at a time."""
        if self._emergency_fired:
            return
        if self._persisting:
            self._scheduler.arm()
            return
        if not self.dirty:
            return

        self._persisting = True
        logger.debug("Persisting %s to %s", self.name, self.path)
        try:
            generation, payload = self._snapshot()
            await asyncio.to_thread(self._write, generation, payload)
        except (OSError, TypeError, ValueError) as exc:
            # TypeError/ValueError: a record holds a value JSON cannot encode.
            self.consecutive_write_failures += 1
            self.last_write_error = f"{type(exc).__name__}: {exc}"
            logger.error(
                "Failed to persist %s to %s (attempt %d), retrying in %.3fs: %s",
                self.name,
                self.path,
                self.consecutive_write_failures,
                self._scheduler.delay,
                exc,
            )
            self._scheduler.arm()
        else:
            self.consecutive_write_failures = 0
            self.last_write_error = None
        finally:
            self._persisting = False

    def flush_sync(self) -> bool:
        """Blocking whole-file write; returns False when nothing was dirty."""
        self._scheduler.cancel()
        if not self.dirty:
            return False
        logger.info("Persisting %s synchronously to %s", self.name, self.path)
        try:
            generation, payload = self._snapshot()
            self._write(generation, payload)
        except (OSError, TypeError, ValueError) as exc:
            self.last_write_error = f"{type(exc).__name__}: {exc}"
            raise PersistenceWriteError(f"Could not write {self.path}: {exc}") from exc
        self.last_write_error = None
        self.consecutive_write_failures = 0
        return True

    def emergency_flush(self, reason: str = "exit") -> bool:
        """One-shot synchronous flush for termination triggers."""
        if self._emergency_fired or not self.dirty:
            return False
        self._emergency_fired = True
        self._scheduler.enabled = False
        logger.warning("Received %s, emergency persisting %s to %s", reason, self.name, self.path)
        return self.flush_sync()

    async def wait_idle(self) -> None:
        """Wait for timer-started flushes that are currently running."""
        await self._scheduler.wait_idle()
