"""Entity store: load, save and change notification for named collections.

The store is the only component that writes collections. It keeps no
in-memory copies; every ``load`` reads the current stored value, and every
mutation is a read-modify-write of the whole collection followed by a
notification to subscribers.
"""

import json
import logging
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from jsonschema import ValidationError, validate

from .exceptions import StoreWriteError, UnknownCollectionError
from .loader import COLLECTIONS, Collection, load_schema, load_seed

_logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


def new_id(existing: Iterable[str] = ()) -> str:
    """Timestamp-derived record id, bumped until it is unused."""
    taken = set(existing)
    stamp = int(time.time() * 1000)
    while str(stamp) in taken:
        stamp += 1
    return str(stamp)


def new_task_id() -> str:
    return f"{int(time.time() * 1000)}{uuid.uuid4().hex[:9]}"


class EntityStore:
    """Persisted collections of records over a key-value storage backend."""

    def __init__(
        self,
        storage,
        collections: Optional[Dict[str, Collection]] = None,
        seed: bool = True,
    ):
        self.storage = storage
        self.collections = collections if collections is not None else COLLECTIONS
        self.seed = seed
        self._schemas = load_schema()
        self._listeners: List[Listener] = []

    def _collection(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise UnknownCollectionError(name) from None

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def load(self, name: str) -> List[Any]:
        """
        Load every record of a collection, in stored order.

        A key that was never written yields the collection's seed records
        (which are then saved). A stored value that cannot be read or parsed
        is logged and treated as an empty collection.
        """
        collection = self._collection(name)
        try:
            raw = self._read(collection)
        except (OSError, UnicodeDecodeError) as e:
            _logger.error("Could not read %s: %s", name, e)
            return []

        if raw is None:
            return self._load_seed(collection)

        try:
            data = json.loads(raw)
            schema = self._schemas.get(name)
            if schema is not None:
                validate(instance=data, schema=schema)
            records = [collection.parse(dct) for dct in data]
        except (json.JSONDecodeError, RecursionError) as e:
            _logger.error("Stored %s is not valid JSON: %s", name, e)
        except ValidationError as e:
            _logger.error("Stored %s does not match its schema: %s", name, e.message)
        except (KeyError, TypeError, ValueError) as e:
            _logger.error("Stored %s has an unreadable record: %r", name, e)
        else:
            return self._drop_duplicates(name, records)
        return []

    def _read(self, collection: Collection) -> Optional[str]:
        raw = self.storage.get(collection.name)
        if raw is not None:
            return raw
        for key in collection.legacy_keys:
            raw = self.storage.get(key)
            if raw is not None:
                _logger.info("Reading %s from legacy key %s", collection.name, key)
                return raw
        return None

    @staticmethod
    def _drop_duplicates(name: str, records: List[Any]) -> List[Any]:
        """Keep the first record for each id so the collection can be saved again."""
        seen = set()
        unique = []
        for record in records:
            if record.id in seen:
                _logger.warning("Stored %s repeats id %s; keeping the first", name, record.id)
                continue
            seen.add(record.id)
            unique.append(record)
        return unique

    def _load_seed(self, collection: Collection) -> List[Any]:
        if not self.seed:
            return []
        records = [collection.parse(dct) for dct in load_seed(collection)]
        if records:
            _logger.info("Seeding %s with %d sample records", collection.name, len(records))
            try:
                self.save(collection.name, records)
            except StoreWriteError as e:
                _logger.warning("%s", e)
        return records

    def get(self, name: str, record_id: str) -> Optional[Any]:
        """Find a record by id."""
        for record in self.load(name):
            if record.id == record_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def save(self, name: str, records: List[Any]) -> None:
        """
        Overwrite a collection with the given records and notify subscribers.

        Raises StoreWriteError if the records cannot be serialized or the
        storage write fails; the stored value is then unchanged.
        """
        collection = self._collection(name)
        ids = [r.id for r in records]
        if len(ids) != len(set(ids)):
            raise StoreWriteError(name, "duplicate record id")

        try:
            payload = json.dumps(
                [collection.dump(r) for r in records],
                ensure_ascii=False,
                allow_nan=False,
                indent=2,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise StoreWriteError(name, f"serialization failed: {e}") from e

        try:
            self.storage.set(name, payload)
        except OSError as e:
            raise StoreWriteError(name, str(e)) from e

        _logger.debug("Saved %d records to %s", len(records), name)
        self._notify(name)

    def upsert(self, name: str, record: Any) -> List[Any]:
        """Replace the record with the same id in place, or append it."""
        records = self.load(name)
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self.save(name, records)
        return records

    def remove(self, name: str, record_id: str) -> List[Any]:
        """Remove the record with the given id. Unknown ids are ignored."""
        records = [r for r in self.load(name) if r.id != record_id]
        self.save(name, records)
        return records

    # -------------------------------------------------------------------------
    # Change notification
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener(collection_name) after every successful save.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(name)
            except Exception:
                _logger.exception("Change listener failed for %s", name)
