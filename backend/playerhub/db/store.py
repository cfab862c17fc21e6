"""Document collections backing the player database.

Every backend keeps the whole database in memory and only touches the disk
on `load()` and `persist()`. Documents are deep-copied on the way in and on
the way out, so callers never hold a reference into the live collections.
"""

from copy import deepcopy
import json
import os
from pathlib import Path
import tempfile
from threading import RLock

from playerhub.core.errors import StoreReadError, StoreWriteError

DB_VERSION = 1
COLLECTIONS = ("players", "actions", "pending_wl")


def _default_data() -> dict:
    data: dict = {"version": DB_VERSION}
    for collection in COLLECTIONS:
        data[collection] = []
    return data


def _matches(document: dict, match: dict) -> bool:
    return all(document.get(key) == value for key, value in match.items())


class DocumentStore:
    def __init__(self) -> None:
        self._data: dict = _default_data()
        self._lock = RLock()

    def _read(self) -> dict | None:
        return None

    def _write(self, data: dict) -> None:
        raise NotImplementedError

    def _collection_locked(self, collection: str) -> list[dict]:
        if collection not in COLLECTIONS:
            raise KeyError(f"unknown collection '{collection}'")
        return self._data.setdefault(collection, [])

    def load(self) -> None:
        try:
            loaded = self._read()
        except StoreReadError:
            raise
        except Exception as exc:
            raise StoreReadError(f"failed to load database: {exc}") from exc
        with self._lock:
            self._data = loaded if isinstance(loaded, dict) else _default_data()
        self.ensure_defaults()

    def ensure_defaults(self) -> None:
        with self._lock:
            self._data.setdefault("version", DB_VERSION)
            for collection in COLLECTIONS:
                if not isinstance(self._data.get(collection), list):
                    self._data[collection] = []

    def find(self, collection: str, **match) -> dict | None:
        with self._lock:
            for document in self._collection_locked(collection):
                if _matches(document, match):
                    return deepcopy(document)
        return None

    def filter(self, collection: str, **match) -> list[dict]:
        with self._lock:
            return [
                deepcopy(document)
                for document in self._collection_locked(collection)
                if _matches(document, match)
            ]

    def insert(self, collection: str, document: dict) -> None:
        with self._lock:
            self._collection_locked(collection).append(deepcopy(document))

    def update_matching(self, collection: str, match: dict, patch: dict) -> int:
        updated = 0
        with self._lock:
            for document in self._collection_locked(collection):
                if _matches(document, match):
                    document.update(deepcopy(patch))
                    updated += 1
        return updated

    def upsert(self, collection: str, match: dict, patch: dict, factory) -> dict:
        """Patches the first document matching ``match`` or inserts ``factory()``.

        Lookup and write happen under one lock hold, so concurrent callers
        with the same ``match`` end up sharing a single document. ``factory``
        runs with the lock held and may read from this store.
        """
        with self._lock:
            documents = self._collection_locked(collection)
            for document in documents:
                if _matches(document, match):
                    document.update(deepcopy(patch))
                    return deepcopy(document)
            created = dict(factory())
            created.update(deepcopy(match))
            created.update(deepcopy(patch))
            documents.append(deepcopy(created))
            return deepcopy(created)

    def clear(self, collection: str) -> None:
        with self._lock:
            self._collection_locked(collection).clear()

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection_locked(collection))

    def snapshot(self) -> dict:
        with self._lock:
            return deepcopy(self._data)

    def persist(self, snapshot: dict | None = None) -> None:
        data = snapshot if snapshot is not None else self.snapshot()
        try:
            self._write(data)
        except StoreWriteError:
            raise
        except Exception as exc:
            raise StoreWriteError(f"failed to save players database: {exc}") from exc


class MemoryStore(DocumentStore):
    """Store without durable backing, used by tests and dry runs."""

    def __init__(self) -> None:
        super().__init__()
        self.persisted: dict | None = None
        self.persist_count = 0

    def _write(self, data: dict) -> None:
        self.persisted = deepcopy(data)
        self.persist_count += 1


class JsonFileStore(DocumentStore):
    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)

    def _read(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as exc:
            raise StoreReadError(f"failed to load database file '{self.path}': {exc}") from exc

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=str(self.path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
