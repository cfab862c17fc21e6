from pathlib import Path
import tempfile
import unittest

from playerhub.core.errors import StoreReadError, StoreWriteError
from playerhub.db.sql_store import SqlDocumentStore
from playerhub.db.store import DocumentStore, JsonFileStore, MemoryStore


class BrokenStore(DocumentStore):
    def _write(self, data: dict) -> None:
        raise OSError("read-only file system")


def _fill(store: DocumentStore) -> None:
    store.insert("players", {"license": "a" * 40, "name": "alpha", "play_time": 3})
    store.insert("actions", {"id": "BAAA-AAAA", "type": "ban", "identifiers": ["fivem:1"]})
    store.insert("pending_wl", {"id": "RAAAA", "license": "b" * 40, "name": "beta"})


class DocumentStoreTests(unittest.TestCase):
    def test_documents_are_copied_in_and_out(self) -> None:
        store = MemoryStore()
        document = {"license": "a" * 40, "notes": {"text": ""}}
        store.insert("players", document)
        document["notes"]["text"] = "mutated outside"

        found = store.find("players", license="a" * 40)
        assert found is not None
        self.assertEqual(found["notes"]["text"], "")
        found["notes"]["text"] = "mutated copy"
        self.assertEqual(store.filter("players")[0]["notes"]["text"], "")

    def test_update_matching_and_clear(self) -> None:
        store = MemoryStore()
        _fill(store)
        self.assertEqual(store.update_matching("players", {"license": "a" * 40}, {"name": "new"}), 1)
        self.assertEqual(store.update_matching("players", {"license": "c" * 40}, {"name": "x"}), 0)
        self.assertEqual(store.find("players", license="a" * 40)["name"], "new")  # type: ignore[index]
        store.clear("pending_wl")
        self.assertEqual(store.count("pending_wl"), 0)
        with self.assertRaises(KeyError):
            store.filter("unknown")

    def test_upsert_inserts_once_then_patches(self) -> None:
        store = MemoryStore()
        created = store.upsert("pending_wl", {"license": "b" * 40}, {"name": "first"}, lambda: {"id": "RAAAA"})
        self.assertEqual(created, {"id": "RAAAA", "license": "b" * 40, "name": "first"})

        factory_calls = []
        patched = store.upsert(
            "pending_wl",
            {"license": "b" * 40},
            {"name": "second"},
            lambda: factory_calls.append(1) or {"id": "RBBBB"},
        )
        self.assertEqual(patched["id"], "RAAAA")
        self.assertEqual(patched["name"], "second")
        self.assertEqual(factory_calls, [])
        self.assertEqual(store.count("pending_wl"), 1)

    def test_persist_failure_raises_store_write_error(self) -> None:
        with self.assertRaises(StoreWriteError):
            BrokenStore().persist()

    def test_json_store_round_trips_through_disk(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "data" / "playersDB.json"
            store = JsonFileStore(path)
            store.load()
            _fill(store)
            store.persist()
            self.assertTrue(path.exists())

            reloaded = JsonFileStore(path)
            reloaded.load()
            self.assertEqual(reloaded.count("players"), 1)
            self.assertEqual(reloaded.find("actions", id="BAAA-AAAA")["type"], "ban")  # type: ignore[index]
            self.assertEqual(reloaded.snapshot()["version"], 1)

    def test_json_store_rejects_corrupted_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "playersDB.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(StoreReadError):
                JsonFileStore(path).load()

    def test_json_store_fills_missing_collections(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "playersDB.json"
            path.write_text('{"version": 0, "players": []}', encoding="utf-8")
            store = JsonFileStore(path)
            store.load()
            self.assertEqual(store.count("actions"), 0)
            self.assertEqual(store.count("pending_wl"), 0)
            self.assertEqual(store.snapshot()["version"], 0)

    def test_sql_store_round_trips_through_database(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            url = f"sqlite:///{Path(tmp_dir) / 'players.db'}"
            store = SqlDocumentStore(url)
            store.load()
            self.assertEqual(store.count("players"), 0)
            _fill(store)
            store.persist()
            store.update_matching("players", {"license": "a" * 40}, {"play_time": 4})
            store.persist()
            store.engine.dispose()

            reloaded = SqlDocumentStore(url)
            reloaded.load()
            self.assertEqual(reloaded.count("players"), 1)
            self.assertEqual(reloaded.find("players", license="a" * 40)["play_time"], 4)  # type: ignore[index]
            self.assertEqual(reloaded.count("pending_wl"), 1)
            reloaded.engine.dispose()


if __name__ == "__main__":
    unittest.main()
