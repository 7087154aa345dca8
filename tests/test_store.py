import threading

import pytest

from spendwatch.store import SqlKeyValueStore, StorageError


def test_sql_store_round_trip(sql_store):
    assert sql_store.get("missing") is None
    assert sql_store.set("k", "v1") is True
    assert sql_store.get("k") == "v1"
    assert sql_store.set("k", "v2") is True
    assert sql_store.get("k") == "v2"


def test_sql_store_is_durable_across_instances(sql_store, database_url):
    sql_store.set("pending:queue", "[]")
    assert SqlKeyValueStore(database_url).get("pending:queue") == "[]"


def test_sql_store_preserves_unicode(sql_store):
    sql_store.set("note", "₹500 at Café")
    assert sql_store.get("note") == "₹500 at Café"


def test_unreachable_database_raises_on_read_and_reports_on_write(tmp_path):
    url = f"sqlite+pysqlite:///{tmp_path}/no/such/dir/x.db"
    store = SqlKeyValueStore(url)
    with pytest.raises(StorageError):
        store.get("k")
    assert store.set("k", "v") is False


def test_memory_store(memory_store):
    assert memory_store.get("k") is None
    assert memory_store.set("k", "v")
    assert memory_store.get("k") == "v"


def test_update_reads_and_replaces(sql_store):
    seen: list[str | None] = []

    def _bump(current):
        seen.append(current)
        return str(int(current or "0") + 1)

    sql_store.update("counter", _bump)
    sql_store.update("counter", _bump)
    assert seen == [None, "1"]
    assert sql_store.get("counter") == "2"


def test_update_returning_none_leaves_key_alone(sql_store):
    sql_store.set("k", "v")
    sql_store.update("k", lambda current: None)
    sql_store.update("absent", lambda current: None)
    assert sql_store.get("k") == "v"
    assert sql_store.get("absent") is None


def test_update_is_exclusive_across_store_instances(sql_store):
    n_threads, per_thread = 4, 15

    def worker() -> None:
        store = SqlKeyValueStore(sql_store.database_url)
        for _ in range(per_thread):
            store.update("counter", lambda current: str(int(current or "0") + 1))

    threads = [threading.Thread(target=worker) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    assert sql_store.get("counter") == str(n_threads * per_thread)


def test_update_on_unreachable_database_raises(tmp_path):
    store = SqlKeyValueStore(f"sqlite+pysqlite:///{tmp_path}/no/such/dir/x.db")
    with pytest.raises(StorageError):
        store.update("k", lambda current: "v")


def test_memory_store_update(memory_store):
    memory_store.update("k", lambda current: (current or "") + "a")
    memory_store.update("k", lambda current: (current or "") + "b")
    assert memory_store.get("k") == "ab"
