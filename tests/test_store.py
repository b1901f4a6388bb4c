import pytest

from database.database import init_db
from database.store import DocumentStore, StoreError


@pytest.fixture
def store(tmp_path):
    db_path = str(tmp_path / "store.db")
    init_db(db_path)
    return DocumentStore(db_path)


def test_create_assigns_id_and_reads_back(store):
    doc_id = store.create("items", {"name": "Catan", "id": "ignored"})

    document = store.read_one("items", doc_id)
    assert document == {"name": "Catan", "id": doc_id}
    assert store.read_one("items", "missing") is None


def test_read_all_filters_and_orders(store):
    store.create("items", {"kind": "a", "order": 2})
    store.create("items", {"kind": "b", "order": 1})
    store.create("items", {"kind": "a", "order": 3})
    store.create("other", {"kind": "a", "order": 0})

    documents = store.read_all("items", {"kind": "a"}, order_by="order", descending=True)

    assert [doc["order"] for doc in documents] == [3, 2]


def test_update_merges_fields(store):
    doc_id = store.create("items", {"name": "Catan", "players": 4})

    assert store.update("items", doc_id, {"players": 6})
    assert store.read_one("items", doc_id) == {"id": doc_id, "name": "Catan", "players": 6}
    assert not store.update("items", "missing", {"players": 1})


def test_set_overwrites_document(store):
    store.set("settings", "price", {"value": 100, "extra": True})
    store.set("settings", "price", {"value": 200})

    assert store.read_one("settings", "price") == {"id": "price", "value": 200}


def test_delete(store):
    doc_id = store.create("items", {"name": "Catan"})

    assert store.delete("items", doc_id)
    assert not store.delete("items", doc_id)
    assert store.read_all("items") == []


def test_subscribe_delivers_snapshot_immediately_and_after_writes(store):
    snapshots = []
    unsubscribe = store.subscribe("items", lambda docs: snapshots.append(len(docs)))

    store.create("items", {"name": "Catan"})
    store.create("other", {"name": "Ignored"})
    store.create("items", {"name": "Carcassonne"})

    assert snapshots == [0, 1, 2]

    unsubscribe()
    unsubscribe()
    store.create("items", {"name": "Azul"})
    assert snapshots == [0, 1, 2]
    assert store.active_subscriptions == 0


def test_subscribe_document_only_for_its_id(store):
    values = []
    store.subscribe_document("settings", "price", lambda doc: values.append(doc and doc["value"]))

    store.set("settings", "paymentAlias", {"value": "mi.alias"})
    store.set("settings", "price", {"value": 7000})

    assert values == [None, 7000]


def test_failing_subscriber_does_not_stop_others(store):
    received = []

    def broken(documents):
        raise RuntimeError("boom")

    store.subscribe("items", broken)
    store.subscribe("items", lambda docs: received.append(len(docs)))
    store.create("items", {"name": "Catan"})

    assert received == [0, 1]


def test_sqlite_errors_are_wrapped(tmp_path):
    # Таблица documents не создана
    store = DocumentStore(str(tmp_path / "empty.db"))

    with pytest.raises(StoreError):
        store.read_all("items")
    with pytest.raises(StoreError):
        store.create("items", {"name": "Catan"})
