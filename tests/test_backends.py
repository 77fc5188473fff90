import time
import uuid
from datetime import timedelta

import pytest

from llmruntime.backends import BackendStore
from llmruntime.db import Database, NotFoundError, UniqueViolationError
from llmruntime.types import Backend


@pytest.fixture
def store():
    with Database(":memory:") as db:
        yield BackendStore(db)


def _backend(name, base_url="http://localhost:8080", backend_type="ollama", backend_id=None):
    return Backend(
        id=backend_id or str(uuid.uuid4()), name=name, base_url=base_url, type=backend_type
    )


def _walk_pages(store, limit):
    pages, cursor = [], None
    while True:
        page = store.list_backends(cursor, limit)
        pages.append(page)
        if not page:
            return pages
        cursor = page[-1].created_at


def test_creates_and_fetches_by_id(store):
    backend = _backend("TestBackend")
    store.create_backend(backend)

    got = store.get_backend(backend.id)
    assert (got.name, got.base_url, got.type) == ("TestBackend", "http://localhost:8080", "ollama")
    assert abs(got.created_at - backend.created_at) <= timedelta(seconds=1)
    assert abs(got.updated_at - backend.updated_at) <= timedelta(seconds=1)


def test_updates_fields_correctly(store):
    backend = _backend("InitialBackend", "http://initial.url")
    store.create_backend(backend)

    backend.name, backend.base_url, backend.type = "UpdatedBackend", "http://updated.url", "OpenAI"
    time.sleep(0.002)
    store.update_backend(backend)

    got = store.get_backend(backend.id)
    assert (got.name, got.base_url, got.type) == ("UpdatedBackend", "http://updated.url", "OpenAI")
    assert got.updated_at > got.created_at


def test_deletes_successfully(store):
    backend = _backend("ToDelete", "http://delete.me")
    store.create_backend(backend)
    store.delete_backend(backend.id)
    with pytest.raises(NotFoundError):
        store.get_backend(backend.id)


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.get_backend(str(uuid.uuid4())),
        lambda s: s.get_backend_by_name("non-existent-name"),
        lambda s: s.delete_backend(str(uuid.uuid4())),
        lambda s: s.update_backend(_backend("ghost")),
    ],
    ids=["get", "get_by_name", "delete", "update"],
)
def test_missing_backend_raises_not_found(store, call):
    with pytest.raises(NotFoundError):
        call(store)


def test_list_handles_pagination(store):
    created = []
    for i in range(5):
        created.append(_backend(f"Backend{i}", f"http://example.com{i}"))
        store.create_backend(created[-1])
        time.sleep(0.002)

    pages = _walk_pages(store, 2)
    assert [len(page) for page in pages] == [2, 2, 1, 0]
    assert [b.id for page in pages for b in page] == [b.id for b in reversed(created)]


def test_list_all_backends_newest_first(store):
    first, second = _backend("first"), _backend("second")
    store.create_backend(first)
    time.sleep(0.002)
    store.create_backend(second)
    assert [b.id for b in store.list_all_backends()] == [second.id, first.id]


def test_fetches_by_name(store):
    backend = _backend("UniqueBackend", "http://unique")
    store.create_backend(backend)
    assert store.get_backend_by_name("UniqueBackend").id == backend.id


def test_duplicate_id_is_rejected(store):
    backend_id = str(uuid.uuid4())
    store.create_backend(_backend("one", backend_id=backend_id))
    with pytest.raises(UniqueViolationError):
        store.create_backend(_backend("two", backend_id=backend_id))


def test_estimate_backend_count(store):
    assert store.estimate_backend_count() == 0
    store.create_backend(_backend("a"))
    store.create_backend(_backend("b"))
    assert store.estimate_backend_count() == 2