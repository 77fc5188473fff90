import threading
import time
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from llmruntime.db import Database, NotFoundError, StoreError, UniqueViolationError
from llmruntime.hooks import HookStore
from llmruntime.types import RemoteHook


@pytest.fixture
def store():
    db = Database()
    yield HookStore(db)
    db.close()


def _hook(name, url="https://example.com/hook", method="POST", timeout=1000):
    return RemoteHook(
        id=str(uuid.uuid4()),
        name=name,
        endpoint_url=url,
        method=method,
        timeout_ms=timeout,
    )


def test_create_and_get(store):
    hook = _hook("test-hook", "https://example.com/hook", "POST", 5000)
    store.create_remote_hook(hook)

    got = store.get_remote_hook(hook.id)
    assert got.id == hook.id
    assert got.name == hook.name
    assert got.endpoint_url == hook.endpoint_url
    assert got.method == hook.method
    assert got.timeout_ms == hook.timeout_ms
    now = datetime.now(timezone.utc)
    assert abs(now - got.created_at) < timedelta(seconds=1)
    assert abs(now - got.updated_at) < timedelta(seconds=1)

    by_name = store.get_remote_hook_by_name(hook.name)
    assert by_name.id == hook.id


def test_create_assigns_id_when_missing(store):
    hook = RemoteHook(name="no-id", endpoint_url="https://example.com", method="GET")
    store.create_remote_hook(hook)
    assert len(hook.id) == 36
    assert store.get_remote_hook_by_name("no-id").id == hook.id


def test_update(store):
    original = _hook("original-hook", "https://original.example.com", "GET", 3000)
    store.create_remote_hook(original)
    time.sleep(0.005)

    updated = RemoteHook(
        id=original.id,
        name="updated-hook",
        endpoint_url="https://updated.example.com",
        method="POST",
        timeout_ms=10000,
        created_at=original.created_at,
        updated_at=original.updated_at,
    )
    store.update_remote_hook(updated)

    got = store.get_remote_hook(original.id)
    assert got.name == "updated-hook"
    assert got.endpoint_url == "https://updated.example.com"
    assert got.method == "POST"
    assert got.timeout_ms == 10000
    assert got.updated_at > original.updated_at


def test_delete(store):
    hook = _hook("hook-to-delete", method="DELETE", timeout=2000)
    store.create_remote_hook(hook)
    store.delete_remote_hook(hook.id)
    with pytest.raises(NotFoundError):
        store.get_remote_hook(hook.id)


def test_list_newest_first(store):
    hooks = [
        _hook("hook-1", "https://hook1.example.com", "POST", 1000),
        _hook("hook-2", "https://hook2.example.com", "PUT", 2000),
        _hook("hook-3", "https://hook3.example.com", "PATCH", 3000),
    ]
    for hook in hooks:
        store.create_remote_hook(hook)
        time.sleep(0.01)

    listed = store.list_remote_hooks(None, 100)
    assert [h.id for h in listed] == [hooks[2].id, hooks[1].id, hooks[0].id]


def test_list_pagination(store):
    created = []
    for i in range(5):
        hook = _hook(f"pagination-hook-{i}")
        store.create_remote_hook(hook)
        created.append(hook)
        time.sleep(0.002)

    page1 = store.list_remote_hooks(None, 2)
    assert len(page1) == 2
    page2 = store.list_remote_hooks(page1[-1].created_at, 2)
    assert len(page2) == 2
    page3 = store.list_remote_hooks(page2[-1].created_at, 2)
    assert len(page3) == 1
    page4 = store.list_remote_hooks(page3[0].created_at, 2)
    assert page4 == []

    received = [h.id for h in page1 + page2 + page3]
    assert received == [h.id for h in reversed(created)]


def test_unique_name_constraint(store):
    hook1 = _hook("unique-hook", "https://unique1.example.com")
    hook2 = _hook("unique-hook", "https://unique2.example.com")
    store.create_remote_hook(hook1)
    with pytest.raises(UniqueViolationError):
        store.create_remote_hook(hook2)


def test_get_by_id_not_found(store):
    with pytest.raises(NotFoundError):
        store.get_remote_hook(str(uuid.uuid4()))


def test_get_by_name_not_found(store):
    with pytest.raises(NotFoundError):
        store.get_remote_hook_by_name("non-existent-hook")


def test_update_non_existent_empty_hook(store):
    with pytest.raises(StoreError):
        store.update_remote_hook(RemoteHook(id=str(uuid.uuid4())))


def test_delete_non_existent(store):
    with pytest.raises(NotFoundError):
        store.delete_remote_hook(str(uuid.uuid4()))


def test_update_non_existent(store):
    hook = _hook("non-existent", "https://update.example.com", "PUT", 5000)
    with pytest.raises(NotFoundError):
        store.update_remote_hook(hook)


def test_list_empty(store):
    assert store.list_remote_hooks(None, 100) == []


def test_concurrent_updates(store):
    hook = _hook("concurrent-hook", "https://concurrent.example.com")
    store.create_remote_hook(hook)
    time.sleep(0.002)

    names = ["update1", "update2", "update3"]
    errors = []

    def update(name):
        try:
            h = store.get_remote_hook(hook.id)
            h.name = name
            store.update_remote_hook(h)
        except Exception as exc:  # collected and asserted below
            errors.append(exc)

    threads = [threading.Thread(target=update, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    final = store.get_remote_hook(hook.id)
    assert final.name in names
    assert final.updated_at > hook.updated_at


def test_delete_and_recreate_with_same_name(store):
    hook = _hook("cascade-test", "https://cascade.example.com", "POST", 5000)
    store.create_remote_hook(hook)
    store.delete_remote_hook(hook.id)

    new_hook = _hook("cascade-test", "https://cascade.example.com", "POST", 5000)
    store.create_remote_hook(new_hook)
    assert store.get_remote_hook_by_name("cascade-test").id == new_hook.id


def test_estimate_count(store):
    assert store.estimate_remote_hook_count() == 0
    store.create_remote_hook(_hook("a"))
    store.create_remote_hook(_hook("b"))
    assert store.estimate_remote_hook_count() == 2