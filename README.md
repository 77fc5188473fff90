# llmruntime

A small persistence layer for an LLM runtime, built on SQLite from the
standard library (no runtime dependencies). It keeps track of:

- **backends** – inference servers with a name, base URL and type;
- **models** – model names known to the runtime;
- **pools** – named groups of backends and models for a purpose;
- **remote hooks** – HTTP endpoints with a method and timeout;
- **jobs** – a queue of typed jobs with byte payloads;
- **key-value data** – JSON values stored under string keys.

## Installation

```
pip install .
```

## Usage

Open a `llmruntime.db.Database` (a file path, or `":memory:"`, the
default); it creates the schema on first use. Each kind of record has its
own store class taking that database:

| Module                 | Class            | Records                          |
|------------------------|------------------|----------------------------------|
| `llmruntime.backends`  | `BackendStore`   | `Backend`                        |
| `llmruntime.models`    | `ModelStore`     | `Model`                          |
| `llmruntime.pool`      | `PoolStore`      | `Pool` and its assignments       |
| `llmruntime.hooks`     | `HookStore`      | `RemoteHook`                     |
| `llmruntime.jobqueue`  | `JobQueueStore`  | `Job`                            |
| `llmruntime.kv`        | `KVStore`        | `KV` (raw JSON values)           |

The record dataclasses live in `llmruntime.types`.

```python
from llmruntime.backends import BackendStore
from llmruntime.db import Database
from llmruntime.pool import PoolStore
from llmruntime.types import Backend, Pool

with Database(":memory:") as db:
    backends = BackendStore(db)
    pools = PoolStore(db)

    backend = Backend(id="b1", name="local", base_url="http://localhost:11434", type="ollama")
    backends.create_backend(backend)

    pool = Pool(id="p1", name="default", purpose_type="inference")
    pools.create_pool(pool)
    pools.assign_backend_to_pool(pool.id, backend.id)

    print([b.name for b in pools.list_backends_for_pool(pool.id)])
```

Creating a record stamps its `created_at` (and `updated_at`, where it has
one) with the current UTC time; updates stamp `updated_at`.
`HookStore.create_remote_hook` gives a hook a random UUID when its `id`
is empty. `JobQueueStore.append_job` leaves the given job untouched,
while `append_jobs(*jobs)` inserts several in one statement and stamps
each with the same time.

### Job queue

`pop_all_jobs()`, `pop_jobs_for_type(task_type)` and
`pop_n_jobs_for_type(task_type, n)` remove and return jobs, oldest first.
`pop_job_for_type(task_type)` removes and returns the oldest job of a type.
`get_jobs_for_type(task_type)` returns jobs without removing them.

### Key-value data

`KVStore.set_kv(key, value)` inserts or replaces a value, given as JSON
text (`str` or `bytes`); invalid JSON raises `StoreError`.
`update_kv` replaces only an existing key. `get_kv(key)` returns the
decoded value; `list_kv` and `list_kv_prefix` return `KV` records holding
the raw JSON text.

### Errors

All errors derive from `llmruntime.db.StoreError`.

- `NotFoundError` – a lookup, update or delete of a record that does not
  exist, removing an assignment that does not exist, or popping a job
  of a type with none queued.
- `UniqueViolationError` – inserting a duplicate id, name, key or
  pool assignment.
- Other database failures, such as assigning a backend or model that
  does not exist to a pool, raise `StoreError` itself.

### Pagination

The `list_*` methods that take `created_at_cursor` and `limit` return
records newest first, created strictly before the cursor. Pass `None` to
start from the current time, then pass the `created_at` of the last item
on a page to get the next page. The `list_all_*` methods return
everything, newest first.

### Counts

The `estimate_*_count()` methods return the number of rows in the
matching table (an exact count in SQLite).

### Configuration

`llmruntime.config.load_config(Config, environ)` builds a `Config`
dataclass from environment variables, matching their lower-cased names
to its fields (for example `DATABASE_URL` fills `database_url`).
`environ` defaults to `os.environ`; variables without a matching field
are ignored. Any dataclass with string fields can be passed in place of
`Config`; a non-dataclass, or a matching field that is not a string,
raises `TypeError`.

### State service

`llmruntime.stateservice.StateService(state)` wraps any object whose
`get()` returns a mapping and lists its values.
`with_activity_tracker(service, tracker)` wraps a service so each `get()`
is reported to a tracker whose `start(operation, resource_type)` returns
three callables: report an error, report a change, and end the activity.

## What this package does not do

- There is no single object combining all the stores; create each store
  class over a shared `Database`.
- There is no enforcement of a maximum row count; use the
  `estimate_*_count()` methods if you need a limit.
- It provides no HTTP server, command-line tool or background worker;
  `Config` only holds settings and nothing here reads them to start a
  service. The state service does not collect backend state itself.

## Running the tests

```
pip install ".[test]"
pytest
```