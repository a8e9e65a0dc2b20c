# zlutil

A set of small, independent utilities for server-side Python code.

## Modules

### `zlutil.linked_list`

`List` is a `list` with two extra methods:

- `splice(other)` moves every item of `other` onto the end of the list and leaves `other` empty.
- `for_each(func)` calls `func` on each item from front to back.

### `zlutil.resource_pool`

`ResourcePool(factory, *args, **kwargs)` keeps idle objects for reuse. The pool builds new objects by calling `factory(*args, **kwargs)`.

- `obtain(on_recycle)` lends an object wrapped in a `PooledObject`.
  - Used as a context manager, the `PooledObject` yields the object itself. It releases the object when the `with` block exits.
  - You can also call `release()` directly. Releasing calls `on_recycle` with the object, if one was given, and then hands the object back to the pool.
  - The borrowed object is also available as `.value`.
  - `quit()` stops the object from going back to the pool. `quit(False)` undoes that.
- `obtain2()` is the same without a recycle hook. On these objects `quit()` has no effect.
- `set_size(size)` caps how many idle objects are kept. The default is 8.

If the pool no longer exists when an object is released, the object is simply dropped.

### `zlutil.speed`

`BytesSpeed(clock=None)` measures throughput in bytes per second.

- Feed it with `meter += n` or `meter.add(n)`. The rate is recomputed automatically once more than 1 MiB is pending.
- `get_speed()` returns the rate. If called within one second of the last computation, it returns the previous value.
- `clock` is a function returning seconds. It defaults to `time.monotonic`.

### `zlutil.local_time`

Converts epoch seconds into local broken-down time without locking, using a cached timezone offset and daylight-saving flag.

- `local_time_init()` reads the system timezone and daylight-saving state.
- `get_current_timezone()` returns the cached offset as seconds west of UTC.
- `get_daylight_active()` returns the cached daylight-saving flag, 1 or 0.
- `no_locks_localtime(t)` returns a `BrokenDownTime` dataclass. Its fields are named like C's `struct tm`: `tm_year` counts years since 1900, `tm_mon` is 0-based and `tm_wday` counts from Sunday.
  - It is only valid for times from 1970 on.
- `is_leap_year(year)` is the Gregorian leap-year test.

### `zlutil.ring_buffer`

`RingStorage(max_size, max_gop_size)` caches groups of items. Each group starts with a key item.

- `max_size` is never less than 32.
- When the cache overflows, older groups are dropped first. If that is not enough, the whole cache is dropped.
- `write`, `clone`, `get_cache` and `clear_cache` are available.

`RingBuffer(max_size=1024, on_reader_changed=None, max_gop_size=1)` writes into such a cache and delivers each item to attached readers.

- **Readers.** `attach(poller, use_cache=True)` returns a `RingReader`.
  - A poller is any object with `submit(fn)` that runs `fn` on its own thread, for example `ThreadPoolExecutor(max_workers=1)`.
  - If the poller also has `is_current_thread()`, `attach` raises `RuntimeError` unless it is called on that thread.
- **Reader callbacks.** A reader is configured with `set_read_cb`, `set_detach_cb`, `set_get_info_cb` and `set_message_cb`.
  - Setting a read callback first replays the cached items to it.
  - Call `close()` on the reader, or use it as a context manager, to detach it.
- **Buffer methods.**
  - `write(item, is_key=True)` caches an item and delivers it to readers.
  - `send_message(data)` passes `data` to every reader's message callback.
  - `clear_cache()` empties the cache.
  - `reader_count()` returns the number of attached readers.
  - `get_info_list(cb, on_change=None)` collects each reader's info and passes the list to `cb`.
- **Delegate.** `set_delegate(delegate)` routes all later writes to a `RingDelegate` subclass's `on_write` instead of to the readers.
- **Reader count changes.** `on_reader_changed` is called with the total reader count: once at construction with 0, and again each time a reader is attached or removed.

### `zlutil.sql_connection`

`SqlConnection(url, port, dbname, username, password, character="utf8mb4")` is a MySQL connection built on PyMySQL.

- The connect timeout is 3 seconds and autocommit is on.
- Queries take a printf-style format and its arguments:
  - `query(fmt, *args)` returns `(affected_rows, insert_id)`.
  - `query_rows(fmt, *args)` returns `(rows, affected_rows, insert_id)` with each row as a list of strings.
  - `query_dicts(fmt, *args)` returns the same with each row as a dict keyed by column name.
  - In both `query_rows` and `query_dicts`, NULL values come back as `""`.
- Arguments are substituted by plain `%` formatting, not bound as parameters. Pass untrusted values through `escape(text)` first.
- `query_string(fmt, *args)` shows the SQL that would be run.
- Errors are raised as `SqlException`. Its `sql` attribute holds the failing statement. Each query pings the server first and reconnects if needed.
- The connection closes with `close()` or at the end of a `with` block.

## What it does not do

The package ships no event loop or poller. `RingBuffer` works with any executor-like object you supply. There are no command-line tools and no network servers.

## Install

```
pip install zlutil
```

To run the tests:

```
pip install "zlutil[test]"
pytest
```

## Example

```python
from zlutil.resource_pool import ResourcePool
from zlutil.speed import BytesSpeed

pool = ResourcePool(bytearray, 4096)
with pool.obtain(None) as buf:
    buf[:5] = b"hello"  # buf is a bytearray(4096); it returns to the pool afterwards

meter = BytesSpeed()
meter += 1500
print(meter.get_speed())
```

```python
from concurrent.futures import ThreadPoolExecutor
from zlutil.ring_buffer import RingBuffer

poller = ThreadPoolExecutor(max_workers=1)
ring = RingBuffer(30)
reader = poller.submit(ring.attach, poller).result()
reader.set_read_cb(print)
ring.write("1", True)
```

```python
from zlutil.sql_connection import SqlConnection

password = "password"
with SqlConnection("localhost", 3306, "test", "user", password) as conn:
    rows, affected, insert_id = conn.query_dicts("SELECT * FROM t WHERE id = %d", 1)
```