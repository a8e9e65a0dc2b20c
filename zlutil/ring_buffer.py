"""A GOP-aware ring buffer that fans written items out to readers on their pollers.

A *poller* is any object with a ``submit(fn)`` method that runs ``fn`` on the
poller's thread, such as ``concurrent.futures.ThreadPoolExecutor(max_workers=1)``.
If it also has ``is_current_thread()``, readers may only be attached from that
thread.
"""

from __future__ import annotations

import functools
import itertools
import threading
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

from zlutil.linked_list import List

T = TypeVar("T")

RING_MIN_SIZE = 32


class RingDelegate(ABC, Generic[T]):
    """Receives every write made to a :class:`RingBuffer` it is set on, instead of the readers."""

    @abstractmethod
    def on_write(self, item: T, is_key: bool = True) -> None:
        """Handle one written item."""


class RingStorage(Generic[T]):
    """Caches recent groups of items, each group starting at a key item."""

    def __init__(self, max_size: int = 1024, max_gop_size: int = 1) -> None:
        self._max_size = max(max_size, RING_MIN_SIZE)
        self._max_gop_size = max_gop_size
        self._started = False
        self._have_idr = False
        self._size = 0
        self._cache: List[List[tuple[bool, T]]] = List()
        self.clear_cache()

    def __len__(self) -> int:
        return self._size

    def write(self, item: T, is_key: bool = True) -> None:
        """Store ``item``; a key item opens a new group and may evict the oldest one."""
        if is_key:
            self._have_idr = True
            self._started = True
            if self._cache[-1]:
                self._cache.append(List())
            if len(self._cache) > self._max_gop_size:
                self._pop_front_gop()

        if not self._have_idr and self._started:
            # Without a key item the cached group is useless.
            return
        self._cache[-1].append((is_key, item))
        self._size += 1
        if self._size > self._max_size:
            while len(self._cache) > 1:
                self._pop_front_gop()
            if self._size > self._max_size:
                self.clear_cache()

    def clone(self) -> "RingStorage[T]":
        """Return a copy whose cache can change independently of this one."""
        other: RingStorage[T] = RingStorage.__new__(RingStorage)
        other._max_size = self._max_size
        other._max_gop_size = self._max_gop_size
        other._started = self._started
        other._have_idr = self._have_idr
        other._size = self._size
        other._cache = List(List(gop) for gop in self._cache)
        return other

    def get_cache(self) -> List[List[tuple[bool, T]]]:
        """Return the cached groups as lists of ``(is_key, item)`` pairs."""
        return self._cache

    def clear_cache(self) -> None:
        """Drop every cached item."""
        self._size = 0
        self._have_idr = False
        self._cache.clear()
        self._cache.append(List())

    def _pop_front_gop(self) -> None:
        if self._cache:
            self._size -= len(self._cache[0])
            self._cache.pop(0)
            if not self._cache:
                self._cache.append(List())


class RingReader(Generic[T]):
    """Receives items written to a ring buffer; its callbacks run on its poller."""

    def __init__(
        self,
        storage: Optional[RingStorage[T]] = None,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._storage = storage
        self._on_close = on_close
        self._closed = False
        self._read_cb: Optional[Callable[[T], Any]] = None
        self._detach_cb: Optional[Callable[[], Any]] = None
        self._info_cb: Optional[Callable[[], Any]] = None
        self._msg_cb: Optional[Callable[[Any], Any]] = None

    def set_read_cb(self, cb: Optional[Callable[[T], Any]]) -> None:
        """Set the item callback; the cached items are replayed to it at once."""
        self._read_cb = cb
        if cb is not None:
            self._flush_gop()

    def set_detach_cb(self, cb: Optional[Callable[[], Any]]) -> None:
        """Set the callback run when the ring buffer goes away."""
        self._detach_cb = cb

    def set_get_info_cb(self, cb: Optional[Callable[[], Any]]) -> None:
        """Set the callback that supplies this reader's info; ``None`` means no info."""
        self._info_cb = cb

    def set_message_cb(self, cb: Optional[Callable[[Any], Any]]) -> None:
        """Set the callback for messages sent with :meth:`RingBuffer.send_message`."""
        self._msg_cb = cb

    def close(self) -> None:
        """Detach from the ring buffer; calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        on_close, self._on_close = self._on_close, None
        if on_close is not None:
            on_close()

    def __enter__(self) -> "RingReader[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _on_read(self, item: T, is_key: bool) -> None:
        if self._read_cb is not None:
            self._read_cb(item)

    def _on_message(self, data: Any) -> None:
        if self._msg_cb is not None:
            self._msg_cb(data)

    def _on_detach(self) -> None:
        if self._detach_cb is not None:
            self._detach_cb()

    def _get_info(self) -> Any:
        if self._info_cb is None:
            return None
        return self._info_cb()

    def _flush_gop(self) -> None:
        if self._storage is None:
            return
        for gop in self._storage.get_cache():
            for is_key, item in gop:
                self._on_read(item, is_key)


class _RingReaderDispatcher(Generic[T]):
    """The readers of one ring buffer that live on one poller."""

    def __init__(self, storage: RingStorage[T], on_size_changed: Callable[[int, bool], None]) -> None:
        self._storage = storage
        self._on_size_changed = on_size_changed
        self._readers: dict[int, weakref.ref] = {}
        self._reader_size = 0
        self._ids = itertools.count()

    def _live_readers(self):
        for key, ref in list(self._readers.items()):
            if key not in self._readers:
                continue
            reader = ref()
            if reader is None:
                self._drop(key)
                continue
            yield reader

    def write(self, item: T, is_key: bool = True) -> None:
        for reader in self._live_readers():
            reader._on_read(item, is_key)
        self._storage.write(item, is_key)

    def send_message(self, data: Any) -> None:
        for reader in self._live_readers():
            reader._on_message(data)

    def attach(self, poller: Any, use_cache: bool) -> RingReader[T]:
        is_current = getattr(poller, "is_current_thread", None)
        if is_current is not None and not is_current():
            raise RuntimeError("You can attach RingBuffer only in it's poller thread")

        key = next(self._ids)
        weak_self = weakref.ref(self)

        def release(_ref: Any = None) -> None:
            def task() -> None:
                dispatcher = weak_self()
                if dispatcher is not None:
                    dispatcher._drop(key)

            poller.submit(task)

        reader: RingReader[T] = RingReader(self._storage if use_cache else None, on_close=release)
        self._readers[key] = weakref.ref(reader, release)
        self._reader_size += 1
        self._on_size_changed(self._reader_size, True)
        return reader

    def _drop(self, key: int) -> None:
        if self._readers.pop(key, None) is not None:
            self._reader_size -= 1
            self._on_size_changed(self._reader_size, False)

    def clear_cache(self) -> None:
        if self._reader_size == 0:
            self._storage.clear_cache()

    def get_info_list(self, on_change: Callable[[Any], Any]) -> list:
        infos = []
        for ref in list(self._readers.values()):
            reader = ref()
            if reader is None:
                continue
            info = reader._get_info()
            if info is None:
                continue
            infos.append(on_change(info))
        return infos

    def detach_all(self) -> None:
        readers, self._readers = self._readers, {}
        for ref in readers.values():
            reader = ref()
            if reader is not None:
                reader._on_detach()


def _detach_dispatchers(dispatchers: dict) -> None:
    for poller, dispatcher in list(dispatchers.items()):
        poller.submit(dispatcher.detach_all)
    dispatchers.clear()


class RingBuffer(Generic[T]):
    """Caches written items and delivers them to readers attached on pollers."""

    def __init__(
        self,
        max_size: int = 1024,
        on_reader_changed: Optional[Callable[[int], Any]] = None,
        max_gop_size: int = 1,
    ) -> None:
        self._storage: RingStorage[T] = RingStorage(max_size, max_gop_size)
        self._on_reader_changed = on_reader_changed
        self._delegate: Optional[RingDelegate[T]] = None
        self._lock = threading.RLock()
        self._count_lock = threading.Lock()
        self._total_count = 0
        self._dispatchers: dict[Any, _RingReaderDispatcher[T]] = {}
        self._finalizer = weakref.finalize(self, _detach_dispatchers, self._dispatchers)
        self._notify_reader_changed(0)

    def _notify_reader_changed(self, count: int) -> None:
        if self._on_reader_changed is not None:
            self._on_reader_changed(count)

    def write(self, item: T, is_key: bool = True) -> None:
        """Write ``item`` to the cache and to every reader, or to the delegate if one is set."""
        if self._delegate is not None:
            self._delegate.on_write(item, is_key)
            return
        with self._lock:
            for poller, dispatcher in list(self._dispatchers.items()):
                poller.submit(functools.partial(dispatcher.write, item, is_key))
            self._storage.write(item, is_key)

    def send_message(self, data: Any) -> None:
        """Pass ``data`` to the message callback of every reader."""
        with self._lock:
            for poller, dispatcher in list(self._dispatchers.items()):
                poller.submit(functools.partial(dispatcher.send_message, data))

    def set_delegate(self, delegate: Optional[RingDelegate[T]]) -> None:
        """Route all later writes to ``delegate``; ``None`` restores normal delivery."""
        self._delegate = delegate

    def attach(self, poller: Any, use_cache: bool = True) -> RingReader[T]:
        """Create a reader on ``poller``; with ``use_cache`` it first replays the cache."""
        with self._lock:
            dispatcher = self._dispatchers.get(poller)
            if dispatcher is None:
                weak_self = weakref.ref(self)

                def on_size_changed(size: int, add_flag: bool) -> None:
                    strong_self = weak_self()
                    if strong_self is not None:
                        strong_self._on_size_changed(poller, size, add_flag)

                dispatcher = _RingReaderDispatcher(self._storage.clone(), on_size_changed)
                self._dispatchers[poller] = dispatcher
        return dispatcher.attach(poller, use_cache)

    def reader_count(self) -> int:
        """Return how many readers are attached across all pollers."""
        return self._total_count

    def clear_cache(self) -> None:
        """Empty the cache, and that of every poller that has no readers left."""
        with self._lock:
            self._storage.clear_cache()
            for poller, dispatcher in list(self._dispatchers.items()):
                poller.submit(dispatcher.clear_cache)

    def get_info_list(
        self,
        cb: Optional[Callable[[list], Any]],
        on_change: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        """Collect every reader's info, mapped through ``on_change``, and pass the list to ``cb``."""
        if cb is None:
            return
        if on_change is None:
            on_change = lambda info: info  # noqa: E731

        with self._lock:
            items = list(self._dispatchers.items())
            results: list[list] = [[] for _ in range(max(1, len(items)))]
            pending = len(items) + 1
            pending_lock = threading.Lock()

            def finish() -> None:
                nonlocal pending
                with pending_lock:
                    pending -= 1
                    done = pending == 0
                if done:
                    cb([info for part in results for info in part])

            for index, (poller, dispatcher) in enumerate(items):

                def task(index: int = index, dispatcher: _RingReaderDispatcher[T] = dispatcher) -> None:
                    try:
                        results[index] = dispatcher.get_info_list(on_change)
                    finally:
                        finish()

                poller.submit(task)
        finish()

    def _on_size_changed(self, poller: Any, size: int, add_flag: bool) -> None:
        if size == 0:
            with self._lock:
                self._dispatchers.pop(poller, None)
        with self._count_lock:
            self._total_count += 1 if add_flag else -1
            count = self._total_count
        self._notify_reader_changed(count)