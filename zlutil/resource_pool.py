"""A pool that hands out reusable objects and takes them back when released."""

from __future__ import annotations

import threading
import weakref
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

_DEFAULT_POOL_SIZE = 8


class PooledObject(Generic[T]):
    """A borrowed object; releasing it hands it back to its pool.

    Use it as a context manager or call :meth:`release`. If the pool is gone
    by then, or :meth:`quit` was called, the object is simply dropped.
    """

    def __init__(
        self,
        value: T,
        pool: "ResourcePool[T]",
        on_recycle: Optional[Callable[[T], Any]] = None,
        quittable: bool = True,
    ) -> None:
        self.value = value
        self._pool = weakref.ref(pool)
        self._on_recycle = on_recycle
        self._quit: Optional[bool] = False if quittable else None
        self._released = False

    def quit(self, flag: bool = True) -> None:
        """Give up (or, with ``flag=False``, resume) returning the object to the pool."""
        if self._quit is not None:
            self._quit = flag

    def release(self) -> None:
        """Return the object to its pool; calling it again does nothing."""
        if self._released:
            return
        self._released = True
        if self._on_recycle is not None:
            self._on_recycle(self.value)
        pool = self._pool()
        if pool is not None and not self._quit:
            pool._recycle(self.value)

    def __enter__(self) -> T:
        return self.value

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self) -> None:
        try:
            self.release()
        except Exception:
            pass


class ResourcePool(Generic[T]):
    """Keeps up to ``size`` idle objects made by ``factory`` for reuse."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._alloc = lambda: factory(*args, **kwargs)
        self._pool_size = _DEFAULT_POOL_SIZE
        self._objs: list[T] = []
        self._busy = threading.Lock()

    def set_size(self, size: int) -> None:
        """Set how many idle objects the pool keeps at most."""
        self._pool_size = size

    def obtain(self, on_recycle: Optional[Callable[[T], Any]] = None) -> PooledObject[T]:
        """Borrow an object; ``on_recycle`` is called with it on release."""
        return PooledObject(self._get(), self, on_recycle, quittable=True)

    def obtain2(self) -> PooledObject[T]:
        """Borrow an object without a recycle hook; :meth:`PooledObject.quit` has no effect."""
        return PooledObject(self._get(), self, None, quittable=False)

    def _recycle(self, obj: T) -> None:
        if not self._busy.acquire(blocking=False):
            return
        try:
            if len(self._objs) < self._pool_size:
                self._objs.append(obj)
        finally:
            self._busy.release()

    def _get(self) -> T:
        if not self._busy.acquire(blocking=False):
            return self._alloc()
        try:
            if self._objs:
                return self._objs.pop()
            return self._alloc()
        finally:
            self._busy.release()