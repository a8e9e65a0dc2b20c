"""A list that can take over the contents of another list."""

from __future__ import annotations

from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")


class List(list, Generic[T]):
    """A ``list`` that can absorb another list and visit its items in order."""

    def __init__(self, items: Iterable[T] = ()) -> None:
        super().__init__(items)

    def splice(self, other: "List[T]") -> None:
        """Move every item of ``other`` to the end of this list, leaving ``other`` empty."""
        if not other:
            return
        self.extend(other)
        other.clear()

    def for_each(self, func: Callable[[T], object]) -> None:
        """Call ``func`` on each item, front to back."""
        for item in self:
            func(item)