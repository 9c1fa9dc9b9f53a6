"""
Generic set container.

Set keeps a unique, unordered collection of hashable values on top of a dict
used purely for its keys, giving O(1) expected-time membership, insertion and
deletion. Add and remove report whether the element was present before the
call instead of raising, which makes them convenient for "first time seen"
checks:

```python
seen = Set[str]()
if not seen.add(event_type):
    logger.info(f"First {event_type} event")
```

Iteration order is unspecified. The container is not synchronized; callers
sharing a set across threads must serialize access themselves.
"""

from typing import Dict, Generic, Hashable, Iterable, Iterator, List, TypeVar

T = TypeVar("T", bound=Hashable)


class Set(Generic[T]):
    """Mutable, unordered collection of unique hashable elements."""

    def __init__(self, *elements: T):
        self._elements: Dict[T, None] = dict.fromkeys(elements)

    @classmethod
    def with_capacity(cls, capacity: int) -> "Set[T]":
        """
        Create an empty set sized for ``capacity`` elements.

        The capacity is only a hint; dicts grow on demand and cannot be
        pre-sized, so the result is simply an empty set.
        """
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        return cls()

    @classmethod
    def from_iterable(cls, elements: Iterable[T]) -> "Set[T]":
        return cls(*elements)

    def contains(self, element: T) -> bool:
        return element in self._elements

    def add(self, element: T) -> bool:
        """Add ``element``; return True if it was already present."""
        existed = element in self._elements
        self._elements[element] = None
        return existed

    def remove(self, element: T) -> bool:
        """Remove ``element``; return True if it was present."""
        existed = element in self._elements
        self._elements.pop(element, None)
        return existed

    def size(self) -> int:
        return len(self._elements)

    def to_list(self) -> List[T]:
        """Return a new list holding every element once, in no particular order."""
        return list(self._elements)

    def copy(self) -> "Set[T]":
        return Set(*self._elements)

    def iter(self) -> Iterator[T]:
        """
        Lazily yield each element once.

        The consumer may stop at any point without affecting the set. Each
        call starts a new pass. Adding or removing elements while a pass is
        in progress is undefined behaviour; CPython raises RuntimeError on
        the next step when the size changed.
        """
        for element in self._elements:
            yield element

    def __iter__(self) -> Iterator[T]:
        return self.iter()

    def __contains__(self, element: object) -> bool:
        return element in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __str__(self) -> str:
        return "{ " + ", ".join(str(element) for element in self._elements) + " }"

    def __repr__(self) -> str:
        return f"Set({', '.join(repr(element) for element in self._elements)})"
