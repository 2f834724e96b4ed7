from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, Optional, Sequence, TypeVar

from drivefs.fs.errors import NoMoreElementsError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    next_page_token: Optional[str] = None


# Called with the previous page's token (None for the first call).
# Returning None signals end-of-data.
PageFetcher = Callable[[Optional[str]], Optional[Page[T]]]


class PaginatedIterator(Generic[T]):
    """
    Forward-only cursor over an initial buffer followed by fetched pages.

    A page is fetched only when the current buffer is exhausted, so the iterator is
    never more than one page ahead of the consumer. Not thread-safe.
    """

    def __init__(self, initial: Sequence[T], fetch_page: PageFetcher[T]) -> None:
        self._fetch_page = fetch_page
        self._buffer: Sequence[T] = initial
        self._cursor = 0
        self._last_page: Optional[Page[T]] = None
        self._exhausted = False

    def _paginate(self) -> None:
        if self._last_page is not None and self._last_page.next_page_token is None:
            self._exhausted = True
            return
        token = self._last_page.next_page_token if self._last_page is not None else None
        page = self._fetch_page(token)
        self._cursor = 0
        if page is None:
            self._buffer = ()
            self._exhausted = True
            return
        self._last_page = page
        self._buffer = page.items

    def has_next(self) -> bool:
        # Empty pages that still carry a token keep the loop going.
        while self._cursor >= len(self._buffer):
            if self._exhausted:
                return False
            self._paginate()
        return True

    def __iter__(self) -> PaginatedIterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise NoMoreElementsError()
        item = self._buffer[self._cursor]
        self._cursor += 1
        return item

    next = __next__


@dataclass(frozen=True)
class PaginatedIterable(Generic[T]):
    """
    Iterable view of a paged result set. Each `iter()` starts a new traversal that
    re-fetches from the first page; a single iterator cannot be restarted.
    """

    fetch_page: PageFetcher[T]
    initial: Sequence[T] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[T]:
        return PaginatedIterator(tuple(self.initial), self.fetch_page)
