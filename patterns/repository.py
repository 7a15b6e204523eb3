"""Repository pattern for append/list storage.

Provides the minimal storage contract the lending vertical depends on
(``add`` and ``get_all``) plus an in-memory implementation. Verticals
subclass or wrap this to add domain-specific persistence, e.g. the
SQLAlchemy-backed loan ledger in ``verticals.library.repository``.
"""

from typing import Generic, Protocol, TypeVar

# ---------------------------------------------------------------------------
# Type variable for stored items
# ---------------------------------------------------------------------------

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Storage contract
# ---------------------------------------------------------------------------

class Repository(Protocol[T]):
    """What business services may assume about a store.

    Items added become visible to subsequent ``get_all`` calls. Nothing
    else is guaranteed: no ordering, no transactions.
    """

    def add(self, item: T) -> None: ...

    def get_all(self) -> list[T]: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryRepository(Generic[T]):
    """List-backed repository for tests, scripts, and single-process use.

    Usage::

        books: InMemoryRepository[Book] = InMemoryRepository()
        books.add(book)
        assert books.get_all() == [book]
    """

    def __init__(self, items: list[T] | None = None):
        self._items: list[T] = list(items or [])

    def add(self, item: T) -> None:
        self._items.append(item)

    def get_all(self) -> list[T]:
        """Return a shallow copy so callers can't reorder the backing list."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
