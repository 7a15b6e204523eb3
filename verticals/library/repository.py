"""Loan stores: an in-memory list and a SQLAlchemy-backed ledger.

Both satisfy ``LoanStore``: the base ``Repository`` contract plus
``update`` so extensions can be written back.
"""

from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from patterns.repository import InMemoryRepository, Repository
from verticals.library.models.db_models import LoanRow
from verticals.library.models.entities import Book, Loan, Reader


class LoanStore(Repository[Loan], Protocol):
    def update(self, loan: Loan) -> None: ...


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class InMemoryLoanStore(InMemoryRepository[Loan]):
    """Loans held in a list. ``update`` only checks the loan is known."""

    def update(self, loan: Loan) -> None:
        if not any(existing is loan for existing in self._items):
            raise KeyError(f"Unknown loan {loan.id}")


# ---------------------------------------------------------------------------
# SQL ledger
# ---------------------------------------------------------------------------

class SqlLoanStore:
    """Loans persisted as ``LoanRow`` records.

    Rows only hold ids, so reads resolve books and readers through the
    catalog repositories. Each loan id maps to one ``Loan`` object for the
    life of the store, which keeps identity-based rules working across
    repeated ``get_all`` calls.

    Usage::

        with session_scope(factory) as session:
            store = SqlLoanStore(session, catalog.books, catalog.readers)
            LoanService(store).request_loans(reader, [book])
    """

    def __init__(self, session: Session, books: Repository[Book], readers: Repository[Reader]):
        self.session = session
        self.books = books
        self.readers = readers
        self._loans: dict[UUID, Loan] = {}

    # -- Add --

    def add(self, loan: Loan) -> None:
        row = LoanRow(
            id=loan.id,
            book_id=loan.book.id,
            reader_id=loan.reader.id,
            loaned_at=_to_utc(loan.loaned_at),
            due_at=_to_utc(loan.due_at),
            extension_count=loan.extension_count,
        )
        self.session.add(row)
        self.session.flush()
        self._loans[loan.id] = loan

    # -- Update --

    def update(self, loan: Loan) -> None:
        row = self.session.get(LoanRow, loan.id)
        if row is None:
            raise KeyError(f"Unknown loan {loan.id}")
        row.due_at = _to_utc(loan.due_at)
        row.extension_count = loan.extension_count
        self.session.flush()

    # -- List --

    def get_all(self) -> list[Loan]:
        books = {b.id: b for b in self.books.get_all()}
        readers = {r.id: r for r in self.readers.get_all()}

        loans = []
        for row in self.session.execute(select(LoanRow)).scalars():
            loan = self._loans.get(row.id)
            if loan is None:
                book = books.get(row.book_id)
                reader = readers.get(row.reader_id)
                if book is None or reader is None:
                    logger.warning("Skipping loan {} with unknown book or reader", row.id)
                    continue
                loan = Loan(
                    book=book,
                    reader=reader,
                    loaned_at=_as_utc(row.loaned_at),
                    due_at=_as_utc(row.due_at),
                    extension_count=row.extension_count,
                    id=row.id,
                )
                self._loans[row.id] = loan
            loans.append(loan)
        return loans


def _to_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
