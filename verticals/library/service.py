"""Lending services: loan issuance, loan extension, and catalog intake.

Services are the impure shell around the rules: they fetch the loan
history, call the pure evaluator, and write results back to the store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from loguru import logger

from patterns.domain_config import LendingConfig, effective_thresholds
from patterns.repository import Repository
from verticals.library.config import config as default_config
from verticals.library.errors import InvalidRequestError, LoanRejectedError, RejectionReason
from verticals.library.hierarchy import is_ancestor_of
from verticals.library.models.entities import Book, Loan, Reader
from verticals.library.models.schemas import validate_book, validate_loan, validate_reader
from verticals.library.repository import LoanStore
from verticals.library.rules import LoanRequest, evaluate_loan_request

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LoanDecision:
    """Outcome of a loan request or extension."""

    accepted: bool
    reason: RejectionReason | None = None
    message: str = ""
    loans: list[Loan] = field(default_factory=list)

    def raise_for_rejection(self) -> None:
        """Raise ``LoanRejectedError`` if the request was refused."""
        if not self.accepted:
            raise LoanRejectedError(self.reason, self.message)


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

class LoanService:
    """Issues and extends loans under the configured lending policy.

    Usage::

        service = LoanService(InMemoryLoanStore())
        decision = service.request_loans(reader, [book_a, book_b])
        if not decision.accepted:
            show_error(decision.reason)
    """

    def __init__(
        self,
        store: LoanStore,
        config: LendingConfig | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.config = config or default_config
        self.clock = clock or utc_now

    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            raise InvalidRequestError("clock must return a timezone-aware datetime")
        return now

    def request_loans(self, reader: Reader, books: Sequence[Book]) -> LoanDecision:
        """Lend ``books`` to ``reader`` if every eligibility rule passes.

        All or nothing: on rejection the store is left untouched.
        """
        if reader is None:
            raise InvalidRequestError("reader is required")
        if books is None:
            raise InvalidRequestError("books are required")

        now = self._now()
        request = LoanRequest(reader=reader, books=list(books), min_free_ratio=self.config.min_free_ratio)
        thresholds = effective_thresholds(self.config, reader.is_librarian)
        decision = evaluate_loan_request(request, self.store.get_all(), thresholds, now)

        if not decision.accepted:
            logger.info(
                "Loan request by {} rejected ({}): {}",
                reader.full_name,
                decision.reason.value,
                decision.message,
            )
            return LoanDecision(accepted=False, reason=decision.reason, message=decision.message)

        loans = []
        for book in request.books:
            loan = Loan(book=book, reader=reader, loaned_at=now)
            self.store.add(loan)
            loans.append(loan)
            logger.info("Book {!r} lent to {}", book.title, reader.full_name)

        return LoanDecision(accepted=True, loans=loans)

    def extend_loan(self, loan: Loan, extra_days: int | None = None) -> LoanDecision:
        """Push the due date of ``loan`` back by ``extra_days``.

        Extensions stack on the existing due date. Only the extension cap
        applies; acquisition rules are not consulted.
        """
        if loan is None:
            raise InvalidRequestError("loan is required")
        validate_loan(loan)
        if extra_days is None:
            extra_days = self.config.default_extension_days
        if extra_days <= 0:
            raise InvalidRequestError("extra_days must be positive")

        limit = effective_thresholds(self.config, loan.reader.is_librarian).max_extensions
        if loan.extension_count >= limit:
            message = f"The loan of '{loan.book.title}' cannot be extended again"
            logger.info("{} ({}/{})", message, loan.extension_count, limit)
            return LoanDecision(
                accepted=False,
                reason=RejectionReason.EXTENSION_LIMIT,
                message=message,
                loans=[loan],
            )

        extra = timedelta(days=extra_days)
        previous = (loan.due_at, loan.extension_count)
        loan.due_at = (self._now() if loan.due_at is None else loan.due_at) + extra
        loan.extension_count += 1
        try:
            self.store.update(loan)
        except Exception:
            loan.due_at, loan.extension_count = previous
            raise

        logger.info(
            "Loan of {!r} extended to {} ({}/{})",
            loan.book.title,
            loan.due_at.date().isoformat(),
            loan.extension_count,
            limit,
        )
        return LoanDecision(accepted=True, loans=[loan])


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CatalogService:
    """Admits books and readers after structural validation."""

    def __init__(
        self,
        books: Repository[Book],
        readers: Repository[Reader],
        config: LendingConfig | None = None,
    ):
        self.books = books
        self.readers = readers
        self.config = config or default_config

    def add_book(self, book: Book) -> Book:
        """Validate and store ``book``.

        Raises pydantic.ValidationError for malformed fields and
        InvalidRequestError for catalog policy violations.
        """
        validate_book(book)

        if len(book.topics) > self.config.max_topics_per_book:
            raise InvalidRequestError(
                f"A book cannot have more than {self.config.max_topics_per_book} topics"
            )

        for a in book.topics:
            for b in book.topics:
                if is_ancestor_of(a, b):
                    raise InvalidRequestError(
                        f"Topics '{a.name}' and '{b.name}' are ancestor and descendant; "
                        "list only one of them"
                    )

        self.books.add(book)
        logger.info("Book added: {!r}", book.title)
        return book

    def add_reader(self, reader: Reader) -> Reader:
        """Validate and store ``reader``. Raises pydantic.ValidationError."""
        validate_reader(reader)
        self.readers.add(reader)
        logger.info("Reader added: {} {}", reader.last_name, reader.first_name)
        return reader
