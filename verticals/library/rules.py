"""Loan eligibility rules as pure functions.

Each rule takes the same four arguments (request, history, thresholds,
now) and returns a ``RuleResult`` whose ``rule_name`` is a
``RejectionReason`` value. ``ELIGIBILITY_RULES`` fixes the order in which
they run; the first failure decides the rejection reason, so the order is
observable and must not be shuffled.

History passed to the rules is already narrowed to the requesting reader.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from dateutil.relativedelta import relativedelta

from patterns.domain_config import EffectiveThresholds
from patterns.rules_engine import RuleResult, evaluate_until_failure, failed, passed
from verticals.library.availability import can_be_borrowed
from verticals.library.errors import RejectionReason
from verticals.library.hierarchy import are_related
from verticals.library.models.entities import Book, Loan, Reader, Topic


@dataclass(frozen=True)
class LoanRequest:
    """A reader asking for a batch of books, plus the availability floor."""

    reader: Reader
    books: Sequence[Book]
    min_free_ratio: float = 0.10


@dataclass
class EligibilityDecision:
    accepted: bool
    reason: RejectionReason | None = None
    message: str = ""
    results: list[RuleResult] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------

def check_daily_cap(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    """Loans dated today plus this request must fit the daily cap."""
    today = now.date()
    count = sum(1 for loan in history if loan.loaned_at.astimezone(now.tzinfo).date() == today)
    requested = len(request.books)
    if count + requested > thresholds.daily_cap:
        role = "A librarian" if request.reader.is_librarian else "A reader"
        return failed(
            RejectionReason.DAILY_CAP.value,
            f"{role} cannot borrow more than {thresholds.daily_cap} books in one day",
            today=count,
            requested=requested,
            limit=thresholds.daily_cap,
        )
    return passed(RejectionReason.DAILY_CAP.value, today=count, limit=thresholds.daily_cap)


def check_period_cap(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    """Loans in the trailing period plus this request must fit NMC."""
    since = now - thresholds.period
    count = sum(1 for loan in history if loan.loaned_at >= since)
    requested = len(request.books)
    if count + requested > thresholds.max_loans_per_period:
        return failed(
            RejectionReason.PERIOD_CAP.value,
            f"{request.reader.full_name} already has {count} loans in the last "
            f"{thresholds.period.days} days",
            in_period=count,
            requested=requested,
            limit=thresholds.max_loans_per_period,
        )
    return passed(RejectionReason.PERIOD_CAP.value, in_period=count)


def check_cooldown(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    """The same book can't be borrowed again until the cooldown elapses."""
    for book in request.books:
        previous = [loan for loan in history if loan.book is book]
        if not previous:
            continue
        latest = max(previous, key=lambda loan: loan.loaned_at)
        if now - latest.loaned_at < thresholds.cooldown:
            return failed(
                RejectionReason.COOLDOWN.value,
                f"'{book.title}' was borrowed too recently",
                book_id=str(book.id),
                last_loaned_at=latest.loaned_at.isoformat(),
                cooldown_days=thresholds.cooldown.total_seconds() / 86400,
            )
    return passed(RejectionReason.COOLDOWN.value)


def check_topic_cap(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    """Loans per topic (counting sub- and super-topics) within the window.

    For each distinct requested topic, recent loans whose book carries a
    related topic plus requested books carrying one must not exceed D.
    """
    window_start = now - relativedelta(months=thresholds.topic_window_months)
    recent = [loan for loan in history if loan.loaned_at >= window_start]

    for topic in _distinct_topics(request.books):
        already = sum(1 for loan in recent if _carries_related(loan.book, topic))
        requested = sum(1 for book in request.books if _carries_related(book, topic))
        if already + requested > thresholds.max_books_per_topic:
            return failed(
                RejectionReason.TOPIC_CAP.value,
                f"The limit of {thresholds.max_books_per_topic} books for topic "
                f"'{topic.name}' has been exceeded",
                topic=topic.name,
                already=already,
                requested=requested,
                limit=thresholds.max_books_per_topic,
            )
    return passed(RejectionReason.TOPIC_CAP.value)


def check_request_size(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    requested = len(request.books)
    if requested > thresholds.max_books_per_request:
        return failed(
            RejectionReason.REQUEST_SIZE.value,
            f"Cannot borrow more than {thresholds.max_books_per_request} books in one request",
            requested=requested,
            limit=thresholds.max_books_per_request,
        )
    return passed(RejectionReason.REQUEST_SIZE.value)


def check_topic_diversity(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    """Three or more books must span at least two topic names."""
    if len(request.books) < 3:
        return passed(RejectionReason.TOPIC_DIVERSITY.value)

    names = {topic.name for book in request.books for topic in book.topics}
    if len(names) < 2:
        return failed(
            RejectionReason.TOPIC_DIVERSITY.value,
            "Three or more books must cover at least two different topics",
            distinct_topics=len(names),
        )
    return passed(RejectionReason.TOPIC_DIVERSITY.value, distinct_topics=len(names))


def check_availability(
    request: LoanRequest, history: Sequence[Loan], thresholds: EffectiveThresholds, now: datetime
) -> RuleResult:
    for book in request.books:
        if not can_be_borrowed(book, request.min_free_ratio):
            return failed(
                RejectionReason.AVAILABILITY.value,
                f"'{book.title}' cannot be borrowed right now",
                book_id=str(book.id),
                available=book.available_copies,
            )
    return passed(RejectionReason.AVAILABILITY.value)


ELIGIBILITY_RULES = (
    check_daily_cap,
    check_period_cap,
    check_cooldown,
    check_topic_cap,
    check_request_size,
    check_topic_diversity,
    check_availability,
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def history_for(reader: Reader, loans: Sequence[Loan]) -> list[Loan]:
    """The loans in ``loans`` that belong to ``reader``."""
    return [loan for loan in loans if loan.reader.id == reader.id]


def evaluate_loan_request(
    request: LoanRequest,
    loans: Sequence[Loan],
    thresholds: EffectiveThresholds,
    now: datetime,
) -> EligibilityDecision:
    """Run every eligibility rule in order against one history snapshot.

    ``loans`` may hold other readers' loans; they are filtered out once
    here and the same snapshot feeds every rule.
    """
    if not request.books:
        return EligibilityDecision(accepted=True)

    history = history_for(request.reader, loans)
    outcome = evaluate_until_failure(ELIGIBILITY_RULES, request, history, thresholds, now)
    failure = outcome.first_failure
    if failure is None:
        return EligibilityDecision(accepted=True, results=outcome.results)

    return EligibilityDecision(
        accepted=False,
        reason=RejectionReason(failure.rule_name),
        message=failure.message,
        results=outcome.results,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _distinct_topics(books: Sequence[Book]) -> list[Topic]:
    seen: list[Topic] = []
    for book in books:
        for topic in book.topics:
            if not any(t is topic for t in seen):
                seen.append(topic)
    return seen


def _carries_related(book: Book, topic: Topic) -> bool:
    return any(are_related(t, topic) for t in book.topics)
