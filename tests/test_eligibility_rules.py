"""Test loan eligibility rules and their evaluation order."""
from datetime import datetime, timedelta, timezone

from patterns.domain_config import LendingConfig, effective_thresholds
from verticals.library.errors import RejectionReason
from verticals.library.models.entities import Book, Copy, Loan, Reader, Topic
from verticals.library.rules import (
    ELIGIBILITY_RULES,
    LoanRequest,
    check_daily_cap,
    check_topic_cap,
    evaluate_loan_request,
    history_for,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _reader(librarian=False):
    return Reader(last_name="Popescu", first_name="Ana", email="ana@example.com", is_librarian=librarian)


def _book(title="Book", *topics, copies=1):
    return Book(title=title, topics=list(topics), copies=[Copy() for _ in range(copies)])


def _loan(reader, book, ago):
    return Loan(book=book, reader=reader, loaned_at=NOW - ago)


def _evaluate(reader, books, history, config=None):
    config = config or LendingConfig()
    return evaluate_loan_request(
        LoanRequest(reader=reader, books=books, min_free_ratio=config.min_free_ratio),
        history,
        effective_thresholds(config, reader.is_librarian),
        NOW,
    )


def test_rule_order():
    assert [r.__name__ for r in ELIGIBILITY_RULES] == [
        "check_daily_cap",
        "check_period_cap",
        "check_cooldown",
        "check_topic_cap",
        "check_request_size",
        "check_topic_diversity",
        "check_availability",
    ]


def test_empty_request_accepted():
    decision = _evaluate(_reader(), [], [])
    assert decision.accepted
    assert decision.reason is None


def test_simple_request_accepted():
    decision = _evaluate(_reader(), [_book("A")], [])
    assert decision.accepted
    assert len(decision.results) == len(ELIGIBILITY_RULES)


def test_history_filtered_by_reader():
    reader, other = _reader(), _reader()
    book = _book("A")
    loans = [_loan(other, book, timedelta(hours=1)) for _ in range(4)]
    assert history_for(reader, loans) == []
    assert _evaluate(reader, [_book("B")], loans).accepted


# -- Daily cap --

def test_daily_cap_boundary():
    reader = _reader()
    history = [_loan(reader, _book(f"Old {i}"), timedelta(hours=1)) for i in range(3)]

    assert _evaluate(reader, [_book("New")], history).accepted

    decision = _evaluate(reader, [_book("New 1"), _book("New 2")], history)
    assert not decision.accepted
    assert decision.reason == RejectionReason.DAILY_CAP


def test_daily_cap_counts_calendar_day_only():
    reader = _reader()
    # 13 hours ago is yesterday relative to noon
    history = [_loan(reader, _book(f"Old {i}"), timedelta(hours=13)) for i in range(4)]
    assert _evaluate(reader, [_book("New")], history).accepted


def test_daily_cap_compares_days_in_clock_timezone():
    late = datetime(2026, 3, 15, 23, 30, tzinfo=timezone.utc)
    bucharest = timezone(timedelta(hours=2))
    reader = _reader()
    limits = effective_thresholds(LendingConfig(max_loans_per_day=4), False)
    request = LoanRequest(reader=reader, books=[_book("New")])

    # 23:00Z is already the 16th in +02:00 but still the 15th for the clock
    today = [
        Loan(book=_book(f"Old {i}"), reader=reader, loaned_at=(late - timedelta(minutes=30)).astimezone(bucharest))
        for i in range(4)
    ]
    result = check_daily_cap(request, today, limits, late)
    assert not result.passed
    assert result.details["today"] == 4

    # 00:30+02:00 on the 15th is 22:30Z on the 14th
    yesterday = [
        Loan(book=_book(f"Old {i}"), reader=reader, loaned_at=datetime(2026, 3, 15, 0, 30, tzinfo=bucharest))
        for i in range(4)
    ]
    assert check_daily_cap(request, yesterday, limits, late).passed


def test_librarian_daily_cap_replaces_ordinary():
    config = LendingConfig(max_loans_per_day=4, librarian_daily_cap=2)
    librarian = _reader(librarian=True)
    history = [_loan(librarian, _book("Old"), timedelta(hours=1))]

    assert _evaluate(librarian, [_book("New")], history, config).accepted
    decision = _evaluate(librarian, [_book("New 1"), _book("New 2")], history, config)
    assert decision.reason == RejectionReason.DAILY_CAP


# -- Period cap --

def test_period_cap():
    reader = _reader()
    history = [_loan(reader, _book(f"Old {i}"), timedelta(days=40 + i)) for i in range(10)]
    decision = _evaluate(reader, [_book("New")], history)
    assert decision.reason == RejectionReason.PERIOD_CAP


def test_period_cap_ignores_old_loans():
    reader = _reader()
    history = [_loan(reader, _book(f"Old {i}"), timedelta(days=181 + i)) for i in range(10)]
    assert _evaluate(reader, [_book("New")], history).accepted


def test_librarian_period_is_halved():
    librarian = _reader(librarian=True)
    # 100 days ago is outside the librarian's 90 day period
    history = [_loan(librarian, _book(f"Old {i}"), timedelta(days=100)) for i in range(30)]
    assert _evaluate(librarian, [_book("New")], history).accepted


# -- Cooldown --

def test_cooldown_boundary():
    reader = _reader()
    book = _book("Dune")

    exactly = [_loan(reader, book, timedelta(days=30))]
    assert _evaluate(reader, [book], exactly).accepted

    too_soon = [_loan(reader, book, timedelta(days=29))]
    decision = _evaluate(reader, [book], too_soon)
    assert decision.reason == RejectionReason.COOLDOWN


def test_cooldown_uses_most_recent_loan():
    reader = _reader()
    book = _book("Dune")
    history = [
        _loan(reader, book, timedelta(days=120)),
        _loan(reader, book, timedelta(days=10)),
    ]
    assert _evaluate(reader, [book], history).reason == RejectionReason.COOLDOWN


def test_cooldown_matches_book_identity_not_title():
    reader = _reader()
    history = [_loan(reader, _book("Dune"), timedelta(days=1))]
    assert _evaluate(reader, [_book("Dune")], history).accepted


def test_librarian_cooldown_is_halved():
    book = _book("Dune")
    reader, librarian = _reader(), _reader(librarian=True)
    assert not _evaluate(reader, [book], [_loan(reader, book, timedelta(days=20))]).accepted
    assert _evaluate(librarian, [book], [_loan(librarian, book, timedelta(days=20))]).accepted


# -- Topic cap --

def _math_tree():
    math = Topic("Mathematics")
    return math, math.subtopic("Algebra"), math.subtopic("Geometry")


def test_topic_cap_counts_related_topics():
    math, algebra, _ = _math_tree()
    reader = _reader()
    history = [_loan(reader, _book(f"Algebra {i}", algebra), timedelta(days=40 + i)) for i in range(3)]

    decision = _evaluate(reader, [_book("Calculus", math)], history)
    assert decision.reason == RejectionReason.TOPIC_CAP

    decision = _evaluate(reader, [_book("Linear Algebra", algebra)], history)
    assert decision.reason == RejectionReason.TOPIC_CAP


def test_topic_cap_ignores_siblings_and_unrelated():
    math, algebra, geometry = _math_tree()
    reader = _reader()
    history = [_loan(reader, _book(f"Algebra {i}", algebra), timedelta(days=40 + i)) for i in range(3)]

    assert _evaluate(reader, [_book("Euclid", geometry)], history).accepted
    assert _evaluate(reader, [_book("Rome", Topic("History"))], history).accepted


def test_topic_cap_window():
    math, algebra, _ = _math_tree()
    reader = _reader()
    # 7 months back falls outside the 6 month window
    history = [_loan(reader, _book(f"Algebra {i}", algebra), timedelta(days=215 + i)) for i in range(3)]
    assert _evaluate(reader, [_book("Calculus", math)], history).accepted


def test_topic_cap_counts_requested_books():
    math, algebra, geometry = _math_tree()
    reader = _reader()
    books = [_book("A", algebra), _book("B", geometry), _book("C", math), _book("D", algebra)]
    decision = _evaluate(reader, books, [])
    assert decision.reason == RejectionReason.TOPIC_CAP
    # Mathematics is related to all four requested books
    assert decision.results[-1].details["topic"] == "Mathematics"


def test_topic_cap_details():
    _, algebra, _ = _math_tree()
    reader = _reader()
    history = [_loan(reader, _book("Old", algebra), timedelta(days=50))]
    request = LoanRequest(reader=reader, books=[_book("X", algebra), _book("Y", algebra), _book("Z", algebra)])
    result = check_topic_cap(request, history, effective_thresholds(LendingConfig(), False), NOW)
    assert not result.passed
    assert result.details == {"topic": "Algebra", "already": 1, "requested": 3, "limit": 3}


def test_librarian_topic_cap_doubled():
    math, algebra, _ = _math_tree()
    librarian = _reader(librarian=True)
    history = [_loan(librarian, _book(f"Algebra {i}", algebra), timedelta(days=40 + i)) for i in range(3)]
    assert _evaluate(librarian, [_book("Calculus", math)], history).accepted


# -- Request size --

def test_request_size_cap():
    config = LendingConfig(max_loans_per_day=20)
    books = [_book(f"B{i}", Topic(f"T{i}")) for i in range(6)]
    decision = _evaluate(_reader(), books, [], config)
    assert decision.reason == RejectionReason.REQUEST_SIZE

    assert _evaluate(_reader(), books[:5], [], config).accepted


# -- Topic diversity --

def test_diversity_rule():
    science = Topic("Science")
    books = [_book(f"S{i}", science) for i in range(3)]
    decision = _evaluate(_reader(), books, [])
    assert decision.reason == RejectionReason.TOPIC_DIVERSITY

    books[2].topics.append(Topic("History"))
    assert _evaluate(_reader(), books, []).accepted


def test_diversity_counts_names_not_objects():
    books = [_book(f"S{i}", Topic("Science")) for i in range(3)]
    assert _evaluate(_reader(), books, []).reason == RejectionReason.TOPIC_DIVERSITY


def test_diversity_not_required_for_two_books():
    science = Topic("Science")
    assert _evaluate(_reader(), [_book("A", science), _book("B", science)], []).accepted


# -- Availability --

def test_availability_checked_per_book():
    decision = _evaluate(_reader(), [_book("Shelf"), _book("Gone", copies=0)], [])
    assert decision.reason == RejectionReason.AVAILABILITY
    assert decision.results[-1].details["available"] == 0


# -- Precedence --

def test_daily_cap_before_cooldown():
    reader = _reader()
    book = _book("C1")
    history = [_loan(reader, book, timedelta(hours=1)) for _ in range(4)]
    assert _evaluate(reader, [book], history).reason == RejectionReason.DAILY_CAP


def test_period_cap_before_cooldown():
    reader = _reader()
    book = _book("C1")
    history = [_loan(reader, book, timedelta(days=10)) for _ in range(10)]
    assert _evaluate(reader, [book], history).reason == RejectionReason.PERIOD_CAP


def test_cooldown_before_topic_cap():
    reader = _reader()
    science = Topic("Science")
    books = [_book(f"S{i}", science) for i in range(3)]
    history = [_loan(reader, b, timedelta(days=5 + i)) for i, b in enumerate(books)]
    assert _evaluate(reader, [books[0]], history).reason == RejectionReason.COOLDOWN


def test_topic_cap_before_request_size():
    config = LendingConfig(max_loans_per_day=20)
    science = Topic("Science")
    books = [_book(f"S{i}", science) for i in range(6)]
    assert _evaluate(_reader(), books, [], config).reason == RejectionReason.TOPIC_CAP


def test_request_size_before_diversity():
    config = LendingConfig(max_loans_per_day=20)
    books = [_book(f"B{i}") for i in range(6)]
    assert _evaluate(_reader(), books, [], config).reason == RejectionReason.REQUEST_SIZE


def test_diversity_before_availability():
    science = Topic("Science")
    books = [_book(f"S{i}", science, copies=0) for i in range(3)]
    assert _evaluate(_reader(), books, []).reason == RejectionReason.TOPIC_DIVERSITY


def test_failure_stops_evaluation():
    reader = _reader()
    history = [_loan(reader, _book("Old"), timedelta(hours=1)) for _ in range(4)]
    decision = _evaluate(reader, [_book("New", copies=0)], history)
    assert decision.reason == RejectionReason.DAILY_CAP
    assert len(decision.results) == 1
