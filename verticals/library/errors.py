"""Exceptions raised by the lending vertical.

Business rejections are normally returned as decisions, not raised.
``LoanRejectedError`` exists for callers that prefer exceptions and opt in
through ``LoanDecision.raise_for_rejection()``.
"""

from __future__ import annotations

from enum import Enum


class RejectionReason(str, Enum):
    """Why a loan request or extension was refused."""

    DAILY_CAP = "daily_cap"
    PERIOD_CAP = "period_cap"
    COOLDOWN = "cooldown"
    TOPIC_CAP = "topic_cap"
    REQUEST_SIZE = "request_size"
    TOPIC_DIVERSITY = "topic_diversity"
    AVAILABILITY = "availability"
    EXTENSION_LIMIT = "extension_limit"


class LendingError(Exception):
    """Base class for lending errors."""


class InvalidRequestError(LendingError, ValueError):
    """Missing or malformed input. Raised before any side effect."""


class LoanRejectedError(LendingError):
    """A well-formed request that the lending policy refused."""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message
