"""Stock availability check for a single book."""

import math

from verticals.library.errors import InvalidRequestError
from verticals.library.models.entities import Book


def can_be_borrowed(book: Book, min_free_ratio: float = 0.10) -> bool:
    """Whether ``book`` may be lent right now.

    Reading-room copies are ignored entirely. Of the remaining (lendable)
    copies, at least ``ceil(lendable * min_free_ratio)`` must be on the
    shelf, so a single lendable copy must itself be free.
    """
    if book is None:
        raise InvalidRequestError("book is required")

    lendable = sum(1 for c in book.copies if not c.reading_room_only)
    if lendable == 0:
        return False

    free = sum(1 for c in book.copies if not c.reading_room_only and not c.currently_lent)
    # round first so float error just above a whole number doesn't bump the ceiling
    required = math.ceil(round(lendable * min_free_ratio, 9))
    return free >= required
