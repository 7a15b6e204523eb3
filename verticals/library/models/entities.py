"""In-memory domain entities for the lending vertical.

Entities compare by identity (``eq=False``): two books with the same title
are different books, and a topic is the same topic only if it is the same
object. The eligibility rules depend on this.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(eq=False)
class Topic:
    """A subject tag. Ancestry is computed by walking ``parent``."""

    name: str
    parent: Optional["Topic"] = None

    def subtopic(self, name: str) -> "Topic":
        """Create a child topic of this one."""
        return Topic(name=name, parent=self)

    def __repr__(self) -> str:
        return f"Topic({self.name!r})"


@dataclass(eq=False)
class Copy:
    """A physical copy of a book."""

    reading_room_only: bool = False
    currently_lent: bool = False


@dataclass(eq=False)
class Edition:
    """Publication details. Informational only."""

    publisher: str = ""
    year: int = 0
    page_count: int = 0
    kind: str = "Unknown"


@dataclass(eq=False)
class Book:
    title: str
    topics: list[Topic] = field(default_factory=list)
    copies: list[Copy] = field(default_factory=list)
    editions: list[Edition] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def initial_stock(self) -> int:
        return len(self.copies)

    @property
    def available_copies(self) -> int:
        """Copies that may leave the building and are on the shelf."""
        return sum(
            1 for c in self.copies
            if not c.reading_room_only and not c.currently_lent
        )

    def __repr__(self) -> str:
        return f"Book({self.title!r})"


@dataclass(eq=False)
class Reader:
    last_name: str
    first_name: str
    email: str | None = None
    phone: str | None = None
    is_librarian: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(eq=False)
class Loan:
    """One book lent to one reader.

    Created on issuance, mutated only by extension (``due_at`` and
    ``extension_count``), never deleted.
    """

    book: Book
    reader: Reader
    loaned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    due_at: datetime | None = None
    extension_count: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)
