"""Pydantic schemas for structural validation of domain entities.

These run before the eligibility engine and only check the shape of a
single entity. They read attributes straight off the dataclass entities
(``from_attributes=True``), so callers never build schema objects by hand.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from verticals.library.models.entities import Book, Loan, Reader


class _EntitySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------

class TopicRef(_EntitySchema):
    name: str


class BookSchema(_EntitySchema):
    title: str
    topics: list[TopicRef] = Field(default_factory=list, max_length=3)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title is required")
        return v

    @model_validator(mode="after")
    def topic_names_unique(self) -> "BookSchema":
        names = [t.name for t in self.topics]
        if len(set(names)) != len(names):
            raise ValueError("topics must not be duplicated")
        return self


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

class ReaderSchema(_EntitySchema):
    last_name: str
    first_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_librarian: bool = False

    @field_validator("last_name", "first_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name is required")
        return v

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[str]) -> Optional[str]:
        if v and v.strip():
            if v.count("@") != 1 or v.startswith("@") or v.endswith("@"):
                raise ValueError("invalid email format")
        return v

    @field_validator("phone")
    @classmethod
    def phone_length(cls, v: Optional[str]) -> Optional[str]:
        if v and v.strip() and len(v.strip()) < 6:
            raise ValueError("invalid phone number")
        return v

    @model_validator(mode="after")
    def has_contact(self) -> "ReaderSchema":
        if not (self.email or "").strip() and not (self.phone or "").strip():
            raise ValueError("at least one contact method is required")
        return self


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

class LoanSchema(_EntitySchema):
    book: Any
    reader: Any
    loaned_at: datetime
    due_at: Optional[datetime] = None
    extension_count: int = Field(0, ge=0)

    @field_validator("book", "reader")
    @classmethod
    def present(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("is required")
        return v

    @model_validator(mode="after")
    def due_after_loan(self) -> "LoanSchema":
        if self.due_at is not None and self.due_at < self.loaned_at:
            raise ValueError("due date cannot be before the loan date")
        return self


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def validate_book(book: Book) -> BookSchema:
    """Raise pydantic.ValidationError if ``book`` is malformed."""
    return BookSchema.model_validate(book)


def validate_reader(reader: Reader) -> ReaderSchema:
    """Raise pydantic.ValidationError if ``reader`` is malformed."""
    return ReaderSchema.model_validate(reader)


def validate_loan(loan: Loan) -> LoanSchema:
    """Raise pydantic.ValidationError if ``loan`` is malformed."""
    return LoanSchema.model_validate(loan)
