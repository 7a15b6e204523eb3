"""SQLAlchemy models for the lending vertical.

Only loans are persisted here. Books and readers live in the catalog;
a loan row references them by id and is rehydrated against the catalog
on read.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, RecordMixin


class LoanRow(RecordMixin, Base):
    __tablename__ = "loans"

    book_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    reader_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    loaned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    extension_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "book_id": str(self.book_id),
            "reader_id": str(self.reader_id),
            "loaned_at": self.loaned_at.isoformat() if self.loaned_at else None,
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "extension_count": self.extension_count,
        }
