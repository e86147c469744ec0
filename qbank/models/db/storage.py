"""Key-value storage database model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qbank.database import Base
from qbank.utils.time_utils import utc_now


class LocalStorageItem(Base):
    """One durable key-value pair, the server-side stand-in for browser storage."""

    __tablename__ = "local_storage"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LocalStorageItem(key={self.key!r})>"
