"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
The schema is created at startup by init_db(); there is no migration step.

Timestamps are stored as epoch milliseconds (BigInteger) so they
serialize to clients as plain numbers.
"""

import time

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def now_millis() -> int:
    return int(time.time() * 1000)


class WidgetRow(Base):
    """One inventory item.

    Learn: `id` is assigned by the database on INSERT and never changes.
    `date_updated` is rewritten on every create and update.
    """

    __tablename__ = "widgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    date_updated: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=now_millis
    )

    def __repr__(self) -> str:
        return f"<WidgetRow id={self.id} name={self.name!r} quantity={self.quantity}>"
