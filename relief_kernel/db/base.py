"""
Module: relief_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the integer surrogate key convention, the UTC timestamp column type, and the
    TrackedBase mixin for created/updated timestamps.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  MUST NOT import from models/,
    services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer surrogate primary keys (autoincrement, never reused on SQLite
      because rows carrying history are never deleted except distributions).
    - Timestamps are stored as naive UTC and always read back timezone-aware,
      so values compare equal regardless of backend tz support.

Audit relevance:
    TrackedBase.created_at/updated_at are audit metadata for inventory items.
    Ledger entries carry their own clock-supplied created_at instead.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as naive UTC.

    Contract:
        Accepts aware or naive datetimes on write (naive values are taken
        to be UTC) and always returns aware UTC datetimes on read.

    Guarantees:
        - process_bind_param: aware -> naive UTC.
        - process_result_value: naive -> aware UTC.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model inherits from Base (or TrackedBase) and gets an
        integer autoincrement primary key.

    Guarantees:
        - id is an INTEGER PRIMARY KEY (a rowid alias on SQLite).
        - datetime annotations map to UTCDateTime.
    """

    type_annotation_map = {
        datetime: UTCDateTime(),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TrackedBase(Base):
    """
    Abstract base with created/updated timestamps.

    Contract:
        Timestamps are audit metadata, not quantity data, so they may
        change on records whose other fields are locked.

    Guarantees:
        - created_at is set to server CURRENT_TIMESTAMP on INSERT.
        - updated_at is set on INSERT and refreshed on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.current_timestamp(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )
