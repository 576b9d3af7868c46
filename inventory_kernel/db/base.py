"""
Module: inventory_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the integer primary key convention, the type annotation map for consistent
    column types, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Monotonic integer primary keys: ledger ordering ties are broken by id,
      so ids must grow with insertion order (autoincrement on every backend).
    - Money precision: Decimal maps to Numeric(15, 2).  NEVER use float for
      prices or totals.
    - Quantities are whole units: int maps to BigInteger.

Failure modes:
    - IntegrityError on duplicate primary key (only possible with manual ids).

Audit relevance:
    TrackedBase.created_at and updated_at form the basic audit metadata for
    every tracked entity.  Ledger rows set created_at from the injected clock
    instead of the server default so replayed histories are deterministic.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements an INTEGER PRIMARY KEY column.
IdType = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model in the system inherits from Base (or TrackedBase).
        Base provides an autoincrement integer primary key and a
        type_annotation_map that enforces consistent column types across
        the entire schema.

    Guarantees:
        - id is an autoincrementing BigInteger (INTEGER on SQLite).
        - Decimal maps to Numeric(15, 2) -- two-decimal currency amounts.
        - datetime maps to DateTime(timezone=True) -- always timezone-aware.
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(15, 2),
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    Contract:
        Every model that inherits TrackedBase records when the row was
        created and last modified.  updated_at is audit metadata, so it is
        allowed to change even on otherwise-immutable records.

    Guarantees:
        - created_at is set to server NOW() on INSERT unless supplied.
        - updated_at is set on INSERT and auto-updates on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
