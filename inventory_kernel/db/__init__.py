"""Database layer - engine, base classes, and immutability listeners."""

from inventory_kernel.db.base import Base, IdType, TrackedBase
from inventory_kernel.db.engine import create_tables, get_engine, get_session

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "IdType",
]
