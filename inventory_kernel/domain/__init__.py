"""
Pure domain layer.

Movement type policy, value objects and planned commands with NO
dependencies on the ORM, the database, the clock or any I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.commands import AdjustmentCommand
from inventory_kernel.domain.dtos import (
    ConsistencyReport,
    InventorySummary,
    ProductMovementSummary,
    SnapshotDrift,
    StockIssue,
    StockRequest,
    StockValidationResult,
)
from inventory_kernel.domain.movement_types import (
    ADJUSTMENT_INCOMING_TYPES,
    ADJUSTMENT_OUTGOING_TYPES,
    ADJUSTMENT_TYPES,
    INCOMING_TYPES,
    OUTGOING_TYPES,
    Direction,
    MovementType,
    ReferenceType,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AdjustmentCommand",
    "ConsistencyReport",
    "InventorySummary",
    "ProductMovementSummary",
    "SnapshotDrift",
    "StockIssue",
    "StockRequest",
    "StockValidationResult",
    "ADJUSTMENT_INCOMING_TYPES",
    "ADJUSTMENT_OUTGOING_TYPES",
    "ADJUSTMENT_TYPES",
    "INCOMING_TYPES",
    "OUTGOING_TYPES",
    "Direction",
    "MovementType",
    "ReferenceType",
]
