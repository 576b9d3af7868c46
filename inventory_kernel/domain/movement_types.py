"""
Movement types -- closed enumeration with a static policy table.

Responsibility:
    Declares every kind of stock movement together with its display label,
    its direction (incoming, outgoing, or a set-to-value correction) and,
    for manual types, its adjustment journal label.

Architecture position:
    Kernel > Domain -- pure, no ORM or I/O.

Invariants enforced:
    - Direction is a static property of the type, never inferred from the
      sign of a stored quantity (corrections may carry either sign).
    - The policy table is exhaustive: every MovementType has an entry,
      checked at import time.

Failure modes:
    - InvalidMovementTypeError from ``MovementType.parse`` for unknown values.
"""

from dataclasses import dataclass
from enum import Enum

from inventory_kernel.exceptions import InvalidMovementTypeError


class Direction(str, Enum):
    """Static stock effect of a movement type."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"
    SET = "set"


class MovementType(str, Enum):
    """Kind of stock-affecting event recorded in the ledger."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT_IN = "adjustment_in"
    ADJUSTMENT_OUT = "adjustment_out"
    RETURN = "return"
    DAMAGE = "damage"
    CORRECTION = "correction"

    @classmethod
    def parse(cls, value: "MovementType | str") -> "MovementType":
        """Coerce a stored or user-supplied value to a MovementType."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidMovementTypeError(value) from None

    @property
    def direction(self) -> Direction:
        return MOVEMENT_POLICY[self].direction

    @property
    def label(self) -> str:
        return MOVEMENT_POLICY[self].label

    @property
    def journal_label(self) -> str | None:
        return MOVEMENT_POLICY[self].journal_label

    @property
    def is_manual(self) -> bool:
        """True for types that are journaled as manual adjustments."""
        return self in ADJUSTMENT_TYPES

    def signed(self, magnitude: int) -> int:
        """Apply this type's direction to an unsigned magnitude."""
        if self.direction is Direction.INCOMING:
            return magnitude
        if self.direction is Direction.OUTGOING:
            return -magnitude
        raise InvalidMovementTypeError(
            self.value,
            allowed=tuple(t.value for t in MovementType if t.direction is not Direction.SET),
        )


class ReferenceType(str, Enum):
    """Kind of record a ledger row points back to."""

    PURCHASE = "purchase"
    TRANSACTION = "transaction"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class MovementPolicy:
    label: str
    direction: Direction
    journal_label: str | None = None


MOVEMENT_POLICY: dict[MovementType, MovementPolicy] = {
    MovementType.PURCHASE: MovementPolicy("Pembelian", Direction.INCOMING),
    MovementType.SALE: MovementPolicy("Penjualan", Direction.OUTGOING),
    MovementType.ADJUSTMENT_IN: MovementPolicy(
        "Adjustment Masuk", Direction.INCOMING, "Adjustment Masuk"
    ),
    MovementType.ADJUSTMENT_OUT: MovementPolicy(
        "Adjustment Keluar", Direction.OUTGOING, "Adjustment Keluar"
    ),
    MovementType.RETURN: MovementPolicy(
        "Return", Direction.INCOMING, "Return Barang"
    ),
    MovementType.DAMAGE: MovementPolicy(
        "Barang Rusak", Direction.OUTGOING, "Barang Rusak"
    ),
    MovementType.CORRECTION: MovementPolicy(
        "Koreksi", Direction.SET, "Koreksi Stok"
    ),
}

assert set(MOVEMENT_POLICY) == set(MovementType), "movement policy table incomplete"

INCOMING_TYPES: frozenset[MovementType] = frozenset(
    t for t, p in MOVEMENT_POLICY.items() if p.direction is Direction.INCOMING
)
OUTGOING_TYPES: frozenset[MovementType] = frozenset(
    t for t, p in MOVEMENT_POLICY.items() if p.direction is Direction.OUTGOING
)
ADJUSTMENT_TYPES: frozenset[MovementType] = frozenset(
    t for t, p in MOVEMENT_POLICY.items() if p.journal_label is not None
)
ADJUSTMENT_INCOMING_TYPES: frozenset[MovementType] = ADJUSTMENT_TYPES & INCOMING_TYPES
ADJUSTMENT_OUTGOING_TYPES: frozenset[MovementType] = ADJUSTMENT_TYPES & OUTGOING_TYPES
