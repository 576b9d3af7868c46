"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.adjustment_selector import AdjustmentSelector
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.movement_selector import MovementSelector

__all__ = [
    "AdjustmentSelector",
    "InventorySelector",
    "MovementSelector",
]
