"""Domain models for the inventory kernel."""

from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.inventory import InventorySnapshot
from inventory_kernel.models.product import Category, Product
from inventory_kernel.models.purchase import Purchase, PurchaseItem
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.models.transaction import Transaction, TransactionDetail
from inventory_kernel.models.sequence import SequenceCounter

__all__ = [
    "Category",
    "InventoryAdjustment",
    "InventorySnapshot",
    "Product",
    "Purchase",
    "PurchaseItem",
    "SequenceCounter",
    "StockMovement",
    "Transaction",
    "TransactionDetail",
]
