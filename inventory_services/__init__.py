"""
inventory_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the stock kernel.  This is the layer that
    owns transaction boundaries, reads ``inventory_config`` and wires the
    kernel services together.

Architecture position:
    Services -- above ``inventory_kernel`` and ``inventory_config``.

    Dependency direction (enforced by tests/architecture/test_kernel_boundary.py):
        inventory_services/ -> inventory_kernel/   (allowed)
        inventory_services/ -> inventory_config/   (allowed)
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.bootstrap import init_engine_from_config
from inventory_services.reconciliation_service import (
    AdjustmentResult,
    StockReconciliationService,
)

__all__ = [
    "AdjustmentResult",
    "StockReconciliationService",
    "init_engine_from_config",
]
