"""
StockReconciliationService -- the transactional core of the stock ledger.

Responsibility:
    Orchestrates purchase receipt and reversal, sale processing and refund,
    manual adjustments, stock corrections, stock validation and the drift
    repair operations.  It is the only component that writes the ledger,
    the inventory snapshot, the adjustment journal and the product stock
    mirror together.

Architecture position:
    Services -- imperative shell above the kernel.  Reads settings from
    ``inventory_config`` and passes them to kernel services as plain
    constructor arguments.

Invariants enforced:
    - Atomicity: every public mutating operation is one unit of work.
      With ``auto_commit=True`` (default) it commits on success and rolls
      back on any exception, so no partial ledger/snapshot/journal/mirror
      state is ever visible.
    - Serialization: products touched by an operation are locked with
      ``SELECT ... FOR UPDATE`` in ascending id order before stock is
      read, so two concurrent sales cannot both pass validation and
      overdraw.
    - Validate-then-write: all stock sufficiency and input checks run
      before the first write.
    - Journal numbers: allocated from a locked per-day counter; the insert
      is guarded by the unique constraint and retried with a fresh number
      up to ``journal_max_attempts``.
    - After every operation the product's ``stock`` mirrors the ledger
      total.

Failure modes:
    - StockValidationError subclasses (out of stock, insufficient stock,
      invalid quantity, invalid movement type): raised before any write.
    - ProductNotFoundError: unknown product id.
    - JournalNumberConflictError: retries exhausted; safe to retry.
    - SQLAlchemy errors: propagated unchanged after rollback.

Audit relevance:
    Each operation runs under a fresh ``correlation_id`` bound in
    LogContext and logs ``<operation>_started`` and then
    ``<operation>_completed`` with duration, ``<operation>_rejected``
    for validation failures, or ``<operation>_failed`` with the traceback.
"""

import time
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import uuid4
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_config import InventoryConfig, get_active_config
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.commands import AdjustmentCommand
from inventory_kernel.domain.dtos import (
    ConsistencyReport,
    InventorySummary,
    ProductMovementSummary,
    StockIssue,
    StockRequest,
    StockValidationResult,
)
from inventory_kernel.domain.movement_types import MovementType, ReferenceType
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    JournalNumberConflictError,
    OutOfStockError,
    ProductNotFoundError,
    StockValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.inventory import InventorySnapshot
from inventory_kernel.models.product import Product
from inventory_kernel.models.purchase import Purchase
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.models.transaction import Transaction
from inventory_kernel.selectors.adjustment_selector import AdjustmentSelector
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.journal_service import AdjustmentJournal
from inventory_kernel.services.ledger_service import StockLedger
from inventory_kernel.services.snapshot_service import InventorySnapshotService

logger = get_logger("services.reconciliation")

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class AdjustmentResult:
    """The journal entry and its paired ledger row."""

    adjustment: InventoryAdjustment
    movement: StockMovement

    @property
    def journal_number(self) -> str | None:
        return self.adjustment.journal_number


def _product_id(product: Product | int) -> int:
    return product.id if isinstance(product, Product) else product


def _positive_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(quantity, "quantity must be an integer")
    if quantity <= 0:
        raise InvalidQuantityError(quantity, "line quantity must be greater than zero")
    return quantity


def _shortage(product: Product, available: int, requested: int) -> StockValidationError:
    if available <= 0:
        return OutOfStockError(product.id, product.title, requested=requested)
    return InsufficientStockError(
        product.id, product.title, available=available, requested=requested
    )


class StockReconciliationService:
    """
    Orchestrator for every stock-changing operation.

    Contract:
        Accepts a Session and owns its transaction boundary when
        ``auto_commit=True``.  With ``auto_commit=False`` the caller commits
        or rolls back (e.g. inside ``session_scope()``).

    Guarantees:
        - Snapshot quantity and the product mirror equal the ledger sum for
          every product an operation touched.
        - No ledger row ends below zero.

    Non-goals:
        - Idempotency: processing the same purchase or transaction twice
          applies it twice.  Callers invoke each operation exactly once per
          state transition.
        - Does not change purchase or transaction status fields.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: InventoryConfig | None = None,
        auto_commit: bool = True,
    ):
        """
        Args:
            session: SQLAlchemy session.
            clock: Clock for timestamps and journal dates. Defaults to SystemClock.
            config: Settings. Defaults to ``get_active_config()``.
            auto_commit: If True (default), commits on success and rolls back
                on failure. If False, the caller manages the transaction.
        """
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._auto_commit = auto_commit
        self._tz = ZoneInfo(self._config.timezone)

        self._ledger = StockLedger(session, self._clock)
        self._snapshots = InventorySnapshotService(session)
        self._journal = AdjustmentJournal(
            session,
            self._clock,
            prefix=self._config.journal_prefix,
            sequence_width=self._config.journal_sequence_width,
            tz=self._tz,
        )
        self._movements = MovementSelector(session, self._tz)
        self._inventory = InventorySelector(session, self._tz)
        self._adjustments = AdjustmentSelector(session, self._tz)

    # ------------------------------------------------------------------
    # Unit-of-work plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(
        self, name: str, *, writes: bool = True, **context: Any
    ) -> Iterator[dict[str, Any]]:
        """Bind log context, time the operation and own commit/rollback.

        Yields a dict the operation may fill with completion log fields.
        """
        outcome: dict[str, Any] = {}
        with LogContext.bind(correlation_id=str(uuid4()), operation=name, **context):
            logger.info(f"{name}_started")
            t0 = time.monotonic()
            try:
                yield outcome
                if writes and self._auto_commit:
                    self._session.commit()
            except StockValidationError as exc:
                if writes and self._auto_commit:
                    self._session.rollback()
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.warning(
                    f"{name}_rejected",
                    extra={"duration_ms": duration_ms, "error_code": exc.code, "error": str(exc)},
                )
                raise
            except Exception:
                if writes and self._auto_commit:
                    self._session.rollback()
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.error(f"{name}_failed", extra={"duration_ms": duration_ms}, exc_info=True)
                raise
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(f"{name}_completed", extra={"duration_ms": duration_ms, **outcome})

    def _lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Lock product rows in ascending id order; raise for unknown ids."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        products = {
            p.id: p
            for p in self._session.execute(
                select(Product)
                .where(Product.id.in_(ids))
                .order_by(Product.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars()
        }
        for pid in ids:
            if pid not in products:
                raise ProductNotFoundError(pid)
        return products

    def _get_product(self, product: Product | int) -> Product:
        found = self._session.get(Product, _product_id(product))
        if found is None:
            raise ProductNotFoundError(_product_id(product))
        return found

    def _apply_to_snapshot(self, product: Product, movement: StockMovement) -> InventorySnapshot:
        """Carry a ledger row into the snapshot and the product mirror.

        Both are set to the ledger balance after the row, so a snapshot
        seeded from legacy stock converges on its first movement.
        """
        snapshot = self._snapshots.get_or_create(product)
        self._snapshots.set_quantity(snapshot, movement.quantity_after)
        product.stock = movement.quantity_after
        self._session.flush()
        return snapshot

    def _check_available(
        self, products: Mapping[int, Product], requested: Mapping[int, int]
    ) -> None:
        """Fail on the first product (by id) whose ledger stock is too low."""
        for pid in sorted(requested):
            available = self._ledger.current_stock(pid)
            if available < requested[pid]:
                raise _shortage(products[pid], available, requested[pid])

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def process_purchase(
        self, purchase: Purchase, user_id: int | None = None
    ) -> list[StockMovement]:
        """
        Receive a purchase: one ``purchase`` ledger row per stocked line.

        Lines without a product are skipped.  No journal entry is created.

        Returns:
            The appended ledger rows, in line order.
        """
        with self._operation(
            "process_purchase",
            reference=f"purchase:{purchase.id}",
            actor_id=user_id,
        ) as outcome:
            items = [item for item in purchase.items if item.product_id is not None]
            for item in items:
                _positive_quantity(item.quantity)
            products = self._lock_products(item.product_id for item in items)

            movements: list[StockMovement] = []
            for item in items:
                movement = self._ledger.append(
                    product_id=item.product_id,
                    movement_type=MovementType.PURCHASE,
                    quantity=item.quantity,
                    unit_price=item.purchase_price,
                    total_price=item.total_price,
                    reference_type=ReferenceType.PURCHASE,
                    reference_id=purchase.id,
                    user_id=user_id,
                    notes=f"Purchase from {purchase.supplier_name}",
                )
                self._apply_to_snapshot(products[item.product_id], movement)
                movements.append(movement)

            outcome["movement_count"] = len(movements)
            return movements

    def reverse_purchase(
        self, purchase: Purchase, user_id: int | None = None
    ) -> list[StockMovement]:
        """
        Cancel a received purchase by appending reversing rows.

        Each stocked line gets a ``correction`` row with the negated
        quantity and total, referencing the purchase.  The original rows
        stay in the ledger.  Rejected as a whole if current stock of any
        product is below the quantity being reversed.
        """
        with self._operation(
            "reverse_purchase",
            reference=f"purchase:{purchase.id}",
            actor_id=user_id,
        ) as outcome:
            items = [item for item in purchase.items if item.product_id is not None]
            requested: dict[int, int] = defaultdict(int)
            for item in items:
                requested[item.product_id] += _positive_quantity(item.quantity)
            products = self._lock_products(requested)
            self._check_available(products, requested)

            movements: list[StockMovement] = []
            for item in items:
                movement = self._ledger.append(
                    product_id=item.product_id,
                    movement_type=MovementType.CORRECTION,
                    quantity=-item.quantity,
                    unit_price=item.purchase_price,
                    total_price=-item.total_price,
                    reference_type=ReferenceType.PURCHASE,
                    reference_id=purchase.id,
                    user_id=user_id,
                    notes=f"Reversed purchase from {purchase.supplier_name}",
                )
                self._apply_to_snapshot(products[item.product_id], movement)
                movements.append(movement)

            outcome["movement_count"] = len(movements)
            return movements

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def process_transaction(
        self, transaction: Transaction, user_id: int | None = None
    ) -> list[StockMovement]:
        """
        Book a completed sale: one ``sale`` ledger row per detail line.

        Stock for every line is checked under the product locks before the
        first row is written; the whole sale is rejected if any product
        would be overdrawn.  ``detail.price`` is the line total, so the
        row's unit price is ``price / quantity``.
        """
        actor = user_id if user_id is not None else transaction.cashier_id
        with self._operation(
            "process_transaction",
            reference=f"transaction:{transaction.invoice}",
            actor_id=actor,
        ) as outcome:
            details = list(transaction.details)
            requested: dict[int, int] = defaultdict(int)
            for detail in details:
                requested[detail.product_id] += _positive_quantity(detail.quantity)
            products = self._lock_products(requested)
            self._check_available(products, requested)

            movements: list[StockMovement] = []
            for detail in details:
                line_total = Decimal(detail.price)
                movement = self._ledger.append(
                    product_id=detail.product_id,
                    movement_type=MovementType.SALE,
                    quantity=-detail.quantity,
                    unit_price=(line_total / detail.quantity).quantize(_CENT, ROUND_HALF_UP),
                    total_price=line_total,
                    reference_type=ReferenceType.TRANSACTION,
                    reference_id=transaction.id,
                    user_id=actor,
                    notes=f"Sale invoice: {transaction.invoice}",
                )
                self._apply_to_snapshot(products[detail.product_id], movement)
                movements.append(movement)

            outcome["movement_count"] = len(movements)
            return movements

    def reverse_transaction(
        self, transaction: Transaction, user_id: int | None = None
    ) -> list[StockMovement]:
        """Refund a sale: one ``return`` ledger row per detail line."""
        actor = user_id if user_id is not None else transaction.cashier_id
        with self._operation(
            "reverse_transaction",
            reference=f"transaction:{transaction.invoice}",
            actor_id=actor,
        ) as outcome:
            details = list(transaction.details)
            for detail in details:
                _positive_quantity(detail.quantity)
            products = self._lock_products(detail.product_id for detail in details)

            movements: list[StockMovement] = []
            for detail in details:
                line_total = Decimal(detail.price)
                movement = self._ledger.append(
                    product_id=detail.product_id,
                    movement_type=MovementType.RETURN,
                    quantity=detail.quantity,
                    unit_price=(line_total / detail.quantity).quantize(_CENT, ROUND_HALF_UP),
                    total_price=line_total,
                    reference_type=ReferenceType.TRANSACTION,
                    reference_id=transaction.id,
                    user_id=actor,
                    notes=f"Return invoice: {transaction.invoice}",
                )
                self._apply_to_snapshot(products[detail.product_id], movement)
                movements.append(movement)

            outcome["movement_count"] = len(movements)
            return movements

    # ------------------------------------------------------------------
    # Manual adjustments
    # ------------------------------------------------------------------

    def create_adjustment(
        self,
        product: Product | int,
        quantity: int,
        type: MovementType | str,
        reason: str | None = None,
        notes: str | None = None,
        user_id: int | None = None,
    ) -> AdjustmentResult:
        """
        Journal a manual stock change by unsigned magnitude.

        Incoming types (adjustment_in, return) add ``quantity``; outgoing
        types (adjustment_out, damage) remove it.  Use ``stock_correction``
        to set an absolute value.
        """
        pid = _product_id(product)
        with self._operation(
            "create_adjustment", product_id=pid, actor_id=user_id
        ) as outcome:
            locked = self._lock_products([pid])[pid]
            command = AdjustmentCommand.for_adjustment(
                product_id=pid,
                product_name=locked.title,
                current_stock=self._ledger.current_stock(pid),
                quantity=quantity,
                movement_type=type,
                reason=reason,
                notes=notes,
                user_id=user_id,
            )
            result = self._record_journaled(locked, command)
            outcome.update(
                journal_number=result.journal_number,
                quantity_change=command.quantity_change,
                quantity_after=command.quantity_after,
            )
            return result

    def stock_correction(
        self,
        product: Product | int,
        new_quantity: int,
        reason: str | None = None,
        user_id: int | None = None,
        notes: str | None = None,
    ) -> AdjustmentResult:
        """
        Set a product's stock to an absolute counted value (stock opname).

        The recorded change is ``new_quantity - current`` and may be
        positive, negative or zero.
        """
        pid = _product_id(product)
        with self._operation(
            "stock_correction", product_id=pid, actor_id=user_id
        ) as outcome:
            locked = self._lock_products([pid])[pid]
            command = AdjustmentCommand.for_correction(
                product_id=pid,
                current_stock=self._ledger.current_stock(pid),
                new_quantity=new_quantity,
                reason=reason,
                notes=notes,
                user_id=user_id,
            )
            result = self._record_journaled(locked, command)
            outcome.update(
                journal_number=result.journal_number,
                quantity_change=command.quantity_change,
                quantity_after=command.quantity_after,
            )
            return result

    def _record_journaled(self, product: Product, command: AdjustmentCommand) -> AdjustmentResult:
        """Write journal entry + ledger row, retrying on a taken journal number."""
        max_attempts = self._config.journal_max_attempts
        for attempt in range(1, max_attempts + 1):
            journal_number = self._journal.generate_number()
            savepoint = self._session.begin_nested()
            try:
                entry, movement = self._journal.record(command, journal_number)
                savepoint.commit()
                break
            except IntegrityError:
                savepoint.rollback()
                if self._adjustments.by_journal_number(journal_number) is None:
                    raise
                logger.warning(
                    "journal_number_conflict",
                    extra={
                        "journal_number": journal_number,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                    },
                )
                if attempt == max_attempts:
                    raise JournalNumberConflictError(journal_number, attempt) from None

        self._apply_to_snapshot(product, movement)
        return AdjustmentResult(adjustment=entry, movement=movement)

    # ------------------------------------------------------------------
    # Validation (read-only)
    # ------------------------------------------------------------------

    def _line_problem(self, request: StockRequest) -> StockValidationError | None:
        product = self._get_product(request.product_id)
        if request.quantity == 0:
            return None
        available = self._ledger.current_stock(product.id)
        if available < request.quantity:
            return _shortage(product, available, request.quantity)
        return None

    def validate_stock_for_transaction(
        self, items: Iterable[StockRequest | Mapping[str, Any]]
    ) -> StockValidationResult:
        """
        Check every cart line and report all shortages at once.

        No mutation.  A zero quantity of a known product is always valid;
        an unknown product raises ProductNotFoundError.
        """
        with self._operation("validate_stock_for_transaction", writes=False) as outcome:
            issues: list[StockIssue] = []
            for item in items:
                problem = self._line_problem(StockRequest.coerce(item))
                if problem is not None:
                    issues.append(
                        StockIssue(
                            product_id=problem.product_id,
                            product_name=problem.product_name,
                            code=problem.code,
                            message=str(problem),
                            available=problem.available,
                            requested=problem.requested,
                        )
                    )
            outcome["error_count"] = len(issues)
            return StockValidationResult(valid=not issues, errors=tuple(issues))

    def validate_stock_or_fail(
        self, cart_items: Iterable[StockRequest | Mapping[str, Any]]
    ) -> None:
        """
        Fail fast on the first deficient cart line.

        Raises:
            ProductNotFoundError: A line names an unknown product, whatever its quantity.
            OutOfStockError: The product's stock is zero.
            InsufficientStockError: Stock is below the requested quantity.
        """
        with self._operation("validate_stock_or_fail", writes=False):
            for item in cart_items:
                problem = self._line_problem(StockRequest.coerce(item))
                if problem is not None:
                    raise problem

    # ------------------------------------------------------------------
    # Reporting (read-only)
    # ------------------------------------------------------------------

    def get_stock_history(
        self,
        product: Product | int,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        movement_type: MovementType | str | None = None,
    ) -> list[StockMovement]:
        """Ledger rows for a product in occurrence order, optionally filtered."""
        with self._operation(
            "get_stock_history", writes=False, product_id=_product_id(product)
        ) as outcome:
            found = self._get_product(product)
            rows = self._movements.history(
                found.id, date_from=date_from, date_to=date_to, movement_type=movement_type
            )
            outcome["row_count"] = len(rows)
            return rows

    def get_product_movement_summary(self, product: Product | int) -> ProductMovementSummary:
        """Totals in/out, ledger stock, average cost and snapshot stock."""
        with self._operation(
            "get_product_movement_summary", writes=False, product_id=_product_id(product)
        ):
            found = self._get_product(product)
            total_in, total_out = self._movements.totals_by_direction(found.id)
            snapshot = self._inventory.get(found.id)
            return ProductMovementSummary(
                product_id=found.id,
                total_in=total_in,
                total_out=total_out,
                current_stock=self._movements.current_stock(found.id),
                average_buy_price=self._movements.average_buy_price(found.id),
                inventory_stock=snapshot.quantity if snapshot is not None else 0,
            )

    def get_inventory_summary(self) -> InventorySummary:
        """Catalogue-wide stock counts and values."""
        with self._operation("get_inventory_summary", writes=False) as outcome:
            summary = self._inventory.summary(
                low_stock_threshold=self._config.low_stock_threshold,
                batch_size=self._config.summary_batch_size,
            )
            outcome["total_products"] = summary.total_products
            return summary

    def check_consistency(self) -> ConsistencyReport:
        """Compare ledger, snapshot and product mirror without writing."""
        with self._operation("check_consistency", writes=False) as outcome:
            report = self._inventory.consistency_report(
                batch_size=self._config.summary_batch_size
            )
            outcome.update(
                products_checked=report.products_checked,
                drift_count=len(report.drifts),
            )
            return report

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def _locked_product_batches(self, batch_size: int) -> Iterator[list[Product]]:
        last_id = 0
        while True:
            batch = list(
                self._session.execute(
                    select(Product)
                    .where(Product.id > last_id)
                    .order_by(Product.id)
                    .limit(batch_size)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalars()
            )
            if not batch:
                return
            yield batch
            last_id = batch[-1].id

    def sync_inventory_with_products(self) -> int:
        """
        Create a snapshot for every product that has none.

        New snapshots are seeded from the product's legacy stock field.

        Returns:
            Number of snapshots created.
        """
        with self._operation("sync_inventory_with_products") as outcome:
            missing = list(
                self._session.execute(
                    select(Product)
                    .outerjoin(InventorySnapshot, InventorySnapshot.product_id == Product.id)
                    .where(InventorySnapshot.id.is_(None))
                    .order_by(Product.id)
                    .with_for_update(of=Product)
                ).scalars()
            )
            for product in missing:
                self._snapshots.get_or_create(product)
            outcome["snapshots_created"] = len(missing)
            return len(missing)

    def sync_inventory_from_movements(self) -> int:
        """
        Rebuild every snapshot and product mirror from the ledger.

        Returns:
            Number of products processed.
        """
        with self._operation("sync_inventory_from_movements") as outcome:
            processed = 0
            for batch in self._locked_product_batches(self._config.summary_batch_size):
                for product in batch:
                    snapshot = self._snapshots.sync_from_ledger(product)
                    product.stock = snapshot.quantity
                    processed += 1
                self._session.flush()
            outcome["products_processed"] = processed
            return processed
