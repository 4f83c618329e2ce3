"""Stock guard — stock validation, reservation and post-commit reconciliation.

Only grocery carts carry finite stock. Food items, and any item without a
stock snapshot, are treated as always available.

Reservation takes stock out of inventory before the order is written. Each
item is a compare-and-set against the level just read, re-checked against
the cart on every retry, so a sold-out item is refused rather than oversold.
Held stock is put back when the checkout fails after it.

Reconciliation settles the items the reservation could not hold, after the
order is committed. It reads the current stock, computes
``max(0, current - purchased)`` and writes it only if nobody changed the
stock in between. A lost race re-reads and retries. A write that lands on a
stock lower than the purchased quantity is reported as oversold.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.fields import Identifier, Integer, List, String

from ordering.checkout.errors import ServiceUnavailable
from ordering.domain import ordering
from ordering.utils.config import setting

logger = structlog.get_logger(__name__)


class ViolationKind(Enum):
    OUT_OF_STOCK = "out_of_stock"
    QUANTITY_EXCEEDED = "quantity_exceeded"


class HoldOutcome(Enum):
    HELD = "held"
    UNRECORDED = "unrecorded"


class ReconcileOutcome(Enum):
    UPDATED = "updated"
    OVERSOLD = "oversold"
    CONFLICT = "conflict"
    FAILED = "failed"


@ordering.value_object
class StockViolation:
    kind = String(required=True, choices=ViolationKind)
    product_id = Identifier(required=True)
    name = String(max_length=255)
    requested = Integer(min_value=0)
    available = Integer()
    message = String(max_length=500)

    @classmethod
    def out_of_stock(cls, item) -> "StockViolation":
        return cls(
            kind=ViolationKind.OUT_OF_STOCK.value,
            product_id=str(item.product_id),
            name=item.name,
            requested=item.quantity,
            available=0,
            message=f"{item.name} is out of stock.",
        )

    @classmethod
    def quantity_exceeded(cls, item, available: int) -> "StockViolation":
        return cls(
            kind=ViolationKind.QUANTITY_EXCEEDED.value,
            product_id=str(item.product_id),
            name=item.name,
            requested=item.quantity,
            available=available,
            message=f"Only {available} of {item.name} available, you have {item.quantity} in your cart.",
        )


@ordering.value_object
class StockReconciliation:
    """Per-item outcome of post-commit stock decrements."""

    updated = List(content_type=String(max_length=255))
    oversold = List(content_type=String(max_length=255))
    conflicts = List(content_type=String(max_length=255))
    failed = List(content_type=String(max_length=255))

    @property
    def ok(self) -> bool:
        return not (self.oversold or self.conflicts or self.failed)

    @property
    def is_partial_failure(self) -> bool:
        return not self.ok

    @property
    def problem_product_ids(self) -> list[str]:
        return [*self.oversold, *self.conflicts, *self.failed]


def _violation_for(item, available):
    if available is None:
        return None
    if available <= 0:
        return StockViolation.out_of_stock(item)
    if item.quantity > available:
        return StockViolation.quantity_exceeded(item, available)
    return None


@dataclass
class StockReservation:
    """Stock taken out of inventory ahead of the order commit.

    ``held`` maps product id to the quantity already decremented.
    ``unrecorded`` lists stock-tracked products the inventory has no
    record of; they are settled after the commit instead.
    """

    held: dict[str, int] = field(default_factory=dict)
    unrecorded: list[str] = field(default_factory=list)


class StockGuard:
    def __init__(self, inventory, timeout: float | None = None, max_attempts: int | None = None):
        self.inventory = inventory
        self.timeout = timeout if timeout is not None else float(setting("COLLABORATOR_TIMEOUT_SECONDS"))
        self.max_attempts = max_attempts or int(setting("STOCK_CAS_MAX_ATTEMPTS"))

    # -------------------------------------------------------------------
    # Pre-commit
    # -------------------------------------------------------------------
    def check_stock(self, cart) -> list[StockViolation]:
        """Validate the cart against its own stock snapshot. No I/O."""
        if not cart.is_grocery:
            return []
        violations = [_violation_for(item, item.stock_quantity) for item in cart.items if item.is_stock_tracked]
        return [v for v in violations if v is not None]

    async def check_live_stock(self, cart) -> list[StockViolation]:
        """Re-validate stock-tracked items against current inventory levels.

        Products the inventory has no record of fall back to the cart snapshot.
        """
        if not cart.is_grocery:
            return []
        tracked = [item for item in cart.items if item.is_stock_tracked]
        levels = await asyncio.gather(*(self._call(self.inventory.get_stock(str(i.product_id))) for i in tracked))

        violations = []
        for item, level in zip(tracked, levels):
            violation = _violation_for(item, item.stock_quantity if level is None else level)
            if violation is not None:
                violations.append(violation)
        return violations

    async def reserve_stock(self, cart) -> tuple[StockReservation, list[StockViolation]]:
        """Decrement stock for every stock-tracked item before the order is written.

        Each item is taken with a compare-and-set against the level just
        read, so two checkouts can never both take the last unit: the loser
        re-reads, sees the lower level and gets a violation. If any item
        cannot be taken, everything already taken is put back and the
        returned reservation is empty.

        Raises:
            ServiceUnavailable: if the inventory failed or kept changing.
        """
        if not cart.is_grocery:
            return StockReservation(), []
        tracked = [item for item in cart.items if item.is_stock_tracked]
        outcomes = await asyncio.gather(*(self._hold(item) for item in tracked), return_exceptions=True)

        reservation = StockReservation()
        violations, errors = [], []
        for item, outcome in zip(tracked, outcomes):
            if isinstance(outcome, BaseException):
                errors.append(outcome)
            elif isinstance(outcome, StockViolation):
                violations.append(outcome)
            elif outcome is HoldOutcome.HELD:
                reservation.held[str(item.product_id)] = item.quantity
            else:
                reservation.unrecorded.append(str(item.product_id))

        if not (errors or violations):
            logger.debug("stock_reserved", held=reservation.held, unrecorded=reservation.unrecorded)
            return reservation, []

        await self.release_stock(reservation)
        if errors:
            error = errors[0]
            if isinstance(error, ServiceUnavailable):
                raise error
            raise ServiceUnavailable("inventory", str(error) or type(error).__name__) from error
        return StockReservation(), violations

    async def release_stock(self, reservation: StockReservation) -> None:
        """Put back everything a reservation holds. Failures are logged, never raised."""
        if not reservation.held:
            return
        held = list(reservation.held.items())
        outcomes = await asyncio.gather(
            *(self._restore(product_id, quantity) for product_id, quantity in held),
            return_exceptions=True,
        )
        released = []
        for (product_id, quantity), outcome in zip(held, outcomes):
            if outcome is True:
                released.append(product_id)
                continue
            logger.error(
                "stock_release_failed",
                product_id=product_id,
                quantity=quantity,
                error=str(outcome) if isinstance(outcome, BaseException) else "write conflicts",
            )
        logger.info("stock_released", products=released)
        reservation.held.clear()

    # -------------------------------------------------------------------
    # Post-commit
    # -------------------------------------------------------------------
    async def confirm_stock(self, reservation: StockReservation, committed_items) -> StockReconciliation:
        """Settle stock for a committed order.

        Held items were already decremented. Stock-tracked items the
        reservation could not hold are decremented now through
        ``reconcile_stock``.
        """
        leftover = [
            item
            for item in committed_items
            if item.stock_quantity is not None and str(item.product_id) not in reservation.held
        ]
        report = await self.reconcile_stock(leftover) if leftover else StockReconciliation()
        return StockReconciliation(
            updated=[*reservation.held, *(report.updated or [])],
            oversold=report.oversold or [],
            conflicts=report.conflicts or [],
            failed=report.failed or [],
        )

    async def reconcile_stock(self, committed_items) -> StockReconciliation:
        """Decrement stock for every stock-tracked committed item.

        All items are processed concurrently and every one is allowed to
        settle; one item's failure never cancels another's write.
        """
        items = [item for item in committed_items if item.stock_quantity is not None]
        outcomes = await asyncio.gather(
            *(self._decrement(str(item.product_id), item.quantity) for item in items),
            return_exceptions=True,
        )

        buckets = {outcome: [] for outcome in ReconcileOutcome}
        for item, outcome in zip(items, outcomes):
            product_id = str(item.product_id)
            if isinstance(outcome, BaseException):
                logger.error(
                    "stock_reconciliation_write_failed",
                    product_id=product_id,
                    error=str(outcome) or type(outcome).__name__,
                )
                buckets[ReconcileOutcome.FAILED].append(product_id)
            else:
                buckets[outcome].append(product_id)

        report = StockReconciliation(
            updated=buckets[ReconcileOutcome.UPDATED],
            oversold=buckets[ReconcileOutcome.OVERSOLD],
            conflicts=buckets[ReconcileOutcome.CONFLICT],
            failed=buckets[ReconcileOutcome.FAILED],
        )
        if report.ok:
            logger.debug("stock_reconciled", products=report.updated)
        else:
            logger.error(
                "stock_reconciliation_partial_failure",
                updated=report.updated,
                oversold=report.oversold,
                conflicts=report.conflicts,
                failed=report.failed,
            )
        return report

    # -------------------------------------------------------------------
    # Compare-and-set loops
    # -------------------------------------------------------------------
    async def _hold(self, item):
        product_id = str(item.product_id)
        for attempt in range(1, self.max_attempts + 1):
            current = await self._call(self.inventory.get_stock(product_id))
            if current is None:
                return HoldOutcome.UNRECORDED

            violation = _violation_for(item, current)
            if violation is not None:
                return violation
            if await self._call(self.inventory.compare_and_set(product_id, current, current - item.quantity)):
                return HoldOutcome.HELD

            logger.info("stock_write_conflict", product_id=product_id, attempt=attempt)

        raise ServiceUnavailable("inventory", f"Stock for {product_id} kept changing, please try again")

    async def _restore(self, product_id: str, quantity: int) -> bool:
        for _ in range(self.max_attempts):
            current = await self._call(self.inventory.get_stock(product_id))
            if current is None:
                raise LookupError(f"No inventory record for {product_id}")
            if await self._call(self.inventory.compare_and_set(product_id, current, current + quantity)):
                return True
        return False

    async def _decrement(self, product_id: str, quantity: int) -> ReconcileOutcome:
        for attempt in range(1, self.max_attempts + 1):
            current = await self._call(self.inventory.get_stock(product_id))
            if current is None:
                raise LookupError(f"No inventory record for {product_id}")

            new_stock = max(0, current - quantity)
            if await self._call(self.inventory.compare_and_set(product_id, current, new_stock)):
                if current < quantity:
                    logger.warning("stock_oversold", product_id=product_id, stock=current, purchased=quantity)
                    return ReconcileOutcome.OVERSOLD
                return ReconcileOutcome.UPDATED

            logger.info("stock_write_conflict", product_id=product_id, attempt=attempt)

        logger.warning("stock_write_conflict_retries_exhausted", product_id=product_id, attempts=self.max_attempts)
        return ReconcileOutcome.CONFLICT

    async def _call(self, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except ServiceUnavailable:
            raise
        except TimeoutError as exc:
            raise ServiceUnavailable("inventory", "Inventory did not respond in time") from exc
        except Exception as exc:
            raise ServiceUnavailable("inventory", str(exc) or type(exc).__name__) from exc
