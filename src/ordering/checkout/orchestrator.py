"""Checkout orchestrator — turns a cart and an address into a committed order.

One attempt walks a fixed sequence of stages and stops at the first failure:

    CollectInputs -> RequireUser -> ResolveZone -> ComputePricing
    -> ValidateMinimumOrder -> ValidateAddress -> ValidateStock
    -> AssembleOrder -> ReserveStock -> CommitOrder -> ReconcileStock

Stages before ReserveStock are read-only. ReserveStock takes grocery stock
out of inventory with compare-and-set writes, so two checkouts racing for
the last unit cannot both pass it. If the commit fails, the held stock is
put back, leaving the cart, the inventory and the order store as they
were. Once the order write succeeds the checkout has succeeded: a stock
problem after that point is reported on the result but never undoes the
order.
"""

import asyncio
import uuid
from dataclasses import dataclass, field

import structlog

from ordering.cart.cart import ClearReason, OrderType
from ordering.checkout.errors import (
    CheckoutFailure,
    FailureCode,
    NextStep,
    ServiceUnavailable,
)
from ordering.delivery.resolver import ZoneResolver
from ordering.delivery.settings import DeliverySettings, load_settings
from ordering.delivery.zone import ZoneMatch
from ordering.order.order import Order
from ordering.pricing.engine import PricingBreakdown, PricingEngine
from ordering.pricing.minimum_order import MinimumOrderValidator, MinOrderValidation
from ordering.stock.guard import StockGuard, StockReconciliation, StockReservation
from ordering.utils.config import setting
from ordering.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

_CONTEXT_KEYS = ("checkout_id", "cart_id", "order_type")

_FIELD_LABELS = {
    "name": "name",
    "street": "street",
    "city": "city",
    "state": "state",
    "zip_code": "PIN code",
    "phone": "phone number",
}


@dataclass
class CheckoutResult:
    """Outcome of one checkout attempt.

    ``order`` is set only when the order was committed. ``warning`` carries a
    post-commit problem (stock reconciliation) that does not undo the order.
    """

    cart: object
    order: Order | None = None
    order_id: str | None = None
    pricing: PricingBreakdown | None = None
    zone_match: ZoneMatch | None = None
    min_order: MinOrderValidation | None = None
    reconciliation: StockReconciliation | None = None
    failure: CheckoutFailure | None = None
    warning: CheckoutFailure | None = None
    degraded: bool = False

    @property
    def succeeded(self) -> bool:
        return self.failure is None and self.order_id is not None


@dataclass
class CheckoutPreview:
    """What checkout would decide right now, without touching stock or orders."""

    zone_match: ZoneMatch | None = None
    pricing: PricingBreakdown | None = None
    min_order: MinOrderValidation | None = None
    blocking: list[CheckoutFailure] = field(default_factory=list)
    degraded: bool = False

    @property
    def can_checkout(self) -> bool:
        return not self.blocking

    @property
    def reasons(self) -> list[str]:
        return [reason for failure in self.blocking for reason in failure.reasons]


@dataclass
class _Attempt:
    cart: object
    address: object
    user_id: object = None
    settings: DeliverySettings | None = None
    degraded: bool = False
    zone_match: ZoneMatch | None = None
    pricing: PricingBreakdown | None = None
    min_order: MinOrderValidation | None = None
    order: Order | None = None
    order_id: str | None = None
    reservation: StockReservation | None = None
    reconciliation: StockReconciliation | None = None
    warning: CheckoutFailure | None = None


def _shop_step(order_type) -> NextStep:
    if order_type == OrderType.FOOD.value:
        return NextStep.MENU
    return NextStep.SHOP


def _place_label(address) -> str:
    for part in (address.village_town, address.city, address.zip_code):
        if part and str(part).strip():
            return str(part).strip()
    return "this address"


class CheckoutOrchestrator:
    """Runs checkout attempts against the settings, inventory and order collaborators."""

    def __init__(self, settings_store, inventory, order_store, timeout: float | None = None):
        self.settings_store = settings_store
        self.inventory = inventory
        self.order_store = order_store
        self.timeout = timeout if timeout is not None else float(setting("COLLABORATOR_TIMEOUT_SECONDS"))
        self.stock_guard = StockGuard(inventory, timeout=self.timeout)
        self.min_order_validator = MinimumOrderValidator()

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def checkout(self, cart, address=None, user_id=None) -> CheckoutResult:
        """Run one checkout attempt for a signed-in user.

        ``user_id`` defaults to the cart owner.

        On success the cart passed in is emptied and returned on the result
        alongside the committed order. On failure nothing is modified.
        """
        attempt = _Attempt(cart=cart, address=address, user_id=user_id or cart.user_id)
        add_context(checkout_id=str(uuid.uuid4()), cart_id=str(cart.id), order_type=cart.order_type)
        try:
            failure = await self._run(attempt)
            if failure is None:
                cart.clear(ClearReason.CHECKED_OUT)
                logger.info(
                    "checkout_succeeded",
                    order_id=attempt.order_id,
                    grand_total=attempt.pricing.grand_total,
                    zone=attempt.zone_match.zone.name,
                    reconciliation_ok=attempt.reconciliation is None or attempt.reconciliation.ok,
                )
        finally:
            clear_context(*_CONTEXT_KEYS)

        result = self._result(attempt)
        result.failure = failure
        return result

    async def preview(self, cart, address=None) -> CheckoutPreview:
        """Evaluate everything up to address validation and collect every blocking reason."""
        attempt = _Attempt(cart=cart, address=address)
        preview = CheckoutPreview()

        failure = self._collect_inputs(attempt)
        if failure is not None and failure.code == FailureCode.EMPTY_CART:
            preview.blocking.append(failure)
            return preview

        await self._load_settings(attempt)
        preview.degraded = attempt.degraded
        if address is not None:
            self._resolve_zone(attempt)
        preview.zone_match = attempt.zone_match

        self._compute_pricing(attempt)
        preview.pricing = attempt.pricing

        min_order_failure = self._validate_minimum_order(attempt)
        preview.min_order = attempt.min_order

        if failure is not None:
            preview.blocking.append(failure)
        else:
            address_failure = self._validate_address(attempt)
            if address_failure is not None:
                preview.blocking.append(address_failure)
        if min_order_failure is not None:
            preview.blocking.append(min_order_failure)
        return preview

    # -------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------
    async def _run(self, attempt: _Attempt) -> CheckoutFailure | None:
        failure = self._collect_inputs(attempt)
        if failure is not None:
            return self._fail("collect_inputs", failure)

        failure = self._require_user(attempt)
        if failure is not None:
            return self._fail("require_user", failure)

        await self._load_settings(attempt)

        for stage, step in (
            ("resolve_zone", self._resolve_zone),
            ("compute_pricing", self._compute_pricing),
            ("validate_minimum_order", self._validate_minimum_order),
            ("validate_address", self._validate_address),
        ):
            failure = step(attempt)
            if failure is not None:
                return self._fail(stage, failure)
            logger.debug("checkout_stage_passed", stage=stage)

        for stage, step in (
            ("validate_stock", self._validate_stock),
            ("assemble_order", self._assemble_order),
            ("reserve_stock", self._reserve_stock),
            ("commit_order", self._commit_order),
            ("reconcile_stock", self._reconcile_stock),
        ):
            failure = await step(attempt)
            if failure is not None:
                return self._fail(stage, failure)
            logger.debug("checkout_stage_passed", stage=stage)
        return None

    def _collect_inputs(self, attempt: _Attempt) -> CheckoutFailure | None:
        if attempt.cart.is_empty:
            return CheckoutFailure.validation(FailureCode.EMPTY_CART, "Your cart is empty", next_step=NextStep.SHOP)
        if attempt.address is None:
            return CheckoutFailure.validation(
                FailureCode.ADDRESS_REQUIRED,
                "Please select a delivery address",
                next_step=NextStep.ADDRESS,
            )
        return None

    def _require_user(self, attempt: _Attempt) -> CheckoutFailure | None:
        if attempt.user_id:
            return None
        return CheckoutFailure.validation(
            FailureCode.SIGN_IN_REQUIRED,
            "Please sign in to place your order",
            next_step=NextStep.SIGN_IN,
        )

    async def _load_settings(self, attempt: _Attempt) -> None:
        attempt.settings, attempt.degraded = await load_settings(self.settings_store, timeout=self.timeout)
        if attempt.degraded:
            logger.warning("checkout_using_default_settings")

    def _resolve_zone(self, attempt: _Attempt) -> None:
        address = attempt.address
        if not address.has_location:
            attempt.zone_match = ZoneMatch.none()
            return None
        attempt.zone_match = ZoneResolver.from_settings(attempt.settings).resolve(
            zip_code=address.zip_code,
            city=address.city,
            village_town=address.village_town,
        )
        return None

    def _compute_pricing(self, attempt: _Attempt) -> None:
        engine = PricingEngine(attempt.settings, degraded=attempt.degraded)
        attempt.pricing = engine.price(attempt.cart, attempt.zone_match)
        return None

    def _validate_minimum_order(self, attempt: _Attempt) -> CheckoutFailure | None:
        attempt.min_order = self.min_order_validator.validate_for_zone(
            attempt.cart.order_type,
            attempt.pricing.items_total,
            attempt.settings,
            attempt.zone_match,
        )
        # An unserviceable address is reported instead of the shortfall
        if attempt.min_order.valid or not self._zone_resolved(attempt):
            return None
        return CheckoutFailure.validation(
            FailureCode.MINIMUM_ORDER_NOT_MET,
            attempt.min_order.message,
            next_step=_shop_step(attempt.cart.order_type),
            min_value=attempt.min_order.min_value,
            short_by=attempt.min_order.short_by,
        )

    def _validate_address(self, attempt: _Attempt) -> CheckoutFailure | None:
        address = attempt.address
        missing = address.missing_fields()
        if missing:
            labels = ", ".join(_FIELD_LABELS[name] for name in missing)
            return CheckoutFailure.validation(
                FailureCode.ADDRESS_INCOMPLETE,
                f"Please complete your delivery address: {labels} missing.",
                next_step=NextStep.ADDRESS,
                missing_fields=missing,
            )
        if not self._zone_resolved(attempt):
            return CheckoutFailure.validation(
                FailureCode.DELIVERY_UNAVAILABLE,
                f"Delivery is not available to {_place_label(address)} yet.",
                next_step=NextStep.ADDRESS,
            )
        return None

    async def _validate_stock(self, attempt: _Attempt) -> CheckoutFailure | None:
        violations = self.stock_guard.check_stock(attempt.cart)
        if not violations:
            try:
                violations = await self.stock_guard.check_live_stock(attempt.cart)
            except ServiceUnavailable as exc:
                logger.warning("inventory_unavailable", error=str(exc))
                return CheckoutFailure.service_unavailable(exc.collaborator)

        if not violations:
            return None
        return CheckoutFailure.validation(
            FailureCode.OUT_OF_STOCK,
            *(violation.message for violation in violations),
            next_step=NextStep.CART,
            product_ids=[str(violation.product_id) for violation in violations],
        )

    async def _assemble_order(self, attempt: _Attempt) -> None:
        attempt.order = Order.place(
            attempt.cart,
            attempt.address,
            attempt.pricing,
            attempt.zone_match,
            user_id=attempt.user_id,
        )
        return None

    async def _reserve_stock(self, attempt: _Attempt) -> CheckoutFailure | None:
        try:
            attempt.reservation, violations = await self.stock_guard.reserve_stock(attempt.cart)
        except ServiceUnavailable as exc:
            logger.warning("inventory_unavailable", error=str(exc))
            return CheckoutFailure.service_unavailable(exc.collaborator)

        if not violations:
            return None
        return CheckoutFailure.validation(
            FailureCode.OUT_OF_STOCK,
            *(violation.message for violation in violations),
            next_step=NextStep.CART,
            product_ids=[str(violation.product_id) for violation in violations],
        )

    async def _commit_order(self, attempt: _Attempt) -> CheckoutFailure | None:
        try:
            attempt.order_id = await asyncio.wait_for(self.order_store.add(attempt.order), timeout=self.timeout)
        except TimeoutError:
            logger.warning("order_commit_timed_out", order_id=str(attempt.order.id), timeout=self.timeout)
        except Exception as exc:
            logger.warning("order_commit_failed", order_id=str(attempt.order.id), error=str(exc))
        else:
            return None

        if attempt.reservation is not None:
            await self.stock_guard.release_stock(attempt.reservation)
        return CheckoutFailure.commit_failed()

    async def _reconcile_stock(self, attempt: _Attempt) -> None:
        if attempt.cart.order_type != OrderType.GROCERY.value:
            return None

        attempt.reconciliation = await self.stock_guard.confirm_stock(
            attempt.reservation or StockReservation(), attempt.order.items
        )
        if attempt.reconciliation.is_partial_failure:
            attempt.warning = CheckoutFailure.reconciliation_failed(
                attempt.order_id, attempt.reconciliation.problem_product_ids
            )
        return None

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _zone_resolved(attempt: _Attempt) -> bool:
        return attempt.zone_match is not None and attempt.zone_match.matched

    @staticmethod
    def _fail(stage: str, failure: CheckoutFailure) -> CheckoutFailure:
        log = logger.warning if failure.retryable else logger.info
        log("checkout_failed", stage=stage, code=failure.code.value, reasons=list(failure.reasons))
        return failure

    @staticmethod
    def _result(attempt: _Attempt) -> CheckoutResult:
        return CheckoutResult(
            cart=attempt.cart,
            order=attempt.order if attempt.order_id is not None else None,
            order_id=attempt.order_id,
            pricing=attempt.pricing,
            zone_match=attempt.zone_match,
            min_order=attempt.min_order,
            reconciliation=attempt.reconciliation,
            warning=attempt.warning,
            degraded=attempt.degraded,
        )
