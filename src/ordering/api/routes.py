"""FastAPI routes for the Ordering domain — carts, checkout, orders and delivery zones."""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    CartIdResponse,
    CheckoutPreviewResponse,
    CheckoutRequest,
    CheckoutResponse,
    CreateCartRequest,
    OrderListResponse,
    SetCartQuantityRequest,
    StatusResponse,
    ZoneMatchResponse,
)
from ordering.cart.cart import Cart, ClearReason
from ordering.cart.items import AddToCart, RemoveFromCart, SetCartQuantity
from ordering.cart.management import ClearCart, CreateCart
from ordering.checkout.errors import CheckoutFailure, FailureKind
from ordering.checkout.orchestrator import CheckoutOrchestrator
from ordering.delivery.resolver import ZoneResolver
from ordering.delivery.settings import load_settings
from ordering.delivery.settings_store import get_settings_store
from ordering.delivery.zone import MatchType
from ordering.order.order import Address
from ordering.order.store import get_order_store
from ordering.stock.inventory import get_inventory

logger = structlog.get_logger(__name__)


def _orchestrator() -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        settings_store=get_settings_store(),
        inventory=get_inventory(),
        order_store=get_order_store(),
    )


def _address(body: CheckoutRequest) -> Address | None:
    if body.address is None:
        return None
    return Address.from_document(body.address.model_dump())


def _persist_checked_out_cart(repo, cart, order_id: str) -> CheckoutFailure | None:
    """Save the emptied cart after the order is committed.

    The order already exists, so a failed save is retried once against a
    freshly loaded cart and then reported as a warning, never raised.
    """
    try:
        repo.add(cart)
        return None
    except Exception as exc:
        logger.error("checked_out_cart_save_failed", cart_id=str(cart.id), order_id=order_id, error=str(exc))

    try:
        fresh = repo.get(cart.id)
        fresh.clear(ClearReason.CHECKED_OUT)
        repo.add(fresh)
    except Exception as exc:
        logger.error("checked_out_cart_not_cleared", cart_id=str(cart.id), order_id=order_id, error=str(exc))
        return CheckoutFailure.cart_not_cleared(order_id)
    return None


def _zone_document(zone_match) -> dict | None:
    if zone_match is None or not zone_match.matched:
        return None
    return {**zone_match.zone.to_document(), "matchType": zone_match.match_type}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(user_id=body.user_id)
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.post("/{cart_id}/items", response_model=StatusResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> StatusResponse:
    command = AddToCart(cart_id=cart_id, **body.model_dump())
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/items/{product_id}", response_model=StatusResponse)
async def set_cart_item_quantity(cart_id: str, product_id: str, body: SetCartQuantityRequest) -> StatusResponse:
    command = SetCartQuantity(
        cart_id=cart_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{product_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, product_id: str) -> StatusResponse:
    command = RemoveFromCart(
        cart_id=cart_id,
        product_id=product_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/clear", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    command = ClearCart(cart_id=cart_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
@cart_router.post("/{cart_id}/checkout/preview", response_model=CheckoutPreviewResponse)
async def preview_checkout(cart_id: str, body: CheckoutRequest) -> CheckoutPreviewResponse:
    cart = current_domain.repository_for(Cart).get(cart_id)
    preview = await _orchestrator().preview(cart, _address(body))

    return CheckoutPreviewResponse(
        can_checkout=preview.can_checkout,
        zone=_zone_document(preview.zone_match),
        pricing=preview.pricing.display() if preview.pricing else None,
        min_order=preview.min_order.to_document() if preview.min_order else None,
        reasons=preview.reasons,
        blocking=[failure.to_dict() for failure in preview.blocking],
        degraded=preview.degraded,
    )


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=CheckoutResponse)
async def checkout_cart(cart_id: str, body: CheckoutRequest):
    """Place a cash-on-delivery order for the cart.

    1. Load the cart
    2. Run the checkout pipeline (validation, commit, stock reconciliation)
    3. Persist the emptied cart once the order is committed

    ``user_id`` in the body places the order for that user; otherwise the
    cart owner is used and a cart without an owner is refused.
    """
    repo = current_domain.repository_for(Cart)
    cart = repo.get(cart_id)

    result = await _orchestrator().checkout(cart, _address(body), user_id=body.user_id)
    if not result.succeeded:
        status_code = 422 if result.failure.kind == FailureKind.VALIDATION else 503
        return JSONResponse(status_code=status_code, content={"error": result.failure.to_dict()})

    cart_warning = _persist_checked_out_cart(repo, result.cart, result.order_id)
    warning = result.warning or cart_warning
    return CheckoutResponse(
        order_id=result.order_id,
        order=result.order.to_document(),
        pricing=result.pricing.display(),
        warning=warning.to_dict() if warning else None,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(user_id: str) -> OrderListResponse:
    orders = await get_order_store().list_for_user(user_id)
    return OrderListResponse(user_id=user_id, orders=orders)


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/delivery", tags=["delivery"])


@delivery_router.get("/zones/match", response_model=ZoneMatchResponse)
async def match_zone(
    zip_code: str | None = None,
    city: str | None = None,
    village_town: str | None = None,
) -> ZoneMatchResponse:
    settings, _ = await load_settings(get_settings_store())
    resolver = ZoneResolver.from_settings(settings)
    match = resolver.resolve(zip_code=zip_code, city=city, village_town=village_town)

    return ZoneMatchResponse(
        available=resolver.is_delivery_available(zip_code, city, village_town),
        zone_name=resolver.zone_name_for(zip_code, city, village_town),
        delivery_time=resolver.delivery_time_for(zip_code, city, village_town),
        match_type=match.match_type if match.matched else MatchType.NONE.value,
        zone=_zone_document(match),
    )
