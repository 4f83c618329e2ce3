"""Checkout failure taxonomy.

Failures that end a checkout attempt are returned as ``CheckoutFailure``
values rather than raised. The exception classes below mark trouble at a
collaborator boundary (settings, inventory, order store) and are translated
into failures by the orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum


class FailureKind(Enum):
    VALIDATION = "validation"
    CONFIG_UNAVAILABLE = "config_unavailable"
    SERVICE_UNAVAILABLE = "service_unavailable"
    COMMIT_FAILURE = "commit_failure"
    RECONCILIATION_FAILURE = "reconciliation_failure"
    CART_PERSISTENCE_FAILURE = "cart_persistence_failure"


class FailureCode(Enum):
    EMPTY_CART = "empty_cart"
    SIGN_IN_REQUIRED = "sign_in_required"
    ADDRESS_REQUIRED = "address_required"
    ADDRESS_INCOMPLETE = "address_incomplete"
    DELIVERY_UNAVAILABLE = "delivery_unavailable"
    MINIMUM_ORDER_NOT_MET = "minimum_order_not_met"
    OUT_OF_STOCK = "out_of_stock"
    SERVICE_UNAVAILABLE = "service_unavailable"
    COMMIT_FAILED = "commit_failed"
    INVENTORY_UPDATE_FAILED = "inventory_update_failed"
    CART_NOT_CLEARED = "cart_not_cleared"


class NextStep(Enum):
    """Where the user should go to fix the problem."""

    SIGN_IN = "sign_in"
    ADDRESS = "address"
    CART = "cart"
    SHOP = "shop"
    MENU = "menu"
    RETRY = "retry"
    SUPPORT = "support"


_RETRYABLE = frozenset({FailureKind.SERVICE_UNAVAILABLE, FailureKind.COMMIT_FAILURE})


@dataclass(frozen=True)
class CheckoutFailure:
    """A user-facing reason a checkout did not (fully) succeed."""

    kind: FailureKind
    code: FailureCode
    reasons: tuple[str, ...]
    next_step: NextStep | None = None
    details: dict = field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE

    @property
    def message(self) -> str:
        return " ".join(self.reasons)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": self.code.value,
            "reasons": list(self.reasons),
            "nextStep": self.next_step.value if self.next_step else None,
            "retryable": self.retryable,
            "details": dict(self.details),
        }

    @classmethod
    def validation(cls, code, *reasons, next_step=None, **details) -> "CheckoutFailure":
        return cls(FailureKind.VALIDATION, code, tuple(reasons), next_step, details)

    @classmethod
    def service_unavailable(cls, collaborator: str) -> "CheckoutFailure":
        return cls(
            FailureKind.SERVICE_UNAVAILABLE,
            FailureCode.SERVICE_UNAVAILABLE,
            ("We're having trouble reaching our servers. Please try again in a moment.",),
            NextStep.RETRY,
            {"collaborator": collaborator},
        )

    @classmethod
    def commit_failed(cls) -> "CheckoutFailure":
        return cls(
            FailureKind.COMMIT_FAILURE,
            FailureCode.COMMIT_FAILED,
            ("We couldn't place your order. Please try again.",),
            NextStep.RETRY,
        )

    @classmethod
    def reconciliation_failed(cls, order_id: str, product_ids) -> "CheckoutFailure":
        return cls(
            FailureKind.RECONCILIATION_FAILURE,
            FailureCode.INVENTORY_UPDATE_FAILED,
            (f"Your order {order_id} was placed, but the inventory update failed. Please contact support.",),
            NextStep.SUPPORT,
            {"order_id": order_id, "product_ids": sorted(product_ids)},
        )

    @classmethod
    def cart_not_cleared(cls, order_id: str) -> "CheckoutFailure":
        return cls(
            FailureKind.CART_PERSISTENCE_FAILURE,
            FailureCode.CART_NOT_CLEARED,
            (
                f"Your order {order_id} was placed, but your cart could not be emptied. "
                "Please clear it before ordering again.",
            ),
            NextStep.CART,
            {"order_id": order_id},
        )


class CheckoutError(Exception):
    """Base class for collaborator-boundary errors in checkout."""


class ConfigUnavailable(CheckoutError):
    """The settings store could not be read."""


class ServiceUnavailable(CheckoutError):
    """A collaborator did not answer in time or is down."""

    def __init__(self, collaborator: str, message: str | None = None):
        self.collaborator = collaborator
        super().__init__(message or f"{collaborator} is unavailable")


class CommitFailure(CheckoutError):
    """The order store rejected or lost the order write."""

