"""Shared BDD fixtures for the Ordering domain."""

import pytest
from ordering.cart.cart import Cart
from pytest_bdd import given


@pytest.fixture()
def error():
    """Container for capturing exceptions in When steps."""
    return {"exc": None}


@given("an empty cart", target_fixture="cart")
def empty_cart():
    return Cart.create(user_id="user-bdd")
