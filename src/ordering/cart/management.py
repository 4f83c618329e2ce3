"""Cart management — commands and handler.

Handles cart creation and emptying.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart, ClearReason
from ordering.domain import ordering


@ordering.command(part_of="Cart")
class CreateCart:
    """Create a new, unbound cart for a user."""

    user_id = Identifier()


@ordering.command(part_of="Cart")
class ClearCart:
    """Drop every item and release the cart's order type and restaurant."""

    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(user_id=command.user_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.clear(ClearReason.MANUAL)
        repo.add(cart)
