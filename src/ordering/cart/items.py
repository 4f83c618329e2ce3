"""Cart item management — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart, OrderType
from ordering.domain import ordering


@ordering.command(part_of="Cart")
class AddToCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    order_type = String(required=True, choices=OrderType)
    quantity = Integer(default=1, min_value=1)
    restaurant_id = Identifier()
    category = String(max_length=100)
    unit = String(max_length=50)
    display_quantity = String(max_length=50)
    stock_quantity = Integer()


@ordering.command(part_of="Cart")
class SetCartQuantity:
    """Set an item's quantity; zero or less removes it."""

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.add_item(
            product_id=command.product_id,
            name=command.name,
            price=command.price,
            order_type=command.order_type,
            quantity=command.quantity,
            restaurant_id=command.restaurant_id,
            category=command.category,
            unit=command.unit,
            display_quantity=command.display_quantity,
            stock_quantity=command.stock_quantity,
        )
        repo.add(cart)

    @handle(SetCartQuantity)
    def set_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.set_quantity(product_id=command.product_id, quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.remove_item(product_id=command.product_id)
        repo.add(cart)
