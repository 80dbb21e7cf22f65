import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

log = logging.getLogger("storefront.cart")


class CartException(Exception):
    pass


class InvalidQuantity(CartException):
    pass


class ItemNotFound(CartException):
    pass


class ProductNotFound(CartException):
    pass


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity("Quantity must be a positive integer")
    return quantity


class CartService:
    def __init__(self, uow):
        self.uow = uow

    def get_or_create_cart(self, owner):
        kind, owner_id = owner.owner_key
        return self.uow.carts.get_or_create(kind, owner_id)

    def get_cart(self, owner):
        kind, owner_id = owner.owner_key
        return self.uow.carts.get_by_owner(kind, owner_id)

    def add_item(
        self, cart_id: int, product_id: int, quantity: int, notes: Optional[str] = None
    ):
        """
        Merge into the cart's line for ``product_id`` (quantities add up) or
        insert a new line. Notes replace the stored ones only when non-empty.
        """
        _check_quantity(quantity)
        if self.uow.products.get_active(product_id) is None:
            raise ProductNotFound(f"Product {product_id} not found")

        # two first-time adds can both miss the merge and race on the insert;
        # the loser's unique violation is retried once as a merge
        for attempt in (1, 2):
            try:
                with self.uow.transaction():
                    item = self.uow.carts.increment_item(cart_id, product_id, quantity, notes)
                    if item is None:
                        item = self.uow.carts.add_item(
                            cart_id, product_id, quantity, notes or None
                        )
                return item
            except IntegrityError:
                if attempt == 2:
                    raise
                log.info(f"concurrent insert for cart {cart_id} product {product_id}; merging")

    def update_item(
        self,
        cart_item_id: int,
        quantity: int,
        notes: Optional[str] = None,
        cart_id: Optional[int] = None,
    ):
        _check_quantity(quantity)
        with self.uow.transaction():
            item = self.uow.carts.get_item(cart_item_id, cart_id=cart_id)
            if not item:
                raise ItemNotFound(f"Cart item {cart_item_id} not found")
            item = self.uow.carts.update_item(item, quantity, notes)
        return item

    def remove_item(self, cart_item_id: int, cart_id: Optional[int] = None) -> bool:
        with self.uow.transaction():
            removed = self.uow.carts.delete_item(cart_item_id, cart_id=cart_id)
        if not removed:
            log.debug(f"remove_item(): cart item {cart_item_id} already gone")
        return removed

    def list_items(self, cart_id: int):
        return self.uow.carts.list_items(cart_id)

    def clear(self, cart_id: int) -> bool:
        with self.uow.transaction():
            self.uow.carts.clear(cart_id)
        return True

    def view_cart(self, owner) -> dict:
        cart = self.get_cart(owner)
        if not cart:
            return {"cart_id": None, "items": [], "total_cents": 0}
        rows = self.list_items(cart.id)
        return {
            "cart_id": cart.id,
            "items": rows,
            "total_cents": sum(it.quantity * p.price_cents for it, p in rows),
        }
