import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models.cart import Cart
from storefront.models.cart_item import CartItem
from storefront.models.product import Product

log = logging.getLogger("storefront.cart")


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_owner(self, owner_kind: str, owner_id: int) -> Optional[Cart]:
        return (
            self.db.query(Cart)
            .filter(Cart.owner_kind == owner_kind, Cart.owner_id == owner_id)
            .first()
        )

    def get_or_create(self, owner_kind: str, owner_id: int) -> Cart:
        """
        Return the owner's cart, inserting it when missing.

        The insert runs in a short-lived session and commits at once so the
        row is visible to concurrent requests. A concurrent creator that wins
        the race makes our insert fail on the (owner_kind, owner_id) unique
        constraint; that IntegrityError just means "read it back".
        """
        cart = self.get_by_owner(owner_kind, owner_id)
        if cart:
            return cart
        try:
            with Session(bind=self.db.get_bind()) as s:
                s.add(Cart(owner_kind=owner_kind, owner_id=owner_id))
                s.commit()
        except IntegrityError:
            log.debug(f"get_or_create(): cart for {owner_kind}:{owner_id} created concurrently")
        cart = self.get_by_owner(owner_kind, owner_id)
        if cart is None:
            raise RuntimeError(f"Cart for {owner_kind}:{owner_id} missing after insert")
        return cart

    def get_item(self, item_id: int, cart_id: Optional[int] = None) -> Optional[CartItem]:
        qry = self.db.query(CartItem).populate_existing().filter(CartItem.id == item_id)
        if cart_id is not None:
            qry = qry.filter(CartItem.cart_id == cart_id)
        return qry.first()

    def get_item_by_product(self, cart_id: int, product_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .populate_existing()
            .filter(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .first()
        )

    def increment_item(
        self, cart_id: int, product_id: int, quantity: int, notes: Optional[str] = None
    ) -> Optional[CartItem]:
        """Add ``quantity`` to an existing line in one statement; None when there is no line yet."""
        values = {
            "quantity": CartItem.quantity + quantity,
            "updated_at": datetime.now(timezone.utc),
        }
        if notes:
            values["custom_notes"] = notes
        res = self.db.execute(
            update(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            return None
        return self.get_item_by_product(cart_id, product_id)

    def add_item(
        self, cart_id: int, product_id: int, quantity: int, notes: Optional[str] = None
    ) -> CartItem:
        item = CartItem(
            cart_id=cart_id, product_id=product_id, quantity=quantity, custom_notes=notes
        )
        self.db.add(item)
        self.db.flush()
        return item

    def update_item(
        self, item: CartItem, quantity: int, notes: Optional[str] = None
    ) -> CartItem:
        item.quantity = quantity
        if notes is not None:
            item.custom_notes = notes
        self.db.flush()
        return item

    def delete_item(self, item_id: int, cart_id: Optional[int] = None) -> bool:
        qry = self.db.query(CartItem).filter(CartItem.id == item_id)
        if cart_id is not None:
            qry = qry.filter(CartItem.cart_id == cart_id)
        deleted = qry.delete(synchronize_session=False)
        return deleted > 0

    def list_items(self, cart_id: int) -> List[Tuple[CartItem, Product]]:
        return (
            self.db.query(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .filter(CartItem.cart_id == cart_id)
            .order_by(CartItem.id)
            .all()
        )

    def clear(self, cart_id: int) -> int:
        return (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart_id)
            .delete(synchronize_session=False)
        )
