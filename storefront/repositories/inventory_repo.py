from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.models.inventory import Inventory
from storefront.models.product import Product


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InventoryRepository:
    """
    Stock rows. Quantity changes are single conditional UPDATE statements so
    the store, not application code, decides whether a decrement fits.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[Inventory]:
        return (
            self.db.query(Inventory)
            .populate_existing()
            .filter(Inventory.product_id == product_id)
            .first()
        )

    def decrement(self, product_id: int, quantity: int) -> bool:
        res = self.db.execute(
            update(Inventory)
            .where(Inventory.product_id == product_id, Inventory.quantity >= quantity)
            .values(quantity=Inventory.quantity - quantity, last_updated=_now())
            .execution_options(synchronize_session=False)
        )
        return res.rowcount > 0

    def increment(self, product_id: int, quantity: int) -> bool:
        res = self.db.execute(
            update(Inventory)
            .where(Inventory.product_id == product_id)
            .values(quantity=Inventory.quantity + quantity, last_updated=_now())
            .execution_options(synchronize_session=False)
        )
        return res.rowcount > 0

    def create(
        self, product_id: int, quantity: int, cost_price_cents: Optional[int] = None
    ) -> Inventory:
        inv = Inventory(
            product_id=product_id,
            quantity=quantity,
            cost_price_cents=cost_price_cents,
            last_updated=_now(),
        )
        self.db.add(inv)
        self.db.flush()
        return inv

    def list_with_products(self) -> List[Tuple[Inventory, Product]]:
        return (
            self.db.query(Inventory, Product)
            .join(Product, Inventory.product_id == Product.id)
            .order_by(Product.name)
            .all()
        )
