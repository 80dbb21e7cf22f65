from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from storefront.models.order import Order, OrderItem


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        owner_kind: str,
        owner_id: int,
        total_cents: int,
        shipping_address: str,
        payment_method: str,
    ) -> Order:
        order = Order(
            owner_kind=owner_kind,
            owner_id=owner_id,
            total_cents=total_cents,
            shipping_address=shipping_address,
            payment_method=payment_method,
            status="pending",
            payment_status="pending",
        )
        self.db.add(order)
        self.db.flush()
        return order

    def add_item(
        self, order_id: int, product_id: int, quantity: int, unit_price_cents: int
    ) -> OrderItem:
        oi = OrderItem(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
        )
        self.db.add(oi)
        self.db.flush()
        return oi

    def get(self, order_id: int) -> Optional[Order]:
        return (
            self.db.query(Order)
            .populate_existing()
            .filter(Order.id == order_id)
            .first()
        )

    def list_items(self, order_id: int) -> List[OrderItem]:
        return (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
            .all()
        )

    def list_by_owner(self, owner_kind: str, owner_id: int) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.owner_kind == owner_kind, Order.owner_id == owner_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def list_all(self) -> List[Order]:
        return self.db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()

    def count_by_owner(self, owner_kind: str, owner_id: int) -> int:
        return (
            self.db.query(func.count(Order.id))
            .filter(Order.owner_kind == owner_kind, Order.owner_id == owner_id)
            .scalar()
            or 0
        )

    def compare_and_set_status(self, order_id: int, expected: str, new: str) -> bool:
        return self._compare_and_set(order_id, Order.status, expected, new)

    def compare_and_set_payment_status(self, order_id: int, expected: str, new: str) -> bool:
        return self._compare_and_set(order_id, Order.payment_status, expected, new)

    def _compare_and_set(self, order_id, column, expected, new) -> bool:
        res = self.db.execute(
            update(Order)
            .where(Order.id == order_id, column == expected)
            .values({column.key: new, "updated_at": datetime.now(timezone.utc)})
            .execution_options(synchronize_session=False)
        )
        return res.rowcount > 0

    def stats(self) -> dict:
        total_orders = self.db.query(func.count(Order.id)).scalar() or 0
        revenue = (
            self.db.query(func.coalesce(func.sum(Order.total_cents), 0))
            .filter(Order.status != "cancelled")
            .scalar()
            or 0
        )
        return {"total_orders": int(total_orders), "total_revenue_cents": int(revenue)}
