from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from storefront.db import Base


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_kind = Column(String(8), nullable=False, default="user")
    owner_id = Column(Integer, nullable=False, index=True)
    total_cents = Column(Integer, nullable=False, default=0)
    shipping_address = Column(Text, nullable=False)
    payment_method = Column(String(16), nullable=False)  # cash, eft, card
    status = Column(
        String(32), nullable=False, default="pending"
    )  # pending, confirmed, in_production, ready, delivered, cancelled
    payment_status = Column(
        String(32), nullable=False, default="pending"
    )  # pending, paid, failed, refunded
    created_at = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")


class OrderItem(Base):
    """Price snapshot taken at checkout; rows are never updated or deleted."""

    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="items")
