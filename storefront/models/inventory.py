from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from storefront.db import Base


class Inventory(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer, ForeignKey("products.id"), nullable=False, unique=True, index=True
    )
    quantity = Column(Integer, nullable=False, default=0)
    cost_price_cents = Column(Integer, nullable=True)
    last_updated = Column(
        DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    product = relationship("Product")
