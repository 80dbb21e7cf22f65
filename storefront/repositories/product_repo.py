from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models.product import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_active(self, product_id: int) -> Optional[Product]:
        return (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.active == True)
            .first()
        )

    def create(
        self,
        name: str,
        price_cents: int,
        category: str = "custom",
        description: str = None,
        active: bool = True,
    ) -> Product:
        p = Product(
            name=name,
            price_cents=price_cents,
            category=category,
            description=description,
            active=active,
        )
        self.db.add(p)
        self.db.flush()
        return p

    def set_price(self, product_id: int, price_cents: int) -> Optional[Product]:
        p = self.get(product_id)
        if p:
            p.price_cents = price_cents
            self.db.flush()
        return p

    def count_active(self) -> int:
        return (
            self.db.query(func.count(Product.id))
            .filter(Product.active == True)
            .scalar()
            or 0
        )
