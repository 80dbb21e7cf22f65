from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from storefront.schemas.product_schema import ProductOut


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    cart_id: int
    product_id: int
    quantity: int
    custom_notes: Optional[str] = None


class CartLineOut(CartItemOut):
    product: ProductOut
    line_total_cents: int


class CartOut(BaseModel):
    cart_id: Optional[int] = None
    items: List[CartLineOut]
    total_cents: int


def cart_line(item, product) -> CartLineOut:
    return CartLineOut(
        **CartItemOut.model_validate(item).model_dump(),
        product=ProductOut.model_validate(product),
        line_total_cents=item.quantity * product.price_cents,
    )
