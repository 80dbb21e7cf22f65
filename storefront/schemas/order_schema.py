from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price_cents: int


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    owner_kind: str
    owner_id: int
    total_cents: int
    shipping_address: str
    payment_method: str
    status: str
    payment_status: str
    created_at: datetime
    updated_at: datetime


class OrderWithItemsOut(OrderOut):
    items: List[OrderItemOut]


def order_with_items(order, items) -> OrderWithItemsOut:
    return OrderWithItemsOut(
        **OrderOut.model_validate(order).model_dump(),
        items=[OrderItemOut.model_validate(oi) for oi in items],
    )


class NextStatusesOut(BaseModel):
    order_id: int
    status: str
    next_statuses: List[str]
    progress: int
    payment_status: Optional[str] = None
    next_payment_statuses: List[str] = []
