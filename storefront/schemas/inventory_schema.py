from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from storefront.schemas.product_schema import ProductOut


class InventoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: int
    quantity: int
    cost_price_cents: Optional[int] = None
    last_updated: datetime


class InventoryRowOut(InventoryOut):
    product: ProductOut
    stock_status: str
