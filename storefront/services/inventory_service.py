import enum
import logging
from typing import List, Optional, Tuple

log = logging.getLogger("storefront.inventory")

LOW_STOCK_MAX = 5
MEDIUM_STOCK_MAX = 10


class InventoryException(Exception):
    pass


class InsufficientStock(InventoryException):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for product {product_id}. "
            f"Requested={requested}, Available={available}"
        )


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW = "low"
    MEDIUM = "medium"
    IN_STOCK = "in_stock"


def classify(quantity: int) -> StockStatus:
    if quantity < 0:
        raise ValueError("Stock quantity cannot be negative")
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= LOW_STOCK_MAX:
        return StockStatus.LOW
    if quantity <= MEDIUM_STOCK_MAX:
        return StockStatus.MEDIUM
    return StockStatus.IN_STOCK


class InventoryService:
    """
    Authoritative per-product stock counter.

    ``adjust`` never clamps: a decrement that does not fit raises
    InsufficientStock and the caller decides what to abort. When called
    inside another service's unit of work it joins that unit.
    """

    def __init__(self, uow):
        self.uow = uow

    def get(self, product_id: int):
        return self.uow.inventory.get(product_id)

    def adjust(self, product_id: int, delta: int):
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InventoryException("Stock delta must be an integer")

        with self.uow.transaction():
            repo = self.uow.inventory
            if delta < 0:
                if not repo.decrement(product_id, -delta):
                    current = repo.get(product_id)
                    available = current.quantity if current else 0
                    log.info(
                        f"rejected decrement of {-delta} for product {product_id} "
                        f"(available={available})"
                    )
                    raise InsufficientStock(product_id, -delta, available)
            elif not repo.increment(product_id, delta):
                # first stock movement for this product
                if self.uow.products.get(product_id) is None:
                    raise InventoryException(f"Product {product_id} not found")
                repo.create(product_id, delta)
            inv = repo.get(product_id)

        log.debug(f"product {product_id} adjusted by {delta}: now {inv.quantity}")
        return inv

    def list_with_products(self) -> List[Tuple[object, object, StockStatus]]:
        return [
            (inv, product, classify(inv.quantity))
            for inv, product in self.uow.inventory.list_with_products()
        ]

    def available(self, product_id: int) -> int:
        inv: Optional[object] = self.uow.inventory.get(product_id)
        return inv.quantity if inv else 0
