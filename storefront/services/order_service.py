import logging
from typing import List, Optional, Tuple

from storefront.services.cart_service import CartService, ProductNotFound
from storefront.services.inventory_service import InsufficientStock, InventoryService
from storefront.services.order_status import (
    OrderStatus,
    PaymentStatus,
    all_next_states,
    can_transition,
    can_transition_payment,
)

log = logging.getLogger("storefront.orders")

PAYMENT_METHODS = ("cash", "eft", "card")


class OrderServiceException(Exception):
    pass


class InvalidOrderRequest(OrderServiceException):
    pass


class EmptyCart(OrderServiceException):
    pass


class InvalidTransition(OrderServiceException):
    pass


class OrderNotFound(OrderServiceException):
    pass


class AccessDenied(OrderServiceException):
    pass


class OrderService:
    """
    Single writer of orders.

    ``place_order`` turns the caller's cart into an order inside one unit of
    work: order row, price-snapshotted items, inventory decrements and the
    cart clear all commit together or not at all.
    """

    def __init__(self, uow):
        self.uow = uow
        self.carts = CartService(uow)
        self.inventory = InventoryService(uow)

    def place_order(self, principal, shipping_address: str, payment_method: str):
        """
        Returns (order, items).

        Raises InvalidOrderRequest / EmptyCart / ProductNotFound before any
        write and InsufficientStock if stock runs out, in which case nothing
        of the order remains.
        """
        if not shipping_address or not shipping_address.strip():
            raise InvalidOrderRequest("Shipping address is required")
        if payment_method not in PAYMENT_METHODS:
            raise InvalidOrderRequest(
                f"Unsupported payment method {payment_method!r}; "
                f"expected one of {', '.join(PAYMENT_METHODS)}"
            )
        owner_kind, owner_id = principal.owner_key

        with self.uow.transaction():
            cart = self.uow.carts.get_by_owner(owner_kind, owner_id)
            rows = self.carts.list_items(cart.id) if cart else []
            if not rows:
                raise EmptyCart("Cart is empty")

            # fixed product order keeps row locks in the same sequence across checkouts
            rows = sorted(rows, key=lambda row: row[0].product_id)

            total_cents = 0
            lines = []
            for item, product in rows:
                if not product.active:
                    raise ProductNotFound(f"Product {product.id} is no longer available")
                available = self.inventory.available(product.id)
                if available < item.quantity:
                    raise InsufficientStock(product.id, item.quantity, available)
                total_cents += item.quantity * product.price_cents
                lines.append((product.id, item.quantity, product.price_cents))

            order = self.uow.orders.create(
                owner_kind=owner_kind,
                owner_id=owner_id,
                total_cents=total_cents,
                shipping_address=shipping_address.strip(),
                payment_method=payment_method,
            )
            items = [
                self.uow.orders.add_item(order.id, product_id, quantity, unit_price)
                for product_id, quantity, unit_price in lines
            ]
            for product_id, quantity, _ in lines:
                self.inventory.adjust(product_id, -quantity)
            self.uow.carts.clear(cart.id)
            order_id = order.id

        log.info(
            f"order {order_id} placed by {owner_kind}:{owner_id} "
            f"({len(lines)} line(s), total_cents={total_cents})"
        )
        return order, items

    def get_order(self, order_id: int, principal) -> Tuple[object, List[object]]:
        order = self.uow.orders.get(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        if not principal.is_admin and (order.owner_kind, order.owner_id) != principal.owner_key:
            raise AccessDenied("Access denied")
        return order, self.uow.orders.list_items(order_id)

    def list_orders(self, principal):
        return self.uow.orders.list_by_owner(*principal.owner_key)

    def list_all_orders(self, actor):
        self._require_admin(actor)
        return self.uow.orders.list_all()

    def next_statuses(self, order_id: int, actor):
        self._require_admin(actor)
        order = self.uow.orders.get(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        return order, all_next_states(order.status)

    def update_status(self, order_id: int, new_status: str, actor):
        self._require_admin(actor)
        with self.uow.transaction():
            order = self.uow.orders.get(order_id)
            if not order:
                raise OrderNotFound(f"Order {order_id} not found")
            current = order.status
            if not can_transition(current, new_status):
                raise InvalidTransition(
                    f"Cannot move order {order_id} from {current} to {new_status}"
                )
            target = OrderStatus(new_status).value
            if not self.uow.orders.compare_and_set_status(order_id, current, target):
                raise InvalidTransition(
                    f"Order {order_id} changed concurrently; it is no longer {current}"
                )
            if target == OrderStatus.CANCELLED.value:
                for oi in self.uow.orders.list_items(order_id):
                    self.inventory.adjust(oi.product_id, oi.quantity)
            order = self.uow.orders.get(order_id)

        log.info(f"order {order_id}: {current} -> {target} by admin {actor.email}")
        return order

    def update_payment_status(self, order_id: int, new_status: str, actor):
        self._require_admin(actor)
        with self.uow.transaction():
            order = self.uow.orders.get(order_id)
            if not order:
                raise OrderNotFound(f"Order {order_id} not found")
            current = order.payment_status
            if not can_transition_payment(current, new_status):
                raise InvalidTransition(
                    f"Cannot move payment of order {order_id} from {current} to {new_status}"
                )
            target = PaymentStatus(new_status).value
            if not self.uow.orders.compare_and_set_payment_status(order_id, current, target):
                raise InvalidTransition(
                    f"Payment of order {order_id} changed concurrently; it is no longer {current}"
                )
            order = self.uow.orders.get(order_id)

        log.info(f"order {order_id}: payment {current} -> {target} by admin {actor.email}")
        return order

    def dashboard_stats(self, actor) -> dict:
        self._require_admin(actor)
        stats = self.uow.orders.stats()
        stats["total_products"] = self.uow.products.count_active()
        stats["total_customers"] = self.uow.identities.count_customers()
        return stats

    @staticmethod
    def _require_admin(actor: Optional[object]):
        if actor is None or not actor.is_admin:
            raise AccessDenied("Admin access required")
