from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.identity_repo import IdentityRepository
from storefront.repositories.inventory_repo import InventoryRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.utils.transactions import smart_transaction


class SqlAlchemyUnitOfWork:
    """
    Repositories bound to one Session plus the transaction boundary around them.

    Services only talk to ``uow.<repo>`` and ``uow.transaction()``; the test
    suite swaps in an in-memory implementation with the same attributes.
    """

    def __init__(self, session: Session):
        self.session = session
        self.carts = CartRepository(session)
        self.products = ProductRepository(session)
        self.inventory = InventoryRepository(session)
        self.orders = OrderRepository(session)
        self.identities = IdentityRepository(session)

    @contextmanager
    def transaction(self) -> Iterator["SqlAlchemyUnitOfWork"]:
        with smart_transaction(self.session):
            yield self
