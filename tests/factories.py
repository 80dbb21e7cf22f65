"""Rows for API tests, written through the real repositories and committed."""
from typing import Optional

from storefront.db import SessionLocal
from storefront.repositories.identity_repo import IdentityRepository
from storefront.repositories.inventory_repo import InventoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.security.tokens import issue_admin_token, issue_user_token


def make_user(email: str, name: str = "Test User") -> int:
    db = SessionLocal()
    try:
        user = IdentityRepository(db).create_user(name=name, email=email)
        db.commit()
        return user.id
    finally:
        db.close()


def make_admin(email: str, name: str = "Test Admin") -> int:
    db = SessionLocal()
    try:
        admin = IdentityRepository(db).create_admin(name=name, email=email)
        db.commit()
        return admin.admin_id
    finally:
        db.close()


def make_product(name: str, price_cents: int, stock: Optional[int] = 0, active: bool = True) -> int:
    db = SessionLocal()
    try:
        product = ProductRepository(db).create(name=name, price_cents=price_cents, active=active)
        if stock is not None:
            InventoryRepository(db).create(product.id, stock)
        db.commit()
        return product.id
    finally:
        db.close()


def stock_of(product_id: int) -> int:
    db = SessionLocal()
    try:
        inv = InventoryRepository(db).get(product_id)
        return inv.quantity if inv else 0
    finally:
        db.close()


def set_price(product_id: int, price_cents: int):
    db = SessionLocal()
    try:
        ProductRepository(db).set_price(product_id, price_cents)
        db.commit()
    finally:
        db.close()


def user_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {issue_user_token(user_id)}"}


def admin_headers(admin_id: int, email: str) -> dict:
    return {"Authorization": f"Bearer {issue_admin_token(admin_id, email)}"}
