#!/usr/bin/env python3
"""
Seed products and their stock from a JSON catalogue, plus a demo admin and
customer, then print bearer tokens for both so the API can be tried locally.

Usage:
    python scripts/seed_catalogue.py --file scripts/catalogue.json
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.db import SessionLocal, init_db
from storefront.models.product import Product
from storefront.repositories.identity_repo import IdentityRepository
from storefront.repositories.inventory_repo import InventoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.security.tokens import issue_admin_token, issue_user_token

DEFAULT_SOURCE = os.path.join(os.path.dirname(__file__), "catalogue.json")

DEMO_ADMIN = {"name": "Shop Owner", "email": "owner@uncommonroom.example"}
DEMO_USER = {"name": "Demo Customer", "email": "customer@uncommonroom.example"}


def _normalize_entry(entry):
    """Return a dict with keys: name, category, description, price_cents, stock"""
    if entry.get("price_cents") is not None:
        price_cents = int(entry["price_cents"])
    else:
        # prices in the catalogue are rand amounts, e.g. "2450.00"
        price_cents = int(round(float(entry.get("price", 0)) * 100))
    return {
        "name": entry.get("name") or entry.get("title") or "",
        "category": entry.get("category") or "custom",
        "description": entry.get("description"),
        "price_cents": price_cents,
        "stock": int(entry.get("stock", entry.get("quantity", 0)) or 0),
    }


def _load(path):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")
    if isinstance(data, dict):
        return data.get("items", [])
    return data if isinstance(data, list) else []


def seed_from_file(path: str, reset: bool = False):
    init_db(reset=reset)
    entries = [_normalize_entry(e) for e in _load(path)]

    db = SessionLocal()
    products = ProductRepository(db)
    inventory = InventoryRepository(db)
    identities = IdentityRepository(db)
    created = 0
    try:
        for entry in entries:
            if not entry["name"]:
                continue
            if db.query(Product).filter(Product.name == entry["name"]).first():
                continue
            p = products.create(
                name=entry["name"],
                price_cents=entry["price_cents"],
                category=entry["category"],
                description=entry["description"],
            )
            inventory.create(p.id, entry["stock"])
            created += 1

        admin = identities.get_admin_by_email(DEMO_ADMIN["email"]) or identities.create_admin(**DEMO_ADMIN)
        user = identities.get_user_by_email(DEMO_USER["email"]) or identities.create_user(**DEMO_USER)
        db.commit()
        print("Seeded products:", created)
        print(f"Admin token (admin_id={admin.admin_id}):")
        print(issue_admin_token(admin.admin_id, admin.email))
        print(f"Customer token (user id={user.id}):")
        print(issue_user_token(user.id))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=DEFAULT_SOURCE, help="Path to catalogue json")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed_from_file(args.file, reset=args.reset)
