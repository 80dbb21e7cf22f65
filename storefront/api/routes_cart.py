import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.api.deps import get_current_principal, get_uow
from storefront.schemas.cart_schema import CartItemOut, CartOut, cart_line
from storefront.services.cart_service import (
    CartService,
    InvalidQuantity,
    ItemNotFound,
    ProductNotFound,
)
from storefront.services.identity_service import Principal

router = APIRouter(prefix="/api/cart", tags=["cart"])
log = logging.getLogger("storefront.cart")


class AddItemIn(BaseModel):
    product_id: int
    quantity: int
    custom_notes: Optional[str] = None


class UpdateItemIn(BaseModel):
    quantity: int
    custom_notes: Optional[str] = None


@router.get("", summary="Get cart", response_model=CartOut)
def get_cart(principal: Principal = Depends(get_current_principal), uow=Depends(get_uow)):
    view = CartService(uow).view_cart(principal)
    return CartOut(
        cart_id=view["cart_id"],
        items=[cart_line(it, p) for it, p in view["items"]],
        total_cents=view["total_cents"],
    )


@router.post("/items", summary="Add item to cart", response_model=CartItemOut)
def add_item(
    payload: AddItemIn,
    principal: Principal = Depends(get_current_principal),
    uow=Depends(get_uow),
):
    svc = CartService(uow)
    try:
        cart = svc.get_or_create_cart(principal)
        item = svc.add_item(cart.id, payload.product_id, payload.quantity, payload.custom_notes)
        return CartItemOut.model_validate(item)
    except InvalidQuantity as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception("add_item failed")
        raise HTTPException(status_code=500, detail="Internal error updating cart")


@router.put("/items/{item_id}", summary="Update cart item", response_model=CartItemOut)
def update_item(
    item_id: int,
    payload: UpdateItemIn,
    principal: Principal = Depends(get_current_principal),
    uow=Depends(get_uow),
):
    svc = CartService(uow)
    cart = svc.get_cart(principal)
    if not cart:
        raise HTTPException(status_code=404, detail=f"Cart item {item_id} not found")
    try:
        item = svc.update_item(item_id, payload.quantity, payload.custom_notes, cart_id=cart.id)
        return CartItemOut.model_validate(item)
    except InvalidQuantity as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception("update_item failed")
        raise HTTPException(status_code=500, detail="Internal error updating cart")


@router.delete("/items/{item_id}", summary="Remove item")
def remove_item(
    item_id: int,
    principal: Principal = Depends(get_current_principal),
    uow=Depends(get_uow),
):
    svc = CartService(uow)
    cart = svc.get_cart(principal)
    if not cart:
        return {"removed": False}
    return {"removed": svc.remove_item(item_id, cart_id=cart.id)}
