import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.api.deps import get_uow, require_admin
from storefront.schemas.inventory_schema import InventoryOut, InventoryRowOut
from storefront.schemas.order_schema import NextStatusesOut, OrderOut
from storefront.schemas.product_schema import ProductOut
from storefront.services.identity_service import AdminNotFound, IdentityResolver, Principal
from storefront.services.inventory_service import (
    InsufficientStock,
    InventoryException,
    InventoryService,
)
from storefront.services.order_service import (
    InvalidTransition,
    OrderNotFound,
    OrderService,
)
from storefront.services.order_status import all_next_payment_states, progress_position

router = APIRouter(prefix="/api/admin", tags=["admin"])
log = logging.getLogger("storefront.orders")


class StatusIn(BaseModel):
    status: str


class PaymentStatusIn(BaseModel):
    payment_status: str


class AdjustIn(BaseModel):
    delta: int


@router.get("/orders", summary="List all orders", response_model=List[OrderOut])
def list_all_orders(admin: Principal = Depends(require_admin), uow=Depends(get_uow)):
    return [OrderOut.model_validate(o) for o in OrderService(uow).list_all_orders(admin)]


@router.put("/orders/{order_id}/status", summary="Advance order status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusIn,
    admin: Principal = Depends(require_admin),
    uow=Depends(get_uow),
):
    try:
        order = OrderService(uow).update_status(order_id, payload.status, admin)
        return OrderOut.model_validate(order)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception(f"update_status failed for order {order_id}")
        raise HTTPException(status_code=500, detail="Internal error updating order")


@router.get(
    "/orders/{order_id}/next-statuses",
    summary="Legal next statuses for an order",
    response_model=NextStatusesOut,
)
def next_statuses(order_id: int, admin: Principal = Depends(require_admin), uow=Depends(get_uow)):
    try:
        order, nxt = OrderService(uow).next_statuses(order_id, admin)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return NextStatusesOut(
        order_id=order.id,
        status=order.status,
        next_statuses=sorted(s.value for s in nxt),
        progress=progress_position(order.status),
        payment_status=order.payment_status,
        next_payment_statuses=sorted(s.value for s in all_next_payment_states(order.payment_status)),
    )


@router.put(
    "/orders/{order_id}/payment-status",
    summary="Record payment outcome",
    response_model=OrderOut,
)
def update_payment_status(
    order_id: int,
    payload: PaymentStatusIn,
    admin: Principal = Depends(require_admin),
    uow=Depends(get_uow),
):
    try:
        order = OrderService(uow).update_payment_status(order_id, payload.payment_status, admin)
        return OrderOut.model_validate(order)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception(f"update_payment_status failed for order {order_id}")
        raise HTTPException(status_code=500, detail="Internal error updating order")


@router.get("/inventory", summary="Stock levels", response_model=List[InventoryRowOut])
def list_inventory(admin: Principal = Depends(require_admin), uow=Depends(get_uow)):
    return [
        InventoryRowOut(
            **InventoryOut.model_validate(inv).model_dump(),
            product=ProductOut.model_validate(product),
            stock_status=tier.value,
        )
        for inv, product, tier in InventoryService(uow).list_with_products()
    ]


@router.post(
    "/inventory/{product_id}/adjust",
    summary="Restock or write off stock",
    response_model=InventoryOut,
)
def adjust_inventory(
    product_id: int,
    payload: AdjustIn,
    admin: Principal = Depends(require_admin),
    uow=Depends(get_uow),
):
    try:
        inv = InventoryService(uow).adjust(product_id, payload.delta)
        return InventoryOut.model_validate(inv)
    except InsufficientStock as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InventoryException as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception(f"adjust_inventory failed for product {product_id}")
        raise HTTPException(status_code=500, detail="Internal error adjusting stock")


@router.get("/dashboard", summary="Order and catalogue totals")
def dashboard(admin: Principal = Depends(require_admin), uow=Depends(get_uow)):
    return OrderService(uow).dashboard_stats(admin)


@router.post("/admins/{admin_id}/mirror", summary="Create or link an admin's user row")
def link_mirror(admin_id: int, admin: Principal = Depends(require_admin), uow=Depends(get_uow)):
    try:
        user = IdentityResolver(uow).link_admin_mirror(admin_id)
    except AdminNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"admin_id": admin_id, "user_id": user.id, "email": user.email, "role": user.role}
