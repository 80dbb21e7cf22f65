import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel

from storefront.adapters.mock_notifier import notify_order_placed
from storefront.api.deps import get_current_principal, get_notifier, get_uow
from storefront.schemas.order_schema import OrderOut, OrderWithItemsOut, order_with_items
from storefront.services.cart_service import ProductNotFound
from storefront.services.identity_service import Principal
from storefront.services.inventory_service import InsufficientStock
from storefront.services.order_service import (
    AccessDenied,
    EmptyCart,
    InvalidOrderRequest,
    OrderNotFound,
    OrderService,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])
log = logging.getLogger("storefront.orders")


class CreateOrderIn(BaseModel):
    shipping_address: str
    payment_method: str  # cash, eft, card


@router.post(
    "",
    summary="Place order from cart (checkout)",
    status_code=201,
    response_model=OrderWithItemsOut,
)
def create_order(
    payload: CreateOrderIn,
    background: BackgroundTasks,
    principal: Principal = Depends(get_current_principal),
    uow=Depends(get_uow),
    notifier=Depends(get_notifier),
):
    svc = OrderService(uow)
    try:
        order, items = svc.place_order(principal, payload.shipping_address, payload.payment_method)
        body = order_with_items(order, items)
    except (EmptyCart, InvalidOrderRequest) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientStock as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        log.exception("place_order failed")
        raise HTTPException(status_code=500, detail="Internal error placing order")

    # runs after the response, outside the order's transaction
    background.add_task(notify_order_placed, notifier, principal.email, body.id, body.total_cents)
    return body


@router.get("", summary="List my orders", response_model=List[OrderOut])
def list_orders(principal: Principal = Depends(get_current_principal), uow=Depends(get_uow)):
    orders = OrderService(uow).list_orders(principal)
    return [OrderOut.model_validate(o) for o in orders]


@router.get("/{order_id}", summary="Get order with items", response_model=OrderWithItemsOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    uow=Depends(get_uow),
):
    try:
        order, items = OrderService(uow).get_order(order_id, principal)
        return order_with_items(order, items)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception:
        log.exception(f"get_order failed for order {order_id}")
        raise HTTPException(status_code=500, detail="Internal error reading order")
