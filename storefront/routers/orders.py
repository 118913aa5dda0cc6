from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import get_current_user, get_storefront_tenant, require_admin
from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.schemas.orders import order_to_dict
from storefront.services import orders as order_service
from storefront.services.catalog import require_tenant
from storefront.services.tenant_directory import resolve_tenant_from_request

router = APIRouter(prefix="/api", tags=["orders"])


class CartItemIn(BaseModel):
    id: int = Field(..., description="Product item id")
    quantity: int = Field(..., ge=1)


class QuoteRequest(BaseModel):
    items: List[CartItemIn] = Field(..., min_length=1)


class OrderCreate(BaseModel):
    product_id: Optional[int] = None
    items: List[CartItemIn] = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    apt_suite: Optional[str] = None
    scheduled_delivery_at: Optional[datetime] = None
    bag_type: str = "normal"
    order_request: Optional[str] = None
    # Client-side figures, checked against the server's own computation.
    subtotal: Optional[Decimal] = None
    taxes: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None
    total: Optional[Decimal] = None


class StatusUpdate(BaseModel):
    status: str


def _entries(items: List[CartItemIn]) -> list[tuple[int, int]]:
    return [(item.id, item.quantity) for item in items]


@router.post("/orders/quote")
def quote(payload: QuoteRequest, tenant: Tenant = Depends(get_storefront_tenant), db: Session = Depends(get_db)):
    priced = order_service.price_cart(db, tenant.id, _entries(payload.items))
    return {"product_id": tenant.id, **priced.totals.as_dict()}


@router.post("/orders", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.product_id is not None:
        tenant = require_tenant(db, payload.product_id)
    else:
        tenant = resolve_tenant_from_request(db, request)
    order = order_service.create_order(
        db,
        user,
        tenant,
        items=_entries(payload.items),
        delivery_address=payload.delivery_address,
        apt_suite=payload.apt_suite,
        scheduled_delivery_at=payload.scheduled_delivery_at,
        bag_type=payload.bag_type,
        order_request=payload.order_request,
        client_totals=payload.model_dump(include={"subtotal", "taxes", "delivery_fee", "total"}),
    )
    return order_to_dict(order)


@router.get("/orders")
def list_my_orders(
    product_id: Optional[int] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [order_to_dict(order) for order in order_service.list_user_orders(db, user, product_id)]


@router.get("/orders/{order_id}")
def get_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return order_to_dict(order_service.get_order(db, user, order_id))


@router.put("/orders/{order_id}/cancel")
def cancel_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return order_to_dict(order_service.cancel_order(db, user, order_id))


@router.put("/orders/{order_id}/status")
def set_order_status(
    order_id: int,
    payload: StatusUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return order_to_dict(order_service.set_order_status(db, user, order_id, payload.status))


@router.get("/products/{product_id}/orders")
def list_product_orders(
    product_id: int,
    status: Optional[str] = None,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    orders = order_service.list_tenant_orders(db, user, product_id, status=status)
    return [order_to_dict(order) for order in orders]
