from __future__ import annotations

from typing import Any

from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.schemas.catalog import money


def order_item_to_dict(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "product_item_id": item.product_item_id,
        "name": item.name,
        "description": item.description,
        "image_url": item.image_url,
        "price": money(item.price),
        "quantity": item.quantity,
        "subtotal": money(item.subtotal),
    }


def order_to_dict(order: Order, include_items: bool = True) -> dict[str, Any]:
    payload = {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "product_id": order.tenant_id,
        "status": order.status,
        "delivery_address": order.delivery_address,
        "apt_suite": order.apt_suite,
        "scheduled_delivery_at": order.scheduled_delivery_at.isoformat() if order.scheduled_delivery_at else None,
        "bag_type": order.bag_type,
        "order_request": order.order_request,
        "subtotal": money(order.subtotal),
        "taxes": money(order.taxes),
        "delivery_fee": money(order.delivery_fee),
        "total": money(order.total),
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }
    if include_items:
        payload["items"] = [order_item_to_dict(item) for item in order.items]
    return payload
