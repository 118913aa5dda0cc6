from __future__ import annotations

from storefront.models.order import Order
from storefront.services.event_bus import event_bus

ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status.changed"


def build_order_payload(order: Order, previous_status: str | None = None) -> dict:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "tenant_id": order.tenant_id,
        "user_id": order.user_id,
        "status": order.status,
        "previous_status": previous_status,
        "total": str(order.total),
    }


def emit_order_created(order: Order) -> None:
    event_bus.emit(ORDER_CREATED, build_order_payload(order))


def emit_order_status_changed(order: Order, previous_status: str | None) -> None:
    if previous_status == order.status:
        return
    event_bus.emit(ORDER_STATUS_CHANGED, build_order_payload(order, previous_status=previous_status))
