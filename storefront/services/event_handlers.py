from __future__ import annotations

import logging

from storefront.services.event_bus import event_bus
from storefront.services.order_events import ORDER_CREATED, ORDER_STATUS_CHANGED

logger = logging.getLogger(__name__)


def handle_order_created(payload: dict) -> None:
    logger.info(
        "[ORDERS] created order_number=%s tenant_id=%s total=%s",
        payload.get("order_number"),
        payload.get("tenant_id"),
        payload.get("total"),
        extra={"order_id": payload.get("order_id"), "event": ORDER_CREATED},
    )


def handle_order_status_changed(payload: dict) -> None:
    logger.info(
        "[ORDERS] status changed order_number=%s %s -> %s",
        payload.get("order_number"),
        payload.get("previous_status"),
        payload.get("status"),
        extra={"order_id": payload.get("order_id"), "event": ORDER_STATUS_CHANGED},
    )


event_bus.subscribe(ORDER_CREATED, handle_order_created)
event_bus.subscribe(ORDER_STATUS_CHANGED, handle_order_status_changed)
