"""Order lifecycle: checkout, cancellation and the admin status machine.

Happy path is ``pending -> confirmed -> preparing -> arriving -> completed``.
Any non-terminal order may also move to ``cancelled`` or ``rejected``.
``completed``, ``cancelled`` and ``rejected`` are terminal.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from storefront.core.config import DELIVERY_FEE, TOTALS_TOLERANCE
from storefront.core.errors import (
    BadRequestError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    TotalsMismatchError,
)
from storefront.models.order import BAG_TYPES, ORDER_STATUSES, Order
from storefront.models.order_item import OrderItem
from storefront.models.product_item import ProductItem
from storefront.models.tax import Tax
from storefront.models.tenant import Tenant
from storefront.services import access_control
from storefront.services.admin_audit import log_admin_action
from storefront.services.checkout import Cart, CartLine, CheckoutTotals, TaxRule, compute_totals, to_money
from storefront.services.order_events import emit_order_created, emit_order_status_changed

logger = logging.getLogger(__name__)
ORDERS_PREFIX = "[ORDERS]"

PENDING = "pending"
CONFIRMED = "confirmed"
PREPARING = "preparing"
ARRIVING = "arriving"
COMPLETED = "completed"
CANCELLED = "cancelled"
REJECTED = "rejected"

TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED, REJECTED})
CANCELLABLE_STATUSES = frozenset({PENDING, CONFIRMED, PREPARING, ARRIVING})

TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED, REJECTED}),
    CONFIRMED: frozenset({PREPARING, CANCELLED, REJECTED}),
    PREPARING: frozenset({ARRIVING, CANCELLED, REJECTED}),
    ARRIVING: frozenset({COMPLETED, CANCELLED, REJECTED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
    REJECTED: frozenset(),
}

_MAX_ORDER_NUMBER_ATTEMPTS = 5


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"


@dataclass(frozen=True)
class PricedCart:
    lines: tuple[CartLine, ...]
    totals: CheckoutTotals


def active_tax_rules(db: Session, tenant_id: int) -> list[TaxRule]:
    rows = (
        db.query(Tax)
        .filter(Tax.tenant_id == tenant_id, Tax.is_active.is_(True))
        .order_by(Tax.display_order.asc(), Tax.id.asc())
        .all()
    )
    return [TaxRule.from_row(row) for row in rows]


def price_cart(db: Session, tenant_id: int, entries: Iterable[tuple[int, int]]) -> PricedCart:
    """Price submitted ``(item_id, quantity)`` pairs from the tenant's live catalog."""
    cart = Cart.from_submission(list(entries))
    if not cart.lines:
        raise InvalidStateError("Cart is empty")

    item_ids = [line.item_id for line in cart.lines]
    items = {
        item.id: item
        for item in db.query(ProductItem)
        .filter(ProductItem.id.in_(item_ids), ProductItem.tenant_id == tenant_id, ProductItem.is_active.is_(True))
        .all()
    }
    missing = [item_id for item_id in item_ids if item_id not in items]
    if missing:
        raise InvalidStateError(
            "Some items are not available in this store",
            hint=f"Unavailable item ids: {', '.join(str(item_id) for item_id in missing)}",
        )

    lines = []
    for line in cart.lines:
        item = items[line.item_id]
        lines.append(
            CartLine(
                item_id=item.id,
                price=to_money(item.price),
                quantity=line.quantity,
                name=item.name or item.weight,
                description=item.description,
                image_url=item.image_url,
            )
        )
    totals = compute_totals(lines, active_tax_rules(db, tenant_id), DELIVERY_FEE)
    return PricedCart(lines=tuple(lines), totals=totals)


def verify_client_totals(totals: CheckoutTotals, submitted: Optional[Mapping[str, Optional[Decimal]]]) -> None:
    """Reject a checkout whose client-side figures drift from the server's."""
    if not submitted:
        return
    expected = {
        "subtotal": totals.subtotal,
        "taxes": totals.taxes,
        "delivery_fee": totals.delivery_fee,
        "total": totals.total,
    }
    mismatched = [
        name
        for name, server_value in expected.items()
        if submitted.get(name) is not None and abs(Decimal(str(submitted[name])) - server_value) > TOTALS_TOLERANCE
    ]
    if mismatched:
        raise TotalsMismatchError(
            f"Submitted totals do not match the store's prices ({', '.join(mismatched)})",
            hint=f"Expected subtotal={totals.subtotal} taxes={totals.taxes} "
            f"delivery_fee={totals.delivery_fee} total={totals.total}",
        )


def _unique_order_number(db: Session) -> str:
    for _ in range(_MAX_ORDER_NUMBER_ATTEMPTS):
        candidate = generate_order_number()
        if not db.query(Order.id).filter(Order.order_number == candidate).first():
            return candidate
    raise InvalidStateError("Could not allocate an order number, please retry")


def create_order(
    db: Session,
    user,
    tenant: Tenant,
    *,
    items: Iterable[tuple[int, int]],
    delivery_address: str,
    apt_suite: Optional[str] = None,
    scheduled_delivery_at: Optional[datetime] = None,
    bag_type: str = "normal",
    order_request: Optional[str] = None,
    client_totals: Optional[Mapping[str, Optional[Decimal]]] = None,
) -> Order:
    """Place an order and freeze its monetary snapshot.

    Prices and taxes come from the database, never from the client; client
    totals are only checked against the recomputed ones.
    """
    access_control.ensure_tenant_access(db, user, tenant.id)

    delivery_address = (delivery_address or "").strip()
    if not delivery_address:
        raise InvalidStateError("Delivery address is required")
    bag_type = (bag_type or "normal").strip().lower()
    if bag_type not in BAG_TYPES:
        raise BadRequestError("Invalid bag type", hint=f"Expected one of: {', '.join(BAG_TYPES)}")

    priced = price_cart(db, tenant.id, items)
    verify_client_totals(priced.totals, client_totals)

    try:
        order = Order(
            user_id=user.id,
            tenant_id=tenant.id,
            order_number=_unique_order_number(db),
            status=PENDING,
            delivery_address=delivery_address,
            apt_suite=(apt_suite or "").strip() or None,
            scheduled_delivery_at=scheduled_delivery_at,
            bag_type=bag_type,
            order_request=(order_request or "").strip() or None,
            subtotal=priced.totals.subtotal,
            taxes=priced.totals.taxes,
            delivery_fee=priced.totals.delivery_fee,
            total=priced.totals.total,
        )
        db.add(order)
        db.flush()
        db.add_all(
            [
                OrderItem(
                    order_id=order.id,
                    product_item_id=line.item_id,
                    name=line.name,
                    description=line.description,
                    image_url=line.image_url,
                    price=line.price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                )
                for line in priced.lines
            ]
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("%s failed to create order tenant_id=%s user_id=%s", ORDERS_PREFIX, tenant.id, user.id)
        raise

    db.refresh(order)
    emit_order_created(order)
    return order


def _load_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def _ensure_can_view(db: Session, actor, order: Order) -> None:
    if order.user_id == actor.id:
        return
    if access_control.is_admin(actor):
        access_control.ensure_tenant_access(db, actor, order.tenant_id)
        return
    access_control.log_access_denied(reason="order_not_owned", actor=actor, tenant_id=order.tenant_id)
    raise ForbiddenError("You do not have access to this order")


def get_order(db: Session, actor, order_id: int) -> Order:
    order = _load_order(db, order_id)
    _ensure_can_view(db, actor, order)
    return order


def list_user_orders(db: Session, user, tenant_id: Optional[int] = None) -> list[Order]:
    query = db.query(Order).options(selectinload(Order.items)).filter(Order.user_id == user.id)
    if tenant_id is not None:
        query = query.filter(Order.tenant_id == tenant_id)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def list_tenant_orders(db: Session, actor, tenant_id: int, status: Optional[str] = None) -> list[Order]:
    access_control.ensure_admin(actor)
    access_control.ensure_tenant_access(db, actor, tenant_id)
    query = db.query(Order).options(selectinload(Order.items)).filter(Order.tenant_id == tenant_id)
    if status:
        normalized = status.strip().lower()
        if normalized not in ORDER_STATUSES:
            raise BadRequestError("Invalid order status", hint=f"Expected one of: {', '.join(ORDER_STATUSES)}")
        query = query.filter(Order.status == normalized)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def cancel_order(db: Session, actor, order_id: int) -> Order:
    order = _load_order(db, order_id)
    _ensure_can_view(db, actor, order)

    previous_status = order.status
    if previous_status not in CANCELLABLE_STATUSES:
        raise InvalidTransitionError(previous_status, CANCELLED)

    order.status = CANCELLED
    if order.user_id != actor.id:
        log_admin_action(
            db,
            actor_id=actor.id,
            tenant_id=order.tenant_id,
            action="order.cancel",
            entity_type="order",
            entity_id=order.id,
            meta={"from": previous_status},
        )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("%s cancelled order_id=%s by user_id=%s", ORDERS_PREFIX, order.id, actor.id)
    emit_order_status_changed(order, previous_status)
    return order


def set_order_status(db: Session, actor, order_id: int, status: str) -> Order:
    """Admin path: move an order one step along the state machine."""
    access_control.ensure_admin(actor)
    target = (status or "").strip().lower()
    if target not in ORDER_STATUSES:
        raise BadRequestError("Invalid order status", hint=f"Expected one of: {', '.join(ORDER_STATUSES)}")

    order = _load_order(db, order_id)
    access_control.ensure_tenant_access(db, actor, order.tenant_id)

    previous_status = order.status
    if previous_status in TERMINAL_STATUSES:
        raise InvalidTransitionError(previous_status, target)
    if previous_status == target:
        return order
    if not can_transition(previous_status, target):
        raise InvalidTransitionError(previous_status, target)

    order.status = target
    log_admin_action(
        db,
        actor_id=actor.id,
        tenant_id=order.tenant_id,
        action="order.status_change",
        entity_type="order",
        entity_id=order.id,
        meta={"from": previous_status, "to": target},
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    emit_order_status_changed(order, previous_status)
    return order
