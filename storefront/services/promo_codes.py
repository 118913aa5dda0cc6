from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError
from storefront.models.promo_code import PromoCode
from storefront.services.catalog import (
    authorize_read,
    authorize_write,
    commit,
    create_named,
    delete_named,
    load_owned,
    update_named,
)

logger = logging.getLogger(__name__)

MAX_DISCOUNT = Decimal("100")


def _clean_discount(value: Any) -> Decimal:
    if value is None:
        raise BadRequestError("Discount percentage is required")
    try:
        discount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise BadRequestError("Discount percentage must be a number")
    if not discount.is_finite() or discount < 0 or discount > MAX_DISCOUNT:
        raise BadRequestError("Discount percentage must be between 0 and 100")
    return discount


def list_promo_codes(db: Session, actor, tenant_id: int) -> list[PromoCode]:
    authorize_read(db, actor, tenant_id)
    return (
        db.query(PromoCode)
        .filter(PromoCode.tenant_id == tenant_id)
        .order_by(PromoCode.created_at.desc(), PromoCode.id.desc())
        .all()
    )


def create_promo_code(
    db: Session, actor, tenant_id: int, *, name: str, discount_percentage: Any, is_active: bool = True
) -> PromoCode:
    promo_code = create_named(
        db,
        actor,
        PromoCode,
        tenant_id,
        name,
        discount_percentage=_clean_discount(discount_percentage),
        is_active=bool(is_active),
    )
    logger.info("promo code created id=%s tenant_id=%s", promo_code.id, tenant_id)
    return promo_code


def update_promo_code(db: Session, actor, promo_code_id: int, changes: dict[str, Any]) -> PromoCode:
    fields: dict[str, Any] = {}
    if "discount_percentage" in changes:
        fields["discount_percentage"] = _clean_discount(changes["discount_percentage"])
    if changes.get("is_active") is not None:
        fields["is_active"] = bool(changes["is_active"])
    return update_named(db, actor, PromoCode, promo_code_id, changes.get("name"), **fields)


def toggle_promo_code(db: Session, actor, promo_code_id: int) -> PromoCode:
    promo_code = load_owned(db, PromoCode, promo_code_id, "Promo code")
    authorize_write(db, actor, promo_code.tenant_id)
    promo_code.is_active = not promo_code.is_active
    commit(db)
    db.refresh(promo_code)
    return promo_code


def delete_promo_code(db: Session, actor, promo_code_id: int) -> None:
    delete_named(db, actor, PromoCode, promo_code_id)
