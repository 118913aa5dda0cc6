from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError
from storefront.models.tax import TAX_TYPES, Tax
from storefront.services.catalog import authorize_read, authorize_write, clean_name, commit, load_owned, next_display_order


def _clean_type(value: Optional[str]) -> str:
    tax_type = (value or "").strip().lower()
    if tax_type not in TAX_TYPES:
        raise BadRequestError("Invalid tax type", hint=f"Expected one of: {', '.join(TAX_TYPES)}")
    return tax_type


def _clean_value(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise BadRequestError("Tax value must be a number")
    if amount < 0 or not amount.is_finite():
        raise BadRequestError("Tax value must be zero or greater")
    return amount


def list_taxes(db: Session, actor, tenant_id: int) -> list[Tax]:
    authorize_read(db, actor, tenant_id)
    return db.query(Tax).filter(Tax.tenant_id == tenant_id).order_by(Tax.display_order.asc(), Tax.id.asc()).all()


def public_taxes(db: Session, tenant_id: int) -> list[Tax]:
    return (
        db.query(Tax)
        .filter(Tax.tenant_id == tenant_id, Tax.is_active.is_(True))
        .order_by(Tax.display_order.asc(), Tax.id.asc())
        .all()
    )


def create_tax(
    db: Session, actor, tenant_id: int, *, name: str, type: str, value: Any, is_active: bool = True
) -> Tax:
    authorize_write(db, actor, tenant_id)
    tax = Tax(
        tenant_id=tenant_id,
        name=clean_name(name, "Tax name"),
        type=_clean_type(type),
        value=_clean_value(value),
        is_active=bool(is_active),
        display_order=next_display_order(db, Tax.display_order, Tax.tenant_id == tenant_id),
    )
    db.add(tax)
    commit(db)
    db.refresh(tax)
    return tax


def update_tax(db: Session, actor, tax_id: int, changes: dict[str, Any]) -> Tax:
    tax = load_owned(db, Tax, tax_id, "Tax")
    authorize_write(db, actor, tax.tenant_id)
    if "name" in changes:
        tax.name = clean_name(changes["name"], "Tax name")
    if "type" in changes:
        tax.type = _clean_type(changes["type"])
    if "value" in changes:
        tax.value = _clean_value(changes["value"])
    if "is_active" in changes and changes["is_active"] is not None:
        tax.is_active = bool(changes["is_active"])
    if "display_order" in changes and changes["display_order"] is not None:
        tax.display_order = int(changes["display_order"])
    commit(db)
    db.refresh(tax)
    return tax


def delete_tax(db: Session, actor, tax_id: int) -> None:
    tax = load_owned(db, Tax, tax_id, "Tax")
    authorize_write(db, actor, tax.tenant_id)
    db.delete(tax)
    commit(db)
