from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from storefront.core.errors import BadRequestError, ConflictError, InvalidStateError
from storefront.models.brand import Brand
from storefront.models.category import SubCategory
from storefront.models.personality import Personality
from storefront.models.product_item import ProductItem, item_sub_categories
from storefront.services.catalog import (
    CATALOG_PREFIX,
    authorize_read,
    authorize_write,
    commit,
    load_owned,
    next_display_order,
    reorder,
)
from storefront.services.checkout import to_money

logger = logging.getLogger(__name__)

_UPDATABLE_TEXT_FIELDS = ("name", "description", "image_url")


def _items_query(db: Session):
    return db.query(ProductItem).options(
        selectinload(ProductItem.brand),
        selectinload(ProductItem.sub_categories),
        selectinload(ProductItem.personalities),
    )


def _clean_price(value: Any) -> Decimal:
    try:
        price = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise BadRequestError("Price must be a number")
    if price < 0:
        raise BadRequestError("Price must be zero or greater")
    return price


def _clean_weight(value: Optional[str]) -> str:
    weight = (value or "").strip()
    if not weight:
        raise BadRequestError("Weight is required")
    return weight


def _ensure_unique_weight(db: Session, tenant_id: int, weight: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(ProductItem.id).filter(ProductItem.tenant_id == tenant_id, ProductItem.weight == weight)
    if exclude_id is not None:
        query = query.filter(ProductItem.id != exclude_id)
    if query.first():
        raise ConflictError(f'An item with weight "{weight}" already exists for this product')


def _owned_rows(db: Session, model, tenant_id: int, ids: Iterable[int], label: str) -> list:
    """Load ``ids`` of ``model`` and require every one to belong to ``tenant_id``."""
    wanted = sorted({int(entity_id) for entity_id in ids})
    if not wanted:
        return []
    rows = db.query(model).filter(model.id.in_(wanted), model.tenant_id == tenant_id).all()
    if len(rows) != len(wanted):
        found = {row.id for row in rows}
        foreign = [entity_id for entity_id in wanted if entity_id not in found]
        raise InvalidStateError(
            f"{label} must belong to the same product",
            hint=f"Invalid ids: {', '.join(str(entity_id) for entity_id in foreign)}",
        )
    return rows


def _validate_brand(db: Session, tenant_id: int, brand_id: Optional[int]) -> Optional[int]:
    if brand_id is None:
        return None
    _owned_rows(db, Brand, tenant_id, [brand_id], "Brand")
    return int(brand_id)


def list_product_items(db: Session, actor, tenant_id: int) -> list[ProductItem]:
    authorize_read(db, actor, tenant_id)
    return (
        _items_query(db)
        .filter(ProductItem.tenant_id == tenant_id)
        .order_by(ProductItem.display_order.asc(), ProductItem.id.asc())
        .all()
    )


def public_items(
    db: Session,
    tenant_id: int,
    *,
    category_id: Optional[int] = None,
    sub_category_id: Optional[int] = None,
) -> list[ProductItem]:
    """Active items of one storefront, optionally narrowed to a (sub-)category."""
    query = _items_query(db).filter(ProductItem.tenant_id == tenant_id, ProductItem.is_active.is_(True))
    if sub_category_id is not None or category_id is not None:
        query = query.join(item_sub_categories, item_sub_categories.c.product_item_id == ProductItem.id).join(
            SubCategory, SubCategory.id == item_sub_categories.c.sub_category_id
        )
        if sub_category_id is not None:
            query = query.filter(SubCategory.id == sub_category_id)
        if category_id is not None:
            query = query.filter(SubCategory.category_id == category_id)
        query = query.distinct()
    return query.order_by(ProductItem.display_order.asc(), ProductItem.id.asc()).all()


def create_product_item(
    db: Session,
    actor,
    tenant_id: int,
    *,
    weight: str,
    price: Any,
    name: Optional[str] = None,
    description: Optional[str] = None,
    brand_id: Optional[int] = None,
    image_url: Optional[str] = None,
    is_active: bool = True,
    sub_category_ids: Iterable[int] = (),
    personality_ids: Iterable[int] = (),
) -> ProductItem:
    authorize_write(db, actor, tenant_id)
    weight = _clean_weight(weight)
    price = _clean_price(price)
    _ensure_unique_weight(db, tenant_id, weight)
    brand_id = _validate_brand(db, tenant_id, brand_id)
    sub_categories = _owned_rows(db, SubCategory, tenant_id, sub_category_ids, "Sub-categories")
    personalities = _owned_rows(db, Personality, tenant_id, personality_ids, "Personalities")

    item = ProductItem(
        tenant_id=tenant_id,
        name=(name or "").strip() or None,
        description=(description or "").strip() or None,
        weight=weight,
        price=price,
        brand_id=brand_id,
        image_url=(image_url or "").strip() or None,
        is_active=bool(is_active),
        display_order=next_display_order(db, ProductItem.display_order, ProductItem.tenant_id == tenant_id),
    )
    item.sub_categories = sub_categories
    item.personalities = personalities
    db.add(item)
    commit(db)
    db.refresh(item)
    logger.info("%s item created id=%s tenant_id=%s weight=%s", CATALOG_PREFIX, item.id, tenant_id, weight)
    return item


def update_product_item(db: Session, actor, item_id: int, changes: dict[str, Any]) -> ProductItem:
    """Apply a partial update; keys absent from ``changes`` are left untouched."""
    item = load_owned(db, ProductItem, item_id, "Item")
    tenant_id = item.tenant_id
    authorize_write(db, actor, tenant_id)

    if "weight" in changes:
        weight = _clean_weight(changes["weight"])
        _ensure_unique_weight(db, tenant_id, weight, exclude_id=item.id)
        item.weight = weight
    if "price" in changes:
        item.price = _clean_price(changes["price"])
    if "brand_id" in changes:
        item.brand_id = _validate_brand(db, tenant_id, changes["brand_id"])
    if "is_active" in changes and changes["is_active"] is not None:
        item.is_active = bool(changes["is_active"])
    for field in _UPDATABLE_TEXT_FIELDS:
        if field in changes:
            setattr(item, field, (changes[field] or "").strip() or None)
    if "sub_category_ids" in changes:
        item.sub_categories = _owned_rows(db, SubCategory, tenant_id, changes["sub_category_ids"] or [], "Sub-categories")
    if "personality_ids" in changes:
        item.personalities = _owned_rows(db, Personality, tenant_id, changes["personality_ids"] or [], "Personalities")

    commit(db)
    db.refresh(item)
    return item


def delete_product_item(db: Session, actor, item_id: int) -> None:
    item = load_owned(db, ProductItem, item_id, "Item")
    authorize_write(db, actor, item.tenant_id)
    db.delete(item)
    commit(db)


def reorder_product_items(db: Session, actor, ordered_ids: Iterable[int]) -> list[ProductItem]:
    return reorder(db, actor, ProductItem, ordered_ids, "Item")
