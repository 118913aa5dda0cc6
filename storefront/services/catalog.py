"""Tenant-scoped catalog services: categories, sub-categories, brands and personalities.

Reads are limited to tenants the caller can see. Writes check tenant access
before touching anything, and names are unique inside their owning tenant
(case-insensitive), never globally.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Type

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from storefront.core.errors import BadRequestError, ConflictError, NotFoundError
from storefront.models.brand import Brand
from storefront.models.category import Category, SubCategory
from storefront.models.personality import Personality
from storefront.models.tenant import Tenant
from storefront.services import access_control

logger = logging.getLogger(__name__)
CATALOG_PREFIX = "[CATALOG]"


# Shared helpers

def require_tenant(db: Session, tenant_id: int) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Product not found")
    return tenant


def authorize_read(db: Session, actor, tenant_id: int) -> Tenant:
    tenant = require_tenant(db, tenant_id)
    access_control.ensure_tenant_access(db, actor, tenant.id)
    return tenant


def authorize_write(db: Session, actor, tenant_id: int) -> Tenant:
    access_control.ensure_admin(actor)
    tenant = require_tenant(db, tenant_id)
    access_control.ensure_tenant_access(db, actor, tenant.id)
    return tenant


def clean_name(name: Optional[str], label: str = "Name") -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise BadRequestError(f"{label} is required")
    return cleaned


def ensure_unique_name(
    db: Session, model, name: str, *, tenant_id: int, exclude_id: Optional[int] = None, **scope
) -> None:
    query = db.query(model.id).filter(model.tenant_id == tenant_id, func.lower(model.name) == name.lower())
    for column, value in scope.items():
        query = query.filter(getattr(model, column) == value)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise ConflictError(f'"{name}" already exists for this product')


def next_display_order(db: Session, column, *criteria) -> int:
    current = db.query(func.max(column)).filter(*criteria).scalar()
    return int(current or 0) + 1


def load_owned(db: Session, model, entity_id: int, label: str):
    entity = db.query(model).filter(model.id == entity_id).first()
    if not entity:
        raise NotFoundError(f"{label} not found")
    return entity


def commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def reorder(db: Session, actor, model, ordered_ids: Iterable[int], label: str) -> list:
    """Set ``display_order`` from the position of each id (1-based)."""
    ids = [int(entity_id) for entity_id in ordered_ids]
    if not ids:
        raise BadRequestError(f"{label} ids are required")
    if len(set(ids)) != len(ids):
        raise BadRequestError(f"{label} ids must not repeat")

    rows = {row.id: row for row in db.query(model).filter(model.id.in_(ids)).all()}
    missing = [entity_id for entity_id in ids if entity_id not in rows]
    if missing:
        raise NotFoundError(f"{label} not found: {', '.join(str(entity_id) for entity_id in missing)}")

    for tenant_id in {row.tenant_id for row in rows.values()}:
        authorize_write(db, actor, tenant_id)

    for position, entity_id in enumerate(ids, start=1):
        rows[entity_id].display_order = position
    commit(db)
    return [rows[entity_id] for entity_id in ids]


# Categories

def list_categories(db: Session, actor, tenant_id: int) -> list[Category]:
    authorize_read(db, actor, tenant_id)
    return public_categories(db, tenant_id)


def public_categories(db: Session, tenant_id: int) -> list[Category]:
    return (
        db.query(Category)
        .options(selectinload(Category.sub_categories))
        .filter(Category.tenant_id == tenant_id)
        .order_by(Category.display_order.asc(), Category.id.asc())
        .all()
    )


def create_category(db: Session, actor, tenant_id: int, name: str) -> Category:
    authorize_write(db, actor, tenant_id)
    name = clean_name(name, "Category name")
    ensure_unique_name(db, Category, name, tenant_id=tenant_id)

    category = Category(
        tenant_id=tenant_id,
        name=name,
        display_order=next_display_order(db, Category.display_order, Category.tenant_id == tenant_id),
    )
    db.add(category)
    commit(db)
    db.refresh(category)
    logger.info("%s category created id=%s tenant_id=%s", CATALOG_PREFIX, category.id, tenant_id)
    return category


def update_category(db: Session, actor, category_id: int, name: str) -> Category:
    category = load_owned(db, Category, category_id, "Category")
    authorize_write(db, actor, category.tenant_id)
    name = clean_name(name, "Category name")
    ensure_unique_name(db, Category, name, tenant_id=category.tenant_id, exclude_id=category.id)

    category.name = name
    commit(db)
    db.refresh(category)
    return category


def delete_category(db: Session, actor, category_id: int) -> None:
    category = load_owned(db, Category, category_id, "Category")
    tenant_id = category.tenant_id
    authorize_write(db, actor, tenant_id)
    db.delete(category)
    commit(db)
    logger.info("%s category deleted id=%s tenant_id=%s", CATALOG_PREFIX, category_id, tenant_id)


def reorder_categories(db: Session, actor, ordered_ids: Iterable[int]) -> list[Category]:
    return reorder(db, actor, Category, ordered_ids, "Category")


# Sub-categories

def create_sub_category(
    db: Session, actor, category_id: int, name: str, image_url: Optional[str] = None
) -> SubCategory:
    category = load_owned(db, Category, category_id, "Category")
    authorize_write(db, actor, category.tenant_id)
    name = clean_name(name, "Sub-category name")
    ensure_unique_name(db, SubCategory, name, tenant_id=category.tenant_id, category_id=category.id)

    sub_category = SubCategory(
        tenant_id=category.tenant_id,
        category_id=category.id,
        name=name,
        image_url=(image_url or "").strip() or None,
        display_order=next_display_order(db, SubCategory.display_order, SubCategory.category_id == category.id),
    )
    db.add(sub_category)
    commit(db)
    db.refresh(sub_category)
    return sub_category


def update_sub_category(
    db: Session, actor, sub_category_id: int, *, name: Optional[str] = None, image_url: Optional[str] = None
) -> SubCategory:
    sub_category = load_owned(db, SubCategory, sub_category_id, "Sub-category")
    authorize_write(db, actor, sub_category.tenant_id)
    if name is not None:
        name = clean_name(name, "Sub-category name")
        ensure_unique_name(
            db,
            SubCategory,
            name,
            tenant_id=sub_category.tenant_id,
            exclude_id=sub_category.id,
            category_id=sub_category.category_id,
        )
        sub_category.name = name
    if image_url is not None:
        sub_category.image_url = image_url.strip() or None
    commit(db)
    db.refresh(sub_category)
    return sub_category


def delete_sub_category(db: Session, actor, sub_category_id: int) -> None:
    sub_category = load_owned(db, SubCategory, sub_category_id, "Sub-category")
    authorize_write(db, actor, sub_category.tenant_id)
    db.delete(sub_category)
    commit(db)


def reorder_sub_categories(db: Session, actor, ordered_ids: Iterable[int]) -> list[SubCategory]:
    return reorder(db, actor, SubCategory, ordered_ids, "Sub-category")


# Brands and personalities share the same shape: a tenant-unique name.

def list_named(db: Session, actor, model: Type, tenant_id: int) -> list:
    authorize_read(db, actor, tenant_id)
    return public_named(db, model, tenant_id)


def public_named(db: Session, model: Type, tenant_id: int) -> list:
    return db.query(model).filter(model.tenant_id == tenant_id).order_by(model.name.asc()).all()


def create_named(db: Session, actor, model: Type, tenant_id: int, name: str, **fields):
    authorize_write(db, actor, tenant_id)
    name = clean_name(name)
    ensure_unique_name(db, model, name, tenant_id=tenant_id)
    entity = model(tenant_id=tenant_id, name=name, **fields)
    db.add(entity)
    commit(db)
    db.refresh(entity)
    return entity


def update_named(db: Session, actor, model: Type, entity_id: int, name: Optional[str] = None, **fields):
    entity = load_owned(db, model, entity_id, model.__name__)
    authorize_write(db, actor, entity.tenant_id)
    if name is not None:
        name = clean_name(name)
        ensure_unique_name(db, model, name, tenant_id=entity.tenant_id, exclude_id=entity.id)
        entity.name = name
    for column, value in fields.items():
        setattr(entity, column, value)
    commit(db)
    db.refresh(entity)
    return entity


def delete_named(db: Session, actor, model: Type, entity_id: int) -> None:
    entity = load_owned(db, model, entity_id, model.__name__)
    authorize_write(db, actor, entity.tenant_id)
    db.delete(entity)
    commit(db)


def list_brands(db: Session, actor, tenant_id: int) -> list[Brand]:
    return list_named(db, actor, Brand, tenant_id)


def create_brand(db: Session, actor, tenant_id: int, name: str) -> Brand:
    return create_named(db, actor, Brand, tenant_id, name)


def update_brand(db: Session, actor, brand_id: int, name: str) -> Brand:
    return update_named(db, actor, Brand, brand_id, name)


def delete_brand(db: Session, actor, brand_id: int) -> None:
    delete_named(db, actor, Brand, brand_id)


def list_personalities(db: Session, actor, tenant_id: int) -> list[Personality]:
    return list_named(db, actor, Personality, tenant_id)


def create_personality(db: Session, actor, tenant_id: int, name: str, image_url: Optional[str] = None) -> Personality:
    return create_named(db, actor, Personality, tenant_id, name, image_url=(image_url or "").strip() or None)


def update_personality(
    db: Session, actor, personality_id: int, name: Optional[str] = None, image_url: Optional[str] = None
) -> Personality:
    fields = {}
    if image_url is not None:
        fields["image_url"] = image_url.strip() or None
    return update_named(db, actor, Personality, personality_id, name, **fields)


def delete_personality(db: Session, actor, personality_id: int) -> None:
    delete_named(db, actor, Personality, personality_id)
