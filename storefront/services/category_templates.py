"""Global category templates and their application to a tenant's catalog.

Only super_admins edit templates. Applying one copies its names into the
tenant as ordinary categories and sub-categories; names the tenant already
has (case-insensitive) are reused, never duplicated.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from storefront.core.errors import BadRequestError, ConflictError, NotFoundError
from storefront.models.category import Category, SubCategory
from storefront.models.category_template import CategoryTemplate, TemplateCategory, TemplateSubCategory
from storefront.services import access_control
from storefront.services.catalog import authorize_write, clean_name, commit

logger = logging.getLogger(__name__)
TEMPLATES_PREFIX = "[TEMPLATES]"


def _load_template(db: Session, template_id: int) -> CategoryTemplate:
    template = (
        db.query(CategoryTemplate)
        .options(selectinload(CategoryTemplate.categories).selectinload(TemplateCategory.sub_categories))
        .filter(CategoryTemplate.id == template_id)
        .first()
    )
    if not template:
        raise NotFoundError("Template not found")
    return template


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(CategoryTemplate.id).filter(func.lower(CategoryTemplate.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(CategoryTemplate.id != exclude_id)
    if query.first():
        raise ConflictError("A template with this name already exists")


def list_templates(db: Session, actor) -> list[CategoryTemplate]:
    access_control.ensure_admin(actor)
    return (
        db.query(CategoryTemplate)
        .options(selectinload(CategoryTemplate.categories).selectinload(TemplateCategory.sub_categories))
        .order_by(CategoryTemplate.name.asc())
        .all()
    )


def get_template(db: Session, actor, template_id: int) -> CategoryTemplate:
    access_control.ensure_admin(actor)
    return _load_template(db, template_id)


def create_template(db: Session, actor, *, name: str, description: Optional[str] = None) -> CategoryTemplate:
    access_control.ensure_super_admin(actor)
    name = clean_name(name, "Template name")
    _ensure_unique_name(db, name)

    template = CategoryTemplate(name=name, description=(description or "").strip())
    db.add(template)
    commit(db)
    db.refresh(template)
    logger.info("%s created template_id=%s", TEMPLATES_PREFIX, template.id)
    return template


def update_template(
    db: Session, actor, template_id: int, *, name: str, description: Optional[str] = None
) -> CategoryTemplate:
    access_control.ensure_super_admin(actor)
    template = _load_template(db, template_id)
    name = clean_name(name, "Template name")
    _ensure_unique_name(db, name, exclude_id=template.id)

    template.name = name
    if description is not None:
        template.description = description.strip()
    commit(db)
    db.refresh(template)
    return template


def delete_template(db: Session, actor, template_id: int) -> None:
    access_control.ensure_super_admin(actor)
    template = _load_template(db, template_id)
    db.delete(template)
    commit(db)
    logger.info("%s deleted template_id=%s", TEMPLATES_PREFIX, template_id)


def _clean_entries(entries: Iterable[Mapping[str, Any]]) -> list[tuple[str, list[str]]]:
    cleaned: list[tuple[str, list[str]]] = []
    seen: set[str] = set()
    for entry in entries:
        name = clean_name(entry.get("name"), "Category name")
        if name.lower() in seen:
            raise BadRequestError(f'Category "{name}" is listed twice')
        seen.add(name.lower())

        sub_names: list[str] = []
        seen_subs: set[str] = set()
        for sub_name in entry.get("sub_categories") or ():
            sub_name = clean_name(sub_name, "Sub-category name")
            if sub_name.lower() in seen_subs:
                raise BadRequestError(f'Sub-category "{sub_name}" is listed twice under "{name}"')
            seen_subs.add(sub_name.lower())
            sub_names.append(sub_name)
        cleaned.append((name, sub_names))
    return cleaned


def set_template_categories(
    db: Session, actor, template_id: int, entries: Iterable[Mapping[str, Any]]
) -> CategoryTemplate:
    """Replace the template's categories with ``entries``, in the given order.

    Each entry is ``{"name": ..., "sub_categories": [...]}``. Validation runs
    before anything is removed, so a bad entry leaves the template untouched.
    """
    access_control.ensure_super_admin(actor)
    template = _load_template(db, template_id)
    cleaned = _clean_entries(entries)

    try:
        template.categories.clear()
        db.flush()
        for position, (name, sub_names) in enumerate(cleaned, start=1):
            template.categories.append(
                TemplateCategory(
                    name=name,
                    display_order=position,
                    sub_categories=[
                        TemplateSubCategory(name=sub_name, display_order=sub_position)
                        for sub_position, sub_name in enumerate(sub_names, start=1)
                    ],
                )
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return _load_template(db, template.id)


def copy_into_tenant(db: Session, template: CategoryTemplate, tenant_id: int) -> list[Category]:
    """Create the template's categories in ``tenant_id`` without committing."""
    existing = {
        category.name.lower(): category
        for category in db.query(Category)
        .options(selectinload(Category.sub_categories))
        .filter(Category.tenant_id == tenant_id)
        .all()
    }
    next_order = max((category.display_order for category in existing.values()), default=0) + 1

    touched: list[Category] = []
    for entry in template.categories:
        category = existing.get(entry.name.lower())
        if category is None:
            category = Category(tenant_id=tenant_id, name=entry.name, display_order=next_order)
            next_order += 1
            db.add(category)
            db.flush()
            existing[entry.name.lower()] = category

        present = {sub.name.lower() for sub in category.sub_categories}
        sub_order = max((sub.display_order for sub in category.sub_categories), default=0) + 1
        for sub_entry in entry.sub_categories:
            if sub_entry.name.lower() in present:
                continue
            category.sub_categories.append(
                SubCategory(tenant_id=tenant_id, name=sub_entry.name, display_order=sub_order)
            )
            sub_order += 1
            present.add(sub_entry.name.lower())
        touched.append(category)
    db.flush()
    return touched


def apply_template(db: Session, actor, template_id: int, tenant_id: int) -> list[Category]:
    authorize_write(db, actor, tenant_id)
    template = _load_template(db, template_id)
    try:
        categories = copy_into_tenant(db, template, tenant_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("%s applied template_id=%s tenant_id=%s", TEMPLATES_PREFIX, template.id, tenant_id)
    return categories
