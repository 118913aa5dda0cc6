from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError, ConflictError, InvalidStateError, NotFoundError
from storefront.models.tenant import Tenant
from storefront.models.user_tenant import UserTenant
from storefront.services import access_control, category_templates
from storefront.utils.domains import normalize_domain

logger = logging.getLogger(__name__)
TENANTS_PREFIX = "[TENANTS]"


def list_visible_tenants(db: Session, actor) -> list[Tenant]:
    """Tenants ``actor`` can see, which are also the ones an admin may hand out."""
    query = db.query(Tenant)
    visible = access_control.visible_tenant_ids(db, actor)
    if visible is not None:
        if not visible:
            return []
        query = query.filter(Tenant.id.in_(visible))
    return query.order_by(Tenant.name.asc()).all()


def get_tenant(db: Session, actor, tenant_id: int) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Product not found")
    access_control.ensure_tenant_access(db, actor, tenant.id)
    return tenant


def _clean(name: Optional[str], domain: Optional[str]) -> tuple[str, str]:
    cleaned_name = (name or "").strip()
    cleaned_domain = normalize_domain(domain)
    if not cleaned_name:
        raise BadRequestError("Product name is required")
    if not cleaned_domain:
        raise BadRequestError("Domain is required")
    return cleaned_name, cleaned_domain


def _ensure_unique(db: Session, name: str, domain: str, exclude_id: Optional[int] = None) -> None:
    name_query = db.query(Tenant.id).filter(func.lower(func.trim(Tenant.name)) == name.lower())
    domain_query = db.query(Tenant.id).filter(func.lower(func.trim(Tenant.domain)) == domain)
    if exclude_id is not None:
        name_query = name_query.filter(Tenant.id != exclude_id)
        domain_query = domain_query.filter(Tenant.id != exclude_id)
    if name_query.first():
        raise ConflictError("A product with this name already exists")
    if domain_query.first():
        raise ConflictError("A product with this domain already exists")


def create_tenant(
    db: Session,
    actor,
    *,
    name: str,
    domain: str,
    description: Optional[str] = None,
    template_id: Optional[int] = None,
) -> Tenant:
    """Create a tenant, optionally seeding its categories from a template."""
    access_control.ensure_super_admin(actor)
    name, domain = _clean(name, domain)
    _ensure_unique(db, name, domain)
    template = category_templates.get_template(db, actor, template_id) if template_id is not None else None

    tenant = Tenant(name=name, domain=domain, description=(description or "").strip())
    try:
        db.add(tenant)
        db.flush()
        if template is not None:
            category_templates.copy_into_tenant(db, template, tenant.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tenant)
    logger.info("%s created tenant_id=%s domain=%s template_id=%s", TENANTS_PREFIX, tenant.id, domain, template_id)
    return tenant


def update_tenant(
    db: Session, actor, tenant_id: int, *, name: str, domain: str, description: Optional[str] = None
) -> Tenant:
    access_control.ensure_super_admin(actor)
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Product not found")
    name, domain = _clean(name, domain)
    _ensure_unique(db, name, domain, exclude_id=tenant.id)

    tenant.name = name
    tenant.domain = domain
    if description is not None:
        tenant.description = description.strip()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tenant)
    return tenant


def users_left_without_tenant(db: Session, tenant_id: int) -> list[int]:
    """Ids of users whose only assignment is ``tenant_id``."""
    assigned = select(UserTenant.user_id).where(UserTenant.tenant_id == tenant_id)
    rows = (
        db.query(UserTenant.user_id)
        .filter(UserTenant.user_id.in_(assigned))
        .group_by(UserTenant.user_id)
        .having(func.count(UserTenant.id) == 1)
        .order_by(UserTenant.user_id.asc())
        .all()
    )
    return [int(row[0]) for row in rows]


def delete_tenant(db: Session, actor, tenant_id: int) -> None:
    """Delete a tenant with its whole catalog, orders and user assignments.

    Refused while any user is assigned to this tenant alone, since the delete
    would leave them with no tenant at all.
    """
    access_control.ensure_super_admin(actor)
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Product not found")

    stranded = users_left_without_tenant(db, tenant.id)
    if stranded:
        raise InvalidStateError(
            "Product still has users assigned to no other product",
            hint=f"Reassign or delete users: {', '.join(str(user_id) for user_id in stranded)}",
        )

    try:
        db.delete(tenant)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("%s deleted tenant_id=%s", TENANTS_PREFIX, tenant_id)
