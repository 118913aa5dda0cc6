"""Role and tenant-scope checks shared by every admin and storefront path.

Roles form a hierarchy ``super_admin > admin > user``. A super_admin is never
tenant-scoped; admins and users reach only the tenants they are assigned to.
An admin may manage another user only when that user's whole tenant set is
covered by the admin's own (the full-coverage rule).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from storefront.core.errors import ForbiddenError
from storefront.models.user_tenant import UserTenant

logger = logging.getLogger(__name__)

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_USER)


def normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def is_super_admin(user) -> bool:
    return normalize_role(getattr(user, "role", None)) == ROLE_SUPER_ADMIN


def is_admin(user) -> bool:
    """True for admins and super_admins."""
    return normalize_role(getattr(user, "role", None)) in {ROLE_SUPER_ADMIN, ROLE_ADMIN}


def log_access_denied(*, reason: str, actor, tenant_id: int | None = None, target_id: int | None = None) -> None:
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s tenant_id=%s target_id=%s",
        reason,
        getattr(actor, "id", None),
        getattr(actor, "role", None),
        tenant_id,
        target_id,
    )


def tenant_ids_for(db: Session, user_id: int) -> set[int]:
    rows = db.query(UserTenant.tenant_id).filter(UserTenant.user_id == user_id).all()
    return {int(row[0]) for row in rows}


def covers(admin_tenant_ids: Iterable[int], user_tenant_ids: Iterable[int]) -> bool:
    """Full-coverage rule: the user's tenants are a non-empty subset of the admin's."""
    user_ids = set(user_tenant_ids)
    if not user_ids:
        return False
    return user_ids <= set(admin_tenant_ids)


def visible_tenant_ids(db: Session, actor) -> Optional[set[int]]:
    """Tenants ``actor`` may see; ``None`` means unrestricted."""
    if is_super_admin(actor):
        return None
    return tenant_ids_for(db, actor.id)


def ensure_admin(actor) -> None:
    if not is_admin(actor):
        log_access_denied(reason="role_denied", actor=actor)
        raise ForbiddenError("Admin access required")


def ensure_super_admin(actor) -> None:
    if not is_super_admin(actor):
        log_access_denied(reason="role_denied", actor=actor)
        raise ForbiddenError("Super admin access required")


def ensure_tenant_access(db: Session, actor, tenant_id: int) -> None:
    if is_super_admin(actor):
        return
    if int(tenant_id) not in tenant_ids_for(db, actor.id):
        log_access_denied(reason="tenant_mismatch", actor=actor, tenant_id=tenant_id)
        raise ForbiddenError("You do not have access to this product")


def can_manage_user(db: Session, actor, target) -> bool:
    """Full-coverage check for admins; super_admins manage everyone."""
    if is_super_admin(actor):
        return True
    if not is_admin(actor) or is_super_admin(target):
        return False
    return covers(tenant_ids_for(db, actor.id), tenant_ids_for(db, target.id))


def ensure_can_manage_user(db: Session, actor, target) -> None:
    if can_manage_user(db, actor, target):
        return
    ensure_admin(actor)
    if is_super_admin(target):
        log_access_denied(reason="super_admin_target", actor=actor, target_id=target.id)
        raise ForbiddenError("Cannot modify super admin users")
    log_access_denied(reason="coverage_denied", actor=actor, target_id=target.id)
    raise ForbiddenError("You can only manage users whose products you fully administer")
