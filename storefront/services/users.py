"""User management pipelines.

Each operation runs its validation stages first, then mutates inside the
request session and commits once. Any failure rolls the whole unit back, so
a user is never left half-updated (for example with zero tenants).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError, ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.models.user_tenant import UserTenant
from storefront.services import access_control
from storefront.services.access_control import ROLE_SUPER_ADMIN, ROLE_USER, ROLES
from storefront.services.admin_audit import log_admin_action
from storefront.services.security import hash_password

logger = logging.getLogger(__name__)
USERS_PREFIX = "[USERS]"


# Validation stages

def _validate_role(role: str | None) -> str:
    normalized = access_control.normalize_role(role)
    if normalized not in ROLES:
        raise BadRequestError("Invalid role", hint=f"Expected one of: {', '.join(ROLES)}")
    return normalized


def _load_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _validate_tenant_ids(db: Session, actor, tenant_ids: Iterable[int]) -> list[int]:
    """Check that a replacement tenant set is non-empty, exists and is the actor's to give."""
    requested = sorted({int(tenant_id) for tenant_id in tenant_ids})
    if not requested:
        raise InvalidStateError("Users who are not super admins must have at least one product assigned")

    found = {row[0] for row in db.query(Tenant.id).filter(Tenant.id.in_(requested)).all()}
    missing = [tenant_id for tenant_id in requested if tenant_id not in found]
    if missing:
        raise NotFoundError(f"Products not found: {', '.join(str(tenant_id) for tenant_id in missing)}")

    if not access_control.is_super_admin(actor):
        held = access_control.tenant_ids_for(db, actor.id)
        foreign = [tenant_id for tenant_id in requested if tenant_id not in held]
        if foreign:
            access_control.log_access_denied(reason="tenant_not_held", actor=actor, tenant_id=foreign[0])
            raise ForbiddenError("You can only assign products you have access to")
    return requested


def _ensure_unique_identity(
    db: Session, *, username: Optional[str] = None, email: Optional[str] = None, exclude_id: Optional[int] = None
) -> None:
    if username:
        query = db.query(User.id).filter(func.lower(User.username) == username.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Username already exists")
    if email:
        query = db.query(User.id).filter(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Email already exists")


def _replace_assignments(db: Session, user_id: int, tenant_ids: Iterable[int]) -> None:
    db.query(UserTenant).filter(UserTenant.user_id == user_id).delete(synchronize_session=False)
    db.add_all([UserTenant(user_id=user_id, tenant_id=tenant_id) for tenant_id in tenant_ids])
    db.flush()


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# Queries

def list_manageable_users(db: Session, actor) -> list[User]:
    access_control.ensure_admin(actor)
    users = db.query(User).order_by(User.id.asc()).all()
    if access_control.is_super_admin(actor):
        return users

    assignments: dict[int, set[int]] = {}
    for user_id, tenant_id in db.query(UserTenant.user_id, UserTenant.tenant_id).all():
        assignments.setdefault(int(user_id), set()).add(int(tenant_id))

    admin_tenants = assignments.get(actor.id, set())
    return [
        user
        for user in users
        if not access_control.is_super_admin(user) and access_control.covers(admin_tenants, assignments.get(user.id, ()))
    ]


def get_manageable_user(db: Session, actor, user_id: int) -> User:
    access_control.ensure_admin(actor)
    target = _load_user(db, user_id)
    access_control.ensure_can_manage_user(db, actor, target)
    return target


# Mutations

def create_user(
    db: Session,
    actor,
    *,
    username: str,
    password: str,
    email: Optional[str] = None,
    role: str = ROLE_USER,
    tenant_ids: Optional[Iterable[int]] = None,
) -> User:
    access_control.ensure_admin(actor)
    role = _validate_role(role)
    username = (username or "").strip()
    email = (email or "").strip() or None
    if not username or not password:
        raise BadRequestError("Username and password are required")
    if role == ROLE_SUPER_ADMIN and not access_control.is_super_admin(actor):
        access_control.log_access_denied(reason="grant_super_admin", actor=actor)
        raise ForbiddenError("Only super admin can create super admin users")

    requested = list(tenant_ids or [])
    if role == ROLE_SUPER_ADMIN:
        if requested:
            raise InvalidStateError("Super admins cannot be assigned to products")
        assigned: list[int] = []
    else:
        if not requested and not access_control.is_super_admin(actor):
            held = access_control.tenant_ids_for(db, actor.id)
            if len(held) == 1:
                requested = list(held)
        assigned = _validate_tenant_ids(db, actor, requested)

    _ensure_unique_identity(db, username=username, email=email)

    try:
        user = User(username=username, email=email, password_hash=hash_password(password), role=role)
        db.add(user)
        db.flush()
        _replace_assignments(db, user.id, assigned)
        log_admin_action(
            db,
            actor_id=actor.id,
            action="user.create",
            entity_type="user",
            entity_id=user.id,
            meta={"role": role, "tenant_ids": assigned},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("%s created user_id=%s role=%s tenants=%s", USERS_PREFIX, user.id, role, assigned)
    return user


def update_user(
    db: Session, actor, user_id: int, *, email: Optional[str] = None, password: Optional[str] = None
) -> User:
    if email is None and not password:
        raise BadRequestError("Nothing to update", hint="Send an email and/or a password")

    target = get_manageable_user(db, actor, user_id)
    changed: list[str] = []
    if email is not None:
        normalized_email = email.strip() or None
        _ensure_unique_identity(db, email=normalized_email, exclude_id=target.id)
        target.email = normalized_email
        changed.append("email")
    if password:
        target.password_hash = hash_password(password)
        changed.append("password")

    log_admin_action(
        db,
        actor_id=actor.id,
        action="user.update",
        entity_type="user",
        entity_id=target.id,
        meta={"fields": changed},
    )
    _commit(db)
    db.refresh(target)
    logger.info("%s updated user_id=%s fields=%s", USERS_PREFIX, target.id, changed)
    return target


def delete_user(db: Session, actor, user_id: int) -> None:
    if int(user_id) == int(actor.id):
        raise BadRequestError("Cannot delete your own account")

    target = get_manageable_user(db, actor, user_id)
    db.delete(target)
    log_admin_action(db, actor_id=actor.id, action="user.delete", entity_type="user", entity_id=user_id)
    _commit(db)
    logger.info("%s deleted user_id=%s", USERS_PREFIX, user_id)


def change_role(
    db: Session, actor, user_id: int, role: str, tenant_ids: Optional[Iterable[int]] = None
) -> User:
    """Change a user's role, keeping role and tenant scope consistent.

    Promotion to super_admin drops every assignment. Any other role needs a
    non-empty tenant set afterwards: either the user's current one or the
    ``tenant_ids`` sent alongside the change, which replace it.
    """
    access_control.ensure_admin(actor)
    role = _validate_role(role)
    target = _load_user(db, user_id)

    if not access_control.is_super_admin(actor) and role == ROLE_SUPER_ADMIN:
        access_control.log_access_denied(reason="grant_super_admin", actor=actor, target_id=target.id)
        raise ForbiddenError("Only super admin can assign super admin role")
    access_control.ensure_can_manage_user(db, actor, target)

    previous_role = target.role
    try:
        if role == ROLE_SUPER_ADMIN:
            db.query(UserTenant).filter(UserTenant.user_id == target.id).delete(synchronize_session=False)
            assigned: list[int] = []
        elif tenant_ids is not None:
            assigned = _validate_tenant_ids(db, actor, tenant_ids)
            _replace_assignments(db, target.id, assigned)
        else:
            assigned = sorted(access_control.tenant_ids_for(db, target.id))
            if not assigned:
                raise InvalidStateError(
                    "User must have at least one product assigned before changing to this role"
                )

        target.role = role
        log_admin_action(
            db,
            actor_id=actor.id,
            action="user.role_change",
            entity_type="user",
            entity_id=target.id,
            meta={"from": previous_role, "to": role, "tenant_ids": assigned},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(target)
    logger.info("%s role changed user_id=%s %s -> %s", USERS_PREFIX, target.id, previous_role, role)
    return target


def assign_tenants(db: Session, actor, user_id: int, tenant_ids: Iterable[int]) -> list[int]:
    """Replace the user's whole tenant set atomically and return it."""
    access_control.ensure_admin(actor)
    target = _load_user(db, user_id)
    access_control.ensure_can_manage_user(db, actor, target)
    if access_control.is_super_admin(target):
        raise InvalidStateError("Super admins have access to every product and cannot be assigned")

    assigned = _validate_tenant_ids(db, actor, tenant_ids)
    previous = sorted(access_control.tenant_ids_for(db, target.id))

    try:
        _replace_assignments(db, target.id, assigned)
        log_admin_action(
            db,
            actor_id=actor.id,
            action="user.assign_products",
            entity_type="user",
            entity_id=target.id,
            meta={"from": previous, "to": assigned},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("%s assigned user_id=%s tenants=%s", USERS_PREFIX, target.id, assigned)
    return assigned
