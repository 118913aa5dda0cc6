from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError, ConflictError, ForbiddenError, UnauthorizedError
from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.models.user_tenant import UserTenant
from storefront.services import access_control
from storefront.services.access_control import ROLE_USER
from storefront.services.security import create_access_token, hash_password, verify_password
from storefront.services.tenant_directory import find_tenant_by_domain

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(
        user.id,
        extra={"username": user.username, "email": user.email, "role": user.role},
    )


def find_user_by_login(db: Session, login: str) -> Optional[User]:
    normalized = (login or "").strip().lower()
    if not normalized:
        return None
    return (
        db.query(User)
        .filter(or_(func.lower(User.username) == normalized, func.lower(User.email) == normalized))
        .first()
    )


def login(db: Session, login: str, password: str, domain: str | None) -> tuple[str, User]:
    """Authenticate ``login`` (username or email) for the storefront at ``domain``.

    Super admins may sign in from any domain. Everyone else needs the domain
    to belong to a tenant they are assigned to.
    """
    if not (login or "").strip() or not password:
        raise BadRequestError("Username and password are required")
    if not (domain or "").strip():
        raise BadRequestError("Domain is required")

    user = find_user_by_login(db, login)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Login failed login=%s", login)
        raise UnauthorizedError("Invalid credentials")

    if not access_control.is_super_admin(user):
        tenant = find_tenant_by_domain(db, domain)
        if tenant is None:
            access_control.log_access_denied(reason="unknown_domain", actor=user)
            raise ForbiddenError("No product found for this domain")
        if tenant.id not in access_control.tenant_ids_for(db, user.id):
            access_control.log_access_denied(reason="domain_not_assigned", actor=user, tenant_id=tenant.id)
            raise ForbiddenError("You do not have access to this domain")

    logger.info("Login succeeded user_id=%s role=%s", user.id, user.role)
    return issue_token(user), user


def register_customer(
    db: Session,
    tenant: Tenant,
    *,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> tuple[str, User]:
    """Create a ``user`` bound to the storefront's tenant and sign them in."""
    email = (email or "").strip().lower()
    if not email or not password:
        raise BadRequestError("Email and password are required")
    if find_user_by_login(db, email):
        raise ConflictError("An account with this email already exists")

    try:
        user = User(
            username=email,
            email=email,
            password_hash=hash_password(password),
            role=ROLE_USER,
            first_name=(first_name or "").strip() or None,
            last_name=(last_name or "").strip() or None,
            phone=(phone or "").strip() or None,
        )
        db.add(user)
        db.flush()
        db.add(UserTenant(user_id=user.id, tenant_id=tenant.id))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Customer registered user_id=%s tenant_id=%s", user.id, tenant.id)
    return issue_token(user), user
