from __future__ import annotations

from typing import Optional

from sqlalchemy import func, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from storefront.models.user import User
from storefront.models.user_tenant import UserTenant
from storefront.services.access_control import ROLE_SUPER_ADMIN
from storefront.services.security import hash_password

REQUIRED_TABLES = {"users", "tenants", "user_tenants", "admin_audit_log"}


def ensure_tables_exist(engine: Engine) -> None:
    inspector = inspect(engine)
    missing = sorted(table for table in REQUIRED_TABLES if not inspector.has_table(table))
    if missing:
        raise RuntimeError(f"Tables missing, apply migrations first: {', '.join(missing)}")


def password_looks_hashed(password: str) -> bool:
    return password.startswith(("$2a$", "$2b$", "$2y$"))


def upsert_super_admin(
    db: Session,
    *,
    username: str,
    password: Optional[str],
    email: Optional[str] = None,
    reset_password: bool = False,
) -> tuple[User, bool]:
    """Create the super admin, or promote and optionally re-key an existing account.

    Returns ``(user, created)``.
    """
    existing = db.query(User).filter(func.lower(User.username) == username.lower()).first()
    if existing:
        existing.role = ROLE_SUPER_ADMIN
        if email:
            existing.email = email
        if password and reset_password:
            existing.password_hash = password if password_looks_hashed(password) else hash_password(password)
        # Super admins are never tenant-scoped.
        db.query(UserTenant).filter(UserTenant.user_id == existing.id).delete(synchronize_session=False)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("A password is required to create the super admin")

    user = User(
        username=username,
        email=email,
        password_hash=password if password_looks_hashed(password) else hash_password(password),
        role=ROLE_SUPER_ADMIN,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True
