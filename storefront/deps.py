from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.errors import InvalidTokenError, UnauthorizedError
from storefront.core.request_context import set_request_context
from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.services import access_control
from storefront.services.security import decode_access_token
from storefront.services.tenant_directory import resolve_tenant_from_request

# Swagger "Authorize" posts the OAuth2 password form here. auto_error is off so a
# missing token yields our 401 instead of FastAPI's default.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

logger = logging.getLogger(__name__)


def _extract_user_id(payload: Dict[str, Any]) -> Optional[int]:
    raw = payload.get("sub", payload.get("id"))
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Decode the bearer token and load the user; the stored role is authoritative."""
    if not token:
        raise UnauthorizedError()
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise InvalidTokenError()

    user_id = _extract_user_id(payload)
    if user_id is None:
        raise InvalidTokenError("Invalid token (missing user id)")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("User not found")

    request.state.user_id = user.id
    set_request_context(user_id=user.id)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    access_control.ensure_admin(user)
    return user


def require_super_admin(user: User = Depends(get_current_user)) -> User:
    access_control.ensure_super_admin(user)
    return user


def get_storefront_tenant(request: Request, db: Session = Depends(get_db)) -> Tenant:
    """Tenant bound to the domain this storefront request was made for."""
    tenant = resolve_tenant_from_request(db, request)
    request.state.tenant_id = tenant.id
    set_request_context(tenant_id=tenant.id)
    return tenant
