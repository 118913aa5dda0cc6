from __future__ import annotations

from contextvars import ContextVar
from typing import Optional, Union

Identifier = Union[int, str, None]

_REQUEST_ID_CTX: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_TENANT_ID_CTX: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)
_USER_ID_CTX: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def _as_text(value: Identifier) -> Optional[str]:
    return None if value is None else str(value)


def set_request_context(
    *, request_id: Optional[str] = None, tenant_id: Identifier = None, user_id: Identifier = None
) -> None:
    """Attach identifiers to the running request; ``None`` leaves a value untouched."""
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if tenant_id is not None:
        _TENANT_ID_CTX.set(_as_text(tenant_id))
    if user_id is not None:
        _USER_ID_CTX.set(_as_text(user_id))


def get_request_id() -> Optional[str]:
    return _REQUEST_ID_CTX.get()


def get_tenant_id() -> Optional[str]:
    return _TENANT_ID_CTX.get()


def get_user_id() -> Optional[str]:
    return _USER_ID_CTX.get()


def clear_request_context() -> None:
    for ctx in (_REQUEST_ID_CTX, _TENANT_ID_CTX, _USER_ID_CTX):
        ctx.set(None)
