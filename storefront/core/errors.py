"""Error taxonomy shared by services and routers.

Services raise these; ``storefront.core.error_handlers`` turns them into
``{"kind": ..., "message": ...}`` responses at the request boundary.
"""

from __future__ import annotations

from typing import Optional


class StorefrontError(Exception):
    """Base exception for all application errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str = "An internal error occurred", *, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        if self.hint:
            payload["hint"] = self.hint
        return payload


class BadRequestError(StorefrontError):
    kind = "bad_request"
    status_code = 400


class NotFoundError(StorefrontError):
    kind = "not_found"
    status_code = 404

    def __init__(self, message: str = "Resource not found", *, hint: Optional[str] = None):
        super().__init__(message, hint=hint)


class TenantNotFoundError(NotFoundError):
    """No tenant is bound to the requested domain."""

    kind = "tenant_not_found"

    def __init__(self, domain: str):
        super().__init__(
            f'No store found for domain "{domain}"',
            hint="Check that the store has its domain field set correctly.",
        )
        self.domain = domain


class UnauthorizedError(StorefrontError):
    kind = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Access token required", *, hint: Optional[str] = None):
        super().__init__(message, hint=hint)


class ForbiddenError(StorefrontError):
    kind = "forbidden"
    status_code = 403

    def __init__(self, message: str = "Access denied", *, hint: Optional[str] = None):
        super().__init__(message, hint=hint)


class InvalidTokenError(ForbiddenError):
    kind = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class InvalidStateError(StorefrontError):
    kind = "invalid_state"
    status_code = 400


class TotalsMismatchError(InvalidStateError):
    kind = "totals_mismatch"


class InvalidTransitionError(StorefrontError):
    kind = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change order status from {current} to {target}")
        self.current = current
        self.target = target


class ConflictError(StorefrontError):
    kind = "conflict"
    status_code = 409
