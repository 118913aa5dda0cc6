from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.core.config import CLIENT_DOMAIN_HEADER
from storefront.core.errors import BadRequestError, TenantNotFoundError
from storefront.models.tenant import Tenant
from storefront.utils.domains import normalize_domain

logger = logging.getLogger(__name__)


def find_tenant_by_domain(db: Session, domain: str) -> Tenant | None:
    normalized = normalize_domain(domain)
    if not normalized:
        return None
    return db.query(Tenant).filter(func.lower(func.trim(Tenant.domain)) == normalized).first()


def resolve_tenant(db: Session, domain: str | None) -> Tenant:
    """Return the tenant bound to ``domain``.

    Matching is exact on the trimmed, lower-cased host. An unknown domain
    raises ``TenantNotFoundError`` so storefronts can tell "no store here"
    apart from an empty catalog.
    """
    normalized = normalize_domain(domain)
    if not normalized:
        raise BadRequestError("Domain is required")

    tenant = find_tenant_by_domain(db, normalized)
    if tenant is None:
        logger.info("Tenant resolution failed domain=%s", normalized)
        raise TenantNotFoundError(normalized)
    return tenant


def domain_from_request(request: Request) -> str:
    """Pick the storefront domain a request was made for.

    Explicit client headers win over the query string, which wins over the
    proxy and Host headers.
    """
    candidates = (
        request.headers.get(CLIENT_DOMAIN_HEADER),
        request.query_params.get("domain"),
        request.headers.get("x-forwarded-host"),
        request.headers.get("host"),
    )
    for candidate in candidates:
        normalized = normalize_domain(candidate)
        if normalized:
            return normalized
    return ""


def resolve_tenant_from_request(db: Session, request: Request) -> Tenant:
    return resolve_tenant(db, domain_from_request(request))
