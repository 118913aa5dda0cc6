from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import get_current_user, require_super_admin
from storefront.models.user import User
from storefront.schemas.catalog import tenant_to_dict
from storefront.services import tenants as tenant_service
from storefront.services.tenant_directory import resolve_tenant

router = APIRouter(prefix="/api/products", tags=["products"])


class TenantPayload(BaseModel):
    name: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    description: Optional[str] = None


class TenantCreate(TenantPayload):
    template_id: Optional[int] = None


@router.get("/by-domain")
def product_by_domain(domain: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    tenant = resolve_tenant(db, domain)
    return {"product_id": tenant.id, "name": tenant.name, "domain": tenant.domain}


@router.get("")
def list_products(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [tenant_to_dict(tenant) for tenant in tenant_service.list_visible_tenants(db, user)]


@router.get("/{product_id}")
def get_product(product_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return tenant_to_dict(tenant_service.get_tenant(db, user, product_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(payload: TenantCreate, user: User = Depends(require_super_admin), db: Session = Depends(get_db)):
    tenant = tenant_service.create_tenant(
        db,
        user,
        name=payload.name,
        domain=payload.domain,
        description=payload.description,
        template_id=payload.template_id,
    )
    return tenant_to_dict(tenant)


@router.put("/{product_id}")
def update_product(
    product_id: int,
    payload: TenantPayload,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    tenant = tenant_service.update_tenant(
        db, user, product_id, name=payload.name, domain=payload.domain, description=payload.description
    )
    return tenant_to_dict(tenant)


@router.delete("/{product_id}")
def delete_product(product_id: int, user: User = Depends(require_super_admin), db: Session = Depends(get_db)):
    tenant_service.delete_tenant(db, user, product_id)
    return {"ok": True}
