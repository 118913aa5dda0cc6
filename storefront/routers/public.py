from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import get_storefront_tenant
from storefront.models.brand import Brand
from storefront.models.personality import Personality
from storefront.models.tenant import Tenant
from storefront.schemas.catalog import (
    brand_to_dict,
    category_to_dict,
    personality_to_dict,
    product_item_to_dict,
    tax_to_dict,
)
from storefront.services import catalog, product_items, taxes

# Storefront reads: no login, scoped to the tenant bound to the request's domain.
router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/categories")
def public_categories(tenant: Tenant = Depends(get_storefront_tenant), db: Session = Depends(get_db)):
    return {
        "product_id": tenant.id,
        "categories": [category_to_dict(category) for category in catalog.public_categories(db, tenant.id)],
    }


@router.get("/brands")
def public_brands(tenant: Tenant = Depends(get_storefront_tenant), db: Session = Depends(get_db)):
    return {
        "product_id": tenant.id,
        "brands": [brand_to_dict(brand) for brand in catalog.public_named(db, Brand, tenant.id)],
    }


@router.get("/personalities")
def public_personalities(tenant: Tenant = Depends(get_storefront_tenant), db: Session = Depends(get_db)):
    return {
        "product_id": tenant.id,
        "personalities": [
            personality_to_dict(entry) for entry in catalog.public_named(db, Personality, tenant.id)
        ],
    }


@router.get("/taxes")
def public_taxes(tenant: Tenant = Depends(get_storefront_tenant), db: Session = Depends(get_db)):
    return {"product_id": tenant.id, "taxes": [tax_to_dict(tax) for tax in taxes.public_taxes(db, tenant.id)]}


@router.get("/items")
def public_items(
    category_id: Optional[int] = None,
    sub_category_id: Optional[int] = None,
    tenant: Tenant = Depends(get_storefront_tenant),
    db: Session = Depends(get_db),
):
    items = product_items.public_items(db, tenant.id, category_id=category_id, sub_category_id=sub_category_id)
    return {"product_id": tenant.id, "items": [product_item_to_dict(item) for item in items]}
