from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import require_admin
from storefront.models.user import User
from storefront.schemas.catalog import product_item_to_dict
from storefront.services import product_items

router = APIRouter(prefix="/api", tags=["product-items"])


class ProductItemCreate(BaseModel):
    weight: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    name: Optional[str] = None
    description: Optional[str] = None
    brand_id: Optional[int] = None
    image_url: Optional[str] = None
    is_active: bool = True
    sub_category_ids: List[int] = Field(default_factory=list)
    personality_ids: List[int] = Field(default_factory=list)


class ProductItemUpdate(BaseModel):
    weight: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0)
    name: Optional[str] = None
    description: Optional[str] = None
    brand_id: Optional[int] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
    sub_category_ids: Optional[List[int]] = None
    personality_ids: Optional[List[int]] = None


class ReorderPayload(BaseModel):
    ids: List[int] = Field(..., min_length=1)


@router.get("/products/{product_id}/product-items")
def list_items(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [product_item_to_dict(item) for item in product_items.list_product_items(db, user, product_id)]


@router.post("/products/{product_id}/product-items", status_code=status.HTTP_201_CREATED)
def create_item(
    product_id: int,
    payload: ProductItemCreate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    item = product_items.create_product_item(db, user, product_id, **payload.model_dump())
    return product_item_to_dict(item)


@router.put("/product-items/reorder")
def reorder_items(payload: ReorderPayload, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [product_item_to_dict(item) for item in product_items.reorder_product_items(db, user, payload.ids)]


@router.put("/product-items/{item_id}")
def update_item(
    item_id: int,
    payload: ProductItemUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    item = product_items.update_product_item(db, user, item_id, payload.model_dump(exclude_unset=True))
    return product_item_to_dict(item)


@router.delete("/product-items/{item_id}")
def delete_item(item_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    product_items.delete_product_item(db, user, item_id)
    return {"ok": True}
