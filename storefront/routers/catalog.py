from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import get_current_user, require_admin
from storefront.models.user import User
from storefront.schemas.catalog import (
    brand_to_dict,
    category_to_dict,
    personality_to_dict,
    sub_category_to_dict,
)
from storefront.services import catalog

router = APIRouter(prefix="/api", tags=["catalog"])


class NamePayload(BaseModel):
    name: str = Field(..., min_length=1)


class PersonalityPayload(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None


class SubCategoryCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class SubCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None


class ReorderPayload(BaseModel):
    ids: List[int] = Field(..., min_length=1)


# Categories

@router.get("/products/{product_id}/categories")
def list_categories(product_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [category_to_dict(category) for category in catalog.list_categories(db, user, product_id)]


@router.post("/products/{product_id}/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    product_id: int,
    payload: NamePayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return category_to_dict(catalog.create_category(db, user, product_id, payload.name))


@router.put("/categories/reorder")
def reorder_categories(payload: ReorderPayload, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [category_to_dict(category) for category in catalog.reorder_categories(db, user, payload.ids)]


@router.put("/categories/{category_id}")
def update_category(
    category_id: int,
    payload: NamePayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return category_to_dict(catalog.update_category(db, user, category_id, payload.name))


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    catalog.delete_category(db, user, category_id)
    return {"ok": True}


# Sub-categories

@router.post("/sub-categories", status_code=status.HTTP_201_CREATED)
def create_sub_category(payload: SubCategoryCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    sub_category = catalog.create_sub_category(db, user, payload.category_id, payload.name, payload.image_url)
    return sub_category_to_dict(sub_category)


@router.put("/sub-categories/reorder")
def reorder_sub_categories(payload: ReorderPayload, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [sub_category_to_dict(sub) for sub in catalog.reorder_sub_categories(db, user, payload.ids)]


@router.put("/sub-categories/{sub_category_id}")
def update_sub_category(
    sub_category_id: int,
    payload: SubCategoryUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    sub_category = catalog.update_sub_category(
        db, user, sub_category_id, name=payload.name, image_url=payload.image_url
    )
    return sub_category_to_dict(sub_category)


@router.delete("/sub-categories/{sub_category_id}")
def delete_sub_category(sub_category_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    catalog.delete_sub_category(db, user, sub_category_id)
    return {"ok": True}


# Brands

@router.get("/products/{product_id}/brands")
def list_brands(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [brand_to_dict(brand) for brand in catalog.list_brands(db, user, product_id)]


@router.post("/products/{product_id}/brands", status_code=status.HTTP_201_CREATED)
def create_brand(
    product_id: int,
    payload: NamePayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return brand_to_dict(catalog.create_brand(db, user, product_id, payload.name))


@router.put("/brands/{brand_id}")
def update_brand(brand_id: int, payload: NamePayload, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return brand_to_dict(catalog.update_brand(db, user, brand_id, payload.name))


@router.delete("/brands/{brand_id}")
def delete_brand(brand_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    catalog.delete_brand(db, user, brand_id)
    return {"ok": True}


# Personalities

@router.get("/products/{product_id}/personalities")
def list_personalities(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [personality_to_dict(entry) for entry in catalog.list_personalities(db, user, product_id)]


@router.post("/products/{product_id}/personalities", status_code=status.HTTP_201_CREATED)
def create_personality(
    product_id: int,
    payload: PersonalityPayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    personality = catalog.create_personality(db, user, product_id, payload.name, payload.image_url)
    return personality_to_dict(personality)


@router.put("/personalities/{personality_id}")
def update_personality(
    personality_id: int,
    payload: PersonalityPayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    personality = catalog.update_personality(db, user, personality_id, payload.name, payload.image_url)
    return personality_to_dict(personality)


@router.delete("/personalities/{personality_id}")
def delete_personality(personality_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    catalog.delete_personality(db, user, personality_id)
    return {"ok": True}
