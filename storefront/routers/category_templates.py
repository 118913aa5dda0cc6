from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import require_admin, require_super_admin
from storefront.models.user import User
from storefront.schemas.catalog import category_to_dict, template_to_dict
from storefront.services import category_templates

router = APIRouter(prefix="/api", tags=["category-templates"])


class TemplatePayload(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class TemplateCategoryEntry(BaseModel):
    name: str = Field(..., min_length=1)
    sub_categories: List[str] = Field(default_factory=list)


class TemplateCategoriesPayload(BaseModel):
    categories: List[TemplateCategoryEntry]


class ApplyTemplatePayload(BaseModel):
    template_id: int


@router.get("/category-templates")
def list_templates(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [template_to_dict(template) for template in category_templates.list_templates(db, user)]


@router.get("/category-templates/{template_id}")
def get_template(template_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return template_to_dict(category_templates.get_template(db, user, template_id))


@router.post("/category-templates", status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplatePayload, user: User = Depends(require_super_admin), db: Session = Depends(get_db)
):
    template = category_templates.create_template(db, user, name=payload.name, description=payload.description)
    return template_to_dict(template)


@router.put("/category-templates/{template_id}")
def update_template(
    template_id: int,
    payload: TemplatePayload,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    template = category_templates.update_template(
        db, user, template_id, name=payload.name, description=payload.description
    )
    return template_to_dict(template)


@router.delete("/category-templates/{template_id}")
def delete_template(template_id: int, user: User = Depends(require_super_admin), db: Session = Depends(get_db)):
    category_templates.delete_template(db, user, template_id)
    return {"ok": True}


@router.put("/category-templates/{template_id}/categories")
def set_template_categories(
    template_id: int,
    payload: TemplateCategoriesPayload,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    entries = [entry.model_dump() for entry in payload.categories]
    return template_to_dict(category_templates.set_template_categories(db, user, template_id, entries))


@router.post("/products/{product_id}/categories/from-template")
def apply_template(
    product_id: int,
    payload: ApplyTemplatePayload,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    categories = category_templates.apply_template(db, user, payload.template_id, product_id)
    return [category_to_dict(category) for category in categories]
