from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import require_admin
from storefront.models.user import User
from storefront.schemas.catalog import tax_to_dict
from storefront.services import taxes

router = APIRouter(prefix="/api", tags=["taxes"])


class TaxCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: Literal["percentage", "fixed"]
    value: Decimal = Field(..., ge=0)
    is_active: bool = True


class TaxUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[Literal["percentage", "fixed"]] = None
    value: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


@router.get("/products/{product_id}/taxes")
def list_taxes(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [tax_to_dict(tax) for tax in taxes.list_taxes(db, user, product_id)]


@router.post("/products/{product_id}/taxes", status_code=status.HTTP_201_CREATED)
def create_tax(product_id: int, payload: TaxCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return tax_to_dict(taxes.create_tax(db, user, product_id, **payload.model_dump()))


@router.put("/taxes/{tax_id}")
def update_tax(tax_id: int, payload: TaxUpdate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return tax_to_dict(taxes.update_tax(db, user, tax_id, payload.model_dump(exclude_unset=True)))


@router.delete("/taxes/{tax_id}")
def delete_tax(tax_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    taxes.delete_tax(db, user, tax_id)
    return {"ok": True}
