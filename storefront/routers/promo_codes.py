from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import require_admin
from storefront.models.user import User
from storefront.schemas.catalog import promo_code_to_dict
from storefront.services import promo_codes

router = APIRouter(prefix="/api", tags=["promo-codes"])


class PromoCodeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    discount_percentage: Decimal = Field(..., ge=0, le=100)
    is_active: bool = True


class PromoCodeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None


@router.get("/products/{product_id}/promo-codes")
def list_promo_codes(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [promo_code_to_dict(code) for code in promo_codes.list_promo_codes(db, user, product_id)]


@router.post("/products/{product_id}/promo-codes", status_code=status.HTTP_201_CREATED)
def create_promo_code(
    product_id: int,
    payload: PromoCodeCreate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return promo_code_to_dict(promo_codes.create_promo_code(db, user, product_id, **payload.model_dump()))


@router.put("/promo-codes/{promo_code_id}/toggle")
def toggle_promo_code(promo_code_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return promo_code_to_dict(promo_codes.toggle_promo_code(db, user, promo_code_id))


@router.put("/promo-codes/{promo_code_id}")
def update_promo_code(
    promo_code_id: int,
    payload: PromoCodeUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    return promo_code_to_dict(promo_codes.update_promo_code(db, user, promo_code_id, changes))


@router.delete("/promo-codes/{promo_code_id}")
def delete_promo_code(promo_code_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    promo_codes.delete_promo_code(db, user, promo_code_id)
    return {"ok": True}
