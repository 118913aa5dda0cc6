from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.deps import require_admin
from storefront.models.user import User
from storefront.schemas.catalog import tenant_to_dict
from storefront.schemas.users import user_to_dict
from storefront.services import tenants as tenant_service
from storefront.services import users as user_service

router = APIRouter(prefix="/api/admin", tags=["admin-users"])


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    email: Optional[EmailStr] = None
    role: str = "user"
    product_ids: List[int] = Field(default_factory=list)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)


class RoleUpdate(BaseModel):
    role: str
    product_ids: Optional[List[int]] = None


class ProductAssignment(BaseModel):
    product_ids: List[int]


@router.get("/users")
def list_users(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [user_to_dict(entry) for entry in user_service.list_manageable_users(db, user)]


@router.get("/users/{user_id}")
def get_user(user_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return user_to_dict(user_service.get_manageable_user(db, user, user_id))


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    created = user_service.create_user(
        db,
        user,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        role=payload.role,
        tenant_ids=payload.product_ids,
    )
    return user_to_dict(created)


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    updated = user_service.update_user(db, user, user_id, email=payload.email, password=payload.password)
    return user_to_dict(updated)


@router.delete("/users/{user_id}")
def delete_user(user_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    user_service.delete_user(db, user, user_id)
    return {"ok": True}


@router.put("/users/{user_id}/role")
def change_role(
    user_id: int,
    payload: RoleUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    updated = user_service.change_role(db, user, user_id, payload.role, tenant_ids=payload.product_ids)
    return user_to_dict(updated)


@router.post("/users/{user_id}/products")
def assign_products(
    user_id: int,
    payload: ProductAssignment,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    assigned = user_service.assign_tenants(db, user, user_id, payload.product_ids)
    return {"user_id": user_id, "product_ids": assigned}


@router.get("/products")
def assignable_products(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [tenant_to_dict(tenant) for tenant in tenant_service.list_visible_tenants(db, user)]
