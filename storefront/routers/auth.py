from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.errors import BadRequestError
from storefront.deps import get_current_user
from storefront.models.user import User
from storefront.schemas.users import user_to_dict
from storefront.services import auth as auth_service
from storefront.services.tenant_directory import domain_from_request, resolve_tenant_from_request

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)
    domain: Optional[str] = None


class RegisterCustomerRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    product_id: Optional[int] = None


def _auth_payload(token: str, user: User) -> dict:
    return {"token": token, "token_type": "bearer", "user": user_to_dict(user)}


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    domain = payload.domain or domain_from_request(request)
    token, user = auth_service.login(db, payload.username, payload.password, domain)
    return _auth_payload(token, user)


@router.post("/token")
def token(request: Request, form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    access_token, _user = auth_service.login(db, form.username, form.password, domain_from_request(request))
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/register", status_code=status.HTTP_201_CREATED)
@router.post("/register-customer", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def register_customer(payload: RegisterCustomerRequest, request: Request, db: Session = Depends(get_db)):
    tenant = resolve_tenant_from_request(db, request)
    if payload.product_id is not None and payload.product_id != tenant.id:
        raise BadRequestError("Product does not match this storefront", hint="Register on the product's own domain")
    token, user = auth_service.register_customer(
        db,
        tenant,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    return _auth_payload(token, user)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return user_to_dict(user)
