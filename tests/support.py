from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.database import Base, get_db
from storefront.core.error_handlers import setup_exception_handlers
import storefront.models  # noqa: F401
from storefront.models.order import Order
from storefront.models.product_item import ProductItem
from storefront.models.tax import Tax
from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.models.user_tenant import UserTenant
from storefront.services.auth import issue_token
from storefront.services.security import hash_password
from tests.fixtures_data import DEFAULT_PASSWORD

_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


def build_session() -> Session:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return testing_session_local()


def build_client(db: Session, *routers) -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)
    for router in routers:
        app.include_router(router)
    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app)


def auth_headers(user: User, **extra: str) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {issue_token(user)}"}
    headers.update(extra)
    return headers


def add_tenant(db: Session, name: str, domain: str) -> Tenant:
    tenant = Tenant(name=name, domain=domain, description="")
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


def add_user(
    db: Session,
    username: str,
    role: str = "user",
    tenant_ids: Iterable[int] = (),
    email: Optional[str] = None,
) -> User:
    user = User(username=username, email=email, password_hash=_PASSWORD_HASH, role=role)
    db.add(user)
    db.flush()
    for tenant_id in tenant_ids:
        db.add(UserTenant(user_id=user.id, tenant_id=tenant_id))
    db.commit()
    db.refresh(user)
    return user


def add_item(
    db: Session, tenant: Tenant, weight: str, price: str, name: Optional[str] = None, is_active: bool = True
) -> ProductItem:
    item = ProductItem(
        tenant_id=tenant.id,
        weight=weight,
        price=Decimal(price),
        name=name or f"Item {weight}",
        is_active=is_active,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_tax(db: Session, tenant: Tenant, name: str, type: str, value: str, is_active: bool = True) -> Tax:
    tax = Tax(tenant_id=tenant.id, name=name, type=type, value=Decimal(value), is_active=is_active)
    db.add(tax)
    db.commit()
    db.refresh(tax)
    return tax


def add_order(db: Session, user: User, tenant: Tenant, status: str = "pending", number: Optional[str] = None) -> Order:
    order = Order(
        user_id=user.id,
        tenant_id=tenant.id,
        order_number=number or f"ORD-TEST-{status.upper()}-{user.id}",
        status=status,
        delivery_address="1 Main St",
        bag_type="normal",
        subtotal=Decimal("10.00"),
        taxes=Decimal("1.00"),
        delivery_fee=Decimal("5.00"),
        total=Decimal("16.00"),
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def tenant_ids_of(db: Session, user_id: int) -> set[int]:
    return {row[0] for row in db.query(UserTenant.tenant_id).filter(UserTenant.user_id == user_id).all()}
