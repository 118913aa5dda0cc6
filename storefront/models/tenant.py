from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base


class Tenant(Base):
    """A storefront ("product" in the admin UI) bound to one domain."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)
    # Stored trimmed and lower-cased; see services.tenant_directory.normalize_domain.
    domain = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    assignments = relationship("UserTenant", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    categories = relationship("Category", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    brands = relationship("Brand", cascade="all, delete-orphan", passive_deletes=True)
    personalities = relationship("Personality", cascade="all, delete-orphan", passive_deletes=True)
    product_items = relationship("ProductItem", cascade="all, delete-orphan", passive_deletes=True)
    taxes = relationship("Tax", cascade="all, delete-orphan", passive_deletes=True)
    promo_codes = relationship("PromoCode", cascade="all, delete-orphan", passive_deletes=True)
    orders = relationship("Order", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
