from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from storefront.core.database import Base

TAX_TYPES = ("percentage", "fixed")


class Tax(Base):
    __tablename__ = "taxes"
    __table_args__ = (CheckConstraint("type IN ('percentage', 'fixed')", name="ck_taxes_type"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False)
    value = Column(Numeric(10, 4), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
