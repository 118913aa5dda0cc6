from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from storefront.core.database import Base


class Personality(Base):
    __tablename__ = "personalities"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_personalities_tenant_name"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(120), nullable=False)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
