from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from storefront.core.database import Base

item_sub_categories = Table(
    "item_sub_categories",
    Base.metadata,
    Column("product_item_id", Integer, ForeignKey("product_items.id", ondelete="CASCADE"), primary_key=True),
    Column("sub_category_id", Integer, ForeignKey("sub_categories.id", ondelete="CASCADE"), primary_key=True),
)

item_personalities = Table(
    "item_personalities",
    Base.metadata,
    Column("product_item_id", Integer, ForeignKey("product_items.id", ondelete="CASCADE"), primary_key=True),
    Column("personality_id", Integer, ForeignKey("personalities.id", ondelete="CASCADE"), primary_key=True),
)


class ProductItem(Base):
    __tablename__ = "product_items"
    __table_args__ = (
        UniqueConstraint("tenant_id", "weight", name="uq_product_items_tenant_weight"),
        Index("ix_product_items_tenant_order", "tenant_id", "display_order"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    weight = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="SET NULL"), nullable=True)
    image_url = Column(String, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    brand = relationship("Brand")
    sub_categories = relationship("SubCategory", secondary=item_sub_categories, passive_deletes=True)
    personalities = relationship("Personality", secondary=item_personalities, passive_deletes=True)
