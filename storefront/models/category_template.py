from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base


class CategoryTemplate(Base):
    """A global, named set of category and sub-category names.

    Templates hold names rather than ids because categories belong to a single
    tenant; applying a template creates the tenant's own rows.
    """

    __tablename__ = "category_templates"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    categories = relationship(
        "TemplateCategory",
        back_populates="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TemplateCategory.display_order",
    )


class TemplateCategory(Base):
    __tablename__ = "template_categories"
    __table_args__ = (UniqueConstraint("template_id", "name", name="uq_template_categories_template_name"),)

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("category_templates.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(120), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    template = relationship("CategoryTemplate", back_populates="categories")
    sub_categories = relationship(
        "TemplateSubCategory",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TemplateSubCategory.display_order",
    )


class TemplateSubCategory(Base):
    __tablename__ = "template_sub_categories"
    __table_args__ = (
        UniqueConstraint("template_category_id", "name", name="uq_template_sub_categories_parent_name"),
    )

    id = Column(Integer, primary_key=True)
    template_category_id = Column(
        Integer, ForeignKey("template_categories.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name = Column(String(120), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
