from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base

ORDER_STATUSES = ("pending", "confirmed", "preparing", "arriving", "completed", "cancelled", "rejected")
BAG_TYPES = ("normal", "discrete")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'preparing', 'arriving', 'completed', 'cancelled', 'rejected')",
            name="ck_orders_status",
        ),
        CheckConstraint("bag_type IN ('normal', 'discrete')", name="ck_orders_bag_type"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    order_number = Column(String(40), unique=True, nullable=False)

    status = Column(String(20), default="pending", nullable=False)

    # Delivery
    delivery_address = Column(Text, nullable=False)
    apt_suite = Column(String(120), nullable=True)
    scheduled_delivery_at = Column(DateTime(timezone=True), nullable=True)
    bag_type = Column(String(20), default="normal", nullable=False)
    order_request = Column(Text, nullable=True)

    # Frozen at creation
    subtotal = Column(Numeric(10, 2), nullable=False)
    taxes = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="orders")
    tenant = relationship("Tenant", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )
