from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(120), unique=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=False)

    role = Column(String(20), nullable=False, default="user")  # super_admin | admin | user

    # Customer sign-up fields
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    phone = Column(String(30), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    assignments = relationship("UserTenant", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
