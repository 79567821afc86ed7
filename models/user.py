# models/user.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from database import Base, utcnow
from settings import FREE_PLAN_CREDITS


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    username = Column(String, unique=True, index=True)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)

    # "free" | "active"
    subscription_status = Column(String, default="free", nullable=False)
    # NULL = unlimited
    api_credits = Column(Integer, default=FREE_PLAN_CREDITS, nullable=True)

    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Product.owner  <->  User.products
    products = relationship(
        "Product",
        back_populates="owner",
        cascade="all",
    )

    # Description.owner  <->  User.descriptions
    descriptions = relationship(
        "Description",
        back_populates="owner",
        cascade="all",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
