from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship

from database import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    features = Column(JSON, nullable=True)   # list[str]
    keywords = Column(JSON, nullable=True)   # list[str]
    original_description = Column(Text, nullable=True)
    generated_description = Column(Text, nullable=True)
    seo_score = Column(Float, nullable=True)
    status = Column(String, default="draft", nullable=False)  # draft | published

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="products")
    # descriptions go with their product (delete cascade, no orphan tracking:
    # rows are created by foreign key, and product_id may be NULL)
    descriptions = relationship(
        "Description",
        back_populates="product",
        cascade="all",
    )
