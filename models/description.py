from sqlalchemy import Column, Integer, String, Text, Float, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from database import Base, utcnow


class Description(Base):
    __tablename__ = "descriptions"

    id = Column(Integer, primary_key=True, index=True)
    # NULL when the generation was not tied to a product
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    seo_score = Column(Float, nullable=True)
    word_count = Column(Integer, nullable=True)
    keyword_density = Column(Float, nullable=True)
    tone = Column(String, nullable=True)
    length = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)

    owner = relationship("User", back_populates="descriptions")
    product = relationship("Product", back_populates="descriptions")
