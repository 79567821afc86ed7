from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON

from database import Base, utcnow


class AnalyticsEvent(Base):
    """Append-only event log. product/description ids are soft references."""
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=True)
    description_id = Column(Integer, nullable=True)
    # product_created, description_generated, subscription_updated, ...
    event_type = Column(String, nullable=False, index=True)
    event_data = Column(JSON, nullable=True)
    timestamp = Column(DateTime, default=utcnow, index=True)
