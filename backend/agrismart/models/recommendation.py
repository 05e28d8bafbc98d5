# backend/agrismart/models/recommendation.py

from sqlalchemy import Column, String, DateTime, JSON
import uuid
from datetime import datetime

from agrismart.core.database import Base

def gen_uuid():
    return str(uuid.uuid4())


class RecommendationRecord(Base):
    __tablename__ = "recommendation_records"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    kind = Column(String, nullable=False, index=True)   # analyzer, advisory, contact
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
