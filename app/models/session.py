"""
Demo session database model
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class DemoSession(Base):
    """Tracked prospect session; profile fields fill in as the visitor reveals them"""
    __tablename__ = "demo_sessions"
    
    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(255), index=True)
    full_name = Column(String(255))
    company_name = Column(String(255))
    industry = Column(String(100))
    employee_count = Column(String(50))  # bracket, e.g. '51-200'
    job_title = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relationships
    events = relationship("EngagementEvent", back_populates="session")
    lead_score = relationship("LeadScore", back_populates="session", uselist=False)
